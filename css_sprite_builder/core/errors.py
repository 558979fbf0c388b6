from __future__ import annotations

from typing import Optional

__all__ = [
    "SpriteError",
    "ResolutionError",
    "ConflictError",
    "RuleValidationError",
    "PackingError",
    "PackingTimeoutError",
    "StylesheetParseError",
]


class SpriteError(Exception):
    """Base class of every failure reported during a sprite pass.

    These are recorded on the report and logged; the pass itself never
    propagates them.
    """

    def __init__(self, message: str, *, path: Optional[str] = None) -> None:
        super().__init__(message)
        self.path = path


class ResolutionError(SpriteError):
    """A url() points at an image that is not among the known files."""


class ConflictError(SpriteError):
    """The same image was seen with two different sprite directives."""


class RuleValidationError(SpriteError):
    """A rule cannot be rewritten (multiple backgrounds, bad property, tiling)."""

    def __init__(
        self, message: str, *, path: Optional[str] = None, selectors: str = ""
    ) -> None:
        super().__init__(message, path=path)
        self.selectors = selectors


class PackingError(SpriteError):
    """The packing engine failed for one sprite sheet."""


class PackingTimeoutError(PackingError):
    pass


class StylesheetParseError(SpriteError):
    """A stylesheet could not be parsed; it is left untouched."""
