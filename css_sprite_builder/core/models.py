"""Data passed between the sprite pass stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, NamedTuple, Optional, Tuple

__all__ = [
    "Rect",
    "ImageReference",
    "SpriteJob",
    "PackResult",
    "PackedSprite",
    "FixSelectorMap",
]


class Rect(NamedTuple):
    x: int
    y: int
    width: int
    height: int


DirectiveTuple = Tuple[Optional[str], int, bool, bool]


@dataclass(eq=False)
class ImageReference:
    """A source image plus the sprite directive it was first seen with.

    ``placement`` stays ``None`` until the image has been packed.
    """

    path: str
    referenced_from: str
    sprite_target: Optional[str]
    dpr: int = 1
    pack_requested: bool = False
    legacy_fix_requested: bool = False
    placement: Optional[Rect] = None

    @property
    def directive(self) -> DirectiveTuple:
        return (
            self.sprite_target,
            self.dpr,
            self.pack_requested,
            self.legacy_fix_requested,
        )

    @property
    def is_packed(self) -> bool:
        return self.placement is not None

    def same_directive(self, other: "ImageReference") -> bool:
        return self.path == other.path and self.directive == other.directive


@dataclass
class SpriteJob:
    path: str
    dpr: int
    images: List[ImageReference] = field(default_factory=list)
    padding: float = 0

    @property
    def image_paths(self) -> List[str]:
        return [img.path for img in self.images]


class PackResult(NamedTuple):
    """What a packing engine hands back for one sheet."""

    coordinates: Dict[str, Rect]
    width: int
    height: int
    image: bytes


@dataclass
class PackedSprite:
    path: str
    dpr: int
    width: int
    height: int
    image_bytes: bytes
    placement_by_path: Dict[str, Rect]
    images: List[ImageReference] = field(default_factory=list)

    @property
    def size_bytes(self) -> int:
        return len(self.image_bytes)


class FixSelectorMap:
    """Original icon path -> selectors that reference it after rewrite."""

    def __init__(self) -> None:
        self._selectors: Dict[str, List[str]] = {}

    def add(self, path: str, selectors: List[str]) -> None:
        bucket = self._selectors.setdefault(path, [])
        for selector in selectors:
            if selector not in bucket:
                bucket.append(selector)

    def get(self, path: str) -> List[str]:
        return list(self._selectors.get(path, ()))

    def __contains__(self, path: object) -> bool:
        return path in self._selectors

    def __len__(self) -> int:
        return len(self._selectors)
