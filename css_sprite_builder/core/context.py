from __future__ import annotations

import fnmatch
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Type

from .config import SpriteOptions
from .errors import SpriteError
from .logger import get_logger

__all__ = [
    "FileEntry",
    "FileSet",
    "SpriteReport",
    "BuildContext",
]


@dataclass
class FileEntry:
    """One project file; ``path`` is project-relative with forward slashes."""

    path: str
    data: bytes = b""
    output_path: Optional[str] = None

    def __post_init__(self) -> None:
        if self.output_path is None:
            self.output_path = self.path

    def read_text(self, encoding: str = "utf-8") -> str:
        return self.data.decode(encoding)

    def write_text(self, text: str, encoding: str = "utf-8") -> None:
        self.data = text.encode(encoding)


class FileSet:
    """Ordered in-memory view of every file taking part in the build."""

    def __init__(self, entries: Optional[Iterable[FileEntry]] = None) -> None:
        self._entries: Dict[str, FileEntry] = {}
        for entry in entries or ():
            self.add(entry)

    def __iter__(self) -> Iterator[FileEntry]:
        return iter(list(self._entries.values()))

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, path: object) -> bool:
        return path in self._entries

    def add(self, entry: FileEntry) -> None:
        self._entries[entry.path] = entry

    def find(self, path: str) -> Optional[FileEntry]:
        return self._entries.get(path)

    def exists(self, path: str) -> bool:
        return path in self._entries

    def select(self, patterns: Sequence[str]) -> List[FileEntry]:
        return [
            entry
            for entry in self._entries.values()
            if any(fnmatch.fnmatchcase(entry.path, pat) for pat in patterns)
        ]


@dataclass
class SpriteReport:
    """Aggregates what one sprite pass produced and what went wrong."""

    sheets: List[str] = field(default_factory=list)
    stylesheets_rewritten: List[str] = field(default_factory=list)
    files_fixed: List[str] = field(default_factory=list)
    errors: List[SpriteError] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.sheets or self.stylesheets_rewritten or self.files_fixed)

    @property
    def ok(self) -> bool:
        return not self.errors

    def errors_of(self, kind: Type[SpriteError]) -> List[SpriteError]:
        return [err for err in self.errors if isinstance(err, kind)]

    @property
    def summary_lines(self) -> List[str]:
        lines = [f"{len(self.sheets)} sprite sheet(s) generated"]
        lines.extend(f"  sheet: {path}" for path in self.sheets)
        if self.stylesheets_rewritten:
            lines.append(
                f"{len(self.stylesheets_rewritten)} stylesheet(s) rewritten"
            )
        if self.files_fixed:
            lines.append(f"{len(self.files_fixed)} file(s) with legacy PNG fixes")
        if self.errors:
            lines.append(f"{len(self.errors)} error(s) reported")
        return lines


class BuildContext:
    """Everything a component needs: files, options, logger and report."""

    def __init__(
        self,
        files: FileSet,
        options: Optional[SpriteOptions] = None,
        *,
        log: Optional[logging.Logger] = None,
    ) -> None:
        self.files = files
        self.options = options or SpriteOptions()
        self.log = log or get_logger("css_sprite_builder")
        self.report = SpriteReport()

    def report_error(self, error: SpriteError) -> None:
        self.log.error("%s", error)
        self.report.errors.append(error)
