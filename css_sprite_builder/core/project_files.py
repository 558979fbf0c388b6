from __future__ import annotations

import fnmatch
from pathlib import Path
from typing import Iterable, Optional, Sequence

from .context import FileEntry, FileSet
from .logger import get_logger

log = get_logger(__name__)

__all__ = ["DEFAULT_EXCLUDES", "load_project_files", "write_output_files"]

DEFAULT_EXCLUDES: Sequence[str] = (
    ".git",
    ".svn",
    ".idea",
    "__pycache__",
    "*.tmp",
    "*.bak",
    "*.swp",
    ".DS_Store",
    "Thumbs.db",
)


def _excluded(rel_parts: Iterable[str], excludes: Sequence[str]) -> bool:
    return any(
        fnmatch.fnmatch(part, pattern) for part in rel_parts for pattern in excludes
    )


def load_project_files(
    root: Path, *, excludes: Optional[Sequence[str]] = None
) -> FileSet:
    """Read every file under *root* into a :class:`FileSet`."""
    patterns = DEFAULT_EXCLUDES if excludes is None else excludes
    files = FileSet()
    for path in sorted(root.rglob("*")):
        if not path.is_file():
            continue
        rel = path.relative_to(root)
        if _excluded(rel.parts, patterns):
            continue
        files.add(FileEntry(path=rel.as_posix(), data=path.read_bytes()))
    log.info("Loaded %d file(s) from %s", len(files), root)
    return files


def write_output_files(files: FileSet, out_dir: Path) -> int:
    written = 0
    for entry in files:
        target = out_dir / (entry.output_path or entry.path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(entry.data)
        written += 1
    log.info("Wrote %d file(s) to %s", written, out_dir)
    return written
