from __future__ import annotations

import pytest

from css_sprite_builder.core.context import FileEntry, FileSet


@pytest.fixture
def make_files():
    """Factory building a ``FileSet`` from ``{path: str | bytes}``."""

    def _make(files):
        entries = []
        for path, content in files.items():
            data = content.encode("utf-8") if isinstance(content, str) else content
            entries.append(FileEntry(path=path, data=bytes(data)))
        return FileSet(entries)

    return _make
