"""Resolve legacy PNG fix markers against the rewritten selectors.

This is plain textual substitution over arbitrary text files. Markers are
found with a regular expression; nothing parses the host format, so a
marker written inside a string or comment is rewritten all the same.
"""

from __future__ import annotations

import fnmatch
import posixpath
import re
from typing import Callable, List, Optional

from .context import BuildContext, FileEntry
from .logger import get_logger
from .models import FixSelectorMap
from .url_utils import normalize_path

log = get_logger(__name__)

__all__ = ["LegacyFixupMarker", "LegacyFixupEngine", "DEFAULT_MARKER_PATTERN"]

# fix('${img/a.png,img/b.png}') -> fix('.icon-a,.icon-b')
DEFAULT_MARKER_PATTERN = re.compile(
    r"""(?P<head>\bfix\(\s*['"])\$\{(?P<paths>[^}]*)\}(?P<tail>['"]\s*\))"""
)

Renderer = Callable[["re.Match[str]", List[str]], str]


def _default_render(match: "re.Match[str]", selectors: List[str]) -> str:
    return f"{match.group('head')}{','.join(selectors)}{match.group('tail')}"


class LegacyFixupMarker:
    """A pattern with a ``paths`` group plus a function rendering the fix."""

    def __init__(
        self,
        pattern: Optional["re.Pattern[str]"] = None,
        render: Optional[Renderer] = None,
    ) -> None:
        self.pattern = pattern or DEFAULT_MARKER_PATTERN
        self._render = render or _default_render

    def paths(self, match: "re.Match[str]") -> List[str]:
        return [p.strip() for p in match.group("paths").split(",") if p.strip()]

    def render(self, match: "re.Match[str]", selectors: List[str]) -> str:
        return self._render(match, selectors)


class LegacyFixupEngine:
    def __init__(
        self, context: BuildContext, marker: Optional[LegacyFixupMarker] = None
    ) -> None:
        self.context = context
        self.options = context.options
        self.marker = marker or LegacyFixupMarker()

    def apply(self, fix_map: FixSelectorMap) -> List[str]:
        """Rewrite markers in every eligible file; returns the touched paths."""
        touched: List[str] = []
        for entry in self.context.files:
            if not self._should_scan(entry):
                continue
            try:
                text = entry.read_text()
            except UnicodeDecodeError:
                log.debug("Skipping non-text file %s", entry.path)
                continue
            fixed = self.fix_text(text, entry.path, fix_map)
            if fixed != text:
                entry.write_text(fixed)
                touched.append(entry.path)
                log.info("Resolved legacy PNG fix markers in %s", entry.path)
        self.context.report.files_fixed.extend(touched)
        return touched

    def fix_text(self, text: str, file_path: str, fix_map: FixSelectorMap) -> str:
        lines = []
        for line in text.splitlines(keepends=True):
            if not self.marker.pattern.search(line):
                lines.append(line)
                continue
            dropped = False

            def _substitute(match: "re.Match[str]") -> str:
                nonlocal dropped
                selectors = self.selectors_for(self.marker.paths(match), file_path, fix_map)
                if not selectors:
                    dropped = True
                    return match.group(0)
                return self.marker.render(match, selectors)

            fixed = self.marker.pattern.sub(_substitute, line)
            if not dropped:
                lines.append(fixed)
        return "".join(lines)

    @staticmethod
    def selectors_for(
        paths: List[str], file_path: str, fix_map: FixSelectorMap
    ) -> List[str]:
        selectors: List[str] = []
        base = posixpath.dirname(file_path)
        for path in paths:
            keys = [normalize_path(posixpath.join(base, path)), normalize_path(path)]
            for key in dict.fromkeys(keys):
                for selector in fix_map.get(key):
                    if selector not in selectors:
                        selectors.append(selector)
        return selectors

    def _should_scan(self, entry: FileEntry) -> bool:
        path = entry.path
        if any(fnmatch.fnmatchcase(path, pat) for pat in self.options.fixup_excludes):
            return False
        return any(fnmatch.fnmatchcase(path, pat) for pat in self.options.fixup_files)
