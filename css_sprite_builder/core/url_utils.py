from __future__ import annotations

import posixpath
import re
from typing import Dict, NamedTuple
from urllib.parse import parse_qs, urlsplit

__all__ = [
    "CSS_URL_PATTERN",
    "ParsedUrl",
    "normalize_path",
    "is_local_url",
    "parse_css_url",
    "reference_path",
]

# url( "path" ) with optional quotes; group 1 is the raw reference
CSS_URL_PATTERN = re.compile(r"""url\s*\(\s*['"]?\s*([^\s'"()]*)\s*['"]?\s*\)""")

_SCHEME_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*:")


class ParsedUrl(NamedTuple):
    path: str
    query: Dict[str, str]


def normalize_path(path: str) -> str:
    """Collapse ``..``/``.`` segments and use forward slashes."""
    path = path.replace("\\", "/")
    normalized = posixpath.normpath(path)
    return "" if normalized == "." else normalized


def is_local_url(url: str) -> bool:
    if not url or url.startswith("#"):
        return False
    if url.startswith("//") or url.startswith("/"):
        return False
    return not _SCHEME_PATTERN.match(url)


def parse_css_url(url: str, css_path: str) -> ParsedUrl:
    """Resolve *url* against the directory of *css_path*.

    Query parameters without a value map to an empty string so that
    presence can be told apart from absence.
    """
    parts = urlsplit(url)
    joined = posixpath.join(posixpath.dirname(css_path), parts.path)
    query = {
        key: values[-1]
        for key, values in parse_qs(parts.query, keep_blank_values=True).items()
    }
    return ParsedUrl(normalize_path(joined), query)


def reference_path(target: str, from_file: str) -> str:
    """Path of *target* as written inside *from_file*."""
    start = posixpath.dirname(from_file) or "."
    return posixpath.relpath(target, start)
