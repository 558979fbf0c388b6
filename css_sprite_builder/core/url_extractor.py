"""Find the images a stylesheet wants packed into sprite sheets."""

from __future__ import annotations

import posixpath
import re
from typing import Dict, List, Optional

from .context import BuildContext, FileEntry
from .errors import ConflictError, ResolutionError
from .logger import get_logger
from .models import ImageReference
from .registry import ImageRegistry
from .url_utils import CSS_URL_PATTERN, is_local_url, parse_css_url

log = get_logger(__name__)

__all__ = ["UrlExtractor", "DPR_PATTERN", "parse_flag"]

DPR_PATTERN = re.compile(r"@(\d+)x\.\w+$")
_EXTENSION_PATTERN = re.compile(r"\.\w+$")
_FALSE_VALUES = {"0", "false", "no", "off"}


def parse_flag(value: str) -> bool:
    return value.strip().lower() not in _FALSE_VALUES


class UrlExtractor:
    def __init__(self, context: BuildContext, registry: ImageRegistry) -> None:
        self.context = context
        self.options = context.options
        self.registry = registry

    def extract(self, stylesheet: FileEntry) -> List[ImageReference]:
        """Register every sprite or legacy-fix image of *stylesheet*.

        Returns the registry entries the stylesheet references; an empty list
        means the stylesheet needs no rewrite.
        """
        css_path = stylesheet.path
        text = stylesheet.read_text()
        seen: Dict[str, ImageReference] = {}
        eligible: List[ImageReference] = []

        for match in CSS_URL_PATTERN.finditer(text):
            candidate = self.describe(match.group(1), css_path)
            if candidate is None:
                continue

            existing = seen.get(candidate.path)
            if existing is not None:
                if not existing.same_directive(candidate):
                    self.context.report_error(
                        ConflictError(
                            f"The same image {candidate.path} in file {css_path} "
                            "with different sprite information is not allowed.",
                            path=css_path,
                        )
                    )
                continue

            if candidate.pack_requested or candidate.legacy_fix_requested:
                candidate = self.registry.register(candidate)
                eligible.append(candidate)
            seen[candidate.path] = candidate

        log.debug("Found %d sprite image(s) in %s", len(eligible), css_path)
        return eligible

    def describe(
        self, url: str, css_path: str, *, report_missing: bool = True
    ) -> Optional[ImageReference]:
        """Build the directive for one url() without registering it.

        Returns ``None`` for non-local urls and for images that are not
        part of the file set.
        """
        if not is_local_url(url):
            return None

        parsed = parse_css_url(url, css_path)
        if not self.context.files.exists(parsed.path):
            if report_missing:
                self.context.report_error(
                    ResolutionError(
                        f"The image file {parsed.path} referred in file "
                        f"{css_path} is not found.",
                        path=css_path,
                    )
                )
            return None

        sprite_value = parsed.query.get(self.options.sprite_param_name)
        dpr = self._dpr_of(parsed.path)
        ie6_value = parsed.query.get(self.options.ie6_param_name)
        legacy_fix = (
            self.options.fix_ie6_png if ie6_value is None else parse_flag(ie6_value)
        )
        return ImageReference(
            path=parsed.path,
            referenced_from=css_path,
            sprite_target=self.sprite_target(sprite_value, css_path, dpr),
            dpr=dpr,
            pack_requested=sprite_value is not None,
            legacy_fix_requested=legacy_fix,
        )

    def sprite_target(self, name: Optional[str], css_path: str, dpr: int) -> str:
        if name:
            target = posixpath.join(self.options.output_dir, name)
        elif self.options.group_by_css_file:
            target = _EXTENSION_PATTERN.sub("", css_path)
        else:
            target = posixpath.join(self.options.output_dir, "all")
        suffix = "" if dpr == 1 else f"@{dpr}x"
        return f"{target}{suffix}.png"

    @staticmethod
    def _dpr_of(path: str) -> int:
        match = DPR_PATTERN.search(path)
        if match is None:
            return 1
        return int(match.group(1)) or 1
