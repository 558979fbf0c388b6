"""Point sprite-eligible background declarations at the packed sheets."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Set

from .context import BuildContext, FileEntry
from .css_parser import CssutilsParser, Declaration, StylesheetParser
from .errors import RuleValidationError, StylesheetParseError
from .logger import get_logger
from .models import FixSelectorMap, ImageReference, PackedSprite
from .registry import ImageRegistry
from .url_extractor import UrlExtractor
from .url_utils import CSS_URL_PATTERN, reference_path

log = get_logger(__name__)

__all__ = [
    "CssRewriter",
    "round_half_up",
    "effective_dpr",
    "background_position",
    "background_size",
]

BACKGROUND_PROPERTY = re.compile(r"^(-[a-z]+-)?background(-image)?$")
_SHORTHAND_PROPERTY = re.compile(r"^(-[a-z]+-)?background$")
_IMAGE_SET = re.compile(r"image-set\s*\(", re.IGNORECASE)
_TILING_PATTERN = re.compile(r"(^|\s)repeat(-[xy])?(\s|$)")
_MANAGED_PROPERTIES = ("background-position", "background-size")


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def effective_dpr(image: ImageReference, scale: float) -> int:
    if image.dpr != 1:
        return image.dpr
    return max(1, round_half_up(1 / scale))


def _offset(value: int, dpr: int) -> str:
    scaled = round_half_up(value / dpr)
    return f"{-scaled}px" if scaled else "0"


def background_position(image: ImageReference, dpr: int) -> str:
    rect = image.placement
    if rect is None:
        raise ValueError(f"{image.path} has not been packed")
    return f"{_offset(rect.x, dpr)} {_offset(rect.y, dpr)}"


def background_size(sprite: PackedSprite, dpr: int) -> str:
    width = round_half_up(sprite.width / dpr)
    height = round_half_up(sprite.height / dpr)
    return f"{width}px {height}px"


@dataclass
class _SpriteDeclaration:
    index: int
    url: str
    image: ImageReference
    sprite: PackedSprite


class CssRewriter:
    def __init__(
        self,
        context: BuildContext,
        extractor: UrlExtractor,
        registry: ImageRegistry,
        parser: Optional[StylesheetParser] = None,
    ) -> None:
        self.context = context
        self.options = context.options
        self.extractor = extractor
        self.registry = registry
        self.parser: StylesheetParser = parser or CssutilsParser()

    def rewrite(
        self, sprites: Sequence[PackedSprite], stylesheets: Sequence[FileEntry]
    ) -> FixSelectorMap:
        """Rewrite every stylesheet in place; returns the selectors per icon."""
        sheets = {sprite.path: sprite for sprite in sprites}
        fix_map = FixSelectorMap()
        if not sheets:
            return fix_map

        for entry in stylesheets:
            log.info("parse css file %s...", entry.path)
            try:
                sheet = self.parser.parse(entry.read_text(), entry.path)
            except StylesheetParseError as err:
                self.context.report_error(err)
                continue

            seen: Set[int] = set()
            changed = False
            for rule in self.parser.rules(sheet):
                if self._visit(rule, entry.path, sheets, fix_map, seen):
                    changed = True

            if changed:
                entry.write_text(self.parser.serialize(sheet))
                self.context.report.stylesheets_rewritten.append(entry.path)
        return fix_map

    def _visit(
        self,
        rule: Any,
        css_path: str,
        sheets: Dict[str, PackedSprite],
        fix_map: FixSelectorMap,
        seen: Set[int],
    ) -> bool:
        if id(rule) in seen:
            return False
        seen.add(id(rule))

        changed = False
        if self.parser.is_style_rule(rule):
            changed = self._rewrite_rule(rule, css_path, sheets, fix_map)
        for child in self.parser.children(rule):
            if self._visit(child, css_path, sheets, fix_map, seen):
                changed = True
        return changed

    def _rewrite_rule(
        self,
        rule: Any,
        css_path: str,
        sheets: Dict[str, PackedSprite],
        fix_map: FixSelectorMap,
    ) -> bool:
        declarations = self.parser.declarations(rule)
        targets = self._sprite_declarations(declarations, css_path, sheets)
        if not targets:
            return False

        selectors = self.parser.selectors(rule)
        error = self._validate(declarations, targets, css_path, ", ".join(selectors))
        if error is not None:
            self.context.report_error(error)
            return False

        by_index = {target.index: target for target in targets}
        rewritten: List[Declaration] = []
        for index, decl in enumerate(declarations):
            if any(prop in decl.name for prop in _MANAGED_PROPERTIES):
                continue
            target = by_index.get(index)
            if target is None:
                rewritten.append(decl)
                continue
            rewritten.extend(self._sprite_declarations_for(decl, target, css_path))

        self.parser.set_declarations(rule, rewritten)
        for target in targets:
            fix_map.add(target.image.path, selectors)
        return True

    def _sprite_declarations_for(
        self, decl: Declaration, target: _SpriteDeclaration, css_path: str
    ) -> List[Declaration]:
        sheet_ref = reference_path(target.sprite.path, css_path)

        def _replace(match: "re.Match[str]") -> str:
            if match.group(1) != target.url:
                return match.group(0)
            return match.group(0).replace(match.group(1), sheet_ref)

        dpr = effective_dpr(target.image, self.options.scale)
        result = [
            decl._replace(value=CSS_URL_PATTERN.sub(_replace, decl.value)),
            Declaration("background-position", background_position(target.image, dpr)),
        ]
        if dpr != 1:
            result.append(
                Declaration("background-size", background_size(target.sprite, dpr))
            )
        return result

    def _sprite_declarations(
        self,
        declarations: Sequence[Declaration],
        css_path: str,
        sheets: Dict[str, PackedSprite],
    ) -> List[_SpriteDeclaration]:
        found = []
        for index, decl in enumerate(declarations):
            for match in CSS_URL_PATTERN.finditer(decl.value):
                url = match.group(1)
                image = self._packed_image(url, css_path)
                if image is None or image.sprite_target is None:
                    continue
                sprite = sheets.get(image.sprite_target)
                if sprite is None:
                    continue
                found.append(_SpriteDeclaration(index, url, image, sprite))
        return found

    def _packed_image(self, url: str, css_path: str) -> Optional[ImageReference]:
        candidate = self.extractor.describe(url, css_path, report_missing=False)
        if candidate is None or not candidate.pack_requested:
            return None
        image = self.registry.get(candidate.path)
        # Conflicting references keep their original url
        if image is None or not image.is_packed or not image.same_directive(candidate):
            return None
        return image

    def _validate(
        self,
        declarations: Sequence[Declaration],
        targets: Sequence[_SpriteDeclaration],
        css_path: str,
        selectors: str,
    ) -> Optional[RuleValidationError]:
        url_count = 0
        for decl in declarations:
            if not BACKGROUND_PROPERTY.match(decl.name):
                continue
            url_count += len(CSS_URL_PATTERN.findall(decl.value))
            if _IMAGE_SET.search(decl.value):
                url_count = max(url_count, 2)
        if url_count > 1:
            return RuleValidationError(
                "multiple background image url or imageset sprite is not allowed "
                f"in file {css_path}: selector {selectors}",
                path=css_path,
                selectors=selectors,
            )

        for target in targets:
            prop = declarations[target.index].name
            if not BACKGROUND_PROPERTY.match(prop):
                return RuleValidationError(
                    f"the style property {prop} sprite in file {css_path} "
                    "is not allowed",
                    path=css_path,
                    selectors=selectors,
                )

        if _is_tiled(declarations):
            return RuleValidationError(
                f"background repeat value in selector {selectors} of file "
                f"{css_path} is not allowed in sprite",
                path=css_path,
                selectors=selectors,
            )
        return None


def _is_tiled(declarations: Sequence[Declaration]) -> bool:
    for decl in reversed(declarations):
        if decl.name.endswith("background-repeat") or _SHORTHAND_PROPERTY.match(
            decl.name
        ):
            return bool(_TILING_PATTERN.search(decl.value.strip()))
    return False
