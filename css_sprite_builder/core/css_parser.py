"""Thin wrapper over cssutils exposing only what the rewriter touches."""

from __future__ import annotations

import logging
import xml.dom
from typing import Any, Iterable, List, NamedTuple, Protocol, Sequence

import cssutils

from .errors import StylesheetParseError

__all__ = [
    "Declaration",
    "StylesheetParser",
    "CssutilsParser",
]


class Declaration(NamedTuple):
    name: str
    value: str
    important: bool = False

    @property
    def css_text(self) -> str:
        suffix = " !important" if self.important else ""
        return f"{self.name}: {self.value}{suffix}"


class StylesheetParser(Protocol):
    def parse(self, text: str, path: str = "") -> Any: ...

    def serialize(self, sheet: Any) -> str: ...

    def rules(self, sheet: Any) -> Iterable[Any]: ...

    def children(self, rule: Any) -> Iterable[Any]: ...

    def is_style_rule(self, rule: Any) -> bool: ...

    def selectors(self, rule: Any) -> List[str]: ...

    def declarations(self, rule: Any) -> List[Declaration]: ...

    def set_declarations(self, rule: Any, declarations: Sequence[Declaration]) -> None: ...


class CssutilsParser:
    def __init__(self) -> None:
        cssutils.log.setLevel(logging.CRITICAL)
        cssutils.ser.prefs.omitLastSemicolon = False
        cssutils.ser.prefs.indentClosingBrace = False
        self._parser = cssutils.CSSParser(
            raiseExceptions=True, validate=False, loglevel=logging.CRITICAL
        )

    def parse(self, text: str, path: str = "") -> cssutils.css.CSSStyleSheet:
        try:
            return self._parser.parseString(text)
        except (xml.dom.DOMException, ValueError) as exc:
            raise StylesheetParseError(
                f"error parse style {path}: {exc}", path=path
            ) from exc

    def serialize(self, sheet: cssutils.css.CSSStyleSheet) -> str:
        text = sheet.cssText
        if isinstance(text, bytes):
            text = text.decode("utf-8")
        return text + "\n" if text and not text.endswith("\n") else text

    def rules(self, sheet: cssutils.css.CSSStyleSheet) -> Iterable[Any]:
        return list(sheet.cssRules)

    def children(self, rule: Any) -> Iterable[Any]:
        return list(getattr(rule, "cssRules", None) or ())

    def is_style_rule(self, rule: Any) -> bool:
        return rule.type == cssutils.css.CSSRule.STYLE_RULE

    def selectors(self, rule: Any) -> List[str]:
        return [selector.selectorText for selector in rule.selectorList]

    def declarations(self, rule: Any) -> List[Declaration]:
        return [
            Declaration(prop.name, prop.value, bool(prop.priority))
            for prop in rule.style.getProperties(all=True)
        ]

    def set_declarations(self, rule: Any, declarations: Sequence[Declaration]) -> None:
        rule.style.cssText = "; ".join(decl.css_text for decl in declarations)
