"""Host HTML page that the renderer draws into."""

from __future__ import annotations

import copy
from html import escape
from pathlib import Path
from typing import Any, Mapping

from bs4 import BeautifulSoup
from bs4.element import Tag

from .util import format_number


SVG_NAMESPACE = "http://www.w3.org/2000/svg"


def default_page_html(
    *,
    title: str,
    content_selector: str = "#interactive-content",
    container_selector: str = "#graphic",
    stylesheet: str | None = None,
    credit: str = "",
) -> str:
    """Minimal page with a content wrapper, the map container and a footer."""
    content_id = _id_from_selector(content_selector)
    container_id = _id_from_selector(container_selector)
    head_link = (
        [f"  <link rel='stylesheet' href='{escape(stylesheet)}'>"] if stylesheet else []
    )
    return "\n".join(
        [
            "<!doctype html>",
            "<html lang='en'>",
            "<head>",
            "  <meta charset='utf-8'>",
            "  <meta name='viewport' content='width=device-width, initial-scale=1'>",
            f"  <title>{escape(title)}</title>",
            *head_link,
            "</head>",
            "<body>",
            f"  <div id='{escape(content_id)}'>",
            f"    <div id='{escape(container_id)}'></div>",
            "    <div class='footer' style='position: relative;'>",
            f"      <p>{escape(credit)}</p>",
            "    </div>",
            "  </div>",
            "</body>",
            "</html>",
            "",
        ]
    )


def _id_from_selector(selector: str) -> str:
    if not selector.startswith("#") or len(selector) < 2:
        raise ValueError(f"Default page template needs an '#id' selector, got '{selector}'")
    return selector[1:]


class HostPage:
    """Parsed HTML document with the selector helpers rendering needs."""

    def __init__(self, html: str) -> None:
        self.soup = BeautifulSoup(html, "html.parser")

    @classmethod
    def from_file(cls, path: Path) -> HostPage:
        if not path.exists():
            raise FileNotFoundError(f"Page template not found: {path}")
        return cls(path.read_text(encoding="utf-8"))

    def select_one(self, selector: str) -> Tag:
        element = self.soup.select_one(selector)
        if element is None:
            raise LookupError(f"No element matches selector '{selector}'")
        return element

    def select(self, selector: str) -> list[Tag]:
        return list(self.soup.select(selector))

    def clear(self, selector: str) -> Tag:
        """Drop all children of the matched element, keeping its attributes."""
        element = self.select_one(selector)
        element.clear()
        return element

    def new_tag(self, name: str, attrs: Mapping[str, Any] | None = None, text: str | None = None) -> Tag:
        tag = self.soup.new_tag(name, attrs={k: _attr_value(v) for k, v in (attrs or {}).items()})
        if text is not None:
            tag.string = text
        return tag

    def append(self, parent: Tag, name: str, attrs: Mapping[str, Any] | None = None, text: str | None = None) -> Tag:
        tag = self.new_tag(name, attrs, text)
        parent.append(tag)
        return tag

    def set_style(self, selector: str, prop: str, value: str) -> int:
        """Set one inline style property on every match; returns the match count."""
        elements = self.select(selector)
        for element in elements:
            set_inline_style(element, prop, value)
        return len(elements)

    def to_html(self) -> str:
        return str(self.soup)

    def svg_document(self, container_selector: str, *, css: str | None = None) -> str:
        """Standalone SVG file for the chart rendered into `container_selector`."""
        root = copy.copy(self.select_one(f"{container_selector} svg"))
        root["xmlns"] = SVG_NAMESPACE
        if css:
            root.insert(0, self.new_tag("style", text=css))
        return '<?xml version="1.0" encoding="utf-8"?>\n' + str(root) + "\n"


def _attr_value(value: Any) -> str:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return format_number(value)
    return str(value)


def parse_inline_style(raw: str) -> dict[str, str]:
    declarations: dict[str, str] = {}
    for chunk in raw.split(";"):
        if ":" not in chunk:
            continue
        prop, value = chunk.split(":", 1)
        prop = prop.strip().lower()
        if prop:
            declarations[prop] = value.strip()
    return declarations


def set_inline_style(element: Tag, prop: str, value: str) -> None:
    existing = element.get("style")
    declarations = parse_inline_style(existing if isinstance(existing, str) else "")
    declarations[prop.strip().lower()] = value
    element["style"] = "; ".join(f"{k}: {v}" for k, v in declarations.items()) + ";"
