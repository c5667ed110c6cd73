"""Graphic lifecycle: load once, render, re-render on resize."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Sequence

from .config import AppConfig
from .map_overrides import load_map_overrides, with_override
from .map_types import TypeConfigFactory, resolve_map_type
from .models import DEFAULT_MOBILE_BREAKPOINT, GeoData, InstanceConfig, RenderSnapshot, SimpleLabel
from .page import HostPage, default_page_html
from .render import MapRenderer, RenderResult
from .resize import DEFAULT_THROTTLE_S, ResizeCoordinator
from .topology import load_geodata
from .util import write_bytes, write_text


_LOGGER = logging.getLogger("mapgraphic.graphic")


@dataclass(slots=True)
class GraphicOutputs:
    html: Path | None = None
    svg: Path | None = None
    png: Path | None = None
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class Graphic:
    """One map graphic bound to a host page."""

    def __init__(
        self,
        *,
        type_factory: TypeConfigFactory,
        page: HostPage,
        container: str = "#graphic",
        footer: str = ".footer",
        default_width: int = 730,
        mobile_breakpoint: int = DEFAULT_MOBILE_BREAKPOINT,
        simple_labels: Sequence[SimpleLabel] = (),
        throttle_s: float = DEFAULT_THROTTLE_S,
    ) -> None:
        self.type_factory = type_factory
        self.page = page
        self.container = container
        self.default_width = default_width
        self.mobile_breakpoint = mobile_breakpoint
        self.simple_labels = tuple(simple_labels)
        self.throttle_s = throttle_s
        self.renderer = MapRenderer(footer_selector=footer)
        self.data: GeoData | None = None
        self.last_snapshot: RenderSnapshot | None = None
        self.render_count = 0

    @classmethod
    def from_config(cls, cfg: AppConfig) -> Graphic:
        factory = resolve_map_type(cfg.map.kind)
        if cfg.paths.map_overrides is not None:
            overrides = load_map_overrides(cfg.paths.map_overrides)
            factory = with_override(factory, overrides.get(cfg.map.kind))

        if cfg.paths.page_template is not None:
            page = HostPage.from_file(cfg.paths.page_template)
        else:
            stylesheet = cfg.paths.stylesheet
            page = HostPage(
                default_page_html(
                    title=cfg.page.title,
                    content_selector=cfg.page.content,
                    container_selector=cfg.page.container,
                    stylesheet=_relative_href(stylesheet, cfg.paths.output_html) if stylesheet else None,
                    credit=cfg.page.credit,
                )
            )
        return cls(
            type_factory=factory,
            page=page,
            container=cfg.page.container,
            footer=cfg.page.footer,
            default_width=cfg.map.default_width,
            mobile_breakpoint=cfg.map.mobile_breakpoint,
            simple_labels=cfg.simple_labels,
            throttle_s=cfg.map.resize_throttle_ms / 1000.0,
        )

    def init(
        self,
        source: str | Path,
        *,
        timeout_s: float = 30.0,
        user_agent: str = "mapgraphic",
        width: int | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> ResizeCoordinator:
        """Load the geography document, draw the first frame and hand back the resize handler.

        A failed fetch or decode raises before anything is drawn.
        """
        self.data = load_geodata(source, timeout_s=timeout_s, user_agent=user_agent)
        self.render(width)
        return ResizeCoordinator(self, interval_s=self.throttle_s, loop=loop)

    def snapshot(self, width: int | None) -> RenderSnapshot:
        effective = int(width) if width else self.default_width
        is_mobile = effective <= self.mobile_breakpoint
        return RenderSnapshot(
            width=effective,
            is_mobile=is_mobile,
            type_config=self.type_factory(effective, is_mobile),
        )

    def render(self, width: int | None = None) -> RenderResult:
        if self.data is None:
            raise RuntimeError("Graphic.init() must load geography data before rendering")
        snapshot = self.snapshot(width)
        result = self.renderer.render(
            snapshot.type_config,
            InstanceConfig(
                container=self.container,
                width=snapshot.width,
                data=self.data,
                simple_labels=self.simple_labels,
            ),
            self.page,
        )
        self.last_snapshot = snapshot
        self.render_count += 1
        _LOGGER.info(
            "Rendered %s map at %dx%d (%s): %d paths, %d labels",
            snapshot.type_config.name,
            result.width,
            result.height,
            "mobile" if snapshot.is_mobile else "desktop",
            result.path_count,
            result.label_count,
        )
        return result

    def resize(self, width: int | None) -> RenderResult:
        return self.render(width)

    def write_outputs(
        self,
        *,
        html: Path | None,
        svg: Path | None = None,
        png: Path | None = None,
        css: str | None = None,
    ) -> GraphicOutputs:
        outputs = GraphicOutputs()
        if html is not None:
            outputs.html = write_text(html, self.page.to_html())
        if svg is None and png is None:
            return outputs

        svg_text = self.page.svg_document(self.container, css=css)
        if svg is not None:
            outputs.svg = write_text(svg, svg_text)
        if png is not None:
            try:
                outputs.png = write_bytes(png, _rasterize_svg(svg_text))
            except RuntimeError as exc:
                outputs.errors.append(str(exc))
        return outputs


def _relative_href(target: Path, page_path: Path) -> str:
    try:
        return target.resolve().relative_to(page_path.parent.resolve()).as_posix()
    except ValueError:
        return target.resolve().as_uri()


def _rasterize_svg(svg_text: str) -> bytes:
    cairosvg = _require_cairosvg()
    try:
        return bytes(cairosvg.svg2png(bytestring=svg_text.encode("utf-8")))
    except Exception as exc:
        raise RuntimeError(f"SVG to PNG conversion failed: {exc}") from exc


def _require_cairosvg() -> Any:
    try:
        import cairosvg  # type: ignore[import-untyped]
    except (ImportError, OSError) as exc:
        raise RuntimeError("cairosvg is required for PNG export") from exc
    return cairosvg
