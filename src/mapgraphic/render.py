"""Map render pipeline: projection, textured paths, labels and scale bar."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Mapping, Sequence

from bs4.element import Tag

from .classify import classify_feature
from .geomath import calculate_scale_bar_end_point, scale_bar_label
from .models import Feature, InstanceConfig, SimpleLabel, TypeConfig
from .page import HostPage, set_inline_style
from .paths import PathGenerator, format_coord, format_point, graticule_lines
from .projection import Projection
from .textures import LineTexture, texture_id


_LOGGER = logging.getLogger("mapgraphic.render")

SCALE_BAR_OFFSET = (10.0, 35.0)
SCALE_BAR_LABEL_GAP = 5.0
FOOTER_OFFSET_PX = 10
DEFAULT_FOOTER_SELECTOR = ".footer"


@dataclass(frozen=True, slots=True)
class RenderResult:
    width: int
    height: int
    path_count: int
    label_count: int
    scale_bar: tuple[tuple[float, float], tuple[float, float]] | None


@dataclass(frozen=True, slots=True)
class _Canvas:
    """Per-pass drawing state; built fresh on every render."""

    page: HostPage
    chart: Tag
    projection: Projection
    path: PathGenerator
    width: int
    height: int


def map_height(width: int, aspect_ratio: float) -> int:
    return int(math.ceil(width / aspect_ratio))


def label_anchor(feature: Feature) -> list[float]:
    """Geographic anchor for a feature label.

    Points use a copy of their own coordinates. Everything else uses the
    planar centroid in lon/lat space, independent of the active projection.
    """
    geometry = feature.geometry
    if geometry is None:
        raise ValueError(f"Feature '{feature.id}' has no geometry to label")
    if geometry.geom_type == "Point":
        return list(geometry.coords[0][:2])
    centroid = geometry.centroid
    return [float(centroid.x), float(centroid.y)]


def label_text(type_config: TypeConfig, layer: str, feature: Feature) -> str:
    sub = type_config.substitution(layer, feature.id)
    if sub is not None:
        return sub
    return feature.id or ""


class MapRenderer:
    """Clears the container and rebuilds the whole map in one synchronous pass."""

    def __init__(self, *, footer_selector: str = DEFAULT_FOOTER_SELECTOR) -> None:
        self.footer_selector = footer_selector

    def render(self, type_config: TypeConfig, instance: InstanceConfig, page: HostPage) -> RenderResult:
        width = int(instance.width)
        height = map_height(width, type_config.aspect_ratio)

        container = page.clear(instance.container)

        scale = width * type_config.scale_factor
        projection = type_config.projection.build(
            scale=scale,
            translate=(width / 2, height / 2),
            center=type_config.centroid,
        )
        path = PathGenerator(projection, point_radius=type_config.dot_radius * scale)

        wrapper = page.append(container, "div", {"class": "graphic-wrapper"})
        chart = page.append(wrapper, "svg", {"width": width, "height": height})
        canvas = _Canvas(
            page=page,
            chart=chart,
            projection=projection,
            path=path,
            width=width,
            height=height,
        )

        self._register_textures(canvas, type_config.textures)
        if type_config.graticules:
            self._draw_graticules(canvas)

        paths_group = page.append(chart, "g", {"class": "paths"})
        path_count = 0
        for layer in type_config.paths:
            path_count += self._draw_path_layer(canvas, paths_group, layer, instance.data[layer].features)
        path_count += self._draw_path_layer(
            canvas,
            paths_group,
            "outlines",
            instance.data[type_config.outline_layer].features,
        )
        self._apply_textures(canvas, type_config.textures)

        labels_group = page.append(chart, "g", {"class": "labels"})
        label_count = 0
        for layer in type_config.labels:
            label_count += self._draw_label_layer(
                canvas, labels_group, type_config, layer, instance.data[layer].features
            )
        label_count += self._draw_simple_labels(canvas, labels_group, instance.simple_labels)

        scale_bar = None
        if type_config.scale_bar_distance:
            scale_bar = self._draw_scale_bar(canvas, type_config.scale_bar_distance)

        page.set_style(self.footer_selector, "top", f"{height - FOOTER_OFFSET_PX}px")

        _LOGGER.debug(
            "Rendered '%s' at %dx%d: %d paths, %d labels",
            type_config.name,
            width,
            height,
            path_count,
            label_count,
        )
        return RenderResult(
            width=width,
            height=height,
            path_count=path_count,
            label_count=label_count,
            scale_bar=scale_bar,
        )

    def _register_textures(self, canvas: _Canvas, textures: Mapping[str, LineTexture]) -> None:
        defs = canvas.page.append(canvas.chart, "defs")
        for layer, texture in textures.items():
            size = texture.size
            pattern = canvas.page.append(
                defs,
                "pattern",
                {
                    "id": texture_id(layer),
                    "patternUnits": "userSpaceOnUse",
                    "width": size,
                    "height": size,
                },
            )
            if texture.background:
                canvas.page.append(
                    pattern,
                    "rect",
                    {"width": size, "height": size, "fill": texture.background},
                )
            canvas.page.append(
                pattern,
                "path",
                {
                    "d": texture.path_data(),
                    "stroke-width": texture.stroke_width,
                    "shape-rendering": texture.shape_rendering,
                    "stroke": texture.stroke,
                    "stroke-linecap": "square",
                },
            )

    def _draw_graticules(self, canvas: _Canvas) -> None:
        group = canvas.page.append(canvas.chart, "g", {"class": "graticules"})
        canvas.page.append(group, "path", {"d": canvas.path(graticule_lines())})

    def _draw_path_layer(
        self,
        canvas: _Canvas,
        parent: Tag,
        group_class: str,
        features: Sequence[Feature],
    ) -> int:
        group = canvas.page.append(parent, "g", {"class": group_class})
        for feature in features:
            canvas.page.append(
                group,
                "path",
                {"d": canvas.path(feature.geometry), "class": classify_feature(feature)},
            )
        _LOGGER.debug("Layer '%s': %d paths", group_class, len(features))
        return len(features)

    def _apply_textures(self, canvas: _Canvas, textures: Mapping[str, LineTexture]) -> None:
        for layer in textures:
            fill = f"url(#{texture_id(layer)})"
            for element in canvas.chart.select(f".{layer} path"):
                set_inline_style(element, "fill", fill)

    def _draw_label_layer(
        self,
        canvas: _Canvas,
        parent: Tag,
        type_config: TypeConfig,
        layer: str,
        features: Sequence[Feature],
    ) -> int:
        group = canvas.page.append(parent, "g", {"class": layer})
        drawn = 0
        for feature in features:
            point = label_anchor(feature)
            nudge = type_config.nudge(layer, feature.id)
            if nudge is not None:
                point[0] += nudge[0]
                point[1] += nudge[1]
            projected = canvas.projection(point)
            if projected is None:
                _LOGGER.debug("Label '%s' in '%s' falls outside the projection", feature.id, layer)
                continue
            canvas.page.append(
                group,
                "text",
                {"class": classify_feature(feature), "transform": f"translate({format_point(projected)})"},
                text=label_text(type_config, layer, feature),
            )
            drawn += 1
        return drawn

    def _draw_simple_labels(self, canvas: _Canvas, parent: Tag, labels: Sequence[SimpleLabel]) -> int:
        group = canvas.page.append(parent, "g", {"class": "simple"})
        drawn = 0
        for label in labels:
            projected = canvas.projection((label.lng, label.lat))
            if projected is None:
                continue
            canvas.page.append(
                group,
                "text",
                {"class": label.class_name, "transform": f"translate({format_point(projected)})"},
                text=label.label,
            )
            drawn += 1
        return drawn

    def _draw_scale_bar(
        self,
        canvas: _Canvas,
        distance: float,
    ) -> tuple[tuple[float, float], tuple[float, float]]:
        start = (SCALE_BAR_OFFSET[0], canvas.height - SCALE_BAR_OFFSET[1])
        end = calculate_scale_bar_end_point(canvas.projection, start, distance)

        group = canvas.page.append(canvas.chart, "g", {"class": "scale-bar"})
        canvas.page.append(
            group,
            "line",
            {
                "x1": format_coord(start[0]),
                "y1": format_coord(start[1]),
                "x2": format_coord(end[0]),
                "y2": format_coord(end[1]),
            },
        )
        canvas.page.append(
            group,
            "text",
            {"x": format_coord(end[0] + SCALE_BAR_LABEL_GAP), "y": format_coord(end[1])},
            text=scale_bar_label(distance),
        )
        return (start, end)
