"""Diagonal line fill patterns for categorical map layers."""

from __future__ import annotations

from dataclasses import dataclass, replace

from .util import format_number as _n


_ORIENTATIONS = frozenset(
    {"0/8", "vertical", "1/8", "2/8", "diagonal", "3/8", "4/8", "horizontal", "5/8", "6/8", "7/8"}
)


@dataclass(frozen=True, slots=True)
class LineTexture:
    """Repeating stripe tile: a background rect crossed by stroked lines."""

    size: float = 20.0
    stroke_width: float = 2.0
    stroke: str = "#343434"
    background: str | None = None
    orientation: str = "diagonal"
    shape_rendering: str = "auto"

    def __post_init__(self) -> None:
        if self.orientation not in _ORIENTATIONS:
            raise ValueError(f"Unknown texture orientation '{self.orientation}'")
        if self.size <= 0:
            raise ValueError("Texture size must be > 0")

    def thicker(self, factor: float = 2.0) -> LineTexture:
        return replace(self, stroke_width=self.stroke_width * factor)

    def path_data(self) -> str:
        s = self.size
        orientation = self.orientation
        if orientation in {"0/8", "vertical"}:
            return f"M {_n(s / 2)}, 0 l 0, {_n(s)}"
        if orientation == "1/8":
            return (
                f"M {_n(s / 4)},{_n(s)} l {_n(s / 2)},{_n(-s)} "
                f"M {_n(-s / 4)},{_n(s)} l {_n(s / 2)},{_n(-s)} "
                f"M {_n(s * 3 / 4)},{_n(s)} l {_n(s / 2)},{_n(-s)}"
            )
        if orientation in {"2/8", "diagonal"}:
            return (
                f"M 0,{_n(s)} l {_n(s)},{_n(-s)} "
                f"M {_n(-s / 4)},{_n(s / 4)} l {_n(s / 2)},{_n(-s / 2)} "
                f"M {_n(s * 3 / 4)},{_n(s * 5 / 4)} l {_n(s / 2)},{_n(-s / 2)}"
            )
        if orientation == "3/8":
            return (
                f"M 0,{_n(s * 3 / 4)} l {_n(s)},{_n(-s / 2)} "
                f"M 0,{_n(s / 4)} l {_n(s)},{_n(-s / 2)} "
                f"M 0,{_n(s * 5 / 4)} l {_n(s)},{_n(-s / 2)}"
            )
        if orientation in {"4/8", "horizontal"}:
            return f"M 0,{_n(s / 2)} l {_n(s)},0"
        if orientation == "5/8":
            return (
                f"M 0,{_n(-s / 4)} l {_n(s)},{_n(s / 2)} "
                f"M 0,{_n(s / 4)} l {_n(s)},{_n(s / 2)} "
                f"M 0,{_n(s * 3 / 4)} l {_n(s)},{_n(s / 2)}"
            )
        if orientation == "6/8":
            return (
                f"M 0,0 l {_n(s)},{_n(s)} "
                f"M {_n(-s / 4)},{_n(s * 3 / 4)} l {_n(s / 2)},{_n(s / 2)} "
                f"M {_n(s * 3 / 4)},{_n(-s / 4)} l {_n(s / 2)},{_n(s / 2)}"
            )
        # 7/8
        return (
            f"M {_n(-s / 4)},0 l {_n(s / 2)},{_n(s)} "
            f"M {_n(s / 4)},0 l {_n(s / 2)},{_n(s)} "
            f"M {_n(s * 3 / 4)},0 l {_n(s / 2)},{_n(s)}"
        )


COAL_STRIPES = LineTexture(
    size=7,
    stroke="rgba(196, 196, 196, 0.8)",
    background="rgba(22, 141, 217, 0.8)",
).thicker()

SOLAR_STRIPES = LineTexture(
    size=12,
    orientation="7/8",
    stroke="rgba(196, 196, 196, 0.8)",
    background="rgba(209, 144, 182, 0.8)",
).thicker()

DEFAULT_TEXTURES: dict[str, LineTexture] = {
    "coal": COAL_STRIPES,
    "solar": SOLAR_STRIPES,
}


def texture_id(layer: str) -> str:
    return f"texture-{layer}"
