"""Built-in map kinds: width-dependent type configurations."""

from __future__ import annotations

from typing import Callable, Mapping

from .models import DEFAULT_MOBILE_BREAKPOINT, LabelNudges, TypeConfig
from .projection import ProjectionSpec


# Called as factory(width, is_mobile); is_mobile defaults to the 600px breakpoint.
TypeConfigFactory = Callable[[int, bool], TypeConfig]

ALBERS_USA = ProjectionSpec(
    name="albers-usa",
    proj4="+proj=aea +lat_1=29.5 +lat_2=45.5 +lat_0=37.5 +lon_0=-96",
)
LAMBERT_EUROPE = ProjectionSpec(
    name="lambert-europe",
    proj4="+proj=laea +lat_0=52 +lon_0=10",
)
ROBINSON = ProjectionSpec(name="robinson", proj4="+proj=robin +lon_0=0")

# AP style state abbreviations used as desktop label text.
AP_STATE_NAMES: Mapping[str, str] = {
    "AL": "Ala.", "AK": "Alaska", "AZ": "Ariz.", "AR": "Ark.", "CA": "Calif.",
    "CO": "Colo.", "CT": "Conn.", "DE": "Del.", "DC": "D.C.", "FL": "Fla.",
    "GA": "Ga.", "HI": "Hawaii", "ID": "Idaho", "IL": "Ill.", "IN": "Ind.",
    "IA": "Iowa", "KS": "Kan.", "KY": "Ky.", "LA": "La.", "ME": "Maine",
    "MD": "Md.", "MA": "Mass.", "MI": "Mich.", "MN": "Minn.", "MS": "Miss.",
    "MO": "Mo.", "MT": "Mont.", "NE": "Neb.", "NV": "Nev.", "NH": "N.H.",
    "NJ": "N.J.", "NM": "N.M.", "NY": "N.Y.", "NC": "N.C.", "ND": "N.D.",
    "OH": "Ohio", "OK": "Okla.", "OR": "Ore.", "PA": "Pa.", "RI": "R.I.",
    "SC": "S.C.", "SD": "S.D.", "TN": "Tenn.", "TX": "Texas", "UT": "Utah",
    "VT": "Vt.", "VA": "Va.", "WA": "Wash.", "WV": "W.Va.", "WI": "Wis.",
    "WY": "Wyo.",
}

_USA_STATE_NUDGES = LabelNudges(
    by_id={
        "FL": (1.2, 0.0),
        "LA": (-0.8, 0.0),
        "MI": (0.7, -0.9),
        "ID": (0.0, -0.8),
        "KY": (0.4, 0.1),
    },
)
_USA_CITY_NUDGES = LabelNudges(default=(0.25, 0.15))


def _is_mobile(width: int, is_mobile: bool | None) -> bool:
    if is_mobile is None:
        return width <= DEFAULT_MOBILE_BREAKPOINT
    return is_mobile


def configure_usa(width: int, is_mobile: bool | None = None) -> TypeConfig:
    is_mobile = _is_mobile(width, is_mobile)
    return TypeConfig(
        name="usa",
        projection=ALBERS_USA,
        scale_factor=1.25,
        centroid=(-96.0, 38.7),
        dot_radius=0.003 if is_mobile else 0.002,
        paths=("states", "coal", "solar"),
        labels=("states",) if is_mobile else ("states", "cities"),
        label_nudges={"states": _USA_STATE_NUDGES, "cities": _USA_CITY_NUDGES},
        # Mobile keeps postal codes; there is no room for AP names.
        label_subs={} if is_mobile else {"states": AP_STATE_NAMES},
        scale_bar_distance=100 if is_mobile else 250,
        aspect_ratio=1.2 if is_mobile else 1.6,
    )


def configure_europe(width: int, is_mobile: bool | None = None) -> TypeConfig:
    is_mobile = _is_mobile(width, is_mobile)
    return TypeConfig(
        name="europe",
        projection=LAMBERT_EUROPE,
        scale_factor=1.5 if is_mobile else 1.3,
        centroid=(12.0, 52.0),
        dot_radius=0.004,
        paths=("countries",),
        labels=() if is_mobile else ("countries",),
        outline_layer="countries",
        scale_bar_distance=250,
        aspect_ratio=1.0 if is_mobile else 1.3,
        graticules=True,
    )


def configure_world(width: int, is_mobile: bool | None = None) -> TypeConfig:
    is_mobile = _is_mobile(width, is_mobile)
    return TypeConfig(
        name="world",
        projection=ROBINSON,
        scale_factor=0.17,
        centroid=(0.0, 0.0),
        dot_radius=0.004,
        paths=("countries",),
        outline_layer="countries",
        aspect_ratio=1.6 if is_mobile else 2.0,
        graticules=True,
    )


MAP_TYPES: Mapping[str, TypeConfigFactory] = {
    "usa": configure_usa,
    "europe": configure_europe,
    "world": configure_world,
}


def resolve_map_type(kind: str) -> TypeConfigFactory:
    """Look up a map kind once at startup."""
    key = kind.strip().casefold()
    factory = MAP_TYPES.get(key)
    if factory is None:
        raise ValueError(
            f"Unknown map kind '{kind}'. Expected one of: " + ", ".join(sorted(MAP_TYPES))
        )
    return factory
