"""Shared test fixtures for mapgraphic tests."""
from pathlib import Path

import pytest

from mapgraphic.graphic import Graphic
from mapgraphic.map_types import configure_usa
from mapgraphic.models import SimpleLabel
from mapgraphic.page import HostPage, default_page_html
from mapgraphic.topology import load_geodata

REPO_ROOT = Path(__file__).resolve().parents[1]
SAMPLE_GEODATA = REPO_ROOT / "data" / "geodata.json"
SAMPLE_CSS = REPO_ROOT / "data" / "graphic.css"


@pytest.fixture(scope="session")
def sample_geodata_path():
    return SAMPLE_GEODATA


@pytest.fixture(scope="session")
def geodata():
    """Decoded sample document: states, coal, solar, cities."""
    return load_geodata(SAMPLE_GEODATA)


@pytest.fixture
def page():
    return HostPage(default_page_html(title="Test map", credit="Source: test"))


@pytest.fixture
def simple_labels():
    return (SimpleLabel(lat=38.9, lng=-106.9, label="Rocky Mountains", class_name="region"),)


@pytest.fixture
def graphic(page, simple_labels):
    """Initialized usa graphic drawn once at the default width."""
    g = Graphic(type_factory=configure_usa, page=page, simple_labels=simple_labels)
    g.init(SAMPLE_GEODATA)
    return g


@pytest.fixture
def quantized_topology():
    """Two-arc topology with a transform and delta-encoded arcs."""
    return {
        "type": "Topology",
        "transform": {"scale": [0.5, 0.25], "translate": [10.0, 20.0]},
        "objects": {
            "shapes": {
                "type": "GeometryCollection",
                "geometries": [
                    {"type": "LineString", "arcs": [0, 1], "id": "a", "properties": {"kind": "road"}},
                    {"type": "LineString", "arcs": [~1], "id": "b"},
                    {"type": "Point", "coordinates": [4, 4], "id": "p"},
                    {"type": None, "id": "empty"},
                ],
            },
            "single": {"type": "Point", "coordinates": [0, 0], "id": "solo"},
        },
        "arcs": [
            [[0, 0], [2, 0], [0, 4]],
            [[2, 4], [2, 0]],
        ],
    }


@pytest.fixture
def write_config(tmp_path, sample_geodata_path):
    """Write a config.yaml under tmp_path; extra sections override the defaults."""
    import yaml

    def _write(**sections):
        raw = {
            "paths": {
                "geodata": str(sample_geodata_path),
                "stylesheet": str(SAMPLE_CSS),
                "output_html": "build/index.html",
                "logs_dir": "build/logs",
            },
            "map": {"kind": "usa"},
            "page": {"title": "Test map"},
        }
        for key, value in sections.items():
            if isinstance(value, dict) and isinstance(raw.get(key), dict):
                raw[key] = {**raw[key], **value}
            else:
                raw[key] = value
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump(raw), encoding="utf-8")
        return path

    return _write
