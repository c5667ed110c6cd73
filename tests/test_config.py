"""Tests for config.py and map_overrides.py."""
from pathlib import Path

import pytest

from mapgraphic.config import load_config
from mapgraphic.map_overrides import MapTypeOverride, load_map_overrides, with_override
from mapgraphic.map_types import configure_usa, resolve_map_type
from mapgraphic.models import LabelNudges, SimpleLabel


class TestLoadConfig:
    def test_defaults(self, write_config, tmp_path):
        cfg = load_config(write_config())
        assert cfg.map.kind == "usa"
        assert cfg.map.default_width == 730
        assert cfg.map.mobile_breakpoint == 600
        assert cfg.map.resize_throttle_ms == 250
        assert cfg.page.container == "#graphic"
        assert cfg.page.footer == ".footer"
        assert cfg.fetch.request_timeout_s == 30.0
        assert cfg.paths.output_html == tmp_path.resolve() / "build" / "index.html"
        assert cfg.paths.output_svg is None
        assert cfg.simple_labels == ()

    def test_remote_geodata_is_kept_as_url(self, write_config):
        cfg = load_config(write_config(paths={"geodata": "https://example.org/us.json"}))
        assert cfg.paths.geodata == "https://example.org/us.json"

    def test_relative_geodata_resolves_against_config(self, write_config, tmp_path):
        cfg = load_config(write_config(paths={"geodata": "data/us.json"}))
        assert Path(cfg.paths.geodata) == tmp_path.resolve() / "data" / "us.json"

    def test_build_directories(self, write_config, tmp_path):
        cfg = load_config(write_config(paths={"output_svg": "out/map.svg"}))
        root = tmp_path.resolve()
        assert cfg.paths.build_directories == (root / "build" / "logs", root / "build", root / "out")

    def test_simple_labels(self, write_config):
        cfg = load_config(
            write_config(simple_labels=[{"lat": 40.0, "lng": -105.0, "label": "Front Range", "class": "region"}])
        )
        assert cfg.simple_labels == (SimpleLabel(lat=40.0, lng=-105.0, label="Front Range", class_name="region"),)

    @pytest.mark.parametrize(
        "sections,message",
        [
            ({"map": {"kind": "mars"}}, "map.kind must be one of"),
            ({"map": {"default_width": "wide"}}, "map.default_width"),
            ({"map": {"default_width": 0}}, "map.default_width must be >= 1"),
            ({"map": {"resize_throttle_ms": -1}}, "map.resize_throttle_ms"),
            ({"fetch": {"request_timeout_s": 0}}, "fetch.request_timeout_s"),
            ({"page": {"title": ""}}, "page.title"),
            ({"paths": {"output_html": None}}, "paths.output_html"),
            ({"simple_labels": [{"lat": 95, "lng": 0, "label": "x"}]}, "lat must be between"),
            ({"simple_labels": {"lat": 1}}, "simple_labels"),
        ],
    )
    def test_invalid_values(self, write_config, sections, message):
        with pytest.raises(ValueError, match=message):
            load_config(write_config(**sections))

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.yaml")

    def test_non_mapping(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ValueError, match="YAML mapping"):
            load_config(path)


class TestMapTypes:
    def test_resolve_is_case_insensitive(self):
        assert resolve_map_type(" USA ") is configure_usa

    def test_unknown_kind(self):
        with pytest.raises(ValueError, match="europe, usa, world"):
            resolve_map_type("mars")

    def test_usa_mobile_and_desktop(self):
        mobile = configure_usa(500)
        desktop = configure_usa(800)
        assert mobile.labels == ("states",)
        assert desktop.labels == ("states", "cities")
        assert mobile.scale_bar_distance == 100
        assert desktop.scale_bar_distance == 250
        assert mobile.dot_radius == 0.003
        assert desktop.dot_radius == 0.002
        assert mobile.substitution("states", "CO") is None
        assert desktop.substitution("states", "CO") == "Colo."

    def test_nudge_lookup(self):
        config = configure_usa(800)
        assert config.nudge("states", "FL") == (1.2, 0.0)
        assert config.nudge("states", "CO") is None
        assert config.nudge("cities", "Denver") == (0.25, 0.15)
        assert config.nudge("rivers", "x") is None

    def test_required_layers(self):
        assert configure_usa(800).required_layers == ("states", "coal", "solar", "cities")


class TestMapOverrides:
    def test_apply_scalars_and_centroid(self):
        override = MapTypeOverride.from_mapping({"scale_factor": 4, "centroid": [-107.5, 39]}, "usa")
        config = override.apply(configure_usa(800))
        assert config.scale_factor == 4.0
        assert config.centroid == (-107.5, 39.0)
        assert config.dot_radius == 0.002

    def test_null_scale_bar_disables_it(self):
        override = MapTypeOverride.from_mapping({"scale_bar_distance": None}, "usa")
        assert override.apply(configure_usa(800)).scale_bar_distance is None

    def test_scale_bar_distance(self):
        override = MapTypeOverride.from_mapping({"scale_bar_distance": 50}, "usa")
        assert override.apply(configure_usa(800)).scale_bar_distance == 50.0

    def test_merges_subs_and_nudges(self):
        override = MapTypeOverride.from_mapping(
            {
                "label_subs": {"states": {"CO": "Colorado"}},
                "label_nudges": {"states": {"CO": [0.5, 0.5]}, "cities": {"default": [0, 0]}},
            },
            "usa",
        )
        config = override.apply(configure_usa(800))
        assert config.substitution("states", "CO") == "Colorado"
        assert config.substitution("states", "WY") == "Wyo."
        assert config.nudge("states", "CO") == (0.5, 0.5)
        assert config.nudge("states", "FL") == (1.2, 0.0)
        assert config.nudge("cities", "Denver") == (0.0, 0.0)

    def test_does_not_mutate_base_tables(self):
        override = MapTypeOverride.from_mapping({"label_subs": {"states": {"CO": "Colorado"}}}, "usa")
        override.apply(configure_usa(800))
        assert configure_usa(800).substitution("states", "CO") == "Colo."

    @pytest.mark.parametrize(
        "data,message",
        [
            ({"zoom": 2}, "Unknown override fields"),
            ({"scale_factor": -1}, "positive number"),
            ({"graticules": "yes"}, "Expected bool"),
            ({"centroid": [1]}, "pair"),
            ({"label_nudges": {"states": {"CO": "up"}}}, "pair"),
        ],
    )
    def test_invalid(self, data, message):
        with pytest.raises(ValueError, match=message):
            MapTypeOverride.from_mapping(data, "usa")

    def test_load_file(self, tmp_path):
        path = tmp_path / "map_overrides.yaml"
        path.write_text("USA:\n  aspect_ratio: 2\n", encoding="utf-8")
        overrides = load_map_overrides(path)
        assert set(overrides) == {"usa"}
        factory = with_override(configure_usa, overrides["usa"])
        assert factory(800).aspect_ratio == 2.0

    def test_missing_file_is_empty(self, tmp_path):
        assert load_map_overrides(tmp_path / "none.yaml") == {}

    def test_unknown_kind_in_file(self, tmp_path):
        path = tmp_path / "map_overrides.yaml"
        path.write_text("mars:\n  aspect_ratio: 2\n", encoding="utf-8")
        with pytest.raises(ValueError, match="Unknown map kind"):
            load_map_overrides(path)

    def test_with_override_none_is_identity(self):
        assert with_override(configure_usa, None) is configure_usa

    def test_with_override_forwards_mobile_flag(self, tmp_path):
        path = tmp_path / "map_overrides.yaml"
        path.write_text("usa:\n  scale_factor: 2\n", encoding="utf-8")
        factory = with_override(configure_usa, load_map_overrides(path)["usa"])
        config = factory(800, True)
        assert config.labels == ("states",)
        assert config.scale_factor == 2.0
        assert factory(800).labels == ("states", "cities")


class TestLabelNudges:
    def test_default_key(self):
        nudges = LabelNudges.from_mapping({"default": [1, 2], "CO": [3, 4]}, "states")
        assert nudges.lookup("CO") == (3.0, 4.0)
        assert nudges.lookup("WY") == (1.0, 2.0)
        assert nudges.lookup(None) == (1.0, 2.0)

    def test_no_default(self):
        assert LabelNudges().lookup("CO") is None
