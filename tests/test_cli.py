"""Tests for the mapgraphic CLI."""
import pytest

from mapgraphic.cli import _resize_event, main


class TestRender:
    def test_writes_page(self, write_config, tmp_path):
        assert main(["render", "--config", str(write_config())]) == 0
        html = (tmp_path / "build" / "index.html").read_text(encoding="utf-8")
        assert "<svg" in html
        assert "graphic-wrapper" in html
        assert (tmp_path / "build" / "logs" / "mapgraphic.log").exists()

    def test_multiple_widths_get_suffixes(self, write_config, tmp_path):
        assert main(["render", "--config", str(write_config()), "--width", "500", "--width", "800"]) == 0
        mobile = (tmp_path / "build" / "index-500.html").read_text(encoding="utf-8")
        desktop = (tmp_path / "build" / "index-800.html").read_text(encoding="utf-8")
        assert 'width="500"' in mobile
        assert 'width="800"' in desktop
        assert not (tmp_path / "build" / "index.html").exists()

    def test_svg_output_inlines_stylesheet(self, write_config, tmp_path):
        svg_path = tmp_path / "out" / "map.svg"
        assert main(["render", "--config", str(write_config()), "--svg", str(svg_path)]) == 0
        svg = svg_path.read_text(encoding="utf-8")
        assert 'xmlns="http://www.w3.org/2000/svg"' in svg
        assert ".scale-bar line" in svg

    def test_missing_geodata_exits_1(self, write_config, tmp_path):
        cfg = write_config(paths={"geodata": str(tmp_path / "none.json")})
        assert main(["render", "--config", str(cfg)]) == 1
        assert not (tmp_path / "build" / "index.html").exists()

    def test_bad_config_exits_1(self, write_config):
        assert main(["render", "--config", str(write_config(map={"kind": "mars"}))]) == 1


class TestValidate:
    def test_ok(self, write_config):
        assert main(["validate", "--config", str(write_config())]) == 0

    def test_strict(self, write_config):
        assert main(["validate", "--config", str(write_config()), "--strict"]) == 1


class TestReplayResize:
    def test_final_page_uses_last_width(self, write_config, tmp_path):
        cfg = write_config(map={"resize_throttle_ms": 20})
        assert main(["replay-resize", "--config", str(cfg), "--event", "0:500", "--event", "5:800"]) == 0
        html = (tmp_path / "build" / "index.html").read_text(encoding="utf-8")
        assert 'width="800"' in html

    def test_needs_events(self, write_config):
        assert main(["replay-resize", "--config", str(write_config())]) == 2

    def test_event_parsing(self):
        assert _resize_event("250:640") == (250, 640)

    @pytest.mark.parametrize("raw", ["640", "a:b", "-1:500"])
    def test_bad_event(self, raw):
        with pytest.raises(Exception, match="MS:WIDTH|>= 0"):
            _resize_event(raw)
