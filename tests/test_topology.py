"""Tests for topology.py: fetching and TopoJSON decoding."""
import json

import pytest

from mapgraphic.topology import TopologyError, decode_topology, fetch_document, is_remote, load_geodata


class TestDecodeQuantized:
    def test_groups_are_named_after_objects(self, quantized_topology):
        data = decode_topology(quantized_topology)
        assert set(data) == {"shapes", "single"}

    def test_delta_arcs_are_accumulated_and_transformed(self, quantized_topology):
        data = decode_topology(quantized_topology)
        line = data["shapes"].features[0]
        assert list(line.geometry.coords) == [(10.0, 20.0), (11.0, 20.0), (11.0, 21.0), (12.0, 21.0)]

    def test_reversed_arc_index(self, quantized_topology):
        data = decode_topology(quantized_topology)
        reversed_line = data["shapes"].features[1]
        assert list(reversed_line.geometry.coords) == [(12.0, 21.0), (11.0, 21.0)]

    def test_points_are_transformed_without_deltas(self, quantized_topology):
        data = decode_topology(quantized_topology)
        point = data["shapes"].features[2]
        assert point.geometry_type == "Point"
        assert point.geometry.coords[0] == (12.0, 21.0)

    def test_null_geometry_keeps_feature(self, quantized_topology):
        data = decode_topology(quantized_topology)
        empty = data["shapes"].features[3]
        assert empty.id == "empty"
        assert empty.geometry is None
        assert empty.geometry_type is None

    def test_ids_and_properties(self, quantized_topology):
        data = decode_topology(quantized_topology)
        first = data["shapes"].features[0]
        assert first.id == "a"
        assert first.properties == {"kind": "road"}
        assert data["shapes"].features[1].properties == {}
        assert data["shapes"].ids == frozenset({"a", "b", "p", "empty"})

    def test_properties_are_read_only(self, quantized_topology):
        first = decode_topology(quantized_topology)["shapes"].features[0]
        with pytest.raises(TypeError):
            first.properties["kind"] = "rail"  # type: ignore[index]
        assert first.properties["kind"] == "road"

    def test_single_object_becomes_one_feature_collection(self, quantized_topology):
        data = decode_topology(quantized_topology)
        assert len(data["single"]) == 1
        assert data["single"].features[0].geometry.coords[0] == (10.0, 20.0)

    def test_result_is_read_only(self, quantized_topology):
        data = decode_topology(quantized_topology)
        with pytest.raises(TypeError):
            data["extra"] = data["single"]  # type: ignore[index]


class TestDecodePolygons:
    def test_ring_from_closed_arc(self):
        doc = {
            "type": "Topology",
            "objects": {"box": {"type": "Polygon", "arcs": [[0]], "id": "B"}},
            "arcs": [[[0, 0], [2, 0], [2, 2], [0, 2], [0, 0]]],
        }
        feature = decode_topology(doc)["box"].features[0]
        assert feature.geometry_type == "Polygon"
        assert feature.geometry.area == pytest.approx(4.0)

    def test_multipolygon(self):
        doc = {
            "type": "Topology",
            "objects": {"two": {"type": "MultiPolygon", "arcs": [[[0]], [[1]]]}},
            "arcs": [
                [[0, 0], [1, 0], [1, 1], [0, 0]],
                [[5, 5], [6, 5], [6, 6], [5, 5]],
            ],
        }
        feature = decode_topology(doc)["two"].features[0]
        assert feature.geometry_type == "MultiPolygon"
        assert len(feature.geometry.geoms) == 2
        assert feature.id is None

    def test_sample_document_layers(self, geodata):
        assert set(geodata) == {"states", "coal", "solar", "cities"}
        assert geodata["states"].ids == frozenset({"CO", "WY", "UT", "NM"})
        assert len(geodata["coal"]) == 2
        assert all(f.geometry_type == "Point" for f in geodata["cities"])


class TestDecodeErrors:
    def test_missing_objects(self):
        with pytest.raises(TopologyError, match="objects"):
            decode_topology({"type": "Topology", "arcs": []})

    def test_missing_arcs(self):
        with pytest.raises(TopologyError, match="arcs"):
            decode_topology({"type": "Topology", "objects": {}})

    def test_arc_index_out_of_range(self):
        doc = {
            "type": "Topology",
            "objects": {"line": {"type": "LineString", "arcs": [3]}},
            "arcs": [[[0, 0], [1, 1]]],
        }
        with pytest.raises(TopologyError, match="out of range"):
            decode_topology(doc)

    def test_unknown_geometry_type(self):
        doc = {"type": "Topology", "objects": {"x": {"type": "Circle"}}, "arcs": []}
        with pytest.raises(TopologyError, match="Circle"):
            decode_topology(doc)

    def test_bad_transform(self):
        doc = {"type": "Topology", "transform": {"scale": [1, 1]}, "objects": {}, "arcs": []}
        with pytest.raises(TopologyError, match="transform"):
            decode_topology(doc)

    def test_topology_error_is_value_error(self):
        assert issubclass(TopologyError, ValueError)


class TestFetch:
    def test_is_remote(self):
        assert is_remote("https://example.org/us.json")
        assert is_remote("http://example.org/us.json")
        assert not is_remote("data/us.json")

    def test_missing_file(self, tmp_path):
        with pytest.raises(TopologyError, match="not found"):
            fetch_document(tmp_path / "nope.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(TopologyError, match="not valid JSON"):
            fetch_document(path)

    def test_non_object_document(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[]", encoding="utf-8")
        with pytest.raises(TopologyError, match="JSON object"):
            fetch_document(path)

    def test_load_geodata_from_file(self, tmp_path, quantized_topology):
        path = tmp_path / "topo.json"
        path.write_text(json.dumps(quantized_topology), encoding="utf-8")
        data = load_geodata(path)
        assert len(data["shapes"]) == 4
