"""Tests for the document models and persistence."""

import json
import os

import pytest


class TestModels:
    """Tests for the pydantic document models."""

    def test_allocate_ids_never_reused(self, document):
        a = document.add_line("square", (0, 0), (0.1, 0.1))
        b = document.add_circle("square", (0, 0), 0.2)
        document.design_for("square").ink.remove(a)
        c = document.add_arc("square", (0, 0), 0.3, 0.0, 1.0)

        assert [a.id, b.id, c.id] == [1, 2, 3]

    def test_ids_unique_across_designs(self):
        from tilefill.models import TileDocument

        doc = TileDocument(tiling_id="tiling-33-434", tile_shape="square")
        doc.add_line("square", (0, 0), (0.1, 0))
        doc.add_line("triangle", (0, 0), (0.1, 0))

        assert doc.all_ink_ids() == {1, 2}
        assert doc.shapes == ("square", "triangle")

    def test_non_positive_radius_rejected(self):
        from pydantic import ValidationError
        from tilefill.models import InkCircle

        with pytest.raises(ValidationError):
            InkCircle(id=1, c=(0, 0), r=0.0)

    def test_fill_record_omits_defaults(self):
        from tilefill.models import FillRegion

        assert FillRegion(x=0.1, y=0.2).to_record() == {"x": 0.1, "y": 0.2}
        assert FillRegion(x=0.1, y=0.2, boundary_ink_ids=[], uses_tile_boundary=True).to_record() == {
            "x": 0.1, "y": 0.2, "boundaryInkIds": [], "usesTileBoundary": True,
        }

    def test_ink_for_ids(self, boxed_circle_design):
        assert [i.id for i in boxed_circle_design.ink_for_ids(None)] == [1, 2, 3, 4, 5, 6]
        assert boxed_circle_design.ink_for_ids([]) == []
        assert [i.id for i in boxed_circle_design.ink_for_ids([5, 2])] == [2, 5]


class TestParseDocument:
    """Tests for load-time sanitizing."""

    def test_root_must_be_object(self):
        from tilefill.io.document import parse_document

        with pytest.raises(ValueError):
            parse_document([1, 2, 3])

    def test_unknown_tiling_falls_back(self):
        from tilefill.io.document import parse_document

        doc = parse_document({"tilingId": "penrose", "tileShape": "kite"})

        assert doc.tiling_id == "triangle"
        assert doc.tile_shape == "triangle"
        assert set(doc.designs) == {"triangle"}

    def test_bad_ink_entries_dropped(self):
        from tilefill.io.document import parse_document

        raw = {
            "tilingId": "square",
            "tileShape": "square",
            "designs": {"square": {"ink": [
                {"type": "circle", "id": 1, "c": {"x": 0, "y": 0}, "r": -1},
                {"type": "arc", "id": 2, "c": {"x": 0, "y": 0}, "r": 0.1, "a0": float("nan"), "a1": 1},
                {"type": "line", "id": 3, "a": {"x": 0, "y": 0}, "b": {"x": "oops", "y": 0}},
                {"type": "spline", "id": 4},
                "not an object",
                {"type": "line", "id": 5, "a": {"x": 0, "y": 0}, "b": {"x": 0.1, "y": 0}},
            ]}},
        }
        doc = parse_document(raw)
        ink = doc.design_for("square").ink

        assert [i.id for i in ink] == [5]
        assert doc.next_ink_id == 6

    def test_colliding_ids_are_remapped(self):
        from tilefill.io.document import parse_document

        raw = {
            "tilingId": "tiling-33-434",
            "tileShape": "triangle",
            "designs": {
                "square": {
                    "ink": [{"type": "line", "id": 3, "a": {"x": 0, "y": 0}, "b": {"x": 0.1, "y": 0}}],
                    "fills": [{"x": 0, "y": 0.2, "boundaryInkIds": [3]}],
                },
                "triangle": {
                    "ink": [{"type": "circle", "id": 3, "c": {"x": 0, "y": 0}, "r": 0.1}],
                    "fills": [{"x": 0, "y": 0, "boundaryInkIds": [3]}],
                },
            },
        }
        doc = parse_document(raw)

        assert doc.design_for("square").ink[0].id == 3
        assert doc.design_for("square").fills[0].boundary_ink_ids == [3]
        assert doc.design_for("triangle").ink[0].id == 4
        assert doc.design_for("triangle").fills[0].boundary_ink_ids == [4]
        assert doc.next_ink_id == 5
        assert doc.allocate_ink_id() == 5

    def test_duplicate_ids_within_design(self):
        from tilefill.io.document import parse_document

        line = {"type": "line", "a": {"x": 0, "y": 0}, "b": {"x": 0.1, "y": 0}}
        raw = {"tilingId": "square", "designs": {"square": {"ink": [
            dict(line, id=2), dict(line, id=2), dict(line), dict(line, id=-4),
        ]}}}
        doc = parse_document(raw)

        ids = [i.id for i in doc.design_for("square").ink]
        assert ids[0] == 2
        assert len(set(ids)) == 4

    def test_fill_boundary_sanitized(self):
        from tilefill.io.document import parse_document

        raw = {
            "tilingId": "square",
            "designs": {"square": {
                "ink": [{"type": "line", "id": 1, "a": {"x": 0, "y": 0}, "b": {"x": 0.1, "y": 0}}],
                "fills": [
                    {"x": 0.1, "y": 0.1, "boundaryInkIds": [1, 1, 7, "x"], "usesTileBoundary": True},
                    {"x": 0.1, "y": 0.1, "boundaryInkIds": [7, 8]},
                    {"x": 0.1, "y": 0.1, "boundaryInkIds": [], "usesTileBoundary": "yes"},
                    {"x": 0.1, "y": 0.1},
                    {"x": "bad", "y": 0.1},
                ],
            }},
        }
        fills = parse_document(raw).design_for("square").fills

        assert len(fills) == 4
        assert fills[0].boundary_ink_ids == [1]
        assert fills[0].uses_tile_boundary
        # every id vanished: rediscover later
        assert fills[1].boundary_ink_ids is None
        # an empty list stays empty (tile-bounded fill)
        assert fills[2].boundary_ink_ids == []
        assert not fills[2].uses_tile_boundary
        assert fills[3].boundary_ink_ids is None

    def test_legacy_root_level_design(self):
        from tilefill.io.document import parse_document

        raw = {
            "tilingId": "hexagon",
            "ink": [{"type": "circle", "id": 9, "c": {"x": 0, "y": 0}, "r": 0.2}],
            "fills": [{"x": 0, "y": 0}],
        }
        doc = parse_document(raw)

        design = doc.design_for("hexagon")
        assert [i.id for i in design.ink] == [9]
        assert len(design.fills) == 1


class TestLoadSave:
    """Tests for reading and writing document files."""

    def test_roundtrip(self, temp_dir, document, circle_design):
        from tilefill.io.document import load_document, save_document
        from tilefill.models import FillRegion

        circle_design.fills.append(FillRegion(x=0.0, y=0.0, boundary_ink_ids=[1]))
        path = os.path.join(temp_dir, "design.json")
        save_document(document, path)

        with open(path, encoding="utf-8") as f:
            raw = json.load(f)
        assert raw["app"] == "tile-designer"
        assert raw["version"] == 2
        assert raw["tilingId"] == "square"
        assert raw["designs"]["square"]["fills"] == [{"x": 0.0, "y": 0.0, "boundaryInkIds": [1]}]

        loaded = load_document(path)
        assert loaded.to_record() == document.to_record()
        assert loaded.next_ink_id == 2

    def test_invalid_json_raises(self, temp_dir):
        from tilefill.io.document import load_document

        path = os.path.join(temp_dir, "broken.json")
        with open(path, "w", encoding="utf-8") as f:
            f.write("{not json")

        with pytest.raises(ValueError):
            load_document(path)

    def test_missing_file_raises(self, temp_dir):
        from tilefill.io.document import load_document

        with pytest.raises(ValueError):
            load_document(os.path.join(temp_dir, "nope.json"))


class TestSingleTiles:
    """Tests for the extra designs of single-shape tilings."""

    def _raw(self):
        line = {"type": "line", "id": 1, "a": {"x": -0.4, "y": 0}, "b": {"x": 0.4, "y": 0}}
        circle = {"type": "circle", "id": 1, "c": {"x": 0, "y": 0}, "r": 0.25}
        return {
            "tilingId": "square",
            "tileShape": "square",
            "designs": {"square": {"ink": [line], "fills": []}},
            "singleTiles": [
                {"ink": [line], "fills": []},
                {"design": {"ink": [circle], "fills": [{"x": 0, "y": 0, "boundaryInkIds": [1]}]}},
            ],
            "activeSingleTileIndex": 1,
        }

    def test_variants_survive_load_and_save(self):
        from tilefill.io.document import parse_document

        doc = parse_document(self._raw())
        record = doc.to_record()

        assert len(record["singleTiles"]) == 2
        assert record["activeSingleTileIndex"] == 1
        assert record["designs"]["square"] == record["singleTiles"][0]

        second = record["singleTiles"][1]
        assert second["ink"][0]["type"] == "circle"
        # the colliding id was reallocated and the fill follows it
        assert second["ink"][0]["id"] == 2
        assert second["fills"] == [{"x": 0.0, "y": 0.0, "boundaryInkIds": [2]}]
        assert doc.all_ink_ids() == {1, 2}
        assert doc.allocate_ink_id() == 3

    def test_file_roundtrip_is_stable(self, temp_dir):
        from tilefill.io.document import load_document, parse_document, save_document

        doc = parse_document(self._raw())
        path = os.path.join(temp_dir, "variants.json")
        save_document(doc, path)
        loaded = load_document(path)

        assert loaded.to_record() == doc.to_record()
        assert loaded.active_design("square") is loaded.single_tiles[1]
        assert loaded.design_for("square") is loaded.single_tiles[0]

    def test_active_index_clamped(self):
        from tilefill.io.document import parse_document

        raw = self._raw()
        raw["activeSingleTileIndex"] = 9
        assert parse_document(raw).active_single_tile_index == 1

        raw["activeSingleTileIndex"] = "1"
        assert parse_document(raw).active_single_tile_index == 0

    def test_multi_shape_tiling_ignores_single_tiles(self):
        from tilefill.io.document import parse_document

        raw = self._raw()
        raw["tilingId"] = "tiling-33-434"
        doc = parse_document(raw)

        assert doc.single_tiles == []
        assert "singleTiles" not in doc.to_record()
        assert [i.id for i in doc.design_for("square").ink] == [1]

    def test_add_and_remove_single_tiles(self, document):
        first = document.design_for("square")
        second = document.add_single_tile()

        assert document.active_single_tile_index == 1
        assert document.active_design("square") is second

        assert document.remove_single_tile(0)
        assert document.design_for("square") is second
        assert document.active_single_tile_index == 0
        assert all(d is not first for d in document.single_tile_designs())
        assert not document.remove_single_tile(0)

    def test_ids_unique_across_single_tiles(self, document):
        from tilefill.models import InkLine

        document.add_line("square", (0, 0), (0.1, 0))
        extra = document.add_single_tile()
        extra.ink.append(InkLine(id=document.allocate_ink_id(), a=(0, 0), b=(0, 0.1)))
        document.add_line("square", (0, 0), (0.2, 0))

        assert document.all_ink_ids() == {1, 2, 3}

    def test_add_single_tile_needs_single_shape(self):
        from tilefill.models import TileDocument

        doc = TileDocument(tiling_id="tiling-48-2", tile_shape="octagon")
        with pytest.raises(ValueError):
            doc.add_single_tile()
