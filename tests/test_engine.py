"""Tests for the fill engine service and its cache."""

import math

import pytest


class TestFillCache:
    """Tests for revision-stamped caching."""

    def test_put_get(self, square_tile):
        from tilefill.fill.cache import FillCache
        from tilefill.models import FillRegion

        cache = FillCache()
        fill = FillRegion(x=0.0, y=0.0, boundary_ink_ids=[1])
        assert cache.get(fill, square_tile) is None

        cache.put(fill, square_tile, "data")
        assert cache.get(fill, square_tile) == "data"
        assert cache.hits == 1
        assert cache.misses == 1

    def test_key_changes_with_revisions_and_boundary(self, square_tile):
        from tilefill.fill.cache import FillCache
        from tilefill.models import FillRegion

        cache = FillCache()
        fill = FillRegion(x=0.1, y=0.2, boundary_ink_ids=[1, 2], uses_tile_boundary=True)
        key = cache.key_for(fill, square_tile)
        assert key.endswith(":1,2:1")

        cache.mark_ink_changed()
        assert cache.key_for(fill, square_tile) != key

        key = cache.key_for(fill, square_tile)
        fill.boundary_ink_ids = [1]
        assert cache.key_for(fill, square_tile) != key

    def test_revision_bump_clears(self, square_tile):
        from tilefill.fill.cache import FillCache
        from tilefill.models import FillRegion

        cache = FillCache()
        fill = FillRegion(x=0.0, y=0.0, boundary_ink_ids=[])
        cache.put(fill, square_tile, "data")

        cache.mark_geometry_changed()
        assert len(cache) == 0
        assert cache.geometry_revision == 1

    def test_render_scale_only_bumps_on_change(self):
        from tilefill.fill.cache import FillCache

        cache = FillCache(render_scale=2.0)
        cache.set_render_scale(2.0)
        assert cache.geometry_revision == 0
        cache.set_render_scale(1.0)
        assert cache.geometry_revision == 1


class TestCreateAndRender:
    """Tests for create_fill and render."""

    def test_create_fill_appends_and_caches(self, engine, square_tile, circle_design):
        fill = engine.create_fill((0.0, 0.0), square_tile, circle_design)

        assert fill is not None
        assert circle_design.fills == [fill]
        assert fill.boundary_ink_ids == [1]
        assert len(engine.cache) == 1

        data = engine.render(fill, square_tile, circle_design)
        assert engine.cache.hits == 1
        assert data.closed_by_ink

    def test_create_fill_invalid_seed(self, engine, square_tile, circle_design):
        assert engine.create_fill((0.25, 0.0), square_tile, circle_design) is None
        assert circle_design.fills == []

    def test_render_discovers_missing_boundary(self, engine, square_tile, circle_design):
        from tilefill.models import FillRegion

        fill = FillRegion(x=0.0, y=0.0)
        data = engine.render(fill, square_tile, circle_design)

        assert data is not None
        assert fill.boundary_ink_ids == [1]
        assert not fill.uses_tile_boundary

    def test_render_rediscovers_stale_ids(self, engine, square_tile, circle_design):
        from tilefill.models import FillRegion

        fill = FillRegion(x=0.0, y=0.0, boundary_ink_ids=[99])
        engine.render(fill, square_tile, circle_design)

        assert fill.boundary_ink_ids == [1]

    def test_render_after_ink_change_recomputes(self, engine, square_tile, circle_design):
        fill = engine.create_fill((0.0, 0.0), square_tile, circle_design)
        first = engine.render(fill, square_tile, circle_design)

        engine.cache.mark_ink_changed()
        second = engine.render(fill, square_tile, circle_design)

        assert second is not first
        assert second.content_signature == first.content_signature


class TestHitTest:
    def test_find_fill_at_point(self, engine, square_tile, circle_design):
        engine.create_fill((0.0, 0.0), square_tile, circle_design)
        engine.create_fill((0.4, 0.4), square_tile, circle_design)

        assert engine.find_fill_at_point((0.0, 0.0), square_tile, circle_design) == 0
        assert engine.find_fill_at_point((80.0, 80.0), square_tile, circle_design) == 1
        assert engine.find_fill_at_point((50.0, 0.0), square_tile, circle_design) == -1

    def test_topmost_wins(self, engine, square_tile, circle_design):
        engine.create_fill((0.0, 0.0), square_tile, circle_design)
        engine.create_fill((0.01, 0.0), square_tile, circle_design)

        assert engine.find_fill_at_point((0.0, 0.0), square_tile, circle_design) == 1

    def test_delete_fill_at_point(self, engine, square_tile, circle_design):
        engine.create_fill((0.0, 0.0), square_tile, circle_design)

        assert engine.delete_fill_at_point((90.0, 90.0), square_tile, circle_design) is None
        removed = engine.delete_fill_at_point((0.0, 0.0), square_tile, circle_design)
        assert removed is not None
        assert circle_design.fills == []


class TestPruning:
    """Fills follow the ink they rest on."""

    def test_delete_boundary_ink_drops_fill(self, engine, square_tile, circle_design):
        engine.create_fill((0.0, 0.0), square_tile, circle_design)

        assert engine.delete_ink(1, square_tile, circle_design)
        assert circle_design.fills == []

    def test_delete_unrelated_ink_keeps_fill(self, engine, square_tile, boxed_circle_design):
        fill = engine.create_fill((0.0, 0.0), square_tile, boxed_circle_design)
        assert fill.boundary_ink_ids == [5]

        engine.delete_ink(6, square_tile, boxed_circle_design)
        assert boxed_circle_design.fills == [fill]

    def test_delete_diagonal_of_cross(self, engine, square_tile, document, cross_design):
        """Quadrant fills go with the deleted diagonal; fills off it stay."""
        document.add_circle("square", (0.0, -0.3), 0.08)

        right = engine.create_fill((0.3, 0.0), square_tile, cross_design)
        left = engine.create_fill((-0.3, 0.0), square_tile, cross_design)
        dot = engine.create_fill((0.0, -0.3), square_tile, cross_design)
        assert right.boundary_ink_ids == [1, 2]
        assert left.boundary_ink_ids == [1, 2]
        assert dot.boundary_ink_ids == [3]

        assert engine.delete_ink(2, square_tile, cross_design)

        assert cross_design.fills == [dot]
        assert [ink.id for ink in cross_design.ink] == [1, 3]

    def test_delete_unknown_ink(self, engine, square_tile, circle_design):
        assert not engine.delete_ink(42, square_tile, circle_design)

    def test_changed_ink_that_opens_region_drops_fill(self, engine, square_tile, boxed_circle_design):
        from tilefill.models import InkLine

        inner = engine.create_fill((0.0, 0.0), square_tile, boxed_circle_design)
        ring = engine.create_fill((0.28, 0.0), square_tile, boxed_circle_design)

        # shorten the top side of the box so the ring leaks out
        opened = InkLine(id=1, a=(-0.35, -0.35), b=(0.0, -0.35))
        assert engine.replace_ink(opened, square_tile, boxed_circle_design)

        assert boxed_circle_design.fills == [inner]
        assert ring not in boxed_circle_design.fills

    def test_changed_ink_still_closed_keeps_fill(self, engine, square_tile, circle_design):
        from tilefill.models import InkCircle

        fill = engine.create_fill((0.0, 0.0), square_tile, circle_design)
        bigger = InkCircle(id=1, c=(0.0, 0.0), r=0.3)
        engine.replace_ink(bigger, square_tile, circle_design)

        assert circle_design.fills == [fill]
        data = engine.render(fill, square_tile, circle_design)
        assert data.area_local == pytest.approx(math.pi * 60 * 60, rel=0.05)

    def test_prune_drops_fill_with_invalid_seed(self, engine, square_tile, circle_design):
        from tilefill.models import FillRegion

        circle_design.fills.append(FillRegion(x=0.25, y=0.0))
        circle_design.fills.append(FillRegion(x=0.0, y=0.0))

        dropped = engine.prune_after_ink_change(square_tile, circle_design)

        assert dropped == 1
        assert len(circle_design.fills) == 1
        assert circle_design.fills[0].boundary_ink_ids == [1]
