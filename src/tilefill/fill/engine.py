"""
Fill engine service.

Ties discovery, the raster fill, the render cache and vector
reconstruction together behind the operations an editor needs: create a
fill, render or hit-test it, vectorize it, and keep fills valid while the
ink they rest on is edited.
"""

from tilefill.config import EngineConfig
from tilefill.fill.cache import FillCache
from tilefill.fill.discovery import discover_fill_boundary
from tilefill.fill.raster import compute_fill_mask, contains, make_mask_tester
from tilefill.models import FillRegion
from tilefill.tracer import get_tracer, trace
from tilefill.vector.arrangement import boundary_primitives, reconstruct_loops, sample_base_for
from tilefill.vector.path import loops_to_svg_d


class FillEngine:
    """
    Stateful façade over the fill pipeline.

    Owns a FillCache; callers that edit ink outside the engine must call
    cache.mark_ink_changed() themselves.
    """

    def __init__(self, config=None, cache=None, debug_writer=None):
        self.config = config or EngineConfig()
        self.cache = cache or FillCache(render_scale=self.config.render_scale)
        self.debug_writer = debug_writer

    def set_render_scale(self, render_scale):
        self.config.render_scale = float(render_scale)
        self.cache.set_render_scale(render_scale)

    def discover(self, seed_world, tile, design):
        return discover_fill_boundary(seed_world, tile, design, self.config,
                                      debug_writer=self.debug_writer)

    @trace(label="create_fill")
    def create_fill(self, seed_world, tile, design):
        """
        Discover the boundary around a seed and append a new fill.

        Returns the FillRegion, or None when the seed is outside the tile
        or on a stroke.
        """
        found = self.discover(seed_world, tile, design)
        if found is None:
            return None
        fill = FillRegion(
            x=float(seed_world[0]),
            y=float(seed_world[1]),
            boundary_ink_ids=found.boundary_ink_ids,
            uses_tile_boundary=found.uses_tile_boundary,
        )
        design.fills.append(fill)
        self.cache.put(fill, tile, found.data)
        return fill

    def _boundary_is_current(self, fill, design):
        if fill.boundary_ink_ids is None:
            return False
        known = set(design.ink_ids())
        return all(i in known for i in fill.boundary_ink_ids)

    def render(self, fill, tile, design):
        """
        FillRenderData for a fill, from the cache when possible.

        Fills whose boundary ids are missing or reference ink that no
        longer exists are rediscovered first, and the fill is updated in
        place. Returns None if the seed is no longer valid.
        """
        discovered = None
        if not self._boundary_is_current(fill, design):
            discovered = self.discover(fill.seed, tile, design)
            if discovered is None:
                return None
            fill.boundary_ink_ids = discovered.boundary_ink_ids
            fill.uses_tile_boundary = discovered.uses_tile_boundary

        cached = self.cache.get(fill, tile)
        if cached is not None:
            return cached

        if discovered is not None:
            data = discovered.data
        else:
            data = compute_fill_mask(fill.seed, tile, design, fill.boundary_ink_ids, self.config)
        self.cache.put(fill, tile, data)
        return data

    def contains(self, data, point_local):
        return contains(data, point_local)

    @trace(label="vectorize")
    def vectorize(self, fill, tile, design):
        """Closed vector loops bounding a fill, in tile-local coordinates."""
        data = self.render(fill, tile, design)
        if data is None:
            return []
        prims = boundary_primitives(tile, design.ink_for_ids(fill.boundary_ink_ids),
                                    fill.uses_tile_boundary)
        return reconstruct_loops(prims, make_mask_tester(data), sample_base_for(tile, self.config),
                                 self.config)

    def vectorize_svg_d(self, fill, tile, design):
        return loops_to_svg_d(self.vectorize(fill, tile, design))

    def find_fill_at_point(self, point_local, tile, design):
        """Index of the topmost fill covering a local point, or -1."""
        for i in range(len(design.fills) - 1, -1, -1):
            data = self.render(design.fills[i], tile, design)
            if data is None:
                continue
            if contains(data, point_local):
                return i
        return -1

    def delete_fill_at_point(self, point_local, tile, design):
        idx = self.find_fill_at_point(point_local, tile, design)
        if idx < 0:
            return None
        return design.fills.pop(idx)

    @trace(label="prune_after_ink_change")
    def prune_after_ink_change(self, tile, design, changed_ids=(), deleted_ids=()):
        """
        Drop fills invalidated by an ink edit.

        A fill resting on deleted ink is dropped. When specific ink changed,
        fills not bounded by it are kept untouched; fills bounded by it are
        kept only if ink alone still closes their region. With no changed
        ids every fill is re-rendered and dropped if its seed became
        invalid.
        """
        tracer = get_tracer()
        changed = set(changed_ids)
        deleted = set(deleted_ids)
        kept = []

        for fill in design.fills:
            if fill.boundary_ink_ids is None:
                if self.render(fill, tile, design) is None:
                    continue

            boundary = fill.boundary_ink_ids or []
            if any(i in deleted for i in boundary):
                continue
            touches_change = bool(changed) and any(i in changed for i in boundary)
            if changed and not touches_change:
                kept.append(fill)
                continue

            data = self.render(fill, tile, design)
            if data is None:
                continue
            if touches_change and not data.closed_by_ink:
                continue
            kept.append(fill)

        dropped = len(design.fills) - len(kept)
        design.fills[:] = kept
        tracer.event(f"Pruned fills: kept {len(kept)}, dropped {dropped}")
        return dropped

    def delete_ink(self, ink_id, tile, design):
        """Remove one stroke and prune fills that rested on it."""
        before = len(design.ink)
        design.ink[:] = [ink for ink in design.ink if ink.id != ink_id]
        if len(design.ink) == before:
            return False
        self.cache.mark_ink_changed()
        self.prune_after_ink_change(tile, design, deleted_ids=[ink_id])
        return True

    def replace_ink(self, ink, tile, design):
        """Swap in a new version of an existing stroke (same id) and prune."""
        for i, existing in enumerate(design.ink):
            if existing.id == ink.id:
                design.ink[i] = ink
                break
        else:
            return False
        self.cache.mark_ink_changed()
        self.prune_after_ink_change(tile, design, changed_ids=[ink.id])
        return True
