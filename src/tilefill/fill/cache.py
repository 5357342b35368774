"""
Revision-stamped cache of fill render data.
"""

from tilefill.tracer import get_tracer


class FillCache:
    """
    Memoizes FillRenderData per fill.

    Keys carry the ink and geometry revisions plus everything the raster
    depends on, so stale entries can never be returned. Bumping either
    revision also drops every entry, since none of them can hit again.
    """

    def __init__(self, render_scale=1.0):
        self.ink_revision = 0
        self.geometry_revision = 0
        self.render_scale = float(render_scale)
        self._entries = {}
        self.hits = 0
        self.misses = 0

    def __len__(self):
        return len(self._entries)

    def clear(self):
        self._entries.clear()

    def mark_ink_changed(self):
        self.ink_revision += 1
        self.clear()
        get_tracer().event(f"Ink revision -> {self.ink_revision}", level="DEBUG")

    def mark_geometry_changed(self):
        self.geometry_revision += 1
        self.clear()
        get_tracer().event(f"Geometry revision -> {self.geometry_revision}", level="DEBUG")

    def set_render_scale(self, render_scale):
        render_scale = float(render_scale)
        if render_scale != self.render_scale:
            self.render_scale = render_scale
            self.mark_geometry_changed()

    def key_for(self, fill, tile):
        ids = "*" if fill.boundary_ink_ids is None else ",".join(str(i) for i in fill.boundary_ink_ids)
        return (
            f"{self.ink_revision}:{self.geometry_revision}:{self.render_scale:g}:"
            f"{tile.shape}:{tile.side:g}:{fill.x!r},{fill.y!r}:{ids}:{int(fill.uses_tile_boundary)}"
        )

    def get(self, fill, tile):
        data = self._entries.get(self.key_for(fill, tile))
        if data is None:
            self.misses += 1
        else:
            self.hits += 1
        return data

    def put(self, fill, tile, data):
        if data is None:
            return
        self._entries[self.key_for(fill, tile)] = data
