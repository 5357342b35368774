"""
Tile frames: the polygon a design is drawn into.

Coordinates are tile-local pixels centred on the tile; dividing by the
tile side gives the world units the document stores.
"""

import math

from shapely.geometry import Point as ShapelyPoint
from shapely.geometry import Polygon

from tilefill.geometry.primitives import Arc, Circle, Segment, TAU, angle_wrap, length, sub
from tilefill.models import SHAPES


def shape_polygon(shape, side):
    """
    Vertices of a regular tile polygon in local coordinates.

    Triangle and square use side as the edge length; hexagon and octagon
    use it as the circumradius.
    """
    if shape == "triangle":
        h = side * math.sqrt(3) / 2
        return [(0.0, -(2 / 3) * h), (-side / 2, h / 3), (side / 2, h / 3)]

    if shape == "square":
        hh = side / 2
        return [(-hh, -hh), (hh, -hh), (hh, hh), (-hh, hh)]

    if shape == "hexagon":
        return [
            (math.cos(-math.pi / 2 + i * TAU / 6) * side, math.sin(-math.pi / 2 + i * TAU / 6) * side)
            for i in range(6)
        ]

    if shape == "octagon":
        offset = math.pi / 8
        return [
            (math.cos(-math.pi / 2 + offset + i * TAU / 8) * side,
             math.sin(-math.pi / 2 + offset + i * TAU / 8) * side)
            for i in range(8)
        ]

    raise ValueError(f"Unknown tile shape: {shape!r} (expected one of {', '.join(SHAPES)})")


class TileFrame:
    """
    A convex tile polygon with its world/local scale.

    Geometry queries go through a shapely polygon so containment matches
    the polygon exactly rather than its rasterization.
    """

    def __init__(self, shape, side, poly_local=None):
        if side <= 0:
            raise ValueError("Tile side must be positive")
        self.shape = shape
        self.side = float(side)
        self.poly_local = [tuple(map(float, p)) for p in (poly_local or shape_polygon(shape, side))]
        if not 3 <= len(self.poly_local) <= 8:
            raise ValueError("Tile polygon must have between 3 and 8 vertices")
        self.polygon = Polygon(self.poly_local)

    def __repr__(self):
        return f"TileFrame(shape={self.shape!r}, side={self.side:g})"

    @property
    def bounds(self):
        """(min_x, min_y, max_x, max_y) of the polygon."""
        return self.polygon.bounds

    def contains_local(self, p):
        """True if a local point is inside the tile or on its edge."""
        return self.polygon.intersects(ShapelyPoint(p[0], p[1]))

    def world_to_local(self, p):
        return (p[0] * self.side, p[1] * self.side)

    def local_to_world(self, p):
        return (p[0] / self.side, p[1] / self.side)

    def ink_to_local(self, ink):
        """Convert a document ink primitive to a kernel primitive in local units."""
        if ink.type == "line":
            return Segment(self.world_to_local(ink.a.as_tuple()), self.world_to_local(ink.b.as_tuple()))
        if ink.type == "circle":
            return Circle(self.world_to_local(ink.c.as_tuple()), ink.r * self.side)
        return Arc(
            self.world_to_local(ink.c.as_tuple()),
            ink.r * self.side,
            angle_wrap(ink.a0),
            angle_wrap(ink.a1),
        )

    def edges(self):
        """Tile outline as segments flagged as tile edges."""
        out = []
        n = len(self.poly_local)
        for i in range(n):
            a = self.poly_local[i]
            b = self.poly_local[(i + 1) % n]
            if length(sub(b, a)) > 1e-6:
                out.append(Segment(a, b, tile_edge=True))
        return out
