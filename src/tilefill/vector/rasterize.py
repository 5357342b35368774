"""
Re-rasterize vector loops onto a fill mask's grid.

Used to check reconstructed loops against the canonical flood-fill mask.
"""

import math

import numpy as np
from skimage.draw import polygon2mask

from tilefill.geometry.primitives import TAU


def arc_center(p0, p1, radius, large_arc, sweep):
    """Centre of an SVG-style circular arc from p0 to p1 (no rotation)."""
    hx = (p0[0] - p1[0]) / 2
    hy = (p0[1] - p1[1]) / 2
    d2 = hx * hx + hy * hy
    if d2 <= 1e-18:
        return None
    r = max(radius, math.sqrt(d2))
    k = math.sqrt(max(0.0, (r * r - d2) / d2))
    if large_arc == sweep:
        k = -k
    mx = (p0[0] + p1[0]) / 2
    my = (p0[1] + p1[1]) / 2
    return (mx + k * hy, my - k * hx)


def loop_points(loop, step=0.5):
    """
    Flatten a ClosedLoop into a polyline in local coordinates.

    Arcs are sampled every `step` local units along their length.
    """
    points = [tuple(loop.start)]
    cur = tuple(loop.start)
    for cmd in loop.commands:
        end = tuple(cmd.to)
        if cmd.kind == "arc":
            c = arc_center(cur, end, cmd.radius, cmd.large_arc, cmd.sweep)
            if c is not None:
                r = math.hypot(cur[0] - c[0], cur[1] - c[1])
                t0 = math.atan2(cur[1] - c[1], cur[0] - c[0])
                t1 = math.atan2(end[1] - c[1], end[0] - c[0])
                delta = (t1 - t0) % TAU if cmd.sweep else -((t0 - t1) % TAU)
                if abs(delta) < 1e-9 and cmd.large_arc:
                    delta = TAU if cmd.sweep else -TAU
                n = max(2, int(math.ceil(abs(delta) * r / step)))
                for i in range(1, n):
                    a = t0 + delta * i / n
                    points.append((c[0] + r * math.cos(a), c[1] + r * math.sin(a)))
        points.append(end)
        cur = end
    return points


def rasterize_loops(loops, data, step=None):
    """
    Rasterize loops on the grid of a FillRenderData with the even-odd rule.

    Returns a boolean mask with the same shape as data.mask.
    """
    shape = data.mask.shape
    out = np.zeros(shape, dtype=bool)
    if step is None:
        step = 0.5 / data.scale
    min_x, min_y = data.origin_local
    for loop in loops:
        pts = loop_points(loop, step)
        if len(pts) < 3:
            continue
        # polygon2mask takes (row, col) and tests pixel centres
        poly = np.array([((y - min_y) * data.scale - 0.5, (x - min_x) * data.scale - 0.5)
                         for x, y in pts])
        out ^= polygon2mask(shape, poly)
    return out


def mask_mismatch(loops, data):
    """Fraction of mask pixels that differ from the rasterized loops."""
    area = data.area_px
    if area == 0:
        return 0.0
    diff = rasterize_loops(loops, data) ^ data.mask
    return float(np.count_nonzero(diff)) / area
