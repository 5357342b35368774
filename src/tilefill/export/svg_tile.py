"""
SVG export of tile designs.

Each tile is drawn clipped to its polygon: vector fill paths (even-odd)
first, then the ink strokes, then a grey tile outline on top.
"""

import math

import svgwrite

from tilefill.config import EngineConfig
from tilefill.geometry.primitives import angle_delta_ccw, angle_wrap, point_on_circle
from tilefill.geometry.tile import TileFrame
from tilefill.io.save_artifacts import save_svg
from tilefill.tracer import get_tracer, trace
from tilefill.vector.path import fmt_svg_num, polygon_to_svg_d, svg_point


def ink_to_svg_d(prim):
    """SVG path data for one local kernel primitive ("" when degenerate)."""
    if prim.kind == "line":
        return f"M {svg_point(prim.a)} L {svg_point(prim.b)}"

    rr = fmt_svg_num(prim.r)
    if prim.kind == "circle":
        p0 = point_on_circle(prim.c, prim.r, 0.0)
        p1 = point_on_circle(prim.c, prim.r, math.pi)
        return f"M {svg_point(p0)} A {rr} {rr} 0 1 1 {svg_point(p1)} A {rr} {rr} 0 1 1 {svg_point(p0)}"

    a0 = angle_wrap(prim.a0)
    a1 = angle_wrap(prim.a1)
    delta = angle_delta_ccw(a0, a1)
    if delta <= 1e-6:
        return ""
    p0 = point_on_circle(prim.c, prim.r, a0)
    p1 = point_on_circle(prim.c, prim.r, a1)
    return f"M {svg_point(p0)} A {rr} {rr} 0 {int(delta > math.pi)} 1 {svg_point(p1)}"


def layout_tiles(shapes, side, gap=None):
    """
    Place one tile per shape in a row.

    Returns a list of (TileFrame, (cx, cy)) pairs.
    """
    gap = side * 0.25 if gap is None else gap
    placed = []
    cursor = 0.0
    for shape in shapes:
        tile = TileFrame(shape, side)
        min_x, _, max_x, _ = tile.bounds
        cx = cursor - min_x
        placed.append((tile, (cx, 0.0)))
        cursor = cx + max_x + gap
    return placed


def _translate(center):
    return f"translate({fmt_svg_num(center[0])} {fmt_svg_num(center[1])})"


def document_tiles(document):
    """
    (shape, design) pairs to draw: one per single tile for single-shape
    tilings, otherwise one per shape of the tiling.
    """
    if document.is_single_shape:
        shape = document.shapes[0]
        return [(shape, design) for design in document.single_tile_designs()]
    return [(shape, document.design_for(shape)) for shape in document.shapes]


@trace(label="create_tiles_svg")
def create_tiles_svg(designs, engine, placed, config=None):
    """
    Build an svgwrite Drawing for placed tile designs.

    Args:
        designs: Design per placed tile
        engine: FillEngine used to vectorize fills
        placed: list of (TileFrame, center) pairs
        config: EngineConfig

    Returns:
        svgwrite.Drawing
    """
    config = config or engine.config or EngineConfig()
    ec = config.export
    tracer = get_tracer()

    min_x = min_y = math.inf
    max_x = max_y = -math.inf
    for tile, center in placed:
        for x, y in tile.poly_local:
            min_x = min(min_x, x + center[0])
            min_y = min(min_y, y + center[1])
            max_x = max(max_x, x + center[0])
            max_y = max(max_y, y + center[1])
    if not placed:
        min_x = min_y = 0.0
        max_x = max_y = 1.0
    min_x -= ec.padding
    min_y -= ec.padding
    vb_w = max(1.0, max_x + ec.padding - min_x)
    vb_h = max(1.0, max_y + ec.padding - min_y)

    dwg = svgwrite.Drawing(size=(f"{fmt_svg_num(vb_w)}px", f"{fmt_svg_num(vb_h)}px"))
    dwg.viewbox(min_x, min_y, vb_w, vb_h)

    fill_count = 0
    for i, ((tile, center), design) in enumerate(zip(placed, designs)):
        tile_d = polygon_to_svg_d(tile.poly_local)
        clip_id = f"tileClip{i}"

        clip = dwg.clipPath(id=clip_id)
        clip.add(dwg.path(d=tile_d, transform=_translate(center)))
        dwg.defs.add(clip)

        outer = dwg.g(clip_path=f"url(#{clip_id})")
        inner = dwg.g(transform=_translate(center))

        for fill in design.fills:
            d = engine.vectorize_svg_d(fill, tile, design)
            if not d:
                continue
            inner.add(dwg.path(d=d, fill=ec.fill_color, fill_rule=ec.fill_rule))
            fill_count += 1

        for ink in design.ink:
            d = ink_to_svg_d(tile.ink_to_local(ink))
            if not d:
                continue
            inner.add(dwg.path(
                d=d,
                fill="none",
                stroke=ec.ink_color,
                stroke_width=ec.ink_stroke_width,
                stroke_linecap="round",
                stroke_linejoin="round",
            ))

        outer.add(inner)
        dwg.add(outer)
        dwg.add(dwg.path(d=tile_d, transform=_translate(center), fill="none",
                         stroke=ec.tile_outline_color, stroke_width=1))

    tracer.event(f"SVG built: {len(placed)} tiles, {fill_count} fill paths")
    return dwg


def export_document_svg(document, engine, path, side=200.0, config=None):
    """Lay out the document's tiles in a row and save the SVG."""
    tiles = document_tiles(document)
    placed = layout_tiles([shape for shape, _ in tiles], side)
    dwg = create_tiles_svg([design for _, design in tiles], engine, placed, config)
    save_svg(dwg, path)
    return dwg
