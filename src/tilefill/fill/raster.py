"""
Raster fill engine.

Rasterizes a tile outline plus a set of ink strokes, flood-fills the
region around a seed and returns it as a boolean mask with a content
signature. A second, coded raster paints the tile edge and every ink id in
its own colour so the fill can report which walls it touched.

Pixel convention: raster pixel (x, y) covers the local square
[min_x + x/s, min_x + (x+1)/s) and likewise in y. OpenCV treats integer
coordinates as pixel centres, so drawing coordinates are shifted by half
a pixel and passed in fixed point.
"""

import hashlib
import math
from dataclasses import dataclass, field

import cv2
import numpy as np

from tilefill.config import EngineConfig
from tilefill.geometry.primitives import angle_delta_ccw, is_degenerate
from tilefill.tracer import get_tracer, trace


TILE_BOUNDARY_CODE = 1
INK_CODE_OFFSET = 2

SUBPIXEL_SHIFT = 4
SUBPIXEL = 1 << SUBPIXEL_SHIFT

CROSS_KERNEL = cv2.getStructuringElement(cv2.MORPH_CROSS, (3, 3))
SQUARE_KERNEL = np.ones((3, 3), dtype=np.uint8)


@dataclass
class FillRenderData:
    """
    Derived raster of one fill region. Never persisted.

    boundary_ink_ids holds the ink ids whose wall pixels the flood fill
    touched, sorted ascending.
    """
    mask: np.ndarray
    origin_local: tuple
    extent_local: tuple
    scale: float
    content_signature: str
    boundary_ink_ids: list = field(default_factory=list)
    uses_tile_boundary: bool = False
    closed_by_ink: bool = False

    @property
    def width(self):
        return self.mask.shape[1]

    @property
    def height(self):
        return self.mask.shape[0]

    @property
    def area_px(self):
        return int(np.count_nonzero(self.mask))

    @property
    def area_local(self):
        """Mask area converted back to local square units."""
        return self.area_px / (self.scale * self.scale)


class RasterFrame:
    """Maps tile-local coordinates onto a raster grid."""

    def __init__(self, min_x, min_y, w_local, h_local, scale):
        self.min_x = min_x
        self.min_y = min_y
        self.w_local = w_local
        self.h_local = h_local
        self.scale = scale
        self.width = max(1, int(math.ceil(w_local * scale)))
        self.height = max(1, int(math.ceil(h_local * scale)))

    @classmethod
    def fit(cls, min_x, min_y, max_x, max_y, margin, target, min_scale, max_scale):
        """Frame a bounding box plus margin at an adaptive, clamped scale."""
        min_x -= margin
        min_y -= margin
        w_local = (max_x + margin) - min_x
        h_local = (max_y + margin) - min_y
        s = min(target / max(1.0, w_local), target / max(1.0, h_local))
        s = min(max_scale, max(min_scale, s))
        return cls(min_x, min_y, w_local, h_local, s)

    def to_pixel(self, p):
        """Continuous raster coordinates of a local point."""
        return ((p[0] - self.min_x) * self.scale, (p[1] - self.min_y) * self.scale)

    def fixed(self, p):
        """Fixed-point OpenCV coordinates of a local point."""
        px, py = self.to_pixel(p)
        return (int(round((px - 0.5) * SUBPIXEL)), int(round((py - 0.5) * SUBPIXEL)))

    def pixel_of(self, p):
        """Integer pixel containing a local point, or None when off-raster."""
        px, py = self.to_pixel(p)
        x = int(math.floor(px))
        y = int(math.floor(py))
        if x < 0 or y < 0 or x >= self.width or y >= self.height:
            return None
        return x, y


def draw_primitive(img, prim, frame, color, thickness, line_type):
    """Stroke one kernel primitive onto img."""
    if prim.kind == "line":
        cv2.line(img, frame.fixed(prim.a), frame.fixed(prim.b), color,
                 thickness, line_type, SUBPIXEL_SHIFT)
        return

    radius = int(round(prim.r * frame.scale * SUBPIXEL))
    if radius <= 0:
        return

    if prim.kind == "circle":
        cv2.circle(img, frame.fixed(prim.c), radius, color, thickness, line_type, SUBPIXEL_SHIFT)
        return

    sweep = math.degrees(angle_delta_ccw(prim.a0, prim.a1))
    if sweep <= 1e-6:
        return
    start = math.degrees(prim.a0)
    cv2.ellipse(img, frame.fixed(prim.c), (radius, radius), 0, start, start + sweep,
                color, thickness, line_type, SUBPIXEL_SHIFT)


def draw_polygon_outline(img, poly, frame, color, thickness, line_type):
    pts = np.array([frame.fixed(p) for p in poly], dtype=np.int32)
    cv2.polylines(img, [pts], True, color, thickness, line_type, SUBPIXEL_SHIFT)


def color_for_code(code):
    """Pack an integer code into a BGR-ordered byte triple."""
    return (code & 255, (code >> 8) & 255, (code >> 16) & 255)


def decode_codes(coded_img):
    """Inverse of color_for_code over a whole image."""
    c = coded_img.astype(np.int32)
    return c[..., 0] | (c[..., 1] << 8) | (c[..., 2] << 16)


def code_for_ink_id(ink_id):
    return INK_CODE_OFFSET + max(0, int(ink_id))


def ink_id_from_code(code):
    return int(code) - INK_CODE_OFFSET


def _stroke_thickness(config):
    return max(1, int(round(config.raster.stroke_width)))


def _local_ink(tile, inks):
    """(id, primitive) pairs in local units, skipping degenerate strokes."""
    out = []
    for ink in inks:
        prim = tile.ink_to_local(ink)
        if is_degenerate(prim):
            continue
        out.append((ink.id, prim))
    return out


def _signature(mask):
    indices = np.flatnonzero(mask).astype(np.int64)
    digest = hashlib.sha256(indices.tobytes()).hexdigest()[:16]
    h, w = mask.shape
    return f"{w}:{h}:{indices.size}:{digest}"


@trace(label="compute_fill_mask")
def compute_fill_mask(seed_world, tile, design, boundary_ink_ids=None, config=None, check_closure=True):
    """
    Flood-fill the region around a seed.

    Args:
        seed_world: seed point in world units
        tile: TileFrame the design is drawn in
        design: Design providing the ink
        boundary_ink_ids: ids of ink to rasterize as walls; None for all ink
        config: EngineConfig
        check_closure: also run the ink-only closure test

    Returns:
        FillRenderData, or None when the seed is outside the tile or on a stroke
    """
    config = config or EngineConfig()
    rc = config.raster
    tracer = get_tracer()

    seed_local = tile.world_to_local(seed_world)
    if not tile.contains_local(seed_local):
        tracer.event("Seed outside tile", level="DEBUG")
        return None

    inks = _local_ink(tile, design.ink_for_ids(boundary_ink_ids))

    min_x, min_y, max_x, max_y = tile.bounds
    frame = RasterFrame.fit(
        min_x, min_y, max_x, max_y,
        margin=rc.margin_px * config.render_scale,
        target=rc.target_resolution,
        min_scale=rc.min_scale,
        max_scale=rc.max_scale,
    )
    w, h = frame.width, frame.height
    thickness = _stroke_thickness(config)

    with tracer.span("rasterize", module="raster"):
        gray = np.full((h, w), 255, dtype=np.uint8)
        coded = np.zeros((h, w, 3), dtype=np.uint8)

        draw_polygon_outline(gray, tile.poly_local, frame, 0, thickness, cv2.LINE_AA)
        draw_polygon_outline(coded, tile.poly_local, frame, color_for_code(TILE_BOUNDARY_CODE),
                             thickness + 1, cv2.LINE_8)
        for ink_id, prim in inks:
            draw_primitive(gray, prim, frame, 0, thickness, cv2.LINE_AA)
            draw_primitive(coded, prim, frame, color_for_code(code_for_ink_id(ink_id)),
                           thickness + 1, cv2.LINE_8)

        inside = np.zeros((h, w), dtype=np.uint8)
        poly_pts = np.array([frame.fixed(p) for p in tile.poly_local], dtype=np.int32)
        cv2.fillPoly(inside, [poly_pts], 1, cv2.LINE_8, SUBPIXEL_SHIFT)
        inside = inside.astype(bool)

        wall = gray < rc.wall_threshold
        codes = decode_codes(coded)

    seed_px = frame.pixel_of(seed_local)
    if seed_px is None:
        return None
    sx, sy = seed_px
    if not inside[sy, sx] or wall[sy, sx]:
        tracer.event("Seed on stroke or tile edge", level="DEBUG")
        return None

    with tracer.span("flood_fill", module="raster"):
        passable = inside & ~wall
        _, labels = cv2.connectedComponents(passable.astype(np.uint8), connectivity=4)
        visited = labels == labels[sy, sx]

        ring = cv2.dilate(visited.astype(np.uint8), CROSS_KERNEL).astype(bool)
        touched = ring & ~visited & inside & wall
        touched_codes = np.unique(codes[touched])
        uses_tile_boundary = bool(np.any(touched_codes == TILE_BOUNDARY_CODE))
        touched_ids = sorted(ink_id_from_code(c) for c in touched_codes if c >= INK_CODE_OFFSET)

    with tracer.span("dilate", module="raster"):
        cur = visited
        for _ in range(rc.dilate_iterations):
            grown = cv2.dilate(cur.astype(np.uint8), CROSS_KERNEL).astype(bool)
            cur = cur | (grown & passable)

        # Tile edge pixels join the mask so stamped copies meet without seams.
        if uses_tile_boundary:
            tile_px = codes == TILE_BOUNDARY_CODE
            for _ in range(rc.tile_boundary_dilate_iterations):
                grown = cv2.dilate(cur.astype(np.uint8), SQUARE_KERNEL).astype(bool)
                cur = cur | (grown & tile_px)

    closed_by_ink = False
    if check_closure:
        closed_by_ink = is_seed_closed_by_ink(seed_local, tile, [prim for _, prim in inks], config)

    data = FillRenderData(
        mask=cur,
        origin_local=(frame.min_x, frame.min_y),
        extent_local=(frame.w_local, frame.h_local),
        scale=frame.scale,
        content_signature=_signature(cur),
        boundary_ink_ids=touched_ids,
        uses_tile_boundary=uses_tile_boundary,
        closed_by_ink=closed_by_ink,
    )
    tracer.event("Fill mask computed", level="DEBUG", sig=data.content_signature, touched=touched_ids)
    return data


def _primitive_bounds(prim):
    if prim.kind == "line":
        return (min(prim.a[0], prim.b[0]), min(prim.a[1], prim.b[1]),
                max(prim.a[0], prim.b[0]), max(prim.a[1], prim.b[1]))
    return (prim.c[0] - prim.r, prim.c[1] - prim.r, prim.c[0] + prim.r, prim.c[1] + prim.r)


def is_seed_closed_by_ink(seed_local, tile, primitives, config=None):
    """
    Check whether ink alone (no tile edge) encloses the seed.

    Rasterizes only the given primitives on a tight frame around them and
    the seed; if the seed's component reaches the raster border the region
    leaks and is not closed.
    """
    config = config or EngineConfig()
    primitives = [p for p in primitives if not is_degenerate(p)]
    if not primitives:
        return False

    min_x = max_x = seed_local[0]
    min_y = max_y = seed_local[1]
    for prim in primitives:
        bx0, by0, bx1, by1 = _primitive_bounds(prim)
        min_x, min_y = min(min_x, bx0), min(min_y, by0)
        max_x, max_y = max(max_x, bx1), max(max_y, by1)

    frame = RasterFrame.fit(
        min_x, min_y, max_x, max_y,
        margin=config.closure.margin_px * config.render_scale,
        target=config.closure.target_resolution,
        min_scale=config.raster.min_scale,
        max_scale=config.raster.max_scale,
    )
    gray = np.full((frame.height, frame.width), 255, dtype=np.uint8)
    thickness = _stroke_thickness(config)
    for prim in primitives:
        draw_primitive(gray, prim, frame, 0, thickness, cv2.LINE_AA)

    seed_px = frame.pixel_of(seed_local)
    if seed_px is None:
        return False
    sx, sy = seed_px
    wall = gray < config.raster.wall_threshold
    if wall[sy, sx]:
        return False

    _, labels = cv2.connectedComponents((~wall).astype(np.uint8), connectivity=4)
    region = labels == labels[sy, sx]
    leaks = region[0, :].any() or region[-1, :].any() or region[:, 0].any() or region[:, -1].any()
    return not leaks


def contains(data, point_local):
    """Hit-test a local point against a fill mask (nearest pixel)."""
    if data is None:
        return False
    min_x, min_y = data.origin_local
    w_local, h_local = data.extent_local
    if w_local <= 0 or h_local <= 0:
        return False
    ux = (point_local[0] - min_x) / w_local
    uy = (point_local[1] - min_y) / h_local
    if ux < 0 or uy < 0 or ux > 1 or uy > 1:
        return False
    sx = int(math.floor(ux * data.width))
    sy = int(math.floor(uy * data.height))
    if sx < 0 or sy < 0 or sx >= data.width or sy >= data.height:
        return False
    return bool(data.mask[sy, sx])


def make_mask_tester(data):
    """Build a point -> bool inside test bound to one fill mask."""
    if data is None or data.mask is None:
        return lambda p: False
    return lambda p: contains(data, p)
