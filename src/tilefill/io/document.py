"""
Load and save tile design documents.

Loading is forgiving about individual entries: bad ink or fills are
skipped, duplicate ink ids are reallocated and fill references follow
them. Only a document that is not a JSON object at all is rejected.
"""

import json
import math
import os

from tilefill.io.save_artifacts import ensure_dir
from tilefill.models import (
    DEFAULT_TILING, TILINGS, Design, FillRegion, InkArc, InkCircle, InkLine, Point, TileDocument,
)
from tilefill.tracer import get_tracer, trace


def _finite(value):
    if isinstance(value, bool):
        return None
    try:
        n = float(value)
    except (TypeError, ValueError):
        return None
    return n if math.isfinite(n) else None


def _ink_id(value):
    """Positive integer id, or None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, float) and value.is_integer() and value > 0:
        return int(value)
    return None


def _point(raw):
    if not isinstance(raw, dict):
        return None
    x = _finite(raw.get("x"))
    y = _finite(raw.get("y"))
    if x is None or y is None:
        return None
    return Point(x=x, y=y)


def sanitize_ink(raw):
    """
    Validate one raw ink entry.

    Returns (fields, old_id) where fields feed the ink model (minus id),
    or None when the entry is unusable.
    """
    if not isinstance(raw, dict):
        return None
    kind = raw.get("type")
    old_id = _ink_id(raw.get("id"))

    if kind == "line":
        a = _point(raw.get("a"))
        b = _point(raw.get("b"))
        if a is None or b is None:
            return None
        return {"type": "line", "a": a, "b": b}, old_id

    if kind in ("circle", "arc"):
        c = _point(raw.get("c"))
        r = _finite(raw.get("r"))
        if c is None or r is None or r <= 0:
            return None
        if kind == "circle":
            return {"type": "circle", "c": c, "r": r}, old_id
        a0 = _finite(raw.get("a0"))
        a1 = _finite(raw.get("a1"))
        if a0 is None or a1 is None:
            return None
        return {"type": "arc", "c": c, "r": r, "a0": a0, "a1": a1}, old_id

    return None


INK_MODELS = {"line": InkLine, "circle": InkCircle, "arc": InkArc}


def sanitize_fill(raw, valid_ids, id_map):
    """
    Validate one raw fill entry, remapping boundary ids.

    Unknown ids are dropped. A boundary list that had entries but loses
    all of them is treated as absent so the fill gets rediscovered.
    """
    if not isinstance(raw, dict):
        return None
    x = _finite(raw.get("x"))
    y = _finite(raw.get("y"))
    if x is None or y is None:
        return None

    boundary = None
    raw_ids = raw.get("boundaryInkIds")
    if isinstance(raw_ids, list):
        boundary = []
        for rid in raw_ids:
            ink_id = _ink_id(rid)
            if ink_id is None:
                continue
            mapped = id_map.get(ink_id, ink_id)
            if mapped in valid_ids and mapped not in boundary:
                boundary.append(mapped)
        if raw_ids and not boundary:
            boundary = None

    return FillRegion(
        x=x,
        y=y,
        boundary_ink_ids=boundary,
        uses_tile_boundary=raw.get("usesTileBoundary") is True,
    )


class _IdAllocator:
    def __init__(self):
        self.next_id = 1
        self.taken = set()

    def claim(self, wanted):
        """Keep wanted if it is free, otherwise hand out a fresh id."""
        if wanted is not None and wanted not in self.taken:
            ink_id = wanted
            self.next_id = max(self.next_id, ink_id + 1)
        else:
            ink_id = self.next_id
            while ink_id in self.taken:
                ink_id += 1
            self.next_id = ink_id + 1
        self.taken.add(ink_id)
        return ink_id


def sanitize_design(raw, allocator, shape=""):
    tracer = get_tracer()
    design = Design()
    if not isinstance(raw, dict):
        return design

    id_map = {}
    skipped = 0
    raw_ink = raw.get("ink") if isinstance(raw.get("ink"), list) else []
    for entry in raw_ink:
        parsed = sanitize_ink(entry)
        if parsed is None:
            skipped += 1
            continue
        fields, old_id = parsed
        new_id = allocator.claim(old_id)
        if old_id is not None and old_id not in id_map:
            id_map[old_id] = new_id
        design.ink.append(INK_MODELS[fields["type"]](id=new_id, **fields))

    valid_ids = set(design.ink_ids())
    raw_fills = raw.get("fills") if isinstance(raw.get("fills"), list) else []
    for entry in raw_fills:
        fill = sanitize_fill(entry, valid_ids, id_map)
        if fill is None:
            skipped += 1
            continue
        design.fills.append(fill)

    if skipped:
        tracer.event(f"Skipped {skipped} invalid entries in {shape or 'design'}", level="WARN")
    return design


@trace(label="parse_document")
def parse_document(raw):
    """
    Build a TileDocument from decoded JSON.

    Single-shape tilings also read singleTiles (plain designs or
    {"design": ...} entries) and activeSingleTileIndex. Every design
    draws from one id allocator, so ink ids stay unique document-wide.

    Raises:
        ValueError: if raw is not a JSON object
    """
    if not isinstance(raw, dict):
        raise ValueError("Invalid tile design JSON: root must be an object")

    tiling_id = raw.get("tilingId") if raw.get("tilingId") in TILINGS else DEFAULT_TILING
    shapes = TILINGS[tiling_id]

    raw_designs = raw.get("designs")
    if not isinstance(raw_designs, dict):
        raw_designs = raw.get("shapeDesigns")
    if not isinstance(raw_designs, dict):
        # single-design layout with ink and fills at the root
        raw_designs = {}
        fallback = raw.get("tileShape") if raw.get("tileShape") in shapes else shapes[0]
        if isinstance(raw.get("ink"), list) or isinstance(raw.get("fills"), list):
            raw_designs[fallback] = {"ink": raw.get("ink") or [], "fills": raw.get("fills") or []}

    raw_singles = []
    if len(shapes) == 1 and isinstance(raw.get("singleTiles"), list):
        raw_singles = raw["singleTiles"]

    allocator = _IdAllocator()
    designs = {}
    for shape in shapes:
        # designs[shape] mirrors the first single tile when those are present
        if raw_singles and shape == shapes[0]:
            continue
        designs[shape] = sanitize_design(raw_designs.get(shape), allocator, shape)

    single_tiles = []
    for i, entry in enumerate(raw_singles):
        raw_design = entry.get("design") if isinstance(entry, dict) and isinstance(entry.get("design"), dict) else entry
        single_tiles.append(sanitize_design(raw_design, allocator, f"{shapes[0]}[{i}]"))

    return TileDocument(
        tiling_id=tiling_id,
        tile_shape=raw.get("tileShape") if raw.get("tileShape") in shapes else shapes[0],
        designs=designs,
        single_tiles=single_tiles,
        active_single_tile_index=_tile_index(raw.get("activeSingleTileIndex"), max(1, len(single_tiles))),
        next_ink_id=max(1, allocator.next_id),
    )


def _tile_index(value, count):
    """Clamp a raw single-tile index into range; anything non-integral is 0."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if not isinstance(value, int):
        return 0
    return min(max(value, 0), count - 1)


def load_document(path):
    """
    Read a document from a JSON file.

    Raises:
        ValueError: if the file is not valid JSON or not a document
    """
    tracer = get_tracer()
    if not os.path.exists(path):
        raise ValueError(f"File not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except json.JSONDecodeError as e:
        tracer.event(f"Cannot parse {path}: {e}", level="ERROR")
        raise ValueError(f"Invalid tile design JSON: {e}") from e
    doc = parse_document(raw)
    tracer.event(f"Loaded document: {path}", doc=doc)
    return doc


def save_document(doc, path, indent=2):
    tracer = get_tracer()
    ensure_dir(os.path.dirname(path))
    with open(path, "w", encoding="utf-8") as f:
        json.dump(doc.to_record(), f, indent=indent)
    tracer.event(f"Saved document: {path}")
