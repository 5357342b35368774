"""
Minimal boundary discovery.

Finds which ink strokes actually bound a fill region by re-running the
flood fill with each stroke left out in turn. A stroke whose removal
changes the mask (or invalidates the seed) is load-bearing; everything
else is dropped from the fill's boundary set.

This is greedy: two strokes that are each redundant only while the other
is present are both kept. The result is locally, not globally, minimal.
"""

from dataclasses import dataclass

from tilefill.config import EngineConfig
from tilefill.fill.raster import compute_fill_mask
from tilefill.tracer import get_tracer, trace


@dataclass
class BoundaryDiscovery:
    """Outcome of discovery for one seed."""
    boundary_ink_ids: list
    uses_tile_boundary: bool
    data: object
    candidates_tested: int = 0


@trace(label="discover_fill_boundary")
def discover_fill_boundary(seed_world, tile, design, config=None, candidate_ids=None, debug_writer=None):
    """
    Determine the load-bearing ink for the region around a seed.

    Args:
        seed_world: seed point in world units
        tile: TileFrame
        design: Design holding the ink
        config: EngineConfig
        candidate_ids: ink ids to consider; defaults to every ink in the design
        debug_writer: optional DebugArtifactWriter

    Returns:
        BoundaryDiscovery, or None if the seed is invalid
    """
    config = config or EngineConfig()
    tracer = get_tracer()

    if candidate_ids is None:
        candidate_ids = design.ink_ids()
    candidate_ids = [i for i in candidate_ids if isinstance(i, int) and i > 0]

    full = compute_fill_mask(seed_world, tile, design, candidate_ids, config, check_closure=False)
    if full is None:
        tracer.event("Seed invalid, no fill", level="DEBUG")
        return None

    retained = []
    with tracer.span("drop_one", module="discovery", candidates=len(candidate_ids)):
        for ink_id in candidate_ids:
            without = [c for c in candidate_ids if c != ink_id]
            trial = compute_fill_mask(seed_world, tile, design, without, config, check_closure=False)
            if trial is None or trial.content_signature != full.content_signature:
                retained.append(ink_id)

    retained.sort()
    tracer.event(f"Load-bearing ink: {len(retained)}/{len(candidate_ids)}", ids=retained)

    data = compute_fill_mask(seed_world, tile, design, retained, config, check_closure=True)
    if data is None:
        return None

    if debug_writer:
        tag = f"seed_{seed_world[0]:.4f}_{seed_world[1]:.4f}"
        debug_writer.save_mask(data.mask, "discovery", f"{tag}_mask.png")
        debug_writer.save_json({
            "seed": list(seed_world),
            "tile_shape": tile.shape,
            "tile_side": tile.side,
            "candidates": candidate_ids,
            "boundary_ink_ids": retained,
            "touched_ink_ids": data.boundary_ink_ids,
            "uses_tile_boundary": data.uses_tile_boundary,
            "closed_by_ink": data.closed_by_ink,
            "content_signature": data.content_signature,
            "area_px": data.area_px,
        }, "discovery", f"{tag}_metrics.json")

    return BoundaryDiscovery(
        boundary_ink_ids=retained,
        uses_tile_boundary=data.uses_tile_boundary,
        data=data,
        candidates_tested=len(candidate_ids),
    )
