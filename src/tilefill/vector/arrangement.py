"""
Vector boundary reconstruction.

Rebuilds a fill region as closed vector loops from the strokes that bound
it:

1. Split every boundary primitive at its endpoints and at its
   intersections with the other boundary primitives.
2. Probe both sides of each resulting sub-edge against the fill mask and
   orient it so the interior lies on its left; sub-edges with the fill on
   both sides or neither are dropped.
3. Insert the oriented sub-edges into a directed arrangement (vertices
   merged on rounded coordinates) and walk it, always taking the smallest
   clockwise turn, to extract closed loops.

Vertices and edges live in flat lists and are referenced by index; the
networkx multigraph only stores the index adjacency.
"""

import math
from dataclasses import dataclass

import networkx as nx

from tilefill.config import EngineConfig
from tilefill.geometry.primitives import (
    TAU, add, angle_delta_ccw, angle_delta_cw, angle_in_arc, angle_wrap, cross, dot,
    is_degenerate, length, normalize_or, param_at, point_on_circle, primitive_intersections,
    scale, sub,
)
from tilefill.tracer import get_tracer, trace
from tilefill.vector.path import ArcTo, ClosedLoop, LineTo


@dataclass
class RawEdge:
    """An unoriented piece of a boundary primitive."""
    kind: str
    p0: tuple = None
    p1: tuple = None
    c: tuple = None
    r: float = 0.0
    a0: float = 0.0
    a1: float = 0.0


@dataclass
class DirectedEdge:
    """
    An oriented boundary sub-edge with the fill interior on its left.

    For arcs, direction 1 walks a0 -> a1 with increasing angle and -1
    walks it with decreasing angle.
    """
    kind: str
    start: tuple
    end: tuple
    start_dir: tuple
    end_dir: tuple
    c: tuple = None
    r: float = 0.0
    a0: float = 0.0
    a1: float = 0.0
    direction: int = 1
    start_vertex: int = -1
    end_vertex: int = -1


def push_unique(values, value, eps=1e-6):
    for v in values:
        if abs(v - value) <= eps:
            return
    values.append(value)


def normalize_angle_list(angles, eps=1e-6):
    """Wrap, sort and de-duplicate angles, merging values across the 0/2*pi seam."""
    vals = sorted(angle_wrap(a) for a in angles)
    out = []
    for a in vals:
        if not out or abs(a - out[-1]) > eps:
            out.append(a)
    if len(out) > 1 and abs(out[0] + TAU - out[-1]) < eps:
        out.pop()
    return out


def split_parameters(primitives, eps=1e-6):
    """
    Split parameters for each primitive: its own endpoints plus every
    intersection with another primitive.
    """
    splits = [[] for _ in primitives]
    for i, prim in enumerate(primitives):
        if prim.kind == "line":
            push_unique(splits[i], 0.0, eps)
            push_unique(splits[i], 1.0, eps)
        elif prim.kind == "arc":
            push_unique(splits[i], angle_wrap(prim.a0), eps)
            push_unique(splits[i], angle_wrap(prim.a1), eps)

    for i in range(len(primitives)):
        for j in range(i + 1, len(primitives)):
            for p in primitive_intersections(primitives[i], primitives[j]):
                push_unique(splits[i], param_at(primitives[i], p), eps)
                push_unique(splits[j], param_at(primitives[j], p), eps)

    return splits


def slice_primitive(prim, params, eps=1e-6):
    """Cut one primitive into raw sub-edges between consecutive split parameters."""
    edges = []

    if prim.kind == "line":
        ts = []
        for t in sorted(params):
            if not ts or abs(t - ts[-1]) > eps:
                ts.append(t)
        if not ts:
            return edges
        if abs(ts[0]) > eps:
            ts.insert(0, 0.0)
        if abs(ts[-1] - 1) > eps:
            ts.append(1.0)
        d = sub(prim.b, prim.a)
        for t0, t1 in zip(ts, ts[1:]):
            t0 = min(1.0, max(0.0, t0))
            t1 = min(1.0, max(0.0, t1))
            if t1 - t0 <= eps:
                continue
            edges.append(RawEdge("line", p0=add(prim.a, scale(d, t0)), p1=add(prim.a, scale(d, t1))))
        return edges

    if prim.kind == "arc":
        s = angle_wrap(prim.a0)
        e = angle_wrap(prim.a1)
        if angle_delta_ccw(s, e) <= eps:
            return edges
        vals = normalize_angle_list([a for a in params if angle_in_arc(a, s, e)] + [s, e], eps)
        # walk forward from the arc start; the end angle sorts last
        vals.sort(key=lambda a: (a - s) % TAU if abs(a - e) > eps else TAU)
        for a0, a1 in zip(vals, vals[1:]):
            if angle_delta_ccw(a0, a1) <= eps:
                continue
            edges.append(RawEdge("arc", c=prim.c, r=prim.r, a0=a0, a1=a1))
        return edges

    vals = normalize_angle_list(params, eps)
    if not vals:
        vals = [0.0, math.pi]
    elif len(vals) == 1:
        vals = normalize_angle_list([vals[0], vals[0] + math.pi], eps)
    if len(vals) < 2:
        return edges
    for k, a0 in enumerate(vals):
        a1 = vals[0] + TAU if k == len(vals) - 1 else vals[k + 1]
        if a1 - a0 <= eps:
            continue
        edges.append(RawEdge("arc", c=prim.c, r=prim.r, a0=a0, a1=a1))
    return edges


def boundary_side(mid, normal_left, sample_base, is_inside, multipliers=(1, 2, 4)):
    """
    Which side of an edge the fill lies on: "left", "right", or None when
    the probes never disagree.
    """
    for m in multipliers:
        d = sample_base * m
        inside_left = is_inside(add(mid, scale(normal_left, d)))
        inside_right = is_inside(add(mid, scale(normal_left, -d)))
        if inside_left != inside_right:
            return "left" if inside_left else "right"
    return None


def orient_edge(edge, sample_base, is_inside, multipliers=(1, 2, 4)):
    """Orient a raw edge so the fill interior is on its left, or return None."""
    if edge.kind == "line":
        if length(sub(edge.p1, edge.p0)) <= 1e-6:
            return None
        d = normalize_or(sub(edge.p1, edge.p0))
        mid = scale(add(edge.p0, edge.p1), 0.5)
        side = boundary_side(mid, (-d[1], d[0]), sample_base, is_inside, multipliers)
        if side is None:
            return None
        start, end = (edge.p0, edge.p1) if side == "left" else (edge.p1, edge.p0)
        direction = normalize_or(sub(end, start))
        return DirectedEdge("line", start, end, direction, direction)

    delta = angle_delta_ccw(edge.a0, edge.a1)
    if delta <= 1e-6:
        return None
    mid_angle = edge.a0 + delta * 0.5
    mid = point_on_circle(edge.c, edge.r, mid_angle)
    tangent = (-math.sin(mid_angle), math.cos(mid_angle))
    side = boundary_side(mid, (-tangent[1], tangent[0]), sample_base, is_inside, multipliers)
    if side is None:
        return None

    direction = 1 if side == "left" else -1
    a_start, a_end = (edge.a0, edge.a1) if direction == 1 else (edge.a1, edge.a0)

    def tangent_at(a):
        if direction == 1:
            return normalize_or((-math.sin(a), math.cos(a)))
        return normalize_or((math.sin(a), -math.cos(a)))

    return DirectedEdge(
        "arc",
        start=point_on_circle(edge.c, edge.r, a_start),
        end=point_on_circle(edge.c, edge.r, a_end),
        start_dir=tangent_at(a_start),
        end_dir=tangent_at(a_end),
        c=edge.c,
        r=edge.r,
        a0=a_start,
        a1=a_end,
        direction=direction,
    )


class Arrangement:
    """
    Directed planar arrangement of oriented sub-edges.

    Vertices are merged by coordinates rounded to key_decimals places and
    referenced by integer id, as are edges.
    """

    def __init__(self, key_decimals=4):
        self.key_decimals = key_decimals
        self.vertices = []
        self.edges = []
        self.graph = nx.MultiDiGraph()
        self._vertex_ids = {}

    def vertex_key(self, p):
        return (round(p[0], self.key_decimals) + 0.0, round(p[1], self.key_decimals) + 0.0)

    def vertex_id(self, p):
        key = self.vertex_key(p)
        vid = self._vertex_ids.get(key)
        if vid is None:
            vid = len(self.vertices)
            self._vertex_ids[key] = vid
            self.vertices.append(p)
            self.graph.add_node(vid)
        return vid

    def add_edge(self, edge):
        edge.start_vertex = self.vertex_id(edge.start)
        edge.end_vertex = self.vertex_id(edge.end)
        idx = len(self.edges)
        self.edges.append(edge)
        self.graph.add_edge(edge.start_vertex, edge.end_vertex, key=idx)
        return idx

    def outgoing(self, vid):
        return [key for _, _, key in self.graph.out_edges(vid, keys=True)]

    def _pick_next(self, vid, prev_dir, used):
        candidates = [idx for idx in self.outgoing(vid) if not used[idx]]
        if not candidates:
            return -1
        if len(candidates) == 1:
            return candidates[0]

        best_idx = -1
        best_turn = math.inf
        for idx in candidates:
            d = self.edges[idx].start_dir
            turn = math.atan2(cross(prev_dir, d), dot(prev_dir, d))
            if turn < 0:
                turn += TAU
            if turn < best_turn:
                best_turn = turn
                best_idx = idx
        return best_idx

    def extract_loops(self):
        """
        Walk every unused edge into a loop.

        Returns lists of edge indices for walks that came back to their
        starting vertex; open chains and runaway walks are discarded.
        """
        used = [False] * len(self.edges)
        loops = []
        dropped = 0

        for first in range(len(self.edges)):
            if used[first]:
                continue
            loop = []
            cur = first
            start_vertex = self.edges[first].start_vertex
            closed = False
            for _ in range(len(self.edges) + 5):
                if used[cur]:
                    break
                edge = self.edges[cur]
                used[cur] = True
                loop.append(cur)
                if edge.end_vertex == start_vertex:
                    closed = True
                    break
                nxt = self._pick_next(edge.end_vertex, edge.end_dir, used)
                if nxt < 0:
                    break
                cur = nxt
            if closed and loop:
                loops.append(loop)
            else:
                dropped += 1

        get_tracer().event(f"Loops: {len(loops)} closed, {dropped} open", level="DEBUG")
        return loops

    def loop_to_commands(self, loop):
        """Emit one loop as a ClosedLoop of line and arc commands."""
        first = self.edges[loop[0]]
        commands = []
        for idx in loop:
            edge = self.edges[idx]
            if edge.kind == "line":
                commands.append(LineTo(to=list(edge.end)))
                continue
            if edge.direction == 1:
                delta = angle_delta_ccw(edge.a0, edge.a1)
            else:
                delta = angle_delta_cw(edge.a0, edge.a1)
            commands.append(ArcTo(
                to=list(edge.end),
                radius=edge.r,
                large_arc=delta > math.pi,
                sweep=edge.direction == 1,
            ))
        return ClosedLoop(start=list(first.start), commands=commands)


def boundary_primitives(tile, inks, uses_tile_boundary):
    """Local primitives for boundary ink (plus tile edges), degenerate ones skipped."""
    prims = []
    for ink in inks:
        prim = tile.ink_to_local(ink)
        if not is_degenerate(prim):
            prims.append(prim)
    if uses_tile_boundary:
        prims.extend(tile.edges())
    return prims


def sample_base_for(tile, config):
    vc = config.vector
    return max(vc.min_sample_px * config.render_scale, tile.side * vc.sample_side_fraction)


@trace(label="reconstruct_loops")
def reconstruct_loops(primitives, is_inside, sample_base, config=None):
    """
    Reconstruct closed loops bounding the region that is_inside describes.

    Args:
        primitives: kernel primitives in local units
        is_inside: callable(point_local) -> bool built from the fill mask
        sample_base: smallest side-probe offset in local units
        config: EngineConfig

    Returns:
        list of ClosedLoop
    """
    config = config or EngineConfig()
    vc = config.vector
    tracer = get_tracer()

    if not primitives:
        return []

    splits = split_parameters(primitives, vc.param_epsilon)
    raw_edges = []
    for prim, params in zip(primitives, splits):
        raw_edges.extend(slice_primitive(prim, params, vc.param_epsilon))

    arrangement = Arrangement(key_decimals=vc.key_decimals)
    for raw in raw_edges:
        edge = orient_edge(raw, sample_base, is_inside, tuple(vc.sample_multipliers))
        if edge is not None:
            arrangement.add_edge(edge)

    tracer.event(f"Sub-edges: {len(raw_edges)} raw, {len(arrangement.edges)} oriented",
                 graph=arrangement.graph)

    if not arrangement.edges:
        return []

    return [arrangement.loop_to_commands(loop) for loop in arrangement.extract_loops()]
