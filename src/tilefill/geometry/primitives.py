"""
Primitive geometry kernel for line, circle and arc strokes.

All primitives here live in tile-local coordinates (y axis pointing down).
Angles are radians; an arc runs from a0 to a1 in the direction of
increasing angle, wrapping through 2*pi when a1 < a0.

Degenerate primitives (zero-length segments, non-positive radii) are
filtered out by callers before they reach the intersection routines.
"""

import math
from dataclasses import dataclass


TAU = 2 * math.pi

POINT_EPS = 1e-4
DEDUPE_EPS = 1e-6


@dataclass(frozen=True)
class Segment:
    """A straight segment from a to b."""
    a: tuple
    b: tuple
    tile_edge: bool = False
    kind = "line"


@dataclass(frozen=True)
class Circle:
    """A full circle."""
    c: tuple
    r: float
    kind = "circle"


@dataclass(frozen=True)
class Arc:
    """An arc from angle a0 to a1, counter-clockwise in angle space."""
    c: tuple
    r: float
    a0: float
    a1: float
    kind = "arc"


# Vector helpers

def add(p, q):
    return (p[0] + q[0], p[1] + q[1])


def sub(p, q):
    return (p[0] - q[0], p[1] - q[1])


def scale(p, s):
    return (p[0] * s, p[1] * s)


def dot(p, q):
    return p[0] * q[0] + p[1] * q[1]


def cross(p, q):
    return p[0] * q[1] - p[1] * q[0]


def length(p):
    return math.hypot(p[0], p[1])


def normalize_or(vec, fallback=(1.0, 0.0)):
    """Unit vector along vec, or the fallback when vec is (near) zero."""
    n = length(vec)
    if n < 1e-6:
        return fallback
    return (vec[0] / n, vec[1] / n)


# Angle arithmetic

def angle_wrap(a):
    """Wrap an angle into [0, 2*pi)."""
    a = math.fmod(a, TAU)
    if a < 0:
        a += TAU
    if a >= TAU:
        a -= TAU
    return a


def angle_delta_ccw(a0, a1):
    """Angular distance walking from a0 to a1 in increasing-angle direction."""
    d = angle_wrap(a1) - angle_wrap(a0)
    if d < 0:
        d += TAU
    return d


def angle_delta_cw(a0, a1):
    return angle_delta_ccw(a1, a0)


def angle_in_arc(angle, a0, a1):
    """True if angle lies on the span a0 -> a1 (inclusive)."""
    aa = angle_wrap(angle)
    s = angle_wrap(a0)
    e = angle_wrap(a1)
    if s <= e:
        return s <= aa <= e
    return aa >= s or aa <= e


def point_on_circle(c, r, angle):
    return (c[0] + math.cos(angle) * r, c[1] + math.sin(angle) * r)


# Distances and parameters

def point_to_segment_distance(p, a, b):
    ab = sub(b, a)
    denom = dot(ab, ab) or 1.0
    t = min(1.0, max(0.0, dot(sub(p, a), ab) / denom))
    return length(sub(p, add(a, scale(ab, t))))


def line_param_at(a, b, p):
    """Fraction of p along a -> b, measured on the dominant axis."""
    dx = b[0] - a[0]
    dy = b[1] - a[1]
    if abs(dx) >= abs(dy):
        return (p[0] - a[0]) / dx if dx else 0.0
    return (p[1] - a[1]) / dy if dy else 0.0


def angle_at(prim, p):
    return angle_wrap(math.atan2(p[1] - prim.c[1], p[0] - prim.c[0]))


def param_at(prim, p):
    """Segment fraction for lines, wrapped angle for circles and arcs."""
    if prim.kind == "line":
        return line_param_at(prim.a, prim.b, p)
    return angle_at(prim, p)


def point_on_primitive(prim, p, eps=POINT_EPS):
    """Check that p lies on prim within eps (and inside an arc's span)."""
    if prim.kind == "line":
        if point_to_segment_distance(p, prim.a, prim.b) > eps:
            return False
        t = line_param_at(prim.a, prim.b, p)
        return -1e-6 <= t <= 1 + 1e-6

    if abs(length(sub(p, prim.c)) - prim.r) > eps:
        return False
    if prim.kind == "arc":
        return angle_in_arc(angle_at(prim, p), prim.a0, prim.a1)
    return True


def is_degenerate(prim, eps=1e-6):
    if prim.kind == "line":
        return length(sub(prim.b, prim.a)) <= eps
    return prim.r <= eps


# Intersections

def dedupe_points(points, eps=DEDUPE_EPS):
    out = []
    for p in points:
        if any(length(sub(p, q)) <= eps for q in out):
            continue
        out.append(p)
    return out


def segment_intersection(a0, a1, b0, b1):
    """Intersection of two segments via the 2D determinant; parallel -> []."""
    r = sub(a1, a0)
    s = sub(b1, b0)
    den = cross(r, s)
    if abs(den) < 1e-9:
        return []
    qp = sub(b0, a0)
    t = cross(qp, s) / den
    u = cross(qp, r) / den
    if t < -1e-7 or t > 1 + 1e-7 or u < -1e-7 or u > 1 + 1e-7:
        return []
    return [add(a0, scale(r, t))]


def segment_circle_intersections(a, b, c, r):
    """Intersections of segment a-b with the full circle (c, r)."""
    d = sub(b, a)
    f = sub(a, c)
    qa = dot(d, d)
    if qa < 1e-10:
        return []
    qb = 2 * dot(f, d)
    qc = dot(f, f) - r * r
    disc = qb * qb - 4 * qa * qc
    if disc < -1e-8:
        return []
    disc = max(0.0, disc)
    if disc <= 1e-8:
        ts = [-qb / (2 * qa)]
    else:
        root = math.sqrt(disc)
        ts = [(-qb - root) / (2 * qa), (-qb + root) / (2 * qa)]

    points = [add(a, scale(d, t)) for t in ts if -1e-7 <= t <= 1 + 1e-7]
    return dedupe_points(points)


def circle_circle_intersections(c0, r0, c1, r1):
    """Intersections of two full circles using the radical line construction."""
    d_vec = sub(c1, c0)
    d = length(d_vec)
    if d < 1e-8:
        return []
    if d > r0 + r1 + 1e-8:
        return []
    if d < abs(r0 - r1) - 1e-8:
        return []

    a = (r0 * r0 - r1 * r1 + d * d) / (2 * d)
    h2 = r0 * r0 - a * a
    if h2 < -1e-8:
        return []
    h = math.sqrt(max(0.0, h2))
    m = add(c0, scale(d_vec, a / d))
    rx = -d_vec[1] * h / d
    ry = d_vec[0] * h / d

    first = (m[0] + rx, m[1] + ry)
    if h <= 1e-8:
        return [first]
    return [first, (m[0] - rx, m[1] - ry)]


def primitive_intersections(p, q):
    """
    All points where two primitives meet, within both of their extents.

    Circle and arc pairs are solved as full circles first and then
    filtered by angular span.
    """
    if p.kind == "line" and q.kind == "line":
        points = segment_intersection(p.a, p.b, q.a, q.b)
    elif p.kind == "line":
        points = segment_circle_intersections(p.a, p.b, q.c, q.r)
    elif q.kind == "line":
        points = segment_circle_intersections(q.a, q.b, p.c, p.r)
    else:
        points = circle_circle_intersections(p.c, p.r, q.c, q.r)

    return [pt for pt in dedupe_points(points)
            if point_on_primitive(p, pt) and point_on_primitive(q, pt)]
