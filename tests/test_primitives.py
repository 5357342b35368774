"""Tests for the primitive geometry kernel."""

import math

import pytest


class TestAngles:
    """Tests for angle arithmetic."""

    def test_angle_wrap_range(self):
        from tilefill.geometry.primitives import TAU, angle_wrap

        assert angle_wrap(-math.pi / 2) == pytest.approx(1.5 * math.pi)
        assert angle_wrap(TAU) == pytest.approx(0.0)
        assert 0 <= angle_wrap(-1e-12) < TAU

    def test_deltas(self):
        from tilefill.geometry.primitives import angle_delta_ccw, angle_delta_cw

        assert angle_delta_ccw(0.0, math.pi / 2) == pytest.approx(math.pi / 2)
        assert angle_delta_ccw(math.pi / 2, 0.0) == pytest.approx(1.5 * math.pi)
        assert angle_delta_cw(math.pi / 2, 0.0) == pytest.approx(math.pi / 2)

    def test_angle_in_arc_across_seam(self):
        from tilefill.geometry.primitives import angle_in_arc

        a0, a1 = 1.5 * math.pi, 0.5 * math.pi
        assert angle_in_arc(0.0, a0, a1)
        assert angle_in_arc(1.75 * math.pi, a0, a1)
        assert not angle_in_arc(math.pi, a0, a1)


class TestIntersections:
    """Tests for primitive intersections."""

    def test_line_line_cross(self):
        from tilefill.geometry.primitives import Segment, primitive_intersections

        a = Segment((-1.0, -1.0), (1.0, 1.0))
        b = Segment((-1.0, 1.0), (1.0, -1.0))
        pts = primitive_intersections(a, b)

        assert len(pts) == 1
        assert pts[0] == pytest.approx((0.0, 0.0))

    def test_parallel_lines_do_not_meet(self):
        from tilefill.geometry.primitives import Segment, primitive_intersections

        a = Segment((0.0, 0.0), (1.0, 0.0))
        b = Segment((0.0, 1.0), (1.0, 1.0))
        assert primitive_intersections(a, b) == []

    def test_segments_outside_extent(self):
        from tilefill.geometry.primitives import Segment, primitive_intersections

        a = Segment((0.0, 0.0), (1.0, 0.0))
        b = Segment((2.0, -1.0), (2.0, 1.0))
        assert primitive_intersections(a, b) == []

    def test_line_circle_two_points(self):
        from tilefill.geometry.primitives import Circle, Segment, primitive_intersections

        line = Segment((-10.0, 0.0), (10.0, 0.0))
        circle = Circle((0.0, 0.0), 5.0)
        pts = sorted(primitive_intersections(line, circle))

        assert len(pts) == 2
        assert pts[0] == pytest.approx((-5.0, 0.0))
        assert pts[1] == pytest.approx((5.0, 0.0))

    def test_line_arc_filters_by_span(self):
        from tilefill.geometry.primitives import Arc, Segment, primitive_intersections

        line = Segment((-10.0, 0.0), (10.0, 0.0))
        # right half of the circle, crossing the 0 angle seam
        arc = Arc((0.0, 0.0), 5.0, -math.pi / 2, math.pi / 2)
        pts = primitive_intersections(line, arc)

        assert len(pts) == 1
        assert pts[0] == pytest.approx((5.0, 0.0))

    def test_circle_circle(self):
        from tilefill.geometry.primitives import Circle, primitive_intersections

        a = Circle((0.0, 0.0), 5.0)
        b = Circle((6.0, 0.0), 5.0)
        pts = sorted(primitive_intersections(a, b))

        assert len(pts) == 2
        assert pts[0] == pytest.approx((3.0, -4.0))
        assert pts[1] == pytest.approx((3.0, 4.0))

    def test_concentric_circles_do_not_meet(self):
        from tilefill.geometry.primitives import Circle, primitive_intersections

        assert primitive_intersections(Circle((0.0, 0.0), 5.0), Circle((0.0, 0.0), 3.0)) == []

    def test_shared_endpoint_deduplicated(self):
        from tilefill.geometry.primitives import dedupe_points

        pts = dedupe_points([(1.0, 1.0), (1.0 + 1e-9, 1.0), (2.0, 2.0)])
        assert len(pts) == 2


class TestParameters:
    """Tests for parameterization and point-on-primitive."""

    def test_line_param_dominant_axis(self):
        from tilefill.geometry.primitives import Segment, param_at

        seg = Segment((0.0, 0.0), (10.0, 2.0))
        assert param_at(seg, (2.5, 0.5)) == pytest.approx(0.25)

        steep = Segment((0.0, 0.0), (1.0, 10.0))
        assert param_at(steep, (0.5, 5.0)) == pytest.approx(0.5)

    def test_circle_param_is_wrapped_angle(self):
        from tilefill.geometry.primitives import Circle, param_at

        c = Circle((1.0, 1.0), 2.0)
        assert param_at(c, (1.0, -1.0)) == pytest.approx(1.5 * math.pi)

    def test_point_on_primitive(self):
        from tilefill.geometry.primitives import Arc, Segment, point_on_primitive

        seg = Segment((0.0, 0.0), (10.0, 0.0))
        assert point_on_primitive(seg, (5.0, 0.00005))
        assert not point_on_primitive(seg, (5.0, 0.01))
        assert not point_on_primitive(seg, (11.0, 0.0))

        arc = Arc((0.0, 0.0), 1.0, 0.0, math.pi / 2)
        assert point_on_primitive(arc, (0.0, 1.0))
        assert not point_on_primitive(arc, (0.0, -1.0))

    def test_degenerate(self):
        from tilefill.geometry.primitives import Circle, Segment, is_degenerate

        assert is_degenerate(Segment((1.0, 1.0), (1.0, 1.0)))
        assert not is_degenerate(Segment((0.0, 0.0), (1.0, 0.0)))
        assert is_degenerate(Circle((0.0, 0.0), 0.0))
