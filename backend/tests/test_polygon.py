"""Tests for Polygon3d."""

from __future__ import annotations

import pytest

from spacegeom.geometry_engine.polygon import Polygon3d
from spacegeom.geometry_engine.primitives import Point3d


def _make_square(size: float = 10.0, z: float = 0.0) -> Polygon3d:
    """Counter-clockwise from above (normal +Z)."""
    return Polygon3d.from_coords([(0, 0, z), (size, 0, z), (size, size, z), (0, size, z)])


class TestAreas:
    """Gross and net area."""

    def test_gross_area(self):
        assert _make_square().gross_area == pytest.approx(100.0)

    def test_hole_reduces_net_area_only(self):
        hole = [Point3d(4, 4, 0), Point3d(4, 6, 0), Point3d(6, 6, 0), Point3d(6, 4, 0)]
        polygon = _make_square().with_hole(hole)
        assert polygon.gross_area == pytest.approx(100.0)
        assert polygon.net_area == pytest.approx(96.0)
        assert len(polygon.inner_paths) == 1

    def test_degenerate_polygon_has_zero_area(self):
        polygon = Polygon3d.from_coords([(0, 0, 0), (1, 0, 0), (2, 0, 0)])
        assert polygon.gross_area == 0.0
        assert polygon.is_degenerate()

    def test_built_point_by_point(self):
        polygon = Polygon3d()
        for p in [(0, 0, 0), (2, 0, 0), (2, 2, 0), (0, 2, 0)]:
            polygon = polygon.with_point(Point3d(*p))
        assert polygon.gross_area == pytest.approx(4.0)


class TestPerimeter:
    """Perimeter includes the closing edge."""

    def test_square(self):
        assert _make_square().perimeter == pytest.approx(40.0)

    def test_l_shape(self):
        polygon = Polygon3d.from_coords([(0, 0, 0), (4, 0, 0), (4, 2, 0), (2, 2, 0), (2, 4, 0), (0, 4, 0)])
        assert polygon.perimeter == pytest.approx(16.0)
        assert polygon.gross_area == pytest.approx(12.0)

    def test_holes_do_not_count(self):
        hole = [Point3d(4, 4, 0), Point3d(4, 6, 0), Point3d(6, 6, 0), Point3d(6, 4, 0)]
        assert _make_square().with_hole(hole).perimeter == pytest.approx(40.0)


class TestOrientation:
    """Normal, winding and centroid."""

    def test_up_facing_is_clockwise(self):
        assert _make_square().is_clockwise

    def test_floor_is_not_clockwise(self):
        floor = _make_square().reversed()
        assert floor.outward_normal.z == pytest.approx(-1.0)
        assert not floor.is_clockwise

    def test_degenerate_counts_as_clockwise(self):
        assert Polygon3d.from_coords([(0, 0, 0), (1, 0, 0)]).is_clockwise

    def test_newall_vector_of_degenerate_is_zero(self):
        assert Polygon3d.from_coords([(0, 0, 0), (1, 0, 0)]).newall_vector.is_zero()

    def test_centroid(self):
        c = _make_square(z=3.0).centroid
        assert (c.x, c.y, c.z) == pytest.approx((5.0, 5.0, 3.0))

    def test_edges_close_the_loop(self):
        edges = _make_square().edges()
        assert len(edges) == 4
        assert edges[-1] == (Point3d(0, 10, 0), Point3d(0, 0, 0))


class TestOverlap:
    """Collinear overlap between a line and the outer edges."""

    def test_segment_inside_edge(self):
        overlaps = _make_square().overlap([Point3d(2, 0, 0), Point3d(5, 0, 0)])
        assert len(overlaps) == 1
        start, end = overlaps[0]
        assert (end - start).length == pytest.approx(3.0)

    def test_segment_clipped_to_edge(self):
        overlaps = _make_square().overlap([Point3d(-5, 0, 0), Point3d(5, 0, 0)])
        assert len(overlaps) == 1
        start, end = overlaps[0]
        assert start == Point3d(0, 0, 0)
        assert (end - start).length == pytest.approx(5.0)

    def test_reversed_segment(self):
        overlaps = _make_square().overlap([Point3d(10, 8, 0), Point3d(10, 1, 0)])
        assert sum((e - s).length for s, e in overlaps) == pytest.approx(7.0)

    def test_parallel_offset_segment(self):
        assert _make_square().overlap([Point3d(2, 0.5, 0), Point3d(5, 0.5, 0)]) == []

    def test_crossing_segment(self):
        assert _make_square().overlap([Point3d(5, -1, 0), Point3d(5, 1, 0)]) == []

    def test_vertical_edge_above_plane(self):
        assert _make_square().overlap([Point3d(0, 0, 0), Point3d(0, 0, 3)]) == []

    def test_within_tolerance(self):
        overlaps = _make_square().overlap([Point3d(2, 0.005, 0), Point3d(5, 0.005, 0)], tolerance=0.01)
        assert len(overlaps) == 1

    def test_line_must_have_two_points(self):
        with pytest.raises(ValueError):
            _make_square().overlap([Point3d(0, 0, 0)])
