"""Tests for polygon intersection, union and spike removal."""

from __future__ import annotations

import itertools
import math

import pytest

from spacegeom.geometry_engine.boolean_ops import (
    intersect,
    join,
    join_all,
    polygon_contains,
    polygons_coincide,
    remove_spikes,
)
from spacegeom.geometry_engine.polygon import Polygon3d
from spacegeom.geometry_engine.primitives import Point3d, Vector3d, circular_equal
from spacegeom.geometry_engine.transformation import Transformation

TOL = 0.01


# ──────────────────────────────────────────────────────────────────
# HELPERS
# ──────────────────────────────────────────────────────────────────

def _make_rect(x0, y0, x1, y1, z=0.0, up=True) -> Polygon3d:
    """Axis-aligned rectangle; ``up`` gives a +Z normal, otherwise -Z."""
    polygon = Polygon3d.from_coords([(x0, y0, z), (x1, y0, z), (x1, y1, z), (x0, y1, z)])
    return polygon if up else polygon.reversed()


def _make_strips() -> list[Polygon3d]:
    """A 10 x 10 floor split into four 2.5 x 10 strips."""
    return [_make_rect(2.5 * i, 0, 2.5 * (i + 1), 10, up=False) for i in range(4)]


def _total_area(polygons) -> float:
    return sum(p.net_area for p in polygons)


# ──────────────────────────────────────────────────────────────────
# INTERSECT
# ──────────────────────────────────────────────────────────────────

class TestIntersect:
    """Intersection of two coplanar polygons."""

    def test_opposing_unit_squares(self):
        a = _make_rect(0, 0, 1, 1)
        b = _make_rect(0, 0, 1, 1, up=False)
        result = intersect(a, b, TOL)
        assert result is not None
        assert result.polygon1.gross_area == pytest.approx(1.0)
        assert result.polygon2.gross_area == pytest.approx(1.0)
        assert result.new_polygons1 == []
        assert result.new_polygons2 == []
        assert result.polygon1.outward_normal.z == pytest.approx(1.0)
        assert result.polygon2.outward_normal.z == pytest.approx(-1.0)
        assert circular_equal(result.polygon1.outer_path, a.outer_path, 1e-9)

    def test_partial_overlap_conserves_area(self):
        a = _make_rect(0, 0, 2, 1)
        b = _make_rect(1, 0, 3, 1, up=False)
        result = intersect(a, b, TOL)
        assert result.overlap_area == pytest.approx(1.0)
        rem1 = _total_area(result.new_polygons1)
        rem2 = _total_area(result.new_polygons2)
        assert rem1 == pytest.approx(1.0)
        assert rem2 == pytest.approx(1.0)
        assert a.gross_area + b.gross_area == pytest.approx(rem1 + rem2 + 2 * result.overlap_area)

    def test_remainders_keep_input_winding(self):
        a = _make_rect(0, 0, 2, 1)
        b = _make_rect(1, 0, 3, 1, up=False)
        result = intersect(a, b, TOL)
        assert all(p.outward_normal.z == pytest.approx(1.0) for p in result.new_polygons1)
        assert all(p.outward_normal.z == pytest.approx(-1.0) for p in result.new_polygons2)

    def test_disjoint_polygons(self):
        assert intersect(_make_rect(0, 0, 1, 1), _make_rect(2, 0, 3, 1, up=False), TOL) is None

    def test_shared_edge_only(self):
        assert intersect(_make_rect(0, 0, 1, 1), _make_rect(1, 0, 2, 1, up=False), TOL) is None

    def test_not_coplanar(self):
        assert intersect(_make_rect(0, 0, 1, 1), _make_rect(0, 0, 1, 1, z=1.0, up=False), TOL) is None

    def test_not_parallel(self):
        floor = _make_rect(0, 0, 1, 1)
        wall = Polygon3d.from_coords([(0, 0, 1), (0, 0, 0), (0, 1, 0), (0, 1, 1)])
        assert intersect(floor, wall, TOL) is None

    def test_degenerate_input_reported(self):
        warnings: list[str] = []
        line = Polygon3d.from_coords([(0, 0, 0), (1, 0, 0), (2, 0, 0)])
        assert intersect(line, _make_rect(0, 0, 1, 1), TOL, warnings) is None
        assert warnings

    def test_invalid_tolerance(self):
        with pytest.raises(ValueError):
            intersect(_make_rect(0, 0, 1, 1), _make_rect(0, 0, 1, 1), 0.0)

    def test_concave_remainder(self):
        # Ceiling below spans 10 x 10; floor above covers 3..7 x 0..5 on its edge
        bottom = _make_rect(0, 0, 10, 10, z=1.0)
        top = _make_rect(3, 0, 7, 5, z=1.0, up=False)
        result = intersect(bottom, top, TOL)
        assert result.overlap_area == pytest.approx(20.0)
        assert len(result.polygon1.outer_path) == 4
        assert result.new_polygons2 == []
        assert len(result.new_polygons1) == 1
        assert len(result.new_polygons1[0].outer_path) == 8
        assert result.new_polygons1[0].gross_area == pytest.approx(80.0)

    def test_enclosed_overlap_splits_remainder_without_holes(self):
        outer = _make_rect(0, 0, 10, 10)
        inner = _make_rect(4, 4, 6, 6, up=False)
        result = intersect(outer, inner, TOL)
        assert result.overlap_area == pytest.approx(4.0)
        assert len(result.new_polygons1) == 2
        assert all(not p.inner_paths for p in result.new_polygons1)
        assert _total_area(result.new_polygons1) == pytest.approx(96.0)

    @pytest.mark.parametrize("degrees", [0, 10, 30, 45, 90, 170, 260])
    def test_area_conserved_under_rotation(self, degrees):
        t = Transformation.translation(Vector3d(3, -2, 5)) * Transformation.rotation(
            Vector3d(1, 2, 3), math.radians(degrees))
        a = t * _make_rect(0, 0, 20, 10)
        b = t * _make_rect(5, 0, 10, 10, up=False)
        result = intersect(a, b, TOL)
        assert result.overlap_area == pytest.approx(50.0, abs=1e-6)
        assert _total_area(result.new_polygons1) == pytest.approx(150.0, abs=1e-6)
        assert result.new_polygons2 == []
        assert all(len(p.outer_path) == 4 for p in [result.polygon1] + result.new_polygons1)

    def test_near_coincident_edges_snap(self):
        a = _make_rect(0, 0, 10, 3)
        b = _make_rect(0.004, 0.003, 10.004, 3.003, up=False)
        result = intersect(a, b, TOL)
        assert result.overlap_area == pytest.approx(30.0)
        assert result.new_polygons1 == []
        assert result.new_polygons2 == []

    def test_sliver_overlap_is_dropped_and_reported(self):
        warnings: list[str] = []
        a = _make_rect(0, 0, 10, 10)
        b = _make_rect(9.995, 3, 20, 6, up=False)
        assert intersect(a, b, TOL, warnings) is None
        assert any("sliver" in w for w in warnings)


# ──────────────────────────────────────────────────────────────────
# UNION
# ──────────────────────────────────────────────────────────────────

class TestJoinAll:
    """Union of coplanar polygon sets."""

    def test_singleton_is_unchanged(self):
        square = _make_rect(0, 0, 10, 10)
        joined = join_all([square], TOL)
        assert len(joined) == 1
        assert circular_equal(joined[0].outer_path, square.outer_path, 1e-9)

    def test_singleton_floor_keeps_winding(self):
        floor = _make_rect(0, 0, 10, 10, up=False)
        joined = join_all([floor], TOL)
        assert circular_equal(joined[0].outer_path, floor.outer_path, 1e-9)

    def test_strips_in_every_order(self):
        strips = _make_strips()
        expected = join_all(strips, TOL)
        assert len(expected) == 1
        assert len(expected[0].outer_path) == 4
        assert expected[0].net_area == pytest.approx(100.0, abs=TOL)

        for order in itertools.permutations(strips):
            joined = join_all(list(order), TOL)
            assert len(joined) == 1
            assert len(joined[0].outer_path) == 4
            assert joined[0].net_area == pytest.approx(100.0, abs=TOL)
            assert circular_equal(joined[0].outer_path, expected[0].outer_path, 1e-6)

    def test_regrouped_union_matches(self):
        strips = _make_strips()
        whole = join_all(strips, TOL)
        regrouped = join_all(join_all(strips[:1] + strips[3:], TOL) + join_all(strips[1:3], TOL), TOL)
        assert len(regrouped) == 1
        assert circular_equal(regrouped[0].outer_path, whole[0].outer_path, 1e-6)

    def test_mixed_winding(self):
        strips = _make_strips()
        strips[1] = strips[1].reversed()
        strips[3] = strips[3].reversed()
        joined = join_all(strips, TOL)
        assert len(joined) == 1
        assert len(joined[0].outer_path) == 4
        assert joined[0].net_area == pytest.approx(100.0, abs=TOL)

    @pytest.mark.parametrize("degrees", [15, 37, 90, 210])
    def test_rotated_partition(self, degrees):
        t = Transformation.translation(Vector3d(100, 50, 3)) * Transformation.rotation(
            Vector3d(0, 0, 1), math.radians(degrees))
        joined = join_all([t * s for s in _make_strips()], TOL)
        assert len(joined) == 1
        assert len(joined[0].outer_path) == 4
        assert joined[0].net_area == pytest.approx(100.0, abs=TOL)
        assert joined[0].outward_normal.z == pytest.approx(-1.0)
        assert all(p.z == pytest.approx(3.0) for p in joined[0].outer_path)

    def test_gap_below_tolerance_closed(self):
        joined = join_all([_make_rect(0, 0, 5, 10), _make_rect(5.004, 0, 10, 10)], TOL)
        assert len(joined) == 1
        assert len(joined[0].outer_path) == 4
        assert joined[0].net_area == pytest.approx(100.0, abs=0.05)

    def test_ring_of_squares_has_hole(self):
        squares = [
            _make_rect(i, j, i + 1, j + 1)
            for i in range(3) for j in range(3) if (i, j) != (1, 1)
        ]
        joined = join_all(squares, TOL)
        assert len(joined) == 1
        assert len(joined[0].outer_path) == 4
        assert len(joined[0].inner_paths) == 1
        assert len(joined[0].inner_paths[0]) == 4
        assert joined[0].gross_area == pytest.approx(9.0)
        assert joined[0].net_area == pytest.approx(8.0)

    def test_disjoint_results_largest_first(self):
        joined = join_all([_make_rect(20, 0, 21, 1), _make_rect(0, 0, 3, 3)], TOL)
        assert len(joined) == 2
        assert joined[0].gross_area == pytest.approx(9.0)
        assert joined[1].gross_area == pytest.approx(1.0)

    def test_off_plane_polygon_dropped(self):
        warnings: list[str] = []
        joined = join_all([_make_rect(0, 0, 2, 2), _make_rect(2, 0, 3, 1, z=1.0)], TOL, warnings)
        assert len(joined) == 1
        assert joined[0].gross_area == pytest.approx(4.0)
        assert any("coplanar" in w for w in warnings)

    def test_degenerate_polygon_dropped(self):
        warnings: list[str] = []
        line = Polygon3d.from_coords([(0, 0, 0), (1, 0, 0)])
        joined = join_all([_make_rect(0, 0, 1, 1), line], TOL, warnings)
        assert len(joined) == 1
        assert any("degenerate" in w for w in warnings)

    def test_sliver_polygon_dropped(self):
        warnings: list[str] = []
        sliver = Polygon3d.from_coords([(20, 0, 0), (30, 0, 0), (30.5, 0.008, 0), (20.5, 0.008, 0)])
        joined = join_all([_make_rect(0, 0, 10, 10), sliver], TOL, warnings)
        assert len(joined) == 1
        assert joined[0].gross_area == pytest.approx(100.0)
        assert any("sliver" in w for w in warnings)

    def test_empty_input(self):
        assert join_all([], TOL) == []


class TestJoin:
    """Union of two polygons."""

    def test_abutting(self):
        joined = join(_make_rect(0, 0, 1, 1), _make_rect(1, 0, 2, 1), TOL)
        assert joined.gross_area == pytest.approx(2.0)
        assert len(joined.outer_path) == 4

    def test_disjoint(self):
        assert join(_make_rect(0, 0, 1, 1), _make_rect(5, 0, 6, 1), TOL) is None


# ──────────────────────────────────────────────────────────────────
# SPIKES
# ──────────────────────────────────────────────────────────────────

class TestRemoveSpikes:
    """Spike and near-duplicate vertex removal."""

    def test_thin_spike(self):
        spiky = Polygon3d.from_coords([
            (0, 0, 0), (10, 0, 0), (10, 10, 0), (5.001, 10, 0), (5, 15, 0), (5, 10, 0), (0, 10, 0),
        ])
        cleaned = remove_spikes(spiky, TOL)
        assert len(cleaned.outer_path) == 4
        assert cleaned.gross_area == pytest.approx(100.0, abs=TOL)

    def test_zero_width_spike(self):
        spiky = Polygon3d.from_coords([
            (0, 0, 0), (10, 0, 0), (10, 10, 0), (5, 10, 0), (5, 15, 0), (5, 10, 0), (0, 10, 0),
        ])
        cleaned = remove_spikes(spiky, TOL)
        assert len(cleaned.outer_path) == 4
        assert cleaned.gross_area == pytest.approx(100.0, abs=TOL)

    def test_near_duplicate_and_collinear_vertices(self):
        noisy = Polygon3d.from_coords([
            (0, 0, 0), (5, 0, 0), (10, 0, 0), (10, 10, 0), (10.0001, 10, 0), (0, 10, 0),
        ])
        cleaned = remove_spikes(noisy, TOL)
        assert len(cleaned.outer_path) == 4
        assert cleaned.gross_area == pytest.approx(100.0, abs=TOL)

    def test_clean_polygon_unchanged(self):
        square = _make_rect(0, 0, 10, 10, up=False)
        cleaned = remove_spikes(square, TOL)
        assert circular_equal(cleaned.outer_path, square.outer_path, 1e-9)

    def test_sliver_removed_entirely(self):
        warnings: list[str] = []
        assert remove_spikes(_make_rect(0, 0, 10, 0.005), TOL, warnings) is None
        assert warnings


class TestRegionQueries:
    """Containment and coincidence helpers."""

    def test_contains(self):
        assert polygon_contains(_make_rect(0, 0, 10, 10), _make_rect(2, 2, 3, 3), TOL)
        assert not polygon_contains(_make_rect(0, 0, 10, 10), _make_rect(9, 2, 11, 3), TOL)
        assert not polygon_contains(_make_rect(0, 0, 10, 10), _make_rect(2, 2, 3, 3, z=1.0), TOL)

    def test_coincide_ignores_winding_and_start(self):
        a = _make_rect(0, 0, 2, 2)
        b = Polygon3d.from_coords([(2, 2, 0), (0, 2, 0), (0, 1, 0), (0, 0, 0), (2, 0, 0)])
        assert polygons_coincide(a, b.reversed(), TOL)
        assert not polygons_coincide(a, _make_rect(0, 0, 2, 2.5), TOL)

    @pytest.mark.parametrize("shift, expected", [(0.005, True), (0.015, False), (0.019, False)])
    def test_coincide_rejects_offset_beyond_tolerance(self, shift, expected):
        a = _make_rect(0, 0, 1, 1)
        b = _make_rect(shift, 0, 1 + shift, 1)
        assert polygons_coincide(a, b, TOL) is expected
