"""
Polygon3d: a planar outer loop with zero or more holes.

Loops never repeat the closing vertex. Holes are assumed coplanar with the
outer loop. Area and perimeter queries use the outer loop only, except
``net_area`` which subtracts the holes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from spacegeom.geometry_engine.plane import (
    get_area,
    get_centroid,
    get_newall_vector,
    get_outward_normal,
)
from spacegeom.geometry_engine.primitives import (
    POINT_TOLERANCE,
    Point3d,
    Vector3d,
    get_distance,
    remove_duplicate_points,
    to_points,
)
from spacegeom.geometry_engine.transformation import Transformation


@dataclass(frozen=True)
class Polygon3d:
    outer_path: tuple[Point3d, ...] = ()
    inner_paths: tuple[tuple[Point3d, ...], ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "outer_path", tuple(self.outer_path))
        object.__setattr__(self, "inner_paths", tuple(tuple(h) for h in self.inner_paths))

    @classmethod
    def from_coords(
        cls,
        outer: Sequence[Sequence[float]],
        holes: Sequence[Sequence[Sequence[float]]] = (),
    ) -> Polygon3d:
        return cls(tuple(to_points(outer)), tuple(tuple(to_points(h)) for h in holes))

    def with_point(self, point: Point3d) -> Polygon3d:
        return Polygon3d(self.outer_path + (point,), self.inner_paths)

    def with_hole(self, hole: Sequence[Point3d]) -> Polygon3d:
        return Polygon3d(self.outer_path, self.inner_paths + (tuple(hole),))

    # ── derived quantities ──

    @property
    def newall_vector(self) -> Vector3d:
        return get_newall_vector(self.outer_path) or Vector3d()

    @property
    def outward_normal(self) -> Optional[Vector3d]:
        return get_outward_normal(self.outer_path)

    @property
    def gross_area(self) -> float:
        return get_area(self.outer_path) or 0.0

    @property
    def net_area(self) -> float:
        return self.gross_area - sum(get_area(h) or 0.0 for h in self.inner_paths)

    @property
    def perimeter(self) -> float:
        return sum(get_distance(p1, p2) for p1, p2 in self.edges())

    @property
    def centroid(self) -> Optional[Point3d]:
        return get_centroid(self.outer_path)

    @property
    def is_clockwise(self) -> bool:
        """Clockwise when viewed from below; also True when there is no normal."""
        normal = self.outward_normal
        if normal is None:
            return True
        return normal.z > 0

    def is_degenerate(self, tolerance: float = POINT_TOLERANCE) -> bool:
        loop = remove_duplicate_points(self.outer_path, tolerance)
        return len(loop) < 3 or get_newall_vector(loop) is None

    def edges(self) -> list[tuple[Point3d, Point3d]]:
        n = len(self.outer_path)
        return [(self.outer_path[i], self.outer_path[(i + 1) % n]) for i in range(n)] if n > 1 else []

    def reversed(self) -> Polygon3d:
        return Polygon3d(
            tuple(reversed(self.outer_path)),
            tuple(tuple(reversed(h)) for h in self.inner_paths),
        )

    def transformed(self, transformation: Transformation) -> Polygon3d:
        return Polygon3d(
            tuple(transformation.apply_points(self.outer_path)),
            tuple(tuple(transformation.apply_points(h)) for h in self.inner_paths),
        )

    def overlap(
        self,
        line: Sequence[Point3d],
        tolerance: float = POINT_TOLERANCE,
    ) -> list[tuple[Point3d, Point3d]]:
        """
        Collinear overlaps between a line segment and the outer edges.

        Each returned segment runs along the polygon edge it came from. Only
        overlaps longer than the tolerance count.
        """
        if len(line) != 2:
            raise ValueError("overlap expects a line of exactly two points")
        start, end = line
        overlaps: list[tuple[Point3d, Point3d]] = []

        for a, b in self.edges():
            edge = b - a
            length = edge.length
            if length <= tolerance:
                continue
            unit = edge * (1.0 / length)

            if _off_line(start, a, unit) > tolerance or _off_line(end, a, unit) > tolerance:
                continue

            t_start = (start - a).dot(unit)
            t_end = (end - a).dot(unit)
            lo = max(0.0, min(t_start, t_end))
            hi = min(length, max(t_start, t_end))
            if hi - lo > tolerance:
                overlaps.append((a + unit * lo, a + unit * hi))

        return overlaps


def _off_line(point: Point3d, origin: Point3d, unit: Vector3d) -> float:
    """Distance from ``point`` to the infinite line through ``origin`` along ``unit``."""
    d = point - origin
    along = unit * d.dot(unit)
    return (d - along).length
