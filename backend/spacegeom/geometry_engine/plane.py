"""
Plane queries for planar vertex loops.

The plane normal comes from Newell's method, which sums over every edge and
stays stable on collinear or near-collinear vertex runs where a three-point
cross product would not. Every query returns None for a degenerate loop
instead of raising, so batch callers can skip bad surfaces and carry on.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from shapely.geometry import Polygon

from spacegeom.geometry_engine.primitives import (
    NORMAL_TOLERANCE,
    Point3d,
    Vector3d,
    remove_duplicate_points,
)
from spacegeom.geometry_engine.transformation import Transformation

# Loops whose doubled area falls below this are treated as zero-area
_MIN_NEWELL_LENGTH = 1e-10


def get_newall_vector(points: Sequence[Point3d]) -> Optional[Vector3d]:
    """Un-normalized Newell normal; its length is twice the loop area."""
    loop = remove_duplicate_points(points, 0.0)
    if len(loop) < 3:
        return None

    nx = ny = nz = 0.0
    n = len(loop)
    for i in range(n):
        p1 = loop[i]
        p2 = loop[(i + 1) % n]
        nx += (p1.y - p2.y) * (p1.z + p2.z)
        ny += (p1.z - p2.z) * (p1.x + p2.x)
        nz += (p1.x - p2.x) * (p1.y + p2.y)

    vector = Vector3d(nx, ny, nz)
    if vector.length < _MIN_NEWELL_LENGTH:
        return None
    return vector


def get_outward_normal(points: Sequence[Point3d]) -> Optional[Vector3d]:
    """Unit normal by the right-hand rule over the stored winding."""
    newall = get_newall_vector(points)
    if newall is None:
        return None
    return newall.normalize()


def get_area(points: Sequence[Point3d]) -> Optional[float]:
    newall = get_newall_vector(points)
    if newall is None:
        return None
    return newall.length / 2.0


def face_transformation(points: Sequence[Point3d]) -> Optional[Transformation]:
    """
    Transformation from face coordinates to the loop's coordinates.

    In face coordinates the loop lies in z = 0 with its outward normal along
    +z, so it winds counter-clockwise. The first vertex is the face origin.
    Horizontal faces keep the parent x axis; other faces take a horizontal x
    axis so walls come out upright.
    """
    normal = get_outward_normal(points)
    if normal is None:
        return None

    if abs(normal.z) > 1.0 - NORMAL_TOLERANCE:
        x_axis = Vector3d(1.0, 0.0, 0.0)
        x_axis = (x_axis - normal * x_axis.dot(normal)).normalize()
    else:
        x_axis = Vector3d(0.0, 0.0, 1.0).cross(normal).normalize()
    if x_axis is None:
        return None
    y_axis = normal.cross(x_axis)

    return Transformation.from_axes(x_axis, y_axis, normal, points[0])


def transform_to_plane(points: Sequence[Point3d]) -> Optional[Transformation]:
    """Transformation that maps the loop into the z = 0 plane."""
    to_loop = face_transformation(points)
    if to_loop is None:
        return None
    return to_loop.inverse()


def get_centroid(points: Sequence[Point3d]) -> Optional[Point3d]:
    to_loop = face_transformation(points)
    if to_loop is None:
        return None
    face = to_loop.inverse() * list(points)
    shape = Polygon([(p.x, p.y) for p in face])
    if shape.is_empty or shape.area == 0.0:
        return None
    c = shape.centroid
    return to_loop * Point3d(c.x, c.y, 0.0)


def plane_distance(point: Point3d, origin: Point3d, normal: Vector3d) -> float:
    """Signed distance of ``point`` from the plane through ``origin``."""
    return (point - origin).dot(normal)


def get_tilt(normal: Vector3d) -> float:
    """Degrees between the normal and +Z: roof 0, wall 90, floor 180."""
    unit = normal.normalize()
    if unit is None:
        return 0.0
    return math.degrees(math.acos(max(-1.0, min(1.0, unit.z))))


def get_azimuth(normal: Vector3d) -> float:
    """Degrees clockwise from +Y (north) in [0, 360)."""
    azimuth = math.degrees(math.atan2(normal.x, normal.y))
    if azimuth < 0.0:
        azimuth += 360.0
    if azimuth >= 360.0:
        azimuth -= 360.0
    return azimuth


# ──────────────────────────────────────────────────────────────────
# BOUNDING BOX
# ──────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned box; an empty box has no extent and intersects nothing."""
    min_point: Optional[Point3d] = None
    max_point: Optional[Point3d] = None

    @classmethod
    def from_points(cls, points: Iterable[Point3d]) -> BoundingBox:
        pts = list(points)
        if not pts:
            return cls()
        return cls(
            Point3d(min(p.x for p in pts), min(p.y for p in pts), min(p.z for p in pts)),
            Point3d(max(p.x for p in pts), max(p.y for p in pts), max(p.z for p in pts)),
        )

    @property
    def is_empty(self) -> bool:
        return self.min_point is None or self.max_point is None

    def union(self, other: BoundingBox) -> BoundingBox:
        if self.is_empty:
            return other
        if other.is_empty:
            return self
        return BoundingBox.from_points(
            [self.min_point, self.max_point, other.min_point, other.max_point]
        )

    def intersects(self, other: BoundingBox, tolerance: float = 0.0) -> bool:
        if self.is_empty or other.is_empty:
            return False
        a_min, a_max = self.min_point, self.max_point
        b_min, b_max = other.min_point, other.max_point
        return (
            a_min.x <= b_max.x + tolerance and b_min.x <= a_max.x + tolerance
            and a_min.y <= b_max.y + tolerance and b_min.y <= a_max.y + tolerance
            and a_min.z <= b_max.z + tolerance and b_min.z <= a_max.z + tolerance
        )
