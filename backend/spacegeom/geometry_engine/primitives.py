"""
Point and vector primitives for the geometry engine.

Points and vectors are immutable value types. Dataclass equality is exact;
geometric comparisons always go through the tolerance helpers below.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Sequence

# Default tolerance (m) for boolean operations, matching and footprints
DEFAULT_TOLERANCE = 0.01

# Default tolerance (m) for vertex-by-vertex comparison
POINT_TOLERANCE = 0.001

# Tolerance on normal dot products (parallel / opposing tests)
NORMAL_TOLERANCE = 1e-4


@dataclass(frozen=True)
class Vector3d:
    """A direction in 3D. The zero vector means "undefined direction"."""
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def __add__(self, other: Vector3d) -> Vector3d:
        return Vector3d(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: Vector3d) -> Vector3d:
        return Vector3d(self.x - other.x, self.y - other.y, self.z - other.z)

    def __mul__(self, scalar: float) -> Vector3d:
        return Vector3d(self.x * scalar, self.y * scalar, self.z * scalar)

    __rmul__ = __mul__

    def __neg__(self) -> Vector3d:
        return Vector3d(-self.x, -self.y, -self.z)

    def dot(self, other: Vector3d) -> float:
        return self.x * other.x + self.y * other.y + self.z * other.z

    def cross(self, other: Vector3d) -> Vector3d:
        return Vector3d(
            self.y * other.z - self.z * other.y,
            self.z * other.x - self.x * other.z,
            self.x * other.y - self.y * other.x,
        )

    @property
    def length(self) -> float:
        return math.sqrt(self.x * self.x + self.y * self.y + self.z * self.z)

    def is_zero(self, tolerance: float = 1e-12) -> bool:
        return self.length <= tolerance

    def normalize(self) -> Optional[Vector3d]:
        """Unit vector in the same direction, or None for a zero vector."""
        length = self.length
        if length <= 1e-12:
            return None
        return Vector3d(self.x / length, self.y / length, self.z / length)

    def as_tuple(self) -> tuple[float, float, float]:
        return (self.x, self.y, self.z)


@dataclass(frozen=True)
class Point3d:
    """A location in 3D."""
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def __sub__(self, other: Point3d) -> Vector3d:
        return Vector3d(self.x - other.x, self.y - other.y, self.z - other.z)

    def __add__(self, vector: Vector3d) -> Point3d:
        return Point3d(self.x + vector.x, self.y + vector.y, self.z + vector.z)

    def as_tuple(self) -> tuple[float, float, float]:
        return (self.x, self.y, self.z)

    @classmethod
    def from_tuple(cls, coords: Sequence[float]) -> Point3d:
        if len(coords) == 2:
            return cls(float(coords[0]), float(coords[1]), 0.0)
        return cls(float(coords[0]), float(coords[1]), float(coords[2]))


# ──────────────────────────────────────────────────────────────────
# COMPARISON HELPERS
# ──────────────────────────────────────────────────────────────────

def get_distance(p1: Point3d, p2: Point3d) -> float:
    return (p2 - p1).length


def points_equal(p1: Point3d, p2: Point3d, tolerance: float = POINT_TOLERANCE) -> bool:
    return get_distance(p1, p2) <= tolerance


def circular_equal(
    loop1: Sequence[Point3d],
    loop2: Sequence[Point3d],
    tolerance: float = POINT_TOLERANCE,
) -> bool:
    """True if both loops hold the same cyclic vertex sequence, starting anywhere."""
    n = len(loop1)
    if n != len(loop2):
        return False
    if n == 0:
        return True

    for offset in range(n):
        if not points_equal(loop1[0], loop2[offset], tolerance):
            continue
        if all(points_equal(loop1[i], loop2[(i + offset) % n], tolerance) for i in range(n)):
            return True
    return False


def reverse_loop(loop: Sequence[Point3d]) -> list[Point3d]:
    return list(reversed(loop))


def remove_duplicate_points(
    loop: Sequence[Point3d],
    tolerance: float = POINT_TOLERANCE,
) -> list[Point3d]:
    """Drop consecutive duplicates, including a repeated closing vertex."""
    result: list[Point3d] = []
    for point in loop:
        if result and points_equal(result[-1], point, tolerance):
            continue
        result.append(point)
    while len(result) > 1 and points_equal(result[0], result[-1], tolerance):
        result.pop()
    return result


def to_points(coords: Sequence[Sequence[float]]) -> list[Point3d]:
    return [Point3d.from_tuple(c) for c in coords]


def to_coords(points: Sequence[Point3d]) -> list[tuple[float, float, float]]:
    return [p.as_tuple() for p in points]
