"""
Rigid transformations between coordinate frames.

A Transformation wraps a read-only 4x4 homogeneous matrix. Composition with
``*`` is associative but not commutative: ``(a * b) * p == a * (b * p)``.
Applied to a Vector3d only the rotation part is used.
"""

from __future__ import annotations

import math
from typing import Optional, Sequence

import numpy as np

from spacegeom.geometry_engine.primitives import Point3d, Vector3d


class Transformation:
    __slots__ = ("_matrix",)

    def __init__(self, matrix: Optional[Sequence[Sequence[float]]] = None):
        if matrix is None:
            m = np.identity(4)
        else:
            m = np.array(matrix, dtype=float)
            if m.shape != (4, 4):
                raise ValueError(f"Transformation matrix must be 4x4, got {m.shape}")
        m.setflags(write=False)
        self._matrix = m

    # ── constructors ──

    @classmethod
    def identity(cls) -> Transformation:
        return cls()

    @classmethod
    def translation(cls, vector: Vector3d) -> Transformation:
        m = np.identity(4)
        m[0:3, 3] = [vector.x, vector.y, vector.z]
        return cls(m)

    @classmethod
    def rotation(cls, axis: Vector3d, radians: float) -> Transformation:
        """Right-hand rotation of ``radians`` about ``axis`` through the origin."""
        unit = axis.normalize()
        if unit is None:
            raise ValueError("Rotation axis must be a non-zero vector")

        # Rodrigues: R = I + sin(t) K + (1 - cos(t)) K^2
        k = np.array([
            [0.0, -unit.z, unit.y],
            [unit.z, 0.0, -unit.x],
            [-unit.y, unit.x, 0.0],
        ])
        r = np.identity(3) + math.sin(radians) * k + (1.0 - math.cos(radians)) * (k @ k)
        m = np.identity(4)
        m[0:3, 0:3] = r
        return cls(m)

    @classmethod
    def from_axes(
        cls,
        x_axis: Vector3d,
        y_axis: Vector3d,
        z_axis: Vector3d,
        origin: Point3d,
    ) -> Transformation:
        """Frame whose unit axes and origin are given in the parent frame."""
        m = np.identity(4)
        m[0:3, 0] = x_axis.as_tuple()
        m[0:3, 1] = y_axis.as_tuple()
        m[0:3, 2] = z_axis.as_tuple()
        m[0:3, 3] = origin.as_tuple()
        return cls(m)

    # ── accessors ──

    @property
    def matrix(self) -> np.ndarray:
        return self._matrix.copy()

    @property
    def translation_vector(self) -> Vector3d:
        return Vector3d(*self._matrix[0:3, 3])

    def inverse(self) -> Transformation:
        r = self._matrix[0:3, 0:3]
        t = self._matrix[0:3, 3]
        m = np.identity(4)
        m[0:3, 0:3] = r.T
        m[0:3, 3] = -r.T @ t
        return Transformation(m)

    def is_almost_equal(self, other: Transformation, tolerance: float = 1e-9) -> bool:
        return bool(np.allclose(self._matrix, other._matrix, atol=tolerance, rtol=0.0))

    # ── application ──

    def apply_point(self, point: Point3d) -> Point3d:
        v = self._matrix @ np.array([point.x, point.y, point.z, 1.0])
        return Point3d(float(v[0]), float(v[1]), float(v[2]))

    def apply_vector(self, vector: Vector3d) -> Vector3d:
        v = self._matrix[0:3, 0:3] @ np.array([vector.x, vector.y, vector.z])
        return Vector3d(float(v[0]), float(v[1]), float(v[2]))

    def apply_points(self, points: Sequence[Point3d]) -> list[Point3d]:
        if not points:
            return []
        coords = np.array([[p.x, p.y, p.z, 1.0] for p in points])
        out = coords @ self._matrix.T
        return [Point3d(float(row[0]), float(row[1]), float(row[2])) for row in out]

    def __mul__(self, other):
        if isinstance(other, Transformation):
            return Transformation(self._matrix @ other._matrix)
        if isinstance(other, Point3d):
            return self.apply_point(other)
        if isinstance(other, Vector3d):
            return self.apply_vector(other)
        if isinstance(other, (list, tuple)):
            return self.apply_points(other)
        transformed = getattr(other, "transformed", None)
        if transformed is not None:
            return transformed(self)
        return NotImplemented

    def __repr__(self) -> str:
        return f"Transformation({self._matrix.tolist()!r})"
