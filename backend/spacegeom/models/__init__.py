from __future__ import annotations

from spacegeom.models.schemas import (
    BoundaryCondition,
    PolygonModel,
    Space,
    SubSurface,
    Surface,
    SurfaceType,
)

__all__ = ["BoundaryCondition", "PolygonModel", "Space", "SubSurface", "Surface", "SurfaceType"]
