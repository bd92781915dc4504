"""
Space-level helpers: placing a space in the world, classifying surfaces,
building simple spaces from a floor print and querying surfaces by
orientation.

Surface vertices are stored in the space's local frame. The space's
transformation (origin translation, then rotation by relative north) maps
them into world coordinates, where intersection, matching and footprint
queries run.
"""

from __future__ import annotations

import logging
import math
from typing import Optional, Sequence

from spacegeom.geometry_engine.plane import BoundingBox, get_azimuth, get_outward_normal, get_tilt
from spacegeom.geometry_engine.polygon import Polygon3d
from spacegeom.geometry_engine.primitives import (
    POINT_TOLERANCE,
    Point3d,
    Vector3d,
    remove_duplicate_points,
    to_coords,
    to_points,
)
from spacegeom.geometry_engine.transformation import Transformation
from spacegeom.models.schemas import BoundaryCondition, Space, SubSurface, Surface, SurfaceType

logger = logging.getLogger(__name__)

# Angular slack (degrees) on find_surfaces bounds
_ANGLE_TOLERANCE = 0.01


def space_transformation(space: Space) -> Transformation:
    """Local-to-world transformation of a space."""
    return Transformation.translation(
        Vector3d(space.x_origin, space.y_origin, space.z_origin)
    ) * Transformation.rotation(Vector3d(0.0, 0.0, 1.0), -math.radians(space.direction_of_relative_north))


def surface_points(
    surface: Surface | SubSurface,
    transformation: Optional[Transformation] = None,
) -> list[Point3d]:
    points = to_points(surface.vertices)
    if transformation is None:
        return points
    return transformation.apply_points(points)


def surface_polygon(
    surface: Surface | SubSurface,
    transformation: Optional[Transformation] = None,
) -> Polygon3d:
    return Polygon3d(tuple(surface_points(surface, transformation)))


def local_vertices(points: Sequence[Point3d], transformation: Transformation) -> list[tuple[float, float, float]]:
    """World points back to a space's local vertex tuples."""
    return to_coords(transformation.inverse().apply_points(points))


def space_bounding_box(space: Space) -> BoundingBox:
    transformation = space_transformation(space)
    box = BoundingBox()
    for surface in space.surfaces:
        box = box.union(BoundingBox.from_points(surface_points(surface, transformation)))
    return box


# ──────────────────────────────────────────────────────────────────
# CLASSIFICATION
# ──────────────────────────────────────────────────────────────────

def default_surface_type(points: Sequence[Point3d]) -> SurfaceType:
    """Roof/ceiling below 60 degrees tilt, wall below 179, floor otherwise."""
    normal = get_outward_normal(points)
    if normal is None:
        return SurfaceType.WALL
    tilt = get_tilt(normal)
    if tilt < 60.0:
        return SurfaceType.ROOF_CEILING
    if tilt < 179.0:
        return SurfaceType.WALL
    return SurfaceType.FLOOR


def surface_type_of(surface: Surface) -> SurfaceType:
    if surface.surface_type is not None:
        return surface.surface_type
    return default_surface_type(to_points(surface.vertices))


def default_boundary_condition(
    surface_type: SurfaceType,
    world_points: Sequence[Point3d],
    tolerance: float = POINT_TOLERANCE,
) -> BoundaryCondition:
    """Ground for a floor at or below z = 0, outdoors for everything else."""
    if surface_type == SurfaceType.FLOOR and world_points:
        if max(p.z for p in world_points) <= tolerance:
            return BoundaryCondition.GROUND
    return BoundaryCondition.OUTDOORS


def make_surface(name: str, points: Sequence[Point3d], **kwargs) -> Surface:
    """Surface with its type and boundary condition defaulted from geometry."""
    surface_type = kwargs.pop("surface_type", None) or default_surface_type(points)
    if "outside_boundary_condition" not in kwargs:
        kwargs["outside_boundary_condition"] = default_boundary_condition(surface_type, points)
    return Surface(name=name, vertices=to_coords(points), surface_type=surface_type, **kwargs)


def unique_name(base: str, used: set[str]) -> str:
    index = 1
    while f"{base} {index}" in used:
        index += 1
    name = f"{base} {index}"
    used.add(name)
    return name


# ──────────────────────────────────────────────────────────────────
# CONSTRUCTION AND QUERIES
# ──────────────────────────────────────────────────────────────────

def space_from_floor_print(
    name: str,
    floor_print: Sequence[Point3d],
    floor_to_ceiling_height: float,
    tolerance: float = POINT_TOLERANCE,
) -> Optional[Space]:
    """
    Build an extruded space from a horizontal floor print.

    The floor faces down, the ceiling is the floor reversed and raised, and
    each floor print edge gets an outward facing wall. Returns None for a
    non-positive height or a floor print that is degenerate or not level.
    """
    if floor_to_ceiling_height <= 0:
        logger.warning("Space %s: floor to ceiling height must be positive, got %s",
                       name, floor_to_ceiling_height)
        return None

    loop = remove_duplicate_points(floor_print, tolerance)
    normal = get_outward_normal(loop)
    if len(loop) < 3 or normal is None:
        logger.warning("Space %s: degenerate floor print", name)
        return None
    z = loop[0].z
    if any(abs(p.z - z) > tolerance for p in loop):
        logger.warning("Space %s: floor print is not level", name)
        return None
    if normal.z > 0:
        loop = list(reversed(loop))

    rise = Vector3d(0.0, 0.0, floor_to_ceiling_height)
    surfaces = [
        make_surface(f"{name} Floor", loop, surface_type=SurfaceType.FLOOR),
        make_surface(f"{name} Ceiling", [p + rise for p in reversed(loop)],
                     surface_type=SurfaceType.ROOF_CEILING),
    ]
    n = len(loop)
    for i in range(n):
        p1 = loop[i]
        p2 = loop[(i + 1) % n]
        wall = [p2 + rise, p2, p1, p1 + rise]
        surfaces.append(make_surface(f"{name} Wall {i + 1}", wall, surface_type=SurfaceType.WALL))

    return Space(name=name, surfaces=surfaces)


def find_surfaces(
    space: Space,
    min_azimuth: Optional[float] = None,
    max_azimuth: Optional[float] = None,
    min_tilt: Optional[float] = None,
    max_tilt: Optional[float] = None,
) -> list[Surface]:
    """
    Surfaces whose world orientation falls inside the given bounds.

    Azimuth is measured clockwise from north in world coordinates and the
    range wraps when ``min_azimuth > max_azimuth`` (e.g. 359 to 1). Tilt is
    measured from +Z. Missing bounds are open.
    """
    transformation = space_transformation(space)
    found: list[Surface] = []
    for surface in space.surfaces:
        normal = get_outward_normal(surface_points(surface, transformation))
        if normal is None:
            continue
        tilt = get_tilt(normal)
        if min_tilt is not None and tilt < min_tilt - _ANGLE_TOLERANCE:
            continue
        if max_tilt is not None and tilt > max_tilt + _ANGLE_TOLERANCE:
            continue
        if not _azimuth_in_range(get_azimuth(normal), min_azimuth, max_azimuth):
            continue
        found.append(surface)
    return found


def _azimuth_in_range(azimuth: float, lo: Optional[float], hi: Optional[float]) -> bool:
    if lo is None and hi is None:
        return True
    lo = 0.0 if lo is None else lo
    hi = 360.0 if hi is None else hi
    if lo <= hi:
        # 359.999 and 0.0 are the same heading
        candidates = (azimuth - 360.0, azimuth, azimuth + 360.0)
        return any(lo - _ANGLE_TOLERANCE <= a <= hi + _ANGLE_TOLERANCE for a in candidates)
    # range wraps through north
    return azimuth >= lo - _ANGLE_TOLERANCE or azimuth <= hi + _ANGLE_TOLERANCE


def space_floor_area(space: Space) -> float:
    """Gross area of the space's floor surfaces."""
    return sum(
        surface_polygon(surface).gross_area
        for surface in space.surfaces
        if surface_type_of(surface) == SurfaceType.FLOOR
    )

