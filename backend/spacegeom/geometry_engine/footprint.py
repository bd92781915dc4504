"""
Aggregate footprint queries: floor print, perimeter and exposed perimeter.

The floor print of a set of spaces is the union of every downward facing
surface lying at the reference elevation, in world coordinates. Exposed
perimeter measures how much of a surface's boundary runs along the floor
print's outer edge, as opposed to interior party lines between spaces.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from spacegeom.geometry_engine.boolean_ops import check_tolerance, join_all
from spacegeom.geometry_engine.polygon import Polygon3d
from spacegeom.geometry_engine.primitives import DEFAULT_TOLERANCE, NORMAL_TOLERANCE, Point3d
from spacegeom.geometry_engine.spaces import (
    space_transformation,
    surface_polygon,
    surface_type_of,
)
from spacegeom.models.schemas import Space, SurfaceType

logger = logging.getLogger(__name__)


def _faces_down(polygon: Polygon3d) -> bool:
    normal = polygon.outward_normal
    return normal is not None and normal.z < -1.0 + NORMAL_TOLERANCE


def _at_elevation(polygon: Polygon3d, elevation: float, tolerance: float) -> bool:
    return all(abs(p.z - elevation) <= tolerance for p in polygon.outer_path)


def ground_polygons(
    spaces: Sequence[Space],
    elevation: float = 0.0,
    tolerance: float = DEFAULT_TOLERANCE,
) -> list[Polygon3d]:
    """World polygons of every downward facing surface at ``elevation``."""
    polygons: list[Polygon3d] = []
    for space in spaces:
        transformation = space_transformation(space)
        for surface in space.surfaces:
            polygon = surface_polygon(surface, transformation)
            if _faces_down(polygon) and _at_elevation(polygon, elevation, tolerance):
                polygons.append(polygon)
    return polygons


def floor_print_polygons(
    spaces: Sequence[Space],
    elevation: float = 0.0,
    tolerance: float = DEFAULT_TOLERANCE,
    warnings: Optional[list[str]] = None,
) -> list[Polygon3d]:
    """Union of the ground polygons, largest first."""
    check_tolerance(tolerance)
    return join_all(ground_polygons(spaces, elevation, tolerance), tolerance, warnings)


def floor_print(
    spaces: Sequence[Space],
    elevation: float = 0.0,
    tolerance: float = DEFAULT_TOLERANCE,
    warnings: Optional[list[str]] = None,
) -> Optional[Polygon3d]:
    """
    The building footprint at ``elevation``.

    A connected footprint is the usual case. When the ground polygons form
    several disjoint regions the largest is returned and the rest reported.
    """
    polygons = floor_print_polygons(spaces, elevation, tolerance, warnings)
    if not polygons:
        return None
    if len(polygons) > 1:
        message = (f"Floor print has {len(polygons)} disjoint regions; "
                   f"returning the largest ({polygons[0].net_area:.2f} m2)")
        logger.warning(message)
        if warnings is not None:
            warnings.append(message)
    return polygons[0]


def space_floor_print(
    space: Space,
    tolerance: float = DEFAULT_TOLERANCE,
    warnings: Optional[list[str]] = None,
) -> Optional[Polygon3d]:
    """Union of one space's floor surfaces in its local frame."""
    floors = [
        surface_polygon(s) for s in space.surfaces
        if surface_type_of(s) == SurfaceType.FLOOR
    ]
    joined = join_all(floors, tolerance, warnings)
    if len(joined) != 1:
        return None
    return joined[0]


def perimeter(polygon: Polygon3d) -> float:
    return polygon.perimeter


def exposed_perimeter(
    vertices: Sequence[Point3d],
    footprint: Polygon3d,
    tolerance: float = DEFAULT_TOLERANCE,
) -> float:
    """Length of the loop's edges that overlap the footprint's outer edges."""
    check_tolerance(tolerance)
    n = len(vertices)
    total = 0.0
    for i in range(n):
        edge = (vertices[i], vertices[(i + 1) % n])
        for start, end in footprint.overlap(edge, tolerance):
            total += (end - start).length
    return total


def space_exposed_perimeter(
    space: Space,
    footprint: Polygon3d,
    tolerance: float = DEFAULT_TOLERANCE,
) -> float:
    """Exposed perimeter of a space's ground-level floors against a footprint."""
    check_tolerance(tolerance)
    elevation = footprint.outer_path[0].z if footprint.outer_path else 0.0
    transformation = space_transformation(space)
    total = 0.0
    for surface in space.surfaces:
        polygon = surface_polygon(surface, transformation)
        if _faces_down(polygon) and _at_elevation(polygon, elevation, tolerance):
            total += exposed_perimeter(polygon.outer_path, footprint, tolerance)
    return total
