from __future__ import annotations

from spacegeom.geometry_engine.boolean_ops import (
    IntersectionResult,
    intersect,
    join,
    join_all,
    remove_spikes,
)
from spacegeom.geometry_engine.footprint import (
    exposed_perimeter,
    floor_print,
    floor_print_polygons,
    space_exposed_perimeter,
)
from spacegeom.geometry_engine.polygon import Polygon3d
from spacegeom.geometry_engine.primitives import DEFAULT_TOLERANCE, Point3d, Vector3d
from spacegeom.geometry_engine.surface_intersection import intersect_spaces, intersect_surfaces
from spacegeom.geometry_engine.surface_matching import match_spaces, match_surfaces, unmatch_surfaces
from spacegeom.geometry_engine.transformation import Transformation

__all__ = [
    "DEFAULT_TOLERANCE",
    "IntersectionResult",
    "Point3d",
    "Polygon3d",
    "Transformation",
    "Vector3d",
    "exposed_perimeter",
    "floor_print",
    "floor_print_polygons",
    "intersect",
    "intersect_spaces",
    "intersect_surfaces",
    "join",
    "join_all",
    "match_spaces",
    "match_surfaces",
    "remove_spikes",
    "space_exposed_perimeter",
    "unmatch_surfaces",
]
