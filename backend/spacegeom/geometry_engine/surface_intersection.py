"""
Surface intersection between spaces.

Pipeline for a pair of spaces:
1. Place every surface in world coordinates
2. For each surface pair on coplanar, opposing planes whose extents touch,
   intersect the two polygons
3. Split both surfaces: the original keeps its name and takes the shared
   region, each remainder becomes a new surface with a unique name
4. Hand every sub-surface to the piece that contains it
5. Repeat until a pass changes nothing
6. Report the coincident surface pairs, ready for matching

A split that would cut through a sub-surface is skipped and reported.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence

from spacegeom.geometry_engine.boolean_ops import check_tolerance, intersect, polygon_contains
from spacegeom.geometry_engine.plane import BoundingBox, plane_distance
from spacegeom.geometry_engine.polygon import Polygon3d
from spacegeom.geometry_engine.primitives import DEFAULT_TOLERANCE, NORMAL_TOLERANCE
from spacegeom.geometry_engine.spaces import (
    local_vertices,
    space_bounding_box,
    space_transformation,
    surface_polygon,
    unique_name,
)
from spacegeom.geometry_engine.surface_matching import are_mirror_faces
from spacegeom.geometry_engine.transformation import Transformation
from spacegeom.models.schemas import Space, SubSurface, Surface

logger = logging.getLogger(__name__)

DEFAULT_MAX_PASSES = 100


@dataclass
class SurfaceIntersection:
    space_a: Space
    space_b: Space
    coincident_surfaces: list[tuple[str, str]] = field(default_factory=list)
    new_surfaces: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


@dataclass
class SpacesIntersection:
    spaces: list[Space]
    coincident_surfaces: list[tuple[str, str]] = field(default_factory=list)
    new_surfaces: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


@dataclass
class _Working:
    surface: Surface
    polygon: Polygon3d      # world coordinates
    box: BoundingBox
    root_name: str          # remainders are numbered from this name


def intersect_surfaces(
    space_a: Space,
    space_b: Space,
    tolerance: float = DEFAULT_TOLERANCE,
    max_passes: int = DEFAULT_MAX_PASSES,
) -> SurfaceIntersection:
    """Split the surfaces of two spaces so that shared regions become coincident surfaces."""
    check_tolerance(tolerance)

    t_a = space_transformation(space_a)
    t_b = space_transformation(space_b)
    work_a = [_working(s, t_a) for s in space_a.surfaces]
    work_b = [_working(s, t_b) for s in space_b.surfaces]

    result = SurfaceIntersection(space_a=space_a, space_b=space_b)
    used_names = {s.name for s in space_a.surfaces} | {s.name for s in space_b.surfaces}
    blocked: set[tuple[str, str]] = set()

    for _ in range(max_passes):
        if not _intersect_pass(work_a, work_b, t_a, t_b, tolerance, used_names, blocked, result):
            break
    else:
        _warn(result.warnings, f"Intersection of {space_a.name} and {space_b.name} "
                               f"did not settle after {max_passes} passes")

    for wa in work_a:
        for wb in work_b:
            if wa.box.intersects(wb.box, tolerance) and are_mirror_faces(wa.polygon, wb.polygon, tolerance):
                result.coincident_surfaces.append((wa.surface.name, wb.surface.name))

    result.space_a = space_a.model_copy(update={"surfaces": [w.surface for w in work_a]})
    result.space_b = space_b.model_copy(update={"surfaces": [w.surface for w in work_b]})
    return result


def intersect_spaces(
    spaces: Sequence[Space],
    tolerance: float = DEFAULT_TOLERANCE,
    max_passes: int = DEFAULT_MAX_PASSES,
) -> SpacesIntersection:
    """Intersect every pair of spaces whose extents touch, in input order."""
    check_tolerance(tolerance)
    current = list(spaces)
    boxes = [space_bounding_box(s) for s in current]
    result = SpacesIntersection(spaces=current)

    for i in range(len(current)):
        for j in range(i + 1, len(current)):
            if not boxes[i].intersects(boxes[j], tolerance):
                continue
            outcome = intersect_surfaces(current[i], current[j], tolerance, max_passes)
            current[i], current[j] = outcome.space_a, outcome.space_b
            result.coincident_surfaces.extend(outcome.coincident_surfaces)
            result.new_surfaces.extend(outcome.new_surfaces)
            result.warnings.extend(outcome.warnings)

    return result


# ──────────────────────────────────────────────────────────────────
# ONE PASS
# ──────────────────────────────────────────────────────────────────

def _intersect_pass(
    work_a: list[_Working],
    work_b: list[_Working],
    t_a: Transformation,
    t_b: Transformation,
    tolerance: float,
    used_names: set[str],
    blocked: set[tuple[str, str]],
    result: SurfaceIntersection,
) -> bool:
    """Apply the first split found; False when no surface pair needs splitting."""
    for i, wa in enumerate(work_a):
        if wa.surface.adjacent_surface is not None:
            continue
        for j, wb in enumerate(work_b):
            key = (wa.surface.name, wb.surface.name)
            if key in blocked or wb.surface.adjacent_surface is not None:
                continue
            if not wa.box.intersects(wb.box, tolerance):
                continue
            if not _facing(wa.polygon, wb.polygon, tolerance):
                continue

            split = intersect(wa.polygon, wb.polygon, tolerance, result.warnings)
            if split is None or (not split.new_polygons1 and not split.new_polygons2):
                continue

            subs_a = _assign_sub_surfaces(wa, [split.polygon1] + split.new_polygons1, t_a, tolerance)
            subs_b = _assign_sub_surfaces(wb, [split.polygon2] + split.new_polygons2, t_b, tolerance)
            if subs_a is None or subs_b is None:
                blocked.add(key)
                _warn(result.warnings, f"Did not split {wa.surface.name} / {wb.surface.name}: "
                                       f"a sub-surface straddles the shared edge")
                continue

            work_a[i:i + 1] = _rebuild(wa, [split.polygon1] + split.new_polygons1, subs_a,
                                       t_a, used_names, result.new_surfaces)
            work_b[j:j + 1] = _rebuild(wb, [split.polygon2] + split.new_polygons2, subs_b,
                                       t_b, used_names, result.new_surfaces)
            logger.debug("Split %s and %s into %d and %d surfaces", key[0], key[1],
                         len(split.new_polygons1) + 1, len(split.new_polygons2) + 1)
            return True
    return False


def _facing(polygon1: Polygon3d, polygon2: Polygon3d, tolerance: float) -> bool:
    """Opposing normals and polygon2 lies in polygon1's plane."""
    normal1 = polygon1.outward_normal
    normal2 = polygon2.outward_normal
    if normal1 is None or normal2 is None:
        return False
    if normal1.dot(normal2) > -1.0 + NORMAL_TOLERANCE:
        return False
    origin = polygon1.outer_path[0]
    return all(abs(plane_distance(p, origin, normal1)) <= tolerance for p in polygon2.outer_path)


def _assign_sub_surfaces(
    work: _Working,
    pieces: list[Polygon3d],
    transformation: Transformation,
    tolerance: float,
) -> Optional[list[list[SubSurface]]]:
    """Sub-surfaces per piece, or None if one does not fit inside any piece."""
    assigned: list[list[SubSurface]] = [[] for _ in pieces]
    for sub in work.surface.sub_surfaces:
        polygon = surface_polygon(sub, transformation)
        for index, piece in enumerate(pieces):
            if polygon_contains(piece, polygon, tolerance):
                assigned[index].append(sub)
                break
        else:
            return None
    return assigned


def _rebuild(
    work: _Working,
    pieces: list[Polygon3d],
    sub_surfaces: list[list[SubSurface]],
    transformation: Transformation,
    used_names: set[str],
    new_surfaces: list[str],
) -> list[_Working]:
    rebuilt: list[_Working] = []
    for index, (piece, subs) in enumerate(zip(pieces, sub_surfaces)):
        update = {
            "vertices": local_vertices(piece.outer_path, transformation),
            "sub_surfaces": subs,
        }
        if index > 0:
            name = unique_name(work.root_name, used_names)
            update.update({"name": name, "adjacent_surface": None, "previous_boundary_condition": None})
            new_surfaces.append(name)
        surface = work.surface.model_copy(update=update)
        rebuilt.append(_Working(surface, piece, BoundingBox.from_points(piece.outer_path), work.root_name))
    return rebuilt


def _working(surface: Surface, transformation: Transformation) -> _Working:
    polygon = surface_polygon(surface, transformation)
    return _Working(surface, polygon, BoundingBox.from_points(polygon.outer_path), surface.name)


def _warn(warnings: list[str], message: str) -> None:
    logger.warning(message)
    warnings.append(message)
