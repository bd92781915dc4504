"""
Surface matching between spaces.

Two surfaces match when they are mirror faces: same region in world
coordinates, opposite outward normals. A matched pair becomes an interior
boundary: each side's boundary condition switches to Surface, points at the
other surface, and keeps the condition it replaced so that unmatching can
restore it. Sub-surfaces of a matched pair are matched by the same rule and
must lie on their parent.

Nothing here mutates the input spaces; every result is a new copy.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence

from spacegeom.geometry_engine.boolean_ops import check_tolerance, polygon_contains, polygons_coincide
from spacegeom.geometry_engine.plane import BoundingBox
from spacegeom.geometry_engine.polygon import Polygon3d
from spacegeom.geometry_engine.primitives import (
    DEFAULT_TOLERANCE,
    NORMAL_TOLERANCE,
    circular_equal,
    reverse_loop,
)
from spacegeom.geometry_engine.spaces import (
    default_boundary_condition,
    space_bounding_box,
    space_transformation,
    surface_points,
    surface_polygon,
    surface_type_of,
)
from spacegeom.geometry_engine.transformation import Transformation
from spacegeom.models.schemas import BoundaryCondition, Space, SubSurface, Surface

logger = logging.getLogger(__name__)


@dataclass
class SurfaceMatch:
    space_a: str
    surface_a: str
    space_b: str
    surface_b: str
    sub_surfaces: list[tuple[str, str]] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "space_a": self.space_a,
            "surface_a": self.surface_a,
            "space_b": self.space_b,
            "surface_b": self.surface_b,
            "sub_surfaces": [list(pair) for pair in self.sub_surfaces],
        }


@dataclass
class MatchResult:
    space_a: Space
    space_b: Space
    matches: list[SurfaceMatch] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


@dataclass
class SpacesMatchResult:
    spaces: list[Space]
    matches: list[SurfaceMatch] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


@dataclass
class UnmatchResult:
    space: Space
    neighbors: list[Space] = field(default_factory=list)


def are_mirror_faces(polygon1: Polygon3d, polygon2: Polygon3d, tolerance: float) -> bool:
    """True if the polygons cover the same region with opposing outward normals."""
    normal1 = polygon1.outward_normal
    normal2 = polygon2.outward_normal
    if normal1 is None or normal2 is None:
        return False
    if normal1.dot(normal2) > -1.0 + NORMAL_TOLERANCE:
        return False
    if circular_equal(polygon1.outer_path, reverse_loop(polygon2.outer_path), tolerance):
        return True
    return polygons_coincide(polygon1, polygon2, tolerance)


# ──────────────────────────────────────────────────────────────────
# MATCH
# ──────────────────────────────────────────────────────────────────

def match_surfaces(
    space_a: Space,
    space_b: Space,
    tolerance: float = DEFAULT_TOLERANCE,
) -> MatchResult:
    """Link every mirror-face surface pair between two spaces."""
    check_tolerance(tolerance)
    _check_unique_names(space_a, space_b)

    t_a = space_transformation(space_a)
    t_b = space_transformation(space_b)
    surfaces_a = list(space_a.surfaces)
    surfaces_b = list(space_b.surfaces)
    world_a = [surface_polygon(s, t_a) for s in surfaces_a]
    world_b = [surface_polygon(s, t_b) for s in surfaces_b]

    matches: list[SurfaceMatch] = []
    warnings: list[str] = []
    taken_b: set[int] = set()

    for i, surface_a in enumerate(surfaces_a):
        if surface_a.adjacent_surface is not None:
            continue
        box_a = _box(world_a[i])
        for j, surface_b in enumerate(surfaces_b):
            if j in taken_b or surface_b.adjacent_surface is not None:
                continue
            if not box_a.intersects(_box(world_b[j]), tolerance):
                continue
            if not are_mirror_faces(world_a[i], world_b[j], tolerance):
                continue

            subs_a, subs_b, sub_pairs = _match_sub_surfaces(
                surface_a, surface_b, t_a, t_b, world_a[i], tolerance, warnings,
            )
            surfaces_a[i] = _link(surface_a, surface_b.name, subs_a)
            surfaces_b[j] = _link(surface_b, surface_a.name, subs_b)
            taken_b.add(j)
            matches.append(SurfaceMatch(
                space_a=space_a.name,
                surface_a=surface_a.name,
                space_b=space_b.name,
                surface_b=surface_b.name,
                sub_surfaces=sub_pairs,
            ))
            break

    logger.debug("Matched %d surface pairs between %s and %s", len(matches), space_a.name, space_b.name)
    return MatchResult(
        space_a=space_a.model_copy(update={"surfaces": surfaces_a}),
        space_b=space_b.model_copy(update={"surfaces": surfaces_b}),
        matches=matches,
        warnings=warnings,
    )


def match_spaces(spaces: Sequence[Space], tolerance: float = DEFAULT_TOLERANCE) -> SpacesMatchResult:
    """Match surfaces between every pair of spaces whose extents touch."""
    check_tolerance(tolerance)
    current = list(spaces)
    boxes = [space_bounding_box(s) for s in current]
    result = SpacesMatchResult(spaces=current)

    for i in range(len(current)):
        for j in range(i + 1, len(current)):
            if not boxes[i].intersects(boxes[j], tolerance):
                continue
            outcome = match_surfaces(current[i], current[j], tolerance)
            current[i], current[j] = outcome.space_a, outcome.space_b
            result.matches.extend(outcome.matches)
            result.warnings.extend(outcome.warnings)

    return result


def _match_sub_surfaces(
    surface_a: Surface,
    surface_b: Surface,
    t_a: Transformation,
    t_b: Transformation,
    parent: Polygon3d,
    tolerance: float,
    warnings: list[str],
) -> tuple[list[SubSurface], list[SubSurface], list[tuple[str, str]]]:
    subs_a = list(surface_a.sub_surfaces)
    subs_b = list(surface_b.sub_surfaces)
    world_b = [surface_polygon(s, t_b) for s in subs_b]
    pairs: list[tuple[str, str]] = []
    taken: set[int] = set()

    for j, sub_b in enumerate(subs_b):
        if not polygon_contains(parent, world_b[j], tolerance):
            _warn(warnings, f"Sub-surface {sub_b.name} does not lie on its matched parent {surface_b.name}")
            taken.add(j)

    for i, sub_a in enumerate(subs_a):
        world_a = surface_polygon(sub_a, t_a)
        if not polygon_contains(parent, world_a, tolerance):
            _warn(warnings, f"Sub-surface {sub_a.name} does not lie on its matched parent {surface_a.name}")
            continue
        for j, sub_b in enumerate(subs_b):
            if j in taken or not are_mirror_faces(world_a, world_b[j], tolerance):
                continue
            subs_a[i] = sub_a.model_copy(update={"adjacent_sub_surface": sub_b.name})
            subs_b[j] = sub_b.model_copy(update={"adjacent_sub_surface": sub_a.name})
            taken.add(j)
            pairs.append((sub_a.name, sub_b.name))
            break
        else:
            _warn(warnings, f"Sub-surface {sub_a.name} has no matching sub-surface on {surface_b.name}")

    for j, sub_b in enumerate(subs_b):
        if j not in taken:
            _warn(warnings, f"Sub-surface {sub_b.name} has no matching sub-surface on {surface_a.name}")

    return subs_a, subs_b, pairs


def _link(surface: Surface, other: str, sub_surfaces: list[SubSurface]) -> Surface:
    previous = surface.outside_boundary_condition
    if previous == BoundaryCondition.SURFACE:
        previous = surface.previous_boundary_condition
    return surface.model_copy(update={
        "outside_boundary_condition": BoundaryCondition.SURFACE,
        "adjacent_surface": other,
        "previous_boundary_condition": previous,
        "sub_surfaces": sub_surfaces,
    })


# ──────────────────────────────────────────────────────────────────
# UNMATCH
# ──────────────────────────────────────────────────────────────────

def unmatch_surfaces(space: Space, neighbors: Sequence[Space] = ()) -> UnmatchResult:
    """
    Undo matching for every surface of ``space``.

    Linked surfaces of ``neighbors`` are released too, so both sides of each
    pair return to their previous boundary condition (or the geometric
    default when none was recorded).
    """
    names = {s.name for s in space.surfaces}
    t = space_transformation(space)
    released = space.model_copy(update={
        "surfaces": [_unlink(s, t) if s.adjacent_surface is not None else s for s in space.surfaces],
    })

    updated_neighbors: list[Space] = []
    for neighbor in neighbors:
        tn = space_transformation(neighbor)
        updated_neighbors.append(neighbor.model_copy(update={
            "surfaces": [
                _unlink(s, tn) if s.adjacent_surface in names else s
                for s in neighbor.surfaces
            ],
        }))

    return UnmatchResult(space=released, neighbors=updated_neighbors)


def _unlink(surface: Surface, transformation: Transformation) -> Surface:
    restored = surface.previous_boundary_condition
    if restored is None or restored == BoundaryCondition.SURFACE:
        restored = default_boundary_condition(
            surface_type_of(surface), surface_points(surface, transformation),
        )
    return surface.model_copy(update={
        "outside_boundary_condition": restored,
        "adjacent_surface": None,
        "previous_boundary_condition": None,
        "sub_surfaces": [
            s.model_copy(update={"adjacent_sub_surface": None}) for s in surface.sub_surfaces
        ],
    })


# ──────────────────────────────────────────────────────────────────
# HELPERS
# ──────────────────────────────────────────────────────────────────

def _box(polygon: Polygon3d) -> BoundingBox:
    return BoundingBox.from_points(polygon.outer_path)


def _check_unique_names(space_a: Space, space_b: Space) -> None:
    shared = {s.name for s in space_a.surfaces} & {s.name for s in space_b.surfaces}
    if shared:
        raise ValueError(
            f"Surface names must be unique across spaces {space_a.name} and {space_b.name}; "
            f"shared: {', '.join(sorted(shared))}"
        )


def _warn(warnings: list[str], message: str) -> None:
    logger.warning(message)
    warnings.append(message)

