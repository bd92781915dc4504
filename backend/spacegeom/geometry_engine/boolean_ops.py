"""
Boolean operations on coplanar polygons.

Polygons are projected into the face frame of a reference polygon, shapely
does the 2D work, and results are mapped back into 3D. Every result passes
through the same cleanup before it is returned:
1. Repair invalid rings (make_valid) and keep the polygonal parts
2. Morphological opening (erode, re-expand by half the tolerance) to remove
   zero-width spikes and slivers narrower than the tolerance
3. Snap back onto the input vertices so untouched corners keep their exact
   coordinates
4. Remove near-duplicate and collinear vertices
5. Drop anything still invalid or zero-area, with a warning

Every operation takes an explicit tolerance (m) and an optional ``warnings``
list that collects a message for each dropped or unresolved polygon.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Optional, Sequence

import shapely
from shapely.geometry import GeometryCollection, LineString, MultiPoint, MultiPolygon, Polygon
from shapely.geometry.polygon import orient
from shapely.ops import split, unary_union

from spacegeom.geometry_engine.plane import face_transformation
from spacegeom.geometry_engine.polygon import Polygon3d
from spacegeom.geometry_engine.primitives import (
    NORMAL_TOLERANCE,
    Point3d,
    Vector3d,
    remove_duplicate_points,
)
from spacegeom.geometry_engine.transformation import Transformation

logger = logging.getLogger(__name__)

_MITRE_LIMIT = 10.0


@dataclass
class IntersectionResult:
    """Overlap of two coplanar polygons plus what is left of each."""
    polygon1: Polygon3d                 # overlap, wound like the first input
    polygon2: Polygon3d                 # overlap, wound like the second input
    new_polygons1: list[Polygon3d] = field(default_factory=list)
    new_polygons2: list[Polygon3d] = field(default_factory=list)

    @property
    def overlap_area(self) -> float:
        return self.polygon1.gross_area


@dataclass(frozen=True)
class _Frame:
    to_world: Transformation
    to_face: Transformation
    normal: Vector3d


# ──────────────────────────────────────────────────────────────────
# PUBLIC OPERATIONS
# ──────────────────────────────────────────────────────────────────

def intersect(
    polygon1: Polygon3d,
    polygon2: Polygon3d,
    tolerance: float,
    warnings: Optional[list[str]] = None,
) -> Optional[IntersectionResult]:
    """
    Intersect two coplanar polygons.

    Returns None when the polygons are not coplanar or share no area.
    Otherwise ``polygon1``/``polygon2`` hold the largest overlap piece and
    ``new_polygons1``/``new_polygons2`` the remainders of each input, split
    into hole-free pieces. Remaining overlap pieces stay inside the
    remainders, so repeated passes pick them up.
    """
    check_tolerance(tolerance)

    frame = _frame_for(polygon1)
    normal2 = polygon2.outward_normal
    if frame is None or normal2 is None:
        _report(warnings, "Cannot intersect a degenerate polygon")
        return None

    cos = frame.normal.dot(normal2)
    if abs(cos) < 1.0 - NORMAL_TOLERANCE:
        return None

    shape1 = _face_shape(polygon1, frame, tolerance)
    shape2 = _face_shape(polygon2, frame, tolerance)
    if shape1 is None or shape2 is None:
        return None

    shape1 = _repair(shape1, warnings)
    shape2 = _repair(shape2, warnings)
    if shape1 is None or shape2 is None:
        return None

    snapped = _as_single(_make_valid(shapely.snap(shape2, shape1, tolerance)))
    if snapped is not None:
        shape2 = orient(snapped, 1.0)
    if not shape1.intersects(shape2):
        return None

    pieces = _decompose_all(_clean(shape1.intersection(shape2), tolerance, warnings, "intersection"))
    if not pieces:
        return None
    overlap = max(pieces, key=lambda p: p.area)

    remainder1 = _decompose_all(_clean(shape1.difference(overlap), tolerance, warnings, "remainder"))
    remainder2 = _decompose_all(_clean(shape2.difference(overlap), tolerance, warnings, "remainder"))

    flip = cos < 0.0
    return IntersectionResult(
        polygon1=_from_face(overlap, frame, False),
        polygon2=_from_face(overlap, frame, flip),
        new_polygons1=[_from_face(p, frame, False) for p in _ordered(remainder1)],
        new_polygons2=[_from_face(p, frame, flip) for p in _ordered(remainder2)],
    )


def join(
    polygon1: Polygon3d,
    polygon2: Polygon3d,
    tolerance: float,
    warnings: Optional[list[str]] = None,
) -> Optional[Polygon3d]:
    """Union of two polygons, or None unless it is a single polygon."""
    joined = join_all([polygon1, polygon2], tolerance, warnings)
    if len(joined) != 1:
        return None
    return joined[0]


def join_all(
    polygons: Sequence[Polygon3d],
    tolerance: float,
    warnings: Optional[list[str]] = None,
) -> list[Polygon3d]:
    """
    Union a set of coplanar polygons into disjoint polygons with holes.

    The union is a morphological closing: each member grows by half the
    tolerance, the union shrinks back. Shared edges and gaps narrower than
    the tolerance disappear, so the result does not depend on input order
    or grouping. Results are sorted largest first and wound like the
    largest input polygon.
    """
    check_tolerance(tolerance)

    candidates: list[Polygon3d] = []
    for index, polygon in enumerate(polygons):
        if polygon.is_degenerate(tolerance):
            _report(warnings, f"Dropped degenerate polygon {index} from union")
            continue
        candidates.append(polygon)
    if not candidates:
        return []

    reference = max(candidates, key=_reference_key)
    frame = _frame_for(reference)
    if frame is None:
        _report(warnings, "Union reference polygon has no normal")
        return []

    shapes: list[Polygon] = []
    for index, polygon in enumerate(candidates):
        shape = _face_shape(polygon, frame, tolerance)
        if shape is None:
            _report(warnings, f"Dropped polygon {index} from union: not coplanar with the reference plane")
            continue
        for part in _polygon_parts(_make_valid(shape)):
            shapes.append(orient(part, 1.0))
    if not shapes:
        return []

    half = tolerance / 2.0
    grown = [s.buffer(half, join_style="mitre", mitre_limit=_MITRE_LIMIT) for s in shapes]
    merged = unary_union(grown).buffer(-half, join_style="mitre", mitre_limit=_MITRE_LIMIT)

    vertices = MultiPoint([c for s in shapes for c in _shape_coords(s)])
    snapped = shapely.snap(merged, vertices, tolerance)
    if snapped.is_valid and not snapped.is_empty:
        merged = snapped

    pieces = _ordered(_clean(merged, tolerance, warnings, "union"))
    return [_canonical_start(_from_face(p, frame, False)) for p in pieces]


def remove_spikes(
    polygon: Polygon3d,
    tolerance: float,
    warnings: Optional[list[str]] = None,
) -> Optional[Polygon3d]:
    """
    Remove zero-width spikes and near-duplicate vertices from a polygon.

    If the opening would break the polygon apart, the polygon is returned
    with only its duplicate and collinear vertices removed.
    """
    check_tolerance(tolerance)

    frame = _frame_for(polygon)
    if frame is None:
        _report(warnings, "Cannot remove spikes from a degenerate polygon")
        return None
    shape = _face_shape(polygon, frame, tolerance)
    if shape is None:
        _report(warnings, "Cannot remove spikes from a non-planar polygon")
        return None

    pieces = _clean(shape, tolerance, warnings, "spike removal")
    if not pieces:
        return None
    if len(pieces) > 1:
        _report(warnings, f"Spike removal would split polygon into {len(pieces)} pieces; left unopened")
        kept = _remove_collinear(orient(shape, 1.0), tolerance)
        if kept is None or not kept.is_valid:
            return None
        return _from_face(kept, frame, False)
    return _from_face(pieces[0], frame, False)


def polygon_contains(polygon: Polygon3d, other: Polygon3d, tolerance: float) -> bool:
    """True if ``other`` lies in the plane of ``polygon`` and inside it, within tolerance."""
    frame = _frame_for(polygon)
    if frame is None:
        return False
    outer = _face_shape(polygon, frame, tolerance)
    inner = _face_shape(other, frame, tolerance)
    if outer is None or inner is None:
        return False
    return _make_valid(outer).buffer(tolerance).contains(_make_valid(inner))


def polygons_coincide(polygon1: Polygon3d, polygon2: Polygon3d, tolerance: float) -> bool:
    """
    True if both polygons cover the same planar region, ignoring winding,
    start vertex and collinear vertices. No vertex of either boundary may lie
    further than ``tolerance`` from the other boundary.
    """
    frame = _frame_for(polygon1)
    if frame is None or polygon2.outward_normal is None:
        return False
    shape1 = _face_shape(polygon1, frame, tolerance)
    shape2 = _face_shape(polygon2, frame, tolerance)
    if shape1 is None or shape2 is None:
        return False
    shape1 = _make_valid(shape1)
    shape2 = _make_valid(shape2)
    return shape1.hausdorff_distance(shape2) <= tolerance


def check_tolerance(tolerance: float) -> None:
    if not tolerance > 0.0 or math.isinf(tolerance):
        raise ValueError(f"Tolerance must be a positive finite length, got {tolerance}")


# ──────────────────────────────────────────────────────────────────
# PROJECTION
# ──────────────────────────────────────────────────────────────────

def _frame_for(polygon: Polygon3d) -> Optional[_Frame]:
    to_world = face_transformation(polygon.outer_path)
    normal = polygon.outward_normal
    if to_world is None or normal is None:
        return None
    return _Frame(to_world, to_world.inverse(), normal)


def _face_shape(polygon: Polygon3d, frame: _Frame, tolerance: float) -> Optional[Polygon]:
    """Project onto the frame's z = 0 plane; None if any vertex is off-plane."""
    outer = frame.to_face.apply_points(remove_duplicate_points(polygon.outer_path, 0.0))
    holes = [
        frame.to_face.apply_points(remove_duplicate_points(h, 0.0))
        for h in polygon.inner_paths
    ]
    for loop in [outer] + holes:
        if any(abs(p.z) > tolerance for p in loop):
            return None
    if len(outer) < 3:
        return None
    return Polygon(
        [(p.x, p.y) for p in outer],
        [[(p.x, p.y) for p in h] for h in holes if len(h) >= 3],
    )


def _from_face(shape: Polygon, frame: _Frame, flip: bool) -> Polygon3d:
    outer = [frame.to_world.apply_point(Point3d(x, y, 0.0)) for x, y in shape.exterior.coords[:-1]]
    holes = [
        [frame.to_world.apply_point(Point3d(x, y, 0.0)) for x, y in ring.coords[:-1]]
        for ring in shape.interiors
    ]
    polygon = Polygon3d(tuple(outer), tuple(tuple(h) for h in holes))
    return polygon.reversed() if flip else polygon


def _shape_coords(shape: Polygon) -> list[tuple[float, float]]:
    coords = list(shape.exterior.coords)
    for ring in shape.interiors:
        coords.extend(ring.coords)
    return coords


def _reference_key(polygon: Polygon3d):
    centroid = polygon.centroid or Point3d()
    return (round(polygon.gross_area, 6), -round(centroid.x, 6), -round(centroid.y, 6), -round(centroid.z, 6))


def _canonical_start(polygon: Polygon3d) -> Polygon3d:
    """Rotate the outer loop to start at its lowest (x, y, z) vertex."""
    outer = polygon.outer_path
    if not outer:
        return polygon
    start = min(range(len(outer)), key=lambda i: (round(outer[i].x, 6), round(outer[i].y, 6), round(outer[i].z, 6)))
    return Polygon3d(outer[start:] + outer[:start], polygon.inner_paths)


def _ordered(shapes: list[Polygon]) -> list[Polygon]:
    return sorted(shapes, key=lambda s: (-round(s.area, 6), round(s.bounds[0], 6), round(s.bounds[1], 6)))


# ──────────────────────────────────────────────────────────────────
# CLEANUP
# ──────────────────────────────────────────────────────────────────

def _report(warnings: Optional[list[str]], message: str) -> None:
    logger.warning(message)
    if warnings is not None:
        warnings.append(message)


def _make_valid(geometry):
    if geometry.is_valid:
        return geometry
    return shapely.make_valid(geometry)


def _polygon_parts(geometry) -> list[Polygon]:
    if geometry is None or geometry.is_empty:
        return []
    if isinstance(geometry, Polygon):
        return [geometry]
    if isinstance(geometry, (MultiPolygon, GeometryCollection)):
        parts: list[Polygon] = []
        for g in geometry.geoms:
            parts.extend(_polygon_parts(g))
        return parts
    return []


def _as_single(geometry) -> Optional[Polygon]:
    parts = _polygon_parts(geometry)
    if len(parts) == 1:
        return parts[0]
    if len(parts) > 1:
        merged = unary_union(parts)
        if isinstance(merged, Polygon):
            return merged
    return None


def _repair(shape: Polygon, warnings: Optional[list[str]]) -> Optional[Polygon]:
    """Valid single polygon for ``shape``; spikes and bow-tie loops are resolved."""
    if shape.is_valid:
        return orient(shape, 1.0)
    repaired = _as_single(_make_valid(shape))
    if repaired is None:
        _report(warnings, "Dropped self-intersecting polygon that does not resolve to a single region")
        return None
    return orient(repaired, 1.0)


def _clean(geometry, tolerance: float, warnings: Optional[list[str]], label: str) -> list[Polygon]:
    # Overlay noise far below the tolerance is not worth a warning
    dust = tolerance * tolerance / 100.0
    cleaned: list[Polygon] = []
    for part in _polygon_parts(_make_valid(geometry)):
        if part.area <= dust:
            logger.debug("Discarded %s dust (area %.3g)", label, part.area)
            continue
        for piece in _open(part, tolerance, warnings, label):
            simplified = _remove_collinear(piece, tolerance)
            if simplified is None or simplified.area <= tolerance * tolerance:
                _report(warnings, f"Dropped degenerate {label} piece (area {piece.area:.6f} m2)")
                continue
            if not simplified.is_valid:
                _report(warnings, f"Dropped self-intersecting {label} piece (area {piece.area:.6f} m2)")
                continue
            cleaned.append(orient(simplified, 1.0))
    return cleaned


def _open(shape: Polygon, tolerance: float, warnings: Optional[list[str]], label: str) -> list[Polygon]:
    """Erode then re-expand by half the tolerance, snapping back onto the original vertices."""
    half = tolerance / 2.0
    eroded = shape.buffer(-half, join_style="mitre", mitre_limit=_MITRE_LIMIT)
    if eroded.is_empty:
        _report(warnings, f"Dropped {label} sliver narrower than {tolerance} m (area {shape.area:.6f} m2)")
        return []

    opened = eroded.buffer(half, join_style="mitre", mitre_limit=_MITRE_LIMIT)
    snapped = shapely.snap(opened, shape, tolerance)
    if snapped.is_valid and not snapped.is_empty:
        opened = snapped

    parts = _polygon_parts(opened)
    change = abs(shape.area - sum(p.area for p in parts))
    if change > tolerance * shape.length:
        logger.debug("Opening changed %s area by %.6f; kept the unopened polygon", label, change)
        return [shape]
    return parts


def _remove_collinear(shape: Polygon, tolerance: float) -> Optional[Polygon]:
    exterior = _simplify_ring(list(shape.exterior.coords)[:-1], tolerance)
    if len(exterior) < 3:
        return None
    holes = [_simplify_ring(list(r.coords)[:-1], tolerance) for r in shape.interiors]
    return Polygon(exterior, [h for h in holes if len(h) >= 3])


def _simplify_ring(coords: list[tuple[float, float]], tolerance: float) -> list[tuple[float, float]]:
    """Drop vertices that sit within tolerance of their neighbours or of the line through them."""
    points = [(float(c[0]), float(c[1])) for c in coords]
    changed = True
    while changed and len(points) >= 3:
        changed = False
        n = len(points)
        for i in range(n):
            prev_pt, cur, next_pt = points[i - 1], points[i], points[(i + 1) % n]
            if math.dist(prev_pt, cur) <= tolerance or _is_collinear(prev_pt, cur, next_pt, tolerance):
                del points[i]
                changed = True
                break
    return points


def _is_collinear(a, b, c, tolerance: float) -> bool:
    span = math.dist(a, c)
    if span <= tolerance:
        # a and c coincide, so b is the tip of a spike
        return True
    cross = (c[0] - a[0]) * (b[1] - a[1]) - (c[1] - a[1]) * (b[0] - a[0])
    return abs(cross) / span <= tolerance


# ──────────────────────────────────────────────────────────────────
# HOLE DECOMPOSITION
# ──────────────────────────────────────────────────────────────────

def _decompose_all(shapes: list[Polygon]) -> list[Polygon]:
    result: list[Polygon] = []
    for shape in shapes:
        result.extend(_decompose(shape))
    return result


def _decompose(shape: Polygon) -> list[Polygon]:
    """Split a polygon with holes into hole-free pieces along vertical cuts."""
    if not shape.interiors:
        return [shape]

    hole = Polygon(shape.interiors[0])
    x = hole.centroid.x
    _, miny, _, maxy = shape.bounds
    cutter = LineString([(x, miny - 1.0), (x, maxy + 1.0)])

    pieces = _polygon_parts(split(shape, cutter))
    if len(pieces) < 2:
        logger.warning("Could not cut hole out of polygon (area %.3f)", shape.area)
        return [shape]

    result: list[Polygon] = []
    for piece in pieces:
        for part in _decompose(piece):
            result.append(orient(part, 1.0))
    return result
