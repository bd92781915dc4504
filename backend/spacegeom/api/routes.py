from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, HTTPException

from spacegeom.config import settings
from spacegeom.geometry_engine.boolean_ops import check_tolerance, join_all
from spacegeom.geometry_engine.footprint import exposed_perimeter, floor_print
from spacegeom.geometry_engine.polygon import Polygon3d
from spacegeom.geometry_engine.primitives import to_coords
from spacegeom.geometry_engine.spaces import space_transformation, surface_points
from spacegeom.geometry_engine.surface_intersection import intersect_surfaces
from spacegeom.geometry_engine.surface_matching import match_surfaces, unmatch_surfaces
from spacegeom.models.schemas import (
    ExposedPerimeterRequest, ExposedPerimeterResponse,
    FloorPrintRequest, FloorPrintResponse,
    IntersectRequest, IntersectResponse,
    MatchRequest, MatchResponse,
    PolygonModel, SurfaceMatchModel,
    UnionRequest, UnionResponse,
    UnmatchRequest, UnmatchResponse,
)

router = APIRouter(prefix="/api")


def _tolerance(requested: Optional[float]) -> float:
    tolerance = settings.default_tolerance if requested is None else requested
    try:
        check_tolerance(tolerance)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return tolerance


def _to_polygon(model: PolygonModel) -> Polygon3d:
    return Polygon3d.from_coords(model.outer, model.holes)


def _to_model(polygon: Polygon3d) -> PolygonModel:
    return PolygonModel(
        outer=to_coords(polygon.outer_path),
        holes=[to_coords(h) for h in polygon.inner_paths],
    )


@router.post("/intersect", response_model=IntersectResponse)
def intersect(request: IntersectRequest):
    """Split both spaces' surfaces so shared regions become coincident surfaces."""
    tolerance = _tolerance(request.tolerance)
    outcome = intersect_surfaces(
        request.space_a, request.space_b, tolerance, settings.max_intersection_passes,
    )
    return IntersectResponse(
        space_a=outcome.space_a,
        space_b=outcome.space_b,
        coincident_surfaces=outcome.coincident_surfaces,
        warnings=outcome.warnings,
    )


@router.post("/match", response_model=MatchResponse)
def match(request: MatchRequest):
    """Link mirror-face surfaces of two spaces, intersecting them first by default."""
    tolerance = _tolerance(request.tolerance)
    space_a, space_b = request.space_a, request.space_b
    warnings: list[str] = []

    try:
        if request.intersect:
            split = intersect_surfaces(space_a, space_b, tolerance, settings.max_intersection_passes)
            space_a, space_b = split.space_a, split.space_b
            warnings.extend(split.warnings)
        outcome = match_surfaces(space_a, space_b, tolerance)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return MatchResponse(
        space_a=outcome.space_a,
        space_b=outcome.space_b,
        matches=[SurfaceMatchModel(**m.to_dict()) for m in outcome.matches],
        warnings=warnings + outcome.warnings,
    )


@router.post("/unmatch", response_model=UnmatchResponse)
def unmatch(request: UnmatchRequest):
    """Release every matched surface of a space and of the given neighbors."""
    outcome = unmatch_surfaces(request.space, request.neighbors)
    return UnmatchResponse(space=outcome.space, neighbors=outcome.neighbors)


@router.post("/union", response_model=UnionResponse)
def union(request: UnionRequest):
    """Union coplanar polygons into disjoint polygons with holes."""
    tolerance = _tolerance(request.tolerance)
    warnings: list[str] = []
    joined = join_all([_to_polygon(p) for p in request.polygons], tolerance, warnings)
    return UnionResponse(polygons=[_to_model(p) for p in joined], warnings=warnings)


@router.post("/floor-print", response_model=FloorPrintResponse)
def floor_print_endpoint(request: FloorPrintRequest):
    """Footprint of a set of spaces at the given elevation."""
    tolerance = _tolerance(request.tolerance)
    warnings: list[str] = []
    footprint = floor_print(request.spaces, request.elevation, tolerance, warnings)
    if footprint is None:
        return FloorPrintResponse(warnings=warnings)
    return FloorPrintResponse(
        floor_print=_to_model(footprint),
        area=round(footprint.net_area, 6),
        perimeter=round(footprint.perimeter, 6),
        warnings=warnings,
    )


@router.post("/exposed-perimeter", response_model=ExposedPerimeterResponse)
def exposed_perimeter_endpoint(request: ExposedPerimeterRequest):
    """Length of a surface's boundary lying on the footprint's outer edge."""
    tolerance = _tolerance(request.tolerance)
    transformation = space_transformation(request.space) if request.space is not None else None
    points = surface_points(request.surface, transformation)
    footprint = _to_polygon(request.footprint)
    if footprint.is_degenerate(tolerance):
        raise HTTPException(status_code=400, detail="Footprint polygon is degenerate")
    return ExposedPerimeterResponse(
        exposed_perimeter=round(exposed_perimeter(points, footprint, tolerance), 6),
        perimeter=round(footprint.perimeter, 6),
    )
