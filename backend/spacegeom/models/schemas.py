from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

Vertex = tuple[float, float, float]


class SurfaceType(str, Enum):
    FLOOR = "Floor"
    WALL = "Wall"
    ROOF_CEILING = "RoofCeiling"


class BoundaryCondition(str, Enum):
    OUTDOORS = "Outdoors"
    GROUND = "Ground"
    SURFACE = "Surface"          # matched to a surface of another space
    ADIABATIC = "Adiabatic"


# ──────────────────────────────────────────────────────────────────
# BUILDING MODEL
# ──────────────────────────────────────────────────────────────────

class SubSurface(BaseModel):
    """An opening (window, door) set into a surface."""
    model_config = {"frozen": True}

    name: str
    vertices: list[Vertex]
    sub_surface_type: str = "FixedWindow"
    adjacent_sub_surface: Optional[str] = None


class Surface(BaseModel):
    """A planar surface of a space; vertices are in the space's local frame."""
    model_config = {"frozen": True}

    name: str
    vertices: list[Vertex]
    surface_type: Optional[SurfaceType] = None  # None: classify from tilt
    outside_boundary_condition: BoundaryCondition = BoundaryCondition.OUTDOORS
    adjacent_surface: Optional[str] = None
    previous_boundary_condition: Optional[BoundaryCondition] = None
    sub_surfaces: list[SubSurface] = []


class Space(BaseModel):
    """A space and its surfaces, placed by origin and relative north."""
    model_config = {"frozen": True}

    name: str
    x_origin: float = 0.0
    y_origin: float = 0.0
    z_origin: float = 0.0
    direction_of_relative_north: float = 0.0  # degrees
    surfaces: list[Surface] = []


class PolygonModel(BaseModel):
    outer: list[Vertex]
    holes: list[list[Vertex]] = []


# ──────────────────────────────────────────────────────────────────
# API REQUESTS / RESPONSES
# ──────────────────────────────────────────────────────────────────

class IntersectRequest(BaseModel):
    space_a: Space
    space_b: Space
    tolerance: Optional[float] = None


class IntersectResponse(BaseModel):
    space_a: Space
    space_b: Space
    coincident_surfaces: list[tuple[str, str]] = []
    warnings: list[str] = []


class MatchRequest(BaseModel):
    space_a: Space
    space_b: Space
    tolerance: Optional[float] = None
    intersect: bool = Field(default=True, description="Intersect the spaces before matching")


class SurfaceMatchModel(BaseModel):
    space_a: str
    surface_a: str
    space_b: str
    surface_b: str
    sub_surfaces: list[tuple[str, str]] = []


class MatchResponse(BaseModel):
    space_a: Space
    space_b: Space
    matches: list[SurfaceMatchModel] = []
    warnings: list[str] = []


class UnmatchRequest(BaseModel):
    space: Space
    neighbors: list[Space] = []


class UnmatchResponse(BaseModel):
    space: Space
    neighbors: list[Space] = []


class UnionRequest(BaseModel):
    polygons: list[PolygonModel]
    tolerance: Optional[float] = None


class UnionResponse(BaseModel):
    polygons: list[PolygonModel] = []
    warnings: list[str] = []


class FloorPrintRequest(BaseModel):
    spaces: list[Space]
    elevation: float = 0.0
    tolerance: Optional[float] = None


class FloorPrintResponse(BaseModel):
    floor_print: Optional[PolygonModel] = None
    area: Optional[float] = None
    perimeter: Optional[float] = None
    warnings: list[str] = []


class ExposedPerimeterRequest(BaseModel):
    surface: Surface
    footprint: PolygonModel
    space: Optional[Space] = None  # places the surface in world coordinates
    tolerance: Optional[float] = None


class ExposedPerimeterResponse(BaseModel):
    exposed_perimeter: float
    perimeter: float
