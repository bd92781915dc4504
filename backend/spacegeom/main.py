from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from spacegeom import __version__
from spacegeom.api.routes import router
from spacegeom.config import settings
from spacegeom.logging_config import setup_logging

setup_logging(settings.log_level, settings.log_file or None)

app = FastAPI(
    title="Space Geometry Engine",
    description=(
        "Planar polygon operations for building spaces: surface intersection "
        "and matching between adjacent spaces, polygon union, floor print "
        "and exposed perimeter."
    ),
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)


@app.get("/")
async def root():
    return {
        "name": "Space Geometry Engine",
        "version": __version__,
        "endpoints": {
            "api_docs": "/docs",
            "health": "/health",
            "intersect": "POST /api/intersect",
            "match": "POST /api/match",
            "unmatch": "POST /api/unmatch",
            "union": "POST /api/union",
            "floor_print": "POST /api/floor-print",
            "exposed_perimeter": "POST /api/exposed-perimeter",
        },
    }


@app.get("/health")
async def health():
    return {
        "status": "healthy",
        "version": __version__,
        "default_tolerance": settings.default_tolerance,
    }
