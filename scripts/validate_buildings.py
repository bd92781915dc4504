#!/usr/bin/env python3
"""
Validate the space geometry engine against small reference buildings.

Builds each test building from floor prints, intersects and matches its
spaces, computes the floor print and exposed perimeters, and prints the
results for manual review. Can be run against the live API or by importing
the engine directly.

Usage:
    # Against live API:
    python3 scripts/validate_buildings.py --api http://localhost:8000

    # Direct import (no server needed):
    python3 scripts/validate_buildings.py
"""

from __future__ import annotations

import argparse
import asyncio
import math
import os
import sys
from datetime import datetime

# Add backend to path for direct import mode
SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))
BACKEND_DIR = os.path.join(os.path.dirname(SCRIPT_DIR), "backend")
sys.path.insert(0, BACKEND_DIR)

# ──────────────────────────────────────────────────────────────────
# TEST BUILDINGS
# ──────────────────────────────────────────────────────────────────
# Each room: (name, x0, y0, x1, y1, height, placement overrides)

_COS30 = math.cos(math.radians(30.0))

TEST_BUILDINGS = [
    {
        "name": "Two rooms side by side",
        "rooms": [
            ("West", 0, 0, 10, 10, 3.0, {}),
            ("East", 10, 0, 20, 10, 3.0, {}),
        ],
        "verify": [
            "1 match: West Wall 2 / East Wall 4",
            "Floor print 200 m2, perimeter 60 m",
            "Exposed perimeter 30 m each",
        ],
    },
    {
        "name": "Hall with two side rooms",
        "rooms": [
            ("Hall", 0, 0, 20, 10, 3.0, {}),
            ("East A", 20, 0, 30, 5, 3.0, {}),
            ("East B", 20, 5, 30, 10, 3.0, {}),
        ],
        "verify": [
            "Hall Wall 2 split in two",
            "3 matches",
            "Floor print 300 m2, perimeter 80 m",
        ],
    },
    {
        "name": "Small room on a large one",
        "rooms": [
            ("Lower", 0, 0, 10, 10, 3.0, {}),
            ("Upper", 3, 0, 7, 5, 3.0, {"z_origin": 3.0}),
        ],
        "verify": [
            "Lower Ceiling split into a 20 m2 and an 80 m2 piece",
            "1 match: Lower Ceiling / Upper Floor",
            "Upper has no ground exposure",
        ],
    },
    {
        "name": "Courtyard ring",
        "rooms": [
            (f"Room {i}{j}", i * 5, j * 5, i * 5 + 5, j * 5 + 5, 3.0, {})
            for i in range(3) for j in range(3) if (i, j) != (1, 1)
        ],
        "verify": [
            "Floor print has one hole",
            "Net area 200 m2",
            "8 matches",
        ],
    },
    {
        "name": "Rotated pair (north 30)",
        "rooms": [
            ("A", 0, 0, 1, 1, 3.0, {"direction_of_relative_north": 30.0}),
            ("B", 0, 0, 1, 1, 3.0, {"direction_of_relative_north": 30.0,
                                    "x_origin": _COS30, "y_origin": -0.5}),
        ],
        "verify": [
            "1 match: A Wall 2 / B Wall 4",
            "Floor print 2 m2",
        ],
    },
]


def build_spaces(rooms: list) -> list:
    from spacegeom.geometry_engine.primitives import to_points
    from spacegeom.geometry_engine.spaces import space_from_floor_print

    spaces = []
    for name, x0, y0, x1, y1, height, placement in rooms:
        floor_print = to_points([(x0, y0, 0), (x1, y0, 0), (x1, y1, 0), (x0, y1, 0)])
        space = space_from_floor_print(name, floor_print, height)
        spaces.append(space.model_copy(update=placement))
    return spaces


# ──────────────────────────────────────────────────────────────────
# DIRECT ENGINE MODE (no server needed)
# ──────────────────────────────────────────────────────────────────

async def run_direct_analysis(rooms: list, tolerance: float) -> dict:
    """Run the geometry pipeline by importing the engine directly."""
    from spacegeom.geometry_engine.footprint import floor_print, space_exposed_perimeter
    from spacegeom.geometry_engine.surface_intersection import intersect_spaces
    from spacegeom.geometry_engine.surface_matching import match_spaces

    spaces = build_spaces(rooms)
    split = intersect_spaces(spaces, tolerance)
    matched = match_spaces(split.spaces, tolerance)
    warnings = split.warnings + matched.warnings

    footprint = floor_print(matched.spaces, tolerance=tolerance, warnings=warnings)
    exposed = {}
    if footprint is not None:
        exposed = {
            space.name: space_exposed_perimeter(space, footprint, tolerance)
            for space in matched.spaces
        }

    return {
        "spaces": [s.name for s in matched.spaces],
        "new_surfaces": split.new_surfaces,
        "matches": [m.to_dict() for m in matched.matches],
        "area": footprint.net_area if footprint else None,
        "perimeter": footprint.perimeter if footprint else None,
        "holes": len(footprint.inner_paths) if footprint else 0,
        "exposed": exposed,
        "warnings": warnings,
    }


# ──────────────────────────────────────────────────────────────────
# API MODE
# ──────────────────────────────────────────────────────────────────

async def run_api_analysis(rooms: list, api_base: str, tolerance: float) -> dict:
    """Run the same pipeline via the HTTP API, one space pair at a time."""
    import httpx

    spaces = [s.model_dump(mode="json") for s in build_spaces(rooms)]
    matches = []
    warnings = []

    async with httpx.AsyncClient(timeout=60) as client:
        for i in range(len(spaces)):
            for j in range(i + 1, len(spaces)):
                resp = await client.post(f"{api_base}/api/match", json={
                    "space_a": spaces[i], "space_b": spaces[j], "tolerance": tolerance,
                })
                if resp.status_code != 200:
                    return {"error": f"API returned {resp.status_code}: {resp.text[:500]}"}
                data = resp.json()
                spaces[i], spaces[j] = data["space_a"], data["space_b"]
                matches.extend(data["matches"])
                warnings.extend(data["warnings"])

        resp = await client.post(f"{api_base}/api/floor-print", json={
            "spaces": spaces, "tolerance": tolerance,
        })
        if resp.status_code != 200:
            return {"error": f"API returned {resp.status_code}: {resp.text[:500]}"}
        footprint = resp.json()

    return {
        "spaces": [s["name"] for s in spaces],
        "matches": matches,
        "area": footprint.get("area"),
        "perimeter": footprint.get("perimeter"),
        "holes": len(footprint["floor_print"]["holes"]) if footprint.get("floor_print") else 0,
        "warnings": warnings + footprint.get("warnings", []),
    }


# ──────────────────────────────────────────────────────────────────
# OUTPUT FORMATTING
# ──────────────────────────────────────────────────────────────────

def format_result(test: dict, result: dict) -> str:
    """Format a single test result for console output."""
    lines = []
    lines.append(f"\n{'='*70}")
    lines.append(f"TEST: {test['name']}")
    lines.append(f"{'='*70}")

    if "error" in result:
        lines.append(f"  ERROR: {result['error']}")
        return "\n".join(lines)

    lines.append(f"  Spaces:   {', '.join(result['spaces'])}")
    if result.get("new_surfaces"):
        lines.append(f"  Split:    {', '.join(result['new_surfaces'])}")

    matches = result.get("matches", [])
    lines.append(f"\n  MATCHES ({len(matches)}):")
    for m in matches:
        lines.append(f"    {m['surface_a']}  <->  {m['surface_b']}")
        for sub_a, sub_b in m.get("sub_surfaces", []):
            lines.append(f"      {sub_a}  <->  {sub_b}")

    if result.get("area") is not None:
        lines.append(f"\n  FLOOR PRINT:")
        lines.append(f"    Area:      {result['area']:,.2f} m2")
        lines.append(f"    Perimeter: {result['perimeter']:,.2f} m")
        lines.append(f"    Holes:     {result['holes']}")
    else:
        lines.append(f"\n  FLOOR PRINT: none")

    exposed = result.get("exposed")
    if exposed:
        lines.append(f"\n  EXPOSED PERIMETER:")
        for name, length in exposed.items():
            lines.append(f"    {name:<12} {length:,.2f} m")

    if result.get("warnings"):
        lines.append(f"\n  WARNINGS:")
        for w in result["warnings"]:
            lines.append(f"    - {w}")

    # Verification checklist
    lines.append(f"\n  VERIFY:")
    for v in test.get("verify", []):
        lines.append(f"    [ ] {v}")

    return "\n".join(lines)


# ──────────────────────────────────────────────────────────────────
# MAIN
# ──────────────────────────────────────────────────────────────────

async def main():
    parser = argparse.ArgumentParser(description="Validate the space geometry engine against reference buildings")
    parser.add_argument("--api", default=None, help="API base URL (e.g., http://localhost:8000)")
    parser.add_argument("--tests", nargs="*", type=int, help="Run specific test numbers (1-indexed)")
    parser.add_argument("--tolerance", type=float, default=0.01, help="Geometry tolerance in meters")
    args = parser.parse_args()

    print(f"\nSpace Geometry Engine Validation")
    print(f"Date: {datetime.now().strftime('%Y-%m-%d %H:%M')}")
    print(f"Mode: {'API' if args.api else 'Direct Import'}")
    if args.api:
        print(f"API:  {args.api}")
    print(f"Tests: {len(TEST_BUILDINGS)} configured")

    tests_to_run = TEST_BUILDINGS
    if args.tests:
        tests_to_run = [TEST_BUILDINGS[i-1] for i in args.tests if 1 <= i <= len(TEST_BUILDINGS)]

    results = []
    for i, test in enumerate(tests_to_run, 1):
        print(f"\n>>> Running test {i}/{len(tests_to_run)}: {test['name']}...")
        try:
            if args.api:
                result = await run_api_analysis(test["rooms"], args.api, args.tolerance)
            else:
                result = await run_direct_analysis(test["rooms"], args.tolerance)
            print(format_result(test, result))
            status = "error" if "error" in result else "ok"
            results.append({"test": test["name"], "status": status, "error": result.get("error")})
        except Exception as e:
            print(f"\n  FAILED: {e}")
            import traceback
            traceback.print_exc()
            results.append({"test": test["name"], "status": "error", "error": str(e)})

    # Summary
    print(f"\n{'='*70}")
    print("SUMMARY")
    print(f"{'='*70}")
    ok = sum(1 for r in results if r["status"] == "ok")
    err = sum(1 for r in results if r["status"] == "error")
    print(f"  Passed: {ok}/{len(results)}")
    if err:
        print(f"  Failed: {err}/{len(results)}")
        for r in results:
            if r["status"] == "error":
                print(f"    - {r['test']}: {r.get('error') or 'unknown'}")
    print()


if __name__ == "__main__":
    asyncio.run(main())
