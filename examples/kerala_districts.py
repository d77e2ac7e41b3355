#!/usr/bin/env python3
"""
Kerala districts: 2D Tanaka relief and 3D render for every district.

Reads the district shapefile, fetches AWS terrain tiles at zoom 9 for each
district and writes kerala-<district>-tanaka-2d.png plus either the 3D render
or a -3d-failed copy of the 2D map into a timestamped folder.

Requirements:
- Blender Python API (bpy) for the 3D renders (2D maps are written without it)

Usage:
    python examples/kerala_districts.py
    python examples/kerala_districts.py --shapefile data/boundaries/kerala_district.shp --samples 64
"""

import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.config import BOUNDARY_DIR, OUTPUT_ROOT
from src.relief.dem_source import TerrainTileSource
from src.relief.extrusion import ExtrusionRenderer, ExtrusionSettings
from src.relief.pipeline import ReliefPipeline
from src.relief.regions import load_regions, make_output_dir
from src.utils.helpers import setup_logging


def main():
    import argparse
    parser = argparse.ArgumentParser(description="Kerala district relief maps")
    parser.add_argument("--shapefile", type=Path, default=BOUNDARY_DIR / "kerala_district.shp")
    parser.add_argument("--output-root", type=Path, default=OUTPUT_ROOT)
    parser.add_argument("--samples", type=int, default=128)
    args = parser.parse_args()

    logger = setup_logging("src")

    districts = load_regions(args.shapefile, name_field="DISTRICT")
    print(f"Districts: {', '.join(d.name for d in districts)}")

    output_dir = make_output_dir(args.output_root, prefix="kerala_district")
    pipeline = ReliefPipeline(
        TerrainTileSource(zoom=9),
        output_dir,
        renderer=ExtrusionRenderer(settings=ExtrusionSettings(samples=args.samples)),
        prefix="kerala",
    )
    outcomes = pipeline.run(districts)

    for outcome in outcomes:
        marker = {"rendered": "✓", "fallback": "~", "skipped": "✗"}[outcome.status]
        print(f"{marker} {outcome.name}: {outcome.status}" + (f" ({outcome.reason})" if outcome.reason else ""))

    logger.info(f"All district maps have been generated and saved in: {output_dir}")


if __name__ == "__main__":
    main()
