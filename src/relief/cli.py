"""
Command line entry point: render Tanaka relief maps for every region in a boundary file.

Usage:
    relief-maps data/boundaries/kerala_district.shp --name-field DISTRICT --prefix kerala
    relief-maps regions.gpkg --zoom 10 --output-root output/
"""

import argparse
import logging
import sys
from pathlib import Path

from src.config import DEFAULT_LOG_LEVEL, DEFAULT_NAME_FIELD, DEFAULT_ZOOM, OUTPUT_ROOT
from src.relief.dem_source import TerrainTileSource
from src.relief.extrusion import ExtrusionRenderer, ExtrusionSettings
from src.relief.pipeline import ReliefPipeline
from src.relief.regions import load_regions, make_output_dir
from src.utils.helpers import setup_logging


def build_parser():
    parser = argparse.ArgumentParser(
        description="Render 2D/3D Tanaka relief maps for each region in a boundary dataset"
    )
    parser.add_argument("boundaries", type=Path, help="Vector file with region boundaries")
    parser.add_argument("--name-field", default=DEFAULT_NAME_FIELD, help="Region name attribute")
    parser.add_argument("--prefix", default=None, help="Prefix for output names and folder")
    parser.add_argument("--output-root", type=Path, default=OUTPUT_ROOT)
    parser.add_argument("--zoom", type=int, default=DEFAULT_ZOOM, help="Terrain tile zoom level")
    parser.add_argument("--samples", type=int, default=128, help="Cycles render samples")
    parser.add_argument("--cpu", action="store_true", help="Render on CPU only")
    parser.add_argument("--log-level", default=DEFAULT_LOG_LEVEL)
    parser.add_argument("--log-file", type=Path, default=None)
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    logger = setup_logging("src", level=args.log_level, log_file=args.log_file)

    regions = load_regions(args.boundaries, args.name_field)
    output_dir = make_output_dir(args.output_root, prefix=args.prefix or "region")

    renderer = ExtrusionRenderer(settings=ExtrusionSettings(samples=args.samples, use_gpu=not args.cpu))
    pipeline = ReliefPipeline(
        TerrainTileSource(zoom=args.zoom),
        output_dir,
        renderer=renderer,
        prefix=args.prefix,
    )
    outcomes = pipeline.run(regions)

    for outcome in outcomes:
        if outcome.reason:
            logger.log(
                logging.WARNING if outcome.status == "skipped" else logging.INFO,
                f"{outcome.name}: {outcome.status} ({outcome.reason})",
            )
    return 0


if __name__ == "__main__":
    sys.exit(main())
