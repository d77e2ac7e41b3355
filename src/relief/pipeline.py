"""
Per-region relief pipeline.

Runs every region through the same stages, one region at a time:

    elevation -> breaks -> palette -> 2D relief -> 3D extrusion (or 2D fallback)

Each region's turn is isolated: missing data and rendering problems are
recorded on that region's outcome and the run moves on. Only failures to write
output (no output folder, 2D map cannot be saved) abort the run.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional

from tqdm import tqdm

from src.config import DEFAULT_CAPTION
from src.relief.breaks import compute_breaks, elevation_range
from src.relief.color_mapping import build_palette
from src.relief.composer import DPI, compose_relief, save_relief
from src.relief.extrusion import ExtrusionRenderer
from src.relief.regions import Region, output_paths, slugify

logger = logging.getLogger(__name__)

SKIPPED = "skipped"
RENDERED = "rendered"
FALLBACK = "fallback"


@dataclass
class RegionOutcome:
    """What happened to one region."""

    name: str
    slug: str
    status: str
    paths: List[Path] = field(default_factory=list)
    reason: Optional[str] = None


class ReliefPipeline:
    """
    Renders relief maps for a sequence of regions into one output folder.

    Attributes:
        elevation_source: Object with fetch(region) -> ElevationSample
        output_dir: Existing folder receiving the images
        renderer: ExtrusionRenderer used for the 3D stage
        prefix: Optional dataset prefix for file names (e.g. "kerala")
        caption: Data provenance caption drawn on every map
        dpi: Resolution of the saved 2D maps
    """

    def __init__(
        self,
        elevation_source,
        output_dir,
        renderer: Optional[ExtrusionRenderer] = None,
        prefix: Optional[str] = None,
        caption: str = DEFAULT_CAPTION,
        dpi: int = DPI,
    ):
        self.elevation_source = elevation_source
        self.output_dir = Path(output_dir)
        self.renderer = renderer or ExtrusionRenderer()
        self.prefix = prefix
        self.caption = caption
        self.dpi = dpi

    def process_region(self, region: Region) -> RegionOutcome:
        """
        Run one region through all stages.

        Raises:
            OSError: If the 2D map or the fallback copy cannot be written
        """
        slug = slugify(region.name, self.prefix)
        paths = output_paths(self.output_dir, slug)
        logger.info(f"Processing region: {region.name}")

        try:
            sample = self.elevation_source.fetch(region)
        except Exception as e:
            reason = f"elevation unavailable ({type(e).__name__}: {e})"
            logger.warning(f"Skipping {region.name}: {reason}")
            return RegionOutcome(region.name, slug, SKIPPED, reason=reason)

        sample = sample.clamp_negative()
        if sample.is_empty:
            logger.warning(f"No elevation data for region: {region.name}")
            return RegionOutcome(region.name, slug, SKIPPED, reason="no elevation data")

        lo, hi = elevation_range(sample.elevation)
        breaks = compute_breaks(lo, hi)
        palette = build_palette(breaks)
        logger.info(
            f"{region.name}: elevation {lo:.0f}-{hi:.0f} m, {len(breaks) - 1} bands, "
            f"{len(palette)} colors"
        )

        artifact = compose_relief(
            sample,
            breaks,
            palette,
            title=f"{region.name} : Digital Elevation Model",
            caption=self.caption,
        )
        try:
            save_relief(artifact, paths.relief_2d, dpi=self.dpi)
            result = self.renderer.render(artifact, paths.render_3d, paths.render_3d_failed)
        finally:
            artifact.figure.clear()

        status = RENDERED if result.ok else FALLBACK
        return RegionOutcome(
            region.name, slug, status, paths=[paths.relief_2d, result.path], reason=result.reason
        )

    def run(self, regions: Iterable[Region]) -> List[RegionOutcome]:
        """
        Process regions sequentially; one region's failure never stops the others.

        Returns:
            One RegionOutcome per region, in input order
        """
        regions = list(regions)
        outcomes = []
        for region in tqdm(regions, desc="Regions", unit="region"):
            try:
                outcome = self.process_region(region)
            except OSError:
                logger.error(f"Cannot write output for {region.name}, aborting run")
                raise
            except Exception as e:
                reason = f"{type(e).__name__}: {e}"
                logger.error(f"Failed to process {region.name}: {reason}")
                outcome = RegionOutcome(region.name, slugify(region.name, self.prefix), SKIPPED, reason=reason)
            outcomes.append(outcome)

        n_rendered = sum(o.status == RENDERED for o in outcomes)
        n_fallback = sum(o.status == FALLBACK for o in outcomes)
        n_skipped = sum(o.status == SKIPPED for o in outcomes)
        logger.info(
            f"Done: {n_rendered} rendered in 3D, {n_fallback} 2D fallbacks, {n_skipped} skipped"
        )
        logger.info(f"All region maps have been generated and saved in: {self.output_dir}")
        return outcomes
