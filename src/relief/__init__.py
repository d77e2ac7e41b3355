"""
Per-region hypsometric relief maps.

Core functionality:
- Adaptive classification breaks and hypsometric palettes per region
- 2D Tanaka-style relief composition (matplotlib)
- 3D extrusion with HDR environment lighting (Blender), with 2D fallback
- Region orchestration over a boundary dataset
"""

from .breaks import compute_breaks, elevation_range
from .color_mapping import Palette, build_palette
from .composer import ReliefArtifact, compose_relief, save_relief
from .extrusion import ExtrusionRenderer, ExtrusionSettings, RenderResult
from .pipeline import ReliefPipeline, RegionOutcome
from .regions import Region, load_regions, slugify
from .sample import ElevationSample, sample_from_raster

__all__ = [
    "compute_breaks",
    "elevation_range",
    "Palette",
    "build_palette",
    "ReliefArtifact",
    "compose_relief",
    "save_relief",
    "ExtrusionRenderer",
    "ExtrusionSettings",
    "RenderResult",
    "ReliefPipeline",
    "RegionOutcome",
    "Region",
    "load_regions",
    "slugify",
    "ElevationSample",
    "sample_from_raster",
]
