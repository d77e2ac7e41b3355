"""
Region boundaries and output naming.

Regions come from a vector boundary dataset (shapefile, GeoPackage, GeoJSON...)
with one name field. Records sharing a name are merged into one region.
Output file names derive deterministically from the region name so reruns
into the same folder overwrite rather than duplicate.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, NamedTuple, Optional

import geopandas as gpd
from shapely.geometry.base import BaseGeometry

from src.utils.helpers import collapse_whitespace, ensure_dir, timestamp

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Region:
    """One administrative region to render."""

    name: str
    geometry: BaseGeometry
    crs: Optional[str] = None


class OutputPaths(NamedTuple):
    relief_2d: Path
    render_3d: Path
    render_3d_failed: Path


def load_regions(path, name_field: str) -> List[Region]:
    """
    Load region boundaries from a vector dataset.

    Args:
        path: Path to any vector format geopandas can read
        name_field: Attribute holding the region name

    Returns:
        Regions in order of first appearance, geometries dissolved by name

    Raises:
        KeyError: If name_field is not an attribute of the dataset
    """
    gdf = gpd.read_file(path)
    if name_field not in gdf.columns:
        raise KeyError(
            f"Field '{name_field}' not found in {path}. Available: {', '.join(map(str, gdf.columns))}"
        )

    gdf = gdf[gdf[name_field].notna() & gdf.geometry.notna()]
    crs = gdf.crs.to_string() if gdf.crs is not None else None

    regions = []
    for name in gdf[name_field].drop_duplicates():
        geometry = gdf.loc[gdf[name_field] == name].geometry.union_all()
        regions.append(Region(name=str(name), geometry=geometry, crs=crs))

    logger.info(f"Loaded {len(regions)} regions from {Path(path).name}")
    return regions


def _normalize(text) -> str:
    text = re.sub(r"[\\/]", "-", collapse_whitespace(text).lower())
    return re.sub(r"\s+", "_", text)


def slugify(name: str, prefix: Optional[str] = None) -> str:
    """
    File-name slug for a region: lower case, whitespace runs become '_'.

    Examples:
        >>> slugify("  Thiruvananthapuram  North ")
        'thiruvananthapuram_north'
        >>> slugify("Wayanad", prefix="Kerala")
        'kerala-wayanad'
    """
    slug = _normalize(name)
    if prefix:
        slug = f"{_normalize(prefix)}-{slug}"
    return slug


def output_paths(output_dir, slug: str) -> OutputPaths:
    output_dir = Path(output_dir)
    return OutputPaths(
        relief_2d=output_dir / f"{slug}-tanaka-2d.png",
        render_3d=output_dir / f"{slug}-tanaka-3d.png",
        render_3d_failed=output_dir / f"{slug}-tanaka-3d-failed.png",
    )


def make_output_dir(root, prefix: str = "region", now=None) -> Path:
    """
    Create the timestamped output folder for a run, e.g. region_maps_20250131_142501.

    Raises:
        OSError: If the folder cannot be created
    """
    output_dir = ensure_dir(Path(root) / f"{prefix}_maps_{timestamp(now)}")
    logger.info(f"Output directory: {output_dir}")
    return output_dir
