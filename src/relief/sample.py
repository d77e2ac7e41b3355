"""
Elevation sample model for per-region relief rendering.

An ElevationSample is a regular planar grid of elevations covering one region.
Cells outside the region (or without data) are NaN. Samples are built from a
raster array plus its rasterio Affine transform, after the raster has been
reprojected to a planar CRS.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Optional, Tuple

import numpy as np
from rasterio import Affine

from src.config import DEFAULT_CRS

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class ElevationSample:
    """Elevation grid for a single region in a planar coordinate system."""

    x: np.ndarray
    """Column centre coordinates (1D, length = width)."""

    y: np.ndarray
    """Row centre coordinates (1D, length = height)."""

    elevation: np.ndarray
    """Elevation values (2D, height x width). NaN marks no-data cells."""

    crs: str = DEFAULT_CRS

    transform: Optional[Affine] = field(default=None, compare=False)
    """Affine transform of the source raster, when the sample came from one."""

    def __post_init__(self):
        if self.elevation.ndim != 2:
            raise ValueError(f"Elevation must be 2D, got shape {self.elevation.shape}")
        height, width = self.elevation.shape
        if len(self.x) != width or len(self.y) != height:
            raise ValueError(
                f"Coordinate lengths ({len(self.x)}, {len(self.y)}) do not match "
                f"grid shape {self.elevation.shape}"
            )

    @property
    def shape(self) -> Tuple[int, int]:
        return self.elevation.shape

    @property
    def valid_mask(self) -> np.ndarray:
        return ~np.isnan(self.elevation)

    @property
    def is_empty(self) -> bool:
        """True when the sample has no cells or every elevation is undefined."""
        return self.elevation.size == 0 or not self.valid_mask.any()

    @property
    def extent(self) -> Tuple[float, float, float, float]:
        """(xmin, xmax, ymin, ymax) of the cell centres."""
        return (
            float(np.min(self.x)),
            float(np.max(self.x)),
            float(np.min(self.y)),
            float(np.max(self.y)),
        )

    def clamp_negative(self) -> "ElevationSample":
        """
        Return a copy with negative elevations floored to 0.

        Below-datum cells and ocean artifacts read as sea level; NaN cells stay NaN.
        """
        negative = self.elevation < 0  # NaN compares False
        n_negative = int(negative.sum())
        if not n_negative:
            return self
        logger.debug(f"Clamping {n_negative} negative elevation cells to 0")
        elevation = self.elevation.copy()
        elevation[negative] = 0.0
        return replace(self, elevation=elevation)

    def triples(self) -> np.ndarray:
        """
        Return the sample as ordered (x, y, elevation) rows.

        Rows are emitted in row-major grid order and include no-data cells
        (elevation NaN), matching a raster-to-table conversion.

        Returns:
            np.ndarray of shape (height * width, 3)
        """
        xx, yy = np.meshgrid(self.x, self.y)
        return np.column_stack([xx.ravel(), yy.ravel(), self.elevation.ravel()])


def sample_from_raster(
    data: np.ndarray,
    transform: Affine,
    crs: str = DEFAULT_CRS,
    nodata: Optional[float] = None,
    clamp_negative: bool = True,
) -> ElevationSample:
    """
    Build an ElevationSample from a single-band raster array.

    Nodata values become NaN. Negative elevations are floored to zero by default
    so that below-datum and ocean artifacts read as sea level.

    Args:
        data: 2D raster array (height x width)
        transform: Affine transform mapping (col, row) to planar (x, y)
        crs: Coordinate reference system of the transform
        nodata: Raster nodata value to mask out (NaN is always treated as nodata)
        clamp_negative: Floor negative elevations to 0 (default: True)

    Returns:
        ElevationSample with cell-centre coordinates
    """
    elevation = np.asarray(data, dtype=np.float64).copy()
    if nodata is not None and not np.isnan(nodata):
        elevation[elevation == nodata] = np.nan

    height, width = elevation.shape
    cols = np.arange(width) + 0.5
    rows = np.arange(height) + 0.5
    x = transform.c + transform.a * cols
    y = transform.f + transform.e * rows

    sample = ElevationSample(x=x, y=y, elevation=elevation, crs=crs, transform=transform)
    return sample.clamp_negative() if clamp_negative else sample
