"""
Elevation acquisition from AWS Terrain Tiles.

Fetches terrarium-encoded PNG tiles covering a region, decodes them to metres,
mosaics them in Web Mercator (EPSG:3857, the tiles' native projection) and
masks everything outside the region geometry.

Terrarium encoding:
    elevation = R * 256 + G + B / 256 - 32768

Usage::

    from src.relief.dem_source import TerrainTileSource

    source = TerrainTileSource(zoom=9)
    sample = source.fetch(region)
"""

import logging
import math
import warnings
from pathlib import Path
from typing import List, Optional, Tuple

import geopandas as gpd
import numpy as np
import requests
from rasterio import Affine
from rasterio.errors import NotGeoreferencedWarning
from rasterio.features import geometry_mask
from rasterio.io import MemoryFile

from src.config import DEFAULT_CRS, DEFAULT_ZOOM, TERRAIN_TILE_URL, TILE_CACHE
from src.relief.regions import Region
from src.relief.sample import ElevationSample, sample_from_raster

logger = logging.getLogger(__name__)

TILE_SIZE = 256
EARTH_HALF_CIRCUMFERENCE = 20037508.342789244
MAX_LATITUDE = 85.0511287798


def lonlat_to_tile(lon: float, lat: float, zoom: int) -> Tuple[int, int]:
    """
    Slippy-map tile indices (x, y) containing a WGS84 coordinate.

    Examples:
        >>> lonlat_to_tile(0.0, 0.0, 1)
        (1, 1)
    """
    n = 2 ** zoom
    lat = max(-MAX_LATITUDE, min(MAX_LATITUDE, lat))
    x = int(math.floor((lon + 180.0) / 360.0 * n))
    y = int(math.floor((1.0 - math.asinh(math.tan(math.radians(lat))) / math.pi) / 2.0 * n))
    return min(max(x, 0), n - 1), min(max(y, 0), n - 1)


def tile_range(bounds: Tuple[float, float, float, float], zoom: int):
    """Inclusive tile index ranges (x_min, x_max, y_min, y_max) for lon/lat bounds."""
    west, south, east, north = bounds
    x_min, y_min = lonlat_to_tile(west, north, zoom)
    x_max, y_max = lonlat_to_tile(east, south, zoom)
    return x_min, x_max, y_min, y_max


def mosaic_transform(x_min: int, y_min: int, zoom: int) -> Affine:
    """Web Mercator affine transform of a mosaic whose top-left tile is (x_min, y_min)."""
    tile_metres = 2 * EARTH_HALF_CIRCUMFERENCE / 2 ** zoom
    pixel = tile_metres / TILE_SIZE
    return Affine(
        pixel, 0.0, -EARTH_HALF_CIRCUMFERENCE + x_min * tile_metres,
        0.0, -pixel, EARTH_HALF_CIRCUMFERENCE - y_min * tile_metres,
    )


def decode_terrarium(rgb: np.ndarray) -> np.ndarray:
    """Decode a (3, H, W) terrarium RGB array to elevation in metres."""
    rgb = rgb.astype(np.float64)
    return rgb[0] * 256.0 + rgb[1] + rgb[2] / 256.0 - 32768.0


class TerrainTileSource:
    """
    Elevation source backed by AWS terrarium tiles with an on-disk tile cache.

    Attributes:
        zoom: Tile zoom level (9 is roughly 300 m cells at the equator)
        url_template: Tile URL with {z}, {x}, {y} placeholders
        cache_dir: Directory for downloaded tiles (None disables caching)
    """

    def __init__(
        self,
        zoom: int = DEFAULT_ZOOM,
        url_template: str = TERRAIN_TILE_URL,
        cache_dir: Optional[Path] = TILE_CACHE,
        timeout: int = 60,
    ):
        self.zoom = zoom
        self.url_template = url_template
        self.cache_dir = Path(cache_dir) if cache_dir is not None else None
        self.timeout = timeout

    def _tile_bytes(self, x: int, y: int) -> Optional[bytes]:
        cache_path = None
        if self.cache_dir is not None:
            cache_path = self.cache_dir / str(self.zoom) / str(x) / f"{y}.png"
            if cache_path.exists():
                return cache_path.read_bytes()

        url = self.url_template.format(z=self.zoom, x=x, y=y)
        logger.debug(f"Fetching tile {url}")
        response = requests.get(url, timeout=self.timeout)
        if response.status_code == 404:
            logger.warning(f"Tile {self.zoom}/{x}/{y} not available")
            return None
        response.raise_for_status()

        if cache_path is not None:
            cache_path.parent.mkdir(parents=True, exist_ok=True)
            cache_path.write_bytes(response.content)
        return response.content

    def fetch_tile(self, x: int, y: int) -> np.ndarray:
        """Elevation of one tile in metres; NaN if the tile does not exist."""
        content = self._tile_bytes(x, y)
        if content is None:
            return np.full((TILE_SIZE, TILE_SIZE), np.nan)

        with warnings.catch_warnings():
            warnings.simplefilter("ignore", NotGeoreferencedWarning)
            with MemoryFile(content) as memfile:
                with memfile.open() as src:
                    rgb = src.read([1, 2, 3])
        return decode_terrarium(rgb)

    def fetch_raster(self, bounds_lonlat) -> Tuple[np.ndarray, Affine]:
        """Mosaic of all tiles covering WGS84 bounds (west, south, east, north)."""
        x_min, x_max, y_min, y_max = tile_range(bounds_lonlat, self.zoom)
        n_tiles = (x_max - x_min + 1) * (y_max - y_min + 1)
        logger.info(f"Fetching {n_tiles} terrain tiles at zoom {self.zoom}")

        rows: List[np.ndarray] = []
        for y in range(y_min, y_max + 1):
            rows.append(np.hstack([self.fetch_tile(x, y) for x in range(x_min, x_max + 1)]))
        mosaic = np.vstack(rows)
        return mosaic, mosaic_transform(x_min, y_min, self.zoom)

    def fetch(self, region: Region) -> ElevationSample:
        """
        Elevation sample for a region, clipped to its geometry in EPSG:3857.

        Cells outside the geometry are NaN and negative elevations are clamped
        to 0. The returned sample may be empty when no tile covers the region.
        """
        shapes = gpd.GeoSeries([region.geometry], crs=region.crs or "EPSG:4326")
        bounds = tuple(shapes.to_crs("EPSG:4326").total_bounds)
        mosaic, transform = self.fetch_raster(bounds)

        planar = shapes.to_crs(DEFAULT_CRS)
        inside = geometry_mask(
            list(planar.geometry), out_shape=mosaic.shape, transform=transform, invert=True
        )
        mosaic[~inside] = np.nan

        rows = np.flatnonzero(inside.any(axis=1))
        cols = np.flatnonzero(inside.any(axis=0))
        if len(rows) and len(cols):
            mosaic = mosaic[rows[0]:rows[-1] + 1, cols[0]:cols[-1] + 1]
            transform = transform * Affine.translation(cols[0], rows[0])

        logger.debug(f"Clipped raster for {region.name}: {mosaic.shape}")
        return sample_from_raster(mosaic, transform, crs=DEFAULT_CRS)
