"""Pytest configuration and fixtures for relief-maker tests."""
import sys
from pathlib import Path

# Add project root to Python path for imports
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

import matplotlib

matplotlib.use("Agg")

import pytest
import numpy as np
from rasterio import Affine


@pytest.fixture
def sample_dem():
    """Create a small synthetic DEM for testing."""
    # 40x50 grid with a peak in the center, 100-1100 m
    x = np.linspace(-10, 10, 50)
    y = np.linspace(-10, 10, 40)
    X, Y = np.meshgrid(x, y)
    Z = 100 + 1000 * np.exp(-(X**2 + Y**2) / 30)
    return Z.astype(np.float64)


@pytest.fixture
def sample_transform():
    """Web Mercator style transform: 300 m cells, north-up."""
    return Affine(300.0, 0.0, 8_500_000.0, 0.0, -300.0, 1_200_000.0)


@pytest.fixture
def sample_elevation(sample_dem, sample_transform):
    """ElevationSample of the synthetic peak with a NaN corner outside the region."""
    from src.relief.sample import sample_from_raster

    data = sample_dem.copy()
    data[:5, :5] = np.nan
    return sample_from_raster(data, sample_transform)


@pytest.fixture
def flat_elevation(sample_transform):
    """ElevationSample where every defined cell is 5 m."""
    from src.relief.sample import sample_from_raster

    return sample_from_raster(np.full((20, 20), 5.0), sample_transform)


@pytest.fixture
def empty_elevation(sample_transform):
    """ElevationSample with no defined values."""
    from src.relief.sample import sample_from_raster

    return sample_from_raster(np.full((10, 10), np.nan), sample_transform)


@pytest.fixture
def cache_dir(tmp_path):
    """Temporary cache directory for tests."""
    cache = tmp_path / "cache"
    cache.mkdir()
    return cache
