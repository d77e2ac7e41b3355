"""
Color mapping functions for hypsometric relief maps.

This module builds the per-region palette: an ordered hypsometric ramp (one
color per elevation band) plus light/dark accent tones for Tanaka contour
illumination, with a synthetic fallback ramp for near-flat terrain.
"""

import colorsys
import logging
from dataclasses import dataclass
from typing import Sequence, Tuple

import matplotlib
import numpy as np
from matplotlib.colors import LinearSegmentedColormap, to_hex, to_rgb

logger = logging.getLogger(__name__)

MAX_BANDS = 12
MIN_RAMP_COLORS = 6
LIGHTEN_AMOUNT = 0.15
DARKEN_AMOUNT = 0.25


# =============================================================================
# Custom Colormaps
# =============================================================================

# DEM poster hypsometric tints
# Lowland green → foothill olive → sand → rust → dark red → rock grey → snow.
# Stops are evenly spaced so the ramp follows the tint order, not absolute elevation.
_DEM_POSTER_COLORS = [
    "#006147",  # Lowlands: deep green
    "#107A2F",  # Plains: green
    "#E8D77D",  # Hills: sand
    "#A14300",  # Uplands: rust
    "#9E0000",  # Mountains: dark red
    "#6E6E6E",  # High mountains: rock grey
    "#FFFFFF",  # Summits: snow
]

# Cool-to-warm ramp used when the terrain is too uniform for the hypsometric ramp
SYNTHETIC_STOPS = ["#0000FF", "#00FF00", "#FFFF00", "#A52A2A"]  # blue, green, yellow, brown

# Register the DEM poster colormap with matplotlib
dem_poster_cmap = LinearSegmentedColormap.from_list("dem_poster", _DEM_POSTER_COLORS, N=256)
matplotlib.colormaps.register(dem_poster_cmap, force=True)


@dataclass(frozen=True)
class Palette:
    """Fill colors for each elevation band plus contour illumination accents."""

    colors: Tuple[str, ...]
    light: str
    dark: str
    synthetic: bool = False

    def __len__(self):
        return len(self.colors)


def _ramp(stops: Sequence[str], n: int) -> Tuple[str, ...]:
    """Interpolate n colors linearly in RGB across the given stops."""
    if n <= 0:
        return ()
    cmap = LinearSegmentedColormap.from_list("ramp", list(stops), N=256)
    return tuple(to_hex(cmap(t)) for t in np.linspace(0.0, 1.0, n))


def hypso_colors(n: int, cmap_name: str = "dem_poster") -> Tuple[str, ...]:
    """
    Sample n ordered colors (low to high elevation) from a hypsometric colormap.

    Args:
        n: Number of colors to return
        cmap_name: Registered matplotlib colormap name (default: 'dem_poster')

    Returns:
        Tuple of hex color strings, first = lowest elevation
    """
    if n <= 0:
        return ()
    cmap = matplotlib.colormaps[cmap_name]
    return tuple(to_hex(cmap(t)) for t in np.linspace(0.0, 1.0, n))


def lighten(color, amount: float = LIGHTEN_AMOUNT) -> str:
    """Move a color's HLS lightness towards white by a relative amount."""
    h, lum, s = colorsys.rgb_to_hls(*to_rgb(color))
    lum = lum + (1.0 - lum) * amount
    return to_hex(colorsys.hls_to_rgb(h, min(lum, 1.0), s))


def darken(color, amount: float = DARKEN_AMOUNT) -> str:
    """Move a color's HLS lightness towards black by a relative amount."""
    h, lum, s = colorsys.rgb_to_hls(*to_rgb(color))
    lum = lum * (1.0 - amount)
    return to_hex(colorsys.hls_to_rgb(h, max(lum, 0.0), s))


def build_palette(breaks: Sequence[float], cmap_name: str = "dem_poster") -> Palette:
    """
    Build the band palette and illumination accents for a set of breaks.

    Requests min(12, k) hypsometric colors for k = len(breaks) - 1 bands. When
    the ramp has at least 6 colors, light/dark accents are derived from its 2nd
    and 5th colors. Otherwise the ramp is replaced by a blue-green-yellow-brown
    gradient of exactly k colors with white/black accents.

    Args:
        breaks: Classification breaks (at least 2 values)
        cmap_name: Hypsometric colormap to sample

    Returns:
        Palette
    """
    n_bands = len(breaks) - 1
    if n_bands < 1:
        raise ValueError(f"At least 2 breaks are required, got {len(breaks)}")

    ramp = hypso_colors(min(MAX_BANDS, n_bands), cmap_name)

    if len(ramp) >= MIN_RAMP_COLORS:
        palette = Palette(
            colors=ramp,
            light=lighten(ramp[1], LIGHTEN_AMOUNT),
            dark=darken(ramp[4], DARKEN_AMOUNT),
        )
    else:
        logger.info(
            f"Only {len(ramp)} hypsometric colors for {n_bands} bands, using synthetic ramp"
        )
        palette = Palette(
            colors=_ramp(SYNTHETIC_STOPS, n_bands),
            light="#ffffff",
            dark="#000000",
            synthetic=True,
        )

    logger.debug(f"Palette: {len(palette)} colors, light={palette.light}, dark={palette.dark}")
    return palette


def band_colors(palette: Palette, n_bands: int) -> np.ndarray:
    """
    Fill color for each band as an (n_bands, 3) float RGB array.

    Uses the palette directly when it has one color per band. When there are
    more bands than palette colors (the palette is capped at 12), the palette is
    treated as a continuous gradient and resampled to n_bands colors.
    """
    if n_bands <= 0:
        return np.zeros((0, 3))
    if len(palette.colors) == n_bands:
        return np.array([to_rgb(c) for c in palette.colors])
    if len(palette.colors) == 1:
        return np.tile(to_rgb(palette.colors[0]), (n_bands, 1))
    resampled = _ramp(palette.colors, n_bands)
    return np.array([to_rgb(c) for c in resampled])
