"""
2D hypsometric relief composition.

Builds the per-region map with matplotlib:

- filled elevation bands colored from the region palette
- Tanaka-style contour lines at each break, shaded and weighted by how much
  each contour segment faces a fixed sun direction
- scale bar and north arrow anchored to the lower-left corner
- colorbar legend labeled with the rounded break values
- title and data provenance caption

The matplotlib Figure is kept on the returned ReliefArtifact so later stages
(3D extrusion, fallback persistence) can reuse the drawing itself rather than
only the saved PNG.
"""

import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence, Tuple

import numpy as np
from contourpy import LineType, contour_generator
from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.cm import ScalarMappable
from matplotlib.collections import LineCollection
from matplotlib.colors import LinearSegmentedColormap, Normalize, to_rgb
from matplotlib.figure import Figure
from matplotlib.font_manager import FontProperties
from mpl_toolkits.axes_grid1.anchored_artists import AnchoredSizeBar
from scipy.signal import lfilter

from src.config import DEFAULT_CAPTION
from src.relief.breaks import elevation_range
from src.relief.color_mapping import Palette, band_colors
from src.relief.sample import ElevationSample

logger = logging.getLogger(__name__)

FIGURE_SIZE = (7, 7)  # inches
DPI = 300
MM_TO_PT = 72.0 / 25.4


@dataclass(frozen=True)
class TanakaStyle:
    """Illuminated contour settings."""

    sun_angle: float = 45.0
    """Sun direction in degrees counter-clockwise from north (45 = north-west)."""

    width_range: Tuple[float, float] = (0.01, 0.3)
    """Line width range in millimetres, thinnest to thickest."""

    smooth: float = 0.8
    """Exponential smoothing factor (0-1) applied along each contour line."""


@dataclass(eq=False)
class ReliefArtifact:
    """A composed 2D relief map and everything it was drawn from."""

    figure: Figure
    band_raster: np.ndarray
    sample: ElevationSample
    breaks: Tuple[float, ...]
    palette: Palette
    title: str
    caption: str = DEFAULT_CAPTION
    path: Optional[Path] = None


# =============================================================================
# Band classification
# =============================================================================


def classify(elevation, breaks: Sequence[float]) -> np.ndarray:
    """
    Assign each cell to an elevation band.

    Band i holds breaks[i] <= z < breaks[i + 1]; the maximum value belongs to
    the top band. Values outside the break span are clamped to the first or
    last band. Zero-width bands are allowed.

    Args:
        elevation: 2D elevation array (NaN = no data)
        breaks: Classification breaks (non-decreasing, at least 2 values)

    Returns:
        int array of band indices, -1 where elevation is NaN
    """
    elevation = np.asarray(elevation, dtype=np.float64)
    edges = np.asarray(breaks, dtype=np.float64)
    n_bands = len(edges) - 1
    if n_bands < 1:
        raise ValueError(f"At least 2 breaks are required, got {len(edges)}")

    bands = np.full(elevation.shape, -1, dtype=np.int32)
    valid = ~np.isnan(elevation)
    idx = np.digitize(elevation[valid], edges, right=False) - 1
    bands[valid] = np.clip(idx, 0, n_bands - 1)
    return bands


def band_raster(elevation, breaks: Sequence[float], palette: Palette) -> np.ndarray:
    """
    RGBA float raster of band fill colors; no-data cells are fully transparent.
    """
    bands = classify(elevation, breaks)
    colors = band_colors(palette, len(breaks) - 1)

    rgba = np.zeros(bands.shape + (4,), dtype=np.float64)
    valid = bands >= 0
    rgba[valid, :3] = colors[bands[valid]]
    rgba[valid, 3] = 1.0
    return rgba


# =============================================================================
# Tanaka contours
# =============================================================================


def _grid_index(coords: np.ndarray, values: np.ndarray) -> np.ndarray:
    """Nearest index into a regularly spaced coordinate array."""
    step = coords[1] - coords[0]
    idx = np.rint((values - coords[0]) / step).astype(np.int64)
    return np.clip(idx, 0, len(coords) - 1)


def _smooth_along(values: np.ndarray, smooth: float) -> np.ndarray:
    """Exponential smoothing along a line, seeded with its first value."""
    if smooth <= 0 or len(values) < 2:
        return values
    smoothed, _ = lfilter([1.0 - smooth], [1.0, -smooth], values, zi=[smooth * values[0]])
    return smoothed


def contour_lines(sample: ElevationSample, level: float):
    """Contour polylines of the sample at one level, as a list of (N, 2) arrays."""
    z = np.ma.masked_invalid(sample.elevation)
    generator = contour_generator(x=sample.x, y=sample.y, z=z, line_type=LineType.Separate)
    return [line for line in generator.lines(level) if len(line) >= 2]


def tanaka_segments(
    sample: ElevationSample,
    breaks: Sequence[float],
    light: str,
    dark: str,
    style: TanakaStyle = TanakaStyle(),
) -> LineCollection:
    """
    Build illuminated contour line segments at each break.

    For every contour segment the downhill-facing normal is compared with the
    sun direction. Segments facing the sun are drawn in the light tone, those
    facing away in the dark tone, and line width grows with |cos| of the angle
    between them so lines parallel to the light fade out.

    Args:
        sample: Region elevation sample
        breaks: Contour levels (only levels strictly inside the data range are drawn)
        light: Color for sun-facing segments
        dark: Color for shadowed segments
        style: Sun angle, width range and smoothing

    Returns:
        LineCollection with per-segment colors and line widths (points)
    """
    collection = LineCollection([], capstyle="round", joinstyle="round")
    if sample.is_empty or min(sample.shape) < 2:
        return collection

    lo, hi = elevation_range(sample.elevation)
    levels = sorted({float(b) for b in breaks if lo < b < hi})
    if not levels:
        logger.debug("No break falls inside the elevation range, skipping contours")
        return collection

    grad_y, grad_x = np.gradient(sample.elevation, sample.y, sample.x)
    sun_direction = math.radians(90.0 + style.sun_angle)
    light_rgb = np.array(to_rgb(light))
    dark_rgb = np.array(to_rgb(dark))
    width_lo, width_hi = style.width_range

    all_segments, all_colors, all_widths = [], [], []
    for level in levels:
        for line in contour_lines(sample, level):
            start, end = line[:-1], line[1:]
            delta = end - start
            mid = (start + end) / 2.0

            # Right-hand normal, flipped to point downhill
            normal = np.column_stack([delta[:, 1], -delta[:, 0]])
            rows = _grid_index(sample.y, mid[:, 1])
            cols = _grid_index(sample.x, mid[:, 0])
            downhill = -np.column_stack([grad_x[rows, cols], grad_y[rows, cols]])
            facing = np.nan_to_num(np.einsum("ij,ij->i", normal, downhill))
            normal[facing < 0] *= -1

            illumination = np.cos(np.arctan2(normal[:, 1], normal[:, 0]) - sun_direction)
            illumination = _smooth_along(illumination, style.smooth)

            shade = ((illumination + 1.0) / 2.0)[:, None]
            colors = dark_rgb + shade * (light_rgb - dark_rgb)
            widths = (width_lo + (width_hi - width_lo) * np.abs(illumination)) * MM_TO_PT

            all_segments.append(np.stack([start, end], axis=1))
            all_colors.append(colors)
            all_widths.append(widths)

    if not all_segments:
        return collection

    collection.set_segments(np.concatenate(all_segments))
    collection.set_color(np.concatenate(all_colors))
    collection.set_linewidth(np.concatenate(all_widths))
    logger.debug(f"Tanaka contours: {len(levels)} levels, {len(collection.get_segments())} segments")
    return collection


# =============================================================================
# Decorations
# =============================================================================


def nice_scale_length(map_width: float, fraction: float = 0.25) -> float:
    """Largest 1/2/5 x 10^n length not exceeding fraction of the map width."""
    target = map_width * fraction
    if target <= 0:
        return 0.0
    magnitude = 10 ** math.floor(math.log10(target))
    for multiple in (5, 2, 1):
        if multiple * magnitude <= target:
            return float(multiple * magnitude)
    return float(magnitude)


def scale_label(length: float) -> str:
    if length >= 1000:
        return f"{length / 1000:g} km"
    return f"{length:g} m"


def add_scale_bar(ax, map_width: float, fraction: float = 0.25):
    length = nice_scale_length(map_width, fraction)
    if length <= 0:
        return None
    bar = AnchoredSizeBar(
        ax.transData,
        length,
        scale_label(length),
        loc="lower left",
        pad=0.6,
        borderpad=0.5,
        sep=4,
        frameon=False,
        size_vertical=length * 0.02,
        color="#1a1a1a",
        fontproperties=FontProperties(size=7),
    )
    ax.add_artist(bar)
    return bar


def add_north_arrow(ax, x: float = 0.08, y: float = 0.2, length: float = 0.08):
    """North arrow in axes-fraction coordinates, above the scale bar."""
    return ax.annotate(
        "N",
        xy=(x, y + length),
        xytext=(x, y),
        xycoords="axes fraction",
        textcoords="axes fraction",
        ha="center",
        va="top",
        fontsize=10,
        fontweight="bold",
        color="#1a1a1a",
        arrowprops=dict(arrowstyle="-|>", color="#1a1a1a", lw=1.5),
    )


def add_legend(fig, ax, breaks: Sequence[float], palette: Palette, limits: Tuple[float, float]):
    """Colorbar legend keyed to the break values, labeled in whole units."""
    vmin, vmax = limits
    if vmin == vmax:
        vmin, vmax = vmin - 0.5, vmax + 0.5

    colors = list(palette.colors) if len(palette.colors) > 1 else list(palette.colors) * 2
    cmap = LinearSegmentedColormap.from_list("legend", colors, N=256)
    mappable = ScalarMappable(norm=Normalize(vmin=vmin, vmax=vmax), cmap=cmap)

    ticks = sorted({float(b) for b in breaks if vmin <= b <= vmax})
    cbar = fig.colorbar(mappable, ax=ax, fraction=0.035, pad=0.02, shrink=0.45, ticks=ticks)
    cbar.set_ticklabels([f"{round(t):d}" for t in ticks])
    cbar.ax.tick_params(length=0, labelsize=8)
    cbar.outline.set_visible(False)
    cbar.ax.set_title("Elevation", fontsize=9, pad=6)
    return cbar


# =============================================================================
# Composition
# =============================================================================


def _image_extent(sample: ElevationSample):
    x, y = sample.x, sample.y
    half_x = abs(x[1] - x[0]) / 2.0 if len(x) > 1 else 0.5
    half_y = abs(y[1] - y[0]) / 2.0 if len(y) > 1 else 0.5
    xmin, xmax, ymin, ymax = sample.extent
    return (xmin - half_x, xmax + half_x, ymin - half_y, ymax + half_y)


def north_up(raster: np.ndarray, sample: ElevationSample) -> np.ndarray:
    """Orient a grid so row 0 is north and column 0 is west."""
    if len(sample.y) > 1 and sample.y[0] < sample.y[-1]:
        raster = raster[::-1]
    if len(sample.x) > 1 and sample.x[0] > sample.x[-1]:
        raster = raster[:, ::-1]
    return raster


def compose_relief(
    sample: ElevationSample,
    breaks: Sequence[float],
    palette: Palette,
    title: str,
    caption: str = DEFAULT_CAPTION,
    style: TanakaStyle = TanakaStyle(),
) -> ReliefArtifact:
    """
    Compose the 2D Tanaka relief map for one region.

    Args:
        sample: Region elevation sample (must contain defined values)
        breaks: Classification breaks for the region
        palette: Band palette with light/dark accents
        title: Map title
        caption: Data provenance caption
        style: Tanaka contour settings

    Returns:
        ReliefArtifact holding the Figure and band raster

    Raises:
        ValueError: If the sample has no defined elevation values
    """
    if sample.is_empty:
        raise ValueError("Cannot compose relief for a sample without elevation data")

    logger.info(f"Composing relief map: {title}")
    limits = elevation_range(sample.elevation)

    fig = Figure(figsize=FIGURE_SIZE, facecolor="white")
    ax = fig.add_subplot(1, 1, 1)

    raster = band_raster(sample.elevation, breaks, palette)
    extent = _image_extent(sample)
    ax.imshow(
        north_up(raster, sample),
        extent=extent,
        origin="upper",
        interpolation="nearest",
        zorder=1,
    )

    contours = tanaka_segments(sample, breaks, palette.light, palette.dark, style)
    contours.set_zorder(2)
    ax.add_collection(contours, autolim=False)

    ax.set_xlim(extent[0], extent[1])
    ax.set_ylim(extent[2], extent[3])
    ax.set_aspect("equal")
    ax.set_axis_off()

    add_scale_bar(ax, extent[1] - extent[0])
    add_north_arrow(ax)
    add_legend(fig, ax, breaks, palette, limits)

    ax.set_title(title, fontsize=16, color="#1a1a1a", pad=5)
    fig.text(0.98, 0.02, caption, ha="right", va="bottom", fontsize=8, style="italic")

    return ReliefArtifact(
        figure=fig,
        band_raster=raster,
        sample=sample,
        breaks=tuple(breaks),
        palette=palette,
        title=title,
        caption=caption,
    )


def _block_mean(image: np.ndarray, height: int, width: int) -> np.ndarray:
    """Resample an (H, W, C) image to (height, width) by averaging each cell's pixel block."""
    rows, cols = image.shape[:2]
    if rows < height or cols < width:
        r = ((np.arange(height) + 0.5) * rows / height).astype(np.int64)
        c = ((np.arange(width) + 0.5) * cols / width).astype(np.int64)
        return image[r][:, c]

    row_edges = np.linspace(0, rows, height + 1).astype(np.int64)
    col_edges = np.linspace(0, cols, width + 1).astype(np.int64)
    sums = np.add.reduceat(np.add.reduceat(image, row_edges[:-1], axis=0), col_edges[:-1], axis=1)
    counts = np.diff(row_edges)[:, None] * np.diff(col_edges)[None, :]
    return sums / counts[..., None]


def map_colors(artifact: ReliefArtifact, dpi: int = DPI) -> np.ndarray:
    """
    Rasterize the drawn map (bands, contours, scale bar, arrow) onto the sample grid.

    The map axes of the artifact's figure are drawn with Agg and the pixels over
    the axes box are averaged per grid cell, so contour lines tint the cells
    they cross.

    Returns:
        (height, width, 3) float RGB array, oriented like north_up(sample.elevation)
    """
    figure = artifact.figure
    ax = figure.axes[0]
    original_dpi = figure.dpi
    canvas = FigureCanvasAgg(figure)
    try:
        figure.set_dpi(dpi)
        canvas.draw()
        pixels = np.asarray(canvas.buffer_rgba(), dtype=np.float64)[..., :3] / 255.0
        bbox = ax.get_window_extent()
    finally:
        figure.set_dpi(original_dpi)

    total_rows = pixels.shape[0]
    top = max(int(round(total_rows - bbox.y1)), 0)
    bottom = min(int(round(total_rows - bbox.y0)), total_rows)
    left = max(int(round(bbox.x0)), 0)
    right = min(int(round(bbox.x1)), pixels.shape[1])

    height, width = artifact.sample.shape
    colors = _block_mean(pixels[top:bottom, left:right], height, width)
    logger.debug(f"Rasterized map axes {right - left}x{bottom - top} px onto {width}x{height} grid")
    return colors


def write_figure(figure: Figure, path, dpi: int = DPI) -> Path:
    """Write a figure to a PNG on a white background. I/O errors propagate."""
    path = Path(path)
    figure.savefig(path, dpi=dpi, facecolor="white", metadata={"Software": None})
    return path


def save_relief(artifact: ReliefArtifact, path, dpi: int = DPI) -> Path:
    """Write the relief map PNG and record its path on the artifact."""
    artifact.path = write_figure(artifact.figure, path, dpi)
    logger.info(f"Saved 2D relief map: {artifact.path.name}")
    return artifact.path
