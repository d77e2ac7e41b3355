"""
Tests for 2D relief composition.

Covers band classification, Tanaka contour illumination, map decorations and
writing the composed figure.
"""

import pytest
import numpy as np


def _ramp_sample(transform, rising_east=True):
    """20x20 plane rising 10 m per cell to the east (or to the west)."""
    from src.relief.sample import sample_from_raster

    row = np.arange(20) * 10.0
    if not rising_east:
        row = row[::-1]
    return sample_from_raster(np.tile(row, (20, 1)), transform)


class TestClassify:
    """Tests for classify function."""

    def test_bands_are_lower_inclusive(self):
        """A value equal to a break starts the next band."""
        from src.relief.composer import classify

        bands = classify(np.array([0.0, 49.9, 50.0, 99.0]), (0.0, 50.0, 100.0))

        assert list(bands) == [0, 0, 1, 1]

    def test_maximum_belongs_to_top_band(self):
        from src.relief.composer import classify

        bands = classify(np.array([100.0]), (0.0, 50.0, 100.0))

        assert list(bands) == [1]

    def test_out_of_range_values_are_clamped(self):
        from src.relief.composer import classify

        bands = classify(np.array([-10.0, 250.0]), (0.0, 50.0, 100.0))

        assert list(bands) == [0, 1]

    def test_nan_is_unclassified(self):
        from src.relief.composer import classify

        bands = classify(np.array([[np.nan, 10.0]]), (0.0, 50.0, 100.0))

        assert bands[0, 0] == -1
        assert bands[0, 1] == 0

    def test_equal_breaks(self):
        """Zero-width bands from a flat range still classify every cell."""
        from src.relief.composer import classify

        bands = classify(np.full((2, 2), 5.0), (5.0, 5.0, 5.0, 5.0, 5.0))

        assert np.all(bands >= 0)
        assert np.all(bands <= 3)

    def test_too_few_breaks_raises(self):
        from src.relief.composer import classify

        with pytest.raises(ValueError):
            classify(np.zeros((2, 2)), (1.0,))


class TestBandRaster:
    """Tests for band_raster function."""

    def test_band_raster_colors_and_transparency(self):
        from src.relief.color_mapping import Palette
        from src.relief.composer import band_raster

        palette = Palette(colors=("#ff0000", "#0000ff"), light="#ffffff", dark="#000000")
        raster = band_raster(np.array([[10.0, 60.0, np.nan]]), (0.0, 50.0, 100.0), palette)

        assert raster.shape == (1, 3, 4)
        assert np.allclose(raster[0, 0], [1, 0, 0, 1])
        assert np.allclose(raster[0, 1], [0, 0, 1, 1])
        assert raster[0, 2, 3] == 0.0


class TestTanakaSegments:
    """Tests for illuminated contour generation."""

    def test_segments_generated_for_interior_breaks(self, sample_elevation):
        from src.relief.breaks import compute_breaks, elevation_range
        from src.relief.composer import tanaka_segments

        breaks = compute_breaks(*elevation_range(sample_elevation.elevation))
        lines = tanaka_segments(sample_elevation, breaks, "#ffffff", "#000000")

        assert len(lines.get_segments()) > 0

    def test_line_widths_within_range(self, sample_elevation):
        from src.relief.breaks import compute_breaks, elevation_range
        from src.relief.composer import MM_TO_PT, tanaka_segments

        breaks = compute_breaks(*elevation_range(sample_elevation.elevation))
        widths = np.asarray(
            tanaka_segments(sample_elevation, breaks, "#ffffff", "#000000").get_linewidths()
        )

        assert widths.min() >= 0.01 * MM_TO_PT - 1e-9
        assert widths.max() <= 0.3 * MM_TO_PT + 1e-9

    def test_sun_facing_slope_is_lighter(self, sample_transform):
        """With the sun in the north-west, west-facing slopes are lit."""
        from src.relief.composer import tanaka_segments

        breaks = (0.0, 50.0, 100.0, 150.0, 200.0)
        facing_west = tanaka_segments(_ramp_sample(sample_transform, rising_east=True), breaks, "#ffffff", "#000000")
        facing_east = tanaka_segments(_ramp_sample(sample_transform, rising_east=False), breaks, "#ffffff", "#000000")

        lit = np.asarray(facing_west.get_colors())[:, :3].mean()
        shaded = np.asarray(facing_east.get_colors())[:, :3].mean()

        assert lit > 0.8
        assert shaded < 0.2

    def test_flat_sample_has_no_contours(self, flat_elevation):
        from src.relief.composer import tanaka_segments

        lines = tanaka_segments(flat_elevation, (5.0,) * 5, "#ffffff", "#000000")

        assert len(lines.get_segments()) == 0

    def test_breaks_outside_range_ignored(self, sample_transform):
        from src.relief.composer import tanaka_segments

        lines = tanaka_segments(
            _ramp_sample(sample_transform), (-100.0, 500.0), "#ffffff", "#000000"
        )

        assert len(lines.get_segments()) == 0


class TestDecorations:
    """Tests for scale bar helpers."""

    def test_nice_scale_length(self):
        from src.relief.composer import nice_scale_length

        assert nice_scale_length(100_000) == 20_000
        assert nice_scale_length(6_000) == 1_000
        assert nice_scale_length(40_000) == 10_000

    def test_nice_scale_length_zero_width(self):
        from src.relief.composer import nice_scale_length

        assert nice_scale_length(0) == 0.0

    def test_scale_label(self):
        from src.relief.composer import scale_label

        assert scale_label(20_000) == "20 km"
        assert scale_label(500) == "500 m"


class TestComposeRelief:
    """Tests for compose_relief and save_relief."""

    def _compose(self, sample, title="Wayanad: Digital Elevation Model"):
        from src.relief.breaks import compute_breaks, elevation_range
        from src.relief.color_mapping import build_palette
        from src.relief.composer import compose_relief

        breaks = compute_breaks(*elevation_range(sample.elevation))
        return compose_relief(sample, breaks, build_palette(breaks), title=title)

    def test_compose_returns_artifact(self, sample_elevation):
        artifact = self._compose(sample_elevation)

        assert artifact.title == "Wayanad: Digital Elevation Model"
        assert artifact.caption == "Data: Amazon Web Services Tiles"
        assert artifact.band_raster.shape == sample_elevation.shape + (4,)
        assert artifact.path is None

    def test_title_and_caption_drawn(self, sample_elevation):
        artifact = self._compose(sample_elevation)

        texts = [t.get_text() for t in artifact.figure.texts]
        assert "Data: Amazon Web Services Tiles" in texts
        assert artifact.figure.axes[0].get_title() == "Wayanad: Digital Elevation Model"

    def test_legend_labels_are_rounded_breaks(self, sample_elevation):
        artifact = self._compose(sample_elevation)

        legend_ax = artifact.figure.axes[1]
        labels = [t.get_text() for t in legend_ax.get_yticklabels()]
        assert labels
        assert all(label.lstrip("-").isdigit() for label in labels)
        assert legend_ax.get_title() == "Elevation"

    def test_empty_sample_raises(self, empty_elevation):
        from src.relief.color_mapping import build_palette
        from src.relief.composer import compose_relief

        with pytest.raises(ValueError):
            compose_relief(empty_elevation, (0.0, 50.0), build_palette((0.0, 50.0)), title="x")

    def test_flat_sample_composes(self, flat_elevation):
        artifact = self._compose(flat_elevation)

        assert artifact.breaks == (5.0, 5.0, 5.0, 5.0, 5.0)
        assert artifact.palette.synthetic

    def test_save_relief_writes_png(self, sample_elevation, tmp_path):
        from src.relief.composer import save_relief

        artifact = self._compose(sample_elevation)
        path = save_relief(artifact, tmp_path / "wayanad-tanaka-2d.png", dpi=50)

        assert path.exists()
        assert path.stat().st_size > 0
        assert path.read_bytes()[:8] == b"\x89PNG\r\n\x1a\n"
        assert artifact.path == path

    def test_composition_is_deterministic(self, sample_elevation, tmp_path):
        """Same input produces the same image."""
        import matplotlib.image as mpimg
        from src.relief.composer import save_relief

        first = save_relief(self._compose(sample_elevation), tmp_path / "a.png", dpi=50)
        second = save_relief(self._compose(sample_elevation), tmp_path / "b.png", dpi=50)

        assert np.array_equal(mpimg.imread(first), mpimg.imread(second))

    def test_save_to_missing_directory_raises(self, sample_elevation, tmp_path):
        from src.relief.composer import save_relief

        artifact = self._compose(sample_elevation)

        with pytest.raises(OSError):
            save_relief(artifact, tmp_path / "missing" / "map.png", dpi=50)


class TestMapColors:
    """Tests for rasterizing the drawn map onto the sample grid."""

    def test_map_colors_shape_and_range(self, sample_elevation):
        from src.relief.breaks import compute_breaks, elevation_range
        from src.relief.color_mapping import build_palette
        from src.relief.composer import compose_relief, map_colors

        breaks = compute_breaks(*elevation_range(sample_elevation.elevation))
        artifact = compose_relief(sample_elevation, breaks, build_palette(breaks), title="x")

        original_dpi = artifact.figure.dpi
        colors = map_colors(artifact, dpi=100)

        assert colors.shape == sample_elevation.shape + (3,)
        assert colors.min() >= 0.0 and colors.max() <= 1.0
        assert artifact.figure.dpi == original_dpi

    def test_block_mean_averages_pixels(self):
        from src.relief.composer import _block_mean

        image = np.zeros((4, 4, 1))
        image[:2, :2] = 1.0

        out = _block_mean(image, 2, 2)

        assert out[..., 0].tolist() == [[1.0, 0.0], [0.0, 0.0]]

    def test_block_mean_upsamples_small_images(self):
        from src.relief.composer import _block_mean

        image = np.arange(4, dtype=float).reshape(2, 2, 1)

        assert _block_mean(image, 4, 4).shape == (4, 4, 1)
