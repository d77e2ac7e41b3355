"""
Tests for region loading and output naming.
"""

import pytest
from datetime import datetime
from pathlib import Path

import geopandas as gpd
from shapely.geometry import box


@pytest.fixture
def boundary_file(tmp_path):
    """GeoJSON with three records, two of which share a district name."""
    gdf = gpd.GeoDataFrame(
        {
            "DISTRICT": ["Wayanad", "Idukki", "Wayanad"],
            "CODE": [1, 2, 3],
        },
        geometry=[box(76.0, 11.5, 76.2, 11.7), box(77.0, 9.8, 77.2, 10.0), box(76.2, 11.5, 76.4, 11.7)],
        crs="EPSG:4326",
    )
    path = tmp_path / "districts.geojson"
    gdf.to_file(path, driver="GeoJSON")
    return path


class TestLoadRegions:
    """Tests for load_regions function."""

    def test_regions_dissolved_by_name(self, boundary_file):
        from src.relief.regions import load_regions

        regions = load_regions(boundary_file, "DISTRICT")

        assert [r.name for r in regions] == ["Wayanad", "Idukki"]
        wayanad = regions[0]
        assert wayanad.geometry.bounds == pytest.approx((76.0, 11.5, 76.4, 11.7))

    def test_regions_keep_crs(self, boundary_file):
        from src.relief.regions import load_regions

        regions = load_regions(boundary_file, "DISTRICT")

        assert regions[0].crs is not None
        assert len({r.crs for r in regions}) == 1

    def test_missing_field_raises(self, boundary_file):
        from src.relief.regions import load_regions

        with pytest.raises(KeyError, match="NAME"):
            load_regions(boundary_file, "NAME")


class TestSlugify:
    """Tests for slugify function."""

    def test_lower_case_and_underscores(self):
        from src.relief.regions import slugify

        assert slugify("  Thiruvananthapuram  North ") == "thiruvananthapuram_north"

    def test_prefix(self):
        from src.relief.regions import slugify

        assert slugify("Wayanad", prefix="Kerala") == "kerala-wayanad"

    def test_path_separators_replaced(self):
        from src.relief.regions import slugify

        assert "/" not in slugify("North/South\\East")
        assert "\\" not in slugify("North/South\\East")

    def test_deterministic(self):
        from src.relief.regions import slugify

        assert slugify("Pathanamthitta") == slugify("Pathanamthitta")


class TestOutputPaths:
    """Tests for output naming."""

    def test_output_paths(self, tmp_path):
        from src.relief.regions import output_paths

        paths = output_paths(tmp_path, "kerala-wayanad")

        assert paths.relief_2d == tmp_path / "kerala-wayanad-tanaka-2d.png"
        assert paths.render_3d == tmp_path / "kerala-wayanad-tanaka-3d.png"
        assert paths.render_3d_failed == tmp_path / "kerala-wayanad-tanaka-3d-failed.png"

    def test_make_output_dir(self, tmp_path):
        from src.relief.regions import make_output_dir

        output_dir = make_output_dir(tmp_path, prefix="kerala_district", now=datetime(2025, 1, 31, 14, 25, 1))

        assert output_dir == tmp_path / "kerala_district_maps_20250131_142501"
        assert output_dir.is_dir()

    def test_make_output_dir_unwritable_root(self, tmp_path):
        from src.relief.regions import make_output_dir

        blocker = tmp_path / "not_a_dir"
        blocker.write_text("file")

        with pytest.raises(OSError):
            make_output_dir(blocker)
