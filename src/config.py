"""Configuration module for relief-maker project.

Centralizes data paths and run-wide default settings.
"""
from pathlib import Path

# Project root
PROJECT_ROOT = Path(__file__).parent.parent

# Data directories
DATA_DIR = PROJECT_ROOT / "data"
BOUNDARY_DIR = DATA_DIR / "boundaries"

# Cache directories (created as needed by the code that writes them)
CACHE_DIR = DATA_DIR / "cache"
TILE_CACHE = CACHE_DIR / "tiles"
LIGHTING_CACHE = CACHE_DIR / "lighting"

# Per-run output folders are created below this root
OUTPUT_ROOT = PROJECT_ROOT / "output"

# Shared HDR environment map for the 3D renders (downloaded once)
HDRI_URL = "https://dl.polyhaven.org/file/ph-assets/HDRIs/hdr/4k/venice_sunrise_4k.hdr"
HDRI_FILENAME = "venice_sunrise_4k.hdr"

# AWS Terrain Tiles (terrarium encoding)
TERRAIN_TILE_URL = "https://s3.amazonaws.com/elevation-tiles-prod/terrarium/{z}/{x}/{y}.png"

# Default settings
DEFAULT_ZOOM = 9
DEFAULT_CRS = "EPSG:3857"
DEFAULT_NAME_FIELD = "DISTRICT"
DEFAULT_CAPTION = "Data: Amazon Web Services Tiles"
DEFAULT_LOG_LEVEL = "INFO"
