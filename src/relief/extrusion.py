"""
3D extrusion of 2D relief maps with a guaranteed 2D fallback.

Per region the renderer moves through three stages:

    extrusion  -> build the height-field scene from the relief map
    lighting   -> obtain the shared HDR environment map
    render     -> render the high-resolution still

Reaching the end yields a ``rendered`` result. Any failure along the way
persists the already-composed 2D map under the "failed" name and yields a
``fallback`` result carrying the reason, so a region is degraded but never lost.
"""

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import numpy as np

from src.relief.composer import ReliefArtifact, map_colors, north_up, write_figure
from src.relief.lighting import LightingAsset, default_lighting_asset
from src.relief.mesh_operations import height_field

logger = logging.getLogger(__name__)

RENDERED = "rendered"
FALLBACK = "fallback"


@dataclass(frozen=True)
class ExtrusionSettings:
    """Fixed scene parameters shared by every region's 3D render."""

    scale: float = 150.0
    """Vertical exaggeration; the full elevation range rises scale / 500 scene units."""

    map_size: float = 2.0
    """Length of the longer map side in scene units."""

    theta: float = 0.0
    phi: float = 60.0
    zoom: float = 0.55
    intensity: float = 3.0
    rotate_env: float = 90.0
    width: int = 1800
    height: int = 1800
    samples: int = 128
    use_gpu: bool = True


@dataclass(frozen=True, eq=False)
class RenderResult:
    """Outcome of a 3D render attempt."""

    status: str
    path: Path
    artifact: Optional[ReliefArtifact] = None
    reason: Optional[str] = None
    stage: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == RENDERED

    @classmethod
    def rendered(cls, path, artifact=None):
        return cls(status=RENDERED, path=Path(path), artifact=artifact)

    @classmethod
    def fallback(cls, path, artifact, reason, stage):
        return cls(status=FALLBACK, path=Path(path), artifact=artifact, reason=reason, stage=stage)


class BlenderBackend:
    """Extrudes and renders relief maps with Blender (bpy) and Cycles."""

    @staticmethod
    def mesh_data(artifact: ReliefArtifact, settings: ExtrusionSettings):
        """
        Height-field geometry and vertex colors for a relief map.

        Vertex colors come from the rasterized map drawing, so the extruded
        surface carries the contour lines as well as the band fills.

        Returns:
            tuple: (positions, faces, vertex_colors)
        """
        sample = artifact.sample
        elevation = north_up(sample.elevation, sample)
        colors = map_colors(artifact)

        lo = float(np.nanmin(elevation))
        span = max(float(np.nanmax(elevation)) - lo, 1.0)
        scale_factor = max(elevation.shape) / settings.map_size
        height_scale = (settings.scale / 500.0) / span

        positions, faces, y_valid, x_valid = height_field(
            elevation - lo, scale_factor=scale_factor, height_scale=height_scale
        )
        if not faces:
            raise ValueError("Elevation grid too small to extrude")
        return positions, faces, colors[y_valid, x_valid]

    def extrude(self, artifact: ReliefArtifact, settings: ExtrusionSettings):
        from src.relief import scene_setup

        positions, faces, vertex_colors = self.mesh_data(artifact, settings)

        scene_setup.clear_scene()
        mesh = scene_setup.create_relief_mesh(positions, faces, vertex_colors)
        scene_setup.setup_orbit_camera(
            mesh, theta=settings.theta, phi=settings.phi, zoom=settings.zoom
        )
        return mesh

    def render(self, hdri_path, output_path, settings: ExtrusionSettings):
        from src.relief import rendering, scene_setup

        scene_setup.setup_environment_lighting(
            hdri_path, strength=settings.intensity, rotation=settings.rotate_env
        )
        rendering.setup_render_settings(use_gpu=settings.use_gpu, samples=settings.samples)
        return rendering.render_scene_to_file(
            output_path, width=settings.width, height=settings.height
        )


def persist_fallback(artifact: ReliefArtifact, path) -> Path:
    """Copy the 2D map to the fallback path, redrawing it if no PNG was saved yet."""
    path = Path(path)
    if artifact.path is not None and Path(artifact.path).exists():
        shutil.copyfile(artifact.path, path)
    else:
        write_figure(artifact.figure, path)
    return path


class ExtrusionRenderer:
    """
    Attempts the 3D render of a relief map and falls back to the 2D map on failure.

    Attributes:
        settings: Scene parameters shared across regions
        lighting: Shared HDR lighting asset (downloaded at most once per run)
        backend: Object with extrude(artifact, settings) and
            render(hdri_path, output_path, settings) methods
    """

    def __init__(
        self,
        settings: Optional[ExtrusionSettings] = None,
        lighting: Optional[LightingAsset] = None,
        backend=None,
    ):
        self.settings = settings or ExtrusionSettings()
        self.lighting = lighting or default_lighting_asset()
        self.backend = backend or BlenderBackend()

    def render(self, artifact: ReliefArtifact, path_3d, path_failed) -> RenderResult:
        """
        Run extrusion, lighting and final render for one region.

        Args:
            artifact: Composed 2D relief map
            path_3d: Output path for a successful 3D render
            path_failed: Output path for the 2D fallback copy

        Returns:
            RenderResult (rendered or fallback). Only errors removing stale
            output or writing the fallback copy propagate.
        """
        path_3d = Path(path_3d)
        path_failed = Path(path_failed)
        # Stale renders from an earlier run must not count as this run's output
        path_3d.unlink(missing_ok=True)

        stage = "extrusion"
        try:
            logger.info(f"Extruding relief for {artifact.title}")
            self.backend.extrude(artifact, self.settings)

            stage = "lighting"
            hdri_path = self.lighting.ensure()

            stage = "render"
            self.backend.render(hdri_path, path_3d, self.settings)
            if not path_3d.exists():
                raise RuntimeError(f"Renderer did not produce {path_3d.name}")

        except Exception as e:
            reason = f"{type(e).__name__}: {e}"
            logger.error(f"3D {stage} failed for {artifact.title}: {reason}")
            fallback_path = persist_fallback(artifact, path_failed)
            logger.info(f"Saved 2D fallback: {fallback_path.name}")
            return RenderResult.fallback(fallback_path, artifact, reason, stage)

        path_failed.unlink(missing_ok=True)
        logger.info(f"✓ Saved 3D render: {path_3d.name}")
        return RenderResult.rendered(path_3d, artifact)
