"""
Rendering operations for Blender relief extrusion.

This module contains functions for configuring Blender Cycles render settings
and rendering the current scene to a still image.
"""

import logging
from pathlib import Path

import bpy

logger = logging.getLogger(__name__)


def setup_render_settings(
    use_gpu: bool = True,
    samples: int = 128,
    use_denoising: bool = True,
    compute_device: str = "CUDA",
) -> None:
    """
    Configure Blender render settings for high-quality relief renders.

    Args:
        use_gpu: Whether to use GPU acceleration (falls back to CPU on failure)
        samples: Number of render samples
        use_denoising: Whether to enable denoising
        compute_device: Compute device type ('OPTIX', 'CUDA', 'HIP', 'METAL')
    """
    logger.info("Configuring render settings...")

    scene = bpy.context.scene
    scene.render.engine = "CYCLES"

    # Configure color management for sRGB
    scene.view_settings.view_transform = "Standard"
    scene.view_settings.look = "None"
    scene.view_settings.exposure = 0
    scene.view_settings.gamma = 1
    scene.display_settings.display_device = "sRGB"

    scene.render.image_settings.file_format = "PNG"
    scene.render.image_settings.color_mode = "RGB"
    scene.render.film_transparent = False

    cycles = scene.cycles
    cycles.samples = samples
    cycles.use_denoising = use_denoising
    cycles.use_adaptive_sampling = True
    cycles.device = "CPU"

    if use_gpu:
        logger.info(f"Setting up GPU rendering with {compute_device}...")
        try:
            cprefs = bpy.context.preferences.addons["cycles"].preferences
            cprefs.compute_device_type = compute_device
            cprefs.get_devices()

            device_count = 0
            for device in cprefs.devices:
                device.use = True
                device_count += 1
            cycles.device = "GPU"
            logger.info(f"Enabled {device_count} compute devices")

        except (KeyError, TypeError, AttributeError) as e:
            logger.warning(f"Failed to configure GPU rendering ({e}), using CPU")
            cycles.device = "CPU"

    logger.info("Render settings configured successfully")


def render_scene_to_file(output_path, width=1800, height=1800, compression=15):
    """
    Render the current Blender scene to a PNG file.

    Args:
        output_path (str or Path): Path where the image will be saved
        width (int): Render width in pixels (default: 1800)
        height (int): Render height in pixels (default: 1800)
        compression (int): PNG compression level 0-100 (default: 15)

    Returns:
        Path: Path to the rendered file

    Raises:
        RuntimeError: If Blender finished without writing the file
    """
    output_path = Path(output_path).resolve()
    logger.info(f"Rendering scene to {output_path}")

    scene = bpy.context.scene
    scene.render.filepath = str(output_path)
    scene.render.image_settings.file_format = "PNG"
    scene.render.image_settings.compression = compression
    scene.render.resolution_x = width
    scene.render.resolution_y = height
    scene.render.resolution_percentage = 100

    logger.info(f"Render: {width}x{height} PNG")
    bpy.ops.render.render(write_still=True)

    if not output_path.exists():
        raise RuntimeError(f"Render finished but {output_path.name} was not created")

    file_size_mb = output_path.stat().st_size / (1024 * 1024)
    logger.info(f"Rendered successfully: {file_size_mb:.1f} MB")
    return output_path
