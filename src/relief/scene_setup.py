"""
Scene setup operations for Blender relief extrusion.

This module contains functions for building the extruded relief scene in
Blender: clearing the scene, creating the colored height-field mesh, placing an
orbit camera and wiring HDR environment lighting into the world.
"""

import logging
import math

import numpy as np

import bpy
from mathutils import Vector

logger = logging.getLogger(__name__)

COLOR_LAYER = "ReliefColors"


def clear_scene():
    """
    Clear all objects from the Blender scene.

    Resets the scene to factory settings (empty scene) and removes all default
    objects so each region starts from a clean workspace.
    """
    logger.info("Clearing Blender scene...")

    bpy.ops.wm.read_factory_settings(use_empty=True)

    n_objects = len(bpy.data.objects)
    logger.debug(f"Removing {n_objects} objects")

    for obj in bpy.data.objects:
        bpy.data.objects.remove(obj, do_unlink=True)

    logger.info("Scene cleared successfully")


def apply_vertex_color_material(material, roughness=0.9):
    """
    Configure a material that shades the relief with its vertex colors.

    Args:
        material: Blender material with use_nodes enabled
        roughness: Principled BSDF roughness (default: 0.9, matte paper look)
    """
    logger.debug(f"Setting up material nodes for {material.name}")

    material.node_tree.nodes.clear()
    nodes = material.node_tree.nodes
    links = material.node_tree.links

    output = nodes.new("ShaderNodeOutputMaterial")
    principled = nodes.new("ShaderNodeBsdfPrincipled")
    vertex_color = nodes.new("ShaderNodeVertexColor")

    output.location = (400, 300)
    principled.location = (100, 300)
    vertex_color.location = (-200, 300)

    vertex_color.layer_name = COLOR_LAYER
    principled.inputs["Roughness"].default_value = roughness

    links.new(vertex_color.outputs["Color"], principled.inputs["Base Color"])
    links.new(principled.outputs["BSDF"], output.inputs["Surface"])


def create_relief_mesh(vertices, faces, vertex_colors, name="ReliefMesh"):
    """
    Create a Blender mesh object with per-vertex colors.

    Args:
        vertices (np.ndarray): (n, 3) vertex positions
        faces (list): Face tuples of vertex indices
        vertex_colors (np.ndarray): (n, 3) or (n, 4) float colors in 0-1
        name (str): Mesh and object name

    Returns:
        bpy.types.Object: The linked mesh object
    """
    logger.info(f"Creating Blender mesh with {len(vertices)} vertices and {len(faces)} faces...")

    mesh = bpy.data.meshes.new(name)
    mesh.from_pydata(np.asarray(vertices).tolist(), [], faces)
    mesh.update(calc_edges=True)

    colors = np.asarray(vertex_colors, dtype=np.float32)
    if colors.shape[-1] == 3:
        colors = np.concatenate([colors, np.ones((len(colors), 1), dtype=np.float32)], axis=1)

    color_layer = mesh.color_attributes.new(name=COLOR_LAYER, type="FLOAT_COLOR", domain="POINT")
    color_layer.data.foreach_set("color", colors.ravel())

    obj = bpy.data.objects.new(name, mesh)
    bpy.context.scene.collection.objects.link(obj)

    material = bpy.data.materials.new(name=f"{name}Material")
    material.use_nodes = True
    obj.data.materials.append(material)
    apply_vertex_color_material(material)

    logger.info(f"Relief mesh '{name}' created successfully")
    return obj


def setup_orbit_camera(mesh_obj, theta=0.0, phi=60.0, zoom=0.55, ortho_base=1.8):
    """
    Place an orthographic camera on an orbit around the mesh and aim it at the center.

    Args:
        mesh_obj: Blender mesh object to frame
        theta: Azimuth in degrees, 0 = viewing from the south, increasing clockwise
        phi: Elevation angle above the horizon in degrees (90 = straight down)
        zoom: Fraction of the default framing to show (smaller = closer)
        ortho_base: Orthographic scale relative to the mesh diagonal at zoom 1

    Returns:
        Camera object
    """
    corners = [mesh_obj.matrix_world @ Vector(corner) for corner in mesh_obj.bound_box]
    xs = [c[0] for c in corners]
    ys = [c[1] for c in corners]
    zs = [c[2] for c in corners]
    center = Vector(((min(xs) + max(xs)) / 2, (min(ys) + max(ys)) / 2, (min(zs) + max(zs)) / 2))
    diagonal = (Vector((max(xs), max(ys), max(zs))) - Vector((min(xs), min(ys), min(zs)))).length

    azimuth = math.radians(theta)
    elevation = math.radians(phi)
    distance = max(diagonal, 1e-3) * 3.0
    offset = Vector(
        (
            distance * math.cos(elevation) * math.sin(azimuth),
            -distance * math.cos(elevation) * math.cos(azimuth),
            distance * math.sin(elevation),
        )
    )
    location = center + offset
    rotation = (center - location).normalized().to_track_quat("-Z", "Y").to_euler()

    cam_data = bpy.data.cameras.new("Camera")
    cam_obj = bpy.data.objects.new("Camera", cam_data)
    bpy.context.scene.collection.objects.link(cam_obj)

    cam_data.type = "ORTHO"
    cam_data.ortho_scale = max(diagonal, 1e-3) * ortho_base * zoom
    cam_data.clip_end = distance * 4
    cam_obj.location = location
    cam_obj.rotation_euler = rotation
    bpy.context.scene.camera = cam_obj

    logger.debug(f"Camera at theta={theta}, phi={phi}, zoom={zoom}: {tuple(location)}")
    return cam_obj


def setup_environment_lighting(hdri_path, strength=3.0, rotation=90.0, background=(1, 1, 1, 1)):
    """
    Light the scene with an HDR environment map.

    The environment lights the scene but camera rays see a plain background.

    Args:
        hdri_path: Path to the .hdr environment image
        strength: Environment light intensity
        rotation: Rotation of the environment around the vertical axis in degrees
        background: RGBA color seen directly by the camera (default: white)

    Returns:
        bpy.types.World: The configured world
    """
    logger.info(f"Setting up environment lighting from {hdri_path}")

    world = bpy.context.scene.world
    if world is None:
        world = bpy.data.worlds.new("World")
        bpy.context.scene.world = world

    world.use_nodes = True
    nodes = world.node_tree.nodes
    links = world.node_tree.links
    nodes.clear()

    output = nodes.new("ShaderNodeOutputWorld")
    mix = nodes.new("ShaderNodeMixShader")
    light_path = nodes.new("ShaderNodeLightPath")
    env_background = nodes.new("ShaderNodeBackground")
    plain_background = nodes.new("ShaderNodeBackground")
    env_texture = nodes.new("ShaderNodeTexEnvironment")
    mapping = nodes.new("ShaderNodeMapping")
    tex_coord = nodes.new("ShaderNodeTexCoord")

    env_texture.image = bpy.data.images.load(str(hdri_path), check_existing=True)
    mapping.inputs["Rotation"].default_value = (0.0, 0.0, math.radians(rotation))
    env_background.inputs["Strength"].default_value = strength
    plain_background.inputs["Color"].default_value = background
    plain_background.inputs["Strength"].default_value = 1.0

    links.new(tex_coord.outputs["Generated"], mapping.inputs["Vector"])
    links.new(mapping.outputs["Vector"], env_texture.inputs["Vector"])
    links.new(env_texture.outputs["Color"], env_background.inputs["Color"])
    links.new(light_path.outputs["Is Camera Ray"], mix.inputs["Fac"])
    links.new(env_background.outputs["Background"], mix.inputs[1])
    links.new(plain_background.outputs["Background"], mix.inputs[2])
    links.new(mix.outputs["Shader"], output.inputs["Surface"])

    logger.info(f"Environment lighting configured (strength {strength}, rotation {rotation}°)")
    return world
