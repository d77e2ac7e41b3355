"""
Tests for Blender scene setup.

Builds a small relief scene and checks mesh colors, camera and world lighting.
"""

import pytest
import numpy as np

# These tests require Blender environment
pytest.importorskip("bpy")


@pytest.fixture
def relief_mesh():
    from src.relief.mesh_operations import height_field
    from src.relief.scene_setup import clear_scene, create_relief_mesh

    clear_scene()
    dem = np.arange(16, dtype=float).reshape(4, 4)
    positions, faces, _, _ = height_field(dem, scale_factor=2.0, height_scale=0.1)
    colors = np.tile([0.2, 0.6, 0.3], (len(positions), 1))
    return create_relief_mesh(positions, faces, colors, name="TestRelief")


class TestClearScene:
    def test_clear_scene_removes_objects(self, relief_mesh):
        import bpy
        from src.relief.scene_setup import clear_scene

        clear_scene()

        assert len(bpy.data.objects) == 0


class TestCreateReliefMesh:
    """Tests for create_relief_mesh function."""

    def test_mesh_has_vertices_and_faces(self, relief_mesh):
        assert len(relief_mesh.data.vertices) == 16
        assert len(relief_mesh.data.polygons) == 9

    def test_mesh_has_color_attribute(self, relief_mesh):
        from src.relief.scene_setup import COLOR_LAYER

        layer = relief_mesh.data.color_attributes[COLOR_LAYER]
        assert layer.domain == "POINT"
        assert tuple(layer.data[0].color)[:3] == pytest.approx((0.2, 0.6, 0.3))

    def test_mesh_material_uses_vertex_colors(self, relief_mesh):
        material = relief_mesh.data.materials[0]

        assert material.use_nodes
        assert any(node.type == "VERTEX_COLOR" for node in material.node_tree.nodes)


class TestSetupOrbitCamera:
    """Tests for setup_orbit_camera function."""

    def test_camera_is_orthographic_and_active(self, relief_mesh):
        import bpy
        from src.relief.scene_setup import setup_orbit_camera

        cam = setup_orbit_camera(relief_mesh, theta=0, phi=60, zoom=0.55)

        assert cam.data.type == "ORTHO"
        assert bpy.context.scene.camera == cam

    def test_camera_south_of_mesh_at_theta_zero(self, relief_mesh):
        from src.relief.scene_setup import setup_orbit_camera

        cam = setup_orbit_camera(relief_mesh, theta=0, phi=60)

        assert cam.location.y < 0
        assert cam.location.z > 0


class TestSetupEnvironmentLighting:
    def test_world_uses_environment_texture(self, tmp_path):
        import bpy
        from src.relief.scene_setup import setup_environment_lighting

        hdri = tmp_path / "sky.hdr"
        # 1x1 uncompressed Radiance image
        hdri.write_bytes(b"#?RADIANCE\nFORMAT=32-bit_rle_rgbe\n\n-Y 1 +X 1\n" + bytes([128, 128, 128, 129]))
        world = setup_environment_lighting(hdri, strength=3.0, rotation=90.0)

        assert bpy.context.scene.world == world
        assert any(node.type == "TEX_ENVIRONMENT" for node in world.node_tree.nodes)
