"""
Mesh generation operations for relief extrusion.

Turns a region's elevation grid into a height-field mesh: one vertex per valid
cell, quads (or triangles at the region edge) between neighbouring cells.
"""

import numpy as np


def generate_vertex_positions(dem_data, valid_mask, scale_factor=100.0, height_scale=1.0):
    """
    Generate 3D vertex positions from DEM data.

    Converts 2D elevation grid into 3D positions for mesh vertices, applying
    scaling factors for visualization. Only generates vertices for valid (non-NaN)
    DEM values.

    Args:
        dem_data (np.ndarray): 2D array of elevation values (height x width)
        valid_mask (np.ndarray): Boolean mask indicating valid points (True for non-NaN)
        scale_factor (float): Horizontal scale divisor for x/y coordinates (default: 100.0).
            Higher values produce smaller meshes. E.g., 100 means 100 cells = 1 unit.
        height_scale (float): Multiplier for elevation values (default: 1.0).
            Values > 1 exaggerate terrain, < 1 flatten it.

    Returns:
        tuple: (positions, y_valid, x_valid) where:
            - positions: np.ndarray of shape (n_valid, 3) with (x, y, z) coordinates
            - y_valid: np.ndarray of y indices for valid points
            - x_valid: np.ndarray of x indices for valid points
    """
    height, width = dem_data.shape

    y_indices, x_indices = np.mgrid[0:height, 0:width]
    y_valid = y_indices[valid_mask]
    x_valid = x_indices[valid_mask]

    # Row 0 is north, so flip rows to keep +y pointing north in the scene
    positions = np.column_stack(
        [
            x_valid / scale_factor,
            (height - 1 - y_valid) / scale_factor,
            dem_data[valid_mask] * height_scale,
        ]
    )

    return positions, y_valid, x_valid


def generate_faces(height, width, coord_to_index):
    """
    Generate mesh faces from a grid of valid points.

    Creates a quad for every 2x2 block whose corners all exist in the
    coordinate-to-index mapping, and a triangle where exactly three corners
    exist. Blocks with fewer than 3 corners are skipped.

    Args:
        height (int): Height of the DEM grid
        width (int): Width of the DEM grid
        coord_to_index (dict): Mapping from (y, x) coordinates to vertex indices

    Returns:
        list: List of face tuples, where each tuple contains vertex indices
    """
    faces = []
    for y in range(height - 1):
        for x in range(width - 1):
            corners = ((y, x), (y, x + 1), (y + 1, x + 1), (y + 1, x))
            indices = [coord_to_index[c] for c in corners if c in coord_to_index]
            if len(indices) >= 3:
                faces.append(tuple(indices))
    return faces


def height_field(dem_data, scale_factor=100.0, height_scale=1.0, center_model=True):
    """
    Build vertices and faces for a DEM height field.

    Args:
        dem_data (np.ndarray): 2D elevation array (NaN = outside the region)
        scale_factor (float): Cells per scene unit horizontally
        height_scale (float): Elevation multiplier
        center_model (bool): Center x/y on the origin, keeping absolute z

    Returns:
        tuple: (positions, faces, y_valid, x_valid)
    """
    valid_mask = ~np.isnan(dem_data)
    positions, y_valid, x_valid = generate_vertex_positions(
        dem_data, valid_mask, scale_factor=scale_factor, height_scale=height_scale
    )

    if center_model and len(positions):
        centroid = positions.mean(axis=0)
        positions[:, 0] -= centroid[0]
        positions[:, 1] -= centroid[1]

    coord_to_index = {(int(y), int(x)): i for i, (y, x) in enumerate(zip(y_valid, x_valid))}
    faces = generate_faces(dem_data.shape[0], dem_data.shape[1], coord_to_index)
    return positions, faces, y_valid, x_valid
