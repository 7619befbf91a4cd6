"""
Conversion of the planning scene into collision voxels for the roadmap planner.
"""

import logging
from dataclasses import dataclass
from typing import List, Tuple

import numpy as np

from .exceptions import SceneConversionError
from .roadmap import RoadmapVolume
from .scene import PlanningScene

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Voxel:
    """Occupied grid cell, indexed from the minimum corner of the working volume."""
    x: int
    y: int
    z: int


def voxel_grid_cells(volume: RoadmapVolume, resolution: float) -> Tuple[np.ndarray, np.ndarray]:
    """
    Cells of a regular grid covering the whole working volume.

    The grid starts at the minimum corner of the volume. When a dimension is
    not a multiple of the resolution, the last cell along that axis is
    clipped to the volume bounds.

    Args:
        volume: Working volume
        resolution: Edge length of a cell in meters

    Returns:
        Tuple of (cell minimum corners, cell maximum corners), each [nx, ny, nz, 3]
    """
    dims = np.asarray(volume.dimensions, dtype=float)
    if resolution <= 0.0:
        raise SceneConversionError(f"Voxel resolution must be positive, got {resolution}")
    if np.any(dims <= 0.0):
        raise SceneConversionError(f"Working volume dimensions must be positive, got {volume.dimensions}")

    lower, upper = volume.bounds
    counts = np.maximum(1, np.ceil(dims / resolution - 1e-9).astype(int))
    axes = [lower[i] + np.arange(counts[i]) * resolution for i in range(3)]
    cell_min = np.stack(np.meshgrid(*axes, indexing='ij'), axis=-1)
    cell_max = np.minimum(cell_min + resolution, upper)
    return cell_min, cell_max


def scene_to_collision_voxels(scene: PlanningScene, volume: RoadmapVolume,
                              resolution: float = 0.05) -> List[Voxel]:
    """
    Convert the collision objects of a planning scene into occupied voxels.

    A cell is occupied when it shares volume with any collision object, so
    objects smaller than a cell are still represented. Only cells inside the
    working volume are considered.

    Args:
        scene: Planning scene with collision objects
        volume: Working volume of the roadmap
        resolution: Voxel edge length in meters

    Returns:
        List of occupied voxels
    """
    if scene is None:
        raise SceneConversionError("No planning scene to convert")
    if volume.base_frame != scene.frame_id:
        raise SceneConversionError(
            f"Volume frame '{volume.base_frame}' does not match scene frame '{scene.frame_id}'")

    cell_min, cell_max = voxel_grid_cells(volume, resolution)
    shape = cell_min.shape[:3]
    occupied = scene.is_box_in_collision(cell_min.reshape(-1, 3), cell_max.reshape(-1, 3)).reshape(shape)
    voxels = [Voxel(int(i), int(j), int(k)) for i, j, k in np.argwhere(occupied)]

    logger.debug(f"Converted scene into {len(voxels)} occupied voxels "
                 f"({shape[0]}x{shape[1]}x{shape[2]} grid, resolution {resolution})")
    return voxels


def voxel_centers(voxels: List[Voxel], volume: RoadmapVolume, resolution: float) -> np.ndarray:
    """World coordinates of voxel centers, [n, 3]."""
    if not voxels:
        return np.zeros((0, 3))
    lower, _ = volume.bounds
    idx = np.array([(v.x, v.y, v.z) for v in voxels], dtype=float)
    return lower + (idx + 0.5) * resolution
