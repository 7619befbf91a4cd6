"""
Visualization tools for roadmap planning using Plotly and Matplotlib.
"""

import numpy as np
import matplotlib.pyplot as plt
import plotly.graph_objects as go
from typing import List, Optional
import logging

from .collision import Voxel, voxel_centers
from .roadmap import RoadmapVolume, pose_positions
from .trajectory import RobotTrajectory

logger = logging.getLogger(__name__)


class RoadmapVisualizer:
    """Plots roadmap states, collision voxels and planned trajectories."""

    def __init__(self, volume: RoadmapVolume, voxel_resolution: float = 0.05):
        """
        Initialize visualizer.

        Args:
            volume: Working volume of the roadmap
            voxel_resolution: Voxel edge length used for the collision scene
        """
        self.volume = volume
        self.voxel_resolution = voxel_resolution
        self.colors = {
            'roadmap': 'lightblue',
            'path': 'blue',
            'start': 'green',
            'goal': 'red',
            'obstacle': 'gray',
            'volume': 'black',
        }

    def plot_roadmap(self, roadmap_poses: List[np.ndarray],
                     collision_voxels: Optional[List[Voxel]] = None,
                     tip_path: Optional[np.ndarray] = None,
                     goal_state_ids: Optional[List[int]] = None,
                     save_path: Optional[str] = None) -> go.Figure:
        """
        Plot roadmap tip positions with obstacles and an optional tip path in 3D.

        Args:
            roadmap_poses: 4x4 tip transforms of the roadmap states
            collision_voxels: Occupied voxels
            tip_path: Tip positions along a solution [n, 3]
            goal_state_ids: Roadmap states matched as goals
            save_path: Optional path to save the plot as HTML

        Returns:
            Plotly figure
        """
        fig = go.Figure()
        positions = pose_positions(roadmap_poses)

        fig.add_trace(go.Scatter3d(
            x=positions[:, 0], y=positions[:, 1], z=positions[:, 2],
            mode='markers',
            marker=dict(size=2, color=self.colors['roadmap']),
            name='Roadmap States'
        ))

        if collision_voxels:
            centers = voxel_centers(collision_voxels, self.volume, self.voxel_resolution)
            fig.add_trace(go.Scatter3d(
                x=centers[:, 0], y=centers[:, 1], z=centers[:, 2],
                mode='markers',
                marker=dict(size=3, symbol='square', color=self.colors['obstacle'], opacity=0.5),
                name='Collision Voxels'
            ))

        if goal_state_ids:
            goals = positions[goal_state_ids]
            fig.add_trace(go.Scatter3d(
                x=goals[:, 0], y=goals[:, 1], z=goals[:, 2],
                mode='markers',
                marker=dict(size=6, color=self.colors['goal']),
                name='Goal States'
            ))

        if tip_path is not None and len(tip_path) > 0:
            tip_path = np.asarray(tip_path)
            fig.add_trace(go.Scatter3d(
                x=tip_path[:, 0], y=tip_path[:, 1], z=tip_path[:, 2],
                mode='lines+markers',
                line=dict(color=self.colors['path'], width=5),
                marker=dict(size=3),
                name='Solution Path'
            ))
            fig.add_trace(go.Scatter3d(
                x=[tip_path[0, 0]], y=[tip_path[0, 1]], z=[tip_path[0, 2]],
                mode='markers',
                marker=dict(size=8, color=self.colors['start']),
                name='Start'
            ))

        self._add_volume_outline(fig)

        fig.update_layout(
            title='Roadmap',
            scene=dict(xaxis_title='X (m)', yaxis_title='Y (m)', zaxis_title='Z (m)', aspectmode='data'),
            showlegend=True
        )

        if save_path:
            fig.write_html(save_path)
            logger.info(f"Roadmap plot saved to {save_path}")

        return fig

    def plot_joint_path(self, trajectory: RobotTrajectory, save_path: Optional[str] = None):
        """
        Plot joint positions over waypoint index.

        Args:
            trajectory: Planned trajectory
            save_path: Optional path to save the plot as an image

        Returns:
            Matplotlib figure
        """
        positions = trajectory.joint_positions()
        joint_names = trajectory.robot_model.get_active_joint_names(trajectory.group)

        fig, ax = plt.subplots(figsize=(8, 4))
        for i, name in enumerate(joint_names):
            ax.plot(np.arange(len(positions)), positions[:, i], marker='o', label=name)
        ax.set_xlabel('Waypoint')
        ax.set_ylabel('Position (rad)')
        ax.set_title('Joint Path')
        ax.grid(True, alpha=0.3)
        ax.legend(loc='best', fontsize='small')
        fig.tight_layout()

        if save_path:
            fig.savefig(save_path)
            logger.info(f"Joint path plot saved to {save_path}")

        return fig

    def _add_volume_outline(self, fig: go.Figure):
        """Add the working volume as a wireframe box."""
        min_corner, max_corner = self.volume.bounds
        vertices = [
            [min_corner[0], min_corner[1], min_corner[2]],
            [max_corner[0], min_corner[1], min_corner[2]],
            [max_corner[0], max_corner[1], min_corner[2]],
            [min_corner[0], max_corner[1], min_corner[2]],
            [min_corner[0], min_corner[1], max_corner[2]],
            [max_corner[0], min_corner[1], max_corner[2]],
            [max_corner[0], max_corner[1], max_corner[2]],
            [min_corner[0], max_corner[1], max_corner[2]]
        ]

        edges = [
            [0, 1], [1, 2], [2, 3], [3, 0],  # bottom face
            [4, 5], [5, 6], [6, 7], [7, 4],  # top face
            [0, 4], [1, 5], [2, 6], [3, 7]   # vertical edges
        ]

        x_coords, y_coords, z_coords = [], [], []
        for edge in edges:
            v1, v2 = vertices[edge[0]], vertices[edge[1]]
            x_coords.extend([v1[0], v2[0], None])
            y_coords.extend([v1[1], v2[1], None])
            z_coords.extend([v1[2], v2[2], None])

        fig.add_trace(go.Scatter3d(
            x=x_coords, y=y_coords, z=z_coords,
            mode='lines',
            line=dict(color=self.colors['volume'], width=2),
            name='Working Volume',
            hoverinfo='skip'
        ))
