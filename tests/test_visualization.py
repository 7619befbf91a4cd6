"""
Tests for roadmap plots.
"""

import pytest
import numpy as np
import plotly.graph_objects as go

from roadmap_planning.collision import Voxel
from roadmap_planning.demo import GROUP
from roadmap_planning.roadmap import RoadmapVolume
from roadmap_planning.trajectory import RobotTrajectory, path_to_robot_trajectory
from roadmap_planning.visualization import RoadmapVisualizer


@pytest.fixture
def visualizer():
    return RoadmapVisualizer(RoadmapVolume(center=(0.0, 0.0, 0.5), dimensions=(1.0, 1.0, 1.0)), 0.1)


class TestRoadmapVisualizer:
    """Test plot generation."""

    def test_plot_roadmap(self, visualizer, grid_roadmap, tmp_path):
        _, transforms, _ = grid_roadmap
        tip_path = np.array([T[:3, 3] for T in transforms[:4]])
        save_path = tmp_path / "roadmap.html"

        fig = visualizer.plot_roadmap(transforms, [Voxel(1, 2, 3)], tip_path, [0, 5], save_path=str(save_path))

        assert isinstance(fig, go.Figure)
        names = [trace.name for trace in fig.data]
        assert names == ['Roadmap States', 'Collision Voxels', 'Goal States', 'Solution Path', 'Start',
                         'Working Volume']
        assert len(fig.data[0].x) == len(transforms)
        assert save_path.exists()

    def test_plot_roadmap_only(self, visualizer, grid_roadmap):
        _, transforms, _ = grid_roadmap
        fig = visualizer.plot_roadmap(transforms)
        assert [trace.name for trace in fig.data] == ['Roadmap States', 'Working Volume']

    def test_plot_joint_path(self, visualizer, scene, tmp_path):
        trajectory = RobotTrajectory(scene.robot_model, GROUP)
        path_to_robot_trajectory([[0.0, 0.5, 0.5], [0.2, 0.6, 0.4]], scene.get_current_state(),
                                 scene.robot_model.get_active_joint_names(GROUP), trajectory)
        save_path = tmp_path / "joints.png"

        fig = visualizer.plot_joint_path(trajectory, save_path=str(save_path))

        assert len(fig.axes[0].lines) == 3
        assert save_path.exists()


if __name__ == "__main__":
    pytest.main([__file__])
