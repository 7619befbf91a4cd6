"""
Robot trajectory built from a roadmap solution path.

Time parameterization is left to downstream consumers; waypoints carry no
timing beyond their order.
"""

import logging
from typing import List, Optional, Sequence

import numpy as np

from .robot_model import JointConfiguration, RobotModel, RobotState
from .utils import compute_path_length

logger = logging.getLogger(__name__)


class RobotTrajectory:
    """Ordered sequence of full robot states for one planning group."""

    def __init__(self, robot_model: RobotModel, group: str):
        self.robot_model = robot_model
        self.group = group
        self.waypoints: List[RobotState] = []

    def __len__(self) -> int:
        return len(self.waypoints)

    def is_empty(self) -> bool:
        return not self.waypoints

    def add_suffix_waypoint(self, state: RobotState):
        self.waypoints.append(state.copy())

    def add_prefix_waypoint(self, state: RobotState):
        self.waypoints.insert(0, state.copy())

    def get_first_waypoint(self) -> Optional[RobotState]:
        return self.waypoints[0] if self.waypoints else None

    def get_last_waypoint(self) -> Optional[RobotState]:
        return self.waypoints[-1] if self.waypoints else None

    def joint_positions(self) -> np.ndarray:
        """Group positions of every waypoint, [n_waypoints, n_joints]."""
        if not self.waypoints:
            n = len(self.robot_model.get_active_joint_names(self.group))
            return np.zeros((0, n))
        return np.array([w.copy_joint_group_positions(self.group) for w in self.waypoints])

    def path_length(self) -> float:
        return compute_path_length(self.joint_positions())


def path_to_robot_trajectory(path: Sequence[JointConfiguration], reference_state: RobotState,
                             joint_names: List[str], trajectory: RobotTrajectory) -> RobotTrajectory:
    """
    Append a roadmap path to a trajectory.

    Every waypoint starts from the reference state with the group's joints
    overwritten by the path configuration.

    Args:
        path: Roadmap configurations in group joint order
        reference_state: State providing values for joints outside the group
        joint_names: Active joint names matching the configuration order
        trajectory: Trajectory to append to

    Returns:
        The same trajectory, for chaining
    """
    for config in path:
        config = np.asarray(config, dtype=float)
        if config.shape != (len(joint_names),):
            raise ValueError(f"Path waypoint has shape {config.shape}, expected ({len(joint_names)},)")
        waypoint = reference_state.copy()
        waypoint.set_variable_positions(joint_names, config)
        trajectory.add_suffix_waypoint(waypoint)

    logger.debug(f"Converted path with {len(path)} waypoints into robot trajectory")
    return trajectory
