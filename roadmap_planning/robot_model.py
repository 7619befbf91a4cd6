"""
Minimal robot model and robot state used by the roadmap planning context.

The model only carries what planning needs: joint names, joint limits,
named joint groups and optional kinematics callables for the group tip.
"""

import logging
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Type aliases
JointConfiguration = np.ndarray
Transform = np.ndarray
IKSolver = Callable[[Transform, Optional[JointConfiguration]], Tuple[Optional[JointConfiguration], bool]]
ForwardKinematics = Callable[[JointConfiguration], Transform]


class RobotModel:
    """Kinematic description of a robot as seen by the planner."""

    def __init__(self, name: str, joint_names: Sequence[str], joint_limits: np.ndarray,
                 groups: Optional[Dict[str, Sequence[str]]] = None,
                 ik_solver: Optional[IKSolver] = None,
                 forward_kinematics: Optional[ForwardKinematics] = None,
                 tip_link: str = "tool0"):
        """
        Args:
            name: Robot name
            joint_names: Names of all active joints, in variable order
            joint_limits: Joint limits [lower, upper], shape (2, n_joints)
            groups: Mapping of group name to ordered joint names
            ik_solver: Callable (tip_pose, seed) -> (group positions, converged)
            forward_kinematics: Callable group positions -> 4x4 tip transform
            tip_link: Name of the link the kinematics callables refer to
        """
        self.name = name
        self.joint_names = list(joint_names)
        self.joint_limits = np.asarray(joint_limits, dtype=float)
        if self.joint_limits.shape != (2, len(self.joint_names)):
            raise ConfigurationError(
                f"Joint limits shape {self.joint_limits.shape} does not match "
                f"{len(self.joint_names)} joints")
        self.groups = {g: list(j) for g, j in (groups or {}).items()}
        for group, names in self.groups.items():
            missing = [n for n in names if n not in self.joint_names]
            if missing:
                raise ConfigurationError(f"Group '{group}' references unknown joints {missing}")
        self.ik_solver = ik_solver
        self.forward_kinematics = forward_kinematics
        self.tip_link = tip_link
        self._index = {n: i for i, n in enumerate(self.joint_names)}

    @property
    def n_joints(self) -> int:
        return len(self.joint_names)

    def has_joint_group(self, group: str) -> bool:
        return group in self.groups

    def get_active_joint_names(self, group: str) -> List[str]:
        """Ordered active joint names of a planning group."""
        if not self.has_joint_group(group):
            raise ConfigurationError(f"Robot model '{self.name}' has no joint group '{group}'")
        return list(self.groups[group])

    def joint_indices(self, names: Sequence[str]) -> List[int]:
        return [self._index[n] for n in names]

    def group_limits(self, group: str) -> Tuple[np.ndarray, np.ndarray]:
        idx = self.joint_indices(self.get_active_joint_names(group))
        return self.joint_limits[0, idx], self.joint_limits[1, idx]

    def variable_index(self, name: str) -> int:
        return self._index[name]

    def has_variable(self, name: str) -> bool:
        return name in self._index


class RobotState:
    """Joint positions of every variable of a RobotModel."""

    def __init__(self, robot_model: RobotModel, positions: Optional[Sequence[float]] = None):
        self.robot_model = robot_model
        if positions is None:
            lower, upper = robot_model.joint_limits
            # Zero position, clipped into the joint limits
            positions = np.clip(np.zeros(robot_model.n_joints), lower, upper)
        self.positions = np.array(positions, dtype=float)
        if self.positions.shape != (robot_model.n_joints,):
            raise ValueError(f"Expected {robot_model.n_joints} positions, got {self.positions.shape}")

    def copy(self) -> 'RobotState':
        return RobotState(self.robot_model, self.positions.copy())

    def get_variable_position(self, name: str) -> float:
        return float(self.positions[self.robot_model.variable_index(name)])

    def set_variable_positions(self, names: Sequence[str], positions: Sequence[float]):
        """Set positions by joint name; unknown names are ignored with a debug message."""
        for name, value in zip(names, positions):
            if self.robot_model.has_variable(name):
                self.positions[self.robot_model.variable_index(name)] = float(value)
            else:
                logger.debug(f"Ignoring unknown joint '{name}'")

    def copy_joint_group_positions(self, group: str) -> JointConfiguration:
        idx = self.robot_model.joint_indices(self.robot_model.get_active_joint_names(group))
        return self.positions[idx].copy()

    def set_joint_group_positions(self, group: str, values: Sequence[float]):
        idx = self.robot_model.joint_indices(self.robot_model.get_active_joint_names(group))
        values = np.asarray(values, dtype=float)
        if values.shape != (len(idx),):
            raise ValueError(f"Group '{group}' expects {len(idx)} values, got {values.shape}")
        self.positions[idx] = values

    def satisfies_bounds(self, margin: float = 0.0) -> bool:
        lower, upper = self.robot_model.joint_limits
        return bool(np.all(self.positions >= lower - margin) and np.all(self.positions <= upper + margin))

    def get_tip_transform(self, group: str) -> Optional[Transform]:
        """Forward kinematics of the group tip, or None if the model has no FK."""
        if self.robot_model.forward_kinematics is None:
            return None
        return self.robot_model.forward_kinematics(self.copy_joint_group_positions(group))

    def __repr__(self) -> str:
        return f"RobotState({self.robot_model.name}, {np.round(self.positions, 4).tolist()})"
