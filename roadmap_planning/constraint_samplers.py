"""
Constraint samplers: turn declarative goal constraints into robot states.

Samplers write a sampled configuration for one joint group into a robot
state. They are rejection samplers bounded by an attempt count, so a failed
call to sample() is expected and not an error.
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional

import numpy as np
from scipy.spatial.transform import Rotation

from .exceptions import ConstraintSamplerError
from .messages import Constraints
from .robot_model import RobotState
from .scene import PlanningScene

logger = logging.getLogger(__name__)


class ConstraintSampler(ABC):
    """Base class for samplers of one joint group."""

    def __init__(self, scene: PlanningScene, group: str, rng: Optional[np.random.Generator] = None):
        self.scene = scene
        self.group = group
        self.rng = rng if rng is not None else np.random.default_rng()
        self.joint_names = scene.robot_model.get_active_joint_names(group)
        self.is_valid = False

    @abstractmethod
    def configure(self, constraints: Constraints) -> bool:
        """Set up the sampler from a goal; returns False if it cannot be used."""

    @abstractmethod
    def sample(self, state: RobotState, reference_state: RobotState, max_attempts: int) -> bool:
        """Write a sample into state; returns False if none was found within max_attempts."""

    @abstractmethod
    def is_satisfied(self, state: RobotState) -> bool:
        """Check whether a state satisfies the configured constraints."""


class JointConstraintSampler(ConstraintSampler):
    """Uniform sampling of joint constraint intervals; other group joints are drawn within limits."""

    def __init__(self, scene: PlanningScene, group: str, rng: Optional[np.random.Generator] = None):
        super().__init__(scene, group, rng)
        lower, upper = scene.robot_model.group_limits(group)
        self.lower = lower.copy()
        self.upper = upper.copy()

    def configure(self, constraints: Constraints) -> bool:
        lower, upper = self.scene.robot_model.group_limits(self.group)
        self.lower, self.upper = lower.copy(), upper.copy()
        self.is_valid = False

        applied = 0
        for jc in constraints.joint_constraints:
            if jc.joint_name not in self.joint_names:
                logger.warning(f"Joint '{jc.joint_name}' is not part of group '{self.group}', ignoring constraint")
                continue
            i = self.joint_names.index(jc.joint_name)
            lo = max(self.lower[i], jc.position - jc.tolerance_below)
            hi = min(self.upper[i], jc.position + jc.tolerance_above)
            if lo > hi:
                logger.warning(f"Joint constraint on '{jc.joint_name}' lies outside the joint limits")
                return False
            self.lower[i], self.upper[i] = lo, hi
            applied += 1

        self.is_valid = applied > 0
        return self.is_valid

    def sample(self, state: RobotState, reference_state: RobotState, max_attempts: int) -> bool:
        if not self.is_valid:
            logger.warning("JointConstraintSampler not configured, won't sample")
            return False
        state.set_joint_group_positions(self.group, self.rng.uniform(self.lower, self.upper))
        return True

    def is_satisfied(self, state: RobotState) -> bool:
        q = state.copy_joint_group_positions(self.group)
        return bool(np.all(q >= self.lower - 1e-9) and np.all(q <= self.upper + 1e-9))


class IKConstraintSampler(ConstraintSampler):
    """
    Samples tip poses from position/orientation constraints and solves IK.

    Requires the robot model to provide an IK solver. Without a position
    constraint the tip position of the reference state is kept (needs FK);
    without an orientation constraint orientations are drawn uniformly.
    """

    def __init__(self, scene: PlanningScene, group: str, rng: Optional[np.random.Generator] = None):
        super().__init__(scene, group, rng)
        self.position_constraint = None
        self.orientation_constraint = None

    def configure(self, constraints: Constraints) -> bool:
        model = self.scene.robot_model
        self.is_valid = False
        if model.ik_solver is None:
            logger.warning(f"Robot model '{model.name}' has no IK solver, cannot sample pose goals")
            return False

        tip = model.tip_link
        positions = [pc for pc in constraints.position_constraints if pc.link_name == tip]
        orientations = [oc for oc in constraints.orientation_constraints if oc.link_name == tip]
        if len(positions) != len(constraints.position_constraints) or \
                len(orientations) != len(constraints.orientation_constraints):
            logger.warning(f"Only constraints on tip link '{tip}' are supported, ignoring others")

        self.position_constraint = positions[0] if positions else None
        self.orientation_constraint = orientations[0] if orientations else None
        if self.position_constraint is None and self.orientation_constraint is None:
            return False
        if self.position_constraint is None and model.forward_kinematics is None:
            logger.warning("Orientation-only goals need forward kinematics to keep the tip position")
            return False

        self.is_valid = True
        return True

    def sample_pose(self, reference_state: RobotState) -> np.ndarray:
        """Draw one tip pose satisfying the configured constraints."""
        T = np.eye(4)
        if self.position_constraint is not None:
            target = np.asarray(self.position_constraint.target_point, dtype=float)
            half = np.asarray(self.position_constraint.region_half_extents, dtype=float)
            T[:3, 3] = self.rng.uniform(target - half, target + half)
        else:
            T[:3, 3] = reference_state.get_tip_transform(self.group)[:3, 3]

        if self.orientation_constraint is not None:
            oc = self.orientation_constraint
            tol = np.array([oc.absolute_x_axis_tolerance, oc.absolute_y_axis_tolerance,
                            oc.absolute_z_axis_tolerance])
            delta = Rotation.from_rotvec(self.rng.uniform(-tol, tol))
            T[:3, :3] = (Rotation.from_quat(oc.orientation) * delta).as_matrix()
        else:
            T[:3, :3] = Rotation.from_quat(self.rng.normal(size=4)).as_matrix()
        return T

    def sample(self, state: RobotState, reference_state: RobotState, max_attempts: int) -> bool:
        if not self.is_valid:
            logger.warning("IKConstraintSampler not configured, won't sample")
            return False

        ik_solver = self.scene.robot_model.ik_solver
        lower, upper = self.scene.robot_model.group_limits(self.group)
        for _ in range(max(1, max_attempts)):
            pose = self.sample_pose(reference_state)
            seed = self.rng.uniform(lower, upper)
            q, converged = ik_solver(pose, seed)
            if converged and q is not None:
                state.set_joint_group_positions(self.group, q)
                return True
        return False

    def is_satisfied(self, state: RobotState) -> bool:
        T = state.get_tip_transform(self.group)
        if T is None:
            # Nothing to check against; trust the IK solver
            return True
        if self.position_constraint is not None:
            target = np.asarray(self.position_constraint.target_point, dtype=float)
            half = np.asarray(self.position_constraint.region_half_extents, dtype=float)
            if np.any(np.abs(T[:3, 3] - target) > half + 1e-6):
                return False
        if self.orientation_constraint is not None:
            oc = self.orientation_constraint
            tol = np.array([oc.absolute_x_axis_tolerance, oc.absolute_y_axis_tolerance,
                            oc.absolute_z_axis_tolerance])
            error = (Rotation.from_quat(oc.orientation).inv() * Rotation.from_matrix(T[:3, :3])).as_rotvec()
            if np.any(np.abs(error) > tol + 1e-6):
                return False
        return True


class UnionConstraintSampler(ConstraintSampler):
    """
    Applies several samplers in sequence to the same state.

    A draw is accepted only if the final state satisfies every sampler's
    constraints, since a later sampler may overwrite joints set by an earlier one.
    """

    def __init__(self, scene: PlanningScene, group: str, samplers: List[ConstraintSampler],
                 rng: Optional[np.random.Generator] = None):
        super().__init__(scene, group, rng)
        self.samplers = list(samplers)
        self.is_valid = bool(self.samplers) and all(s.is_valid for s in self.samplers)

    def configure(self, constraints: Constraints) -> bool:
        self.is_valid = bool(self.samplers) and all(s.configure(constraints) for s in self.samplers)
        return self.is_valid

    def sample(self, state: RobotState, reference_state: RobotState, max_attempts: int) -> bool:
        if not self.is_valid:
            return False
        for _ in range(max(1, max_attempts)):
            if not all(s.sample(state, reference_state, 1) for s in self.samplers):
                continue
            if self.is_satisfied(state):
                return True
        return False

    def is_satisfied(self, state: RobotState) -> bool:
        return all(s.is_satisfied(state) for s in self.samplers)


def build_goal_sampler(scene: PlanningScene, group: str, constraints: Constraints,
                       rng: Optional[np.random.Generator] = None) -> Optional[UnionConstraintSampler]:
    """
    Build a composite sampler for one goal.

    Args:
        scene: Planning scene
        group: Planning group
        constraints: Goal constraints
        rng: Random generator shared by the sub-samplers

    Returns:
        Union sampler, or None if the goal has no constraints to sample
    """
    if constraints.is_empty():
        return None

    samplers: List[ConstraintSampler] = []
    if constraints.joint_constraints:
        joint_sampler = JointConstraintSampler(scene, group, rng)
        if not joint_sampler.configure(constraints):
            raise ConstraintSamplerError(f"Unable to configure joint constraint sampler for goal '{constraints.name}'")
        samplers.append(joint_sampler)
    if constraints.position_constraints or constraints.orientation_constraints:
        ik_sampler = IKConstraintSampler(scene, group, rng)
        if not ik_sampler.configure(constraints):
            raise ConstraintSamplerError(f"Unable to configure IK constraint sampler for goal '{constraints.name}'")
        samplers.append(ik_sampler)

    return UnionConstraintSampler(scene, group, samplers, rng)
