"""
Goal resolution: collapse declarative goal constraints onto roadmap states.

The roadmap planner can only start and stop at its own discrete states, so
each goal is rejection-sampled until a sample lands within the admissible
joint distance of a roadmap state, or until the planning deadline passes.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

import numpy as np

from .constraint_samplers import build_goal_sampler
from .exceptions import ConstraintSamplerError, GoalResolutionError
from .messages import Constraints
from .roadmap import GoalType, RoadmapGoal, RoadmapIndex, pose_positions
from .robot_model import JointConfiguration, RobotState
from .scene import PlanningScene
from .utils import PlanningConfig, PlanningDeadline

logger = logging.getLogger(__name__)


@dataclass
class ResolvedGoal:
    """A roadmap goal together with the sampled state it was matched from."""
    goal: RoadmapGoal
    goal_state: RobotState
    sample_config: JointConfiguration
    constraint_index: int
    samples_drawn: int = 0


class GoalResolver:
    """Resolves goal constraints into roadmap goals under a shared deadline."""

    def __init__(self, scene: PlanningScene, group: str, roadmap_index: RoadmapIndex,
                 roadmap_poses: Optional[List[np.ndarray]] = None,
                 config: Optional[PlanningConfig] = None,
                 rng: Optional[np.random.Generator] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.scene = scene
        self.group = group
        self.roadmap_index = roadmap_index
        self.config = config or PlanningConfig()
        self.rng = rng if rng is not None else np.random.default_rng()
        self.clock = clock
        self._pose_positions = pose_positions(roadmap_poses) if roadmap_poses is not None else None

    def resolve(self, goal_constraints: List[Constraints], deadline: PlanningDeadline) -> List[ResolvedGoal]:
        """
        Resolve every goal independently, keeping input order.

        Args:
            goal_constraints: Goals of the request
            deadline: Deadline of the current planning attempt

        Returns:
            Resolved goals (at least one)

        Raises:
            GoalResolutionError: If there are no goals, or none could be resolved
        """
        if not goal_constraints:
            raise GoalResolutionError("Goal constraints are empty")

        resolved = []
        for i, constraints in enumerate(goal_constraints):
            goal = self.resolve_goal(constraints, deadline, i)
            if goal is not None:
                resolved.append(goal)

        if not resolved:
            raise GoalResolutionError("Failed to extract any goals from constraints")

        logger.info(f"Resolved {len(resolved)} of {len(goal_constraints)} goals to roadmap states")
        return resolved

    def resolve_goal(self, constraints: Constraints, deadline: PlanningDeadline,
                     constraint_index: int = 0) -> Optional[ResolvedGoal]:
        """
        Sample one goal until a roadmap state is admissible or the deadline passes.

        Returns:
            ResolvedGoal, or None if this goal contributes nothing
        """
        try:
            sampler = build_goal_sampler(self.scene, self.group, constraints, self.rng)
        except ConstraintSamplerError as e:
            logger.warning(f"Skipping goal {constraint_index}: {e}")
            return None
        if sampler is None:
            return None

        candidate_ids = self._prefilter_states(constraints)
        if candidate_ids is not None and len(candidate_ids) == 0:
            logger.warning(f"No roadmap state within {self.config.allowed_position_distance} m "
                           f"of the position target of goal {constraint_index}")
            return None

        reference_state = self.scene.get_current_state()
        sample_state = reference_state.copy()
        samples = 0
        sampler_failures = 0
        while not deadline.expired(self.clock):
            samples += 1
            if samples % self.config.log_every_n_samples == 0:
                logger.debug(f"Goal {constraint_index}: {samples} samples drawn, "
                             f"{sampler_failures} sampler failures, "
                             f"{deadline.remaining(self.clock):.3f}s left")

            if not sampler.sample(sample_state, reference_state, self.config.sampler_max_attempts):
                sampler_failures += 1
                self._backoff(deadline)
                continue

            sample_config = sample_state.copy_joint_group_positions(self.group)
            state_ids, distances = self.roadmap_index.find_closest(
                sample_config,
                max_count=self.config.max_goal_states,
                max_distance=self.config.allowed_joint_distance,
                candidate_ids=candidate_ids)

            if state_ids:
                logger.debug(f"Goal {constraint_index} matched roadmap states {state_ids} "
                             f"after {samples} samples (distance {distances[0]:.4f})")
                return ResolvedGoal(
                    goal=RoadmapGoal(type=GoalType.STATE_IDS, state_ids=state_ids, distances=distances),
                    goal_state=sample_state.copy(),
                    sample_config=sample_config,
                    constraint_index=constraint_index,
                    samples_drawn=samples)

            self._backoff(deadline)

        logger.warning(f"Deadline reached before goal {constraint_index} matched a roadmap state "
                       f"({samples} samples)")
        return None

    def _prefilter_states(self, constraints: Constraints) -> Optional[np.ndarray]:
        """Roadmap states whose pose is near the goal's position target, or None for no filtering."""
        if not self.config.prefilter_by_position or self._pose_positions is None:
            return None
        tip_link = self.scene.robot_model.tip_link
        pc = next((c for c in constraints.position_constraints if c.link_name == tip_link), None)
        if pc is None:
            return None

        target = np.asarray(pc.target_point, dtype=float)
        radius = self.config.allowed_position_distance + float(np.linalg.norm(pc.region_half_extents))
        distances = np.linalg.norm(self._pose_positions - target, axis=1)
        return np.flatnonzero(distances <= radius)

    def _backoff(self, deadline: PlanningDeadline):
        if self.config.sampling_backoff > 0.0:
            time.sleep(max(0.0, min(self.config.sampling_backoff, deadline.remaining(self.clock))))
