"""
Planning context that solves motion plan requests on a precomputed roadmap.

A context is bound to one planning group and one roadmap. configure() loads
the roadmap states once; every solve() call then resolves the request's goals
onto roadmap states, snapshots the collision scene and asks the roadmap
planner for a path, trying goal candidates in order until one succeeds or
the planning deadline passes.
"""

import logging
import time
from abc import ABC, abstractmethod
from enum import Enum
from typing import Callable, List, Optional, Tuple

import numpy as np

from .collision import scene_to_collision_voxels
from .exceptions import (ConfigurationError, GoalResolutionError, SceneConversionError,
                         StartStateError)
from .goal_resolver import GoalResolver, ResolvedGoal
from .messages import (MotionPlanDetailedResponse, MotionPlanRequest, MotionPlanResponse,
                       PlanningResult)
from .planner_interface import RoadmapPlannerInterface
from .roadmap import RoadmapIndex, RoadmapSpecification, RoadmapVolume
from .robot_model import JointConfiguration, RobotState
from .scene import PlanningScene
from .start_state import resolve_start_configuration
from .trajectory import RobotTrajectory, path_to_robot_trajectory
from .utils import PlanningConfig, PlanningDeadline

logger = logging.getLogger(__name__)


class ContextState(Enum):
    UNCONFIGURED = "unconfigured"
    CONFIGURED = "configured"
    RESOLVING_GOALS = "resolving_goals"
    SEARCHING = "searching"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


class PlanningContext(ABC):
    """Operations a planning pipeline expects from a planning context."""

    def __init__(self, name: str, group: str):
        self.name = name
        self.group = group
        self.planning_scene: Optional[PlanningScene] = None
        self.request: Optional[MotionPlanRequest] = None

    def set_planning_scene(self, scene: PlanningScene):
        self.planning_scene = scene

    def set_motion_plan_request(self, request: MotionPlanRequest):
        self.request = request

    @abstractmethod
    def configure(self) -> PlanningResult:
        """Prepare the context for solving; FAILURE leaves it unusable."""

    @abstractmethod
    def solve(self, response: MotionPlanResponse) -> bool:
        """Solve the current request into a simple response."""

    @abstractmethod
    def solve_detailed(self, response: MotionPlanDetailedResponse) -> bool:
        """Solve the current request, appending one stage to a detailed response."""

    @abstractmethod
    def terminate(self) -> bool:
        """Request termination of a running solve."""

    @abstractmethod
    def clear(self):
        """Drop any per-request data."""


class RoadmapPlanningContext(PlanningContext):
    """Planning context for one planning group on one roadmap."""

    def __init__(self, planning_group: str, roadmap_spec: RoadmapSpecification,
                 planner_interface: RoadmapPlannerInterface,
                 config: Optional[PlanningConfig] = None,
                 rng: Optional[np.random.Generator] = None,
                 clock: Callable[[], float] = time.monotonic):
        """
        Args:
            planning_group: Joint group to plan for
            roadmap_spec: Roadmap to plan on
            planner_interface: Roadmap search engine
            config: Planning parameters
            rng: Random generator for goal sampling
            clock: Monotonic clock in seconds
        """
        super().__init__(f"{planning_group}[{roadmap_spec.roadmap_id}]", planning_group)
        self.config = config or PlanningConfig()
        self.planner_interface = planner_interface
        self.roadmap = roadmap_spec
        self.rng = rng if rng is not None else np.random.default_rng()
        self.clock = clock

        self.state = ContextState.UNCONFIGURED
        self.configured = False
        self.joint_model_names: List[str] = []
        self.roadmap_configs: Optional[np.ndarray] = None
        self.roadmap_poses: List[np.ndarray] = []
        self.roadmap_index: Optional[RoadmapIndex] = None
        self.goals: List[ResolvedGoal] = []
        self.start_state: Optional[RobotState] = None

    @classmethod
    def from_config(cls, planning_group: str, roadmap_id: str, planner_interface: RoadmapPlannerInterface,
                    config: PlanningConfig, **kwargs) -> 'RoadmapPlanningContext':
        """Build a context whose working volume comes from the planning config."""
        volume = RoadmapVolume(center=config.volume_center, dimensions=config.volume_dimensions,
                               base_frame=config.volume_frame)
        return cls(planning_group, RoadmapSpecification(roadmap_id, volume), planner_interface,
                   config=config, **kwargs)

    def configure(self) -> PlanningResult:
        """
        Load roadmap states and check them against the planning group.

        Returns:
            PlanningResult.SUCCESS, or FAILURE if the context cannot be used
        """
        if self.configured:
            return PlanningResult.SUCCESS

        try:
            self._load_roadmap()
        except ConfigurationError as e:
            logger.error(f"Failed to configure planning context {self.name}: {e}")
            return PlanningResult.FAILURE

        self.configured = True
        self.state = ContextState.CONFIGURED
        logger.info(f"Configured planning context {self.name} with {len(self.roadmap_configs)} roadmap states")
        return PlanningResult.SUCCESS

    def _load_roadmap(self):
        if self.planning_scene is None:
            raise ConfigurationError("Cannot configure planning context while planning scene has not been set")

        self.joint_model_names = self.planning_scene.robot_model.get_active_joint_names(self.group)

        if not self.planner_interface.is_ready() and not self.planner_interface.initialize():
            raise ConfigurationError("Roadmap planner is not ready and failed to initialize")

        configs = self.planner_interface.get_roadmap_configs(self.roadmap)
        if configs is None or len(configs) == 0:
            raise ConfigurationError("Unable to load config states from roadmap file")
        try:
            configs = np.asarray(configs, dtype=float)
        except ValueError as e:
            raise ConfigurationError(f"Roadmap states have inconsistent dimensions: {e}") from e
        if configs.ndim != 2 or configs.shape[1] != len(self.joint_model_names):
            raise ConfigurationError("Roadmap state dimension does not fit to joint count of planning group")

        poses = self.planner_interface.get_roadmap_transforms(self.roadmap)
        if poses is None or len(poses) == 0:
            raise ConfigurationError("Unable to load state poses from roadmap file")
        if len(poses) != len(configs):
            raise ConfigurationError(f"Roadmap has {len(configs)} states but {len(poses)} poses")

        self.roadmap_configs = configs
        self.roadmap_poses = list(poses)
        self.roadmap_index = RoadmapIndex(configs, metric=self.config.distance_metric)

    def solve_trajectory(self) -> Tuple[PlanningResult, Optional[RobotTrajectory], float]:
        """
        Solve the current request.

        Returns:
            Tuple of (result, trajectory or None, planning time in seconds)
        """
        allowed_time = self.request.allowed_planning_time if self.request is not None else 0.0
        deadline = PlanningDeadline.from_now(allowed_time, clock=self.clock)
        result, trajectory = self._solve(deadline)
        planning_time = deadline.elapsed(self.clock)

        logger.info(f"Planning completed: {result.value} in {planning_time:.3f}s")
        return result, trajectory, planning_time

    def _solve(self, deadline: PlanningDeadline) -> Tuple[PlanningResult, Optional[RobotTrajectory]]:
        if not self.configured:
            logger.error("solve() was called but planning context has not been configured successfully")
            return PlanningResult.FAILURE, None
        if self.request is None:
            logger.error("solve() was called without a motion plan request")
            self.state = ContextState.FAILED
            return PlanningResult.FAILURE, None
        if deadline.expired(self.clock):
            logger.warning("Planning deadline already passed, not trying any goal")
            self.state = ContextState.TIMED_OUT
            return PlanningResult.TIMED_OUT, None

        self.state = ContextState.RESOLVING_GOALS
        resolver = GoalResolver(self.planning_scene, self.group, self.roadmap_index, self.roadmap_poses,
                                config=self.config, rng=self.rng, clock=self.clock)
        try:
            self.goals = resolver.resolve(self.request.goal_constraints, deadline)
            collision_voxels = scene_to_collision_voxels(self.planning_scene, self.roadmap.volume,
                                                         self.config.voxel_resolution)
            start_config, self.start_state = self._init_start_state()
        except (GoalResolutionError, SceneConversionError, StartStateError) as e:
            logger.error(str(e))
            self.state = ContextState.FAILED
            return PlanningResult.FAILURE, None

        self.state = ContextState.SEARCHING
        result = PlanningResult.PLANNING_FAILED
        trajectory = None
        for i, resolved in enumerate(self.goals):
            timeout_ms = deadline.remaining(self.clock) * 1000.0
            if timeout_ms <= 0.0:
                logger.warning(f"Planning deadline reached before goal candidate {i}")
                result = PlanningResult.TIMED_OUT
                break

            success, solution_path = self.planner_interface.solve(
                self.roadmap, start_config, resolved.goal, collision_voxels, timeout_ms)
            if not success:
                logger.info(f"Roadmap planner found no path to goal candidate {i}")
                continue
            if len(solution_path) == 0:
                logger.warning("Cannot convert empty path to robot trajectory")
                continue

            trajectory = self._to_trajectory(solution_path, start_config, resolved)
            result = PlanningResult.SUCCESS
            break

        self.state = {
            PlanningResult.SUCCESS: ContextState.SUCCEEDED,
            PlanningResult.TIMED_OUT: ContextState.TIMED_OUT,
        }.get(result, ContextState.FAILED)
        return result, trajectory

    def _init_start_state(self) -> Tuple[JointConfiguration, RobotState]:
        return resolve_start_configuration(self.request, self.planning_scene, self.group,
                                           self.joint_model_names)

    def _to_trajectory(self, solution_path: List[np.ndarray], start_config: JointConfiguration,
                       resolved: ResolvedGoal) -> RobotTrajectory:
        reference_state = self.planning_scene.get_current_state()
        trajectory = RobotTrajectory(reference_state.robot_model, self.group)
        path = [np.asarray(q, dtype=float) for q in solution_path]

        if self.config.connect_start_goal:
            if not np.allclose(path[0], start_config):
                path.insert(0, np.asarray(start_config, dtype=float))
            if not np.allclose(path[-1], resolved.sample_config):
                path.append(resolved.sample_config)

        return path_to_robot_trajectory(path, reference_state, self.joint_model_names, trajectory)

    def solve(self, response: MotionPlanResponse) -> bool:
        response.error_code, response.trajectory, response.planning_time = self.solve_trajectory()
        return response.error_code == PlanningResult.SUCCESS

    def solve_detailed(self, response: MotionPlanDetailedResponse) -> bool:
        response.error_code, trajectory, planning_time = self.solve_trajectory()
        response.trajectory.append(trajectory)
        response.processing_time.append(planning_time)
        response.description.append("plan")
        return response.error_code == PlanningResult.SUCCESS

    def clear(self):
        pass

    def terminate(self) -> bool:
        # The roadmap planner offers no interruption hook
        logger.warning("Failed to terminate the planning attempt! This is not supported.")
        return False
