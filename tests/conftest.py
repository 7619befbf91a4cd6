"""
Shared fixtures for roadmap planning tests.
"""

from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

import matplotlib
matplotlib.use("Agg")

import numpy as np
import pytest

from roadmap_planning.demo import GROUP, build_grid_roadmap, make_arm_model
from roadmap_planning.planner_interface import RoadmapPlannerInterface
from roadmap_planning.planning_context import RoadmapPlanningContext
from roadmap_planning.roadmap import RoadmapGoal, RoadmapSpecification
from roadmap_planning.robot_model import RobotState
from roadmap_planning.scene import PlanningScene
from roadmap_planning.utils import PlanningConfig


class FakeClock:
    """Monotonic clock that advances by a fixed tick on every read."""

    def __init__(self, start: float = 100.0, tick: float = 1e-4):
        self.now = start
        self.tick = tick

    def __call__(self) -> float:
        self.now += self.tick
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@dataclass
class SolveCall:
    start_config: np.ndarray
    goal: RoadmapGoal
    timeout_ms: float
    n_voxels: int


class FakeRoadmapPlanner(RoadmapPlannerInterface):
    """Roadmap planner returning scripted results and recording every solve call."""

    def __init__(self, configs, transforms=None, results: Optional[List[Tuple[bool, list]]] = None,
                 ready: bool = True, init_ok: bool = True, on_solve: Optional[Callable[[], None]] = None):
        self.configs = configs
        if transforms is None:
            transforms = [np.eye(4) for _ in range(len(configs))]
        self.transforms = transforms
        self.results = list(results or [])
        self.ready = ready
        self.init_ok = init_ok
        self.on_solve = on_solve
        self.calls: List[SolveCall] = []

    def is_ready(self) -> bool:
        return self.ready

    def initialize(self) -> bool:
        self.ready = self.init_ok
        return self.init_ok

    def get_roadmap_configs(self, roadmap):
        return self.configs

    def get_roadmap_transforms(self, roadmap):
        return self.transforms

    def solve(self, roadmap, start_config, goal, collision_voxels, timeout_ms):
        self.calls.append(SolveCall(np.array(start_config, dtype=float), goal, timeout_ms, len(collision_voxels)))
        if self.on_solve is not None:
            self.on_solve()
        if self.results:
            return self.results.pop(0)
        return False, []


# Three well separated roadmap states inside the arm's joint limits
SPARSE_CONFIGS = np.array([
    [0.0, 0.2, 0.0],
    [1.2, 1.2, 1.2],
    [-1.2, 1.2, -1.2],
])


@pytest.fixture
def arm_model():
    return make_arm_model()


@pytest.fixture
def scene(arm_model):
    return PlanningScene(arm_model, RobotState(arm_model, [0.0, 0.5, 0.5]))


@pytest.fixture
def grid_roadmap(arm_model):
    return build_grid_roadmap(arm_model, GROUP, steps=5)


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def make_context(scene, fake_clock):
    """Factory for configured contexts around a planner."""

    def _make(planner, config: Optional[PlanningConfig] = None, configure: bool = True, clock=None,
              planning_scene=scene):
        context = RoadmapPlanningContext(GROUP, RoadmapSpecification("test"), planner, config=config,
                                         rng=np.random.default_rng(42), clock=clock or fake_clock)
        context.set_planning_scene(planning_scene)
        if configure:
            context.configure()
        return context

    return _make

