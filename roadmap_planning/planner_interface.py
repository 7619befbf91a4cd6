"""
Interface of the roadmap search engine consumed by the planning context.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

import numpy as np

from .collision import Voxel
from .roadmap import RoadmapGoal, RoadmapSpecification


class RoadmapPlannerInterface(ABC):
    """
    Search engine over precomputed roadmaps.

    solve() is a blocking call bounded by the timeout it is given; it offers
    no way to be interrupted.
    """

    @abstractmethod
    def is_ready(self) -> bool:
        """Whether the engine is initialized and can serve requests."""

    @abstractmethod
    def initialize(self) -> bool:
        """Initialize the engine; returns False on failure."""

    @abstractmethod
    def get_roadmap_configs(self, roadmap: RoadmapSpecification) -> Optional[np.ndarray]:
        """Roadmap configurations [n_states, n_joints], or None if unavailable."""

    @abstractmethod
    def get_roadmap_transforms(self, roadmap: RoadmapSpecification) -> Optional[List[np.ndarray]]:
        """Tip transforms (4x4) parallel to the configurations, or None if unavailable."""

    @abstractmethod
    def solve(self, roadmap: RoadmapSpecification, start_config: np.ndarray, goal: RoadmapGoal,
              collision_voxels: List[Voxel], timeout_ms: float) -> Tuple[bool, List[np.ndarray]]:
        """
        Search a path from the start configuration to the goal.

        Returns:
            Tuple of (success, path). A successful call may still return an empty path.
        """
