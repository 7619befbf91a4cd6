"""
Roadmap specification, goal candidate types and roadmap state lookup.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

import numpy as np
from scipy.spatial import cKDTree

from .utils import minkowski_p

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RoadmapVolume:
    """Axis-aligned working volume in which obstacles are represented."""
    center: Tuple[float, float, float] = (0.1, 0.1, 0.1)
    dimensions: Tuple[float, float, float] = (1.0, 1.0, 1.0)
    base_frame: str = "base_link"

    @property
    def bounds(self) -> Tuple[np.ndarray, np.ndarray]:
        center = np.asarray(self.center, dtype=float)
        half = np.asarray(self.dimensions, dtype=float) / 2
        return center - half, center + half

    def contains(self, points: np.ndarray) -> np.ndarray:
        lower, upper = self.bounds
        points = np.atleast_2d(points)
        return np.all((points >= lower) & (points <= upper), axis=1)


@dataclass(frozen=True)
class RoadmapSpecification:
    """Names a precomputed roadmap and the volume it was built for."""
    roadmap_id: str
    volume: RoadmapVolume = field(default_factory=RoadmapVolume)


class GoalType(Enum):
    STATE_IDS = "state_ids"
    # Reserved: raw targets are not produced by the goal resolver yet
    JOINT_STATE = "joint_state"
    POSE = "pose"


@dataclass
class RoadmapGoal:
    """Goal handed to the roadmap planner: admissible roadmap state IDs."""
    type: GoalType = GoalType.STATE_IDS
    state_ids: List[int] = field(default_factory=list)
    distances: List[float] = field(default_factory=list)


class RoadmapIndex:
    """
    Nearest-neighbour lookup over a roadmap configuration set.

    The KD-tree is built once, since the configuration set is read-only
    after configure().
    """

    def __init__(self, configs: np.ndarray, metric: str = "euclidean"):
        self.configs = np.asarray(configs, dtype=float)
        self.metric = metric
        self._tree = cKDTree(self.configs)

    def __len__(self) -> int:
        return len(self.configs)

    def find_closest(self, config: np.ndarray, max_count: int = 1, max_distance: float = np.pi,
                     candidate_ids: Optional[np.ndarray] = None) -> Tuple[List[int], List[float]]:
        """
        Find roadmap states closest to a configuration.

        Args:
            config: Query joint configuration
            max_count: Maximum number of states returned
            max_distance: Admissibility threshold (inclusive) under the index metric
            candidate_ids: Optional subset of state IDs to search within

        Returns:
            Tuple of (state_ids, distances), sorted by increasing distance
        """
        config = np.asarray(config, dtype=float)
        if candidate_ids is not None:
            return find_closest_configs(config, self.configs, max_count, max_distance,
                                        self.metric, candidate_ids)

        k = min(max_count, len(self.configs))
        if k == 0:
            return [], []
        # cKDTree's upper bound is strict; nudge it so the threshold is inclusive
        upper = np.nextafter(max_distance, np.inf)
        distances, indices = self._tree.query(config, k=k, p=minkowski_p(self.metric),
                                              distance_upper_bound=upper)
        distances = np.atleast_1d(distances)
        indices = np.atleast_1d(indices)
        found = np.isfinite(distances)
        return indices[found].astype(int).tolist(), distances[found].astype(float).tolist()


def find_closest_configs(config: np.ndarray, configs: np.ndarray, max_count: int = 1,
                         max_distance: float = np.pi, metric: str = "euclidean",
                         candidate_ids: Optional[np.ndarray] = None) -> Tuple[List[int], List[float]]:
    """
    Brute-force variant of RoadmapIndex.find_closest.

    Args:
        config: Query joint configuration
        configs: Roadmap configurations [n_states, n_joints]
        max_count: Maximum number of states returned
        max_distance: Admissibility threshold (inclusive)
        metric: 'euclidean' or 'manhattan'
        candidate_ids: Optional subset of state IDs to search within

    Returns:
        Tuple of (state_ids, distances), sorted by increasing distance
    """
    configs = np.asarray(configs, dtype=float)
    ids = np.arange(len(configs)) if candidate_ids is None else np.asarray(candidate_ids, dtype=int)
    if len(ids) == 0:
        return [], []

    diff = configs[ids] - np.asarray(config, dtype=float)
    if metric == "manhattan":
        distances = np.sum(np.abs(diff), axis=1)
    else:
        distances = np.linalg.norm(diff, axis=1)

    admissible = distances <= max_distance
    ids, distances = ids[admissible], distances[admissible]
    order = np.argsort(distances, kind="stable")[:max_count]
    return ids[order].astype(int).tolist(), distances[order].astype(float).tolist()


def pose_positions(poses: List[np.ndarray]) -> np.ndarray:
    """Origins of a list of 4x4 transforms as an [n, 3] array."""
    if len(poses) == 0:
        return np.zeros((0, 3))
    return np.array([np.asarray(T, dtype=float)[:3, 3] for T in poses])
