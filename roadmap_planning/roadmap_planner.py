"""
In-process roadmap search engine.

Holds registered roadmaps (configurations, tip transforms and edges) and
answers queries with Dijkstra over the roadmap graph. States whose tip
position falls into an occupied voxel are removed from the graph for the
query.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np
from scipy.sparse import csr_matrix
from scipy.sparse.csgraph import dijkstra
from scipy.spatial import cKDTree

from .collision import Voxel
from .planner_interface import RoadmapPlannerInterface
from .roadmap import GoalType, RoadmapGoal, RoadmapSpecification, pose_positions

logger = logging.getLogger(__name__)


@dataclass
class _Roadmap:
    configs: np.ndarray
    transforms: List[np.ndarray]
    edges: np.ndarray
    tree: cKDTree


class GraphRoadmapPlanner(RoadmapPlannerInterface):
    """
    Roadmap planner backed by scipy graph search.

    Collision voxels arrive as grid indices only, so voxel_resolution must equal
    the PlanningConfig.voxel_resolution of the context the voxels come from.
    """

    def __init__(self, voxel_resolution: float = 0.05, clock: Callable[[], float] = time.monotonic):
        self.voxel_resolution = voxel_resolution
        self.clock = clock
        self._roadmaps: Dict[str, _Roadmap] = {}
        self._ready = False

    def add_roadmap(self, roadmap_id: str, configs: np.ndarray, transforms: List[np.ndarray],
                    edges: Optional[np.ndarray] = None, connect_radius: Optional[float] = None):
        """
        Register a roadmap.

        Args:
            roadmap_id: Identifier used by RoadmapSpecification
            configs: Configurations [n_states, n_joints]
            transforms: 4x4 tip transforms, one per configuration
            edges: Undirected edges as index pairs [n_edges, 2]
            connect_radius: If edges are not given, connect all states closer than this
        """
        configs = np.asarray(configs, dtype=float)
        if len(transforms) != len(configs):
            raise ValueError(f"Got {len(transforms)} transforms for {len(configs)} configurations")

        tree = cKDTree(configs)
        if edges is None:
            if connect_radius is None:
                raise ValueError("Either edges or connect_radius must be given")
            edges = tree.query_pairs(connect_radius, output_type='ndarray')
        edges = np.asarray(edges, dtype=int).reshape(-1, 2)

        self._roadmaps[roadmap_id] = _Roadmap(configs, [np.asarray(T, dtype=float) for T in transforms],
                                              edges, tree)
        logger.info(f"Registered roadmap '{roadmap_id}' with {len(configs)} states and {len(edges)} edges")

    def is_ready(self) -> bool:
        return self._ready

    def initialize(self) -> bool:
        if not self._roadmaps:
            logger.error("Cannot initialize roadmap planner without any roadmaps")
            return False
        self._ready = True
        return True

    def get_roadmap_configs(self, roadmap: RoadmapSpecification) -> Optional[np.ndarray]:
        entry = self._roadmaps.get(roadmap.roadmap_id)
        if entry is None:
            logger.error(f"Unknown roadmap '{roadmap.roadmap_id}'")
            return None
        return entry.configs.copy()

    def get_roadmap_transforms(self, roadmap: RoadmapSpecification) -> Optional[List[np.ndarray]]:
        entry = self._roadmaps.get(roadmap.roadmap_id)
        if entry is None:
            logger.error(f"Unknown roadmap '{roadmap.roadmap_id}'")
            return None
        return [T.copy() for T in entry.transforms]

    def blocked_states(self, roadmap: RoadmapSpecification, collision_voxels: List[Voxel]) -> np.ndarray:
        """Boolean mask of states whose tip lies in an occupied voxel."""
        entry = self._roadmaps[roadmap.roadmap_id]
        blocked = np.zeros(len(entry.configs), dtype=bool)
        if not collision_voxels:
            return blocked

        lower, _ = roadmap.volume.bounds
        occupied = {(v.x, v.y, v.z) for v in collision_voxels}
        cells = np.floor((pose_positions(entry.transforms) - lower) / self.voxel_resolution).astype(int)
        for i, cell in enumerate(map(tuple, cells)):
            blocked[i] = cell in occupied
        return blocked

    def solve(self, roadmap: RoadmapSpecification, start_config: np.ndarray, goal: RoadmapGoal,
              collision_voxels: List[Voxel], timeout_ms: float) -> Tuple[bool, List[np.ndarray]]:
        start_time = self.clock()
        if not self._ready:
            logger.error("Roadmap planner is not initialized")
            return False, []
        if timeout_ms <= 0.0:
            logger.warning("No time left for roadmap search")
            return False, []
        if goal.type != GoalType.STATE_IDS or not goal.state_ids:
            logger.error(f"Unsupported goal of type {goal.type.value} with {len(goal.state_ids)} states")
            return False, []

        entry = self._roadmaps.get(roadmap.roadmap_id)
        if entry is None:
            logger.error(f"Unknown roadmap '{roadmap.roadmap_id}'")
            return False, []

        blocked = self.blocked_states(roadmap, collision_voxels)
        free_ids = np.flatnonzero(~blocked)
        if len(free_ids) == 0:
            logger.warning("All roadmap states are in collision")
            return False, []

        # Snap the start onto the closest collision-free roadmap state
        distances = np.linalg.norm(entry.configs[free_ids] - np.asarray(start_config, dtype=float), axis=1)
        start_id = int(free_ids[np.argmin(distances)])

        goal_ids = [g for g in goal.state_ids if not blocked[g]]
        if not goal_ids:
            logger.warning(f"Goal states {goal.state_ids} are in collision")
            return False, []

        graph = self._graph(entry, blocked)
        dist, predecessors = dijkstra(graph, directed=False, indices=start_id, return_predecessors=True)
        reachable = [g for g in goal_ids if np.isfinite(dist[g])]
        if not reachable:
            logger.info(f"No roadmap connection from state {start_id} to {goal_ids}")
            return False, []

        goal_id = min(reachable, key=lambda g: dist[g])
        state_path = [goal_id]
        while state_path[-1] != start_id:
            state_path.append(int(predecessors[state_path[-1]]))
        state_path.reverse()

        elapsed_ms = (self.clock() - start_time) * 1000.0
        if elapsed_ms > timeout_ms:
            logger.warning(f"Roadmap search exceeded its timeout ({elapsed_ms:.1f} > {timeout_ms:.1f} ms)")
            return False, []

        return True, [entry.configs[i].copy() for i in state_path]

    @staticmethod
    def _graph(entry: _Roadmap, blocked: np.ndarray) -> csr_matrix:
        edges = entry.edges
        if len(edges):
            edges = edges[~(blocked[edges[:, 0]] | blocked[edges[:, 1]])]
        weights = np.linalg.norm(entry.configs[edges[:, 0]] - entry.configs[edges[:, 1]], axis=1)
        # Zero weights would be read as missing edges
        weights = np.maximum(weights, 1e-12)
        n = len(entry.configs)
        return csr_matrix((weights, (edges[:, 0], edges[:, 1])), shape=(n, n))
