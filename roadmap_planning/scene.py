"""
Planning scene: robot model, current robot state and collision geometry.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import numpy as np

from .robot_model import RobotModel, RobotState

logger = logging.getLogger(__name__)


@dataclass
class SphereObstacle:
    center: np.ndarray
    radius: float

    def contains(self, points: np.ndarray) -> np.ndarray:
        return np.linalg.norm(points - self.center, axis=1) <= self.radius

    def overlaps(self, box_min: np.ndarray, box_max: np.ndarray) -> np.ndarray:
        closest = np.clip(self.center, box_min, box_max)
        return np.linalg.norm(closest - self.center, axis=1) < self.radius


@dataclass
class BoxObstacle:
    min_corner: np.ndarray
    max_corner: np.ndarray

    def contains(self, points: np.ndarray) -> np.ndarray:
        return np.all((points >= self.min_corner) & (points <= self.max_corner), axis=1)

    def overlaps(self, box_min: np.ndarray, box_max: np.ndarray) -> np.ndarray:
        return np.all((self.min_corner < box_max) & (self.max_corner > box_min), axis=1)


@dataclass
class CylinderObstacle:
    """Vertical cylinder; center is the middle of its axis."""
    center: np.ndarray
    radius: float
    height: float

    def contains(self, points: np.ndarray) -> np.ndarray:
        radial = np.linalg.norm(points[:, :2] - self.center[:2], axis=1)
        vertical = np.abs(points[:, 2] - self.center[2])
        return (radial <= self.radius) & (vertical <= self.height / 2)

    def overlaps(self, box_min: np.ndarray, box_max: np.ndarray) -> np.ndarray:
        closest = np.clip(self.center[:2], box_min[:, :2], box_max[:, :2])
        radial = np.linalg.norm(closest - self.center[:2], axis=1) < self.radius
        half = self.height / 2
        vertical = (box_min[:, 2] < self.center[2] + half) & (box_max[:, 2] > self.center[2] - half)
        return radial & vertical


class PlanningScene:
    """World state the planner plans against."""

    def __init__(self, robot_model: RobotModel, current_state: Optional[RobotState] = None,
                 frame_id: str = "base_link"):
        self.robot_model = robot_model
        self._current_state = current_state if current_state is not None else RobotState(robot_model)
        self.frame_id = frame_id
        self.sphere_obstacles: List[SphereObstacle] = []
        self.box_obstacles: List[BoxObstacle] = []
        self.cylinder_obstacles: List[CylinderObstacle] = []

    def get_current_state(self) -> RobotState:
        return self._current_state

    def set_current_state(self, state: RobotState):
        self._current_state = state.copy()

    def add_sphere_obstacle(self, center: List[float], radius: float):
        self.sphere_obstacles.append(SphereObstacle(np.asarray(center, dtype=float), float(radius)))

    def add_box_obstacle(self, min_corner: List[float], max_corner: List[float]):
        self.box_obstacles.append(BoxObstacle(np.asarray(min_corner, dtype=float),
                                              np.asarray(max_corner, dtype=float)))

    def add_cylinder_obstacle(self, center: List[float], radius: float, height: float):
        self.cylinder_obstacles.append(CylinderObstacle(np.asarray(center, dtype=float),
                                                        float(radius), float(height)))

    def load_obstacles(self, obstacles: List[Dict[str, Any]]):
        """
        Load obstacles from a list of dictionaries (e.g. parsed from YAML).

        Args:
            obstacles: Entries with 'type' in {'sphere', 'box', 'cylinder'}; boxes
                are given by 'center' and 'size'
        """
        for obstacle in obstacles:
            kind = obstacle.get('type')
            if kind == 'sphere':
                self.add_sphere_obstacle(obstacle['center'], obstacle['radius'])
            elif kind == 'box':
                center = np.asarray(obstacle['center'], dtype=float)
                size = np.asarray(obstacle['size'], dtype=float)
                self.add_box_obstacle((center - size / 2).tolist(), (center + size / 2).tolist())
            elif kind == 'cylinder':
                self.add_cylinder_obstacle(obstacle['center'], obstacle['radius'], obstacle['height'])
            else:
                logger.warning(f"Skipping obstacle of unknown type '{kind}'")

        logger.info(f"Loaded {len(self.sphere_obstacles)} sphere, {len(self.box_obstacles)} box, "
                    f"and {len(self.cylinder_obstacles)} cylinder obstacles")

    @property
    def obstacles(self) -> List[Any]:
        return [*self.sphere_obstacles, *self.box_obstacles, *self.cylinder_obstacles]

    def is_point_in_collision(self, points: np.ndarray) -> np.ndarray:
        """
        Check points against every collision object.

        Args:
            points: Array of points [n_points, 3]

        Returns:
            Boolean mask [n_points], True where a point lies inside an obstacle
        """
        points = np.atleast_2d(np.asarray(points, dtype=float))
        occupied = np.zeros(len(points), dtype=bool)
        for obstacle in self.obstacles:
            occupied |= obstacle.contains(points)
        return occupied

    def is_box_in_collision(self, box_min: np.ndarray, box_max: np.ndarray) -> np.ndarray:
        """
        Check axis-aligned boxes for overlap with any collision object.

        Args:
            box_min: Minimum corners [n_boxes, 3]
            box_max: Maximum corners [n_boxes, 3]

        Returns:
            Boolean mask [n_boxes], True where a box shares volume with an obstacle
        """
        box_min = np.atleast_2d(np.asarray(box_min, dtype=float))
        box_max = np.atleast_2d(np.asarray(box_max, dtype=float))
        occupied = np.zeros(len(box_min), dtype=bool)
        for obstacle in self.obstacles:
            occupied |= obstacle.overlaps(box_min, box_max)
        return occupied
