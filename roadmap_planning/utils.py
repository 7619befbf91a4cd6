"""
Utility functions and configuration management for roadmap planning.
"""

import os
import time
import yaml
import numpy as np
from typing import Dict, Any, Optional, Tuple
from dataclasses import dataclass, fields
import logging

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DISTANCE_METRICS = ("euclidean", "manhattan")


@dataclass
class PlanningConfig:
    """Configuration class for roadmap planning parameters."""

    # Goal resolution
    allowed_joint_distance: float = float(np.pi)
    allowed_position_distance: float = 0.1
    max_goal_states: int = 1
    distance_metric: str = "euclidean"
    sampler_max_attempts: int = 100
    sampling_backoff: float = 0.0
    log_every_n_samples: int = 1000
    prefilter_by_position: bool = False

    # Collision scene
    voxel_resolution: float = 0.05
    volume_center: Tuple[float, float, float] = (0.1, 0.1, 0.1)
    volume_dimensions: Tuple[float, float, float] = (1.0, 1.0, 1.0)
    volume_frame: str = "base_link"

    # Trajectory
    connect_start_goal: bool = False

    def __post_init__(self):
        if self.distance_metric not in DISTANCE_METRICS:
            raise ConfigurationError(
                f"Unknown distance metric '{self.distance_metric}', expected one of {DISTANCE_METRICS}")
        if self.max_goal_states < 1:
            raise ConfigurationError("max_goal_states must be at least 1")
        if self.allowed_joint_distance <= 0.0:
            raise ConfigurationError("allowed_joint_distance must be positive")
        if self.sampler_max_attempts < 1:
            raise ConfigurationError("sampler_max_attempts must be at least 1")
        if self.sampling_backoff < 0.0:
            raise ConfigurationError("sampling_backoff must not be negative")
        if self.log_every_n_samples < 1:
            raise ConfigurationError("log_every_n_samples must be at least 1")
        if self.voxel_resolution <= 0.0:
            raise ConfigurationError("voxel_resolution must be positive")
        self.volume_center = tuple(float(v) for v in self.volume_center)
        self.volume_dimensions = tuple(float(v) for v in self.volume_dimensions)

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'PlanningConfig':
        """Create config from dictionary."""
        known = {f.name for f in fields(cls)}
        unknown = set(config_dict) - known
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {sorted(unknown)}")
        return cls(**config_dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        config_dict = {}
        for key, value in self.__dict__.items():
            if isinstance(value, tuple):
                config_dict[key] = list(value)
            else:
                config_dict[key] = value
        return config_dict


def load_config(config_path: Optional[str] = None) -> PlanningConfig:
    """
    Load planning configuration from YAML file.

    Args:
        config_path: Path to configuration file. If None, uses default config.

    Returns:
        PlanningConfig object
    """
    if config_path is None:
        config_path = os.path.join(os.path.dirname(__file__), 'config', 'default_config.yaml')

    if os.path.exists(config_path):
        try:
            with open(config_path, 'r') as f:
                config_dict = yaml.safe_load(f) or {}
            logger.info(f"Loaded configuration from {config_path}")
            return PlanningConfig.from_dict(config_dict)
        except (yaml.YAMLError, ConfigurationError, TypeError) as e:
            logger.warning(f"Failed to load config from {config_path}: {e}")

    logger.info("Using default configuration")
    return PlanningConfig()


def save_config(config: PlanningConfig, config_path: str):
    """
    Save planning configuration to YAML file.

    Args:
        config: PlanningConfig object to save
        config_path: Path where to save the configuration
    """
    try:
        directory = os.path.dirname(config_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(config_path, 'w') as f:
            yaml.dump(config.to_dict(), f, default_flow_style=False)
        logger.info(f"Saved configuration to {config_path}")
    except OSError as e:
        logger.error(f"Failed to save config to {config_path}: {e}")


@dataclass(frozen=True)
class PlanningDeadline:
    """
    Wall-clock deadline of a single planning attempt.

    Created once at the start of a solve call and handed to every stage.
    It is never extended.
    """
    start_time: float
    end_time: float

    @classmethod
    def from_now(cls, allowed_planning_time: float, clock=time.monotonic) -> 'PlanningDeadline':
        now = clock()
        return cls(start_time=now, end_time=now + float(allowed_planning_time))

    def remaining(self, clock=time.monotonic) -> float:
        """Seconds left before the deadline (negative once passed)."""
        return self.end_time - clock()

    def expired(self, clock=time.monotonic) -> bool:
        return clock() >= self.end_time

    def elapsed(self, clock=time.monotonic) -> float:
        return clock() - self.start_time


def joint_distance(q1: np.ndarray, q2: np.ndarray, metric: str = "euclidean") -> float:
    """
    Distance between two joint configurations.

    Args:
        q1: First joint configuration
        q2: Second joint configuration
        metric: 'euclidean' or 'manhattan'

    Returns:
        Joint space distance
    """
    diff = np.asarray(q1, dtype=float) - np.asarray(q2, dtype=float)
    if metric == "manhattan":
        return float(np.sum(np.abs(diff)))
    return float(np.linalg.norm(diff))


def minkowski_p(metric: str) -> int:
    """Minkowski exponent used by cKDTree for a metric name."""
    return 1 if metric == "manhattan" else 2


def compute_path_length(path) -> float:
    """
    Compute total length of a joint space path.

    Args:
        path: Array of joint configurations [n_points, n_joints]

    Returns:
        Total path length
    """
    path = np.asarray(path, dtype=float)
    if len(path) < 2:
        return 0.0

    return float(np.sum(np.linalg.norm(np.diff(path, axis=0), axis=1)))
