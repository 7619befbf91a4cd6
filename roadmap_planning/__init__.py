"""
Roadmap Planning Library

Solves motion plan requests on precomputed roadmaps: goal constraints are
collapsed onto roadmap states and a roadmap search engine finds the path.
"""

__version__ = "1.0.0"
__author__ = "Robot Planning Team"

# Import main classes for easy access
from .exceptions import (RoadmapPlanningError, ConfigurationError, GoalResolutionError,
                         StartStateError, SceneConversionError, ConstraintSamplerError)
from .messages import (PlanningResult, Constraints, JointConstraint, PositionConstraint,
                       OrientationConstraint, MotionPlanRequest, MotionPlanResponse,
                       MotionPlanDetailedResponse)
from .planning_context import PlanningContext, RoadmapPlanningContext, ContextState
from .planner_interface import RoadmapPlannerInterface
from .roadmap import RoadmapSpecification, RoadmapVolume, RoadmapGoal, GoalType
from .roadmap_planner import GraphRoadmapPlanner
from .robot_model import RobotModel, RobotState
from .scene import PlanningScene
from .trajectory import RobotTrajectory
from .utils import PlanningConfig, PlanningDeadline, load_config

__all__ = [
    "RoadmapPlanningError",
    "ConfigurationError",
    "GoalResolutionError",
    "StartStateError",
    "SceneConversionError",
    "ConstraintSamplerError",
    "PlanningResult",
    "Constraints",
    "JointConstraint",
    "PositionConstraint",
    "OrientationConstraint",
    "MotionPlanRequest",
    "MotionPlanResponse",
    "MotionPlanDetailedResponse",
    "PlanningContext",
    "RoadmapPlanningContext",
    "ContextState",
    "RoadmapPlannerInterface",
    "RoadmapSpecification",
    "RoadmapVolume",
    "RoadmapGoal",
    "GoalType",
    "GraphRoadmapPlanner",
    "RobotModel",
    "RobotState",
    "PlanningScene",
    "RobotTrajectory",
    "PlanningConfig",
    "PlanningDeadline",
    "load_config",
]
