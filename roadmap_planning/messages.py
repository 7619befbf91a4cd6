"""
Planning request, constraint and response types.

These mirror the motion-planning messages a planning pipeline hands to a
planning context: a request with a start state and goal constraints, and a
simple or detailed response.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

import numpy as np


class PlanningResult(Enum):
    """Planning result status codes."""
    SUCCESS = "success"
    FAILURE = "failure"
    PLANNING_FAILED = "planning_failed"
    TIMED_OUT = "timed_out"


@dataclass
class JointState:
    """Named joint positions."""
    name: List[str] = field(default_factory=list)
    position: List[float] = field(default_factory=list)


@dataclass
class RobotStateMsg:
    """Start state carried by a request."""
    joint_state: JointState = field(default_factory=JointState)


@dataclass
class JointConstraint:
    """Joint must lie in [position - tolerance_below, position + tolerance_above]."""
    joint_name: str
    position: float
    tolerance_above: float = 1e-3
    tolerance_below: float = 1e-3
    weight: float = 1.0


@dataclass
class PositionConstraint:
    """
    Link origin must lie within a box centered on target_point.

    region_half_extents are the half-sizes of the admissible box along x, y, z.
    """
    link_name: str
    target_point: Tuple[float, float, float]
    region_half_extents: Tuple[float, float, float] = (1e-3, 1e-3, 1e-3)
    frame_id: str = "base_link"
    weight: float = 1.0


@dataclass
class OrientationConstraint:
    """Link orientation within per-axis tolerances of a quaternion (x, y, z, w)."""
    link_name: str
    orientation: Tuple[float, float, float, float] = (0.0, 0.0, 0.0, 1.0)
    absolute_x_axis_tolerance: float = 1e-2
    absolute_y_axis_tolerance: float = 1e-2
    absolute_z_axis_tolerance: float = 1e-2
    frame_id: str = "base_link"
    weight: float = 1.0


@dataclass
class Constraints:
    """One goal: all contained constraints must hold simultaneously."""
    name: str = ""
    joint_constraints: List[JointConstraint] = field(default_factory=list)
    position_constraints: List[PositionConstraint] = field(default_factory=list)
    orientation_constraints: List[OrientationConstraint] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.joint_constraints or self.position_constraints or self.orientation_constraints)


@dataclass
class MotionPlanRequest:
    """Planning request for a single group."""
    group_name: str
    goal_constraints: List[Constraints] = field(default_factory=list)
    start_state: RobotStateMsg = field(default_factory=RobotStateMsg)
    allowed_planning_time: float = 5.0


@dataclass
class MotionPlanResponse:
    """Simple response: one trajectory."""
    trajectory: Optional[object] = None
    planning_time: float = 0.0
    error_code: PlanningResult = PlanningResult.FAILURE


@dataclass
class MotionPlanDetailedResponse:
    """Detailed response: one entry appended per planning stage."""
    trajectory: List[Optional[object]] = field(default_factory=list)
    description: List[str] = field(default_factory=list)
    processing_time: List[float] = field(default_factory=list)
    error_code: PlanningResult = PlanningResult.FAILURE


def joint_constraints_from_positions(names, positions, tolerance: float = 1e-3) -> Constraints:
    """Build a goal that pins every named joint to a position."""
    positions = np.asarray(positions, dtype=float)
    return Constraints(joint_constraints=[
        JointConstraint(joint_name=n, position=float(p), tolerance_above=tolerance, tolerance_below=tolerance)
        for n, p in zip(names, positions)
    ])
