"""
Start state resolution for a planning request.
"""

import logging
from typing import List, Tuple

import numpy as np

from .exceptions import StartStateError
from .messages import MotionPlanRequest
from .robot_model import JointConfiguration, RobotState
from .scene import PlanningScene

logger = logging.getLogger(__name__)


def resolve_start_configuration(request: MotionPlanRequest, scene: PlanningScene, group: str,
                                joint_names: List[str]) -> Tuple[JointConfiguration, RobotState]:
    """
    Derive the start configuration of the planning group.

    If the request carries joint positions, they are mapped by name onto the
    group's active joint order. Otherwise the current state of the planning
    scene is used.

    Args:
        request: Motion plan request
        scene: Planning scene providing the current state
        group: Planning group name
        joint_names: Active joint names of the group, in roadmap order

    Returns:
        Tuple of (start configuration, full start robot state)

    Raises:
        StartStateError: If the request's joint state does not cover every active joint
    """
    start_state = scene.get_current_state().copy()
    joint_state = request.start_state.joint_state

    if joint_state.position:
        if len(joint_state.name) != len(joint_state.position):
            raise StartStateError(
                f"Invalid start state in planning request - {len(joint_state.name)} joint names "
                f"but {len(joint_state.position)} positions")

        lookup = dict(zip(joint_state.name, joint_state.position))
        missing = [name for name in joint_names if name not in lookup]
        if missing:
            raise StartStateError(
                f"Invalid start state in planning request - joint message does not match to joint group "
                f"(missing {missing})")

        start_config = np.array([lookup[name] for name in joint_names], dtype=float)
        start_state.set_variable_positions(joint_state.name, joint_state.position)
    else:
        logger.warning("Start state in MotionPlanRequest is not populated - using current state from planning scene.")
        start_config = start_state.copy_joint_group_positions(group)

    return start_config, start_state
