"""
Tests for the robot model and robot state.
"""

import pytest
import numpy as np

from roadmap_planning.demo import GROUP, JOINT_NAMES
from roadmap_planning.exceptions import ConfigurationError
from roadmap_planning.robot_model import RobotState


class TestRobotModel:
    """Test joint groups of the robot model."""

    def test_joint_groups(self, arm_model):
        assert arm_model.has_joint_group(GROUP)
        assert not arm_model.has_joint_group("gripper")
        assert arm_model.get_active_joint_names(GROUP) == JOINT_NAMES

    def test_unknown_group_rejected(self, arm_model):
        with pytest.raises(ConfigurationError, match="no joint group 'gripper'"):
            arm_model.get_active_joint_names("gripper")


class TestRobotState:
    """Test reading and writing joint positions."""

    def test_group_positions(self, arm_model):
        state = RobotState(arm_model)
        state.set_joint_group_positions(GROUP, [0.1, 0.2, 0.3])
        assert np.allclose(state.copy_joint_group_positions(GROUP), [0.1, 0.2, 0.3])

    def test_group_positions_shape_checked(self, arm_model):
        with pytest.raises(ValueError):
            RobotState(arm_model).set_joint_group_positions(GROUP, [0.1, 0.2])


if __name__ == "__main__":
    pytest.main([__file__])
