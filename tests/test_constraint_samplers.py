"""
Tests for goal constraint samplers.
"""

import pytest
import numpy as np

from roadmap_planning.constraint_samplers import (IKConstraintSampler, JointConstraintSampler,
                                                  UnionConstraintSampler, build_goal_sampler)
from roadmap_planning.demo import GROUP, JOINT_NAMES, arm_forward_kinematics
from roadmap_planning.exceptions import ConstraintSamplerError
from roadmap_planning.messages import (Constraints, JointConstraint, OrientationConstraint,
                                       PositionConstraint, joint_constraints_from_positions)
from roadmap_planning.robot_model import RobotModel
from roadmap_planning.scene import PlanningScene


@pytest.fixture
def rng():
    return np.random.default_rng(7)


def position_goal(target, half=0.02, link="tool0"):
    return Constraints(position_constraints=[
        PositionConstraint(link_name=link, target_point=tuple(target), region_half_extents=(half, half, half))])


class TestJointConstraintSampler:
    """Test sampling of joint constraint intervals."""

    def test_samples_within_tolerance(self, scene, rng):
        goal = joint_constraints_from_positions(JOINT_NAMES, [0.3, 0.6, -0.4], tolerance=0.01)
        sampler = JointConstraintSampler(scene, GROUP, rng)
        assert sampler.configure(goal)

        state = scene.get_current_state().copy()
        for _ in range(20):
            assert sampler.sample(state, scene.get_current_state(), 1)
            q = state.copy_joint_group_positions(GROUP)
            assert np.all(np.abs(q - [0.3, 0.6, -0.4]) <= 0.01 + 1e-9)
            assert sampler.is_satisfied(state)

    def test_unconstrained_joints_within_limits(self, scene, rng):
        goal = Constraints(joint_constraints=[JointConstraint("elbow_pitch", 0.5, 0.01, 0.01)])
        sampler = JointConstraintSampler(scene, GROUP, rng)
        assert sampler.configure(goal)

        state = scene.get_current_state().copy()
        for _ in range(20):
            sampler.sample(state, scene.get_current_state(), 1)
            assert state.satisfies_bounds()
            assert abs(state.get_variable_position("elbow_pitch") - 0.5) <= 0.01 + 1e-9

    def test_constraint_outside_limits(self, scene, rng):
        # shoulder_pitch lower limit is 0.0
        goal = Constraints(joint_constraints=[JointConstraint("shoulder_pitch", -1.0, 0.1, 0.1)])
        sampler = JointConstraintSampler(scene, GROUP, rng)
        assert not sampler.configure(goal)
        assert not sampler.sample(scene.get_current_state().copy(), scene.get_current_state(), 10)

    def test_constraint_clipped_to_limits(self, scene, rng):
        goal = Constraints(joint_constraints=[JointConstraint("shoulder_pitch", 0.0, 0.1, 0.1)])
        sampler = JointConstraintSampler(scene, GROUP, rng)
        assert sampler.configure(goal)
        assert sampler.lower[1] == 0.0
        assert np.isclose(sampler.upper[1], 0.1)

    def test_foreign_joints_only(self, scene, rng):
        goal = Constraints(joint_constraints=[JointConstraint("gripper", 0.0)])
        sampler = JointConstraintSampler(scene, GROUP, rng)
        assert not sampler.configure(goal)


class TestIKConstraintSampler:
    """Test pose sampling through inverse kinematics."""

    def test_position_goal(self, scene, rng):
        target = np.array([0.3, 0.2, 0.3])
        sampler = IKConstraintSampler(scene, GROUP, rng)
        assert sampler.configure(position_goal(target))

        state = scene.get_current_state().copy()
        assert sampler.sample(state, scene.get_current_state(), 100)
        tip = arm_forward_kinematics(state.copy_joint_group_positions(GROUP))[:3, 3]
        assert np.all(np.abs(tip - target) <= 0.02 + 1e-6)
        assert sampler.is_satisfied(state)

    def test_unreachable_position(self, scene, rng):
        sampler = IKConstraintSampler(scene, GROUP, rng)
        assert sampler.configure(position_goal([5.0, 0.0, 0.0]))
        assert not sampler.sample(scene.get_current_state().copy(), scene.get_current_state(), 20)

    def test_sampled_pose_respects_orientation(self, scene, rng):
        goal = position_goal([0.3, 0.0, 0.3])
        goal.orientation_constraints.append(OrientationConstraint(
            link_name="tool0", orientation=(0.0, 0.0, 0.0, 1.0),
            absolute_x_axis_tolerance=0.1, absolute_y_axis_tolerance=0.1, absolute_z_axis_tolerance=0.1))
        sampler = IKConstraintSampler(scene, GROUP, rng)
        assert sampler.configure(goal)

        for _ in range(10):
            T = sampler.sample_pose(scene.get_current_state())
            assert np.allclose(T[:3, :3] @ T[:3, :3].T, np.eye(3))
            assert np.all(np.abs(T[:3, 3] - [0.3, 0.0, 0.3]) <= 0.02)
            # Rotation stays close to identity
            assert np.trace(T[:3, :3]) > 3.0 - 0.1

    def test_orientation_only_keeps_reference_position(self, scene, rng):
        goal = Constraints(orientation_constraints=[OrientationConstraint(link_name="tool0")])
        sampler = IKConstraintSampler(scene, GROUP, rng)
        assert sampler.configure(goal)

        reference = scene.get_current_state()
        T = sampler.sample_pose(reference)
        assert np.allclose(T[:3, 3], reference.get_tip_transform(GROUP)[:3, 3])

    def test_requires_ik_solver(self, rng):
        model = RobotModel("no_ik", JOINT_NAMES, [[-1.0] * 3, [1.0] * 3], groups={GROUP: JOINT_NAMES})
        sampler = IKConstraintSampler(PlanningScene(model), GROUP, rng)
        assert not sampler.configure(position_goal([0.3, 0.0, 0.3]))

    def test_other_link_ignored(self, scene, rng):
        sampler = IKConstraintSampler(scene, GROUP, rng)
        assert not sampler.configure(position_goal([0.3, 0.0, 0.3], link="elbow_link"))


class TestUnionSampler:
    """Test composition of samplers."""

    def test_joint_and_position_goal(self, scene, rng):
        goal = position_goal([0.3, 0.2, 0.3], half=0.05)
        goal.joint_constraints.append(JointConstraint("base_yaw", np.arctan2(0.2, 0.3), 0.2, 0.2))

        sampler = build_goal_sampler(scene, GROUP, goal, rng)
        assert isinstance(sampler, UnionConstraintSampler)
        assert len(sampler.samplers) == 2

        state = scene.get_current_state().copy()
        assert sampler.sample(state, scene.get_current_state(), 200)
        assert sampler.is_satisfied(state)

    def test_conflicting_constraints_never_satisfied(self, scene, rng):
        # Target on the +y side while base_yaw is pinned to the -y side
        goal = position_goal([0.0, 0.35, 0.3])
        goal.joint_constraints.append(JointConstraint("base_yaw", -1.0, 0.05, 0.05))

        sampler = build_goal_sampler(scene, GROUP, goal, rng)
        assert not sampler.sample(scene.get_current_state().copy(), scene.get_current_state(), 20)

    def test_empty_goal(self, scene, rng):
        assert build_goal_sampler(scene, GROUP, Constraints(), rng) is None

    def test_unusable_goal_raises(self, scene, rng):
        goal = Constraints(joint_constraints=[JointConstraint("shoulder_pitch", -1.0, 0.1, 0.1)])
        with pytest.raises(ConstraintSamplerError):
            build_goal_sampler(scene, GROUP, goal, rng)


if __name__ == "__main__":
    pytest.main([__file__])
