#!/usr/bin/env python3
"""
Roadmap planning demonstration on a synthetic three-joint arm.

Builds a grid roadmap over the arm's joint space, registers it with the
in-process roadmap planner and solves a position goal, optionally around box
obstacles.
"""

import argparse
import itertools
import logging
import sys
from typing import List, Optional, Tuple

import numpy as np
from scipy.spatial.transform import Rotation

from .messages import (Constraints, MotionPlanRequest, MotionPlanResponse, PlanningResult,
                       PositionConstraint, joint_constraints_from_positions)
from .planning_context import RoadmapPlanningContext
from .roadmap_planner import GraphRoadmapPlanner
from .robot_model import RobotModel, RobotState
from .scene import PlanningScene
from .utils import PlanningConfig, load_config

logger = logging.getLogger(__name__)

GROUP = "arm"
JOINT_NAMES = ["base_yaw", "shoulder_pitch", "elbow_pitch"]
LINK_LENGTHS = (0.3, 0.25)
BASE_HEIGHT = 0.1
ARM_LIMITS = np.array([
    [-np.pi / 2, 0.0, -1.5],  # Lower limits
    [np.pi / 2, 1.5, 1.5],    # Upper limits
])


def arm_forward_kinematics(q: np.ndarray) -> np.ndarray:
    """Tip transform of the three-joint arm."""
    yaw, shoulder, elbow = q
    l1, l2 = LINK_LENGTHS
    reach = l1 * np.cos(shoulder) + l2 * np.cos(shoulder + elbow)
    height = BASE_HEIGHT + l1 * np.sin(shoulder) + l2 * np.sin(shoulder + elbow)

    T = np.eye(4)
    T[:3, 3] = [reach * np.cos(yaw), reach * np.sin(yaw), height]
    T[:3, :3] = Rotation.from_euler('zy', [yaw, -(shoulder + elbow)]).as_matrix()
    return T


def arm_inverse_kinematics(pose: np.ndarray, seed: Optional[np.ndarray] = None) -> Tuple[Optional[np.ndarray], bool]:
    """
    Position-only IK of the three-joint arm.

    The elbow branch follows the sign of the seed's elbow joint.
    """
    x, y, z = pose[:3, 3]
    l1, l2 = LINK_LENGTHS
    reach = np.hypot(x, y)
    height = z - BASE_HEIGHT

    cos_elbow = (reach ** 2 + height ** 2 - l1 ** 2 - l2 ** 2) / (2 * l1 * l2)
    if abs(cos_elbow) > 1.0:
        return None, False

    elbow = np.arccos(cos_elbow)
    if seed is not None and seed[2] < 0.0:
        elbow = -elbow
    shoulder = np.arctan2(height, reach) - np.arctan2(l2 * np.sin(elbow), l1 + l2 * np.cos(elbow))
    yaw = np.arctan2(y, x)

    q = np.array([yaw, shoulder, elbow])
    lower, upper = ARM_LIMITS
    if np.any(q < lower) or np.any(q > upper):
        return None, False
    return q, True


def make_arm_model() -> RobotModel:
    return RobotModel("three_link_arm", JOINT_NAMES, ARM_LIMITS, groups={GROUP: JOINT_NAMES},
                      ik_solver=arm_inverse_kinematics, forward_kinematics=arm_forward_kinematics)


def build_grid_roadmap(model: RobotModel, group: str, steps: int = 9) -> Tuple[np.ndarray, List[np.ndarray], float]:
    """
    Regular grid roadmap over the joint limits of a group.

    Returns:
        Tuple of (configurations, tip transforms, connection radius)
    """
    lower, upper = model.group_limits(group)
    axes = [np.linspace(lo, hi, steps) for lo, hi in zip(lower, upper)]
    configs = np.array(list(itertools.product(*axes)))
    transforms = [model.forward_kinematics(q) for q in configs]
    # Connect grid neighbours, including diagonals
    spacing = (upper - lower) / (steps - 1)
    connect_radius = float(np.linalg.norm(spacing)) * 1.01
    return configs, transforms, connect_radius


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Solve a roadmap planning request on a synthetic arm")
    parser.add_argument("--config", help="Planning configuration YAML file")
    parser.add_argument("--planning-time", type=float, default=2.0, help="Allowed planning time in seconds")
    parser.add_argument("--steps", type=int, default=9, help="Roadmap grid steps per joint")
    parser.add_argument("--seed", type=int, default=0, help="Random seed for goal sampling")
    goal = parser.add_mutually_exclusive_group()
    goal.add_argument("--goal-position", type=float, nargs=3, metavar=("X", "Y", "Z"),
                      default=[0.3, 0.2, 0.3], help="Tip position goal in meters")
    goal.add_argument("--goal-joints", type=float, nargs=3, metavar=("Q0", "Q1", "Q2"),
                      help="Joint goal in radians")
    parser.add_argument("--obstacle", type=float, nargs=6, action="append", default=[],
                        metavar=("CX", "CY", "CZ", "SX", "SY", "SZ"), help="Box obstacle center and size")
    parser.add_argument("--plot", metavar="HTML", help="Write a 3D plot of the result")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    config = load_config(args.config) if args.config else PlanningConfig(
        volume_center=(0.2, 0.0, 0.3), volume_dimensions=(1.2, 1.2, 0.8))

    model = make_arm_model()
    scene = PlanningScene(model, RobotState(model, [0.0, 0.5, 0.5]), frame_id=config.volume_frame)
    scene.load_obstacles([{'type': 'box', 'center': o[:3], 'size': o[3:]} for o in args.obstacle])

    configs, transforms, connect_radius = build_grid_roadmap(model, GROUP, args.steps)
    planner = GraphRoadmapPlanner(voxel_resolution=config.voxel_resolution)
    planner.add_roadmap("grid", configs, transforms, connect_radius=connect_radius)

    context = RoadmapPlanningContext.from_config(GROUP, "grid", planner, config,
                                                 rng=np.random.default_rng(args.seed))
    context.set_planning_scene(scene)
    if context.configure() != PlanningResult.SUCCESS:
        print("Failed to configure planning context")
        return 1

    if args.goal_joints:
        goal = joint_constraints_from_positions(JOINT_NAMES, args.goal_joints, tolerance=0.05)
    else:
        goal = Constraints(position_constraints=[
            PositionConstraint(link_name=model.tip_link, target_point=tuple(args.goal_position),
                               region_half_extents=(0.02, 0.02, 0.02))])
    context.set_motion_plan_request(MotionPlanRequest(group_name=GROUP, goal_constraints=[goal],
                                                      allowed_planning_time=args.planning_time))

    response = MotionPlanResponse()
    context.solve(response)

    print(f"Status: {response.error_code.value}")
    print(f"Planning time: {response.planning_time:.3f}s")
    if response.error_code == PlanningResult.SUCCESS:
        trajectory = response.trajectory
        print(f"Path found: {len(trajectory)} waypoints, joint path length {trajectory.path_length():.3f} rad")
        for i, q in enumerate(trajectory.joint_positions()):
            print(f"  {i:3d}: {np.round(q, 3)}")

    if args.plot:
        from .collision import scene_to_collision_voxels
        from .visualization import RoadmapVisualizer

        visualizer = RoadmapVisualizer(context.roadmap.volume, config.voxel_resolution)
        voxels = scene_to_collision_voxels(scene, context.roadmap.volume, config.voxel_resolution)
        tip_path = None
        if response.trajectory is not None:
            tip_path = np.array([arm_forward_kinematics(q)[:3, 3] for q in response.trajectory.joint_positions()])
        goal_ids = context.goals[0].goal.state_ids if context.goals else None
        visualizer.plot_roadmap(transforms, voxels, tip_path, goal_ids, save_path=args.plot)

    return 0 if response.error_code == PlanningResult.SUCCESS else 2


if __name__ == "__main__":
    sys.exit(main())
