"""
Tests for roadmap specification and roadmap state lookup.
"""

import pytest
import numpy as np

from roadmap_planning.roadmap import (RoadmapIndex, RoadmapSpecification, RoadmapVolume,
                                      find_closest_configs, pose_positions)


class TestRoadmapVolume:
    """Test working volume geometry."""

    def test_default_volume(self):
        spec = RoadmapSpecification("grid")
        assert spec.volume.base_frame == "base_link"
        assert spec.volume.center == (0.1, 0.1, 0.1)
        assert spec.volume.dimensions == (1.0, 1.0, 1.0)

    def test_bounds(self):
        volume = RoadmapVolume(center=(0.0, 0.0, 1.0), dimensions=(2.0, 4.0, 1.0))
        lower, upper = volume.bounds
        assert np.allclose(lower, [-1.0, -2.0, 0.5])
        assert np.allclose(upper, [1.0, 2.0, 1.5])

    def test_contains(self):
        volume = RoadmapVolume(center=(0.0, 0.0, 0.0), dimensions=(1.0, 1.0, 1.0))
        inside = volume.contains(np.array([[0.0, 0.0, 0.0], [0.6, 0.0, 0.0]]))
        assert inside.tolist() == [True, False]

    def test_specification_is_immutable(self):
        spec = RoadmapSpecification("grid")
        with pytest.raises(Exception):
            spec.roadmap_id = "other"


class TestRoadmapIndex:
    """Test nearest roadmap state lookup."""

    @pytest.fixture
    def configs(self):
        return np.array([
            [0.0, 0.0],
            [1.0, 0.0],
            [0.0, 2.0],
            [3.0, 3.0],
        ])

    def test_single_closest(self, configs):
        index = RoadmapIndex(configs)
        ids, distances = index.find_closest(np.array([0.9, 0.1]))
        assert ids == [1]
        assert np.isclose(distances[0], np.hypot(0.1, 0.1))

    def test_max_count(self, configs):
        index = RoadmapIndex(configs)
        ids, distances = index.find_closest(np.array([0.0, 0.0]), max_count=3, max_distance=10.0)
        assert ids == [0, 1, 2]
        assert distances == sorted(distances)

    def test_threshold_excludes_far_states(self, configs):
        index = RoadmapIndex(configs)
        ids, _ = index.find_closest(np.array([10.0, 10.0]), max_distance=1.0)
        assert ids == []

    def test_threshold_is_inclusive(self, configs):
        index = RoadmapIndex(configs)
        ids, distances = index.find_closest(np.array([0.0, 1.0]), max_count=2, max_distance=1.0)
        assert sorted(ids) == [0, 2]
        assert np.allclose(distances, [1.0, 1.0])

    def test_manhattan_metric(self, configs):
        query = np.array([2.0, 1.0])
        # L2 distance to state 1 is ~1.41, L1 distance is 2.0
        assert RoadmapIndex(configs).find_closest(query, max_distance=1.9)[0] == [1]

        index = RoadmapIndex(configs, metric="manhattan")
        ids, _ = index.find_closest(query, max_distance=1.9)
        assert ids == []
        ids, distances = index.find_closest(query, max_distance=2.0)
        assert ids == [1]
        assert np.isclose(distances[0], 2.0)

    def test_candidate_subset(self, configs):
        index = RoadmapIndex(configs)
        ids, _ = index.find_closest(np.array([0.0, 0.0]), max_distance=10.0,
                                    candidate_ids=np.array([2, 3]))
        assert ids == [2]

    def test_matches_brute_force(self):
        rng = np.random.default_rng(3)
        configs = rng.uniform(-np.pi, np.pi, size=(200, 6))
        for metric in ("euclidean", "manhattan"):
            index = RoadmapIndex(configs, metric=metric)
            for _ in range(20):
                query = rng.uniform(-np.pi, np.pi, size=6)
                tree_ids, tree_d = index.find_closest(query, max_count=3, max_distance=4.0)
                brute_ids, brute_d = find_closest_configs(query, configs, 3, 4.0, metric)
                assert tree_ids == brute_ids
                assert np.allclose(tree_d, brute_d)

    def test_empty_candidates(self, configs):
        ids, distances = find_closest_configs(np.zeros(2), configs, candidate_ids=np.array([], dtype=int))
        assert ids == [] and distances == []


def test_pose_positions():
    T1 = np.eye(4)
    T2 = np.eye(4)
    T2[:3, 3] = [1.0, 2.0, 3.0]
    assert np.allclose(pose_positions([T1, T2]), [[0, 0, 0], [1, 2, 3]])
    assert pose_positions([]).shape == (0, 3)


if __name__ == "__main__":
    pytest.main([__file__])
