"""
Unit tests for attention-guided center sampling.
"""

import numpy as np
import pytest

from imprep.transforms import (
    AttentionSampler, AugmentationConfig, DegenerateSamplingError, RandomPolicy, ShapeMismatchError,
    weighted_choice,
)


def make_rng(seed=0):
    return RandomPolicy(AugmentationConfig(mirror=True, seed=seed))


class TestWeightedChoice:
    """Cumulative-sum weighted sampling."""

    def test_single_positive_weight(self):
        rng = make_rng()
        assert all(weighted_choice(np.array([0.0, 0.0, 3.0, 0.0]), rng) == 2 for _ in range(200))

    def test_first_index(self):
        rng = make_rng()
        assert all(weighted_choice(np.array([1.0, 0.0]), rng) == 0 for _ in range(50))

    def test_distribution(self):
        rng = make_rng(11)
        draws = np.array([weighted_choice(np.array([1.0, 3.0]), rng) for _ in range(4000)])
        assert abs(draws.mean() - 0.75) < 0.05

    def test_input_not_modified(self):
        weights = np.array([1.0, 2.0, 3.0])
        weighted_choice(weights, make_rng())
        np.testing.assert_array_equal(weights, [1.0, 2.0, 3.0])

    @pytest.mark.parametrize("weights", [[0.0, 0.0], [1.0, -1.0], [np.nan, 1.0], []])
    def test_degenerate_weights(self, weights):
        with pytest.raises(DegenerateSamplingError):
            weighted_choice(np.array(weights, dtype=np.float64), make_rng())


class TestAttentionSampler:
    """Row from the marginal, then column within the row."""

    @pytest.mark.parametrize("seed", [0, 1, 2, 3])
    def test_single_hot_cell(self, seed):
        weights = np.zeros((6, 9))
        weights[4, 7] = 0.25
        sampler = AttentionSampler(make_rng(seed))
        assert all(sampler.sample_center(weights) == (4, 7) for _ in range(20))

    def test_row_concentrated(self):
        weights = np.zeros((5, 5))
        weights[2, :] = 1.0
        sampler = AttentionSampler(make_rng())
        centers = [sampler.sample_center(weights) for _ in range(200)]
        assert {r for r, _ in centers} == {2}
        assert {c for _, c in centers} == set(range(5))

    def test_caller_map_not_modified(self):
        weights = np.ones((3, 4))
        AttentionSampler(make_rng()).sample_center(weights)
        np.testing.assert_array_equal(weights, np.ones((3, 4)))

    def test_nested_list_input(self):
        assert AttentionSampler(make_rng()).sample_center([[0, 0], [0, 1]]) == (1, 1)

    def test_zero_map(self):
        with pytest.raises(DegenerateSamplingError):
            AttentionSampler(make_rng()).sample_center(np.zeros((4, 4)))

    def test_requires_two_dimensions(self):
        with pytest.raises(ShapeMismatchError):
            AttentionSampler(make_rng()).sample_center(np.ones(4))
