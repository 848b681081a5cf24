"""
Unit tests for mean profiles and normalization.
"""

import numpy as np
import pytest

from imprep.transforms import (
    AugmentationConfig, ConfigurationError, CropSpec, MeanProfile, Normalizer,
    ShapeMismatchError, expand_mean_values, save_mean_file,
)


class TestExpandMeanValues:
    """Broadcast of per-channel constants."""

    def test_single_value_broadcast(self):
        assert expand_mean_values([5.0], 3) == (5.0, 5.0, 5.0)

    def test_one_per_channel(self):
        assert expand_mean_values([1, 2, 3], 3) == (1.0, 2.0, 3.0)

    def test_wrong_count(self):
        with pytest.raises(ConfigurationError):
            expand_mean_values([1.0, 2.0], 3)

    def test_does_not_touch_input(self):
        values = [4.0]
        expand_mean_values(values, 3)
        assert values == [4.0]


class TestMeanProfile:
    """Mean map and constants handling."""

    def test_map_and_values_exclusive(self):
        with pytest.raises(ConfigurationError):
            MeanProfile(mean_map=np.zeros((1, 2, 2)), mean_values=[1.0])

    def test_map_is_read_only(self):
        profile = MeanProfile(mean_map=np.zeros((1, 2, 2)))
        with pytest.raises(ValueError):
            profile.mean_map[0, 0, 0] = 1.0

    def test_two_dimensional_map_gets_channel_axis(self):
        profile = MeanProfile(mean_map=np.zeros((4, 5)))
        assert profile.mean_map.shape == (1, 4, 5)

    def test_check_map_shape(self):
        profile = MeanProfile(mean_map=np.zeros((3, 8, 8)))
        profile.check(3, 8, 8)
        with pytest.raises(ShapeMismatchError):
            profile.check(3, 8, 9)
        with pytest.raises(ShapeMismatchError):
            profile.check(1, 8, 8)

    def test_check_value_count(self):
        profile = MeanProfile(mean_values=[1.0, 2.0])
        profile.check(2, 5, 5)
        with pytest.raises(ConfigurationError):
            profile.check(3, 5, 5)

    def test_region_of_map(self):
        mean_map = np.arange(2 * 6 * 6, dtype=np.float32).reshape(2, 6, 6)
        profile = MeanProfile(mean_map=mean_map)
        region = profile.region(2, CropSpec(1, 2, 3, 4))
        np.testing.assert_array_equal(region, mean_map[:, 1:4, 2:6])

    def test_region_of_values(self):
        region = MeanProfile(mean_values=[7.0]).region(3, CropSpec(0, 0, 2, 2))
        assert region.shape == (3, 1, 1)
        np.testing.assert_array_equal(region.ravel(), [7.0, 7.0, 7.0])

    def test_empty_profile(self):
        profile = MeanProfile()
        assert profile.is_empty
        assert profile.region(3, CropSpec(0, 0, 2, 2)) is None

    def test_from_config_values(self):
        profile = MeanProfile.from_config(AugmentationConfig(mean_value=(1.0, 2.0)))
        assert profile.mean_values == (1.0, 2.0)
        assert profile.mean_map is None

    def test_from_config_mean_file(self, tmp_path):
        path = save_mean_file(np.ones((3, 4, 4)), tmp_path / "mean.npy")
        profile = MeanProfile.from_config(AugmentationConfig(mean_file=str(path)))
        assert profile.mean_map.shape == (3, 4, 4)


class TestNormalizer:
    """(value - mean) * scale."""

    def test_subtract_and_scale(self):
        values = np.full((2, 2, 2), 10.0, dtype=np.float32)
        mean = np.array([2.0, 4.0], dtype=np.float32)[:, None, None]
        out = Normalizer(MeanProfile(), scale=0.5).normalize(values, mean)
        np.testing.assert_allclose(out[0], 4.0)
        np.testing.assert_allclose(out[1], 3.0)

    def test_no_mean(self):
        values = np.arange(4, dtype=np.float32).reshape(1, 2, 2)
        out = Normalizer(MeanProfile(), scale=2.0).normalize(values)
        np.testing.assert_array_equal(out, values * 2)

    def test_unit_scale_keeps_dtype(self):
        values = np.ones((1, 2, 2), dtype=np.float32)
        assert Normalizer(MeanProfile()).normalize(values).dtype == np.float32
