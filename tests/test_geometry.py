"""
Unit tests for crop geometry selection.
"""

import pytest

from imprep.transforms import (
    AugmentationConfig, CropSpec, GeometrySolver, Phase, RandomPolicy, ShapeMismatchError,
)


def make_solver(**kwargs):
    cfg = AugmentationConfig(**kwargs)
    return GeometrySolver(cfg, RandomPolicy(cfg))


class TestCenter:
    """Deterministic crops."""

    def test_eval_center_crop(self):
        solver = make_solver(crop_size=4, phase=Phase.EVAL)
        crop = solver.solve(10, 10)
        assert crop == CropSpec(3, 3, 4, 4, mirror=False)

    def test_eval_center_crop_is_repeatable(self):
        solver = make_solver(crop_size=5, phase=Phase.EVAL)
        assert {solver.solve(12, 9) for _ in range(10)} == {CropSpec(3, 2, 5, 5)}

    def test_no_crop_uses_full_source(self):
        solver = make_solver(crop_size=0)
        assert solver.solve(7, 11) == CropSpec(0, 0, 7, 11)
        assert solver.target_size(7, 11) == (7, 11)

    def test_source_smaller_than_crop(self):
        solver = make_solver(crop_size=8, phase=Phase.EVAL)
        with pytest.raises(ShapeMismatchError):
            solver.solve(7, 20)


class TestRandomOffset:
    """TRAIN crops with a fixed size."""

    def test_offsets_in_bounds(self):
        solver = make_solver(crop_size=4, seed=0)
        crops = [solver.solve(10, 12) for _ in range(300)]
        assert all(0 <= c.origin_row <= 6 and 0 <= c.origin_col <= 8 for c in crops)
        assert all((c.extent_h, c.extent_w) == (4, 4) for c in crops)
        assert {c.origin_row for c in crops} == set(range(7))

    def test_crop_equal_to_source(self):
        solver = make_solver(crop_size=6, seed=0)
        assert solver.solve(6, 6) == CropSpec(0, 0, 6, 6)


class TestRandomArea:
    """Scale and aspect ratio sampling."""

    def test_extent_bounds_and_area_ratio(self):
        solver = make_solver(
            crop_size=32, random_crop=True, crop_area=(0.3, 0.6), aspect_ratio=(0.75, 1.33), seed=5,
        )
        for _ in range(300):
            crop = solver.solve(100, 100)
            assert 1 <= crop.extent_h <= 100 and 1 <= crop.extent_w <= 100
            assert 0 <= crop.origin_row <= 100 - crop.extent_h
            assert 0 <= crop.origin_col <= 100 - crop.extent_w
            ratio = crop.extent_h * crop.extent_w / (100 * 100)
            assert 0.3 - 0.02 <= ratio < 0.6 + 0.02

    def test_extent_clamped_to_source(self):
        solver = make_solver(
            crop_size=8, random_crop=True, crop_area=(0.9, 1.0), aspect_ratio=(3.0, 4.0), seed=1,
        )
        for _ in range(100):
            crop = solver.solve(20, 40)
            assert crop.extent_h <= 20 and crop.extent_w <= 40

    def test_full_image_crop(self):
        eps = 1e-6
        solver = make_solver(
            crop_size=32, random_crop=True, crop_area=(1.0, 1.0 + eps), aspect_ratio=(1.0, 1.0 + eps), seed=2,
        )
        crop = solver.solve(100, 100)
        assert crop == CropSpec(0, 0, 100, 100)
        assert crop.needs_resample(32, 32)

    def test_eval_ignores_random_area(self):
        solver = make_solver(
            crop_size=8, random_crop=True, crop_area=(0.1, 1.0), aspect_ratio=(0.75, 1.33), phase="EVAL",
        )
        assert solver.solve(16, 16) == CropSpec(4, 4, 8, 8)

    def test_no_resample_falls_back_to_fixed_crop(self):
        solver = make_solver(
            crop_size=8, random_crop=True, crop_area=(0.1, 0.5), aspect_ratio=(0.75, 1.33), seed=0,
        )
        crop = solver.solve(16, 16, allow_resample=False)
        assert (crop.extent_h, crop.extent_w) == (8, 8)


class TestAttentionGuided:
    """Crops around a sampled center stay inside the source."""

    @pytest.mark.parametrize("center, origin", [
        ((5, 5), (3, 3)),
        ((0, 0), (0, 0)),
        ((9, 9), (6, 6)),
        ((1, 8), (0, 6)),
    ])
    def test_origin_clamped(self, center, origin):
        solver = make_solver(crop_size=4, seed=0)
        crop = solver.solve(10, 10, center=center)
        assert (crop.origin_row, crop.origin_col) == origin
        assert (crop.extent_h, crop.extent_w) == (4, 4)

    def test_eval_falls_back_to_center(self):
        solver = make_solver(crop_size=4, phase=Phase.EVAL)
        assert solver.solve(10, 10, center=(0, 0)) == CropSpec(3, 3, 4, 4)

    def test_random_area_extent_around_center(self):
        solver = make_solver(
            crop_size=8, random_crop=True, crop_area=(0.2, 0.4), aspect_ratio=(0.75, 1.33), seed=4,
        )
        for _ in range(50):
            crop = solver.solve(40, 40, center=(39, 0))
            assert crop.origin_row + crop.extent_h == 40
            assert crop.origin_col == 0


class TestMirror:
    """The mirror flag is drawn once per sample."""

    def test_mirror_disabled(self):
        solver = make_solver(crop_size=4, seed=0)
        assert not any(solver.solve(10, 10).mirror for _ in range(50))

    def test_mirror_both_outcomes(self):
        solver = make_solver(mirror=True, phase=Phase.EVAL, seed=0)
        flags = {solver.solve(5, 5).mirror for _ in range(50)}
        assert flags == {True, False}
