"""
Crop Geometry
=============

Choose the source sub-region (origin, extent) and mirror flag for one sample.

Policies
--------
- center: EVAL, or no cropping configured
- random offset: TRAIN with a fixed crop size
- random area: TRAIN with area / aspect ratio ranges, resampled afterwards
- attention guided: TRAIN with an importance weight map
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional, Tuple

from .config import AugmentationConfig, Phase
from .errors import ShapeMismatchError
from .random_policy import RandomPolicy

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CropSpec:
    """Sub-region of the source picked for one sample."""
    origin_row: int
    origin_col: int
    extent_h: int
    extent_w: int
    mirror: bool = False

    def slices(self) -> Tuple[slice, slice]:
        """(row, col) slices selecting the crop from an (..., H, W) array."""
        return (
            slice(self.origin_row, self.origin_row + self.extent_h),
            slice(self.origin_col, self.origin_col + self.extent_w),
        )

    def needs_resample(self, target_h: int, target_w: int) -> bool:
        return (self.extent_h, self.extent_w) != (target_h, target_w)


def _clamp(value: int, lo: int, hi: int) -> int:
    return max(lo, min(value, hi))


class GeometrySolver:
    """Crop origin / extent selection driven by an AugmentationConfig."""

    def __init__(self, config: AugmentationConfig, rng: RandomPolicy):
        self.config = config
        self.rng = rng

    def target_size(self, src_h: int, src_w: int) -> Tuple[int, int]:
        """Output (height, width) for a source of the given size."""
        crop_size = self.config.crop_size
        if crop_size:
            return crop_size, crop_size
        return src_h, src_w

    def check_source(self, src_h: int, src_w: int) -> None:
        crop_size = self.config.crop_size
        if src_h < crop_size or src_w < crop_size:
            raise ShapeMismatchError(
                f"Source {src_h}x{src_w} is smaller than crop_size {crop_size}"
            )

    # -----------------------------
    # Policies
    # -----------------------------
    def center(self, src_h: int, src_w: int) -> Tuple[int, int, int, int]:
        crop_size = self.config.crop_size
        if not crop_size:
            return 0, 0, src_h, src_w
        return (src_h - crop_size) // 2, (src_w - crop_size) // 2, crop_size, crop_size

    def random_offset(self, src_h: int, src_w: int) -> Tuple[int, int, int, int]:
        crop_size = self.config.crop_size
        h_off = self.rng.uniform_int(src_h - crop_size + 1)
        w_off = self.rng.uniform_int(src_w - crop_size + 1)
        return h_off, w_off, crop_size, crop_size

    def random_extent(self, src_h: int, src_w: int) -> Tuple[int, int]:
        """
        Draw a crop size from the configured area and aspect ratio ranges.

        Returns
        -------
        tuple
            (crop_h, crop_w), each clamped to [1, source dimension]
        """
        area_lo, area_hi = self.config.crop_area
        aspect_lo, aspect_hi = self.config.aspect_ratio
        area = self.rng.uniform_float(area_lo, area_hi) * src_h * src_w
        aspect = self.rng.uniform_float(aspect_lo, aspect_hi)
        crop_h = _clamp(int(round(math.sqrt(area * aspect))), 1, src_h)
        crop_w = _clamp(int(round(math.sqrt(area / aspect))), 1, src_w)
        return crop_h, crop_w

    def random_area(self, src_h: int, src_w: int) -> Tuple[int, int, int, int]:
        crop_h, crop_w = self.random_extent(src_h, src_w)
        h_off = self.rng.uniform_int(src_h - crop_h + 1)
        w_off = self.rng.uniform_int(src_w - crop_w + 1)
        return h_off, w_off, crop_h, crop_w

    def attention_guided(
        self, src_h: int, src_w: int, center: Tuple[int, int]
    ) -> Tuple[int, int, int, int]:
        """Crop around an attention-sampled center, kept inside the source."""
        if self.config.uses_random_area:
            crop_h, crop_w = self.random_extent(src_h, src_w)
        else:
            crop_h = crop_w = self.config.crop_size
        row, col = center
        h_off = _clamp(row - crop_h // 2, 0, src_h - crop_h)
        w_off = _clamp(col - crop_w // 2, 0, src_w - crop_w)
        return h_off, w_off, crop_h, crop_w

    # -----------------------------
    # Dispatch
    # -----------------------------
    def solve(
        self,
        src_h: int,
        src_w: int,
        center: Optional[Tuple[int, int]] = None,
        allow_resample: bool = True,
    ) -> CropSpec:
        """
        Pick the crop for one sample.

        Parameters
        ----------
        src_h, src_w : int
            Source dimensions before cropping
        center : (int, int), optional
            Attention-sampled crop center (TRAIN only)
        allow_resample : bool
            False for inputs that cannot be resampled (pre-existing tensors),
            which always use fixed-size crops

        Returns
        -------
        CropSpec
        """
        self.check_source(src_h, src_w)
        config = self.config

        if not config.crop_size or config.phase is Phase.EVAL:
            region = self.center(src_h, src_w)
        elif center is not None:
            region = self.attention_guided(src_h, src_w, center)
        elif config.uses_random_area and allow_resample:
            region = self.random_area(src_h, src_w)
        else:
            region = self.random_offset(src_h, src_w)

        mirror = config.mirror and self.rng.coin()
        crop = CropSpec(*region, mirror=mirror)
        logger.debug(f"Crop for {src_h}x{src_w} source: {crop}")
        return crop
