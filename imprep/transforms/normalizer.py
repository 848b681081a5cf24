"""
Normalizer
==========

Mean subtraction and scaling: ``(value - mean) * scale``.

The mean is either a full per-pixel map with the sample's (C, H, W) shape,
a vector of per-channel constants, or absent.
"""

from typing import Optional, Sequence, Tuple

import numpy as np

from .config import AugmentationConfig
from .errors import ConfigurationError, ShapeMismatchError
from .geometry import CropSpec
from .mean_file import load_mean_file


def expand_mean_values(values: Sequence[float], channels: int) -> Tuple[float, ...]:
    """Broadcast one constant to all channels, or check one constant per channel."""
    values = tuple(float(v) for v in values)
    if len(values) == 1:
        return values * channels
    if len(values) != channels:
        raise ConfigurationError(
            f"Specify either 1 mean_value or as many as channels: {channels}, got {len(values)}"
        )
    return values


class MeanProfile:
    """Read-only normalization baseline shared across all samples."""

    def __init__(
        self,
        mean_map: Optional[np.ndarray] = None,
        mean_values: Optional[Sequence[float]] = None,
    ):
        if mean_map is not None and mean_values:
            raise ConfigurationError("Cannot specify mean_file and mean_value at the same time")
        if mean_map is not None:
            mean_map = np.array(mean_map, dtype=np.float32)
            if mean_map.ndim == 2:
                mean_map = mean_map[None]
            if mean_map.ndim != 3:
                raise ShapeMismatchError(
                    f"Mean map must have shape (C, H, W), got {mean_map.shape}"
                )
            mean_map.setflags(write=False)
        self.mean_map = mean_map
        self.mean_values = tuple(float(v) for v in mean_values) if mean_values else None

    @classmethod
    def from_config(cls, config: AugmentationConfig) -> "MeanProfile":
        if config.mean_file:
            return cls(mean_map=load_mean_file(config.mean_file))
        return cls(mean_values=config.mean_value or None)

    @property
    def is_empty(self) -> bool:
        return self.mean_map is None and self.mean_values is None

    def __repr__(self):
        if self.mean_map is not None:
            return f"MeanProfile(mean_map={self.mean_map.shape})"
        return f"MeanProfile(mean_values={self.mean_values})"

    def check(self, channels: int, height: int, width: int) -> None:
        """Validate the profile against a sample's pre-crop dimensions."""
        if self.mean_map is not None:
            if self.mean_map.shape != (channels, height, width):
                raise ShapeMismatchError(
                    f"Mean map shape {self.mean_map.shape} does not match "
                    f"sample shape {(channels, height, width)}"
                )
        elif self.mean_values is not None:
            expand_mean_values(self.mean_values, channels)

    def region(self, channels: int, crop: CropSpec) -> Optional[np.ndarray]:
        """
        Mean values aligned with a crop of the source.

        Returns
        -------
        np.ndarray or None
            (C, extent_h, extent_w) slice of the mean map, (C, 1, 1)
            per-channel constants, or None without a profile
        """
        if self.mean_map is not None:
            rows, cols = crop.slices()
            return self.mean_map[:, rows, cols]
        if self.mean_values is not None:
            values = expand_mean_values(self.mean_values, channels)
            return np.asarray(values, dtype=np.float32)[:, None, None]
        return None


class Normalizer:
    """Apply a MeanProfile and scale to planar values."""

    def __init__(self, profile: MeanProfile, scale: float = 1.0):
        self.profile = profile
        self.scale = scale

    def normalize(self, values: np.ndarray, mean: Optional[np.ndarray] = None) -> np.ndarray:
        if mean is not None:
            values = values - mean
        # Scale is applied even when it is 1 so the output dtype is consistent
        return values * np.asarray(self.scale, dtype=values.dtype)
