"""
Augmentation Config
===================

Immutable augmentation settings shared by every sample one engine processes.
Built from keyword arguments, a plain dict, or a YAML or JSON file.
"""

import enum
import json
import pathlib
from dataclasses import dataclass, asdict, fields
from typing import Optional, Tuple, Union

import yaml

from .errors import ConfigurationError


class Phase(enum.Enum):
    TRAIN = "TRAIN"
    EVAL = "EVAL"

    @classmethod
    def parse(cls, value: Union[str, "Phase"]) -> "Phase":
        if isinstance(value, Phase):
            return value
        name = str(value).strip().upper()
        if name == "TEST":
            name = "EVAL"
        try:
            return cls(name)
        except ValueError:
            raise ConfigurationError(f"Unknown phase: {value!r}") from None


Range = Tuple[float, float]


def _as_range(value, name: str) -> Optional[Range]:
    if value is None:
        return None
    try:
        lo, hi = value
    except (TypeError, ValueError):
        raise ConfigurationError(f"{name} must be a (min, max) pair, got {value!r}") from None
    return (float(lo), float(hi))


@dataclass(frozen=True)
class AugmentationConfig:
    """
    Augmentation settings for one transform engine.

    Parameters
    ----------
    crop_size : int
        Side of the square output crop, 0 disables cropping
    mirror : bool
        Randomly mirror samples horizontally (probability 0.5)
    scale : float
        Multiplier applied after mean subtraction
    mean_file : str, optional
        Path of a per-pixel mean map (.npy / .npz)
    mean_value : tuple of float
        Per-channel mean constants (one value is broadcast to all channels)
    force_color, force_gray : bool
        Decode encoded samples as 3-channel colour / single-channel gray
    random_crop : bool
        Sample crop size from ``crop_area`` and ``aspect_ratio`` (TRAIN only)
    crop_area : (float, float), optional
        Range of the crop area as a fraction of the source area
    aspect_ratio : (float, float), optional
        Range of the crop height / width ratio
    phase : Phase
        TRAIN enables random cropping, EVAL uses deterministic center crops
    seed : int, optional
        Seed of the engine's random generator, fresh entropy when omitted
    """
    crop_size: int = 0
    mirror: bool = False
    scale: float = 1.0
    mean_file: Optional[str] = None
    mean_value: Tuple[float, ...] = ()
    force_color: bool = False
    force_gray: bool = False
    random_crop: bool = False
    crop_area: Optional[Range] = None
    aspect_ratio: Optional[Range] = None
    phase: Phase = Phase.TRAIN
    seed: Optional[int] = None

    def __post_init__(self):
        # Normalize loosely typed inputs (lists from json or yaml, phase strings).
        object.__setattr__(self, "crop_size", int(self.crop_size))
        object.__setattr__(self, "scale", float(self.scale))
        object.__setattr__(self, "mean_value", tuple(float(v) for v in (self.mean_value or ())))
        object.__setattr__(self, "crop_area", _as_range(self.crop_area, "crop_area"))
        object.__setattr__(self, "aspect_ratio", _as_range(self.aspect_ratio, "aspect_ratio"))
        object.__setattr__(self, "phase", Phase.parse(self.phase))
        self.validate()

    def validate(self) -> None:
        """Raise ConfigurationError for inconsistent option combinations."""
        if self.crop_size < 0:
            raise ConfigurationError(f"crop_size must be >= 0, got {self.crop_size}")
        if self.mean_file and self.mean_value:
            raise ConfigurationError("Cannot specify mean_file and mean_value at the same time")
        if self.force_color and self.force_gray:
            raise ConfigurationError("Cannot set both force_color and force_gray")
        if self.random_crop:
            if self.crop_area is None or self.aspect_ratio is None:
                raise ConfigurationError("random_crop requires crop_area and aspect_ratio ranges")
            if self.crop_size == 0:
                raise ConfigurationError("random_crop requires a non-zero crop_size")
        for name in ("crop_area", "aspect_ratio"):
            bounds = getattr(self, name)
            if bounds is None:
                continue
            lo, hi = bounds
            if not hi > lo:
                raise ConfigurationError(f"{name} upper bound must be greater than lower bound, got {bounds}")
            if lo <= 0:
                raise ConfigurationError(f"{name} bounds must be positive, got {bounds}")

    @property
    def needs_random(self) -> bool:
        """Whether any randomized operation is configured."""
        return self.mirror or (self.phase is Phase.TRAIN and self.crop_size > 0)

    @property
    def uses_random_area(self) -> bool:
        return self.random_crop and self.phase is Phase.TRAIN

    def to_dict(self) -> dict:
        d = asdict(self)
        d["phase"] = self.phase.value
        d["mean_value"] = list(self.mean_value)
        for name in ("crop_area", "aspect_ratio"):
            if d[name] is not None:
                d[name] = list(d[name])
        return d

    @classmethod
    def from_dict(cls, cfg: dict) -> "AugmentationConfig":
        """
        Build a config from a plain dict.

        A nested ``{"transform": {...}}`` layout is accepted as well as a flat
        one. Unknown keys are rejected so typos do not silently disable an
        augmentation.
        """
        if "transform" in cfg and isinstance(cfg["transform"], dict):
            cfg = cfg["transform"]
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(cfg) - known)
        if unknown:
            raise ConfigurationError(f"Unknown augmentation options: {unknown}")
        return cls(**cfg)

    @classmethod
    def from_json(cls, path: Union[str, pathlib.Path]) -> "AugmentationConfig":
        with open(path, "r") as f:
            return cls.from_dict(json.load(f))

    @classmethod
    def from_yaml(cls, path: Union[str, pathlib.Path]) -> "AugmentationConfig":
        """Load a config from a YAML file (flat or under a ``transform:`` key)."""
        with open(path, "r") as f:
            cfg = yaml.safe_load(f)
        if not isinstance(cfg, dict):
            raise ConfigurationError(f"Expected a mapping in {path}, got {type(cfg).__name__}")
        return cls.from_dict(cfg)
