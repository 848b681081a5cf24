"""
Transforms Package
==================

On-the-fly crop, mirror, resample and normalization of training samples.
"""

from .config import AugmentationConfig, Phase

from .errors import (
    TransformError,
    ConfigurationError,
    ShapeMismatchError,
    UnsupportedInputError,
    DegenerateSamplingError,
    RandomPolicyError,
)

from .random_policy import RandomPolicy
from .geometry import CropSpec, GeometrySolver
from .resampler import bilinear_resize
from .normalizer import MeanProfile, Normalizer, expand_mean_values
from .attention import AttentionSampler, weighted_choice
from .samples import RawSample, DecodedImage, PrecomputedTensor, as_sample
from .mean_file import load_mean_file, save_mean_file, compute_mean_map
from .engine import DataTransformer

__all__ = [
    'AugmentationConfig',
    'Phase',
    'TransformError',
    'ConfigurationError',
    'ShapeMismatchError',
    'UnsupportedInputError',
    'DegenerateSamplingError',
    'RandomPolicyError',
    'RandomPolicy',
    'CropSpec',
    'GeometrySolver',
    'bilinear_resize',
    'MeanProfile',
    'Normalizer',
    'expand_mean_values',
    'AttentionSampler',
    'weighted_choice',
    'RawSample',
    'DecodedImage',
    'PrecomputedTensor',
    'as_sample',
    'load_mean_file',
    'save_mean_file',
    'compute_mean_map',
    'DataTransformer',
]
