"""
Transform Errors
================

Exception types raised by the transform engine. Every error reflects a
caller or configuration defect, never a transient condition.
"""


class TransformError(Exception):
    """Base class for all transform engine errors."""


class ConfigurationError(TransformError, ValueError):
    """Mutually exclusive or malformed augmentation options."""


class ShapeMismatchError(TransformError, ValueError):
    """Source, destination or mean profile dimensions do not agree."""


class UnsupportedInputError(TransformError, TypeError):
    """Input representation the engine cannot handle (e.g. non-uint8 image)."""


class DegenerateSamplingError(TransformError, ValueError):
    """Attention weights that cannot be sampled from (zero sum, negatives)."""


class RandomPolicyError(TransformError, RuntimeError):
    """Random draw requested without a generator or with invalid bounds."""
