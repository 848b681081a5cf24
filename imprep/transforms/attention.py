"""
Attention Sampler
=================

Pick a crop center from a 2-D importance weight map: a row is drawn from
the row marginal, then a column from the weights of that row.
"""

from typing import Tuple

import numpy as np

from .errors import DegenerateSamplingError, ShapeMismatchError
from .random_policy import RandomPolicy


def as_weight_map(weights) -> np.ndarray:
    """Convert a weight map (array, nested list or torch tensor) to 2-D float64."""
    if hasattr(weights, "detach"):
        weights = weights.detach().cpu().numpy()
    weights = np.asarray(weights, dtype=np.float64)
    if weights.ndim != 2:
        raise ShapeMismatchError(f"Attention weights must be 2-D, got shape {weights.shape}")
    return weights


def row_marginal(weights: np.ndarray) -> np.ndarray:
    """Sum of the weights in each row."""
    return weights.sum(axis=1)


def weighted_choice(weights: np.ndarray, rng: RandomPolicy) -> int:
    """
    Draw an index with probability proportional to its weight.

    Parameters
    ----------
    weights : np.ndarray
        1-D non-negative, unnormalized weights (not modified)
    rng : RandomPolicy
        Source of the uniform float draw

    Returns
    -------
    int
        First index whose cumulative weight reaches the drawn seed
    """
    weights = np.array(weights, dtype=np.float64)
    if weights.size == 0:
        raise DegenerateSamplingError("Cannot sample from an empty weight vector")
    if not np.all(np.isfinite(weights)) or np.any(weights < 0):
        raise DegenerateSamplingError("Attention weights must be finite and non-negative")
    total = weights.sum()
    if total <= 0:
        raise DegenerateSamplingError("Attention weights sum to zero")

    seed = rng.uniform_float(0.0, total)
    if weights[0] > 0 and seed <= weights[0]:
        return 0
    cumulative = np.cumsum(weights)
    index = int(np.searchsorted(cumulative, seed, side="left"))
    # Zero-weight entries are never selected, even for a seed of exactly 0,
    # and rounding in the running sum cannot push past the last positive entry.
    nonzero = np.flatnonzero(weights)
    pos = int(np.searchsorted(nonzero, index, side="left"))
    return int(nonzero[min(pos, nonzero.size - 1)])


class AttentionSampler:
    """Weighted sampling of a (row, col) crop center."""

    def __init__(self, rng: RandomPolicy):
        self.rng = rng

    def sample_center(self, weights) -> Tuple[int, int]:
        weights = as_weight_map(weights)
        row = weighted_choice(row_marginal(weights), self.rng)
        col = weighted_choice(weights[row], self.rng)
        return row, col
