"""
Random Policy
=============

Seeded source of uniform integers and floats for random augmentation.

Integer and float draws share one explicitly owned generator so a seeded
engine reproduces the same crops, aspect ratios and mirror decisions.
"""

import logging
from typing import Optional

import numpy as np

from .config import AugmentationConfig
from .errors import RandomPolicyError

logger = logging.getLogger(__name__)


class RandomPolicy:
    """Uniform random draws, active only when the config asks for randomness."""

    def __init__(self, config: AugmentationConfig):
        self.config = config
        self.seed = config.seed
        self._rng: Optional[np.random.Generator] = None
        self.init_rand()

    def init_rand(self) -> None:
        """(Re)create the generator if mirroring or TRAIN cropping is configured."""
        if self.config.needs_random:
            self._rng = np.random.default_rng(self.seed)
            logger.debug(f"Random policy initialized (seed={self.seed})")
        else:
            self._rng = None

    def reseed(self, seed: Optional[int]) -> None:
        self.seed = seed
        self.init_rand()

    @property
    def active(self) -> bool:
        return self._rng is not None

    def _generator(self) -> np.random.Generator:
        if self._rng is None:
            raise RandomPolicyError(
                "Random draw requested but no randomized operation is configured"
            )
        return self._rng

    def uniform_int(self, n: int) -> int:
        """Return an integer in [0, n)."""
        if n <= 0:
            raise RandomPolicyError(f"uniform_int requires n > 0, got {n}")
        return int(self._generator().integers(0, n))

    def uniform_float(self, lo: float, hi: float) -> float:
        """Return a float in [lo, hi)."""
        if not hi > lo:
            raise RandomPolicyError(f"uniform_float requires hi > lo, got [{lo}, {hi})")
        return float(self._generator().uniform(lo, hi))

    def coin(self) -> bool:
        return self.uniform_int(2) == 1
