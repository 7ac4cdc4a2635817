from __future__ import annotations

import math
from typing import List, Optional, Tuple

import numpy as np

from retire_core.domain.models import ReturnParams


class RandomVariateGenerator:
    """
    Normal variates for the market model, drawn with Box-Muller from a numpy Generator.
    Pass a seeded generator (or a seed) for reproducible runs.
    """

    def __init__(self, rng: Optional[np.random.Generator] = None, seed: Optional[int] = None):
        self.rng = rng if rng is not None else np.random.default_rng(seed)

    def _uniform(self) -> float:
        # Generator.random() is in [0, 1); flip it to (0, 1] so log() never sees 0.
        return 1.0 - float(self.rng.random())

    def standard_normal(self) -> float:
        u1 = self._uniform()
        u2 = self._uniform()
        return math.sqrt(-2.0 * math.log(u1)) * math.cos(2.0 * math.pi * u2)

    def normal(self, mean: float, std_dev: float) -> float:
        return mean + std_dev * self.standard_normal()

    def correlated_pair(self, params_a: ReturnParams, params_b: ReturnParams, correlation: float) -> Tuple[float, float]:
        """
        Two normals with the given correlation. The first leg's shock z1 also drives
        part of the second leg, so callers treat the first value as equity.
        """
        z1 = self.standard_normal()
        z2 = self.standard_normal()
        z2_correlated = correlation * z1 + math.sqrt(1.0 - correlation * correlation) * z2
        return (
            params_a.mean + z1 * params_a.std_dev,
            params_b.mean + z2_correlated * params_b.std_dev,
        )

    def spawn(self, n: int) -> List["RandomVariateGenerator"]:
        return [RandomVariateGenerator(rng=child) for child in self.rng.spawn(n)]
