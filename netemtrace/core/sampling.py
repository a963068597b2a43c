"""
Seeded normal sampling for the randomized trace models.

Every random model owns its own ``numpy.random.Generator`` built from the
config's seed and bit-generator choice, so a config always reproduces the
same sequence regardless of what else runs in the process.
"""

from enum import Enum
from statistics import NormalDist
from typing import Optional

import numpy as np

DEFAULT_RNG_SEED = 42

# Keeps inverse-CDF draws away from the 0 and 1 poles
_CDF_EPSILON = 1e-12


class RngAlgorithm(str, Enum):
    """numpy bit generators a model can be seeded with."""
    PCG64 = "pcg64"
    PHILOX = "philox"
    SFC64 = "sfc64"
    MT19937 = "mt19937"


class BoundPolicy(str, Enum):
    CLAMP = "clamp"          # Sample freely, then clip into [lower, upper]
    TRUNCATE = "truncate"    # Only draw from [lower, upper]


_BIT_GENERATORS = {
    RngAlgorithm.PCG64: np.random.PCG64,
    RngAlgorithm.PHILOX: np.random.Philox,
    RngAlgorithm.SFC64: np.random.SFC64,
    RngAlgorithm.MT19937: np.random.MT19937,
}


def make_rng(seed: int, algorithm: RngAlgorithm = RngAlgorithm.PCG64) -> np.random.Generator:
    return np.random.Generator(_BIT_GENERATORS[RngAlgorithm(algorithm)](seed))


class BoundedNormal:
    """
    Draws from N(mean, std_dev) restricted to optional bounds.

    With ``BoundPolicy.CLAMP`` a free draw is clipped, so the bounds
    themselves carry the probability mass of the tails. With
    ``BoundPolicy.TRUNCATE`` the draw is made by inverting the CDF over
    [cdf(lower), cdf(upper)], which only ever lands inside the bounds and
    consumes exactly one uniform number per sample.
    """

    def __init__(
        self,
        mean: float,
        std_dev: float,
        lower: Optional[float] = None,
        upper: Optional[float] = None,
        policy: BoundPolicy = BoundPolicy.CLAMP,
        seed: int = DEFAULT_RNG_SEED,
        algorithm: RngAlgorithm = RngAlgorithm.PCG64,
    ):
        if lower is not None and upper is not None and lower > upper:
            raise ValueError(f"lower bound {lower} is above upper bound {upper}")
        self.mean = mean
        self.std_dev = std_dev
        self.lower = lower
        self.upper = upper
        self.policy = BoundPolicy(policy)
        self.rng = make_rng(seed, algorithm)
        self._truncated = (
            self.policy == BoundPolicy.TRUNCATE
            and std_dev > 0
            and (lower is not None or upper is not None)
        )
        if self._truncated:
            self._dist = NormalDist(mean, std_dev)
            self._low_p = self._dist.cdf(lower) if lower is not None else 0.0
            self._high_p = self._dist.cdf(upper) if upper is not None else 1.0

    def clamp(self, value: float) -> float:
        if self.lower is not None:
            value = max(value, self.lower)
        if self.upper is not None:
            value = min(value, self.upper)
        return value

    def sample(self) -> float:
        if self._truncated:
            p = self.rng.uniform(self._low_p, self._high_p)
            p = min(max(p, _CDF_EPSILON), 1.0 - _CDF_EPSILON)
            value = self._dist.inv_cdf(p)
        else:
            value = self.rng.normal(self.mean, self.std_dev)
        # Bounds far out in a tail can round the inverse CDF just past them
        return self.clamp(float(value))
