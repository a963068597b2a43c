"""
Center a clamped normal distribution on a target mean.

Clamping N(x, sigma) into [lower, upper] (lower defaults to 0, upper to
+inf) shifts its expectation. ``solve`` finds the center x such that the
expectation of the clamped distribution equals the requested value, using
Newton's method on the closed form of the clamped expectation.

Inputs are normalized by the caller (the target is usually 1.0 and the
bounds and sigma are expressed relative to it).
"""

import math
import sys
from typing import Optional

_EPSILON = sys.float_info.epsilon
_SQRT_2 = math.sqrt(2.0)
_SQRT_2PI = math.sqrt(2.0 * math.pi)


def _integral(x: float, t: float, sigma: float) -> float:
    part1 = x * 0.5 * math.erf((t - x) / sigma / _SQRT_2)
    part2 = -sigma / _SQRT_2PI * math.exp(-(t - x) * (t - x) * 0.5 / sigma / sigma)
    return part1 + part2


def _deri_integral(x: float, t: float, sigma: float) -> float:
    part1 = 0.5 * math.erf((t - x) / sigma / _SQRT_2)
    part2 = math.exp(-(t - x) * (t - x) * 0.5 / sigma / sigma) * (-t) / _SQRT_2PI / sigma
    return part1 + part2


def _cdf(t: float, x: float, sigma: float) -> float:
    return 0.5 * (1.0 + math.erf((t - x) / sigma / _SQRT_2))


def _deri_cdf(t: float, x: float, sigma: float) -> float:
    return -math.exp(-(t - x) * (t - x) / 2.0 / sigma / sigma) / sigma / _SQRT_2PI


def clamped_mean(center: float, sigma: float, lower: Optional[float], upper: Optional[float]) -> float:
    """Expectation of N(center, sigma) clamped into [lower, upper]."""
    upper_integral = _integral(center, upper, sigma) if upper is not None else center * 0.5
    lower_integral = _integral(center, lower if lower is not None else 0.0, sigma)
    upper_truncate = upper * (1.0 - _cdf(upper, center, sigma)) if upper is not None else 0.0
    lower_truncate = lower * _cdf(lower, center, sigma) if lower is not None else 0.0
    return upper_integral - lower_integral + lower_truncate + upper_truncate


def _clamped_mean_derivative(center: float, sigma: float, lower: Optional[float], upper: Optional[float]) -> float:
    upper_integral = _deri_integral(center, upper, sigma) if upper is not None else 0.5
    lower_integral = _deri_integral(center, lower if lower is not None else 0.0, sigma)
    upper_truncate = upper * (-_deri_cdf(upper, center, sigma)) if upper is not None else 0.0
    lower_truncate = lower * _deri_cdf(lower, center, sigma) if lower is not None else 0.0
    return upper_integral - lower_integral + lower_truncate + upper_truncate


def solve(x: float, sigma: float, lower: Optional[float] = None, upper: Optional[float] = None) -> Optional[float]:
    if abs(sigma) <= _EPSILON:
        return x

    # A target outside the bounds is only reachable at the bound itself
    if lower is not None and lower >= x * (1.0 + _EPSILON):
        return lower
    if lower is None and x <= _EPSILON:
        return 0.0
    if upper is not None and upper * (1.0 + _EPSILON) <= x:
        return upper

    if lower is None or lower < 0.0:
        lower = 0.0

    result = x
    last_diff = sys.float_info.max
    # Iterate until the residual has stopped improving for a run of steps
    patience = 10
    while patience > 0:
        f_x = clamped_mean(result, sigma, lower, upper)
        diff = abs(f_x - x)
        if diff < last_diff:
            last_diff = diff
            patience = 100
        else:
            patience -= 1
        derivative = _clamped_mean_derivative(result, sigma, lower, upper)
        if derivative == 0.0:
            break
        result = result - (f_x - x) / derivative

    return result
