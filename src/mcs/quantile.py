"""Confidence intervals on the rank of a quantile among n observations.

Let q be the unknown 90th percentile of W. The derived variable
``f(x) = -0.1 if x <= q else 0.9`` has zero mean and a range of width 1,
so the running sum of f over the observations stays within the
confidence sequence of `mcs.threshold`. Solving for the number of
observations at or below q turns that sum interval into an interval on the
rank of q, for every n simultaneously.

Given ``n`` observations, the q-quantile lies between the sorted
observation at index ``floor(q n - slop)`` and the one at index
``ceil(q n + slop)``. Either index may fall outside the sample, in which
case there are too few observations to bound that side.
"""

from __future__ import annotations

import math
from typing import Tuple

import numpy as np

from mcs.constants import EQ
from mcs.contracts import as_count, warn_contract
from mcs.rounding import next, prev
from mcs.threshold import threshold_range, threshold_span

__all__ = [
    "quantile_slop",
    "quantile_slop_hi",
    "quantile_slop_lo",
    "quantile_rank_bounds",
    "quantile_value_bounds",
]


def _check_quantile(quantile: float) -> float:
    quantile = float(quantile)
    if math.isnan(quantile):
        warn_contract("quantile is NaN; the slop is NaN.")
    elif not 0.0 <= quantile <= 1.0:
        warn_contract(
            f"quantile={quantile!r} is outside [0, 1]. Was a percentile passed without dividing by 100?"
        )
    return quantile


def quantile_slop(quantile: float, n: int, min_count: int, log_eps: float) -> float:
    """Symmetric slop, in ranks, for a ``1 - exp(log_eps)`` interval."""
    quantile = _check_quantile(quantile)
    if math.isnan(quantile):
        return math.nan
    if quantile <= 0.0 or quantile >= 1.0:
        return 1.0

    # f(x) = -1/2 below the quantile and 1/2 above is not enough: x can equal
    # the quantile with non-zero probability, adding a third case with zero
    # cost. Extend the interval by that one observation.
    #
    # A range of width 1 makes each unexpected value over or under the
    # quantile cost exactly 1, i.e. one rank.
    return 1 + threshold_span(n, min_count, 1.0, log_eps + EQ)


def quantile_slop_hi(quantile: float, n: int, min_count: int, log_eps: float) -> float:
    """Upper slop: the quantile is at most ``quantile * n + slop_hi``.

    Tighter than `quantile_slop` when ``quantile < 0.5``, equal otherwise
    (up to rounding).
    """
    quantile = _check_quantile(quantile)
    if math.isnan(quantile):
        return math.nan
    if quantile <= 0.0:
        return 1.0
    if quantile >= 1.0:
        return math.inf

    # For quantile = 0.9 we pay -0.1 for x below and 0.9 for x above.
    return 1 + threshold_range(n, min_count, quantile - 1, quantile, log_eps + EQ)


def quantile_slop_lo(quantile: float, n: int, min_count: int, log_eps: float) -> float:
    """Lower slop (<= 0): the quantile is at least ``quantile * n + slop_lo``.

    Tighter than `quantile_slop` when ``quantile > 0.5``, equal otherwise
    (up to rounding).
    """
    quantile = _check_quantile(quantile)
    if math.isnan(quantile):
        return math.nan
    if quantile <= 0.0:
        return -math.inf
    if quantile >= 1.0:
        return -1.0

    return -1 - threshold_range(n, min_count, -quantile, 1 - quantile, log_eps + EQ)


def quantile_rank_bounds(
    quantile: float,
    n: int,
    min_count: int,
    log_eps: float,
    *,
    asymmetric: bool = False,
) -> Tuple[float, float]:
    """0-based sorted-index bounds ``(lo, hi)`` for the quantile among n values.

    Bounds are floats and may be infinite or outside ``[0, n - 1]``.
    """
    n = as_count(n, "n")
    if asymmetric:
        offset_lo = quantile_slop_lo(quantile, n, min_count, log_eps)
        offset_hi = quantile_slop_hi(quantile, n, min_count, log_eps)
    else:
        slop = quantile_slop(quantile, n, min_count, log_eps)
        offset_lo, offset_hi = -slop, slop

    center = float(quantile) * n
    lo = float(np.floor(prev(prev(center) + offset_lo)))
    hi = float(np.ceil(next(next(center) + offset_hi)))
    return lo, hi


def quantile_value_bounds(
    values,
    quantile: float,
    min_count: int,
    log_eps: float,
    *,
    asymmetric: bool = False,
) -> Tuple[float, float]:
    """Observed values bracketing the quantile: ``(lo_value, hi_value)``.

    Non-finite values are ignored. A side that the sample is too small to
    bound is reported as -inf / +inf.
    """
    x = np.asarray(values, dtype=float).ravel()
    x = np.sort(x[np.isfinite(x)])
    n = int(len(x))

    lo_rank, hi_rank = quantile_rank_bounds(quantile, n, min_count, log_eps, asymmetric=asymmetric)
    lo_value = float(x[int(lo_rank)]) if 0 <= lo_rank < n else -math.inf
    hi_value = float(x[int(hi_rank)]) if 0 <= hi_rank < n else math.inf
    return lo_value, hi_value
