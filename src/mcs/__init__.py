"""Martingale confidence sequences.

Conservative, closed-form thresholds for running sums of bounded, zero-mean
observations (Darling and Robbins, 1967), and confidence intervals on the
rank of a quantile derived from them. Every returned bound is rounded
outwards, so floating-point and libm error can only make it wider.

Call `verify_constants` (or check that `check_constants() == 0`) once at
start-up.
"""

from mcs.constants import EQ, LE, check_constants, verify_constants
from mcs.contracts import ContractViolationWarning
from mcs.quantile import (
    quantile_rank_bounds,
    quantile_slop,
    quantile_slop_hi,
    quantile_slop_lo,
    quantile_value_bounds,
)
from mcs.threshold import threshold, threshold_range, threshold_span

__all__ = [
    "EQ",
    "LE",
    "ContractViolationWarning",
    "check_constants",
    "verify_constants",
    "threshold",
    "threshold_span",
    "threshold_range",
    "quantile_slop",
    "quantile_slop_hi",
    "quantile_slop_lo",
    "quantile_rank_bounds",
    "quantile_value_bounds",
]
