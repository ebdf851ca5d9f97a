"""Darling-Robbins confidence sequence thresholds for running sums.

Let X be a zero-mean random variable whose moment generating function
satisfies ``E[exp(tX)] <= exp(t^2 / 2)`` for all ``t >= 0`` (by Hoeffding's
lemma, any zero-mean variable with a range of width 2 does). `threshold`
returns the width of a ``1 - exp(log_eps)`` confidence interval for the sum
of ``n`` i.i.d. draws of X. The interval holds simultaneously for every
``n >= min_count``: a running sum may be compared against it after every
new observation, and the probability of ever crossing it under the null is
at most ``exp(log_eps)``, however many comparisons are made.

The base case is a one-sided test, with confidence interval
``(-inf, threshold)``. Add `mcs.constants.EQ` to ``log_eps`` to get the
half-width of a two-sided interval ``(-threshold, threshold)``.

See Darling and Robbins (1967), "Confidence sequences for mean, variance,
and median", PNAS 58(1).

Every intermediate step rounds towards a larger threshold.
"""

from __future__ import annotations

import math

from mcs.constants import MINUS_HALF_LOG_LOG_2_UP
from mcs.contracts import as_count, warn_contract
from mcs.rounding import log2_down, log_up, mul_up, next, prev, sqrt_up

__all__ = ["threshold", "threshold_span", "threshold_range"]

# C and alpha in Darling and Robbins; also the smallest usable min_count.
_C = 2


def _log_a_up(min_count: int, log_eps: float) -> float:
    """Over-approximate log(A), the main factor of the threshold.

    With ``Q_m = 1 / (lg m - 1/2)`` we need ``Q_m / A <= eps``, i.e.
    ``log(A) >= log(Q_m) - log(eps)``. lg m is rounded down so that Q_m,
    and thus log(A), is rounded up.
    """
    # float(min_count) is exact for any realistic count.
    inv_q_m = prev(log2_down(float(min_count)) - 0.5)
    return log_up(next(1.0 / inv_q_m)) - log_eps


def threshold(n: int, min_count: int, log_eps: float) -> float:
    """Threshold on the running sum of ``n`` values with range width 2.

    Returns +inf while ``n < max(min_count, 2)``. ``log_eps`` is the natural
    log of the false positive rate and must be <= 0; a positive value
    warns with `ContractViolationWarning`, and any ``log_eps >= 0`` returns
    -inf (always reject). A NaN ``log_eps`` warns and returns NaN.
    """
    n = as_count(n, "n")
    min_count = as_count(min_count, "min_count")
    log_eps = float(log_eps)
    if math.isnan(log_eps):
        warn_contract("log_eps is NaN; no false positive rate was given.")
    elif log_eps > 0:
        warn_contract(
            f"log_eps={log_eps!r} > 0 means a false positive rate above 100%. Should it be negated?"
        )

    min_count = max(min_count, _C)
    if n < min_count:
        return math.inf

    if math.isnan(log_eps):
        return math.nan
    if log_eps >= 0:
        return -math.inf

    log_a = _log_a_up(min_count, log_eps)

    # n f_n(A)
    #   = sqrt(n) (3 / 2sqrt(2)) sqrt(4 log log n - 4 log log 2 + 2 log A)
    #   = 3 sqrt[n (1/2 log log n - 1/2 log log 2 + 1/4 log A)]
    inner = next(next(0.5 * log_up(log_up(float(n))) + MINUS_HALF_LOG_LOG_2_UP) + 0.25 * log_a)
    return next(3 * sqrt_up(next(n * inner)))


def threshold_span(n: int, min_count: int, span: float, log_eps: float) -> float:
    """`threshold` for values in ``[lo, lo + span]``.

    Hoeffding's lemma makes any zero-mean variable with range width 2 satisfy
    the mgf condition, so the width-2 threshold is rescaled by ``span / 2``.
    """
    span = float(span)
    if not span >= 0:
        raise ValueError(f"span must be >= 0, got {span!r}.")
    t = threshold(n, min_count, log_eps)
    if span == 0:
        # Degenerate range: every value equals the (zero) mean.
        return 0.0
    if math.isinf(t):
        return t
    scale = span / 2  # exact
    return mul_up(scale, t)


def threshold_range(n: int, min_count: int, lo: float, hi: float, log_eps: float) -> float:
    """One-sided threshold for ``Sum X_i <= threshold``, X in ``[lo, hi]``.

    Tighter than `threshold_span` when ``|lo| > |hi|``: then a positive sum
    needs many small positive contributions, which is less likely than one
    unlucky large one. For the other half-interval
    (``Sum X_i >= -threshold``) negate the variate, i.e. call with
    ``(-hi, -lo)``.

    The proof of Hoeffding's lemma bounds ``t (1 - t)`` with
    ``t = rho e^v / (1 - rho + rho e^v)``, ``rho = -lo / (hi - lo)`` and
    ``v >= 0``. When ``rho <= 1/2`` some v reaches the maximum at
    ``t = 1/2`` and nothing is gained. When ``rho > 1/2`` the maximum is at
    ``v = 0``, so ``mgf(l) <= exp[1/2 rho (1 - rho) (hi - lo)^2 l^2]`` and a
    span up to ``1 / sqrt[rho (1 - rho)]`` satisfies the width-2 condition.
    """
    lo = float(lo)
    hi = float(hi)
    if lo > hi:
        raise ValueError(f"lo must be <= hi, got lo={lo!r}, hi={hi!r}.")
    t = threshold(n, min_count, log_eps)

    # Only all-zero values have a zero mean on such a range.
    if lo >= 0 or hi <= 0:
        return 0.0
    if math.isinf(t):
        return t

    span = next(hi - lo)
    rho = prev(-lo / span)
    if rho <= 0.5:
        scale = span / 2
    else:
        # The ideal span is 1 / sqrt[rho (1 - rho)], so scale by
        # span / ideal_span.
        scale = next(sqrt_up(rho * next(1 - rho)) * span)

    return mul_up(scale, t)
