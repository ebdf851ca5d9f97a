from __future__ import annotations

import math
from typing import List, Optional, Tuple

import numpy as np
import pandas as pd
from scipy.stats import norm

from mcs.constants import EQ, LE
from mcs.sequential.schema import Direction, MonitorConfig, MonitorResult
from mcs.threshold import threshold_range


def sum_boundaries(
    n: int,
    lo: float,
    hi: float,
    min_count: int,
    log_eps: float,
    direction: Direction = Direction.TWO_SIDED,
) -> Tuple[float, float]:
    """Time-uniform ``(upper, lower)`` boundaries for the running sum at n.

    Two-sided monitors split the false positive budget between the two
    asymmetric half-intervals; one-sided monitors spend all of it on their
    side and leave the other boundary infinite.
    """
    offset = EQ if direction == Direction.TWO_SIDED else LE
    upper = math.inf
    lower = -math.inf
    if direction in (Direction.TWO_SIDED, Direction.INCREASE):
        upper = threshold_range(n, min_count, lo, hi, log_eps + offset)
    if direction in (Direction.TWO_SIDED, Direction.DECREASE):
        # Negate the variate: the range becomes [-hi, -lo].
        lower = -threshold_range(n, min_count, -hi, -lo, log_eps + offset)
    return upper, lower


def _crosses(s: float, s_lower: float, upper: float, lower: float) -> bool:
    return s > upper or s_lower < lower


def _as_increments(values, lo: float, hi: float) -> np.ndarray:
    x = np.asarray(values, dtype=float).ravel()
    if len(x) == 0:
        raise ValueError("increments are empty")
    if not np.all(np.isfinite(x)):
        raise ValueError("increments must be finite")
    if np.any(x < lo) or np.any(x > hi):
        raise ValueError(f"increments fall outside the declared range [{lo}, {hi}]")
    return x


def run_monitor(increments, lo: float, hi: float, cfg: MonitorConfig, lower_increments=None) -> MonitorResult:
    """Compare the running sums against the confidence sequence after every observation.

    ``increments`` are tested against the upper boundary and
    ``lower_increments`` (default: the same values) against the lower one.
    The two only differ for quantile monitoring, where ties with the
    candidate value count towards the side that keeps the null valid.
    """
    cfg.validate()
    warnings: List[str] = []

    x = _as_increments(increments, lo, hi)
    x_lower = x if lower_increments is None else _as_increments(lower_increments, lo, hi)
    if len(x_lower) != len(x):
        raise ValueError("increments and lower_increments must have the same length")
    if not lo <= 0.0 <= hi:
        raise ValueError(f"range [{lo}, {hi}] must contain 0 for a zero-mean null")

    direction = cfg.direction
    log_eps = cfg.log_eps
    n_total = len(x)
    ns = np.arange(1, n_total + 1)

    sums = np.cumsum(x)
    lower_sums = np.cumsum(x_lower)
    bounds = [
        sum_boundaries(int(n), lo, hi, int(cfg.min_count), log_eps, direction=direction)
        for n in ns
    ]
    upper = np.array([b[0] for b in bounds], dtype=float)
    lower = np.array([b[1] for b in bounds], dtype=float)

    lt = pd.DataFrame(
        {
            "n": ns,
            "increment": x,
            "sum": sums,
            "mean": sums / ns,
            "lower_increment": x_lower,
            "lower_sum": lower_sums,
            "boundary_upper": upper,
            "boundary_lower": lower,
            "mean_upper": upper / ns,
            "mean_lower": lower / ns,
        }
    )
    lt["crossed"] = [
        _crosses(float(sums[i]), float(lower_sums[i]), float(upper[i]), float(lower[i]))
        for i in range(n_total)
    ]

    stopped = False
    stop_n: Optional[int] = None
    stop_idx = n_total - 1
    crossed = np.flatnonzero(lt["crossed"].to_numpy(dtype=bool))
    if len(crossed):
        stopped = True
        stop_idx = int(crossed[0])
        stop_n = int(ns[stop_idx])

    if n_total < max(int(cfg.min_count), 2):
        warnings.append(
            f"n={n_total} < min_count={max(int(cfg.min_count), 2)}: the confidence sequence has not started yet."
        )

    decision = "reject" if stopped else "continue"
    final_row = lt.iloc[stop_idx]
    n_final = int(final_row["n"])
    final_sum = float(final_row["sum"])
    final_lower_sum = float(final_row["lower_sum"])
    final_mean = float(final_row["mean"])

    seen = x[: n_final]
    final_ci: Optional[Tuple[float, float]] = None
    if n_final > 1:
        se = float(np.std(seen, ddof=1) / np.sqrt(n_final))
        if np.isfinite(se) and se > 0:
            two_sided = direction == Direction.TWO_SIDED
            zcrit_fixed = float(norm.ppf(1 - cfg.alpha / 2)) if two_sided else float(norm.ppf(1 - cfg.alpha))
            final_ci = (float(final_mean - zcrit_fixed * se), float(final_mean + zcrit_fixed * se))

    null_band: Optional[Tuple[float, float]] = (float(final_row["mean_lower"]), float(final_row["mean_upper"]))

    return MonitorResult(
        stopped=stopped,
        stop_n=stop_n,
        decision=decision,
        final_sum=final_sum,
        final_lower_sum=final_lower_sum,
        final_mean=final_mean,
        final_ci=final_ci,
        null_band=null_band,
        look_table=lt,
        diagnostics={
            "mode": "martingale_confidence_sequence",
            "direction": str(direction.value),
            "alpha": float(cfg.alpha),
            "log_eps": float(log_eps),
            "min_count": int(cfg.min_count),
            "range": [float(lo), float(hi)],
            "n_total": int(n_total),
        },
        warnings=warnings,
    )
