from __future__ import annotations

from typing import List, Tuple

import numpy as np
import pandas as pd

from mcs.sequential.schema import MetricKind, MonitorSpec, ensure_columns, required_columns, sort_for_sequential


def _numeric(df: pd.DataFrame, col: str) -> np.ndarray:
    return pd.to_numeric(df[col], errors="coerce").to_numpy(dtype=float)


def _check_range(name: str, x: np.ndarray, lo: float, hi: float) -> None:
    outside = int(np.sum((x < lo) | (x > hi)))
    if outside:
        raise ValueError(
            f"{outside} value(s) of {name!r} fall outside the declared range [{lo}, {hi}]; "
            "the bound is only valid for a static, known range."
        )


def increment_range(spec: MonitorSpec) -> Tuple[float, float]:
    """Range of the zero-mean (under the null) increments built from spec."""
    if spec.kind == MetricKind.MEAN:
        return float(spec.lo - spec.null_mean), float(spec.hi - spec.null_mean)
    if spec.kind == MetricKind.DIFFERENCE:
        return float(spec.lo - spec.hi), float(spec.hi - spec.lo)
    q = float(spec.quantile)
    return q - 1.0, q


def build_increments(
    df: pd.DataFrame, spec: MonitorSpec
) -> Tuple[np.ndarray, np.ndarray, float, float, List[str]]:
    """Turn an observation frame into increments with mean 0 under the null.

    Returns ``(upper, lower, lo, hi, warnings)``: the increments tested
    against the upper boundary, those tested against the lower boundary,
    and the static range ``[lo, hi]`` shared by both.

    * mean: ``x - null_mean`` on both sides
    * difference: ``y - z`` on both sides, y and z sharing the declared range
    * quantile: v is a q-quantile iff ``P(X < v) <= q <= P(X <= v)``. The
      upper side uses ``q - 1`` if ``x <= v`` else ``q`` (mean <= 0 under the
      null), the lower side ``q - 1`` if ``x < v`` else ``q`` (mean >= 0).
      The two differ only on observations equal to v.
    """
    spec.validate()
    warnings: List[str] = []
    if len(df) == 0:
        raise ValueError("input is empty")

    ensure_columns(df, required_columns(spec))
    ordered = sort_for_sequential(df, spec.timestamp_col)

    if spec.kind == MetricKind.DIFFERENCE:
        y = _numeric(ordered, str(spec.y_col))
        z = _numeric(ordered, str(spec.z_col))
        keep = np.isfinite(y) & np.isfinite(z)
        y, z = y[keep], z[keep]
        _check_range(str(spec.y_col), y, spec.lo, spec.hi)
        _check_range(str(spec.z_col), z, spec.lo, spec.hi)
        upper = y - z
        lower = upper
    else:
        raw = _numeric(ordered, str(spec.value_col))
        keep = np.isfinite(raw)
        raw = raw[keep]
        if spec.kind == MetricKind.MEAN:
            _check_range(str(spec.value_col), raw, spec.lo, spec.hi)
            upper = raw - float(spec.null_mean)
            lower = upper
        else:
            q = float(spec.quantile)
            v = float(spec.quantile_value)
            upper = np.where(raw <= v, q - 1.0, q)
            lower = np.where(raw < v, q - 1.0, q)

    dropped = int(np.sum(~keep))
    if dropped:
        warnings.append(f"dropped {dropped} row(s) with missing or non-finite values.")
    if len(upper) == 0:
        raise ValueError("no finite observations left after preprocessing")

    lo, hi = increment_range(spec)
    # Subtracting null_mean can round a boundary value just outside the range.
    upper = np.clip(upper, lo, hi).astype(float)
    lower = np.clip(lower, lo, hi).astype(float)
    return upper, lower, lo, hi, warnings
