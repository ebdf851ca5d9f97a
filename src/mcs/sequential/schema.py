from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd


class Direction(str, Enum):
    TWO_SIDED = "two_sided"
    INCREASE = "increase"  # mean > 0
    DECREASE = "decrease"  # mean < 0


class MetricKind(str, Enum):
    MEAN = "mean"
    DIFFERENCE = "difference"
    QUANTILE = "quantile"


@dataclass(frozen=True)
class MonitorSpec:
    """Input specification: which columns, and the static range of the data."""

    kind: MetricKind = MetricKind.MEAN

    # Mean / quantile metric
    value_col: Optional[str] = "x"

    # Difference metric (y - z)
    y_col: Optional[str] = None
    z_col: Optional[str] = None

    # Declared range of each observed value.
    lo: float = -1.0
    hi: float = 1.0

    # Mean under the null hypothesis (mean metric only).
    null_mean: float = 0.0

    # Quantile metric: is `quantile_value` the `quantile`-quantile?
    quantile: Optional[float] = None
    quantile_value: Optional[float] = None

    timestamp_col: Optional[str] = None

    def validate(self) -> None:
        if not (math.isfinite(self.lo) and math.isfinite(self.hi)):
            raise ValueError("MonitorSpec: lo and hi must be finite.")
        if self.lo > self.hi:
            raise ValueError(f"MonitorSpec: lo={self.lo} must be <= hi={self.hi}.")
        if self.kind == MetricKind.MEAN:
            if not self.value_col:
                raise ValueError("MonitorSpec.value_col is required for mean monitoring")
            if not self.lo <= self.null_mean <= self.hi:
                raise ValueError(f"MonitorSpec: null_mean={self.null_mean} must lie in [lo, hi].")
        elif self.kind == MetricKind.DIFFERENCE:
            if not self.y_col or not self.z_col:
                raise ValueError("MonitorSpec.y_col and z_col are required for difference monitoring")
        elif self.kind == MetricKind.QUANTILE:
            if not self.value_col:
                raise ValueError("MonitorSpec.value_col is required for quantile monitoring")
            if self.quantile is None or self.quantile_value is None:
                raise ValueError("MonitorSpec.quantile and quantile_value are required for quantile monitoring")
            if not 0.0 < float(self.quantile) < 1.0:
                raise ValueError("MonitorSpec.quantile must be in (0, 1).")


@dataclass(frozen=True)
class MonitorConfig:
    alpha: float = 0.05
    min_count: int = 32
    direction: Direction = Direction.TWO_SIDED

    @property
    def log_eps(self) -> float:
        return math.log(self.alpha)

    def validate(self) -> None:
        if not 0.0 < float(self.alpha) <= 1.0:
            raise ValueError("alpha must be in (0, 1].")
        if int(self.min_count) < 0:
            raise ValueError("min_count must be >= 0.")


@dataclass
class MonitorResult:
    stopped: bool
    stop_n: Optional[int]
    decision: str

    final_sum: Optional[float]
    final_lower_sum: Optional[float]
    final_mean: Optional[float]
    final_ci: Optional[Tuple[float, float]]
    null_band: Optional[Tuple[float, float]]

    look_table: pd.DataFrame
    diagnostics: Dict[str, Any] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["look_table"] = self.look_table.to_dict(orient="list") if self.look_table is not None else None
        return d


def ensure_columns(df: pd.DataFrame, cols: List[str]) -> None:
    missing = [c for c in cols if c not in df.columns]
    if missing:
        raise ValueError(f"Missing required columns: {missing}. Present columns: {list(df.columns)}")


def required_columns(spec: MonitorSpec) -> List[str]:
    if spec.kind == MetricKind.DIFFERENCE:
        return [str(spec.y_col), str(spec.z_col)]
    return [str(spec.value_col)]


def sort_for_sequential(df: pd.DataFrame, timestamp_col: Optional[str]) -> pd.DataFrame:
    out = df.copy()
    if timestamp_col and timestamp_col in out.columns:
        out[timestamp_col] = pd.to_datetime(out[timestamp_col], errors="coerce")
        out = out.sort_values(timestamp_col, kind="mergesort")
    return out.reset_index(drop=True)
