from __future__ import annotations

from typing import Dict

import numpy as np
from matplotlib.figure import Figure
import matplotlib.pyplot as plt

from mcs.sequential.schema import MetricKind, MonitorConfig, MonitorResult, MonitorSpec


def _interval_str(iv) -> str:
    if iv is None:
        return "(n/a)"
    return f"[{iv[0]:.6g}, {iv[1]:.6g}]"


def _metric_str(spec: MonitorSpec) -> str:
    if spec.kind == MetricKind.DIFFERENCE:
        return f"{spec.y_col} - {spec.z_col}"
    if spec.kind == MetricKind.QUANTILE:
        col, v = spec.value_col, spec.quantile_value
        return f"1[{col} <= {v}] (upper), 1[{col} < {v}] (lower) vs q={spec.quantile}"
    return f"{spec.value_col} - {spec.null_mean}"


def render_monitor_md(result: MonitorResult, cfg: MonitorConfig, spec: MonitorSpec) -> str:
    stop_str = f"Yes (n={result.stop_n})" if result.stopped else "No"
    mean_str = f"{result.final_mean:.6g}" if result.final_mean is not None else "(n/a)"
    sum_str = f"{result.final_sum:.6g}" if result.final_sum is not None else "(n/a)"
    lower_sum_str = f"{result.final_lower_sum:.6g}" if result.final_lower_sum is not None else "(n/a)"

    warn_block = ("- " + "\n- ".join(result.warnings)) if result.warnings else "(none)"

    notes = [
        "The boundaries form a Darling-Robbins confidence sequence: the running sum may be compared against "
        "them after every observation, and the probability of ever crossing under the null is at most alpha.",
        "Boundaries are rounded outwards at every step, so they are conservative despite floating-point error.",
        "The fixed CI is a classic normal-approximation interval at the final look. It is only valid for a "
        "sample size chosen in advance and is shown for comparison.",
    ]
    if spec.kind == MetricKind.QUANTILE:
        notes.append(
            "The candidate value v is a q-quantile iff P(X < v) <= q <= P(X <= v). The upper boundary tests "
            "1[X <= v], the lower boundary tests 1[X < v], so ties with v never count against the null. An "
            "`increase` alarm means v lies below the quantile; a `decrease` alarm means it lies above."
        )
    note_block = "\n".join([f"- {x}" for x in notes])

    return f"""# mcs monitor report

## Inputs
- metric: `{spec.kind.value}` (`{_metric_str(spec)}`)
- declared range: `[{spec.lo}, {spec.hi}]`
- direction: `{cfg.direction.value}`
- alpha: `{cfg.alpha}`
- min_count: `{cfg.min_count}`

## Decision
- stopped early: **{stop_str}**
- decision: **{result.decision}**
- running sum (upper test): `{sum_str}`
- running sum (lower test): `{lower_sum_str}`
- running mean: `{mean_str}`
- fixed (non-sequential) CI: `{_interval_str(result.final_ci)}`
- time-uniform null band on the mean: `{_interval_str(result.null_band)}`

## Notes
{note_block}

## Warnings
{warn_block}

## Artifacts
- tables/look_table.csv
- plots/sum_trajectory.png
- plots/mean_trajectory.png
"""


def _finite(series):
    return np.where(np.isfinite(series), series, np.nan)


def make_sum_trajectory_plot(result: MonitorResult) -> Figure:
    lt = result.look_table
    fig = plt.figure(figsize=(8, 4.5))
    ax = fig.add_subplot(111)
    x = lt["n"]
    ax.plot(x, lt["sum"], label="running sum")
    if not np.array_equal(lt["sum"].to_numpy(), lt["lower_sum"].to_numpy()):
        ax.plot(x, lt["lower_sum"], label="running sum (lower test)")
    ax.plot(x, _finite(lt["boundary_upper"]), linestyle="--", label="boundary")
    ax.plot(x, _finite(lt["boundary_lower"]), linestyle="--")
    if result.stop_n is not None:
        ax.axvline(result.stop_n, linewidth=1.0, color="red", label="stop")
    ax.axhline(0.0, linewidth=1.0)
    ax.set_title("Running sum vs. confidence sequence")
    ax.set_xlabel("n")
    ax.set_ylabel("sum")
    ax.legend(loc="best")
    fig.tight_layout()
    return fig


def make_mean_trajectory_plot(result: MonitorResult) -> Figure:
    lt = result.look_table
    fig = plt.figure(figsize=(8, 4.5))
    ax = fig.add_subplot(111)
    x = lt["n"]
    ax.plot(x, lt["mean"], label="running mean")
    ax.fill_between(x, _finite(lt["mean_lower"]), _finite(lt["mean_upper"]), alpha=0.2, label="null band")
    ax.axhline(0.0, linewidth=1.0)
    ax.set_title("Running mean trajectory")
    ax.set_xlabel("n")
    ax.set_ylabel("mean increment")
    ax.legend(loc="best")
    fig.tight_layout()
    return fig


def make_monitor_plots(result: MonitorResult) -> Dict[str, Figure]:
    return {
        "sum_trajectory": make_sum_trajectory_plot(result),
        "mean_trajectory": make_mean_trajectory_plot(result),
    }
