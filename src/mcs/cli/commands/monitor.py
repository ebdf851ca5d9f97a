from __future__ import annotations

from pathlib import Path
from typing import Any

import pandas as pd

from mcs.cli.bundle import (
    prepare_out_dir,
    save_plot,
    write_report_md,
    write_results_json,
    write_run_meta,
    write_table,
)
from mcs.io.reader import read_csv
from mcs.sequential import (
    Direction,
    MetricKind,
    MonitorConfig,
    MonitorResult,
    MonitorSpec,
    build_increments,
    run_monitor,
)
from mcs.sequential.reporting import make_monitor_plots, render_monitor_md


def config_from_args(args) -> MonitorConfig:
    direction = str(getattr(args, "direction", "two_sided"))
    if direction not in {"two_sided", "increase", "decrease"}:
        raise ValueError("--direction must be two_sided|increase|decrease")
    return MonitorConfig(
        alpha=float(getattr(args, "alpha", 0.05)),
        min_count=int(getattr(args, "min_count", 32)),
        direction=Direction(direction),
    )


def monitor_frame(df: pd.DataFrame, spec: MonitorSpec, cfg: MonitorConfig) -> MonitorResult:
    upper, lower, lo, hi, warn_prep = build_increments(df, spec)
    res = run_monitor(upper, lo, hi, cfg, lower_increments=lower)
    res.warnings = list(warn_prep) + list(res.warnings)
    return res


def write_monitor_bundle(
    out_dir: Path,
    res: MonitorResult,
    spec: MonitorSpec,
    cfg: MonitorConfig,
    *,
    command: str,
    inputs: dict[str, Any],
    artifacts: dict[str, Any] | None = None,
) -> None:
    artifacts = dict(artifacts or {})
    artifacts.setdefault("report_md", "report.md")
    artifacts.setdefault("plots", [])
    artifacts.setdefault("tables", [])
    artifacts["tables"].append(write_table(out_dir, "look_table", res.look_table))

    plots = make_monitor_plots(res)
    for name, fig in plots.items():
        artifacts["plots"].append(save_plot(out_dir, name, fig))

    report = render_monitor_md(res, cfg, spec)

    payload: dict[str, Any] = {
        "command": command,
        "inputs": inputs,
        "estimates": {
            "decision": res.decision,
            "stopped": res.stopped,
            "stop_n": res.stop_n,
            "final_sum": res.final_sum,
            "final_lower_sum": res.final_lower_sum,
            "final_mean": res.final_mean,
            "final_ci": res.final_ci,
            "null_band": res.null_band,
        },
        "diagnostics": res.diagnostics,
        "warnings": res.warnings,
        "artifacts": artifacts,
    }

    write_results_json(out_dir, payload)
    write_report_md(out_dir, report)


def cmd_monitor(args) -> int:
    df = read_csv(args.input)

    kind = str(getattr(args, "kind", "mean"))
    if kind not in {"mean", "difference", "quantile"}:
        raise ValueError("--kind must be mean|difference|quantile")

    q = getattr(args, "quantile", None)
    qv = getattr(args, "quantile_value", None)
    spec = MonitorSpec(
        kind=MetricKind(kind),
        value_col=str(getattr(args, "value_col", None) or "x"),
        y_col=str(getattr(args, "y")) if getattr(args, "y", None) else None,
        z_col=str(getattr(args, "z")) if getattr(args, "z", None) else None,
        lo=float(getattr(args, "lo", -1.0)),
        hi=float(getattr(args, "hi", 1.0)),
        null_mean=float(getattr(args, "null_mean", 0.0)),
        quantile=float(q) if q is not None else None,
        quantile_value=float(qv) if qv is not None else None,
        timestamp_col=str(getattr(args, "timestamp_col")) if getattr(args, "timestamp_col", None) else None,
    )
    cfg = config_from_args(args)

    res = monitor_frame(df, spec, cfg)

    out_dir = prepare_out_dir(getattr(args, "out", None), command="monitor")
    write_run_meta(out_dir, vars(args), extra={"command": "monitor"})

    inputs = {
        "input": args.input,
        "kind": spec.kind.value,
        "value_col": spec.value_col,
        "y": spec.y_col,
        "z": spec.z_col,
        "lo": spec.lo,
        "hi": spec.hi,
        "null_mean": spec.null_mean,
        "quantile": spec.quantile,
        "quantile_value": spec.quantile_value,
        "alpha": cfg.alpha,
        "min_count": cfg.min_count,
        "direction": cfg.direction.value,
    }
    write_monitor_bundle(out_dir, res, spec, cfg, command="monitor", inputs=inputs)
    print(f"{res.decision} (stop_n={res.stop_n}) -> {out_dir}")
    return 0
