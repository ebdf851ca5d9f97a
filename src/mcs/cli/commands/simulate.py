from __future__ import annotations

from typing import Any

from mcs.cli.bundle import prepare_out_dir, write_run_meta
from mcs.cli.commands.monitor import config_from_args, monitor_frame, write_monitor_bundle
from mcs.sequential import BoundedSimConfig, MetricKind, MonitorSpec, simulate_bounded_stream


def cmd_simulate(args) -> int:
    sim_cfg = BoundedSimConfig(
        n=int(getattr(args, "n", 20000)),
        lo=float(getattr(args, "lo", -1.0)),
        hi=float(getattr(args, "hi", 1.0)),
        null_mean=float(getattr(args, "null_mean", 0.0)),
        effect=float(getattr(args, "effect", 0.0)),
        distribution=str(getattr(args, "distribution", "two_point")),
        concentration=float(getattr(args, "concentration", 4.0)),
        seed=int(getattr(args, "seed", 42)),
    )
    df = simulate_bounded_stream(sim_cfg)

    cfg = config_from_args(args)
    spec = MonitorSpec(
        kind=MetricKind.MEAN,
        value_col="x",
        lo=sim_cfg.lo,
        hi=sim_cfg.hi,
        null_mean=sim_cfg.null_mean,
        timestamp_col="timestamp",
    )

    out_dir = prepare_out_dir(getattr(args, "out", None), command="simulate")
    write_run_meta(out_dir, vars(args), extra={"command": "simulate"})
    df.to_csv(out_dir / "data.csv", index=False)

    res = monitor_frame(df, spec, cfg)

    artifacts: dict[str, Any] = {"data": "data.csv"}
    inputs = {
        "sim_config": sim_cfg.__dict__,
        "alpha": cfg.alpha,
        "min_count": cfg.min_count,
        "direction": cfg.direction.value,
    }
    write_monitor_bundle(out_dir, res, spec, cfg, command="simulate", inputs=inputs, artifacts=artifacts)
    print(f"{res.decision} (stop_n={res.stop_n}) -> {out_dir}")
    return 0
