from __future__ import annotations

import argparse
import sys

from mcs.cli.commands.check_constants import cmd_check_constants
from mcs.cli.commands.monitor import cmd_monitor
from mcs.cli.commands.quantile import cmd_quantile
from mcs.cli.commands.run_config import cmd_run_config
from mcs.cli.commands.simulate import cmd_simulate
from mcs.cli.commands.threshold import cmd_threshold
from mcs.cli.commands.validate import cmd_validate
from mcs.cli.commands.version import cmd_version
from mcs.constants import verify_constants


def _add_confidence_args(sp: argparse.ArgumentParser) -> None:
    sp.add_argument("--alpha", type=float, default=0.05, help="False positive rate (default: 0.05).")
    sp.add_argument("--log-eps", dest="log_eps", type=float, default=None, help="Natural log of the false positive rate; overrides --alpha.")
    sp.add_argument("--min-count", dest="min_count", type=int, default=32, help="First n at which thresholds are finite (default: 32).")


def _add_monitor_args(sp: argparse.ArgumentParser) -> None:
    sp.add_argument("--alpha", type=float, default=0.05)
    sp.add_argument("--min-count", dest="min_count", type=int, default=32)
    sp.add_argument("--direction", default="two_sided", choices=["two_sided", "increase", "decrease"])
    sp.add_argument("--out", default=None, help="Bundle directory (default: results/<command>/<timestamp>).")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="mcs", description="Martingale confidence sequences CLI.")
    sub = p.add_subparsers(dest="command", required=True)

    sp = sub.add_parser("version", help="Print installed package version.")
    sp.set_defaults(func=cmd_version)

    sp = sub.add_parser("check-constants", help="Run the constant self-check and print the bitmask.")
    sp.set_defaults(func=cmd_check_constants)

    sp = sub.add_parser("threshold", help="Confidence sequence thresholds for running sums.")
    sp.add_argument("--n", required=True, help="Comma-separated observation counts, e.g. 100,1000.")
    _add_confidence_args(sp)
    sp.add_argument("--two-sided", dest="two_sided", action="store_true", help="Half-width of a two-sided interval.")
    sp.add_argument("--span", type=float, default=None, help="Width of the value range (default: 2).")
    sp.add_argument("--lo", type=float, default=None, help="Lower end of an explicit value range.")
    sp.add_argument("--hi", type=float, default=None, help="Upper end of an explicit value range.")
    sp.add_argument("--out", default=None)
    sp.set_defaults(func=cmd_threshold)

    sp = sub.add_parser("quantile", help="Rank (and value) confidence intervals for a quantile.")
    sp.add_argument("--q", type=float, required=True, help="Quantile in [0, 1].")
    sp.add_argument("--n", default=None, help="Comma-separated sample sizes.")
    sp.add_argument("--input", default=None, help="CSV with observations; bounds are reported as values.")
    sp.add_argument("--col", default="x")
    sp.add_argument("--asymmetric", action="store_true", help="Use the tighter one-sided slops.")
    _add_confidence_args(sp)
    sp.add_argument("--out", default=None)
    sp.set_defaults(func=cmd_quantile)

    sp = sub.add_parser("validate", help="Validate an input CSV against a schema.")
    sp.add_argument("--input", required=True)
    sp.add_argument("--schema", default="mean", choices=["mean", "difference", "quantile"])
    sp.add_argument("--value-col", dest="value_col", default="x")
    sp.add_argument("--y", default="y")
    sp.add_argument("--z", default="z")
    sp.add_argument("--lo", type=float, default=None)
    sp.add_argument("--hi", type=float, default=None)
    sp.add_argument("--out", default=None)
    sp.set_defaults(func=cmd_validate)

    sp = sub.add_parser("monitor", help="Monitor a bounded stream from a CSV.")
    sp.add_argument("--input", required=True)
    sp.add_argument("--kind", default="mean", choices=["mean", "difference", "quantile"])
    sp.add_argument("--value-col", dest="value_col", default="x")
    sp.add_argument("--y", default=None)
    sp.add_argument("--z", default=None)
    sp.add_argument("--lo", type=float, default=-1.0)
    sp.add_argument("--hi", type=float, default=1.0)
    sp.add_argument("--null-mean", dest="null_mean", type=float, default=0.0)
    sp.add_argument("--quantile", type=float, default=None)
    sp.add_argument("--quantile-value", dest="quantile_value", type=float, default=None)
    sp.add_argument("--timestamp-col", dest="timestamp_col", default=None)
    _add_monitor_args(sp)
    sp.set_defaults(func=cmd_monitor)

    sp = sub.add_parser("simulate", help="Simulate a bounded stream and monitor it.")
    sp.add_argument("--n", type=int, default=20000)
    sp.add_argument("--lo", type=float, default=-1.0)
    sp.add_argument("--hi", type=float, default=1.0)
    sp.add_argument("--null-mean", dest="null_mean", type=float, default=0.0)
    sp.add_argument("--effect", type=float, default=0.0)
    sp.add_argument("--distribution", default="two_point", choices=["two_point", "beta"])
    sp.add_argument("--concentration", type=float, default=4.0)
    sp.add_argument("--seed", type=int, default=42, help="Seed of the simulated stream.")
    _add_monitor_args(sp)
    sp.set_defaults(func=cmd_simulate)

    sp = sub.add_parser("run-config", help="Run a command described by a YAML config.")
    sp.add_argument("--config", required=True)
    sp.set_defaults(func=cmd_run_config)

    return p


def main(argv: list[str] | None = None) -> int:
    p = build_parser()
    args = p.parse_args(argv)
    try:
        # check-constants reports the mask itself.
        if args.func is not cmd_check_constants:
            verify_constants()
        return int(args.func(args))
    except (RuntimeError, ValueError, FileNotFoundError) as e:
        print(f"[mcs][error] {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
