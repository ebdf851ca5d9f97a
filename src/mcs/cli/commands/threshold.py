from __future__ import annotations

from typing import Any

import pandas as pd

from mcs.cli.bundle import prepare_out_dir, write_results_json, write_run_meta, write_table
from mcs.cli.parsing import parse_int_csv, resolve_log_eps
from mcs.constants import EQ, LE
from mcs.threshold import threshold, threshold_range, threshold_span


def build_threshold_table(
    ns: list[int],
    min_count: int,
    log_eps: float,
    *,
    two_sided: bool = False,
    span: float | None = None,
    lo: float | None = None,
    hi: float | None = None,
) -> pd.DataFrame:
    """One row per n: the sum threshold (or upper/lower for an explicit range)."""
    log_eps_eff = log_eps + (EQ if two_sided else LE)
    rows: list[dict[str, Any]] = []
    for n in ns:
        row: dict[str, Any] = {"n": int(n)}
        if lo is not None and hi is not None:
            upper = threshold_range(n, min_count, lo, hi, log_eps_eff)
            lower = -threshold_range(n, min_count, -hi, -lo, log_eps_eff)
            row["upper"] = upper
            row["lower"] = lower
            row["mean_upper"] = upper / n if n > 0 else float("inf")
            row["mean_lower"] = lower / n if n > 0 else float("-inf")
        else:
            if span is None:
                t = threshold(n, min_count, log_eps_eff)
            else:
                t = threshold_span(n, min_count, span, log_eps_eff)
            row["threshold"] = t
            row["mean_threshold"] = t / n if n > 0 else float("inf")
        rows.append(row)
    return pd.DataFrame(rows)


def cmd_threshold(args) -> int:
    ns = parse_int_csv(args.n)
    if not ns:
        raise ValueError("--n must list at least one count")
    min_count = int(getattr(args, "min_count", 32))
    log_eps = resolve_log_eps(args)
    two_sided = bool(getattr(args, "two_sided", False))
    span = getattr(args, "span", None)
    lo = getattr(args, "lo", None)
    hi = getattr(args, "hi", None)
    if (lo is None) != (hi is None):
        raise ValueError("--lo and --hi must be given together")
    if span is not None and lo is not None:
        raise ValueError("use either --span or --lo/--hi")

    table = build_threshold_table(
        ns,
        min_count,
        log_eps,
        two_sided=two_sided,
        span=None if span is None else float(span),
        lo=None if lo is None else float(lo),
        hi=None if hi is None else float(hi),
    )
    print(table.to_string(index=False))

    if getattr(args, "out", None):
        out_dir = prepare_out_dir(args.out, command="threshold")
        write_run_meta(out_dir, vars(args), extra={"command": "threshold"})
        rel = write_table(out_dir, "thresholds", table)
        payload: dict[str, Any] = {
            "command": "threshold",
            "inputs": {
                "n": ns,
                "min_count": min_count,
                "log_eps": log_eps,
                "two_sided": two_sided,
                "span": span,
                "lo": lo,
                "hi": hi,
            },
            "estimates": table.to_dict(orient="records"),
            "artifacts": {"tables": [rel]},
        }
        write_results_json(out_dir, payload)
    return 0
