from __future__ import annotations

from typing import Any

import numpy as np
import pandas as pd

from mcs.cli.bundle import prepare_out_dir, write_results_json, write_run_meta, write_table
from mcs.cli.parsing import parse_int_csv, resolve_log_eps
from mcs.io.reader import read_csv
from mcs.quantile import (
    quantile_rank_bounds,
    quantile_slop,
    quantile_slop_hi,
    quantile_slop_lo,
    quantile_value_bounds,
)


def build_quantile_table(q: float, ns: list[int], min_count: int, log_eps: float, *, asymmetric: bool) -> pd.DataFrame:
    rows: list[dict[str, Any]] = []
    for n in ns:
        rank_lo, rank_hi = quantile_rank_bounds(q, n, min_count, log_eps, asymmetric=asymmetric)
        rows.append(
            {
                "n": int(n),
                "slop": quantile_slop(q, n, min_count, log_eps),
                "slop_lo": quantile_slop_lo(q, n, min_count, log_eps),
                "slop_hi": quantile_slop_hi(q, n, min_count, log_eps),
                "rank_lo": rank_lo,
                "rank_hi": rank_hi,
            }
        )
    return pd.DataFrame(rows)


def cmd_quantile(args) -> int:
    q = float(args.q)
    min_count = int(getattr(args, "min_count", 32))
    log_eps = resolve_log_eps(args)
    asymmetric = bool(getattr(args, "asymmetric", False))

    value_bounds = None
    if getattr(args, "input", None):
        col = str(getattr(args, "col", None) or "x")
        df = read_csv(args.input)
        if col not in df.columns:
            raise ValueError(f"Missing required columns: {[col]}. Present columns: {list(df.columns)}")
        values = pd.to_numeric(df[col], errors="coerce").to_numpy(dtype=float)
        values = values[np.isfinite(values)]
        ns = [int(len(values))]
        value_bounds = quantile_value_bounds(values, q, min_count, log_eps, asymmetric=asymmetric)
    else:
        ns = parse_int_csv(getattr(args, "n", "") or "")
        if not ns:
            raise ValueError("provide --n or --input")

    table = build_quantile_table(q, ns, min_count, log_eps, asymmetric=asymmetric)
    print(table.to_string(index=False))
    if value_bounds is not None:
        print(f"value interval: [{value_bounds[0]:.6g}, {value_bounds[1]:.6g}]")

    if getattr(args, "out", None):
        out_dir = prepare_out_dir(args.out, command="quantile")
        write_run_meta(out_dir, vars(args), extra={"command": "quantile"})
        rel = write_table(out_dir, "quantile_bounds", table)
        payload: dict[str, Any] = {
            "command": "quantile",
            "inputs": {
                "q": q,
                "n": ns,
                "min_count": min_count,
                "log_eps": log_eps,
                "asymmetric": asymmetric,
                "input": getattr(args, "input", None),
            },
            "estimates": {
                "rows": table.to_dict(orient="records"),
                "value_bounds": value_bounds,
            },
            "artifacts": {"tables": [rel]},
        }
        write_results_json(out_dir, payload)
    return 0
