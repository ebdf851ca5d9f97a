from __future__ import annotations

from mcs.cli.bundle import prepare_out_dir, write_results_json, write_run_meta
from mcs.io.reader import read_csv, validate_df
from mcs.io.schema import get_schema


def cmd_validate(args) -> int:
    schema = get_schema(
        args.schema,
        value_col=str(getattr(args, "value_col", None) or "x"),
        y_col=str(getattr(args, "y", None) or "y"),
        z_col=str(getattr(args, "z", None) or "z"),
    )
    lo = getattr(args, "lo", None)
    hi = getattr(args, "hi", None)
    df = read_csv(args.input)
    errors = validate_df(df, schema, lo=lo, hi=hi)

    if getattr(args, "out", None):
        out_dir = prepare_out_dir(args.out, command="validate")
        write_run_meta(out_dir, vars(args), extra={"command": "validate"})
        write_results_json(
            out_dir,
            {
                "command": "validate",
                "inputs": {"input": args.input, "schema": schema.name, "lo": lo, "hi": hi},
                "estimates": {"valid": not errors, "n_rows": int(len(df)), "errors": errors},
            },
        )

    if errors:
        print("INVALID")
        for e in errors:
            print("-", e)
        return 2

    print("OK")
    return 0
