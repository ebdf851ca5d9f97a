from __future__ import annotations

from typing import Optional

import numpy as np
import pandas as pd

from mcs.io.schema import DatasetSchema


def read_csv(path: str) -> pd.DataFrame:
    return pd.read_csv(path)


def validate_df(
    df: pd.DataFrame,
    schema: DatasetSchema,
    lo: Optional[float] = None,
    hi: Optional[float] = None,
) -> list[str]:
    errors: list[str] = []

    cols = set(df.columns)
    for c in schema.required:
        if c.name not in cols:
            errors.append(f"Missing required column: {c.name}")

    if errors:
        return errors

    for c in schema.required:
        if c.dtype != "float":
            continue
        raw = df[c.name]
        values = pd.to_numeric(raw, errors="coerce")
        bad = int((values.isna() & raw.notna()).sum())
        if bad:
            errors.append(f"Column '{c.name}' has {bad} non-numeric value(s).")
        x = values.to_numpy(dtype=float)
        x = x[np.isfinite(x)]
        if c.bounded and lo is not None and bool(np.any(x < float(lo))):
            errors.append(f"Column '{c.name}' has {int(np.sum(x < float(lo)))} value(s) below lo={lo}.")
        if c.bounded and hi is not None and bool(np.any(x > float(hi))):
            errors.append(f"Column '{c.name}' has {int(np.sum(x > float(hi)))} value(s) above hi={hi}.")

    return errors
