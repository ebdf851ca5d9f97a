from __future__ import annotations

from dataclasses import dataclass
from typing import List


@dataclass(frozen=True)
class ColumnSpec:
    name: str
    dtype: str  # "float", "str", "datetime"
    bounded: bool = False  # must lie in the declared range


@dataclass(frozen=True)
class DatasetSchema:
    name: str
    required: List[ColumnSpec]


def get_schema(name: str, *, value_col: str = "x", y_col: str = "y", z_col: str = "z") -> DatasetSchema:
    name = name.strip().lower()

    if name in ("mean", "single"):
        return DatasetSchema(name="mean", required=[ColumnSpec(value_col, "float", bounded=True)])

    if name in ("difference", "paired"):
        return DatasetSchema(
            name="difference",
            required=[
                ColumnSpec(y_col, "float", bounded=True),
                ColumnSpec(z_col, "float", bounded=True),
            ],
        )

    if name == "quantile":
        # Any real value; only its position relative to the candidate matters.
        return DatasetSchema(name="quantile", required=[ColumnSpec(value_col, "float")])

    raise ValueError(f"Unknown schema: {name}")
