from __future__ import annotations

import math
from typing import Optional


def parse_int_csv(s: str) -> list[int]:
    parts = [p.strip() for p in str(s).split(",") if p.strip()]
    return [int(p) for p in parts]


def resolve_log_eps(args) -> float:
    """`--log-eps` wins over `--alpha`."""
    log_eps: Optional[float] = getattr(args, "log_eps", None)
    if log_eps is not None:
        return float(log_eps)
    alpha = float(getattr(args, "alpha", 0.05))
    if not 0.0 < alpha <= 1.0:
        raise ValueError("--alpha must be in (0, 1]")
    return math.log(alpha)
