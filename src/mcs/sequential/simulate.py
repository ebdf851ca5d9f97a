from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import pandas as pd


@dataclass(frozen=True)
class BoundedSimConfig:
    n: int = 20000
    lo: float = -1.0
    hi: float = 1.0
    null_mean: float = 0.0
    effect: float = 0.0
    distribution: str = "two_point"  # two_point | beta
    concentration: float = 4.0
    seed: int = 42

    @property
    def mean(self) -> float:
        return float(self.null_mean) + float(self.effect)

    def validate(self) -> None:
        if int(self.n) <= 0:
            raise ValueError("n must be positive.")
        if not float(self.lo) < float(self.hi):
            raise ValueError("lo must be < hi.")
        if not float(self.lo) < self.mean < float(self.hi):
            raise ValueError("null_mean + effect must lie strictly inside (lo, hi).")
        if self.distribution not in {"two_point", "beta"}:
            raise ValueError("distribution must be one of: two_point, beta.")
        if float(self.concentration) <= 0:
            raise ValueError("concentration must be > 0.")


def simulate_bounded_stream(cfg: BoundedSimConfig) -> pd.DataFrame:
    """Generate a stream of i.i.d. values in [lo, hi] with mean null_mean + effect."""
    cfg.validate()
    rng = np.random.default_rng(int(cfg.seed))
    n = int(cfg.n)
    lo = float(cfg.lo)
    hi = float(cfg.hi)
    width = hi - lo
    p = (cfg.mean - lo) / width

    if cfg.distribution == "two_point":
        x = np.where(rng.random(n) < p, hi, lo)
    else:
        k = float(cfg.concentration)
        x = lo + width * rng.beta(p * k, (1.0 - p) * k, size=n)
        x = np.clip(x, lo, hi)

    return pd.DataFrame({"unit_id": np.arange(n), "timestamp": np.arange(n), "x": x.astype(float)})
