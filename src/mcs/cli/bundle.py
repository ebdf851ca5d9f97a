from __future__ import annotations

import json
import math
import os
import platform
import sys
from dataclasses import asdict, is_dataclass
from datetime import datetime, timezone
from enum import Enum
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Any

import matplotlib.pyplot as plt

DIST_NAME = "martingale-cs"

# Layout of a result bundle under --out.
RESULTS_JSON = "results.json"
RUN_META_JSON = "run_meta.json"
REPORT_MD = "report.md"
TABLES_DIR = "tables"
PLOTS_DIR = "plots"


def _safe_json(obj: Any) -> Any:
    """Convert results into strict JSON.

    NaN becomes null; infinite bounds become the strings "inf" / "-inf".
    """
    if obj is None or isinstance(obj, (bool, str)):
        return obj
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (list, tuple)):
        return [_safe_json(v) for v in obj]
    if isinstance(obj, dict):
        return {str(k): _safe_json(v) for k, v in obj.items()}
    if is_dataclass(obj):
        return _safe_json(asdict(obj))
    if isinstance(obj, Path):
        return obj.as_posix()
    if hasattr(obj, "item"):
        # numpy scalar
        obj = obj.item()
    if isinstance(obj, float):
        if math.isnan(obj):
            return None
        if math.isinf(obj):
            return "inf" if obj > 0 else "-inf"
        return obj
    if isinstance(obj, int):
        return obj
    if hasattr(obj, "__dict__"):
        return _safe_json(vars(obj))
    return str(obj)


def package_version() -> str | None:
    try:
        return version(DIST_NAME)
    except PackageNotFoundError:
        return None


def _artifact(rel: Path) -> str:
    # Artifact paths are stored relative to the bundle, with forward slashes.
    return rel.as_posix()


def prepare_out_dir(out: str | None, command: str) -> Path:
    """Create the bundle directory; defaults to results/<command>/<timestamp>."""
    if out is None or not str(out).strip():
        out_dir = Path("results") / command / datetime.now().strftime("%Y%m%d_%H%M%S")
    else:
        out_dir = Path(out)
    for sub in (TABLES_DIR, PLOTS_DIR):
        (out_dir / sub).mkdir(parents=True, exist_ok=True)
    return out_dir


def write_json(path: Path, payload: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    text = json.dumps(_safe_json(payload), ensure_ascii=False, indent=2)
    path.write_text(text + "\n", encoding="utf-8")


def write_run_meta(out_dir: Path, args: Any, extra: dict[str, Any] | None = None) -> None:
    """Record when, where and with what arguments a bundle was produced."""
    args_dict = dict(args) if isinstance(args, dict) else dict(vars(args))
    args_dict.pop("func", None)

    meta: dict[str, Any] = {
        "timestamp_utc": datetime.now(timezone.utc).replace(microsecond=0).isoformat(),
        "mcs_version": package_version(),
        "python_version": sys.version,
        "platform": {
            "system": platform.system(),
            "release": platform.release(),
            "machine": platform.machine(),
            "python_implementation": platform.python_implementation(),
        },
        "cwd": os.getcwd(),
        "args": args_dict,
    }
    if extra:
        meta["extra"] = extra
    write_json(out_dir / RUN_META_JSON, meta)


def write_results_json(out_dir: Path, payload: dict[str, Any]) -> None:
    write_json(out_dir / RESULTS_JSON, payload)


def write_report_md(out_dir: Path, text: str) -> None:
    (out_dir / REPORT_MD).write_text(text, encoding="utf-8")


def write_table(out_dir: Path, name: str, df) -> str:
    """Write tables/<name>.csv; returns its path for the artifacts list."""
    rel = Path(TABLES_DIR) / f"{name}.csv"
    (out_dir / rel).parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(out_dir / rel, index=False)
    return _artifact(rel)


def save_plot(out_dir: Path, name: str, fig, dpi: int = 140) -> str:
    """Save fig as plots/<name>.png, close it, and return its path."""
    rel = Path(PLOTS_DIR) / f"{name}.png"
    (out_dir / rel).parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(out_dir / rel, dpi=dpi, bbox_inches="tight")
    plt.close(fig)
    return _artifact(rel)
