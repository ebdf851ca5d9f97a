from __future__ import annotations

import sys
from pathlib import Path
from types import SimpleNamespace
from typing import Any

import yaml

from mcs.cli.commands.monitor import cmd_monitor
from mcs.cli.commands.quantile import cmd_quantile
from mcs.cli.commands.simulate import cmd_simulate
from mcs.cli.commands.threshold import cmd_threshold
from mcs.cli.commands.validate import cmd_validate


def _fail(msg: str) -> int:
    print(f"[mcs][error] {msg}", file=sys.stderr)
    return 2


def _as_args(d: dict[str, Any]) -> SimpleNamespace:
    # cmd_* functions expect attribute access (args.foo)
    return SimpleNamespace(**d)


def _load_yaml(path: str) -> dict[str, Any]:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Config not found: {path}")
    data = yaml.safe_load(p.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError("Config root must be a mapping (YAML dict).")
    return data


def _csv(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        return ",".join(str(int(v)) for v in value)
    return str(value)


def _common(params: dict[str, Any]) -> dict[str, Any]:
    return {
        "alpha": float(params.get("alpha", 0.05)),
        "log_eps": params.get("log_eps"),
        "min_count": int(params.get("min_count", 32)),
    }


def cmd_run_config(args) -> int:
    cfg_path = str(args.config)
    cfg = _load_yaml(cfg_path)

    command = str(cfg.get("command", "")).strip()
    if not command:
        return _fail("Missing required field: command")

    input_path = cfg.get("input", None)
    out_dir = cfg.get("out", None)

    params = cfg.get("params", {}) or {}
    if not isinstance(params, dict):
        return _fail("Field `params` must be a mapping (YAML dict).")

    # Build args-like dict for underlying command
    base_args: dict[str, Any] = {"out": out_dir}

    if command == "threshold":
        merged = {
            **base_args,
            **_common(params),
            "n": _csv(params.get("n")),
            "two_sided": bool(params.get("two_sided", False)),
            "span": params.get("span"),
            "lo": params.get("lo"),
            "hi": params.get("hi"),
        }
        if not merged["n"]:
            return _fail("threshold requires params.n")
        return int(cmd_threshold(_as_args(merged)))

    if command == "quantile":
        merged = {
            **base_args,
            **_common(params),
            "q": params.get("q"),
            "n": _csv(params.get("n")),
            "input": input_path,
            "col": params.get("col", "x"),
            "asymmetric": bool(params.get("asymmetric", False)),
        }
        if merged["q"] is None:
            return _fail("quantile requires params.q")
        return int(cmd_quantile(_as_args(merged)))

    if command == "validate":
        if input_path is None:
            return _fail("validate requires `input`")
        merged = {
            **base_args,
            "input": input_path,
            "schema": params.get("schema", cfg.get("schema", "mean")),
            "value_col": params.get("value_col", "x"),
            "y": params.get("y", "y"),
            "z": params.get("z", "z"),
            "lo": params.get("lo"),
            "hi": params.get("hi"),
        }
        return int(cmd_validate(_as_args(merged)))

    if command == "monitor":
        if input_path is None:
            return _fail("monitor requires `input`")
        merged = {
            **base_args,
            **_common(params),
            "input": input_path,
            "kind": params.get("kind", "mean"),
            "value_col": params.get("value_col", "x"),
            "y": params.get("y"),
            "z": params.get("z"),
            "lo": float(params.get("lo", -1.0)),
            "hi": float(params.get("hi", 1.0)),
            "null_mean": float(params.get("null_mean", 0.0)),
            "quantile": params.get("quantile"),
            "quantile_value": params.get("quantile_value"),
            "timestamp_col": params.get("timestamp_col"),
            "direction": params.get("direction", "two_sided"),
        }
        return int(cmd_monitor(_as_args(merged)))

    if command == "simulate":
        merged = {
            **base_args,
            **_common(params),
            "n": int(params.get("n", 20000)),
            "lo": float(params.get("lo", -1.0)),
            "hi": float(params.get("hi", 1.0)),
            "null_mean": float(params.get("null_mean", 0.0)),
            "effect": float(params.get("effect", 0.0)),
            "distribution": params.get("distribution", "two_point"),
            "concentration": float(params.get("concentration", 4.0)),
            "direction": params.get("direction", "two_sided"),
            "seed": int(params.get("seed", 42)),
        }
        return int(cmd_simulate(_as_args(merged)))

    return _fail(f"Unknown command: {command}")
