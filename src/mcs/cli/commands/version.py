from __future__ import annotations

from importlib.metadata import version, PackageNotFoundError

from mcs.cli.bundle import DIST_NAME


def cmd_version(args) -> int:
    try:
        v = version(DIST_NAME)
    except PackageNotFoundError:
        v = "unknown"
    print(v)
    return 0
