from __future__ import annotations

import sys

from mcs.constants import check_constants


def cmd_check_constants(args) -> int:
    mask = check_constants()
    print(mask)
    if mask:
        print(f"[mcs][error] constant self-check failed (mask={mask})", file=sys.stderr)
        return 2
    return 0
