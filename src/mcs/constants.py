"""Process-wide numeric constants and their bit-level self-check."""

from __future__ import annotations

import struct

__all__ = ["LE", "EQ", "MINUS_HALF_LOG_LOG_2_UP", "check_constants", "verify_constants"]

# Offset for the base case, a one-sided "<=" test.
LE = 0.0

# -log 2 rounded away from 0. Adding it to log_eps halves the false positive
# budget, which turns a one-sided threshold into the half-width of a
# two-sided interval.
EQ = -0.6931471805599454

# -1/2 log log 2, rounded up.
MINUS_HALF_LOG_LOG_2_UP = 0.1832564602908322

# (attribute name, raw sign-magnitude bits as a signed 64-bit integer), in
# mask-bit order.
_EXPECTED_BITS = (
    ("LE", 0),
    ("EQ", -4618953502541334032),
    ("MINUS_HALF_LOG_LOG_2_UP", 4595770530100767648),
)


def _raw_bits(x: float) -> int:
    return struct.unpack("=q", struct.pack("=d", x))[0]


def check_constants() -> int:
    """Return 0 if every constant has its exact expected bit pattern.

    Otherwise return a bitmask with bit i set for the i-th mismatching
    constant: bit 0 is `LE`, bit 1 is `EQ`, bit 2 is the internal
    `MINUS_HALF_LOG_LOG_2_UP`. Raw bits are compared, not values, so a
    NaN or a value off by one ULP cannot slip through.
    """
    mask = 0
    for index, (name, expected) in enumerate(_EXPECTED_BITS):
        if _raw_bits(globals()[name]) != expected:
            mask |= 1 << index
    return mask


def verify_constants() -> None:
    """Raise RuntimeError if `check_constants` reports any mismatch."""
    mask = check_constants()
    if mask:
        bad = [name for index, (name, _) in enumerate(_EXPECTED_BITS) if mask & (1 << index)]
        raise RuntimeError(f"Constant self-check failed (mask={mask}): {bad}")
