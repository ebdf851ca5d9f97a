"""Directed-rounding helpers for IEEE-754 doubles.

Every bound in this package is assembled from these primitives. Each one
returns a value on a known side of the exact result, so a composition of
them stays conservative end to end: `next*`/`*_up` never under-approximate,
`prev*`/`*_down` never over-approximate.

Floats are stepped one unit in the last place (ULP) at a time through an
integer encoding whose ordering matches the ordering of the floats.
"""

from __future__ import annotations

import math
import struct
import sys

__all__ = [
    "LIBM_ERROR_LIMIT",
    "float_bits",
    "bits_float",
    "next_k",
    "prev_k",
    "next",
    "prev",
    "mul_up",
    "log_up",
    "log2_down",
    "sqrt_up",
]

# Assume libm's log and log2 are off by less than 4 ULPs.
LIBM_ERROR_LIMIT = 4

_MAGNITUDE_MASK = (1 << 63) - 1


def float_bits(x: float) -> int:
    """Encode x as an integer that sorts like the float.

    The raw sign-magnitude pattern is read as a signed 64-bit integer; for
    negative values the magnitude bits are flipped, which turns the encoding
    into two's complement. -0.0 maps to -1 and 0.0 to 0, so adding or
    subtracting 1 always moves to the adjacent representable double.
    """
    bits = struct.unpack("=q", struct.pack("=d", x))[0]
    # bits >> 63 is -1 for negative values and 0 otherwise.
    return bits ^ ((bits >> 63) & _MAGNITUDE_MASK)


def bits_float(bits: int) -> float:
    """Inverse of `float_bits`."""
    bits ^= (bits >> 63) & _MAGNITUDE_MASK
    return struct.unpack("=d", struct.pack("=q", bits))[0]


_INF_BITS = float_bits(math.inf)
_NEG_INF_BITS = float_bits(-math.inf)


def next_k(x: float, k: int) -> float:
    """Step x up by k ULPs, saturating at +inf. NaN stays NaN."""
    if math.isnan(x):
        return x
    return bits_float(min(float_bits(x) + k, _INF_BITS))


def prev_k(x: float, k: int) -> float:
    """Step x down by k ULPs, saturating at -inf. NaN stays NaN."""
    if math.isnan(x):
        return x
    return bits_float(max(float_bits(x) - k, _NEG_INF_BITS))


def next(x: float) -> float:
    return next_k(x, 1)


def prev(x: float) -> float:
    return prev_k(x, 1)


def mul_up(a: float, b: float) -> float:
    """Upper bound on a * b.

    Scaling by a power of two is exact unless the result leaves the normal
    range, so only inexact products are stepped up.
    """
    product = a * b
    if math.isinf(product) or math.isnan(product):
        return product
    if abs(product) >= sys.float_info.min and (math.frexp(a)[0] == 0.5 or math.frexp(b)[0] == 0.5):
        return product
    return next(product)


def log_up(x: float) -> float:
    """Upper bound on the natural log of x."""
    return next_k(math.log(x), LIBM_ERROR_LIMIT)


def log2_down(x: float) -> float:
    """Lower bound on the base-2 log of x."""
    return prev_k(math.log2(x), LIBM_ERROR_LIMIT)


def sqrt_up(x: float) -> float:
    # sqrt is correctly rounded, one ULP covers it.
    return next(math.sqrt(x))
