import math
import struct

import pytest

from mcs import constants
from mcs.constants import EQ, LE, check_constants, verify_constants


def _flip_low_bit(x: float) -> float:
    bits = struct.unpack("=q", struct.pack("=d", x))[0]
    return struct.unpack("=d", struct.pack("=q", bits ^ 1))[0]


def test_constants_ok():
    assert check_constants() == 0
    verify_constants()


def test_constant_values():
    assert LE == 0.0
    assert math.copysign(1.0, LE) == 1.0
    assert EQ == -0.6931471805599454
    # Rounded away from 0.
    assert EQ <= -math.log(2)
    assert constants.MINUS_HALF_LOG_LOG_2_UP >= -0.5 * math.log(math.log(2))


@pytest.mark.parametrize(
    "name,bit",
    [("LE", 0), ("EQ", 1), ("MINUS_HALF_LOG_LOG_2_UP", 2)],
)
def test_corrupted_constant_sets_its_bit(monkeypatch, name, bit):
    monkeypatch.setattr(constants, name, _flip_low_bit(getattr(constants, name)))
    assert check_constants() == 1 << bit
    with pytest.raises(RuntimeError, match=name):
        verify_constants()


def test_negative_zero_is_not_le(monkeypatch):
    monkeypatch.setattr(constants, "LE", -0.0)
    assert check_constants() == 1


def test_nan_never_matches(monkeypatch):
    monkeypatch.setattr(constants, "EQ", math.nan)
    monkeypatch.setattr(constants, "MINUS_HALF_LOG_LOG_2_UP", math.nan)
    assert check_constants() == 0b110
