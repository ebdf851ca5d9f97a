from __future__ import annotations

import warnings

__all__ = ["ContractViolationWarning", "warn_contract", "as_count"]

_U64_MAX = (1 << 64) - 1


class ContractViolationWarning(RuntimeWarning):
    """A documented precondition was violated; a fallback value is returned.

    Escalate with ``warnings.simplefilter("error", ContractViolationWarning)``.
    """


def warn_contract(msg: str) -> None:
    warnings.warn(msg, ContractViolationWarning, stacklevel=3)


def as_count(value, name: str) -> int:
    """Validate an observation count (an unsigned 64-bit integer)."""
    if isinstance(value, bool):
        raise ValueError(f"{name} must be an integer, got bool.")
    try:
        count = int(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"{name} must be an integer, got {value!r}.") from e
    if count != value:
        raise ValueError(f"{name} must be an integer, got {value!r}.")
    if count < 0 or count > _U64_MAX:
        raise ValueError(f"{name} must be in [0, 2**64 - 1], got {count}.")
    return count
