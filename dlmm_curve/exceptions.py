"""
Configuration and validation errors raised by the DLMM curve engine.

Every error carries the offending parameter name and value so the caller
can report it without re-parsing the message.
"""
from __future__ import annotations

from typing import Any


class DlmmConfigError(ValueError):
    """Base class for deterministic configuration/validation failures."""

    def __init__(self, param: str, value: Any, reason: str):
        self.param = param
        self.value = value
        super().__init__(f"{param}: {reason} (got {value!r})")


class InvalidGridParameter(DlmmConfigError):
    pass


class InvalidBinCount(DlmmConfigError):
    pass


class InvalidFeeCap(DlmmConfigError):
    pass


class InvalidPriceGuard(DlmmConfigError):
    pass


class InvalidCurveParameter(DlmmConfigError):
    pass


class InvalidPolicyParameter(DlmmConfigError):
    pass


class InvalidFeeParameter(DlmmConfigError):
    pass


class MissingCurveParameter(DlmmConfigError):
    def __init__(self, param: str, reason: str):
        super().__init__(param, None, reason)


class OrderingViolation(DlmmConfigError):
    pass


class NegativeAllocation(DlmmConfigError):
    """A curve produced ΔX_i < 0; raised by the verifier with the bin index."""

    def __init__(self, bin_index: int, value: float):
        self.bin_index = bin_index
        super().__init__(f"delta_x[{bin_index}]", value, "allocation must be >= 0")
