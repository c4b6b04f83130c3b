"""
DLMM fee schedule, price-impact guards and the launch-phase surcharge policy.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import FrozenSet, Iterable

from .exceptions import InvalidFeeCap, InvalidFeeParameter, InvalidPolicyParameter, InvalidPriceGuard
from .utils import BPS_DENOM


# =============================================================================
# Fee schedule
# =============================================================================

@dataclass(frozen=True)
class FeeSchedule:
    """
    Fee model in decimal space (0.05 = 5%).

      • base fee      f_b = B · s
      • variable fee  f_v(va) = A · (va · s)^2
      • total         f(va) = min(f_b + f_v(va), max(max_fee_rate, 0))

    with s = bin_step_bps / 10_000, B = base_factor, A = variable_fee_control and
    va the volatility accumulator. The cap is a hard ceiling for any va.
    """
    base_factor: float
    bin_step_bps: float
    variable_fee_control: float
    max_fee_rate: float

    @property
    def step(self) -> float:
        return self.bin_step_bps / BPS_DENOM

    def base_fee_rate(self) -> float:
        return self.base_factor * self.step

    def variable_fee_rate(self, va: float) -> float:
        if self.variable_fee_control == 0.0:
            return 0.0
        # x * x overflows to inf where float ** raises
        x = va * self.step
        return self.variable_fee_control * x * x

    def total_fee_rate(self, va: float) -> float:
        cap = max(self.max_fee_rate, 0.0)
        total = self.base_fee_rate() + self.variable_fee_rate(va)
        # NaN compares false, so it falls through to the cap
        return total if total <= cap else cap


def validate_fee_cap(max_fee_rate: float) -> float:
    if not (0.0 <= max_fee_rate <= 1.0):
        raise InvalidFeeCap("max_fee_rate", max_fee_rate, "must be in [0, 1] decimal")
    return max_fee_rate


def validate_impact_bps(impact_bps: float) -> float:
    if not (0.0 <= impact_bps < BPS_DENOM):
        raise InvalidPriceGuard("price_guard_bps", impact_bps, "must be in [0, 10000)")
    return impact_bps


def validate_vol_accum(va: float) -> float:
    if not (math.isfinite(va) and va >= 0.0):
        raise InvalidFeeParameter("vol_accum", va, "must be finite and >= 0")
    return va


def min_price_sell_x_for_y(spot_price: float, max_price_impact_bps: float) -> float:
    """Selling X for Y: min_price = spot · 10000 / (10000 - impact_bps)."""
    validate_impact_bps(max_price_impact_bps)
    return spot_price * BPS_DENOM / (BPS_DENOM - max_price_impact_bps)


def min_price_sell_y_for_x(spot_price: float, max_price_impact_bps: float) -> float:
    """Selling Y for X: min_price = spot · (10000 - impact_bps) / 10000."""
    validate_impact_bps(max_price_impact_bps)
    return spot_price * (BPS_DENOM - max_price_impact_bps) / BPS_DENOM


# =============================================================================
# Launch-phase surcharge
# =============================================================================

@dataclass(frozen=True)
class LaunchSurchargePolicy:
    """
    Time-decaying launch surcharge τ(t) in percent, plus an exempt address set.

      • t <= 0          → max(τ_start, τ_end)
      • t >= ramp_secs  → τ_end
      • otherwise       → τ_start + (t / ramp_secs) · (τ_end - τ_start)

    Exemption is an exact, case-sensitive membership test; the set is fixed at
    construction.
    """
    tau_start_pct: float
    tau_end_pct: float
    ramp_secs: float
    exempt: FrozenSet[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        if not (math.isfinite(self.ramp_secs) and self.ramp_secs > 0.0):
            raise InvalidPolicyParameter("tau_ramp_secs", self.ramp_secs, "must be finite and > 0")
        for name in ("tau_start_pct", "tau_end_pct"):
            value = getattr(self, name)
            if not math.isfinite(value):
                raise InvalidPolicyParameter(name, value, "must be finite")
        object.__setattr__(self, "exempt", frozenset(self.exempt))

    @classmethod
    def from_addresses(
        cls,
        addresses: Iterable[str],
        tau_start_pct: float,
        tau_end_pct: float,
        ramp_secs: float,
    ) -> "LaunchSurchargePolicy":
        return cls(
            tau_start_pct=tau_start_pct,
            tau_end_pct=tau_end_pct,
            ramp_secs=ramp_secs,
            exempt=frozenset(addresses),
        )

    def is_exempt(self, addr: str) -> bool:
        return addr in self.exempt

    def tau(self, seconds_since_launch: float) -> float:
        if seconds_since_launch <= 0.0:
            return max(self.tau_start_pct, self.tau_end_pct)
        if seconds_since_launch >= self.ramp_secs:
            return self.tau_end_pct
        t = seconds_since_launch / self.ramp_secs
        return self.tau_start_pct + t * (self.tau_end_pct - self.tau_start_pct)

    def surcharge_pct(self, addr: str, seconds_since_launch: float) -> float:
        """Surcharge owed by `addr`; exempt addresses always pay 0."""
        if self.is_exempt(addr):
            return 0.0
        return self.tau(seconds_since_launch)
