"""
Price lattice and token-allocation curves for a DLMM bin grid.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Optional

from .exceptions import (
    InvalidBinCount,
    InvalidCurveParameter,
    InvalidGridParameter,
    MissingCurveParameter,
    OrderingViolation,
)
from .utils import BPS_DENOM, EPS_ASYMPTOTE, EPS_FLAT_RATIO, is_finite_positive


# =============================================================================
# Price grid
# =============================================================================

@dataclass(frozen=True)
class PriceGrid:
    """
    Geometric price lattice: P_i = p0 · q^i with q = 1 + bin_step_bps / 10_000.

    Both parameters must be finite and > 0, so q > 1 and prices are strictly
    increasing in i. Very large |i| overflows float exponentiation; callers keep
    i within the configured bin count.
    """
    p0: float
    bin_step_bps: float

    def __post_init__(self) -> None:
        if not is_finite_positive(self.p0):
            raise InvalidGridParameter("p0", self.p0, "must be finite and > 0")
        if not is_finite_positive(self.bin_step_bps):
            raise InvalidGridParameter("bin_step_bps", self.bin_step_bps, "must be finite and > 0")

    @property
    def q(self) -> float:
        return 1.0 + self.bin_step_bps / BPS_DENOM

    def price_of_bin(self, i: int) -> float:
        return self.p0 * self.q ** i


def bins_from_end_price(grid: PriceGrid, end_price: float) -> int:
    """Smallest n >= 1 with P_n >= end_price: n = ceil(ln(end/p0) / ln q)."""
    if not math.isfinite(end_price) or end_price <= grid.p0:
        raise OrderingViolation("end_price", end_price, f"must be finite and > p0={grid.p0}")
    n = math.ceil(math.log(end_price / grid.p0) / math.log(grid.q))
    # ceil of a rounded quotient can land one bin short
    while grid.price_of_bin(n) < end_price:
        n += 1
    return max(1, n)


# =============================================================================
# Curve capability
# =============================================================================

class CurveBase:
    """
    Shared capability of every allocation model.

    Subclasses own a `grid` and implement `name()` and `delta_x_of_bin(i)`;
    ΔX_i >= 0 is expected for valid i and is checked by the verifier, not here.
    """
    grid: PriceGrid

    def name(self) -> str:
        raise NotImplementedError

    def price_of_bin(self, i: int) -> float:
        return self.grid.price_of_bin(i)

    def delta_x_of_bin(self, i: int) -> float:
        raise NotImplementedError

    def cumulative_supply(self, n: int) -> float:
        # plain loop; use utils.NeumaierSum for large n
        s = 0.0
        for i in range(n):
            s += self.delta_x_of_bin(i)
        return s


# =============================================================================
# Geometric curve
# =============================================================================

@dataclass(frozen=True)
class GeometricCurve(CurveBase):
    """
    Geometric allocation: ΔX_i = ΔX_0 · r^i.

      • r = q^(θ-1) is the per-bin decay, g = q^θ the per-bin revenue growth.
      • ΔX_0 = R_0 / p0, so bin 0 raises exactly R_0 of quote.
      • θ in (0, 1) gives decreasing ΔX_i, θ > 1 increasing; callers clamp θ to [-2, 2].

    Closed form:
        S_n = ΔX_0 · (1 - r^n) / (1 - r)     for |r - 1| >= 1e-12
        S_n = ΔX_0 · n                        otherwise (flat limit)
    """
    grid: PriceGrid
    theta: float
    r0_quote: float

    def __post_init__(self) -> None:
        if not math.isfinite(self.theta):
            raise InvalidCurveParameter("theta", self.theta, "must be finite")
        if not is_finite_positive(self.r0_quote):
            raise InvalidCurveParameter("r0", self.r0_quote, "must be finite and > 0")

    @classmethod
    def from_target_supply(cls, grid: PriceGrid, theta: float, target_supply: float, bins: int) -> "GeometricCurve":
        """Build the curve whose first `bins` bins sum to `target_supply` tokens."""
        if not is_finite_positive(target_supply):
            raise InvalidCurveParameter("target_supply", target_supply, "must be finite and > 0")
        unit = cls(grid=grid, theta=theta, r0_quote=1.0)
        return cls(grid=grid, theta=theta, r0_quote=unit.solve_r0_from_supply(target_supply, bins))

    @property
    def r(self) -> float:
        return self.grid.q ** (self.theta - 1.0)

    @property
    def g(self) -> float:
        return self.grid.q ** self.theta

    @property
    def delta_x0(self) -> float:
        return self.r0_quote / self.grid.p0

    def _is_flat(self) -> bool:
        return abs(self.r - 1.0) < EPS_FLAT_RATIO

    def name(self) -> str:
        return "DLMM-Geometric(θ)"

    def delta_x_of_bin(self, i: int) -> float:
        return self.delta_x0 * self.r ** i

    def s_n_closed(self, n: int) -> float:
        if self._is_flat():
            return self.delta_x0 * n
        r = self.r
        return self.delta_x0 * (1.0 - r ** n) / (1.0 - r)

    def solve_r0_from_supply(self, target_s: float, n: int) -> float:
        """Quote revenue R_0 that makes S_n == target_s over n bins."""
        if n < 1:
            raise InvalidBinCount("bins", n, "must be >= 1")
        if self._is_flat():
            # S_n = ΔX_0 · n  =>  ΔX_0 = target / n
            return (target_s / n) * self.grid.p0
        r = self.r
        dx0 = target_s * (1.0 - r) / (1.0 - r ** n)
        return dx0 * self.grid.p0


# =============================================================================
# Logistic-S curve
# =============================================================================

@dataclass(frozen=True)
class LogisticSCurve(CurveBase):
    """
    Logistic price target P(S) with asymptotes p_min / p_max, discretized on the grid.

    Supply as a function of price is the inverse logistic
        S(p) = s_mid - ln((p_max - p) / (p - p_min)) / k
    evaluated on p clamped into (p_min + ε, p_max - ε), ε = (p_max - p_min)·1e-12.
    Bin i receives ΔX_i = max(0, S(P_{i+1}) - S(P_i)); the last bin (i + 1 >= bins)
    and everything past it receives 0.

    If `s_mid` is None it is solved so that S(p0) = 0.
    """
    grid: PriceGrid
    p_min: float
    p_max: float
    k: float
    bins: int
    s_mid: Optional[float] = field(default=None)

    def __post_init__(self) -> None:
        if self.bins < 1:
            raise InvalidBinCount("bins", self.bins, "must be >= 1")
        if not is_finite_positive(self.k):
            raise InvalidCurveParameter("k", self.k, "must be finite and > 0")
        if not math.isfinite(self.p_min):
            raise InvalidCurveParameter("p_min", self.p_min, "must be finite")
        if not math.isfinite(self.p_max):
            raise InvalidCurveParameter("p_max", self.p_max, "must be finite")
        if not self.p_min < self.grid.p0:
            raise OrderingViolation("p_min", self.p_min, f"require p_min < p0={self.grid.p0}")
        if not self.grid.p0 < self.p_max:
            raise OrderingViolation("p_max", self.p_max, f"require p0={self.grid.p0} < p_max")
        if self.s_mid is None:
            p0 = self.grid.p0
            object.__setattr__(self, "s_mid", math.log((self.p_max - p0) / (p0 - self.p_min)) / self.k)

    def name(self) -> str:
        return "Logistic-S(on DLMM bins)"

    def supply_at_price(self, p: float) -> float:
        eps = (self.p_max - self.p_min) * EPS_ASYMPTOTE
        p = min(max(p, self.p_min + eps), self.p_max - eps)
        return self.s_mid - math.log((self.p_max - p) / (p - self.p_min)) / self.k

    def _supply_at_bin(self, i: int) -> float:
        return self.supply_at_price(self.grid.price_of_bin(i))

    def delta_x_of_bin(self, i: int) -> float:
        if i + 1 >= self.bins:
            return 0.0
        return max(0.0, self._supply_at_bin(i + 1) - self._supply_at_bin(i))


def build_geometric(
    grid: PriceGrid,
    theta: float,
    bins: int,
    r0: Optional[float] = None,
    target_supply: Optional[float] = None,
) -> GeometricCurve:
    """Explicit R_0 wins; otherwise R_0 is solved from the target supply."""
    if r0 is not None:
        return GeometricCurve(grid=grid, theta=theta, r0_quote=r0)
    if target_supply is None:
        raise MissingCurveParameter("r0/target_supply", "geometric mode needs r0 or target_supply")
    return GeometricCurve.from_target_supply(grid, theta, target_supply, bins)


def build_logistic(
    grid: PriceGrid,
    bins: int,
    p_min: float,
    p_max: Optional[float],
    k: float,
    s_mid: Optional[float] = None,
) -> LogisticSCurve:
    if p_max is None:
        raise MissingCurveParameter("p_max", "logistic mode needs p_max")
    return LogisticSCurve(grid=grid, p_min=p_min, p_max=p_max, k=k, bins=bins, s_mid=s_mid)
