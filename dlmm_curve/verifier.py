"""
Analytic vs numeric checks for the geometric curve.
"""
from __future__ import annotations

from dataclasses import dataclass

from .curves import GeometricCurve
from .exceptions import InvalidBinCount, NegativeAllocation
from .utils import NeumaierSum


@dataclass(frozen=True)
class VerificationReport:
    bins: int
    supply_sum: float
    supply_closed: float
    rel_err_supply: float
    monotone_ok: bool


def verify_geometric(curve: GeometricCurve, bins: int) -> VerificationReport:
    """
    Sum ΔX_i over [0, bins) with compensated summation, compare to S_n, and check
    that P_i is strictly increasing.

    Raises NegativeAllocation on the first ΔX_i < 0. No tolerance is applied to
    the relative error; that is up to the caller.
    """
    if bins < 1:
        raise InvalidBinCount("bins", bins, "must be >= 1")

    acc = NeumaierSum()
    prev_px = float("-inf")
    monotone_ok = True

    for i in range(bins):
        dx = curve.delta_x_of_bin(i)
        if dx < 0.0:
            raise NegativeAllocation(i, dx)
        acc.add(dx)

        p = curve.price_of_bin(i)
        if p <= prev_px:
            monotone_ok = False
        prev_px = p

    s_sum = acc.value()
    s_closed = curve.s_n_closed(bins)
    rel = abs(s_sum - s_closed) / abs(s_closed) if s_closed != 0.0 else 0.0

    return VerificationReport(
        bins=bins,
        supply_sum=s_sum,
        supply_closed=s_closed,
        rel_err_supply=rel,
        monotone_ok=monotone_ok,
    )
