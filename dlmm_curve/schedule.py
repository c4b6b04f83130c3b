"""
Per-bin schedule rows and the `schedule.csv` export.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Iterator, List, Optional

import pandas as pd
from tqdm import tqdm

from .curves import CurveBase, GeometricCurve
from .fees import FeeSchedule, LaunchSurchargePolicy, min_price_sell_x_for_y, min_price_sell_y_for_x
from .utils import NeumaierSum


SCHEDULE_FILENAME = "schedule.csv"


@dataclass(frozen=True)
class ScheduleRow:
    bin: int
    price: float
    delta_x: float
    supply_cum: float
    revenue_bin: float
    revenue_cum: float
    fee_base: float
    fee_var: float
    fee_total: float


SCHEDULE_COLUMNS = [f.name for f in fields(ScheduleRow)]


def iter_schedule(
    curve: CurveBase,
    bins: int,
    fees: FeeSchedule,
    va: float,
    progress: bool = False,
) -> Iterator[ScheduleRow]:
    """
    Yield one row per bin in increasing order.

    Cumulative supply and revenue are folded with separate compensated sums; the
    fee columns are constant across bins for a fixed volatility accumulator.
    """
    supply = NeumaierSum()
    revenue = NeumaierSum()
    fee_b = fees.base_fee_rate()
    fee_v = fees.variable_fee_rate(va)
    fee_tot = fees.total_fee_rate(va)

    for i in tqdm(range(bins), desc="Writing schedule", unit="bin", disable=not progress):
        p = curve.price_of_bin(i)
        dx = curve.delta_x_of_bin(i)
        r_bin = p * dx
        yield ScheduleRow(
            bin=i,
            price=p,
            delta_x=dx,
            supply_cum=supply.add(dx),
            revenue_bin=r_bin,
            revenue_cum=revenue.add(r_bin),
            fee_base=fee_b,
            fee_var=fee_v,
            fee_total=fee_tot,
        )


def schedule_frame(curve: CurveBase, bins: int, fees: FeeSchedule, va: float, progress: bool = False) -> pd.DataFrame:
    rows = [asdict(row) for row in iter_schedule(curve, bins, fees, va, progress=progress)]
    return pd.DataFrame(rows, columns=SCHEDULE_COLUMNS)


def schedule_metadata(
    curve: CurveBase,
    bins: int,
    va: float,
    policy: LaunchSurchargePolicy,
    price_guard_bps: Optional[float] = None,
) -> List[str]:
    """Comment lines (without the leading '# ') written above the CSV header."""
    lines = ["DLMM Bonding Curve Schedule"]
    if isinstance(curve, GeometricCurve):
        lines.append(f"Mode: Geometric, θ={curve.theta}, R₀={curve.r0_quote}")
        lines.append(f"Growth factor g={curve.g:.12f}, Decay factor r={curve.r:.12f}")
        lines.append(f"Volatility accumulator: {va}")
    else:
        lines.append(f"Mode: {curve.name()}")
        lines.append(f"Volatility accumulator: {va}")
        lines.append(f"Total supply: {curve.cumulative_supply(bins):.6f}")

    lines.append(f"Launch policy: allowlist={len(policy.exempt)} addresses")
    lines.append(
        f"Surcharge ramp: {policy.tau_start_pct:.1f}% → {policy.tau_end_pct:.1f}% over {policy.ramp_secs:.0f}s"
    )

    if price_guard_bps is not None:
        for label, b in (("start", 0), ("mid", bins // 2), ("end", max(bins - 1, 0))):
            p = curve.price_of_bin(b)
            lines.append(f"Guard @ {label} (bin {b}, P={p:.12f}):")
            lines.append(f"  Min X→Y: {min_price_sell_x_for_y(p, price_guard_bps):.12f}")
            lines.append(f"  Min Y→X: {min_price_sell_y_for_x(p, price_guard_bps):.12f}")
    return lines


def write_schedule_csv(
    out_dir: Path,
    curve: CurveBase,
    bins: int,
    fees: FeeSchedule,
    va: float,
    policy: LaunchSurchargePolicy,
    price_guard_bps: Optional[float] = None,
    progress: bool = False,
) -> Path:
    """Write `schedule.csv`: '#' metadata, a blank line, one header row, one row per bin."""
    out_path = Path(out_dir) / SCHEDULE_FILENAME
    header = schedule_metadata(curve, bins, va, policy, price_guard_bps)
    df = schedule_frame(curve, bins, fees, va, progress=progress)

    with out_path.open("w", encoding="utf-8", newline="") as handle:
        for line in header:
            handle.write(f"# {line}\n")
        handle.write("\n")
        df.to_csv(handle, index=False)
    return out_path
