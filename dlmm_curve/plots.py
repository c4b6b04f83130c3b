"""
Chart series and matplotlib rendering for a computed schedule.
"""
from __future__ import annotations

from pathlib import Path
from typing import List, Tuple

import numpy as np
import matplotlib.pyplot as plt

from .curves import CurveBase
from .fees import FeeSchedule
from .utils import NeumaierSum


# =============================================================================
# Plot styling (global)
# =============================================================================
TITLE_FONT_SIZE = 16
LABEL_FONT_SIZE = 14
LEGEND_FONT_SIZE = 12
FIGSIZE = (12, 7)

plt.rcParams.update({
    "axes.titlesize": TITLE_FONT_SIZE,
    "axes.labelsize": LABEL_FONT_SIZE,
    "legend.fontsize": LEGEND_FONT_SIZE,
})
plt.rcParams["axes.grid"] = True

Points = List[Tuple[float, float]]


# =============================================================================
# Series
# =============================================================================

def price_vs_supply_points(curve: CurveBase, bins: int) -> Points:
    """Step series (S_before, P_i), (S_after, P_i) for each bin."""
    acc = NeumaierSum()
    pts: Points = []
    for i in range(bins):
        p = curve.price_of_bin(i)
        pts.append((acc.value(), p))
        pts.append((acc.add(curve.delta_x_of_bin(i)), p))
    return pts


def allocation_points(curve: CurveBase, bins: int) -> Points:
    return [(float(i), curve.delta_x_of_bin(i)) for i in range(bins)]


def fee_vs_volatility_points(fees: FeeSchedule, va_max: float = 50.0, samples: int = 501) -> Points:
    vas = np.linspace(0.0, va_max, samples)
    return [(float(va), fees.total_fee_rate(float(va))) for va in vas]


# =============================================================================
# Rendering
# =============================================================================

def _plot_line(pts: Points, title: str, xlabel: str, ylabel: str, out_path: Path) -> Path:
    xy = np.asarray(pts, dtype=float).reshape(-1, 2)
    x_max = max(float(xy[:, 0].max()) if len(xy) else 1.0, 1e-12)
    y_max = max(float(xy[:, 1].max()) if len(xy) else 0.0, 1e-12)

    fig, ax = plt.subplots(figsize=FIGSIZE)
    ax.plot(xy[:, 0], xy[:, 1], color="black", lw=1.2)
    ax.set_xlim(0.0, x_max)
    ax.set_ylim(0.0, y_max * 1.05)
    ax.set_title(title, fontsize=TITLE_FONT_SIZE)
    ax.set_xlabel(xlabel, fontsize=LABEL_FONT_SIZE)
    ax.set_ylabel(ylabel, fontsize=LABEL_FONT_SIZE)
    ax.grid(True, alpha=0.3)
    fig.tight_layout()
    fig.savefig(out_path, dpi=100)
    plt.close(fig)
    print(f"[PLOT] wrote {out_path}")
    return Path(out_path)


def plot_price_vs_supply(curve: CurveBase, bins: int, out_path: Path) -> Path:
    return _plot_line(
        price_vs_supply_points(curve, bins),
        "Price vs Cumulative Supply",
        "Cumulative supply (tokens)",
        "Price (quote per token)",
        out_path,
    )


def plot_tokens_per_bin(curve: CurveBase, bins: int, out_path: Path) -> Path:
    return _plot_line(
        allocation_points(curve, bins),
        r"Tokens per Bin ($\Delta X_i$)",
        "Bin index",
        "Tokens allocated",
        out_path,
    )


def plot_fee_vs_vol(fees: FeeSchedule, out_path: Path, va_max: float = 50.0) -> Path:
    return _plot_line(
        fee_vs_volatility_points(fees, va_max=va_max),
        "Total Fee vs Volatility Accumulator",
        "Volatility accumulator",
        "Total fee rate (decimal)",
        out_path,
    )


def plot_all(curve: CurveBase, bins: int, fees: FeeSchedule, out_dir: Path) -> List[Path]:
    out_dir = Path(out_dir)
    return [
        plot_price_vs_supply(curve, bins, out_dir / "price_vs_supply.png"),
        plot_tokens_per_bin(curve, bins, out_dir / "tokens_per_bin.png"),
        plot_fee_vs_vol(fees, out_dir / "fee_vs_volatility.png"),
    ]
