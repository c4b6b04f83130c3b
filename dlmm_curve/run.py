#!/usr/bin/env python3

"""
DLMM bonding curve simulator + verifier.

Builds a geometric or logistic allocation schedule on a DLMM price grid,
cross-checks the geometric supply against its closed form, and writes
`schedule.csv` plus three charts into the output directory.

Parameters come from flags, optionally seeded by a YAML file (`--config`)
whose `schedule` mapping uses the same names as the flag destinations.
"""
from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from .curves import PriceGrid, bins_from_end_price, build_geometric, build_logistic
from .exceptions import InvalidBinCount
from .fees import FeeSchedule, LaunchSurchargePolicy, validate_fee_cap, validate_impact_bps, validate_vol_accum
from .plots import plot_all
from .schedule import write_schedule_csv
from .utils import (
    DEFAULT_BINS,
    THETA_MAX,
    THETA_MIN,
    clamp,
    load_exempt_addresses,
    load_schedule_parameters,
)
from .verifier import verify_geometric


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="dlmm-curve", description="DLMM bonding curve simulator + verifier.")
    p.add_argument("--config", type=Path, default=None, help="YAML file with a 'schedule' mapping of defaults.")
    p.add_argument("--mode", choices=("geometric", "logistic"), default="geometric")
    p.add_argument("--p0", type=float, default=0.01, help="Price at bin 0.")
    p.add_argument("--bin-step-bps", type=float, default=10.0, help="Bin step in bps (10 = 0.10%%).")

    p.add_argument("--theta", type=float, default=0.6, help="θ (prefer 0<θ<1); θ>1 makes ΔX grow with i. Clamped to [-2, 2].")
    p.add_argument("--target-supply", type=float, default=None, help="Total tokens over all bins (solves R0).")
    p.add_argument("--bins", type=int, default=None, help="Number of bins (default: from --end-price, else 500).")
    p.add_argument("--end-price", type=float, default=None, help="Derive bins so that P_n >= end price.")
    p.add_argument("--r0", type=float, default=None, help="Quote revenue of bin 0.")

    p.add_argument("--p-min", type=float, default=0.0)
    p.add_argument("--p-max", type=float, default=None)
    p.add_argument("--k", type=float, default=0.00001, help="Logistic steepness.")
    p.add_argument("--s-mid", type=float, default=None, help="Supply at the mid price (default: S(p0) = 0).")

    p.add_argument("--base-factor", type=float, default=0.0)
    p.add_argument("--variable-fee-control", type=float, default=0.0)
    p.add_argument("--vol-accum", type=float, default=0.0)
    p.add_argument("--max-fee-rate", type=float, default=0.10, help="Fee cap, decimal (0.10 = 10%%).")

    p.add_argument("--tau-start-pct", type=float, default=50.0)
    p.add_argument("--tau-end-pct", type=float, default=3.0)
    p.add_argument("--tau-ramp-secs", type=float, default=30.0)
    p.add_argument("--allowlist-path", "--whitelist-path", dest="allowlist_path", type=Path, default=None,
                   help="Newline-separated addresses exempt from the launch surcharge.")
    p.add_argument("--price-guard-bps", type=float, default=None,
                   help="Include min-price guard metadata for this max impact (bps).")

    p.add_argument("--out-dir", type=Path, default=Path("out"))
    p.add_argument("--no-draw", dest="draw", action="store_false", help="Skip chart rendering.")
    p.add_argument("--verbose", action="store_true")
    return p


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = build_parser()
    pre, _ = parser.parse_known_args(argv)
    if pre.config is not None:
        dests = [k for k in vars(parser.parse_args([])) if k != "config"]
        params = load_schedule_parameters(pre.config, dests)
        for key in ("out_dir", "allowlist_path"):
            if params.get(key) is not None:
                params[key] = Path(params[key])
        parser.set_defaults(**params)
        print(f"[config] {pre.config}")
    return parser.parse_args(argv)


def validate_inputs(args: argparse.Namespace) -> PriceGrid:
    """Eager checks; nothing is written if any of these fail."""
    grid = PriceGrid(p0=args.p0, bin_step_bps=args.bin_step_bps)
    if args.bins is not None and args.bins < 1:
        raise InvalidBinCount("bins", args.bins, "must be >= 1")
    validate_fee_cap(args.max_fee_rate)
    validate_vol_accum(args.vol_accum)
    if args.price_guard_bps is not None:
        validate_impact_bps(args.price_guard_bps)
    return grid


def resolve_bins(args: argparse.Namespace, grid: PriceGrid) -> int:
    if args.bins is not None:
        return args.bins
    if args.end_price is not None:
        return bins_from_end_price(grid, args.end_price)
    return DEFAULT_BINS


def build_fees(args: argparse.Namespace) -> FeeSchedule:
    return FeeSchedule(
        base_factor=args.base_factor,
        bin_step_bps=args.bin_step_bps,
        variable_fee_control=args.variable_fee_control,
        max_fee_rate=args.max_fee_rate,
    )


def build_policy(args: argparse.Namespace) -> LaunchSurchargePolicy:
    exempt = load_exempt_addresses(args.allowlist_path) if args.allowlist_path is not None else frozenset()
    return LaunchSurchargePolicy.from_addresses(
        exempt,
        tau_start_pct=args.tau_start_pct,
        tau_end_pct=args.tau_end_pct,
        ramp_secs=args.tau_ramp_secs,
    )


def _print_policy(policy: LaunchSurchargePolicy) -> None:
    print(f"  Allowlist size: {len(policy.exempt)}")
    print(
        f"  Launch surcharge: τ(0s)={policy.tau(0.0):.1f}% → "
        f"τ({policy.ramp_secs:.0f}s)={policy.tau(policy.ramp_secs):.1f}%"
    )


def _write_outputs(args, curve, bins, fees, policy) -> Dict[str, Any]:
    out_dir = Path(args.out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    csv_path = write_schedule_csv(
        out_dir, curve, bins, fees, args.vol_accum, policy,
        price_guard_bps=args.price_guard_bps, progress=args.verbose,
    )
    print(f"[RESULT] CSV saved to {csv_path}")
    charts: List[Path] = plot_all(curve, bins, fees, out_dir) if args.draw else []
    return {"curve": curve, "bins": bins, "fees": fees, "policy": policy, "csv": csv_path, "charts": charts}


def run_geometric(args: argparse.Namespace, grid: PriceGrid, fees: FeeSchedule, policy: LaunchSurchargePolicy) -> Dict[str, Any]:
    bins = resolve_bins(args, grid)
    theta = clamp(args.theta, THETA_MIN, THETA_MAX)
    curve = build_geometric(grid, theta, bins, r0=args.r0, target_supply=args.target_supply)

    rep = verify_geometric(curve, bins)
    if args.verbose:
        print(
            f"[{curve.name()}] bins={rep.bins} sumS={rep.supply_sum:.6f} closed={rep.supply_closed:.6f} "
            f"rel_err={rep.rel_err_supply:.3e} monotone={rep.monotone_ok}"
        )
        print(f"  Growth factor g=q^θ={curve.g:.12f}, Decay factor r=q^(θ-1)={curve.r:.12f}")
        print(f"  Cumulative supply at n={bins}: {curve.cumulative_supply(bins):.6f}")
        _print_policy(policy)

    out = _write_outputs(args, curve, bins, fees, policy)
    out["report"] = rep
    return out


def run_logistic(args: argparse.Namespace, grid: PriceGrid, fees: FeeSchedule, policy: LaunchSurchargePolicy) -> Dict[str, Any]:
    bins = resolve_bins(args, grid)
    curve = build_logistic(grid, bins, p_min=args.p_min, p_max=args.p_max, k=args.k, s_mid=args.s_mid)

    if args.verbose:
        print(
            f"[{curve.name()}] bins={bins} p_min={curve.p_min:.6f} p_max={curve.p_max:.6f} "
            f"k={curve.k:.8f} s_mid={curve.s_mid:.2f}"
        )
        print(f"  Cumulative supply at n={bins}: {curve.cumulative_supply(bins):.6f}")
        _print_policy(policy)

    out = _write_outputs(args, curve, bins, fees, policy)
    out["report"] = None
    return out


RUNNERS = {
    "geometric": run_geometric,
    "logistic": run_logistic,
}


def run_schedule(args: argparse.Namespace) -> Dict[str, Any]:
    grid = validate_inputs(args)
    policy = build_policy(args)
    fees = build_fees(args)
    return RUNNERS[args.mode](args, grid, fees, policy)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)
    run_schedule(args)


if __name__ == "__main__":
    main()
