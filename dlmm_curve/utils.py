"""
Utility functions, constants, and helper classes for the DLMM curve engine.
"""
from __future__ import annotations

import math
from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterable, Optional

import yaml


# =============================================================================
# Global utilities & tolerances
# =============================================================================

def clamp(x: float, lo: float, hi: float) -> float:
    """Clamp x into [lo, hi]."""
    return max(lo, min(hi, x))


BPS_DENOM = 10_000.0     # basis points per unit
EPS_FLAT_RATIO = 1e-12   # |r - 1| below this is treated as the flat geometric series
EPS_ASYMPTOTE = 1e-12    # logistic clamp, as a fraction of (p_max - p_min)

THETA_MIN = -2.0
THETA_MAX = 2.0
DEFAULT_BINS = 500


def is_finite_positive(x: Optional[float]) -> bool:
    return x is not None and math.isfinite(x) and x > 0.0


# =============================================================================
# Compensated summation (Neumaier)
# =============================================================================

class NeumaierSum:
    """
    Running sum with a separate correction term for the rounding error of each add.

    On add(x) with running total s:
        t = s + x
        c += (s - t) + x   if |s| >= |x|
        c += (x - t) + s   otherwise
        s = t
    and value() = s + c.

    The error bound does not grow with the number of terms, which is what lets
    thousands of geometrically shrinking ΔX_i reconcile with the closed form at
    1e-9 relative error. The correction depends on encounter order, so a fold
    must run sequentially.
    """
    __slots__ = ("total", "comp", "count")

    def __init__(self, init: float = 0.0):
        self.total = float(init)
        self.comp = 0.0
        self.count = 0

    def add(self, x: float) -> float:
        s = self.total
        t = s + x
        if abs(s) >= abs(x):
            self.comp += (s - t) + x
        else:
            self.comp += (x - t) + s
        self.total = t
        self.count += 1
        return self.total + self.comp

    def value(self) -> float:
        return self.total + self.comp


def compensated_sum(values: Iterable[float]) -> float:
    acc = NeumaierSum()
    for v in values:
        acc.add(v)
    return acc.value()


# =============================================================================
# Configuration loading
# =============================================================================

def load_schedule_parameters(config_path: Path, expected_keys: Iterable[str]) -> Dict[str, Any]:
    """
    Load schedule parameters from a YAML configuration file.

    The configuration must contain a `schedule` mapping whose keys are a subset
    of `expected_keys` (the CLI destinations). Values are returned unchanged so
    the CLI can install them as parser defaults; explicit flags still win.
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Missing configuration file: {config_path}")

    with config_path.open("r", encoding="utf-8") as handle:
        config_data = yaml.safe_load(handle)

    if not isinstance(config_data, dict):
        raise ValueError(f"Configuration root must be a mapping: {config_path}")

    params = config_data.get("schedule")
    if not isinstance(params, dict):
        raise ValueError(f"'schedule' section missing in {config_path}")

    extra_keys = sorted(set(params) - set(expected_keys))
    if extra_keys:
        raise ValueError(f"Unexpected keys in 'schedule' section: {extra_keys}")

    mode = params.get("mode")
    if mode is not None and mode not in ("geometric", "logistic"):
        raise ValueError(f"Unknown mode in {config_path}: {mode!r}")

    return dict(params)


def load_exempt_addresses(path: Path) -> FrozenSet[str]:
    """
    Read a newline-separated exempt list. Lines are trimmed and blank lines skipped;
    lookups against the resulting set are exact.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Exempt address list not found: {path}")
    addrs = set()
    with path.open("r", encoding="utf-8") as handle:
        for line in handle:
            addr = line.strip()
            if addr:
                addrs.add(addr)
    return frozenset(addrs)
