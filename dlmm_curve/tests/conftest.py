import matplotlib

matplotlib.use("Agg")

import pytest

from dlmm_curve.curves import GeometricCurve, PriceGrid
from dlmm_curve.fees import FeeSchedule, LaunchSurchargePolicy


@pytest.fixture
def grid() -> PriceGrid:
    return PriceGrid(p0=0.01, bin_step_bps=10.0)


@pytest.fixture
def geometric(grid) -> GeometricCurve:
    return GeometricCurve(grid=grid, theta=0.6, r0_quote=100.0)


@pytest.fixture
def fees() -> FeeSchedule:
    return FeeSchedule(base_factor=0.3, bin_step_bps=10.0, variable_fee_control=0.0001, max_fee_rate=0.05)


@pytest.fixture
def policy() -> LaunchSurchargePolicy:
    return LaunchSurchargePolicy.from_addresses(["addr1"], tau_start_pct=50.0, tau_end_pct=3.0, ramp_secs=30.0)
