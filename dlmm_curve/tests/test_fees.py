import pytest

from dlmm_curve.exceptions import InvalidFeeCap, InvalidFeeParameter, InvalidPolicyParameter, InvalidPriceGuard
from dlmm_curve.fees import (
    FeeSchedule,
    LaunchSurchargePolicy,
    min_price_sell_x_for_y,
    min_price_sell_y_for_x,
    validate_fee_cap,
    validate_vol_accum,
)

from ._cases import draw_cases


FEE_CASES = draw_cases(
    21, 50,
    step_bps=(1.0, 100.0),
    base=(0.0, 1.0),
    varc=(0.0, 1.0),
    cap=(0.001, 0.5),
    va1=(0.0, 50.0),
    va2=(0.0, 50.0),
)


class TestFeeSchedule:
    def test_components(self, fees):
        assert fees.base_fee_rate() == pytest.approx(0.3 * 0.001)
        assert fees.variable_fee_rate(10.0) == pytest.approx(0.0001 * (10.0 * 0.001) ** 2)
        assert fees.total_fee_rate(10.0) == pytest.approx(fees.base_fee_rate() + fees.variable_fee_rate(10.0))

    def test_total_fee_is_capped_for_pathological_va(self, fees):
        assert fees.total_fee_rate(1e12) == 0.05
        assert fees.total_fee_rate(float("inf")) == 0.05

    def test_huge_va_saturates_at_cap_without_overflow(self):
        f = FeeSchedule(base_factor=0.3, bin_step_bps=10.0, variable_fee_control=1e-4, max_fee_rate=0.05)
        assert f.total_fee_rate(1e160) == 0.05
        assert f.total_fee_rate(1e300) == 0.05

    def test_nan_va_is_capped(self, fees):
        assert fees.total_fee_rate(float("nan")) == 0.05

    def test_zero_variable_control_ignores_infinite_va(self):
        f = FeeSchedule(base_factor=0.3, bin_step_bps=10.0, variable_fee_control=0.0, max_fee_rate=0.05)
        assert f.variable_fee_rate(float("inf")) == 0.0
        assert f.total_fee_rate(float("inf")) == pytest.approx(0.0003)

    @pytest.mark.parametrize("va", [-1.0, float("inf"), float("nan")])
    def test_vol_accum_validation(self, va):
        with pytest.raises(InvalidFeeParameter) as err:
            validate_vol_accum(va)
        assert err.value.param == "vol_accum"
        assert validate_vol_accum(0.0) == 0.0

    def test_negative_cap_is_clamped_to_zero(self):
        f = FeeSchedule(base_factor=1.0, bin_step_bps=10.0, variable_fee_control=1.0, max_fee_rate=-0.1)
        assert f.total_fee_rate(5.0) == 0.0

    @pytest.mark.parametrize("case", FEE_CASES)
    def test_fee_bounded_and_monotone_in_va(self, case):
        f = FeeSchedule(
            base_factor=case["base"],
            bin_step_bps=case["step_bps"],
            variable_fee_control=case["varc"],
            max_fee_rate=case["cap"],
        )
        t1 = f.total_fee_rate(case["va1"])
        t2 = f.total_fee_rate(case["va2"])
        assert t1 <= case["cap"] + 1e-15
        assert t2 <= case["cap"] + 1e-15
        if t1 < case["cap"] and t2 < case["cap"]:
            lo, hi = sorted((case["va1"], case["va2"]))
            assert f.total_fee_rate(lo) <= f.total_fee_rate(hi)

    @pytest.mark.parametrize("cap", [-0.01, 1.01, float("nan")])
    def test_fee_cap_validation(self, cap):
        with pytest.raises(InvalidFeeCap) as err:
            validate_fee_cap(cap)
        assert err.value.param == "max_fee_rate"

    def test_fee_cap_bounds_are_inclusive(self):
        assert validate_fee_cap(0.0) == 0.0
        assert validate_fee_cap(1.0) == 1.0


class TestPriceGuards:
    def test_min_prices(self):
        assert min_price_sell_x_for_y(1.0, 100.0) == pytest.approx(10_000.0 / 9_900.0)
        assert min_price_sell_y_for_x(1.0, 100.0) == pytest.approx(0.99)
        assert min_price_sell_x_for_y(2.5, 0.0) == pytest.approx(2.5)

    @pytest.mark.parametrize("bps", [10_000.0, 12_000.0, -1.0])
    def test_impact_outside_range_is_rejected(self, bps):
        with pytest.raises(InvalidPriceGuard):
            min_price_sell_x_for_y(1.0, bps)
        with pytest.raises(InvalidPriceGuard):
            min_price_sell_y_for_x(1.0, bps)


class TestLaunchSurchargePolicy:
    def test_tau_ramp(self, policy):
        assert policy.tau(0.0) == 50.0
        assert policy.tau(15.0) == pytest.approx(26.5)
        assert policy.tau(30.0) == 3.0
        assert policy.tau(45.0) == 3.0

    def test_tau_before_launch_takes_the_larger_bound(self):
        rising = LaunchSurchargePolicy(tau_start_pct=1.0, tau_end_pct=5.0, ramp_secs=10.0)
        assert rising.tau(-5.0) == 5.0
        assert rising.tau(5.0) == pytest.approx(3.0)

    def test_exemption_is_exact(self, policy):
        assert policy.is_exempt("addr1")
        assert not policy.is_exempt("ADDR1")
        assert not policy.is_exempt("addr1 ")
        assert not policy.is_exempt("")

    def test_exempt_addresses_pay_no_surcharge(self, policy):
        assert policy.surcharge_pct("addr1", 0.0) == 0.0
        assert policy.surcharge_pct("addr2", 0.0) == 50.0
        assert policy.surcharge_pct("addr2", 100.0) == 3.0

    def test_exempt_set_is_frozen(self):
        source = ["a", "b", "a"]
        policy = LaunchSurchargePolicy.from_addresses(source, tau_start_pct=50.0, tau_end_pct=5.0, ramp_secs=120.0)
        source.append("c")
        assert policy.exempt == frozenset({"a", "b"})
        assert not hasattr(policy.exempt, "add")
        assert policy.tau(60.0) == pytest.approx(27.5)

    @pytest.mark.parametrize("ramp", [0.0, -1.0, float("inf")])
    def test_ramp_must_be_positive(self, ramp):
        with pytest.raises(InvalidPolicyParameter):
            LaunchSurchargePolicy(tau_start_pct=50.0, tau_end_pct=3.0, ramp_secs=ramp)
