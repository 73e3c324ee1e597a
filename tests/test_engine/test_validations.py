"""
Coverage, claim and pool validation tests.
"""

from decimal import Decimal

import pytest

from bioshield.config import settings
from bioshield.engine.validations import (
    validate_claim_amount,
    validate_coverage_amount,
    validate_coverage_period,
    validate_liquidity_amount,
    validate_pool_parameters,
    validate_trigger_conditions,
)
from bioshield.errors import (
    ClaimAmountExceedsCoverageError,
    ErrorCode,
    InvalidCoverageAmountError,
    InvalidCoveragePeriodError,
    InvalidLiquidityAmountError,
    InvalidPoolParametersError,
    InvalidTriggerConditionsError,
)
from bioshield.schemas.triggers import CustomCondition, TriggerConditions


class TestCoverageAmount:
    def test_within_bounds(self):
        validate_coverage_amount(5_000, 1_000, 10_000)
        validate_coverage_amount(1_000, 1_000, 10_000)
        validate_coverage_amount(10_000, 1_000, 10_000)

    @pytest.mark.parametrize("amount", [999, 10_001])
    def test_out_of_bounds(self, amount):
        with pytest.raises(InvalidCoverageAmountError):
            validate_coverage_amount(amount, 1_000, 10_000)


class TestCoveragePeriod:
    def test_valid(self):
        validate_coverage_period(86400)
        validate_coverage_period(settings.max_coverage_period_seconds)

    @pytest.mark.parametrize("period", [0, -1])
    def test_non_positive(self, period):
        with pytest.raises(InvalidCoveragePeriodError) as exc_info:
            validate_coverage_period(period)
        assert exc_info.value.error_code == ErrorCode.INVALID_COVERAGE_PERIOD

    def test_longer_than_five_years(self):
        with pytest.raises(InvalidCoveragePeriodError):
            validate_coverage_period(settings.max_coverage_period_seconds + 1)

    def test_custom_ceiling(self):
        with pytest.raises(InvalidCoveragePeriodError):
            validate_coverage_period(86401, max_seconds=86400)


class TestClaimAmount:
    def test_within_remaining(self):
        validate_claim_amount(80_000, 100_000, 20_000)

    def test_exceeds_remaining(self):
        with pytest.raises(ClaimAmountExceedsCoverageError) as exc_info:
            validate_claim_amount(80_001, 100_000, 20_000)
        assert exc_info.value.details == {"claim_amount": 80_001, "remaining": 80_000}

    def test_zero_claim(self):
        with pytest.raises(InvalidCoverageAmountError):
            validate_claim_amount(0, 100_000, 0)

    def test_over_claimed_coverage(self):
        with pytest.raises(ClaimAmountExceedsCoverageError):
            validate_claim_amount(1, 100, 200)


class TestLiquidityAmount:
    def test_positive(self):
        validate_liquidity_amount(1)

    def test_zero(self):
        with pytest.raises(InvalidLiquidityAmountError):
            validate_liquidity_amount(0)


class TestPoolParameters:
    def test_valid(self):
        validate_pool_parameters(1_000, 1_000_000, 1_000)

    @pytest.mark.parametrize("min_coverage,max_coverage", [(0, 100), (100, 100), (100, 50)])
    def test_bad_bounds(self, min_coverage, max_coverage):
        with pytest.raises(InvalidPoolParametersError):
            validate_pool_parameters(min_coverage, max_coverage, 100)

    def test_fee_above_ten_percent(self):
        with pytest.raises(InvalidPoolParametersError) as exc_info:
            validate_pool_parameters(1_000, 1_000_000, 1_001)
        assert exc_info.value.error_code == ErrorCode.INVALID_POOL_PARAMETERS


class TestTriggerConditions:
    def test_valid_conditions_pass(self, trial_failure_conditions):
        validate_trigger_conditions(trial_failure_conditions)

    def test_revalidates_against_current_limits(self, monkeypatch):
        conditions = TriggerConditions(custom_conditions=[
            CustomCondition("price", Decimal(10), "<"),
            CustomCondition("source_count", Decimal(1), ">"),
        ])
        monkeypatch.setattr(settings, "max_custom_conditions", 1)
        with pytest.raises(InvalidTriggerConditionsError):
            validate_trigger_conditions(conditions)
