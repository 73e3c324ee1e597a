"""
Coverage, claim and pool parameter validation.

Each check raises the matching BioShieldError and returns nothing on
success. Upper bounds default to the values in settings.
"""

from typing import Optional

from bioshield.config import settings
from bioshield.errors import (
    ClaimAmountExceedsCoverageError,
    InvalidCoverageAmountError,
    InvalidCoveragePeriodError,
    InvalidLiquidityAmountError,
    InvalidPoolParametersError,
)
from bioshield.schemas.coverage import U64_MAX
from bioshield.schemas.triggers import TriggerConditions, check_trigger_conditions


def validate_coverage_amount(amount: int, min_amount: int, max_amount: int) -> None:
    if not min_amount <= amount <= max_amount:
        raise InvalidCoverageAmountError(
            f"Coverage amount {amount} outside [{min_amount}, {max_amount}]",
            details={"amount": amount, "min_amount": min_amount, "max_amount": max_amount},
        )


def validate_coverage_period(period_seconds: int, max_seconds: Optional[int] = None) -> None:
    if max_seconds is None:
        max_seconds = settings.max_coverage_period_seconds
    if not 0 < period_seconds <= max_seconds:
        raise InvalidCoveragePeriodError(period_seconds, max_seconds)


def validate_trigger_conditions(conditions: TriggerConditions) -> None:
    check_trigger_conditions(conditions)


def validate_claim_amount(claim_amount: int, coverage_amount: int, total_claimed: int) -> None:
    remaining = coverage_amount - total_claimed
    if remaining < 0 or claim_amount > remaining:
        raise ClaimAmountExceedsCoverageError(claim_amount, max(remaining, 0))
    if claim_amount <= 0:
        raise InvalidCoverageAmountError(
            "Claim amount must be positive", details={"claim_amount": claim_amount},
        )


def validate_liquidity_amount(amount: int) -> None:
    if not 0 < amount <= U64_MAX:
        raise InvalidLiquidityAmountError(amount)


def validate_pool_parameters(
    min_coverage: int,
    max_coverage: int,
    fee_basis_points: int,
    max_fee_basis_points: Optional[int] = None,
) -> None:
    if max_fee_basis_points is None:
        max_fee_basis_points = settings.max_pool_fee_basis_points

    if min_coverage <= 0 or max_coverage <= min_coverage:
        raise InvalidPoolParametersError(
            f"Coverage bounds [{min_coverage}, {max_coverage}] invalid",
            details={"min_coverage": min_coverage, "max_coverage": max_coverage},
        )
    if not 0 <= fee_basis_points <= max_fee_basis_points:
        raise InvalidPoolParametersError(
            f"Pool fee {fee_basis_points}bp exceeds {max_fee_basis_points}bp",
            details={"fee_basis_points": fee_basis_points},
        )
