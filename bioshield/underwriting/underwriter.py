"""
Underwriter — prices and writes parametric coverage.

Quote pipeline:
1. Base premium from amount, period and risk category
2. Advisory risk multiplier from the current consensus snapshot (1.0-2.0)
3. Pool utilization adjustment (surcharge when stretched, discount when idle)
4. Optional LIVES-token payment discount

Writing coverage validates the pool and the terms, then returns the new
CoverageTerms and the pool with its coverage exposure and premium income
updated. Nothing is persisted here.
"""

import uuid
from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

import structlog
from pydantic import BaseModel, ConfigDict, Field

from bioshield.config import settings
from bioshield.engine.calculations import apply_multiplier, premium, utilization_rate
from bioshield.engine.validations import (
    validate_coverage_amount,
    validate_coverage_period,
    validate_trigger_conditions,
)
from bioshield.errors import (
    BioShieldError,
    CalculationOverflowError,
    ErrorCode,
    InvalidCoverageAmountError,
    PoolPausedError,
    PremiumCalculationOverflowError,
)
from bioshield.oracles.consensus import ConsensusSnapshot, risk_multiplier
from bioshield.schemas.coverage import (
    U64_MAX,
    CoverageTerms,
    CoverageType,
    PoolState,
    RiskCategory,
)
from bioshield.schemas.triggers import BASIS_POINTS, TriggerConditions

logger = structlog.get_logger(__name__)

# ── Configuration ─────────────────────────────────────────────────────────

HIGH_UTILIZATION_FACTOR: Decimal = Decimal("1.2")
LOW_UTILIZATION_FACTOR: Decimal = Decimal("0.9")
NEUTRAL_FACTOR: Decimal = Decimal("1")


class PremiumQuote(BaseModel):
    """Breakdown of a premium, from base rate to the amount charged."""

    model_config = ConfigDict(frozen=True)

    quote_id: str = Field(default_factory=lambda: f"qte_{uuid.uuid4().hex[:16]}")
    coverage_amount: int
    coverage_period: int
    risk_category: RiskCategory
    base_premium: int
    risk_multiplier: Decimal = NEUTRAL_FACTOR
    utilization_bp: Optional[int] = None
    utilization_factor: Decimal = NEUTRAL_FACTOR
    pay_with_lives: bool = False
    lives_discount_percentage: int = Field(default=0, ge=0, le=100)
    final_premium: int
    quoted_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class Underwriter:
    """Quote and write coverage against a liquidity pool."""

    def __init__(
        self,
        lives_discount_percentage: Optional[int] = None,
        surcharge_threshold_bp: Optional[int] = None,
        discount_threshold_bp: Optional[int] = None,
    ):
        self.lives_discount_percentage = (
            settings.lives_discount_percentage
            if lives_discount_percentage is None
            else lives_discount_percentage
        )
        if not 0 <= self.lives_discount_percentage <= 100:
            raise BioShieldError(
                f"LIVES discount {self.lives_discount_percentage}% outside 0-100",
                ErrorCode.VALIDATION_ERROR,
                details={"lives_discount_percentage": self.lives_discount_percentage},
            )
        self.surcharge_threshold_bp = (
            settings.utilization_surcharge_bp
            if surcharge_threshold_bp is None
            else surcharge_threshold_bp
        )
        self.discount_threshold_bp = (
            settings.utilization_discount_bp
            if discount_threshold_bp is None
            else discount_threshold_bp
        )

    def utilization_factor(self, utilization_bp: int) -> Decimal:
        if utilization_bp > self.surcharge_threshold_bp:
            return HIGH_UTILIZATION_FACTOR
        if utilization_bp < self.discount_threshold_bp:
            return LOW_UTILIZATION_FACTOR
        return NEUTRAL_FACTOR

    def quote(
        self,
        coverage_amount: int,
        coverage_period: int,
        risk_category: RiskCategory,
        snapshot: Optional[ConsensusSnapshot] = None,
        pool: Optional[PoolState] = None,
        pay_with_lives: bool = False,
    ) -> PremiumQuote:
        risk_category = RiskCategory(risk_category)
        base = premium(coverage_amount, coverage_period, risk_category)

        # ── Risk multiplier ─────────────────────────────────────────
        multiplier = risk_multiplier(snapshot) if snapshot is not None else NEUTRAL_FACTOR
        amount = apply_multiplier(base, multiplier, PremiumCalculationOverflowError)

        # ── Utilization ─────────────────────────────────────────────
        utilization_bp: Optional[int] = None
        factor = NEUTRAL_FACTOR
        if pool is not None:
            utilization_bp = utilization_rate(pool.total_coverage_amount, pool.total_value_locked)
            factor = self.utilization_factor(utilization_bp)
            amount = apply_multiplier(amount, factor, PremiumCalculationOverflowError)

        # ── LIVES discount ──────────────────────────────────────────
        discount = self.lives_discount_percentage if pay_with_lives else 0
        if discount:
            amount = amount * (100 - discount) // 100

        quote = PremiumQuote(
            coverage_amount=coverage_amount,
            coverage_period=coverage_period,
            risk_category=risk_category,
            base_premium=base,
            risk_multiplier=multiplier,
            utilization_bp=utilization_bp,
            utilization_factor=factor,
            pay_with_lives=pay_with_lives,
            lives_discount_percentage=discount,
            final_premium=amount,
        )

        logger.info(
            "premium_quoted",
            quote_id=quote.quote_id,
            risk_category=risk_category.value,
            base_premium=base,
            risk_multiplier=str(multiplier),
            utilization_bp=utilization_bp,
            final_premium=amount,
        )
        return quote

    def create_coverage(
        self,
        coverage_id: str,
        pool: PoolState,
        coverage_amount: int,
        coverage_period: int,
        risk_category: RiskCategory,
        trigger_conditions: TriggerConditions,
        coverage_type: CoverageType = CoverageType.CLINICAL_TRIAL_FAILURE,
        deductible: int = 0,
        snapshot: Optional[ConsensusSnapshot] = None,
        pay_with_lives: bool = False,
        start_time: Optional[datetime] = None,
    ) -> tuple[CoverageTerms, PoolState]:
        """
        Write a new coverage against ``pool``.

        The premium (net of the pool fee) is added to value locked and the
        coverage amount to the pool's written exposure.
        """
        if pool.is_paused:
            raise PoolPausedError(pool.pool_id)
        validate_coverage_amount(
            coverage_amount, pool.min_coverage_amount, pool.max_coverage_amount,
        )
        validate_coverage_period(coverage_period)
        validate_trigger_conditions(trigger_conditions)
        if not 0 <= deductible < coverage_amount:
            raise InvalidCoverageAmountError(
                f"Deductible {deductible} must be below coverage amount {coverage_amount}",
                details={"deductible": deductible, "coverage_amount": coverage_amount},
            )

        quote = self.quote(
            coverage_amount,
            coverage_period,
            risk_category,
            snapshot=snapshot,
            pool=pool,
            pay_with_lives=pay_with_lives,
        )

        coverage = CoverageTerms(
            coverage_id=coverage_id,
            coverage_amount=coverage_amount,
            coverage_period=coverage_period,
            risk_category=RiskCategory(risk_category),
            trigger_conditions=trigger_conditions,
            start_time=start_time or datetime.now(timezone.utc),
            coverage_type=coverage_type,
            premium_paid=quote.final_premium,
            deductible=deductible,
        )

        protocol_fee = quote.final_premium * pool.fee_basis_points // BASIS_POINTS
        new_value = pool.total_value_locked + quote.final_premium - protocol_fee
        new_exposure = pool.total_coverage_amount + coverage_amount
        if new_value > U64_MAX or new_exposure > U64_MAX:
            raise CalculationOverflowError(
                "create_coverage",
                details={"total_value_locked": str(new_value), "total_coverage_amount": str(new_exposure)},
            )
        updated_pool = replace(
            pool,
            total_value_locked=new_value,
            total_coverage_amount=new_exposure,
        )

        logger.info(
            "coverage_created",
            coverage_id=coverage_id,
            pool_id=pool.pool_id,
            coverage_amount=coverage_amount,
            coverage_period=coverage_period,
            premium_paid=quote.final_premium,
            protocol_fee=protocol_fee,
        )
        return coverage, updated_pool
