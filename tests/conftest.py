"""
Test fixtures for BioShield tests.

Provides:
- A fixed evaluation instant
- Reading factories for each feed kind (domain events carry a valid digest)
- Trigger condition, coverage and pool factories
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from bioshield.schemas.coverage import CoverageTerms, PoolState, RiskCategory
from bioshield.schemas.feeds import (
    AggregatorReading,
    DomainEventReading,
    PriceReading,
    TrialStatus,
    compute_payload_digest,
)
from bioshield.schemas.triggers import TriggerConditions

NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def make_price():
    def _make(
        source_id: str = "pyth-BIOX",
        price: int = 10_000,
        exponent: int = -2,
        uncertainty: int = 50,
        age_seconds: int = 60,
    ) -> PriceReading:
        return PriceReading(
            source_id=source_id,
            observed_at=NOW - timedelta(seconds=age_seconds),
            price=price,
            exponent=exponent,
            uncertainty=uncertainty,
        )
    return _make


@pytest.fixture
def make_aggregator():
    def _make(
        source_id: str = "sb-trial-efficacy",
        value: str = "0.85",
        std_deviation: str = "0.02",
        success_count: int = 7,
        error_count: int = 0,
        age_seconds: int = 60,
    ) -> AggregatorReading:
        return AggregatorReading(
            source_id=source_id,
            observed_at=NOW - timedelta(seconds=age_seconds),
            value=Decimal(value),
            std_deviation=Decimal(std_deviation),
            success_count=success_count,
            error_count=error_count,
        )
    return _make


@pytest.fixture
def make_event():
    def _make(
        source_id: str = "ctgov-feed",
        subject_id: str = "NCT01234567",
        trial_status: TrialStatus | None = TrialStatus.ACTIVE,
        age_seconds: int = 60,
        sign: bool = True,
        **fields,
    ) -> DomainEventReading:
        reading = DomainEventReading(
            source_id=source_id,
            subject_id=subject_id,
            observed_at=NOW - timedelta(seconds=age_seconds),
            trial_status=trial_status,
            **fields,
        )
        if sign:
            reading = reading.model_copy(
                update={"payload_digest": compute_payload_digest(reading)}
            )
        return reading
    return _make


@pytest.fixture
def trial_failure_conditions() -> TriggerConditions:
    return TriggerConditions(clinical_trial_failure=True, minimum_threshold=5000)


@pytest.fixture
def make_coverage(trial_failure_conditions):
    def _make(**overrides) -> CoverageTerms:
        fields = dict(
            coverage_id="cov-001",
            coverage_amount=100_000,
            coverage_period=365 * 86400,
            risk_category=RiskCategory.MEDIUM,
            trigger_conditions=trial_failure_conditions,
            start_time=NOW - timedelta(days=30),
            premium_paid=5_000,
            deductible=5_000,
            total_claimed=20_000,
        )
        fields.update(overrides)
        return CoverageTerms(**fields)
    return _make


@pytest.fixture
def pool() -> PoolState:
    return PoolState(
        pool_id="pool-main",
        total_value_locked=1_000_000,
        total_shares=1_000_000,
        total_coverage_amount=100_000,
        fee_basis_points=100,
        min_coverage_amount=1_000,
        max_coverage_amount=10_000_000,
    )
