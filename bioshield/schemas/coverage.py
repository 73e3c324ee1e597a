"""
Coverage, claim and pool records.

The canonical copies live in the host ledger. The core receives them by
value for the duration of one decision and returns updated copies; it
never mutates a record in place.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import StrEnum

from bioshield.errors import InvalidCoverageAmountError
from bioshield.schemas.triggers import TriggerConditions

# Amounts are token base units stored by the ledger as unsigned 64-bit values.
U64_MAX: int = 2**64 - 1


class RiskCategory(StrEnum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    VERY_HIGH = "VeryHigh"

    @property
    def base_rate_bp(self) -> int:
        """Annual premium rate in basis points."""
        return BASE_RATE_BP[self]


BASE_RATE_BP: dict[RiskCategory, int] = {
    RiskCategory.LOW: 300,
    RiskCategory.MEDIUM: 500,
    RiskCategory.HIGH: 800,
    RiskCategory.VERY_HIGH: 1200,
}


class CoverageType(StrEnum):
    CLINICAL_TRIAL_FAILURE = "ClinicalTrialFailure"
    REGULATORY_REJECTION = "RegulatoryRejection"
    IP_INVALIDATION = "IpInvalidation"
    RESEARCH_INFRASTRUCTURE = "ResearchInfrastructure"
    CUSTOM = "Custom"


class CoverageStatus(StrEnum):
    ACTIVE = "Active"
    EXPIRED = "Expired"
    EXHAUSTED = "Exhausted"
    CANCELLED = "Cancelled"


class ClaimStatus(StrEnum):
    PENDING = "Pending"
    UNDER_REVIEW = "UnderReview"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    PAID = "Paid"


def _utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass(frozen=True)
class CoverageTerms:
    """One parametric policy. remaining = coverage_amount - total_claimed >= 0."""
    coverage_id: str
    coverage_amount: int
    coverage_period: int                # seconds
    risk_category: RiskCategory
    trigger_conditions: TriggerConditions
    start_time: datetime
    coverage_type: CoverageType = CoverageType.CLINICAL_TRIAL_FAILURE
    premium_paid: int = 0
    deductible: int = 0
    total_claimed: int = 0
    claims_made: int = 0
    status: CoverageStatus = CoverageStatus.ACTIVE

    def __post_init__(self):
        object.__setattr__(self, "start_time", _utc(self.start_time))
        for name in ("coverage_amount", "premium_paid", "deductible", "total_claimed"):
            value = getattr(self, name)
            if not 0 <= value <= U64_MAX:
                raise InvalidCoverageAmountError(
                    f"{name} {value} outside ledger range", details={name: value},
                )
        if self.total_claimed > self.coverage_amount:
            raise InvalidCoverageAmountError(
                f"total_claimed {self.total_claimed} exceeds coverage {self.coverage_amount}",
                details={"total_claimed": self.total_claimed, "coverage_amount": self.coverage_amount},
            )

    @property
    def end_time(self) -> datetime:
        return self.start_time + timedelta(seconds=self.coverage_period)

    @property
    def remaining(self) -> int:
        return self.coverage_amount - self.total_claimed

    def is_in_force(self, now: datetime) -> bool:
        now = _utc(now)
        return (
            self.status == CoverageStatus.ACTIVE
            and self.start_time <= now <= self.end_time
        )


@dataclass(frozen=True)
class ClaimRequest:
    claim_id: str
    coverage_id: str
    claim_amount: int


@dataclass(frozen=True)
class PoolState:
    """Liquidity pool counters as read from the ledger for one call."""
    pool_id: str
    total_value_locked: int = 0
    total_shares: int = 0
    total_coverage_amount: int = 0
    total_claims_paid: int = 0
    fee_basis_points: int = 0
    min_coverage_amount: int = 1
    max_coverage_amount: int = U64_MAX
    is_paused: bool = False

    @property
    def is_empty(self) -> bool:
        return self.total_value_locked == 0 or self.total_shares == 0
