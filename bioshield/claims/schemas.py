"""
Claim decision record.

A decision answers: did a covered event happen, what does the policy pay,
and why. It carries the updated coverage and pool for the host to commit.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional

from bioshield.oracles.validator import FeedRejection
from bioshield.schemas.coverage import ClaimStatus, CoverageTerms, PoolState


@dataclass(frozen=True)
class ClaimDecision:
    claim_id: str
    coverage_id: str
    status: ClaimStatus
    triggered: bool
    payout_amount: int
    decided_at: datetime
    coverage: CoverageTerms              # updated copy
    pool: PoolState                      # updated copy
    matched_trigger: Optional[str] = None
    reasons: list[str] = field(default_factory=list)
    rejected_feeds: list[FeedRejection] = field(default_factory=list)
    risk_multiplier: Decimal = Decimal("1.0")
    source_count: int = 0

    @property
    def approved(self) -> bool:
        return self.status == ClaimStatus.APPROVED

    def to_dict(self) -> dict:
        return {
            "claim_id": self.claim_id,
            "coverage_id": self.coverage_id,
            "status": self.status.value,
            "triggered": self.triggered,
            "matched_trigger": self.matched_trigger,
            "payout_amount": self.payout_amount,
            "reasons": list(self.reasons),
            "rejected_feeds": [r.to_dict() for r in self.rejected_feeds],
            "risk_multiplier": str(self.risk_multiplier),
            "source_count": self.source_count,
            "total_claimed": self.coverage.total_claimed,
            "coverage_status": self.coverage.status.value,
            "decided_at": self.decided_at.isoformat(),
        }
