"""
Claim Adjudicator — oracle evidence → payout decision.

Pipeline:
1. Coverage must be active and in force; pool must not be paused
2. Claim amount must fit the remaining coverage
3. Consensus snapshot must meet quorum
4. Trigger conditions evaluated against the snapshot
5. Payout computed (cap, deductible) and booked on coverage and pool
6. Packaged into a ClaimDecision with the reasons behind it

Validation and quorum failures raise; a trigger that does not fire is a
normal REJECTED decision carrying the evaluator's explanation.
"""

from dataclasses import replace
from datetime import datetime, timezone
from typing import Iterable, Mapping, Optional

import structlog

from bioshield.claims.schemas import ClaimDecision
from bioshield.config import settings
from bioshield.engine.calculations import payout
from bioshield.engine.triggers import TriggerEvaluator
from bioshield.engine.validations import validate_claim_amount
from bioshield.errors import (
    BioShieldError,
    CoverageNotActiveError,
    ErrorCode,
    InsufficientLiquidityError,
    PoolPausedError,
)
from bioshield.oracles.consensus import (
    ConsensusSnapshot,
    aggregate,
    require_quorum,
    risk_multiplier,
)
from bioshield.oracles.validator import FeedRejection, FeedValidator, Reading
from bioshield.schemas.coverage import (
    ClaimRequest,
    ClaimStatus,
    CoverageStatus,
    CoverageTerms,
    PoolState,
)

logger = structlog.get_logger(__name__)


def _utc_now(now: Optional[datetime]) -> datetime:
    if now is None:
        return datetime.now(timezone.utc)
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now


class ClaimAdjudicator:
    """
    Decides claims against parametric coverage.

    Stateless across calls: every input arrives by value and the updated
    coverage and pool come back inside the decision.
    """

    def __init__(
        self,
        validator: Optional[FeedValidator] = None,
        evaluator: Optional[TriggerEvaluator] = None,
        min_sources: Optional[int] = None,
    ):
        self.validator = validator or FeedValidator()
        self.evaluator = evaluator or TriggerEvaluator()
        self.min_sources = settings.oracle_min_sources if min_sources is None else min_sources

    def adjudicate(
        self,
        claim: ClaimRequest,
        coverage: CoverageTerms,
        pool: PoolState,
        snapshot: ConsensusSnapshot,
        now: Optional[datetime] = None,
        rejected_feeds: Optional[list[FeedRejection]] = None,
    ) -> ClaimDecision:
        now = _utc_now(now)
        rejected_feeds = list(rejected_feeds or [])

        # ── 1. Coverage and pool state ──────────────────────────────
        if claim.coverage_id != coverage.coverage_id:
            raise BioShieldError(
                f"Claim {claim.claim_id} references coverage {claim.coverage_id}, "
                f"not {coverage.coverage_id}",
                ErrorCode.VALIDATION_ERROR,
                details={"claim_id": claim.claim_id, "coverage_id": coverage.coverage_id},
            )
        if not coverage.is_in_force(now):
            status = coverage.status.value
            if coverage.status == CoverageStatus.ACTIVE:
                status = "NotStarted" if now < coverage.start_time else CoverageStatus.EXPIRED.value
            raise CoverageNotActiveError(coverage.coverage_id, status)
        if pool.is_paused:
            raise PoolPausedError(pool.pool_id)

        # ── 2. Claim amount ─────────────────────────────────────────
        validate_claim_amount(claim.claim_amount, coverage.coverage_amount, coverage.total_claimed)

        # ── 3. Quorum ───────────────────────────────────────────────
        require_quorum(snapshot, self.min_sources)

        # ── 4. Trigger ──────────────────────────────────────────────
        verdict = self.evaluator.evaluate(snapshot, coverage.trigger_conditions)
        multiplier = risk_multiplier(snapshot)

        if not verdict.triggered:
            updated_coverage = replace(coverage, claims_made=coverage.claims_made + 1)
            decision = ClaimDecision(
                claim_id=claim.claim_id,
                coverage_id=coverage.coverage_id,
                status=ClaimStatus.REJECTED,
                triggered=False,
                payout_amount=0,
                decided_at=now,
                coverage=updated_coverage,
                pool=pool,
                reasons=[verdict.detail],
                rejected_feeds=rejected_feeds,
                risk_multiplier=multiplier,
                source_count=snapshot.source_count,
            )
            logger.info(
                "claim_rejected",
                claim_id=claim.claim_id,
                coverage_id=coverage.coverage_id,
                reason=verdict.detail,
                skipped=list(verdict.skipped),
            )
            return decision

        # ── 5. Payout ───────────────────────────────────────────────
        amount = payout(
            claim.claim_amount,
            coverage.coverage_amount,
            coverage.total_claimed,
            coverage.deductible,
        )
        if amount > pool.total_value_locked:
            raise InsufficientLiquidityError(required=amount, available=pool.total_value_locked)

        total_claimed = coverage.total_claimed + amount
        status = (
            CoverageStatus.EXHAUSTED
            if total_claimed >= coverage.coverage_amount
            else coverage.status
        )
        updated_coverage = replace(
            coverage,
            total_claimed=total_claimed,
            claims_made=coverage.claims_made + 1,
            status=status,
        )
        updated_pool = replace(
            pool,
            total_value_locked=pool.total_value_locked - amount,
            total_claims_paid=pool.total_claims_paid + amount,
        )

        reasons = [f"{verdict.matched_trigger.value}: {verdict.detail}"]
        if amount == 0:
            reasons.append(
                f"claim within deductible of {coverage.deductible}, nothing payable"
            )

        # ── 6. Package ──────────────────────────────────────────────
        decision = ClaimDecision(
            claim_id=claim.claim_id,
            coverage_id=coverage.coverage_id,
            status=ClaimStatus.APPROVED,
            triggered=True,
            payout_amount=amount,
            decided_at=now,
            coverage=updated_coverage,
            pool=updated_pool,
            matched_trigger=verdict.matched_trigger.value,
            reasons=reasons,
            rejected_feeds=rejected_feeds,
            risk_multiplier=multiplier,
            source_count=snapshot.source_count,
        )

        logger.info(
            "claim_approved",
            claim_id=claim.claim_id,
            coverage_id=coverage.coverage_id,
            trigger=verdict.matched_trigger.value,
            payout=amount,
            total_claimed=total_claimed,
            coverage_status=status.value,
        )
        return decision

    def adjudicate_readings(
        self,
        claim: ClaimRequest,
        coverage: CoverageTerms,
        pool: PoolState,
        readings: Iterable[Reading],
        digests: Optional[Mapping[str, str]] = None,
        now: Optional[datetime] = None,
    ) -> ClaimDecision:
        """Screen raw readings, form consensus, then adjudicate."""
        now = _utc_now(now)
        screening = self.validator.screen(readings, digests=digests, now=now)
        snapshot = aggregate(screening.accepted, now=now)
        return self.adjudicate(
            claim,
            coverage,
            pool,
            snapshot,
            now=now,
            rejected_feeds=screening.rejections,
        )
