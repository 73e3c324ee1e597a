"""
Multi-Source Consensus Aggregator.

Collects validated readings of the three feed kinds into one snapshot:
- at most one reading per kind (last write wins)
- source_count = number of kinds present
- quorum gate before a snapshot may drive a payout
- advisory risk multiplier (1.0-2.0) for underwriting

Snapshots are built fresh per decision and never mutated.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Iterable, Optional

import structlog

from bioshield.errors import InsufficientOracleConsensusError
from bioshield.oracles.validator import ValidatedReading
from bioshield.schemas.feeds import (
    AggregatorReading,
    DomainEventReading,
    PriceReading,
    TrialStatus,
)
from bioshield.schemas.triggers import SnapshotMetric

logger = structlog.get_logger(__name__)

# ── Configuration ─────────────────────────────────────────────────────────

BASE_MULTIPLIER: Decimal = Decimal("1.0")
MAX_MULTIPLIER: Decimal = Decimal("2.0")
PRICE_VOLATILITY_WEIGHT: Decimal = Decimal("0.1")

TRIAL_STATUS_LOADING: dict[TrialStatus, Decimal] = {
    TrialStatus.ACTIVE: Decimal("0.05"),
    TrialStatus.PAUSED: Decimal("0.15"),
    TrialStatus.FAILED: Decimal("0.5"),
}


@dataclass(frozen=True)
class ConsensusSnapshot:
    """Zero or one reading per feed kind, formed at one instant."""
    formed_at: datetime
    price: Optional[PriceReading] = None
    aggregator: Optional[AggregatorReading] = None
    domain_event: Optional[DomainEventReading] = None

    @property
    def source_count(self) -> int:
        return sum(
            1 for r in (self.price, self.aggregator, self.domain_event) if r is not None
        )

    @property
    def contributing_sources(self) -> list[str]:
        return [
            r.source_id
            for r in (self.price, self.aggregator, self.domain_event)
            if r is not None
        ]

    def metrics(self) -> dict[str, Decimal]:
        """Values custom trigger conditions compare against. Absent readings are omitted."""
        values: dict[str, Decimal] = {
            SnapshotMetric.SOURCE_COUNT.value: Decimal(self.source_count),
        }

        if self.price is not None:
            values[SnapshotMetric.PRICE.value] = self.price.value
            ratio = self.price.relative_uncertainty
            if ratio is not None:
                values[SnapshotMetric.PRICE_RELATIVE_UNCERTAINTY.value] = ratio

        if self.aggregator is not None:
            values[SnapshotMetric.AGGREGATOR_VALUE.value] = self.aggregator.value
            values[SnapshotMetric.AGGREGATOR_CONFIDENCE.value] = self.aggregator.reported_confidence

        event = self.domain_event
        if event is not None:
            if event.efficacy_score is not None:
                values[SnapshotMetric.EFFICACY_SCORE.value] = event.efficacy_score
            if event.safety_score is not None:
                values[SnapshotMetric.SAFETY_SCORE.value] = event.safety_score
            values[SnapshotMetric.COMPLETION_PERCENTAGE.value] = Decimal(event.completion_percentage)

        return values

    def to_dict(self) -> dict:
        return {
            "formed_at": self.formed_at.isoformat(),
            "source_count": self.source_count,
            "sources": self.contributing_sources,
        }


def aggregate(
    validated_readings: Iterable[ValidatedReading],
    now: Optional[datetime] = None,
) -> ConsensusSnapshot:
    """
    Fold validated readings into a snapshot.

    Only ValidatedReading instances are accepted, so a reading that failed
    validation can never contribute.
    """
    if now is None:
        now = datetime.now(timezone.utc)

    slots: dict[str, object] = {}
    for validated in validated_readings:
        if not isinstance(validated, ValidatedReading):
            raise TypeError(
                f"aggregate() takes ValidatedReading, got {type(validated).__name__}"
            )
        if validated.kind in slots:
            logger.debug(
                "consensus_reading_replaced",
                kind=validated.kind,
                previous=slots[validated.kind].source_id,
                current=validated.source_id,
            )
        slots[validated.kind] = validated.reading

    snapshot = ConsensusSnapshot(
        formed_at=now,
        price=slots.get("price"),
        aggregator=slots.get("aggregator"),
        domain_event=slots.get("domain_event"),
    )

    logger.info(
        "consensus_formed",
        source_count=snapshot.source_count,
        sources=snapshot.contributing_sources,
    )
    return snapshot


def has_quorum(snapshot: ConsensusSnapshot, min_sources: int) -> bool:
    """A snapshot with fewer than one source never has evaluative power."""
    return snapshot.source_count >= max(min_sources, 1)


def require_quorum(snapshot: ConsensusSnapshot, min_sources: int) -> None:
    if not has_quorum(snapshot, min_sources):
        logger.warning(
            "consensus_quorum_failed",
            source_count=snapshot.source_count,
            min_sources=min_sources,
        )
        raise InsufficientOracleConsensusError(snapshot.source_count, max(min_sources, 1))


def risk_multiplier(snapshot: ConsensusSnapshot) -> Decimal:
    """
    Advisory pricing multiplier in [1.0, 2.0].

    1.0 + relative price uncertainty × 0.1 + trial-status loading, capped.
    A zero-price reading contributes nothing (it never passes validation).
    """
    multiplier = BASE_MULTIPLIER

    if snapshot.price is not None:
        ratio = snapshot.price.relative_uncertainty
        if ratio is not None:
            multiplier += ratio * PRICE_VOLATILITY_WEIGHT

    event = snapshot.domain_event
    if event is not None and event.trial_status is not None:
        multiplier += TRIAL_STATUS_LOADING.get(event.trial_status, Decimal(0))

    return min(multiplier, MAX_MULTIPLIER)
