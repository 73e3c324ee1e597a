"""
Parametric Trigger Evaluator.

Decides whether a consensus snapshot confirms a covered event.
Checks run in a fixed order and the first match wins:

1. clinical_trial_failure flag + trial status Failed / Terminated
2. regulatory_rejection flag + regulatory status Rejected / Withdrawn
3. ip_invalidation flag + patent status Invalidated
4. efficacy score below minimum_threshold
5. aggregator value below minimum_threshold
6. custom conditions, in declared order

A missing reading skips the checks that need it; it never fails the
evaluation. The verdict names the trigger that fired so a claimant can see
why a payout did (or did not) happen.
"""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Optional

import structlog

from bioshield.oracles.consensus import ConsensusSnapshot
from bioshield.schemas.feeds import PatentStatus, RegulatoryStatus, TrialStatus
from bioshield.schemas.triggers import TriggerConditions

logger = structlog.get_logger(__name__)

FAILED_TRIAL_STATUSES: frozenset[TrialStatus] = frozenset({
    TrialStatus.FAILED, TrialStatus.TERMINATED,
})
REJECTED_REGULATORY_STATUSES: frozenset[RegulatoryStatus] = frozenset({
    RegulatoryStatus.REJECTED, RegulatoryStatus.WITHDRAWN,
})
INVALIDATED_PATENT_STATUSES: frozenset[PatentStatus] = frozenset({
    PatentStatus.INVALIDATED,
})


class TriggerName(StrEnum):
    CLINICAL_TRIAL_FAILURE = "clinical_trial_failure"
    REGULATORY_REJECTION = "regulatory_rejection"
    IP_INVALIDATION = "ip_invalidation"
    EFFICACY_BELOW_THRESHOLD = "efficacy_below_threshold"
    AGGREGATOR_BELOW_THRESHOLD = "aggregator_below_threshold"
    CUSTOM_CONDITION = "custom_condition"


@dataclass(frozen=True)
class TriggerVerdict:
    triggered: bool
    matched_trigger: Optional[TriggerName] = None
    detail: str = ""
    skipped: tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            "triggered": self.triggered,
            "matched_trigger": self.matched_trigger.value if self.matched_trigger else None,
            "detail": self.detail,
            "skipped": list(self.skipped),
        }


class TriggerEvaluator:
    """First-match evaluation of trigger conditions over a snapshot."""

    def evaluate(
        self,
        snapshot: ConsensusSnapshot,
        conditions: TriggerConditions,
    ) -> TriggerVerdict:
        skipped: list[str] = []
        event = snapshot.domain_event
        threshold = conditions.threshold_fraction

        # ── 1. Clinical trial failure ─────────────────────────────────
        if conditions.clinical_trial_failure:
            if event is None or event.trial_status is None:
                skipped.append(TriggerName.CLINICAL_TRIAL_FAILURE.value)
            elif event.trial_status in FAILED_TRIAL_STATUSES:
                return self._matched(
                    TriggerName.CLINICAL_TRIAL_FAILURE,
                    f"trial {event.subject_id} status {event.trial_status.value}",
                    skipped,
                )

        # ── 2. Regulatory rejection ───────────────────────────────────
        if conditions.regulatory_rejection:
            if event is None or event.regulatory_status is None:
                skipped.append(TriggerName.REGULATORY_REJECTION.value)
            elif event.regulatory_status in REJECTED_REGULATORY_STATUSES:
                return self._matched(
                    TriggerName.REGULATORY_REJECTION,
                    f"{event.subject_id} regulatory status {event.regulatory_status.value}",
                    skipped,
                )

        # ── 3. IP invalidation ────────────────────────────────────────
        if conditions.ip_invalidation:
            if event is None or event.patent_status is None:
                skipped.append(TriggerName.IP_INVALIDATION.value)
            elif event.patent_status in INVALIDATED_PATENT_STATUSES:
                return self._matched(
                    TriggerName.IP_INVALIDATION,
                    f"{event.subject_id} patent status {event.patent_status.value}",
                    skipped,
                )

        # ── 4. Efficacy threshold ─────────────────────────────────────
        if event is not None and event.efficacy_score is not None:
            if event.efficacy_score < threshold:
                return self._matched(
                    TriggerName.EFFICACY_BELOW_THRESHOLD,
                    f"efficacy {event.efficacy_score} below {threshold}",
                    skipped,
                )
        else:
            skipped.append(TriggerName.EFFICACY_BELOW_THRESHOLD.value)

        # ── 5. Aggregator threshold ───────────────────────────────────
        if snapshot.aggregator is not None:
            if snapshot.aggregator.value < threshold:
                return self._matched(
                    TriggerName.AGGREGATOR_BELOW_THRESHOLD,
                    f"aggregator {snapshot.aggregator.source_id} value "
                    f"{snapshot.aggregator.value} below {threshold}",
                    skipped,
                )
        else:
            skipped.append(TriggerName.AGGREGATOR_BELOW_THRESHOLD.value)

        # ── 6. Custom conditions ──────────────────────────────────────
        if conditions.custom_conditions:
            metrics = snapshot.metrics()
            for condition in conditions.custom_conditions:
                observed = metrics.get(condition.condition_type)
                if observed is None:
                    skipped.append(f"custom:{condition.condition_type}")
                    continue
                if condition.comparison_operator.compare(observed, condition.threshold):
                    return self._matched(
                        TriggerName.CUSTOM_CONDITION,
                        f"{condition.condition_type} {observed} "
                        f"{condition.comparison_operator.value} {condition.threshold}",
                        skipped,
                    )

        logger.info(
            "trigger_not_met",
            source_count=snapshot.source_count,
            skipped=skipped,
        )
        return TriggerVerdict(
            triggered=False,
            detail="no configured trigger matched the oracle data",
            skipped=tuple(skipped),
        )

    def _matched(
        self,
        name: TriggerName,
        detail: str,
        skipped: list[str],
    ) -> TriggerVerdict:
        logger.info("trigger_matched", trigger=name.value, detail=detail)
        return TriggerVerdict(
            triggered=True,
            matched_trigger=name,
            detail=detail,
            skipped=tuple(skipped),
        )


_default_evaluator = TriggerEvaluator()


def evaluate_trigger(snapshot: ConsensusSnapshot, conditions: TriggerConditions) -> bool:
    """True when the snapshot confirms a payout-worthy event."""
    return _default_evaluator.evaluate(snapshot, conditions).triggered
