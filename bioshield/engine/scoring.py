"""
Research Risk Scoring Models.

Three independent, advisory scores in [0, 1]:
- trial_risk_score: how likely a clinical trial is to fail
- approval_probability: how likely a regulatory application is to be approved
- invalidation_risk: how likely a patent is to be invalidated

Scores are additive over a handful of factors and saturate at the bounds.
They feed underwriting (risk category selection) and never move money
directly, so plain floats are used here.
"""

from datetime import datetime, timezone
from typing import Optional

import structlog

from bioshield.schemas.feeds import PatentStatus, TrialStatus
from bioshield.schemas.research import (
    SEVERE_ADVERSE,
    ApplicationType,
    ClinicalPhase,
    ClinicalTrialData,
    IntellectualPropertyData,
    RegulatoryData,
)

logger = structlog.get_logger(__name__)

# ── Clinical trial factors ────────────────────────────────────────────────

PHASE_RISK: dict[ClinicalPhase, float] = {
    ClinicalPhase.PRECLINICAL: 0.8,
    ClinicalPhase.PHASE_I: 0.7,
    ClinicalPhase.PHASE_II: 0.5,
    ClinicalPhase.PHASE_III: 0.3,
    ClinicalPhase.PHASE_IV: 0.1,
    ClinicalPhase.NOT_APPLICABLE: 0.4,
}

TRIAL_STATUS_RISK: dict[TrialStatus, float] = {
    TrialStatus.PLANNED: 0.2,
    TrialStatus.RECRUITING: 0.15,
    TrialStatus.ACTIVE: 0.1,
    TrialStatus.PAUSED: 0.4,
    TrialStatus.COMPLETED: 0.0,
    TrialStatus.FAILED: 1.0,
    TrialStatus.TERMINATED: 1.0,
}

POOR_ENROLLMENT_RATIO: float = 0.5
POOR_ENROLLMENT_PENALTY: float = 0.3
MODERATE_ENROLLMENT_RATIO: float = 0.8
MODERATE_ENROLLMENT_PENALTY: float = 0.1
SEVERE_AE_WEIGHT: float = 0.5

ENDPOINT_MET_PROBABILITY: float = 0.9
ENDPOINT_MISSED_PROBABILITY: float = 0.1

# ── Regulatory factors ────────────────────────────────────────────────────

BASE_APPROVAL_PROBABILITY: float = 0.5

APPLICATION_TYPE_ADJUSTMENT: dict[ApplicationType, float] = {
    ApplicationType.NDA: 0.10,
    ApplicationType.BLA: 0.15,
    ApplicationType.ANDA: 0.30,     # generics
    ApplicationType.DE_510K: 0.20,
}

BREAKTHROUGH_BONUS: float = 0.2
FAST_TRACK_BONUS: float = 0.1
ORPHAN_DRUG_BONUS: float = 0.15
DEFICIENCY_PENALTY: float = 0.02
COMMITTEE_VOTE_WEIGHT: float = 0.3

# ── Patent factors ────────────────────────────────────────────────────────

SECONDS_PER_YEAR: int = 365 * 24 * 60 * 60

AGE_RISK_MAX: float = 0.3
AGE_RISK_SATURATION_YEARS: int = 20
LITIGATION_RISK_MAX: float = 0.2
LITIGATION_RISK_SATURATION: int = 10
CLAIM_RISK_MAX: float = 0.1
CLAIM_RISK_SATURATION: int = 50

PATENT_STATUS_RISK: dict[PatentStatus, float] = {
    PatentStatus.PENDING: 0.4,
    PatentStatus.GRANTED: 0.0,
    PatentStatus.REEXAMINATION: 0.6,
    PatentStatus.ABANDONED: 1.0,
    PatentStatus.EXPIRED: 1.0,
    PatentStatus.INVALIDATED: 1.0,
}


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def _saturating(count: float, saturation: float, maximum: float) -> float:
    """Linear term reaching ``maximum`` at ``saturation`` and staying there."""
    return min(count / saturation, 1.0) * maximum


# ── Scores ────────────────────────────────────────────────────────────────


def trial_risk_score(trial: ClinicalTrialData) -> float:
    """
    Failure risk of a clinical trial.

    phase risk + enrollment shortfall + status risk + severe AE rate × 0.5,
    capped at 1.0. A Failed or Terminated trial always scores 1.0.
    """
    risk = PHASE_RISK[trial.phase]

    if trial.enrollment_actual > 0 and trial.enrollment_target > 0:
        ratio = trial.enrollment_actual / trial.enrollment_target
        if ratio < POOR_ENROLLMENT_RATIO:
            risk += POOR_ENROLLMENT_PENALTY
        elif ratio < MODERATE_ENROLLMENT_RATIO:
            risk += MODERATE_ENROLLMENT_PENALTY

    risk += TRIAL_STATUS_RISK[trial.status]

    severe = sum(1 for ae in trial.adverse_events if ae.severity in SEVERE_ADVERSE)
    risk += severe / max(trial.enrollment_actual, 1) * SEVERE_AE_WEIGHT

    return _clamp(risk)


def efficacy_probability(trial: ClinicalTrialData) -> Optional[float]:
    """
    Probability the trial meets its primary endpoint, if anything is known.

    An explicit endpoint result wins; otherwise 1 - p_value.
    """
    outcome = trial.primary_outcome
    if outcome is None:
        return None
    if outcome.meets_primary_endpoint is not None:
        return (
            ENDPOINT_MET_PROBABILITY
            if outcome.meets_primary_endpoint
            else ENDPOINT_MISSED_PROBABILITY
        )
    if outcome.p_value is not None:
        return _clamp(1.0 - outcome.p_value)
    return None


def approval_probability(application: RegulatoryData) -> float:
    """Approval likelihood of a regulatory application."""
    probability = BASE_APPROVAL_PROBABILITY
    probability += APPLICATION_TYPE_ADJUSTMENT.get(application.application_type, 0.0)

    if application.breakthrough_designation:
        probability += BREAKTHROUGH_BONUS
    if application.fast_track_designation:
        probability += FAST_TRACK_BONUS
    if application.orphan_drug_designation:
        probability += ORPHAN_DRUG_BONUS

    # Answered letters no longer count against the application
    open_deficiencies = sum(
        letter.deficiency_count
        for letter in application.deficiency_letters
        if not letter.responded
    )
    probability -= open_deficiencies * DEFICIENCY_PENALTY

    committee = application.advisory_committee_meeting
    if committee is not None:
        votes = committee.votes_yes + committee.votes_no
        if votes > 0:
            probability += (committee.votes_yes / votes - 0.5) * COMMITTEE_VOTE_WEIGHT

    return _clamp(probability)


def patent_age_years(filing_date: datetime, now: Optional[datetime] = None) -> int:
    """Whole 365-day years since filing, never negative."""
    if now is None:
        now = datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    if filing_date.tzinfo is None:
        filing_date = filing_date.replace(tzinfo=timezone.utc)

    elapsed = int((now - filing_date).total_seconds())
    return max(elapsed // SECONDS_PER_YEAR, 0)


def invalidation_risk(
    patent: IntellectualPropertyData,
    now: Optional[datetime] = None,
) -> float:
    """
    Invalidation risk of a patent.

    Age, litigation and claim-count terms each saturate at their maximum;
    the status term dominates for dead patents.
    """
    risk = _saturating(
        patent_age_years(patent.filing_date, now), AGE_RISK_SATURATION_YEARS, AGE_RISK_MAX,
    )
    risk += _saturating(
        len(patent.litigation_history), LITIGATION_RISK_SATURATION, LITIGATION_RISK_MAX,
    )
    risk += _saturating(patent.claim_count, CLAIM_RISK_SATURATION, CLAIM_RISK_MAX)
    risk += PATENT_STATUS_RISK[patent.patent_status]

    score = _clamp(risk)
    logger.debug(
        "patent_risk_scored",
        patent_number=patent.patent_number,
        status=patent.patent_status.value,
        risk=round(score, 4),
    )
    return score
