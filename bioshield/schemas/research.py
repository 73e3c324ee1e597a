"""
Research records scored by the risk models.

Clinical trials, regulatory applications and patents as delivered by the
domain feeds. Only the fields the scoring models read are required.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Optional

from bioshield.schemas.feeds import PatentStatus, RegulatoryStatus, TrialStatus


# ── Clinical trials ───────────────────────────────────────────────────────


class ClinicalPhase(StrEnum):
    PRECLINICAL = "Preclinical"
    PHASE_I = "PhaseI"
    PHASE_II = "PhaseII"
    PHASE_III = "PhaseIII"
    PHASE_IV = "PhaseIV"
    NOT_APPLICABLE = "NotApplicable"


class Severity(StrEnum):
    MILD = "Mild"
    MODERATE = "Moderate"
    SEVERE = "Severe"
    LIFE_THREATENING = "LifeThreatening"
    FATAL = "Fatal"


SEVERE_ADVERSE: frozenset[Severity] = frozenset({
    Severity.SEVERE, Severity.LIFE_THREATENING, Severity.FATAL,
})


@dataclass(frozen=True)
class AdverseEvent:
    event_term: str
    severity: Severity
    frequency: int = 1
    total_participants: int = 0


@dataclass(frozen=True)
class OutcomeData:
    measure: str
    result_value: Optional[float] = None
    p_value: Optional[float] = None
    meets_primary_endpoint: Optional[bool] = None


@dataclass(frozen=True)
class ClinicalTrialData:
    nct_id: str
    phase: ClinicalPhase
    status: TrialStatus
    enrollment_target: int
    enrollment_actual: int
    primary_outcome: Optional[OutcomeData] = None
    adverse_events: tuple[AdverseEvent, ...] = field(default_factory=tuple)
    sponsor: str = ""


# ── Regulatory applications ───────────────────────────────────────────────


class ApplicationType(StrEnum):
    NDA = "NDA"            # New Drug Application
    BLA = "BLA"            # Biologics License Application
    ANDA = "ANDA"          # Abbreviated New Drug Application
    IDE = "IDE"            # Investigational Device Exemption
    PMA = "PMA"            # Premarket Approval
    DE_510K = "De510k"     # 510(k) clearance
    EMA = "EMA"
    OTHER = "Other"


@dataclass(frozen=True)
class DeficiencyLetter:
    issue_date: datetime
    deficiency_count: int
    responded: bool = False
    major_deficiencies: int = 0
    minor_deficiencies: int = 0


@dataclass(frozen=True)
class AdvisoryCommitteeData:
    meeting_date: datetime
    votes_yes: int
    votes_no: int
    abstentions: int = 0
    committee_name: str = ""


@dataclass(frozen=True)
class RegulatoryData:
    application_id: str
    application_type: ApplicationType
    review_status: RegulatoryStatus
    breakthrough_designation: bool = False
    fast_track_designation: bool = False
    orphan_drug_designation: bool = False
    priority_review: bool = False
    deficiency_letters: tuple[DeficiencyLetter, ...] = field(default_factory=tuple)
    advisory_committee_meeting: Optional[AdvisoryCommitteeData] = None
    drug_name: str = ""


# ── Intellectual property ─────────────────────────────────────────────────


class LitigationStatus(StrEnum):
    FILED = "Filed"
    DISCOVERY = "Discovery"
    TRIAL = "Trial"
    APPEAL = "Appeal"
    SETTLED = "Settled"
    DISMISSED = "Dismissed"
    JUDGMENT = "Judgment"


@dataclass(frozen=True)
class LitigationEvent:
    case_number: str
    filing_date: datetime
    case_status: LitigationStatus = LitigationStatus.FILED
    court: str = ""


@dataclass(frozen=True)
class IntellectualPropertyData:
    patent_number: str
    filing_date: datetime
    patent_status: PatentStatus
    claim_count: int = 0
    independent_claims: int = 0
    litigation_history: tuple[LitigationEvent, ...] = field(default_factory=tuple)
    assignee: str = ""
