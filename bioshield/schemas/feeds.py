"""
Feed Reading Schemas.

The three kinds of data BioShield accepts from its oracles, after the host
has fetched and authenticated them:

- PriceReading: a price-style numeric feed (fixed-point value ± uncertainty)
- AggregatorReading: a statistical aggregator round (value, spread, responses)
- DomainEventReading: a clinical / regulatory / patent event with a payload digest

Readings are immutable. ``FeedReading`` is the closed union the validator,
aggregator and trigger evaluator dispatch on via the ``kind`` tag.
"""

import hashlib
import json
from datetime import datetime, timezone
from decimal import Decimal
from enum import StrEnum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TrialStatus(StrEnum):
    PLANNED = "Planned"
    RECRUITING = "Recruiting"
    ACTIVE = "Active"
    PAUSED = "Paused"
    COMPLETED = "Completed"
    FAILED = "Failed"
    TERMINATED = "Terminated"


class RegulatoryStatus(StrEnum):
    PRE_APPROVAL = "PreApproval"
    UNDER_REVIEW = "UnderReview"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    WITHDRAWN = "Withdrawn"
    POST_MARKET = "PostMarket"


class PatentStatus(StrEnum):
    PENDING = "Pending"
    GRANTED = "Granted"
    ABANDONED = "Abandoned"
    EXPIRED = "Expired"
    INVALIDATED = "Invalidated"
    REEXAMINATION = "Reexamination"


class DataSource(StrEnum):
    CLINICAL_TRIALS_GOV = "ClinicalTrialsGov"
    FDA = "FDA"
    EMA = "EMA"
    NIH = "NIH"
    WHO = "WHO"
    USPTO = "USPTO"
    PUBMED = "PubMed"
    CLINICAL_DATA = "ClinicalData"
    CUSTOM_API = "CustomAPI"
    MANUAL_INPUT = "ManualInput"


class _Reading(BaseModel):
    """Attributes common to every feed kind."""

    model_config = ConfigDict(frozen=True)

    source_id: str = Field(min_length=1, description="Feed / aggregator identifier")
    observed_at: datetime = Field(description="When the source observed the value")

    @field_validator("observed_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class PriceReading(_Reading):
    """Fixed-point price: value = price × 10^exponent, same scale for uncertainty."""

    kind: Literal["price"] = "price"
    price: int
    exponent: int = 0
    uncertainty: int = Field(ge=0)

    @property
    def value(self) -> Decimal:
        return Decimal(self.price).scaleb(self.exponent)

    @property
    def relative_uncertainty(self) -> Optional[Decimal]:
        """uncertainty / |price|, or None when the price is zero."""
        if self.price == 0:
            return None
        return Decimal(self.uncertainty) / abs(Decimal(self.price))

    @property
    def reported_confidence(self) -> Decimal:
        ratio = self.relative_uncertainty
        if ratio is None:
            return Decimal(0)
        return Decimal(1) - min(ratio, Decimal(1))


class AggregatorReading(_Reading):
    """One confirmed round from a statistical aggregator feed."""

    kind: Literal["aggregator"] = "aggregator"
    value: Decimal
    minimum: Optional[Decimal] = None
    maximum: Optional[Decimal] = None
    std_deviation: Decimal = Field(default=Decimal(0), ge=0)
    success_count: int = Field(ge=0)
    error_count: int = Field(default=0, ge=0)

    @property
    def coefficient_of_variation(self) -> Optional[Decimal]:
        """std_deviation / |value|, or None when the value is zero."""
        if self.value == 0:
            return None
        return self.std_deviation / abs(self.value)

    @property
    def reported_confidence(self) -> Decimal:
        total = self.success_count + self.error_count
        if total == 0:
            return Decimal(0)

        success_rate = Decimal(self.success_count) / Decimal(total)
        cv = self.coefficient_of_variation
        if cv is None:
            cv = Decimal(1)
        stability = max(Decimal(0), Decimal(1) - min(cv, Decimal(1)))
        return (success_rate + stability) / 2


class DomainEventReading(_Reading):
    """Clinical, regulatory or patent status report for one subject."""

    kind: Literal["domain_event"] = "domain_event"
    subject_id: str = Field(min_length=1, description="Trial NCT id, application id or patent number")
    trial_status: Optional[TrialStatus] = None
    regulatory_status: Optional[RegulatoryStatus] = None
    patent_status: Optional[PatentStatus] = None
    efficacy_score: Optional[Decimal] = Field(default=None, ge=0, le=1)
    safety_score: Optional[Decimal] = Field(default=None, ge=0, le=1)
    completion_percentage: int = Field(default=0, ge=0, le=100)
    data_source: DataSource = DataSource.CUSTOM_API
    source_reliability: Decimal = Field(default=Decimal(1), ge=0, le=1)
    payload_digest: str = Field(default="", description="Hex SHA-256 of the payload")

    @property
    def reported_confidence(self) -> Decimal:
        return self.source_reliability


FeedReading = Annotated[
    Union[PriceReading, AggregatorReading, DomainEventReading],
    Field(discriminator="kind"),
]


def compute_payload_digest(reading: DomainEventReading) -> str:
    """
    Canonical SHA-256 over every payload field except the digest itself.

    Hosts recompute this from the payload they received and hand the result
    to the validator, which compares it with the digest the feed attached.
    """
    payload = reading.model_dump(mode="json", exclude={"payload_digest"})
    encoded = json.dumps(payload, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()
