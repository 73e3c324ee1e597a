"""
Feed Readers.

Normalize raw provider reports into the canonical typed readings:
- price feeds (feed_id / price / conf / expo / publish_time)
- statistical aggregator rounds (aggregator_key / latest_value / std_deviation / num_success ...)
- domain-event feeds (trial_id / trial_status / regulatory_status / verification_hash ...)

Canonical field names are accepted as-is, so hosts that already speak the
BioShield schema can skip the provider mapping. Malformed reports raise
InvalidOracleDataError with the field-level errors attached.

Also provides FeedProfile presets: the validation thresholds that suit
each kind of feed.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import StrEnum
from typing import Any, Mapping, Optional, Type, TypeVar

import structlog
from pydantic import BaseModel, TypeAdapter, ValidationError

from bioshield.config import settings
from bioshield.errors import InvalidOracleDataError
from bioshield.oracles.validator import ValidationPolicy
from bioshield.schemas.feeds import (
    AggregatorReading,
    DomainEventReading,
    FeedReading,
    PriceReading,
)

logger = structlog.get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

# Provider field → canonical field
PRICE_FIELDS: dict[str, str] = {
    "feed_id": "source_id",
    "conf": "uncertainty",
    "expo": "exponent",
    "publish_time": "observed_at",
}

AGGREGATOR_FIELDS: dict[str, str] = {
    "aggregator_key": "source_id",
    "latest_value": "value",
    "latest_timestamp": "observed_at",
    "min_response_value": "minimum",
    "max_response_value": "maximum",
    "num_success": "success_count",
    "num_error": "error_count",
}

DOMAIN_EVENT_FIELDS: dict[str, str] = {
    "feed_id": "source_id",
    "trial_id": "subject_id",
    "last_updated": "observed_at",
    "verification_hash": "payload_digest",
    "reliability_score": "source_reliability",
}

_KIND_FIELDS: dict[str, dict[str, str]] = {
    "price": PRICE_FIELDS,
    "aggregator": AGGREGATOR_FIELDS,
    "domain_event": DOMAIN_EVENT_FIELDS,
}

_feed_reading_adapter = TypeAdapter(FeedReading)


def _normalize(raw: Mapping[str, Any], fields: dict[str, str]) -> dict[str, Any]:
    return {fields.get(key, key): value for key, value in raw.items()}


def _parse(model: Type[ModelT], data: dict[str, Any]) -> ModelT:
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        logger.warning(
            "feed_report_malformed",
            model=model.__name__,
            source_id=data.get("source_id"),
            errors=exc.error_count(),
        )
        raise InvalidOracleDataError(
            f"Malformed {model.__name__} report",
            errors=exc.errors(include_url=False, include_context=False),
        ) from exc


def read_price_report(raw: Mapping[str, Any]) -> PriceReading:
    return _parse(PriceReading, _normalize(raw, PRICE_FIELDS))


def read_aggregator_report(raw: Mapping[str, Any]) -> AggregatorReading:
    return _parse(AggregatorReading, _normalize(raw, AGGREGATOR_FIELDS))


def read_domain_event_report(raw: Mapping[str, Any]) -> DomainEventReading:
    return _parse(DomainEventReading, _normalize(raw, DOMAIN_EVENT_FIELDS))


def read_report(raw: Mapping[str, Any]):
    """Dispatch on the report's ``kind`` tag."""
    kind = raw.get("kind")
    if kind not in _KIND_FIELDS:
        raise InvalidOracleDataError(
            f"Unknown feed kind {kind!r}",
            errors=[{"loc": ["kind"], "msg": f"expected one of {sorted(_KIND_FIELDS)}"}],
        )
    data = _normalize(raw, _KIND_FIELDS[kind])
    try:
        return _feed_reading_adapter.validate_python(data)
    except ValidationError as exc:
        raise InvalidOracleDataError(
            f"Malformed {kind} report",
            errors=exc.errors(include_url=False, include_context=False),
        ) from exc


# ── Feed profiles ─────────────────────────────────────────────────────────


class FeedType(StrEnum):
    CLINICAL_TRIAL_SUCCESS = "ClinicalTrialSuccess"
    REGULATORY_APPROVAL = "RegulatoryApproval"
    PATENT_VALIDATION = "PatentValidation"
    MARKET_PRICE = "MarketPrice"
    BIOPHARMA_INDEX = "BioPharmaIndex"
    CUSTOM = "Custom"


@dataclass(frozen=True)
class FeedProfile:
    """Registered feed with the thresholds its readings are held to."""
    feed_name: str
    feed_type: FeedType
    max_age_seconds: int
    min_sample_size: int = 1
    max_variance: Decimal = Decimal("0.10")
    max_relative_uncertainty: Optional[Decimal] = None

    def to_policy(self) -> ValidationPolicy:
        return ValidationPolicy(
            max_age_seconds=self.max_age_seconds,
            max_relative_uncertainty=(
                self.max_relative_uncertainty
                if self.max_relative_uncertainty is not None
                else settings.oracle_max_relative_uncertainty
            ),
            min_sample_size=self.min_sample_size,
            max_variance=self.max_variance,
        )


def clinical_trial_profile(trial_name: str) -> FeedProfile:
    return FeedProfile(
        feed_name=f"Clinical Trial: {trial_name}",
        feed_type=FeedType.CLINICAL_TRIAL_SUCCESS,
        max_age_seconds=86400,    # heartbeat: 24 hours
        min_sample_size=3,
        max_variance=Decimal("0.10"),
    )


def regulatory_profile(agency_name: str) -> FeedProfile:
    return FeedProfile(
        feed_name=f"Regulatory: {agency_name}",
        feed_type=FeedType.REGULATORY_APPROVAL,
        max_age_seconds=172800,   # heartbeat: 48 hours
        min_sample_size=2,
        max_variance=Decimal("0.05"),
    )


def market_price_profile(asset_name: str) -> FeedProfile:
    return FeedProfile(
        feed_name=f"Market: {asset_name}",
        feed_type=FeedType.MARKET_PRICE,
        max_age_seconds=60,
        max_relative_uncertainty=Decimal("0.01"),
    )
