"""
Feed Freshness & Confidence Validator.

Every reading must pass here before it can influence a payout decision:
1. Freshness: now - observed_at <= max_age
2. Price confidence: uncertainty / |price| <= max_relative_uncertainty
3. Aggregator quality: enough successful responses, low dispersion
4. Domain-event integrity: attached digest matches the host's recomputation

All checks are pure. Rejections are typed errors carrying a RejectionReason;
``FeedValidator.screen`` turns them into a rejection list so one bad feed
never aborts a batch.
"""

import hmac
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Iterable, Mapping, Optional, Union

import structlog

from bioshield.config import settings
from bioshield.errors import (
    FeedRejectedError,
    HighVarianceError,
    InsufficientResponsesError,
    LowConfidenceError,
    RejectionReason,
    StaleDataError,
    VerificationFailedError,
)
from bioshield.schemas.feeds import AggregatorReading, DomainEventReading, PriceReading

logger = structlog.get_logger(__name__)

Reading = Union[PriceReading, AggregatorReading, DomainEventReading]


def _decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _now(now: Optional[datetime]) -> datetime:
    if now is None:
        return datetime.now(timezone.utc)
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now


@dataclass(frozen=True)
class ValidationPolicy:
    """Thresholds a reading must meet."""
    max_age_seconds: int
    max_relative_uncertainty: Decimal
    min_sample_size: int
    max_variance: Decimal

    @classmethod
    def from_settings(cls) -> "ValidationPolicy":
        return cls(
            max_age_seconds=settings.oracle_max_age_seconds,
            max_relative_uncertainty=settings.oracle_max_relative_uncertainty,
            min_sample_size=settings.oracle_min_sample_size,
            max_variance=settings.oracle_max_variance,
        )


@dataclass(frozen=True)
class ValidatedReading:
    """A reading that passed every check. Only these reach a snapshot."""
    reading: Reading
    validated_at: datetime
    age_seconds: float

    @property
    def kind(self) -> str:
        return self.reading.kind

    @property
    def source_id(self) -> str:
        return self.reading.source_id


@dataclass(frozen=True)
class FeedRejection:
    source_id: str
    kind: str
    reason: RejectionReason
    message: str

    def to_dict(self) -> dict:
        return {
            "source_id": self.source_id,
            "kind": self.kind,
            "reason": self.reason.value,
            "message": self.message,
        }


@dataclass
class ScreeningResult:
    accepted: list[ValidatedReading] = field(default_factory=list)
    rejections: list[FeedRejection] = field(default_factory=list)

    @property
    def all_rejected(self) -> bool:
        return not self.accepted


# ── Individual checks ─────────────────────────────────────────────────────


def check_freshness(reading: Reading, max_age_seconds: int, now: datetime) -> float:
    """Return the reading's age in seconds; StaleDataError if older than allowed."""
    age = (now - reading.observed_at).total_seconds()
    if age > max_age_seconds:
        raise StaleDataError(
            reading.source_id,
            f"observed {age:.0f}s ago (max {max_age_seconds}s)",
            details={"age_seconds": age, "max_age_seconds": max_age_seconds},
        )
    return age


def check_price_confidence(reading: PriceReading, max_relative_uncertainty: Decimal) -> None:
    ratio = reading.relative_uncertainty
    if ratio is None:
        raise LowConfidenceError(
            reading.source_id, "price is zero, relative uncertainty is unbounded",
        )
    if ratio > max_relative_uncertainty:
        raise LowConfidenceError(
            reading.source_id,
            f"relative uncertainty {ratio:.6f} exceeds {max_relative_uncertainty}",
            details={
                "relative_uncertainty": str(ratio),
                "max_relative_uncertainty": str(max_relative_uncertainty),
            },
        )


def check_aggregator_quality(
    reading: AggregatorReading,
    min_sample_size: int,
    max_variance: Decimal,
) -> None:
    if reading.success_count < min_sample_size:
        raise InsufficientResponsesError(
            reading.source_id,
            f"{reading.success_count} successful responses (min {min_sample_size})",
            details={
                "success_count": reading.success_count,
                "error_count": reading.error_count,
                "min_sample_size": min_sample_size,
            },
        )

    cv = reading.coefficient_of_variation or Decimal(0)
    if cv > max_variance:
        raise HighVarianceError(
            reading.source_id,
            f"coefficient of variation {cv:.6f} exceeds {max_variance}",
            details={"coefficient_of_variation": str(cv), "max_variance": str(max_variance)},
        )


def check_integrity(reading: DomainEventReading, expected_digest: Optional[str]) -> None:
    """Compare the attached digest with the host's independent recomputation."""
    if not expected_digest:
        raise VerificationFailedError(
            reading.source_id, "no independently recomputed digest supplied",
        )
    if not reading.payload_digest:
        raise VerificationFailedError(reading.source_id, "reading carries no payload digest")
    if not hmac.compare_digest(
        reading.payload_digest.lower().encode(), expected_digest.lower().encode()
    ):
        raise VerificationFailedError(reading.source_id, "payload digest mismatch")


# ── Entry points ──────────────────────────────────────────────────────────


def validate_reading(
    reading: Reading,
    max_age_seconds: int,
    max_relative_uncertainty,
    min_sample_size: int,
    max_variance=None,
    expected_digest: Optional[str] = None,
    now: Optional[datetime] = None,
) -> ValidatedReading:
    """
    Validate a single reading against explicit thresholds.

    Returns a ValidatedReading, or raises the FeedRejectedError subclass
    matching the first failed check.
    """
    now = _now(now)
    if max_variance is None:
        max_variance = settings.oracle_max_variance

    age = check_freshness(reading, max_age_seconds, now)

    if isinstance(reading, PriceReading):
        check_price_confidence(reading, _decimal(max_relative_uncertainty))
    elif isinstance(reading, AggregatorReading):
        check_aggregator_quality(reading, min_sample_size, _decimal(max_variance))
    elif isinstance(reading, DomainEventReading):
        check_integrity(reading, expected_digest)
    else:
        raise TypeError(f"Unsupported reading type: {type(reading).__name__}")

    return ValidatedReading(reading=reading, validated_at=now, age_seconds=age)


class FeedValidator:
    """Validates readings against a ValidationPolicy."""

    def __init__(self, policy: Optional[ValidationPolicy] = None):
        self.policy = policy or ValidationPolicy.from_settings()

    def validate(
        self,
        reading: Reading,
        expected_digest: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> ValidatedReading:
        try:
            validated = validate_reading(
                reading,
                max_age_seconds=self.policy.max_age_seconds,
                max_relative_uncertainty=self.policy.max_relative_uncertainty,
                min_sample_size=self.policy.min_sample_size,
                max_variance=self.policy.max_variance,
                expected_digest=expected_digest,
                now=now,
            )
        except FeedRejectedError as exc:
            logger.warning(
                "feed_rejected",
                source_id=reading.source_id,
                kind=reading.kind,
                reason=exc.reason.value,
                message=exc.message,
            )
            raise

        logger.debug(
            "feed_validated",
            source_id=reading.source_id,
            kind=reading.kind,
            age_seconds=round(validated.age_seconds, 1),
        )
        return validated

    def screen(
        self,
        readings: Iterable[Reading],
        digests: Optional[Mapping[str, str]] = None,
        now: Optional[datetime] = None,
    ) -> ScreeningResult:
        """
        Validate a batch. Digests are keyed by source_id.

        Rejected readings are collected, never raised.
        """
        now = _now(now)
        digests = digests or {}
        result = ScreeningResult()

        for reading in readings:
            try:
                result.accepted.append(
                    self.validate(reading, digests.get(reading.source_id), now)
                )
            except FeedRejectedError as exc:
                result.rejections.append(FeedRejection(
                    source_id=reading.source_id,
                    kind=reading.kind,
                    reason=exc.reason,
                    message=exc.message,
                ))

        logger.info(
            "feeds_screened",
            accepted=len(result.accepted),
            rejected=len(result.rejections),
        )
        return result
