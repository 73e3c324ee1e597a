"""
ORACLE — feed ingestion and consensus.

Data flow:
    raw report → readers → validator → consensus snapshot → trigger evaluator

- readers: provider report → typed reading, feed profiles
- validator: freshness, confidence, sample size, variance, digest checks
- consensus: one reading per kind, quorum, advisory risk multiplier
"""

from bioshield.oracles.consensus import (
    ConsensusSnapshot,
    aggregate,
    has_quorum,
    require_quorum,
    risk_multiplier,
)
from bioshield.oracles.readers import (
    FeedProfile,
    FeedType,
    clinical_trial_profile,
    market_price_profile,
    read_aggregator_report,
    read_domain_event_report,
    read_price_report,
    read_report,
    regulatory_profile,
)
from bioshield.oracles.validator import (
    FeedRejection,
    FeedValidator,
    ScreeningResult,
    ValidatedReading,
    ValidationPolicy,
    validate_reading,
)

__all__ = [
    # Consensus
    "ConsensusSnapshot",
    "aggregate",
    "has_quorum",
    "require_quorum",
    "risk_multiplier",
    # Readers
    "FeedProfile",
    "FeedType",
    "clinical_trial_profile",
    "market_price_profile",
    "read_aggregator_report",
    "read_domain_event_report",
    "read_price_report",
    "read_report",
    "regulatory_profile",
    # Validator
    "FeedRejection",
    "FeedValidator",
    "ScreeningResult",
    "ValidatedReading",
    "ValidationPolicy",
    "validate_reading",
]
