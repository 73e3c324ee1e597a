"""
Tests for Feed Readers.

Covers:
- Provider field mapping for each feed kind
- Canonical field names pass through
- Malformed reports raise InvalidOracleDataError
- Kind dispatch
- Feed profile presets
"""

from datetime import timezone
from decimal import Decimal

import pytest

from bioshield.config import settings
from bioshield.errors import ErrorCode, InvalidOracleDataError
from bioshield.oracles.readers import (
    FeedType,
    clinical_trial_profile,
    market_price_profile,
    read_aggregator_report,
    read_domain_event_report,
    read_price_report,
    read_report,
    regulatory_profile,
)
from bioshield.schemas.feeds import (
    AggregatorReading,
    DataSource,
    DomainEventReading,
    PriceReading,
    TrialStatus,
)


# ── Price reports ──────────────────────────────────────────────────────


class TestPriceReports:
    def test_provider_fields_mapped(self):
        reading = read_price_report({
            "feed_id": "pyth-BIOX",
            "price": 12345,
            "conf": 10,
            "expo": -2,
            "publish_time": "2026-01-15T11:59:00Z",
        })
        assert isinstance(reading, PriceReading)
        assert reading.source_id == "pyth-BIOX"
        assert reading.value == Decimal("123.45")
        assert reading.uncertainty == 10
        assert reading.observed_at.tzinfo is not None

    def test_canonical_fields_accepted(self):
        reading = read_price_report({
            "source_id": "direct",
            "price": 500,
            "exponent": 0,
            "uncertainty": 1,
            "observed_at": "2026-01-15T11:59:00",
        })
        assert reading.source_id == "direct"
        # Naive timestamps are read as UTC
        assert reading.observed_at.tzinfo == timezone.utc

    def test_missing_price_rejected(self):
        with pytest.raises(InvalidOracleDataError) as exc_info:
            read_price_report({
                "feed_id": "pyth-BIOX",
                "conf": 10,
                "publish_time": "2026-01-15T11:59:00Z",
            })
        assert exc_info.value.error_code == ErrorCode.INVALID_ORACLE_DATA
        assert exc_info.value.details["errors"]

    def test_negative_uncertainty_rejected(self):
        with pytest.raises(InvalidOracleDataError):
            read_price_report({
                "feed_id": "pyth-BIOX",
                "price": 100,
                "conf": -1,
                "publish_time": "2026-01-15T11:59:00Z",
            })


# ── Aggregator reports ─────────────────────────────────────────────────


class TestAggregatorReports:
    def test_provider_fields_mapped(self):
        reading = read_aggregator_report({
            "aggregator_key": "sb-trial-efficacy",
            "latest_value": "0.85",
            "latest_timestamp": "2026-01-15T11:58:00Z",
            "min_response_value": "0.80",
            "max_response_value": "0.90",
            "std_deviation": "0.03",
            "num_success": 5,
            "num_error": 1,
        })
        assert isinstance(reading, AggregatorReading)
        assert reading.value == Decimal("0.85")
        assert reading.minimum == Decimal("0.80")
        assert reading.success_count == 5
        assert reading.error_count == 1

    def test_no_responses_means_zero_confidence(self):
        reading = read_aggregator_report({
            "aggregator_key": "sb-empty",
            "latest_value": "1",
            "latest_timestamp": "2026-01-15T11:58:00Z",
            "num_success": 0,
        })
        assert reading.reported_confidence == Decimal(0)


# ── Domain-event reports ───────────────────────────────────────────────


class TestDomainEventReports:
    def test_provider_fields_mapped(self):
        reading = read_domain_event_report({
            "feed_id": "ctgov-feed",
            "trial_id": "NCT01234567",
            "trial_status": "Failed",
            "last_updated": "2026-01-15T11:00:00Z",
            "verification_hash": "ab" * 32,
            "reliability_score": "0.9",
            "data_source": "ClinicalTrialsGov",
        })
        assert isinstance(reading, DomainEventReading)
        assert reading.subject_id == "NCT01234567"
        assert reading.trial_status == TrialStatus.FAILED
        assert reading.payload_digest == "ab" * 32
        assert reading.data_source == DataSource.CLINICAL_TRIALS_GOV
        assert reading.reported_confidence == Decimal("0.9")

    def test_efficacy_out_of_range_rejected(self):
        with pytest.raises(InvalidOracleDataError):
            read_domain_event_report({
                "feed_id": "ctgov-feed",
                "trial_id": "NCT01234567",
                "last_updated": "2026-01-15T11:00:00Z",
                "efficacy_score": "1.5",
            })

    def test_unknown_status_rejected(self):
        with pytest.raises(InvalidOracleDataError):
            read_domain_event_report({
                "feed_id": "ctgov-feed",
                "trial_id": "NCT01234567",
                "last_updated": "2026-01-15T11:00:00Z",
                "trial_status": "Abandoned",
            })


# ── Dispatch ───────────────────────────────────────────────────────────


class TestReadReport:
    def test_dispatches_on_kind(self):
        reading = read_report({
            "kind": "price",
            "feed_id": "pyth-BIOX",
            "price": 100,
            "conf": 1,
            "publish_time": "2026-01-15T11:59:00Z",
        })
        assert isinstance(reading, PriceReading)

    def test_domain_event_kind(self):
        reading = read_report({
            "kind": "domain_event",
            "feed_id": "fda-feed",
            "trial_id": "BLA-761234",
            "regulatory_status": "Rejected",
            "last_updated": "2026-01-15T11:00:00Z",
        })
        assert isinstance(reading, DomainEventReading)

    def test_unknown_kind_rejected(self):
        with pytest.raises(InvalidOracleDataError, match="Unknown feed kind"):
            read_report({"kind": "weather", "source_id": "x"})

    def test_malformed_report_rejected(self):
        with pytest.raises(InvalidOracleDataError):
            read_report({"kind": "aggregator", "aggregator_key": "sb"})


# ── Feed profiles ──────────────────────────────────────────────────────


class TestFeedProfiles:
    def test_clinical_trial_profile(self):
        profile = clinical_trial_profile("ONC-301")
        policy = profile.to_policy()
        assert profile.feed_type == FeedType.CLINICAL_TRIAL_SUCCESS
        assert policy.max_age_seconds == 86400
        assert policy.min_sample_size == 3
        assert policy.max_variance == Decimal("0.10")
        assert policy.max_relative_uncertainty == settings.oracle_max_relative_uncertainty

    def test_regulatory_profile(self):
        policy = regulatory_profile("FDA").to_policy()
        assert policy.max_age_seconds == 172800
        assert policy.min_sample_size == 2
        assert policy.max_variance == Decimal("0.05")

    def test_market_price_profile(self):
        profile = market_price_profile("BIOX/USD")
        policy = profile.to_policy()
        assert profile.feed_name == "Market: BIOX/USD"
        assert policy.max_age_seconds == 60
        assert policy.max_relative_uncertainty == Decimal("0.01")
