"""
Property-Based Tests for the BioShield core.

Uses Hypothesis to check properties that must hold for ALL inputs:
- Premium: non-negative, monotone in amount and period
- Payout: bounded by remaining coverage, never negative
- Shares: 1:1 on an empty pool, proportional otherwise
- Scoring: every score stays in [0, 1]
- Triggers: deterministic verdicts
- Consensus: rejected readings never reach a snapshot
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

from hypothesis import assume, given, settings
from hypothesis import strategies as st

from bioshield.engine.calculations import (
    liquidity_share_tokens,
    payout,
    premium,
    utilization_rate,
)
from bioshield.engine.scoring import approval_probability, invalidation_risk, trial_risk_score
from bioshield.engine.triggers import evaluate_trigger
from bioshield.oracles.consensus import ConsensusSnapshot, aggregate, has_quorum, risk_multiplier
from bioshield.oracles.validator import FeedValidator
from bioshield.schemas.coverage import RiskCategory
from bioshield.schemas.feeds import (
    AggregatorReading,
    DomainEventReading,
    PatentStatus,
    PriceReading,
    RegulatoryStatus,
    TrialStatus,
)
from bioshield.schemas.research import (
    AdverseEvent,
    AdvisoryCommitteeData,
    ApplicationType,
    ClinicalPhase,
    ClinicalTrialData,
    DeficiencyLetter,
    IntellectualPropertyData,
    LitigationEvent,
    RegulatoryData,
    Severity,
)
from bioshield.schemas.triggers import TriggerConditions

NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)
AMOUNTS = st.integers(min_value=0, max_value=10**12)
PERIODS = st.integers(min_value=0, max_value=5 * 365 * 86400)
CATEGORIES = st.sampled_from(list(RiskCategory))


# ── Premium Properties ────────────────────────────────────────────────


class TestPremiumProperties:
    @given(amount=AMOUNTS, period=PERIODS, category=CATEGORIES)
    @settings(max_examples=100)
    def test_premium_non_negative(self, amount, period, category):
        assert premium(amount, period, category) >= 0

    @given(a=AMOUNTS, b=AMOUNTS, period=PERIODS, category=CATEGORIES)
    @settings(max_examples=100)
    def test_monotone_in_amount(self, a, b, period, category):
        low, high = sorted((a, b))
        assert premium(low, period, category) <= premium(high, period, category)

    @given(amount=AMOUNTS, p=PERIODS, q=PERIODS, category=CATEGORIES)
    @settings(max_examples=100)
    def test_monotone_in_period(self, amount, p, q, category):
        short, long = sorted((p, q))
        assert premium(amount, short, category) <= premium(amount, long, category)


# ── Payout Properties ─────────────────────────────────────────────────


class TestPayoutProperties:
    @given(
        claim=AMOUNTS,
        coverage=AMOUNTS,
        claimed_fraction=st.floats(min_value=0, max_value=1),
        deductible=AMOUNTS,
    )
    @settings(max_examples=200)
    def test_payout_bounded(self, claim, coverage, claimed_fraction, deductible):
        claimed = int(coverage * claimed_fraction)
        assume(claimed <= coverage)
        amount = payout(claim, coverage, claimed, deductible)
        assert 0 <= amount <= coverage - claimed
        assert amount <= claim


# ── Liquidity Properties ──────────────────────────────────────────────


class TestLiquidityProperties:
    @given(deposit=AMOUNTS)
    def test_empty_pool_one_to_one(self, deposit):
        assert liquidity_share_tokens(deposit, 0, 0) == deposit

    @given(
        deposits=st.lists(st.integers(min_value=1, max_value=10**9), min_size=1, max_size=10),
        value=st.integers(min_value=1, max_value=10**9),
        shares=st.integers(min_value=1, max_value=10**9),
    )
    @settings(max_examples=100)
    def test_proportional_within_truncation(self, deposits, value, shares):
        """sum(tokens) / shares ≈ sum(deposits) / value, within one token per deposit."""
        minted = [liquidity_share_tokens(d, value, shares) for d in deposits]
        exact = Decimal(sum(deposits)) * shares / value
        assert exact - len(deposits) <= sum(minted) <= exact

    @given(coverage=AMOUNTS, liquidity=AMOUNTS)
    def test_utilization_non_negative(self, coverage, liquidity):
        assert utilization_rate(coverage, liquidity) >= 0


# ── Scoring Properties ────────────────────────────────────────────────


trials = st.builds(
    ClinicalTrialData,
    nct_id=st.just("NCT00000001"),
    phase=st.sampled_from(list(ClinicalPhase)),
    status=st.sampled_from(list(TrialStatus)),
    enrollment_target=st.integers(min_value=0, max_value=10_000),
    enrollment_actual=st.integers(min_value=0, max_value=10_000),
    adverse_events=st.lists(
        st.builds(AdverseEvent, event_term=st.just("ae"), severity=st.sampled_from(list(Severity))),
        max_size=20,
    ).map(tuple),
)

applications = st.builds(
    RegulatoryData,
    application_id=st.just("APP-1"),
    application_type=st.sampled_from(list(ApplicationType)),
    review_status=st.sampled_from(list(RegulatoryStatus)),
    breakthrough_designation=st.booleans(),
    fast_track_designation=st.booleans(),
    orphan_drug_designation=st.booleans(),
    deficiency_letters=st.lists(
        st.builds(
            DeficiencyLetter,
            issue_date=st.just(NOW),
            deficiency_count=st.integers(min_value=0, max_value=100),
            responded=st.booleans(),
        ),
        max_size=5,
    ).map(tuple),
    advisory_committee_meeting=st.none() | st.builds(
        AdvisoryCommitteeData,
        meeting_date=st.just(NOW),
        votes_yes=st.integers(min_value=0, max_value=30),
        votes_no=st.integers(min_value=0, max_value=30),
    ),
)

patents = st.builds(
    IntellectualPropertyData,
    patent_number=st.just("US1"),
    filing_date=st.integers(min_value=-365 * 5, max_value=365 * 60).map(
        lambda days: NOW - timedelta(days=days)
    ),
    patent_status=st.sampled_from(list(PatentStatus)),
    claim_count=st.integers(min_value=0, max_value=1_000),
    litigation_history=st.lists(
        st.builds(LitigationEvent, case_number=st.just("c"), filing_date=st.just(NOW)),
        max_size=30,
    ).map(tuple),
)


class TestScoringProperties:
    @given(trial=trials)
    @settings(max_examples=200)
    def test_trial_risk_bounded(self, trial):
        assert 0.0 <= trial_risk_score(trial) <= 1.0

    @given(application=applications)
    @settings(max_examples=200)
    def test_approval_probability_bounded(self, application):
        assert 0.0 <= approval_probability(application) <= 1.0

    @given(patent=patents)
    @settings(max_examples=200)
    def test_invalidation_risk_bounded(self, patent):
        assert 0.0 <= invalidation_risk(patent, now=NOW) <= 1.0


# ── Oracle Properties ─────────────────────────────────────────────────


events = st.builds(
    DomainEventReading,
    source_id=st.just("ev"),
    subject_id=st.just("NCT00000001"),
    observed_at=st.just(NOW),
    trial_status=st.none() | st.sampled_from(list(TrialStatus)),
    regulatory_status=st.none() | st.sampled_from(list(RegulatoryStatus)),
    patent_status=st.none() | st.sampled_from(list(PatentStatus)),
    efficacy_score=st.none() | st.decimals(min_value=0, max_value=1, places=2),
)


class TestOracleProperties:
    @given(
        event=events,
        threshold=st.integers(min_value=0, max_value=10_000),
        flags=st.tuples(st.booleans(), st.booleans(), st.booleans()).filter(any),
    )
    @settings(max_examples=200)
    def test_trigger_deterministic(self, event, threshold, flags):
        conditions = TriggerConditions(
            clinical_trial_failure=flags[0],
            regulatory_rejection=flags[1],
            ip_invalidation=flags[2],
            minimum_threshold=threshold,
        )
        snapshot = ConsensusSnapshot(formed_at=NOW, domain_event=event)
        assert evaluate_trigger(snapshot, conditions) == evaluate_trigger(snapshot, conditions)

    @given(
        price=st.integers(min_value=-10**12, max_value=10**12),
        uncertainty=st.integers(min_value=0, max_value=10**12),
        event=st.none() | events,
    )
    @settings(max_examples=200)
    def test_risk_multiplier_bounded(self, price, uncertainty, event):
        snapshot = ConsensusSnapshot(
            formed_at=NOW,
            price=PriceReading(source_id="p", observed_at=NOW, price=price, uncertainty=uncertainty),
            domain_event=event,
        )
        assert Decimal("1.0") <= risk_multiplier(snapshot) <= Decimal("2.0")

    @given(
        stale_by=st.integers(min_value=1, max_value=10**6),
        success_count=st.integers(min_value=0, max_value=2),
    )
    @settings(max_examples=50)
    def test_rejected_readings_never_reach_snapshot(self, stale_by, success_count):
        validator = FeedValidator()
        max_age = validator.policy.max_age_seconds
        readings = [
            PriceReading(
                source_id="stale",
                observed_at=NOW - timedelta(seconds=max_age + stale_by),
                price=100,
                uncertainty=0,
            ),
            AggregatorReading(
                source_id="thin",
                observed_at=NOW,
                value=Decimal(1),
                success_count=success_count,
                error_count=5,
            ),
        ]
        snapshot = aggregate(validator.screen(readings, now=NOW).accepted, now=NOW)
        assert snapshot.source_count == 0
        assert not has_quorum(snapshot, 1)
