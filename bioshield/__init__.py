"""
BioShield — parametric insurance core for biotech research risk.

Architecture:
    bioshield/
    ├── schemas/         # Feed readings, trigger conditions, coverage and research records
    ├── oracles/         # Feed readers, freshness/confidence validator, consensus
    ├── engine/          # Trigger evaluator, risk scoring, premium/payout arithmetic
    ├── underwriting/    # Premium quotes, coverage creation, pool liquidity
    ├── claims/          # Claim adjudication
    ├── config.py        # Pydantic settings
    ├── errors.py        # Typed error taxonomy
    └── log_config.py    # structlog setup

Module Boundaries:
    - The host fetches and authenticates feed data; the core never does I/O
    - The host owns the coverage and pool ledger; the core returns updated copies
    - Every rejection carries a typed, distinguishable reason
    - Amounts are integers checked against the unsigned 64-bit ledger range

Data Flow:
    Raw report → Reader → Validator → Consensus snapshot → Trigger evaluator
    → Payout calculator → Claim decision → Host commit

Version: 1.0.0
"""

__version__ = "1.0.0"
