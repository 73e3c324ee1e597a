"""Underwriting: premium quotes, coverage creation and pool liquidity."""

from bioshield.underwriting.liquidity import (
    available_liquidity,
    deposit_liquidity,
    initialize_pool,
    outstanding_coverage,
    withdraw_liquidity,
)
from bioshield.underwriting.underwriter import PremiumQuote, Underwriter

__all__ = [
    "PremiumQuote",
    "Underwriter",
    "available_liquidity",
    "deposit_liquidity",
    "initialize_pool",
    "outstanding_coverage",
    "withdraw_liquidity",
]
