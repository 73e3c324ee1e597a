"""
Premium & Payout Calculator.

Integer arithmetic over token base units. Every intermediate is checked
against the ledger's unsigned 64-bit range; leaving it raises the
operation's overflow error instead of wrapping. Divisions truncate.

- premium: annual = amount × rate_bp / 10000; premium = annual × days / 365
- liquidity_share_tokens: 1:1 into an empty pool, otherwise pro rata
- payout: min(claim, remaining) - deductible, never negative
- utilization_rate: coverage × 10000 / liquidity, in basis points
"""

from decimal import ROUND_DOWN, Decimal
from typing import Type, Union

from bioshield.errors import (
    CalculationOverflowError,
    InvalidLiquidityAmountError,
    PayoutCalculationError,
    PremiumCalculationOverflowError,
)
from bioshield.schemas.coverage import U64_MAX, RiskCategory
from bioshield.schemas.triggers import BASIS_POINTS

SECONDS_PER_DAY: int = 24 * 60 * 60
DAYS_PER_YEAR: int = 365

# Score → category cut-offs (upper bounds, exclusive)
LOW_RISK_CEILING: Decimal = Decimal("0.30")
MEDIUM_RISK_CEILING: Decimal = Decimal("0.50")
HIGH_RISK_CEILING: Decimal = Decimal("0.70")


def _checked(
    value: int,
    operation: str,
    error: Type[CalculationOverflowError] = CalculationOverflowError,
) -> int:
    if not 0 <= value <= U64_MAX:
        raise error(operation, details={"value": str(value)})
    return value


def _operands(
    operation: str,
    error: Type[CalculationOverflowError],
    **values: int,
) -> None:
    for name, value in values.items():
        if not 0 <= value <= U64_MAX:
            raise error(operation, details={name: str(value)})


def premium(coverage_amount: int, coverage_period_seconds: int, risk_category: RiskCategory) -> int:
    """Premium owed for a coverage, before any multiplier or discount."""
    op = "premium"
    _operands(
        op, PremiumCalculationOverflowError,
        coverage_amount=coverage_amount,
        coverage_period_seconds=coverage_period_seconds,
    )

    rate_bp = RiskCategory(risk_category).base_rate_bp
    annual = _checked(coverage_amount * rate_bp, op, PremiumCalculationOverflowError) // BASIS_POINTS

    days = coverage_period_seconds // SECONDS_PER_DAY
    return _checked(annual * days, op, PremiumCalculationOverflowError) // DAYS_PER_YEAR


def liquidity_share_tokens(deposit: int, pool_total_value: int, pool_total_shares: int) -> int:
    """Pool shares minted for a deposit. The first depositor gets 1:1."""
    op = "liquidity_share_tokens"
    _operands(
        op, CalculationOverflowError,
        deposit=deposit,
        pool_total_value=pool_total_value,
        pool_total_shares=pool_total_shares,
    )

    if pool_total_value == 0 or pool_total_shares == 0:
        return deposit
    return _checked(deposit * pool_total_shares, op) // pool_total_value


def redemption_amount(shares: int, pool_total_value: int, pool_total_shares: int) -> int:
    """Pool value returned for burning ``shares``."""
    op = "redemption_amount"
    _operands(
        op, CalculationOverflowError,
        shares=shares,
        pool_total_value=pool_total_value,
        pool_total_shares=pool_total_shares,
    )

    if shares > pool_total_shares:
        raise InvalidLiquidityAmountError(shares)
    if pool_total_shares == 0:
        return 0
    return _checked(shares * pool_total_value, op) // pool_total_shares


def payout(claim_amount: int, coverage_amount: int, total_already_claimed: int, deductible: int) -> int:
    """
    Amount disbursed for an approved claim.

    Never more than the remaining coverage, never negative. A capped claim
    at or below the deductible pays nothing.
    """
    op = "payout"
    _operands(
        op, PayoutCalculationError,
        claim_amount=claim_amount,
        coverage_amount=coverage_amount,
        total_already_claimed=total_already_claimed,
        deductible=deductible,
    )

    remaining = coverage_amount - total_already_claimed
    if remaining < 0:
        raise PayoutCalculationError(
            op,
            details={
                "coverage_amount": coverage_amount,
                "total_already_claimed": total_already_claimed,
            },
        )

    capped = min(claim_amount, remaining)
    if capped <= deductible:
        return 0
    return capped - deductible


def utilization_rate(total_coverage: int, total_liquidity: int) -> int:
    """Outstanding coverage over liquidity, in basis points. 0 for an empty pool."""
    op = "utilization_rate"
    _operands(
        op, PremiumCalculationOverflowError,
        total_coverage=total_coverage,
        total_liquidity=total_liquidity,
    )

    if total_liquidity == 0:
        return 0
    return _checked(total_coverage * BASIS_POINTS, op, PremiumCalculationOverflowError) // total_liquidity


def apply_multiplier(
    amount: int,
    multiplier: Union[Decimal, int, float, str],
    error: Type[CalculationOverflowError] = CalculationOverflowError,
) -> int:
    """amount × multiplier, truncated toward zero and range-checked."""
    op = "apply_multiplier"
    _operands(op, error, amount=amount)

    factor = multiplier if isinstance(multiplier, Decimal) else Decimal(str(multiplier))
    if factor < 0 or not factor.is_finite():
        raise error(op, details={"multiplier": str(factor)})

    scaled = (Decimal(amount) * factor).to_integral_value(rounding=ROUND_DOWN)
    return _checked(int(scaled), op, error)


def risk_category_for_score(score: Union[Decimal, float]) -> RiskCategory:
    """Map a 0-1 risk score onto a premium category."""
    value = score if isinstance(score, Decimal) else Decimal(str(score))
    if value < LOW_RISK_CEILING:
        return RiskCategory.LOW
    if value < MEDIUM_RISK_CEILING:
        return RiskCategory.MEDIUM
    if value < HIGH_RISK_CEILING:
        return RiskCategory.HIGH
    return RiskCategory.VERY_HIGH
