"""
Liquidity pool operations.

Pools are plain PoolState values owned by the host ledger. Each operation
returns the amount moved and the updated state for the host to commit.
Outstanding coverage (written coverage minus claims already paid) must stay
backed by value locked, so withdrawals can never dip below it.
"""

from dataclasses import replace

import structlog

from bioshield.engine.calculations import liquidity_share_tokens, redemption_amount
from bioshield.engine.validations import validate_liquidity_amount, validate_pool_parameters
from bioshield.errors import (
    CalculationOverflowError,
    InsufficientLiquidityError,
    InvalidLiquidityAmountError,
    PoolPausedError,
)
from bioshield.schemas.coverage import U64_MAX, PoolState

logger = structlog.get_logger(__name__)


def initialize_pool(
    pool_id: str,
    min_coverage_amount: int,
    max_coverage_amount: int,
    fee_basis_points: int,
) -> PoolState:
    """Open an empty pool after checking its parameters."""
    validate_pool_parameters(min_coverage_amount, max_coverage_amount, fee_basis_points)
    logger.info(
        "pool_initialized",
        pool_id=pool_id,
        min_coverage_amount=min_coverage_amount,
        max_coverage_amount=max_coverage_amount,
        fee_basis_points=fee_basis_points,
    )
    return PoolState(
        pool_id=pool_id,
        fee_basis_points=fee_basis_points,
        min_coverage_amount=min_coverage_amount,
        max_coverage_amount=max_coverage_amount,
    )


def outstanding_coverage(pool: PoolState) -> int:
    return max(pool.total_coverage_amount - pool.total_claims_paid, 0)


def available_liquidity(pool: PoolState) -> int:
    """Value that is not needed to back outstanding coverage."""
    return max(pool.total_value_locked - outstanding_coverage(pool), 0)


def deposit_liquidity(pool: PoolState, amount: int) -> tuple[int, PoolState]:
    """Mint shares for a deposit. Returns (shares_minted, updated_pool)."""
    if pool.is_paused:
        raise PoolPausedError(pool.pool_id)
    validate_liquidity_amount(amount)

    shares = liquidity_share_tokens(amount, pool.total_value_locked, pool.total_shares)
    if shares == 0:
        # Too small to mint a single share after truncation
        raise InvalidLiquidityAmountError(amount)

    new_value = pool.total_value_locked + amount
    new_shares = pool.total_shares + shares
    if new_value > U64_MAX or new_shares > U64_MAX:
        raise CalculationOverflowError(
            "deposit_liquidity",
            details={"total_value_locked": str(new_value), "total_shares": str(new_shares)},
        )

    updated = replace(pool, total_value_locked=new_value, total_shares=new_shares)
    logger.info(
        "liquidity_deposited",
        pool_id=pool.pool_id,
        amount=amount,
        shares=shares,
        total_value_locked=new_value,
    )
    return shares, updated


def withdraw_liquidity(pool: PoolState, shares: int) -> tuple[int, PoolState]:
    """Burn shares for their pro-rata value. Returns (amount_paid, updated_pool)."""
    if pool.is_paused:
        raise PoolPausedError(pool.pool_id)
    validate_liquidity_amount(shares)

    amount = redemption_amount(shares, pool.total_value_locked, pool.total_shares)
    available = available_liquidity(pool)
    if amount > available:
        logger.warning(
            "withdrawal_exceeds_available_liquidity",
            pool_id=pool.pool_id,
            requested=amount,
            available=available,
        )
        raise InsufficientLiquidityError(required=amount, available=available)

    updated = replace(
        pool,
        total_value_locked=pool.total_value_locked - amount,
        total_shares=pool.total_shares - shares,
    )
    logger.info(
        "liquidity_withdrawn",
        pool_id=pool.pool_id,
        shares=shares,
        amount=amount,
        total_value_locked=updated.total_value_locked,
    )
    return amount, updated
