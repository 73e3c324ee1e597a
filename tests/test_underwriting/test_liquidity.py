"""
Liquidity Pool Tests.
"""

from dataclasses import replace

import pytest

from bioshield.errors import (
    InsufficientLiquidityError,
    InvalidLiquidityAmountError,
    InvalidPoolParametersError,
    PoolPausedError,
)
from bioshield.schemas.coverage import PoolState
from bioshield.underwriting.liquidity import (
    available_liquidity,
    deposit_liquidity,
    initialize_pool,
    outstanding_coverage,
    withdraw_liquidity,
)


class TestInitializePool:
    def test_opens_empty_pool(self):
        pool = initialize_pool("pool-a", 1_000, 1_000_000, 250)
        assert pool.is_empty
        assert pool.fee_basis_points == 250
        assert pool.min_coverage_amount == 1_000

    @pytest.mark.parametrize("min_coverage,max_coverage,fee", [
        (0, 1_000, 100),
        (1_000, 1_000, 100),
        (1_000, 10_000, 1_001),
    ])
    def test_invalid_parameters(self, min_coverage, max_coverage, fee):
        with pytest.raises(InvalidPoolParametersError):
            initialize_pool("pool-a", min_coverage, max_coverage, fee)


class TestDeposit:
    def setup_method(self):
        self.pool = initialize_pool("pool-a", 1_000, 1_000_000, 100)

    def test_first_deposit_one_to_one(self):
        shares, pool = deposit_liquidity(self.pool, 10_000)
        assert shares == 10_000
        assert pool.total_value_locked == 10_000
        assert pool.total_shares == 10_000
        assert self.pool.is_empty

    def test_later_deposit_pro_rata(self):
        _, pool = deposit_liquidity(self.pool, 10_000)
        # Premium income doubles value per share
        pool = replace(pool, total_value_locked=20_000)
        shares, pool = deposit_liquidity(pool, 5_000)
        assert shares == 2_500
        assert pool.total_shares == 12_500
        assert pool.total_value_locked == 25_000

    def test_zero_deposit(self):
        with pytest.raises(InvalidLiquidityAmountError):
            deposit_liquidity(self.pool, 0)

    def test_dust_deposit(self):
        pool = PoolState(pool_id="pool-b", total_value_locked=1_000, total_shares=3)
        with pytest.raises(InvalidLiquidityAmountError):
            deposit_liquidity(pool, 1)

    def test_paused_pool(self):
        with pytest.raises(PoolPausedError):
            deposit_liquidity(replace(self.pool, is_paused=True), 1_000)


class TestWithdraw:
    def test_withdraw_everything_without_coverage(self):
        pool = PoolState(pool_id="pool-a", total_value_locked=2_000, total_shares=1_000)
        amount, pool = withdraw_liquidity(pool, 1_000)
        assert amount == 2_000
        assert pool.is_empty

    def test_outstanding_coverage_stays_backed(self):
        pool = PoolState(
            pool_id="pool-a",
            total_value_locked=1_000,
            total_shares=1_000,
            total_coverage_amount=800,
        )
        assert available_liquidity(pool) == 200
        with pytest.raises(InsufficientLiquidityError) as exc_info:
            withdraw_liquidity(pool, 500)
        assert exc_info.value.details == {"required": 500, "available": 200}

        amount, pool = withdraw_liquidity(pool, 200)
        assert amount == 200
        assert pool.total_value_locked == 800

    def test_claims_paid_release_backing(self):
        pool = PoolState(
            pool_id="pool-a",
            total_value_locked=1_000,
            total_shares=1_000,
            total_coverage_amount=800,
            total_claims_paid=300,
        )
        assert outstanding_coverage(pool) == 500
        assert available_liquidity(pool) == 500

    def test_more_shares_than_supply(self):
        pool = PoolState(pool_id="pool-a", total_value_locked=1_000, total_shares=1_000)
        with pytest.raises(InvalidLiquidityAmountError):
            withdraw_liquidity(pool, 1_001)

    def test_zero_shares(self):
        pool = PoolState(pool_id="pool-a", total_value_locked=1_000, total_shares=1_000)
        with pytest.raises(InvalidLiquidityAmountError):
            withdraw_liquidity(pool, 0)
