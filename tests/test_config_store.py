from decimal import Decimal

import pytest
from conftest import ALICE, ATOM, FEE_COLLECTOR, OSMO, REWARD

from autocompounder.config_store import (
    canonical_pool_assets,
    check_fee,
    derive_min_cooldown,
    refresh_staking_policy,
    select_unbonding_period,
    set_fees,
)
from autocompounder.errors import (
    BondingPeriodUnavailable,
    InvalidAddress,
    InvalidFee,
    MaxCountError,
    PoolWithMoreThanTwoAssets,
    StakedUnderOtherPeriod,
    UnbondingPeriodsIncoherent,
)
from autocompounder.models import BondingPeriodSelector, Duration
from autocompounder.simulation import SimpleStaking

PERIODS = [Duration.height(300), Duration.height(100), Duration.height(200)]


@pytest.mark.parametrize("fee", ["0", "0.05", "0.99"])
def test_check_fee_accepts_up_to_max(fee):
    assert check_fee(Decimal(fee)) == Decimal(fee)


@pytest.mark.parametrize("fee", ["0.991", "1", "-0.01"])
def test_check_fee_rejects(fee):
    with pytest.raises(InvalidFee) as exc_info:
        check_fee(Decimal(fee))
    assert exc_info.value.fee == Decimal(fee)


def test_set_fees_rejection_leaves_all_fees_unchanged(state):
    before = state.fee_config
    with pytest.raises(InvalidFee):
        set_fees(state, performance=Decimal("0.1"), deposit=Decimal("0.2"), withdrawal=Decimal("1.5"))
    assert state.fee_config == before


def test_set_fees_bad_collector_leaves_fees_unchanged(state):
    before = state.fee_config
    with pytest.raises(InvalidAddress):
        set_fees(state, performance=Decimal("0.1"), fee_collector_addr="collector")
    assert state.fee_config == before


def test_set_fees_updates_given_fields(state):
    set_fees(state, deposit=Decimal("0.01"), fee_collector_addr=ALICE)
    assert state.fee_config.deposit == Decimal("0.01")
    assert state.fee_config.performance == Decimal("0.05")
    assert state.fee_config.fee_collector_addr == ALICE
    assert state.fee_config.fee_collector_addr != FEE_COLLECTOR


def test_pool_assets_are_sorted():
    assert canonical_pool_assets([OSMO, ATOM]) == (ATOM, OSMO)


def test_pool_with_three_assets_rejected():
    with pytest.raises(PoolWithMoreThanTwoAssets):
        canonical_pool_assets([ATOM, OSMO, REWARD])


@pytest.mark.parametrize(
    ("selector", "expected"),
    [
        (BondingPeriodSelector.shortest(), Duration.height(100)),
        (BondingPeriodSelector.longest(), Duration.height(300)),
        (BondingPeriodSelector.custom(Duration.height(200)), Duration.height(200)),
    ],
)
def test_select_unbonding_period(selector, expected):
    assert select_unbonding_period(PERIODS, selector) == expected


def test_custom_period_must_be_offered():
    with pytest.raises(BondingPeriodUnavailable):
        select_unbonding_period(PERIODS, BondingPeriodSelector.custom(Duration.height(150)))


def test_min_cooldown():
    assert derive_min_cooldown(Duration.height(100), None) is None
    assert derive_min_cooldown(Duration.height(100), 4) == Duration.height(25)
    assert derive_min_cooldown(Duration.time(86400), 7) == Duration.time(12342)


def test_zero_max_claims_rejected():
    with pytest.raises(MaxCountError):
        derive_min_cooldown(Duration.height(100), 0)


def test_refresh_staking_policy(state, ledger, clock):
    staking = SimpleStaking(ledger, clock, unbonding_periods=PERIODS, max_claims=10)
    assert refresh_staking_policy(state, staking, BondingPeriodSelector.longest()) == (
        Duration.height(300),
        Duration.height(30),
    )
    assert state.config.unbonding_period == Duration.height(300)
    assert state.config.min_unbonding_cooldown == Duration.height(30)
    assert state.config.staking_contract == staking.address


def test_refresh_without_unbonding(state, ledger, clock):
    staking = SimpleStaking(ledger, clock)
    assert refresh_staking_policy(state, staking, BondingPeriodSelector.shortest()) == (None, None)
    assert state.config.unbonding_period is None


def test_mixed_period_kinds_rejected(state, ledger, clock):
    staking = SimpleStaking(ledger, clock, unbonding_periods=[Duration.height(100), Duration.time(3600)])
    with pytest.raises(UnbondingPeriodsIncoherent):
        refresh_staking_policy(state, staking, BondingPeriodSelector.shortest())
    assert state.config.unbonding_period is None


def test_refresh_keeps_period_while_staked(state, ledger, clock):
    staking = SimpleStaking(ledger, clock, unbonding_periods=PERIODS, max_claims=10)
    refresh_staking_policy(state, staking, BondingPeriodSelector.longest())

    with pytest.raises(StakedUnderOtherPeriod) as exc_info:
        refresh_staking_policy(state, staking, BondingPeriodSelector.shortest(), staked_lp=500)
    assert exc_info.value.current == Duration.height(300)
    assert state.config.unbonding_period == Duration.height(300)

    assert refresh_staking_policy(state, staking, BondingPeriodSelector.longest(), staked_lp=500) == (
        Duration.height(300),
        Duration.height(30),
    )
