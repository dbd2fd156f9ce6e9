import pytest
from conftest import ALICE, ATOM, BOB, CAROL, KEEPER, OSMO, UNBONDING_PERIOD

from autocompounder.claims import all_pending_claims, batch_unbond, register_pending_redeem
from autocompounder.errors import (
    NoMaturedClaims,
    UnbondingCooldownNotExpired,
    UnbondingNotEnabled,
)
from autocompounder.instructions import Burn, Transfer, Unstake, WithdrawLiquidity
from autocompounder.messages import (
    AllPendingClaimsQuery,
    BatchUnbond,
    ClaimsQuery,
    Deposit,
    LatestUnbondingQuery,
    PendingClaimsQuery,
    Redeem,
    TotalLpPositionQuery,
    TotalSupplyQuery,
    Withdraw,
)
from autocompounder.models import Asset
from autocompounder.simulation import SimpleStaking
from autocompounder.state import Context

COOLDOWN_BLOCKS = 25


def join(runtime, user, amount=10_000):
    funds = (Asset(ATOM, amount), Asset(OSMO, amount))
    runtime.execute(user, Deposit(funds), funds)


def redeem(runtime, user, amount):
    runtime.execute(user, Redeem(amount), (Asset(runtime.state.vault_token, amount),))


def test_batch_unbond_creates_proportional_claims(unbonding_vault):
    runtime, _ = unbonding_vault
    for user in (ALICE, BOB, CAROL):
        join(runtime, user)
    p1, p2 = 30_001, 45_007
    redeem(runtime, ALICE, p1)
    redeem(runtime, BOB, p2)
    supply = runtime.query(TotalSupplyQuery())
    staked = runtime.query(TotalLpPositionQuery())
    block = runtime.block

    result = runtime.execute(KEEPER, BatchUnbond())

    [alice_claim] = runtime.query(ClaimsQuery(ALICE))
    [bob_claim] = runtime.query(ClaimsQuery(BOB))
    assert alice_claim.lp_tokens_to_unbond == p1 * staked // supply
    assert bob_claim.lp_tokens_to_unbond == p2 * staked // supply
    assert alice_claim.vault_tokens_burned == p1
    assert alice_claim.unbonding_timestamp == UNBONDING_PERIOD.after(block)

    # One aggregate unstake and one aggregate burn.
    lp_token = runtime.state.config.liquidity_token
    assert result.executed == [
        Unstake(
            runtime.staking.name,
            Asset(lp_token, alice_claim.lp_tokens_to_unbond + bob_claim.lp_tokens_to_unbond),
            UNBONDING_PERIOD,
        ),
        Burn(runtime.state.vault_token, p1 + p2),
    ]
    assert runtime.query(AllPendingClaimsQuery()) == []
    assert runtime.query(LatestUnbondingQuery()) == block
    assert runtime.query(TotalSupplyQuery()) == supply - p1 - p2


def test_claims_are_not_merged_across_batches(unbonding_vault):
    runtime, _ = unbonding_vault
    join(runtime, ALICE)
    redeem(runtime, ALICE, 1_000)
    runtime.execute(KEEPER, BatchUnbond())
    runtime.advance(COOLDOWN_BLOCKS)
    redeem(runtime, ALICE, 2_000)
    runtime.execute(KEEPER, BatchUnbond())

    claims = runtime.query(ClaimsQuery(ALICE))
    assert [claim.vault_tokens_burned for claim in claims] == [1_000, 2_000]


def test_second_batch_within_cooldown_fails(unbonding_vault):
    runtime, _ = unbonding_vault
    join(runtime, ALICE)
    redeem(runtime, ALICE, 1_000)
    runtime.execute(KEEPER, BatchUnbond())
    first_unbonding = runtime.block

    runtime.advance(COOLDOWN_BLOCKS - 1)
    redeem(runtime, ALICE, 1_000)
    with pytest.raises(UnbondingCooldownNotExpired) as exc_info:
        runtime.execute(KEEPER, BatchUnbond())
    assert exc_info.value.latest_unbonding == first_unbonding
    assert exc_info.value.min_cooldown == runtime.state.config.min_unbonding_cooldown
    # The failed call left the pending claim in place.
    assert runtime.query(PendingClaimsQuery(ALICE)) == 1_000

    runtime.advance(1)
    runtime.execute(KEEPER, BatchUnbond())
    assert runtime.query(PendingClaimsQuery(ALICE)) == 0


def test_empty_batch_is_a_no_op(unbonding_vault):
    runtime, _ = unbonding_vault
    result = runtime.execute(KEEPER, BatchUnbond())
    assert result.executed == []
    assert runtime.query(LatestUnbondingQuery()) is None


def test_batch_unbond_requires_unbonding_period(vault):
    runtime, _ = vault
    with pytest.raises(UnbondingNotEnabled):
        runtime.execute(KEEPER, BatchUnbond())


def test_batch_unbond_page(unbonding_vault):
    runtime, _ = unbonding_vault
    for user in (ALICE, BOB):
        join(runtime, user)
        redeem(runtime, user, 1_000)

    runtime.execute(KEEPER, BatchUnbond(limit=1))
    assert len(runtime.query(ClaimsQuery(ALICE))) == 1
    assert runtime.query(ClaimsQuery(BOB)) == []
    assert runtime.query(PendingClaimsQuery(BOB)) == 1_000


def test_withdraw_takes_only_matured_claims(unbonding_vault):
    runtime, _ = unbonding_vault
    join(runtime, ALICE)
    redeem(runtime, ALICE, 10_000)
    runtime.execute(KEEPER, BatchUnbond())
    runtime.advance(COOLDOWN_BLOCKS)
    redeem(runtime, ALICE, 20_000)
    runtime.execute(KEEPER, BatchUnbond())
    matured, ongoing = runtime.query(ClaimsQuery(ALICE))

    runtime.advance(UNBONDING_PERIOD.value - COOLDOWN_BLOCKS)
    result = runtime.execute(ALICE, Withdraw())

    [withdrawal] = result.of_type(WithdrawLiquidity)
    assert withdrawal.amount == matured.lp_tokens_to_unbond
    [payout] = result.of_type(Transfer)
    assert payout.recipient == ALICE
    assert runtime.query(ClaimsQuery(ALICE)) == [ongoing]

    with pytest.raises(NoMaturedClaims):
        runtime.execute(ALICE, Withdraw())


def test_withdraw_without_claims(unbonding_vault):
    runtime, _ = unbonding_vault
    with pytest.raises(NoMaturedClaims) as exc_info:
        runtime.execute(BOB, Withdraw())
    assert exc_info.value.address == BOB


def test_last_withdrawal_removes_user(unbonding_vault):
    runtime, _ = unbonding_vault
    join(runtime, ALICE)
    redeem(runtime, ALICE, 10_000)
    runtime.execute(KEEPER, BatchUnbond())
    runtime.advance(UNBONDING_PERIOD.value)
    runtime.execute(ALICE, Withdraw())
    assert ALICE not in runtime.state.claims


def test_pending_queries_are_paginated(state):
    users = ["0x" + f"{i:02x}" * 20 for i in range(1, 30)]
    for user in users:
        register_pending_redeem(state, user, 1)

    first = all_pending_claims(state)
    assert len(first) == 5
    page = all_pending_claims(state, start_after=first[-1][0], limit=100)
    assert len(page) == 20
    assert page[0][0].lower() == users[5]


def test_batch_unbond_context_errors(state, ledger, dex, clock):
    ctx = Context(state, ledger, dex, SimpleStaking(ledger, clock), ALICE, clock.block)
    with pytest.raises(UnbondingNotEnabled):
        batch_unbond(ctx)
