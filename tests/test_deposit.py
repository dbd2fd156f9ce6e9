from decimal import Decimal

import pytest
from conftest import ALICE, ATOM, BOB, FEE_COLLECTOR, OSMO, REWARD, USER_FUNDS, VAULT

from autocompounder.errors import (
    AssetNotInPool,
    FundsMismatch,
    SenderIsNotLpToken,
    ZeroDepositAmount,
)
from autocompounder.instructions import Mint, ProvideLiquidity, Stake, Swap, Transfer
from autocompounder.messages import Deposit, DepositLp, TotalLpPositionQuery, TotalSupplyQuery
from autocompounder.models import Asset


def deposit(runtime, sender, *funds, **kwargs):
    return runtime.execute(sender, Deposit(tuple(funds), **kwargs), funds)


def test_balanced_deposit_into_empty_vault(vault):
    runtime, _ = vault
    result = deposit(runtime, ALICE, Asset(ATOM, 10_000), Asset(OSMO, 10_000))

    provisions = result.of_type(ProvideLiquidity)
    assert len(provisions) == 1
    assert provisions[0].assets == (Asset(ATOM, 10_000), Asset(OSMO, 10_000))
    assert not result.of_type(Swap)

    # Pool reserves and LP supply are equal, so 10k of each asset is worth 10k LP.
    [mint] = result.of_type(Mint)
    [stake] = result.of_type(Stake)
    assert stake.asset == Asset(runtime.state.config.liquidity_token, 10_000)
    assert mint == Mint(runtime.state.vault_token, ALICE, 100_000)
    assert result.executed.index(mint) < result.executed.index(stake)

    assert runtime.bank.balance(ALICE, runtime.state.vault_token) == 100_000
    assert runtime.query(TotalLpPositionQuery()) == 10_000
    assert runtime.query(TotalSupplyQuery()) == 100_000


def test_single_sided_deposit_swaps_half_first(vault):
    runtime, _ = vault
    simulated = runtime.dex.simulate_swap(Asset(ATOM, 5_000), OSMO)
    result = deposit(runtime, ALICE, Asset(ATOM, 10_000))

    swap, provision = result.executed[0], result.executed[1]
    assert isinstance(swap, Swap)
    assert swap.offer_asset == Asset(ATOM, 5_000)
    assert swap.ask_asset == OSMO
    assert isinstance(provision, ProvideLiquidity)
    assert provision.assets == (Asset(ATOM, 5_000), Asset(OSMO, simulated))
    assert runtime.bank.balance(ALICE, runtime.state.vault_token) > 0


def test_second_deposit_gets_proportional_shares(vault):
    runtime, _ = vault
    deposit(runtime, ALICE, Asset(ATOM, 10_000), Asset(OSMO, 10_000))
    deposit(runtime, BOB, Asset(ATOM, 10_000), Asset(OSMO, 10_000))

    vault_token = runtime.state.vault_token
    alice = runtime.bank.balance(ALICE, vault_token)
    bob = runtime.bank.balance(BOB, vault_token)
    assert 0 < bob <= alice


def test_recipient_receives_the_shares(vault):
    runtime, _ = vault
    deposit(runtime, ALICE, Asset(ATOM, 10_000), Asset(OSMO, 10_000), recipient=BOB)
    assert runtime.bank.balance(BOB, runtime.state.vault_token) == 100_000
    assert runtime.bank.balance(ALICE, runtime.state.vault_token) == 0


def test_deposit_fee_goes_to_collector_as_lp(make_vault):
    runtime, _ = make_vault(deposit_fees=Decimal("0.01"))
    result = deposit(runtime, ALICE, Asset(ATOM, 10_000), Asset(OSMO, 10_000))

    lp_token = runtime.state.config.liquidity_token
    assert Transfer((Asset(lp_token, 100),), FEE_COLLECTOR) in result.executed
    assert runtime.bank.balance(FEE_COLLECTOR, lp_token) == 100
    assert runtime.bank.balance(ALICE, runtime.state.vault_token) == 99_000


def test_funds_mismatch_rolls_back(vault):
    runtime, _ = vault
    with pytest.raises(FundsMismatch):
        runtime.execute(ALICE, Deposit((Asset(ATOM, 9_000),)), (Asset(ATOM, 10_000),))
    # The attached funds never left the sender.
    assert runtime.bank.balance(ALICE, ATOM) == USER_FUNDS
    assert runtime.bank.balance(VAULT, ATOM) == 0


def test_asset_not_in_pool(vault, ledger):
    runtime, _ = vault
    ledger.mint(REWARD, ALICE, 1_000)
    with pytest.raises(AssetNotInPool):
        deposit(runtime, ALICE, Asset(REWARD, 1_000))


def test_zero_deposit(vault):
    runtime, _ = vault
    with pytest.raises(ZeroDepositAmount):
        deposit(runtime, ALICE)


def test_donation_does_not_dilute_first_depositor(vault, ledger):
    runtime, _ = vault
    lp_token = runtime.state.config.liquidity_token
    # LP sent straight to the vault is not part of the staked position.
    ledger.mint(lp_token, ALICE, 1_000_000)
    ledger.transfer(ALICE, VAULT, lp_token, 999_000)

    ledger.mint(lp_token, BOB, 1_000)
    runtime.execute(BOB, DepositLp(lp_token), (Asset(lp_token, 1_000),))
    assert runtime.bank.balance(BOB, runtime.state.vault_token) == 10_000


def test_deposit_lp(vault, ledger):
    runtime, _ = vault
    lp_token = runtime.state.config.liquidity_token
    ledger.mint(lp_token, ALICE, 5_000)
    result = runtime.execute(ALICE, DepositLp(lp_token), (Asset(lp_token, 5_000),))

    assert not result.of_type(ProvideLiquidity)
    assert result.of_type(Stake)[0].asset == Asset(lp_token, 5_000)
    assert runtime.bank.balance(ALICE, runtime.state.vault_token) == 50_000


def test_deposit_lp_rejects_other_tokens(vault):
    runtime, _ = vault
    with pytest.raises(SenderIsNotLpToken):
        runtime.execute(ALICE, DepositLp(runtime.state.config.liquidity_token), (Asset(ATOM, 5_000),))
    with pytest.raises(SenderIsNotLpToken):
        runtime.execute(ALICE, DepositLp(ATOM), (Asset(ATOM, 5_000),))
