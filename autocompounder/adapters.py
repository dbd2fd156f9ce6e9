"""Interfaces of the vault's external collaborators.

The vault only talks to an exchange, a staking provider and a bank through these classes.
Instruction builders have default implementations; queries and execution are provider specific.
"""

import abc
from collections.abc import Sequence
from decimal import Decimal

from autocompounder.instructions import (
    BankInstruction,
    ClaimRewards,
    DexInstruction,
    ProvideLiquidity,
    Stake,
    StakingInstruction,
    Swap,
    Unstake,
    WithdrawLiquidity,
)
from autocompounder.models import Asset, Duration, Expiration, PoolInfo, ReplyResult, StakingInfo


class Querier(abc.ABC):
    """Balance and supply queries."""

    @abc.abstractmethod
    def balance(self, account: str, denom: str) -> int:
        """Balance of `denom` held by `account`."""

    @abc.abstractmethod
    def total_supply(self, denom: str) -> int:
        """Total supply of `denom`."""


class Bank(Querier):
    """Token transfers, mints, burns and denom creation."""

    @abc.abstractmethod
    def execute(self, sender: str, instruction: BankInstruction) -> ReplyResult:
        """Apply a bank instruction on behalf of `sender`."""


class DexAdapter(abc.ABC):
    """Exchange collaborator for a single dex."""

    def __init__(self, name: str) -> None:
        self.name = name

    def swap(
        self,
        offer_asset: Asset,
        ask_asset: str,
        belief_price: Decimal | None = None,
        max_spread: Decimal | None = None,
    ) -> Swap:
        return Swap(self.name, offer_asset, ask_asset, belief_price, max_spread)

    def provide_liquidity(self, assets: Sequence[Asset], max_spread: Decimal | None = None) -> ProvideLiquidity:
        return ProvideLiquidity(self.name, tuple(assets), max_spread)

    def withdraw_liquidity(self, lp_token: str, amount: int) -> WithdrawLiquidity:
        return WithdrawLiquidity(self.name, lp_token, amount)

    @abc.abstractmethod
    def simulate_swap(self, offer_asset: Asset, ask_asset: str) -> int:
        """Amount of `ask_asset` a swap of `offer_asset` would return right now."""

    @abc.abstractmethod
    def pool_info(self, assets: Sequence[str]) -> PoolInfo:
        """Resolve the pool trading exactly `assets`."""

    @abc.abstractmethod
    def execute(self, sender: str, instruction: DexInstruction) -> ReplyResult:
        """Apply a dex instruction on behalf of `sender`."""


class StakingAdapter(abc.ABC):
    """Staking provider collaborator for the vault's LP token."""

    def __init__(self, name: str) -> None:
        self.name = name

    def stake(self, asset: Asset, unbonding_period: Duration | None = None) -> Stake:
        return Stake(self.name, asset, unbonding_period)

    def unstake(self, asset: Asset, unbonding_period: Duration | None = None) -> Unstake:
        return Unstake(self.name, asset, unbonding_period)

    def claim_rewards(self, staking_token: str) -> ClaimRewards:
        return ClaimRewards(self.name, staking_token)

    @abc.abstractmethod
    def query_info(self, staking_token: str) -> StakingInfo:
        """Unbonding periods and claim limits offered for `staking_token`."""

    @abc.abstractmethod
    def query_staked(self, staker: str, staking_token: str, unbonding_period: Duration | None = None) -> int:
        """Amount of `staking_token` staked by `staker`."""

    @abc.abstractmethod
    def query_unbonding(self, staker: str, staking_token: str) -> list[tuple[int, Expiration]]:
        """Outstanding unbonding entries of `staker` as (amount, release) pairs."""

    @abc.abstractmethod
    def query_rewards(self, staking_token: str) -> list[str]:
        """Reward tokens distributed to stakers of `staking_token`."""

    @abc.abstractmethod
    def execute(self, sender: str, instruction: StakingInstruction) -> ReplyResult:
        """Apply a staking instruction on behalf of `sender`."""
