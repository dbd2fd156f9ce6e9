"""Instructions the vault dispatches to its collaborators (exchange, staking provider, bank)."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Union

from autocompounder.models import Asset, Duration


# Exchange
@dataclass(frozen=True)
class Swap:
    dex: str
    offer_asset: Asset
    ask_asset: str
    belief_price: Decimal | None = None
    max_spread: Decimal | None = None


@dataclass(frozen=True)
class ProvideLiquidity:
    dex: str
    assets: tuple[Asset, ...]
    max_spread: Decimal | None = None


@dataclass(frozen=True)
class WithdrawLiquidity:
    dex: str
    lp_token: str
    amount: int


# Staking provider
@dataclass(frozen=True)
class Stake:
    provider: str
    asset: Asset
    unbonding_period: Duration | None = None


@dataclass(frozen=True)
class Unstake:
    provider: str
    asset: Asset
    unbonding_period: Duration | None = None


@dataclass(frozen=True)
class ClaimRewards:
    provider: str
    staking_token: str


# Bank / token factory
@dataclass(frozen=True)
class Transfer:
    assets: tuple[Asset, ...]
    recipient: str


@dataclass(frozen=True)
class Mint:
    denom: str
    recipient: str
    amount: int


@dataclass(frozen=True)
class Burn:
    denom: str
    amount: int


@dataclass(frozen=True)
class CreateDenom:
    symbol: str
    decimals: int


DexInstruction = Union[Swap, ProvideLiquidity, WithdrawLiquidity]
StakingInstruction = Union[Stake, Unstake, ClaimRewards]
BankInstruction = Union[Transfer, Mint, Burn, CreateDenom]
Instruction = Union[DexInstruction, StakingInstruction, BankInstruction]

DEX_INSTRUCTIONS = (Swap, ProvideLiquidity, WithdrawLiquidity)
STAKING_INSTRUCTIONS = (Stake, Unstake, ClaimRewards)
BANK_INSTRUCTIONS = (Transfer, Mint, Burn, CreateDenom)
