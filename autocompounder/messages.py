"""Commands and queries accepted by the vault."""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Union

from autocompounder.models import Asset, BondingPeriodSelector


@dataclass(frozen=True)
class MessageInfo:
    """Caller of a top-level call and the funds attached to it."""

    sender: str
    funds: tuple[Asset, ...] = ()


@dataclass(frozen=True)
class InstantiateMsg:
    performance_fees: Decimal
    deposit_fees: Decimal
    withdrawal_fees: Decimal
    fee_collector_addr: str
    fee_asset: str
    dex: str
    pool_assets: tuple[str, ...]
    preferred_bonding_period: BondingPeriodSelector = field(default_factory=BondingPeriodSelector.shortest)
    max_swap_spread: Decimal | None = None


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class UpdateFeeConfig:
    performance: Decimal | None = None
    deposit: Decimal | None = None
    withdrawal: Decimal | None = None
    fee_collector_addr: str | None = None


@dataclass(frozen=True)
class Deposit:
    """Join the vault with one or both pool assets (attached as funds)."""

    funds: tuple[Asset, ...]
    recipient: str | None = None
    max_spread: Decimal | None = None


@dataclass(frozen=True)
class DepositLp:
    """Join the vault with LP tokens (attached as funds)."""

    lp_token: str
    recipient: str | None = None


@dataclass(frozen=True)
class Redeem:
    """Redeem vault tokens (attached as funds)."""

    amount: int
    recipient: str | None = None


@dataclass(frozen=True)
class Withdraw:
    """Withdraw all matured claims of the caller."""


@dataclass(frozen=True)
class BatchUnbond:
    start_after: str | None = None
    limit: int | None = None


@dataclass(frozen=True)
class Compound:
    """Compound all rewards of the vault."""


@dataclass(frozen=True)
class UpdateStakingConfig:
    """Re-read unbonding options from the staking provider."""

    preferred_bonding_period: BondingPeriodSelector


ExecuteMsg = Union[
    UpdateFeeConfig, Deposit, DepositLp, Redeem, Withdraw, BatchUnbond, Compound, UpdateStakingConfig
]


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class ConfigQuery:
    pass


@dataclass(frozen=True)
class FeeConfigQuery:
    pass


@dataclass(frozen=True)
class PendingClaimsQuery:
    address: str


@dataclass(frozen=True)
class AllPendingClaimsQuery:
    start_after: str | None = None
    limit: int | None = None


@dataclass(frozen=True)
class ClaimsQuery:
    address: str


@dataclass(frozen=True)
class AllClaimsQuery:
    start_after: str | None = None
    limit: int | None = None


@dataclass(frozen=True)
class LatestUnbondingQuery:
    pass


@dataclass(frozen=True)
class TotalLpPositionQuery:
    pass


@dataclass(frozen=True)
class TotalSupplyQuery:
    pass


@dataclass(frozen=True)
class AssetsPerSharesQuery:
    shares: int | None = None


@dataclass(frozen=True)
class BalanceQuery:
    address: str


QueryMsg = Union[
    ConfigQuery,
    FeeConfigQuery,
    PendingClaimsQuery,
    AllPendingClaimsQuery,
    ClaimsQuery,
    AllClaimsQuery,
    LatestUnbondingQuery,
    TotalLpPositionQuery,
    TotalSupplyQuery,
    AssetsPerSharesQuery,
    BalanceQuery,
]
