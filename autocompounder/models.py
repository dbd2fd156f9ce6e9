"""Data models for the autocompounding vault."""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Literal

from autocompounder.constants import HEIGHT, SECONDS_PER_BLOCK, TIME

DurationKind = Literal["height", "time"]
SelectorKind = Literal["shortest", "longest", "custom"]


@dataclass(frozen=True)
class BlockInfo:
    """Current block: height and unix time in seconds."""

    height: int
    time: int


class Clock:
    """Current block of the chain, shared by the runtime and time-aware collaborators."""

    def __init__(self, height: int = 1, time: int = 1_700_000_000) -> None:
        self.height = height
        self.time = time

    @property
    def block(self) -> BlockInfo:
        return BlockInfo(self.height, self.time)

    def advance(self, blocks: int = 1, seconds: int | None = None) -> BlockInfo:
        if blocks < 0 or (seconds is not None and seconds < 0):
            raise ValueError("cannot move the clock backwards")
        self.height += blocks
        self.time += seconds if seconds is not None else blocks * SECONDS_PER_BLOCK
        return self.block


@dataclass(frozen=True, order=True)
class Duration:
    """A span measured either in blocks or in seconds."""

    kind: DurationKind
    value: int

    @classmethod
    def height(cls, blocks: int) -> "Duration":
        return cls(HEIGHT, blocks)

    @classmethod
    def time(cls, seconds: int) -> "Duration":
        return cls(TIME, seconds)

    def after(self, block: BlockInfo) -> "Expiration":
        """Expiration `self` after the given block."""
        if self.kind == HEIGHT:
            return Expiration(HEIGHT, block.height + self.value)
        return Expiration(TIME, block.time + self.value)

    def __str__(self) -> str:
        unit = "blocks" if self.kind == HEIGHT else "s"
        return f"{self.value} {unit}"

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "value": self.value}

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "Duration | None":
        if data is None:
            return None
        return cls(data["kind"], int(data["value"]))


@dataclass(frozen=True)
class Expiration:
    """Point at which something expires: a block height or a unix time."""

    kind: DurationKind
    value: int

    def is_expired(self, block: BlockInfo) -> bool:
        if self.kind == HEIGHT:
            return block.height >= self.value
        return block.time >= self.value

    def __str__(self) -> str:
        return f"height {self.value}" if self.kind == HEIGHT else f"time {self.value}"

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "value": self.value}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Expiration":
        return cls(data["kind"], int(data["value"]))


@dataclass(frozen=True)
class Asset:
    """An amount of a named asset (pool asset, reward token, LP token or vault token)."""

    name: str
    amount: int

    def __str__(self) -> str:
        return f"{self.amount}{self.name}"


@dataclass(frozen=True)
class BondingPeriodSelector:
    """Which of the staking provider's unbonding periods the vault should use."""

    kind: SelectorKind
    duration: Duration | None = None

    @classmethod
    def shortest(cls) -> "BondingPeriodSelector":
        return cls("shortest")

    @classmethod
    def longest(cls) -> "BondingPeriodSelector":
        return cls("longest")

    @classmethod
    def custom(cls, duration: Duration) -> "BondingPeriodSelector":
        return cls("custom", duration)


@dataclass(frozen=True)
class StakingInfo:
    """Staking provider description for the vault's LP token."""

    staking_contract: str
    staking_token: str
    # None when the provider has no unbonding (unstake returns tokens immediately).
    unbonding_periods: tuple[Duration, ...] | None = None
    # Maximum number of outstanding unbonding claims per staker, if the provider limits them.
    max_claims: int | None = None


@dataclass(frozen=True)
class PoolInfo:
    """Resolved pool identity on the exchange."""

    pool_address: str
    assets: tuple[str, ...]
    liquidity_token: str


@dataclass(frozen=True)
class FeeConfig:
    """Vault fee structure."""

    performance: Decimal
    deposit: Decimal
    withdrawal: Decimal
    # Address that receives the fee commissions.
    fee_collector_addr: str
    # Asset the performance fee is converted to before it is sent to the collector.
    fee_asset: str


@dataclass(frozen=True)
class Config:
    """Vault configuration: pool identity, tokens and unbonding policy."""

    dex: str
    pool_address: str
    # Canonically sorted, at most two entries.
    pool_assets: tuple[str, ...]
    liquidity_token: str
    staking_contract: str
    max_swap_spread: Decimal
    vault_token: str | None = None
    unbonding_period: Duration | None = None
    min_unbonding_cooldown: Duration | None = None


@dataclass(frozen=True)
class Claim:
    """A redeemed-but-not-yet-paid-out position, maturing at `unbonding_timestamp`."""

    unbonding_timestamp: Expiration
    vault_tokens_burned: int
    # Fixed when the claim is created; never re-derived.
    lp_tokens_to_unbond: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "unbonding_timestamp": self.unbonding_timestamp.to_dict(),
            "vault_tokens_burned": str(self.vault_tokens_burned),
            "lp_tokens_to_unbond": str(self.lp_tokens_to_unbond),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Claim":
        return cls(
            unbonding_timestamp=Expiration.from_dict(data["unbonding_timestamp"]),
            vault_tokens_burned=int(data["vault_tokens_burned"]),
            lp_tokens_to_unbond=int(data["lp_tokens_to_unbond"]),
        )


@dataclass
class ReplyResult:
    """Outcome of a dispatched instruction, delivered to the matching continuation."""

    data: dict[str, Any] = field(default_factory=dict)
