"""Persisted vault state and the per-call execution context."""

from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Any

from autocompounder.adapters import DexAdapter, Querier, StakingAdapter
from autocompounder.addresses import Addr, address_sort_key, to_address
from autocompounder.constants import STATE_SCHEMA_VERSION
from autocompounder.errors import VaultTokenNotInitialized
from autocompounder.models import Asset, BlockInfo, Claim, Config, Duration, FeeConfig


@dataclass
class VaultState:
    """Everything the vault persists between calls."""

    admin: Addr
    config: Config
    fee_config: FeeConfig
    # User -> vault tokens awaiting the next batch unbonding.
    pending_claims: dict[Addr, int] = field(default_factory=dict)
    # User -> claims created by batch unbondings, oldest first.
    claims: dict[Addr, list[Claim]] = field(default_factory=dict)
    # Block of the most recent batch unbonding (None if there never was one).
    latest_unbonding: BlockInfo | None = None

    @property
    def vault_token(self) -> str:
        if not self.config.vault_token:
            raise VaultTokenNotInitialized()
        return self.config.vault_token

    def update_config(self, **changes: Any) -> Config:
        self.config = replace(self.config, **changes)
        return self.config

    def update_fee_config(self, **changes: Any) -> FeeConfig:
        self.fee_config = replace(self.fee_config, **changes)
        return self.fee_config

    def sorted_pending_claims(self) -> list[tuple[Addr, int]]:
        return sorted(self.pending_claims.items(), key=lambda kv: address_sort_key(kv[0]))

    def sorted_claims(self) -> list[tuple[Addr, list[Claim]]]:
        return sorted(self.claims.items(), key=lambda kv: address_sort_key(kv[0]))

    def to_dict(self) -> dict[str, Any]:
        """JSON-compatible snapshot (amounts as strings, fractions as decimal strings)."""
        c = self.config
        f = self.fee_config
        return {
            "schema_version": STATE_SCHEMA_VERSION,
            "admin": self.admin,
            "config": {
                "dex": c.dex,
                "pool_address": c.pool_address,
                "pool_assets": list(c.pool_assets),
                "liquidity_token": c.liquidity_token,
                "staking_contract": c.staking_contract,
                "max_swap_spread": str(c.max_swap_spread),
                "vault_token": c.vault_token,
                "unbonding_period": c.unbonding_period.to_dict() if c.unbonding_period else None,
                "min_unbonding_cooldown": c.min_unbonding_cooldown.to_dict() if c.min_unbonding_cooldown else None,
            },
            "fee_config": {
                "performance": str(f.performance),
                "deposit": str(f.deposit),
                "withdrawal": str(f.withdrawal),
                "fee_collector_addr": f.fee_collector_addr,
                "fee_asset": f.fee_asset,
            },
            "pending_claims": {addr: str(amount) for addr, amount in self.sorted_pending_claims()},
            "claims": {addr: [claim.to_dict() for claim in claims] for addr, claims in self.sorted_claims()},
            "latest_unbonding": (
                {"height": self.latest_unbonding.height, "time": self.latest_unbonding.time}
                if self.latest_unbonding
                else None
            ),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "VaultState":
        """Rebuild state from `to_dict` output of the current schema version."""
        c = data["config"]
        f = data["fee_config"]
        latest = data.get("latest_unbonding")
        return cls(
            admin=to_address(data["admin"]),
            config=Config(
                dex=c["dex"],
                pool_address=c["pool_address"],
                pool_assets=tuple(c["pool_assets"]),
                liquidity_token=c["liquidity_token"],
                staking_contract=c["staking_contract"],
                max_swap_spread=Decimal(c["max_swap_spread"]),
                vault_token=c.get("vault_token"),
                unbonding_period=Duration.from_dict(c.get("unbonding_period")),
                min_unbonding_cooldown=Duration.from_dict(c.get("min_unbonding_cooldown")),
            ),
            fee_config=FeeConfig(
                performance=Decimal(f["performance"]),
                deposit=Decimal(f["deposit"]),
                withdrawal=Decimal(f["withdrawal"]),
                fee_collector_addr=to_address(f["fee_collector_addr"]),
                fee_asset=f["fee_asset"],
            ),
            pending_claims={to_address(k): int(v) for k, v in data.get("pending_claims", {}).items()},
            claims={
                to_address(k): [Claim.from_dict(claim) for claim in v] for k, v in data.get("claims", {}).items()
            },
            latest_unbonding=BlockInfo(int(latest["height"]), int(latest["time"])) if latest else None,
        )


@dataclass
class Context:
    """What a workflow step can see: vault state, collaborators and the current block."""

    state: VaultState
    querier: Querier
    dex: DexAdapter
    staking: StakingAdapter
    # The vault's own account; it holds assets, LP and the staked position.
    address: str
    block: BlockInfo

    @property
    def config(self) -> Config:
        return self.state.config

    @property
    def fee_config(self) -> FeeConfig:
        return self.state.fee_config

    def balance(self, denom: str) -> int:
        return self.querier.balance(self.address, denom)

    def balances(self, denoms: tuple[str, ...] | list[str]) -> tuple[Asset, ...]:
        return tuple(Asset(denom, self.balance(denom)) for denom in denoms)

    def lp_balance(self) -> int:
        return self.balance(self.config.liquidity_token)

    def vault_token_supply(self) -> int:
        return self.querier.total_supply(self.state.vault_token)

    def staked_lp(self) -> int:
        return self.staking.query_staked(self.address, self.config.liquidity_token, self.config.unbonding_period)
