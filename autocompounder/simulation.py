"""In-memory collaborators: a token ledger, a constant-product exchange and a staking pool.

They implement the adapter interfaces with integer balances so the vault's workflows can be run
end to end (tests, CLI simulation) without a chain.
"""

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal

from web3 import Web3

from autocompounder.accounting import fee_amount
from autocompounder.adapters import Bank, DexAdapter, StakingAdapter
from autocompounder.addresses import Addr, to_address
from autocompounder.errors import (
    AdminError,
    BondingPeriodUnavailable,
    InsufficientFunds,
    MaxSpreadExceeded,
    PoolNotFound,
    PoolWithMoreThanTwoAssets,
    TooManyUnbondingClaims,
    ZeroDepositAmount,
)
from autocompounder.instructions import (
    BankInstruction,
    Burn,
    ClaimRewards,
    CreateDenom,
    DexInstruction,
    Mint,
    ProvideLiquidity,
    Stake,
    StakingInstruction,
    Swap,
    Transfer,
    Unstake,
    WithdrawLiquidity,
)
from autocompounder.models import Asset, Clock, Duration, Expiration, PoolInfo, ReplyResult, StakingInfo

logger = logging.getLogger(__name__)

DEFAULT_COMMISSION = Decimal("0.003")


def derive_address(label: str) -> Addr:
    """Deterministic account address for a simulated contract."""
    return to_address(Web3.keccak(text=label)[-20:])


class TokenLedger(Bank):
    """Balances and supplies of every denom, keyed by checksummed account."""

    def __init__(self) -> None:
        self.balances: dict[str, dict[Addr, int]] = {}
        self.supplies: dict[str, int] = {}
        # Denoms created through CreateDenom and the account allowed to mint them.
        self.denom_admins: dict[str, Addr] = {}

    def balance(self, account: str, denom: str) -> int:
        return self.balances.get(denom, {}).get(to_address(account), 0)

    def total_supply(self, denom: str) -> int:
        return self.supplies.get(denom, 0)

    def mint(self, denom: str, recipient: str, amount: int) -> None:
        if amount < 0:
            raise ValueError("amount must be non-negative")
        holders = self.balances.setdefault(denom, {})
        account = to_address(recipient)
        holders[account] = holders.get(account, 0) + amount
        self.supplies[denom] = self.supplies.get(denom, 0) + amount

    def burn(self, denom: str, account: str, amount: int) -> None:
        self._debit(account, denom, amount)
        self.supplies[denom] -= amount

    def transfer(self, sender: str, recipient: str, denom: str, amount: int) -> None:
        self._debit(sender, denom, amount)
        holders = self.balances.setdefault(denom, {})
        account = to_address(recipient)
        holders[account] = holders.get(account, 0) + amount

    def _debit(self, account: str, denom: str, amount: int) -> None:
        if amount < 0:
            raise ValueError("amount must be non-negative")
        owner = to_address(account)
        balance = self.balance(owner, denom)
        if balance < amount:
            raise InsufficientFunds(owner, denom, balance, amount)
        self.balances.setdefault(denom, {})[owner] = balance - amount

    def create_denom(self, creator: str, symbol: str) -> str:
        admin = to_address(creator)
        denom = f"factory/{admin}/{symbol.lower()}"
        self.denom_admins[denom] = admin
        self.supplies.setdefault(denom, 0)
        return denom

    def execute(self, sender: str, instruction: BankInstruction) -> ReplyResult:
        if isinstance(instruction, Transfer):
            for asset in instruction.assets:
                self.transfer(sender, instruction.recipient, asset.name, asset.amount)
            return ReplyResult()
        if isinstance(instruction, Mint):
            if self.denom_admins.get(instruction.denom) != to_address(sender):
                raise AdminError(sender)
            self.mint(instruction.denom, instruction.recipient, instruction.amount)
            return ReplyResult({"amount": instruction.amount})
        if isinstance(instruction, Burn):
            self.burn(instruction.denom, sender, instruction.amount)
            return ReplyResult({"amount": instruction.amount})
        if isinstance(instruction, CreateDenom):
            return ReplyResult({"denom": self.create_denom(sender, instruction.symbol)})
        raise TypeError(f"Unsupported bank instruction: {type(instruction).__name__}")


@dataclass(frozen=True)
class SimulatedPool:
    address: Addr
    assets: tuple[str, str]
    lp_token: str


class ConstantProductDex(DexAdapter):
    """x*y=k pools holding their reserves as ledger balances of the pool address."""

    def __init__(self, ledger: TokenLedger, name: str = "simdex", commission: Decimal = DEFAULT_COMMISSION) -> None:
        super().__init__(name)
        self.ledger = ledger
        self.commission = commission
        self.pools: dict[tuple[str, ...], SimulatedPool] = {}

    def create_pool(self, assets: Sequence[str]) -> PoolInfo:
        key = tuple(sorted(assets))
        if len(key) != 2:
            raise PoolWithMoreThanTwoAssets(list(assets))
        address = derive_address(f"{self.name}:pool:{key[0]}/{key[1]}")
        pool = SimulatedPool(address, key, f"{self.name}/lp/{key[0]}-{key[1]}")
        self.pools[key] = pool
        logger.debug("Created pool %s for %s", address, key)
        return PoolInfo(pool.address, pool.assets, pool.lp_token)

    def _pool(self, assets: Sequence[str]) -> SimulatedPool:
        pool = self.pools.get(tuple(sorted(assets)))
        if pool is None:
            raise PoolNotFound(tuple(assets))
        return pool

    def _pool_for_lp(self, lp_token: str) -> SimulatedPool:
        for pool in self.pools.values():
            if pool.lp_token == lp_token:
                return pool
        raise PoolNotFound((lp_token,))

    def reserves(self, pool: SimulatedPool) -> dict[str, int]:
        return {name: self.ledger.balance(pool.address, name) for name in pool.assets}

    def pool_info(self, assets: Sequence[str]) -> PoolInfo:
        pool = self._pool(assets)
        return PoolInfo(pool.address, pool.assets, pool.lp_token)

    def _quote(self, offer_asset: Asset, ask_asset: str) -> tuple[int, int, int]:
        """(return_amount, spread_amount, commission_amount) of a swap at the current reserves."""
        pool = self._pool((offer_asset.name, ask_asset))
        reserves = self.reserves(pool)
        offer_pool, ask_pool = reserves[offer_asset.name], reserves[ask_asset]
        if offer_pool == 0 or ask_pool == 0:
            return 0, 0, 0
        gross = ask_pool * offer_asset.amount // (offer_pool + offer_asset.amount)
        ideal = offer_asset.amount * ask_pool // offer_pool
        commission = fee_amount(gross, self.commission)
        return gross - commission, max(ideal - gross, 0), commission

    def simulate_swap(self, offer_asset: Asset, ask_asset: str) -> int:
        return self._quote(offer_asset, ask_asset)[0]

    def execute(self, sender: str, instruction: DexInstruction) -> ReplyResult:
        if isinstance(instruction, Swap):
            return self._swap(sender, instruction)
        if isinstance(instruction, ProvideLiquidity):
            return self._provide(sender, instruction)
        if isinstance(instruction, WithdrawLiquidity):
            return self._withdraw(sender, instruction)
        raise TypeError(f"Unsupported dex instruction: {type(instruction).__name__}")

    def _swap(self, sender: str, swap: Swap) -> ReplyResult:
        pool = self._pool((swap.offer_asset.name, swap.ask_asset))
        return_amount, spread, commission = self._quote(swap.offer_asset, swap.ask_asset)
        expected = return_amount + spread + commission
        if swap.max_spread is not None and expected:
            actual_spread = Decimal(spread) / Decimal(expected)
            if actual_spread > swap.max_spread:
                raise MaxSpreadExceeded(actual_spread, swap.max_spread)
        self.ledger.transfer(sender, pool.address, swap.offer_asset.name, swap.offer_asset.amount)
        self.ledger.transfer(pool.address, sender, swap.ask_asset, return_amount)
        logger.debug("Swapped %s for %d%s", swap.offer_asset, return_amount, swap.ask_asset)
        return ReplyResult({"return_amount": return_amount, "spread_amount": spread, "commission": commission})

    def _provide(self, sender: str, provide: ProvideLiquidity) -> ReplyResult:
        pool = self._pool([asset.name for asset in provide.assets])
        deposits = {asset.name: asset.amount for asset in provide.assets}
        reserves = self.reserves(pool)
        supply = self.ledger.total_supply(pool.lp_token)
        if supply == 0:
            minted = math.isqrt(deposits.get(pool.assets[0], 0) * deposits.get(pool.assets[1], 0))
        else:
            minted = min(deposits.get(name, 0) * supply // reserves[name] for name in pool.assets)
        if minted == 0:
            raise ZeroDepositAmount()
        for name, amount in deposits.items():
            if amount:
                self.ledger.transfer(sender, pool.address, name, amount)
        self.ledger.mint(pool.lp_token, sender, minted)
        logger.debug("Provided %s, minted %d %s", deposits, minted, pool.lp_token)
        return ReplyResult({"lp_minted": minted})

    def _withdraw(self, sender: str, withdraw: WithdrawLiquidity) -> ReplyResult:
        pool = self._pool_for_lp(withdraw.lp_token)
        supply = self.ledger.total_supply(pool.lp_token)
        reserves = self.reserves(pool)
        self.ledger.burn(pool.lp_token, sender, withdraw.amount)
        released = []
        for name in pool.assets:
            amount = reserves[name] * withdraw.amount // supply
            if amount:
                self.ledger.transfer(pool.address, sender, name, amount)
            released.append(Asset(name, amount))
        return ReplyResult({"assets": released})


class SimpleStaking(StakingAdapter):
    """Staking pool with optional unbonding periods and a claim limit per staker.

    Unstaked tokens are returned at once; the unbonding entry is only recorded so the claim limit
    and `query_unbonding` behave like a real provider.
    """

    def __init__(
        self,
        ledger: TokenLedger,
        clock: Clock,
        name: str = "simstaking",
        unbonding_periods: Sequence[Duration] | None = None,
        max_claims: int | None = None,
        reward_tokens: Sequence[str] = (),
    ) -> None:
        super().__init__(name)
        self.ledger = ledger
        self.clock = clock
        self.address = derive_address(f"{name}:staking")
        self.unbonding_periods = tuple(unbonding_periods) if unbonding_periods else None
        self.max_claims = max_claims
        self.reward_tokens = list(reward_tokens)
        self.stakes: dict[tuple[Addr, str, Duration | None], int] = {}
        self.unbonding: dict[Addr, list[tuple[int, Expiration]]] = {}
        self.pending_rewards: dict[Addr, dict[str, int]] = {}

    def accrue_rewards(self, staker: str, reward: Asset) -> None:
        """Mint `reward` into the pool and make it claimable by `staker`."""
        account = to_address(staker)
        self.ledger.mint(reward.name, self.address, reward.amount)
        pending = self.pending_rewards.setdefault(account, {})
        pending[reward.name] = pending.get(reward.name, 0) + reward.amount
        if reward.name not in self.reward_tokens:
            self.reward_tokens.append(reward.name)

    def query_info(self, staking_token: str) -> StakingInfo:
        return StakingInfo(self.address, staking_token, self.unbonding_periods, self.max_claims)

    def query_staked(self, staker: str, staking_token: str, unbonding_period: Duration | None = None) -> int:
        return self.stakes.get((to_address(staker), staking_token, unbonding_period), 0)

    def query_unbonding(self, staker: str, staking_token: str) -> list[tuple[int, Expiration]]:
        return list(self.unbonding.get(to_address(staker), []))

    def query_rewards(self, staking_token: str) -> list[str]:
        return list(self.reward_tokens)

    def execute(self, sender: str, instruction: StakingInstruction) -> ReplyResult:
        staker = to_address(sender)
        if isinstance(instruction, Stake):
            self._check_period(instruction.unbonding_period)
            asset = instruction.asset
            self.ledger.transfer(staker, self.address, asset.name, asset.amount)
            key = (staker, asset.name, instruction.unbonding_period)
            self.stakes[key] = self.stakes.get(key, 0) + asset.amount
            return ReplyResult({"staked": asset.amount})
        if isinstance(instruction, Unstake):
            return self._unstake(staker, instruction)
        if isinstance(instruction, ClaimRewards):
            claimed = self.pending_rewards.pop(staker, {})
            for denom, amount in sorted(claimed.items()):
                self.ledger.transfer(self.address, staker, denom, amount)
            return ReplyResult({"rewards": [Asset(denom, amount) for denom, amount in sorted(claimed.items())]})
        raise TypeError(f"Unsupported staking instruction: {type(instruction).__name__}")

    def _check_period(self, period: Duration | None) -> None:
        if period is None and self.unbonding_periods is None:
            return
        if self.unbonding_periods is None or period not in self.unbonding_periods:
            raise BondingPeriodUnavailable(period, list(self.unbonding_periods or ()))

    def _unstake(self, staker: Addr, unstake: Unstake) -> ReplyResult:
        self._check_period(unstake.unbonding_period)
        asset = unstake.asset
        key = (staker, asset.name, unstake.unbonding_period)
        staked = self.stakes.get(key, 0)
        if staked < asset.amount:
            raise InsufficientFunds(staker, asset.name, staked, asset.amount)

        if unstake.unbonding_period is not None:
            block = self.clock.block
            entries = [entry for entry in self.unbonding.get(staker, []) if not entry[1].is_expired(block)]
            if self.max_claims is not None and len(entries) >= self.max_claims:
                raise TooManyUnbondingClaims(staker, self.max_claims)
            entries.append((asset.amount, unstake.unbonding_period.after(block)))
            self.unbonding[staker] = entries

        self.stakes[key] = staked - asset.amount
        self.ledger.transfer(self.address, staker, asset.name, asset.amount)
        return ReplyResult({"unstaked": asset.amount})
