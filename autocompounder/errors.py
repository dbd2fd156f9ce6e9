"""Typed failures raised by the vault.

Every error aborts the whole top-level call; the runtime discards all state mutations made by it.
Errors keep the offending values as attributes so callers can render them (e.g. the remaining cooldown).
"""

from decimal import Decimal
from typing import Any


class AutocompounderError(Exception):
    """Base class for every vault failure."""

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.details = details


# ---------------------------------------------------------------------------
# Configuration errors
# ---------------------------------------------------------------------------
class ConfigurationError(AutocompounderError):
    """Invalid fee, pool or staking-policy settings."""


class InvalidFee(ConfigurationError):
    def __init__(self, fee: Decimal, max_fee: Decimal) -> None:
        super().__init__(f"Fee {fee} exceeds the maximum of {max_fee}", fee=fee, max_fee=max_fee)
        self.fee = fee
        self.max_fee = max_fee


class PoolWithMoreThanTwoAssets(ConfigurationError):
    def __init__(self, assets: list[str]) -> None:
        super().__init__(f"Pools with more than 2 assets are not supported (got {len(assets)}: {assets})", assets=assets)
        self.assets = assets


class UnbondingPeriodsIncoherent(ConfigurationError):
    def __init__(self, kinds: set[str]) -> None:
        super().__init__(
            f"The unbonding periods from the pool are incoherent. They show both block and time durations ({sorted(kinds)}).",
            kinds=kinds,
        )
        self.kinds = kinds


class MaxCountError(ConfigurationError):
    def __init__(self, msg: str) -> None:
        super().__init__(f"The configured max count has an error, {msg}", msg=msg)


class BondingPeriodUnavailable(ConfigurationError):
    def __init__(self, wanted: Any, available: list[Any]) -> None:
        super().__init__(
            f"Bonding period {wanted} is not offered by the staking provider (available: {available})",
            wanted=wanted,
            available=available,
        )
        self.wanted = wanted
        self.available = available


class AssetNotInPool(ConfigurationError):
    def __init__(self, asset: str, pool_assets: list[str]) -> None:
        super().__init__(f"The asset {asset} is not in the pool of this vault {pool_assets}", asset=asset)
        self.asset = asset
        self.pool_assets = pool_assets


class InvalidAddress(ConfigurationError):
    def __init__(self, value: Any) -> None:
        super().__init__(f"Invalid address: {value!r}", value=value)
        self.value = value


class PoolNotFound(ConfigurationError):
    def __init__(self, assets: Any) -> None:
        super().__init__(f"No pool trades exactly {list(assets)}", assets=assets)
        self.assets = assets


class VaultTokenNotInitialized(ConfigurationError):
    def __init__(self) -> None:
        super().__init__("Vault token is not initialized")


class VaultTokenAlreadyInitialized(ConfigurationError):
    def __init__(self, vault_token: str) -> None:
        super().__init__(f"Vault token is already initialized ({vault_token})", vault_token=vault_token)


# ---------------------------------------------------------------------------
# Funds errors
# ---------------------------------------------------------------------------
class FundsError(AutocompounderError):
    """Sent funds do not match what the call claims."""


class FundsMismatch(FundsError):
    def __init__(self, wanted: str, sent: str) -> None:
        super().__init__(f"funds mismatch. funds wanted {wanted}, but sent funds are {sent}", wanted=wanted, sent=sent)
        self.wanted = wanted
        self.sent = sent


class ZeroDepositAmount(FundsError):
    def __init__(self) -> None:
        super().__init__("Zero deposit amount is not allowed")


class ZeroMintAmount(FundsError):
    def __init__(self, assets_in: int) -> None:
        super().__init__(f"Zero mint amount is not allowed (deposited {assets_in} LP)", assets_in=assets_in)
        self.assets_in = assets_in


class MaxSpreadExceeded(FundsError):
    def __init__(self, spread: Any, max_spread: Any) -> None:
        super().__init__(f"Operation exceeds max spread limit: {spread} > {max_spread}", spread=spread, max_spread=max_spread)
        self.spread = spread
        self.max_spread = max_spread


class InsufficientFunds(FundsError):
    def __init__(self, account: str, denom: str, balance: int, required: int) -> None:
        super().__init__(
            f"Insufficient {denom} for {account}: balance {balance}, required {required}",
            account=account,
            denom=denom,
            balance=balance,
            required=required,
        )
        self.account = account
        self.denom = denom
        self.balance = balance
        self.required = required


# ---------------------------------------------------------------------------
# State errors
# ---------------------------------------------------------------------------
class StateError(AutocompounderError):
    """The vault is not in a state that allows the call."""


class NoMaturedClaims(StateError):
    def __init__(self, address: str) -> None:
        super().__init__(f"No ongoing claims are ready for withdrawal for {address}", address=address)
        self.address = address


class UnbondingNotEnabled(StateError):
    def __init__(self) -> None:
        super().__init__("Unbonding is not enabled for this pool")


class UnbondingCooldownNotExpired(StateError):
    def __init__(self, min_cooldown: Any, latest_unbonding: Any) -> None:
        super().__init__(
            f"Minimum cooldown {min_cooldown} has not passed since the latest unbonding {latest_unbonding}",
            min_cooldown=min_cooldown,
            latest_unbonding=latest_unbonding,
        )
        self.min_cooldown = min_cooldown
        self.latest_unbonding = latest_unbonding


class SenderIsNotVaultToken(StateError):
    def __init__(self, token: str) -> None:
        super().__init__(f"Redeem can only be called with the vault token (got {token})", token=token)


class SenderIsNotLpToken(StateError):
    def __init__(self, token: str) -> None:
        super().__init__(f"Deposit of LP can only be called with the lp token (got {token})", token=token)


class TooManyUnbondingClaims(StateError):
    def __init__(self, staker: str, max_claims: int) -> None:
        super().__init__(f"{staker} already has {max_claims} outstanding unbonding claims", staker=staker, max_claims=max_claims)
        self.staker = staker
        self.max_claims = max_claims


class StakedUnderOtherPeriod(StateError):
    def __init__(self, staked: int, current: Any, requested: Any) -> None:
        super().__init__(
            f"Cannot switch the unbonding period from {current} to {requested} while {staked} LP is staked",
            staked=staked,
            current=current,
            requested=requested,
        )
        self.staked = staked
        self.current = current
        self.requested = requested


class NoRewards(StateError):
    def __init__(self) -> None:
        super().__init__("No rewards to claim")


class AdminError(StateError):
    def __init__(self, sender: str) -> None:
        super().__init__(f"Caller {sender} is not admin", sender=sender)
        self.sender = sender


# ---------------------------------------------------------------------------
# Protocol errors
# ---------------------------------------------------------------------------
class ProtocolError(AutocompounderError):
    """A resumption does not match any step of the vault's workflows."""


class UnknownReplyId(ProtocolError):
    def __init__(self, reply: Any) -> None:
        super().__init__(f"Reply {reply!r} not found", reply=reply)
