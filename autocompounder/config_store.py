"""Validated vault settings: fees, pool identity and unbonding policy."""

import logging
from collections.abc import Sequence
from decimal import Decimal

from autocompounder.adapters import DexAdapter, StakingAdapter
from autocompounder.addresses import to_address
from autocompounder.constants import MAX_FEE, MAX_POOL_ASSETS
from autocompounder.errors import (
    BondingPeriodUnavailable,
    InvalidFee,
    MaxCountError,
    PoolWithMoreThanTwoAssets,
    StakedUnderOtherPeriod,
    UnbondingPeriodsIncoherent,
)
from autocompounder.models import BondingPeriodSelector, Duration, FeeConfig, PoolInfo
from autocompounder.state import VaultState

logger = logging.getLogger(__name__)


def check_fee(fee: Decimal) -> Decimal:
    """Fail with InvalidFee unless 0 <= fee <= MAX_FEE."""
    fee = Decimal(fee)
    if fee > MAX_FEE or fee < 0:
        raise InvalidFee(fee, MAX_FEE)
    return fee


def set_fees(
    state: VaultState,
    *,
    performance: Decimal | None = None,
    deposit: Decimal | None = None,
    withdrawal: Decimal | None = None,
    fee_collector_addr: str | None = None,
) -> FeeConfig:
    """Update the given fee fields. Either every change is applied or none."""
    changes: dict[str, object] = {}
    # Validate everything before the first write.
    if performance is not None:
        changes["performance"] = check_fee(performance)
    if deposit is not None:
        changes["deposit"] = check_fee(deposit)
    if withdrawal is not None:
        changes["withdrawal"] = check_fee(withdrawal)
    if fee_collector_addr is not None:
        changes["fee_collector_addr"] = to_address(fee_collector_addr)
    if not changes:
        return state.fee_config
    logger.info("Updating fee config: %s", ", ".join(f"{k}={v}" for k, v in changes.items()))
    return state.update_fee_config(**changes)


def canonical_pool_assets(assets: Sequence[str]) -> tuple[str, ...]:
    """Pool assets in the canonical (sorted) order every comparison assumes."""
    if len(assets) > MAX_POOL_ASSETS:
        raise PoolWithMoreThanTwoAssets(list(assets))
    return tuple(sorted(assets))


def set_pool(dex: DexAdapter, assets: Sequence[str]) -> PoolInfo:
    """Validate and resolve the pool the vault provides liquidity to."""
    pool_assets = canonical_pool_assets(assets)
    info = dex.pool_info(pool_assets)
    logger.debug("Resolved pool %s on %s: %s (lp=%s)", pool_assets, dex.name, info.pool_address, info.liquidity_token)
    return PoolInfo(info.pool_address, tuple(sorted(info.assets)), info.liquidity_token)


def select_unbonding_period(periods: Sequence[Duration], preferred: BondingPeriodSelector) -> Duration:
    """Pick the unbonding period according to the caller's preference.

    `periods` must be non-empty and of a single kind.
    """
    ordered = sorted(periods)
    if preferred.kind == "shortest":
        return ordered[0]
    if preferred.kind == "longest":
        return ordered[-1]
    if preferred.duration not in ordered:
        raise BondingPeriodUnavailable(preferred.duration, ordered)
    return preferred.duration  # type: ignore[return-value]


def derive_min_cooldown(unbonding_period: Duration, max_claims: int | None) -> Duration | None:
    """Minimum time between batch unbondings so the provider's claim limit is never exceeded."""
    if max_claims is None:
        return None
    if max_claims == 0:
        raise MaxCountError("max_claims cannot be 0")
    return Duration(unbonding_period.kind, unbonding_period.value // max_claims)


def refresh_staking_policy(
    state: VaultState, staking: StakingAdapter, preferred: BondingPeriodSelector, *, staked_lp: int = 0
) -> tuple[Duration | None, Duration | None]:
    """Re-read the staking provider's unbonding options and store the selected policy.

    The position is staked under the configured unbonding period, so the period cannot change
    while `staked_lp` is non-zero. Returns the (unbonding_period, min_unbonding_cooldown) pair
    written to the config.
    """
    info = staking.query_info(state.config.liquidity_token)
    periods = list(info.unbonding_periods or ())

    unbonding_period: Duration | None = None
    min_cooldown: Duration | None = None
    if periods:
        kinds = {p.kind for p in periods}
        if len(kinds) > 1:
            raise UnbondingPeriodsIncoherent(kinds)
        unbonding_period = select_unbonding_period(periods, preferred)
        min_cooldown = derive_min_cooldown(unbonding_period, info.max_claims)

    current = state.config.unbonding_period
    if staked_lp and unbonding_period != current:
        raise StakedUnderOtherPeriod(staked_lp, current, unbonding_period)

    state.update_config(
        staking_contract=info.staking_contract,
        unbonding_period=unbonding_period,
        min_unbonding_cooldown=min_cooldown,
    )
    logger.info(
        "Staking policy: unbonding_period=%s min_unbonding_cooldown=%s",
        unbonding_period or "none",
        min_cooldown or "none",
    )
    return unbonding_period, min_cooldown
