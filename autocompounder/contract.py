"""Vault entry points: instantiate, execute, query and reply (resumption)."""

import logging
from typing import Any

from autocompounder import claims, compound, deposit, redeem
from autocompounder.accounting import assets_for
from autocompounder.adapters import DexAdapter, StakingAdapter
from autocompounder.addresses import to_address
from autocompounder.config_store import check_fee, refresh_staking_policy, set_fees, set_pool
from autocompounder.constants import DEFAULT_MAX_SPREAD, VAULT_TOKEN_DECIMALS, VAULT_TOKEN_SYMBOL, VIRTUAL_SHARES
from autocompounder.continuations import (
    FeeSwapped,
    Instantiate,
    ProvisionAfterCompound,
    ProvisionAfterDeposit,
    Response,
    RewardsClaimed,
    RewardsSwapped,
    WithdrawalComplete,
)
from autocompounder.errors import AdminError, ConfigurationError, UnknownReplyId, VaultTokenAlreadyInitialized
from autocompounder.instructions import CreateDenom
from autocompounder.messages import (
    AllClaimsQuery,
    AllPendingClaimsQuery,
    AssetsPerSharesQuery,
    BalanceQuery,
    BatchUnbond,
    ClaimsQuery,
    Compound,
    ConfigQuery,
    Deposit,
    DepositLp,
    ExecuteMsg,
    FeeConfigQuery,
    InstantiateMsg,
    LatestUnbondingQuery,
    MessageInfo,
    PendingClaimsQuery,
    QueryMsg,
    Redeem,
    TotalLpPositionQuery,
    TotalSupplyQuery,
    UpdateFeeConfig,
    UpdateStakingConfig,
    Withdraw,
)
from autocompounder.models import Config, FeeConfig, ReplyResult
from autocompounder.state import Context, VaultState

logger = logging.getLogger(__name__)


def assert_admin(state: VaultState, sender: str) -> None:
    if to_address(sender) != state.admin:
        raise AdminError(sender)


def instantiate(
    dex: DexAdapter, staking: StakingAdapter, info: MessageInfo, msg: InstantiateMsg
) -> tuple[VaultState, Response]:
    """Create the vault state and request creation of the vault token."""
    if msg.dex != dex.name:
        raise ConfigurationError(f"Unknown dex {msg.dex} (available: {dex.name})", dex=msg.dex)
    fee_config = FeeConfig(
        performance=check_fee(msg.performance_fees),
        deposit=check_fee(msg.deposit_fees),
        withdrawal=check_fee(msg.withdrawal_fees),
        fee_collector_addr=to_address(msg.fee_collector_addr),
        fee_asset=msg.fee_asset,
    )
    pool = set_pool(dex, msg.pool_assets)
    config = Config(
        dex=dex.name,
        pool_address=pool.pool_address,
        pool_assets=pool.assets,
        liquidity_token=pool.liquidity_token,
        staking_contract=staking.name,
        max_swap_spread=msg.max_swap_spread if msg.max_swap_spread is not None else DEFAULT_MAX_SPREAD,
    )
    state = VaultState(admin=to_address(info.sender), config=config, fee_config=fee_config)
    refresh_staking_policy(state, staking, msg.preferred_bonding_period)
    logger.info("Instantiated vault for %s pool %s", dex.name, "/".join(pool.assets))

    response = (
        Response()
        .add_attribute("action", "instantiate")
        .add_submessage(CreateDenom(VAULT_TOKEN_SYMBOL, VAULT_TOKEN_DECIMALS), Instantiate())
    )
    return state, response


def execute(ctx: Context, info: MessageInfo, msg: ExecuteMsg) -> Response:
    """Route a command to its workflow."""
    sender = to_address(info.sender)
    recipient = getattr(msg, "recipient", None)
    recipient = to_address(recipient) if recipient is not None else None

    if isinstance(msg, UpdateFeeConfig):
        assert_admin(ctx.state, sender)
        set_fees(
            ctx.state,
            performance=msg.performance,
            deposit=msg.deposit,
            withdrawal=msg.withdrawal,
            fee_collector_addr=msg.fee_collector_addr,
        )
        return Response().add_attribute("action", "update_fee_config")
    if isinstance(msg, Deposit):
        return deposit.deposit(ctx, sender, info.funds, msg.funds, recipient, msg.max_spread)
    if isinstance(msg, DepositLp):
        return deposit.deposit_lp(ctx, sender, info.funds, msg.lp_token, recipient)
    if isinstance(msg, Redeem):
        return redeem.redeem(ctx, sender, info.funds, msg.amount, recipient)
    if isinstance(msg, Withdraw):
        return redeem.withdraw(ctx, sender)
    if isinstance(msg, BatchUnbond):
        return claims.batch_unbond(ctx, msg.start_after, msg.limit)
    if isinstance(msg, Compound):
        return compound.compound(ctx)
    if isinstance(msg, UpdateStakingConfig):
        assert_admin(ctx.state, sender)
        unbonding_period, min_cooldown = refresh_staking_policy(
            ctx.state, ctx.staking, msg.preferred_bonding_period, staked_lp=ctx.staked_lp()
        )
        return (
            Response()
            .add_attribute("action", "update_staking_config")
            .add_attribute("unbonding_period", str(unbonding_period) if unbonding_period else None)
            .add_attribute("min_unbonding_cooldown", str(min_cooldown) if min_cooldown else None)
        )
    raise TypeError(f"Unsupported execute message: {type(msg).__name__}")


def on_instantiate(ctx: Context, result: ReplyResult) -> Response:
    """Store the denom of the freshly created vault token."""
    if ctx.config.vault_token:
        raise VaultTokenAlreadyInitialized(ctx.config.vault_token)
    denom = result.data["denom"]
    ctx.state.update_config(vault_token=denom)
    return Response().add_attribute("action", "instantiate_reply").add_attribute("vault_token", denom)


def reply(ctx: Context, continuation: Any, result: ReplyResult) -> Response:
    """Resume the workflow step matching `continuation`."""
    logger.debug("Resuming %s", type(continuation).__name__)
    if isinstance(continuation, Instantiate):
        return on_instantiate(ctx, result)
    if isinstance(continuation, ProvisionAfterDeposit):
        return deposit.on_provision_after_deposit(ctx, continuation)
    if isinstance(continuation, WithdrawalComplete):
        return redeem.on_withdrawal_complete(ctx, continuation)
    if isinstance(continuation, RewardsClaimed):
        return compound.on_rewards_claimed(ctx, continuation)
    if isinstance(continuation, RewardsSwapped):
        return compound.on_rewards_swapped(ctx, continuation)
    if isinstance(continuation, ProvisionAfterCompound):
        return compound.on_provision_after_compound(ctx, continuation)
    if isinstance(continuation, FeeSwapped):
        return compound.on_fee_swapped(ctx, continuation)
    raise UnknownReplyId(continuation)


def query(ctx: Context, msg: QueryMsg) -> Any:
    """Answer a read-only query."""
    state = ctx.state
    if isinstance(msg, ConfigQuery):
        return state.config
    if isinstance(msg, FeeConfigQuery):
        return state.fee_config
    if isinstance(msg, PendingClaimsQuery):
        return claims.pending_claim(state, msg.address)
    if isinstance(msg, AllPendingClaimsQuery):
        return claims.all_pending_claims(state, msg.start_after, msg.limit)
    if isinstance(msg, ClaimsQuery):
        return claims.user_claims(state, msg.address)
    if isinstance(msg, AllClaimsQuery):
        return claims.all_claims(state, msg.start_after, msg.limit)
    if isinstance(msg, LatestUnbondingQuery):
        return state.latest_unbonding
    if isinstance(msg, TotalLpPositionQuery):
        return ctx.staked_lp()
    if isinstance(msg, TotalSupplyQuery):
        return ctx.vault_token_supply()
    if isinstance(msg, AssetsPerSharesQuery):
        shares = msg.shares if msg.shares is not None else VIRTUAL_SHARES
        return assets_for(shares, ctx.staked_lp(), ctx.vault_token_supply())
    if isinstance(msg, BalanceQuery):
        return ctx.querier.balance(to_address(msg.address), state.vault_token)
    raise TypeError(f"Unsupported query message: {type(msg).__name__}")
