"""Compound workflow.

claim rewards -> (resume) deduct the performance fee and swap it to the fee asset, and in
parallel swap the remaining rewards into pool assets -> provide liquidity -> stake the new LP.
The fee chain and the reward chain carry their own continuations and never resume each other.
"""

import logging

from autocompounder.accounting import deduct_fee
from autocompounder.continuations import (
    FeeSwapped,
    ProvisionAfterCompound,
    Response,
    RewardsClaimed,
    RewardsSwapped,
)
from autocompounder.deposit import balance_legs
from autocompounder.errors import NoRewards
from autocompounder.instructions import Instruction, Transfer
from autocompounder.models import Asset
from autocompounder.state import Context

logger = logging.getLogger(__name__)


def compound(ctx: Context) -> Response:
    """Claim staking rewards and suspend until they arrive."""
    claim = ctx.staking.claim_rewards(ctx.config.liquidity_token)
    return Response().add_attribute("action", "compound").add_submessage(claim, RewardsClaimed())


def staking_rewards(ctx: Context) -> list[Asset]:
    """Non-zero balances of every reward token the staking provider distributes."""
    rewards = []
    for token in ctx.staking.query_rewards(ctx.config.liquidity_token):
        balance = ctx.balance(token)
        if balance:
            rewards.append(Asset(token, balance))
    return rewards


def _add_chain(response: Response, instructions: list[Instruction], continuation) -> None:
    """Dispatch `instructions` in order and resume with `continuation` after the last one."""
    *head, last = instructions
    response.add_messages(head)
    response.add_submessage(last, continuation)


def on_rewards_claimed(ctx: Context, _continuation: RewardsClaimed) -> Response:
    config = ctx.config
    fee_config = ctx.fee_config
    rewards = staking_rewards(ctx)
    if not rewards:
        raise NoRewards()

    fees: list[Asset] = []
    remaining: list[Asset] = []
    for reward in rewards:
        rest, fee = deduct_fee(reward.amount, fee_config.performance)
        if fee:
            fees.append(Asset(reward.name, fee))
        if rest:
            remaining.append(Asset(reward.name, rest))
    logger.info(
        "Compounding rewards %s (performance fee %s)",
        ", ".join(map(str, rewards)),
        ", ".join(map(str, fees)) or "none",
    )

    response = Response().add_attribute("action", "lp_compound_reply")

    # Fee chain.
    fee_asset = fee_config.fee_asset
    fees_to_swap = [fee for fee in fees if fee.name != fee_asset]
    direct_fee = sum(fee.amount for fee in fees if fee.name == fee_asset)
    if fees_to_swap:
        baseline = ctx.balance(fee_asset) - direct_fee
        swaps = [ctx.dex.swap(fee, fee_asset, max_spread=config.max_swap_spread) for fee in fees_to_swap]
        _add_chain(response, swaps, FeeSwapped(fee_asset=fee_asset, baseline=baseline))
    elif direct_fee:
        response.add_message(Transfer((Asset(fee_asset, direct_fee),), fee_config.fee_collector_addr))

    # Reward chain.
    if not remaining:
        return response
    pool_assets = config.pool_assets
    amounts = {name: 0 for name in pool_assets}
    reward_swaps: list[Instruction] = []
    for reward in remaining:
        if reward.name in amounts:
            amounts[reward.name] += reward.amount
        else:
            reward_swaps.append(ctx.dex.swap(reward, pool_assets[0], max_spread=config.max_swap_spread))

    if not reward_swaps and len(pool_assets) == 2 and not all(amounts.values()):
        # Single-sided rewards: swap half into the other pool asset first.
        offer_name = next(name for name, amount in amounts.items() if amount)
        ask_name = next(name for name in pool_assets if name != offer_name)
        half = amounts[offer_name] // 2
        if half:
            reward_swaps.append(ctx.dex.swap(Asset(offer_name, half), ask_name, max_spread=config.max_swap_spread))

    if reward_swaps:
        _add_chain(response, reward_swaps, RewardsSwapped())
        return response.add_attribute("reward_swaps", len(reward_swaps))

    legs = [Asset(name, amounts[name]) for name in pool_assets]
    response.add_submessage(
        ctx.dex.provide_liquidity(legs, config.max_swap_spread),
        ProvisionAfterCompound(lp_before=ctx.lp_balance()),
    )
    return response


def on_rewards_swapped(ctx: Context, _continuation: RewardsSwapped) -> Response:
    """Provide liquidity with whatever pool assets the vault now holds."""
    config = ctx.config
    legs = list(ctx.balances(config.pool_assets))
    response = Response().add_attribute("action", "swapped_reply")
    if not any(leg.amount for leg in legs):
        return response
    # The balancing swap executes right before the provision, so the simulation is current.
    swaps, legs = balance_legs(ctx, legs, config.max_swap_spread)
    response.add_messages(swaps)
    response.add_submessage(
        ctx.dex.provide_liquidity(legs, config.max_swap_spread),
        ProvisionAfterCompound(lp_before=ctx.lp_balance()),
    )
    return response


def on_provision_after_compound(ctx: Context, continuation: ProvisionAfterCompound) -> Response:
    """Stake the LP received from compounding."""
    config = ctx.config
    received_lp = ctx.lp_balance() - continuation.lp_before
    response = Response().add_attribute("action", "compound_lp_provision_reply")
    if received_lp > 0:
        response.add_message(ctx.staking.stake(Asset(config.liquidity_token, received_lp), config.unbonding_period))
    logger.info("Compounded %d LP into the staked position", received_lp)
    return response.add_attribute("lp_staked", received_lp)


def on_fee_swapped(ctx: Context, continuation: FeeSwapped) -> Response:
    """Send the swapped performance fee to the fee collector."""
    fee_amount = ctx.balance(continuation.fee_asset) - continuation.baseline
    response = Response().add_attribute("action", "transfer_platform_fees")
    if fee_amount > 0:
        response.add_message(
            Transfer((Asset(continuation.fee_asset, fee_amount),), ctx.fee_config.fee_collector_addr)
        )
    logger.info(
        "Performance fee of %d %s sent to %s", fee_amount, continuation.fee_asset, ctx.fee_config.fee_collector_addr
    )
    return response.add_attribute("fee_amount", fee_amount)
