"""Deposit workflow: pool assets -> liquidity provision -> (resume) mint shares and stake the LP."""

import logging
from collections.abc import Sequence
from decimal import Decimal

from autocompounder.accounting import deduct_fee, shares_to_mint
from autocompounder.addresses import Addr
from autocompounder.continuations import ProvisionAfterDeposit, Response
from autocompounder.errors import (
    AssetNotInPool,
    FundsMismatch,
    SenderIsNotLpToken,
    ZeroDepositAmount,
    ZeroMintAmount,
)
from autocompounder.instructions import Instruction, Mint, Transfer
from autocompounder.models import Asset
from autocompounder.state import Context

logger = logging.getLogger(__name__)


def aggregate(assets: Sequence[Asset]) -> dict[str, int]:
    """Sum amounts per asset name, dropping zero entries."""
    out: dict[str, int] = {}
    for asset in assets:
        out[asset.name] = out.get(asset.name, 0) + asset.amount
    return {name: amount for name, amount in out.items() if amount}


def format_assets(assets: dict[str, int]) -> str:
    return ", ".join(f"{amount}{name}" for name, amount in sorted(assets.items())) or "(none)"


def check_funds(claimed: Sequence[Asset], sent: Sequence[Asset]) -> dict[str, int]:
    """Fail with FundsMismatch unless the attached funds equal the claimed deposit."""
    wanted = aggregate(claimed)
    got = aggregate(sent)
    if wanted != got:
        raise FundsMismatch(format_assets(wanted), format_assets(got))
    return wanted


def balance_legs(ctx: Context, legs: list[Asset], max_spread: Decimal | None) -> tuple[list[Instruction], list[Asset]]:
    """Make a two-asset provision possible when one leg is empty.

    Half of the non-zero leg is swapped into the other asset; the provision then uses the remaining
    half and the simulated swap output. Returns (swap instructions, liquidity legs).
    """
    if len(legs) != 2 or all(leg.amount for leg in legs) or not any(leg.amount for leg in legs):
        return [], legs
    offer, other = (legs[0], legs[1]) if legs[0].amount else (legs[1], legs[0])
    half = offer.amount // 2
    if half == 0:
        return [], legs
    offer_half = Asset(offer.name, half)
    simulated = ctx.dex.simulate_swap(offer_half, other.name)
    logger.debug("Swapping %s into %s before provision (simulated %d)", offer_half, other.name, simulated)
    swap = ctx.dex.swap(offer_half, other.name, max_spread=max_spread)
    balanced = {offer.name: offer.amount - half, other.name: simulated}
    # Keep the pool's canonical ordering.
    return [swap], [Asset(leg.name, balanced[leg.name]) for leg in legs]


def deposit(
    ctx: Context,
    sender: Addr,
    sent_funds: Sequence[Asset],
    funds: Sequence[Asset],
    recipient: Addr | None = None,
    max_spread: Decimal | None = None,
) -> Response:
    """Provide the deposited pool assets as liquidity and suspend until the LP is received."""
    config = ctx.config
    claimed = check_funds(funds, sent_funds)
    for name in claimed:
        if name not in config.pool_assets:
            raise AssetNotInPool(name, list(config.pool_assets))
    if not claimed:
        raise ZeroDepositAmount()

    max_spread = max_spread if max_spread is not None else config.max_swap_spread
    legs = [Asset(name, claimed.get(name, 0)) for name in config.pool_assets]
    swaps, legs = balance_legs(ctx, legs, max_spread)

    beneficiary = recipient or sender
    response = Response().add_attribute("action", "deposit").add_attribute("recipient", beneficiary)
    response.add_messages(swaps)
    response.add_submessage(
        ctx.dex.provide_liquidity(legs, max_spread),
        ProvisionAfterDeposit(beneficiary=beneficiary, lp_before=ctx.lp_balance()),
    )
    logger.info("Deposit by %s for %s: %s", sender, beneficiary, format_assets(claimed))
    return response


def mint_and_stake(ctx: Context, beneficiary: Addr, received_lp: int) -> Response:
    """Charge the deposit fee, mint shares for the rest and stake it."""
    config = ctx.config
    # Totals before the new LP is staked.
    total_assets = ctx.staked_lp()
    total_shares = ctx.vault_token_supply()

    lp_to_stake, fee_lp = deduct_fee(received_lp, ctx.fee_config.deposit)
    minted = shares_to_mint(lp_to_stake, total_assets, total_shares)
    if minted == 0:
        raise ZeroMintAmount(received_lp)

    response = Response()
    if fee_lp:
        response.add_message(Transfer((Asset(config.liquidity_token, fee_lp),), ctx.fee_config.fee_collector_addr))
    response.add_message(Mint(ctx.state.vault_token, beneficiary, minted))
    response.add_message(ctx.staking.stake(Asset(config.liquidity_token, lp_to_stake), config.unbonding_period))
    logger.info("Minted %d vault tokens to %s for %d LP (deposit fee %d LP)", minted, beneficiary, lp_to_stake, fee_lp)
    return (
        response.add_attribute("vault_token_minted", minted)
        .add_attribute("lp_staked", lp_to_stake)
        .add_attribute("deposit_fee_lp", fee_lp)
    )


def on_provision_after_deposit(ctx: Context, continuation: ProvisionAfterDeposit) -> Response:
    received_lp = ctx.lp_balance() - continuation.lp_before
    response = mint_and_stake(ctx, continuation.beneficiary, received_lp)
    return response.add_attribute("action", "lp_provision_reply")


def deposit_lp(
    ctx: Context,
    sender: Addr,
    sent_funds: Sequence[Asset],
    lp_token: str,
    recipient: Addr | None = None,
) -> Response:
    """Deposit LP tokens directly: no provision step, shares are minted right away."""
    liquidity_token = ctx.config.liquidity_token
    if lp_token != liquidity_token:
        raise SenderIsNotLpToken(lp_token)
    sent = aggregate(sent_funds)
    for name in sent:
        if name != liquidity_token:
            raise SenderIsNotLpToken(name)
    amount = sent.get(liquidity_token, 0)
    if amount == 0:
        raise ZeroDepositAmount()

    beneficiary = recipient or sender
    response = mint_and_stake(ctx, beneficiary, amount)
    return response.add_attribute("action", "deposit_lp").add_attribute("recipient", beneficiary)
