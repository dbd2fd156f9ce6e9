"""Redeem and withdraw workflows.

Without an unbonding period a redeem unstakes, burns and withdraws liquidity at once, then
(resume) pays the released pool assets out. With an unbonding period a redeem only registers a
pending claim; the LP leaves the vault later through batch unbonding and `withdraw`.
"""

import logging
from collections.abc import Sequence

from autocompounder.accounting import deduct_fee, proportional_lp
from autocompounder.addresses import Addr
from autocompounder.claims import register_pending_redeem, take_matured_claims
from autocompounder.continuations import Response, WithdrawalComplete
from autocompounder.deposit import aggregate, format_assets
from autocompounder.errors import FundsMismatch, SenderIsNotVaultToken
from autocompounder.instructions import Burn, Transfer
from autocompounder.models import Asset
from autocompounder.state import Context

logger = logging.getLogger(__name__)


def withdraw_lp(ctx: Context, recipient: Addr, lp_amount: int, response: Response) -> Response:
    """Charge the withdrawal fee and withdraw the rest of `lp_amount` from the pool for `recipient`."""
    config = ctx.config
    lp_to_withdraw, fee_lp = deduct_fee(lp_amount, ctx.fee_config.withdrawal)
    if fee_lp:
        response.add_message(Transfer((Asset(config.liquidity_token, fee_lp),), ctx.fee_config.fee_collector_addr))
    if lp_to_withdraw:
        response.add_submessage(
            ctx.dex.withdraw_liquidity(config.liquidity_token, lp_to_withdraw),
            WithdrawalComplete(recipient=recipient, balances_before=ctx.balances(config.pool_assets)),
        )
    return response.add_attribute("lp_tokens_to_withdraw", lp_to_withdraw).add_attribute("withdrawal_fee_lp", fee_lp)


def redeem(
    ctx: Context,
    sender: Addr,
    sent_funds: Sequence[Asset],
    amount: int,
    recipient: Addr | None = None,
) -> Response:
    """Redeem `amount` vault tokens sent along with the call."""
    state = ctx.state
    vault_token = state.vault_token
    sent = aggregate(sent_funds)
    for name in sent:
        if name != vault_token:
            raise SenderIsNotVaultToken(name)
    if amount <= 0 or sent.get(vault_token, 0) != amount:
        raise FundsMismatch(f"{amount}{vault_token}", format_assets(sent))

    beneficiary = recipient or sender
    response = Response().add_attribute("recipient", beneficiary)

    if state.config.unbonding_period is not None:
        total = register_pending_redeem(state, beneficiary, amount)
        logger.info("Registered pending claim of %d vault tokens for %s (total %d)", amount, beneficiary, total)
        return response.add_attribute("action", "register_pre_claim").add_attribute("pending_claim", total)

    # Supply and staked LP are read before this burn.
    lp_amount = proportional_lp(amount, ctx.vault_token_supply(), ctx.staked_lp())
    response.add_attribute("action", "redeem")
    if lp_amount:
        response.add_message(ctx.staking.unstake(Asset(state.config.liquidity_token, lp_amount)))
    response.add_message(Burn(vault_token, amount))
    logger.info("Redeem of %d vault tokens by %s: %d LP", amount, sender, lp_amount)
    return withdraw_lp(ctx, beneficiary, lp_amount, response)


def withdraw(ctx: Context, sender: Addr) -> Response:
    """Withdraw the LP of every matured claim of `sender` in a single liquidity withdrawal."""
    matured, lp_amount = take_matured_claims(ctx.state, sender, ctx.block)
    logger.info("Withdrawing %d matured claims of %s: %d LP", len(matured), sender, lp_amount)
    response = Response().add_attribute("action", "withdraw_claims").add_attribute("matured_claims", len(matured))
    return withdraw_lp(ctx, sender, lp_amount, response)


def on_withdrawal_complete(ctx: Context, continuation: WithdrawalComplete) -> Response:
    """Send the pool assets released by the withdrawal to the recipient."""
    before = {asset.name: asset.amount for asset in continuation.balances_before}
    released = tuple(
        Asset(name, ctx.balance(name) - before.get(name, 0))
        for name in ctx.config.pool_assets
        if ctx.balance(name) > before.get(name, 0)
    )
    response = Response().add_attribute("action", "lp_withdrawal_reply")
    if released:
        response.add_message(Transfer(released, continuation.recipient))
    logger.debug("Paying out %s to %s", ", ".join(map(str, released)) or "nothing", continuation.recipient)
    return response
