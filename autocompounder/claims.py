"""Claims ledger: pending redemptions, batch unbonding and matured-claim bookkeeping.

Per user the flow is: none -> pending (register_pending_redeem) -> queued claims (batch_unbond)
-> withdrawn (take_matured_claims, possibly one claim at a time as they mature).
"""

import logging

from autocompounder.accounting import proportional_lp
from autocompounder.addresses import Addr, address_sort_key, to_address
from autocompounder.constants import DEFAULT_PAGE_SIZE, MAX_BATCH_SIZE, MAX_PAGE_SIZE
from autocompounder.continuations import Response
from autocompounder.errors import NoMaturedClaims, UnbondingCooldownNotExpired, UnbondingNotEnabled
from autocompounder.instructions import Burn
from autocompounder.models import Asset, BlockInfo, Claim
from autocompounder.state import Context, VaultState

logger = logging.getLogger(__name__)


def register_pending_redeem(state: VaultState, user: Addr, amount: int) -> int:
    """Record `amount` vault tokens of `user` for the next batch unbonding. Returns the user's total."""
    total = state.pending_claims.get(user, 0) + amount
    state.pending_claims[user] = total
    logger.debug("Pending redeem for %s: +%d (total %d)", user, amount, total)
    return total


def check_unbonding_cooldown(state: VaultState, block: BlockInfo) -> None:
    """Fail unless the minimum cooldown has passed since the latest batch unbonding."""
    min_cooldown = state.config.min_unbonding_cooldown
    latest = state.latest_unbonding
    if min_cooldown is None or latest is None:
        return
    if not min_cooldown.after(latest).is_expired(block):
        raise UnbondingCooldownNotExpired(min_cooldown, latest)


def _page(items: list[tuple[Addr, object]], start_after: str | None, limit: int | None) -> list:
    if start_after is not None:
        start_key = address_sort_key(to_address(start_after))
        items = [kv for kv in items if address_sort_key(kv[0]) > start_key]
    if limit is not None:
        items = items[:limit]
    return items


def batch_unbond(ctx: Context, start_after: str | None = None, limit: int | None = None) -> Response:
    """Turn pending redemptions into claims and unstake/burn for all of them at once.

    Without `limit` every pending redemption is processed; otherwise one page in address order.
    """
    state = ctx.state
    unbonding_period = state.config.unbonding_period
    if unbonding_period is None:
        raise UnbondingNotEnabled()
    check_unbonding_cooldown(state, ctx.block)

    if limit is not None:
        limit = min(limit, MAX_BATCH_SIZE)
    pending = _page(state.sorted_pending_claims(), start_after, limit)
    response = Response().add_attribute("action", "batch_unbond")
    if not pending:
        # Nothing to unbond: no claims, no instructions, and the cooldown is not restarted.
        logger.info("Batch unbond skipped: no pending claims")
        return response.add_attribute("claims", 0)

    # Both totals are read before any burn of this batch.
    vault_token_supply = ctx.vault_token_supply()
    total_lp_staked = ctx.staked_lp()
    unbonding_timestamp = unbonding_period.after(ctx.block)

    total_lp_to_unbond = 0
    total_vault_tokens_to_burn = 0
    for user, amount in pending:
        lp_amount = proportional_lp(amount, vault_token_supply, total_lp_staked)
        claim = Claim(
            unbonding_timestamp=unbonding_timestamp,
            vault_tokens_burned=amount,
            lp_tokens_to_unbond=lp_amount,
        )
        state.claims.setdefault(user, []).append(claim)
        total_lp_to_unbond += lp_amount
        total_vault_tokens_to_burn += amount
        logger.debug(
            "Claim for %s: burn %d vault tokens, unbond %d LP at %s", user, amount, lp_amount, unbonding_timestamp
        )

    for user, _ in pending:
        del state.pending_claims[user]
    state.latest_unbonding = ctx.block

    if total_lp_to_unbond:
        response.add_message(
            ctx.staking.unstake(Asset(state.config.liquidity_token, total_lp_to_unbond), unbonding_period)
        )
    if total_vault_tokens_to_burn:
        response.add_message(Burn(state.vault_token, total_vault_tokens_to_burn))

    logger.info(
        "Batch unbond: %d claims, %d LP to unbond, %d vault tokens to burn",
        len(pending),
        total_lp_to_unbond,
        total_vault_tokens_to_burn,
    )
    return (
        response.add_attribute("claims", len(pending))
        .add_attribute("lp_tokens_to_unbond", total_lp_to_unbond)
        .add_attribute("vault_tokens_to_burn", total_vault_tokens_to_burn)
    )


def take_matured_claims(state: VaultState, user: Addr, block: BlockInfo) -> tuple[list[Claim], int]:
    """Remove the user's matured claims and return them with their summed LP amount.

    Ongoing claims stay in the ledger untouched.
    """
    claims = state.claims.get(user)
    if not claims:
        raise NoMaturedClaims(user)

    matured: list[Claim] = []
    ongoing: list[Claim] = []
    for claim in claims:
        (matured if claim.unbonding_timestamp.is_expired(block) else ongoing).append(claim)
    if not matured:
        raise NoMaturedClaims(user)

    if ongoing:
        state.claims[user] = ongoing
    else:
        del state.claims[user]
    return matured, sum(claim.lp_tokens_to_unbond for claim in matured)


def pending_claim(state: VaultState, address: str) -> int:
    return state.pending_claims.get(to_address(address), 0)


def user_claims(state: VaultState, address: str) -> list[Claim]:
    return list(state.claims.get(to_address(address), []))


def all_pending_claims(
    state: VaultState, start_after: str | None = None, limit: int | None = None
) -> list[tuple[Addr, int]]:
    limit = min(limit or DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE)
    return _page(state.sorted_pending_claims(), start_after, limit)


def all_claims(
    state: VaultState, start_after: str | None = None, limit: int | None = None
) -> list[tuple[Addr, list[Claim]]]:
    limit = min(limit or DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE)
    return [(addr, list(claims)) for addr, claims in _page(state.sorted_claims(), start_after, limit)]
