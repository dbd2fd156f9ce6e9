"""Validation of vault ledger invariants."""

from autocompounder.constants import MAX_FEE, MAX_POOL_ASSETS
from autocompounder.state import Context, VaultState


def validate_config(state: VaultState, *, warn_only: bool = False) -> list[str]:
    """
    Validate config and fee invariants.

    Returns list of validation warnings/errors. If warn_only=False, raises ValueError on the first one.
    """
    issues: list[str] = []
    config = state.config

    # 1. At most two pool assets, kept in canonical order
    assets = list(config.pool_assets)
    if len(assets) > MAX_POOL_ASSETS or assets != sorted(assets):
        msg = f"Pool assets {assets} are not a canonical list of at most {MAX_POOL_ASSETS} assets"
        issues.append(msg)
        if not warn_only:
            raise ValueError(msg)

    # 2. Fee ceiling
    fees = {
        "performance": state.fee_config.performance,
        "deposit": state.fee_config.deposit,
        "withdrawal": state.fee_config.withdrawal,
    }
    for name, fee in fees.items():
        if fee < 0 or fee > MAX_FEE:
            msg = f"{name} fee {fee} is outside [0, {MAX_FEE}]"
            issues.append(msg)
            if not warn_only:
                raise ValueError(msg)

    # 3. A cooldown only makes sense with an unbonding period of the same kind
    cooldown = config.min_unbonding_cooldown
    if cooldown is not None and (config.unbonding_period is None or cooldown.kind != config.unbonding_period.kind):
        msg = f"Unbonding cooldown {cooldown} does not match unbonding period {config.unbonding_period}"
        issues.append(msg)
        if not warn_only:
            raise ValueError(msg)

    return issues


def validate_claims(ctx: Context, *, warn_only: bool = False) -> list[str]:
    """
    Validate the claims ledger against the vault's balances.

    Returns list of validation warnings/errors. If warn_only=False, raises ValueError on the first one.
    """
    issues: list[str] = []
    state = ctx.state

    # 1. Pending and claimed amounts are positive
    for user, amount in state.sorted_pending_claims():
        if amount <= 0:
            msg = f"Pending claim of {user} is not positive: {amount}"
            issues.append(msg)
            if not warn_only:
                raise ValueError(msg)
    for user, claims in state.sorted_claims():
        if not claims:
            msg = f"Empty claims list kept for {user}"
            issues.append(msg)
            if not warn_only:
                raise ValueError(msg)
        for claim in claims:
            if claim.vault_tokens_burned < 0 or claim.lp_tokens_to_unbond < 0:
                msg = f"Claim of {user} has negative amounts: {claim}"
                issues.append(msg)
                if not warn_only:
                    raise ValueError(msg)

    # 2. Vault tokens of pending redemptions are held by the vault until the batch burns them
    pending_total = sum(state.pending_claims.values())
    held = ctx.balance(state.vault_token)
    if held != pending_total:
        msg = f"Vault holds {held} vault tokens but pending claims total {pending_total}"
        issues.append(msg)
        if not warn_only:
            raise ValueError(msg)

    # 3. LP owed to claims is held by the vault or still unbonding at the staking provider
    owed = sum(claim.lp_tokens_to_unbond for _, claims in state.sorted_claims() for claim in claims)
    unbonding = sum(
        amount
        for amount, release in ctx.staking.query_unbonding(ctx.address, state.config.liquidity_token)
        if not release.is_expired(ctx.block)
    )
    available = ctx.lp_balance() + unbonding
    if available < owed:
        msg = f"Claims owe {owed} LP but only {available} LP is held or unbonding"
        issues.append(msg)
        if not warn_only:
            raise ValueError(msg)

    # 4. The latest batch unbonding cannot lie in the future
    latest = state.latest_unbonding
    if latest is not None and (latest.height > ctx.block.height or latest.time > ctx.block.time):
        msg = f"Latest unbonding {latest} is ahead of the current block {ctx.block}"
        issues.append(msg)
        if not warn_only:
            raise ValueError(msg)

    return issues


def validate_vault(ctx: Context, *, warn_only: bool = True) -> list[str]:
    """Run every vault check. By default, only warns (doesn't raise)."""
    return validate_config(ctx.state, warn_only=warn_only) + validate_claims(ctx, warn_only=warn_only)
