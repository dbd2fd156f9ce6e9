"""Console output formatting."""

from decimal import Decimal

from autocompounder.formatters import (
    delta_indicator,
    format_amount,
    format_duration,
    format_fee,
    remaining,
    share_price,
    short_address,
)
from autocompounder.messages import (
    AllClaimsQuery,
    AllPendingClaimsQuery,
    AssetsPerSharesQuery,
    TotalLpPositionQuery,
    TotalSupplyQuery,
)
from autocompounder.runtime import Runtime

# Large enough that the integer assets-per-shares answer keeps 12 significant digits.
PRICE_SAMPLE_SHARES = 10**12


def print_vault_report(runtime: Runtime, *, initial_price: Decimal | None = None) -> None:
    """Print the vault's configuration, position and claims ledger."""
    state = runtime.state
    if state is None:
        print("Vault is not instantiated.")
        return
    config = state.config
    fees = state.fee_config
    block = runtime.block

    print("=" * 70)
    print("🏦 AUTOCOMPOUNDER VAULT REPORT")
    print(f"   🧱 height={block.height}  •  time={block.time}")
    print("=" * 70)

    print(f"\n🔧 Pool: {'/'.join(config.pool_assets)} on {config.dex} ({short_address(config.pool_address)})")
    print(f"   LP token:     {config.liquidity_token}")
    print(f"   Vault token:  {config.vault_token}")
    print(f"   Unbonding:    {format_duration(config.unbonding_period)}")
    print(f"   Cooldown:     {format_duration(config.min_unbonding_cooldown)}")
    print(f"   Max spread:   {format_fee(config.max_swap_spread)}")

    print("\n💸 Fees:")
    print(f"   • Performance: {format_fee(fees.performance)}")
    print(f"   • Deposit:     {format_fee(fees.deposit)}")
    print(f"   • Withdrawal:  {format_fee(fees.withdrawal)}")
    print(f"   • Collector:   {fees.fee_collector_addr} (fee asset {fees.fee_asset})")

    staked = runtime.query(TotalLpPositionQuery())
    supply = runtime.query(TotalSupplyQuery())
    price = share_price(runtime.query(AssetsPerSharesQuery(shares=PRICE_SAMPLE_SHARES)), shares=PRICE_SAMPLE_SHARES)
    print("\n📊 Position:")
    print(f"   • Staked LP:          {format_amount(staked)}")
    print(f"   • Vault token supply: {format_amount(supply)}")
    if initial_price is not None:
        print(f"   • LP per share:       {price:.6f} {delta_indicator(int(initial_price * 10**6), int(price * 10**6))}")
    else:
        print(f"   • LP per share:       {price:.6f}")

    pending = runtime.query(AllPendingClaimsQuery())
    print(f"\n⏳ Pending redemptions ({len(state.pending_claims)} users, first {len(pending)}):")
    for user, amount in pending:
        print(f"   • {short_address(user)}: {format_amount(amount)} vault tokens")
    if state.latest_unbonding is not None:
        print(f"   Latest batch unbonding at height {state.latest_unbonding.height}")

    claims = runtime.query(AllClaimsQuery())
    print(f"\n🎟️  Claims ({len(state.claims)} users, first {len(claims)}):")
    for user, user_claims in claims:
        for claim in user_claims:
            print(
                f"   • {short_address(user)}: {format_amount(claim.lp_tokens_to_unbond)} LP "
                f"for {format_amount(claim.vault_tokens_burned)} vault tokens "
                f"({remaining(claim.unbonding_timestamp, block)})"
            )
    print("")
