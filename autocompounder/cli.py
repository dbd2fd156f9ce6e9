"""CLI and main logic."""

import argparse
import logging
import os
import random
import sys
from decimal import Decimal

from tqdm import tqdm

from autocompounder.addresses import Addr
from autocompounder.cache import clear_cache, save_state
from autocompounder.console import print_vault_report
from autocompounder.constants import DEFAULT_BATCH_SIZE, VIRTUAL_SHARES
from autocompounder.errors import AutocompounderError, UnbondingCooldownNotExpired
from autocompounder.formatters import share_price
from autocompounder.messages import (
    BatchUnbond,
    ClaimsQuery,
    Compound,
    Deposit,
    InstantiateMsg,
    Redeem,
    Withdraw,
)
from autocompounder.models import Asset, Clock, Duration
from autocompounder.runtime import Runtime
from autocompounder.simulation import ConstantProductDex, SimpleStaking, TokenLedger, derive_address
from autocompounder.validation import validate_vault

# Internal defaults (not exposed as CLI flags)
POOL_ASSETS = ("uatom", "uosmo")
REWARD_TOKEN = "ureward"
SEED_LIQUIDITY = 10**13
USER_FUNDS = 10**10
BLOCKS_PER_ROUND = 600


def parse_args(argv: list[str]) -> argparse.Namespace:
    """Parse command-line arguments."""
    p = argparse.ArgumentParser(description="Autocompounding liquidity vault: simulation and state tools.")
    sub = p.add_subparsers(dest="command", required=True)

    sim = sub.add_parser("simulate", help="Run a multi-user simulation against in-memory collaborators.")
    sim.add_argument("--users", type=int, default=5, help="Number of depositors.")
    sim.add_argument("--rounds", type=int, default=20, help="Simulation rounds (deposit, compound, redeem, unbond).")
    sim.add_argument("--seed", type=int, default=42, help="Random seed.")
    sim.add_argument(
        "--unbonding-blocks",
        type=int,
        default=0,
        help="Unbonding period of the staking pool in blocks. 0 disables unbonding (immediate redeem).",
    )
    sim.add_argument("--max-claims", type=int, default=None, help="Max outstanding unbonding claims per staker.")
    sim.add_argument("--performance-fee", type=Decimal, default=Decimal("0.05"))
    sim.add_argument("--deposit-fee", type=Decimal, default=Decimal("0"))
    sim.add_argument("--withdrawal-fee", type=Decimal, default=Decimal("0"))
    sim.add_argument("--save", metavar="NAME", default=None, help="Save the final vault state under NAME.")
    sim.add_argument(
        "--state-dir",
        default=None,
        help="Directory for saved states. Defaults to AUTOCOMPOUNDER_STATE_DIR, then XDG_CACHE_HOME.",
    )
    sim.add_argument("-v", "--verbose", action="store_true", help="Log every workflow step.")

    clear = sub.add_parser("clear-cache", help="Remove saved vault states.")
    clear.add_argument("--state-dir", default=None)
    return p.parse_args(argv)


def build_runtime(
    *,
    unbonding_blocks: int = 0,
    max_claims: int | None = None,
    performance_fee: Decimal = Decimal("0.05"),
    deposit_fee: Decimal = Decimal("0"),
    withdrawal_fee: Decimal = Decimal("0"),
) -> tuple[Runtime, SimpleStaking]:
    """Seed the pools, instantiate the vault and return its runtime."""
    clock = Clock()
    ledger = TokenLedger()
    dex = ConstantProductDex(ledger)
    liquidity_provider = derive_address("sim:liquidity-provider")
    for assets in (POOL_ASSETS, (POOL_ASSETS[0], REWARD_TOKEN)):
        info = dex.create_pool(assets)
        for name in info.assets:
            ledger.mint(name, liquidity_provider, SEED_LIQUIDITY)
        dex.execute(liquidity_provider, dex.provide_liquidity([Asset(name, SEED_LIQUIDITY) for name in info.assets]))

    staking = SimpleStaking(
        ledger,
        clock,
        unbonding_periods=[Duration.height(unbonding_blocks)] if unbonding_blocks else None,
        max_claims=max_claims,
        reward_tokens=[REWARD_TOKEN],
    )
    runtime = Runtime(ledger, dex, staking, derive_address("sim:vault"), clock)
    runtime.instantiate(
        derive_address("sim:admin"),
        InstantiateMsg(
            performance_fees=performance_fee,
            deposit_fees=deposit_fee,
            withdrawal_fees=withdrawal_fee,
            fee_collector_addr=derive_address("sim:fee-collector"),
            fee_asset=POOL_ASSETS[0],
            dex=dex.name,
            pool_assets=POOL_ASSETS,
        ),
    )
    return runtime, staking


def _try(action: str, fn, *args, **kwargs) -> bool:
    try:
        fn(*args, **kwargs)
    except AutocompounderError as ex:
        tqdm.write(f"⚠️  {action} failed: {ex}", file=sys.stderr)
        return False
    return True


def run_simulation(args: argparse.Namespace) -> Runtime:
    rng = random.Random(args.seed)
    runtime, staking = build_runtime(
        unbonding_blocks=args.unbonding_blocks,
        max_claims=args.max_claims,
        performance_fee=args.performance_fee,
        deposit_fee=args.deposit_fee,
        withdrawal_fee=args.withdrawal_fee,
    )
    ledger = runtime.bank
    keeper = derive_address("sim:keeper")
    users: list[Addr] = [derive_address(f"sim:user:{i}") for i in range(args.users)]
    for user in users:
        for name in POOL_ASSETS:
            ledger.mint(name, user, USER_FUNDS)

    with tqdm(range(args.rounds), desc="🔁 Simulating", unit="round", file=sys.stderr) as pbar:
        for round_no in pbar:
            for user in users:
                if rng.random() < 0.5:
                    funds = tuple(
                        Asset(name, rng.randint(1, USER_FUNDS // (4 * args.rounds)))
                        for name in POOL_ASSETS
                        if rng.random() < 0.7
                    )
                    if funds:
                        _try("deposit", runtime.execute, user, Deposit(funds), funds)

            staking.accrue_rewards(runtime.address, Asset(REWARD_TOKEN, rng.randint(10**6, 10**8)))
            _try("compound", runtime.execute, keeper, Compound())

            vault_token = runtime.state.vault_token
            for user in users:
                balance = ledger.balance(user, vault_token)
                if balance and rng.random() < 0.2:
                    amount = max(1, balance * rng.randint(1, 50) // 100)
                    _try("redeem", runtime.execute, user, Redeem(amount), (Asset(vault_token, amount),))

            if runtime.state.config.unbonding_period is not None:
                try:
                    runtime.execute(keeper, BatchUnbond(limit=DEFAULT_BATCH_SIZE))
                except UnbondingCooldownNotExpired as ex:
                    tqdm.write(f"ℹ️  round {round_no}: {ex}", file=sys.stderr)
                except AutocompounderError as ex:
                    tqdm.write(f"⚠️  round {round_no}: batch unbond failed: {ex}", file=sys.stderr)
                for user in users:
                    claims = runtime.query(ClaimsQuery(user))
                    if not any(claim.unbonding_timestamp.is_expired(runtime.block) for claim in claims):
                        continue
                    _try("withdraw", runtime.execute, user, Withdraw())

            pbar.set_postfix(height=runtime.block.height, supply=ledger.total_supply(vault_token))
            runtime.advance(BLOCKS_PER_ROUND)
    return runtime


def main(argv: list[str]) -> int:
    """Main entry point."""
    args = parse_args(argv)
    state_dir = args.state_dir or os.getenv("AUTOCOMPOUNDER_STATE_DIR")

    if args.command == "clear-cache":
        clear_cache(state_dir)
        return 0

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if args.users <= 0 or args.rounds <= 0:
        print("Error: --users and --rounds must be positive.", file=sys.stderr)
        return 2

    try:
        runtime = run_simulation(args)
    except AutocompounderError as ex:
        print(f"Error: simulation setup failed: {ex}", file=sys.stderr)
        return 2

    issues = validate_vault(runtime.context(), warn_only=True)
    if issues:
        print("⚠️  Vault validation warnings:", file=sys.stderr)
        for issue in issues:
            print(f"   {issue}", file=sys.stderr)

    # A fresh vault mints 10**DECIMAL_OFFSET shares per LP.
    initial_price = share_price(1, shares=VIRTUAL_SHARES)
    print_vault_report(runtime, initial_price=initial_price)

    if args.save:
        path = save_state(runtime.state, args.save, state_dir)
        print(f"💾 Saved vault state '{args.save}' to {path}", file=sys.stderr)

    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
