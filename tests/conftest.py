from decimal import Decimal

import pytest

from autocompounder.messages import InstantiateMsg
from autocompounder.models import Asset, BondingPeriodSelector, Clock, Config, Duration, FeeConfig
from autocompounder.runtime import Runtime
from autocompounder.simulation import ConstantProductDex, SimpleStaking, TokenLedger
from autocompounder.state import VaultState

ATOM = "uatom"
OSMO = "uosmo"
REWARD = "ureward"

# Digit-only addresses are their own checksummed form.
ALICE = "0x" + "11" * 20
BOB = "0x" + "22" * 20
CAROL = "0x" + "33" * 20
ADMIN = "0x" + "44" * 20
FEE_COLLECTOR = "0x" + "55" * 20
KEEPER = "0x" + "66" * 20
LIQUIDITY_PROVIDER = "0x" + "77" * 20
VAULT = "0x" + "99" * 20

SEED_LIQUIDITY = 10**12
USER_FUNDS = 10**9
UNBONDING_PERIOD = Duration.height(100)
MAX_CLAIMS = 4


@pytest.fixture
def clock():
    return Clock(height=100, time=1_700_000_000)


@pytest.fixture
def ledger():
    ledger = TokenLedger()
    for user in (ALICE, BOB, CAROL):
        ledger.mint(ATOM, user, USER_FUNDS)
        ledger.mint(OSMO, user, USER_FUNDS)
    return ledger


@pytest.fixture
def dex(ledger):
    dex = ConstantProductDex(ledger)
    for assets in ((ATOM, OSMO), (ATOM, REWARD)):
        info = dex.create_pool(assets)
        for name in info.assets:
            ledger.mint(name, LIQUIDITY_PROVIDER, SEED_LIQUIDITY)
        dex.execute(LIQUIDITY_PROVIDER, dex.provide_liquidity([Asset(name, SEED_LIQUIDITY) for name in info.assets]))
    return dex


def instantiate_msg(**overrides) -> InstantiateMsg:
    fields = {
        "performance_fees": Decimal("0.05"),
        "deposit_fees": Decimal("0"),
        "withdrawal_fees": Decimal("0"),
        "fee_collector_addr": FEE_COLLECTOR,
        "fee_asset": ATOM,
        "dex": "simdex",
        "pool_assets": (ATOM, OSMO),
        "preferred_bonding_period": BondingPeriodSelector.shortest(),
    }
    fields.update(overrides)
    return InstantiateMsg(**fields)


@pytest.fixture
def make_vault(ledger, dex, clock):
    """Build an instantiated vault; returns (runtime, staking)."""

    def _make(*, unbonding_periods=None, max_claims=None, **msg_overrides):
        staking = SimpleStaking(
            ledger,
            clock,
            unbonding_periods=unbonding_periods,
            max_claims=max_claims,
            reward_tokens=[REWARD],
        )
        runtime = Runtime(ledger, dex, staking, VAULT, clock)
        runtime.instantiate(ADMIN, instantiate_msg(**msg_overrides))
        return runtime, staking

    return _make


@pytest.fixture
def vault(make_vault):
    """Vault without unbonding: redemptions pay out immediately."""
    return make_vault()


@pytest.fixture
def unbonding_vault(make_vault):
    """Vault with a 100-block unbonding period and a 25-block batch cooldown."""
    return make_vault(unbonding_periods=[UNBONDING_PERIOD], max_claims=MAX_CLAIMS)


@pytest.fixture
def state():
    return VaultState(
        admin=ADMIN,
        config=Config(
            dex="simdex",
            pool_address="0x" + "88" * 20,
            pool_assets=(ATOM, OSMO),
            liquidity_token="simdex/lp/uatom-uosmo",
            staking_contract="simstaking",
            max_swap_spread=Decimal("0.20"),
            vault_token="factory/vault/fttv",
        ),
        fee_config=FeeConfig(
            performance=Decimal("0.05"),
            deposit=Decimal("0"),
            withdrawal=Decimal("0"),
            fee_collector_addr=FEE_COLLECTOR,
            fee_asset=ATOM,
        ),
    )
