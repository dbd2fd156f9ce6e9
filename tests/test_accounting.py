from decimal import Decimal

import pytest

from autocompounder.accounting import assets_for, deduct_fee, fee_amount, proportional_lp, shares_to_mint
from autocompounder.constants import VIRTUAL_SHARES

TOTALS = [
    (0, 0),
    (1, 10),
    (10_000, 100_000),
    (1_000_001, 3_000_000),
    (10**18, 10**19 + 7),
    # Donation: assets grew without new shares
    (10**12, 10),
]


@pytest.mark.parametrize(("total_assets", "total_shares"), TOTALS)
@pytest.mark.parametrize("assets_in", [0, 1, 7, 999, 10_000, 123_456_789])
def test_rounding_never_favors_depositor(assets_in, total_assets, total_shares):
    minted = shares_to_mint(assets_in, total_assets, total_shares)
    assert assets_for(minted, total_assets + assets_in, total_shares + minted) <= assets_in


@pytest.mark.parametrize(("total_assets", "total_shares"), TOTALS)
def test_shares_to_mint_is_monotonic(total_assets, total_shares):
    minted = [shares_to_mint(a, total_assets, total_shares) for a in range(0, 2_000, 37)]
    assert minted == sorted(minted)


@pytest.mark.parametrize("assets_in", [1, 10_000, 10**15])
def test_first_deposit_mints_offset_scaled_shares(assets_in):
    assert shares_to_mint(assets_in, 0, 0) == assets_in * VIRTUAL_SHARES


def test_assets_per_shares_of_empty_vault():
    assert assets_for(VIRTUAL_SHARES, 0, 0) == 1


def test_negative_amounts_rejected():
    with pytest.raises(ValueError):
        shares_to_mint(-1, 0, 0)
    with pytest.raises(ValueError):
        assets_for(1, -1, 0)


@pytest.mark.parametrize(
    ("tokens", "supply", "staked", "expected"),
    [
        (300, 1_000, 10_000, 3_000),
        (1, 3, 10, 3),
        (0, 100, 100, 0),
        (100, 0, 100, 0),
    ],
)
def test_proportional_lp(tokens, supply, staked, expected):
    assert proportional_lp(tokens, supply, staked) == expected


@pytest.mark.parametrize(
    ("amount", "fraction", "expected"),
    [
        (999, Decimal("0.01"), 9),
        (1_000_000, Decimal("0.05"), 50_000),
        (10, Decimal("0.99"), 9),
        (10, Decimal("0"), 0),
        (0, Decimal("0.5"), 0),
    ],
)
def test_fee_amount_rounds_down(amount, fraction, expected):
    assert fee_amount(amount, fraction) == expected


def test_deduct_fee_splits_amount():
    assert deduct_fee(10_000, Decimal("0.01")) == (9_900, 100)
