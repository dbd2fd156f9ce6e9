"""Share accounting: conversions between vault tokens (shares) and staked LP (assets).

All functions are pure integer math with floor division, so rounding always favors the vault:
it never mints more shares, nor pays out more LP, than the exact ratio implies.
"""

from decimal import Decimal

from autocompounder.constants import VIRTUAL_ASSETS, VIRTUAL_SHARES


def shares_to_mint(assets_in: int, total_assets: int, total_shares: int) -> int:
    """Vault tokens to mint for `assets_in` LP given the vault's current totals.

    An empty vault mints `assets_in * 10**DECIMAL_OFFSET`; a direct donation of LP to the vault
    cannot push a later depositor's mint to zero because of the virtual offset terms.
    """
    if assets_in < 0 or total_assets < 0 or total_shares < 0:
        raise ValueError("amounts must be non-negative")
    return assets_in * (total_shares + VIRTUAL_SHARES) // (total_assets + VIRTUAL_ASSETS)


def assets_for(shares_in: int, total_assets: int, total_shares: int) -> int:
    """LP claimable for `shares_in` vault tokens (inverse of `shares_to_mint`)."""
    if shares_in < 0 or total_assets < 0 or total_shares < 0:
        raise ValueError("amounts must be non-negative")
    return shares_in * (total_assets + VIRTUAL_ASSETS) // (total_shares + VIRTUAL_SHARES)


def proportional_lp(vault_tokens: int, vault_token_supply: int, total_lp_staked: int) -> int:
    """LP to unbond for `vault_tokens` of the current supply: floor(tokens * staked / supply).

    The supply must be read before any burn of the same batch.
    """
    if vault_token_supply <= 0:
        return 0
    return vault_tokens * total_lp_staked // vault_token_supply


def fee_amount(amount: int, fraction: Decimal) -> int:
    """Fee portion of `amount`, rounded down."""
    if amount <= 0 or fraction <= 0:
        return 0
    numer, denom = fraction.as_integer_ratio()
    return amount * numer // denom


def deduct_fee(amount: int, fraction: Decimal) -> tuple[int, int]:
    """Split `amount` into (remainder, fee)."""
    fee = fee_amount(amount, fraction)
    return amount - fee, fee
