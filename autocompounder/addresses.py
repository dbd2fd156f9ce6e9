"""Validated account addresses used as keys of the claims ledgers."""

from typing import NewType

from web3 import Web3

from autocompounder.errors import InvalidAddress

Addr = NewType("Addr", str)


def to_address(value: object) -> Addr:
    """Validate `value` and return its checksummed form.

    Every writer and reader of an address-keyed map goes through this function, so the same
    account always maps to the same key regardless of the hex casing it was supplied in.
    """
    if isinstance(value, (bytes, bytearray)):
        value = f"0x{bytes(value).hex()}"
    if not isinstance(value, str):
        raise InvalidAddress(value)
    v = value.strip()
    if not Web3.is_address(v):
        raise InvalidAddress(value)
    return Addr(Web3.to_checksum_address(v))


def address_sort_key(addr: str) -> str:
    """Ordering used for paginated iteration over address-keyed maps."""
    return addr.lower()
