"""Autocompounding liquidity vault."""

from typing import NoReturn

__version__ = "0.1.0"


def _entry_point() -> NoReturn:
    """Entry point for the autocompounder script."""
    import sys

    from autocompounder.cli import main

    raise SystemExit(main(sys.argv[1:]))


def _clear_cache_entry_point() -> NoReturn:
    """Entry point for clearing saved vault states."""
    import os

    from autocompounder.cache import clear_cache

    clear_cache(os.getenv("AUTOCOMPOUNDER_STATE_DIR"))
    raise SystemExit(0)
