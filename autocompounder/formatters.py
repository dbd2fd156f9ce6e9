"""Formatting and conversion utilities."""

from decimal import Decimal

from autocompounder.constants import HEIGHT, VAULT_TOKEN_DECIMALS
from autocompounder.models import BlockInfo, Duration, Expiration


def format_amount(value: int, *, decimals: int = VAULT_TOKEN_DECIMALS, places: int = 6) -> str:
    """Format an integer token amount with the given number of decimals."""
    amount = Decimal(value) / (Decimal(10) ** decimals)
    s = f"{amount:,.{places}f}".rstrip("0").rstrip(".")
    return s or "0"


def format_fee(fee: Decimal) -> str:
    """Format a fee fraction as percentage."""
    return f"{(fee * 100):.2f}%"


def format_duration(duration: Duration | None) -> str:
    if duration is None:
        return "none"
    if duration.kind == HEIGHT:
        return f"{duration.value:,} blocks"
    return format_seconds(duration.value)


def format_seconds(seconds: int) -> str:
    """Compact human duration: 1d 2h, 3h 5m, 42s."""
    days, rem = divmod(seconds, 86400)
    hours, rem = divmod(rem, 3600)
    minutes, secs = divmod(rem, 60)
    if days:
        return f"{days}d {hours}h"
    if hours:
        return f"{hours}h {minutes}m"
    if minutes:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


def remaining(expiration: Expiration, block: BlockInfo) -> str:
    """Time (or blocks) left until `expiration`, or 'matured'."""
    if expiration.is_expired(block):
        return "matured"
    if expiration.kind == HEIGHT:
        return f"{expiration.value - block.height:,} blocks left"
    return f"{format_seconds(expiration.value - block.time)} left"


def short_address(addr: str) -> str:
    return f"{addr[:8]}...{addr[-6:]}"


def share_price(lp_amount: int, *, shares: int) -> Decimal:
    """LP per vault token, from the assets-per-shares query for `shares` shares."""
    if shares <= 0:
        return Decimal(0)
    return Decimal(lp_amount) / Decimal(shares)


def delta_indicator(prev_val: int, cur_val: int) -> str:
    """Returns emoji indicator for value change."""
    if cur_val > prev_val:
        return "📈"
    if cur_val < prev_val:
        return "📉"
    return "➡️"
