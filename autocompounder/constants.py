"""Constants and configuration for the autocompounding vault."""

from decimal import Decimal

# Virtual liquidity: 10**DECIMAL_OFFSET virtual shares and one virtual asset unit are added to the
# conversion ratio so that donating LP directly to the vault cannot round later deposits down to zero.
# Description: https://gist.github.com/Amxx/ec7992a21499b6587979754206a48632
DECIMAL_OFFSET = 1
VIRTUAL_SHARES = 10**DECIMAL_OFFSET
VIRTUAL_ASSETS = 1

# Every fee fraction (performance, deposit, withdrawal) must be <= 99%.
MAX_FEE = Decimal("0.99")

# Default max spread for swaps and liquidity provision when the caller does not provide one.
DEFAULT_MAX_SPREAD = Decimal("0.20")

# Pools with more than this many assets are not supported.
MAX_POOL_ASSETS = 2

# Batch unbonding page sizes (pending claims per call).
DEFAULT_BATCH_SIZE = 100
MAX_BATCH_SIZE = 1000

# Query pagination (AllPendingClaims / AllClaims).
DEFAULT_PAGE_SIZE = 5
MAX_PAGE_SIZE = 20

VAULT_TOKEN_SYMBOL = "FTTV"
VAULT_TOKEN_DECIMALS = 6

# Duration / expiration kinds reported by staking providers.
HEIGHT = "height"
TIME = "time"

# Block time used when the clock advances by blocks only.
SECONDS_PER_BLOCK = 5

# Cache configuration
CACHE_DIR_NAME = ".autocompounder_cache"
CACHE_VERSION = "1"  # Increment to invalidate all caches
STATE_SCHEMA_VERSION = 2
