"""Common configuration constants used across the application."""

# Amounts
SATS_PER_COIN = 100_000_000
"""Minor units per whole coin (8 decimal places)"""

MAX_FRACTION_DIGITS = 8
"""Maximum fraction digits shown in display balances"""

DEFAULT_MIN_BALANCE = 10 * SATS_PER_COIN
"""Minimum balance for a discovered address to be tracked (10 coins)"""

# Rich list sizing
DEFAULT_TOP_N = 200
"""Number of entries kept in a snapshot"""

CATCH_UP_ADDRESS_LIMIT = 100
"""Previous snapshot prefix re-checked in catch-up mode"""

PRIORITY_ADDRESS_LIMIT = 150
"""Previous snapshot prefix re-checked in normal mode"""

EMERGENCY_ADDRESS_LIMIT = 50
"""Address set size when the time budget is nearly exhausted"""

# Block scanning
DEFAULT_CATCH_UP_THRESHOLD = 50
"""Block gap above which block scanning is skipped"""

DEFAULT_DISCOVERY_MAX_BLOCKS = 5
"""Maximum number of recent blocks scanned per refresh"""

DISCOVERY_BATCH_SIZE = 20
"""Addresses balance-checked per discovery batch"""

MIN_ADDRESS_LENGTH = 21
"""Shorter tokens in block data are script artifacts, not addresses"""

NON_SPENDABLE_PREFIX = "OP_RETURN"
"""Prefix Blockbook uses for data-carrier outputs"""

# Concurrency Limits
DEFAULT_REFRESH_CONCURRENCY = 16
"""Concurrent balance lookups during a refresh"""

DEFAULT_API_CONCURRENCY = 8
"""Concurrent balance lookups for ad-hoc balance requests"""

PROGRESS_LOG_INTERVAL = 10
"""Log balance fetch progress every N completed lookups"""

# Time budget (seconds)
DEFAULT_MAX_PROCESSING_TIME = 270.0
"""Soft wall-clock budget of one refresh cycle"""

DEFAULT_SCAN_TIME_BUFFER = 120.0
"""Block scanning is skipped when less than this remains"""

DEFAULT_FETCH_TIME_BUFFER = 90.0
"""Address set is truncated when less than this remains"""

# HTTP and Network Constants
DEFAULT_TIMEOUT = 30.0
"""Default HTTP request timeout in seconds"""

CONNECTION_TIMEOUT = 3.0
"""Timeout for establishing connections"""

MAX_KEEPALIVE_CONNECTIONS = 20
"""Maximum number of keepalive connections in pool"""

MAX_CONNECTIONS = 32
"""Maximum total number of connections"""

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
}
"""Headers sent with every explorer request"""

CACHE_BUST_PARAM = "_cb"
"""Query parameter carrying a per-request timestamp"""

# Storage
DEFAULT_KEY_PREFIX = "richlist"
"""Prefix of the blob keys holding rich list records"""


__all__ = [
    "CACHE_BUST_PARAM",
    "CATCH_UP_ADDRESS_LIMIT",
    "CONNECTION_TIMEOUT",
    "DEFAULT_API_CONCURRENCY",
    "DEFAULT_CATCH_UP_THRESHOLD",
    "DEFAULT_DISCOVERY_MAX_BLOCKS",
    "DEFAULT_FETCH_TIME_BUFFER",
    "DEFAULT_KEY_PREFIX",
    "DEFAULT_MAX_PROCESSING_TIME",
    "DEFAULT_MIN_BALANCE",
    "DEFAULT_REFRESH_CONCURRENCY",
    "DEFAULT_SCAN_TIME_BUFFER",
    "DEFAULT_TIMEOUT",
    "DEFAULT_TOP_N",
    "DISCOVERY_BATCH_SIZE",
    "EMERGENCY_ADDRESS_LIMIT",
    "MAX_CONNECTIONS",
    "MAX_FRACTION_DIGITS",
    "MAX_KEEPALIVE_CONNECTIONS",
    "MIN_ADDRESS_LENGTH",
    "NON_SPENDABLE_PREFIX",
    "NO_CACHE_HEADERS",
    "PRIORITY_ADDRESS_LIMIT",
    "PROGRESS_LOG_INTERVAL",
    "SATS_PER_COIN",
]
