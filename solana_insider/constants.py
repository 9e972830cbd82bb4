"""Constants used throughout the Solana Insider application.

This module defines common constants to avoid duplication and ensure consistency.
"""

# Solana system program IDs
SYSTEM_PROGRAM_ID = "11111111111111111111111111111111"
TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"

# SPL token account layout
TOKEN_ACCOUNT_SIZE = 165
TOKEN_ACCOUNT_MINT_OFFSET = 0
TOKEN_ACCOUNT_OWNER_OFFSET = 32

LAMPORTS_PER_SOL = 1_000_000_000

# Transfer directions
BUY = "buy"
SELL = "sell"

# Wallet labels
LABEL_STANDARD = "Standard"
LABEL_LARGE_SELLER = "Large Seller"
LABEL_LONG_TERM_HOLDER = "Long-Term Holder"
LABEL_ACTIVE_TRADER = "Active Trader"
LABEL_WHALE = "Whale"

# Score component caps
EARLY_BUY_SCORE = 25
LARGE_SELL_IMPACT_MULTIPLIER = 20
LARGE_SELL_IMPACT_CAP = 30
TIME_SCORE_BASE = 100
TIME_SCORE_FLOOR = 10
AMOUNT_SCORE_DIVISOR = 1000
AMOUNT_SCORE_CAP = 50
DURATION_SCORE_CAP = 20
PROFITABILITY_SCORE = 10
NETWORK_SCORE_PER_TX = 2
NETWORK_SCORE_CAP = 20
PUMP_DUMP_SCORE = 10
MAX_WALLET_SCORE = 100

# Time windows (hours)
HOURS_PER_DAY = 24
LONG_TERM_HOLDER_HOURS = 7 * 24

# Health score weights
HEALTH_WEIGHTS = {
    "holderScore": 0.20,
    "accumulationScore": 0.25,
    "whaleScore": 0.15,  # applied to (100 - whaleScore)
    "activityScore": 0.15,
    "liquidityScore": 0.15,
    "giniScore": 0.10,
}

HOLDER_COUNT_SATURATION = 1000
RECENT_ACTIVITY_SATURATION = 50
LIQUIDITY_SATURATION_USD = 1_000_000

# Documented fallbacks for degraded sub-fetches
DEFAULT_LIQUIDITY_RATIO = 0.5
DEFAULT_TOKEN_SUPPLY = 1.0
