# raypool/core/constants.py

# Log tag written by the AMM program when initialize2 succeeds.
INIT_LOG_MARKER = "init_pc_amount"

DEFAULT_COMMITMENT = "confirmed"

# Wrapped SOL precision
SOL_DECIMALS = 9

# Pool keys built from initialize2 are always paired with a v3 order-book market.
MARKET_VERSION = 3
