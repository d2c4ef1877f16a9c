# src/tokenledger/ledger/constants.py
"""Token ledger constants.

Size limits are measured in bytes of the raw name/ticker, not characters.
"""

# Metadata limits
NAME_MAX_BYTES: int = 64
TICKER_MAX_BYTES: int = 32

# Decimals reported before (or without) a mint
DEFAULT_DECIMALS: int = 18

# Numeric ranges of the persisted fields
U8_MAX: int = 2**8 - 1
U64_MAX: int = 2**64 - 1
