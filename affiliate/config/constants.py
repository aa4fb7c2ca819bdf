"""
Business constants for the affiliate service.

Not environment-driven; changing any of these is a schema or product decision.
"""

from decimal import Decimal

# Referral codes: uppercase alphanumeric
REFERRAL_CODE_MIN_LENGTH = 8
REFERRAL_CODE_MAX_LENGTH = 20

# Initial code is wallet[2:10] (8 hex chars after "0x")
REFERRAL_CODE_PREFIX_SLICE = slice(2, 10)

# Registration gives up after this many colliding candidates
REFERRAL_CODE_MAX_ATTEMPTS = 10

# Wallets: 0x + 40 hex chars
WALLET_ADDRESS_LENGTH = 42

# Transaction hash column width
TX_HASH_MAX_LENGTH = 66

# Money precision for DECIMAL(28, 8) columns
MONEY_QUANT = Decimal("0.00000001")

# Largest single USD amount accepted (one trade or one payout request).
# Leaves DECIMAL(28, 8) totals room for 1e8 maximal trades.
MAX_USD_AMOUNT = Decimal("1000000000000")

# Rounding tolerance when reconciling balances against daily rows (USD)
MONEY_TOLERANCE = Decimal("0.000001")

# Default window for the daily volume read model
DAILY_VOLUME_WINDOW_DAYS = 30

# Admin payout listing
PAYOUTS_PAGE_SIZE = 20
PAYOUTS_MAX_PAGE_SIZE = 100
