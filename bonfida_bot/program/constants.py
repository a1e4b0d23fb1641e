"""Constants for the Bonfida Bot program module."""

from solders.pubkey import Pubkey

# ============================================================================
# PROGRAM IDS
# ============================================================================

PROGRAM_ID = Pubkey.from_string("63xyXHpA6EVF69kRmEbXAr8aBEkhgpaNUSRoTQyi5Rwr")
SERUM_PROGRAM_ID = Pubkey.from_string("9xQeWvG816bUx9EPjHmaT23yvVM2ZWbrrpZb9PusVFin")
TOKEN_PROGRAM_ID = Pubkey.from_string("TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA")
ASSOCIATED_TOKEN_PROGRAM_ID = Pubkey.from_string(
    "ATokenGPvbdGVxr1b2hvZbsiqW5xWH25efTNsLJA8knL"
)
SYSTEM_PROGRAM_ID = Pubkey.from_string("11111111111111111111111111111111")
RENT_SYSVAR_ID = Pubkey.from_string("SysvarRent111111111111111111111111111111111")
CLOCK_SYSVAR_ID = Pubkey.from_string("SysvarC1ock11111111111111111111111111111111")

# Fee destinations baked into the on-chain program
FEE_RECEIVER_KEY = Pubkey.from_string("31LVSggbVz4VcwBSPdtK8HJ3Lt1cKTJUVQTRNNYMfqBq")
BUY_AND_BURN_KEY = Pubkey.from_string("3oQzjfjzUkJ5qHsERk2JPEpAKo34dxAQjUriBqursfxU")

ENDPOINTS = {
    "mainnet": "https://solana-api.projectserum.com",
    "mainnet2": "https://api.mainnet-beta.solana.com",
    "devnet": "https://api.devnet.solana.com",
}

# ============================================================================
# INSTRUCTION DATA
# ============================================================================

# Minimum instruction data sizes (tag + seed + fixed fields)
INIT_DATA_SIZE = 39
CREATE_DATA_MIN_SIZE = 45
DEPOSIT_DATA_SIZE = 41
CREATE_ORDER_DATA_SIZE = 122
CANCEL_ORDER_DATA_SIZE = 50
SETTLE_FUNDS_DATA_SIZE = 49
REDEEM_DATA_SIZE = 41
COLLECT_FEES_DATA_SIZE = 33

# ============================================================================
# ACCOUNT LAYOUTS
# ============================================================================

PUBKEY_LENGTH = 32
POOL_SEED_LENGTH = 32
POOL_HEADER_SIZE = 117
POOL_ASSET_SIZE = 32

# Pool status byte
STATUS_PENDING_ORDER_FLAG = 1 << 6
STATUS_PENDING_ORDER_MASK = 0x3F
STATUS_LOCKED_FLAG = 2 << 6
STATUS_UNLOCKED_FLAG = STATUS_PENDING_ORDER_MASK
MAX_PENDING_ORDERS = 63

# Venue market account (byte ranges)
MARKET_VAULT_SIGNER_NONCE = (45, 53)
MARKET_COIN_MINT = (53, 85)
MARKET_PC_MINT = (85, 117)
MARKET_COIN_VAULT = (117, 149)
MARKET_PC_VAULT = (165, 197)
MARKET_REQUEST_QUEUE = (221, 253)
MARKET_EVENT_QUEUE = (253, 285)
MARKET_BIDS = (285, 317)
MARKET_ASKS = (317, 349)
MARKET_COIN_LOT_SIZE = (349, 357)
MARKET_PC_LOT_SIZE = (357, 365)
MARKET_DATA_MIN_SIZE = 365

# SPL token layouts
MINT_DECIMALS_OFFSET = 44
TOKEN_INSTRUCTION_TRANSFER = 3
TOKEN_TRANSFER_DATA_SIZE = 9
# Transfer accounts: [source, destination, authority]
TOKEN_TRANSFER_DESTINATION_INDEX = 1

# Account positions inside pool program instructions
CREATE_ORDER_MARKET_INDEX = 1
CREATE_ORDER_OPEN_ORDERS_INDEX = 3
SETTLE_FUNDS_MARKET_INDEX = 0
SETTLE_FUNDS_OPEN_ORDERS_INDEX = 1

# ============================================================================
# DEFAULTS
# ============================================================================

# Largest u16, used as the venue's "no limit" value
DEFAULT_SERUM_LIMIT = (1 << 16) - 1
DEFAULT_SIGNATURE_LIMIT = 1000
DEFAULT_MAX_CONCURRENCY = 8
