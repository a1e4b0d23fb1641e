"""Bonfida Bot SDK - Python SDK for the Bonfida Bot trading pools on Solana.

This SDK provides two main modules:
- `program`: Instruction and account codecs, and an async read client
- `history`: Reconstruction of a pool's orders from its transactions

Example:
    from bonfida_bot import BonfidaBotClient, ActivityReconstructor

    # Or import from specific modules
    from bonfida_bot.program import build_create_order_instruction
    from bonfida_bot.history import pair_events
"""

__version__ = "0.1.0"

# ============================================================================
# MODULE IMPORTS
# ============================================================================

from . import program
from . import history
from . import config

# ============================================================================
# CONVENIENCE RE-EXPORTS
# ============================================================================

from .config import BonfidaBotConfig
from .history import (
    ActivityReconstructor,
    ReconstructedOrder,
    RpcLedgerSource,
    TransactionRecord,
)
from .program import (
    BonfidaBotClient,
    # Codecs
    decode_instruction,
    encode_instruction,
    parse_assets,
    parse_header,
    parse_market_metadata,
    parse_markets,
    parse_pool_state,
    # Errors
    BonfidaBotError,
    FormatError,
    PoolUnavailableError,
    ValueOverflowError,
)
from .program.constants import PROGRAM_ID, SERUM_PROGRAM_ID

__all__ = [
    "__version__",
    "config",
    "program",
    "history",
    "BonfidaBotConfig",
    "BonfidaBotClient",
    "ActivityReconstructor",
    "ReconstructedOrder",
    "RpcLedgerSource",
    "TransactionRecord",
    "encode_instruction",
    "decode_instruction",
    "parse_header",
    "parse_markets",
    "parse_assets",
    "parse_pool_state",
    "parse_market_metadata",
    "BonfidaBotError",
    "FormatError",
    "PoolUnavailableError",
    "ValueOverflowError",
    "PROGRAM_ID",
    "SERUM_PROGRAM_ID",
]
