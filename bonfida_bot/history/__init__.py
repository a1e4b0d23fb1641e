"""Pool activity reconstruction.

Scans a pool's transactions, extracts its create order and settle events,
pairs them per open orders account and reports the orders in
human-readable units.
"""

from .extract import (
    decode_token_transfer,
    extract_pool_events,
    parse_create_order_event,
    parse_settle_event,
)
from .normalize import normalize_amount, normalize_order, normalize_price
from .pairing import pair_events, select_recent
from .reconstructor import ActivityReconstructor
from .source import RpcLedgerSource, transaction_record_from_response
from .types import (
    OrderEvent,
    PairedOrder,
    PoolEvent,
    ReconstructedOrder,
    SettledAmount,
    SettleEvent,
    SignatureInfo,
    TransactionRecord,
)

__all__ = [
    # Reconstruction
    "ActivityReconstructor",
    "RpcLedgerSource",
    "transaction_record_from_response",
    # Steps
    "decode_token_transfer",
    "parse_create_order_event",
    "parse_settle_event",
    "extract_pool_events",
    "pair_events",
    "select_recent",
    "normalize_price",
    "normalize_amount",
    "normalize_order",
    # Types
    "SignatureInfo",
    "TransactionRecord",
    "OrderEvent",
    "SettleEvent",
    "SettledAmount",
    "PoolEvent",
    "PairedOrder",
    "ReconstructedOrder",
]
