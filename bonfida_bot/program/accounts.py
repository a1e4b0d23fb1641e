"""Account deserialization for the Bonfida Bot SDK."""

from typing import List

from solders.pubkey import Pubkey

from .constants import (
    MARKET_ASKS,
    MARKET_BIDS,
    MARKET_COIN_LOT_SIZE,
    MARKET_COIN_MINT,
    MARKET_COIN_VAULT,
    MARKET_DATA_MIN_SIZE,
    MARKET_EVENT_QUEUE,
    MARKET_PC_LOT_SIZE,
    MARKET_PC_MINT,
    MARKET_PC_VAULT,
    MARKET_REQUEST_QUEUE,
    MARKET_VAULT_SIGNER_NONCE,
    MINT_DECIMALS_OFFSET,
    POOL_ASSET_SIZE,
    POOL_HEADER_SIZE,
    PUBKEY_LENGTH,
    STATUS_LOCKED_FLAG,
    STATUS_PENDING_ORDER_FLAG,
    STATUS_PENDING_ORDER_MASK,
    STATUS_UNLOCKED_FLAG,
)
from .errors import FormatError, InvalidPoolStatusError, ValueOverflowError
from .types import (
    MarketData,
    PoolAsset,
    PoolHeader,
    PoolState,
    PoolStatus,
    PoolStatusKind,
)
from .utils import (
    decode_pubkey,
    decode_u16,
    decode_u64,
    decode_u64_reversed,
    decode_u8,
    encode_u16,
    encode_u64,
    encode_u8,
    validate_pool_seed,
)

_ZERO_KEY = bytes(PUBKEY_LENGTH)


# ============================================================================
# POOL STATUS
# ============================================================================


def decode_pool_status(status_byte: int) -> PoolStatus:
    """Decode the packed pool status byte.

    The two high bits select the mode and the low six bits hold the pending
    order count minus one:
    - 00: Uninitialized when the whole byte is zero, Unlocked otherwise
    - 01: PendingOrder(count)
    - 10: Locked
    - 11: LockedPendingOrder(count)

    Raises:
        InvalidPoolStatusError: If the byte cannot be represented
    """
    if not 0 <= status_byte <= 0xFF:
        raise InvalidPoolStatusError(status_byte)

    mode = status_byte >> 6
    count = (status_byte & STATUS_PENDING_ORDER_MASK) + 1

    try:
        if mode == 0:
            if status_byte == 0:
                return PoolStatus.uninitialized()
            return PoolStatus.unlocked()
        if mode == 1:
            return PoolStatus.pending_order(count)
        if mode == 2:
            return PoolStatus.locked()
        return PoolStatus.locked_pending_order(count)
    except ValueOverflowError:
        # A full six-bit field decodes to 64 pending orders
        raise InvalidPoolStatusError(status_byte)


def encode_pool_status(status: PoolStatus) -> int:
    """Encode a pool status into its one-byte representation.

    Raises:
        ValueOverflowError: If a pending count is outside [1, 63]
    """
    kind = status.kind
    if kind == PoolStatusKind.UNINITIALIZED:
        return 0
    if kind == PoolStatusKind.UNLOCKED:
        return STATUS_UNLOCKED_FLAG
    if kind == PoolStatusKind.LOCKED:
        return STATUS_LOCKED_FLAG

    count = status.pending_orders
    if not 1 <= count <= STATUS_PENDING_ORDER_MASK:
        raise ValueOverflowError("pending order count", count)
    if kind == PoolStatusKind.PENDING_ORDER:
        return STATUS_PENDING_ORDER_FLAG | (count - 1)
    return STATUS_LOCKED_FLAG | STATUS_PENDING_ORDER_FLAG | (count - 1)


# ============================================================================
# POOL ACCOUNT
# ============================================================================


def parse_header(data: bytes) -> PoolHeader:
    """Deserialize a pool header.

    Layout (117 bytes):
    - [0..32]: serum_program_id (Pubkey)
    - [32..64]: seed (32 bytes)
    - [64..96]: signal_provider (Pubkey)
    - [96]: status (u8)
    - [97..99]: number_of_markets (u16 LE)
    - [99..101]: fee_ratio (u16 LE)
    - [101..109]: last_fee_collection_timestamp (u64 LE)
    - [109..117]: fee_collection_period (u64 LE)
    """
    if len(data) < POOL_HEADER_SIZE:
        raise FormatError(
            f"PoolHeader data too short: {len(data)} bytes (expected {POOL_HEADER_SIZE})"
        )

    return PoolHeader(
        serum_program_id=decode_pubkey(data, 0),
        seed=bytes(data[32:64]),
        signal_provider=decode_pubkey(data, 64),
        status=decode_pool_status(decode_u8(data, 96)),
        number_of_markets=decode_u16(data, 97),
        fee_ratio=decode_u16(data, 99),
        last_fee_collection_timestamp=decode_u64(data, 101),
        fee_collection_period=decode_u64(data, 109),
    )


def serialize_pool_header(header: PoolHeader) -> bytes:
    """Serialize a pool header into its 117-byte layout."""
    data = bytearray()
    data.extend(bytes(header.serum_program_id))
    data.extend(validate_pool_seed(header.seed))
    data.extend(bytes(header.signal_provider))
    data.extend(encode_u8(encode_pool_status(header.status)))
    data.extend(encode_u16(header.number_of_markets))
    data.extend(encode_u16(header.fee_ratio))
    data.extend(encode_u64(header.last_fee_collection_timestamp))
    data.extend(encode_u64(header.fee_collection_period))
    return bytes(data)


def parse_markets(data: bytes, count: int, offset: int = POOL_HEADER_SIZE) -> List[Pubkey]:
    """Read `count` consecutive market keys starting at `offset`."""
    end = offset + count * PUBKEY_LENGTH
    if count < 0 or len(data) < end:
        raise FormatError(
            f"market list too short: {len(data)} bytes "
            f"(expected {end} for {count} markets)"
        )
    return [decode_pubkey(data, offset + i * PUBKEY_LENGTH) for i in range(count)]


def parse_assets(data: bytes) -> List[PoolAsset]:
    """Read 32-byte asset slots until the input is exhausted.

    Unused slots (all-zero mints) are dropped; the order of the remaining
    assets is preserved.
    """
    if len(data) % POOL_ASSET_SIZE != 0:
        raise FormatError(
            f"asset list length {len(data)} is not a multiple of {POOL_ASSET_SIZE}"
        )

    assets = []
    for offset in range(0, len(data), POOL_ASSET_SIZE):
        chunk = bytes(data[offset : offset + POOL_ASSET_SIZE])
        if chunk == _ZERO_KEY:
            continue
        assets.append(PoolAsset(mint_address=Pubkey.from_bytes(chunk)))
    return assets


def parse_pool_state(data: bytes) -> PoolState:
    """Deserialize a whole pool account: header, markets, then assets."""
    header = parse_header(data)
    markets = parse_markets(data, header.number_of_markets)
    assets_offset = POOL_HEADER_SIZE + header.number_of_markets * PUBKEY_LENGTH
    return PoolState(
        header=header,
        authorized_markets=markets,
        assets=parse_assets(data[assets_offset:]),
    )


# ============================================================================
# EXTERNAL ACCOUNTS
# ============================================================================


def _market_key(data: bytes, field) -> Pubkey:
    return decode_pubkey(data, field[0])


def parse_market_metadata(data: bytes, address: Pubkey) -> MarketData:
    """Deserialize the venue's market account.

    Layout (first 365 bytes used):
    - [45..53]: vault_signer_nonce (8 bytes, reversed)
    - [53..85]: coin_mint
    - [85..117]: pc_mint
    - [117..149]: coin_vault
    - [165..197]: pc_vault
    - [221..253]: request_queue
    - [253..285]: event_queue
    - [285..317]: bids
    - [317..349]: asks
    - [349..357]: coin_lot_size (8 bytes, reversed)
    - [357..365]: pc_lot_size (8 bytes, reversed)
    """
    if len(data) < MARKET_DATA_MIN_SIZE:
        raise FormatError(
            f"Market data too short: {len(data)} bytes (expected {MARKET_DATA_MIN_SIZE})"
        )

    return MarketData(
        address=address,
        coin_mint=_market_key(data, MARKET_COIN_MINT),
        coin_vault=_market_key(data, MARKET_COIN_VAULT),
        coin_lot_size=decode_u64_reversed(data, MARKET_COIN_LOT_SIZE[0]),
        pc_mint=_market_key(data, MARKET_PC_MINT),
        pc_vault=_market_key(data, MARKET_PC_VAULT),
        pc_lot_size=decode_u64_reversed(data, MARKET_PC_LOT_SIZE[0]),
        vault_signer_nonce=decode_u64_reversed(data, MARKET_VAULT_SIGNER_NONCE[0]),
        request_queue=_market_key(data, MARKET_REQUEST_QUEUE),
        event_queue=_market_key(data, MARKET_EVENT_QUEUE),
        bids=_market_key(data, MARKET_BIDS),
        asks=_market_key(data, MARKET_ASKS),
    )


def parse_mint_decimals(data: bytes) -> int:
    """Read the decimals byte of an SPL mint account."""
    if len(data) <= MINT_DECIMALS_OFFSET:
        raise FormatError(
            f"Mint data too short: {len(data)} bytes (expected {MINT_DECIMALS_OFFSET + 1})"
        )
    return decode_u8(data, MINT_DECIMALS_OFFSET)
