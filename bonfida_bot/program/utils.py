"""Utility functions for the Bonfida Bot program module."""

import struct

from solders.pubkey import Pubkey

from .constants import (
    ASSOCIATED_TOKEN_PROGRAM_ID,
    POOL_SEED_LENGTH,
    PUBKEY_LENGTH,
    TOKEN_PROGRAM_ID,
)
from .errors import FormatError, ValueOverflowError

U8_MAX = (1 << 8) - 1
U16_MAX = (1 << 16) - 1
U32_MAX = (1 << 32) - 1
U64_MAX = (1 << 64) - 1
U128_MAX = (1 << 128) - 1


def _check_range(kind: str, value: int, maximum: int) -> None:
    if not 0 <= value <= maximum:
        raise ValueOverflowError(kind, value)


def encode_u8(value: int) -> bytes:
    """Encode an unsigned 8-bit integer.

    Raises:
        ValueOverflowError: If value is out of range [0, 255]
    """
    _check_range("u8", value, U8_MAX)
    return struct.pack("<B", value)


def encode_u16(value: int) -> bytes:
    """Encode an unsigned 16-bit integer (little-endian).

    Raises:
        ValueOverflowError: If value is out of range [0, 65535]
    """
    _check_range("u16", value, U16_MAX)
    return struct.pack("<H", value)


def encode_u32(value: int) -> bytes:
    """Encode an unsigned 32-bit integer (little-endian).

    Raises:
        ValueOverflowError: If value is out of range [0, 2^32-1]
    """
    _check_range("u32", value, U32_MAX)
    return struct.pack("<I", value)


def encode_u64(value: int) -> bytes:
    """Encode an unsigned 64-bit integer (little-endian).

    Raises:
        ValueOverflowError: If value is out of range [0, 2^64-1]
    """
    _check_range("u64", value, U64_MAX)
    return struct.pack("<Q", value)


def encode_u128(value: int) -> bytes:
    """Encode an unsigned 128-bit integer (little-endian).

    Raises:
        ValueOverflowError: If value is out of range [0, 2^128-1]
    """
    _check_range("u128", value, U128_MAX)
    return value.to_bytes(16, "little")


def _unpack(fmt: str, data: bytes, offset: int) -> int:
    try:
        return struct.unpack_from(fmt, data, offset)[0]
    except struct.error:
        raise FormatError(
            f"not enough bytes at offset {offset}: need {struct.calcsize(fmt)}, "
            f"have {max(len(data) - offset, 0)}"
        )


def decode_u8(data: bytes, offset: int = 0) -> int:
    """Decode an unsigned 8-bit integer."""
    return _unpack("<B", data, offset)


def decode_u16(data: bytes, offset: int = 0) -> int:
    """Decode an unsigned 16-bit integer (little-endian)."""
    return _unpack("<H", data, offset)


def decode_u32(data: bytes, offset: int = 0) -> int:
    """Decode an unsigned 32-bit integer (little-endian)."""
    return _unpack("<I", data, offset)


def decode_u64(data: bytes, offset: int = 0) -> int:
    """Decode an unsigned 64-bit integer (little-endian)."""
    return _unpack("<Q", data, offset)


def decode_u128(data: bytes, offset: int = 0) -> int:
    """Decode an unsigned 128-bit integer (little-endian)."""
    if offset + 16 > len(data):
        raise FormatError(f"not enough bytes for u128 at offset {offset}")
    return int.from_bytes(data[offset : offset + 16], "little")


def decode_u64_reversed(data: bytes, offset: int = 0) -> int:
    """Decode 8 bytes whose order is reversed before integer conversion.

    The venue market layout stores lot sizes and the vault signer nonce this
    way; reversing then reading big-endian yields the stored value.
    """
    if offset + 8 > len(data):
        raise FormatError(f"not enough bytes for reversed u64 at offset {offset}")
    return int.from_bytes(bytes(reversed(data[offset : offset + 8])), "big")


def decode_pubkey(data: bytes, offset: int = 0) -> Pubkey:
    """Decode a Pubkey from 32 bytes.

    Raises:
        FormatError: If not enough bytes available for Pubkey
    """
    if offset + PUBKEY_LENGTH > len(data):
        raise FormatError(
            f"not enough bytes for Pubkey at offset {offset}: "
            f"need 32 bytes, have {max(len(data) - offset, 0)}"
        )
    return Pubkey.from_bytes(bytes(data[offset : offset + PUBKEY_LENGTH]))


def validate_pool_seed(pool_seed: bytes) -> bytes:
    """Validate that a pool seed is exactly 32 bytes."""
    seed = bytes(pool_seed)
    if len(seed) != POOL_SEED_LENGTH:
        raise FormatError(
            f"pool seed must be {POOL_SEED_LENGTH} bytes, got {len(seed)}"
        )
    return seed


def fee_ratio_from_percentage(percentage: float) -> int:
    """Convert a fee percentage (0-100) to the program's u16 ratio."""
    ratio = int(2**16 * percentage / 100)
    _check_range("u16", ratio, U16_MAX)
    return ratio


def ratio_from_percentage(percentage: float) -> int:
    """Convert a share of pool assets (0-100) to a u16 trade ratio."""
    return fee_ratio_from_percentage(percentage)


def get_associated_token_address(
    owner: Pubkey,
    mint: Pubkey,
    token_program_id: Pubkey = TOKEN_PROGRAM_ID,
    associated_token_program_id: Pubkey = ASSOCIATED_TOKEN_PROGRAM_ID,
) -> Pubkey:
    """Derive the associated token account address for a wallet and mint."""
    seeds = [
        bytes(owner),
        bytes(token_program_id),
        bytes(mint),
    ]
    pda, _ = Pubkey.find_program_address(seeds, associated_token_program_id)
    return pda
