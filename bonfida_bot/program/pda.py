"""Program derived address functions for the Bonfida Bot SDK."""

from solders.pubkey import Pubkey

from .constants import PROGRAM_ID, SERUM_PROGRAM_ID
from .utils import encode_u64, validate_pool_seed

POOL_MINT_SEED_SUFFIX = b"\x01"


def get_pool_address(pool_seed: bytes, program_id: Pubkey = PROGRAM_ID) -> Pubkey:
    """Derive the pool account address.

    Seeds: [pool_seed]
    """
    return Pubkey.create_program_address([validate_pool_seed(pool_seed)], program_id)


def get_pool_mint_address(pool_seed: bytes, program_id: Pubkey = PROGRAM_ID) -> Pubkey:
    """Derive the pool token mint address.

    Seeds: [pool_seed, 0x01]
    """
    return Pubkey.create_program_address(
        [validate_pool_seed(pool_seed), POOL_MINT_SEED_SUFFIX],
        program_id,
    )


def get_vault_signer_address(
    market: Pubkey,
    nonce: int,
    dex_program_id: Pubkey = SERUM_PROGRAM_ID,
) -> Pubkey:
    """Derive the venue vault signer of a market.

    Seeds: [market, nonce (u64 LE)]
    """
    return Pubkey.create_program_address([bytes(market), encode_u64(nonce)], dex_program_id)
