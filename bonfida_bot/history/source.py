"""Ledger access for activity reconstruction."""

import logging
from typing import Dict, List, Optional

import base58
from solana.rpc.async_api import AsyncClient
from solders.instruction import CompiledInstruction
from solders.pubkey import Pubkey
from solders.signature import Signature

from .types import SignatureInfo, TransactionRecord

logger = logging.getLogger(__name__)


def _compiled(ix) -> CompiledInstruction:
    """Convert an RPC inner instruction into a CompiledInstruction."""
    if isinstance(ix, CompiledInstruction):
        return ix
    data = ix.data
    if isinstance(data, str):
        data = base58.b58decode(data)
    return CompiledInstruction(ix.program_id_index, bytes(data), bytes(ix.accounts))


def transaction_record_from_response(signature: str, value) -> TransactionRecord:
    """Build a TransactionRecord from a `get_transaction` response value.

    Addresses loaded from lookup tables are appended to the static keys,
    writable first, so that every account index resolves.
    """
    message = value.transaction.transaction.message
    meta = value.transaction.meta

    account_keys: List[Pubkey] = list(message.account_keys)
    inner_instructions: Dict[int, List[CompiledInstruction]] = {}

    if meta is not None:
        loaded = meta.loaded_addresses
        if loaded is not None:
            account_keys.extend(loaded.writable)
            account_keys.extend(loaded.readonly)
        for inner in meta.inner_instructions or []:
            inner_instructions[inner.index] = [_compiled(ix) for ix in inner.instructions]

    return TransactionRecord(
        signature=signature,
        slot=value.slot,
        account_keys=account_keys,
        instructions=list(message.instructions),
        inner_instructions=inner_instructions,
    )


class RpcLedgerSource:
    """Signature history and transaction reads over a Solana RPC client."""

    def __init__(self, connection: AsyncClient):
        self.connection = connection

    async def get_signatures(self, address: Pubkey, limit: int) -> List[SignatureInfo]:
        """Fetch the newest `limit` signatures that touched `address`, newest first."""
        response = await self.connection.get_signatures_for_address(address, limit=limit)
        return [SignatureInfo(signature=str(s.signature), slot=s.slot) for s in response.value]

    async def get_transaction(self, signature: str) -> Optional[TransactionRecord]:
        """Fetch a transaction, or None if the node does not have it."""
        response = await self.connection.get_transaction(
            Signature.from_string(signature),
            encoding="base64",
            max_supported_transaction_version=0,
        )
        if response.value is None:
            return None
        return transaction_record_from_response(signature, response.value)
