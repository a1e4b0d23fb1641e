"""Event extraction from pool transactions."""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from solders.instruction import CompiledInstruction
from solders.pubkey import Pubkey

from ..program.constants import (
    CREATE_ORDER_MARKET_INDEX,
    CREATE_ORDER_OPEN_ORDERS_INDEX,
    POOL_SEED_LENGTH,
    PROGRAM_ID,
    SETTLE_FUNDS_MARKET_INDEX,
    SETTLE_FUNDS_OPEN_ORDERS_INDEX,
    TOKEN_INSTRUCTION_TRANSFER,
    TOKEN_PROGRAM_ID,
    TOKEN_TRANSFER_DATA_SIZE,
    TOKEN_TRANSFER_DESTINATION_INDEX,
)
from ..program.errors import FormatError, NoEffectWarning
from ..program.instructions import decode_instruction
from ..program.types import InstructionTag, PoolInfo
from ..program.utils import decode_u64
from .types import OrderEvent, PoolEvent, SettledAmount, SettleEvent, TransactionRecord

logger = logging.getLogger(__name__)

_TRACKED_TAGS = (InstructionTag.CREATE_ORDER, InstructionTag.SETTLE_FUNDS)


def _account(account_keys: Sequence[Pubkey], ix: CompiledInstruction, position: int) -> Pubkey:
    try:
        return account_keys[ix.accounts[position]]
    except IndexError:
        raise FormatError(f"instruction has no account at position {position}")


def decode_token_transfer(
    ix: CompiledInstruction,
    account_keys: Sequence[Pubkey],
    token_program_id: Pubkey = TOKEN_PROGRAM_ID,
) -> Optional[Tuple[Pubkey, int]]:
    """Decode a token program transfer into (destination, amount).

    Returns None for any other instruction.
    """
    if ix.program_id_index >= len(account_keys):
        return None
    if account_keys[ix.program_id_index] != token_program_id:
        return None
    data = bytes(ix.data)
    if len(data) < TOKEN_TRANSFER_DATA_SIZE or data[0] != TOKEN_INSTRUCTION_TRANSFER:
        return None
    try:
        destination = _account(account_keys, ix, TOKEN_TRANSFER_DESTINATION_INDEX)
    except FormatError:
        return None
    return destination, decode_u64(data, 1)


def parse_create_order_event(
    tx: TransactionRecord,
    ix: CompiledInstruction,
    inner: Sequence[CompiledInstruction],
    pool_info: PoolInfo,
    token_program_id: Pubkey = TOKEN_PROGRAM_ID,
) -> Optional[OrderEvent]:
    """Build an OrderEvent from a create order instruction.

    The first token transfer among the inner instructions carries the amount
    paid into the venue. Returns None if there is no such transfer.
    """
    order = decode_instruction(bytes(ix.data), InstructionTag.CREATE_ORDER)
    open_orders = _account(tx.account_keys, ix, CREATE_ORDER_OPEN_ORDERS_INDEX)

    if order.market_index < len(pool_info.authorized_markets):
        market = pool_info.authorized_markets[order.market_index]
    else:
        market = _account(tx.account_keys, ix, CREATE_ORDER_MARKET_INDEX)

    for inner_ix in inner:
        transfer = decode_token_transfer(inner_ix, tx.account_keys, token_program_id)
        if transfer is not None:
            return OrderEvent(
                signature=tx.signature,
                slot=tx.slot,
                open_orders=open_orders,
                market=market,
                order=order,
                transferred_amount=transfer[1],
            )

    logger.warning(str(NoEffectWarning("create order", tx.signature, str(open_orders))))
    return None


def parse_settle_event(
    tx: TransactionRecord,
    ix: CompiledInstruction,
    inner: Sequence[CompiledInstruction],
    pool_info: PoolInfo,
    token_program_id: Pubkey = TOKEN_PROGRAM_ID,
) -> Optional[SettleEvent]:
    """Build a SettleEvent from a settle instruction.

    Only transfers into the pool's asset accounts count; referrer and fee
    transfers land elsewhere. Returns None if nothing reached the pool.
    """
    market = _account(tx.account_keys, ix, SETTLE_FUNDS_MARKET_INDEX)
    open_orders = _account(tx.account_keys, ix, SETTLE_FUNDS_OPEN_ORDERS_INDEX)

    totals: Dict[Pubkey, int] = {}
    for inner_ix in inner:
        transfer = decode_token_transfer(inner_ix, tx.account_keys, token_program_id)
        if transfer is None:
            continue
        destination, amount = transfer
        mint = pool_info.asset_accounts.get(destination)
        if mint is None:
            continue
        totals[mint] = totals.get(mint, 0) + amount

    if not totals:
        logger.warning(str(NoEffectWarning("settle", tx.signature, str(open_orders))))
        return None

    return SettleEvent(
        signature=tx.signature,
        slot=tx.slot,
        open_orders=open_orders,
        market=market,
        amounts=[SettledAmount(mint=mint, amount=amount) for mint, amount in totals.items()],
    )


def extract_pool_events(
    tx: TransactionRecord,
    pool_info: PoolInfo,
    program_id: Pubkey = PROGRAM_ID,
    token_program_id: Pubkey = TOKEN_PROGRAM_ID,
) -> List[PoolEvent]:
    """Extract the order and settle events of one transaction.

    Events are returned newest-first (reverse instruction order) to match
    the newest-first transaction history. Instructions that fail to decode
    are logged and skipped.
    """
    events: List[PoolEvent] = []
    pool_seed = bytes(pool_info.header.seed)

    for index, ix in enumerate(tx.instructions):
        if ix.program_id_index >= len(tx.account_keys):
            continue
        if tx.account_keys[ix.program_id_index] != program_id:
            continue
        data = bytes(ix.data)
        if not data or data[0] not in _TRACKED_TAGS:
            continue
        if data[1 : 1 + POOL_SEED_LENGTH] != pool_seed:
            continue

        tag = InstructionTag(data[0])
        inner = tx.inner_instructions.get(index)
        if not inner:
            # The instruction produced no cross-program effect
            kind = "create order" if tag == InstructionTag.CREATE_ORDER else "settle"
            logger.warning(str(NoEffectWarning(kind, tx.signature)))
            continue

        try:
            if tag == InstructionTag.CREATE_ORDER:
                event = parse_create_order_event(tx, ix, inner, pool_info, token_program_id)
            else:
                event = parse_settle_event(tx, ix, inner, pool_info, token_program_id)
        except FormatError as e:
            logger.warning(
                f"Skipping instruction {index} of transaction {tx.signature}: {e}"
            )
            continue

        if event is not None:
            events.append(event)

    events.reverse()
    logger.debug(f"Extracted {len(events)} events from transaction {tx.signature}")
    return events
