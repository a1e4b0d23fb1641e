"""Record types for pool activity reconstruction."""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional, Union

from solders.instruction import CompiledInstruction
from solders.pubkey import Pubkey

from ..program.types import CreateOrderInstruction, OrderSide, OrderType


@dataclass
class SignatureInfo:
    """One entry of an address's signature history."""

    signature: str
    slot: int


@dataclass
class TransactionRecord:
    """A confirmed transaction reduced to what reconstruction reads.

    `inner_instructions` maps a top-level instruction index to the
    cross-program instructions it invoked. Every account index inside
    an instruction points into `account_keys`.
    """

    signature: str
    slot: int
    account_keys: List[Pubkey]
    instructions: List[CompiledInstruction]
    inner_instructions: Dict[int, List[CompiledInstruction]] = field(default_factory=dict)


@dataclass
class OrderEvent:
    """A create order instruction and the amount it moved into the venue."""

    signature: str
    slot: int
    open_orders: Pubkey
    market: Pubkey
    order: CreateOrderInstruction
    transferred_amount: int


@dataclass
class SettledAmount:
    """Amount settled into one pool asset."""

    mint: Pubkey
    amount: Union[int, Decimal]


@dataclass
class SettleEvent:
    """A settle instruction with its transfers aggregated per mint."""

    signature: str
    slot: int
    open_orders: Pubkey
    market: Pubkey
    amounts: List[SettledAmount]


PoolEvent = Union[OrderEvent, SettleEvent]


@dataclass
class PairedOrder:
    """An order event and the settle event attributed to it, if any."""

    order: OrderEvent
    settle: Optional[SettleEvent] = None


@dataclass
class ReconstructedOrder:
    """An order of the pool in human-readable units."""

    signature: str
    slot: int
    market: Pubkey
    open_orders: Pubkey
    side: OrderSide
    order_type: OrderType
    client_id: int
    ratio_of_pool_assets_to_trade: int
    limit_price: Decimal
    transferred_mint: Pubkey
    transferred_amount: Decimal
    settle_signature: Optional[str] = None
    settled_amounts: List[SettledAmount] = field(default_factory=list)

    @property
    def is_settled(self) -> bool:
        return self.settle_signature is not None
