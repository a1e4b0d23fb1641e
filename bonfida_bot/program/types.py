"""Type definitions for the Bonfida Bot program module."""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Dict, List, Union

from solders.pubkey import Pubkey

from .constants import DEFAULT_SERUM_LIMIT, MAX_PENDING_ORDERS
from .errors import ValueOverflowError


class InstructionTag(IntEnum):
    """Discriminant byte of every pool program instruction."""

    INIT = 0
    CREATE = 1
    DEPOSIT = 2
    CREATE_ORDER = 3
    CANCEL_ORDER = 4
    SETTLE_FUNDS = 5
    REDEEM = 6
    COLLECT_FEES = 7


class OrderSide(IntEnum):
    """Side of an order on the venue."""

    BID = 0  # Pays quote tokens, receives base tokens
    ASK = 1  # Pays base tokens, receives quote tokens


class OrderType(IntEnum):
    """Venue order type."""

    LIMIT = 0
    IMMEDIATE_OR_CANCEL = 1
    POST_ONLY = 2


class SelfTradeBehavior(IntEnum):
    """Venue self trade behavior."""

    DECREMENT_TAKE = 0
    CANCEL_PROVIDE = 1
    ABORT_TRANSACTION = 2


class PoolStatusKind(IntEnum):
    """Mode of a pool."""

    UNINITIALIZED = 0
    UNLOCKED = 1
    LOCKED = 2
    PENDING_ORDER = 3
    LOCKED_PENDING_ORDER = 4


_PENDING_KINDS = (PoolStatusKind.PENDING_ORDER, PoolStatusKind.LOCKED_PENDING_ORDER)


@dataclass(frozen=True)
class PoolStatus:
    """Pool status with its pending order count.

    Pending kinds carry a count in [1, 63]; every other kind carries 0.
    """

    kind: PoolStatusKind
    pending_orders: int = 0

    def __post_init__(self):
        if self.kind in _PENDING_KINDS:
            if not 1 <= self.pending_orders <= MAX_PENDING_ORDERS:
                raise ValueOverflowError("pending order count", self.pending_orders)
        elif self.pending_orders != 0:
            raise ValueError(
                f"{self.kind.name} does not carry a pending order count"
            )

    @classmethod
    def uninitialized(cls) -> "PoolStatus":
        return cls(PoolStatusKind.UNINITIALIZED)

    @classmethod
    def unlocked(cls) -> "PoolStatus":
        return cls(PoolStatusKind.UNLOCKED)

    @classmethod
    def locked(cls) -> "PoolStatus":
        return cls(PoolStatusKind.LOCKED)

    @classmethod
    def pending_order(cls, count: int) -> "PoolStatus":
        return cls(PoolStatusKind.PENDING_ORDER, count)

    @classmethod
    def locked_pending_order(cls, count: int) -> "PoolStatus":
        return cls(PoolStatusKind.LOCKED_PENDING_ORDER, count)

    @property
    def is_locked(self) -> bool:
        return self.kind in (PoolStatusKind.LOCKED, PoolStatusKind.LOCKED_PENDING_ORDER)


# ============================================================================
# ACCOUNT DATA
# ============================================================================


@dataclass
class PoolHeader:
    """Pool account header (117 bytes)."""

    serum_program_id: Pubkey
    seed: bytes
    signal_provider: Pubkey
    status: PoolStatus
    number_of_markets: int
    fee_ratio: int
    last_fee_collection_timestamp: int
    fee_collection_period: int

    @property
    def fee_percentage(self) -> float:
        return self.fee_ratio * 100 / 2**16


@dataclass
class PoolAsset:
    """One asset slot of a pool."""

    mint_address: Pubkey


@dataclass
class PoolState:
    """A whole pool account: header, authorized markets and assets."""

    header: PoolHeader
    authorized_markets: List[Pubkey]
    assets: List[PoolAsset]


@dataclass
class PoolInfo:
    """Pool state resolved against its derived addresses."""

    address: Pubkey
    mint: Pubkey
    header: PoolHeader
    authorized_markets: List[Pubkey]
    asset_mints: List[Pubkey]
    # Associated token account of the pool -> mint
    asset_accounts: Dict[Pubkey, Pubkey] = field(default_factory=dict)


@dataclass
class MarketData:
    """Venue market metadata."""

    address: Pubkey
    coin_mint: Pubkey
    coin_vault: Pubkey
    coin_lot_size: int
    pc_mint: Pubkey
    pc_vault: Pubkey
    pc_lot_size: int
    vault_signer_nonce: int
    request_queue: Pubkey
    event_queue: Pubkey
    bids: Pubkey
    asks: Pubkey

    def source_mint(self, side: OrderSide) -> Pubkey:
        """Mint paid into the venue by an order on the given side."""
        return self.pc_mint if side == OrderSide.BID else self.coin_mint

    def target_mint(self, side: OrderSide) -> Pubkey:
        """Mint received from the venue by an order on the given side."""
        return self.coin_mint if side == OrderSide.BID else self.pc_mint


@dataclass
class TokenBalance:
    """Raw token amount with its mint decimals."""

    mint: Pubkey
    amount: int
    decimals: int

    @property
    def ui_amount(self) -> float:
        return self.amount / 10**self.decimals


@dataclass
class PoolBalances:
    """Pool token supply and the balance of every pool asset."""

    pool_token_supply: TokenBalance
    assets: List[TokenBalance]


# ============================================================================
# INSTRUCTIONS
# ============================================================================


@dataclass
class InitInstruction:
    """Allocate the pool and pool mint accounts."""

    pool_seed: bytes
    max_number_of_assets: int
    number_of_markets: int

    tag = InstructionTag.INIT


@dataclass
class CreateInstruction:
    """First deposit into an initialized pool."""

    pool_seed: bytes
    fee_collection_period: int
    fee_ratio: int
    markets: List[Pubkey]
    deposit_amounts: List[int]

    tag = InstructionTag.CREATE

    @property
    def fee_percentage(self) -> float:
        return self.fee_ratio * 100 / 2**16


@dataclass
class DepositInstruction:
    """Buy into the pool in its current asset ratio."""

    pool_seed: bytes
    pool_token_amount: int

    tag = InstructionTag.DEPOSIT


@dataclass
class CreateOrderInstruction:
    """Place a venue order with a share of the pool's assets."""

    pool_seed: bytes
    side: OrderSide
    limit_price: int
    ratio_of_pool_assets_to_trade: int
    order_type: OrderType
    client_id: int
    self_trade_behavior: SelfTradeBehavior
    source_index: int
    target_index: int
    market_index: int
    coin_lot_size: int
    pc_lot_size: int
    target_mint: Pubkey
    serum_limit: int = DEFAULT_SERUM_LIMIT

    tag = InstructionTag.CREATE_ORDER


@dataclass
class CancelOrderInstruction:
    """Cancel a resting venue order."""

    pool_seed: bytes
    side: OrderSide
    order_id: int

    tag = InstructionTag.CANCEL_ORDER


@dataclass
class SettleFundsInstruction:
    """Move matched proceeds from an open orders account into the pool."""

    pool_seed: bytes
    pc_index: int
    coin_index: int

    tag = InstructionTag.SETTLE_FUNDS


@dataclass
class RedeemInstruction:
    """Burn pool tokens against the pool's assets."""

    pool_seed: bytes
    pool_token_amount: int

    tag = InstructionTag.REDEEM


@dataclass
class CollectFeesInstruction:
    """Pay out the accrued fees."""

    pool_seed: bytes

    tag = InstructionTag.COLLECT_FEES


PoolInstruction = Union[
    InitInstruction,
    CreateInstruction,
    DepositInstruction,
    CreateOrderInstruction,
    CancelOrderInstruction,
    SettleFundsInstruction,
    RedeemInstruction,
    CollectFeesInstruction,
]
