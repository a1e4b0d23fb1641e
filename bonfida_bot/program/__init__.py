"""On-chain program interaction module for Bonfida Bot.

This module provides the instruction codec, the pool account codec and an
async read client for the Bonfida Bot pool program on Solana.
"""

from .accounts import (
    decode_pool_status,
    encode_pool_status,
    parse_assets,
    parse_header,
    parse_market_metadata,
    parse_markets,
    parse_mint_decimals,
    parse_pool_state,
    serialize_pool_header,
)
from .client import BonfidaBotClient
from .errors import (
    AccountNotFoundError,
    BonfidaBotError,
    BonfidaBotWarning,
    DeprecatedMarketError,
    FormatError,
    InvalidPoolStatusError,
    InvalidTagError,
    NoEffectWarning,
    PartialHistoryWarning,
    PoolUnavailableError,
    UnauthorizedMarketError,
    UnavailableError,
    ValueOverflowError,
)
from .instructions import (
    build_cancel_order_instruction,
    build_collect_fees_instruction,
    build_create_instruction,
    build_create_order_instruction,
    build_deposit_instruction,
    build_init_instruction,
    build_redeem_instruction,
    build_settle_funds_instruction,
    decode_instruction,
    encode_instruction,
    peek_instruction_tag,
)
from .markets import MarketInfo, MarketRegistry, fetch_market_registry
from .pda import get_pool_address, get_pool_mint_address, get_vault_signer_address
from .types import (
    CancelOrderInstruction,
    CollectFeesInstruction,
    CreateInstruction,
    CreateOrderInstruction,
    DepositInstruction,
    InitInstruction,
    InstructionTag,
    MarketData,
    OrderSide,
    OrderType,
    PoolAsset,
    PoolBalances,
    PoolHeader,
    PoolInfo,
    PoolInstruction,
    PoolState,
    PoolStatus,
    PoolStatusKind,
    RedeemInstruction,
    SelfTradeBehavior,
    SettleFundsInstruction,
    TokenBalance,
)
from .utils import (
    fee_ratio_from_percentage,
    get_associated_token_address,
    ratio_from_percentage,
)

__all__ = [
    # Client
    "BonfidaBotClient",
    # Account Deserialization
    "decode_pool_status",
    "encode_pool_status",
    "parse_header",
    "serialize_pool_header",
    "parse_markets",
    "parse_assets",
    "parse_pool_state",
    "parse_market_metadata",
    "parse_mint_decimals",
    # PDA Functions
    "get_pool_address",
    "get_pool_mint_address",
    "get_vault_signer_address",
    "get_associated_token_address",
    # Instruction Codec
    "encode_instruction",
    "decode_instruction",
    "peek_instruction_tag",
    # Instruction Builders
    "build_init_instruction",
    "build_create_instruction",
    "build_deposit_instruction",
    "build_create_order_instruction",
    "build_cancel_order_instruction",
    "build_settle_funds_instruction",
    "build_redeem_instruction",
    "build_collect_fees_instruction",
    # Markets
    "MarketInfo",
    "MarketRegistry",
    "fetch_market_registry",
    # Helpers
    "fee_ratio_from_percentage",
    "ratio_from_percentage",
    # Types
    "InstructionTag",
    "OrderSide",
    "OrderType",
    "SelfTradeBehavior",
    "PoolStatusKind",
    "PoolStatus",
    "PoolHeader",
    "PoolAsset",
    "PoolState",
    "PoolInfo",
    "MarketData",
    "TokenBalance",
    "PoolBalances",
    "PoolInstruction",
    "InitInstruction",
    "CreateInstruction",
    "DepositInstruction",
    "CreateOrderInstruction",
    "CancelOrderInstruction",
    "SettleFundsInstruction",
    "RedeemInstruction",
    "CollectFeesInstruction",
    # Errors
    "BonfidaBotError",
    "FormatError",
    "InvalidTagError",
    "InvalidPoolStatusError",
    "ValueOverflowError",
    "UnavailableError",
    "AccountNotFoundError",
    "PoolUnavailableError",
    "UnauthorizedMarketError",
    "DeprecatedMarketError",
    "BonfidaBotWarning",
    "NoEffectWarning",
    "PartialHistoryWarning",
]
