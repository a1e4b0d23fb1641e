"""Instruction codec and builders for the Bonfida Bot SDK.

Every instruction's data starts with its tag byte and the 32-byte pool seed,
followed by tag-specific little-endian fields. Variable-length sections are
appended after the fixed fields.
"""

from typing import List, Optional

from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey

from .constants import (
    CANCEL_ORDER_DATA_SIZE,
    CLOCK_SYSVAR_ID,
    COLLECT_FEES_DATA_SIZE,
    CREATE_DATA_MIN_SIZE,
    CREATE_ORDER_DATA_SIZE,
    DEPOSIT_DATA_SIZE,
    INIT_DATA_SIZE,
    POOL_SEED_LENGTH,
    PROGRAM_ID,
    PUBKEY_LENGTH,
    REDEEM_DATA_SIZE,
    RENT_SYSVAR_ID,
    SERUM_PROGRAM_ID,
    SETTLE_FUNDS_DATA_SIZE,
    SYSTEM_PROGRAM_ID,
    TOKEN_PROGRAM_ID,
)
from .errors import FormatError, InvalidTagError
from .markets import MarketRegistry
from .types import (
    CancelOrderInstruction,
    CollectFeesInstruction,
    CreateInstruction,
    CreateOrderInstruction,
    DepositInstruction,
    InitInstruction,
    InstructionTag,
    OrderSide,
    OrderType,
    PoolInstruction,
    RedeemInstruction,
    SelfTradeBehavior,
    SettleFundsInstruction,
)
from .utils import (
    decode_pubkey,
    decode_u128,
    decode_u16,
    decode_u32,
    decode_u64,
    decode_u8,
    encode_u128,
    encode_u16,
    encode_u32,
    encode_u64,
    encode_u8,
    validate_pool_seed,
)

_MIN_SIZES = {
    InstructionTag.INIT: INIT_DATA_SIZE,
    InstructionTag.CREATE: CREATE_DATA_MIN_SIZE,
    InstructionTag.DEPOSIT: DEPOSIT_DATA_SIZE,
    InstructionTag.CREATE_ORDER: CREATE_ORDER_DATA_SIZE,
    InstructionTag.CANCEL_ORDER: CANCEL_ORDER_DATA_SIZE,
    InstructionTag.SETTLE_FUNDS: SETTLE_FUNDS_DATA_SIZE,
    InstructionTag.REDEEM: REDEEM_DATA_SIZE,
    InstructionTag.COLLECT_FEES: COLLECT_FEES_DATA_SIZE,
}


# ============================================================================
# ENCODING
# ============================================================================


def encode_instruction(ix: PoolInstruction) -> bytes:
    """Encode an instruction payload into its wire buffer.

    Raises:
        ValueOverflowError: If a numeric field does not fit its width
        FormatError: If the pool seed is not 32 bytes
        TypeError: If ix is not a pool instruction
    """
    data = bytearray()

    if isinstance(ix, InitInstruction):
        data.append(InstructionTag.INIT)
        data.extend(validate_pool_seed(ix.pool_seed))
        data.extend(encode_u32(ix.max_number_of_assets))
        data.extend(encode_u16(ix.number_of_markets))
    elif isinstance(ix, CreateInstruction):
        data.append(InstructionTag.CREATE)
        data.extend(validate_pool_seed(ix.pool_seed))
        data.extend(encode_u16(len(ix.markets)))
        data.extend(encode_u64(ix.fee_collection_period))
        data.extend(encode_u16(ix.fee_ratio))
        for market in ix.markets:
            data.extend(bytes(market))
        for amount in ix.deposit_amounts:
            data.extend(encode_u64(amount))
    elif isinstance(ix, DepositInstruction):
        data.append(InstructionTag.DEPOSIT)
        data.extend(validate_pool_seed(ix.pool_seed))
        data.extend(encode_u64(ix.pool_token_amount))
    elif isinstance(ix, CreateOrderInstruction):
        data.append(InstructionTag.CREATE_ORDER)
        data.extend(validate_pool_seed(ix.pool_seed))
        data.extend(encode_u8(ix.side))
        data.extend(encode_u64(ix.limit_price))
        data.extend(encode_u16(ix.ratio_of_pool_assets_to_trade))
        data.extend(encode_u8(ix.order_type))
        data.extend(encode_u64(ix.client_id))
        data.extend(encode_u8(ix.self_trade_behavior))
        data.extend(encode_u64(ix.source_index))
        data.extend(encode_u64(ix.target_index))
        data.extend(encode_u16(ix.market_index))
        data.extend(encode_u64(ix.coin_lot_size))
        data.extend(encode_u64(ix.pc_lot_size))
        data.extend(bytes(ix.target_mint))
        data.extend(encode_u16(ix.serum_limit))
    elif isinstance(ix, CancelOrderInstruction):
        data.append(InstructionTag.CANCEL_ORDER)
        data.extend(validate_pool_seed(ix.pool_seed))
        data.extend(encode_u8(ix.side))
        data.extend(encode_u128(ix.order_id))
    elif isinstance(ix, SettleFundsInstruction):
        data.append(InstructionTag.SETTLE_FUNDS)
        data.extend(validate_pool_seed(ix.pool_seed))
        data.extend(encode_u64(ix.pc_index))
        data.extend(encode_u64(ix.coin_index))
    elif isinstance(ix, RedeemInstruction):
        data.append(InstructionTag.REDEEM)
        data.extend(validate_pool_seed(ix.pool_seed))
        data.extend(encode_u64(ix.pool_token_amount))
    elif isinstance(ix, CollectFeesInstruction):
        data.append(InstructionTag.COLLECT_FEES)
        data.extend(validate_pool_seed(ix.pool_seed))
    else:
        raise TypeError(f"Not a pool instruction: {type(ix).__name__}")

    return bytes(data)


# ============================================================================
# DECODING
# ============================================================================


def peek_instruction_tag(data: bytes) -> InstructionTag:
    """Read the tag byte of an instruction buffer.

    Raises:
        FormatError: If the buffer is empty
        InvalidTagError: If the tag is not a known instruction
    """
    if len(data) < 1:
        raise FormatError("instruction data is empty")
    try:
        return InstructionTag(data[0])
    except ValueError:
        raise InvalidTagError(None, data[0])


def _enum_field(enum_cls, value: int, name: str):
    try:
        return enum_cls(value)
    except ValueError:
        raise FormatError(f"invalid {name} byte: {value}")


def decode_instruction(data: bytes, expected_tag: InstructionTag) -> PoolInstruction:
    """Decode an instruction buffer into its payload dataclass.

    Raises:
        InvalidTagError: If the leading tag is not expected_tag
        FormatError: If the buffer is shorter than the tag's minimum size
    """
    data = bytes(data)
    if len(data) < 1:
        raise FormatError("instruction data is empty")
    if data[0] != expected_tag:
        raise InvalidTagError(int(expected_tag), data[0])
    tag = peek_instruction_tag(data)

    min_size = _MIN_SIZES[tag]
    if len(data) < min_size:
        raise FormatError(
            f"{tag.name} data too short: {len(data)} bytes (expected {min_size})"
        )

    pool_seed = data[1 : 1 + POOL_SEED_LENGTH]
    offset = 1 + POOL_SEED_LENGTH

    if tag == InstructionTag.INIT:
        return InitInstruction(
            pool_seed=pool_seed,
            max_number_of_assets=decode_u32(data, offset),
            number_of_markets=decode_u16(data, offset + 4),
        )

    if tag == InstructionTag.CREATE:
        number_of_markets = decode_u16(data, offset)
        fee_collection_period = decode_u64(data, offset + 2)
        fee_ratio = decode_u16(data, offset + 10)
        offset += 12
        markets = []
        for _ in range(number_of_markets):
            markets.append(decode_pubkey(data, offset))
            offset += PUBKEY_LENGTH
        # Deposit amounts consume the rest of the buffer
        if (len(data) - offset) % 8 != 0:
            raise FormatError(
                f"trailing deposit amounts are not a multiple of 8 bytes: "
                f"{len(data) - offset}"
            )
        deposit_amounts = []
        while offset < len(data):
            deposit_amounts.append(decode_u64(data, offset))
            offset += 8
        return CreateInstruction(
            pool_seed=pool_seed,
            fee_collection_period=fee_collection_period,
            fee_ratio=fee_ratio,
            markets=markets,
            deposit_amounts=deposit_amounts,
        )

    if tag == InstructionTag.DEPOSIT:
        return DepositInstruction(
            pool_seed=pool_seed,
            pool_token_amount=decode_u64(data, offset),
        )

    if tag == InstructionTag.CREATE_ORDER:
        return CreateOrderInstruction(
            pool_seed=pool_seed,
            side=_enum_field(OrderSide, decode_u8(data, 33), "side"),
            limit_price=decode_u64(data, 34),
            ratio_of_pool_assets_to_trade=decode_u16(data, 42),
            order_type=_enum_field(OrderType, decode_u8(data, 44), "order type"),
            client_id=decode_u64(data, 45),
            self_trade_behavior=_enum_field(
                SelfTradeBehavior, decode_u8(data, 53), "self trade behavior"
            ),
            source_index=decode_u64(data, 54),
            target_index=decode_u64(data, 62),
            market_index=decode_u16(data, 70),
            coin_lot_size=decode_u64(data, 72),
            pc_lot_size=decode_u64(data, 80),
            target_mint=decode_pubkey(data, 88),
            serum_limit=decode_u16(data, 120),
        )

    if tag == InstructionTag.CANCEL_ORDER:
        return CancelOrderInstruction(
            pool_seed=pool_seed,
            side=_enum_field(OrderSide, decode_u8(data, offset), "side"),
            order_id=decode_u128(data, offset + 1),
        )

    if tag == InstructionTag.SETTLE_FUNDS:
        return SettleFundsInstruction(
            pool_seed=pool_seed,
            pc_index=decode_u64(data, offset),
            coin_index=decode_u64(data, offset + 8),
        )

    if tag == InstructionTag.REDEEM:
        return RedeemInstruction(
            pool_seed=pool_seed,
            pool_token_amount=decode_u64(data, offset),
        )

    if tag == InstructionTag.COLLECT_FEES:
        return CollectFeesInstruction(pool_seed=pool_seed)

    raise InvalidTagError(int(expected_tag), data[0])


# ============================================================================
# BUILDERS
# ============================================================================


def _meta(pubkey: Pubkey, is_signer: bool = False, is_writable: bool = False) -> AccountMeta:
    return AccountMeta(pubkey=pubkey, is_signer=is_signer, is_writable=is_writable)


def build_init_instruction(
    params: InitInstruction,
    pool: Pubkey,
    pool_mint: Pubkey,
    payer: Pubkey,
    program_id: Pubkey = PROGRAM_ID,
) -> Instruction:
    """Build the init instruction.

    Accounts:
    0. system_program
    1. rent_sysvar
    2. token_program
    3. pool (writable)
    4. pool_mint (writable)
    5. payer (signer, writable)
    """
    accounts = [
        _meta(SYSTEM_PROGRAM_ID),
        _meta(RENT_SYSVAR_ID),
        _meta(TOKEN_PROGRAM_ID),
        _meta(pool, is_writable=True),
        _meta(pool_mint, is_writable=True),
        _meta(payer, is_signer=True, is_writable=True),
    ]
    return Instruction(program_id=program_id, accounts=accounts, data=encode_instruction(params))


def build_create_instruction(
    params: CreateInstruction,
    pool: Pubkey,
    pool_mint: Pubkey,
    pool_asset_accounts: List[Pubkey],
    target_pool_token: Pubkey,
    source_owner: Pubkey,
    source_asset_accounts: List[Pubkey],
    signal_provider: Pubkey,
    serum_program_id: Pubkey = SERUM_PROGRAM_ID,
    program_id: Pubkey = PROGRAM_ID,
    market_registry: Optional[MarketRegistry] = None,
) -> Instruction:
    """Build the create instruction.

    Accounts:
    0. token_program
    1. clock_sysvar
    2. serum_program
    3. signal_provider
    4. pool_mint (writable)
    5. target_pool_token (writable)
    6. pool (writable)
    7+. pool_asset_accounts (writable)
    then source_owner (signer), source_asset_accounts (writable)

    Raises:
        UnauthorizedMarketError: If a registry is given and a market is not on it
        DeprecatedMarketError: If a registry is given and a market is retired
    """
    if market_registry is not None:
        market_registry.validate(params.markets)

    accounts = [
        _meta(TOKEN_PROGRAM_ID),
        _meta(CLOCK_SYSVAR_ID),
        _meta(serum_program_id),
        _meta(signal_provider),
        _meta(pool_mint, is_writable=True),
        _meta(target_pool_token, is_writable=True),
        _meta(pool, is_writable=True),
    ]
    accounts.extend(_meta(a, is_writable=True) for a in pool_asset_accounts)
    accounts.append(_meta(source_owner, is_signer=True))
    accounts.extend(_meta(a, is_writable=True) for a in source_asset_accounts)
    return Instruction(program_id=program_id, accounts=accounts, data=encode_instruction(params))


def build_deposit_instruction(
    params: DepositInstruction,
    pool: Pubkey,
    pool_mint: Pubkey,
    pool_asset_accounts: List[Pubkey],
    target_pool_token: Pubkey,
    signal_provider_fee_receiver: Pubkey,
    fee_receiver: Pubkey,
    buy_and_burn: Pubkey,
    source_owner: Pubkey,
    source_asset_accounts: List[Pubkey],
    program_id: Pubkey = PROGRAM_ID,
) -> Instruction:
    """Build the deposit instruction.

    Accounts:
    0. token_program
    1. pool_mint (writable)
    2. target_pool_token (writable)
    3. signal_provider_fee_receiver (writable)
    4. fee_receiver (writable)
    5. buy_and_burn (writable)
    6. pool
    7+. pool_asset_accounts (writable)
    then source_owner (signer), source_asset_accounts (writable)
    """
    accounts = [
        _meta(TOKEN_PROGRAM_ID),
        _meta(pool_mint, is_writable=True),
        _meta(target_pool_token, is_writable=True),
        _meta(signal_provider_fee_receiver, is_writable=True),
        _meta(fee_receiver, is_writable=True),
        _meta(buy_and_burn, is_writable=True),
        _meta(pool),
    ]
    accounts.extend(_meta(a, is_writable=True) for a in pool_asset_accounts)
    accounts.append(_meta(source_owner, is_signer=True))
    accounts.extend(_meta(a, is_writable=True) for a in source_asset_accounts)
    return Instruction(program_id=program_id, accounts=accounts, data=encode_instruction(params))


def build_create_order_instruction(
    params: CreateOrderInstruction,
    signal_provider: Pubkey,
    market: Pubkey,
    payer_pool_asset: Pubkey,
    open_orders: Pubkey,
    request_queue: Pubkey,
    event_queue: Pubkey,
    bids: Pubkey,
    asks: Pubkey,
    pool: Pubkey,
    coin_vault: Pubkey,
    pc_vault: Pubkey,
    serum_program_id: Pubkey = SERUM_PROGRAM_ID,
    referrer: Optional[Pubkey] = None,
    program_id: Pubkey = PROGRAM_ID,
) -> Instruction:
    """Build the create_order instruction.

    Accounts:
    0. signal_provider (signer)
    1. market (writable)
    2. payer_pool_asset (writable)
    3. open_orders (writable)
    4. event_queue (writable)
    5. request_queue (writable)
    6. bids (writable)
    7. asks (writable)
    8. pool (writable)
    9. coin_vault (writable)
    10. pc_vault (writable)
    11. token_program
    12. rent_sysvar
    13. serum_program
    14. referrer (writable, optional)
    """
    accounts = [
        _meta(signal_provider, is_signer=True),
        _meta(market, is_writable=True),
        _meta(payer_pool_asset, is_writable=True),
        _meta(open_orders, is_writable=True),
        _meta(event_queue, is_writable=True),
        _meta(request_queue, is_writable=True),
        _meta(bids, is_writable=True),
        _meta(asks, is_writable=True),
        _meta(pool, is_writable=True),
        _meta(coin_vault, is_writable=True),
        _meta(pc_vault, is_writable=True),
        _meta(TOKEN_PROGRAM_ID),
        _meta(RENT_SYSVAR_ID),
        _meta(serum_program_id),
    ]
    if referrer is not None:
        accounts.append(_meta(referrer, is_writable=True))
    return Instruction(program_id=program_id, accounts=accounts, data=encode_instruction(params))


def build_cancel_order_instruction(
    params: CancelOrderInstruction,
    signal_provider: Pubkey,
    market: Pubkey,
    open_orders: Pubkey,
    event_queue: Pubkey,
    bids: Pubkey,
    asks: Pubkey,
    pool: Pubkey,
    serum_program_id: Pubkey = SERUM_PROGRAM_ID,
    program_id: Pubkey = PROGRAM_ID,
) -> Instruction:
    """Build the cancel_order instruction.

    Accounts:
    0. signal_provider (signer)
    1. market
    2. open_orders (writable)
    3. event_queue (writable)
    4. bids (writable)
    5. asks (writable)
    6. pool
    7. serum_program
    """
    accounts = [
        _meta(signal_provider, is_signer=True),
        _meta(market),
        _meta(open_orders, is_writable=True),
        _meta(event_queue, is_writable=True),
        _meta(bids, is_writable=True),
        _meta(asks, is_writable=True),
        _meta(pool),
        _meta(serum_program_id),
    ]
    return Instruction(program_id=program_id, accounts=accounts, data=encode_instruction(params))


def build_settle_funds_instruction(
    params: SettleFundsInstruction,
    market: Pubkey,
    open_orders: Pubkey,
    pool: Pubkey,
    pool_mint: Pubkey,
    coin_vault: Pubkey,
    pc_vault: Pubkey,
    coin_pool_asset: Pubkey,
    pc_pool_asset: Pubkey,
    vault_signer: Pubkey,
    serum_program_id: Pubkey = SERUM_PROGRAM_ID,
    referrer: Optional[Pubkey] = None,
    program_id: Pubkey = PROGRAM_ID,
) -> Instruction:
    """Build the settle_funds instruction.

    Accounts:
    0. market (writable)
    1. open_orders (writable)
    2. pool (writable)
    3. pool_mint
    4. coin_vault (writable)
    5. pc_vault (writable)
    6. coin_pool_asset (writable)
    7. pc_pool_asset (writable)
    8. vault_signer
    9. token_program
    10. serum_program
    11. referrer (writable, optional)
    """
    accounts = [
        _meta(market, is_writable=True),
        _meta(open_orders, is_writable=True),
        _meta(pool, is_writable=True),
        _meta(pool_mint),
        _meta(coin_vault, is_writable=True),
        _meta(pc_vault, is_writable=True),
        _meta(coin_pool_asset, is_writable=True),
        _meta(pc_pool_asset, is_writable=True),
        _meta(vault_signer),
        _meta(TOKEN_PROGRAM_ID),
        _meta(serum_program_id),
    ]
    if referrer is not None:
        accounts.append(_meta(referrer, is_writable=True))
    return Instruction(program_id=program_id, accounts=accounts, data=encode_instruction(params))


def build_redeem_instruction(
    params: RedeemInstruction,
    pool: Pubkey,
    pool_mint: Pubkey,
    pool_asset_accounts: List[Pubkey],
    source_pool_token_owner: Pubkey,
    source_pool_token: Pubkey,
    target_asset_accounts: List[Pubkey],
    program_id: Pubkey = PROGRAM_ID,
) -> Instruction:
    """Build the redeem instruction.

    Accounts:
    0. token_program
    1. clock_sysvar
    2. pool_mint (writable)
    3. source_pool_token_owner (signer)
    4. source_pool_token (writable)
    5. pool (writable)
    6+. pool_asset_accounts (writable), then target_asset_accounts (writable)
    """
    accounts = [
        _meta(TOKEN_PROGRAM_ID),
        _meta(CLOCK_SYSVAR_ID),
        _meta(pool_mint, is_writable=True),
        _meta(source_pool_token_owner, is_signer=True),
        _meta(source_pool_token, is_writable=True),
        _meta(pool, is_writable=True),
    ]
    accounts.extend(_meta(a, is_writable=True) for a in pool_asset_accounts)
    accounts.extend(_meta(a, is_writable=True) for a in target_asset_accounts)
    return Instruction(program_id=program_id, accounts=accounts, data=encode_instruction(params))


def build_collect_fees_instruction(
    params: CollectFeesInstruction,
    pool: Pubkey,
    pool_mint: Pubkey,
    signal_provider_pool_token: Pubkey,
    fee_pool_token: Pubkey,
    buy_and_burn_pool_token: Pubkey,
    program_id: Pubkey = PROGRAM_ID,
) -> Instruction:
    """Build the collect_fees instruction.

    Accounts:
    0. token_program
    1. clock_sysvar
    2. pool (writable)
    3. pool_mint (writable)
    4. signal_provider_pool_token (writable)
    5. fee_pool_token (writable)
    6. buy_and_burn_pool_token (writable)
    """
    accounts = [
        _meta(TOKEN_PROGRAM_ID),
        _meta(CLOCK_SYSVAR_ID),
        _meta(pool, is_writable=True),
        _meta(pool_mint, is_writable=True),
        _meta(signal_provider_pool_token, is_writable=True),
        _meta(fee_pool_token, is_writable=True),
        _meta(buy_and_burn_pool_token, is_writable=True),
    ]
    return Instruction(program_id=program_id, accounts=accounts, data=encode_instruction(params))
