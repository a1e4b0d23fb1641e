"""Tests for the instruction codec and builders."""

import struct

import pytest
from solders.pubkey import Pubkey

from bonfida_bot.program import (
    CancelOrderInstruction,
    CollectFeesInstruction,
    CreateInstruction,
    CreateOrderInstruction,
    DepositInstruction,
    DeprecatedMarketError,
    FormatError,
    InitInstruction,
    InstructionTag,
    InvalidTagError,
    MarketRegistry,
    OrderSide,
    OrderType,
    RedeemInstruction,
    SelfTradeBehavior,
    SettleFundsInstruction,
    UnauthorizedMarketError,
    ValueOverflowError,
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
    fee_ratio_from_percentage,
    peek_instruction_tag,
)
from bonfida_bot.program.constants import (
    CLOCK_SYSVAR_ID,
    PROGRAM_ID,
    RENT_SYSVAR_ID,
    SERUM_PROGRAM_ID,
    SYSTEM_PROGRAM_ID,
    TOKEN_PROGRAM_ID,
)

SEED = bytes(range(32))


def make_create_order(**overrides) -> CreateOrderInstruction:
    fields = dict(
        pool_seed=SEED,
        side=OrderSide.ASK,
        limit_price=12345,
        ratio_of_pool_assets_to_trade=1 << 15,
        order_type=OrderType.IMMEDIATE_OR_CANCEL,
        client_id=(1 << 64) - 1,
        self_trade_behavior=SelfTradeBehavior.ABORT_TRANSACTION,
        source_index=1,
        target_index=0,
        market_index=3,
        coin_lot_size=100,
        pc_lot_size=10,
        target_mint=Pubkey.new_unique(),
        serum_limit=65535,
    )
    fields.update(overrides)
    return CreateOrderInstruction(**fields)


def all_instructions():
    return [
        InitInstruction(pool_seed=SEED, max_number_of_assets=10, number_of_markets=2),
        CreateInstruction(
            pool_seed=SEED,
            fee_collection_period=604800,
            fee_ratio=fee_ratio_from_percentage(1),
            markets=[Pubkey.new_unique(), Pubkey.new_unique()],
            deposit_amounts=[1_000_000, 0, (1 << 64) - 1],
        ),
        DepositInstruction(pool_seed=SEED, pool_token_amount=42),
        make_create_order(),
        CancelOrderInstruction(pool_seed=SEED, side=OrderSide.BID, order_id=(1 << 128) - 1),
        SettleFundsInstruction(pool_seed=SEED, pc_index=1, coin_index=0),
        RedeemInstruction(pool_seed=SEED, pool_token_amount=7),
        CollectFeesInstruction(pool_seed=SEED),
    ]


class TestRoundTrip:
    @pytest.mark.parametrize("ix", all_instructions(), ids=lambda ix: type(ix).__name__)
    def test_decode_encode(self, ix):
        data = encode_instruction(ix)

        assert data[0] == ix.tag
        assert data[1:33] == SEED
        assert decode_instruction(data, ix.tag) == ix

    def test_create_without_markets_or_deposits(self):
        ix = CreateInstruction(
            pool_seed=SEED,
            fee_collection_period=0,
            fee_ratio=0,
            markets=[],
            deposit_amounts=[],
        )
        data = encode_instruction(ix)

        assert len(data) == 45
        assert decode_instruction(data, InstructionTag.CREATE) == ix


class TestWireLayout:
    def test_fixed_sizes(self):
        sizes = {type(ix): len(encode_instruction(ix)) for ix in all_instructions()}

        assert sizes[InitInstruction] == 39
        assert sizes[DepositInstruction] == 41
        assert sizes[CreateOrderInstruction] == 122
        assert sizes[CancelOrderInstruction] == 50
        assert sizes[SettleFundsInstruction] == 49
        assert sizes[RedeemInstruction] == 41
        assert sizes[CollectFeesInstruction] == 33

    def test_create_layout(self):
        markets = [Pubkey.new_unique()]
        ix = CreateInstruction(
            pool_seed=SEED,
            fee_collection_period=604800,
            fee_ratio=655,
            markets=markets,
            deposit_amounts=[5, 6],
        )
        data = encode_instruction(ix)

        assert struct.unpack_from("<H", data, 33)[0] == 1
        assert struct.unpack_from("<Q", data, 35)[0] == 604800
        assert struct.unpack_from("<H", data, 43)[0] == 655
        assert data[45:77] == bytes(markets[0])
        assert struct.unpack_from("<QQ", data, 77) == (5, 6)
        assert len(data) == 93

    def test_create_order_market_index_offset(self):
        data = encode_instruction(make_create_order(market_index=0x0102))

        assert data[70:72] == b"\x02\x01"

    def test_little_endian_amount(self):
        data = encode_instruction(DepositInstruction(pool_seed=SEED, pool_token_amount=1))

        assert data[33:41] == b"\x01" + bytes(7)


class TestEncodeErrors:
    def test_u64_overflow(self):
        ix = DepositInstruction(pool_seed=SEED, pool_token_amount=1 << 64)

        with pytest.raises(ValueOverflowError) as exc_info:
            encode_instruction(ix)
        assert exc_info.value.kind == "u64"
        assert isinstance(exc_info.value, OverflowError)

    def test_u16_overflow(self):
        with pytest.raises(ValueOverflowError):
            encode_instruction(make_create_order(serum_limit=1 << 16))

    def test_u128_overflow(self):
        ix = CancelOrderInstruction(pool_seed=SEED, side=OrderSide.BID, order_id=1 << 128)
        with pytest.raises(ValueOverflowError):
            encode_instruction(ix)

    def test_negative_value(self):
        with pytest.raises(ValueOverflowError):
            encode_instruction(RedeemInstruction(pool_seed=SEED, pool_token_amount=-1))

    def test_bad_seed_length(self):
        with pytest.raises(FormatError):
            encode_instruction(CollectFeesInstruction(pool_seed=bytes(31)))

    def test_not_an_instruction(self):
        with pytest.raises(TypeError):
            encode_instruction("deposit")


class TestDecodeErrors:
    def test_empty(self):
        with pytest.raises(FormatError):
            decode_instruction(b"", InstructionTag.DEPOSIT)

    def test_tag_mismatch(self):
        data = encode_instruction(DepositInstruction(pool_seed=SEED, pool_token_amount=1))

        with pytest.raises(InvalidTagError) as exc_info:
            decode_instruction(data, InstructionTag.REDEEM)
        assert exc_info.value.expected == InstructionTag.REDEEM
        assert exc_info.value.actual == InstructionTag.DEPOSIT

    @pytest.mark.parametrize("ix", all_instructions(), ids=lambda ix: type(ix).__name__)
    def test_truncated(self, ix):
        data = encode_instruction(ix)
        min_size = 45 if isinstance(ix, CreateInstruction) else len(data)

        with pytest.raises(FormatError):
            decode_instruction(data[: min_size - 1], ix.tag)

    def test_create_markets_past_end(self):
        data = bytearray(encode_instruction(all_instructions()[1]))
        struct.pack_into("<H", data, 33, 200)

        with pytest.raises(FormatError):
            decode_instruction(bytes(data), InstructionTag.CREATE)

    def test_create_partial_deposit_amount(self):
        data = encode_instruction(all_instructions()[1]) + b"\x01\x02"

        with pytest.raises(FormatError):
            decode_instruction(data, InstructionTag.CREATE)

    def test_unknown_side_byte(self):
        data = bytearray(encode_instruction(make_create_order()))
        data[33] = 7

        with pytest.raises(FormatError):
            decode_instruction(bytes(data), InstructionTag.CREATE_ORDER)

    def test_peek_unknown_tag(self):
        with pytest.raises(InvalidTagError) as exc_info:
            peek_instruction_tag(b"\x09")
        assert exc_info.value.expected is None

    def test_decode_does_not_mutate(self):
        data = bytearray(encode_instruction(make_create_order()))
        before = bytes(data)

        decode_instruction(data, InstructionTag.CREATE_ORDER)

        assert bytes(data) == before


def flags(ix):
    return [(m.pubkey, m.is_signer, m.is_writable) for m in ix.accounts]


class TestBuilders:
    def test_init_accounts(self):
        pool, mint, payer = Pubkey.new_unique(), Pubkey.new_unique(), Pubkey.new_unique()
        params = InitInstruction(pool_seed=SEED, max_number_of_assets=5, number_of_markets=1)

        ix = build_init_instruction(params, pool, mint, payer)

        assert ix.program_id == PROGRAM_ID
        assert bytes(ix.data) == encode_instruction(params)
        assert flags(ix) == [
            (SYSTEM_PROGRAM_ID, False, False),
            (RENT_SYSVAR_ID, False, False),
            (TOKEN_PROGRAM_ID, False, False),
            (pool, False, True),
            (mint, False, True),
            (payer, True, True),
        ]

    def test_custom_program_id(self):
        program_id = Pubkey.new_unique()
        params = CollectFeesInstruction(pool_seed=SEED)
        keys = [Pubkey.new_unique() for _ in range(5)]

        ix = build_collect_fees_instruction(params, *keys, program_id=program_id)

        assert ix.program_id == program_id
        assert len(ix.accounts) == 7
        assert ix.accounts[0].pubkey == TOKEN_PROGRAM_ID
        assert ix.accounts[1].pubkey == CLOCK_SYSVAR_ID
        assert all(m.is_writable for m in ix.accounts[2:])

    def test_create_variable_accounts(self):
        pool_assets = [Pubkey.new_unique() for _ in range(3)]
        source_assets = [Pubkey.new_unique() for _ in range(3)]
        owner = Pubkey.new_unique()
        signal_provider = Pubkey.new_unique()
        params = all_instructions()[1]

        ix = build_create_instruction(
            params,
            pool=Pubkey.new_unique(),
            pool_mint=Pubkey.new_unique(),
            pool_asset_accounts=pool_assets,
            target_pool_token=Pubkey.new_unique(),
            source_owner=owner,
            source_asset_accounts=source_assets,
            signal_provider=signal_provider,
        )

        assert len(ix.accounts) == 7 + 3 + 1 + 3
        assert ix.accounts[2].pubkey == SERUM_PROGRAM_ID
        assert flags(ix)[3] == (signal_provider, False, False)
        assert [m.pubkey for m in ix.accounts[7:10]] == pool_assets
        assert flags(ix)[10] == (owner, True, False)
        assert [m.pubkey for m in ix.accounts[11:]] == source_assets

    def test_deposit_accounts(self):
        keys = [Pubkey.new_unique() for _ in range(6)]
        pool_assets = [Pubkey.new_unique()]
        owner, source = Pubkey.new_unique(), Pubkey.new_unique()

        ix = build_deposit_instruction(
            DepositInstruction(pool_seed=SEED, pool_token_amount=1),
            pool=keys[0],
            pool_mint=keys[1],
            pool_asset_accounts=pool_assets,
            target_pool_token=keys[2],
            signal_provider_fee_receiver=keys[3],
            fee_receiver=keys[4],
            buy_and_burn=keys[5],
            source_owner=owner,
            source_asset_accounts=[source],
        )

        assert flags(ix) == [
            (TOKEN_PROGRAM_ID, False, False),
            (keys[1], False, True),
            (keys[2], False, True),
            (keys[3], False, True),
            (keys[4], False, True),
            (keys[5], False, True),
            (keys[0], False, False),
            (pool_assets[0], False, True),
            (owner, True, False),
            (source, False, True),
        ]

    def _create_order(self, referrer=None, payload=None):
        keys = [Pubkey.new_unique() for _ in range(11)]
        payload = payload or make_create_order()
        return keys, build_create_order_instruction(payload, *keys, referrer=referrer)

    def test_create_order_accounts(self):
        keys, ix = self._create_order()
        signal_provider, market, payer, open_orders, request_queue, event_queue = keys[:6]

        assert len(ix.accounts) == 14
        assert flags(ix)[0] == (signal_provider, True, False)
        assert ix.accounts[1].pubkey == market
        assert ix.accounts[3].pubkey == open_orders
        # Event queue comes before the request queue in the account list
        assert ix.accounts[4].pubkey == event_queue
        assert ix.accounts[5].pubkey == request_queue
        assert [m.pubkey for m in ix.accounts[11:]] == [
            TOKEN_PROGRAM_ID,
            RENT_SYSVAR_ID,
            SERUM_PROGRAM_ID,
        ]

    def test_referrer_only_in_accounts(self):
        referrer = Pubkey.new_unique()
        payload = make_create_order()
        _, without = self._create_order(payload=payload)
        _, with_referrer = self._create_order(referrer, payload)

        assert len(with_referrer.accounts) == len(without.accounts) + 1
        assert flags(with_referrer)[-1] == (referrer, False, True)
        assert bytes(with_referrer.data) == bytes(without.data)

    def test_cancel_order_accounts(self):
        keys = [Pubkey.new_unique() for _ in range(7)]
        params = CancelOrderInstruction(pool_seed=SEED, side=OrderSide.ASK, order_id=99)

        ix = build_cancel_order_instruction(params, *keys)

        assert flags(ix) == [
            (keys[0], True, False),
            (keys[1], False, False),
            (keys[2], False, True),
            (keys[3], False, True),
            (keys[4], False, True),
            (keys[5], False, True),
            (keys[6], False, False),
            (SERUM_PROGRAM_ID, False, False),
        ]

    def test_settle_funds_accounts(self):
        keys = [Pubkey.new_unique() for _ in range(9)]
        referrer = Pubkey.new_unique()
        params = SettleFundsInstruction(pool_seed=SEED, pc_index=0, coin_index=1)

        ix = build_settle_funds_instruction(params, *keys, referrer=referrer)

        assert [m.pubkey for m in ix.accounts] == keys + [
            TOKEN_PROGRAM_ID,
            SERUM_PROGRAM_ID,
            referrer,
        ]
        assert [m.is_writable for m in ix.accounts] == [
            True, True, True, False, True, True, True, True, False, False, False, True,
        ]
        assert not any(m.is_signer for m in ix.accounts)

    def test_redeem_accounts(self):
        pool, mint, owner, source = (Pubkey.new_unique() for _ in range(4))
        pool_assets = [Pubkey.new_unique(), Pubkey.new_unique()]
        targets = [Pubkey.new_unique(), Pubkey.new_unique()]

        ix = build_redeem_instruction(
            RedeemInstruction(pool_seed=SEED, pool_token_amount=3),
            pool,
            mint,
            pool_assets,
            owner,
            source,
            targets,
        )

        assert [m.pubkey for m in ix.accounts] == [
            TOKEN_PROGRAM_ID,
            CLOCK_SYSVAR_ID,
            mint,
            owner,
            source,
            pool,
        ] + pool_assets + targets
        assert flags(ix)[3] == (owner, True, False)


class TestMarketAuthorization:
    def _build(self, registry, markets):
        params = CreateInstruction(
            pool_seed=SEED,
            fee_collection_period=604800,
            fee_ratio=0,
            markets=markets,
            deposit_amounts=[1],
        )
        return build_create_instruction(
            params,
            pool=Pubkey.new_unique(),
            pool_mint=Pubkey.new_unique(),
            pool_asset_accounts=[Pubkey.new_unique()],
            target_pool_token=Pubkey.new_unique(),
            source_owner=Pubkey.new_unique(),
            source_asset_accounts=[Pubkey.new_unique()],
            signal_provider=Pubkey.new_unique(),
            market_registry=registry,
        )

    def _registry(self, active, retired):
        return MarketRegistry.from_list(
            [
                {"address": str(active), "name": "FIDA/USDC", "deprecated": False,
                 "programId": str(SERUM_PROGRAM_ID)},
                {"address": str(retired), "name": "FIDA/USDT", "deprecated": True,
                 "programId": str(SERUM_PROGRAM_ID)},
            ]
        )

    def test_listed_market(self):
        active, retired = Pubkey.new_unique(), Pubkey.new_unique()

        ix = self._build(self._registry(active, retired), [active])

        assert ix.program_id == PROGRAM_ID

    def test_unlisted_market(self):
        active, retired = Pubkey.new_unique(), Pubkey.new_unique()
        unknown = Pubkey.new_unique()

        with pytest.raises(UnauthorizedMarketError) as exc_info:
            self._build(self._registry(active, retired), [active, unknown])
        assert exc_info.value.market == str(unknown)

    def test_deprecated_market(self):
        active, retired = Pubkey.new_unique(), Pubkey.new_unique()

        with pytest.raises(DeprecatedMarketError):
            self._build(self._registry(active, retired), [retired])

    def test_no_registry_skips_validation(self):
        ix = self._build(None, [Pubkey.new_unique()])

        assert len(ix.accounts) == 10
