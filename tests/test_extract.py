"""Tests for event extraction from pool transactions."""

import logging

from solders.instruction import CompiledInstruction
from solders.pubkey import Pubkey

from bonfida_bot.history import (
    OrderEvent,
    SettledAmount,
    SettleEvent,
    TransactionRecord,
    decode_token_transfer,
    extract_pool_events,
)
from bonfida_bot.program import OrderSide
from bonfida_bot.program.constants import PROGRAM_ID, TOKEN_PROGRAM_ID

from builders import FakePool, token_transfer_data


class TestDecodeTokenTransfer:
    def setup_method(self):
        self.destination = Pubkey.new_unique()
        self.keys = [Pubkey.new_unique(), self.destination, Pubkey.new_unique(), TOKEN_PROGRAM_ID]

    def test_transfer(self):
        ix = CompiledInstruction(3, token_transfer_data(500), bytes([0, 1, 2]))

        assert decode_token_transfer(ix, self.keys) == (self.destination, 500)

    def test_other_token_instruction(self):
        # MintTo shares the data shape of a transfer
        ix = CompiledInstruction(3, bytes([7]) + token_transfer_data(500)[1:], bytes([0, 1, 2]))

        assert decode_token_transfer(ix, self.keys) is None

    def test_other_program(self):
        ix = CompiledInstruction(0, token_transfer_data(500), bytes([0, 1, 2]))

        assert decode_token_transfer(ix, self.keys) is None

    def test_short_data(self):
        ix = CompiledInstruction(3, bytes([3, 1]), bytes([0, 1, 2]))

        assert decode_token_transfer(ix, self.keys) is None


class TestExtractCreateOrder:
    def test_order_event(self):
        pool = FakePool()
        oo = Pubkey.new_unique()
        tx = pool.create_order_tx("sig1", 10, oo, 1_500_000)

        events = extract_pool_events(tx, pool.info())

        assert len(events) == 1
        event = events[0]
        assert isinstance(event, OrderEvent)
        assert event.signature == "sig1"
        assert event.slot == 10
        assert event.open_orders == oo
        assert event.market == pool.market
        assert event.transferred_amount == 1_500_000
        assert event.order == pool.create_order()

    def test_market_falls_back_to_instruction_account(self):
        pool = FakePool()
        info = pool.info()
        info.authorized_markets = []
        tx = pool.create_order_tx("sig1", 10, Pubkey.new_unique(), 1)

        events = extract_pool_events(tx, info)

        assert events[0].market == pool.market

    def test_no_inner_instructions(self, caplog):
        pool = FakePool()
        tx = pool.create_order_tx("sig1", 10, Pubkey.new_unique(), None)

        with caplog.at_level(logging.WARNING):
            events = extract_pool_events(tx, pool.info())

        assert events == []
        assert "had no effect" in caplog.text

    def test_other_pool_ignored(self):
        pool = FakePool()
        other = FakePool(seed=bytes([2]) * 32)
        tx = other.create_order_tx("sig1", 10, Pubkey.new_unique(), 5)

        assert extract_pool_events(tx, pool.info()) == []

    def test_other_program_ignored(self):
        pool = FakePool()
        tx = pool.create_order_tx("sig1", 10, Pubkey.new_unique(), 5)

        assert extract_pool_events(tx, pool.info(), program_id=Pubkey.new_unique()) == []

    def test_undecodable_instruction_skipped(self, caplog):
        pool = FakePool()
        tx = pool.create_order_tx("sig1", 10, Pubkey.new_unique(), 5)
        ix = tx.instructions[0]
        tx.instructions[0] = CompiledInstruction(ix.program_id_index, bytes(ix.data)[:80], bytes(ix.accounts))

        with caplog.at_level(logging.WARNING):
            events = extract_pool_events(tx, pool.info())

        assert events == []
        assert "sig1" in caplog.text


class TestExtractSettle:
    def test_aggregates_pool_transfers(self):
        pool = FakePool()
        oo = Pubkey.new_unique()
        tx = pool.settle_tx("s", 11, oo, coin_amount=40, pc_amount=7, referrer_amount=3)
        tx.inner_instructions[0].append(
            CompiledInstruction(9, token_transfer_data(60), bytes([4, 6, 8]))
        )

        events = extract_pool_events(tx, pool.info())

        assert len(events) == 1
        event = events[0]
        assert isinstance(event, SettleEvent)
        assert event.open_orders == oo
        assert event.market == pool.market
        assert event.amounts == [
            SettledAmount(mint=pool.coin_mint, amount=100),
            SettledAmount(mint=pool.pc_mint, amount=7),
        ]

    def test_referrer_only_settle_dropped(self, caplog):
        pool = FakePool()
        tx = pool.settle_tx("s", 11, Pubkey.new_unique(), referrer_amount=3)

        with caplog.at_level(logging.WARNING):
            events = extract_pool_events(tx, pool.info())

        assert events == []
        assert "settle had no effect" in caplog.text


class TestEventOrderWithinTransaction:
    def test_reverse_instruction_order(self):
        pool = FakePool()
        oo = Pubkey.new_unique()
        create = pool.create_order_tx("tx", 5, oo, 10)
        settle = pool.settle_tx("tx", 5, oo, coin_amount=1)

        # Append the settle instruction after the create order, remapping its accounts
        offset = len(create.account_keys)
        keys = create.account_keys + settle.account_keys
        settle_ix = settle.instructions[0]
        instructions = [
            create.instructions[0],
            CompiledInstruction(
                settle_ix.program_id_index + offset,
                bytes(settle_ix.data),
                bytes(a + offset for a in settle_ix.accounts),
            ),
        ]
        inner = {
            0: create.inner_instructions[0],
            1: [
                CompiledInstruction(
                    ix.program_id_index + offset,
                    bytes(ix.data),
                    bytes(a + offset for a in ix.accounts),
                )
                for ix in settle.inner_instructions[0]
            ],
        }
        tx = TransactionRecord("tx", 5, keys, instructions, inner)

        events = extract_pool_events(tx, pool.info(), PROGRAM_ID, TOKEN_PROGRAM_ID)

        assert [type(e) for e in events] == [SettleEvent, OrderEvent]
        assert events[1].order.side == OrderSide.BID
