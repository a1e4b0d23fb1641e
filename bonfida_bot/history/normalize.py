"""Conversion of raw order amounts to human-readable units."""

from decimal import Decimal
from typing import Dict

from solders.pubkey import Pubkey

from ..program.errors import FormatError
from ..program.types import MarketData
from .types import PairedOrder, ReconstructedOrder, SettledAmount


def normalize_price(limit_price: int, pc_lot_size: int, coin_lot_size: int) -> Decimal:
    """Rescale a raw limit price: price * pc_lot_size / coin_lot_size."""
    if coin_lot_size == 0:
        raise FormatError("market coin lot size is zero")
    return Decimal(limit_price) * Decimal(pc_lot_size) / Decimal(coin_lot_size)


def normalize_amount(amount: int, decimals: int) -> Decimal:
    """Divide a raw token amount by 10^decimals."""
    return Decimal(amount) / (Decimal(10) ** decimals)


def normalize_order(
    paired: PairedOrder,
    market: MarketData,
    decimals: Dict[Pubkey, int],
) -> ReconstructedOrder:
    """Build a ReconstructedOrder in human-readable units.

    Args:
        paired: Order event with its settle event, if any
        market: Metadata of the order's market
        decimals: Decimals of every mint the order and settle moved

    Raises:
        KeyError: If a moved mint has no entry in `decimals`
    """
    event = paired.order
    order = event.order
    transferred_mint = market.source_mint(order.side)

    settle_signature = None
    settled_amounts = []
    if paired.settle is not None:
        settle_signature = paired.settle.signature
        settled_amounts = [
            SettledAmount(mint=s.mint, amount=normalize_amount(s.amount, decimals[s.mint]))
            for s in paired.settle.amounts
        ]

    return ReconstructedOrder(
        signature=event.signature,
        slot=event.slot,
        market=event.market,
        open_orders=event.open_orders,
        side=order.side,
        order_type=order.order_type,
        client_id=order.client_id,
        ratio_of_pool_assets_to_trade=order.ratio_of_pool_assets_to_trade,
        limit_price=normalize_price(order.limit_price, market.pc_lot_size, market.coin_lot_size),
        transferred_mint=transferred_mint,
        transferred_amount=normalize_amount(
            event.transferred_amount, decimals[transferred_mint]
        ),
        settle_signature=settle_signature,
        settled_amounts=settled_amounts,
    )
