"""FIFO pairing of order and settle events per open orders account.

Pairing assumes an open orders account never has more than one order in
flight: every settle is attributed to the oldest order of the account that
has not been settled yet. Overlapping orders on one account cannot be told
apart from the ledger data and will be paired in arrival order.
"""

from collections import OrderedDict, deque
from typing import Dict, List, Sequence

from solders.pubkey import Pubkey

from .types import OrderEvent, PairedOrder, PoolEvent, SettleEvent


def pair_events(events: Sequence[PoolEvent]) -> List[PairedOrder]:
    """Pair order events with settle events.

    Args:
        events: Pool events, newest first

    Returns:
        One PairedOrder per order event, grouped by open orders account,
        newest first within each group
    """
    groups: Dict[Pubkey, List[PoolEvent]] = OrderedDict()
    for event in events:
        groups.setdefault(event.open_orders, []).append(event)

    paired: List[PairedOrder] = []
    for group in groups.values():
        chronological = list(reversed(group))

        # Settles before the first order belong to orders outside the window
        first_order = 0
        while first_order < len(chronological) and isinstance(
            chronological[first_order], SettleEvent
        ):
            first_order += 1
        chronological = chronological[first_order:]

        settles = deque(e for e in chronological if isinstance(e, SettleEvent))
        group_orders = []
        for event in chronological:
            if isinstance(event, OrderEvent):
                settle = settles.popleft() if settles else None
                group_orders.append(PairedOrder(order=event, settle=settle))

        # Back to newest-first
        paired.extend(reversed(group_orders))

    return paired


def select_recent(paired: Sequence[PairedOrder], max_results: int) -> List[PairedOrder]:
    """Sort newest-first by slot and keep at most `max_results` orders.

    The sort is stable, so orders sharing a slot keep their relative order.
    """
    if max_results <= 0:
        return []
    ordered = sorted(paired, key=lambda p: p.order.slot, reverse=True)
    return ordered[:max_results]
