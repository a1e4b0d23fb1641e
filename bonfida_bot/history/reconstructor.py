"""Rebuild a pool's order history from its transactions."""

import asyncio
import logging
from typing import Dict, List, Optional, Sequence, Set, Tuple

from solders.pubkey import Pubkey

from ..config import BonfidaBotConfig
from ..program.client import BonfidaBotClient
from ..program.errors import FormatError, PartialHistoryWarning, UnavailableError
from ..program.types import MarketData, PoolInfo
from .extract import extract_pool_events
from .normalize import normalize_order
from .pairing import pair_events, select_recent
from .source import RpcLedgerSource
from .types import PairedOrder, PoolEvent, ReconstructedOrder, TransactionRecord

logger = logging.getLogger(__name__)


class ActivityReconstructor:
    """Reconstructs the orders of a pool and their settlements.

    Every call works on a fresh snapshot; nothing is cached between calls.
    """

    def __init__(
        self,
        client: BonfidaBotClient,
        source: Optional[RpcLedgerSource] = None,
        config: Optional[BonfidaBotConfig] = None,
    ):
        """Initialize the reconstructor.

        Args:
            client: Client used for pool, market and mint reads
            source: Signature and transaction source (defaults to the
                client's RPC connection)
            config: Identities and limits (defaults to the client's config)
        """
        self.client = client
        self.config = config or client.config
        self.source = source or RpcLedgerSource(client.connection)

    async def reconstruct_pool(
        self, pool_seed: bytes, max_results: int
    ) -> List[ReconstructedOrder]:
        """Fetch a pool's history and reconstruct its latest orders.

        Raises:
            PoolUnavailableError: If the pool account is missing or too short;
                no transaction is fetched in that case
        """
        pool_info = await self.client.fetch_pool_info(pool_seed)
        logger.info(f"Reconstructing orders of pool {pool_info.address}")
        transactions = await self.fetch_history(pool_info.address)
        return await self.reconstruct(pool_info, transactions, max_results)

    async def fetch_history(
        self, address: Pubkey, limit: Optional[int] = None
    ) -> List[TransactionRecord]:
        """Fetch the transactions that touched `address`, newest first.

        Fetches run concurrently up to the configured bound. Transactions
        that cannot be fetched are logged and left out.
        """
        signatures = await self.source.get_signatures(
            address, limit if limit is not None else self.config.signature_limit
        )
        logger.info(f"Retrieved {len(signatures)} signatures for {address}")

        semaphore = asyncio.Semaphore(self.config.max_concurrency)

        async def fetch(position: int, signature: str) -> Optional[Tuple[int, TransactionRecord]]:
            async with semaphore:
                try:
                    record = await self.source.get_transaction(signature)
                except Exception as e:
                    logger.warning(str(PartialHistoryWarning(signature, str(e))))
                    return None
            if record is None:
                logger.warning(str(PartialHistoryWarning(signature)))
                return None
            return position, record

        results = await asyncio.gather(
            *(fetch(i, info.signature) for i, info in enumerate(signatures))
        )
        fetched = [r for r in results if r is not None]

        # Completion order is arbitrary; restore ledger order
        fetched.sort(key=lambda r: (-r[1].slot, r[0]))

        if len(fetched) < len(signatures):
            logger.info(
                f"History for {address} is partial: "
                f"{len(fetched)} of {len(signatures)} transactions"
            )
        return [record for _, record in fetched]

    async def reconstruct(
        self,
        pool_info: PoolInfo,
        transactions: Sequence[TransactionRecord],
        max_results: int,
    ) -> List[ReconstructedOrder]:
        """Reconstruct the latest orders of a pool.

        Args:
            pool_info: The pool, including its asset account to mint map
            transactions: Pool transactions, newest first
            max_results: Maximum number of orders returned

        Returns:
            Orders newest first, each with its settlement if one was found
        """
        events: List[PoolEvent] = []
        for tx in transactions:
            events.extend(
                extract_pool_events(
                    tx,
                    pool_info,
                    self.config.program_id,
                    self.config.token_program_id,
                )
            )

        recent = select_recent(pair_events(events), max_results)
        markets = await self._resolve_markets(recent)
        decimals = await self._resolve_decimals(recent, markets)

        orders = []
        for paired in recent:
            market = markets.get(paired.order.market)
            if market is None:
                continue
            try:
                orders.append(normalize_order(paired, market, decimals))
            except KeyError as e:
                logger.warning(
                    f"Skipping order {paired.order.signature}: no decimals for mint {e}"
                )
            except FormatError as e:
                logger.warning(f"Skipping order {paired.order.signature}: {e}")

        logger.info(f"Reconstructed {len(orders)} orders for pool {pool_info.address}")
        return orders

    async def _resolve_markets(self, paired: Sequence[PairedOrder]) -> Dict[Pubkey, MarketData]:
        markets: Dict[Pubkey, MarketData] = {}
        failed: Set[Pubkey] = set()
        for p in paired:
            key = p.order.market
            if key in markets or key in failed:
                continue
            try:
                markets[key] = await self.client.get_market_data(key)
            except (UnavailableError, FormatError) as e:
                logger.warning(f"Skipping orders on market {key}: {e}")
                failed.add(key)
        return markets

    async def _resolve_decimals(
        self,
        paired: Sequence[PairedOrder],
        markets: Dict[Pubkey, MarketData],
    ) -> Dict[Pubkey, int]:
        needed: List[Pubkey] = []
        for p in paired:
            market = markets.get(p.order.market)
            if market is None:
                continue
            mints = [market.source_mint(p.order.order.side)]
            if p.settle is not None:
                mints.extend(a.mint for a in p.settle.amounts)
            for mint in mints:
                if mint not in needed:
                    needed.append(mint)

        decimals: Dict[Pubkey, int] = {}
        for mint in needed:
            try:
                decimals[mint] = await self.client.get_mint_decimals(mint)
            except (UnavailableError, FormatError) as e:
                logger.warning(f"Could not resolve decimals of mint {mint}: {e}")
        return decimals
