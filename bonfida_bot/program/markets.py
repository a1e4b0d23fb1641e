"""Allowed venue market list for the Bonfida Bot SDK."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

import aiohttp
from solders.pubkey import Pubkey

from .constants import SERUM_PROGRAM_ID
from .errors import DeprecatedMarketError, UnauthorizedMarketError, UnavailableError

logger = logging.getLogger(__name__)

REGISTRY_TIMEOUT_SECS = 10


@dataclass
class MarketInfo:
    """One entry of the venue's published market list."""

    address: Pubkey
    name: str
    program_id: Pubkey
    deprecated: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MarketInfo":
        return cls(
            address=Pubkey.from_string(data["address"]),
            name=data.get("name", ""),
            program_id=Pubkey.from_string(data.get("programId", str(SERUM_PROGRAM_ID))),
            deprecated=bool(data.get("deprecated", False)),
        )


class MarketRegistry:
    """Lookup table of the markets a pool may be created with."""

    def __init__(self, markets: Iterable[MarketInfo]):
        self._markets: Dict[Pubkey, MarketInfo] = {}
        self._order: List[MarketInfo] = []
        for info in markets:
            self._markets[info.address] = info
            self._order.append(info)

    @classmethod
    def from_list(cls, entries: List[Dict[str, Any]]) -> "MarketRegistry":
        """Build a registry from `{"address", "name", "deprecated", "programId"}` records."""
        return cls(MarketInfo.from_dict(entry) for entry in entries)

    def __len__(self) -> int:
        return len(self._markets)

    def __contains__(self, market: Pubkey) -> bool:
        return market in self._markets

    def get(self, market: Pubkey) -> Optional[MarketInfo]:
        return self._markets.get(market)

    def find_by_name(self, name: str) -> Optional[MarketInfo]:
        """Return the most recently listed market with the given name."""
        for info in reversed(self._order):
            if info.name == name:
                return info
        return None

    def validate(self, markets: Iterable[Pubkey]) -> None:
        """Check that every market is listed and not retired.

        Raises:
            UnauthorizedMarketError: If a market is not on the list
            DeprecatedMarketError: If a market is flagged as deprecated
        """
        for market in markets:
            info = self._markets.get(market)
            if info is None:
                raise UnauthorizedMarketError(str(market))
            if info.deprecated:
                raise DeprecatedMarketError(str(market))


async def fetch_market_registry(
    url: str,
    session: Optional[aiohttp.ClientSession] = None,
    timeout: float = REGISTRY_TIMEOUT_SECS,
) -> MarketRegistry:
    """Load a market registry from a JSON list served over HTTP.

    Raises:
        UnavailableError: If the list cannot be downloaded or parsed
    """
    owns_session = session is None
    if session is None:
        session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=timeout))

    try:
        async with session.get(url) as response:
            if not response.ok:
                raise UnavailableError(url, f"HTTP {response.status} fetching market list")
            entries = await response.json(content_type=None)
    except asyncio.TimeoutError:
        raise UnavailableError(url, "Timed out fetching market list")
    except aiohttp.ClientError as e:
        raise UnavailableError(url, f"Could not fetch market list ({e})")
    finally:
        if owns_session:
            await session.close()

    if not isinstance(entries, list):
        raise UnavailableError(url, "Market list is not a JSON array")

    try:
        registry = MarketRegistry.from_list(entries)
    except (KeyError, TypeError, ValueError) as e:
        raise UnavailableError(url, f"Malformed market list entry ({e})")

    logger.info(f"Loaded {len(registry)} markets from {url}")
    return registry
