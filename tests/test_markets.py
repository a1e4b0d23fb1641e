"""Tests for the market registry."""

import pytest
from aiohttp import web
from aiohttp import test_utils
from solders.pubkey import Pubkey

from bonfida_bot.program import (
    DeprecatedMarketError,
    MarketRegistry,
    UnauthorizedMarketError,
    UnavailableError,
    fetch_market_registry,
)
from bonfida_bot.program.constants import SERUM_PROGRAM_ID

FIDA_USDC = Pubkey.new_unique()
FIDA_USDC_OLD = Pubkey.new_unique()

ENTRIES = [
    {"address": str(FIDA_USDC_OLD), "name": "FIDA/USDC", "deprecated": True,
     "programId": str(Pubkey.new_unique())},
    {"address": str(FIDA_USDC), "name": "FIDA/USDC", "deprecated": False,
     "programId": str(SERUM_PROGRAM_ID)},
]


class TestMarketRegistry:
    def test_from_list(self):
        registry = MarketRegistry.from_list(ENTRIES)

        assert len(registry) == 2
        assert FIDA_USDC in registry
        assert registry.get(FIDA_USDC).program_id == SERUM_PROGRAM_ID
        assert registry.get(FIDA_USDC_OLD).deprecated

    def test_find_by_name_prefers_latest(self):
        registry = MarketRegistry.from_list(ENTRIES)

        assert registry.find_by_name("FIDA/USDC").address == FIDA_USDC
        assert registry.find_by_name("SRM/USDC") is None

    def test_validate(self):
        registry = MarketRegistry.from_list(ENTRIES)

        registry.validate([FIDA_USDC])
        with pytest.raises(DeprecatedMarketError):
            registry.validate([FIDA_USDC, FIDA_USDC_OLD])
        with pytest.raises(UnauthorizedMarketError):
            registry.validate([Pubkey.new_unique()])

    def test_missing_fields_default(self):
        registry = MarketRegistry.from_list([{"address": str(FIDA_USDC)}])

        info = registry.get(FIDA_USDC)
        assert info.program_id == SERUM_PROGRAM_ID
        assert not info.deprecated


def make_app():
    async def markets(request):
        return web.json_response(ENTRIES)

    async def broken(request):
        return web.json_response({"error": "nope"})

    app = web.Application()
    app.router.add_get("/markets.json", markets)
    app.router.add_get("/broken.json", broken)
    return app


class TestFetchMarketRegistry:
    @pytest.mark.asyncio
    async def test_fetch(self):
        async with test_utils.TestServer(make_app()) as server:
            registry = await fetch_market_registry(str(server.make_url("/markets.json")))

        assert len(registry) == 2

    @pytest.mark.asyncio
    async def test_http_error(self):
        async with test_utils.TestServer(make_app()) as server:
            with pytest.raises(UnavailableError):
                await fetch_market_registry(str(server.make_url("/missing.json")))

    @pytest.mark.asyncio
    async def test_not_a_list(self):
        async with test_utils.TestServer(make_app()) as server:
            with pytest.raises(UnavailableError):
                await fetch_market_registry(str(server.make_url("/broken.json")))
