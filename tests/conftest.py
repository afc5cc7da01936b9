"""Pytest configuration and shared fixtures."""
import asyncio

import pytest

from app.core.config import get_settings


@pytest.fixture(autouse=True)
def mock_env_vars(monkeypatch):
    """Mock environment variables for all tests."""
    monkeypatch.setenv("ALPHAVANTAGE_API_KEY", "test-alphavantage-key")
    monkeypatch.setenv("QUOTE_MODE", "batch")
    monkeypatch.setenv("FETCH_ON_STARTUP", "false")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class GatedQuoteClient:
    """Async fake upstream whose responses are released by the test.

    Every call is recorded; a call whose argument has a gate blocks until
    ``release(arg)`` is called, which lets a test finish requests in any
    order it likes.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, object]] = []
        self.responses: dict[object, dict] = {}
        self.errors: dict[object, Exception] = {}
        self._gates: dict[object, asyncio.Event] = {}

    def gate(self, key) -> None:
        self._gates[key] = asyncio.Event()

    def release(self, key) -> None:
        self._gates[key].set()

    async def _respond(self, name: str, key) -> dict:
        self.calls.append((name, key))
        if key in self._gates:
            await self._gates[key].wait()
        if key in self.errors:
            raise self.errors[key]
        return self.responses.get(key, {})

    async def batch_quotes(self, symbols):
        return await self._respond("batch_quotes", ",".join(symbols))

    async def intraday_series(self, symbol):
        return await self._respond("intraday_series", symbol)

    async def global_quote(self, symbol):
        return await self._respond("global_quote", symbol)

    async def symbol_search(self, keywords):
        return await self._respond("symbol_search", keywords)


@pytest.fixture
def fake_client():
    return GatedQuoteClient()


def stock_quotes(*pairs):
    return {"Stock Quotes": [{"1. symbol": s, "2. price": p} for s, p in pairs]}


def best_matches(*symbols):
    return {
        "bestMatches": [
            {"1. symbol": s, "2. name": f"{s} Inc.", "9. matchScore": "0.9000"} for s in symbols
        ]
    }
