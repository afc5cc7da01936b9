from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Callable, Protocol

from app.core.config import QuoteMode
from app.core.errors import QuoteServiceError
from app.models.schemas import Quote, QueryState, SuggestionItem
from app.services import query_state
from app.services.normalize import normalize_quotes, normalize_suggestions, parse_symbols

logger = logging.getLogger(__name__)


class QuoteClientProtocol(Protocol):
    """Upstream calls used by the controller.

    Methods may be plain functions (run in a worker thread) or coroutines.
    """

    def batch_quotes(self, symbols: list[str]) -> dict:  # pragma: no cover - protocol
        ...

    def intraday_series(self, symbol: str) -> dict:  # pragma: no cover - protocol
        ...

    def global_quote(self, symbol: str) -> dict:  # pragma: no cover - protocol
        ...

    def symbol_search(self, keywords: str) -> dict:  # pragma: no cover - protocol
        ...


class QueryController:
    """Owns the dashboard's ``QueryState`` and every fetch that changes it.

    Each quote and suggestion request is tagged with a sequence number; a
    response only reaches the state if no newer request of the same kind
    has been issued since. All mutation happens on the event loop thread.
    """

    def __init__(
        self,
        client: QuoteClientProtocol,
        *,
        mode: QuoteMode = QuoteMode.BATCH,
        default_symbols: str = "AAPL,MSFT,GOOGL,AMZN",
        suggestion_timeout_sec: float = 3.0,
        suggestion_limit: int = 5,
    ) -> None:
        self.client = client
        self.mode = QuoteMode(mode)
        self.default_symbols = default_symbols
        self.suggestion_timeout_sec = suggestion_timeout_sec
        self.suggestion_limit = suggestion_limit
        self._state = query_state.initial_state(default_symbols)
        self._quote_seq = 0
        self._suggestion_seq = 0
        self._suggestion_tasks: set[asyncio.Task] = set()

    @property
    def state(self) -> QueryState:
        return self._state

    async def _call(self, method: Callable[..., Any], *args: Any) -> dict:
        if inspect.iscoroutinefunction(method):
            return await method(*args)
        return await asyncio.to_thread(method, *args)

    # -- suggestions -----------------------------------------------------

    def set_input(self, text: str) -> asyncio.Task | None:
        """Record a keystroke and start a suggestion lookup for it.

        Returns the background task, or ``None`` when ``text`` is blank and
        no lookup was issued. Must be called from a running event loop.
        """
        self._state = query_state.input_changed(self._state, text)
        # Sequence is taken before the task runs; any later call outranks it.
        seq = self._next_suggestion_seq()
        keyword = text.strip()
        if not keyword:
            return None

        task = asyncio.create_task(self._load_suggestions(keyword, seq))
        self._suggestion_tasks.add(task)
        task.add_done_callback(self._suggestion_tasks.discard)
        return task

    def _next_suggestion_seq(self) -> int:
        self._suggestion_seq += 1
        return self._suggestion_seq

    async def fetch_suggestions(self, keyword: str) -> QueryState:
        seq = self._next_suggestion_seq()
        if not keyword.strip():
            self._state = query_state.suggestions_cleared(self._state)
            return self._state
        return await self._load_suggestions(keyword.strip(), seq)

    async def _load_suggestions(self, keyword: str, seq: int) -> QueryState:
        try:
            payload = await asyncio.wait_for(
                self._call(self.client.symbol_search, keyword),
                timeout=self.suggestion_timeout_sec,
            )
            items: list[SuggestionItem] = normalize_suggestions(payload, self.suggestion_limit)
        except asyncio.TimeoutError:
            logger.debug("suggestion lookup for %r timed out", keyword)
            items = []
        except QuoteServiceError as exc:
            logger.debug("suggestion lookup for %r failed (%s): %s", keyword, exc.kind, exc)
            items = []

        if seq != self._suggestion_seq:
            logger.debug("discarding stale suggestions for %r (seq=%d)", keyword, seq)
            return self._state

        if items:
            self._state = query_state.suggestions_loaded(self._state, items)
        else:
            self._state = query_state.suggestions_cleared(self._state)
        return self._state

    async def wait_for_suggestions(self) -> None:
        if self._suggestion_tasks:
            await asyncio.gather(*list(self._suggestion_tasks))

    # -- quotes ----------------------------------------------------------

    async def _request_quotes(self, symbols: list[str], requested: str) -> list[Quote]:
        if self.mode is QuoteMode.BATCH:
            payload = await self._call(self.client.batch_quotes, symbols)
            return normalize_quotes(payload, requested)

        method = (
            self.client.intraday_series
            if self.mode is QuoteMode.INTRADAY
            else self.client.global_quote
        )
        payloads = await asyncio.gather(*(self._call(method, symbol) for symbol in symbols))
        quotes: list[Quote] = []
        for symbol, payload in zip(symbols, payloads):
            quotes.extend(normalize_quotes(payload, symbol))
        return quotes

    async def fetch_quote(self, symbol_or_list: str) -> QueryState:
        """Fetch quotes for one symbol or a comma-joined list.

        Blank input leaves the state untouched and issues no request.
        """
        symbols = parse_symbols(symbol_or_list or "")
        if not symbols:
            logger.debug("ignoring quote fetch for blank input")
            return self._state

        requested = ",".join(symbols)
        self._quote_seq += 1
        seq = self._quote_seq
        self._state = query_state.quotes_requested(self._state, requested)

        try:
            quotes = await self._request_quotes(symbols, requested)
        except QuoteServiceError as exc:
            if seq != self._quote_seq:
                logger.debug("discarding stale quote failure for %s (seq=%d)", requested, seq)
                return self._state
            detail = getattr(exc, "detail", None)
            logger.warning(
                "quote fetch for %s failed (%s): %s%s",
                requested,
                exc.kind,
                exc,
                f" upstream={detail!r}" if detail else "",
            )
            self._state = query_state.quotes_failed(self._state)
            return self._state

        if seq != self._quote_seq:
            logger.debug("discarding stale quotes for %s (seq=%d)", requested, seq)
            return self._state
        self._state = query_state.quotes_loaded(self._state, quotes)
        return self._state

    async def select_suggestion(self, symbol: str) -> QueryState:
        self._next_suggestion_seq()
        self._state = query_state.suggestion_selected(self._state, symbol)
        return await self.fetch_quote(symbol)

    async def submit_on_enter(self) -> QueryState:
        if not self._state.raw_input.strip():
            return self._state
        return await self.fetch_quote(self._state.raw_input)

    async def load_default(self) -> QueryState:
        return await self.fetch_quote(self.default_symbols)
