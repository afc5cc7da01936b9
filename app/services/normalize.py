"""Turn the upstream's several response shapes into uniform records.

The quote API answers the "same" question in different shapes depending on
which function was called:

* ``"Stock Quotes"``: a list of ``{"1. symbol", "2. price", ...}`` entries,
  or a single such entry.
* ``"Time Series (5min)"``: entries keyed by timestamp; the most recent
  timestamp's ``"1. open"`` is taken as the current price.
* ``"Global Quote"``: one ``{"01. symbol", "05. price", ...}`` entry.

Symbol search answers with ``"bestMatches"``.
"""
from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any

from app.core.errors import ParseError, UpstreamShapeError
from app.models.schemas import Quote, SuggestionItem

STOCK_QUOTES_KEY = "Stock Quotes"
TIME_SERIES_PREFIX = "Time Series ("
GLOBAL_QUOTE_KEY = "Global Quote"
BEST_MATCHES_KEY = "bestMatches"

# Keys Alpha Vantage uses to explain why the expected data is missing.
_UPSTREAM_MESSAGE_KEYS = ("Error Message", "Note", "Information")


def parse_symbols(raw: str) -> list[str]:
    """Split a comma-joined symbol list, keeping order and case as given."""
    return [part.strip() for part in raw.split(",") if part.strip()]


def parse_price(value: Any, symbol: str) -> Decimal:
    try:
        price = Decimal(str(value).strip())
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise ParseError(f"Price for {symbol!r} is not numeric: {value!r}") from exc
    if not price.is_finite() or price < 0:
        raise ParseError(f"Price for {symbol!r} is not a non-negative number: {value!r}")
    return price


def _upstream_detail(payload: dict) -> str | None:
    for key in _UPSTREAM_MESSAGE_KEYS:
        if payload.get(key):
            return str(payload[key])
    return None


def _missing_key(payload: dict, expected: str) -> UpstreamShapeError:
    return UpstreamShapeError(
        f"Response has no {expected!r} key.", detail=_upstream_detail(payload)
    )


def _find_time_series_key(payload: dict) -> str | None:
    for key in payload:
        if key.startswith(TIME_SERIES_PREFIX):
            return key
    return None


def _quotes_for_requested(
    entries: list, symbol_key: str, price_key: str, requested: list[str]
) -> list[Quote]:
    """Keep upstream order, spell each symbol as it was requested."""
    spelled: dict[str, str] = {}
    for symbol in requested:
        spelled.setdefault(symbol.upper(), symbol)

    quotes: list[Quote] = []
    seen: set[str] = set()
    for entry in entries:
        if not isinstance(entry, dict) or symbol_key not in entry:
            raise UpstreamShapeError(f"Quote entry has no {symbol_key!r} field.")
        key = str(entry[symbol_key]).strip().upper()
        if key not in spelled or key in seen:
            continue
        seen.add(key)
        symbol = spelled[key]
        quotes.append(Quote(symbol=symbol, price=parse_price(entry.get(price_key), symbol)))

    missing = [symbol for key, symbol in spelled.items() if key not in seen]
    if missing or not quotes:
        raise UpstreamShapeError(f"Response has no quote for {', '.join(missing) or 'any symbol'}.")
    return quotes


def _quote_from_time_series(series: Any, symbol: str) -> Quote:
    if not isinstance(series, dict) or not series:
        raise UpstreamShapeError(f"Time series for {symbol!r} is empty.")
    # "YYYY-MM-DD HH:MM:SS" keys sort chronologically as strings.
    latest = max(series)
    bar = series[latest]
    if not isinstance(bar, dict):
        raise UpstreamShapeError(f"Time series bar {latest!r} is not an object.")
    return Quote(symbol=symbol, price=parse_price(bar.get("1. open"), symbol))


def normalize_quotes(payload: dict, requested: str) -> list[Quote]:
    """Return one quote per symbol in ``requested`` (comma-joined).

    Symbols keep the case they were requested in; the time-series shape does
    not repeat the symbol at all. Quote lists keep upstream order.

    Raises ``UpstreamShapeError`` when no known key is present or a
    requested symbol is missing from the response, and ``ParseError`` when a
    price is not a non-negative decimal.
    """
    symbols = parse_symbols(requested)

    if STOCK_QUOTES_KEY in payload:
        block = payload[STOCK_QUOTES_KEY]
        entries = block if isinstance(block, list) else [block]
        return _quotes_for_requested(entries, "1. symbol", "2. price", symbols)

    series_key = _find_time_series_key(payload)
    if series_key is not None:
        return [_quote_from_time_series(payload[series_key], symbols[0] if symbols else requested)]

    if GLOBAL_QUOTE_KEY in payload:
        block = payload[GLOBAL_QUOTE_KEY]
        if not block:
            # An unknown symbol yields an empty "Global Quote" object.
            raise _missing_key(payload, "01. symbol")
        return _quotes_for_requested([block], "01. symbol", "05. price", symbols)

    raise _missing_key(payload, STOCK_QUOTES_KEY)


def normalize_suggestions(payload: dict, limit: int = 5) -> list[SuggestionItem]:
    """Return up to ``limit`` search matches in upstream relevance order."""
    if BEST_MATCHES_KEY not in payload:
        raise _missing_key(payload, BEST_MATCHES_KEY)

    matches = payload[BEST_MATCHES_KEY]
    if matches is None:
        matches = []
    if not isinstance(matches, list):
        raise UpstreamShapeError(f"{BEST_MATCHES_KEY!r} is not a list.")

    items: list[SuggestionItem] = []
    for match in matches:
        if len(items) >= limit:
            break
        if not isinstance(match, dict) or not match.get("1. symbol"):
            continue
        items.append(
            SuggestionItem(symbol=str(match["1. symbol"]), name=str(match.get("2. name", "")))
        )
    return items
