from __future__ import annotations

import logging
from typing import Any, Optional

import requests

from app.core.errors import NetworkError, UpstreamShapeError

logger = logging.getLogger(__name__)


class AlphaVantageClient:
    """Minimal Alpha Vantage GET client returning decoded JSON payloads."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://www.alphavantage.co/query",
        timeout: float = 10.0,
        session: Optional[Any] = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout
        self.session = session or requests

    def _get(self, params: dict[str, str]) -> dict:
        query = {**params, "apikey": self.api_key}
        logger.debug("GET %s function=%s", self.base_url, params.get("function"))
        try:
            response = self.session.get(self.base_url, params=query, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise NetworkError(f"Request to {params.get('function')} failed: {exc}") from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise UpstreamShapeError("Response body is not JSON.") from exc
        if not isinstance(payload, dict):
            raise UpstreamShapeError("Response body is not a JSON object.")
        return payload

    def batch_quotes(self, symbols: list[str]) -> dict:
        return self._get(
            {
                "function": "BATCH_STOCK_QUOTES",
                "symbols": ",".join(symbols),
                "datatype": "json",
            }
        )

    def intraday_series(self, symbol: str, interval: str = "5min") -> dict:
        return self._get(
            {
                "function": "TIME_SERIES_INTRADAY",
                "symbol": symbol,
                "interval": interval,
                "datatype": "json",
            }
        )

    def global_quote(self, symbol: str) -> dict:
        return self._get({"function": "GLOBAL_QUOTE", "symbol": symbol, "datatype": "json"})

    def symbol_search(self, keywords: str) -> dict:
        return self._get({"function": "SYMBOL_SEARCH", "keywords": keywords, "datatype": "json"})
