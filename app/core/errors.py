from __future__ import annotations


class QuoteServiceError(Exception):
    """Base class for failures of a single upstream fetch."""

    kind = "quote_service"


class UpstreamShapeError(QuoteServiceError):
    """The response is missing every known top-level key.

    Usually rate limiting or an unknown symbol; ``detail`` carries the
    upstream's own explanation when it sent one.
    """

    kind = "upstream_shape"

    def __init__(self, message: str, detail: str | None = None) -> None:
        super().__init__(message)
        self.detail = detail


class NetworkError(QuoteServiceError):
    kind = "network"


class ParseError(QuoteServiceError):
    kind = "parse"
