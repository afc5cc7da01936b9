from decimal import Decimal
from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, computed_field


class QueryStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


class Quote(BaseModel):
    model_config = ConfigDict(frozen=True)

    symbol: str
    price: Decimal = Field(..., ge=0)

    @computed_field
    @property
    def formatted_price(self) -> str:
        return f"{self.price:.2f}"


class SuggestionItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    symbol: str
    name: str


class QueryState(BaseModel):
    """Snapshot of everything the dashboard renders."""

    model_config = ConfigDict(frozen=True)

    raw_input: str = ""
    selected_symbol: str = ""
    quotes: Tuple[Quote, ...] = ()
    suggestions: Tuple[SuggestionItem, ...] = ()
    status: QueryStatus = QueryStatus.IDLE
    error_message: Optional[str] = None


class InputRequest(BaseModel):
    text: str = Field("", description="Current contents of the search box.")


class FetchQuotesRequest(BaseModel):
    symbols: str = Field(..., description="One symbol or a comma-joined list, e.g. AAPL,MSFT.")


class SelectSuggestionRequest(BaseModel):
    symbol: str = Field(..., min_length=1, description="Symbol picked from the suggestion list.")
