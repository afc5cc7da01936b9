"""Pure transitions over ``QueryState``; each returns a new snapshot."""
from __future__ import annotations

from typing import Iterable

from app.models.schemas import Quote, QueryState, QueryStatus, SuggestionItem

USER_ERROR_MESSAGE = "API error or limit reached."


def initial_state(default_symbols: str) -> QueryState:
    return QueryState(raw_input=default_symbols, selected_symbol=default_symbols)


def input_changed(state: QueryState, text: str) -> QueryState:
    update: dict = {"raw_input": text}
    if not text.strip():
        update["suggestions"] = ()
    return state.model_copy(update=update)


def suggestions_loaded(state: QueryState, items: Iterable[SuggestionItem]) -> QueryState:
    return state.model_copy(update={"suggestions": tuple(items)})


def suggestions_cleared(state: QueryState) -> QueryState:
    return state.model_copy(update={"suggestions": ()})


def suggestion_selected(state: QueryState, symbol: str) -> QueryState:
    return state.model_copy(
        update={"selected_symbol": symbol, "raw_input": symbol, "suggestions": ()}
    )


def quotes_requested(state: QueryState, symbols: str) -> QueryState:
    # Previous quotes stay visible until the new fetch resolves.
    return state.model_copy(
        update={
            "selected_symbol": symbols,
            "status": QueryStatus.LOADING,
            "error_message": None,
        }
    )


def quotes_loaded(state: QueryState, quotes: Iterable[Quote]) -> QueryState:
    return state.model_copy(
        update={"quotes": tuple(quotes), "status": QueryStatus.READY, "error_message": None}
    )


def quotes_failed(state: QueryState, message: str = USER_ERROR_MESSAGE) -> QueryState:
    return state.model_copy(
        update={
            "quotes": (),
            "status": QueryStatus.ERROR,
            "error_message": message or USER_ERROR_MESSAGE,
        }
    )
