from fastapi import APIRouter, Depends, Request

from app.core.config import get_settings
from app.models.schemas import (
    FetchQuotesRequest,
    InputRequest,
    QueryState,
    SelectSuggestionRequest,
)
from app.services.alpha_vantage import AlphaVantageClient
from app.services.query_controller import QueryController

router = APIRouter()


def build_controller() -> QueryController:
    settings = get_settings()
    client = AlphaVantageClient(
        api_key=settings.alphavantage_api_key,
        base_url=settings.alphavantage_base_url,
        timeout=settings.request_timeout_sec,
    )
    return QueryController(
        client,
        mode=settings.quote_mode,
        default_symbols=settings.default_symbols,
        suggestion_timeout_sec=settings.suggestion_timeout_sec,
        suggestion_limit=settings.suggestion_limit,
    )


def get_controller(request: Request) -> QueryController:
    """One controller per app; the dashboard is a single session."""
    controller = getattr(request.app.state, "controller", None)
    if controller is None:
        controller = build_controller()
        request.app.state.controller = controller
    return controller


@router.get("/state", response_model=QueryState)
async def read_state(controller: QueryController = Depends(get_controller)) -> QueryState:
    return controller.state


@router.post("/input", response_model=QueryState)
async def update_input(
    payload: InputRequest, controller: QueryController = Depends(get_controller)
) -> QueryState:
    task = controller.set_input(payload.text)
    if task is not None:
        await task
    return controller.state


@router.post("/quotes", response_model=QueryState)
async def fetch_quotes(
    payload: FetchQuotesRequest, controller: QueryController = Depends(get_controller)
) -> QueryState:
    return await controller.fetch_quote(payload.symbols)


@router.post("/select", response_model=QueryState)
async def select_suggestion(
    payload: SelectSuggestionRequest, controller: QueryController = Depends(get_controller)
) -> QueryState:
    return await controller.select_suggestion(payload.symbol)


@router.post("/submit", response_model=QueryState)
async def submit(controller: QueryController = Depends(get_controller)) -> QueryState:
    return await controller.submit_on_enter()
