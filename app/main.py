import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.routes import build_controller, router as api_router
from app.core.config import get_settings

logger = logging.getLogger(__name__)

app = FastAPI(title="Stock Price Dashboard")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/api")


@app.on_event("startup")
async def _startup() -> None:
    # Fail fast on missing keys (clear error message).
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper())

    if settings.fetch_on_startup:
        controller = getattr(app.state, "controller", None)
        if controller is None:
            controller = app.state.controller = build_controller()
        state = await controller.load_default()
        logger.info("initial quote load for %s: %s", settings.default_symbols, state.status.value)


@app.get("/health")
async def health_check() -> dict:
    return {"status": "ok"}
