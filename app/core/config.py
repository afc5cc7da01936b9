from enum import Enum
from functools import lru_cache

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict


class QuoteMode(str, Enum):
    BATCH = "batch"
    INTRADAY = "intraday"
    GLOBAL = "global"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    alphavantage_api_key: str = Field(..., validation_alias="ALPHAVANTAGE_API_KEY")
    alphavantage_base_url: str = Field(
        "https://www.alphavantage.co/query", validation_alias="ALPHAVANTAGE_BASE_URL"
    )
    quote_mode: QuoteMode = Field(QuoteMode.BATCH, validation_alias="QUOTE_MODE")
    default_symbols: str = Field("AAPL,MSFT,GOOGL,AMZN", validation_alias="DEFAULT_SYMBOLS")
    request_timeout_sec: float = Field(10.0, gt=0, validation_alias="REQUEST_TIMEOUT_SEC")
    suggestion_timeout_sec: float = Field(3.0, gt=0, validation_alias="SUGGESTION_TIMEOUT_SEC")
    suggestion_limit: int = Field(5, ge=1, validation_alias="SUGGESTION_LIMIT")
    fetch_on_startup: bool = Field(True, validation_alias="FETCH_ON_STARTUP")
    log_level: str = Field("INFO", validation_alias="LOG_LEVEL")


@lru_cache
def get_settings() -> Settings:
    try:
        return Settings()
    except ValidationError as exc:
        # Provide a clear error message when keys are missing.
        missing = [e["loc"][0] for e in exc.errors() if e["type"] == "missing"]
        if not missing:
            raise
        missing_str = ", ".join(str(m).upper() for m in missing)
        raise RuntimeError(
            f"Missing required environment variables: {missing_str}. "
            "Please set them in your environment or .env file."
        ) from exc
