import logging
from typing import Literal

import structlog
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Upstream providers
    pokeapi_base_url: str = "https://pokeapi.co/api/v2"
    translation_base_url: str = "https://api.funtranslations.com/translate"
    translation_style: str = "shakespeare"
    http_timeout_seconds: float = 5.0

    # Retry policy, applied per outbound call
    retry_attempts: int = 3
    retry_backoff_seconds: float = 0.2
    retry_backoff_max_seconds: float = 2.0
    upstream_timeout_seconds: float = 15.0  # upper bound for one call, retries included

    # Query result cache
    cache_backend: Literal["memory", "redis"] = "memory"
    redis_url: str = "redis://localhost:6379"
    cache_ttl_seconds: int = Field(3600, gt=0)  # 1 hour
    cache_max_entries: int = 1024
    cache_single_flight: bool = True

    log_level: str = "INFO"
    log_format: Literal["json", "console"] = "json"


LOG_HANDLER_NAME = "pokedex"


def build_log_formatter(log_format: str = "json") -> logging.Formatter:
    """Render stdlib records through structlog, including fields passed via ``extra``."""
    if log_format == "console":
        renderer = structlog.dev.ConsoleRenderer(colors=False)
    else:
        renderer = structlog.processors.JSONRenderer()
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.stdlib.ExtraAdder(),
        ],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )


def configure_logging(level: str = "INFO", log_format: str = "json") -> None:
    """Install one stream handler on the root logger. Safe to call more than once."""
    root = logging.getLogger()
    root.setLevel(level.upper())
    if not any(h.get_name() == LOG_HANDLER_NAME for h in root.handlers):
        handler = logging.StreamHandler()
        handler.set_name(LOG_HANDLER_NAME)
        handler.setFormatter(build_log_formatter(log_format))
        root.addHandler(handler)
