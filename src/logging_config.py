"""Centralized logging configuration with Pydantic Logfire integration."""

import logging
from typing import Any

import logfire
from fastapi import FastAPI

from src.config import get_settings


def setup_logfire(app: FastAPI) -> None:
    """
    Initialize and configure Pydantic Logfire for observability.

    Sets up:
    - FastAPI instrumentation (request/response tracing)
    - Pydantic instrumentation (model validation logging)
    - Environment-aware configuration
    - Plain console logging locally, bare messages elsewhere
    """
    settings = get_settings()

    logfire_config: dict[str, Any] = {
        "environment": settings.env,
        # Without a token, keep traces local instead of prompting for a project
        "send_to_logfire": "if-token-present",
    }

    if settings.logfire_token:
        logfire_config["token"] = settings.logfire_token

    logfire.configure(**logfire_config)

    logfire.instrument_fastapi(app)
    logfire.instrument_pydantic()

    log_level = logging.DEBUG if settings.debug else logging.INFO

    if settings.env == "local":
        # Local: Console formatting for development
        logging.basicConfig(
            level=log_level,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )
    else:
        # Production: Logfire handles structured formatting
        logging.basicConfig(
            level=log_level,
            format="%(message)s",
            handlers=[logfire.LogfireLoggingHandler()],
        )
