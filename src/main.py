"""FastAPI application initialization."""

import os
from contextlib import asynccontextmanager

import logfire
import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sentry_sdk.integrations.fastapi import FastApiIntegration

from src.api import health, search
from src.config import get_settings
from src.logging_config import setup_logfire
from src.middleware.profiler import ProfilerMiddleware
from src.services.view_factory import build_search_environment

APP_VERSION = "0.3.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    settings = get_settings()

    # Initialize Logfire for observability
    setup_logfire(app)

    # Initialize Sentry if DSN is provided
    if settings.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            traces_sample_rate=settings.sentry_traces_sample_rate,
            send_default_pii=False,
            integrations=[FastApiIntegration()],
        )

    # Layouts are resolved once here, never per request
    environment = build_search_environment(settings)
    app.state.search_environment = environment

    logfire.info(
        "Application startup complete",
        environment=settings.env,
        layouts=environment.layouts.names,
        document_count=len(environment.documents),
    )

    yield

    logfire.info("Application shutdown complete")


# Create FastAPI app
app = FastAPI(
    title="Site Search",
    description="Search results pages, feeds and OpenSearch description for a site",
    version=APP_VERSION,
    lifespan=lifespan,
)

# Profiler middleware (must be first for request tracing)
app.add_middleware(ProfilerMiddleware, enabled=get_settings().debug)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET"],
    allow_headers=["*"],
)

# Register routers
app.include_router(health.router, tags=["health"])
app.include_router(search.router, tags=["search"])


@app.get("/")
def root():
    """Root endpoint."""
    settings = get_settings()
    return {
        "message": "Site Search API",
        "site": settings.sitename,
        "version": APP_VERSION,
    }


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", 8000))
    uvicorn.run(
        "src.main:app", host="0.0.0.0", port=port, reload=os.getenv("ENV") == "local"
    )
