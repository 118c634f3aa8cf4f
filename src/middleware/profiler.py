"""Request profiling middleware.

Gives every request a correlation ID and a Profiler. The correlation ID is
read from the incoming header when present, added to the Logfire span of
the request and echoed back on the response. The profiler collects the
search view's timing marks when the `debug` setting is on.
"""

import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

import logfire

from src.services.profiler import Profiler


class ProfilerMiddleware(BaseHTTPMiddleware):
    """Attach a correlation ID and a Profiler to each request."""

    def __init__(
        self,
        app: ASGIApp,
        enabled: bool = False,
        header_name: str = "X-Correlation-ID",
    ):
        """
        Initialize profiler middleware.

        Args:
            app: ASGI application
            enabled: Whether profiler marks are recorded
            header_name: HTTP header name for correlation ID
        """
        super().__init__(app)
        self.enabled = enabled
        self.header_name = header_name

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        correlation_id = request.headers.get(self.header_name.lower(), str(uuid.uuid4()))

        profiler = Profiler(
            enabled=self.enabled,
            correlation_id=correlation_id,
            path=request.url.path,
        )
        request.state.correlation_id = correlation_id
        request.state.profiler = profiler

        with logfire.span("request", correlation_id=correlation_id):
            response = await call_next(request)

        profiler.log()
        response.headers[self.header_name] = correlation_id
        return response
