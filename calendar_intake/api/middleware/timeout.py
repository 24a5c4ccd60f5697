"""
Request deadline middleware.

A plain ASGI middleware that gives each HTTP request a wall-clock
budget. When the budget runs out before the response has started, the
client gets a 504 JSON body. If headers were already sent, the timeout
propagates and the connection is dropped. Health and metrics paths are
never timed.
"""

import asyncio

import structlog
from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = structlog.get_logger(__name__)

DEFAULT_EXCLUDED_PREFIXES = ("/health", "/metrics")


class TimeoutMiddleware:
    """
    Answer 504 for requests that outlive timeout_seconds.

    Args:
        app: Wrapped ASGI application.
        timeout_seconds: Per-request budget.
        excluded_prefixes: Path prefixes served without a deadline.
    """

    def __init__(
        self,
        app: ASGIApp,
        timeout_seconds: float = 30.0,
        excluded_prefixes: tuple[str, ...] = DEFAULT_EXCLUDED_PREFIXES,
    ):
        self.app = app
        self.timeout_seconds = timeout_seconds
        self.excluded_prefixes = excluded_prefixes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope["path"].startswith(self.excluded_prefixes):
            await self.app(scope, receive, send)
            return

        response_started = False

        async def send_tracking_start(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            async with asyncio.timeout(self.timeout_seconds):
                await self.app(scope, receive, send_tracking_start)
        except TimeoutError:
            logger.warning(
                "Request timed out",
                method=scope["method"],
                path=scope["path"],
                timeout_seconds=self.timeout_seconds,
                response_started=response_started,
            )
            if response_started:
                raise
            response = JSONResponse(
                status_code=504,
                content={"error": "Request timed out", "timeoutSeconds": self.timeout_seconds},
            )
            await response(scope, receive, send)
