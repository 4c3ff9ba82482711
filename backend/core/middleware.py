"""Request logging middleware

Binds a correlation id and the player id into the log context for the
lifetime of a request, then logs the outcome with its duration. Answer and
tick requests should be near-instant, so anything over the slow threshold is
flagged (usually the stats commit waiting on the database).
"""
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from core.logging import api_logger, bind_context, clear_context, generate_correlation_id
from core.security import LOCAL_PLAYER_ID, PLAYER_HEADER

log = api_logger()


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, slow_threshold_ms: float = 500):
        super().__init__(app)
        self.slow_threshold_ms = slow_threshold_ms

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        correlation_id = request.headers.get("X-Correlation-ID") or generate_correlation_id()
        clear_context()
        bind_context(
            correlation_id=correlation_id,
            method=request.method,
            path=request.url.path,
            player_id=(request.headers.get(PLAYER_HEADER) or LOCAL_PLAYER_ID)[:64],
        )

        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as exc:
            log.exception("request_failed", error_type=type(exc).__name__, duration_ms=self._since(start))
            raise

        duration_ms = self._since(start)
        response.headers["X-Correlation-ID"] = correlation_id
        status = response.status_code
        if status >= 500:
            log.error("request_completed", status=status, duration_ms=duration_ms)
        elif status >= 400:
            log.warning("request_completed", status=status, duration_ms=duration_ms)
        else:
            log.info("request_completed", status=status, duration_ms=duration_ms)

        if duration_ms > self.slow_threshold_ms:
            log.warning("slow_request", duration_ms=duration_ms, threshold_ms=self.slow_threshold_ms)

        clear_context()
        return response

    @staticmethod
    def _since(start: float) -> float:
        return round((time.perf_counter() - start) * 1000, 2)
