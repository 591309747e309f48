from __future__ import annotations

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from app.celltrack.core.logging import log_json

logger = logging.getLogger("celltrack.request")


def _level_for(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


def build_request_log_payload(*, request: Request, response: Response | None, latency_ms: float) -> dict:
    # populated by require_actor and the exception handlers
    state = request.state
    actor = getattr(state, "actor", None)
    route = getattr(request.scope.get("route"), "path", None)
    return {
        "event": "http_request",
        "trace_id": getattr(state, "trace_id", ""),
        "user_id": actor.user_id if actor is not None else None,
        "actor": actor.name if actor is not None else None,
        "actor_role": actor.role if actor is not None else None,
        "route": route or request.url.path,
        "method": request.method,
        "status_code": response.status_code if response is not None else 500,
        "latency_ms": round(latency_ms, 2),
        "error_code": getattr(state, "error_code", None),
        "error_class": getattr(state, "error_class", None),
    }


class ObservabilityMiddleware(BaseHTTPMiddleware):
    """One JSON line per request with the caller, the matched route and any error code."""

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        response: Response | None = None
        try:
            response = await call_next(request)
            return response
        finally:
            payload = build_request_log_payload(
                request=request,
                response=response,
                latency_ms=(time.perf_counter() - started) * 1000,
            )
            log_json(logger, payload, _level_for(payload["status_code"]))
