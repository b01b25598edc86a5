from __future__ import annotations

import logging
from time import perf_counter
from typing import Any
from uuid import uuid4

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

logger = logging.getLogger("chorequest.api.request")


def _route_template(request: Request) -> str:
    route = request.scope.get("route")
    route_path = getattr(route, "path", None)
    if isinstance(route_path, str):
        return route_path
    return request.url.path


def _request_context(request: Request, request_id: str, started: float) -> dict[str, Any]:
    path_params = request.scope.get("path_params") or {}
    return {
        "request_id": request_id,
        "family_id": path_params.get("family_id"),
        "kid_id": path_params.get("kid_id"),
        "chore_id": path_params.get("chore_id"),
        "route": _route_template(request),
        "method": request.method,
        "execution_time_ms": round((perf_counter() - started) * 1000, 2),
    }


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        started = perf_counter()
        request_id = request.headers.get("X-Request-Id") or str(uuid4())
        request.state.request_id = request_id

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "request.failed",
                extra={**_request_context(request, request_id, started), "status_code": 500},
            )
            raise

        logger.info(
            "request.completed",
            extra={**_request_context(request, request_id, started), "status_code": response.status_code},
        )
        response.headers["X-Request-Id"] = request_id
        return response
