"""
Middleware HTTP: request-id, tempo de resposta e logging por pedido.
"""

import logging
import time
import uuid

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.errors import AppError
from app.core.logging import set_request_id

log = logging.getLogger("catalog.http")

# Listagens facetadas acima disto ficam marcadas como lentas (ms)
SLOW_REQUEST_MS = 1500
# Query strings de listagem podem ser longas (muitos spec_*)
MAX_QUERY_LOG_LEN = 300


def _describe(request: Request) -> str:
    path = request.url.path
    query = request.url.query
    if not query:
        return path
    if len(query) > MAX_QUERY_LOG_LEN:
        query = query[:MAX_QUERY_LOG_LEN] + "..."
    return f"{path}?{query}"


def _finish(response, rid: str, elapsed_ms: float):
    response.headers["X-Request-ID"] = rid
    response.headers["X-Response-Time-Ms"] = f"{elapsed_ms:.0f}"
    return response


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        rid = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:8]
        set_request_id(rid)
        t0 = time.perf_counter()
        target = _describe(request)

        try:
            log.info("-> %s %s", request.method, target)

            try:
                response = await call_next(request)
            except AppError as e:
                dt = (time.perf_counter() - t0) * 1000
                log.warning("<- %s %s [%s] %.0fms", e.http_status, target, e.code, dt)
                return _finish(
                    JSONResponse(
                        status_code=e.http_status, content={"code": e.code, "detail": e.detail}
                    ),
                    rid,
                    dt,
                )

            dt = (time.perf_counter() - t0) * 1000
            status = response.status_code
            if status >= 500:
                log.error("<- %s %s %.0fms", status, target, dt)
            elif status >= 400:
                log.warning("<- %s %s %.0fms", status, target, dt)
            elif dt > SLOW_REQUEST_MS:
                log.warning("<- %s %s %.0fms [SLOW]", status, target, dt)
            else:
                log.info("<- %s %s %.0fms", status, target, dt)

            return _finish(response, rid, dt)

        finally:
            set_request_id(None)
