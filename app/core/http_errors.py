# app/core/http_errors.py
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.core.errors import AppError
from app.core.logging import get_request_id_or

log = logging.getLogger("catalog.http_errors")


def init_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def _app_error_handler(request: Request, exc: AppError):
        log.warning("%s %s -> %s [%s]", request.method, request.url.path, exc.http_status, exc.code)
        return JSONResponse(
            status_code=exc.http_status,
            content={"code": exc.code, "detail": exc.detail},
            headers={"X-Request-ID": get_request_id_or()},
        )
