# app/core/errors.py
"""
Erros de aplicação com código e status HTTP associados.

Os usecases levantam estas exceções; o middleware e os handlers em
app.core.http_errors convertem-nas em respostas JSON {code, detail}.
"""

from __future__ import annotations


class AppError(Exception):
    code = "app_error"
    http_status = 500

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.code
        super().__init__(self.detail)


class BadRequest(AppError):
    code = "bad_request"
    http_status = 400


class InvalidArgument(BadRequest):
    code = "invalid_argument"
    http_status = 422


class NotFound(AppError):
    code = "not_found"
    http_status = 404
