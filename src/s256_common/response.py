"""Unified error response body.

Every error the site returns has exactly one field:
{
    "error": "Human readable message"
}

Success bodies are endpoint specific (a ticker, a JSON-RPC envelope), so
a client can branch on the presence of "error" alone.
"""

from collections.abc import Mapping

from fastapi.responses import JSONResponse
from pydantic import BaseModel

from src.s256_common.errors import AppError


class ErrorResponse(BaseModel):
    error: str


def error_response(message: str) -> ErrorResponse:
    return ErrorResponse(error=message)


def error_json(
    message: str,
    status_code: int,
    headers: Mapping[str, str] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=error_response(message).model_dump(),
        headers=dict(headers) if headers else None,
    )


def app_error_response(
    exc: AppError,
    headers: Mapping[str, str] | None = None,
) -> JSONResponse:
    return error_json(exc.message, exc.http_status, headers)
