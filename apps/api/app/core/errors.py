from __future__ import annotations

import logging
from dataclasses import asdict, dataclass

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException


logger = logging.getLogger("app.errors")


class CRMError(Exception):
    """Base class for errors the API reports with a specific status code."""

    status_code = 500
    message = "Server error"

    def __init__(self, message: str | None = None, details: str | None = None) -> None:
        self.message = message or self.message
        self.details = details
        super().__init__(self.message)


class NotFoundError(CRMError):
    status_code = 404

    def __init__(self, resource: str) -> None:
        self.resource = resource
        super().__init__(f"{resource} not found")


class UnauthorizedError(CRMError):
    status_code = 401
    message = "Unauthorized"


class InvalidCredentialsError(UnauthorizedError):
    message = "Invalid credentials"


@dataclass
class ErrorEnvelope:
    error: str
    details: str | None = None

    def to_dict(self) -> dict[str, str]:
        return {key: value for key, value in asdict(self).items() if value is not None}


def error_response(status_code: int, error: str, details: str | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorEnvelope(error=error, details=details).to_dict())


def format_validation_details(exc: RequestValidationError) -> str:
    messages: list[str] = []
    for item in exc.errors():
        location = [str(part) for part in item.get("loc", ()) if part not in {"body", "query", "path"}]
        label = ".".join(location)
        message = str(item.get("msg", "Invalid value"))
        messages.append(f"{label}: {message}" if label else message)
    return ", ".join(messages)


async def _handle_validation_error(_request: Request, exc: RequestValidationError) -> JSONResponse:
    return error_response(400, "Validation error", format_validation_details(exc))


async def _handle_crm_error(_request: Request, exc: CRMError) -> JSONResponse:
    return error_response(exc.status_code, exc.message, exc.details)


async def _handle_http_exception(_request: Request, exc: HTTPException) -> JSONResponse:
    response = error_response(exc.status_code, str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def _handle_storage_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error(
        "query.failed",
        exc_info=exc,
        extra={"method": request.method, "path": request.url.path, "error": str(exc)},
    )
    return error_response(500, "Server error")


async def _handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "server.error",
        exc_info=exc,
        extra={"method": request.method, "path": request.url.path, "error": str(exc)},
    )
    return error_response(500, "Server error")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, _handle_validation_error)  # type: ignore[arg-type]
    app.add_exception_handler(CRMError, _handle_crm_error)  # type: ignore[arg-type]
    app.add_exception_handler(HTTPException, _handle_http_exception)  # type: ignore[arg-type]
    app.add_exception_handler(SQLAlchemyError, _handle_storage_error)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _handle_unexpected_error)
