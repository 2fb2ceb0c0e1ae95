"""Request-id propagation and uniform JSON error payloads."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from uuid import uuid4

from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError, ResponseValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.logging import get_logger

if TYPE_CHECKING:
    from fastapi import FastAPI
    from starlette.requests import Request
    from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-Id"
_MAX_REQUEST_ID_LENGTH = 128

logger = get_logger(__name__)


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Attach a correlation id to every request and response."""

    async def dispatch(self, request: Request, call_next: Any) -> Response:
        incoming = (request.headers.get(REQUEST_ID_HEADER) or "").strip()
        request_id = incoming[:_MAX_REQUEST_ID_LENGTH] if incoming else uuid4().hex
        request.state.request_id = request_id
        response: Response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


def _get_request_id(request: Request) -> str:
    request_id = getattr(request.state, "request_id", None)
    if isinstance(request_id, str) and request_id:
        return request_id
    request_id = uuid4().hex
    request.state.request_id = request_id
    return request_id


def _error_payload(*, detail: Any, request_id: str) -> dict[str, Any]:
    return {"detail": detail, "request_id": request_id}


def _json_error(request: Request, *, status_code: int, detail: Any) -> JSONResponse:
    request_id = _get_request_id(request)
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(_error_payload(detail=detail, request_id=request_id)),
        headers={REQUEST_ID_HEADER: request_id},
    )


async def _request_validation_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    errors: list[Any] = []
    if isinstance(exc, RequestValidationError):
        for error in exc.errors():
            item = dict(error)
            # Raw bytes bodies are not JSON serialisable.
            if isinstance(item.get("input"), bytes):
                item["input"] = item["input"].decode("utf-8", errors="replace")
            item.pop("ctx", None)
            errors.append(item)
    return _json_error(
        request,
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail=errors,
    )


async def _http_exception_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    if not isinstance(exc, StarletteHTTPException):
        return await _unhandled_exception_handler(request, exc)
    response = _json_error(request, status_code=exc.status_code, detail=exc.detail)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def _response_validation_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    logger.error(
        "http.response_validation_failed",
        extra={"path": request.url.path, "request_id": _get_request_id(request)},
        exc_info=exc,
    )
    return _json_error(
        request,
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Internal Server Error",
    )


async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "http.unhandled_exception",
        extra={"path": request.url.path, "request_id": _get_request_id(request)},
        exc_info=exc,
    )
    return _json_error(
        request,
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Internal Server Error",
    )


def install_error_handling(app: FastAPI) -> None:
    """Register request-id middleware and JSON exception handlers."""
    app.add_middleware(RequestIdMiddleware)
    app.add_exception_handler(RequestValidationError, _request_validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_exception_handler)
    app.add_exception_handler(ResponseValidationError, _response_validation_exception_handler)
    app.add_exception_handler(Exception, _unhandled_exception_handler)
