"""Global exception handlers and request-id propagation for the HTTP surface."""

from __future__ import annotations

from typing import Any, Final
from uuid import uuid4

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError, ResponseValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from doneday.core.errors import (
    AppError,
    AreaNotFound,
    NotificationPermissionDenied,
    ProjectNotFound,
    StoreFetchFailed,
    StoreNotPersisted,
    StoreSaveFailed,
    TagNotFound,
    TaskNotFound,
    ValidationFailed,
)
from doneday.core.logging import get_logger
from doneday.schemas.errors import ErrorRead

logger = get_logger(__name__)

REQUEST_ID_HEADER: Final = "X-Request-Id"
HTTP_422_UNPROCESSABLE: Final = 422

_STATUS_BY_ERROR: Final[tuple[tuple[type[AppError], int], ...]] = (
    (ValidationFailed, HTTP_422_UNPROCESSABLE),
    (TaskNotFound, status.HTTP_404_NOT_FOUND),
    (ProjectNotFound, status.HTTP_404_NOT_FOUND),
    (AreaNotFound, status.HTTP_404_NOT_FOUND),
    (TagNotFound, status.HTTP_404_NOT_FOUND),
    (NotificationPermissionDenied, status.HTTP_409_CONFLICT),
    (StoreFetchFailed, status.HTTP_503_SERVICE_UNAVAILABLE),
    (StoreSaveFailed, status.HTTP_503_SERVICE_UNAVAILABLE),
    (StoreNotPersisted, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def status_for_error(error: AppError) -> int:
    for kind, code in _STATUS_BY_ERROR:
        if isinstance(error, kind):
            return code
    return status.HTTP_400_BAD_REQUEST


class RequestIdMiddleware:
    """Attach a request id to `scope["state"]` and echo it on the response."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return
        incoming = dict(scope.get("headers") or []).get(REQUEST_ID_HEADER.lower().encode())
        request_id = incoming.decode("latin-1").strip() if incoming else ""
        if not request_id:
            request_id = uuid4().hex
        scope.setdefault("state", {})["request_id"] = request_id

        async def send_with_request_id(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = [
                    (key, value)
                    for key, value in message.get("headers", [])
                    if key.lower() != REQUEST_ID_HEADER.lower().encode()
                ]
                headers.append((REQUEST_ID_HEADER.lower().encode(), request_id.encode()))
                message["headers"] = headers
            await send(message)

        await self.app(scope, receive, send_with_request_id)


def install_error_handling(app: FastAPI) -> None:
    app.add_middleware(RequestIdMiddleware)
    app.add_exception_handler(AppError, _app_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(
        RequestValidationError,
        _request_validation_exception_handler,  # type: ignore[arg-type]
    )
    app.add_exception_handler(
        ResponseValidationError,
        _response_validation_exception_handler,  # type: ignore[arg-type]
    )
    app.add_exception_handler(
        StarletteHTTPException,
        _http_exception_exception_handler,  # type: ignore[arg-type]
    )
    app.add_exception_handler(Exception, _unhandled_exception_handler)


def _get_request_id(request: Request) -> str | None:
    request_id = getattr(request.state, "request_id", None)
    if isinstance(request_id, str) and request_id:
        return request_id
    return None


def _error_payload(*, detail: Any, request_id: str | None, **extra: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {"detail": detail, **extra}
    if request_id:
        payload["request_id"] = request_id
    return payload


def _json(request: Request, status_code: int, payload: dict[str, Any]) -> JSONResponse:
    request_id = _get_request_id(request)
    headers = {REQUEST_ID_HEADER: request_id} if request_id else None
    return JSONResponse(status_code=status_code, content=payload, headers=headers)


def _report_to_channel(request: Request, exc: AppError) -> None:
    container = getattr(request.app.state, "container", None)
    if container is not None:
        container.errors.report(exc)


async def _app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render a failed action and present it on the shared error channel."""
    _report_to_channel(request, exc)
    status_code = status_for_error(exc)
    body = ErrorRead.from_error(exc).model_dump()
    detail = body.pop("detail")
    if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.warning(
            "http.app_error",
            extra={"code": exc.code, "path": request.url.path, "status": status_code},
        )
    payload = _error_payload(detail=detail, request_id=_get_request_id(request), **body)
    return _json(request, status_code, payload)


async def _request_validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    payload = _error_payload(
        detail=jsonable_encoder(exc.errors(), custom_encoder={bytes: _decode_bytes}),
        request_id=_get_request_id(request),
    )
    return _json(request, HTTP_422_UNPROCESSABLE, payload)


async def _response_validation_exception_handler(
    request: Request,
    exc: ResponseValidationError,
) -> JSONResponse:
    logger.error(
        "http.response_validation_failed",
        extra={"path": request.url.path, "errors": len(exc.errors())},
    )
    payload = _error_payload(
        detail="Internal Server Error",
        request_id=_get_request_id(request),
    )
    return _json(request, status.HTTP_500_INTERNAL_SERVER_ERROR, payload)


async def _http_exception_exception_handler(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    payload = _error_payload(detail=exc.detail, request_id=_get_request_id(request))
    response = _json(request, exc.status_code, payload)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "http.unhandled_exception",
        extra={"path": request.url.path, "error_type": type(exc).__name__},
    )
    payload = _error_payload(
        detail="Internal Server Error",
        request_id=_get_request_id(request),
    )
    return _json(request, status.HTTP_500_INTERNAL_SERVER_ERROR, payload)


def _decode_bytes(value: bytes) -> str:
    return value.decode("utf-8", errors="replace")
