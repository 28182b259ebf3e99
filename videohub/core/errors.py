from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class APIError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "internal_error"

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        code: str | None = None,
        errors: list[object] | None = None,
    ) -> None:
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code
        self.message = message
        self.errors = errors or []
        super().__init__(message)


class ValidationError(APIError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "validation_error"


class AuthError(APIError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "unauthorized"


class NotFoundError(APIError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class ConflictError(APIError):
    status_code = status.HTTP_409_CONFLICT
    code = "conflict"


class UploadError(APIError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "upload_failed"


class InternalError(APIError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "internal_error"


def success_response(
    data: object,
    message: str = "Success",
    status_code: int = status.HTTP_200_OK,
) -> JSONResponse:
    payload = {"status_code": status_code, "data": data, "message": message, "success": True}
    return JSONResponse(status_code=status_code, content=payload)


def error_response(
    *,
    status_code: int,
    code: str,
    message: str,
    errors: list[object] | None = None,
) -> JSONResponse:
    payload: dict[str, object] = {
        "status_code": status_code,
        "code": code,
        "message": message,
        "success": False,
        "errors": errors or [],
    }
    return JSONResponse(status_code=status_code, content=jsonable_encoder(payload))


def add_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(APIError)
    async def handle_api_error(_: Request, exc: APIError) -> JSONResponse:
        return error_response(
            status_code=exc.status_code,
            code=exc.code,
            message=exc.message,
            errors=exc.errors,
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(_: Request, exc: RequestValidationError) -> JSONResponse:
        return error_response(
            status_code=ValidationError.status_code,
            code=ValidationError.code,
            message="Request validation failed",
            errors=list(exc.errors()),
        )

    @app.exception_handler(HTTPException)
    async def handle_http_error(_: Request, exc: HTTPException) -> JSONResponse:
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        return error_response(
            status_code=exc.status_code,
            code="http_error",
            message=message,
            errors=[] if isinstance(exc.detail, str) else [exc.detail],
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error method=%s path=%s", request.method, request.url.path, exc_info=exc)
        return error_response(
            status_code=InternalError.status_code,
            code=InternalError.code,
            message="Internal server error",
        )
