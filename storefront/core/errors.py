# storefront/core/errors.py
"""
Typed failures raised by services.

Every error is an HTTPException carrying a stable `kind`, so services can
raise them directly (FastAPI turns them into responses) while callers and
tests can still match on the kind.
"""
import logging

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppError(HTTPException):
    """Base failure with a stable machine-readable kind."""

    kind: str = "server_error"
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail: str = "Server error"

    def __init__(self, detail: str | None = None, headers: dict[str, str] | None = None):
        super().__init__(
            status_code=self.status_code,
            detail=detail or self.default_detail,
            headers=headers,
        )


class NotFoundError(AppError):
    kind = "not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


class InvalidInputError(AppError):
    kind = "invalid_input"
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid input"


class UnauthorizedError(AppError):
    kind = "unauthorized"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Authentication required"

    def __init__(self, detail: str | None = None):
        super().__init__(detail, headers={"WWW-Authenticate": "Bearer"})


class ForbiddenError(AppError):
    kind = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Forbidden"


class PaymentFailedError(AppError):
    kind = "payment_failed"
    status_code = status.HTTP_402_PAYMENT_REQUIRED
    default_detail = "Payment failed"


class ProviderError(AppError):
    kind = "provider_error"
    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = "Payment provider error"


class EmptyCartError(AppError):
    kind = "empty_cart"
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Your cart is empty"


class ServerError(AppError):
    kind = "server_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Server error"


# ---- FastAPI handlers ----


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"kind": exc.kind, "detail": exc.detail},
        headers=exc.headers,
    )


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "kind": InvalidInputError.kind,
            "detail": jsonable_errors(exc),
        },
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"kind": ServerError.kind, "detail": ServerError.default_detail},
    )


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    """
    Keep only the JSON-safe parts of pydantic errors
    (the raw `ctx` may hold exception objects).
    """
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
