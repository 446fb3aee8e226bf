# storefront/api/errors.py
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError

from storefront.domain.errors import ErrorKind, StorageUnavailable, StorefrontError
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

STATUS_BY_KIND = {
    ErrorKind.TRANSIENT: 503,
    ErrorKind.VALIDATION: 422,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.NOT_AUTHORIZED: 403,
    ErrorKind.AUTHENTICATION_FAILED: 401,
    ErrorKind.CONFLICT: 409,
    ErrorKind.PAYMENT_NOT_COMPLETED: 402,
    ErrorKind.CART_MISSING_OR_EMPTY: 409,
    ErrorKind.ORDER_NOT_CANCELLABLE: 409,
    ErrorKind.INVALID_TRANSITION: 409,
}


def error_body(exc: StorefrontError) -> dict:
    return {"error": exc.kind.value, "detail": exc.detail, "retryable": exc.retryable}


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(StorefrontError)
    async def storefront_error_handler(request: Request, exc: StorefrontError):
        log = logger.warning if exc.retryable else logger.info
        log(
            "request.failed",
            path=request.url.path,
            error=exc.kind.value,
            **exc.context,
        )
        return JSONResponse(status_code=STATUS_BY_KIND.get(exc.kind, 400), content=error_body(exc))

    @app.exception_handler(OperationalError)
    async def storage_error_handler(request: Request, exc: OperationalError):
        logger.error("storage.unavailable", path=request.url.path, exc_info=exc)
        return JSONResponse(status_code=503, content=error_body(StorageUnavailable()))
