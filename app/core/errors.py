"""
Error responses.

Every failure is rendered as ``{"success": false, "message": ...}``;
unexpected errors also carry the raw error text under ``error``.
"""
import logging
from contextlib import contextmanager

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.services.gateway import (
    AuthenticationError,
    ForbiddenError,
    GatewayError,
    NoRecordsError,
    NotFoundError,
)

logger = logging.getLogger(__name__)

GATEWAY_STATUS = {
    AuthenticationError: status.HTTP_401_UNAUTHORIZED,
    ForbiddenError: status.HTTP_403_FORBIDDEN,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    NoRecordsError: status.HTTP_400_BAD_REQUEST,
}


def error_body(message: str, **extra) -> dict:
    return {"success": False, "message": message, **extra}


@contextmanager
def server_errors(message: str):
    """Turn unexpected exceptions into a 500 carrying ``message`` and the error text."""
    try:
        yield
    except (HTTPException, GatewayError):
        raise
    except Exception as e:
        logger.error(f"{message}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"message": message, "error": str(e)},
        )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if isinstance(exc.detail, dict):
        body = error_body(**exc.detail)
    else:
        body = error_body(str(exc.detail))
    return JSONResponse(status_code=exc.status_code, content=body, headers=getattr(exc, "headers", None))


async def gateway_exception_handler(request: Request, exc: GatewayError):
    code = GATEWAY_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST)
    return JSONResponse(status_code=code, content=error_body(str(exc)))


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    fields = sorted({".".join(str(p) for p in err.get("loc", ())[1:]) for err in errors} - {""})
    message = "Invalid or missing fields"
    if fields:
        message = f"{message}: {', '.join(fields)}"
    logger.info(f"Rejected {request.method} {request.url.path}: {message}")
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=error_body(message))


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("Internal server error", error=str(exc)),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(GatewayError, gateway_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
