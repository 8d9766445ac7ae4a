from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
import logging

logger = logging.getLogger(__name__)


class MovieDbException(Exception):
    """Base exception for the application"""
    pass


class CouldNotLoadError(MovieDbException):
    """A repository call returned Error; the cause is kept for logging only."""
    def __init__(self, cause: object):
        super().__init__(repr(cause))
        self.cause = cause


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "unknown")


async def could_not_load_handler(request: Request, exc: CouldNotLoadError):
    """
    Any Error result is reduced to one generic notice; callers do not get
    error-specific messaging.
    """
    request_id = _request_id(request)
    logger.warning(
        "Could not load",
        extra={"request_id": request_id, "path": request.url.path, "cause": repr(exc.cause)},
    )
    return JSONResponse(
        status_code=502,
        content={
            "error": "Could not load",
            "message": "The movie service could not load this data. Please retry.",
            "request_id": request_id,
        },
    )


async def global_exception_handler(request: Request, exc: Exception):
    """
    Catch-all exception handler, also the landing place for local store
    failures. Returns 500 JSON response and hides internal error details.
    """
    request_id = _request_id(request)

    logger.error(
        "Unhandled exception occurred",
        extra={"request_id": request_id, "path": request.url.path},
        exc_info=exc
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal Server Error",
            "message": "An unexpected error occurred. Please contact support.",
            "request_id": request_id
        },
    )


async def http_exception_handler(request: Request, exc: HTTPException):
    """
    Handle standard FastAPI HTTPExceptions.
    """
    request_id = _request_id(request)

    if exc.status_code >= 500:
        logger.error(f"HTTP {exc.status_code} error", extra={"request_id": request_id, "error": exc.detail})
    else:
        logger.info(f"HTTP {exc.status_code} error", extra={"request_id": request_id, "error": exc.detail})

    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail, "request_id": request_id},
        headers=exc.headers,
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Handle Pydantic validation errors.
    """
    request_id = _request_id(request)
    logger.info("Validation error", extra={"request_id": request_id, "error": str(exc.errors())})

    return JSONResponse(
        status_code=422,
        content={
            "error": "Validation Error",
            "details": jsonable_errors(exc),
            "request_id": request_id
        },
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    # pydantic v2 puts the original exception object under "ctx"
    return [{k: v for k, v in error.items() if k != "ctx"} for error in exc.errors()]
