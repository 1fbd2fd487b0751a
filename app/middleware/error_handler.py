"""
Error handling middleware.

Routers translate log store failures into HTTP errors themselves; what
reaches this layer is either an invalid request surfaced as ValueError
(inverted date range, unusable log payload) or a bug.
"""
import logging
import time
from typing import Callable

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware


logger = logging.getLogger(__name__)


def _error_response(status_code: int, error: str, detail: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": error, "detail": detail})


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Maps uncaught exceptions to JSON error bodies and logs every request.

    ValueError becomes 400; anything else becomes 500 with the traceback
    logged but not returned.
    """

    async def dispatch(self, request: Request, call_next: Callable):
        started = time.perf_counter()
        request_info = {"path": request.url.path, "method": request.method}

        try:
            response = await call_next(request)

        except ValueError as e:
            logger.warning(f"Rejected {request.method} {request.url.path}: {e}", extra=request_info)
            response = _error_response(status.HTTP_400_BAD_REQUEST, "Invalid request", str(e))

        except Exception:
            logger.exception(f"Unhandled error on {request.method} {request.url.path}", extra=request_info)
            response = _error_response(
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                "Internal server error",
                "An unexpected error occurred",
            )

        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.debug(
            f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f} ms)",
            extra=request_info,
        )
        return response
