import logging
import traceback

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("nimproxy")


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            logger.error("Unhandled exception: %s\n%s", exc, traceback.format_exc())
            return JSONResponse(
                status_code=500,
                content={
                    "error": {
                        "message": str(exc),
                        "type": "internal_server_error",
                        "code": 500,
                    }
                },
            )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Render HTTP errors in the OpenAI error envelope.

    Unmatched paths and unmatched methods on known paths both answer 404.
    """
    if exc.status_code in (404, 405):
        return JSONResponse(
            status_code=404,
            content={
                "error": {
                    "message": f"Endpoint {request.url.path} not found",
                    "type": "invalid_request_error",
                    "code": 404,
                }
            },
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": {
                "message": str(exc.detail),
                "type": "invalid_request_error",
                "code": exc.status_code,
            }
        },
        headers=getattr(exc, "headers", None),
    )
