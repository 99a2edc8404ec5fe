"""Error handling middleware for the gcproxy API server.

Every failure is rendered as an OpenAI error object so that clients written
against the OpenAI API can surface it unchanged.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from gcproxy.core.errors import ProxyError
from gcproxy.core.logging import get_logger


logger = get_logger(__name__)


def _error_content(
    message: str, error_type: str, code: str | None = None
) -> dict[str, dict[str, str]]:
    error = {"message": message, "type": error_type}
    if code is not None:
        error["code"] = code
    return {"error": error}


def setup_error_handlers(app: FastAPI) -> None:
    """Setup error handlers for the FastAPI application.

    Args:
        app: FastAPI application instance
    """
    logger.debug("error_handlers_setup_start")

    @app.exception_handler(ProxyError)
    async def proxy_error_handler(request: Request, exc: ProxyError) -> JSONResponse:
        """Handle errors raised along the request path."""
        log_func = logger.error if exc.status_code >= 500 else logger.warning
        log_func(
            "request_failed",
            error_type=exc.error_type,
            error_code=exc.code,
            error_message=exc.message,
            status_code=exc.status_code,
            request_method=request.method,
            request_url=str(request.url.path),
            **exc.details,
        )
        return JSONResponse(
            status_code=exc.status_code, content=exc.to_error_response()
        )

    @app.exception_handler(StarletteHTTPException)
    async def starlette_http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        """Handle Starlette HTTP exceptions (unknown routes, wrong methods)."""
        logger.debug(
            "http_exception",
            status_code=exc.status_code,
            error_message=exc.detail,
            request_method=request.method,
            request_url=str(request.url.path),
        )
        if exc.status_code == 404:
            content = _error_content(
                f"Unknown endpoint: {request.method} {request.url.path}",
                "invalid_request_error",
                "unknown_url",
            )
        else:
            content = _error_content(str(exc.detail), "invalid_request_error")
        return JSONResponse(
            status_code=exc.status_code,
            content=content,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle all other unhandled exceptions."""
        logger.error(
            "unhandled_exception",
            error_message=str(exc),
            status_code=500,
            request_method=request.method,
            request_url=str(request.url.path),
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content=_error_content(str(exc) or type(exc).__name__, "api_error"),
        )

    logger.debug("error_handlers_setup_completed")
