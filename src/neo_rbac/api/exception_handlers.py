"""
Exception handlers for applications mounting the user directory router.

Maps neo-rbac errors to HTTP responses using the status table in
core.exceptions.http_mapping.
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from ..core.exceptions import NeoRbacError, create_error_response, get_http_status_code

logger = logging.getLogger(__name__)


def register_exception_handlers(app: FastAPI, is_production: bool = True) -> None:
    """
    Register neo-rbac exception handlers on a FastAPI application.

    Args:
        app: FastAPI application instance
        is_production: Hide unexpected error messages when True
    """
    @app.exception_handler(NeoRbacError)
    async def neo_rbac_exception_handler(request: Request, exc: NeoRbacError):
        """Handle neo-rbac exceptions."""
        status_code = get_http_status_code(exc)
        if status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(status_code=status_code, content=create_error_response(exc))

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        """Handle value errors."""
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": {"code": "ValueError", "message": str(exc), "details": {}}}
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions."""
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        message = "An unexpected error occurred" if is_production else str(exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": {"code": "InternalError", "message": message, "details": {}}}
        )
