"""Base exceptions for neo-rbac.

This module defines the base exception hierarchy for the neo-rbac library.
All exceptions inherit from NeoRbacError and include error codes, details,
and HTTP status code mappings for API responses.
"""

from typing import Any, Dict, Optional


class NeoRbacError(Exception):
    """Base exception for all neo-rbac errors.

    All exceptions in the neo-rbac library inherit from this base class
    and include structured error information for better debugging and API responses.
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        *args,
        **kwargs
    ):
        super().__init__(message, *args, **kwargs)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the error for API responses and structured logs."""
        return {
            "code": self.error_code,
            "message": self.message,
            "details": self.details,
            "type": self.__class__.__name__,
        }


def create_error_response(exception: NeoRbacError) -> Dict[str, Any]:
    """Create standardized error response from exception.

    Args:
        exception: The neo-rbac exception

    Returns:
        Error response dictionary
    """
    return {"error": exception.to_dict()}
