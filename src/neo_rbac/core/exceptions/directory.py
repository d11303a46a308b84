"""Directory client failures.

DirectoryError is what a DirectoryClient raises; the gateway translates it
into the domain taxonomy.
"""

from enum import IntEnum
from typing import Optional, TYPE_CHECKING

from .base import NeoRbacError

if TYPE_CHECKING:
    from ..protocols.directory_client import PasswordPolicyControl


class ResultCode(IntEnum):
    """Directory protocol result codes."""

    SUCCESS = 0
    OPERATIONS_ERROR = 1
    PROTOCOL_ERROR = 2
    SIZE_LIMIT_EXCEEDED = 4
    NO_SUCH_ATTRIBUTE = 16
    CONSTRAINT_VIOLATION = 19
    ATTRIBUTE_OR_VALUE_EXISTS = 20
    NO_SUCH_OBJECT = 32
    INVALID_DN_SYNTAX = 34
    INVALID_CREDENTIALS = 49
    INSUFFICIENT_ACCESS_RIGHTS = 50
    BUSY = 51
    UNAVAILABLE = 52
    UNWILLING_TO_PERFORM = 53
    ENTRY_ALREADY_EXISTS = 68
    OTHER = 80


class DirectoryError(NeoRbacError):
    """Raised by a directory client when a protocol operation fails.

    ``policy`` carries the password-policy response control returned alongside
    the failure, when the server sent one.
    """

    def __init__(
        self,
        result_code: int,
        message: str = "",
        policy: Optional["PasswordPolicyControl"] = None
    ):
        super().__init__(
            message or f"directory operation failed with result code {int(result_code)}",
            error_code=f"DIRECTORY_{int(result_code)}",
            details={"result_code": int(result_code)}
        )
        self.result_code = int(result_code)
        self.policy = policy

    def is_code(self, code: ResultCode) -> bool:
        return self.result_code == code
