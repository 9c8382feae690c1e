"""Error taxonomy and step outcomes"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    """How a failure is surfaced to the donor"""
    TRANSIENT = "transient"
    AVAILABILITY = "availability"
    IDENTITY = "identity"
    PAYMENT_CARD = "payment_card"
    PAYMENT_UNEXPECTED = "payment_unexpected"
    PRECONDITION = "precondition"
    BUSY = "busy"


class GiftDriveError(Exception):
    """Base exception for storefront errors"""
    kind: ErrorKind = ErrorKind.TRANSIENT

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class BackendAPIError(GiftDriveError):
    """Cart backend rejected a request or did not respond"""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        error_code: Optional[str] = None,
        details: Optional[Any] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.error_code = error_code or (f"HTTP_{status_code}" if status_code else "BACKEND_ERROR")
        self.details = details


class PreconditionError(GiftDriveError):
    """Raised before any network call when required local data is missing"""
    kind = ErrorKind.PRECONDITION


@dataclass
class Outcome:
    """Result of a donor action, returned up the call chain"""
    success: bool
    message: Optional[str] = None
    kind: Optional[ErrorKind] = None
    data: Optional[Any] = None

    @classmethod
    def ok(cls, message: Optional[str] = None, data: Optional[Any] = None) -> "Outcome":
        return cls(success=True, message=message, data=data)

    @classmethod
    def failed(
        cls,
        message: str,
        kind: ErrorKind = ErrorKind.TRANSIENT,
        data: Optional[Any] = None,
    ) -> "Outcome":
        return cls(success=False, message=message, kind=kind, data=data)

    @classmethod
    def from_error(cls, error: GiftDriveError) -> "Outcome":
        return cls.failed(error.message, error.kind)
