from typing import Any, Dict, Optional
from fastapi import status

from src.core.exceptions.handler import ServiceError, ServiceErrorCode


class DuplicateCredentialError(ServiceError):
    def __init__(self, field: str, message: Optional[str] = None):
        super().__init__(
            code=ServiceErrorCode.DUPLICATE_CREDENTIAL,
            message=message or f"{field} is already in use",
            status_code=status.HTTP_409_CONFLICT,
            details={"field": field},
        )
        self.field = field


class AccountNotFoundError(ServiceError):
    def __init__(self, message: str = "Account not found", detail: Optional[Dict[str, Any]] = None):
        super().__init__(
            code=ServiceErrorCode.ACCOUNT_NOT_FOUND,
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
            details=detail,
        )


class AccountNotActiveError(ServiceError):
    def __init__(self, account_status: str):
        super().__init__(
            code=ServiceErrorCode.ACCOUNT_NOT_ACTIVE,
            message="Account is not active",
            status_code=status.HTTP_403_FORBIDDEN,
            details={"status": account_status},
        )


class InvalidCredentialError(ServiceError):
    def __init__(self, message: str = "Incorrect email or password"):
        super().__init__(
            code=ServiceErrorCode.INVALID_CREDENTIAL,
            message=message,
            status_code=status.HTTP_401_UNAUTHORIZED,
        )


class SessionConflictError(ServiceError):
    """Raised after the prior session has already been evicted"""

    def __init__(self):
        super().__init__(
            code=ServiceErrorCode.SESSION_CONFLICT,
            message="Account is already signed in elsewhere; the previous session was closed, please sign in again",
            status_code=status.HTTP_409_CONFLICT,
        )


class InsufficientFundsError(ServiceError):
    def __init__(self, required: int, available: int):
        super().__init__(
            code=ServiceErrorCode.INSUFFICIENT_FUNDS,
            message="Not enough cash",
            status_code=status.HTTP_402_PAYMENT_REQUIRED,
            details={"required": required, "available": available},
        )


class InvalidConfirmationError(ServiceError):
    def __init__(self):
        super().__init__(
            code=ServiceErrorCode.INVALID_CONFIRMATION,
            message="Confirmation phrase does not match",
            status_code=status.HTTP_400_BAD_REQUEST,
        )


class InvalidSubscriptionStateError(ServiceError):
    def __init__(self, message: str, role: str):
        super().__init__(
            code=ServiceErrorCode.INVALID_SUBSCRIPTION_STATE,
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"role": role},
        )


class RateLimitedError(ServiceError):
    def __init__(self, message: str, limit: int, used: int):
        super().__init__(
            code=ServiceErrorCode.RATE_LIMIT_EXCEEDED,
            message=message,
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            details={"limit": limit, "used": used},
        )


class DuplicateRequestError(ServiceError):
    def __init__(self):
        super().__init__(
            code=ServiceErrorCode.DUPLICATE_REQUEST,
            message="An identical charge request is already pending",
            status_code=status.HTTP_409_CONFLICT,
        )


class NoDataError(ServiceError):
    def __init__(self, message: str = "No data found"):
        super().__init__(
            code=ServiceErrorCode.NO_DATA,
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
        )


class ValidationFailedError(ServiceError):
    def __init__(self, message: str = "Validation error", detail: Optional[Dict[str, Any]] = None):
        super().__init__(
            code=ServiceErrorCode.INVALID_INPUT,
            message=message,
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            details=detail,
        )
