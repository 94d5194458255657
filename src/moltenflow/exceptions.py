"""Exception hierarchy for transaction orchestration.

Validation errors are raised before any chain or HTTP call is attempted.
Execution errors are raised after at least one I/O attempt.
"""

from enum import Enum
from typing import Any, Optional


class ErrorCategory(str, Enum):
    """Failure taxonomy used for notifications."""

    VALIDATION = "validation"
    USER_REJECTED = "user_rejected"
    BUSINESS_RULE_VIOLATION = "business_rule_violation"
    INFRASTRUCTURE_ERROR = "infrastructure_error"


class MoltenFlowError(Exception):
    """Base exception for all orchestration errors."""

    category = ErrorCategory.VALIDATION

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


# ======================
# Validation
# ======================


class InvalidAmount(MoltenFlowError):
    """Raised when an amount is malformed, negative or too precise."""

    def __init__(self, message: str, value: Any = None, details: Optional[dict] = None):
        super().__init__(message, details)
        self.value = value


class NotSupported(MoltenFlowError):
    """Raised when a chain or token is not in the chain parameter table."""

    def __init__(
        self,
        message: str,
        chain_id: Optional[int] = None,
        token: Optional[str] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message, details)
        self.chain_id = chain_id
        self.token = token


class UnsupportedDestination(NotSupported):
    """Raised when the destination chain has no bridge id."""

    pass


class InvalidRouteRequest(MoltenFlowError):
    """Raised when a route request is missing fields or has a non-positive amount."""

    def __init__(self, message: str, field: Optional[str] = None, details: Optional[dict] = None):
        super().__init__(message, details)
        self.field = field


class RouteMismatch(MoltenFlowError):
    """Raised when a quoted route would deliver an unexpected asset."""

    def __init__(
        self,
        message: str,
        expected: Optional[str] = None,
        quoted: Optional[str] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message, details)
        self.expected = expected
        self.quoted = quoted


class InvalidBatch(MoltenFlowError):
    """Raised when a call batch violates approve-before-act ordering."""

    pass


# ======================
# Execution
# ======================


class UserRejected(MoltenFlowError):
    """Raised when the user declined to sign."""

    category = ErrorCategory.USER_REJECTED


class BusinessRuleViolation(MoltenFlowError):
    """Raised when an upstream API answered with a structured error."""

    category = ErrorCategory.BUSINESS_RULE_VIOLATION

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        payload: Any = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message, details)
        self.status_code = status_code
        self.payload = payload


class InsufficientBalance(BusinessRuleViolation):
    """Raised when neither wallet nor margin balance can cover an amount."""

    pass


class InfrastructureError(MoltenFlowError):
    """Raised on network failures, timeouts and malformed responses."""

    category = ErrorCategory.INFRASTRUCTURE_ERROR

    def __init__(
        self,
        message: str,
        endpoint: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message, details)
        self.endpoint = endpoint
        self.status_code = status_code
