"""Failure classification and user notifications.

Every raised failure maps onto one category of the error taxonomy. The
classifier never retries; it only decides how a failure is reported.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from moltenflow.exceptions import (
    BusinessRuleViolation,
    ErrorCategory,
    InfrastructureError,
    MoltenFlowError,
    UserRejected,
)
from moltenflow.utils.locks import LockTimeoutError

logger = logging.getLogger(__name__)

# EIP-1193 "User Rejected Request"
USER_REJECTED_CODE = 4001


def _is_rejection(exc: BaseException) -> bool:
    if "rejected" in str(exc).lower():
        return True
    code = getattr(exc, "code", None)
    return code == USER_REJECTED_CODE or code == str(USER_REJECTED_CODE)


def _structured_error(exc: BaseException) -> Optional[str]:
    payload: Any = getattr(exc, "payload", None)
    if payload is None:
        payload = getattr(exc, "data", None)
    if isinstance(payload, dict) and payload.get("error"):
        error = payload["error"]
        if isinstance(error, dict):
            return str(error.get("message") or error)
        return str(error)
    return None


def classify_error(exc: BaseException) -> MoltenFlowError:
    """Map any failure onto the error taxonomy.

    Already-classified errors are returned unchanged. Otherwise:
    - "rejected" in the message (any case) or code 4001 -> UserRejected
    - an {error} payload attached to the failure -> BusinessRuleViolation
    - everything else (network, timeout, malformed, unknown) -> InfrastructureError
    """
    if isinstance(exc, MoltenFlowError):
        return exc

    chain = [exc]
    if exc.__cause__ is not None:
        chain.append(exc.__cause__)

    if any(_is_rejection(e) for e in chain):
        return UserRejected("User rejected the transaction", details={"reason": str(exc)})

    message = _structured_error(exc)
    if message is not None:
        return BusinessRuleViolation(
            message,
            status_code=getattr(exc, "status_code", None),
            payload=getattr(exc, "payload", None) or getattr(exc, "data", None),
        )

    if isinstance(exc, (httpx.TimeoutException, asyncio.TimeoutError)):
        return InfrastructureError(f"Request timed out: {exc}")
    if isinstance(exc, LockTimeoutError):
        return InfrastructureError(str(exc))
    if isinstance(exc, (httpx.HTTPError, ConnectionError, OSError)):
        return InfrastructureError(f"Network error: {exc}")
    if isinstance(exc, ValueError):
        return InfrastructureError(f"Malformed response: {exc}")

    return InfrastructureError(str(exc) or exc.__class__.__name__)


@dataclass
class Notification:
    """Single user-facing message for a finished operation."""

    title: str
    message: str
    category: Optional[ErrorCategory] = None
    operation: Optional[str] = None
    tx_hash: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return self.category is not None


def build_notification(error: MoltenFlowError, operation: str) -> Notification:
    """Describe a classified failure of `operation` for the user."""
    if error.category == ErrorCategory.USER_REJECTED:
        title = "Transaction Cancelled"
        message = "User rejected the transaction"
    elif error.category == ErrorCategory.VALIDATION:
        title = "Invalid Request"
        message = error.message
    else:
        title = "Error"
        message = f"Failed to {operation}: {error.message}"

    return Notification(title=title, message=message, category=error.category, operation=operation)


def build_success_notification(operation: str, tx_hash: str) -> Notification:
    return Notification(
        title="Success",
        message=f"Successfully completed {operation}",
        operation=operation,
        tx_hash=tx_hash,
    )
