"""Tests for failure classification and notifications."""

import asyncio

import httpx
import pytest

from moltenflow.exceptions import (
    BusinessRuleViolation,
    ErrorCategory,
    InfrastructureError,
    InvalidAmount,
    UserRejected,
)
from moltenflow.services.classifier import (
    build_notification,
    build_success_notification,
    classify_error,
)
from moltenflow.utils.locks import LockTimeoutError


class WalletError(Exception):
    """Shape of an error raised by a wallet provider."""

    def __init__(self, message, code=None, data=None):
        super().__init__(message)
        self.code = code
        self.data = data


class TestClassifyError:
    """Tests for classify_error."""

    def test_classified_error_unchanged(self):
        error = InvalidAmount("bad")
        assert classify_error(error) is error

    @pytest.mark.parametrize(
        "exc",
        [
            Exception("User rejected the request."),
            Exception("Transaction REJECTED by signer"),
            WalletError("denied", code=4001),
        ],
    )
    def test_user_rejected(self, exc):
        error = classify_error(exc)
        assert isinstance(error, UserRejected)
        assert error.category == ErrorCategory.USER_REJECTED

    def test_rejection_in_cause(self):
        try:
            try:
                raise WalletError("denied", code=4001)
            except WalletError as inner:
                raise RuntimeError("send failed") from inner
        except RuntimeError as exc:
            assert isinstance(classify_error(exc), UserRejected)

    def test_structured_error_payload(self):
        error = classify_error(WalletError("failed", data={"error": "Max leverage exceeded"}))

        assert isinstance(error, BusinessRuleViolation)
        assert error.message == "Max leverage exceeded"

    @pytest.mark.parametrize(
        "exc,fragment",
        [
            (httpx.ReadTimeout("slow"), "timed out"),
            (asyncio.TimeoutError(), "timed out"),
            (httpx.ConnectError("refused"), "Network error"),
            (ConnectionResetError("reset"), "Network error"),
            (ValueError("Expecting value"), "Malformed response"),
            (LockTimeoutError("Could not acquire lock", account="0xabc"), "Could not acquire lock"),
            (RuntimeError("boom"), "boom"),
        ],
    )
    def test_infrastructure(self, exc, fragment):
        error = classify_error(exc)
        assert isinstance(error, InfrastructureError)
        assert fragment in error.message


class TestNotifications:
    """Tests for notification text."""

    def test_rejected(self):
        note = build_notification(UserRejected("User rejected the transaction"), "deposit")
        assert note.title == "Transaction Cancelled"
        assert note.message == "User rejected the transaction"
        assert note.is_error

    def test_validation(self):
        note = build_notification(InvalidAmount("Amount must be positive"), "deposit")
        assert note.title == "Invalid Request"
        assert note.message == "Amount must be positive"

    def test_execution_failure(self):
        note = build_notification(InfrastructureError("rpc down"), "withdraw")
        assert note.title == "Error"
        assert note.message == "Failed to withdraw: rpc down"

    def test_success(self):
        note = build_success_notification("bridge", "0xabc")
        assert not note.is_error
        assert note.tx_hash == "0xabc"
