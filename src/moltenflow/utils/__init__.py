"""Utility modules for MoltenFlow."""

from moltenflow.utils.locks import (
    AccountLock,
    AccountLockRegistry,
    LockTimeoutError,
    account_locks,
    clear_account_locks,
)

__all__ = [
    "AccountLock",
    "AccountLockRegistry",
    "LockTimeoutError",
    "account_locks",
    "clear_account_locks",
]
