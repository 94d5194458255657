"""Per-account serialization of transaction submission.

Two orchestrations for the same account never interleave between the
allowance check and submission, which avoids nonce and ordering
conflicts at the signing layer. Accounts are keyed by lowercased
address, so checksum and lowercase spellings share one lock.
"""

import asyncio
import logging
from typing import Optional

logger = logging.getLogger(__name__)


class LockTimeoutError(Exception):
    """Raised when an account lock cannot be acquired in time."""

    def __init__(self, message: str, account: str, blocking_operation: Optional[str] = None):
        super().__init__(message)
        self.account = account
        self.blocking_operation = blocking_operation


class AccountLockRegistry:
    """One asyncio.Lock per account address, plus the operation holding it."""

    def __init__(self):
        self._locks: dict[str, asyncio.Lock] = {}
        self._holders: dict[str, str] = {}

    @staticmethod
    def key(account: str) -> str:
        return (account or "").strip().lower()

    def lock_for(self, account: str) -> asyncio.Lock:
        """Get or create the lock for an account.

        No await happens between lookup and insert, so concurrent callers
        always receive the same lock.
        """
        return self._locks.setdefault(self.key(account), asyncio.Lock())

    def is_locked(self, account: str) -> bool:
        lock = self._locks.get(self.key(account))
        return lock is not None and lock.locked()

    def holder(self, account: str) -> Optional[str]:
        """Operation currently holding the account's lock, if any."""
        return self._holders.get(self.key(account))

    def _set_holder(self, account: str, operation: Optional[str]) -> None:
        if operation is None:
            self._holders.pop(self.key(account), None)
        else:
            self._holders[self.key(account)] = operation

    def clear(self) -> None:
        self._locks.clear()
        self._holders.clear()


account_locks = AccountLockRegistry()


class AccountLock:
    """Async context manager holding an account's submission lock.

    Example:
        async with AccountLock(account, operation="deposit"):
            state = await gatekeeper.check_approval(...)
            await signer.send_batch(batch)
    """

    def __init__(
        self,
        account: str,
        timeout: Optional[float] = 30.0,
        operation: str = "submission",
        registry: Optional[AccountLockRegistry] = None,
    ):
        self.account = account
        self.timeout = timeout
        self.operation = operation
        self.registry = registry or account_locks
        self._lock: Optional[asyncio.Lock] = None

    async def __aenter__(self) -> "AccountLock":
        lock = self.registry.lock_for(self.account)

        try:
            if self.timeout:
                await asyncio.wait_for(lock.acquire(), timeout=self.timeout)
            else:
                await lock.acquire()
        except asyncio.TimeoutError:
            blocking = self.registry.holder(self.account)
            logger.warning(
                f"{self.operation} for {self.account} waited {self.timeout}s "
                f"behind {blocking or 'another operation'}"
            )
            raise LockTimeoutError(
                f"Could not acquire lock for {self.account} within {self.timeout}s "
                f"({blocking or 'another operation'} in progress)",
                account=self.account,
                blocking_operation=blocking,
            )

        self._lock = lock
        self.registry._set_holder(self.account, self.operation)
        logger.debug(f"Lock acquired for {self.account}: {self.operation}")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self._lock is not None:
            self.registry._set_holder(self.account, None)
            self._lock.release()
            self._lock = None
            logger.debug(f"Lock released for {self.account}: {self.operation}")
        return False


def clear_account_locks() -> None:
    """Forget all account locks (useful for testing)."""
    account_locks.clear()
