"""Tests for per-account submission locks."""

import asyncio

import pytest

from moltenflow.utils.locks import (
    AccountLock,
    AccountLockRegistry,
    LockTimeoutError,
    account_locks,
    clear_account_locks,
)

from conftest import OTHER, USER


class TestAccountLocks:
    """Tests for the concurrency locks module."""

    @pytest.fixture(autouse=True)
    def setup(self):
        """Clear locks before each test."""
        clear_account_locks()

    def test_same_account_same_lock(self):
        """Address case does not matter."""
        lock1 = account_locks.lock_for(USER)
        lock2 = account_locks.lock_for(USER.upper().replace("0X", "0x"))

        assert lock1 is lock2

    def test_different_accounts_different_locks(self):
        assert account_locks.lock_for(USER) is not account_locks.lock_for(OTHER)

    @pytest.mark.asyncio
    async def test_context_manager_releases(self):
        async with AccountLock(USER, operation="deposit"):
            assert account_locks.is_locked(USER)
            assert account_locks.holder(USER.upper().replace("0X", "0x")) == "deposit"

        assert not account_locks.is_locked(USER)
        assert account_locks.holder(USER) is None

    @pytest.mark.asyncio
    async def test_releases_on_error(self):
        with pytest.raises(RuntimeError):
            async with AccountLock(USER, operation="deposit"):
                raise RuntimeError("signer failed")

        assert not account_locks.is_locked(USER)

    @pytest.mark.asyncio
    async def test_serializes_same_account(self):
        """Critical sections for one account never interleave."""
        events = []

        async def critical(name):
            async with AccountLock(USER, operation=name):
                events.append(f"{name}-start")
                await asyncio.sleep(0.01)
                events.append(f"{name}-end")

        await asyncio.gather(critical("a"), critical("b"))

        assert events in (
            ["a-start", "a-end", "b-start", "b-end"],
            ["b-start", "b-end", "a-start", "a-end"],
        )

    @pytest.mark.asyncio
    async def test_different_accounts_run_concurrently(self):
        async with AccountLock(USER):
            async with AccountLock(OTHER, timeout=0.05):
                assert account_locks.is_locked(OTHER)

    @pytest.mark.asyncio
    async def test_timeout_names_blocking_operation(self):
        async with AccountLock(USER, operation="bridge"):
            with pytest.raises(LockTimeoutError) as exc_info:
                async with AccountLock(USER, timeout=0.05, operation="deposit"):
                    pass

        assert exc_info.value.blocking_operation == "bridge"
        assert exc_info.value.account == USER
        assert "bridge in progress" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_separate_registry(self):
        registry = AccountLockRegistry()

        async with AccountLock(USER, registry=registry):
            assert registry.is_locked(USER)
            assert not account_locks.is_locked(USER)
