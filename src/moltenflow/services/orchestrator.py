"""Transaction orchestration.

Each operation runs as one sequence of awaited steps under the
account's submission lock:

1. Validate and build the call batch (approval checks happen here)
2. Hand the batch to the signer
3. Notify the user exactly once
4. Trigger a throttled balance refresh, only after success

Failures are classified, notified and re-raised. Nothing is retried.
"""

import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional, Union

import httpx

from moltenflow.chain.balances import BalanceReader
from moltenflow.chain.reader import JsonRpcChainReader
from moltenflow.config import Settings, get_settings
from moltenflow.contracts.calls import CallBatch, CallDescriptor
from moltenflow.contracts.routes import RouteRequest
from moltenflow.exceptions import MoltenFlowError
from moltenflow.routing.bridge import build_bridge_call, plan_bridge_route
from moltenflow.routing.factory import create_route_provider, create_vault_route_provider
from moltenflow.routing.squid import CrossChainStakePlanner
from moltenflow.services.classifier import (
    Notification,
    build_notification,
    build_success_notification,
    classify_error,
)
from moltenflow.services.throttle import RefreshThrottler
from moltenflow.signing.base import BatchSigner, TransactionResult
from moltenflow.signing.factory import get_signer
from moltenflow.transactions.approvals import ApprovalGatekeeper
from moltenflow.transactions.builder import TransactionBatchBuilder
from moltenflow.transactions.wallet_api import WalletApiClient
from moltenflow.utils.locks import AccountLock

logger = logging.getLogger(__name__)

Notifier = Callable[[Notification], Any]
RefreshCallback = Callable[[str], Awaitable[Any]]
BuildStep = Callable[[], Awaitable[Union[CallBatch, CallDescriptor]]]


def log_notifier(notification: Notification) -> None:
    """Default notifier: write the notification to the log."""
    if notification.is_error:
        logger.error(f"{notification.title}: {notification.message}")
    else:
        logger.info(f"{notification.title}: {notification.message} ({notification.tx_hash})")


@dataclass
class OrchestratorContext:
    """Everything an Orchestrator needs, passed in explicitly.

    The throttler carries the refresh state, so each context (and each
    test) gets an isolated one.
    """

    builder: TransactionBatchBuilder
    signer: BatchSigner
    settings: Settings = field(default_factory=get_settings)
    throttler: RefreshThrottler = field(default_factory=RefreshThrottler)
    refresh: Optional[RefreshCallback] = None
    notifier: Notifier = log_notifier
    stake_planner: Optional[CrossChainStakePlanner] = None
    balance_reader: Optional[BalanceReader] = None


def create_context(
    settings: Optional[Settings] = None,
    signer: Optional[BatchSigner] = None,
    notifier: Notifier = log_notifier,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> OrchestratorContext:
    """Wire the default collaborators from settings."""
    settings = settings or get_settings()

    reader = JsonRpcChainReader(settings=settings, transport=transport)
    gatekeeper = ApprovalGatekeeper(reader)
    balance_reader = BalanceReader(reader)
    builder = TransactionBatchBuilder(
        wallet_api=WalletApiClient(settings=settings, transport=transport),
        gatekeeper=gatekeeper,
        vault_router=create_vault_route_provider(transport=transport),
    )

    return OrchestratorContext(
        builder=builder,
        signer=signer or get_signer(),
        settings=settings,
        throttler=RefreshThrottler(interval_ms=settings.refresh_throttle_ms),
        refresh=balance_reader.refresh,
        notifier=notifier,
        stake_planner=CrossChainStakePlanner(
            create_route_provider(transport=transport), settings=settings
        ),
        balance_reader=balance_reader,
    )


class Orchestrator:
    """Top-level entry points for user transaction intents."""

    def __init__(self, context: OrchestratorContext):
        self.context = context

    async def _notify(self, notification: Notification) -> None:
        outcome = self.context.notifier(notification)
        if inspect.isawaitable(outcome):
            await outcome

    async def _refresh_balances(self, account: str) -> None:
        if self.context.refresh is None:
            return

        async def refresh() -> None:
            await self.context.refresh(account)

        try:
            await self.context.throttler.run(refresh)
        except MoltenFlowError as e:
            logger.warning(f"Balance refresh failed for {account}: {e.message}")

    async def _execute(self, account: str, operation: str, build: BuildStep) -> TransactionResult:
        try:
            async with AccountLock(
                account, timeout=self.context.settings.account_lock_timeout, operation=operation
            ):
                built = await build()
                if isinstance(built, CallBatch):
                    logger.info(f"{operation}: submitting {len(built)} call(s) for {account}")
                    result = await self.context.signer.send_batch(built)
                else:
                    logger.info(f"{operation}: submitting 1 call for {account}")
                    result = await self.context.signer.send(built)
        except Exception as exc:
            error = classify_error(exc)
            logger.warning(f"{operation} failed ({error.category.value}): {error.message}")
            await self._notify(build_notification(error, operation))
            if error is exc:
                raise
            raise error from exc

        logger.info(f"{operation} succeeded: {result.tx_hash}")
        await self._notify(build_success_notification(operation, result.tx_hash))
        await self._refresh_balances(account)
        return result

    # ======================
    # Operations
    # ======================

    async def deposit(self, amount: str, user_address: str) -> TransactionResult:
        """Approve and deposit USDC into the trading contract."""
        builder = self.context.builder
        if self.context.settings.gate_deposit_approval:
            build_batch = builder.build_gated_deposit_batch
        else:
            build_batch = builder.build_deposit_batch
        return await self._execute(
            user_address,
            "approve and deposit USDC",
            lambda: build_batch(amount, user_address),
        )

    async def wallet_operation(
        self,
        op_type: str,
        amount: str,
        user_address: str,
        token: str = "USDC",
    ) -> TransactionResult:
        """Withdraw or other single-call wallet operation."""
        return await self._execute(
            user_address,
            op_type,
            lambda: self.context.builder.build_wallet_operation(
                op_type, amount, user_address, token
            ),
        )

    async def transfer(
        self,
        sender: str,
        chain_id: int,
        token: str,
        recipient: str,
        amount: str,
    ) -> TransactionResult:
        """ERC-20 transfer from `sender`."""

        async def build() -> CallDescriptor:
            return self.context.builder.build_token_transfer(chain_id, token, recipient, amount)

        return await self._execute(sender, "transfer", build)

    async def bridge(self, request: RouteRequest) -> TransactionResult:
        """Bridge MOLTEN to another chain."""

        async def build() -> CallDescriptor:
            args = plan_bridge_route(request)
            return build_bridge_call(args, request.source_chain_id)

        account = request.sender_address or request.recipient_address or ""
        return await self._execute(account, "bridge", build)

    async def cross_chain_stake(
        self,
        user_address: str,
        source_chain_id: int,
        token: str,
        amount: str,
    ) -> TransactionResult:
        """Bridge a stable token to Arbitrum and stake it into the USDM vault."""
        planner = self.context.stake_planner
        if planner is None:
            raise RuntimeError("Cross-chain stakes need a CrossChainStakePlanner")

        async def build() -> CallBatch:
            plan = await planner.plan_cross_chain_stake(
                user_address, source_chain_id, token, amount
            )
            return await self.context.builder.build_cross_chain_stake_batch(plan, user_address)

        return await self._execute(user_address, "cross-chain stake", build)

    async def vault_deposit(self, protocol: str, amount: str, user_address: str) -> TransactionResult:
        """Deposit USDC into a lending vault, topping up from margin if needed."""
        reader = self.context.balance_reader
        if reader is None:
            raise RuntimeError("Vault deposits need a BalanceReader")

        async def build() -> CallBatch:
            balances = await reader.get_user_balances(user_address)
            return await self.context.builder.build_vault_deposit_batch(
                protocol, amount, user_address, balances
            )

        return await self._execute(user_address, "deposit", build)

    async def vault_withdraw(self, protocol: str, amount: str, user_address: str) -> TransactionResult:
        """Withdraw from a lending vault back to USDC."""
        return await self._execute(
            user_address,
            "withdraw",
            lambda: self.context.builder.build_vault_withdraw_batch(
                protocol, amount, user_address
            ),
        )
