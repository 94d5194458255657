"""Tests for transaction orchestration."""

import asyncio

import pytest

from moltenflow.chain.balances import BalanceReader
from moltenflow.chains import ARBITRUM, BASE, MOLTEN_OFT_ADDRESS
from moltenflow.contracts.calls import CallBatch
from moltenflow.contracts.routes import RouteRequest
from moltenflow.exceptions import (
    BusinessRuleViolation,
    ErrorCategory,
    InfrastructureError,
    InsufficientBalance,
    InvalidAmount,
    InvalidRouteRequest,
    UserRejected,
)
from moltenflow.routing.dry_run import DryRunRouteProvider, DryRunVaultRouteProvider
from moltenflow.routing.squid import CrossChainStakePlanner
from moltenflow.services.orchestrator import Orchestrator, OrchestratorContext, create_context
from moltenflow.services.throttle import RefreshThrottler
from moltenflow.signing.base import BatchSigner, SignerType, TransactionResult
from moltenflow.signing.dry_run import DryRunSigner
from moltenflow.transactions.approvals import ApprovalGatekeeper
from moltenflow.transactions.builder import TransactionBatchBuilder
from moltenflow.transactions.wallet_api import WalletApiClient

from conftest import OTHER, USER, WALLET_API_TARGET, StaticReader, json_transport


class RejectingSigner(BatchSigner):
    """Signer whose user always declines."""

    def __init__(self):
        super().__init__(SignerType.SMART_ACCOUNT)

    async def send_batch(self, batch: CallBatch) -> TransactionResult:
        raise Exception("User rejected the request.")


class SlowSigner(DryRunSigner):
    """Records when each submission starts and ends."""

    def __init__(self, events: list):
        super().__init__()
        self.events = events

    async def send_batch(self, batch: CallBatch) -> TransactionResult:
        self.events.append("send-start")
        await asyncio.sleep(0.01)
        self.events.append("send-end")
        return await super().send_batch(batch)


class Recorder:
    """Collects notifications and refreshes."""

    def __init__(self):
        self.notifications = []
        self.refreshes = []

    def notify(self, notification):
        self.notifications.append(notification)

    async def refresh(self, account):
        self.refreshes.append(account)


def _wallet_api(settings, status=200, body=None):
    body = body or {"vaultAddress": WALLET_API_TARGET, "calldata": "0xdeadbeef"}
    return WalletApiClient(settings, transport=json_transport(lambda r: (status, body)))


def _orchestrator(
    settings, signer=None, recorder=None, wallet_api=None, allowance=0, balances=None
):
    recorder = recorder or Recorder()
    reader = StaticReader((allowance,))
    builder = TransactionBatchBuilder(
        wallet_api=wallet_api or _wallet_api(settings),
        gatekeeper=ApprovalGatekeeper(reader),
        vault_router=DryRunVaultRouteProvider(),
    )
    context = OrchestratorContext(
        builder=builder,
        signer=signer or DryRunSigner(),
        settings=settings,
        throttler=RefreshThrottler(),
        refresh=recorder.refresh,
        notifier=recorder.notify,
        stake_planner=CrossChainStakePlanner(DryRunRouteProvider(), settings=settings),
        balance_reader=BalanceReader(StaticReader(balances)) if balances else None,
    )
    return Orchestrator(context), recorder


class TestDeposit:
    """Tests for the deposit operation."""

    @pytest.mark.asyncio
    async def test_success_notifies_once_then_refreshes(self, settings):
        signer = DryRunSigner()
        orchestrator, recorder = _orchestrator(settings, signer=signer)

        result = await orchestrator.deposit("100", USER)

        assert result.call_count == 2
        assert len(signer.submitted) == 1
        assert len(recorder.notifications) == 1
        assert recorder.notifications[0].title == "Success"
        assert recorder.notifications[0].tx_hash == result.tx_hash
        assert recorder.refreshes == [USER]

    @pytest.mark.asyncio
    async def test_user_rejection(self, settings):
        orchestrator, recorder = _orchestrator(settings, signer=RejectingSigner())

        with pytest.raises(UserRejected):
            await orchestrator.deposit("100", USER)

        assert [n.title for n in recorder.notifications] == ["Transaction Cancelled"]
        assert recorder.notifications[0].message == "User rejected the transaction"
        assert recorder.refreshes == []

    @pytest.mark.asyncio
    async def test_validation_failure_submits_nothing(self, settings):
        signer = DryRunSigner()
        orchestrator, recorder = _orchestrator(settings, signer=signer)

        with pytest.raises(InvalidAmount):
            await orchestrator.deposit("-1", USER)

        assert signer.submitted == []
        assert recorder.notifications[0].category == ErrorCategory.VALIDATION
        assert recorder.refreshes == []

    @pytest.mark.asyncio
    async def test_oversized_amount_is_validation(self, settings):
        """Amounts beyond uint256 never reach the wallet API or the signer."""
        signer = DryRunSigner()
        calls = []

        def handler(request):
            calls.append(request)
            return 200, {"vaultAddress": WALLET_API_TARGET, "calldata": "0xdeadbeef"}

        wallet_api = WalletApiClient(settings, transport=json_transport(handler))
        orchestrator, recorder = _orchestrator(settings, signer=signer, wallet_api=wallet_api)

        with pytest.raises(InvalidAmount):
            await orchestrator.deposit("1e80", USER)

        assert calls == []
        assert signer.submitted == []
        assert recorder.notifications[0].category == ErrorCategory.VALIDATION

    @pytest.mark.asyncio
    async def test_invalid_user_address_is_validation(self, settings):
        signer = DryRunSigner()
        orchestrator, recorder = _orchestrator(settings, signer=signer)

        with pytest.raises(InvalidRouteRequest):
            await orchestrator.deposit("100", "0x1234")

        assert signer.submitted == []
        assert recorder.notifications[0].category == ErrorCategory.VALIDATION

    @pytest.mark.asyncio
    async def test_upstream_error_notified(self, settings):
        orchestrator, recorder = _orchestrator(
            settings, wallet_api=_wallet_api(settings, 400, {"error": "Deposits paused"})
        )

        with pytest.raises(BusinessRuleViolation):
            await orchestrator.deposit("100", USER)

        assert recorder.notifications[0].category == ErrorCategory.BUSINESS_RULE_VIOLATION
        assert recorder.notifications[0].message == (
            "Failed to approve and deposit USDC: Deposits paused"
        )

    @pytest.mark.asyncio
    async def test_gated_deposit(self, settings):
        settings.gate_deposit_approval = True
        signer = DryRunSigner()
        orchestrator, _ = _orchestrator(settings, signer=signer, allowance=10**30)

        await orchestrator.deposit("100", USER)

        assert len(signer.submitted[0]) == 1

    @pytest.mark.asyncio
    async def test_refresh_throttled_between_operations(self, settings):
        orchestrator, recorder = _orchestrator(settings)

        await orchestrator.deposit("1", USER)
        await orchestrator.deposit("1", USER)

        assert len(recorder.notifications) == 2
        assert recorder.refreshes == [USER]

    @pytest.mark.asyncio
    async def test_refresh_failure_does_not_fail_operation(self, settings):
        orchestrator, recorder = _orchestrator(settings)

        async def broken_refresh(account):
            raise InfrastructureError("rpc down")

        orchestrator.context.refresh = broken_refresh
        result = await orchestrator.deposit("1", USER)

        assert result.tx_hash
        assert orchestrator.context.throttler.last_refresh is None

    @pytest.mark.asyncio
    async def test_same_account_serialized(self, settings):
        events = []
        orchestrator, _ = _orchestrator(settings, signer=SlowSigner(events))

        await asyncio.gather(orchestrator.deposit("1", USER), orchestrator.deposit("2", USER))

        assert events == ["send-start", "send-end", "send-start", "send-end"]


class TestOtherOperations:
    """Tests for the remaining entry points."""

    @pytest.mark.asyncio
    async def test_withdraw_single_call(self, settings):
        signer = DryRunSigner()
        orchestrator, _ = _orchestrator(settings, signer=signer)

        result = await orchestrator.wallet_operation("withdraw", "5", USER)

        assert result.call_count == 1
        assert signer.submitted[0][0].target == WALLET_API_TARGET

    @pytest.mark.asyncio
    async def test_transfer(self, settings):
        signer = DryRunSigner()
        orchestrator, _ = _orchestrator(settings, signer=signer)

        await orchestrator.transfer(USER, ARBITRUM, "USDC", OTHER, "1")

        assert signer.submitted[0][0].data.startswith("0xa9059cbb")

    @pytest.mark.asyncio
    async def test_bridge(self, settings):
        signer = DryRunSigner()
        orchestrator, recorder = _orchestrator(settings, signer=signer)

        await orchestrator.bridge(
            RouteRequest(
                source_chain_id=ARBITRUM,
                destination_chain_id=BASE,
                amount="10",
                recipient_address=OTHER,
                sender_address=USER,
            )
        )

        call = signer.submitted[0][0]
        assert call.target == MOLTEN_OFT_ADDRESS
        assert call.value == 600_000_000_000_000
        assert recorder.refreshes == [USER]

    @pytest.mark.asyncio
    async def test_cross_chain_stake(self, settings):
        signer = DryRunSigner()
        orchestrator, _ = _orchestrator(settings, signer=signer, allowance=0)

        result = await orchestrator.cross_chain_stake(USER, BASE, "USDC", "5")

        assert result.call_count == 2
        assert signer.submitted[0][0].is_approval

    @pytest.mark.asyncio
    async def test_vault_deposit_insufficient(self, settings):
        signer = DryRunSigner()
        orchestrator, recorder = _orchestrator(
            settings, signer=signer, balances=(0, 1_000_000, 0, 0)
        )

        with pytest.raises(InsufficientBalance):
            await orchestrator.vault_deposit("aave", "10", USER)

        assert signer.submitted == []
        assert recorder.notifications[0].message == (
            "Failed to deposit: Insufficient balance. Need 9 more USDC."
        )

    @pytest.mark.asyncio
    async def test_vault_withdraw(self, settings):
        signer = DryRunSigner()
        orchestrator, _ = _orchestrator(settings, signer=signer)

        result = await orchestrator.vault_withdraw("fluid", "3", USER)
        assert result.call_count == 2


class TestCreateContext:
    def test_dry_run_wiring(self, settings):
        context = create_context(settings)

        assert isinstance(context.signer, DryRunSigner)
        assert isinstance(context.stake_planner.provider, DryRunRouteProvider)
        assert context.throttler.interval_ms == settings.refresh_throttle_ms
