"""Transaction batch builder.

Assembles ordered call batches (approve, then act) that the signer
submits as a single unit. Amounts are validated before any I/O.
"""

import logging
from typing import Optional

from moltenflow.amounts import from_base_units, to_base_units
from moltenflow.chain.balances import MARGIN_DECIMALS, UserBalances
from moltenflow.chains import HOME_CHAIN_ID, TRADING_CONTRACT_ADDRESS, token_for
from moltenflow.contracts.calls import CallBatch, CallDescriptor
from moltenflow.contracts.routes import RoutePlanResult
from moltenflow.encoding import encode_transfer, require_address
from moltenflow.exceptions import InsufficientBalance, InvalidAmount, NotSupported
from moltenflow.routing.base import VaultRouteProvider
from moltenflow.transactions.approvals import ApprovalGatekeeper, build_approval_call
from moltenflow.transactions.wallet_api import WalletApiClient

logger = logging.getLogger(__name__)

VAULT_PROTOCOLS = ("aave", "compound", "fluid")


def positive_units(amount: str, decimals: int) -> int:
    """Base units of a strictly positive decimal amount."""
    units = to_base_units(amount, decimals)
    if units == 0:
        raise InvalidAmount(f"Amount must be positive: {amount}", value=amount)
    return units


class TransactionBatchBuilder:
    """Builds call batches for deposits, withdrawals, transfers and vault moves."""

    def __init__(
        self,
        wallet_api: WalletApiClient,
        gatekeeper: Optional[ApprovalGatekeeper] = None,
        vault_router: Optional[VaultRouteProvider] = None,
    ):
        self.wallet_api = wallet_api
        self.gatekeeper = gatekeeper
        self.vault_router = vault_router

    # ======================
    # Margin deposits / wallet operations
    # ======================

    async def _deposit_call(self, amount: str, user_address: str) -> CallDescriptor:
        usdc = token_for(HOME_CHAIN_ID, "USDC")
        op = await self.wallet_api.request_operation("deposit", usdc.address, amount, user_address)
        return CallDescriptor(
            target=op.vault_address,
            data=op.calldata,
            description=f"Deposit {amount} USDC",
        )

    async def build_deposit_batch(self, amount: str, user_address: str) -> CallBatch:
        """Approve the trading contract, then deposit.

        Always exactly two calls. The approval is unconditional: no
        allowance read happens, so there is no read-then-write window.
        See build_gated_deposit_batch() for the allowance-checked variant.
        """
        user_address = require_address(user_address, "user_address")
        usdc = token_for(HOME_CHAIN_ID, "USDC")
        units = positive_units(amount, usdc.decimals)

        approve = build_approval_call(usdc.address, TRADING_CONTRACT_ADDRESS, units)
        deposit = await self._deposit_call(amount, user_address)

        logger.debug(f"Deposit batch for {user_address}: approve {units} + deposit")
        return CallBatch(calls=(approve, deposit), description=f"Deposit {amount} USDC")

    async def build_gated_deposit_batch(self, amount: str, user_address: str) -> CallBatch:
        """Deposit that only approves when the allowance is short."""
        if self.gatekeeper is None:
            raise RuntimeError("Gated deposits need an ApprovalGatekeeper")
        user_address = require_address(user_address, "user_address")

        usdc = token_for(HOME_CHAIN_ID, "USDC")
        units = positive_units(amount, usdc.decimals)

        state = await self.gatekeeper.check_approval(
            user_address, TRADING_CONTRACT_ADDRESS, usdc.address, units, HOME_CHAIN_ID
        )
        deposit = await self._deposit_call(amount, user_address)

        calls = [state.approval_call] if state.needs_approval else []
        calls.append(deposit)
        return CallBatch(calls=tuple(calls), description=f"Deposit {amount} USDC")

    async def build_wallet_operation(
        self,
        op_type: str,
        amount: str,
        user_address: str,
        token: str = "USDC",
    ) -> CallDescriptor:
        """Single call for a withdraw or other wallet operation. No approval."""
        user_address = require_address(user_address, "user_address")
        info = token_for(HOME_CHAIN_ID, token)
        positive_units(amount, info.decimals)

        op = await self.wallet_api.request_operation(op_type, info.address, amount, user_address)
        return CallDescriptor(
            target=op.vault_address,
            data=op.calldata,
            description=f"{op_type.capitalize()} {amount} {info.symbol}",
        )

    def build_token_transfer(
        self,
        chain_id: int,
        token: str,
        recipient: str,
        amount: str,
    ) -> CallDescriptor:
        """ERC-20 transfer, e.g. funding the smart account or paying out to the owner."""
        info = token_for(chain_id, token)
        to = require_address(recipient, "recipient")
        units = positive_units(amount, info.decimals)
        return CallDescriptor(
            target=info.address,
            data=encode_transfer(to, units),
            description=f"Transfer {amount} {info.symbol} to {to[:10]}...",
        )

    # ======================
    # Lending vaults
    # ======================

    def _vault_token(self, protocol: str):
        if protocol.lower() not in VAULT_PROTOCOLS:
            raise NotSupported(f"Unsupported vault protocol: {protocol}", token=protocol)
        return token_for(HOME_CHAIN_ID, protocol.upper())

    def _require_router(self) -> VaultRouteProvider:
        if self.vault_router is None:
            raise RuntimeError("Vault operations need a VaultRouteProvider")
        return self.vault_router

    async def build_vault_deposit_batch(
        self,
        protocol: str,
        amount: str,
        user_address: str,
        balances: UserBalances,
    ) -> CallBatch:
        """Deposit USDC into a lending vault.

        When the smart account holds less USDC than requested, the
        shortfall is withdrawn from margin first; if margin cannot cover
        it either, InsufficientBalance is raised before any route request.
        Batch: [margin withdrawal?, approve router, route transaction].
        """
        user_address = require_address(user_address, "user_address")
        usdc = token_for(HOME_CHAIN_ID, "USDC")
        vault_token = self._vault_token(protocol)
        router = self._require_router()
        units = positive_units(amount, usdc.decimals)

        calls: list[CallDescriptor] = []
        if units > balances.usdc_balance:
            shortfall = units - balances.usdc_balance
            shortfall_str = from_base_units(shortfall, usdc.decimals)
            margin_in_usdc = balances.margin_balance // 10 ** (MARGIN_DECIMALS - usdc.decimals)

            if margin_in_usdc < shortfall:
                raise InsufficientBalance(
                    f"Insufficient balance. Need {shortfall_str} more USDC.",
                    details={"shortfall": shortfall_str},
                )

            logger.info(f"Covering {shortfall_str} USDC shortfall from margin for {user_address}")
            calls.append(
                await self.build_wallet_operation("withdraw", shortfall_str, user_address)
            )

        route = await router.get_route(user_address, units, usdc.address, vault_token.address)
        calls.append(build_approval_call(usdc.address, route.to, units))
        calls.append(
            CallDescriptor(
                target=route.to,
                value=route.value,
                data=route.data,
                description=f"Deposit {amount} USDC into {protocol} vault",
            )
        )
        return CallBatch(calls=tuple(calls), description=f"Vault deposit ({protocol})")

    async def build_vault_withdraw_batch(
        self,
        protocol: str,
        amount: str,
        user_address: str,
    ) -> CallBatch:
        """Withdraw from a lending vault: [approve router for vault token, route]."""
        user_address = require_address(user_address, "user_address")
        usdc = token_for(HOME_CHAIN_ID, "USDC")
        vault_token = self._vault_token(protocol)
        router = self._require_router()
        units = positive_units(amount, vault_token.decimals)

        route = await router.get_route(user_address, units, vault_token.address, usdc.address)
        return CallBatch(
            calls=(
                build_approval_call(vault_token.address, route.to, units),
                CallDescriptor(
                    target=route.to,
                    value=route.value,
                    data=route.data,
                    description=f"Withdraw {amount} from {protocol} vault",
                ),
            ),
            description=f"Vault withdraw ({protocol})",
        )

    # ======================
    # Cross-chain
    # ======================

    async def build_cross_chain_stake_batch(
        self,
        plan: RoutePlanResult,
        owner: str,
    ) -> CallBatch:
        """[approve route router if allowance is short, route transaction]."""
        if self.gatekeeper is None:
            raise RuntimeError("Cross-chain stakes need an ApprovalGatekeeper")
        owner = require_address(owner, "owner")

        state = await self.gatekeeper.check_approval(
            owner, plan.spender, plan.from_token, plan.from_amount, plan.source_chain_id
        )
        calls = [state.approval_call] if state.needs_approval else []
        calls.append(plan.transaction)
        return CallBatch(
            calls=tuple(calls),
            description=(
                f"Cross-chain stake {plan.from_amount} from chain {plan.source_chain_id}"
            ),
        )
