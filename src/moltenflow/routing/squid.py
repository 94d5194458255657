"""Cross-chain stake routing through the route service.

The route bridges a stable token to Arbitrum USDC and ends in a two-call
post-route hook: approve the USDM vault, then stake for the user.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Optional

import httpx

from moltenflow.amounts import to_base_units
from moltenflow.chains import HOME_CHAIN_ID, USDM_VAULT_ADDRESS, token_for
from moltenflow.config import Settings, get_settings
from moltenflow.contracts.calls import CallDescriptor, CallMetadata
from moltenflow.contracts.routes import RoutePlanResult
from moltenflow.encoding import encode_approve, encode_stake, require_address
from moltenflow.exceptions import (
    InfrastructureError,
    InvalidAmount,
    InvalidRouteRequest,
    NotSupported,
    RouteMismatch,
)
from moltenflow.http import request_json
from moltenflow.routing.base import CrossChainRouteProvider

logger = logging.getLogger(__name__)

HOOK_APPROVE_GAS = 150000
HOOK_STAKE_GAS = 850000
HOOK_PROVIDER = "MoltenFlow"
HOOK_DESCRIPTION = "Cross-Chain USDM Stake"

# Hook calls spend the bridged amount as Arbitrum USDC base units
STAKE_SOURCE_SYMBOL = "USDC"


class SquidRouteClient(CrossChainRouteProvider):
    """HTTP client for the cross-chain route service (v2 /route)."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()
        self._transport = transport

    @property
    def name(self) -> str:
        return "Squid"

    def _get_headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        if self.settings.squid_integrator_id:
            headers["x-integrator-id"] = self.settings.squid_integrator_id
        return headers

    async def get_route(self, params: dict) -> dict:
        url = f"{self.settings.squid_api_url.rstrip('/')}/v2/route"
        logger.debug(
            f"Requesting route {params.get('fromChain')} -> {params.get('toChain')} "
            f"for {params.get('fromAmount')}"
        )
        data = await request_json(
            "POST",
            url,
            json=params,
            headers=self._get_headers(),
            timeout=self.settings.request_timeout,
            transport=self._transport,
        )
        if not isinstance(data, dict):
            raise InfrastructureError("Malformed route response", endpoint=url)
        return data


def _quoted_to_token(route: dict) -> Optional[str]:
    """Find the quoted output token address in a route body."""
    to_token = route.get("toToken")
    if to_token is None:
        to_token = (route.get("estimate") or {}).get("toToken")
    if to_token is None:
        to_token = (route.get("params") or {}).get("toToken")
    if isinstance(to_token, dict):
        to_token = to_token.get("address")
    if isinstance(to_token, str) and to_token:
        return to_token
    return None


def _as_int(value, default: int = 0) -> int:
    if value is None or value == "":
        return default
    return int(value)


class CrossChainStakePlanner:
    """Plans a bridge-and-stake into the USDM vault."""

    def __init__(
        self,
        provider: CrossChainRouteProvider,
        settings: Optional[Settings] = None,
    ):
        self.provider = provider
        self.settings = settings or get_settings()

    def build_hook_calls(self, user_address: str, amount: int) -> list[CallDescriptor]:
        """Post-route hook: approve the vault, then stake for the user."""
        usdc = token_for(HOME_CHAIN_ID, "USDC")
        return [
            CallDescriptor(
                target=usdc.address,
                data=encode_approve(USDM_VAULT_ADDRESS, amount),
                description="Approve USDM vault",
                approves=USDM_VAULT_ADDRESS,
                metadata=CallMetadata(
                    token_address=usdc.address,
                    input_position=1,
                    estimated_gas=HOOK_APPROVE_GAS,
                ),
            ),
            CallDescriptor(
                target=USDM_VAULT_ADDRESS,
                data=encode_stake(user_address, usdc.address, amount),
                description="Stake USDC into USDM vault",
                metadata=CallMetadata(
                    token_address=usdc.address,
                    input_position=2,
                    estimated_gas=HOOK_STAKE_GAS,
                ),
            ),
        ]

    def build_route_params(
        self,
        user_address: str,
        source_chain_id: int,
        token_address: str,
        amount: int,
        hook_calls: list[CallDescriptor],
    ) -> dict:
        usdc = token_for(HOME_CHAIN_ID, "USDC")
        return {
            "fromAddress": user_address,
            "fromChain": str(source_chain_id),
            "fromToken": token_address,
            "fromAmount": str(amount),
            "toChain": str(HOME_CHAIN_ID),
            "toToken": usdc.address,
            "toAddress": user_address,
            "slippage": self.settings.squid_slippage_percent,
            "enableExpress": True,
            "enableForecall": True,
            "quoteOnly": False,
            "postHook": {
                "chainType": "evm",
                "calls": [
                    {**c.to_hook_call(), "chainType": "evm"} for c in hook_calls
                ],
                "provider": HOOK_PROVIDER,
                "description": HOOK_DESCRIPTION,
            },
        }

    async def plan_cross_chain_stake(
        self,
        user_address: str,
        source_chain_id: int,
        token: str,
        amount: str,
    ) -> RoutePlanResult:
        """Quote a route that bridges `token` and stakes it into the vault.

        Args:
            user_address: Account that pays and receives the stake
            source_chain_id: Chain the token leaves from
            token: Source token symbol or address
            amount: Decimal amount of the source token

        Returns:
            RoutePlanResult with the route transaction and hook calls

        Raises:
            InvalidRouteRequest: Bad user address or non-positive amount
            NotSupported: Unknown source chain, or a source token other than USDC
            RouteMismatch: Quoted output token is not Arbitrum USDC
            InfrastructureError: Route service unreachable or response malformed
        """
        if not user_address:
            raise InvalidRouteRequest("User address is required", field="user_address")
        user = require_address(user_address, "user_address")
        token_info = token_for(source_chain_id, token)
        if token_info.symbol != STAKE_SOURCE_SYMBOL:
            raise NotSupported(
                f"Cross-chain stakes accept {STAKE_SOURCE_SYMBOL} only, got {token_info.symbol}",
                chain_id=source_chain_id,
                token=token,
            )

        try:
            if Decimal(str(amount)) <= 0:
                raise InvalidRouteRequest(f"Amount must be positive: {amount}", field="amount")
        except InvalidOperation:
            raise InvalidAmount(f"Invalid amount: {amount!r}", value=amount)
        units = to_base_units(amount, token_info.decimals)

        hook_calls = self.build_hook_calls(user, units)
        params = self.build_route_params(user, source_chain_id, token_info.address, units, hook_calls)

        logger.info(
            f"Planning cross-chain stake: {amount} {token_info.symbol} "
            f"chain {source_chain_id} -> {HOME_CHAIN_ID} via {self.provider.name}"
        )
        response = await self.provider.get_route(params)
        route = response.get("route") if isinstance(response, dict) else None
        if not isinstance(route, dict):
            raise InfrastructureError(f"{self.provider.name} returned no route")

        expected = token_for(HOME_CHAIN_ID, "USDC").address
        quoted = _quoted_to_token(route)
        if quoted is None or quoted.lower() != expected.lower():
            logger.warning(f"Route output token {quoted} does not match {expected}")
            raise RouteMismatch(
                "Invalid route: output token does not match Arbitrum USDC",
                expected=expected,
                quoted=quoted,
            )

        tx = route.get("transactionRequest")
        if not isinstance(tx, dict) or not (tx.get("target") or tx.get("to")):
            raise InfrastructureError(f"{self.provider.name} route has no transaction request")

        estimate = route.get("estimate") or {}
        try:
            transaction = CallDescriptor(
                target=tx.get("target") or tx.get("to"),
                value=_as_int(tx.get("value")),
                data=tx.get("data") or "0x",
                description=f"Cross-chain stake via {self.provider.name}",
            )
            result = RoutePlanResult(
                provider=self.provider.name,
                source_chain_id=source_chain_id,
                destination_chain_id=HOME_CHAIN_ID,
                from_token=token_info.address,
                to_token=expected,
                from_amount=units,
                to_amount=_as_int(estimate.get("toAmount")),
                to_amount_min=_as_int(estimate.get("toAmountMin")),
                transaction=transaction,
                hook_calls=hook_calls,
                exchange_rate=estimate.get("exchangeRate"),
                from_amount_usd=estimate.get("fromAmountUSD"),
                estimated_duration=estimate.get("estimatedRouteDuration"),
                raw=route,
            )
        except (TypeError, ValueError) as e:
            raise InfrastructureError(f"Malformed route from {self.provider.name}: {e}") from e

        logger.info(
            f"Route quoted: {units} -> {result.to_amount} (min {result.to_amount_min}) "
            f"in ~{result.estimated_duration}s"
        )
        return result
