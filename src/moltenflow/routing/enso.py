"""Lending vault routing through the Enso shortcuts API."""

import logging
from typing import Optional

import httpx

from moltenflow.chains import HOME_CHAIN_ID
from moltenflow.config import Settings, get_settings
from moltenflow.exceptions import InfrastructureError
from moltenflow.http import request_json
from moltenflow.routing.base import VaultRoute, VaultRouteProvider

logger = logging.getLogger(__name__)

ROUTING_STRATEGY = "router"


class EnsoRouteClient(VaultRouteProvider):
    """Same-chain USDC <-> vault token routes on Arbitrum."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()
        self._transport = transport

    @property
    def name(self) -> str:
        return "Enso"

    def _get_headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        if self.settings.enso_api_key:
            headers["Authorization"] = f"Bearer {self.settings.enso_api_key}"
        return headers

    async def get_route(
        self,
        from_address: str,
        amount_in: int,
        token_in: str,
        token_out: str,
    ) -> VaultRoute:
        url = f"{self.settings.enso_api_url.rstrip('/')}/shortcuts/route"
        params = {
            "chainId": str(HOME_CHAIN_ID),
            "fromAddress": from_address,
            "slippage": str(self.settings.enso_slippage_bps),
            "routingStrategy": ROUTING_STRATEGY,
            "amountIn": str(amount_in),
            "tokenIn": token_in,
            "tokenOut": token_out,
        }

        data = await request_json(
            "GET",
            url,
            params=params,
            headers=self._get_headers(),
            timeout=self.settings.request_timeout,
            transport=self._transport,
        )

        tx = data.get("tx") if isinstance(data, dict) else None
        if (
            not isinstance(tx, dict)
            or not tx.get("to")
            or not tx.get("data")
            or not data.get("amountOut")
        ):
            logger.warning(f"Invalid Enso route response: {data}")
            raise InfrastructureError("Invalid Enso API response structure", endpoint=url)

        try:
            route = VaultRoute(
                to=tx["to"],
                data=tx["data"],
                value=int(tx.get("value") or 0),
                amount_out=int(data["amountOut"]),
                gas=int(data.get("gas") or 0),
                from_address=tx.get("from") or from_address,
                raw=data,
            )
        except (TypeError, ValueError) as e:
            raise InfrastructureError(f"Malformed Enso route: {e}", endpoint=url) from e

        logger.debug(f"Enso route {token_in} -> {token_out}: out {route.amount_out}")
        return route
