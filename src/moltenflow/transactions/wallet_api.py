"""Client for the wallet-operation endpoint.

The endpoint returns the trading contract address and calldata for
margin deposits, withdrawals and other wallet operations.
"""

import logging
from typing import Optional

import httpx
from pydantic import BaseModel, Field

from moltenflow.config import Settings, get_settings
from moltenflow.exceptions import BusinessRuleViolation, InfrastructureError
from moltenflow.http import request_json

logger = logging.getLogger(__name__)


class WalletOperation(BaseModel):
    """Calldata returned by the wallet-operation endpoint."""

    vault_address: str = Field(..., description="Contract to call")
    calldata: str = Field(..., description="Encoded call (hex)")


class WalletApiClient:
    """POSTs {type, tokenAddress, amount, userAddress} and returns calldata."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()
        self._transport = transport

    async def request_operation(
        self,
        op_type: str,
        token_address: str,
        amount: str,
        user_address: str,
    ) -> WalletOperation:
        """Request calldata for a wallet operation.

        Args:
            op_type: Operation type ("deposit", "withdraw", ...)
            token_address: Token being moved
            amount: Decimal amount as entered by the user
            user_address: Smart account address

        Returns:
            WalletOperation with target and calldata

        Raises:
            BusinessRuleViolation: Endpoint answered with {error}
            InfrastructureError: Endpoint unreachable or response malformed
        """
        url = self.settings.wallet_api_url
        logger.debug(f"Wallet API {op_type}: {amount} of {token_address} for {user_address}")

        data = await request_json(
            "POST",
            url,
            json={
                "type": op_type,
                "tokenAddress": token_address,
                "amount": amount,
                "userAddress": user_address,
            },
            timeout=self.settings.request_timeout,
            transport=self._transport,
        )

        if not isinstance(data, dict):
            raise InfrastructureError("Malformed wallet API response", endpoint=url)
        if data.get("error"):
            raise BusinessRuleViolation(str(data["error"]), payload=data)
        if not data.get("vaultAddress") or not data.get("calldata"):
            raise InfrastructureError("Invalid wallet API response", endpoint=url)

        return WalletOperation(vault_address=data["vaultAddress"], calldata=data["calldata"])
