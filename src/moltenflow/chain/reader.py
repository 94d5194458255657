"""Chain-read capability.

read_contract() is assumed idempotent and side-effect free. The JSON-RPC
implementation issues eth_call over httpx.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional, Sequence

import httpx

from moltenflow.config import Settings, get_settings
from moltenflow.encoding import decode_output, encode_function_call, split_tuple_types
from moltenflow.exceptions import InfrastructureError, NotSupported
from moltenflow.http import request_json

logger = logging.getLogger(__name__)


def parse_signature(function_signature: str) -> tuple[str, list[str]]:
    """Split "allowance(address,address)" into ("allowance", ["address", "address"])."""
    name, _, rest = function_signature.partition("(")
    types = split_tuple_types("(" + rest) if rest.strip(")") else []
    return name.strip(), types


class ChainReader(ABC):
    """Read-only access to contract state."""

    @abstractmethod
    async def read_contract(
        self,
        address: str,
        function_signature: str,
        args: Sequence[Any],
        chain_id: int,
        output_types: Sequence[str],
    ) -> tuple:
        """Call a view function and return the decoded outputs.

        Args:
            address: Contract address
            function_signature: Canonical signature, e.g. "balanceOf(address)"
            args: Call arguments
            chain_id: EVM chain id
            output_types: ABI types of the return values

        Returns:
            Tuple of decoded return values
        """
        pass


class JsonRpcChainReader(ChainReader):
    """ChainReader backed by eth_call against the configured RPC endpoints."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()
        self._transport = transport
        self._request_id = 0

    async def read_contract(
        self,
        address: str,
        function_signature: str,
        args: Sequence[Any],
        chain_id: int,
        output_types: Sequence[str],
    ) -> tuple:
        rpc_url = self.settings.get_rpc_url(chain_id)
        if not rpc_url:
            raise NotSupported(f"No RPC endpoint for chain {chain_id}", chain_id=chain_id)

        name, input_types = parse_signature(function_signature)
        data = encode_function_call(name, input_types, list(args))

        self._request_id += 1
        logger.debug(f"eth_call {function_signature} on {address} (chain {chain_id})")

        payload = await request_json(
            "POST",
            rpc_url,
            json={
                "jsonrpc": "2.0",
                "method": "eth_call",
                "params": [{"to": address, "data": data}, "latest"],
                "id": self._request_id,
            },
            timeout=self.settings.request_timeout,
            transport=self._transport,
        )

        if not isinstance(payload, dict):
            raise InfrastructureError("Malformed JSON-RPC response", endpoint=rpc_url)

        if payload.get("error"):
            error = payload["error"]
            message = error.get("message") if isinstance(error, dict) else str(error)
            logger.warning(f"eth_call {function_signature} failed: {message}")
            raise InfrastructureError(
                f"eth_call {function_signature} failed: {message}", endpoint=rpc_url
            )

        result = payload.get("result")
        if not isinstance(result, str) or result in ("0x", ""):
            raise InfrastructureError(
                f"Empty result for {function_signature} on {address}", endpoint=rpc_url
            )

        try:
            return decode_output(list(output_types), result)
        except Exception as e:
            raise InfrastructureError(
                f"Could not decode {function_signature} result: {e}", endpoint=rpc_url
            ) from e
