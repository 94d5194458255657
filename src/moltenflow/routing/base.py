"""Abstract interfaces for external route-quoting services.

Both services are black boxes: request fields in, JSON route out.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


class CrossChainRouteProvider(ABC):
    """Quotes cross-chain routes that may end in a post-route hook."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name identifier."""
        pass

    @abstractmethod
    async def get_route(self, params: dict) -> dict:
        """
        Request a route.

        Args:
            params: Route request body (fromChain, fromToken, fromAmount,
                toChain, toToken, toAddress, slippage, postHook, ...)

        Returns:
            Route service JSON response ({"route": {...}})
        """
        pass


@dataclass
class VaultRoute:
    """Same-chain route into or out of a lending vault."""

    to: str
    data: str
    value: int
    amount_out: int
    gas: int
    from_address: str
    raw: dict[str, Any] = field(default_factory=dict)


class VaultRouteProvider(ABC):
    """Quotes same-chain routes between USDC and lending vault tokens."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name identifier."""
        pass

    @abstractmethod
    async def get_route(
        self,
        from_address: str,
        amount_in: int,
        token_in: str,
        token_out: str,
    ) -> VaultRoute:
        """
        Request a route.

        Args:
            from_address: Account executing the route
            amount_in: Input amount in base units
            token_in: Input token address
            token_out: Output token address

        Returns:
            VaultRoute with the router transaction
        """
        pass
