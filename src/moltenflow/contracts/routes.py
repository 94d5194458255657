"""Route request and route plan contracts."""

from dataclasses import dataclass, field
from typing import Any, Optional

from pydantic import BaseModel, Field

from moltenflow.contracts.calls import CallDescriptor


class RouteRequest(BaseModel):
    """Request to bridge an amount from one chain to another.

    Fields are validated by the route planner, which raises the
    orchestration error types rather than pydantic errors.
    """

    source_chain_id: int = Field(..., description="Chain the funds leave from")
    destination_chain_id: int = Field(..., description="Chain the funds arrive on")
    amount: str = Field(..., description="Decimal amount, e.g. '12.5'")
    recipient_address: Optional[str] = Field(None, description="Receiver on the destination")
    sender_address: Optional[str] = Field(
        None, description="Token holder on the source chain (defaults to recipient)"
    )
    decimals: int = Field(default=18, description="Token precision")


@dataclass(frozen=True)
class BridgeCallArgs:
    """Arguments for the OFT sendFrom call."""

    sender: str
    destination_chain_id: int
    destination_bridge_id: int
    recipient_bytes32: str
    amount: int  # base units
    min_amount: int  # floor(amount * 9975 / 10000)
    refund_address: str
    adapter_params: str

    def to_dict(self) -> dict:
        return {
            "sender": self.sender,
            "destination_chain_id": self.destination_chain_id,
            "destination_bridge_id": self.destination_bridge_id,
            "recipient_bytes32": self.recipient_bytes32,
            "amount": str(self.amount),
            "min_amount": str(self.min_amount),
            "refund_address": self.refund_address,
            "adapter_params": self.adapter_params,
        }


@dataclass
class RoutePlanResult:
    """A quoted cross-chain route, ready to be batched."""

    provider: str
    source_chain_id: int
    destination_chain_id: int
    from_token: str
    to_token: str
    from_amount: int  # base units of the source token
    to_amount: int  # base units of the destination token
    to_amount_min: int
    transaction: CallDescriptor
    hook_calls: list[CallDescriptor] = field(default_factory=list)
    exchange_rate: Optional[str] = None
    from_amount_usd: Optional[str] = None
    estimated_duration: Optional[int] = None  # seconds
    raw: dict[str, Any] = field(default_factory=dict)

    @property
    def spender(self) -> str:
        """Address that must be approved to pull the source token."""
        return self.transaction.target

    def to_dict(self) -> dict:
        return {
            "provider": self.provider,
            "source_chain_id": self.source_chain_id,
            "destination_chain_id": self.destination_chain_id,
            "from_token": self.from_token,
            "to_token": self.to_token,
            "from_amount": str(self.from_amount),
            "to_amount": str(self.to_amount),
            "to_amount_min": str(self.to_amount_min),
            "exchange_rate": self.exchange_rate,
            "from_amount_usd": self.from_amount_usd,
            "estimated_duration": self.estimated_duration,
            "transaction": self.transaction.to_tx(),
            "hook_calls": [c.to_hook_call() for c in self.hook_calls],
        }
