"""Call descriptors and ordered call batches.

A CallBatch is submitted to the signer as one unit; the signer either
returns a single combined result or fails the whole batch.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from moltenflow.exceptions import InvalidBatch


class CallMetadata(BaseModel):
    """Hints for downstream hooks (route service post-route calls)."""

    model_config = ConfigDict(frozen=True)

    token_address: Optional[str] = Field(None, description="Token whose balance feeds the call")
    input_position: Optional[int] = Field(
        None, description="Argument index the hook overwrites with the bridged balance"
    )
    estimated_gas: Optional[int] = Field(None, description="Gas estimate for the call")


class CallDescriptor(BaseModel):
    """One contract call. Immutable once built."""

    model_config = ConfigDict(frozen=True)

    target: str = Field(..., description="Contract (or recipient) address")
    value: int = Field(default=0, ge=0, description="Native currency in wei")
    data: str = Field(default="0x", description="Calldata (hex encoded)")
    description: Optional[str] = Field(None, description="Human-readable description")
    approves: Optional[str] = Field(
        None, description="Spender authorized by this call when it is an approval"
    )
    metadata: Optional[CallMetadata] = None

    @field_validator("data")
    @classmethod
    def _hex_data(cls, v: str) -> str:
        if not v.startswith("0x"):
            return "0x" + v
        return v

    @property
    def is_approval(self) -> bool:
        return self.approves is not None

    def to_hook_call(self) -> dict:
        """Render as a route service post-route hook call."""
        call = {
            "chainType": "evm",
            "callType": 1,
            "target": self.target,
            "value": str(self.value),
            "callData": self.data,
        }
        if self.metadata is not None:
            call["payload"] = {
                "tokenAddress": self.metadata.token_address,
                "inputPos": str(self.metadata.input_position),
            }
            if self.metadata.estimated_gas is not None:
                call["estimatedGas"] = str(self.metadata.estimated_gas)
        return call

    def to_tx(self) -> dict:
        """Render as {to, value, data} for the signer."""
        return {"to": self.target, "value": self.value, "data": self.data}


class CallBatch(BaseModel):
    """Ordered, all-or-nothing sequence of calls.

    Every approval for a spender must come before any call that targets
    that spender.
    """

    model_config = ConfigDict(frozen=True)

    calls: tuple[CallDescriptor, ...] = Field(..., description="Calls in execution order")
    description: Optional[str] = None

    @model_validator(mode="after")
    def _check_order(self) -> "CallBatch":
        if not self.calls:
            raise InvalidBatch("Call batch is empty")

        approved_spenders = {
            c.approves.lower() for c in self.calls if c.approves is not None
        }
        seen_approvals: set[str] = set()
        for index, call in enumerate(self.calls):
            target = call.target.lower()
            if target in approved_spenders and target not in seen_approvals:
                raise InvalidBatch(
                    f"Call {index} targets {call.target} before its approval",
                    details={"index": index, "target": call.target},
                )
            if call.approves is not None:
                seen_approvals.add(call.approves.lower())
        return self

    def __len__(self) -> int:
        return len(self.calls)

    def __getitem__(self, index: int) -> CallDescriptor:
        return self.calls[index]
