"""Tests for call descriptors and batches."""

import pytest
from pydantic import ValidationError

from moltenflow.contracts.calls import CallBatch, CallDescriptor, CallMetadata
from moltenflow.exceptions import InvalidBatch
from moltenflow.transactions.approvals import build_approval_call

from conftest import OTHER, USER

TOKEN = "0x3333333333333333333333333333333333333333"


class TestCallDescriptor:
    """Tests for CallDescriptor."""

    def test_data_gets_hex_prefix(self):
        call = CallDescriptor(target=USER, data="abcd")
        assert call.data == "0xabcd"

    def test_negative_value_rejected(self):
        with pytest.raises(ValidationError):
            CallDescriptor(target=USER, value=-1)

    def test_frozen(self):
        call = CallDescriptor(target=USER)
        with pytest.raises(ValidationError):
            call.value = 5

    def test_to_hook_call(self):
        call = CallDescriptor(
            target=USER,
            data="0x12",
            metadata=CallMetadata(token_address=TOKEN, input_position=1, estimated_gas=150000),
        )
        hook = call.to_hook_call()

        assert hook["callType"] == 1
        assert hook["value"] == "0"
        assert hook["payload"] == {"tokenAddress": TOKEN, "inputPos": "1"}
        assert hook["estimatedGas"] == "150000"

    def test_to_tx(self):
        call = CallDescriptor(target=USER, value=3, data="0x")
        assert call.to_tx() == {"to": USER, "value": 3, "data": "0x"}


class TestCallBatch:
    """Tests for batch ordering."""

    def test_approve_then_act(self):
        batch = CallBatch(
            calls=(build_approval_call(TOKEN, OTHER, 10), CallDescriptor(target=OTHER))
        )
        assert len(batch) == 2
        assert batch[0].is_approval

    def test_act_before_approve_rejected(self):
        with pytest.raises(InvalidBatch):
            CallBatch(
                calls=(CallDescriptor(target=OTHER), build_approval_call(TOKEN, OTHER, 10))
            )

    def test_spender_match_ignores_case(self):
        with pytest.raises(InvalidBatch):
            CallBatch(
                calls=(
                    CallDescriptor(target=OTHER.lower()),
                    build_approval_call(TOKEN, OTHER.upper().replace("0X", "0x"), 10),
                )
            )

    def test_empty_batch_rejected(self):
        with pytest.raises(InvalidBatch):
            CallBatch(calls=())
