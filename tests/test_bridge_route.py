"""Tests for MOLTEN bridge route planning."""

import pytest

from moltenflow.chains import ARBITRUM, BASE, MOLTEN_OFT_ADDRESS, OPTIMISM, SONIC
from moltenflow.contracts.routes import RouteRequest
from moltenflow.encoding import function_selector
from moltenflow.exceptions import (
    InvalidAmount,
    InvalidRouteRequest,
    NotSupported,
    UnsupportedDestination,
)
from moltenflow.routing.bridge import (
    build_bridge_call,
    estimate_bridge_receive,
    min_amount_after_slippage,
    plan_bridge_route,
)

from conftest import OTHER, USER


def _request(**overrides) -> RouteRequest:
    fields = {
        "source_chain_id": ARBITRUM,
        "destination_chain_id": OPTIMISM,
        "amount": "1",
        "recipient_address": OTHER,
        "sender_address": USER,
    }
    fields.update(overrides)
    return RouteRequest(**fields)


class TestMinAmount:
    """Tests for slippage-protected minimum amounts."""

    def test_quarter_percent(self):
        assert min_amount_after_slippage(10**18) == 997_500_000_000_000_000

    @pytest.mark.parametrize("amount", [1, 3, 399, 10_001, 123_456_789])
    def test_never_rounds_up(self, amount):
        minimum = min_amount_after_slippage(amount)
        assert minimum == amount * 9975 // 10000
        assert minimum * 10000 <= amount * 9975


class TestPlanBridgeRoute:
    """Tests for plan_bridge_route."""

    def test_plan(self):
        plan = plan_bridge_route(_request())

        assert plan.destination_bridge_id == 111
        assert plan.amount == 10**18
        assert plan.min_amount == 997_500_000_000_000_000
        assert plan.sender == USER
        assert plan.refund_address == USER
        assert plan.recipient_bytes32 == "0x" + "0" * 24 + OTHER[2:].lower()

    def test_sender_defaults_to_recipient(self):
        plan = plan_bridge_route(_request(sender_address=None))
        assert plan.sender == OTHER

    def test_to_sonic(self):
        plan = plan_bridge_route(_request(destination_chain_id=SONIC))
        assert plan.destination_bridge_id == 332

    def test_unsupported_destination(self):
        with pytest.raises(UnsupportedDestination):
            plan_bridge_route(_request(destination_chain_id=137))

    def test_unsupported_source(self):
        with pytest.raises(NotSupported) as exc_info:
            plan_bridge_route(_request(source_chain_id=137))
        assert not isinstance(exc_info.value, UnsupportedDestination)

    def test_same_chain(self):
        with pytest.raises(InvalidRouteRequest):
            plan_bridge_route(_request(destination_chain_id=ARBITRUM))

    def test_missing_recipient(self):
        with pytest.raises(InvalidRouteRequest) as exc_info:
            plan_bridge_route(_request(recipient_address=None))
        assert exc_info.value.field == "recipient_address"

    def test_invalid_recipient(self):
        with pytest.raises(InvalidRouteRequest):
            plan_bridge_route(_request(recipient_address="0x1234"))

    @pytest.mark.parametrize("amount", ["0", "-1", "0.0"])
    def test_non_positive_amount(self, amount):
        with pytest.raises(InvalidRouteRequest):
            plan_bridge_route(_request(amount=amount))

    def test_malformed_amount(self):
        with pytest.raises(InvalidAmount):
            plan_bridge_route(_request(amount="abc"))

    def test_too_precise_amount(self):
        with pytest.raises(InvalidAmount):
            plan_bridge_route(_request(amount="0.0000000000000000001"))

    @pytest.mark.parametrize("amount", ["1e70", "1e1000000000"])
    def test_amount_beyond_uint256(self, amount):
        """Oversized amounts fail as validation before any calldata is encoded."""
        with pytest.raises(InvalidAmount, match="uint256"):
            plan_bridge_route(_request(amount=amount))


class TestBuildBridgeCall:
    """Tests for the sendFrom call descriptor."""

    def test_call_pays_native_fee(self):
        plan = plan_bridge_route(_request())
        call = build_bridge_call(plan, ARBITRUM)

        assert call.target == MOLTEN_OFT_ADDRESS
        assert call.value == 600_000_000_000_000
        assert call.data.startswith(
            function_selector(
                "sendFrom(address,uint16,bytes32,uint256,uint256,(address,address,bytes))"
            )
        )
        assert "Optimism" in call.description

    def test_fee_follows_source_chain(self):
        plan = plan_bridge_route(_request(source_chain_id=BASE, destination_chain_id=ARBITRUM))
        call = build_bridge_call(plan, BASE)
        assert call.value == 220_000_000_000_000

    def test_estimate_receive(self):
        assert estimate_bridge_receive("100") == "99.9"
