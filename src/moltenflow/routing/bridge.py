"""MOLTEN OFT bridge route planning.

Builds the sendFrom() arguments for a LayerZero OFT transfer:
destination endpoint id, recipient padded to bytes32 and the
slippage-protected minimum amount.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Union

from moltenflow.amounts import from_base_units, to_base_units
from moltenflow.chains import (
    CHAIN_PARAMETERS,
    MOLTEN_OFT_ADDRESS,
    bridge_id_for,
    native_fee_for,
)
from moltenflow.contracts.calls import CallDescriptor
from moltenflow.contracts.routes import BridgeCallArgs, RouteRequest
from moltenflow.encoding import (
    DEFAULT_ADAPTER_PARAMS,
    encode_send_from,
    pad_address_to_bytes32,
    require_address,
)
from moltenflow.exceptions import (
    InvalidAmount,
    InvalidRouteRequest,
    NotSupported,
    UnsupportedDestination,
)

logger = logging.getLogger(__name__)

# 0.25% bridge slippage, applied as amount * 9975 // 10000
BRIDGE_SLIPPAGE_BPS = 25
BPS_DENOMINATOR = 10000

# Display estimates for the bridge form
BRIDGE_RECEIVE_RATIO = Decimal("0.999")
RELAYER_FEE_USD = Decimal("0.32")


def min_amount_after_slippage(amount: int, slippage_bps: int = BRIDGE_SLIPPAGE_BPS) -> int:
    """Floor of amount * (10000 - bps) / 10000. Never rounds up."""
    return amount * (BPS_DENOMINATOR - slippage_bps) // BPS_DENOMINATOR


def _positive_amount(amount: Union[str, int, Decimal]) -> None:
    try:
        value = Decimal(str(amount).strip())
    except InvalidOperation:
        raise InvalidAmount(f"Invalid amount: {amount!r}", value=amount)
    if value.is_finite() and value <= 0:
        raise InvalidRouteRequest(f"Amount must be positive: {amount}", field="amount")


def plan_bridge_route(request: RouteRequest) -> BridgeCallArgs:
    """Plan a bridge transfer.

    Validation happens before anything else; no I/O is performed.

    Args:
        request: Source/destination chains, amount and recipient

    Returns:
        BridgeCallArgs for sendFrom()

    Raises:
        InvalidRouteRequest: Recipient missing/invalid, amount <= 0 or
            source equal to destination
        InvalidAmount: Amount malformed or more precise than the token
        UnsupportedDestination: Destination chain has no bridge id
        NotSupported: Source chain has no bridge id
    """
    if not request.recipient_address:
        raise InvalidRouteRequest("Recipient address is required", field="recipient_address")
    recipient = require_address(request.recipient_address, "recipient_address")
    sender = require_address(request.sender_address or recipient, "sender_address")

    _positive_amount(request.amount)
    amount = to_base_units(request.amount, request.decimals)
    if amount == 0:
        raise InvalidRouteRequest(f"Amount must be positive: {request.amount}", field="amount")

    if request.source_chain_id == request.destination_chain_id:
        raise InvalidRouteRequest(
            "Source and destination chains must differ", field="destination_chain_id"
        )

    try:
        destination_bridge_id = bridge_id_for(request.destination_chain_id)
    except NotSupported:
        raise UnsupportedDestination(
            f"Cannot bridge to chain {request.destination_chain_id}",
            chain_id=request.destination_chain_id,
        )
    bridge_id_for(request.source_chain_id)

    min_amount = min_amount_after_slippage(amount)

    logger.debug(
        f"Bridge plan: {request.amount} from {request.source_chain_id} -> "
        f"{request.destination_chain_id} (endpoint {destination_bridge_id}), min {min_amount}"
    )

    return BridgeCallArgs(
        sender=sender,
        destination_chain_id=request.destination_chain_id,
        destination_bridge_id=destination_bridge_id,
        recipient_bytes32=pad_address_to_bytes32(recipient),
        amount=amount,
        min_amount=min_amount,
        refund_address=sender,
        adapter_params=DEFAULT_ADAPTER_PARAMS,
    )


def build_bridge_call(args: BridgeCallArgs, source_chain_id: int) -> CallDescriptor:
    """sendFrom() call on the source chain OFT, paying the native messaging fee."""
    fee = native_fee_for(source_chain_id)
    destination = CHAIN_PARAMETERS[args.destination_chain_id].name

    return CallDescriptor(
        target=MOLTEN_OFT_ADDRESS,
        value=fee.base_units,
        data=encode_send_from(
            sender=args.sender,
            destination_bridge_id=args.destination_bridge_id,
            recipient_bytes32=args.recipient_bytes32,
            amount=args.amount,
            min_amount=args.min_amount,
            refund_address=args.refund_address,
            adapter_params=args.adapter_params,
        ),
        description=f"Bridge {from_base_units(args.amount, 18)} MOLTEN to {destination}",
    )


def estimate_bridge_receive(amount: str, decimals: int = 18) -> str:
    """Display estimate of the received amount (99.9% of the sent amount)."""
    units = to_base_units(amount, decimals)
    received = Decimal(from_base_units(units, decimals)) * BRIDGE_RECEIVE_RATIO
    return f"{received.normalize():f}"
