"""Calldata encoding helpers.

ABI-encodes the handful of contract calls the orchestrator issues
(ERC-20 approve/transfer/allowance/balanceOf, vault stake, OFT sendFrom,
lens reads) and decodes eth_call return data.
"""

from typing import Any, Sequence

from eth_abi import decode, encode
from eth_utils import is_address, keccak, to_checksum_address

from moltenflow.exceptions import InvalidRouteRequest

# LayerZero adapter params: version 1, 100000 destination gas
DEFAULT_ADAPTER_PARAMS = "0x000100000000000000000000000000000000000000000000000000000000000186a0"

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


def function_selector(signature: str) -> str:
    """4-byte selector for a canonical signature, e.g. "approve(address,uint256)"."""
    return "0x" + keccak(text=signature)[:4].hex()


def _normalize(types: Sequence[str], args: Sequence[Any]) -> list:
    normalized = []
    for abi_type, arg in zip(types, args):
        if abi_type == "address":
            normalized.append(to_checksum_address(arg))
        elif abi_type.startswith("bytes") and isinstance(arg, str):
            normalized.append(bytes.fromhex(arg[2:] if arg.startswith("0x") else arg))
        elif abi_type.startswith("(") and isinstance(arg, (list, tuple)):
            inner = split_tuple_types(abi_type)
            normalized.append(tuple(_normalize(inner, arg)))
        else:
            normalized.append(arg)
    return normalized


def split_tuple_types(type_str: str) -> list[str]:
    """Split "(address,(uint256,bytes),bool)" into its top-level component types."""
    body = type_str.strip()
    if body.startswith("(") and body.endswith(")"):
        body = body[1:-1]

    parts = []
    depth = 0
    current = ""
    for ch in body:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        if ch == "," and depth == 0:
            parts.append(current)
            current = ""
        else:
            current += ch
    if current:
        parts.append(current)
    return parts


def encode_function_call(name: str, types: Sequence[str], args: Sequence[Any]) -> str:
    """ABI-encode a function call.

    Args:
        name: Function name
        types: Canonical ABI types of the arguments
        args: Argument values (addresses may be any case, bytes may be hex)

    Returns:
        0x-prefixed calldata hex string
    """
    signature = f"{name}({','.join(types)})"
    selector = function_selector(signature)
    encoded = encode(list(types), _normalize(types, args))
    return selector + encoded.hex()


def decode_output(types: Sequence[str], data: str) -> tuple:
    """Decode eth_call return data."""
    raw = bytes.fromhex(data[2:] if data.startswith("0x") else data)
    return decode(list(types), raw)


def require_address(address: str, field: str = "address") -> str:
    """Return the checksum form of an address or raise InvalidRouteRequest."""
    if not address or not is_address(address):
        raise InvalidRouteRequest(f"Invalid {field}: {address!r}", field=field)
    return to_checksum_address(address)


def pad_address_to_bytes32(address: str) -> str:
    """Left-zero-pad a 20-byte address into a 32-byte slot.

    Returns 0x + 24 zero hex digits + the 40 address digits (lowercase).
    """
    if not is_address(address):
        raise InvalidRouteRequest(f"Invalid recipient address: {address!r}", field="recipient")
    return "0x" + "0" * 24 + address[2:].lower()


# ======================
# ERC-20
# ======================


def encode_approve(spender: str, amount: int) -> str:
    return encode_function_call("approve", ["address", "uint256"], [spender, amount])


def encode_transfer(recipient: str, amount: int) -> str:
    return encode_function_call("transfer", ["address", "uint256"], [recipient, amount])


def encode_allowance(owner: str, spender: str) -> str:
    return encode_function_call("allowance", ["address", "address"], [owner, spender])


def encode_balance_of(owner: str) -> str:
    return encode_function_call("balanceOf", ["address"], [owner])


# ======================
# Protocol contracts
# ======================


def encode_stake(user: str, token: str, amount: int) -> str:
    """USDM vault stake(user, token, amount)."""
    return encode_function_call(
        "stake", ["address", "address", "uint256"], [user, token, amount]
    )


def encode_send_from(
    sender: str,
    destination_bridge_id: int,
    recipient_bytes32: str,
    amount: int,
    min_amount: int,
    refund_address: str,
    adapter_params: str = DEFAULT_ADAPTER_PARAMS,
    zro_payment_address: str = ZERO_ADDRESS,
) -> str:
    """OFT sendFrom(from, dstChainId, toAddress, amount, minAmount, callParams)."""
    return encode_function_call(
        "sendFrom",
        ["address", "uint16", "bytes32", "uint256", "uint256", "(address,address,bytes)"],
        [
            sender,
            destination_bridge_id,
            recipient_bytes32,
            amount,
            min_amount,
            (refund_address, zro_payment_address, adapter_params),
        ],
    )


def encode_get_user_balances(user: str) -> str:
    return encode_function_call("getUserBalances", ["address"], [user])
