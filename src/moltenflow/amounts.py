"""Fixed-point amount conversion.

Token quantities travel as decimal strings and are converted to integer
base units (smallest denomination) before they go on the wire. Amounts
that carry more fractional digits than the token's precision are
rejected rather than truncated.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_DOWN
from typing import Union

from moltenflow.exceptions import InvalidAmount

logger = logging.getLogger(__name__)

AmountLike = Union[str, int, Decimal]

# Largest value an EVM uint256 argument can carry
MAX_UINT256 = 2**256 - 1
UINT256_DIGITS = len(str(MAX_UINT256))


def _parse_decimal(amount: AmountLike) -> Decimal:
    if isinstance(amount, bool):
        raise InvalidAmount(f"Invalid amount: {amount!r}", value=amount)
    if isinstance(amount, int):
        return Decimal(amount)
    if isinstance(amount, Decimal):
        value = amount
    elif isinstance(amount, str):
        text = amount.strip()
        if not text:
            raise InvalidAmount("Amount is empty", value=amount)
        try:
            value = Decimal(text)
        except InvalidOperation:
            raise InvalidAmount(f"Invalid amount: {amount!r}", value=amount)
    else:
        raise InvalidAmount(f"Unsupported amount type: {type(amount).__name__}", value=amount)

    if not value.is_finite():
        raise InvalidAmount(f"Amount must be finite: {amount!r}", value=amount)
    return value


def _out_of_range(amount: AmountLike) -> InvalidAmount:
    return InvalidAmount(f"Amount {amount} exceeds the uint256 range", value=amount)


def to_base_units(amount: AmountLike, decimals: int) -> int:
    """Convert a decimal amount to integer base units.

    Args:
        amount: Decimal string (e.g. "100.5"), int or Decimal
        decimals: Token precision

    Returns:
        Integer quantity in the token's smallest unit

    Raises:
        InvalidAmount: If the amount is malformed, negative, not finite or
            has more significant fractional digits than ``decimals``, or
            if the result does not fit in a uint256
    """
    if decimals < 0:
        raise InvalidAmount(f"Invalid precision: {decimals}", value=amount)

    value = _parse_decimal(amount)
    if value.is_signed() and value != 0:
        raise InvalidAmount(f"Amount must not be negative: {amount}", value=amount)

    sign, digits, exponent = value.as_tuple()
    coefficient = int("".join(str(d) for d in digits)) if digits else 0
    shift = exponent + decimals

    if coefficient == 0:
        return 0

    if shift >= 0:
        if len(str(coefficient)) + shift > UINT256_DIGITS:
            raise _out_of_range(amount)
        units = coefficient * 10**shift
        if units > MAX_UINT256:
            raise _out_of_range(amount)
        return units

    if -shift > len(digits):
        raise InvalidAmount(
            f"Amount {amount} has more than {decimals} fractional digits",
            value=amount,
            details={"decimals": decimals},
        )

    divisor = 10 ** (-shift)
    units, remainder = divmod(coefficient, divisor)
    if remainder:
        raise InvalidAmount(
            f"Amount {amount} has more than {decimals} fractional digits",
            value=amount,
            details={"decimals": decimals},
        )
    if units > MAX_UINT256:
        raise _out_of_range(amount)
    return units


def from_base_units(units: int, decimals: int) -> str:
    """Convert integer base units back to a decimal string.

    Zero renders as "0" and trailing fractional zeros are dropped.
    """
    if isinstance(units, bool) or not isinstance(units, int):
        raise InvalidAmount(f"Base units must be an integer: {units!r}", value=units)
    if units < 0:
        raise InvalidAmount(f"Base units must not be negative: {units}", value=units)
    if decimals < 0:
        raise InvalidAmount(f"Invalid precision: {decimals}", value=units)

    if decimals == 0:
        return str(units)

    whole, frac = divmod(units, 10**decimals)
    frac_str = str(frac).rjust(decimals, "0").rstrip("0")
    if frac_str:
        return f"{whole}.{frac_str}"
    return str(whole)


def truncate_decimal_string(value: str, places: int) -> str:
    """Truncate (never round) a decimal string to a number of places.

    Used for display of high-precision balances such as 30-decimal margin.
    """
    quant = Decimal(1).scaleb(-places)
    try:
        truncated = Decimal(value).quantize(quant, rounding=ROUND_DOWN)
    except InvalidOperation:
        raise InvalidAmount(f"Invalid amount: {value!r}", value=value)
    return f"{truncated:.{places}f}"


@dataclass(frozen=True)
class Amount:
    """Decimal quantity paired with its token precision."""

    value: str
    decimals: int

    @property
    def base_units(self) -> int:
        """Integer quantity in the smallest unit."""
        return to_base_units(self.value, self.decimals)

    @property
    def is_zero(self) -> bool:
        return self.base_units == 0

    def as_decimal(self) -> Decimal:
        return Decimal(self.value)

    @classmethod
    def from_base_units(cls, units: int, decimals: int) -> "Amount":
        return cls(value=from_base_units(units, decimals), decimals=decimals)

    @classmethod
    def zero(cls, decimals: int = 18) -> "Amount":
        return cls(value="0", decimals=decimals)

    def __str__(self) -> str:
        return self.value
