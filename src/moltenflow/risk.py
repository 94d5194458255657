"""Position risk metrics.

Pure functions: liquidation price, PnL and leverage derived from raw
position fields. All arithmetic uses Decimal.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from moltenflow.exceptions import InvalidAmount

# Liquidation when PnL reaches -90% of margin
LIQUIDATION_THRESHOLD = Decimal("-0.9")

# Lens contract fixed-point scale for prices, sizes and fees
LENS_SCALING_DECIMALS = 30

Number = Union[Decimal, int, str, float]


def _dec(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def liquidation_price(
    is_long: bool,
    entry_price: Number,
    leverage: Number,
    margin: Number,
    accrued_fees: Number = 0,
) -> Decimal:
    """Price at which PnL equals -90% of margin.

    required_move = (-0.9 * margin + fees) / (margin * leverage)
    long:  entry * (1 + required_move)
    short: entry * (1 - required_move)

    Fees default to zero, which gives the plain approximation. The
    result is clamped at zero.

    Args:
        is_long: Position direction
        entry_price: Average entry price
        leverage: Position leverage (size / margin)
        margin: Collateral in USD
        accrued_fees: Borrow + funding fees already accrued

    Returns:
        Liquidation price as Decimal
    """
    entry = _dec(entry_price)
    lev = _dec(leverage)
    mgn = _dec(margin)
    fees = _dec(accrued_fees)

    if mgn <= 0 or lev <= 0:
        raise InvalidAmount(
            "Margin and leverage must be positive",
            value={"margin": str(mgn), "leverage": str(lev)},
        )

    required_move = (LIQUIDATION_THRESHOLD * mgn + fees) / (mgn * lev)
    if is_long:
        price = entry * (1 + required_move)
    else:
        price = entry * (1 - required_move)

    return max(Decimal(0), price)


def format_usd(value: Decimal) -> str:
    """Sign-prefixed USD string: +$1.23 / -$1.23."""
    quantized = abs(value).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    if value < 0 and quantized != 0:
        return f"-${quantized}"
    return f"+${quantized}"


class Position(BaseModel):
    """Open position as read from the lens (values already scaled to USD)."""

    model_config = ConfigDict(frozen=True)

    pair: str = Field(..., description="Market, e.g. BTC/USD")
    size: Decimal = Field(..., description="Position size in USD")
    margin: Decimal = Field(..., description="Collateral in USD")
    average_price: Decimal = Field(..., description="Average entry price")
    mark_price: Decimal = Field(..., description="Current mark price")
    is_long: bool = Field(..., description="Position direction")
    accrued_funding_fee: Decimal = Field(default=Decimal(0))
    accrued_borrow_fee: Decimal = Field(default=Decimal(0))
    accrued_position_fee: Decimal = Field(default=Decimal(0))
    position_id: Optional[str] = None

    @classmethod
    def from_lens(
        cls,
        pair: str,
        raw: dict,
        mark_price: Number,
        accrued_fees: Optional[dict] = None,
    ) -> "Position":
        """Build a position from lens integers (30-decimal fixed point).

        Args:
            pair: Market name
            raw: Lens position fields (isLong, averagePrice, collateral, size, tokenId)
            mark_price: Current price as a plain number
            accrued_fees: Optional lens fee fields (positionFee, borrowFee, fundingFee)
        """
        scale = Decimal(10) ** LENS_SCALING_DECIMALS
        fees = accrued_fees or {}

        def scaled(value) -> Decimal:
            return Decimal(int(value)) / scale

        return cls(
            pair=pair,
            size=scaled(raw["size"]),
            margin=scaled(raw["collateral"]),
            average_price=scaled(raw["averagePrice"]),
            mark_price=_dec(mark_price),
            is_long=bool(raw["isLong"]),
            accrued_funding_fee=scaled(fees.get("fundingFee", 0)),
            accrued_borrow_fee=scaled(fees.get("borrowFee", 0)),
            accrued_position_fee=scaled(fees.get("positionFee", 0)),
            position_id=str(raw["tokenId"]) if "tokenId" in raw else None,
        )


class DerivedPosition(BaseModel):
    """Display metrics derived from a Position. Never stored."""

    pair: str
    is_long: bool
    dollar_size: Decimal
    leverage: int
    net_fees: Decimal
    pnl: Decimal
    pnl_percentage: Decimal
    pnl_display: str
    funding_display: str
    liquidation_price: Decimal


def format_position(position: Position) -> DerivedPosition:
    """Derive leverage, PnL and liquidation price for a position."""
    if position.margin <= 0:
        raise InvalidAmount("Position margin must be positive", value=str(position.margin))
    if position.average_price <= 0:
        raise InvalidAmount(
            "Position entry price must be positive", value=str(position.average_price)
        )

    exact_leverage = position.size / position.margin
    leverage = int(exact_leverage.quantize(Decimal(1), rounding=ROUND_HALF_UP))

    if position.is_long:
        price_diff = position.mark_price - position.average_price
    else:
        price_diff = position.average_price - position.mark_price

    net_fees = (
        position.accrued_funding_fee
        + position.accrued_borrow_fee
        + position.accrued_position_fee
    )
    pnl = price_diff * position.size / position.average_price - net_fees
    pnl_percentage = pnl / position.margin * 100

    liq = liquidation_price(
        position.is_long,
        position.average_price,
        exact_leverage,
        position.margin,
        position.accrued_funding_fee + position.accrued_borrow_fee,
    )

    return DerivedPosition(
        pair=position.pair,
        is_long=position.is_long,
        dollar_size=position.size,
        leverage=leverage,
        net_fees=net_fees,
        pnl=pnl,
        pnl_percentage=pnl_percentage,
        pnl_display=format_usd(pnl),
        funding_display=format_usd(position.accrued_funding_fee),
        liquidation_price=liq,
    )
