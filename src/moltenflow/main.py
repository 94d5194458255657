"""Command-line entry point.

Subcommands:
- bridge-plan: sendFrom arguments and native fee for a MOLTEN bridge
- liquidation: liquidation price for a position
- lending-overview: vault APYs and share prices
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Optional

from moltenflow.chains import CHAIN_PARAMETERS, native_fee_for
from moltenflow.config import get_settings
from moltenflow.contracts.routes import RouteRequest
from moltenflow.exceptions import MoltenFlowError
from moltenflow.risk import liquidation_price
from moltenflow.routing.bridge import (
    RELAYER_FEE_USD,
    build_bridge_call,
    estimate_bridge_receive,
    plan_bridge_route,
)
from moltenflow.services.market_data import MarketDataService

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    settings = get_settings()
    log_level = logging.DEBUG if settings.debug else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def cmd_bridge_plan(args: argparse.Namespace) -> int:
    request = RouteRequest(
        source_chain_id=args.source,
        destination_chain_id=args.destination,
        amount=args.amount,
        recipient_address=args.recipient,
        sender_address=args.sender,
    )
    plan = plan_bridge_route(request)
    call = build_bridge_call(plan, args.source)
    fee = native_fee_for(args.source)

    print(json.dumps(
        {
            "call_args": plan.to_dict(),
            "transaction": call.to_tx(),
            "native_fee": f"{fee.value} {CHAIN_PARAMETERS[args.source].native_symbol}",
            "estimated_receive": estimate_bridge_receive(args.amount),
            "relayer_fee_usd": str(RELAYER_FEE_USD),
        },
        indent=2,
    ))
    return 0


def cmd_liquidation(args: argparse.Namespace) -> int:
    price = liquidation_price(
        is_long=not args.short,
        entry_price=args.entry,
        leverage=args.leverage,
        margin=args.margin,
        accrued_fees=args.fees,
    )
    print(f"{price:.2f}")
    return 0


async def _lending_overview() -> int:
    service = MarketDataService()
    overview = await service.get_lending_overview()

    for protocol in ("aave", "compound", "fluid"):
        apy = overview.apys.get(protocol)
        price = overview.prices.get(protocol)
        print(
            f"{protocol:<10} apy={apy if apy is not None else 'n/a':<12} "
            f"price={price if price is not None else 'n/a'}"
        )
    if overview.error:
        print(f"warning: {overview.error}", file=sys.stderr)
    return 0


def cmd_lending_overview(args: argparse.Namespace) -> int:
    return asyncio.run(_lending_overview())


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="moltenflow", description="Transaction orchestration tools")
    sub = parser.add_subparsers(dest="command", required=True)

    bridge = sub.add_parser("bridge-plan", help="Plan a MOLTEN bridge transfer")
    bridge.add_argument("--source", type=int, required=True, help="Source chain id")
    bridge.add_argument("--destination", type=int, required=True, help="Destination chain id")
    bridge.add_argument("--amount", required=True, help="Amount of MOLTEN")
    bridge.add_argument("--recipient", required=True, help="Recipient address")
    bridge.add_argument("--sender", default=None, help="Sender address (defaults to recipient)")
    bridge.set_defaults(func=cmd_bridge_plan)

    liq = sub.add_parser("liquidation", help="Liquidation price of a position")
    liq.add_argument("--entry", required=True, help="Entry price")
    liq.add_argument("--leverage", required=True, help="Leverage")
    liq.add_argument("--margin", required=True, help="Margin in USD")
    liq.add_argument("--fees", default="0", help="Accrued borrow + funding fees")
    liq.add_argument("--short", action="store_true", help="Short position")
    liq.set_defaults(func=cmd_liquidation)

    lending = sub.add_parser("lending-overview", help="Lending vault APYs and prices")
    lending.set_defaults(func=cmd_lending_overview)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    configure_logging()
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        return args.func(args)
    except MoltenFlowError as e:
        logger.error(f"{e.category.value}: {e.message}")
        print(f"error: {e.message}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
