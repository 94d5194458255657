"""Dry-run route providers for simulated routes (no external calls)."""

import hashlib
import json
from decimal import Decimal

from moltenflow.chains import HOME_CHAIN_ID, SQUID_ROUTER_ADDRESS
from moltenflow.routing.base import CrossChainRouteProvider, VaultRoute, VaultRouteProvider

# Simulated stable-to-stable route cost
SIMULATED_ROUTE_FEE = Decimal("0.001")
SIMULATED_ROUTE_DURATION = 20  # seconds
SIMULATED_VAULT_GAS = 450000
SIMULATED_VAULT_ROUTER = "0x000000000000000000000000000000000000dEaD"


def _fake_calldata(payload: dict) -> str:
    digest = hashlib.sha256(json.dumps(payload, sort_keys=True).encode()).hexdigest()
    return "0x" + digest


class DryRunRouteProvider(CrossChainRouteProvider):
    """Returns a well-formed route delivering exactly the requested token."""

    @property
    def name(self) -> str:
        return "DryRun"

    async def get_route(self, params: dict) -> dict:
        from_amount = int(params["fromAmount"])
        to_amount = int(Decimal(from_amount) * (1 - SIMULATED_ROUTE_FEE))
        slippage = Decimal(str(params.get("slippage", 1))) / 100
        to_amount_min = int(Decimal(to_amount) * (1 - slippage))

        return {
            "route": {
                "toToken": params["toToken"],
                "estimate": {
                    "toAmount": str(to_amount),
                    "toAmountMin": str(to_amount_min),
                    "exchangeRate": str(1 - SIMULATED_ROUTE_FEE),
                    "fromAmountUSD": str(Decimal(from_amount) / Decimal(10**6)),
                    "estimatedRouteDuration": SIMULATED_ROUTE_DURATION,
                },
                "transactionRequest": {
                    "target": SQUID_ROUTER_ADDRESS,
                    "data": _fake_calldata(params),
                    "value": "0",
                },
                "params": {"toChain": str(HOME_CHAIN_ID), "toToken": params["toToken"]},
                "is_simulated": True,
            }
        }


class DryRunVaultRouteProvider(VaultRouteProvider):
    """1:1 USDC <-> vault token routes."""

    @property
    def name(self) -> str:
        return "DryRunVault"

    async def get_route(
        self,
        from_address: str,
        amount_in: int,
        token_in: str,
        token_out: str,
    ) -> VaultRoute:
        payload = {
            "from": from_address,
            "amountIn": amount_in,
            "tokenIn": token_in,
            "tokenOut": token_out,
        }
        return VaultRoute(
            to=SIMULATED_VAULT_ROUTER,
            data=_fake_calldata(payload),
            value=0,
            amount_out=amount_in,
            gas=SIMULATED_VAULT_GAS,
            from_address=from_address,
            raw={"is_simulated": True, **payload},
        )
