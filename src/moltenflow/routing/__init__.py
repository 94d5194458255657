"""Route planning.

Routes:
- Bridge: MOLTEN OFT sendFrom between LayerZero endpoints
- Cross-chain stake: route service bridge to Arbitrum USDC + stake hook
- Lending vaults: same-chain USDC <-> vault token routes
"""

from moltenflow.routing.base import CrossChainRouteProvider, VaultRoute, VaultRouteProvider
from moltenflow.routing.bridge import (
    BRIDGE_SLIPPAGE_BPS,
    build_bridge_call,
    min_amount_after_slippage,
    plan_bridge_route,
)
from moltenflow.routing.dry_run import DryRunRouteProvider, DryRunVaultRouteProvider
from moltenflow.routing.enso import EnsoRouteClient
from moltenflow.routing.factory import create_route_provider, create_vault_route_provider
from moltenflow.routing.squid import CrossChainStakePlanner, SquidRouteClient

__all__ = [
    # Base classes
    "CrossChainRouteProvider",
    "VaultRouteProvider",
    "VaultRoute",
    # Bridge
    "BRIDGE_SLIPPAGE_BPS",
    "plan_bridge_route",
    "build_bridge_call",
    "min_amount_after_slippage",
    # Providers
    "SquidRouteClient",
    "EnsoRouteClient",
    "DryRunRouteProvider",
    "DryRunVaultRouteProvider",
    "CrossChainStakePlanner",
    # Factory functions
    "create_route_provider",
    "create_vault_route_provider",
]
