"""Factory functions for route providers.

Real HTTP clients are used unless the application runs in dry-run mode.
"""

import logging
from typing import Optional

import httpx

from moltenflow.config import get_settings
from moltenflow.routing.base import CrossChainRouteProvider, VaultRouteProvider

logger = logging.getLogger(__name__)


def create_route_provider(
    use_real: bool = True,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> CrossChainRouteProvider:
    """Create the cross-chain route provider."""
    settings = get_settings()

    if use_real and not settings.dry_run:
        from moltenflow.routing.squid import SquidRouteClient

        if not settings.squid_integrator_id:
            logger.warning("SQUID_INTEGRATOR_ID not set, route requests may be rejected")
        return SquidRouteClient(settings=settings, transport=transport)

    from moltenflow.routing.dry_run import DryRunRouteProvider

    logger.info("Using simulated cross-chain routes (dry-run)")
    return DryRunRouteProvider()


def create_vault_route_provider(
    use_real: bool = True,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> VaultRouteProvider:
    """Create the lending vault route provider."""
    settings = get_settings()

    if use_real and not settings.dry_run:
        from moltenflow.routing.enso import EnsoRouteClient

        return EnsoRouteClient(settings=settings, transport=transport)

    from moltenflow.routing.dry_run import DryRunVaultRouteProvider

    logger.info("Using simulated vault routes (dry-run)")
    return DryRunVaultRouteProvider()
