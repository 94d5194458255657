"""Concurrent price and yield fetches with partial-failure tolerance.

Each upstream source yields Ok(value) or Failed(reason). Sources are
queried concurrently and merged: a failed source contributes an error
message, never an exception that drops the other sources' data.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Awaitable, Optional, Union

import httpx

from moltenflow.chains import HOME_CHAIN_ID, token_for
from moltenflow.config import Settings, get_settings
from moltenflow.exceptions import MoltenFlowError
from moltenflow.http import request_json

logger = logging.getLogger(__name__)

VAULT_PROTOCOLS = ("aave", "compound", "fluid")


@dataclass(frozen=True)
class Ok:
    value: Any


@dataclass(frozen=True)
class Failed:
    reason: str


ProviderResult = Union[Ok, Failed]


@dataclass
class MergedResult:
    """Best-effort data plus a non-fatal error description."""

    values: dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        return self.error is None


async def settle(source: str, coro: Awaitable[Any]) -> ProviderResult:
    """Await a source and capture its failure as Failed."""
    try:
        return Ok(await coro)
    except (MoltenFlowError, httpx.HTTPError, AttributeError, KeyError, TypeError, ValueError) as e:
        logger.warning(f"{source} fetch failed: {e}")
        return Failed(f"{source}: {e}")


def merge_results(
    results: list[ProviderResult],
    expected_keys: tuple[str, ...] = (),
    label: str = "prices",
) -> MergedResult:
    """Merge per-source results.

    Ok values must be dicts and are merged in order; Failed reasons are
    joined with "; ". When no source failed but an expected key is still
    missing, the error names the missing keys.
    """
    merged = MergedResult()
    errors = []

    for result in results:
        if isinstance(result, Ok):
            merged.values.update(
                {k: v for k, v in (result.value or {}).items() if v is not None}
            )
        else:
            errors.append(result.reason)

    missing = [k for k in expected_keys if merged.values.get(k) is None]
    for key in missing:
        merged.values[key] = None

    if errors:
        merged.error = "; ".join(errors)
    elif missing:
        merged.error = f"Failed to fetch {label} for: {', '.join(missing)}."

    return merged


def _price(value: Any) -> Optional[Decimal]:
    if value in (None, "", 0):
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"Invalid price: {value!r}")


@dataclass
class LendingOverview:
    """Per-vault APY and share price, with a non-fatal error."""

    apys: dict[str, Optional[Decimal]]
    prices: dict[str, Optional[Decimal]]
    error: Optional[str] = None


class MarketDataService:
    """Fetches lending vault prices and APYs."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()
        self._transport = transport

    async def _get(self, url: str) -> Any:
        return await request_json(
            "GET", url, timeout=self.settings.request_timeout, transport=self._transport
        )

    async def _llama_prices(self) -> dict[str, Optional[Decimal]]:
        """Aave and Fluid vault token prices."""
        aave = token_for(HOME_CHAIN_ID, "AAVE").address
        fluid = token_for(HOME_CHAIN_ID, "FLUID").address
        url = f"{self.settings.llama_price_url.rstrip('/')}/arbitrum:{aave},arbitrum:{fluid}"

        data = await self._get(url)
        coins = data.get("coins") or {}
        return {
            "aave": _price((coins.get(f"arbitrum:{aave}") or {}).get("price")),
            "fluid": _price((coins.get(f"arbitrum:{fluid}") or {}).get("price")),
        }

    async def _enso_prices(self) -> dict[str, Optional[Decimal]]:
        """Compound vault token price."""
        compound = token_for(HOME_CHAIN_ID, "COMPOUND").address
        url = f"{self.settings.enso_price_url.rstrip('/')}/{HOME_CHAIN_ID}/{compound}"

        data = await self._get(url)
        return {"compound": _price(data.get("price"))}

    async def get_interest_token_prices(self) -> MergedResult:
        """Vault share prices from both sources, fetched concurrently."""
        results = await asyncio.gather(
            settle("Llama", self._llama_prices()),
            settle("Enso", self._enso_prices()),
        )
        merged = merge_results(list(results), VAULT_PROTOCOLS)
        if merged.error:
            logger.warning(f"Partial price data: {merged.error}")
        return merged

    async def get_vault_apys(self) -> MergedResult:
        """APY per lending vault."""
        result = await settle("APY", self._fetch_apys())
        return merge_results([result], VAULT_PROTOCOLS, label="APYs")

    async def _fetch_apys(self) -> dict[str, Optional[Decimal]]:
        data = await self._get(self.settings.vault_apy_url)
        return {k: _price(data.get(k)) for k in VAULT_PROTOCOLS}

    async def get_lending_overview(self) -> LendingOverview:
        """APYs and prices fetched concurrently; never raises for one bad source."""
        apys, prices = await asyncio.gather(
            self.get_vault_apys(), self.get_interest_token_prices()
        )
        errors = [e for e in (apys.error, prices.error) if e]
        return LendingOverview(
            apys=apys.values,
            prices=prices.values,
            error="; ".join(errors) if errors else None,
        )
