"""Balance reads for the smart account, the owner wallet and the USDM vault."""

import asyncio
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from moltenflow.amounts import from_base_units, truncate_decimal_string
from moltenflow.chain.reader import ChainReader
from moltenflow.chains import (
    AAVE_AUSDC_ADDRESS,
    BALANCES_LENS_ADDRESS,
    HOME_CHAIN_ID,
    USDM_VAULT_ADDRESS,
    token_for,
)

logger = logging.getLogger(__name__)

# Margin (musd) balances are 30-decimal fixed point
MARGIN_DECIMALS = 30


@dataclass
class UserBalances:
    """Smart-account balances as reported by the lens."""

    eth_balance: int
    usdc_balance: int
    usdc_allowance: int
    margin_balance: int

    @property
    def formatted_eth(self) -> str:
        return from_base_units(self.eth_balance, 18)

    @property
    def formatted_usdc(self) -> str:
        return from_base_units(self.usdc_balance, 6)

    @property
    def formatted_usdc_allowance(self) -> str:
        return from_base_units(self.usdc_allowance, 6)

    @property
    def formatted_margin(self) -> str:
        """Margin truncated to two decimals for display."""
        return truncate_decimal_string(from_base_units(self.margin_balance, MARGIN_DECIMALS), 2)

    @property
    def margin(self) -> Decimal:
        return Decimal(from_base_units(self.margin_balance, MARGIN_DECIMALS))


@dataclass
class VaultBreakdown:
    """How the USDM vault's assets are split between idle USDC and Aave."""

    total_usd: Decimal
    aave_usd: Decimal
    normal_usd: Decimal
    aave_percentage: Decimal
    normal_percentage: Decimal


class BalanceReader:
    """Reads balances through a ChainReader.

    Refresh target for the orchestrator: refresh() re-reads balances
    after a successful transaction.
    """

    def __init__(self, reader: ChainReader):
        self.reader = reader
        self.last_balances: Optional[UserBalances] = None

    async def get_user_balances(self, smart_account: str) -> UserBalances:
        """Read eth/usdc/allowance/margin balances for a smart account."""
        eth, usdc, allowance, margin = await self.reader.read_contract(
            BALANCES_LENS_ADDRESS,
            "getUserBalances(address)",
            [smart_account],
            HOME_CHAIN_ID,
            ["uint256", "uint256", "uint256", "uint256"],
        )
        balances = UserBalances(
            eth_balance=eth,
            usdc_balance=usdc,
            usdc_allowance=allowance,
            margin_balance=margin,
        )
        self.last_balances = balances
        return balances

    async def get_token_balance(self, owner: str, chain_id: int, token: str) -> int:
        """Read an ERC-20 balance in base units.

        Args:
            owner: Holder address
            chain_id: Chain the token lives on
            token: Token symbol or address registered for the chain
        """
        info = token_for(chain_id, token)
        (balance,) = await self.reader.read_contract(
            info.address, "balanceOf(address)", [owner], chain_id, ["uint256"]
        )
        return balance

    async def get_vault_breakdown(self) -> Optional[VaultBreakdown]:
        """Split of vault assets between idle USDC and Aave.

        Both reads are issued concurrently. Returns None while the vault is empty.
        """
        (total_raw,), (aave_raw,) = await asyncio.gather(
            self.reader.read_contract(
                USDM_VAULT_ADDRESS, "getVaultUSDBalance()", [], HOME_CHAIN_ID, ["uint256"]
            ),
            self.reader.read_contract(
                AAVE_AUSDC_ADDRESS,
                "balanceOf(address)",
                [USDM_VAULT_ADDRESS],
                HOME_CHAIN_ID,
                ["uint256"],
            ),
        )

        total = Decimal(from_base_units(total_raw, 30))
        aave = Decimal(from_base_units(aave_raw, 6))
        if total == 0:
            return None

        normal = total - aave
        return VaultBreakdown(
            total_usd=total,
            aave_usd=aave,
            normal_usd=normal,
            aave_percentage=aave / total * 100,
            normal_percentage=normal / total * 100,
        )

    async def refresh(self, smart_account: str) -> UserBalances:
        logger.debug(f"Refreshing balances for {smart_account}")
        return await self.get_user_balances(smart_account)
