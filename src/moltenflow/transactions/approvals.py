"""Approval gatekeeper.

Reads the current ERC-20 allowance and decides whether an approval call
must precede the spend. Read-only, never cached: every batch build
checks again.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from moltenflow.amounts import to_base_units
from moltenflow.chain.reader import ChainReader
from moltenflow.chains import token_for
from moltenflow.contracts.calls import CallDescriptor
from moltenflow.encoding import encode_approve

logger = logging.getLogger(__name__)


@dataclass
class ApprovalState:
    """Result of one allowance check."""

    current_allowance: int
    required_amount: int
    needs_approval: bool
    approval_call: Optional[CallDescriptor] = None


def build_approval_call(token_address: str, spender: str, amount: int) -> CallDescriptor:
    """approve(spender, amount) on the token contract."""
    return CallDescriptor(
        target=token_address,
        data=encode_approve(spender, amount),
        description=f"Approve {spender[:10]}... to spend {amount}",
        approves=spender,
    )


class ApprovalGatekeeper:
    """Decides whether a spend needs a preceding approval."""

    def __init__(self, reader: ChainReader):
        self.reader = reader

    async def check_approval(
        self,
        owner: str,
        spender: str,
        token_address: str,
        required_amount: int,
        chain_id: int,
    ) -> ApprovalState:
        """Compare the on-chain allowance against a required amount.

        Args:
            owner: Token holder
            spender: Contract that will pull the tokens
            token_address: ERC-20 contract
            required_amount: Amount in base units
            chain_id: Chain the token lives on

        Returns:
            ApprovalState; needs_approval is True iff allowance < required
        """
        (allowance,) = await self.reader.read_contract(
            token_address,
            "allowance(address,address)",
            [owner, spender],
            chain_id,
            ["uint256"],
        )

        needs_approval = allowance < required_amount
        logger.debug(
            f"Allowance {owner[:10]}... -> {spender[:10]}...: {allowance} "
            f"(required {required_amount}, needs approval: {needs_approval})"
        )

        return ApprovalState(
            current_allowance=allowance,
            required_amount=required_amount,
            needs_approval=needs_approval,
            approval_call=(
                build_approval_call(token_address, spender, required_amount)
                if needs_approval
                else None
            ),
        )

    async def check_approval_for_amount(
        self,
        owner: str,
        spender: str,
        chain_id: int,
        token: str,
        amount: str,
    ) -> ApprovalState:
        """check_approval() for a decimal amount of a registered token."""
        info = token_for(chain_id, token)
        required = to_base_units(amount, info.decimals)
        return await self.check_approval(owner, spender, info.address, required, chain_id)
