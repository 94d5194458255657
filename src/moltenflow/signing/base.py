"""Base interface for batch submission.

Submission flow:
1. Build the ordered CallBatch
2. Hand it to the signer as a single unit
3. Signer returns one combined result, or raises and nothing executed
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from moltenflow.contracts.calls import CallBatch, CallDescriptor

logger = logging.getLogger(__name__)


class SignerType(str, Enum):
    """Type of submission backend."""
    SMART_ACCOUNT = "smart_account"   # Session-key smart account (batched user ops)
    DRY_RUN = "dry_run"               # Simulated, nothing leaves the process


@dataclass
class TransactionResult:
    """Result of a batch submission.

    Attributes:
        tx_hash: Transaction (or user operation) hash
        call_count: Number of calls executed atomically
        chain_id: Chain the batch executed on
        is_simulated: True for dry-run submissions
    """
    tx_hash: str
    call_count: int = 1
    chain_id: Optional[int] = None
    is_simulated: bool = False
    metadata: dict = field(default_factory=dict)


class BatchSigner(ABC):
    """Abstract base class for submission backends.

    A batch executes all-or-nothing. Implementations raise on failure;
    error messages containing "rejected" (or code 4001) mean the user
    declined.
    """

    def __init__(self, signer_type: SignerType):
        self.signer_type = signer_type

    @abstractmethod
    async def send_batch(self, batch: CallBatch) -> TransactionResult:
        """Submit a batch of calls as one transaction.

        Args:
            batch: Ordered calls

        Returns:
            TransactionResult for the combined submission
        """
        pass

    async def send(self, call: CallDescriptor) -> TransactionResult:
        """Submit a single call."""
        return await self.send_batch(CallBatch(calls=(call,), description=call.description))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(type={self.signer_type.value})"
