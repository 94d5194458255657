"""Dry-run signer: deterministic fake submissions."""

import hashlib
import logging

from moltenflow.contracts.calls import CallBatch
from moltenflow.signing.base import BatchSigner, SignerType, TransactionResult

logger = logging.getLogger(__name__)


class DryRunSigner(BatchSigner):
    """Hashes the batch instead of submitting it."""

    def __init__(self, chain_id: int = 42161):
        super().__init__(SignerType.DRY_RUN)
        self.chain_id = chain_id
        self.submitted: list[CallBatch] = []

    async def send_batch(self, batch: CallBatch) -> TransactionResult:
        digest = hashlib.sha256()
        for call in batch.calls:
            digest.update(f"{call.target.lower()}:{call.value}:{call.data}".encode())
        digest.update(str(len(self.submitted)).encode())

        self.submitted.append(batch)
        tx_hash = "0x" + digest.hexdigest()
        logger.info(f"[dry-run] Submitted {len(batch)} call(s): {tx_hash}")

        return TransactionResult(
            tx_hash=tx_hash,
            call_count=len(batch),
            chain_id=self.chain_id,
            is_simulated=True,
        )
