"""Transaction submission.

The signing layer (smart account / session key) is an external
capability: it takes call descriptors and returns one combined result
or raises.

- BatchSigner: submission interface
- DryRunSigner: deterministic fake submissions for dry-run mode
"""

from moltenflow.signing.base import BatchSigner, SignerType, TransactionResult
from moltenflow.signing.dry_run import DryRunSigner
from moltenflow.signing.factory import get_signer, register_signer, reset_signer

__all__ = [
    "BatchSigner",
    "SignerType",
    "TransactionResult",
    "DryRunSigner",
    "get_signer",
    "register_signer",
    "reset_signer",
]
