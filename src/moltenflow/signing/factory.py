"""Signer factory.

The smart-account signer lives outside this package and is registered
at startup. Dry-run mode falls back to DryRunSigner.
"""

import logging
from typing import Optional

from moltenflow.config import get_settings
from moltenflow.signing.base import BatchSigner

logger = logging.getLogger(__name__)

_signer_instance: Optional[BatchSigner] = None


def register_signer(signer: BatchSigner) -> None:
    """Install the submission backend used by get_signer()."""
    global _signer_instance
    _signer_instance = signer
    logger.info(f"Registered signer: {signer!r}")


def get_signer() -> BatchSigner:
    """Get the configured signer instance.

    Raises:
        RuntimeError: If no signer is registered outside dry-run mode
    """
    global _signer_instance

    if _signer_instance is not None:
        return _signer_instance

    settings = get_settings()
    if not settings.dry_run:
        raise RuntimeError("No smart-account signer registered (call register_signer first)")

    from moltenflow.signing.dry_run import DryRunSigner

    _signer_instance = DryRunSigner()
    logger.info("Using dry-run signer")
    return _signer_instance


def reset_signer() -> None:
    """Forget the registered signer (useful for testing)."""
    global _signer_instance
    _signer_instance = None
