"""Transaction assembly.

- approvals: allowance checks ahead of a spend
- wallet_api: deposit/withdraw calldata endpoint client
- builder: ordered call batches (approve, then act)
"""

from moltenflow.transactions.approvals import ApprovalGatekeeper, ApprovalState
from moltenflow.transactions.builder import TransactionBatchBuilder
from moltenflow.transactions.wallet_api import WalletApiClient, WalletOperation

__all__ = [
    "ApprovalGatekeeper",
    "ApprovalState",
    "TransactionBatchBuilder",
    "WalletApiClient",
    "WalletOperation",
]
