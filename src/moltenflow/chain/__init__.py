"""Chain reads.

- reader: ChainReader capability and its JSON-RPC implementation
- balances: wallet, margin and vault balance reads
"""

from moltenflow.chain.balances import BalanceReader, UserBalances, VaultBreakdown
from moltenflow.chain.reader import ChainReader, JsonRpcChainReader

__all__ = [
    "ChainReader",
    "JsonRpcChainReader",
    "BalanceReader",
    "UserBalances",
    "VaultBreakdown",
]
