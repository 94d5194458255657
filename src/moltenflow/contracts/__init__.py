"""Data contracts for orchestration.

Contracts:
- calls: CallMetadata, CallDescriptor, CallBatch
- routes: RouteRequest, BridgeCallArgs, RoutePlanResult
"""

from moltenflow.contracts.calls import CallBatch, CallDescriptor, CallMetadata
from moltenflow.contracts.routes import BridgeCallArgs, RoutePlanResult, RouteRequest

__all__ = [
    "CallMetadata",
    "CallDescriptor",
    "CallBatch",
    "RouteRequest",
    "BridgeCallArgs",
    "RoutePlanResult",
]
