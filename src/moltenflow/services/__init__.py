"""Orchestration services.

- throttle: post-transaction balance refresh throttling
- classifier: failure taxonomy and notifications
- market_data: concurrent price/APY fetches with partial-failure tolerance
- orchestrator: lock -> build -> sign -> notify -> refresh
"""

from moltenflow.services.classifier import Notification, build_notification, classify_error
from moltenflow.services.market_data import (
    Failed,
    LendingOverview,
    MarketDataService,
    MergedResult,
    Ok,
    merge_results,
)
from moltenflow.services.orchestrator import Orchestrator, OrchestratorContext, create_context
from moltenflow.services.throttle import RefreshThrottler

__all__ = [
    "Notification",
    "build_notification",
    "classify_error",
    "Ok",
    "Failed",
    "MergedResult",
    "LendingOverview",
    "MarketDataService",
    "merge_results",
    "Orchestrator",
    "OrchestratorContext",
    "create_context",
    "RefreshThrottler",
]
