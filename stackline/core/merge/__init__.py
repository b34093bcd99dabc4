from stackline.core.merge.orchestrator import (
    DEFAULT_COOLDOWN,
    DEFAULT_SETTLE_INTERVAL,
    MergeOrchestrator,
)
from stackline.core.merge.registry import RunRegistry

__all__ = [
    "MergeOrchestrator",
    "RunRegistry",
    "DEFAULT_COOLDOWN",
    "DEFAULT_SETTLE_INTERVAL",
]
