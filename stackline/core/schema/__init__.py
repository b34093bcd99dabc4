from stackline.core.schema.checks import CheckConclusion, CheckRun, CheckStatus
from stackline.core.schema.merge import (
    BlockerReason,
    MergeBlocker,
    MergeEvent,
    MergeMethod,
    MergePlan,
    MergeResponse,
    MergeRunResult,
    RunState,
)
from stackline.core.schema.pr import (
    BranchRef,
    Mergeability,
    RepoRef,
    RequestState,
    ReviewRequest,
)
from stackline.core.schema.stack import Chain, Stack

__all__ = [
    "RepoRef",
    "BranchRef",
    "RequestState",
    "Mergeability",
    "ReviewRequest",
    "CheckStatus",
    "CheckConclusion",
    "CheckRun",
    "Chain",
    "Stack",
    "BlockerReason",
    "MergeBlocker",
    "MergeMethod",
    "MergeResponse",
    "MergePlan",
    "MergeEvent",
    "MergeRunResult",
    "RunState",
]
