from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from stackline.core.schema.stack import Stack


class BlockerReason(Enum):
    NOT_AUTHOR = "not-author"
    ALREADY_MERGING = "already-merging"
    ALREADY_MERGED = "already-merged"
    CLOSED_UNMERGED = "closed-unmerged"
    BLOCKED_ANCESTOR_CLOSED = "blocked-ancestor-closed"
    DRAFT = "draft"
    CONFLICTED = "conflicted"
    CI_FAILED = "ci-failed"
    CI_RUNNING = "ci-running"
    READY = "ready"


@dataclass(frozen=True, slots=True)
class MergeBlocker:
    reason: BlockerReason
    pr_number: int
    message: str
    merge_count: int = 0
    unverified: Tuple[int, ...] = ()

    @property
    def is_ready(self) -> bool:
        return self.reason is BlockerReason.READY


class MergeMethod(Enum):
    MERGE = "merge"
    SQUASH = "squash"
    REBASE = "rebase"


@dataclass(frozen=True, slots=True)
class MergeResponse:
    merged: bool
    message: str
    sha: Optional[str] = None


class RunState(Enum):
    IDLE = "idle"
    CONFIRMING = "confirming"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    ABORTED = "aborted"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATES


TERMINAL_STATES = frozenset(
    {
        RunState.SUCCEEDED,
        RunState.ABORTED,
        RunState.FAILED,
        RunState.CANCELLED,
    }
)


@dataclass(frozen=True, slots=True)
class MergePlan:
    stack: Stack
    target: int
    numbers: Tuple[int, ...]
    verdict: MergeBlocker

    @property
    def total(self) -> int:
        return len(self.numbers)


@dataclass(frozen=True, slots=True)
class MergeEvent:
    """One entry of the progress stream of an orchestration run.

    ``completed`` is the number of steps known to have merged when the event
    was emitted. Terminal events carry a terminal ``state``.
    """

    step: int
    total: int
    pr_number: Optional[int]
    state: RunState
    message: str
    completed: int
    stack_invalidated: bool = False

    @property
    def is_terminal(self) -> bool:
        return self.state.is_terminal


@dataclass(frozen=True, slots=True)
class MergeRunResult:
    state: RunState
    step: int
    completed: int
    total: int
    message: str
