from dataclasses import dataclass
from enum import Enum
from typing import Optional


class CheckStatus(Enum):
    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class CheckConclusion(Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    NEUTRAL = "neutral"
    CANCELLED = "cancelled"
    SKIPPED = "skipped"
    TIMED_OUT = "timed_out"
    ACTION_REQUIRED = "action_required"
    NONE = "none"

    @classmethod
    def from_value(cls, value: Optional[str]) -> "CheckConclusion":
        if value is None:
            return cls.NONE
        return cls(value)


FAILING_CONCLUSIONS = frozenset(
    {
        CheckConclusion.FAILURE,
        CheckConclusion.TIMED_OUT,
        CheckConclusion.ACTION_REQUIRED,
    }
)
RUNNING_STATUSES = frozenset({CheckStatus.QUEUED, CheckStatus.IN_PROGRESS})
# reported by merge-queue tooling, not by CI
DEFAULT_IGNORED_CHECKS = ("Graphite / mergeability_check",)


@dataclass(frozen=True, slots=True)
class CheckRun:
    id: int
    name: str
    status: CheckStatus
    conclusion: CheckConclusion

    @property
    def is_failing(self) -> bool:
        return self.conclusion in FAILING_CONCLUSIONS

    @property
    def is_running(self) -> bool:
        return self.status in RUNNING_STATUSES
