from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple


@dataclass(frozen=True, slots=True)
class RepoRef:
    owner: str
    name: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    @classmethod
    def parse(cls, value: str) -> "RepoRef":
        owner, sep, name = value.strip().partition("/")
        if not sep or not owner or not name or "/" in name:
            raise ValueError(f"Expected 'owner/name', got {value!r}")
        return cls(owner=owner, name=name)


@dataclass(frozen=True, slots=True)
class BranchRef:
    name: str
    sha: str


class RequestState(Enum):
    OPEN = "open"
    CLOSED = "closed"


class Mergeability(Enum):
    MERGEABLE = "mergeable"
    CONFLICTED = "conflicted"
    UNKNOWN = "unknown"

    @classmethod
    def from_flag(cls, mergeable: Optional[bool]) -> "Mergeability":
        if mergeable is None:
            return cls.UNKNOWN
        return cls.MERGEABLE if mergeable else cls.CONFLICTED


@dataclass(frozen=True, slots=True)
class ReviewRequest:
    repo: RepoRef
    number: int
    title: str
    author: str
    state: RequestState
    draft: bool
    merged_at: Optional[datetime]
    head: BranchRef
    base: BranchRef
    mergeability: Mergeability
    requested_reviewers: Tuple[str, ...] = ()

    @property
    def is_merged(self) -> bool:
        return self.merged_at is not None

    @property
    def is_closed_unmerged(self) -> bool:
        return self.state is RequestState.CLOSED and self.merged_at is None
