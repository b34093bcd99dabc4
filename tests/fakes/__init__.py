from tests.fakes.builders import MERGED_AT, REPO, make_check, make_request
from tests.fakes.cache import FakeRequestCache
from tests.fakes.clock import FakeClock
from tests.fakes.github import (
    FakeBranch,
    FakeCheckRun,
    FakeCommit,
    FakeGitHubClient,
    FakeMergeStatus,
    FakePullRequest,
    FakeRepository,
    FakeUser,
)
from tests.fakes.logger import FakeLogger
from tests.fakes.provider import FakeReviewProvider

__all__ = [
    "FakeBranch",
    "FakeCheckRun",
    "FakeClock",
    "FakeCommit",
    "FakeGitHubClient",
    "FakeLogger",
    "FakeMergeStatus",
    "FakePullRequest",
    "FakeRepository",
    "FakeRequestCache",
    "FakeReviewProvider",
    "FakeUser",
    "MERGED_AT",
    "REPO",
    "make_check",
    "make_request",
]
