from typing import List, Optional, Protocol, runtime_checkable

from stackline.core.schema.checks import CheckRun
from stackline.core.schema.pr import RepoRef, ReviewRequest


@runtime_checkable
class RequestCache(Protocol):
    def get_open_requests(self, repo: RepoRef) -> Optional[List[ReviewRequest]]:
        ...

    def store_open_requests(
        self, repo: RepoRef, requests: List[ReviewRequest]
    ) -> None:
        ...

    def get_check_runs(
        self, repo: RepoRef, number: int
    ) -> Optional[List[CheckRun]]:
        ...

    def store_check_runs(
        self, repo: RepoRef, number: int, check_runs: List[CheckRun]
    ) -> None:
        ...

    def invalidate(self, repo: RepoRef) -> None:
        ...
