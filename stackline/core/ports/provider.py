from typing import List, Optional, Protocol, runtime_checkable

from stackline.core.schema.checks import CheckRun
from stackline.core.schema.merge import MergeMethod, MergeResponse
from stackline.core.schema.pr import RepoRef, ReviewRequest


@runtime_checkable
class ReviewRequestProvider(Protocol):
    def list_open_requests(self, repo: RepoRef) -> List[ReviewRequest]:
        ...

    def get_request(self, repo: RepoRef, number: int) -> ReviewRequest:
        ...

    def find_request_by_head(
        self, repo: RepoRef, branch: str
    ) -> Optional[ReviewRequest]:
        ...

    def get_check_runs(self, repo: RepoRef, number: int) -> List[CheckRun]:
        ...

    def merge_request(
        self, repo: RepoRef, number: int, method: MergeMethod
    ) -> MergeResponse:
        ...
