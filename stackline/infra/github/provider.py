from datetime import datetime, timezone
from typing import Dict, Iterable, List, NoReturn, Optional

from github import GithubException
from github.Repository import Repository
from requests import RequestException

from stackline.core.exceptions import (
    SourceAuthenticationError,
    SourceError,
    SourceNotFoundError,
    SourceRateLimitError,
)
from stackline.core.ports.provider import ReviewRequestProvider
from stackline.core.schema.checks import (
    DEFAULT_IGNORED_CHECKS,
    CheckConclusion,
    CheckRun,
    CheckStatus,
)
from stackline.core.schema.merge import MergeMethod, MergeResponse
from stackline.core.schema.pr import (
    BranchRef,
    Mergeability,
    RepoRef,
    RequestState,
    ReviewRequest,
)
from stackline.infra.github.client import GitHubClient


STATUS_OPEN = "open"
STATUS_ALL = "all"

_MERGE_REJECTIONS = {
    405: (
        "Pull request is not mergeable. Check if it has conflicts or "
        "required checks are failing."
    ),
    409: "Pull request head was modified. Review and try again.",
}
# newer check run states that have not started yet
_PENDING_STATUSES = {"waiting", "requested", "pending"}


class GitHubReviewProvider(ReviewRequestProvider):
    def __init__(
        self,
        client: GitHubClient,
        ignored_checks: Iterable[str] = DEFAULT_IGNORED_CHECKS,
    ) -> None:
        self._client = client
        self._repos: Dict[RepoRef, Repository] = {}
        self._ignored_checks = frozenset(ignored_checks)

    def list_open_requests(self, repo: RepoRef) -> List[ReviewRequest]:
        repository = self._get_repo(repo)
        try:
            pulls = repository.get_pulls(
                state=STATUS_OPEN,
                sort="updated",
                direction="desc",
            )
            return [self._to_request(repo, pr) for pr in pulls]
        except (GithubException, RequestException) as error:
            self._translate_exception(
                "Failed to list pull requests",
                error,
                resource=repo.full_name,
            )

    def get_request(self, repo: RepoRef, number: int) -> ReviewRequest:
        repository = self._get_repo(repo)
        try:
            return self._to_request(repo, repository.get_pull(number))
        except (GithubException, RequestException) as error:
            self._translate_exception(
                f"Failed to fetch pull request #{number}",
                error,
                resource=f"{repo.full_name}#{number}",
            )

    def find_request_by_head(
        self, repo: RepoRef, branch: str
    ) -> Optional[ReviewRequest]:
        repository = self._get_repo(repo)
        try:
            pulls = repository.get_pulls(
                state=STATUS_ALL,
                head=f"{repo.owner}:{branch}",
            )
            for pr in pulls:
                return self._to_request(repo, pr)
        except (GithubException, RequestException) as error:
            self._translate_exception(
                f"Failed to look up pull request for branch {branch}",
                error,
                resource=repo.full_name,
            )
        return None

    def get_check_runs(self, repo: RepoRef, number: int) -> List[CheckRun]:
        repository = self._get_repo(repo)
        try:
            pr = repository.get_pull(number)
            commit = repository.get_commit(pr.head.sha)
            return [
                self._to_check_run(run)
                for run in commit.get_check_runs()
                if run.name not in self._ignored_checks
            ]
        except (GithubException, RequestException) as error:
            self._translate_exception(
                f"Failed to fetch check runs for pull request #{number}",
                error,
                resource=f"{repo.full_name}#{number}",
            )

    def merge_request(
        self, repo: RepoRef, number: int, method: MergeMethod
    ) -> MergeResponse:
        repository = self._get_repo(repo)
        try:
            pr = repository.get_pull(number)
            status = pr.merge(merge_method=method.value)
        except GithubException as error:
            rejection = _MERGE_REJECTIONS.get(getattr(error, "status", None))
            if rejection is not None:
                return MergeResponse(merged=False, message=rejection)
            self._translate_exception(
                f"Failed to merge pull request #{number}",
                error,
                resource=f"{repo.full_name}#{number}",
            )
        except RequestException as error:
            self._translate_exception(
                f"Failed to merge pull request #{number}",
                error,
                resource=f"{repo.full_name}#{number}",
            )
        return MergeResponse(
            merged=bool(status.merged),
            message=status.message or "",
            sha=status.sha,
        )

    def _to_request(self, repo: RepoRef, pr) -> ReviewRequest:
        return ReviewRequest(
            repo=repo,
            number=pr.number,
            title=pr.title or "",
            author=pr.user.login if pr.user else "",
            state=RequestState(pr.state),
            draft=bool(pr.draft),
            merged_at=pr.merged_at,
            head=self._to_branch(pr.head),
            base=self._to_branch(pr.base),
            mergeability=Mergeability.from_flag(pr.mergeable),
            requested_reviewers=tuple(
                user.login for user in pr.requested_reviewers or ()
            ),
        )

    def _to_branch(self, part) -> BranchRef:  # noqa: ANN001
        if part is None:
            return BranchRef(name="", sha="")
        return BranchRef(name=part.ref or "", sha=part.sha or "")

    def _to_check_run(self, run) -> CheckRun:  # noqa: ANN001
        if run.status in _PENDING_STATUSES:
            status = CheckStatus.QUEUED
        else:
            status = CheckStatus(run.status)
        try:
            conclusion = CheckConclusion.from_value(run.conclusion)
        except ValueError:
            conclusion = CheckConclusion.NONE
        return CheckRun(
            id=run.id,
            name=run.name,
            status=status,
            conclusion=conclusion,
        )

    def _get_repo(self, repo: RepoRef) -> Repository:
        if repo not in self._repos:
            try:
                self._repos[repo] = self._client.get_repo(repo.owner, repo.name)
            except (GithubException, RequestException) as error:
                self._translate_exception(
                    "Failed to access repository",
                    error,
                    resource=repo.full_name,
                )
        return self._repos[repo]

    def _translate_exception(
        self,
        message: str,
        error: Exception,
        resource: str | None = None,
    ) -> NoReturn:
        status = getattr(error, "status", None)
        headers = getattr(error, "headers", {}) or {}
        if status == 401:
            raise SourceAuthenticationError(message) from error
        if status == 404:
            raise SourceNotFoundError(
                message,
                resource or "resource",
            ) from error
        if status == 403:
            retry_after = self._retry_after_from_headers(headers)
            if retry_after:
                raise SourceRateLimitError(message, retry_after) from error
        raise SourceError(f"{message}: {error}") from error

    def _retry_after_from_headers(self, headers) -> datetime | None:  # noqa: ANN001
        reset = headers.get("Retry-After") or headers.get("X-RateLimit-Reset")
        if reset is None:
            return None
        try:
            reset_time = float(reset)
            return datetime.fromtimestamp(reset_time, tz=timezone.utc)
        except (TypeError, ValueError):
            return None
