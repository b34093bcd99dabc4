from typing import Dict, Iterable, Iterator, List, NoReturn, Optional, Sequence

from stackline.core.exceptions import (
    MergeNotReadyError,
    RequestNotInStackError,
    SourceNotFoundError,
    StackNotFoundError,
    StaleStackError,
)
from stackline.core.merge import (
    DEFAULT_COOLDOWN,
    DEFAULT_SETTLE_INTERVAL,
    MergeOrchestrator,
    RunRegistry,
)
from stackline.core.ports.cache import RequestCache
from stackline.core.ports.clock import Clock
from stackline.core.ports.logger import Logger
from stackline.core.ports.provider import ReviewRequestProvider
from stackline.core.schema.checks import CheckRun
from stackline.core.schema.merge import (
    MergeBlocker,
    MergeEvent,
    MergeMethod,
    MergePlan,
)
from stackline.core.schema.pr import RepoRef, ReviewRequest
from stackline.core.schema.stack import Stack
from stackline.core.stacks import (
    build_chains,
    evaluate_readiness,
    root_number_from_stack_id,
    to_stack,
)


class StackService:
    """Entry point for callers: stack listing, lookup, readiness and merges.

    Stacks are rebuilt from the provider's open pull requests on every call;
    only the raw request and check-run data goes through the cache.
    """

    def __init__(
        self,
        logger: Logger,
        clock: Clock,
        provider: ReviewRequestProvider,
        cache: RequestCache,
        *,
        acting_user: Optional[str],
        repositories: Sequence[RepoRef] = (),
        merge_method: MergeMethod = MergeMethod.SQUASH,
        merge_cooldown: float = DEFAULT_COOLDOWN,
        settle_timeout: float = 0.0,
        settle_interval: float = DEFAULT_SETTLE_INTERVAL,
    ) -> None:
        self._logger = logger
        self._clock = clock
        self._provider = provider
        self._cache = cache
        self._acting_user = acting_user
        self._repositories = tuple(repositories)
        self._merge_method = merge_method
        self._merge_cooldown = merge_cooldown
        self._settle_timeout = settle_timeout
        self._settle_interval = settle_interval
        self._registry = RunRegistry()
        self._active: Dict[str, MergeOrchestrator] = {}

    @property
    def repositories(self) -> Sequence[RepoRef]:
        return self._repositories

    def build_stacks(self, repo: RepoRef) -> List[Stack]:
        requests = self._open_requests(repo)
        stacks = [to_stack(repo, chain) for chain in build_chains(requests)]
        self._logger.info(
            "Stacks rebuilt",
            repo=repo.full_name,
            request_count=len(requests),
            stack_count=len(stacks),
        )
        return stacks

    def build_all_stacks(self) -> List[Stack]:
        stacks: List[Stack] = []
        for repo in self._repositories:
            stacks.extend(self.build_stacks(repo))
        return stacks

    def get_stack(self, repo: RepoRef, stack_id: str) -> Stack:
        requests = self._open_requests(repo)
        for chain in build_chains(requests):
            stack = to_stack(repo, chain)
            if stack.id == stack_id:
                return stack
        self._raise_missing(repo, stack_id, requests)

    def check_runs_for(
        self,
        repo: RepoRef,
        numbers: Iterable[int],
        *,
        fetch_missing: bool = True,
    ) -> Dict[int, List[CheckRun]]:
        """Check runs per pull request, served from the cache when present.

        With ``fetch_missing`` off, requests absent from the cache are left
        out of the result and count as unknown for readiness.
        """
        check_runs: Dict[int, List[CheckRun]] = {}
        for number in numbers:
            cached = self._cache.get_check_runs(repo, number)
            if cached is None and fetch_missing:
                cached = self._provider.get_check_runs(repo, number)
                self._cache.store_check_runs(repo, number, cached)
            if cached is not None:
                check_runs[number] = cached
        return check_runs

    def evaluate_readiness(
        self,
        stack: Stack,
        target: int,
        *,
        fetch_missing: bool = True,
    ) -> MergeBlocker:
        prefix = self._prefix(stack, target)
        return evaluate_readiness(
            prefix,
            self._acting_user,
            self._prefix_check_runs(stack, prefix, fetch_missing),
            merge_in_flight=self._registry.is_active(stack.id),
            base_ancestor=self._base_ancestor(stack),
        )

    def run_merge(
        self,
        stack: Stack,
        target: int,
        method: Optional[MergeMethod] = None,
    ) -> Iterator[MergeEvent]:
        """Start a run for ``stack`` up to ``target`` and stream its progress.

        Raises ``MergeNotReadyError`` before any merge when readiness does not
        report ``ready``.
        """
        orchestrator = self._new_orchestrator()
        prefix = self._prefix(stack, target)
        plan = orchestrator.prepare(
            stack,
            target,
            self._acting_user,
            self._prefix_check_runs(stack, prefix, fetch_missing=True),
            base_ancestor=self._base_ancestor(stack),
        )
        if not plan.verdict.is_ready:
            raise MergeNotReadyError(plan.verdict.message, plan.verdict)
        return self._track(orchestrator, plan, method or self._merge_method)

    def cancel_merge(self, stack_id: str) -> bool:
        orchestrator = self._active.get(stack_id)
        if orchestrator is None:
            return False
        orchestrator.cancel()
        return True

    def _track(
        self,
        orchestrator: MergeOrchestrator,
        plan: MergePlan,
        method: MergeMethod,
    ) -> Iterator[MergeEvent]:
        stack_id = plan.stack.id
        self._active.setdefault(stack_id, orchestrator)
        try:
            yield from orchestrator.execute(plan, method)
        finally:
            if self._active.get(stack_id) is orchestrator:
                del self._active[stack_id]

    def _new_orchestrator(self) -> MergeOrchestrator:
        return MergeOrchestrator(
            self._logger,
            self._clock,
            self._provider,
            self._cache,
            cooldown=self._merge_cooldown,
            settle_timeout=self._settle_timeout,
            settle_interval=self._settle_interval,
            registry=self._registry,
        )

    def _open_requests(self, repo: RepoRef) -> List[ReviewRequest]:
        cached = self._cache.get_open_requests(repo)
        if cached is not None:
            self._logger.debug("Open requests served from cache", repo=repo.full_name)
            return cached
        requests = self._provider.list_open_requests(repo)
        self._cache.store_open_requests(repo, requests)
        return requests

    def _prefix(self, stack: Stack, target: int) -> Sequence[ReviewRequest]:
        if not stack.contains(target):
            raise RequestNotInStackError(
                f"PR #{target} is not part of stack {stack.id}",
                stack.id,
                target,
            )
        return stack.prefix_to(target)

    def _prefix_check_runs(
        self,
        stack: Stack,
        prefix: Sequence[ReviewRequest],
        fetch_missing: bool,
    ) -> Dict[int, List[CheckRun]]:
        return self.check_runs_for(
            stack.repo,
            [request.number for request in prefix if not request.is_merged],
            fetch_missing=fetch_missing,
        )

    def _base_ancestor(self, stack: Stack) -> Optional[ReviewRequest]:
        root = stack.root
        ancestor = self._provider.find_request_by_head(stack.repo, root.base.name)
        if ancestor is None or ancestor.number == root.number:
            return None
        return ancestor

    def _raise_missing(
        self,
        repo: RepoRef,
        stack_id: str,
        requests: Sequence[ReviewRequest],
    ) -> NoReturn:
        not_found = StackNotFoundError(
            f'Stack with ID "{stack_id}" not found', stack_id
        )
        root_number = root_number_from_stack_id(repo, stack_id)
        if root_number is None:
            raise not_found

        root = next(
            (request for request in requests if request.number == root_number),
            None,
        )
        if root is None:
            try:
                root = self._provider.get_request(repo, root_number)
            except SourceNotFoundError:
                raise not_found from None
        if root.is_merged:
            self._logger.info(
                "Stack root already merged",
                stack_id=stack_id,
                root_number=root_number,
            )
            raise StaleStackError(
                f"Stack {stack_id} is no longer current: "
                f"PR #{root_number} has been merged",
                stack_id,
                root_number,
            )
        raise not_found
