import math
from typing import Iterator, Mapping, Optional, Sequence

from stackline.core.exceptions import (
    CacheError,
    MergeNotReadyError,
    OrchestrationInProgressError,
    RequestNotInStackError,
)
from stackline.core.merge.registry import RunRegistry
from stackline.core.ports.cache import RequestCache
from stackline.core.ports.clock import Clock
from stackline.core.ports.logger import Logger
from stackline.core.ports.provider import ReviewRequestProvider
from stackline.core.schema.checks import CheckRun
from stackline.core.schema.merge import (
    MergeEvent,
    MergeMethod,
    MergePlan,
    MergeRunResult,
    RunState,
)
from stackline.core.schema.pr import Mergeability, RepoRef, ReviewRequest
from stackline.core.schema.stack import Stack
from stackline.core.stacks.readiness import evaluate_readiness

DEFAULT_COOLDOWN = 1.5
DEFAULT_SETTLE_INTERVAL = 1.0


class MergeOrchestrator:
    """Merges the unmerged prefix of a stack one pull request at a time.

    One instance drives one user-initiated run:
    ``idle -> confirming -> running -> succeeded | aborted | failed | cancelled``.
    The prefix is fixed when the plan is prepared and is not recomputed while
    the run is in progress. Runs never retry a step; every terminal event
    reports how many steps are known to have merged.
    """

    def __init__(
        self,
        logger: Logger,
        clock: Clock,
        provider: ReviewRequestProvider,
        cache: RequestCache,
        *,
        cooldown: float = DEFAULT_COOLDOWN,
        settle_timeout: float = 0.0,
        settle_interval: float = DEFAULT_SETTLE_INTERVAL,
        registry: Optional[RunRegistry] = None,
    ) -> None:
        if settle_interval <= 0:
            raise ValueError("settle_interval must be positive")
        self._logger = logger
        self._clock = clock
        self._provider = provider
        self._cache = cache
        self._cooldown = cooldown
        self._settle_timeout = settle_timeout
        self._settle_interval = settle_interval
        self._registry = registry or RunRegistry()
        self._state = RunState.IDLE
        self._cancel_requested = False
        self._last_result: Optional[MergeRunResult] = None

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def last_result(self) -> Optional[MergeRunResult]:
        return self._last_result

    def is_running(self, stack_id: str) -> bool:
        return self._registry.is_active(stack_id)

    def cancel(self) -> None:
        """Stop before the next step; a merge call in flight still completes."""
        self._cancel_requested = True

    def prepare(
        self,
        stack: Stack,
        target: int,
        acting_user: Optional[str],
        check_runs: Mapping[int, Sequence[CheckRun]],
        *,
        base_ancestor: Optional[ReviewRequest] = None,
    ) -> MergePlan:
        if not stack.contains(target):
            raise RequestNotInStackError(
                f"PR #{target} is not part of stack {stack.id}",
                stack.id,
                target,
            )
        prefix = stack.prefix_to(target)
        verdict = evaluate_readiness(
            prefix,
            acting_user,
            check_runs,
            merge_in_flight=self.is_running(stack.id),
            base_ancestor=base_ancestor,
        )
        numbers = tuple(
            request.number for request in prefix if not request.is_merged
        )
        self._state = RunState.CONFIRMING
        self._logger.info(
            "Merge plan prepared",
            stack_id=stack.id,
            target=target,
            numbers=list(numbers),
            verdict=verdict.reason.value,
        )
        return MergePlan(
            stack=stack,
            target=target,
            numbers=numbers,
            verdict=verdict,
        )

    def execute(self, plan: MergePlan, method: MergeMethod) -> Iterator[MergeEvent]:
        """Yield progress events, ending with exactly one terminal event."""
        stack = plan.stack
        if not plan.verdict.is_ready:
            raise MergeNotReadyError(plan.verdict.message, plan.verdict)
        if not self._registry.acquire(stack.id):
            raise OrchestrationInProgressError(
                f"A merge is already running for stack {stack.id}",
                stack.id,
            )
        try:
            yield from self._run(plan, method)
        finally:
            self._registry.release(stack.id)

    def _run(self, plan: MergePlan, method: MergeMethod) -> Iterator[MergeEvent]:
        repo = plan.stack.repo
        total = plan.total
        completed = 0
        self._state = RunState.RUNNING
        self._cancel_requested = False
        self._logger.info(
            "Merge run starting",
            stack_id=plan.stack.id,
            total=total,
            method=method.value,
        )

        for step, number in enumerate(plan.numbers, start=1):
            if self._cancel_requested:
                yield self._finish(
                    plan,
                    RunState.CANCELLED,
                    step=step,
                    completed=completed,
                    message=(
                        f"Cancelled before PR #{number}; "
                        f"{completed} of {total} merged"
                    ),
                )
                return

            yield MergeEvent(
                step=step,
                total=total,
                pr_number=number,
                state=RunState.RUNNING,
                message=f"Merging PR #{number} ({step}/{total})",
                completed=completed,
            )
            try:
                response = self._provider.merge_request(repo, number, method)
            # any failure here leaves the outcome of this step unknown
            except Exception as error:
                self._logger.exception(
                    "Merge step failed",
                    stack_id=plan.stack.id,
                    pr_number=number,
                    step=step,
                    total=total,
                    error=str(error),
                )
                yield self._finish(
                    plan,
                    RunState.FAILED,
                    step=step,
                    completed=completed,
                    message=(
                        f"Merging PR #{number} failed: {error}. "
                        f"It may or may not have merged; {completed} of "
                        f"{total} confirmed merged"
                    ),
                )
                return

            if not response.merged:
                yield self._finish(
                    plan,
                    RunState.ABORTED,
                    step=step,
                    completed=completed,
                    message=(
                        f"Failed to merge PR #{number}: {response.message}. "
                        f"Stopped at {step}/{total} branches."
                    ),
                )
                return

            completed += 1
            self._logger.info(
                "Merged pull request",
                stack_id=plan.stack.id,
                pr_number=number,
                step=step,
                total=total,
                sha=response.sha,
            )
            yield MergeEvent(
                step=step,
                total=total,
                pr_number=number,
                state=RunState.RUNNING,
                message=f"Merged PR #{number}",
                completed=completed,
            )
            if step < total:
                self._invalidate(repo)
                self._wait_for_settle(repo, plan.numbers[step])

        branch_word = "branch" if total == 1 else "branches"
        yield self._finish(
            plan,
            RunState.SUCCEEDED,
            step=total,
            completed=completed,
            message=(
                f"Successfully merged {total} {branch_word}. "
                f"Stack {plan.stack.id} is no longer valid."
            ),
            stack_invalidated=True,
        )

    def _wait_for_settle(self, repo: RepoRef, next_number: int) -> None:
        self._logger.debug("Cooling down", seconds=self._cooldown)
        self._clock.sleep(self._cooldown)
        if self._settle_timeout <= 0:
            return

        attempts = max(1, math.ceil(self._settle_timeout / self._settle_interval))
        for _ in range(attempts):
            try:
                request = self._provider.get_request(repo, next_number)
            except Exception as error:
                self._logger.warning(
                    "Settle poll failed, continuing after cooldown",
                    pr_number=next_number,
                    error=str(error),
                )
                return
            if request.mergeability is not Mergeability.UNKNOWN:
                return
            self._clock.sleep(self._settle_interval)
        self._logger.warning(
            "Mergeability did not settle before timeout",
            pr_number=next_number,
            settle_timeout=self._settle_timeout,
        )

    def _invalidate(self, repo: RepoRef) -> None:
        # entries still expire by TTL; a cache outage never ends a run
        try:
            self._cache.invalidate(repo)
        except CacheError as error:
            self._logger.warning(
                "Cache invalidation failed",
                repo=repo.full_name,
                error=str(error),
            )

    def _finish(
        self,
        plan: MergePlan,
        state: RunState,
        *,
        step: int,
        completed: int,
        message: str,
        stack_invalidated: bool = False,
    ) -> MergeEvent:
        self._invalidate(plan.stack.repo)
        self._state = state
        self._last_result = MergeRunResult(
            state=state,
            step=step,
            completed=completed,
            total=plan.total,
            message=message,
        )
        log = self._logger.info if state is RunState.SUCCEEDED else self._logger.warning
        log(
            "Merge run finished",
            stack_id=plan.stack.id,
            state=state.value,
            step=step,
            completed=completed,
            total=plan.total,
        )
        return MergeEvent(
            step=step,
            total=plan.total,
            pr_number=plan.numbers[step - 1] if plan.numbers else None,
            state=state,
            message=message,
            completed=completed,
            stack_invalidated=stack_invalidated,
        )
