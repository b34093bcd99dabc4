from typing import List, Mapping, Optional, Sequence

from stackline.core.schema.checks import CheckRun
from stackline.core.schema.merge import BlockerReason, MergeBlocker
from stackline.core.schema.pr import Mergeability, ReviewRequest


def evaluate_readiness(
    prefix: Sequence[ReviewRequest],
    acting_user: Optional[str],
    check_runs: Mapping[int, Sequence[CheckRun]],
    *,
    merge_in_flight: bool = False,
    base_ancestor: Optional[ReviewRequest] = None,
) -> MergeBlocker:
    """Return the first reason that blocks merging ``prefix`` root-first.

    ``prefix`` runs from the chain root to the merge target. Every element is
    checked in chain order, so a problem on the root surfaces even when the
    target itself is clean. A request missing from ``check_runs`` is treated
    as unknown: it does not block, but it is listed in ``unverified`` on a
    ready verdict.

    ``base_ancestor`` is the request whose head branch the root targets, if
    any. When it was closed without merging, the root would merge into a dead
    branch.
    """
    if not prefix:
        raise ValueError("Readiness needs at least the target request")

    target = prefix[-1]
    root = prefix[0]
    if base_ancestor is not None and base_ancestor.is_closed_unmerged:
        return MergeBlocker(
            reason=BlockerReason.BLOCKED_ANCESTOR_CLOSED,
            pr_number=base_ancestor.number,
            message=(
                f"PR #{base_ancestor.number} was closed without merging and "
                f"PR #{root.number} still targets its branch "
                f"{root.base.name}"
            ),
        )

    for request in prefix:
        is_target = request.number == target.number
        blocker = _check_request(
            request,
            acting_user,
            check_runs.get(request.number),
            merge_in_flight=merge_in_flight,
            is_target=is_target,
        )
        if blocker is not None:
            return blocker

    pending = [request for request in prefix if not request.is_merged]
    unverified = tuple(
        request.number for request in pending if request.number not in check_runs
    )
    return MergeBlocker(
        reason=BlockerReason.READY,
        pr_number=target.number,
        message=(
            f"Ready to merge {len(pending)} {_branch_word(len(pending))} "
            "sequentially into their targets"
        ),
        merge_count=len(pending),
        unverified=unverified,
    )


def _check_request(
    request: ReviewRequest,
    acting_user: Optional[str],
    check_runs: Optional[Sequence[CheckRun]],
    *,
    merge_in_flight: bool,
    is_target: bool,
) -> Optional[MergeBlocker]:
    number = request.number
    # merged ancestors are never merged again, so their author does not gate the run
    if request.is_merged and not is_target:
        return None
    if not acting_user or request.author != acting_user:
        return MergeBlocker(
            BlockerReason.NOT_AUTHOR,
            number,
            f"Only the PR author ({request.author}) can merge PR #{number}",
        )
    if merge_in_flight:
        return MergeBlocker(
            BlockerReason.ALREADY_MERGING,
            number,
            "A merge is already running for this stack",
        )
    if request.is_merged:
        return MergeBlocker(
            BlockerReason.ALREADY_MERGED,
            number,
            f"PR #{number} has already been merged",
        )
    if request.is_closed_unmerged:
        if is_target:
            message = f"PR #{number} is closed and cannot be merged"
        else:
            message = (
                f"PR #{number} is closed and must be reopened before merging"
            )
        return MergeBlocker(BlockerReason.CLOSED_UNMERGED, number, message)
    if request.draft:
        return MergeBlocker(
            BlockerReason.DRAFT,
            number,
            f"PR #{number} is a draft and must be marked as ready for review "
            "before merging",
        )
    if request.mergeability is Mergeability.CONFLICTED:
        return MergeBlocker(
            BlockerReason.CONFLICTED,
            number,
            f"PR #{number} has merge conflicts that must be resolved before "
            "merging",
        )
    if not check_runs:
        return None

    failing: List[CheckRun] = [run for run in check_runs if run.is_failing]
    if failing:
        return MergeBlocker(
            BlockerReason.CI_FAILED,
            number,
            f"PR #{number} has {_count_checks(len(failing))} failing. "
            "Fix the failures before merging.",
        )
    running = [run for run in check_runs if run.is_running]
    if running:
        return MergeBlocker(
            BlockerReason.CI_RUNNING,
            number,
            f"PR #{number} has {_count_checks(len(running))} in progress. "
            "Wait for CI to complete before merging.",
        )
    return None


def _count_checks(count: int) -> str:
    return f"{count} CI check{'s' if count != 1 else ''}"


def _branch_word(count: int) -> str:
    return "branch" if count == 1 else "branches"
