from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Set, Tuple

from stackline.core.schema.pr import ReviewRequest
from stackline.core.schema.stack import Chain


def build_chains(requests: Iterable[ReviewRequest]) -> List[Chain]:
    """Reconstruct stacks from the branch references of open pull requests.

    A request whose base branch is not the head branch of another request is
    a root; each root is walked forward through the requests based on its
    head branch. Merged requests never take part in a chain.

    When several requests share one base branch, every fork branch becomes
    its own chain carrying the shared prefix. The branch through the
    lowest-numbered child keeps the chain's fork path as it was; every other
    branch appends its head branch to ``Chain.fork_path``, so opening a later
    sibling never changes the path of an existing chain. Requests only reachable
    through a cycle of branch references are walked from their lowest number
    so that every request still lands in some chain.
    """
    active = sorted(
        (request for request in requests if not request.is_merged),
        key=lambda request: request.number,
    )
    by_head: Dict[str, ReviewRequest] = {}
    children: Dict[str, List[ReviewRequest]] = defaultdict(list)
    for request in active:
        by_head.setdefault(request.head.name, request)
        children[request.base.name].append(request)

    covered: Set[int] = set()
    chains: List[Chain] = []
    for request in active:
        if _predecessor(request, by_head) is None:
            chains.extend(_walk(request, children, covered))
    for request in active:
        if request.number not in covered:
            chains.extend(_walk(request, children, covered))
    return chains


def _predecessor(
    request: ReviewRequest,
    by_head: Dict[str, ReviewRequest],
) -> Optional[ReviewRequest]:
    parent = by_head.get(request.base.name)
    if parent is None or parent.number == request.number:
        return None
    return parent


def _walk(
    root: ReviewRequest,
    children: Dict[str, List[ReviewRequest]],
    covered: Set[int],
) -> List[Chain]:
    chains: List[Chain] = []
    pending: List[Tuple[Tuple[ReviewRequest, ...], Tuple[str, ...]]] = [
        ((root,), ())
    ]
    while pending:
        path, fork_path = pending.pop()
        current = path[-1]
        covered.add(current.number)
        on_path = {request.number for request in path}
        descendants = [
            child
            for child in children.get(current.head.name, ())
            if child.number not in on_path
        ]
        if not descendants:
            chains.append(Chain(requests=path, fork_path=fork_path))
            continue
        # descendants are in ascending number; the first keeps the fork path
        for index in reversed(range(len(descendants))):
            child = descendants[index]
            next_fork_path = fork_path + (child.head.name,) if index else fork_path
            pending.append((path + (child,), next_fork_path))
    return chains
