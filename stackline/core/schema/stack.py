from dataclasses import dataclass
from typing import Tuple

from stackline.core.schema.pr import RepoRef, ReviewRequest


@dataclass(frozen=True, slots=True)
class Chain:
    requests: Tuple[ReviewRequest, ...]
    fork_path: Tuple[str, ...] = ()

    @property
    def numbers(self) -> Tuple[int, ...]:
        return tuple(request.number for request in self.requests)

    @property
    def root(self) -> ReviewRequest:
        return self.requests[0]

    @property
    def leaf(self) -> ReviewRequest:
        return self.requests[-1]

    @property
    def forked(self) -> bool:
        return bool(self.fork_path)

    def __len__(self) -> int:
        return len(self.requests)


@dataclass(frozen=True, slots=True)
class Stack:
    id: str
    name: str
    description: str
    repo: RepoRef
    chain: Chain

    @property
    def requests(self) -> Tuple[ReviewRequest, ...]:
        return self.chain.requests

    @property
    def numbers(self) -> Tuple[int, ...]:
        return self.chain.numbers

    @property
    def root(self) -> ReviewRequest:
        return self.chain.root

    @property
    def forked(self) -> bool:
        return self.chain.forked

    @property
    def is_current(self) -> bool:
        """A stack whose root has merged no longer names a live chain."""
        return not self.chain.root.is_merged

    def contains(self, pr_number: int) -> bool:
        return pr_number in self.numbers

    def prefix_to(self, pr_number: int) -> Tuple[ReviewRequest, ...]:
        """Root..target, inclusive, in chain order."""
        position = self.numbers.index(pr_number)
        return self.requests[: position + 1]
