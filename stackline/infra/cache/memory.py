import threading
from datetime import datetime, timedelta
from typing import Dict, Generic, List, Optional, Tuple, TypeVar

from stackline.core.ports.cache import RequestCache
from stackline.core.ports.clock import Clock
from stackline.core.schema.checks import CheckRun
from stackline.core.schema.pr import RepoRef, ReviewRequest

T = TypeVar('T')


class _Entry(Generic[T]):
    __slots__ = ('value', 'expires_at')

    def __init__(self, value: T, expires_at: Optional[datetime]) -> None:
        self.value = value
        self.expires_at = expires_at


class MemoryRequestCache(RequestCache):
    def __init__(self, clock: Clock, ttl_seconds: float = 30.0) -> None:
        self._clock = clock
        self._ttl = ttl_seconds
        self._lock = threading.Lock()
        self._requests: Dict[RepoRef, _Entry[List[ReviewRequest]]] = {}
        self._check_runs: Dict[Tuple[RepoRef, int], _Entry[List[CheckRun]]] = {}

    def get_open_requests(self, repo: RepoRef) -> Optional[List[ReviewRequest]]:
        with self._lock:
            return self._live(self._requests, repo)

    def store_open_requests(
        self, repo: RepoRef, requests: List[ReviewRequest]
    ) -> None:
        with self._lock:
            self._requests[repo] = _Entry(list(requests), self._expiry())

    def get_check_runs(
        self, repo: RepoRef, number: int
    ) -> Optional[List[CheckRun]]:
        with self._lock:
            return self._live(self._check_runs, (repo, number))

    def store_check_runs(
        self, repo: RepoRef, number: int, check_runs: List[CheckRun]
    ) -> None:
        with self._lock:
            self._check_runs[(repo, number)] = _Entry(
                list(check_runs), self._expiry()
            )

    def invalidate(self, repo: RepoRef) -> None:
        with self._lock:
            self._requests.pop(repo, None)
            for key in [key for key in self._check_runs if key[0] == repo]:
                del self._check_runs[key]

    def _expiry(self) -> Optional[datetime]:
        if self._ttl <= 0:
            return None
        return self._clock.now() + timedelta(seconds=self._ttl)

    def _live(self, entries: Dict, key) -> Optional[list]:  # noqa: ANN001
        entry = entries.get(key)
        if entry is None:
            return None
        if entry.expires_at is not None and self._clock.now() >= entry.expires_at:
            del entries[key]
            return None
        return list(entry.value)
