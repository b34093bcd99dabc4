import math
from typing import List, Optional

from redis import Redis
from redis.exceptions import RedisError

from stackline.core.exceptions import CacheError
from stackline.core.ports.cache import RequestCache
from stackline.core.schema.checks import CheckRun
from stackline.core.schema.pr import RepoRef, ReviewRequest
from stackline.infra.cache.codec import (
    dump_check_runs,
    dump_requests,
    load_check_runs,
    load_requests,
)


class RedisRequestCache(RequestCache):
    def __init__(
        self,
        redis_client: Redis,
        ttl_seconds: float = 30.0,
        namespace: str = "stackline",
    ) -> None:
        self._redis = redis_client
        self._ttl = math.ceil(ttl_seconds) if ttl_seconds > 0 else None
        self._namespace = namespace

    def get_open_requests(self, repo: RepoRef) -> Optional[List[ReviewRequest]]:
        data = self._get(self._requests_key(repo))
        if data is None:
            return None
        return load_requests(data)

    def store_open_requests(
        self, repo: RepoRef, requests: List[ReviewRequest]
    ) -> None:
        self._set(self._requests_key(repo), dump_requests(requests))

    def get_check_runs(
        self, repo: RepoRef, number: int
    ) -> Optional[List[CheckRun]]:
        data = self._get(self._checks_key(repo, number))
        if data is None:
            return None
        return load_check_runs(data)

    def store_check_runs(
        self, repo: RepoRef, number: int, check_runs: List[CheckRun]
    ) -> None:
        self._set(self._checks_key(repo, number), dump_check_runs(check_runs))

    def invalidate(self, repo: RepoRef) -> None:
        try:
            keys = list(self._redis.scan_iter(match=f"{self._repo_prefix(repo)}*"))
            if keys:
                self._redis.delete(*keys)
        except RedisError as error:
            raise CacheError(f"Failed to invalidate cache for {repo.full_name}") from error

    def _get(self, key: str) -> Optional[bytes]:
        try:
            return self._redis.get(key)
        except RedisError as error:
            raise CacheError(f"Failed to read cache key {key}") from error

    def _set(self, key: str, value: str) -> None:
        try:
            self._redis.set(key, value, ex=self._ttl)
        except RedisError as error:
            raise CacheError(f"Failed to write cache key {key}") from error

    def _repo_prefix(self, repo: RepoRef) -> str:
        return f"{self._namespace}:{repo.full_name}:"

    def _requests_key(self, repo: RepoRef) -> str:
        return f"{self._repo_prefix(repo)}requests"

    def _checks_key(self, repo: RepoRef, number: int) -> str:
        return f"{self._repo_prefix(repo)}checks:{number}"
