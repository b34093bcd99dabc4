from contextlib import contextmanager
from typing import Iterator, Optional

from github import GithubException
from redis import Redis

from stackline.config import Settings, load_settings
from stackline.core.ports.clock import Clock
from stackline.core.ports.logger import Logger
from stackline.core.service import StackService
from stackline.infra import (
    ConsoleLogger,
    GitHubClient,
    GitHubReviewProvider,
    LogfireLogger,
    MemoryRequestCache,
    RedisRequestCache,
    SystemClock,
    configure_logfire,
)


@contextmanager
def open_service(settings: Optional[Settings] = None) -> Iterator[StackService]:
    settings = settings or load_settings()
    logger = build_logger(settings)
    clock = SystemClock()

    with GitHubClient(settings.github.token) as github_client:
        provider = GitHubReviewProvider(
            github_client,
            ignored_checks=settings.github.ignored_checks,
        )
        yield StackService(
            logger,
            clock,
            provider,
            build_cache(settings, clock),
            acting_user=_resolve_acting_user(settings, github_client, logger),
            repositories=settings.github.repositories,
            merge_method=settings.merge.method,
            merge_cooldown=settings.merge.cooldown,
            settle_timeout=settings.merge.settle_timeout,
            settle_interval=settings.merge.settle_interval,
        )


def build_logger(settings: Settings) -> Logger:
    if settings.logging.backend == 'console':
        return ConsoleLogger(settings.logging.name, settings.logging.level)
    if settings.logging.backend == 'logfire':
        if not settings.logging.logfire_token:
            raise ValueError(
                'Logfire backend selected but STACKLINE_LOGFIRE_TOKEN is not set'
            )
        configure_logfire(settings.logging.logfire_token, settings.logging.name)
        return LogfireLogger(settings.logging.name)
    raise ValueError(f'Unknown logging backend {settings.logging.backend}')


def build_cache(settings: Settings, clock: Clock):
    if settings.cache.backend == 'memory':
        return MemoryRequestCache(clock, ttl_seconds=settings.cache.ttl_seconds)
    if settings.cache.backend == 'redis':
        return RedisRequestCache(
            Redis.from_url(settings.cache.redis_url),
            ttl_seconds=settings.cache.ttl_seconds,
        )
    raise ValueError(f'Unknown cache backend {settings.cache.backend}')


def _resolve_acting_user(
    settings: Settings,
    github_client: GitHubClient,
    logger: Logger,
) -> Optional[str]:
    if settings.github.current_user:
        return settings.github.current_user
    if not settings.github.token:
        return None
    try:
        return github_client.current_login()
    except GithubException as error:
        logger.warning('Could not resolve the acting GitHub user', error=str(error))
        return None
