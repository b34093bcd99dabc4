from stackline.infra.cache import MemoryRequestCache, RedisRequestCache
from stackline.infra.clock import SystemClock
from stackline.infra.github import GitHubClient, GitHubReviewProvider
from stackline.infra.logging import ConsoleLogger, LogfireLogger, configure_logfire

__all__ = [
    'GitHubClient',
    'GitHubReviewProvider',
    'MemoryRequestCache',
    'RedisRequestCache',
    'ConsoleLogger',
    'LogfireLogger',
    'configure_logfire',
    'SystemClock',
]
