import os
from dataclasses import dataclass
from typing import Optional, Tuple

from stackline.core.schema.checks import DEFAULT_IGNORED_CHECKS
from stackline.core.schema.merge import MergeMethod
from stackline.core.schema.pr import RepoRef


@dataclass(frozen=True, slots=True)
class GitHubSettings:
    token: Optional[str]
    repositories: Tuple[RepoRef, ...]
    current_user: Optional[str]
    ignored_checks: Tuple[str, ...]


@dataclass(frozen=True, slots=True)
class LoggingSettings:
    backend: str
    name: str
    level: str
    logfire_token: Optional[str]


@dataclass(frozen=True, slots=True)
class CacheSettings:
    backend: str
    ttl_seconds: float
    redis_url: str


@dataclass(frozen=True, slots=True)
class MergeSettings:
    method: MergeMethod
    cooldown: float
    settle_timeout: float
    settle_interval: float


@dataclass(frozen=True, slots=True)
class Settings:
    github: GitHubSettings
    logging: LoggingSettings
    cache: CacheSettings
    merge: MergeSettings


def load_settings() -> Settings:
    from dotenv import load_dotenv

    load_dotenv()

    github_token = _ge_env_or_default("GITHUB_TOKEN")
    repositories = tuple(
        RepoRef.parse(value)
        for value in _env_list("STACKLINE_REPOSITORIES", "")
    )
    current_user = _ge_env_or_default("STACKLINE_CURRENT_USER")
    ignored_checks = _env_list(
        "STACKLINE_IGNORED_CHECKS", ",".join(DEFAULT_IGNORED_CHECKS)
    )

    logging_backend = _ge_env_or_default("STACKLINE_LOGGER_BACKEND", "console").lower()
    logging_name = _ge_env_or_default("STACKLINE_LOGGER_NAME", "stackline")
    logging_level = _ge_env_or_default("STACKLINE_LOG_LEVEL", "WARNING").upper()
    logfire_token = _ge_env_or_default("STACKLINE_LOGFIRE_TOKEN")

    cache_backend = _ge_env_or_default("STACKLINE_CACHE_BACKEND", "memory").lower()
    cache_ttl = _env_float("STACKLINE_CACHE_TTL", 30.0)
    redis_url = _ge_env_or_default("STACKLINE_REDIS_URL", "redis://localhost:6379/0")

    merge_method = MergeMethod(
        _ge_env_or_default("STACKLINE_MERGE_METHOD", MergeMethod.SQUASH.value).lower()
    )
    merge_cooldown = _env_float("STACKLINE_MERGE_COOLDOWN", 1.5)
    settle_timeout = _env_float("STACKLINE_SETTLE_TIMEOUT", 0.0)
    settle_interval = _env_float("STACKLINE_SETTLE_INTERVAL", 1.0)

    return Settings(
        github=GitHubSettings(
            token=github_token,
            repositories=repositories,
            current_user=current_user,
            ignored_checks=ignored_checks,
        ),
        logging=LoggingSettings(
            backend=logging_backend,
            name=logging_name,
            level=logging_level,
            logfire_token=logfire_token,
        ),
        cache=CacheSettings(
            backend=cache_backend,
            ttl_seconds=cache_ttl,
            redis_url=redis_url,
        ),
        merge=MergeSettings(
            method=merge_method,
            cooldown=merge_cooldown,
            settle_timeout=settle_timeout,
            settle_interval=settle_interval,
        ),
    )


def _ge_env_or_default(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(name)
    if not value:
        return default
    return value


def _env_float(name: str, default: float) -> float:
    return float(_ge_env_or_default(name) or default)


def _env_list(name: str, default: str) -> Tuple[str, ...]:
    raw = _ge_env_or_default(name, default) or ""
    return tuple(item.strip() for item in raw.split(",") if item.strip())
