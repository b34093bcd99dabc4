from stackline.core.exceptions.errors import (
    CacheError,
    MergeError,
    MergeNotReadyError,
    OrchestrationInProgressError,
    RequestNotInStackError,
    SourceAuthenticationError,
    SourceError,
    SourceNotFoundError,
    SourceRateLimitError,
    StackNotFoundError,
    StacklineError,
    StaleStackError,
)

__all__ = [
    "StacklineError",
    "SourceError",
    "SourceAuthenticationError",
    "SourceRateLimitError",
    "SourceNotFoundError",
    "StackNotFoundError",
    "StaleStackError",
    "RequestNotInStackError",
    "MergeError",
    "MergeNotReadyError",
    "OrchestrationInProgressError",
    "CacheError",
]
