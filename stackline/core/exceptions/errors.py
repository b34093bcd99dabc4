from datetime import datetime

from stackline.core.schema.merge import MergeBlocker


class StacklineError(Exception):
    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class SourceError(StacklineError):
    pass


class SourceAuthenticationError(SourceError):
    pass


class SourceRateLimitError(SourceError):
    def __init__(self, message: str, retry_after: datetime) -> None:
        self.retry_after = retry_after
        super().__init__(message)


class SourceNotFoundError(SourceError):
    def __init__(self, message: str, resource: str) -> None:
        self.resource = resource
        super().__init__(message)


class StackNotFoundError(StacklineError):
    def __init__(self, message: str, stack_id: str) -> None:
        self.stack_id = stack_id
        super().__init__(message)


class StaleStackError(StackNotFoundError):
    def __init__(self, message: str, stack_id: str, root_number: int) -> None:
        self.root_number = root_number
        super().__init__(message, stack_id)


class RequestNotInStackError(StacklineError):
    def __init__(self, message: str, stack_id: str, pr_number: int) -> None:
        self.stack_id = stack_id
        self.pr_number = pr_number
        super().__init__(message)


class MergeError(StacklineError):
    pass


class MergeNotReadyError(MergeError):
    def __init__(self, message: str, blocker: MergeBlocker) -> None:
        self.blocker = blocker
        super().__init__(message)


class OrchestrationInProgressError(MergeError):
    def __init__(self, message: str, stack_id: str) -> None:
        self.stack_id = stack_id
        super().__init__(message)


class CacheError(StacklineError):
    pass
