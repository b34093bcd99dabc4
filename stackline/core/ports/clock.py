from datetime import datetime
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    """Time source for cache expiry and the pauses between merge steps."""

    def now(self) -> datetime: ...

    def sleep(self, duration: float) -> None: ...
