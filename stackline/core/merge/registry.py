import threading
from typing import Set


class RunRegistry:
    """Stacks with an orchestration run in progress, shared across runs."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._active: Set[str] = set()

    def acquire(self, stack_id: str) -> bool:
        with self._lock:
            if stack_id in self._active:
                return False
            self._active.add(stack_id)
            return True

    def release(self, stack_id: str) -> None:
        with self._lock:
            self._active.discard(stack_id)

    def is_active(self, stack_id: str) -> bool:
        with self._lock:
            return stack_id in self._active
