import time
from datetime import datetime, timezone

from stackline.core.ports.clock import Clock


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def sleep(self, duration: float) -> None:
        # a zero cooldown between merge steps means no pause at all
        if duration <= 0:
            return
        time.sleep(duration)
