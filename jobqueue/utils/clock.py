from datetime import datetime, timezone
from typing import Protocol

class Clock(Protocol):
    def now(self) -> datetime: ...

class SystemClock:
    def now(self) -> datetime:
        return datetime.now(timezone.utc)

def elapsed_ms(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() * 1000
