from __future__ import annotations

import datetime
from typing import Protocol


class Clock(Protocol):
    def now(self) -> int: ...


class SystemClock:
    """Wall-clock unix seconds (UTC)."""

    def now(self) -> int:
        return int(datetime.datetime.now(datetime.UTC).timestamp())
