"""
Time sources for the authentication flow.

All timestamps handled by walletgate are integer UTC epoch seconds, the same unit the
JWT ``iat``/``exp`` claims use, so challenge expiry and token expiry share one clock.
"""

import time
from datetime import datetime, timezone
from typing import Protocol


class Clock(Protocol):
    def now(self) -> int:
        ...


class SystemClock:
    """Wall clock."""

    def now(self) -> int:
        return int(time.time())


def to_iso(epoch_seconds: int) -> str:
    return datetime.fromtimestamp(epoch_seconds, tz=timezone.utc).isoformat().replace("+00:00", "Z")
