from datetime import datetime, timezone
from giftledger.app.services.clock import Clock


class SystemClock(Clock):
    """Wall-clock time as naive UTC"""

    def now(self) -> datetime:
        return datetime.now(timezone.utc).replace(tzinfo=None)
