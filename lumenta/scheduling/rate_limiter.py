from dataclasses import dataclass
from typing import Optional


@dataclass
class RateLimiter:
    """Cooldown plus in-flight guard for one rate-limited key.

    IDLE --(interval elapsed and not in flight)--> REQUESTING --(done)--> IDLE

    All callers run on one event loop, so the in_flight flag alone caps
    outstanding requests per key at one.
    """

    interval: float
    last_run_at: Optional[float] = None
    in_flight: bool = False

    def ready(self, now: float, interval: Optional[float] = None) -> bool:
        if self.in_flight:
            return False
        interval = self.interval if interval is None else interval
        return self.last_run_at is None or now - self.last_run_at >= interval

    def try_acquire(self, now: float, interval: Optional[float] = None) -> bool:
        """Enter REQUESTING if allowed. Returns False when skipped."""
        if not self.ready(now, interval):
            return False
        self.in_flight = True
        return True

    def release(self, now: float):
        """Back to IDLE; the cooldown restarts from `now` whatever the outcome."""
        self.last_run_at = now
        self.in_flight = False

    def abort(self):
        """Back to IDLE without starting a cooldown (request never issued)."""
        self.in_flight = False
