"""Processing cadence that follows the upstream sensor's update rate."""

from typing import Optional

from .buckets import clamp


class RateGovernor:
    """
    Tracks how often the raw battery value actually changes.

    The telemetry link repeats the last value between real updates, so the
    interval between value changes is a good estimate of the sensor period.
    The estimator only processes a tick once that period has elapsed.
    """

    def __init__(
        self,
        min_period: int,
        max_period: int,
        fallback_period: int,
        adaptive: bool = True,
    ):
        self.min_period = min_period
        self.max_period = max_period
        self.fallback_period = fallback_period
        self.adaptive = adaptive
        self.period = fallback_period
        self.last_value: Optional[float] = None
        self.last_change = 0

    def observe(self, now: int, value: float) -> int:
        """Record a raw sample and return the effective period in ticks."""
        if not self.adaptive:
            return self.fallback_period
        if value != self.last_value:
            dt = now - self.last_change
            if dt > 0 and self.last_value is not None:
                self.period = int(clamp(dt, self.min_period, self.max_period))
            self.last_value = value
            self.last_change = now
        return self.period

    def due(self, now: int, last_processed: int, value: float) -> bool:
        """True when enough time has passed since the last processed tick."""
        return (now - last_processed) >= self.observe(now, value)
