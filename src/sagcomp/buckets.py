"""Throttle bucket geometry and small numeric helpers shared by the models."""

import math
from typing import Optional

# Number of throttle partitions; persisted records must match it.
BUCKETS = 16


def clamp(x: float, lo: float, hi: float) -> float:
    """Clamp x into [lo, hi]."""
    if x < lo:
        return lo
    if x > hi:
        return hi
    return x


def ema(old: Optional[float], new: float, alpha: float) -> float:
    """Exponential moving average step; an undefined old value adopts new."""
    if old is None:
        return new
    return old + alpha * (new - old)


def ramp(x: float, start: float, end: float) -> float:
    """Linear 0..1 ramp across [start, end]."""
    if end <= start:
        return 1.0 if x > start else 0.0
    if x <= start:
        return 0.0
    if x >= end:
        return 1.0
    return (x - start) / (end - start)


def bucket_index(throttle: float) -> int:
    """Zero-based bucket for a throttle position in [0, 1]."""
    idx = math.floor(throttle * BUCKETS)
    return int(clamp(idx, 0, BUCKETS - 1))


def bucket_mid(index: int) -> float:
    """Throttle position at the centre of a bucket."""
    return (index + 0.5) / BUCKETS


def round_half_up(x: float) -> int:
    """Round to nearest integer with halves going up."""
    return math.floor(x + 0.5)
