"""Load episode capture and the live OCV estimate."""

from typing import Optional

from .buckets import BUCKETS, bucket_index, clamp
from .decay import DecayModel
from .env import Config
from .sag import SagCurve


class LoadEpisodeTracker:
    """
    One load period, from the first capture-level throttle to confirmed recovery.

    While active it records the lowest raw voltage per bucket and the time
    spent in each bucket, and walks an OCV estimate down from the rest
    reference using the decay model. Dropping below capture throttle does
    not end the episode; only ``close()`` does, and the estimator calls it
    from recovery finalization.
    """

    def __init__(self, cfg: Config):
        self.cfg = cfg
        self.active = False
        self.min_by_bucket: list[Optional[float]] = [None] * BUCKETS
        self.load_time: list[int] = [0] * BUCKETS
        self.ocv_start: Optional[float] = None
        self.ocv_est: Optional[float] = None

    def begin(self, reference: float) -> None:
        self.active = True
        self.load_time = [0] * BUCKETS
        self.ocv_start = clamp(reference, self.cfg.cell_min, self.cfg.cell_max)
        self.ocv_est = self.ocv_start

    def update(
        self,
        dt: int,
        cell_v: float,
        throttle: float,
        ratio: float,
        anchor: Optional[float],
        sag: SagCurve,
        decay: DecayModel,
    ) -> None:
        """Advance one loaded tick (throttle at or above capture)."""
        cfg = self.cfg
        b = bucket_index(throttle)
        prev = self.min_by_bucket[b]
        if prev is None or cell_v < prev:
            self.min_by_bucket[b] = cell_v
        self.load_time[b] += dt

        est = self.ocv_est if self.ocv_est is not None else cell_v
        est = clamp(est - decay.applied_drop(b, dt), cfg.cell_min, cfg.cell_max)

        if cfg.ocv_floor_from_sag:
            floor = cell_v + sag.estimate(throttle) * ratio
            if floor > est:
                est = floor

        if cfg.ocv_ceil_use_cap and anchor is not None:
            est = min(est, anchor + cfg.cap_margin)

        self.ocv_est = est

    def minima(self) -> list[tuple[int, float]]:
        """Buckets with a recorded minimum this episode."""
        return [(i, v) for i, v in enumerate(self.min_by_bucket) if v is not None]

    def close(self, rest_ref: float) -> None:
        self.active = False
        self.min_by_bucket = [None] * BUCKETS
        self.load_time = [0] * BUCKETS
        self.ocv_start = None
        self.ocv_est = rest_ref
