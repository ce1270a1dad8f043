"""Open-circuit voltage decay rate per throttle bucket."""

from .buckets import BUCKETS, bucket_mid, clamp
from .env import Config

# mV/s to V per tick (1 tick = 10 ms)
MVPS_TO_V_PER_TICK = 0.00001

# Below this many volts a recovery tells us nothing about the decay rate
NEGLIGIBLE_DELTA_V = 0.001


def default_rate_mvps(index: int, cfg: Config) -> float:
    """Compiled default decay rate for a bucket, rising with throttle squared."""
    t = bucket_mid(index)
    return clamp(0.25 + 1.95 * t ** 2.0, cfg.decay_min_mvps, cfg.decay_max_mvps)


def default_rates(cfg: Config) -> list[float]:
    return [default_rate_mvps(i, cfg) for i in range(BUCKETS)]


class DecayModel:
    """
    How fast the unloaded cell voltage falls while under load.

    Rates are held in mV/s. They are learned by comparing the drop the
    model predicted over an episode with the drop the recovered rest voltage
    actually showed, and applied (slowed by ``decay_apply_factor``) to the
    live OCV estimate.
    """

    def __init__(self, cfg: Config):
        self.cfg = cfg
        self.rates_mvps = default_rates(cfg)

    def load(self, rates_mvps: list[float]) -> None:
        self.rates_mvps = [
            clamp(r, self.cfg.decay_min_mvps, self.cfg.decay_max_mvps) for r in rates_mvps
        ]

    def rate_per_tick(self, index: int) -> float:
        """Full learned rate for a bucket in volts per tick."""
        return self.rates_mvps[index] * MVPS_TO_V_PER_TICK

    def applied_drop(self, index: int, dt: int) -> float:
        """Slowed voltage drop applied to the live estimate over dt ticks."""
        return self.rate_per_tick(index) * dt * self.cfg.decay_apply_factor

    def predicted_drop(self, load_time: list[int]) -> float:
        """Unslowed drop the model predicts for the per-bucket loaded times."""
        return sum(
            self.rate_per_tick(i) * t for i, t in enumerate(load_time) if t > 0
        )

    def learn(self, ocv_start: float, rest_ref: float, load_time: list[int]) -> bool:
        """
        Nudge the rates of the buckets used this episode towards the observed drop.

        Args:
            ocv_start: Rest reference at the start of the episode
            rest_ref: Rest voltage observed at the confirmed recovery
            load_time: Ticks spent in each bucket during the episode

        Returns:
            True if any rate changed
        """
        cfg = self.cfg
        if not any(t > 0 for t in load_time):
            return False

        needed = max(0.0, ocv_start - rest_ref)
        predicted = self.predicted_drop(load_time)
        if predicted < NEGLIGIBLE_DELTA_V or needed < NEGLIGIBLE_DELTA_V:
            return False

        scale = clamp(needed / predicted, cfg.decay_scale_lo, cfg.decay_scale_hi)
        changed = False
        for i, t in enumerate(load_time):
            if t <= 0:
                continue
            rate = self.rates_mvps[i]
            target = rate * scale
            new_rate = clamp(
                rate + cfg.decay_learn_alpha * (target - rate),
                cfg.decay_min_mvps,
                cfg.decay_max_mvps,
            )
            if new_rate != rate:
                self.rates_mvps[i] = new_rate
                changed = True
        return changed
