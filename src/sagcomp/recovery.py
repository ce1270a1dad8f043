"""Low-throttle recovery tracking and plateau detection."""

from dataclasses import dataclass
from typing import Optional

from .buckets import clamp, ema, round_half_up
from .env import Config


@dataclass(frozen=True)
class Recovery:
    """A confirmed recovery: voltage has plateaued after enough rest."""

    rest_ref: float
    elapsed: int


class RecoveryDetector:
    """
    Watches the rest zone for the cell voltage to stop climbing.

    Entering the rest zone starts a window. The long peak is the highest
    voltage seen in the window; the plateau peak only moves on rises larger
    than ``plateau_eps_v``. Once no such rise has been seen for
    ``plateau_hold_cs`` and the window is at least ``recover_min_cs`` old the
    plateau latches, and once the window also exceeds the learned recovery
    delay every processed tick reports a ``Recovery``.
    """

    def __init__(self, cfg: Config):
        self.cfg = cfg
        self.learned_delay = float(cfg.recover_delay_default_cs)
        self._reset()

    def _reset(self) -> None:
        self.in_low = False
        self.low_time = 0
        self.long_peak: Optional[float] = None
        self.start = 0
        self.last_increase = 0
        self.plateau_peak: Optional[float] = None
        self.plateau = False

    @property
    def delay(self) -> int:
        """Current recovery delay in ticks, clamped to the valid range."""
        return int(clamp(
            round_half_up(self.learned_delay),
            self.cfg.recover_min_cs,
            self.cfg.recover_max_cs,
        ))

    def load_delay(self, delay: float) -> None:
        self.learned_delay = clamp(delay, self.cfg.recover_min_cs, self.cfg.recover_max_cs)

    def learn_delay(self, elapsed: int) -> bool:
        """Move the learned delay towards a measured recovery time."""
        cfg = self.cfg
        measured = clamp(elapsed, cfg.recover_min_cs, cfg.recover_max_cs)
        old = self.delay
        self.learned_delay = ema(self.learned_delay, measured, cfg.recover_learn_alpha)
        return self.delay != old

    def update(self, now: int, dt: int, cell_v: float, throttle: float) -> Optional[Recovery]:
        cfg = self.cfg
        if throttle > cfg.thr_rest:
            self._reset()
            return None

        if not self.in_low:
            self.in_low = True
            self.low_time = 0
            self.long_peak = cell_v
            self.start = now
            self.last_increase = now
            self.plateau_peak = cell_v
            self.plateau = False

        self.low_time += dt
        if cell_v > self.long_peak:
            self.long_peak = cell_v

        if cell_v > self.plateau_peak + cfg.plateau_eps_v:
            self.plateau_peak = cell_v
            self.last_increase = now
        elif now - self.last_increase >= cfg.plateau_hold_cs and self.low_time >= cfg.recover_min_cs:
            self.plateau = True

        if self.plateau and self.low_time >= self.delay:
            return Recovery(rest_ref=self.long_peak, elapsed=now - self.start)
        return None
