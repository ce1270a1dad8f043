"""Learned voltage sag per throttle bucket."""

from typing import Optional

from .buckets import BUCKETS, bucket_index, bucket_mid, clamp
from .env import Config


class SagCurve:
    """
    Per-bucket sag table (volts per cell) learned from load episodes.

    Two learning paths feed it: an event path run once per confirmed
    recovery, which may also correct downwards after repeated evidence, and
    a continuous path under load, which only ever raises values. Both keep
    the table non-decreasing with throttle.

    Every mutating method returns True when a stored value changed so the
    caller can mark learned state dirty.
    """

    def __init__(self, cfg: Config):
        self.cfg = cfg
        self.values: list[Optional[float]] = [None] * BUCKETS
        self.down_frac: list[float] = [cfg.down_frac_base] * BUCKETS
        self.down_confirm: list[int] = [0] * BUCKETS

    def estimate(self, throttle: float) -> float:
        """Learned sag at a throttle position, 0 when not yet learned."""
        value = self.values[bucket_index(throttle)]
        return value if value is not None else 0.0

    def load(self, values: list[Optional[float]], down_frac: list[float]) -> None:
        """Replace the table with persisted values; confirmations restart."""
        cfg = self.cfg
        self.values = [
            None if v is None else clamp(v, cfg.min_sag, cfg.max_sag) for v in values
        ]
        self.down_frac = [
            clamp(d, cfg.down_frac_min, cfg.down_frac_max) for d in down_frac
        ]
        self.down_confirm = [0] * BUCKETS
        self.reshape()

    def _relax(self, i: int) -> bool:
        old = self.down_frac[i]
        self.down_frac[i] = clamp(
            old - self.cfg.down_frac_dn_step, self.cfg.down_frac_min, self.cfg.down_frac_max
        )
        return self.down_frac[i] != old

    def learn_event(self, i: int, candidate: float) -> bool:
        """Apply one recovery-confirmed sag observation to bucket i."""
        cfg = self.cfg
        cand = clamp(candidate, cfg.min_sag, cfg.max_sag)
        cur = self.values[i]
        if cur is None:
            self.values[i] = cand
            self.down_confirm[i] = 0
            return True

        if cand >= cur:
            self.values[i] = cur + cfg.alpha_up_event * (cand - cur)
            self.down_confirm[i] = 0
            return self._relax(i) or self.values[i] != cur

        deficit = cur - cand
        if deficit <= cfg.down_err_thresh_v:
            # within noise
            self.down_confirm[i] = 0
            return self._relax(i)

        self.down_confirm[i] += 1
        old_frac = self.down_frac[i]
        self.down_frac[i] = clamp(
            old_frac + cfg.down_frac_up_step, cfg.down_frac_min, cfg.down_frac_max
        )
        changed = self.down_frac[i] != old_frac
        if self.down_confirm[i] < cfg.down_confirm_events:
            return changed

        step = min(deficit * self.down_frac[i], cfg.max_down_step_v)
        self.values[i] = clamp(cur - step, cfg.min_sag, cfg.max_sag)
        self.down_confirm[i] = cfg.down_confirm_events // 2
        return changed or self.values[i] != cur

    def learn_continuous(self, throttle: float, candidate: float) -> bool:
        """Raise the bucket at throttle towards candidate; never lowers."""
        cfg = self.cfg
        i = bucket_index(throttle)
        cand = clamp(candidate, cfg.min_sag, cfg.max_sag)
        cur = self.values[i]
        changed = False
        if cur is None:
            self.values[i] = cand
            changed = True
        elif cand > cur:
            self.values[i] = cur + cfg.alpha_up_cont * (cand - cur)
            changed = self.values[i] != cur
        return self.reshape() or changed

    def enforce_monotonic(self) -> bool:
        """Forward-fill gaps from below, then make the table non-decreasing."""
        before = list(self.values)
        last = None
        for i in range(BUCKETS):
            if self.values[i] is None and last is not None:
                self.values[i] = last
            if self.values[i] is not None:
                last = self.values[i]
        for i in range(1, BUCKETS):
            prev, cur = self.values[i - 1], self.values[i]
            if prev is not None and cur is not None and cur < prev:
                self.values[i] = prev
        return self.values != before

    def extrapolate_high(self) -> bool:
        """
        Project sag above the knee so sparse high-throttle data cannot flatten it.

        The reference is the highest defined bucket at or below the knee;
        higher buckets are raised to ref * (t / t_ref) ** gamma where below it.
        """
        cfg = self.cfg
        knee = bucket_index(cfg.hi_knee)
        ref = None
        for i in range(knee, -1, -1):
            if self.values[i] is not None:
                ref = i
                break
        if ref is None:
            return False

        ref_sag = self.values[ref]
        ref_thr = bucket_mid(ref)
        changed = False
        for j in range(ref + 1, BUCKETS):
            desired = ref_sag * (bucket_mid(j) / ref_thr) ** cfg.hi_gamma
            desired = clamp(desired, cfg.min_sag, cfg.max_sag)
            cur = self.values[j]
            if cur is None or cur < desired:
                self.values[j] = desired
                changed = True
        return self.enforce_monotonic() or changed

    def reshape(self) -> bool:
        """Monotonicity pass followed by high-throttle extrapolation."""
        changed = self.enforce_monotonic()
        return self.extrapolate_high() or changed
