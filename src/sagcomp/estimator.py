"""Per-tick sag compensation estimator.

Each processed tick runs, in order: chemistry detection, recovery tracking
(which may finalize an episode and trigger learning), load-episode capture,
continuous sag learning, output composition and the persistence flush.
"""

import math
from typing import Optional

from . import log
from .battery import voltage_to_percentage
from .buckets import clamp, ramp, round_half_up
from .cap import CapStabilizer
from .chemistry import ChemistryClassifier, ChemistryMode
from .codec import LearnedRecord
from .decay import DecayModel
from .env import Config, get_config
from .episode import LoadEpisodeTracker
from .persist import Persistence
from .rate import RateGovernor
from .recovery import Recovery, RecoveryDetector
from .sag import SagCurve
from .state import Phase, is_allowed
from .storage import BlobStore, sanitize_model_name
from .telemetry import Sample, ThrottleRange, TickOutput, cell_voltage, normalize_pack_voltage


class Estimator:
    """
    Estimates the unloaded per-cell voltage from loaded voltage and throttle.

    One instance per host session and pack. All state lives on the instance;
    ``tick()`` is the only entry point the host needs to call.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        store: Optional[BlobStore] = None,
        model_name: Optional[str] = None,
    ):
        cfg = config if config is not None else get_config()
        self.cfg = cfg
        self.model_key = sanitize_model_name(
            model_name if model_name is not None else cfg.model_name
        )

        self.governor = RateGovernor(
            cfg.min_update_cs, cfg.max_update_cs, cfg.fallback_update_cs, cfg.adaptive_rate
        )
        self.throttle_range = ThrottleRange(cfg.throttle_range)
        self.chemistry = ChemistryClassifier(
            ChemistryMode.parse(cfg.chemistry_mode),
            cfg.hv_detect_v,
            cfg.hv_detect_samples,
            cfg.thr_rest,
        )
        self.sag = SagCurve(cfg)
        self.decay = DecayModel(cfg)
        self.cap = CapStabilizer(cfg.cap_ema_alpha, cfg.low_peak_ema_alpha)
        self.recovery = RecoveryDetector(cfg)
        self.episode = LoadEpisodeTracker(cfg)
        self.persistence = Persistence(store, self.model_key, cfg)

        self.start: Optional[int] = None
        self.warmed = False
        self.last_processed = 0
        # Set once any sag observation has been learned this session
        self.load_seen = False
        self._phase = Phase.CRUISE

    # -- read-only views -------------------------------------------------

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def anchor(self) -> Optional[float]:
        return self.cap.anchor

    @property
    def rest_estimate(self) -> Optional[float]:
        return self.cap.rest_estimate

    @property
    def high_voltage(self) -> bool:
        return self.chemistry.high_voltage

    # -- persistence -----------------------------------------------------

    def snapshot(self) -> LearnedRecord:
        """Current learned state as a persistable record."""
        return LearnedRecord(
            sag=list(self.sag.values),
            down_frac=list(self.sag.down_frac),
            decay_mvps=list(self.decay.rates_mvps),
            recovery_delay=self.recovery.delay,
            chemistry=self.chemistry.persisted_word(),
        )

    def apply_record(self, record: LearnedRecord) -> None:
        self.sag.load(record.sag, record.down_frac)
        self.decay.load(record.decay_mvps)
        if record.recovery_delay is not None:
            self.recovery.load_delay(record.recovery_delay)
        self.chemistry.restore(record.chemistry)

    def load_persisted(self) -> bool:
        """Load stored learned state; only the first call in a session reads."""
        record = self.persistence.load_once()
        if record is None:
            return False
        self.apply_record(record)
        return True

    def _mark_dirty(self, changed: bool) -> None:
        if changed:
            self.persistence.dirty = True

    # -- per tick --------------------------------------------------------

    def step(self, sample: Sample) -> Optional[TickOutput]:
        return self.tick(sample.raw, sample.throttle, sample.now)

    def tick(self, raw: Optional[float], throttle: Optional[float], now: int) -> Optional[TickOutput]:
        """
        Run one host tick.

        Args:
            raw: Battery reading in host units (volts or centivolts per pack)
            throttle: Throttle reading in host units (stick or PWM range)
            now: Monotonic tick counter in centiseconds

        Returns:
            TickOutput, or None when the tick was skipped
        """
        if not raw or not math.isfinite(raw):
            return None

        if self.start is None:
            self.start = now
        if not self.warmed:
            if now - self.start < self.cfg.warmup_delay_cs:
                return None
            self.warmed = True
            self.last_processed = now
            self.persistence.last_save = now
            self.load_persisted()

        dt = now - self.last_processed
        if not self.governor.due(now, self.last_processed, raw):
            return None
        self.last_processed = now
        return self._process(now, dt, raw, throttle)

    def _process(self, now: int, dt: int, raw: float, throttle: Optional[float]) -> TickOutput:
        cfg = self.cfg
        cell = cell_voltage(normalize_pack_voltage(raw), cfg.cell_min, cfg.cell_max)
        thr = self.throttle_range.to_unit(throttle)

        self._mark_dirty(self.chemistry.update(cell, thr))
        self.cap.seed(cell)
        ratio = ramp(thr, cfg.thr_no_comp, cfg.thr_ramp_end)

        recovery = self.recovery.update(now, dt, cell, thr)
        if recovery is not None:
            self._finalize_recovery(recovery)

        if thr >= cfg.thr_capture:
            if not self.episode.active:
                ref = self.cap.anchor
                if ref is None:
                    ref = self.cap.rest_estimate if self.cap.rest_estimate is not None else cell
                self.episode.begin(ref)
                log.debug(f"Load episode started at tick {now}, OCV ref {self.episode.ocv_start:.3f} V")
            self.episode.update(dt, cell, thr, ratio, self.cap.anchor, self.sag, self.decay)

            if self.cap.rest_estimate is not None:
                candidate = self.cap.rest_estimate - cell
                if candidate >= cfg.min_sag_learn:
                    self._mark_dirty(self.sag.learn_continuous(thr, candidate))
                    self.load_seen = True

        comp = self._compose(cell, thr, ratio)
        self._track_phase(now)

        out = TickOutput(
            percent=voltage_to_percentage(comp, self.chemistry.high_voltage),
            cell_comp=comp,
            cell_raw=cell,
            ratio_pct=round_half_up(ratio * 100),
        )
        self.persistence.save_if_needed(now, thr, self.load_seen, self.snapshot)
        return out

    def _finalize_recovery(self, recovery: Recovery) -> None:
        """Confirmed rest: learn delay, move the anchor, close any episode."""
        cfg = self.cfg
        if self.episode.active or self.load_seen:
            self._mark_dirty(self.recovery.learn_delay(recovery.elapsed))

        self._mark_dirty(self.cap.confirm(recovery.rest_ref))

        if not self.episode.active:
            return

        rest_ref = recovery.rest_ref
        if self.episode.ocv_start is not None:
            self._mark_dirty(
                self.decay.learn(self.episode.ocv_start, rest_ref, self.episode.load_time)
            )

        learned = 0
        for i, vmin in self.episode.minima():
            candidate = rest_ref - vmin
            if candidate >= cfg.min_sag_learn:
                self._mark_dirty(self.sag.learn_event(i, candidate))
                self.load_seen = True
                learned += 1

        self.episode.close(rest_ref)
        self._mark_dirty(self.sag.reshape())
        log.debug(
            f"Recovery confirmed at {rest_ref:.3f} V after {recovery.elapsed} ticks, "
            f"{learned} bucket(s) learned, delay now {self.recovery.delay}"
        )

    def _compose(self, cell: float, thr: float, ratio: float) -> float:
        cfg = self.cfg
        anchor = self.cap.anchor

        if thr <= cfg.thr_no_comp and anchor is not None:
            comp = anchor
        else:
            if self.episode.active and thr >= cfg.thr_capture and self.episode.ocv_est is not None:
                comp = clamp(self.episode.ocv_est, cell, cfg.cell_max)
            else:
                comp = clamp(cell + self.sag.estimate(thr) * ratio, cfg.cell_min, cfg.cell_max)
            if anchor is not None and thr < cfg.thr_ramp_end:
                comp = min(comp, anchor + cfg.idle_cap_margin)

        if anchor is not None:
            comp = min(comp, anchor + cfg.cap_margin)
        return max(comp, cell)

    def _track_phase(self, now: int) -> None:
        new = Phase.of(self.recovery.in_low, self.episode.active)
        if new is self._phase:
            return
        if is_allowed(self._phase, new):
            log.debug(f"Phase {self._phase.value} -> {new.value} at tick {now}")
        else:
            log.warn(f"Unexpected phase change {self._phase.value} -> {new.value} at tick {now}")
        self._phase = new
