"""Environment variable parsing and configuration."""

import os
from pathlib import Path
from typing import Optional


def get_str(key: str, default: Optional[str] = None) -> Optional[str]:
    """Get string env var."""
    return os.environ.get(key, default)


def get_int(key: str, default: int) -> int:
    """Get integer env var."""
    val = os.environ.get(key)
    if val is None:
        return default
    try:
        return int(val)
    except ValueError:
        return default


def get_bool(key: str, default: bool = False) -> bool:
    """Get boolean env var (0/1, true/false, yes/no)."""
    val = os.environ.get(key, "").lower()
    if not val:
        return default
    return val in ("1", "true", "yes", "on")


def get_float(key: str, default: float) -> float:
    """Get float env var."""
    val = os.environ.get(key)
    if val is None:
        return default
    try:
        return float(val)
    except ValueError:
        return default


def get_path(key: str, default: str) -> Path:
    """Get path env var, expanding user and making absolute."""
    val = os.environ.get(key, default)
    return Path(val).expanduser().resolve()


class Config:
    """Configuration loaded from environment variables.

    Times are in host ticks (centiseconds, 100 = 1s), voltages in volts per
    cell unless the name says otherwise.
    """

    def __init__(self):
        # Sensor bindings
        self.battery_sensor = get_str("SAGCOMP_BATTERY_SENSOR", "RxBt")
        self.throttle_source = get_str("SAGCOMP_THROTTLE_SOURCE", "ch3")
        # auto / stick (-1024..1024) / pwm (1000-2000 us)
        self.throttle_range = get_str("SAGCOMP_THROTTLE_RANGE", "auto")
        self.percent_channel = get_str("SAGCOMP_PERCENT_CHANNEL", "BatP")
        self.sag_cell_channel = get_str("SAGCOMP_SAG_CHANNEL", "Sag")
        self.raw_cell_channel = get_str("SAGCOMP_CELL_CHANNEL", "Cell")
        self.ratio_channel = get_str("SAGCOMP_RATIO_CHANNEL", "Ratio")
        self.debug = get_bool("SAGCOMP_DEBUG", False)

        # Chemistry (auto / standard / high_voltage, or 0 / 1 / 2)
        self.chemistry_mode = get_str("SAGCOMP_CHEMISTRY", "auto")
        self.hv_detect_v = get_float("SAGCOMP_HV_DETECT_V", 4.23)
        self.hv_detect_samples = get_int("SAGCOMP_HV_DETECT_SAMPLES", 3)

        # Timing
        self.warmup_delay_cs = get_int("SAGCOMP_WARMUP_CS", 200)
        self.fallback_update_cs = get_int("SAGCOMP_FALLBACK_UPDATE_CS", 50)
        self.min_update_cs = get_int("SAGCOMP_MIN_UPDATE_CS", 30)
        self.max_update_cs = get_int("SAGCOMP_MAX_UPDATE_CS", 150)
        self.adaptive_rate = get_bool("SAGCOMP_ADAPTIVE_RATE", True)

        # Throttle thresholds (0..1)
        self.thr_rest = get_float("SAGCOMP_THR_REST", 0.10)
        self.thr_no_comp = get_float("SAGCOMP_THR_NO_COMP", 0.10)
        self.thr_ramp_end = get_float("SAGCOMP_THR_RAMP_END", 0.30)
        self.thr_capture = get_float("SAGCOMP_THR_CAPTURE", 0.18)
        if self.thr_ramp_end <= self.thr_no_comp:
            self.thr_ramp_end = self.thr_no_comp + 0.15

        # Recovery and plateau detection
        self.recover_delay_default_cs = get_int("SAGCOMP_RECOVER_DELAY_CS", 200)
        self.recover_min_cs = get_int("SAGCOMP_RECOVER_MIN_CS", 120)
        self.recover_max_cs = get_int("SAGCOMP_RECOVER_MAX_CS", 450)
        self.recover_learn_alpha = get_float("SAGCOMP_RECOVER_LEARN_ALPHA", 0.25)
        self.plateau_hold_cs = get_int("SAGCOMP_PLATEAU_HOLD_CS", 80)
        self.plateau_eps_v = get_float("SAGCOMP_PLATEAU_EPS_V", 0.004)
        self.low_peak_ema_alpha = get_float("SAGCOMP_LOW_PEAK_ALPHA", 0.60)

        # Rest anchor
        self.cap_ema_alpha = get_float("SAGCOMP_CAP_ALPHA", 0.70)
        self.cap_margin = get_float("SAGCOMP_CAP_MARGIN", 0.012)
        self.idle_cap_margin = get_float("SAGCOMP_IDLE_CAP_MARGIN", 0.02)

        # Cell voltage limits
        self.cell_min = get_float("SAGCOMP_CELL_MIN", 2.50)
        self.cell_max = get_float("SAGCOMP_CELL_MAX", 4.35)

        # Sag learning
        self.min_sag_learn = get_float("SAGCOMP_MIN_SAG_LEARN", 0.04)
        self.min_sag = get_float("SAGCOMP_MIN_SAG", 0.00)
        self.max_sag = get_float("SAGCOMP_MAX_SAG", 1.80)
        self.alpha_up_cont = get_float("SAGCOMP_ALPHA_UP_CONT", 0.55)
        self.alpha_up_event = get_float("SAGCOMP_ALPHA_UP_EVENT", 0.90)
        self.hi_knee = get_float("SAGCOMP_HI_KNEE", 0.70)
        self.hi_gamma = get_float("SAGCOMP_HI_GAMMA", 1.45)

        # Downward sag correction
        self.down_err_thresh_v = get_float("SAGCOMP_DOWN_ERR_V", 0.060)
        self.down_confirm_events = get_int("SAGCOMP_DOWN_CONFIRM", 6)
        self.max_down_step_v = get_float("SAGCOMP_MAX_DOWN_STEP_V", 0.006)
        self.down_frac_base = get_float("SAGCOMP_DOWN_FRAC_BASE", 0.03)
        self.down_frac_min = get_float("SAGCOMP_DOWN_FRAC_MIN", 0.01)
        self.down_frac_max = get_float("SAGCOMP_DOWN_FRAC_MAX", 0.08)
        self.down_frac_up_step = get_float("SAGCOMP_DOWN_FRAC_UP", 0.002)
        self.down_frac_dn_step = get_float("SAGCOMP_DOWN_FRAC_DN", 0.001)

        # OCV-hold decay model (mV/s)
        self.decay_learn_alpha = get_float("SAGCOMP_DECAY_ALPHA", 0.20)
        self.decay_scale_lo = get_float("SAGCOMP_DECAY_SCALE_LO", 0.60)
        self.decay_scale_hi = get_float("SAGCOMP_DECAY_SCALE_HI", 1.40)
        self.decay_min_mvps = get_float("SAGCOMP_DECAY_MIN_MVPS", 0.20)
        self.decay_max_mvps = get_float("SAGCOMP_DECAY_MAX_MVPS", 8.00)
        self.decay_apply_factor = get_float("SAGCOMP_DECAY_APPLY", 0.20)
        self.ocv_floor_from_sag = get_bool("SAGCOMP_OCV_FLOOR_FROM_SAG", True)
        self.ocv_ceil_use_cap = get_bool("SAGCOMP_OCV_CEIL_USE_CAP", True)

        # Persistence
        self.persist_enabled = get_bool("SAGCOMP_PERSIST", True)
        self.state_dir = get_path("SAGCOMP_STATE_DIR", "./data/state")
        self.persist_prefix = get_str("SAGCOMP_PERSIST_PREFIX", "SagComp_")
        self.save_interval_cs = get_int("SAGCOMP_SAVE_INTERVAL_CS", 6000)
        self.save_max_throttle = get_float("SAGCOMP_SAVE_MAX_THROTTLE", 0.12)
        self.model_name = get_str("SAGCOMP_MODEL_NAME")

        # Reports
        self.out_dir = get_path("SAGCOMP_OUT_DIR", "./out")


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create the global config instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config
