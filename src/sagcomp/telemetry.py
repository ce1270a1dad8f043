"""Host telemetry normalization: raw inputs in, per-tick channel values out."""

import math
from dataclasses import dataclass
from typing import Any, Optional

from . import log
from .buckets import clamp, round_half_up
from .env import Config

__all__ = [
    "Sample",
    "ThrottleRange",
    "TickOutput",
    "cell_voltage",
    "cells_in_pack",
    "normalize_pack_voltage",
    "read_sample",
    "throttle_to_unit",
]

# Highest plausible resting cell voltage, used to infer the cell count
MAX_CELL_V = 4.35


def normalize_pack_voltage(value: Optional[float]) -> Optional[float]:
    """Pack voltage in volts; receivers reporting centivolts are scaled down."""
    if value is None:
        return None
    if value > 50:
        return value / 100.0
    return float(value)


def cells_in_pack(pack_v: float) -> int:
    """Series cell count implied by a pack voltage."""
    return max(1, math.ceil(pack_v / MAX_CELL_V))


def cell_voltage(pack_v: float, cell_min: float = 2.50, cell_max: float = MAX_CELL_V) -> float:
    """Average per-cell voltage, clamped to plausible limits."""
    return clamp(pack_v / cells_in_pack(pack_v), cell_min, cell_max)


THROTTLE_RANGES = ("auto", "stick", "pwm")

# Stick values never exceed this; PWM idle sits at or below it
STICK_MAX = 1024
# Nothing at or below this is a PWM pulse width
PWM_FLOOR = 800


def throttle_to_unit(value: Optional[float], pwm: bool = False) -> float:
    """
    Normalize a throttle reading to [0, 1].

    Args:
        value: Raw throttle reading
        pwm: True for PWM pulse widths (1000-2000 us), False for the
            -1024..1024 stick range

    Returns:
        Throttle fraction; missing or non-finite readings are idle
    """
    if value is None or not math.isfinite(value):
        return 0.0
    if pwm:
        return clamp((value - 1000) / 1000, 0.0, 1.0)
    return clamp((value + STICK_MAX) / (2 * STICK_MAX), 0.0, 1.0)


class ThrottleRange:
    """
    Decides once per session which range the throttle source reports in.

    The stick range (-1024..1024) and PWM pulse widths (1000-2000) overlap
    above 800, so a reading between 800 and 1024 proves nothing. In auto
    mode readings count as stick until one settles it: a value at or below
    800 means stick, a value above 1024 means PWM.
    """

    def __init__(self, mode: Optional[str] = "auto"):
        mode = (mode or "auto").strip().lower()
        if mode not in THROTTLE_RANGES:
            log.warn(f"Unknown throttle range {mode!r}, using auto")
            mode = "auto"
        self.mode = mode
        self.pwm = mode == "pwm"
        self.settled = mode != "auto"

    def observe(self, value: Optional[float]) -> None:
        if self.settled or value is None or not math.isfinite(value):
            return
        if value <= PWM_FLOOR:
            self.settled = True
        elif value > STICK_MAX:
            self.pwm = True
            self.settled = True
        if self.settled:
            log.debug(f"Throttle range settled as {'pwm' if self.pwm else 'stick'} at {value}")

    def to_unit(self, value: Optional[float]) -> float:
        self.observe(value)
        return throttle_to_unit(value, self.pwm)


@dataclass(frozen=True)
class Sample:
    """One host tick: tick counter plus raw battery and throttle values."""

    now: int
    raw: Optional[float]
    throttle: Optional[float]


def _number(value: Any) -> Optional[float]:
    # bool is an int subclass; a switch value is not a voltage
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    value = float(value)
    if not math.isfinite(value):
        return None
    return value


def read_sample(values: dict[str, Any], now: int, cfg: Config) -> Sample:
    """Build a Sample from a host mapping of sensor name to value."""
    raw = _number(values.get(cfg.battery_sensor))
    if raw == 0:
        raw = None
    if raw is None:
        log.debug(f"No usable {cfg.battery_sensor} value at tick {now}")
    throttle = _number(values.get(cfg.throttle_source))
    if throttle is None:
        log.warn_once(
            f"throttle:{cfg.throttle_source}",
            f"No usable {cfg.throttle_source} value, treating throttle as idle",
        )
    return Sample(now=now, raw=raw, throttle=throttle)


@dataclass(frozen=True)
class TickOutput:
    """Values emitted for one processed tick.

    Attributes:
        percent: Remaining capacity estimate (0-100)
        cell_comp: Compensated per-cell voltage
        cell_raw: Measured per-cell voltage
        ratio_pct: Share of learned sag applied (0-100)
    """

    percent: int
    cell_comp: float
    cell_raw: float
    ratio_pct: int

    def to_channels(self, cfg: Config) -> dict[str, int]:
        """Integer channel values: percent in tenths, voltages in tenths of a volt."""
        return {
            cfg.percent_channel: self.percent * 10,
            cfg.sag_cell_channel: round_half_up(self.cell_comp * 10),
            cfg.raw_cell_channel: round_half_up(self.cell_raw * 10),
            cfg.ratio_channel: self.ratio_pct,
        }
