"""Line-oriented text codec for learned parameters.

Record layout, one field per line::

    SC4
    BUCKETS=16
    RECOV=200
    CHEM=AUTO
    SAG=-1,0.1200,...
    DOWN=0.0300,...
    DCR=0.2510,...

A record is all-or-nothing: a missing or unknown version tag, a bucket
count that differs from ``BUCKETS`` or any recognized field that fails to
parse rejects the whole record. Unknown keys are ignored and missing
arrays fall back to the compiled defaults.
"""

import math
from dataclasses import dataclass, field
from typing import Optional

from .buckets import BUCKETS, clamp, round_half_up
from .decay import default_rates
from .env import Config

VERSION = "SC4"
KNOWN_VERSIONS = ("SC1", "SC2", "SC3", "SC4")

# Written for buckets without a learned sag value; any negative reads back as undefined
UNDEFINED_SAG = "-1"

CHEMISTRY_WORDS = ("AUTO", "STANDARD", "HIGH_VOLTAGE")
LEGACY_CHEMISTRY = {"LIPO": "STANDARD", "LIHV": "HIGH_VOLTAGE"}


@dataclass
class LearnedRecord:
    """All learned parameters for one model identity.

    Attributes:
        sag: Sag per bucket in volts per cell, None where not learned
        down_frac: Downward-correction fraction per bucket
        decay_mvps: Decay rate per bucket in mV/s
        recovery_delay: Recovery delay in ticks, None to keep the current one
        chemistry: AUTO, STANDARD or HIGH_VOLTAGE, None to keep the current one
    """

    sag: list[Optional[float]]
    down_frac: list[float]
    decay_mvps: list[float]
    recovery_delay: Optional[int] = None
    chemistry: Optional[str] = None
    version: str = VERSION
    buckets: int = BUCKETS

    @classmethod
    def defaults(cls, cfg: Config) -> "LearnedRecord":
        return cls(
            sag=[None] * BUCKETS,
            down_frac=[cfg.down_frac_base] * BUCKETS,
            decay_mvps=default_rates(cfg),
        )


@dataclass
class DecodeResult:
    """Outcome of decoding a persisted blob."""

    ok: bool
    record: Optional[LearnedRecord] = None
    error: Optional[str] = None
    ignored: list[str] = field(default_factory=list)


class RecordError(ValueError):
    """A persisted field could not be parsed."""


def _floats(key: str, text: str) -> list[float]:
    parts = [p.strip() for p in text.split(",") if p.strip()]
    if len(parts) != BUCKETS:
        raise RecordError(f"{key} has {len(parts)} values, expected {BUCKETS}")
    try:
        values = [float(p) for p in parts]
    except ValueError:
        raise RecordError(f"{key} has a non-numeric value: {text!r}")
    if not all(math.isfinite(v) for v in values):
        raise RecordError(f"{key} has a non-finite value: {text!r}")
    return values


def encode_record(record: LearnedRecord, cfg: Config) -> str:
    """Encode a record, clamping every value to its valid range."""
    sag = [
        UNDEFINED_SAG if v is None else f"{clamp(v, cfg.min_sag, cfg.max_sag):.4f}"
        for v in record.sag
    ]
    down = [
        f"{clamp(d, cfg.down_frac_min, cfg.down_frac_max):.4f}" for d in record.down_frac
    ]
    dcr = [
        f"{clamp(r, cfg.decay_min_mvps, cfg.decay_max_mvps):.4f}" for r in record.decay_mvps
    ]
    lines = [VERSION, f"BUCKETS={BUCKETS}"]
    if record.recovery_delay is not None:
        delay = int(clamp(record.recovery_delay, cfg.recover_min_cs, cfg.recover_max_cs))
        lines.append(f"RECOV={delay}")
    lines.append(f"CHEM={record.chemistry or 'AUTO'}")
    lines.append("SAG=" + ",".join(sag))
    lines.append("DOWN=" + ",".join(down))
    lines.append("DCR=" + ",".join(dcr))
    return "\n".join(lines) + "\n"


def decode_record(text: str, cfg: Config) -> DecodeResult:
    """
    Decode a persisted blob.

    Args:
        text: Blob contents as read from storage
        cfg: Configuration supplying defaults and clamp ranges

    Returns:
        DecodeResult with the full record on success or an error message
    """
    record = LearnedRecord.defaults(cfg)
    version = None
    buckets = None
    ignored: list[str] = []

    try:
        for raw_line in text.splitlines():
            line = raw_line.strip()
            if not line:
                continue
            if line in KNOWN_VERSIONS:
                version = line
                continue
            key, sep, value = line.partition("=")
            if not sep:
                ignored.append(line)
                continue

            if key == "BUCKETS":
                try:
                    buckets = int(value)
                except ValueError:
                    raise RecordError(f"BUCKETS is not an integer: {value!r}")
            elif key == "RECOV":
                try:
                    delay = float(value)
                except ValueError:
                    raise RecordError(f"RECOV is not a number: {value!r}")
                if not math.isfinite(delay):
                    raise RecordError(f"RECOV is not finite: {value!r}")
                record.recovery_delay = int(
                    clamp(round_half_up(delay), cfg.recover_min_cs, cfg.recover_max_cs)
                )
            elif key == "CHEM":
                word = LEGACY_CHEMISTRY.get(value.strip(), value.strip())
                if word not in CHEMISTRY_WORDS:
                    raise RecordError(f"unknown chemistry {value!r}")
                record.chemistry = word
            elif key == "SAG":
                record.sag = [
                    None if v < 0 else clamp(v, cfg.min_sag, cfg.max_sag)
                    for v in _floats(key, value)
                ]
            elif key == "DOWN":
                record.down_frac = [
                    clamp(v, cfg.down_frac_min, cfg.down_frac_max)
                    for v in _floats(key, value)
                ]
            elif key == "DCR":
                record.decay_mvps = [
                    clamp(v, cfg.decay_min_mvps, cfg.decay_max_mvps)
                    for v in _floats(key, value)
                ]
            else:
                ignored.append(line)
    except RecordError as e:
        return DecodeResult(ok=False, error=str(e), ignored=ignored)

    if version is None:
        return DecodeResult(ok=False, error="missing version tag", ignored=ignored)
    if buckets is None:
        return DecodeResult(ok=False, error="missing BUCKETS line", ignored=ignored)
    if buckets != BUCKETS:
        return DecodeResult(
            ok=False,
            error=f"bucket count {buckets} does not match {BUCKETS}",
            ignored=ignored,
        )

    record.version = version
    return DecodeResult(ok=True, record=record, ignored=ignored)
