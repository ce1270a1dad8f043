"""Replay recorded telemetry logs through the estimator."""

import csv
import math
from pathlib import Path
from typing import Iterable, Optional

from . import log
from .env import Config
from .estimator import Estimator
from .telemetry import Sample, TickOutput, read_sample

TICK_COLUMN = "tick"


def _parse_number(text: Optional[str]) -> Optional[float]:
    if text is None or not text.strip():
        return None
    try:
        value = float(text)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def load_samples(path: Path, cfg: Config) -> list[Sample]:
    """
    Read a CSV telemetry log.

    The header must contain a ``tick`` column (centiseconds) and may carry
    the configured battery sensor and throttle source columns. Rows with an
    unreadable tick are skipped.

    Args:
        path: CSV file path
        cfg: Configuration naming the sensor columns

    Returns:
        Samples in file order
    """
    samples: list[Sample] = []
    with path.open(newline="") as f:
        reader = csv.DictReader(f)
        if reader.fieldnames is None or TICK_COLUMN not in reader.fieldnames:
            raise ValueError(f"{path} has no '{TICK_COLUMN}' column")
        for line_no, row in enumerate(reader, start=2):
            tick = _parse_number(row.get(TICK_COLUMN))
            if tick is None:
                log.debug(f"{path}:{line_no}: skipping row without tick")
                continue
            values = {
                key: _parse_number(value)
                for key, value in row.items()
                if key is not None and key != TICK_COLUMN
            }
            samples.append(read_sample(values, int(tick), cfg))
    return samples


def replay(samples: Iterable[Sample], estimator: Estimator) -> list[tuple[Sample, TickOutput]]:
    """Feed samples in order; returns the ticks that produced output."""
    results: list[tuple[Sample, TickOutput]] = []
    for sample in samples:
        out = estimator.step(sample)
        if out is not None:
            results.append((sample, out))
    return results
