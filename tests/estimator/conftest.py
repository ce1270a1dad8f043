"""Fixtures for driving the estimator through flight-like sequences."""

import pytest

from sagcomp.env import Config
from sagcomp.estimator import Estimator
from sagcomp.storage import MemoryBlobStore


def stick(throttle: float) -> float:
    """Throttle fraction (0..1) as a -1024..1024 stick value."""
    return throttle * 2048 - 1024


class Driver:
    """Ticks an estimator at a fixed host rate and collects outputs."""

    def __init__(self, estimator: Estimator, step: int = 10):
        self.est = estimator
        self.step = step
        self.now = 0

    def hold(self, pack_v, throttle: float, seconds: float):
        """
        Hold inputs for a duration.

        Args:
            pack_v: Pack voltage, or a callable of the tick counter
            throttle: Throttle fraction 0..1
            seconds: Duration

        Returns:
            List of (tick, TickOutput) for processed ticks
        """
        end = self.now + int(round(seconds * 100))
        outputs = []
        while self.now < end:
            v = pack_v(self.now) if callable(pack_v) else pack_v
            out = self.est.tick(v, stick(throttle), self.now)
            if out is not None:
                outputs.append((self.now, out))
            self.now += self.step
        return outputs


@pytest.fixture
def fixed_cfg():
    """Config with a fixed 50-tick processing period for predictable timing."""
    cfg = Config()
    cfg.adaptive_rate = False
    return cfg


@pytest.fixture
def store():
    return MemoryBlobStore()


@pytest.fixture
def estimator(fixed_cfg, store):
    return Estimator(fixed_cfg, store=store, model_name="Test Quad")


@pytest.fixture
def driver(estimator):
    return Driver(estimator)
