"""Fixtures for chart and report rendering tests."""

import pytest

from sagcomp.buckets import BUCKETS
from sagcomp.codec import LearnedRecord


@pytest.fixture
def partial_record(cfg):
    """Sag learned for the upper half of the throttle range only."""
    record = LearnedRecord.defaults(cfg)
    record.sag = [None] * 8 + [0.10 + 0.03 * i for i in range(8)]
    record.recovery_delay = 215
    record.chemistry = "STANDARD"
    return record


@pytest.fixture
def empty_record(cfg):
    return LearnedRecord.defaults(cfg)


@pytest.fixture(autouse=True)
def reset_jinja_env():
    """Drop the cached Jinja2 environment between tests."""
    import sagcomp.report

    sagcomp.report._jinja_env = None
    yield
    sagcomp.report._jinja_env = None


@pytest.fixture
def bucket_count():
    return BUCKETS
