"""Fixtures for persistence and codec tests."""

import pytest

from sagcomp.buckets import BUCKETS
from sagcomp.codec import LearnedRecord, encode_record
from sagcomp.storage import MemoryBlobStore, StorageResult, StorageStatus


class FailingStore(MemoryBlobStore):
    """Probes fine but every read and/or write fails with an I/O error."""

    def __init__(self, blobs=None, fail_read=False, fail_write=True):
        super().__init__(blobs)
        self.fail_read = fail_read
        self.fail_write = fail_write
        self.write_attempts = 0

    def read(self, key):
        if self.fail_read:
            return StorageResult(StorageStatus.FAILED, error="read error")
        return super().read(key)

    def write(self, key, text):
        self.write_attempts += 1
        if self.fail_write:
            return StorageResult(StorageStatus.FAILED, error="disk full")
        return super().write(key, text)


@pytest.fixture
def learned_record(cfg):
    """A record with bucket 0 unlearned and a rising sag curve above it."""
    return LearnedRecord(
        sag=[None] + [round(0.05 + 0.02 * i, 4) for i in range(1, BUCKETS)],
        down_frac=[0.04] * BUCKETS,
        decay_mvps=[1.5] * BUCKETS,
        recovery_delay=240,
        chemistry="HIGH_VOLTAGE",
    )


@pytest.fixture
def stored_text(learned_record, cfg):
    return encode_record(learned_record, cfg)


@pytest.fixture
def mismatched_text(stored_text):
    """A valid-looking record written with a different bucket count."""
    return stored_text.replace(f"BUCKETS={BUCKETS}", "BUCKETS=12")


@pytest.fixture
def failing_store():
    return FailingStore()
