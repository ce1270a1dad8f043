"""Load-once / save-when-quiet persistence of learned parameters."""

from typing import Callable, Optional

from . import log
from .codec import LearnedRecord, decode_record, encode_record
from .env import Config
from .storage import BlobStore, StorageStatus


class Persistence:
    """
    Session persistence controller.

    Storage is checked once, on the first load after warm-up, and nothing
    is saved before that load. Any failed or unavailable storage call
    disables persistence for the rest of the session; estimation carries on
    from whatever is in memory. A record that fails to decode is discarded but
    does not disable persistence, so the next save replaces it.
    """

    def __init__(self, store: Optional[BlobStore], key: str, cfg: Config):
        self.store = store
        self.key = key
        self.cfg = cfg
        self.loaded = False
        self.dirty = False
        self.last_save = 0
        self.enabled = bool(cfg.persist_enabled and store is not None)

    def disable(self, reason: str) -> None:
        if self.enabled:
            log.warn(f"Persistence disabled for this session: {reason}")
        self.enabled = False

    def load_once(self) -> Optional[LearnedRecord]:
        """Read and decode the stored record on the first call only."""
        if not self.enabled or self.loaded:
            return None
        self.loaded = True
        if not self.store.probe():
            log.warn("Persistent storage unavailable, learning in memory only")
            self.enabled = False
            return None

        result = self.store.read(self.key)
        if result.status is StorageStatus.MISSING:
            log.debug(f"No learned state stored for {self.key}")
            return None
        if not result.ok:
            self.disable(f"read failed ({result.status.value}: {result.error})")
            return None

        decoded = decode_record(result.text or "", self.cfg)
        if not decoded.ok:
            log.warn(f"Discarding stored learned state for {self.key}: {decoded.error}")
            return None
        if decoded.ignored:
            log.debug(f"Ignored {len(decoded.ignored)} unknown line(s) in stored state")
        log.info(f"Loaded learned state for {self.key} ({decoded.record.version})")
        return decoded.record

    def should_save(self, now: int, throttle: float, load_seen: bool) -> bool:
        return (
            self.enabled
            and self.loaded
            and self.dirty
            and load_seen
            and throttle <= self.cfg.save_max_throttle
            and (now - self.last_save) >= self.cfg.save_interval_cs
        )

    def save_if_needed(
        self,
        now: int,
        throttle: float,
        load_seen: bool,
        snapshot: Callable[[], LearnedRecord],
    ) -> bool:
        """Write the current learned state when every save condition holds."""
        if not self.should_save(now, throttle, load_seen):
            return False

        result = self.store.write(self.key, encode_record(snapshot(), self.cfg))
        if not result.ok:
            self.disable(f"write failed ({result.status.value}: {result.error})")
            return False

        self.dirty = False
        self.last_save = now
        log.debug(f"Saved learned state for {self.key}")
        return True

    def flush(self, snapshot: Callable[[], LearnedRecord]) -> bool:
        """Write pending changes immediately, ignoring throttle and interval gates."""
        if not self.enabled or not self.loaded or not self.dirty:
            return False
        result = self.store.write(self.key, encode_record(snapshot(), self.cfg))
        if not result.ok:
            self.disable(f"write failed ({result.status.value}: {result.error})")
            return False
        self.dirty = False
        return True
