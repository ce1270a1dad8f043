"""Key/value text blob storage for learned parameters."""

import os
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Protocol

from . import log

MAX_NAME_LEN = 24
FALLBACK_NAME = "MODEL"


def sanitize_model_name(name: Optional[str]) -> str:
    """
    Turn a model name into a storage key.

    Whitespace runs become ``_``, anything outside ``[A-Za-z0-9_-]`` becomes
    ``_``, and the result is cut to 24 characters. Empty or missing names
    fall back to ``MODEL``.
    """
    if not name:
        return FALLBACK_NAME
    key = re.sub(r"\s+", "_", name)
    key = re.sub(r"[^A-Za-z0-9_\-]", "_", key)
    return key[:MAX_NAME_LEN]


class StorageStatus(Enum):
    OK = "ok"
    MISSING = "missing"  # no blob stored under the key yet
    FAILED = "failed"  # I/O error
    UNAVAILABLE = "unavailable"  # storage cannot be used at all


@dataclass(frozen=True)
class StorageResult:
    status: StorageStatus
    text: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is StorageStatus.OK


class BlobStore(Protocol):
    """Storage capability injected into the estimator."""

    def probe(self) -> bool:
        ...

    def read(self, key: str) -> StorageResult:
        ...

    def write(self, key: str, text: str) -> StorageResult:
        ...


class MemoryBlobStore:
    """In-process store, mainly for tests and replays without a state dir."""

    def __init__(self, blobs: Optional[dict[str, str]] = None, available: bool = True):
        self.blobs: dict[str, str] = dict(blobs or {})
        self.available = available
        self.writes = 0
        self.checks = 0

    def probe(self) -> bool:
        self.checks += 1
        return self.available

    def read(self, key: str) -> StorageResult:
        if not self.available:
            return StorageResult(StorageStatus.UNAVAILABLE)
        if key not in self.blobs:
            return StorageResult(StorageStatus.MISSING)
        return StorageResult(StorageStatus.OK, text=self.blobs[key])

    def write(self, key: str, text: str) -> StorageResult:
        if not self.available:
            return StorageResult(StorageStatus.UNAVAILABLE)
        self.blobs[key] = text
        self.writes += 1
        return StorageResult(StorageStatus.OK)


class FileBlobStore:
    """
    One file per key in a state directory: ``<dir>/<prefix><key>.dat``.

    OSErrors are reported as FAILED results, never raised.
    """

    def __init__(self, directory: Path, prefix: str = "SagComp_"):
        self.directory = directory
        self.prefix = prefix

    def path_for(self, key: str) -> Path:
        return self.directory / f"{self.prefix}{key}.dat"

    def probe(self) -> bool:
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            log.warn(f"State directory {self.directory} unusable: {e}")
            return False
        return os.access(self.directory, os.R_OK | os.W_OK)

    def read(self, key: str) -> StorageResult:
        path = self.path_for(key)
        try:
            return StorageResult(StorageStatus.OK, text=path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return StorageResult(StorageStatus.MISSING)
        except (OSError, UnicodeDecodeError) as e:
            return StorageResult(StorageStatus.FAILED, error=str(e))

    def write(self, key: str, text: str) -> StorageResult:
        path = self.path_for(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text, encoding="utf-8")
        except OSError as e:
            return StorageResult(StorageStatus.FAILED, error=str(e))
        log.debug(f"Wrote learned state to {path}")
        return StorageResult(StorageStatus.OK)
