"""Cell chemistry selection and LiHV auto-detection."""

from enum import Enum
from typing import Optional

from . import log


class ChemistryMode(Enum):
    AUTO = "auto"
    STANDARD = "standard"
    HIGH_VOLTAGE = "high_voltage"

    @classmethod
    def parse(cls, value: Optional[str]) -> "ChemistryMode":
        """Parse a config value; accepts names and the legacy 0/1/2 codes."""
        if value is None:
            return cls.AUTO
        text = value.strip().lower()
        legacy = {"0": cls.AUTO, "1": cls.STANDARD, "2": cls.HIGH_VOLTAGE,
                  "lipo": cls.STANDARD, "lihv": cls.HIGH_VOLTAGE}
        if text in legacy:
            return legacy[text]
        try:
            return cls(text)
        except ValueError:
            log.warn(f"Unknown chemistry mode {value!r}, using auto")
            return cls.AUTO


class ChemistryState(Enum):
    FORCED_STANDARD = "forced_standard"
    FORCED_HIGH_VOLTAGE = "forced_high_voltage"
    AUTO_UNLATCHED = "auto_unlatched"
    AUTO_LATCHED_HIGH_VOLTAGE = "auto_latched_high_voltage"


class ChemistryClassifier:
    """
    Decides whether the pack is standard LiPo or high-voltage LiHV.

    In auto mode, a run of consecutive rest-zone samples at or above the
    detection voltage latches LiHV for the rest of the session. There is no
    path back to standard.
    """

    def __init__(self, mode: ChemistryMode, detect_v: float, samples_needed: int,
                 rest_throttle: float):
        self.mode = mode
        self.detect_v = detect_v
        self.samples_needed = samples_needed
        self.rest_throttle = rest_throttle
        self.latched = False
        self.count = 0
        # forced mode disagrees with the stored word; reported by the next update
        self.stale = False

    @property
    def state(self) -> ChemistryState:
        if self.mode is ChemistryMode.STANDARD:
            return ChemistryState.FORCED_STANDARD
        if self.mode is ChemistryMode.HIGH_VOLTAGE:
            return ChemistryState.FORCED_HIGH_VOLTAGE
        if self.latched:
            return ChemistryState.AUTO_LATCHED_HIGH_VOLTAGE
        return ChemistryState.AUTO_UNLATCHED

    @property
    def high_voltage(self) -> bool:
        return self.state in (
            ChemistryState.FORCED_HIGH_VOLTAGE,
            ChemistryState.AUTO_LATCHED_HIGH_VOLTAGE,
        )

    def update(self, cell_v: float, throttle: float) -> bool:
        """Feed one processed sample. Returns True when the stored word needs rewriting."""
        if self.stale:
            self.stale = False
            self.count = 0
            return True
        if self.mode is not ChemistryMode.AUTO or self.latched:
            self.count = 0
            return False

        if throttle <= self.rest_throttle and cell_v >= self.detect_v:
            self.count += 1
            if self.count >= self.samples_needed:
                self.latched = True
                self.count = 0
                log.info(f"LiHV detected at {cell_v:.3f} V/cell, latched for session")
                return True
        else:
            self.count = 0
        return False

    def restore(self, word: Optional[str]) -> None:
        """Apply a persisted chemistry word; only auto mode takes it."""
        if word is None:
            return
        if self.mode is not ChemistryMode.AUTO:
            self.stale = word != self.persisted_word()
            return
        if word == "HIGH_VOLTAGE":
            self.latched = True

    def persisted_word(self) -> str:
        """Chemistry word for the persisted record."""
        if self.high_voltage:
            return "HIGH_VOLTAGE"
        if self.mode is ChemistryMode.STANDARD:
            return "STANDARD"
        return "AUTO"
