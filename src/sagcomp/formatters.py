"""Shared formatting functions for display values."""

from typing import Optional


def format_volts(value: Optional[float], digits: int = 3) -> str:
    """Format a voltage, or N/A when undefined."""
    if value is None:
        return "N/A"
    return f"{value:.{digits}f} V"


def format_sag(value: Optional[float]) -> str:
    """Format a sag value in millivolts."""
    if value is None:
        return "not learned"
    return f"{value * 1000:.0f} mV"


def format_rate(mvps: Optional[float]) -> str:
    """Format a decay rate in mV/s."""
    if mvps is None:
        return "N/A"
    return f"{mvps:.2f} mV/s"


def format_delay(ticks: Optional[int]) -> str:
    """Format a tick count (centiseconds) as seconds."""
    if ticks is None:
        return "N/A"
    return f"{ticks / 100:.2f} s"


def format_percent(value: Optional[float]) -> str:
    """Format a 0..1 fraction as a percentage."""
    if value is None:
        return "N/A"
    return f"{value * 100:.1f}%"


def format_chemistry(word: Optional[str]) -> str:
    """Human label for a persisted chemistry word."""
    labels = {
        "AUTO": "Auto (not detected)",
        "STANDARD": "LiPo (4.20 V)",
        "HIGH_VOLTAGE": "LiHV (4.35 V)",
    }
    if word is None:
        return "N/A"
    return labels.get(word, word)
