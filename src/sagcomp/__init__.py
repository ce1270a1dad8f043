"""Sag compensation and open-circuit voltage estimation for battery telemetry."""

__version__ = "0.4.0"
