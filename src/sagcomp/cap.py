"""Confirmed rest voltage anchor."""

from typing import Optional

from .buckets import ema


class CapStabilizer:
    """
    Holds the stabilized rest estimate and the confirmed rest anchor.

    Both move only through ``confirm()``, which the estimator calls from
    recovery finalization. ``seed()`` gives the anchor a starting value on
    the first processed sample.
    """

    def __init__(self, cap_alpha: float, rest_alpha: float):
        self.cap_alpha = cap_alpha
        self.rest_alpha = rest_alpha
        self.anchor: Optional[float] = None
        self.rest_estimate: Optional[float] = None

    def seed(self, cell_v: float) -> None:
        if self.anchor is None:
            self.anchor = cell_v

    def confirm(self, peak_v: float) -> bool:
        """Pull both values towards a confirmed recovery peak."""
        self.rest_estimate = ema(self.rest_estimate, peak_v, self.rest_alpha)
        old = self.anchor
        self.anchor = ema(self.anchor, peak_v, self.cap_alpha)
        return old is None or self.anchor != old
