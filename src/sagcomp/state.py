"""Composite phase of the recovery and load-episode state machines."""

from enum import Enum


class Phase(Enum):
    CRUISE = "cruise"  # not resting, no episode
    LOADED = "loaded"  # episode running, throttle above rest
    RESTING = "resting"  # rest zone, no episode
    RECOVERING = "recovering"  # rest zone, episode waiting for a plateau

    @classmethod
    def of(cls, in_low: bool, episode_active: bool) -> "Phase":
        if in_low:
            return cls.RECOVERING if episode_active else cls.RESTING
        return cls.LOADED if episode_active else cls.CRUISE


# An episode only closes from RECOVERING, so LOADED never returns to CRUISE
# and RECOVERING never reaches CRUISE without passing through RESTING.
TRANSITIONS: dict[Phase, frozenset[Phase]] = {
    Phase.CRUISE: frozenset({Phase.LOADED, Phase.RESTING}),
    Phase.LOADED: frozenset({Phase.RECOVERING}),
    Phase.RESTING: frozenset({Phase.CRUISE, Phase.LOADED}),
    Phase.RECOVERING: frozenset({Phase.LOADED, Phase.RESTING}),
}


def is_allowed(old: Phase, new: Phase) -> bool:
    """True if the phase change is one the estimator can legitimately make."""
    return old is new or new in TRANSITIONS[old]
