"""Per-cell voltage to percentage conversion for LiPo and LiHV packs."""

from .buckets import clamp, round_half_up

# Resting LiPo discharge curve, ascending: 3.00V = 0%, 4.20V = 100%.
# Lookup is a step function: the first breakpoint at or above the voltage wins.
VOLTAGE_TABLE = [
    (3.000, 0), (3.093, 1), (3.196, 2), (3.301, 3), (3.401, 4),
    (3.477, 5), (3.544, 6), (3.601, 7), (3.637, 8), (3.664, 9),
    (3.679, 10), (3.683, 11), (3.689, 12), (3.692, 13), (3.705, 14),
    (3.710, 15), (3.713, 16), (3.715, 17), (3.720, 18), (3.731, 19),
    (3.735, 20), (3.744, 21), (3.753, 22), (3.756, 23), (3.758, 24),
    (3.762, 25), (3.767, 26), (3.774, 27), (3.780, 28), (3.783, 29),
    (3.786, 30), (3.789, 31), (3.794, 32), (3.797, 33), (3.800, 34),
    (3.802, 35), (3.805, 36), (3.808, 37), (3.811, 38), (3.815, 39),
    (3.818, 40), (3.822, 41), (3.825, 42), (3.829, 43), (3.833, 44),
    (3.836, 45), (3.840, 46), (3.843, 47), (3.847, 48), (3.850, 49),
    (3.854, 50), (3.857, 51), (3.860, 52), (3.863, 53), (3.866, 54),
    (3.870, 55), (3.874, 56), (3.879, 57), (3.888, 58), (3.893, 59),
    (3.897, 60), (3.902, 61), (3.906, 62), (3.911, 63), (3.918, 64),
    (3.923, 65), (3.928, 66), (3.939, 67), (3.943, 68), (3.949, 69),
    (3.955, 70), (3.961, 71), (3.968, 72), (3.974, 73), (3.981, 74),
    (3.987, 75), (3.994, 76), (4.001, 77), (4.007, 78), (4.014, 79),
    (4.021, 80), (4.029, 81), (4.036, 82), (4.044, 83), (4.052, 84),
    (4.062, 85), (4.074, 86), (4.085, 87), (4.095, 88), (4.105, 89),
    (4.111, 90), (4.116, 91), (4.120, 92), (4.125, 93), (4.129, 94),
    (4.135, 95), (4.145, 96), (4.176, 97), (4.179, 98), (4.193, 99),
    (4.200, 100),
]

LIPO_EMPTY_V = 3.00
LIPO_FULL_V = 4.20
LIHV_FULL_V = 4.35
# Percentage reached at 4.20V on the LiHV scale
LIHV_KNEE_PCT = 95


def lipo_percentage(voltage: float) -> int:
    """
    Convert a resting LiPo cell voltage to percentage.

    Args:
        voltage: Cell voltage in volts

    Returns:
        Percentage (0-100) from the first table entry at or above the voltage
    """
    if voltage >= LIPO_FULL_V:
        return 100
    if voltage <= LIPO_EMPTY_V:
        return 0
    for v, pct in VOLTAGE_TABLE:
        if v >= voltage:
            return pct
    return 100


def lihv_percentage(voltage: float) -> int:
    """
    Convert a resting LiHV cell voltage to percentage.

    Below 4.20V the LiPo curve is compressed into 0-95%; 4.20V to 4.35V
    maps linearly onto 95-100%.
    """
    if voltage >= LIHV_FULL_V:
        return 100
    if voltage <= LIPO_EMPTY_V:
        return 0
    if voltage <= LIPO_FULL_V:
        pct = lipo_percentage(voltage)
        return int(clamp(round_half_up(pct * LIHV_KNEE_PCT / 100), 0, 100))
    frac = (voltage - LIPO_FULL_V) / (LIHV_FULL_V - LIPO_FULL_V)
    pct = LIHV_KNEE_PCT + frac * (100 - LIHV_KNEE_PCT)
    return int(clamp(round_half_up(pct), 0, 100))


def voltage_to_percentage(voltage: float, high_voltage: bool = False) -> int:
    """Chemistry-aware voltage to percentage."""
    if high_voltage:
        return lihv_percentage(voltage)
    return lipo_percentage(voltage)
