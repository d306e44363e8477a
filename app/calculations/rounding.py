"""
Rounding helpers.

Python's built-in round() uses banker's rounding; every reported metric here
rounds half away from zero on the scaled value instead.
"""

import math


def round_half_away(value: float, places: int = 2) -> float:
    """
    Round to ``places`` decimals, ties away from zero (0.125 -> 0.13, -2.5 -> -3).

    Non-finite values (a ratio over a vanishingly small area, say) are
    reported as 0.0.
    """
    if not math.isfinite(value):
        return 0.0
    scaled = abs(value) * 10 ** places
    if not math.isfinite(scaled):
        # already integral at this magnitude
        return value
    rounded = math.copysign(math.floor(scaled + 0.5), value) / 10 ** places
    # no negative zero
    return rounded if rounded else 0.0


def round2(value: float) -> float:
    return round_half_away(value, 2)


def round1(value: float) -> float:
    return round_half_away(value, 1)
