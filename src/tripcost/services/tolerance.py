from __future__ import annotations

EPSILON = 1e-6


def exceeds_tolerance(value: float) -> bool:
    # NaN compares false against everything, so it counts as exceeding and propagates
    return not abs(value) <= EPSILON
