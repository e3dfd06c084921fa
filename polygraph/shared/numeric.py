import math


def round_half_up(x: float) -> int:
    """Nearest integer, .5 going up (2.5 -> 3, -2.5 -> -2). Not banker's rounding."""
    return int(math.floor(x + 0.5))


def clamp(value, low, high):
    return max(low, min(high, value))
