import math


def rate(part: float, whole: float) -> float:
    """Percentage of part over whole; 0.0 when whole is 0."""
    if whole <= 0:
        return 0.0
    return part / whole * 100


def round_half_up(value: float) -> int:
    # half-up: 12.5 -> 13, where builtin round() gives 12
    return int(math.floor(value + 0.5))
