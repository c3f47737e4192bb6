import math


def clamp_quantity(raw) -> int:
    """max(1, floor(raw)); anything that isn't a finite number becomes 1."""
    if isinstance(raw, bool):
        return 1
    try:
        value = math.floor(float(raw))
    except (TypeError, ValueError, OverflowError):
        return 1
    return max(1, value)
