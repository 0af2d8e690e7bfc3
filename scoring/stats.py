import math
from typing import Sequence


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean; 0 for an empty sequence."""
    if not values:
        return 0.0
    return sum(values) / len(values)


def stddev(values: Sequence[float]) -> float:
    """Population standard deviation (divides by N); 0 for fewer than two values."""
    n = len(values)
    if n < 2:
        return 0.0
    m = sum(values) / n
    return math.sqrt(sum((v - m) ** 2 for v in values) / n)


def round_half_up(value: float, digits: int = 0) -> float:
    """Round with ties going up, matching how stored scores have always been rounded."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor
