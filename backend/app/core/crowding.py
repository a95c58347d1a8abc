"""Passenger load classification."""

from enum import Enum


class CrowdingLevel(str, Enum):
    COMFORTABLE = "comfortable"
    MODERATE = "moderate"
    CROWDED = "crowded"
    FULL = "full"


# (upper bound exclusive, level), checked in order
_THRESHOLDS = (
    (0.40, CrowdingLevel.COMFORTABLE),
    (0.70, CrowdingLevel.MODERATE),
    (0.90, CrowdingLevel.CROWDED),
)


def _check(passenger_count: int, capacity: int) -> None:
    if capacity <= 0:
        raise ValueError(f"capacity must be positive, got {capacity}")
    if passenger_count < 0:
        raise ValueError(f"passenger count must not be negative, got {passenger_count}")


def classify(passenger_count: int, capacity: int) -> CrowdingLevel:
    """Map an occupancy ratio to a load level (ratio >= 0.90 is full)."""
    _check(passenger_count, capacity)
    ratio = passenger_count / capacity
    for bound, level in _THRESHOLDS:
        if ratio < bound:
            return level
    return CrowdingLevel.FULL


def load_percent(passenger_count: int, capacity: int) -> int:
    _check(passenger_count, capacity)
    return round(passenger_count / capacity * 100)
