"""Per-day signals derived from raw records."""

from __future__ import annotations

import math
from typing import Iterable, List, Mapping, Optional

from records.models import DailyMealRecord, SleepRecord, StageDurations

FIBER_TARGET_G = 21
# one psyllium dose stands in for roughly this much missing fiber
FIBER_PER_PREBIOTIC_DOSE_G = 2.75
PREBIOTIC_CODES = ("a1", "a2", "a3")

STAGES = ("deep", "rem", "core", "awake")


def sleep_hours(record: Optional[SleepRecord]) -> float:
    if record is None:
        return 0.0
    return record.total or 0.0


def stage_durations(record: Optional[SleepRecord]) -> StageDurations:
    """Resolve per-stage hours: explicit value when present, else the timeline sum for that stage."""
    if record is None:
        return StageDurations()
    explicit = {stage: getattr(record, stage) for stage in STAGES}
    from_timeline = dict.fromkeys(STAGES, 0.0)
    for interval in record.timeline:
        if interval.stage in from_timeline:
            from_timeline[interval.stage] += interval.hours
    resolved = {
        stage: explicit[stage] if explicit[stage] is not None else from_timeline[stage]
        for stage in STAGES
    }
    has_data = bool(record.timeline) or any(v is not None for v in explicit.values())
    return StageDurations(has_data=has_data, **resolved)


def sleep_deep_hours(record: Optional[SleepRecord]) -> float:
    return stage_durations(record).deep


def has_keyword(record: Optional[DailyMealRecord], keywords: Iterable[str]) -> bool:
    if record is None:
        return False
    keywords = tuple(keywords)
    return any(kw in meal.name for meal in record.meals for kw in keywords)


def parse_hour(time_value: Optional[str]) -> Optional[int]:
    if not time_value:
        return None
    try:
        return int(time_value.split(":")[0])
    except ValueError:
        return None


def meal_hours(record: Optional[DailyMealRecord]) -> List[int]:
    """Hour of every meal that carries a usable time, in list order."""
    if record is None:
        return []
    hours = (parse_hour(meal.time) for meal in record.meals)
    return [h for h in hours if h is not None]


def dinner_hour(record: Optional[DailyMealRecord]) -> Optional[int]:
    """The last timed meal of the day counts as dinner."""
    hours = meal_hours(record)
    return hours[-1] if hours else None


def prebiotic_achieved(day_fiber: float, checks: Optional[Mapping[str, bool]]) -> bool:
    if day_fiber >= FIBER_TARGET_G:
        return True
    needed = math.ceil((FIBER_TARGET_G - day_fiber) / FIBER_PER_PREBIOTIC_DOSE_G)
    checks = checks or {}
    taken = sum(1 for code in PREBIOTIC_CODES if checks.get(code))
    return taken >= needed
