from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Tuple


@dataclass(frozen=True)
class MealEntry:
    name: str = ""
    kcal: float = 0.0
    protein: float = 0.0
    fat: float = 0.0
    carbs: float = 0.0
    fiber: float = 0.0
    plants: Tuple[str, ...] = ()
    time: Optional[str] = None  # "HH:MM"


@dataclass(frozen=True)
class DailyMealRecord:
    meals: Tuple[MealEntry, ...] = ()


@dataclass(frozen=True)
class DailySupplementRecord:
    checks: Dict[str, bool] = field(default_factory=dict)

    def taken(self, code: str) -> bool:
        return bool(self.checks.get(code))


@dataclass(frozen=True)
class BowelObservation:
    status: Optional[str] = None  # good | hard | loose


@dataclass(frozen=True)
class DailyHealthLogRecord:
    water: Optional[float] = None
    steps: Optional[float] = None
    bowel: Optional[BowelObservation] = None


@dataclass(frozen=True)
class SleepInterval:
    stage: str
    start: datetime
    end: datetime

    @property
    def hours(self) -> float:
        return (self.end - self.start).total_seconds() / 3600


@dataclass(frozen=True)
class SleepRecord:
    total: float = 0.0
    deep: Optional[float] = None
    rem: Optional[float] = None
    core: Optional[float] = None
    awake: Optional[float] = None
    timeline: Tuple[SleepInterval, ...] = ()


@dataclass(frozen=True)
class StageDurations:
    """Per-stage sleep hours after resolving explicit values against the timeline."""
    deep: float = 0.0
    rem: float = 0.0
    core: float = 0.0
    awake: float = 0.0
    has_data: bool = False


@dataclass(frozen=True)
class WeightRecord:
    weight: Optional[float] = None
    body_fat: Optional[float] = None


@dataclass
class WindowData:
    """Everything loaded for one 7-day window, keyed by ISO date."""
    days: List[str]
    meals: Dict[str, DailyMealRecord]
    supplements: Dict[str, DailySupplementRecord]
    health_log: Dict[str, DailyHealthLogRecord]
    sleep: Dict[str, SleepRecord]
    weights: Dict[str, WeightRecord]
