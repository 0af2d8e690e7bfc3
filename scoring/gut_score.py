"""
Gut score composition.

Four weighted groups over the 7-day window:

    nutrition        55  fiber 15, diversity 10, fermented 12, polyphenol 8, regularity 10
    supplementation  15  probiotics 8, prebiotics 7
    elimination      15  frequency 8, quality 4, regularity 3
    lifestyle        15  water 6, sleep 6, steps 3

The total is the half-up rounded sum of the unrounded points, clamped to
[0, 100]. Days are always reduced in chronological order so repeated runs over
the same documents produce identical floats.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Mapping, Sequence

from records.models import DailyHealthLogRecord, DailyMealRecord, DailySupplementRecord, SleepRecord
from scoring import keywords
from scoring.aggregator import aggregate_day
from scoring.signals import (
    FIBER_TARGET_G,
    dinner_hour,
    has_keyword,
    meal_hours,
    prebiotic_achieved,
    sleep_deep_hours,
    sleep_hours,
)
from scoring.stats import mean, round_half_up, stddev
from scoring.window import WINDOW_DAYS

WATER_TARGET_L = 2.0
PROBIOTIC_CODES = ("m5", "e4", "m4", "e3")
PROBIOTIC_POINTS_PER_CHECK = 2
PROBIOTIC_MAX_PER_DAY = PROBIOTIC_POINTS_PER_CHECK * len(PROBIOTIC_CODES)
BOWEL_STATUS_POINTS = {"good": 4, "hard": 2, "loose": 2}
DINNER_CUTOFF_HOUR = 21
DEEP_SLEEP_BONUS_FRACTION = 0.10


def _r1(value: float) -> float:
    return round_half_up(value, 1)


def _r2(value: float) -> float:
    return round_half_up(value, 2)


def diversity_points(plant_count: int) -> int:
    if plant_count >= 20:
        return 10
    if plant_count >= 15:
        return 7
    if plant_count >= 10:
        return 5
    return 2


def bowel_regularity_points(observed_days: int) -> int:
    if observed_days >= 7:
        return 3
    if observed_days >= 5:
        return 2
    if observed_days >= 3:
        return 1
    return 0


def sleep_points(avg_hours: float) -> int:
    if avg_hours >= 7:
        return 6
    if avg_hours >= 6:
        return 4
    if avg_hours >= 5:
        return 2
    return 1


def step_points(avg_steps: float) -> int:
    if avg_steps >= 8000:
        return 3
    if avg_steps >= 6000:
        return 2
    if avg_steps >= 4000:
        return 1
    return 0


def sleep_bonus(hours: float) -> int:
    if hours >= 7:
        return 5
    if hours >= 6:
        return 0
    return -5


def step_bonus(avg_steps: float) -> int:
    if avg_steps >= 8000:
        return 5
    if avg_steps >= 6000:
        return 2
    if avg_steps >= 4000:
        return 0
    return -3


@dataclass(frozen=True)
class FiberFactor:
    avg: float
    pts: float
    target: int = FIBER_TARGET_G


@dataclass(frozen=True)
class DiversityFactor:
    plantCount: int
    pts: int


@dataclass(frozen=True)
class KeywordFactor:
    daysHit: int
    pts: float
    items: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class RegularityFactor:
    score: float
    pts: float


@dataclass(frozen=True)
class ProbioticFactor:
    rate: float
    pts: float


@dataclass(frozen=True)
class PrebioticFactor:
    rate: float
    pts: float
    type: str = "psyllium"


@dataclass(frozen=True)
class BowelFactor:
    freqDays: int
    status: str
    regScore: float
    pts: float


@dataclass(frozen=True)
class WaterFactor:
    avgL: float
    pts: float
    target: float = WATER_TARGET_L


@dataclass(frozen=True)
class SleepFactor:
    avgHrs: float
    pts: int


@dataclass(frozen=True)
class StepsFactor:
    avgSteps: int
    pts: int


@dataclass(frozen=True)
class GutFactors:
    fiber: FiberFactor
    diversity: DiversityFactor
    fermented: KeywordFactor
    polyphenol: KeywordFactor
    regularity: RegularityFactor
    probiotics: ProbioticFactor
    prebiotics: PrebioticFactor
    bowel: BowelFactor
    water: WaterFactor
    sleep: SleepFactor
    steps: StepsFactor

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class GutScoreResult:
    score: int
    factors: GutFactors

    def to_dict(self) -> Dict[str, Any]:
        return {"score": self.score, "factors": self.factors.to_dict()}


def average_steps(days: Sequence[str], health_log: Mapping[str, DailyHealthLogRecord]) -> float:
    steps = [health_log[d].steps for d in days if d in health_log and health_log[d].steps is not None]
    return mean(steps)


def _latest_bowel_status(days: Sequence[str], health_log: Mapping[str, DailyHealthLogRecord]) -> str:
    for d in reversed(days):
        log = health_log.get(d)
        if log is not None and log.bowel is not None:
            return log.bowel.status if log.bowel.status in BOWEL_STATUS_POINTS else "unknown"
    return "unknown"


def compute_gut_score(
    days: Sequence[str],
    meals: Mapping[str, DailyMealRecord],
    supplements: Mapping[str, DailySupplementRecord],
    health_log: Mapping[str, DailyHealthLogRecord],
    sleep: Mapping[str, SleepRecord],
    target_date: str,
) -> GutScoreResult:
    fiber_per_day: List[float] = []
    all_plants: Dict[str, None] = {}
    fermented_days = 0
    polyphenol_days = 0
    dinner_hours: List[int] = []
    all_meal_hours: List[int] = []
    probiotic_total = 0
    prebiotic_days = 0
    bowel_days = 0
    bowel_status_pts = 0
    water: List[float] = []
    sleep_per_day: List[float] = []

    for d in days:
        day_meals = meals.get(d)
        checks = supplements[d].checks if d in supplements else {}
        log = health_log.get(d)
        totals = aggregate_day(day_meals)

        fiber_per_day.append(totals.fiber)
        for plant in totals.plants:
            all_plants.setdefault(plant, None)

        if has_keyword(day_meals, keywords.FERMENTED):
            fermented_days += 1
        if has_keyword(day_meals, keywords.POLYPHENOL):
            polyphenol_days += 1

        dh = dinner_hour(day_meals)
        if dh is not None:
            dinner_hours.append(dh)
        all_meal_hours.extend(meal_hours(day_meals))

        probiotic_total += sum(PROBIOTIC_POINTS_PER_CHECK for code in PROBIOTIC_CODES if checks.get(code))
        if prebiotic_achieved(totals.fiber, checks):
            prebiotic_days += 1

        if log is not None:
            if log.water is not None:
                water.append(log.water)
            if log.bowel is not None:
                bowel_days += 1
                bowel_status_pts += BOWEL_STATUS_POINTS.get(log.bowel.status, 0)

        hours = sleep_hours(sleep.get(d))
        if hours > 0:
            sleep_per_day.append(hours)

    avg_fiber = mean(fiber_per_day)
    plant_count = len(all_plants)
    avg_water = mean(water)
    avg_sleep = mean(sleep_per_day)
    avg_steps = average_steps(days, health_log)

    # A. nutrition
    fiber_pts = min(15, avg_fiber / FIBER_TARGET_G * 15)
    diversity_pts = diversity_points(plant_count)
    fermented_pts = fermented_days / WINDOW_DAYS * 12
    polyphenol_pts = polyphenol_days / WINDOW_DAYS * 8

    if dinner_hours:
        early = sum(1 for h in dinner_hours if h < DINNER_CUTOFF_HOUR)
        dinner_pts = early / len(dinner_hours) * 4
    else:
        dinner_pts = 2
    meal_sd_pts = max(0, 6 - stddev(all_meal_hours)) if len(all_meal_hours) > 1 else 3
    regularity_pts = dinner_pts + meal_sd_pts

    # B. supplementation
    probiotic_rate = probiotic_total / (PROBIOTIC_MAX_PER_DAY * WINDOW_DAYS)
    probiotic_pts = probiotic_rate * 8
    prebiotic_pts = prebiotic_days / WINDOW_DAYS * 7

    # C. elimination
    bowel_freq_pts = bowel_days / WINDOW_DAYS * 8
    bowel_quality_pts = min(4, bowel_status_pts / bowel_days) if bowel_days else 0
    bowel_reg_pts = bowel_regularity_points(bowel_days)
    bowel_pts = bowel_freq_pts + bowel_quality_pts + bowel_reg_pts

    # D. lifestyle
    water_pts = min(6, avg_water / WATER_TARGET_L * 6)
    sleep_pts = sleep_points(avg_sleep)
    today_sleep = sleep.get(target_date)
    if today_sleep is not None:
        total_h = sleep_hours(today_sleep)
        if total_h > 0 and sleep_deep_hours(today_sleep) / total_h >= DEEP_SLEEP_BONUS_FRACTION:
            sleep_pts = min(6, sleep_pts + 1)
    steps_pts = step_points(avg_steps)

    total = round_half_up(
        fiber_pts + diversity_pts + fermented_pts + polyphenol_pts + regularity_pts
        + probiotic_pts + prebiotic_pts
        + bowel_pts
        + water_pts + sleep_pts + steps_pts
    )

    factors = GutFactors(
        fiber=FiberFactor(avg=_r1(avg_fiber), pts=_r1(fiber_pts)),
        diversity=DiversityFactor(plantCount=plant_count, pts=diversity_pts),
        fermented=KeywordFactor(daysHit=fermented_days, pts=_r1(fermented_pts)),
        polyphenol=KeywordFactor(daysHit=polyphenol_days, pts=_r1(polyphenol_pts)),
        # score is reported on a /10 scale although the two terms cap at 4 + 6
        regularity=RegularityFactor(score=round_half_up(regularity_pts / 10 * 10) / 10, pts=_r1(regularity_pts)),
        probiotics=ProbioticFactor(rate=_r2(probiotic_rate), pts=_r1(probiotic_pts)),
        prebiotics=PrebioticFactor(rate=_r2(prebiotic_days / WINDOW_DAYS), pts=_r1(prebiotic_pts)),
        bowel=BowelFactor(
            freqDays=bowel_days,
            status=_latest_bowel_status(days, health_log),
            regScore=bowel_reg_pts / 3,
            pts=_r1(bowel_pts),
        ),
        water=WaterFactor(avgL=_r2(avg_water), pts=_r1(water_pts)),
        sleep=SleepFactor(avgHrs=_r2(avg_sleep), pts=sleep_pts),
        steps=StepsFactor(avgSteps=int(round_half_up(avg_steps)), pts=steps_pts),
    )
    return GutScoreResult(score=int(min(100, max(0, total))), factors=factors)


def compute_overall_score(
    gut_score: float,
    days: Sequence[str],
    health_log: Mapping[str, DailyHealthLogRecord],
    sleep: Mapping[str, SleepRecord],
    target_date: str,
) -> int:
    """Gut score adjusted by the target day's sleep and the window's step average."""
    today_hours = sleep_hours(sleep.get(target_date))
    adjusted = gut_score + sleep_bonus(today_hours) + step_bonus(average_steps(days, health_log))
    return int(min(100, max(0, round_half_up(adjusted))))
