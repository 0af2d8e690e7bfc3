from dataclasses import dataclass
from typing import Optional, Tuple

from records.models import DailyMealRecord


@dataclass(frozen=True)
class DayTotals:
    kcal: float = 0.0
    protein: float = 0.0
    fat: float = 0.0
    carbs: float = 0.0
    fiber: float = 0.0
    plants: Tuple[str, ...] = ()


def aggregate_day(record: Optional[DailyMealRecord]) -> DayTotals:
    """Sum one day's macros and collect its distinct plant foods (first-seen order)."""
    if record is None or not record.meals:
        return DayTotals()
    kcal = protein = fat = carbs = fiber = 0.0
    plants = {}
    for meal in record.meals:
        kcal += meal.kcal
        protein += meal.protein
        fat += meal.fat
        carbs += meal.carbs
        fiber += meal.fiber
        for plant in meal.plants:
            plants.setdefault(plant, None)
    return DayTotals(kcal=kcal, protein=protein, fat=fat, carbs=carbs, fiber=fiber, plants=tuple(plants))
