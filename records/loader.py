"""
Raw document parsing.

Turns the JSON documents written by the tracking app into the typed records in
``records.models``. Parsing is tolerant: a missing or malformed field becomes
zero/empty/None and a malformed document is treated as absent. Nothing here
raises on bad input.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, tzinfo
from functools import partial
from typing import Any, Dict, Iterable, List, Optional

from records.models import (
    BowelObservation,
    DailyHealthLogRecord,
    DailyMealRecord,
    DailySupplementRecord,
    MealEntry,
    SleepInterval,
    SleepRecord,
    WeightRecord,
    WindowData,
)
from records.persistence import PersistenceManager


logger = logging.getLogger(__name__)


def _number(value: Any) -> Optional[float]:
    # bool is an int subclass; a checkbox value is never a measurement
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return value


def _number_or_zero(value: Any) -> float:
    n = _number(value)
    return n if n is not None else 0.0


def _parse_instant(value: Any) -> Optional[datetime]:
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def parse_meal_entry(raw: Any) -> Optional[MealEntry]:
    if not isinstance(raw, dict):
        return None
    plants = raw.get("plants")
    name = raw.get("name")
    time = raw.get("time")
    return MealEntry(
        name=name if isinstance(name, str) else "",
        kcal=_number_or_zero(raw.get("kcal")),
        protein=_number_or_zero(raw.get("p")),
        fat=_number_or_zero(raw.get("f")),
        carbs=_number_or_zero(raw.get("c")),
        fiber=_number_or_zero(raw.get("fiber")),
        plants=tuple(p for p in plants if isinstance(p, str)) if isinstance(plants, list) else (),
        time=time if isinstance(time, str) and time else None,
    )


def parse_meals(raw: Any) -> Optional[DailyMealRecord]:
    """Parse a ``meals-<date>.json`` document; None when the document is unusable."""
    if not isinstance(raw, dict) or not isinstance(raw.get("meals"), list):
        return None
    entries = [parse_meal_entry(m) for m in raw["meals"]]
    return DailyMealRecord(meals=tuple(e for e in entries if e is not None))


def parse_supplements(raw: Any) -> Optional[DailySupplementRecord]:
    if not isinstance(raw, dict):
        return None
    checks = raw.get("checks")
    if not isinstance(checks, dict):
        return DailySupplementRecord()
    return DailySupplementRecord(checks={str(k): bool(v) for k, v in checks.items()})


def parse_health_log_day(raw: Any) -> Optional[DailyHealthLogRecord]:
    if not isinstance(raw, dict):
        return None
    bowel_raw = raw.get("bowel")
    bowel: Optional[BowelObservation] = None
    if isinstance(bowel_raw, dict):
        status = bowel_raw.get("status")
        bowel = BowelObservation(status=status if isinstance(status, str) else None)
    elif bowel_raw:
        bowel = BowelObservation(status=None)
    return DailyHealthLogRecord(
        water=_number(raw.get("water")),
        steps=_number(raw.get("steps")),
        bowel=bowel,
    )


def _localize(instant: datetime, tz: Optional[tzinfo]) -> datetime:
    if instant.tzinfo is not None:
        return instant
    return instant.replace(tzinfo=tz) if tz is not None else instant.astimezone()


def parse_sleep_interval(raw: Any, tz: Optional[tzinfo] = None) -> Optional[SleepInterval]:
    """Parse one timeline item. A naive instant paired with an aware one is read as local time in ``tz``."""
    if not isinstance(raw, dict) or not isinstance(raw.get("v"), str):
        return None
    start = _parse_instant(raw.get("s"))
    end = _parse_instant(raw.get("e"))
    if start is None or end is None:
        return None
    if (start.tzinfo is None) != (end.tzinfo is None):
        start, end = _localize(start, tz), _localize(end, tz)
    return SleepInterval(stage=raw["v"], start=start, end=end)


def parse_sleep(raw: Any, tz: Optional[tzinfo] = None) -> Optional[SleepRecord]:
    if not isinstance(raw, dict):
        return None
    timeline_raw = raw.get("timeline")
    timeline: List[SleepInterval] = []
    if isinstance(timeline_raw, list):
        for item in timeline_raw:
            interval = parse_sleep_interval(item, tz)
            if interval is not None:
                timeline.append(interval)
    return SleepRecord(
        total=_number_or_zero(raw.get("total")),
        deep=_number(raw.get("deep")),
        rem=_number(raw.get("rem")),
        core=_number(raw.get("core")),
        awake=_number(raw.get("awake")),
        timeline=tuple(timeline),
    )


def _parse_by_date(raw: Any, parser, days: Iterable[str]) -> Dict[str, Any]:
    if not isinstance(raw, dict):
        return {}
    parsed: Dict[str, Any] = {}
    for day in days:
        record = parser(raw.get(day))
        if record is not None:
            parsed[day] = record
    return parsed


def parse_weights(raw: Any, days: Iterable[str]) -> Dict[str, WeightRecord]:
    """Parse ``weights.json``; a zero value is treated as unrecorded."""
    if not isinstance(raw, dict):
        return {}
    weights = raw.get("weights") if isinstance(raw.get("weights"), dict) else {}
    body_fat = raw.get("bodyFat") if isinstance(raw.get("bodyFat"), dict) else {}
    parsed: Dict[str, WeightRecord] = {}
    for day in days:
        w = _number(weights.get(day)) or None
        bf = _number(body_fat.get(day)) or None
        if w is not None or bf is not None:
            parsed[day] = WeightRecord(weight=w, body_fat=bf)
    return parsed


def load_window(store: PersistenceManager, days: List[str], tz: Optional[tzinfo] = None) -> WindowData:
    """Read every document the window needs. Absent or malformed documents are simply missing.

    ``tz`` is the zone assumed for naive sleep timestamps; the host's local zone when None.
    """
    meals: Dict[str, DailyMealRecord] = {}
    supplements: Dict[str, DailySupplementRecord] = {}
    for day in days:
        meal_doc = store.read_document(f"meals-{day}.json")
        if meal_doc is not None:
            record = parse_meals(meal_doc)
            if record is None:
                logger.warning("meals-%s.json has no meal list; treating as empty", day)
            else:
                meals[day] = record
        suppl_doc = store.read_document(f"suppl-{day}.json")
        if suppl_doc is not None:
            suppl = parse_supplements(suppl_doc)
            if suppl is not None:
                supplements[day] = suppl

    window = WindowData(
        days=list(days),
        meals=meals,
        supplements=supplements,
        health_log=_parse_by_date(store.read_document("health-log.json"), parse_health_log_day, days),
        sleep=_parse_by_date(store.read_document("sleep.json"), partial(parse_sleep, tz=tz), days),
        weights=parse_weights(store.read_document("weights.json"), days),
    )
    logger.debug(
        "load_window: meals=%d suppl=%d health_log=%d sleep=%d weights=%d",
        len(window.meals), len(window.supplements), len(window.health_log), len(window.sleep), len(window.weights),
    )
    return window
