"""
Advice entry assembly.

Merges the deterministic score data with an optional generated narrative into
the documents persisted in ``advice.json`` and ``advice-scores.json``. When no
narrative is available every text field is empty; the scores are always
present.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from agents.advice_agent import Narrative
from records.models import DailyHealthLogRecord, SleepRecord, WeightRecord
from scoring.aggregator import DayTotals
from scoring.gut_score import GutScoreResult
from scoring.hints import ReboundAlert, StageHints
from scoring.stats import round_half_up


@dataclass(frozen=True)
class ScoreData:
    gut: GutScoreResult
    overall: int
    stage_hints: StageHints
    rebound_alert: Optional[ReboundAlert]


def _first(*values: Optional[str]) -> Optional[str]:
    return next((v for v in values if v is not None), None)


def build_advice_entry(score: ScoreData, narrative: Optional[Narrative], generated_at: datetime) -> Dict[str, Any]:
    text = narrative or Narrative()
    hint_messages = text.sleep.stage_hint_messages
    computed_hints = score.stage_hints.to_dict()

    entry: Dict[str, Any] = {
        "generated": generated_at.strftime("%Y-%m-%dT%H:%M:%S"),
        "overall": {
            "headline": text.headline,
            "score": score.overall,
            "topAction": text.top_action,
        },
        "meals": {
            "insight": text.meals.insight,
            "tips": list(text.meals.tips),
            "correlation": text.meals.correlation,
        },
        "sleep": {
            "insight": text.sleep.insight,
            "tips": list(text.sleep.tips),
            "weekTrend": text.sleep.week_trend,
            "correlation": text.sleep.correlation,
            # generated wording wins; the computed hint is the fallback
            "stageHints": {
                stage: _first(hint_messages.get(stage), computed)
                for stage, computed in computed_hints.items()
            },
        },
        "supplements": {
            "insight": text.supplements.insight,
            "tips": list(text.supplements.tips),
        },
        "weight": {
            "insight": text.weight.insight,
            "tips": list(text.weight.tips),
            "projection": text.weight.projection,
            "correlation": text.weight.correlation,
        },
        "gut": {
            "score": score.gut.score,
            "factors": score.gut.factors.to_dict(),
            "insight": text.gut.insight,
            "tips": list(text.gut.tips),
            "correlation": text.gut.correlation,
        },
        "crossDomain": [
            {"title": item.title, "body": item.body, "relatedTabs": list(item.related_tabs)}
            for item in text.cross_domain
        ],
    }

    if score.rebound_alert is not None:
        entry["sleep"]["reboundAlert"] = {
            "risk": score.rebound_alert.risk,
            "message": text.sleep.rebound_message,
        }
    return entry


def build_score_record(
    score: ScoreData,
    today_totals: DayTotals,
    today_sleep: Optional[SleepRecord],
    today_log: Optional[DailyHealthLogRecord],
    today_weight: Optional[WeightRecord],
) -> Dict[str, Any]:
    """One row of the score history; unrecorded values (including zero readings) are null."""
    return {
        "overall": score.overall,
        "gut": score.gut.score,
        "sleep": round_half_up(today_sleep.total, 2) if today_sleep is not None else None,
        "weight": today_weight.weight if today_weight is not None else None,
        "bodyFat": today_weight.body_fat if today_weight is not None else None,
        "steps": (today_log.steps or None) if today_log is not None else None,
        "water": (today_log.water or None) if today_log is not None else None,
        "fiber": round_half_up(today_totals.fiber, 1),
        "kcal": int(round_half_up(today_totals.kcal)),
    }
