from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from agents.advice_agent import AdviceAgent, Narrative
from monitoring import observability
from pipeline.assembler import ScoreData, build_advice_entry, build_score_record
from pipeline.config import Settings
from records.loader import load_window
from records.models import WindowData
from records.persistence import ADVICE_FILE, SCORES_FILE, PersistenceManager
from scoring import compute_gut_score, compute_overall_score, compute_rebound_alert, compute_stage_hints
from scoring.aggregator import aggregate_day
from scoring.hints import stage_percentages
from scoring.signals import sleep_hours
from scoring.stats import round_half_up
from scoring.window import score_window


logger = logging.getLogger(__name__)

PLANTS_IN_SUMMARY = 8


def compute_scores(window: WindowData, target_date: str) -> ScoreData:
    """Phase B: every deterministic number for the target date."""
    gut = compute_gut_score(window.days, window.meals, window.supplements, window.health_log, window.sleep, target_date)
    overall = compute_overall_score(gut.score, window.days, window.health_log, window.sleep, target_date)
    today_sleep = window.sleep.get(target_date)
    return ScoreData(
        gut=gut,
        overall=overall,
        stage_hints=compute_stage_hints(today_sleep, window.health_log.get(target_date), window.supplements.get(target_date)),
        rebound_alert=compute_rebound_alert(today_sleep),
    )


def _day_summary(window: WindowData, day: str) -> Dict[str, Any]:
    totals = aggregate_day(window.meals.get(day))
    log = window.health_log.get(day)
    checks = window.supplements[day].checks if day in window.supplements else {}
    return {
        "date": day,
        "kcal": int(round_half_up(totals.kcal)),
        "p": round_half_up(totals.protein, 1),
        "fiber": round_half_up(totals.fiber, 1),
        "plants": list(totals.plants[:PLANTS_IN_SUMMARY]),
        "sleepH": round_half_up(sleep_hours(window.sleep.get(day)), 2),
        "steps": (log.steps or None) if log else None,
        "water": (log.water or None) if log else None,
        "bowel": log.bowel.status if log and log.bowel else None,
        "suppl": ",".join(code for code, taken in checks.items() if taken),
    }


def build_narrative_context(window: WindowData, score: ScoreData, target_date: str) -> Dict[str, Any]:
    """Everything the text generator is allowed to see."""
    weight = window.weights.get(target_date)
    today_sleep = window.sleep.get(target_date)
    hints = score.stage_hints.to_dict()
    return {
        "date": target_date,
        "overallScore": score.overall,
        "gut": score.gut.to_dict(),
        "days": [_day_summary(window, d) for d in window.days],
        "weight": weight.weight if weight else None,
        "bodyFat": weight.body_fat if weight else None,
        "sleep": {
            "total": round_half_up(today_sleep.total, 2) if today_sleep and today_sleep.total else None,
            "stages": stage_percentages(today_sleep),
        },
        "stageHints": {stage: text is not None for stage, text in hints.items()},
        "reboundAlert": score.rebound_alert is not None,
    }


class AdviceRun:
    """One invocation for one target date: load, score, narrate, persist."""

    def __init__(self, settings: Settings, store: Optional[PersistenceManager] = None, agent: Optional[AdviceAgent] = None):
        self.settings = settings
        self.store = store or PersistenceManager(settings.data_dir)
        self.agent = agent or AdviceAgent(settings.llm)

    def generate_narrative(self, window: WindowData, score: ScoreData) -> Optional[Narrative]:
        context = build_narrative_context(window, score, self.settings.target_date)
        narrative = self.agent.generate(context)
        if self.settings.tracing_enabled:
            observability.track_narrative_generation(
                self.settings.target_date,
                self.settings.llm.model,
                context,
                narrative is not None,
                narrative.headline if narrative else None,
            )
        return narrative

    def run(self) -> Dict[str, Any]:
        target = self.settings.target_date
        days = score_window(target)
        logger.info("Generating advice for %s (window %s..%s)", target, days[0], days[-1])

        window = load_window(self.store, days, self.settings.tz)
        score = compute_scores(window, target)
        logger.info("Scores: overall=%d gut=%d", score.overall, score.gut.score)
        if self.settings.tracing_enabled:
            observability.track_daily_score(target, days, score.overall, score.gut.score, score.gut.factors.to_dict())

        narrative = self.generate_narrative(window, score)
        if narrative is None:
            logger.info("No narrative; saving scores with empty advice text")

        entry = build_advice_entry(score, narrative, self.settings.now())
        cutoff = days[0]
        self.store.save_advice(target, entry, cutoff)
        logger.info("Wrote %s", self.store.path(ADVICE_FILE))

        record = build_score_record(
            score,
            aggregate_day(window.meals.get(target)),
            window.sleep.get(target),
            window.health_log.get(target),
            window.weights.get(target),
        )
        self.store.save_scores(target, record, cutoff)
        logger.info("Wrote %s", self.store.path(SCORES_FILE))

        if self.settings.tracing_enabled:
            observability.flush()
        return entry
