from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pipeline.config import LLMSettings

from .base_agent import AgentUnavailable, BaseAgent


logger = logging.getLogger(__name__)

STAGE_NAMES = ("deep", "rem", "core", "awake")

_TEXT = {"type": ["string", "null"]}
_TIPS = {"type": ["array", "null"], "items": {"type": "string"}}


def _domain(**extra: Any) -> Dict[str, Any]:
    return {
        "type": ["object", "null"],
        "properties": {"insight": _TEXT, "tips": _TIPS, "correlation": _TEXT, **extra},
    }


NARRATIVE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "overall": {
            "type": ["object", "null"],
            "properties": {"headline": _TEXT, "topAction": _TEXT},
        },
        "meals": _domain(),
        "sleep": _domain(
            weekTrend=_TEXT,
            stageHintsMessages={
                "type": ["object", "null"],
                "properties": {name: _TEXT for name in STAGE_NAMES},
            },
            reboundAlertMessage=_TEXT,
        ),
        "supplements": _domain(),
        "weight": _domain(projection=_TEXT),
        "gut": _domain(),
        "crossDomain": {
            "type": ["array", "null"],
            "items": {
                "type": "object",
                "properties": {
                    "title": _TEXT,
                    "body": _TEXT,
                    "relatedTabs": _TIPS,
                },
            },
        },
    },
}


@dataclass(frozen=True)
class DomainAdvice:
    insight: str = ""
    tips: List[str] = field(default_factory=list)
    correlation: str = ""


@dataclass(frozen=True)
class SleepAdvice(DomainAdvice):
    week_trend: str = ""
    stage_hint_messages: Dict[str, Optional[str]] = field(default_factory=dict)
    rebound_message: Optional[str] = None


@dataclass(frozen=True)
class WeightAdvice(DomainAdvice):
    projection: str = ""


@dataclass(frozen=True)
class CrossDomainInsight:
    title: str
    body: str = ""
    related_tabs: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class Narrative:
    """Generated text for one advice entry. Every field defaults to empty."""
    headline: str = ""
    top_action: str = ""
    meals: DomainAdvice = field(default_factory=DomainAdvice)
    sleep: SleepAdvice = field(default_factory=SleepAdvice)
    supplements: DomainAdvice = field(default_factory=DomainAdvice)
    weight: WeightAdvice = field(default_factory=WeightAdvice)
    gut: DomainAdvice = field(default_factory=DomainAdvice)
    cross_domain: List[CrossDomainInsight] = field(default_factory=list)


def _encodable(value: str) -> bool:
    # JSON escapes can carry lone surrogates, which cannot be written as UTF-8
    try:
        value.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


def _text(value: Any) -> str:
    if not isinstance(value, str) or not _encodable(value):
        return ""
    return value.strip()


def _optional_text(value: Any) -> Optional[str]:
    text = _text(value)
    return text or None


def _strings(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [t for t in (_text(s) for s in value) if t]


def _section(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    section = data.get(key)
    return section if isinstance(section, dict) else {}


def parse_narrative(data: Dict[str, Any]) -> Narrative:
    """Normalize a validated model reply into a Narrative with safe fallbacks."""
    overall = _section(data, "overall")
    sleep = _section(data, "sleep")
    weight = _section(data, "weight")
    stage_raw = sleep.get("stageHintsMessages") if isinstance(sleep.get("stageHintsMessages"), dict) else {}

    cross_domain: List[CrossDomainInsight] = []
    for item in data.get("crossDomain") or []:
        if not isinstance(item, dict):
            continue
        title = _text(item.get("title"))
        if not title:
            continue
        cross_domain.append(
            CrossDomainInsight(title=title, body=_text(item.get("body")), related_tabs=_strings(item.get("relatedTabs")))
        )

    def domain(key: str) -> DomainAdvice:
        section = _section(data, key)
        return DomainAdvice(
            insight=_text(section.get("insight")),
            tips=_strings(section.get("tips")),
            correlation=_text(section.get("correlation")),
        )

    return Narrative(
        headline=_text(overall.get("headline")),
        top_action=_text(overall.get("topAction")),
        meals=domain("meals"),
        sleep=SleepAdvice(
            insight=_text(sleep.get("insight")),
            tips=_strings(sleep.get("tips")),
            correlation=_text(sleep.get("correlation")),
            week_trend=_text(sleep.get("weekTrend")),
            stage_hint_messages={name: _optional_text(stage_raw.get(name)) for name in STAGE_NAMES},
            rebound_message=_optional_text(sleep.get("reboundAlertMessage")),
        ),
        supplements=domain("supplements"),
        weight=WeightAdvice(
            insight=_text(weight.get("insight")),
            tips=_strings(weight.get("tips")),
            correlation=_text(weight.get("correlation")),
            projection=_text(weight.get("projection")),
        ),
        gut=domain("gut"),
        cross_domain=cross_domain,
    )


class AdviceAgent:
    """Turns the day's score breakdown into coaching text via the text-generation service."""

    def __init__(self, settings: LLMSettings):
        self.agent = BaseAgent(
            name="AdviceWriter",
            settings=settings,
            schema=NARRATIVE_SCHEMA,
            system_prompt=(
                """
You are a health coach. You receive a deterministic score breakdown computed from
the last 7 days of a person's meals, supplements, sleep, weight, bowel, step and
water logs, and you write short, specific advice from it.
Rules:
- Quote concrete numbers from the data. No generic advice ("keep a regular routine").
- Do not push calorie targets; mention calories only when a day is at or below 1400 kcal.
- insight/correlation/weekTrend/projection: at most 60 characters. tips: at most 2 items of 30 characters.
- headline/topAction: at most 20 characters.
- Output STRICT JSON only, no code fences.
"""
            ),
        )

    def build_request(self, context: Dict[str, Any]) -> str:
        hint_flags = context.get("stageHints") or {}
        fill = '"fill in or null"'
        stage_fills = ", ".join(f'"{name}": {fill if hint_flags.get(name) else "null"}' for name in STAGE_NAMES)
        rebound = '"rebound warning citing past data (<=50 chars)"' if context.get("reboundAlert") else "null"
        return (
            f"Data:\n{json.dumps(context, ensure_ascii=False, indent=2)}\n\n"
            "Return JSON in exactly this shape:\n"
            "{\n"
            '  "overall": {"headline": "...", "topAction": "..."},\n'
            '  "meals": {"insight": "...", "tips": ["...", "..."], "correlation": "..."},\n'
            '  "sleep": {"insight": "...", "tips": ["..."], "weekTrend": "...", "correlation": "...",\n'
            f'            "stageHintsMessages": {{{stage_fills}}},\n'
            f'            "reboundAlertMessage": {rebound}}},\n'
            '  "supplements": {"insight": "...", "tips": ["..."]},\n'
            '  "weight": {"insight": "...", "tips": ["..."], "projection": "...", "correlation": "..."},\n'
            '  "gut": {"insight": "...", "tips": ["..."], "correlation": "..."},\n'
            '  "crossDomain": [{"title": "...", "body": "...", "relatedTabs": ["meals", "sleep"]}]\n'
            "}"
        )

    def generate(self, context: Dict[str, Any]) -> Optional[Narrative]:
        """Return the narrative, or None when generation is unavailable or fails."""
        if not self.agent.settings.configured:
            logger.info("No OpenRouter API key configured; skipping narrative generation")
            return None
        try:
            data = self.agent.respond_json(self.build_request(context))
        except AgentUnavailable as exc:
            logger.warning("Narrative generation failed: %s", exc)
            return None
        narrative = parse_narrative(data)
        logger.debug("generate: headline=%r cross_domain=%d", narrative.headline, len(narrative.cross_domain))
        return narrative
