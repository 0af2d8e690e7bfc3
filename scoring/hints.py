"""Sleep-stage hints and the rebound alert, derived from the target day only."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from records.models import DailyHealthLogRecord, DailySupplementRecord, SleepRecord
from scoring.signals import stage_durations
from scoring.stats import round_half_up

# ideal share of total sleep, percent
DEEP_BAND = (10, 20)
REM_BAND = (20, 25)
CORE_BAND = (45, 55)
AWAKE_MAX = 5

LOW_STEPS = 5000
MAGNESIUM_CODE = "b1"

REBOUND_MIN_HOURS = 6.5
REBOUND_HIGH_HOURS = 7


@dataclass(frozen=True)
class StageHints:
    deep: Optional[str] = None
    rem: Optional[str] = None
    core: Optional[str] = None
    awake: Optional[str] = None

    def to_dict(self) -> Dict[str, Optional[str]]:
        return asdict(self)


@dataclass(frozen=True)
class ReboundAlert:
    risk: str
    message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _pct(hours: float, total: float) -> int:
    return int(round_half_up(hours / total * 100))


def _deep_hint(pct: int, health_log: Optional[DailyHealthLogRecord], supplements: Optional[DailySupplementRecord]) -> Optional[str]:
    # a share above the band produces no hint
    if pct >= DEEP_BAND[0]:
        return None
    prefix = f"Deep sleep {pct}% (ideal {DEEP_BAND[0]}-{DEEP_BAND[1]}%)."
    steps = health_log.steps if health_log is not None else None
    if steps and steps < LOW_STEPS:
        return f"{prefix} Only {int(steps):,} steps today; a 30-minute walk tends to deepen sleep."
    if supplements is None or not supplements.taken(MAGNESIUM_CODE):
        return f"{prefix} Magnesium ({MAGNESIUM_CODE}) not taken; it works best before bed."
    return prefix


def _rem_hint(pct: int) -> Optional[str]:
    low, high = REM_BAND
    if pct > high:
        return f"REM {pct}% (ideal {low}-{high}%). REM tends to rise after stress or drinking."
    if pct < low:
        return f"REM {pct}% (ideal {low}-{high}%). Extending the second half of the night usually helps."
    return None


def _core_hint(pct: int) -> Optional[str]:
    low, high = CORE_BAND
    if pct > high:
        return f"Core {pct}% (ideal {low}-{high}%). Core sleep is filling in for missing deep sleep."
    return None


def _awake_hint(pct: int) -> Optional[str]:
    if pct >= AWAKE_MAX:
        return f"Awake {pct}% (ideal <{AWAKE_MAX}%). Frequent waking; cutting fluids before bed usually helps."
    return None


def compute_stage_hints(
    sleep: Optional[SleepRecord],
    health_log: Optional[DailyHealthLogRecord] = None,
    supplements: Optional[DailySupplementRecord] = None,
) -> StageHints:
    if sleep is None or not sleep.total:
        return StageHints()
    stages = stage_durations(sleep)
    if not stages.has_data:
        return StageHints()
    total = sleep.total
    return StageHints(
        deep=_deep_hint(_pct(stages.deep, total), health_log, supplements),
        rem=_rem_hint(_pct(stages.rem, total)),
        core=_core_hint(_pct(stages.core, total)),
        awake=_awake_hint(_pct(stages.awake, total)),
    )


def stage_percentages(sleep: Optional[SleepRecord]) -> Optional[Dict[str, int]]:
    """Rounded share of each stage, or None when there is nothing to report."""
    if sleep is None or not sleep.total:
        return None
    stages = stage_durations(sleep)
    return {
        "deep": _pct(stages.deep, sleep.total),
        "rem": _pct(stages.rem, sleep.total),
        "core": _pct(stages.core, sleep.total),
        "awake": _pct(stages.awake, sleep.total),
    }


def compute_rebound_alert(sleep: Optional[SleepRecord]) -> Optional[ReboundAlert]:
    if sleep is None:
        return None
    total = sleep.total or 0
    if total < REBOUND_MIN_HOURS:
        return None
    return ReboundAlert(risk="high" if total >= REBOUND_HIGH_HOURS else "medium")
