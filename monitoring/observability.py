from typing import Any, Dict, List, Optional

from langfuse.decorators import langfuse_context, observe


@observe()
def track_narrative_generation(target_date: str, model: str, context: Dict[str, Any], succeeded: bool, headline: Optional[str] = None):
    return {"date": target_date, "model": model, "input": context, "succeeded": succeeded, "headline": headline}


@observe()
def track_daily_score(target_date: str, window: List[str], overall: int, gut: int, factors: Dict[str, Any]):
    return {"date": target_date, "window": window, "overall": overall, "gut": gut, "factors": factors}


def flush() -> None:
    langfuse_context.flush()
