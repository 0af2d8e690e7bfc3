from datetime import date, timedelta
from typing import List

WINDOW_DAYS = 7


def score_window(target_date: str, days: int = WINDOW_DAYS) -> List[str]:
    """ISO dates of the ``days`` calendar days ending at ``target_date``, oldest first."""
    end = date.fromisoformat(target_date)
    return [(end - timedelta(days=offset)).isoformat() for offset in range(days - 1, -1, -1)]
