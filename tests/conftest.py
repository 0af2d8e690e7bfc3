import json
from pathlib import Path

import pytest


TARGET = "2026-10-10"
WINDOW = [
    "2026-10-04", "2026-10-05", "2026-10-06", "2026-10-07",
    "2026-10-08", "2026-10-09", "2026-10-10",
]


def write_json(path: Path, data) -> None:
    path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")


def _day_meals():
    return {
        "meals": [
            {"name": "ヨーグルト と バナナ", "kcal": 250, "p": 8, "f": 5, "c": 40, "fiber": 4, "plants": ["banana"], "time": "07:30"},
            {"name": "鮭定食", "kcal": 600, "p": 32, "f": 18, "c": 70, "fiber": 8, "plants": ["rice", "spinach"], "time": "19:00"},
        ]
    }


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    """A week of documents: meals on the first five days, logs and sleep for all seven."""
    for day in WINDOW[:5]:
        write_json(tmp_path / f"meals-{day}.json", _day_meals())
    for day in WINDOW:
        write_json(tmp_path / f"suppl-{day}.json", {"checks": {"m5": True, "e4": True, "b1": False}})

    health_log = {}
    for day in WINDOW[:5]:
        health_log[day] = {"water": 1.5, "steps": 6500, "bowel": {"status": "good"}}
    health_log[WINDOW[4]]["bowel"] = {"status": "hard"}
    for day in WINDOW[5:]:
        health_log[day] = {"steps": 6500}
    write_json(tmp_path / "health-log.json", health_log)

    sleep = {day: {"total": 7.5} for day in WINDOW}
    sleep[TARGET] = {"total": 7.5, "deep": 1.0, "rem": 1.6, "core": 4.5, "awake": 0.4}
    write_json(tmp_path / "sleep.json", sleep)

    write_json(tmp_path / "weights.json", {"weights": {TARGET: 62.4}, "bodyFat": {TARGET: 21.5}})
    return tmp_path
