from zoneinfo import ZoneInfo

from records.loader import (
    load_window,
    parse_health_log_day,
    parse_meals,
    parse_sleep,
    parse_supplements,
    parse_weights,
)
from records.persistence import PersistenceManager
from tests.conftest import TARGET, WINDOW, write_json


def test_parse_meals_tolerates_bad_fields():
    record = parse_meals({
        "meals": [
            {"name": "納豆", "kcal": "300", "fiber": 4.5, "plants": ["soy", 3], "time": ""},
            "garbage",
            {"kcal": float("nan"), "p": True},
        ]
    })
    assert len(record.meals) == 2
    first, second = record.meals
    assert first.kcal == 0
    assert first.fiber == 4.5
    assert first.plants == ("soy",)
    assert first.time is None
    assert second.name == ""
    assert second.kcal == 0
    assert second.protein == 0


def test_parse_meals_without_list_is_unusable():
    assert parse_meals({"meals": "none"}) is None
    assert parse_meals([]) is None
    assert parse_meals({"meals": []}).meals == ()


def test_parse_supplements_coerces_checks():
    assert parse_supplements({"checks": {"m5": 1, "e4": 0}}).checks == {"m5": True, "e4": False}
    assert parse_supplements({}).checks == {}
    assert parse_supplements("x") is None


def test_parse_health_log_day():
    day = parse_health_log_day({"water": 1.2, "steps": "8000", "bowel": {"status": "loose"}})
    assert day.water == 1.2
    assert day.steps is None
    assert day.bowel.status == "loose"

    assert parse_health_log_day({"bowel": True}).bowel.status is None
    assert parse_health_log_day({"bowel": {}}).bowel is not None
    assert parse_health_log_day({"bowel": None}).bowel is None
    assert parse_health_log_day(None) is None


def test_parse_sleep_keeps_valid_intervals_only():
    record = parse_sleep({
        "total": 7.25,
        "deep": None,
        "timeline": [
            {"v": "deep", "s": "2026-10-10T01:00:00Z", "e": "2026-10-10T02:30:00Z"},
            {"v": "rem", "s": "not a time", "e": "2026-10-10T03:00:00Z"},
            {"s": "2026-10-10T03:00:00Z", "e": "2026-10-10T04:00:00Z"},
        ],
    })
    assert record.total == 7.25
    assert record.deep is None
    assert len(record.timeline) == 1
    assert record.timeline[0].hours == 1.5


def test_naive_instant_next_to_aware_one_is_read_in_configured_zone():
    record = parse_sleep(
        {
            "total": 1,
            "timeline": [{"v": "core", "s": "2026-10-10T03:00:00", "e": "2026-10-10T04:30:00+09:00"}],
        },
        tz=ZoneInfo("Asia/Tokyo"),
    )
    assert len(record.timeline) == 1
    assert record.timeline[0].hours == 1.5


def test_offsets_without_colon_are_accepted():
    record = parse_sleep({
        "total": 1,
        "timeline": [{"v": "deep", "s": "2026-10-10T01:00:00+0900", "e": "2026-10-10T01:45:00+0900"}],
    })
    assert record.timeline[0].hours == 0.75


def test_load_window_passes_zone_to_sleep_timeline(tmp_path):
    write_json(tmp_path / "sleep.json", {
        TARGET: {"total": 2, "timeline": [{"v": "rem", "s": "2026-10-10T05:00:00+09:00", "e": "2026-10-10T06:00:00"}]},
    })
    window = load_window(PersistenceManager(tmp_path), WINDOW, ZoneInfo("Asia/Tokyo"))
    assert window.sleep[TARGET].timeline[0].hours == 1


def test_parse_weights_treats_zero_as_unrecorded():
    raw = {"weights": {"2026-10-09": 0, TARGET: 62.4}, "bodyFat": {TARGET: 0}}
    parsed = parse_weights(raw, ["2026-10-09", TARGET])
    assert "2026-10-09" not in parsed
    assert parsed[TARGET].weight == 62.4
    assert parsed[TARGET].body_fat is None


def test_load_window_reads_fixture_week(data_dir):
    window = load_window(PersistenceManager(data_dir), WINDOW)
    assert window.days == WINDOW
    assert sorted(window.meals) == WINDOW[:5]
    assert sorted(window.supplements) == WINDOW
    assert window.health_log[WINDOW[6]].water is None
    assert window.sleep[TARGET].core == 4.5
    assert window.weights[TARGET].body_fat == 21.5


def test_load_window_skips_malformed_documents(tmp_path):
    (tmp_path / f"meals-{TARGET}.json").write_text("{broken", encoding="utf-8")
    write_json(tmp_path / f"suppl-{TARGET}.json", {"checks": {"m5": True}})
    write_json(tmp_path / "sleep.json", ["not", "keyed", "by", "date"])
    window = load_window(PersistenceManager(tmp_path), WINDOW)
    assert window.meals == {}
    assert window.sleep == {}
    assert window.supplements[TARGET].taken("m5")
