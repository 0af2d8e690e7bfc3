import json
import os

import pytest

from records.persistence import ADVICE_FILE, SCORES_FILE, PersistenceManager, StoreWriteError, apply_retention
from scoring.window import score_window
from tests.conftest import write_json


def test_retention_keeps_only_the_current_window(tmp_path):
    store = PersistenceManager(tmp_path)
    existing = {f"2026-10-{d:02d}": {"overall": d} for d in range(1, 11)}
    existing["2026-10-12"] = {"overall": 12}
    write_json(tmp_path / ADVICE_FILE, existing)

    days = score_window("2026-10-10")
    kept = store.save_advice("2026-10-10", {"overall": 100}, days[0])

    # only keys before the window start are evicted; later dates survive
    assert sorted(kept) == days + ["2026-10-12"]
    on_disk = json.loads((tmp_path / ADVICE_FILE).read_text(encoding="utf-8"))
    assert sorted(on_disk) == days + ["2026-10-12"]
    assert on_disk["2026-10-10"] == {"overall": 100}
    assert "2026-10-03" not in on_disk


def test_retention_applies_to_score_history(tmp_path):
    store = PersistenceManager(tmp_path)
    write_json(tmp_path / SCORES_FILE, {"2026-09-01": {"overall": 1}, "2026-10-05": {"overall": 2}})
    kept = store.save_scores("2026-10-10", {"overall": 3}, "2026-10-04")
    assert sorted(kept) == ["2026-10-05", "2026-10-10"]


def test_apply_retention_keeps_cutoff_and_later():
    entries = {"2026-10-03": 1, "2026-10-04": 2, "2026-10-11": 3}
    assert apply_retention(entries, "2026-10-04") == {"2026-10-04": 2, "2026-10-11": 3}


def test_malformed_document_reads_as_absent(tmp_path):
    (tmp_path / "sleep.json").write_text("{not json", encoding="utf-8")
    store = PersistenceManager(tmp_path)
    assert store.read_document("sleep.json") is None
    assert store.read_document("missing.json") is None


def test_non_object_history_starts_fresh(tmp_path):
    write_json(tmp_path / ADVICE_FILE, ["not", "a", "mapping"])
    kept = PersistenceManager(tmp_path).save_advice("2026-10-10", {"x": 1}, "2026-10-04")
    assert kept == {"2026-10-10": {"x": 1}}


def test_non_ascii_text_is_written_verbatim(tmp_path):
    store = PersistenceManager(tmp_path)
    store.write_document(ADVICE_FILE, {"2026-10-10": {"headline": "腸活"}})
    assert "腸活" in (tmp_path / ADVICE_FILE).read_text(encoding="utf-8")


def test_unwritable_directory_raises(tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("", encoding="utf-8")
    with pytest.raises(StoreWriteError):
        PersistenceManager(blocker).write_document(ADVICE_FILE, {})


def test_unencodable_text_raises_store_error_without_temp_files(tmp_path):
    store = PersistenceManager(tmp_path)
    with pytest.raises(StoreWriteError):
        store.write_document(ADVICE_FILE, {"headline": json.loads('"\\ud800x"')})
    assert list(tmp_path.iterdir()) == []


def test_failed_replace_keeps_previous_file(tmp_path, monkeypatch):
    store = PersistenceManager(tmp_path)
    write_json(tmp_path / ADVICE_FILE, {"2026-10-09": {"overall": 50}})

    def refuse(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr(os, "replace", refuse)
    with pytest.raises(StoreWriteError):
        store.save_advice("2026-10-10", {"overall": 60}, "2026-10-04")

    assert json.loads((tmp_path / ADVICE_FILE).read_text(encoding="utf-8")) == {"2026-10-09": {"overall": 50}}
    assert sorted(p.name for p in tmp_path.iterdir()) == [ADVICE_FILE]
