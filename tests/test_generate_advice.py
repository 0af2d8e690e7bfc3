import json

import pytest

from agents.advice_agent import AdviceAgent, Narrative
from monitoring import observability
from pipeline import cli
from pipeline.config import LLMSettings, Settings
from pipeline.runner import AdviceRun
from tests.conftest import TARGET, WINDOW, write_json


def _read(path):
    return json.loads(path.read_text(encoding="utf-8"))


def test_run_without_narrative_writes_both_documents(data_dir):
    entry = AdviceRun(Settings(target_date=TARGET, data_dir=data_dir)).run()

    assert entry["overall"]["score"] == 56
    assert entry["overall"]["headline"] == ""
    assert entry["gut"]["score"] == 49
    hints = entry["sleep"]["stageHints"]
    assert hints["deep"] is None and hints["rem"] is None
    assert hints["core"].startswith("Core 60%")
    assert hints["awake"].startswith("Awake 5%")
    assert entry["sleep"]["reboundAlert"] == {"risk": "high", "message": None}

    advice = _read(data_dir / "advice.json")
    assert list(advice) == [TARGET]
    assert advice[TARGET]["gut"]["factors"]["bowel"]["status"] == "hard"

    scores = _read(data_dir / "advice-scores.json")
    assert scores[TARGET] == {
        "overall": 56,
        "gut": 49,
        "sleep": 7.5,
        "weight": 62.4,
        "bodyFat": 21.5,
        "steps": 6500,
        "water": None,
        "fiber": 0.0,
        "kcal": 0,
    }


def test_rerun_is_deterministic_and_evicts_old_days(data_dir):
    write_json(data_dir / "advice.json", {"2026-09-30": {"stale": True}})
    settings = Settings(target_date=TARGET, data_dir=data_dir)
    first = AdviceRun(settings).run()
    second = AdviceRun(settings).run()

    first.pop("generated")
    second.pop("generated")
    assert first == second
    assert list(_read(data_dir / "advice.json")) == [TARGET]


def test_narrative_and_tracing_flow_through(data_dir, monkeypatch):
    settings = Settings(target_date=TARGET, data_dir=data_dir, llm=LLMSettings(api_key="k"), tracing_enabled=True)
    agent = AdviceAgent(settings.llm)
    seen = {}

    def fake_generate(context):
        seen["context"] = context
        return Narrative(headline="Fiber first", top_action="Add oats")

    monkeypatch.setattr(agent, "generate", fake_generate)
    calls = []
    monkeypatch.setattr(observability, "track_daily_score", lambda *a: calls.append("score"))
    monkeypatch.setattr(observability, "track_narrative_generation", lambda *a: calls.append(("narrative", a[3])))
    monkeypatch.setattr(observability, "flush", lambda: calls.append("flush"))

    entry = AdviceRun(settings, agent=agent).run()

    assert entry["overall"]["headline"] == "Fiber first"
    assert calls == ["score", ("narrative", True), "flush"]

    context = seen["context"]
    assert context["date"] == TARGET
    assert context["overallScore"] == 56
    assert [d["date"] for d in context["days"]] == WINDOW
    assert context["days"][0]["fiber"] == 12
    assert context["days"][0]["suppl"] == "m5,e4"
    assert context["sleep"]["stages"] == {"deep": 13, "rem": 21, "core": 60, "awake": 5}
    assert context["stageHints"] == {"deep": False, "rem": False, "core": True, "awake": True}
    assert context["reboundAlert"] is True


def test_cli_runs_with_explicit_arguments(data_dir, monkeypatch):
    monkeypatch.delenv("TARGET_DATE", raising=False)
    monkeypatch.delenv("OPENROUTER_API_KEY", raising=False)
    code = cli.main(["--date", TARGET, "--data-dir", str(data_dir), "--skip-narrative"])
    assert code == 0
    assert TARGET in _read(data_dir / "advice-scores.json")


def test_cli_reports_write_failure(tmp_path, monkeypatch):
    monkeypatch.delenv("TARGET_DATE", raising=False)
    blocker = tmp_path / "file"
    blocker.write_text("", encoding="utf-8")
    assert cli.main(["--date", TARGET, "--data-dir", str(blocker), "--skip-narrative"]) == 1


def test_cli_rejects_bad_date():
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--date", "10/10/2026", "--skip-narrative"])
    assert excinfo.value.code == 2


def test_reply_with_lone_surrogates_still_saves_documents(data_dir, monkeypatch):
    settings = Settings(target_date=TARGET, data_dir=data_dir, llm=LLMSettings(api_key="k"))
    agent = AdviceAgent(settings.llm)
    reply = '{"overall": {"headline": "\\ud800x", "topAction": "Add oats"}, "gut": {"insight": "fine \\udc00"}}'
    monkeypatch.setattr(agent.agent, "call_openrouter", lambda msgs: reply)

    entry = AdviceRun(settings, agent=agent).run()

    assert entry["overall"]["headline"] == ""
    assert entry["overall"]["topAction"] == "Add oats"
    assert entry["gut"]["insight"] == ""
    assert _read(data_dir / "advice.json")[TARGET]["overall"]["topAction"] == "Add oats"
    assert TARGET in _read(data_dir / "advice-scores.json")
