import json
from datetime import datetime, timezone

from football.history import PredictionHistory, export_path, export_prediction
from football.model import score
from football.state import MatchSnapshot


def _result(minute=0, home="Arsenal", away="Chelsea"):
    return score(MatchSnapshot(home_team=home, away_team=away, minute=minute)).as_dict()


def test_history_is_newest_first_and_capped(tmp_path):
    history = PredictionHistory(tmp_path / "hist.json", cap=3)
    for minute in range(5):
        history.append(_result(minute))
    records = history.records()
    assert len(records) == 3
    assert [r["snapshot"]["minute"] for r in records] == [4, 3, 2]
    assert len({r["id"] for r in records}) == 3


def test_history_record_fields(tmp_path):
    history = PredictionHistory(tmp_path / "hist.json")
    ts = datetime(2024, 5, 1, 19, 30, tzinfo=timezone.utc)
    record = history.append(_result(), timestamp=ts)
    assert record["timestamp"] == "2024-05-01T19:30:00+00:00"
    assert record["snapshot"]["home_team"] == "Arsenal"
    assert history.records()[0]["id"] == record["id"]


def test_corrupt_history_reads_empty(tmp_path):
    path = tmp_path / "hist.json"
    path.write_text("{broken", encoding="utf-8")
    history = PredictionHistory(path)
    assert history.records() == []
    history.append(_result())
    assert len(history.records()) == 1


def test_clear(tmp_path):
    history = PredictionHistory(tmp_path / "hist.json")
    history.append(_result())
    history.clear()
    assert history.records() == []
    history.clear()


def test_to_frame(tmp_path):
    history = PredictionHistory(tmp_path / "hist.json")
    assert history.to_frame().empty
    history.append(_result(30))
    frame = history.to_frame()
    assert list(frame.columns) == [
        "id", "timestamp", "home_team", "away_team", "minute", "score",
        "home_win", "draw", "away_win", "top_tip",
    ]
    row = frame.iloc[0]
    assert row["minute"] == 30
    assert row["score"] == "0-0"
    assert abs(row["home_win"] + row["draw"] + row["away_win"] - 1.0) < 1e-9


def test_export(tmp_path):
    result = _result(home="Man United", away="")
    path = export_prediction(result, tmp_path / "out")
    assert path == export_path(result, tmp_path / "out")
    assert path.name == "football-prediction-Man-United-vs-team.json"
    assert json.loads(path.read_text(encoding="utf-8")) == result
