import json

import pytest

import main


@pytest.fixture
def cli(tmp_path, monkeypatch):
    monkeypatch.setattr(main, "setup_logging", lambda: None)
    monkeypatch.setattr(main, "HISTORY_FILE", tmp_path / "history.json")
    monkeypatch.setattr(main, "EXPORT_DIR", tmp_path / "exports")

    def _run(*argv):
        return main.main(["--calibration", "", "--wait-calibration", *argv])
    return _run


def test_json_output_from_flags(cli, capsys):
    code = cli("--home-team", "Arsenal", "--away-team", "Chelsea",
               "--minute", "63", "--home-goals", "1", "--home-sot", "5", "--json")
    assert code == 0
    out = json.loads(capsys.readouterr().out)
    assert out["snapshot"]["minute"] == 63
    assert out["snapshot"]["home_shots_on_target"] == 5
    assert out["meta"]["calibration_status"] == "identity"
    assert out["goalscorer_label"] == "next"


def test_flags_override_snapshot_file(cli, capsys, tmp_path):
    snap = tmp_path / "match.json"
    snap.write_text(json.dumps({"homeTeam": "Ajax", "matchMinute": 20, "homeGoals": 2}))
    assert cli("--snapshot", str(snap), "--minute", "70", "--json") == 0
    out = json.loads(capsys.readouterr().out)
    assert out["snapshot"]["home_team"] == "Ajax"
    assert out["snapshot"]["home_goals"] == 2
    assert out["snapshot"]["minute"] == 70


def test_unreadable_snapshot(cli, tmp_path):
    bad = tmp_path / "match.json"
    bad.write_text("[1, 2]")
    assert cli("--snapshot", str(bad)) == 2
    assert cli("--snapshot", str(tmp_path / "missing.json")) == 2


def test_text_report(cli, capsys):
    assert cli("--home-team", "Arsenal", "--away-team", "Chelsea", "--minute", "10") == 0
    text = capsys.readouterr().out
    assert "Arsenal 0-0 Chelsea" in text
    assert "Betting tips" in text
    assert "First goal" in text


def test_history_and_export(cli, capsys, tmp_path):
    cli("--home-team", "Arsenal", "--away-team", "Chelsea", "--json", "--export")
    cli("--minute", "30", "--json", "--no-history")
    assert (tmp_path / "exports" / "football-prediction-Arsenal-vs-Chelsea.json").exists()
    stored = json.loads((tmp_path / "history.json").read_text())
    assert len(stored) == 1

    capsys.readouterr()
    assert cli("--history") == 0
    assert "Arsenal" in capsys.readouterr().out

    csv_path = tmp_path / "history.csv"
    assert cli("--history-csv", str(csv_path)) == 0
    assert csv_path.read_text().startswith("id,timestamp,home_team")

    assert cli("--clear-history") == 0
    assert not (tmp_path / "history.json").exists()
    cli("--history")
    assert "No stored predictions." in capsys.readouterr().out


def test_non_finite_snapshot_values_fall_back(cli, capsys, tmp_path):
    snap = tmp_path / "match.json"
    snap.write_text('{"homeCorners": Infinity, "matchMinute": 1e400, "awayCorners": 2}')
    assert cli("--snapshot", str(snap), "--json") == 0
    out = json.loads(capsys.readouterr().out)
    assert out["snapshot"]["home_corners"] == 0
    assert out["snapshot"]["minute"] == 0
    assert out["snapshot"]["away_corners"] == 2


def test_calibration_help_mentions_waiting():
    action = next(a for a in main.build_parser()._actions if a.dest == "calibration")
    assert "--wait-calibration" in action.help
