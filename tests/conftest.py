import json
from pathlib import Path

import pytest

from football.state import MatchSnapshot


@pytest.fixture
def kickoff():
    """Scoreless, minute 0, perfectly balanced stats."""
    return MatchSnapshot(home_team="Arsenal", away_team="Chelsea", minute=0, venue="home")


@pytest.fixture
def late_level():
    """85th minute, 1-1, home dominating shots on target."""
    return MatchSnapshot(
        home_team="Arsenal", away_team="Chelsea",
        minute=85, home_goals=1, away_goals=1,
        home_possession=58, away_possession=42,
        home_shots_on_target=8, away_shots_on_target=2,
    )


@pytest.fixture
def write_doc(tmp_path):
    """Write a calibration document to disk and return its path."""
    def _write(doc, name="calibration.json") -> Path:
        path = tmp_path / name
        path.write_text(doc if isinstance(doc, str) else json.dumps(doc), encoding="utf-8")
        return path
    return _write
