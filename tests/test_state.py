import pytest

from football.state import MatchSnapshot


def test_from_dict_accepts_form_field_names():
    snap = MatchSnapshot.from_dict({
        "homeTeam": " Arsenal ", "awayTeam": "Chelsea",
        "homePossession": 61, "awayPossession": 39,
        "homeShotsOnTarget": "4", "matchMinute": 55,
        "homeGoals": 1, "venue": "away", "showDiagnostics": "true",
    })
    assert snap.home_team == "Arsenal"
    assert snap.home_possession == 61
    assert snap.home_shots_on_target == 4
    assert snap.minute == 55
    assert snap.home_goals == 1
    assert snap.venue == "away"
    assert snap.show_diagnostics is True


def test_from_dict_repairs_bad_input():
    snap = MatchSnapshot.from_dict({
        "home_corners": -3, "away_corners": None, "home_red_cards": "x",
        "minute": 200, "home_possession": 140, "venue": "neutral",
    })
    assert snap.home_corners == 0
    assert snap.away_corners == 0
    assert snap.home_red_cards == 0
    assert snap.minute == 120
    assert snap.home_possession == 100
    assert snap.away_possession == 50
    assert snap.venue == "home"
    assert snap.home_team == ""


def test_round_trip_through_dict():
    snap = MatchSnapshot(home_team="A", minute=33, away_red_cards=1)
    assert MatchSnapshot.from_dict(snap.as_dict()) == snap


@pytest.mark.parametrize("bad", ["Infinity", "-Infinity", 1e400, "1e999", float("nan"), "NaN"])
def test_from_dict_ignores_non_finite_numbers(bad):
    snap = MatchSnapshot.from_dict({
        "matchMinute": bad, "homeCorners": bad,
        "homePossession": bad, "refereeIntensity": bad,
    })
    assert snap.minute == 0
    assert snap.home_corners == 0
    assert snap.home_possession == 50
    assert snap.referee_intensity == 1.0


def test_observed_corner_and_card_totals():
    snap = MatchSnapshot(home_corners=4, away_corners=3,
                         home_yellow_cards=2, away_yellow_cards=1, away_red_cards=1)
    assert snap.corners_so_far == 7
    assert snap.cards_so_far == 5
