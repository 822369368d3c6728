import json
from dataclasses import replace

import pytest

from football.calibration import CalibrationState, parse_calibration
from football.model import FootballInPlayModel, score
from football.state import MatchSnapshot
from football.tips import MAX_TIPS


GRID = [
    MatchSnapshot(minute=m, home_goals=h, away_goals=a,
                  home_shots_on_target=s, away_shots_on_target=s // 2,
                  home_corners=s, away_yellow_cards=a, home_red_cards=int(m > 100))
    for m in (0, 25, 55, 76, 89, 95, 120)
    for h, a in ((0, 0), (1, 0), (0, 2), (3, 3))
    for s in (0, 6)
]


@pytest.mark.parametrize("snap", GRID)
def test_core_invariants(snap):
    pred = score(snap)
    raw = pred.raw
    assert raw["1_home"] + raw["1_draw"] + raw["1_away"] == pytest.approx(1.0, abs=1e-9)
    assert pred.distribution.joint.sum() == pytest.approx(1.0, abs=1e-9)
    assert len(pred.tips) <= MAX_TIPS
    json.dumps(pred.as_dict(), allow_nan=False)


def test_kickoff_scenario(kickoff):
    pred = score(kickoff)
    assert pred.intensity.home > pred.intensity.away
    assert pred.raw["1_home"] > pred.raw["1_away"]
    assert 0.2 < pred.raw["1_draw"] < 0.4
    assert 0.0 < pred.raw["goal_none"] < 1.0
    assert pred.goalscorer_label == "first"
    assert pred.calibration_status == "uninitialized"


def test_late_level_scenario(kickoff, late_level):
    neutral = score(kickoff)
    late = score(late_level)
    assert late.intensity.factors.tempo_mod > 1.0
    assert late.raw["1_draw"] > neutral.raw["1_draw"]
    assert late.intensity.total < 0.5
    assert late.raw["goal_none"] > 0.3
    assert late.raw["goal_none"] > neutral.raw["goal_none"]
    assert late.goalscorer_label == "next"


def test_score_is_pure(late_level):
    state = parse_calibration({"1_home": {"x": [0, 1], "y": [0.1, 0.8]}})
    first = score(late_level, state).as_dict()
    second = score(late_level, state).as_dict()
    assert json.dumps(first) == json.dumps(second)


def test_identity_calibration_leaves_markets_raw(late_level):
    pred = score(late_level, CalibrationState.identity())
    assert pred.calibrated == pred.raw
    assert pred.calibration_status == "identity"


def test_calibration_and_z_flow_through(kickoff):
    state = parse_calibration({
        "1_home": {"x": [0.0, 1.0], "y": [0.95, 0.95]},
        "_config": {"confidence_z": 1.0},
    })
    pred = score(kickoff, state)
    assert pred.calibrated["1_home"] == 0.95
    assert pred.raw["1_home"] != 0.95
    assert pred.confidence_z == 1.0
    assert "1_home" in {t.market for t in pred.tips}


def test_confident_looking_probability_is_not_tipped(kickoff):
    # flat 0.60 clears the 0.55 bar, its lower bound at kick-off does not
    state = parse_calibration({"1_home": {"x": [0.0, 1.0], "y": [0.60, 0.60]}})
    pred = score(kickoff, state)
    assert "1_home" not in {t.market for t in pred.tips}


def test_output_bundle_shape(late_level):
    out = score(replace(late_level, show_diagnostics=True)).as_dict()
    assert set(out) >= {"raw", "calibrated", "betting_tips", "meta", "joint",
                        "specific_results", "expected_goals", "diagnostics"}
    assert out["meta"]["calibration_status"] == "uninitialized"
    assert len(out["joint"]) == out["meta"]["max_k"] + 1
    assert out["raw"]["match_outcome"]["draw"] > 0.5
    assert "1_draw" in out["diagnostics"]["wilson"]
    assert "diagnostics" not in score(late_level).as_dict()


def test_dixon_coles_can_be_disabled(kickoff):
    plain = score(kickoff, tau=0.0)
    corrected = score(kickoff)
    assert corrected.raw["1_draw"] > plain.raw["1_draw"]


def test_model_wrapper_reads_current_calibration(kickoff):
    states = [CalibrationState.uninitialized()]
    model = FootballInPlayModel(lambda: states[-1])
    assert model.update(kickoff).calibration_status == "uninitialized"
    states.append(CalibrationState.identity())
    assert model.update(kickoff).calibration_status == "identity"
    assert FootballInPlayModel().update(kickoff).calibration_status == "uninitialized"


def test_corner_and_card_overs_can_be_tipped():
    state = parse_calibration({
        "corners85_over": {"x": [0.0, 1.0], "y": [0.999, 0.999]},
        "cards45_over": {"x": [0.0, 1.0], "y": [0.999, 0.999]},
    })
    busy = MatchSnapshot(minute=60, home_corners=6, away_corners=5,
                         home_yellow_cards=3, away_yellow_cards=3)
    markets = {t.market for t in score(busy, state).tips}
    assert {"corners85_over", "cards45_over"} <= markets

    quiet = {t.market for t in score(MatchSnapshot(minute=60), state).tips}
    assert "corners85_over" not in quiet
    assert "cards45_over" not in quiet
