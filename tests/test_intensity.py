import math
from dataclasses import replace

import pytest

from football.intensity import (
    CARD_BOUNDS,
    LAMBDA_MAX,
    LAMBDA_MIN,
    estimate_intensity,
    match_phase,
    shot_efficiency,
    shrink,
    tempo_modifier,
    widened_bounds,
    SOT_BOUNDS,
)
from football.state import MatchSnapshot


def test_kickoff_home_edge_only(kickoff):
    lam = estimate_intensity(kickoff)
    assert lam.home == pytest.approx(1.4 * 1.1, rel=1e-9)
    assert lam.away == pytest.approx(1.2, rel=1e-9)
    assert lam.home > lam.away


def test_venue_away_moves_bonus(kickoff):
    lam = estimate_intensity(replace(kickoff, venue="away"))
    assert lam.home == pytest.approx(1.4, rel=1e-9)
    assert lam.away == pytest.approx(1.2 * 1.1, rel=1e-9)


def test_phase_split():
    assert match_phase(0) == (False, 1.0, 1.0)
    is_extra, remaining, factor = match_phase(105)
    assert is_extra and factor == 0.7
    assert remaining == pytest.approx(0.5)
    assert match_phase(90)[1] == 0.05
    assert match_phase(500) == match_phase(120)


def test_extra_time_lowers_rate():
    regulation = estimate_intensity(MatchSnapshot(minute=45))
    extra = estimate_intensity(MatchSnapshot(minute=105))
    assert extra.factors.is_extra_time
    assert extra.home < regulation.home


@pytest.mark.parametrize("minute", [0, 10, 30, 60, 80, 95, 118])
def test_home_lambda_monotone_in_shots_on_target(minute):
    base = MatchSnapshot(minute=minute, home_shots_off_target=3, away_shots_on_target=2)
    previous = 0.0
    for sot in range(0, 20):
        lam = estimate_intensity(replace(base, home_shots_on_target=sot)).home
        assert lam >= previous - 1e-12
        previous = lam


def test_shot_clamp_widens_with_time():
    early = widened_bounds(SOT_BOUNDS, 2)
    late = widened_bounds(SOT_BOUNDS, 80)
    assert early[0] > late[0]
    assert early[1] < late[1]
    assert late == SOT_BOUNDS


def test_efficiency_prior_without_shots():
    assert shot_efficiency(0, 0) == pytest.approx(0.35)
    assert shot_efficiency(5, 0) > 0.35
    assert shot_efficiency(0, 5) < 0.35


def test_shrink_weights_baseline_early():
    assert shrink(6, 2, 0) == pytest.approx(2)
    assert shrink(6, 2, 20) == pytest.approx(4)
    assert shrink(6, 2, 90) > 5


def _red_card_ratio(minute):
    clean = MatchSnapshot(minute=minute)
    red = replace(clean, home_red_cards=1)
    return estimate_intensity(red).home / estimate_intensity(clean).home


def test_red_card_reduces_home_lambda():
    clean = MatchSnapshot(minute=20)
    red = replace(clean, home_red_cards=1)
    assert estimate_intensity(red).home < estimate_intensity(clean).home


def test_early_red_card_costs_more_than_late():
    assert _red_card_ratio(20) < _red_card_ratio(85)
    early_drop = (estimate_intensity(MatchSnapshot(minute=20)).home
                  - estimate_intensity(MatchSnapshot(minute=20, home_red_cards=1)).home)
    late_drop = (estimate_intensity(MatchSnapshot(minute=85)).home
                 - estimate_intensity(MatchSnapshot(minute=85, home_red_cards=1)).home)
    assert early_drop > late_drop


def test_opponent_cards_are_a_tailwind():
    clean = MatchSnapshot(minute=60)
    booked = replace(clean, away_yellow_cards=3)
    assert estimate_intensity(booked).home > estimate_intensity(clean).home


def test_trailing_side_chases():
    lam = estimate_intensity(MatchSnapshot(minute=60, home_goals=0, away_goals=2))
    assert lam.factors.home.game_state > 1.0
    assert lam.factors.away.game_state < 1.0


def test_tempo_modifier():
    assert tempo_modifier(60, 0) == 1.0
    assert tempo_modifier(90, 0) == pytest.approx(1.15)
    assert tempo_modifier(90, 1) == pytest.approx(0.925)
    assert tempo_modifier(90, 2) == tempo_modifier(90, 5)
    assert tempo_modifier(120, 0) == pytest.approx(1.15)


def test_level_late_game_boosts_both(late_level):
    lam = estimate_intensity(late_level)
    assert lam.factors.tempo_mod > 1.0
    assert lam.factors.home.game_state == lam.factors.tempo_mod
    assert lam.factors.away.game_state == lam.factors.tempo_mod


def test_lambda_stays_in_bounds_for_extreme_stats():
    wild = MatchSnapshot(
        minute=89, home_possession=100, away_possession=0,
        home_shots_on_target=60, home_corners=40, away_red_cards=4,
        away_yellow_cards=10, home_goals=0, away_goals=9,
    )
    lam = estimate_intensity(wild)
    assert LAMBDA_MIN <= lam.home <= LAMBDA_MAX
    assert LAMBDA_MIN <= lam.away <= LAMBDA_MAX


def test_red_card_factor_eases_late():
    early = estimate_intensity(MatchSnapshot(minute=20, home_red_cards=1))
    late = estimate_intensity(MatchSnapshot(minute=85, home_red_cards=1))
    assert CARD_BOUNDS[0] < early.factors.home.cards < late.factors.home.cards < 1.0


def test_lambda_is_rate_times_factor_product():
    snap = MatchSnapshot(minute=30, home_shots_on_target=3, away_corners=2,
                         home_possession=60, away_possession=40)
    lam = estimate_intensity(snap)
    _, remaining, phase = match_phase(30)
    rate = 1.4 * 1.1 * phase * remaining
    assert lam.home == pytest.approx(rate * math.prod(lam.factors.home.as_dict().values()))
