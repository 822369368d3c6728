"""
Confidence-gated betting tips.

A market becomes a tip only when the LOWER end of its Wilson score
interval clears the market's threshold and its intensity / minute guard
holds. The effective sample size grows with elapsed match time, so the
same probability is trusted more late in the match than at kick-off.

Survivors are ranked by probability and truncated to MAX_TIPS. Pure
filter + rank over already-calibrated probabilities.
"""
import logging
import math
from dataclasses import dataclass
from typing import Mapping, Optional

from football.numeric import clamp
from football.state import MatchSnapshot, ScoreLine, Tip

log = logging.getLogger("football.tips")


MAX_TIPS = 6

MIN_SAMPLE_SIZE = 10.0
BASE_SAMPLE_SIZE = 30.0
ELAPSED_SAMPLE_SIZE = 70.0

# ── Wilson lower-bound thresholds ────────────────────────────────────
THRESHOLD_RESULT = 0.55
THRESHOLD_LIVE_DRAW = 0.50
THRESHOLD_STANDARD = 0.60
THRESHOLD_DOUBLE_CHANCE = 0.70
THRESHOLD_DNB = 0.65
CORRECT_SCORE_FLOOR = 0.12
"""Raw probability floor for the single correct-score suggestion."""

# ── Guards ───────────────────────────────────────────────────────────
LIVE_DRAW_AFTER_MIN = 70
GOAL_LINES_BEFORE_MIN = 75
FIRST_GOAL_BEFORE_MIN = 60
NEXT_GOAL_BEFORE_MIN = 85

OVER25_MIN_LAMBDA = 2.4
UNDER25_MAX_LAMBDA = 2.0
OVER35_MIN_LAMBDA = 3.2
UNDER35_MAX_LAMBDA = 2.6
BTTS_YES_MIN_LAMBDA = 1.8
BTTS_NO_MAX_LAMBDA = 1.6
# corners / cards: observed so far + expected remaining
CORNERS_OVER_MIN_EXPECTED = 10.0
CORNERS_UNDER_MAX_EXPECTED = 6.0
CARDS_OVER_MIN_EXPECTED = 5.0
CARDS_UNDER_MAX_EXPECTED = 4.0


def effective_sample_size(time_remaining: float) -> float:
    return max(MIN_SAMPLE_SIZE,
               BASE_SAMPLE_SIZE + ELAPSED_SAMPLE_SIZE * (1.0 - time_remaining))


def wilson_interval(p: float, n: float, z: float = 1.96) -> tuple[float, float]:
    """Wilson score interval for a proportion p observed over n trials."""
    p = clamp(p, 0.0, 1.0)
    n = max(n, 1.0)
    z2 = z * z
    denom = 1.0 + z2 / n
    center = (p + z2 / (2.0 * n)) / denom
    margin = z * math.sqrt(p * (1.0 - p) / n + z2 / (4.0 * n * n)) / denom
    return clamp(center - margin, 0.0, 1.0), clamp(center + margin, 0.0, 1.0)


@dataclass(frozen=True)
class Candidate:
    market: str
    label: str
    threshold: float
    guard: bool = True


def _candidates(
    snap: MatchSnapshot,
    total_lambda: float,
    expected_corners: float,
    expected_cards: float,
) -> list[Candidate]:
    home = snap.home_team or "Home"
    away = snap.away_team or "Away"
    minute = snap.minute
    goal_lines_open = minute < GOAL_LINES_BEFORE_MIN
    corners_total = snap.corners_so_far + expected_corners
    cards_total = snap.cards_so_far + expected_cards

    if snap.goals_scored:
        goal_word = "next"
        goal_open = minute < NEXT_GOAL_BEFORE_MIN
    else:
        goal_word = "first"
        goal_open = minute < FIRST_GOAL_BEFORE_MIN

    return [
        Candidate("1_home", f"{home} to win", THRESHOLD_RESULT),
        Candidate("1_away", f"{away} to win", THRESHOLD_RESULT),
        Candidate("1_draw", "Draw", THRESHOLD_LIVE_DRAW, minute > LIVE_DRAW_AFTER_MIN),
        Candidate("ou25_over", "Over 2.5 goals", THRESHOLD_STANDARD,
                  goal_lines_open and total_lambda > OVER25_MIN_LAMBDA),
        Candidate("ou25_under", "Under 2.5 goals", THRESHOLD_STANDARD,
                  goal_lines_open and total_lambda < UNDER25_MAX_LAMBDA),
        Candidate("ou35_over", "Over 3.5 goals", THRESHOLD_STANDARD,
                  goal_lines_open and total_lambda > OVER35_MIN_LAMBDA),
        Candidate("ou35_under", "Under 3.5 goals", THRESHOLD_STANDARD,
                  goal_lines_open and total_lambda < UNDER35_MAX_LAMBDA),
        Candidate("btts_yes", "Both teams to score", THRESHOLD_STANDARD,
                  total_lambda > BTTS_YES_MIN_LAMBDA),
        Candidate("btts_no", "Both teams to score: no", THRESHOLD_STANDARD,
                  total_lambda < BTTS_NO_MAX_LAMBDA),
        Candidate("corners85_over", "Over 8.5 corners", THRESHOLD_STANDARD,
                  corners_total > CORNERS_OVER_MIN_EXPECTED),
        Candidate("corners85_under", "Under 8.5 corners", THRESHOLD_STANDARD,
                  corners_total < CORNERS_UNDER_MAX_EXPECTED),
        Candidate("cards45_over", "Over 4.5 cards", THRESHOLD_STANDARD,
                  cards_total > CARDS_OVER_MIN_EXPECTED),
        Candidate("cards45_under", "Under 4.5 cards", THRESHOLD_STANDARD,
                  cards_total < CARDS_UNDER_MAX_EXPECTED),
        Candidate("dc_1x", f"Double chance: {home} or draw", THRESHOLD_DOUBLE_CHANCE),
        Candidate("dc_12", f"Double chance: {home} or {away}", THRESHOLD_DOUBLE_CHANCE),
        Candidate("dc_x2", f"Double chance: draw or {away}", THRESHOLD_DOUBLE_CHANCE),
        Candidate("dnb_home", f"{home} draw no bet", THRESHOLD_DNB),
        Candidate("dnb_away", f"{away} draw no bet", THRESHOLD_DNB),
        Candidate("goal_home", f"{home} to score the {goal_word} goal", THRESHOLD_STANDARD, goal_open),
        Candidate("goal_away", f"{away} to score the {goal_word} goal", THRESHOLD_STANDARD, goal_open),
        Candidate("goal_none", "No more goals", THRESHOLD_STANDARD, snap.goals_scored),
    ]


def generate_tips(
    snap: MatchSnapshot,
    calibrated: Mapping[str, float],
    correct_scores: tuple[ScoreLine, ...],
    time_remaining: float,
    total_lambda: float,
    expected_corners: float,
    expected_cards: float,
    z: float = 1.96,
    intervals: Optional[dict[str, tuple[float, float]]] = None,
) -> tuple[Tip, ...]:
    """Gate, rank and truncate tip candidates.

    When an intervals dict is passed, the Wilson interval of every
    guarded-in market is recorded in it.
    """
    n = effective_sample_size(time_remaining)
    tips: list[Tip] = []

    for cand in _candidates(snap, total_lambda, expected_corners, expected_cards):
        if not cand.guard or cand.market not in calibrated:
            continue
        p = calibrated[cand.market]
        lo, hi = wilson_interval(p, n, z)
        if intervals is not None:
            intervals[cand.market] = (lo, hi)
        if lo > cand.threshold:
            tips.append(Tip(f"{cand.label} ({p * 100:.1f}%)", cand.market, p, lo))

    if correct_scores:
        best = correct_scores[0]
        if best.probability > CORRECT_SCORE_FLOOR:
            lo, _ = wilson_interval(best.probability, n, z)
            tips.append(Tip(
                f"Correct score {best.label} ({best.probability * 100:.1f}%)",
                "correct_score", best.probability, lo,
            ))

    tips.sort(key=lambda t: t.probability, reverse=True)
    log.debug("tips: n=%.1f z=%.3f candidates=%d kept=%d",
              n, z, len(tips), min(len(tips), MAX_TIPS))
    return tuple(tips[:MAX_TIPS])
