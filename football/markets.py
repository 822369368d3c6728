"""
Market derivation from the remaining-goal distribution.

Every probability here is "raw" — straight from the model, before any
calibration curve. Markets are keyed by the names the calibration
document uses:

    1_home 1_draw 1_away              final result (current score included)
    ou25_* ou35_*                     remaining goals over/under
    corners85_* cards45_*             auxiliary Poisson sub-models
    dc_1x dc_12 dc_x2                 double chance
    dnb_home dnb_away                 draw no bet
    btts_yes btts_no                  both score among remaining goals
    goal_home goal_away goal_none     first / next goal
"""
from dataclasses import dataclass

import numpy as np

from football.numeric import clamp, poisson_pmf
from football.state import GoalDistribution, Intensity, MatchSnapshot, ScoreLine


MARKET_KEYS = (
    "1_home", "1_draw", "1_away",
    "ou25_over", "ou25_under", "ou35_over", "ou35_under",
    "corners85_over", "corners85_under", "cards45_over", "cards45_under",
    "dc_1x", "dc_12", "dc_x2",
    "dnb_home", "dnb_away",
    "btts_yes", "btts_no",
    "goal_home", "goal_away", "goal_none",
)

CORRECT_SCORE_SPAN = 3
CORRECT_SCORE_TOP = 5

NO_GOAL_EPSILON = 0.2
"""Residual intensity standing in for 'no further goal'."""

# ── Corners sub-model ────────────────────────────────────────────────
CORNERS_BASE_RATE = 4.5
CORNERS_TEMPO = 0.3
CORNERS_FLOOR = 0.5
CORNERS_LINE_INDEX = 9     # over 8.5
CORNERS_MAX_K = 15

# ── Cards sub-model ──────────────────────────────────────────────────
CARDS_BASE_RATE = 2.8
CARDS_FLOOR = 0.2
CARDS_LINE_INDEX = 5       # over 4.5
CARDS_MAX_K = 12

REFEREE_BOUNDS = (0.5, 1.5)


@dataclass(frozen=True)
class MarketDerivation:
    probs: dict[str, float]
    correct_scores: tuple[ScoreLine, ...]
    expected_corners: float
    expected_cards: float


# ═══════════════════════════════════════════════════════════════════════
#  Goal markets
# ═══════════════════════════════════════════════════════════════════════

def outcome_1x2(joint: np.ndarray, home_goals: int, away_goals: int) -> tuple[float, float, float]:
    """Final-result probabilities, adding the goals already scored."""
    size = joint.shape[0]
    idx = np.arange(size)
    diff = (idx[:, None] + home_goals) - (idx[None, :] + away_goals)

    home = float(joint[diff > 0].sum())
    draw = float(joint[diff == 0].sum())
    away = float(joint[diff < 0].sum())

    total = home + draw + away or 1.0
    return home / total, draw / total, away / total


def correct_scores(joint: np.ndarray, home_goals: int, away_goals: int) -> tuple[ScoreLine, ...]:
    """Most likely final scores with up to CORRECT_SCORE_SPAN more goals each."""
    span = min(CORRECT_SCORE_SPAN, joint.shape[0] - 1)
    lines = [
        ScoreLine(home_goals + h, away_goals + a, float(joint[h, a]))
        for h in range(span + 1)
        for a in range(span + 1)
    ]
    lines.sort(key=lambda s: s.probability, reverse=True)
    return tuple(lines[:CORRECT_SCORE_TOP])


def over_probability(total: np.ndarray, min_goals: int) -> float:
    return float(total[min_goals:].sum())


def btts_probability(joint: np.ndarray) -> float:
    """P(both sides score at least once more), by inclusion-exclusion.

    Uses the corrected joint so the 0-0 cell carries its Dixon-Coles boost.
    """
    p_home_blank = float(joint[0, :].sum())
    p_away_blank = float(joint[:, 0].sum())
    return clamp(1.0 - p_home_blank - p_away_blank + float(joint[0, 0]), 0.0, 1.0)


def goalscorer(lam_h: float, lam_a: float) -> tuple[float, float, float]:
    """(home scores next, away scores next, no further goal)."""
    denom = lam_h + lam_a + NO_GOAL_EPSILON
    return lam_h / denom, lam_a / denom, NO_GOAL_EPSILON / denom


# ═══════════════════════════════════════════════════════════════════════
#  Auxiliary sub-models
# ═══════════════════════════════════════════════════════════════════════

def expected_remaining_corners(snap: MatchSnapshot, time_remaining: float) -> float:
    referee = clamp(snap.referee_intensity, *REFEREE_BOUNDS)
    remaining = clamp(time_remaining, 0.05, 1.0)
    base = CORNERS_BASE_RATE * remaining * referee
    tempo = 1 + CORNERS_TEMPO * (1 - remaining)
    return max(CORNERS_FLOOR, base * tempo - snap.corners_so_far)


def expected_remaining_cards(snap: MatchSnapshot, time_remaining: float) -> float:
    referee = clamp(snap.referee_intensity, *REFEREE_BOUNDS)
    remaining = clamp(time_remaining, 0.05, 1.0)
    base = CARDS_BASE_RATE * remaining * referee
    return max(CARDS_FLOOR, base - snap.cards_so_far)


def poisson_tail(lam: float, start: int, max_k: int) -> float:
    return clamp(sum(poisson_pmf(lam, max_k)[start:]), 0.0, 1.0)


# ═══════════════════════════════════════════════════════════════════════
#  All markets
# ═══════════════════════════════════════════════════════════════════════

def derive_markets(
    snap: MatchSnapshot,
    intensity: Intensity,
    dist: GoalDistribution,
) -> MarketDerivation:
    home_win, draw, away_win = outcome_1x2(dist.joint, snap.home_goals, snap.away_goals)

    over25 = over_probability(dist.total, 3)
    over35 = over_probability(dist.total, 4)

    time_remaining = intensity.factors.time_remaining
    exp_corners = expected_remaining_corners(snap, time_remaining)
    exp_cards = expected_remaining_cards(snap, time_remaining)
    corners_over = poisson_tail(exp_corners, CORNERS_LINE_INDEX, CORNERS_MAX_K)
    cards_over = poisson_tail(exp_cards, CARDS_LINE_INDEX, CARDS_MAX_K)

    decisive = home_win + away_win
    dnb_home = home_win / decisive if decisive > 0 else 0.5

    btts = btts_probability(dist.joint)
    g_home, g_away, g_none = goalscorer(intensity.home, intensity.away)

    probs = {
        "1_home": home_win,
        "1_draw": draw,
        "1_away": away_win,
        "ou25_over": over25,
        "ou25_under": 1.0 - over25,
        "ou35_over": over35,
        "ou35_under": 1.0 - over35,
        "corners85_over": corners_over,
        "corners85_under": 1.0 - corners_over,
        "cards45_over": cards_over,
        "cards45_under": 1.0 - cards_over,
        "dc_1x": home_win + draw,
        "dc_12": home_win + away_win,
        "dc_x2": draw + away_win,
        "dnb_home": dnb_home,
        "dnb_away": 1.0 - dnb_home,
        "btts_yes": btts,
        "btts_no": 1.0 - btts,
        "goal_home": g_home,
        "goal_away": g_away,
        "goal_none": g_none,
    }

    return MarketDerivation(
        probs=probs,
        correct_scores=correct_scores(dist.joint, snap.home_goals, snap.away_goals),
        expected_corners=exp_corners,
        expected_cards=exp_cards,
    )
