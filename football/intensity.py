"""
Remaining-goal intensity (λ) estimator.

Turns a live statistics snapshot into Poisson goal rates for the rest of
the current phase:

    λ = base × phase × time_remaining × venue × Π(per-statistic factors)

Factors, in order:
    1. Possession      — zero-sum deviation from 50/50.
    2. Shots on target — own count minus half the opponent's.
    3. Efficiency      — on/(on+off), shrunk toward a 0.35 prior.
    4. Shots off target.
    5. Corners         — shrunk toward the time-scaled league baseline.
    6. Cards           — yellows (shrunk) + reds with a timing multiplier,
                         offset by the opponent's own indiscipline.
    7. Game state      — trailing side chases, leading side manages;
                         late-game tempo modifier after 75'.

The shot and card clamps widen with elapsed time: a few minutes of data
can only move λ a little, a full half can move it a lot.

Pure function of the snapshot. No I/O, no state.
"""
import logging
import math

from football.numeric import bounded_exp, clamp
from football.state import FactorBreakdown, Intensity, MatchSnapshot, SideFactors

log = logging.getLogger("football.intensity")


# ═══════════════════════════════════════════════════════════════════════
#  Tunable Constants
# ═══════════════════════════════════════════════════════════════════════

REGULATION_MINUTES = 90
EXTRA_TIME_MINUTES = 30
MAX_MINUTE = 120

PHASE_FACTOR_NORMAL = 1.0
PHASE_FACTOR_EXTRA = 0.7
"""Extra time is played at a visibly lower scoring rate."""

MIN_TIME_REMAINING = 0.05

BASE_LAMBDA_HOME = 1.4
BASE_LAMBDA_AWAY = 1.2
VENUE_BONUS = 1.1

LAMBDA_MIN = 0.05
LAMBDA_MAX = 8.0

# ── Per-statistic weights ────────────────────────────────────────────
K_POSS = 0.50
K_SOT = 0.10
K_SOFF = 0.04
K_CORNER = 0.04
K_YELLOW = 0.06
K_RED = 0.35
K_CARD_TIME = 0.5
"""Card penalties weigh up to 1 + K_CARD_TIME as the match runs out."""
K_EFF = 0.25
K_CARD_BALANCE = 0.03
K_TEMPO = 0.15

# ── Shrinkage ────────────────────────────────────────────────────────
EFFICIENCY_PRIOR = 0.35
EFFICIENCY_PRIOR_WEIGHT = 4.0
"""Pseudo-shots at the prior ratio added to the observed shots."""

CORNERS_PER_90 = 9.0
YELLOWS_PER_90 = 4.5
SHRINK_HALF_LIFE_MIN = 20.0
"""Minute at which observed counts and baseline carry equal weight."""

# ── Clamp bounds (fully widened) ─────────────────────────────────────
POSS_BOUNDS = (0.5, 1.5)
SOT_BOUNDS = (0.6, 2.0)
SOFF_BOUNDS = (0.7, 1.8)
EFF_BOUNDS = (0.8, 1.4)
CORNER_BOUNDS = (0.7, 1.8)
CARD_BOUNDS = (0.3, 1.2)

MAX_CHANGE_BASE = 0.15
MAX_CHANGE_PER_MIN = 0.035
"""Max deviation from 1.0 for shot/card factors: base + rate × minute."""

# ── Game state / tempo ───────────────────────────────────────────────
STATE_INTENSITY_SCALE = 0.25
GOAL_DIFF_CAP = 3
TEMPO_START_MIN = 75
TEMPO_RAMP_MIN = 15
TEMPO_LEAD_CAP = 2
TEMPO_BOUNDS = (0.7, 1.3)
LEADER_STATE_BOUNDS = (0.6, 1.4)
TRAILER_STATE_BOUNDS = (0.8, 1.6)


# ═══════════════════════════════════════════════════════════════════════
#  Phase / time helpers
# ═══════════════════════════════════════════════════════════════════════

def match_phase(minute: float) -> tuple[bool, float, float]:
    """Return (is_extra_time, time_remaining, phase_factor).

    time_remaining is the fraction of the current phase still to play,
    floored at MIN_TIME_REMAINING so late λ never collapses to zero.
    """
    minute = clamp(minute, 0, MAX_MINUTE)
    is_extra = minute > REGULATION_MINUTES
    if is_extra:
        phase_minute = minute - REGULATION_MINUTES
        phase_length = EXTRA_TIME_MINUTES
        phase_factor = PHASE_FACTOR_EXTRA
    else:
        phase_minute = minute
        phase_length = REGULATION_MINUTES
        phase_factor = PHASE_FACTOR_NORMAL
    remaining = clamp((phase_length - phase_minute) / phase_length, MIN_TIME_REMAINING, 1.0)
    return is_extra, remaining, phase_factor


def widened_bounds(bounds: tuple[float, float], minute: float) -> tuple[float, float]:
    """Clamp bounds for a stat-driven factor at a given minute.

    The allowed deviation from 1.0 grows linearly with elapsed minutes
    until it reaches the full (lo, hi) range.
    """
    max_change = MAX_CHANGE_BASE + MAX_CHANGE_PER_MIN * max(minute, 0)
    lo, hi = bounds
    return max(lo, 1.0 - max_change), min(hi, 1.0 + max_change)


def shrink(observed: float, expected: float, minute: float) -> float:
    """Blend an observed count with its baseline.

    The baseline's weight decays as minutes accumulate:
        w = H / (H + minute)
    At kick-off the estimate is the baseline; by full time it is mostly
    what was observed.
    """
    w = SHRINK_HALF_LIFE_MIN / (SHRINK_HALF_LIFE_MIN + max(minute, 0))
    return w * expected + (1.0 - w) * observed


# ═══════════════════════════════════════════════════════════════════════
#  Per-statistic factors
# ═══════════════════════════════════════════════════════════════════════

def possession_factors(home_possession: float) -> tuple[float, float]:
    diff = clamp(home_possession - 50, -50, 50) / 50
    return (
        clamp(1 + K_POSS * diff, *POSS_BOUNDS),
        clamp(1 - K_POSS * diff, *POSS_BOUNDS),
    )


def shot_efficiency(on_target: int, off_target: int) -> float:
    """On-target ratio shrunk toward EFFICIENCY_PRIOR.

    Zero shots yields exactly the prior.
    """
    return ((on_target + EFFICIENCY_PRIOR * EFFICIENCY_PRIOR_WEIGHT)
            / (on_target + off_target + EFFICIENCY_PRIOR_WEIGHT))


def _shots_on_target_factor(own: int, opp: int, minute: float) -> float:
    return clamp(1 + K_SOT * own - K_SOT * 0.5 * opp, *widened_bounds(SOT_BOUNDS, minute))


def _shots_off_target_factor(own: int, minute: float) -> float:
    return clamp(1 + K_SOFF * own, *widened_bounds(SOFF_BOUNDS, minute))


def _efficiency_factor(efficiency: float) -> float:
    return clamp(1 + K_EFF * (efficiency - EFFICIENCY_PRIOR), *EFF_BOUNDS)


def _corner_factor(shrunk: float, expected: float) -> float:
    return clamp(1 + K_CORNER * (shrunk - expected), *CORNER_BOUNDS)


def red_card_timing(time_remaining: float) -> float:
    """Red-card cost multiplier: 2× at kick-off easing toward 1× at the end.

    The snapshot carries no card timestamps, so the current minute stands
    in for when the card was shown — a red card seen early means more of
    the match is played a man down.
    """
    return 1.0 + time_remaining


def _card_factor(
    yellow_excess: float,
    reds: int,
    opp_yellows: int,
    opp_reds: int,
    time_remaining: float,
    minute: float,
) -> float:
    time_weight = 1.0 + K_CARD_TIME * (1.0 - time_remaining)
    red_effect = K_RED * reds * red_card_timing(time_remaining)
    penalty = (K_YELLOW * yellow_excess + red_effect) * time_weight
    balance = K_CARD_BALANCE * (opp_yellows + 2 * opp_reds)
    return clamp(1 - penalty + balance, *widened_bounds(CARD_BOUNDS, minute))


def tempo_modifier(minute: float, goal_diff: int) -> float:
    """Late-game tempo modifier (1.0 before TEMPO_START_MIN).

    Level score: urgency lifts both sides. Otherwise the value is the
    leader's game-management damping, deeper for bigger leads.
    """
    if minute <= TEMPO_START_MIN:
        return 1.0
    ramp = clamp((minute - TEMPO_START_MIN) / TEMPO_RAMP_MIN, 0.0, 1.0)
    if goal_diff == 0:
        mod = 1 + K_TEMPO * ramp
    else:
        mod = 1 - K_TEMPO * 0.5 * min(abs(goal_diff), TEMPO_LEAD_CAP) * ramp
    return clamp(mod, *TEMPO_BOUNDS)


def game_state_factors(
    goal_diff: int,
    time_remaining: float,
    tempo_mod: float,
) -> tuple[float, float, float]:
    """Return (home_factor, away_factor, state_intensity)."""
    state_intensity = STATE_INTENSITY_SCALE * (1 - time_remaining)
    if goal_diff == 0:
        return tempo_mod, tempo_mod, state_intensity

    gd = min(abs(goal_diff), GOAL_DIFF_CAP)
    leader = clamp((1 - state_intensity * gd) * tempo_mod, *LEADER_STATE_BOUNDS)
    trailer = clamp(1 + state_intensity * gd, *TRAILER_STATE_BOUNDS)
    if goal_diff > 0:
        return leader, trailer, state_intensity
    return trailer, leader, state_intensity


def _combine(rate: float, factors: SideFactors) -> float:
    # Fold the product back through log-space so a pathological
    # combination stays finite.
    log_sum = (math.log(factors.possession) + math.log(factors.shots_on_target)
               + math.log(factors.efficiency) + math.log(factors.shots_off_target)
               + math.log(factors.corners) + math.log(factors.cards)
               + math.log(factors.game_state))
    return clamp(rate * bounded_exp(log_sum), LAMBDA_MIN, LAMBDA_MAX)


# ═══════════════════════════════════════════════════════════════════════
#  Estimator
# ═══════════════════════════════════════════════════════════════════════

def estimate_intensity(snap: MatchSnapshot) -> Intensity:
    """Estimate (λ_home, λ_away) for the remainder of the current phase."""
    minute = clamp(snap.minute, 0, MAX_MINUTE)
    is_extra, time_remaining, phase_factor = match_phase(minute)

    # ── Base rates ───────────────────────────────────────────────────
    rate_h = BASE_LAMBDA_HOME * phase_factor * time_remaining
    rate_a = BASE_LAMBDA_AWAY * phase_factor * time_remaining
    if snap.venue == "away":
        rate_a *= VENUE_BONUS
    else:
        rate_h *= VENUE_BONUS

    # ── Possession ───────────────────────────────────────────────────
    poss_h, poss_a = possession_factors(snap.home_possession)

    # ── Shots ────────────────────────────────────────────────────────
    sot_h = _shots_on_target_factor(snap.home_shots_on_target, snap.away_shots_on_target, minute)
    sot_a = _shots_on_target_factor(snap.away_shots_on_target, snap.home_shots_on_target, minute)
    soff_h = _shots_off_target_factor(snap.home_shots_off_target, minute)
    soff_a = _shots_off_target_factor(snap.away_shots_off_target, minute)

    eff_h = shot_efficiency(snap.home_shots_on_target, snap.home_shots_off_target)
    eff_a = shot_efficiency(snap.away_shots_on_target, snap.away_shots_off_target)

    # ── Corners ──────────────────────────────────────────────────────
    expected_corners = CORNERS_PER_90 * minute / REGULATION_MINUTES * 0.5
    corners_h = shrink(snap.home_corners, expected_corners, minute)
    corners_a = shrink(snap.away_corners, expected_corners, minute)

    # ── Cards ────────────────────────────────────────────────────────
    expected_yellows = YELLOWS_PER_90 * minute / REGULATION_MINUTES * 0.5
    yellows_h = shrink(snap.home_yellow_cards, expected_yellows, minute)
    yellows_a = shrink(snap.away_yellow_cards, expected_yellows, minute)

    card_h = _card_factor(
        max(0.0, yellows_h - expected_yellows), snap.home_red_cards,
        snap.away_yellow_cards, snap.away_red_cards, time_remaining, minute,
    )
    card_a = _card_factor(
        max(0.0, yellows_a - expected_yellows), snap.away_red_cards,
        snap.home_yellow_cards, snap.home_red_cards, time_remaining, minute,
    )

    # ── Game state ───────────────────────────────────────────────────
    goal_diff = snap.home_goals - snap.away_goals
    tempo_mod = tempo_modifier(minute, goal_diff)
    state_h, state_a, state_intensity = game_state_factors(goal_diff, time_remaining, tempo_mod)

    home = SideFactors(
        possession=poss_h,
        shots_on_target=sot_h,
        efficiency=_efficiency_factor(eff_h),
        shots_off_target=soff_h,
        corners=_corner_factor(corners_h, expected_corners),
        cards=card_h,
        game_state=state_h,
    )
    away = SideFactors(
        possession=poss_a,
        shots_on_target=sot_a,
        efficiency=_efficiency_factor(eff_a),
        shots_off_target=soff_a,
        corners=_corner_factor(corners_a, expected_corners),
        cards=card_a,
        game_state=state_a,
    )

    lam_h = _combine(rate_h, home)
    lam_a = _combine(rate_a, away)

    log.debug(
        "intensity: min=%d rem=%.3f extra=%s tempo=%.3f → λ=(%.3f, %.3f)",
        minute, time_remaining, is_extra, tempo_mod, lam_h, lam_a,
    )

    return Intensity(
        home=lam_h,
        away=lam_a,
        factors=FactorBreakdown(
            home=home,
            away=away,
            time_remaining=time_remaining,
            is_extra_time=is_extra,
            phase_factor=phase_factor,
            tempo_mod=tempo_mod,
            state_intensity=state_intensity,
            efficiency_home=eff_h,
            efficiency_away=eff_a,
            shrunk_corners_home=corners_h,
            shrunk_corners_away=corners_a,
            shrunk_yellows_home=yellows_h,
            shrunk_yellows_away=yellows_a,
        ),
    )
