"""
Football in-play snapshot and model output dataclasses.

These are pure data containers — no model logic, no side effects.
Designed to be immutable snapshots passed between layers, each with an
explicit as_dict() so the full result serializes to plain JSON.
"""
import math
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

import numpy as np


# ═══════════════════════════════════════════════════════════════════════
#  Input: Match Statistics Snapshot
# ═══════════════════════════════════════════════════════════════════════

_COUNT_FIELDS = (
    "home_shots_on_target", "away_shots_on_target",
    "home_shots_off_target", "away_shots_off_target",
    "home_corners", "away_corners",
    "home_yellow_cards", "away_yellow_cards",
    "home_red_cards", "away_red_cards",
    "home_goals", "away_goals",
)

# Field names used by the form front end.
_CAMEL_ALIASES = {
    "homeTeam": "home_team",
    "awayTeam": "away_team",
    "homePossession": "home_possession",
    "awayPossession": "away_possession",
    "homeShotsOnTarget": "home_shots_on_target",
    "awayShotsOnTarget": "away_shots_on_target",
    "homeShotsOffTarget": "home_shots_off_target",
    "awayShotsOffTarget": "away_shots_off_target",
    "homeCorners": "home_corners",
    "awayCorners": "away_corners",
    "homeYellowCards": "home_yellow_cards",
    "awayYellowCards": "away_yellow_cards",
    "homeRedCards": "home_red_cards",
    "awayRedCards": "away_red_cards",
    "homeGoals": "home_goals",
    "awayGoals": "away_goals",
    "matchMinute": "minute",
    "refereeIntensity": "referee_intensity",
    "showDiagnostics": "show_diagnostics",
}


def _to_int(value: Any, default: int = 0) -> int:
    number = _to_float(value, float(default))
    return int(number)


def _to_float(value: Any, default: float) -> float:
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    # "Infinity", 1e400 and NaN all survive json.loads
    return number if math.isfinite(number) else default


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


@dataclass(frozen=True)
class MatchSnapshot:
    """Immutable snapshot of live match statistics.

    Attributes:
        home_team / away_team:   Display names only; never used by the model.
        home_possession:         Possession % (0–100). Complementarity with
                                 away_possession is the caller's concern.
        *_shots_on_target:       Shots on target so far.
        *_shots_off_target:      Shots off target so far.
        *_corners:               Corners won so far.
        *_yellow_cards:          Yellow cards received.
        *_red_cards:             Red cards received.
        home_goals / away_goals: Current score.
        minute:                  Match minute, 0–120 (91–120 = extra time).
        venue:                   "home" or "away" — side receiving home advantage.
        referee_intensity:       Strictness multiplier for corners/cards (0.5–1.5).
        show_diagnostics:        Include the diagnostics block in the output.
    """
    home_team: str = ""
    away_team: str = ""
    home_possession: int = 50
    away_possession: int = 50
    home_shots_on_target: int = 0
    away_shots_on_target: int = 0
    home_shots_off_target: int = 0
    away_shots_off_target: int = 0
    home_corners: int = 0
    away_corners: int = 0
    home_yellow_cards: int = 0
    away_yellow_cards: int = 0
    home_red_cards: int = 0
    away_red_cards: int = 0
    home_goals: int = 0
    away_goals: int = 0
    minute: int = 0
    venue: str = "home"
    referee_intensity: float = 1.0
    show_diagnostics: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MatchSnapshot":
        """Build a snapshot from loosely-typed form data.

        Accepts snake_case or the front end's camelCase keys. Missing or
        non-numeric counts become 0, negatives are floored at 0, minute is
        bounded to [0, 120] and possession to [0, 100].
        """
        norm: dict[str, Any] = {}
        for key, value in data.items():
            norm[_CAMEL_ALIASES.get(key, key)] = value

        counts = {name: max(0, _to_int(norm.get(name))) for name in _COUNT_FIELDS}

        venue = str(norm.get("venue") or "home").strip().lower()
        if venue not in ("home", "away"):
            venue = "home"

        return cls(
            home_team=str(norm.get("home_team") or "").strip(),
            away_team=str(norm.get("away_team") or "").strip(),
            home_possession=min(100, max(0, _to_int(norm.get("home_possession"), 50))),
            away_possession=min(100, max(0, _to_int(norm.get("away_possession"), 50))),
            minute=min(120, max(0, _to_int(norm.get("minute")))),
            venue=venue,
            referee_intensity=_to_float(norm.get("referee_intensity"), 1.0),
            show_diagnostics=_to_bool(norm.get("show_diagnostics", False)),
            **counts,
        )

    @property
    def goals_scored(self) -> bool:
        return self.home_goals + self.away_goals > 0

    @property
    def corners_so_far(self) -> int:
        return self.home_corners + self.away_corners

    @property
    def cards_so_far(self) -> int:
        """Booking count, a red card weighing as two yellows."""
        return (self.home_yellow_cards + self.away_yellow_cards
                + 2 * (self.home_red_cards + self.away_red_cards))

    def as_dict(self) -> dict:
        return {
            "home_team": self.home_team,
            "away_team": self.away_team,
            "home_possession": self.home_possession,
            "away_possession": self.away_possession,
            "home_shots_on_target": self.home_shots_on_target,
            "away_shots_on_target": self.away_shots_on_target,
            "home_shots_off_target": self.home_shots_off_target,
            "away_shots_off_target": self.away_shots_off_target,
            "home_corners": self.home_corners,
            "away_corners": self.away_corners,
            "home_yellow_cards": self.home_yellow_cards,
            "away_yellow_cards": self.away_yellow_cards,
            "home_red_cards": self.home_red_cards,
            "away_red_cards": self.away_red_cards,
            "home_goals": self.home_goals,
            "away_goals": self.away_goals,
            "minute": self.minute,
            "venue": self.venue,
            "referee_intensity": self.referee_intensity,
            "show_diagnostics": self.show_diagnostics,
        }


# ═══════════════════════════════════════════════════════════════════════
#  Intensity (λ) and its factor breakdown
# ═══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class SideFactors:
    """Multiplicative λ adjustments for one side (1.0 = neutral)."""
    possession: float = 1.0
    shots_on_target: float = 1.0
    efficiency: float = 1.0
    shots_off_target: float = 1.0
    corners: float = 1.0
    cards: float = 1.0
    game_state: float = 1.0

    def as_dict(self) -> dict:
        return {
            "possession": self.possession,
            "shots_on_target": self.shots_on_target,
            "efficiency": self.efficiency,
            "shots_off_target": self.shots_off_target,
            "corners": self.corners,
            "cards": self.cards,
            "game_state": self.game_state,
        }


@dataclass(frozen=True)
class FactorBreakdown:
    """Every intermediate quantity of the λ estimate, by name."""
    home: SideFactors
    away: SideFactors
    time_remaining: float
    is_extra_time: bool
    phase_factor: float
    tempo_mod: float
    state_intensity: float
    efficiency_home: float
    efficiency_away: float
    shrunk_corners_home: float
    shrunk_corners_away: float
    shrunk_yellows_home: float
    shrunk_yellows_away: float

    def as_dict(self) -> dict:
        return {
            "home": self.home.as_dict(),
            "away": self.away.as_dict(),
            "time_remaining": self.time_remaining,
            "is_extra_time": self.is_extra_time,
            "phase_factor": self.phase_factor,
            "tempo_mod": self.tempo_mod,
            "state_intensity": self.state_intensity,
            "efficiency": {"home": self.efficiency_home, "away": self.efficiency_away},
            "shrunk_corners": {"home": self.shrunk_corners_home,
                               "away": self.shrunk_corners_away},
            "shrunk_yellows": {"home": self.shrunk_yellows_home,
                               "away": self.shrunk_yellows_away},
        }


@dataclass(frozen=True)
class Intensity:
    """Remaining-goal Poisson intensities (λ) for both sides."""
    home: float
    away: float
    factors: FactorBreakdown

    @property
    def total(self) -> float:
        return self.home + self.away


# ═══════════════════════════════════════════════════════════════════════
#  Goal distributions
# ═══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True, eq=False)
class GoalDistribution:
    """Remaining-goal distributions.

    home / away are normalized marginals over 0..max_k, joint is the
    (max_k+1)² Dixon-Coles corrected table (rows = home goals), total is
    P(remaining home + away goals = t) for t in 0..2·max_k.
    """
    home: np.ndarray
    away: np.ndarray
    joint: np.ndarray
    total: np.ndarray
    max_k: int
    tau: float

    def as_dict(self) -> dict:
        return {
            "home": self.home.tolist(),
            "away": self.away.tolist(),
            "total": self.total.tolist(),
        }


# ═══════════════════════════════════════════════════════════════════════
#  Output: Markets, tips, full prediction
# ═══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ScoreLine:
    """A final-score outcome (current score + remaining goals)."""
    home_goals: int
    away_goals: int
    probability: float

    @property
    def label(self) -> str:
        return f"{self.home_goals}-{self.away_goals}"

    def as_dict(self) -> dict:
        return {
            "result": self.label,
            "home_goals": self.home_goals,
            "away_goals": self.away_goals,
            "probability": self.probability,
        }


@dataclass(frozen=True)
class Tip:
    """A recommendation that survived confidence gating."""
    label: str
    market: str
    probability: float
    lower_bound: float

    def as_dict(self) -> dict:
        return {
            "label": self.label,
            "market": self.market,
            "probability": self.probability,
            "lower_bound": self.lower_bound,
        }


@dataclass(frozen=True, eq=False)
class Prediction:
    """Complete model output for one snapshot.

    raw / calibrated are keyed by market name (see football.markets).
    intervals is only filled when the snapshot asks for diagnostics.
    """
    snapshot: MatchSnapshot
    intensity: Intensity
    distribution: GoalDistribution
    raw: Mapping[str, float]
    calibrated: Mapping[str, float]
    correct_scores: tuple[ScoreLine, ...]
    expected_corners: float
    expected_cards: float
    tips: tuple[Tip, ...]
    calibration_status: str
    confidence_z: float
    intervals: Optional[Mapping[str, tuple[float, float]]] = field(default=None)

    @property
    def goalscorer_label(self) -> str:
        return "next" if self.snapshot.goals_scored else "first"

    def _pair(self, source: Mapping[str, float], prefix: str, a: str, b: str) -> dict:
        return {a: source[f"{prefix}_{a}"], b: source[f"{prefix}_{b}"]}

    def _markets(self, source: Mapping[str, float]) -> dict:
        return {
            "match_outcome": {
                "home_win": source["1_home"],
                "draw": source["1_draw"],
                "away_win": source["1_away"],
            },
            "over_under": {
                "goals_2_5": self._pair(source, "ou25", "over", "under"),
                "goals_3_5": self._pair(source, "ou35", "over", "under"),
                "corners_8_5": self._pair(source, "corners85", "over", "under"),
                "cards_4_5": self._pair(source, "cards45", "over", "under"),
            },
            "double_chance": {
                "1x": source["dc_1x"],
                "12": source["dc_12"],
                "x2": source["dc_x2"],
            },
            "draw_no_bet": self._pair(source, "dnb", "home", "away"),
            "btts": self._pair(source, "btts", "yes", "no"),
            "goalscorer": {
                "home": source["goal_home"],
                "away": source["goal_away"],
                "none": source["goal_none"],
            },
        }

    def as_dict(self) -> dict:
        """Fully JSON-serializable result bundle."""
        factors = self.intensity.factors
        out = {
            "snapshot": self.snapshot.as_dict(),
            "raw": self._markets(self.raw),
            "calibrated": self._markets(self.calibrated),
            "specific_results": [s.as_dict() for s in self.correct_scores],
            "goalscorer_label": self.goalscorer_label,
            "expected_goals": self.distribution.as_dict(),
            "betting_tips": [t.as_dict() for t in self.tips],
            "meta": {
                "max_k": self.distribution.max_k,
                "lambdas": {"home": self.intensity.home, "away": self.intensity.away},
                "factors": factors.as_dict(),
                "time_remaining": factors.time_remaining,
                "is_extra_time": factors.is_extra_time,
                "dixon_coles_tau": self.distribution.tau,
                "expected_corners": self.expected_corners,
                "expected_cards": self.expected_cards,
                "calibration_status": self.calibration_status,
                "confidence_z": self.confidence_z,
            },
            "joint": self.distribution.joint.tolist(),
        }
        if self.intervals is not None:
            out["diagnostics"] = {
                "factors": factors.as_dict(),
                "wilson": {
                    market: {"lower": lo, "upper": hi}
                    for market, (lo, hi) in self.intervals.items()
                },
            }
        return out
