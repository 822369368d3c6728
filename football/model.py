"""
Football in-play market model.

Maps a live statistics snapshot to a full distribution over remaining
goals and every market derived from it:

    snapshot → λ (intensity) → marginals + Dixon-Coles joint
             → raw markets → calibrated markets → gated tips

Assumptions:
    1. Remaining goals per side are Poisson with intensity λ for the rest
       of the current phase (regulation or extra time).
    2. λ starts from fixed base rates (home 1.4, away 1.2 per 90) and is
       adjusted multiplicatively by observed statistics and game state.
       All coefficients are constants — nothing is learned.
    3. The two sides are independent except for the Dixon-Coles boost to
       the 0-0, 1-1, 1-0 and 0-1 cells.
    4. Corners and cards are separate single-Poisson models of the
       events still to come.

score() is a pure function of (snapshot, calibration state): same input,
same output, no hidden state.
"""
import logging
from typing import Optional

from football.calibration import CalibrationState
from football.distribution import DIXON_COLES_TAU, build_goal_distribution
from football.intensity import estimate_intensity
from football.markets import derive_markets
from football.state import MatchSnapshot, Prediction
from football.tips import generate_tips

log = logging.getLogger("football.model")


def score(
    snap: MatchSnapshot,
    calibration: Optional[CalibrationState] = None,
    tau: float = DIXON_COLES_TAU,
) -> Prediction:
    """Compute every market and the ranked tip list for one snapshot.

    Args:
        snap:         Immutable match statistics.
        calibration:  Active calibration snapshot; None behaves as identity.
        tau:          Dixon-Coles strength (0 disables the correction).

    Returns:
        Prediction with raw and calibrated markets, tips and internals.
    """
    if calibration is None:
        calibration = CalibrationState.uninitialized()

    intensity = estimate_intensity(snap)
    dist = build_goal_distribution(intensity.home, intensity.away, tau)
    derived = derive_markets(snap, intensity, dist)
    calibrated = calibration.calibrate(derived.probs)

    intervals: Optional[dict[str, tuple[float, float]]] = {} if snap.show_diagnostics else None
    tips = generate_tips(
        snap,
        calibrated,
        derived.correct_scores,
        time_remaining=intensity.factors.time_remaining,
        total_lambda=intensity.total,
        expected_corners=derived.expected_corners,
        expected_cards=derived.expected_cards,
        z=calibration.confidence_z,
        intervals=intervals,
    )

    log.debug(
        "score: %s vs %s min=%d → H=%.3f D=%.3f A=%.3f tips=%d cal=%s",
        snap.home_team or "-", snap.away_team or "-", snap.minute,
        derived.probs["1_home"], derived.probs["1_draw"], derived.probs["1_away"],
        len(tips), calibration.status,
    )

    return Prediction(
        snapshot=snap,
        intensity=intensity,
        distribution=dist,
        raw=derived.probs,
        calibrated=calibrated,
        correct_scores=derived.correct_scores,
        expected_corners=derived.expected_corners,
        expected_cards=derived.expected_cards,
        tips=tips,
        calibration_status=calibration.status,
        confidence_z=calibration.confidence_z,
        intervals=intervals,
    )


class FootballInPlayModel:
    """Stateless wrapper binding score() to a calibration source.

    Usage:
        provider = CalibrationProvider()
        provider.start("calibration.json")      # fire and forget
        model = FootballInPlayModel(lambda: provider.current)
        prediction = model.update(MatchSnapshot(minute=60, home_goals=1))
    """

    def __init__(self, calibration=None, tau: float = DIXON_COLES_TAU) -> None:
        # calibration: a CalibrationState, a zero-arg callable returning one, or None
        self._calibration = calibration
        self._tau = tau

    def _active_calibration(self) -> Optional[CalibrationState]:
        if callable(self._calibration):
            return self._calibration()
        return self._calibration

    def update(self, snap: MatchSnapshot) -> Prediction:
        return score(snap, self._active_calibration(), self._tau)
