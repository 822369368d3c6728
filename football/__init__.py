"""
Football in-play market engine.

Poisson / Dixon-Coles model that maps live match statistics to 1X2,
over/under, double chance, draw-no-bet, BTTS, correct score and
next-goal probabilities, with Wilson-gated betting tips.
"""
from football.calibration import CalibrationProvider, CalibrationState, load_calibration
from football.model import FootballInPlayModel, score
from football.state import MatchSnapshot, Prediction, Tip

__all__ = [
    "CalibrationProvider",
    "CalibrationState",
    "FootballInPlayModel",
    "MatchSnapshot",
    "Prediction",
    "Tip",
    "load_calibration",
    "score",
]
