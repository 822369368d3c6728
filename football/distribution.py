"""
Remaining-goal distributions: marginals, Dixon-Coles joint, totals.
"""
import logging

import numpy as np

from football.numeric import poisson_pmf
from football.state import GoalDistribution

log = logging.getLogger("football.distribution")


MIN_MAX_K = 6
MAX_MAX_K = 15
COVERAGE_TARGET = 0.999

DIXON_COLES_TAU = 0.12
"""Low-score dependence boost; 0 disables the correction."""

# Relative strength of the correction per low-score cell.
_DC_WEIGHTS = {
    (0, 0): 1.0,
    (1, 1): 0.7,
    (1, 0): 0.3,
    (0, 1): 0.3,
}


def marginals(lam_h: float, lam_a: float) -> tuple[np.ndarray, np.ndarray, int]:
    """Build both Poisson marginals with a dynamic goal cap.

    Starts at MIN_MAX_K and grows until each marginal covers
    COVERAGE_TARGET of its mass (or MAX_MAX_K is reached), then
    normalizes both to sum to 1.
    """
    max_k = MIN_MAX_K
    home = poisson_pmf(lam_h, max_k)
    away = poisson_pmf(lam_a, max_k)
    while min(sum(home), sum(away)) < COVERAGE_TARGET and max_k < MAX_MAX_K:
        max_k += 1
        home = poisson_pmf(lam_h, max_k)
        away = poisson_pmf(lam_a, max_k)

    home_arr = np.asarray(home, dtype=float)
    away_arr = np.asarray(away, dtype=float)
    return home_arr / home_arr.sum(), away_arr / away_arr.sum(), max_k


def apply_dixon_coles(joint: np.ndarray, tau: float) -> np.ndarray:
    """Return a renormalized copy of joint with the low-score boost applied."""
    if tau <= 0:
        return joint
    corrected = joint.copy()
    for (h, a), weight in _DC_WEIGHTS.items():
        corrected[h, a] *= 1 + weight * tau
    return corrected / corrected.sum()


def total_goals(joint: np.ndarray) -> np.ndarray:
    """P(h + a = t) for t in 0..2·max_k (anti-diagonal sums)."""
    size = joint.shape[0]
    totals = np.zeros(2 * size - 1)
    for h in range(size):
        totals[h:h + size] += joint[h]
    return totals


def build_goal_distribution(
    lam_h: float,
    lam_a: float,
    tau: float = DIXON_COLES_TAU,
) -> GoalDistribution:
    home, away, max_k = marginals(lam_h, lam_a)
    joint = apply_dixon_coles(np.outer(home, away), tau)
    log.debug("distribution: λ=(%.3f, %.3f) max_k=%d tau=%.2f", lam_h, lam_a, max_k, tau)
    return GoalDistribution(
        home=home,
        away=away,
        joint=joint,
        total=total_goals(joint),
        max_k=max_k,
        tau=tau,
    )
