"""
Numeric primitives shared by the in-play model.

No model knowledge lives here — just bounding and Poisson construction.
"""
import math


EXP_BOUND = 6.0
"""Exponent range accepted by bounded_exp (e^±6 ≈ 403 / 0.0025)."""


def clamp(x: float, lo: float, hi: float) -> float:
    """Bound x to the closed interval [lo, hi]."""
    return min(hi, max(lo, x))


def bounded_exp(x: float) -> float:
    """exp(x) with the exponent clamped to [-EXP_BOUND, EXP_BOUND].

    Used to fold a product of multiplicative factors back from log-space
    without letting a pathological combination overflow or vanish.
    """
    return math.exp(clamp(x, -EXP_BOUND, EXP_BOUND))


def poisson_pmf(lam: float, max_k: int) -> list[float]:
    """Poisson probabilities P(X=0..max_k | λ), built recursively.

        p(0) = e^-λ
        p(k) = p(k-1) · λ / k

    No factorials or powers, so large k cannot overflow. The vector is
    NOT renormalized: its sum is the mass covered up to max_k.
    """
    lam = max(lam, 0.0)
    max_k = max(int(max_k), 0)
    probs = [0.0] * (max_k + 1)
    probs[0] = math.exp(-lam)
    for k in range(1, max_k + 1):
        probs[k] = probs[k - 1] * lam / k
    return probs
