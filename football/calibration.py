"""
Probability calibration — optional piecewise-linear curves per market.

Two-phase contract:

    state = await load_calibration(source)      # async, never raises
    prediction = score(snapshot, state)         # pure, never waits

load_calibration always resolves to a CalibrationState: either "loaded"
(curves parsed from the document) or "identity" (anything went wrong).
States are immutable; a reload produces a new state which the
CalibrationProvider swaps in wholesale.

Document format (JSON):

    {
      "1_home":    {"x": [0.0, 0.5, 1.0], "y": [0.0, 0.47, 1.0]},
      "ou25_over": {"x": [...], "y": [...]},
      ...
      "_config":   {"confidence_z": 1.645}
    }
"""
import asyncio
import json
import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Optional

import aiohttp
import numpy as np

log = logging.getLogger("football.calibration")


DEFAULT_CONFIDENCE_Z = 1.96
"""≈95% two-sided — used unless the document overrides it."""

STATUS_UNINITIALIZED = "uninitialized"
STATUS_IDENTITY = "identity"
STATUS_LOADED = "loaded"

CONFIG_KEY = "_config"


class CalibrationError(ValueError):
    """Calibration document is structurally unusable."""


# ═══════════════════════════════════════════════════════════════════════
#  Curves
# ═══════════════════════════════════════════════════════════════════════

def interpolate(p: float, xs: "np.ndarray | list[float]", ys: "np.ndarray | list[float]") -> float:
    """Piecewise-linear map of p through (xs, ys).

    Outside [xs[0], xs[-1]] the nearest endpoint's y is returned.
    Empty or mismatched point arrays leave p unchanged.
    """
    if len(xs) == 0 or len(xs) != len(ys):
        return p
    return float(np.interp(p, xs, ys))


@dataclass(frozen=True, eq=False)
class Curve:
    x: np.ndarray
    y: np.ndarray

    @classmethod
    def from_points(cls, xs: Any, ys: Any) -> "Curve":
        """Validate a curve definition; raises CalibrationError when unusable."""
        if not isinstance(xs, (list, tuple)) or not isinstance(ys, (list, tuple)):
            raise CalibrationError("curve points must be arrays")
        if len(xs) == 0 or len(xs) != len(ys):
            raise CalibrationError(f"curve arrays empty or mismatched ({len(xs)} vs {len(ys)})")
        try:
            x = np.asarray([float(v) for v in xs], dtype=float)
            y = np.asarray([float(v) for v in ys], dtype=float)
        except (TypeError, ValueError) as e:
            raise CalibrationError(f"non-numeric curve point: {e}") from e
        if not (np.all(np.isfinite(x)) and np.all(np.isfinite(y))):
            raise CalibrationError("non-finite curve point")
        if np.any(np.diff(x) < 0):
            raise CalibrationError("curve x-points must be ascending")
        x.setflags(write=False)
        y.setflags(write=False)
        return cls(x=x, y=y)

    def __call__(self, p: float) -> float:
        return interpolate(p, self.x, self.y)


# ═══════════════════════════════════════════════════════════════════════
#  Calibration State
# ═══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class CalibrationState:
    """Immutable calibration snapshot.

    Attributes:
        curves:        market key → Curve (read-only mapping).
        confidence_z:  z-score used by the tip engine's Wilson bounds.
        status:        "uninitialized", "identity" or "loaded".
        source:        where the curves came from (informational).
    """
    curves: Mapping[str, Curve] = field(default_factory=lambda: MappingProxyType({}))
    confidence_z: float = DEFAULT_CONFIDENCE_Z
    status: str = STATUS_UNINITIALIZED
    source: str = ""

    @classmethod
    def uninitialized(cls) -> "CalibrationState":
        return cls()

    @classmethod
    def identity(cls, source: str = "") -> "CalibrationState":
        return cls(status=STATUS_IDENTITY, source=source)

    @property
    def is_identity(self) -> bool:
        return not self.curves

    def apply(self, market: str, p: float) -> float:
        """Calibrate one probability; markets without a curve pass through."""
        curve = self.curves.get(market)
        if curve is None:
            return p
        return curve(p)

    def calibrate(self, probs: Mapping[str, float]) -> dict[str, float]:
        """Calibrate each market independently.

        Legs of a two-way market are mapped on their own curves, so they
        need not sum to 1 afterwards.
        """
        return {market: self.apply(market, p) for market, p in probs.items()}


def parse_calibration(doc: Any, source: str = "") -> CalibrationState:
    """Build a loaded state from a decoded calibration document.

    Bad individual curves are skipped; a document that is not a JSON
    object raises CalibrationError.
    """
    if not isinstance(doc, dict):
        raise CalibrationError(f"calibration document must be an object, got {type(doc).__name__}")

    curves: dict[str, Curve] = {}
    for market, points in doc.items():
        if market == CONFIG_KEY:
            continue
        if not isinstance(points, dict):
            log.info("calibration: skipping %s (not an object)", market)
            continue
        try:
            curves[market] = Curve.from_points(points.get("x"), points.get("y"))
        except CalibrationError as e:
            log.info("calibration: skipping %s (%s)", market, e)

    z = DEFAULT_CONFIDENCE_Z
    config = doc.get(CONFIG_KEY)
    if isinstance(config, dict) and "confidence_z" in config:
        try:
            candidate = float(config["confidence_z"])
        except (TypeError, ValueError):
            candidate = float("nan")
        if math.isfinite(candidate) and candidate > 0:
            z = candidate
        else:
            log.info("calibration: ignoring invalid confidence_z=%r", config["confidence_z"])

    return CalibrationState(
        curves=MappingProxyType(curves),
        confidence_z=z,
        status=STATUS_LOADED,
        source=source,
    )


# ═══════════════════════════════════════════════════════════════════════
#  Loading
# ═══════════════════════════════════════════════════════════════════════

def _is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


async def _fetch_document(
    source: str,
    timeout_s: float,
    session: Optional[aiohttp.ClientSession],
) -> Any:
    if not _is_url(source):
        text = await asyncio.to_thread(Path(source).read_text, encoding="utf-8")
        return json.loads(text)

    own_session = session is None
    if own_session:
        session = aiohttp.ClientSession()
    try:
        async with session.get(
            source,
            timeout=aiohttp.ClientTimeout(total=timeout_s),
        ) as resp:
            if resp.status != 200:
                raise CalibrationError(f"HTTP {resp.status}")
            return await resp.json(content_type=None)
    finally:
        if own_session:
            await session.close()


async def load_calibration(
    source: Optional[str],
    timeout_s: float = 5.0,
    session: Optional[aiohttp.ClientSession] = None,
) -> CalibrationState:
    """Load calibration curves from a file path or http(s) URL.

    Total: any failure (missing file, HTTP error, timeout, bad JSON,
    malformed document) resolves to the identity state.
    """
    if not source:
        log.info("calibration: no source configured — using raw probabilities")
        return CalibrationState.identity()

    try:
        doc = await _fetch_document(source, timeout_s, session)
        state = parse_calibration(doc, source)
    except (aiohttp.ClientError, asyncio.TimeoutError, OSError, ValueError) as e:
        # json.JSONDecodeError and CalibrationError are ValueErrors
        log.info("calibration unavailable (%s: %s) — using raw probabilities",
                 type(e).__name__, e)
        return CalibrationState.identity(source)

    log.info("calibration loaded from %s: %d curves, z=%.3f",
             source, len(state.curves), state.confidence_z)
    return state


class CalibrationProvider:
    """Holds the active calibration snapshot for a process.

    start() schedules a background load and returns immediately; until it
    finishes, current is the uninitialized state (treated as identity).
    Completion swaps in the new snapshot in one assignment.
    """

    def __init__(self, initial: Optional[CalibrationState] = None) -> None:
        self._state = initial or CalibrationState.uninitialized()
        self._task: Optional[asyncio.Task] = None

    @property
    def current(self) -> CalibrationState:
        return self._state

    def replace(self, state: CalibrationState) -> None:
        self._state = state

    def start(self, source: Optional[str], timeout_s: float = 5.0) -> asyncio.Task:
        """Fire-and-forget load. Must be called from a running event loop."""
        self._task = asyncio.create_task(self._load(source, timeout_s))
        return self._task

    async def _load(self, source: Optional[str], timeout_s: float) -> CalibrationState:
        state = await load_calibration(source, timeout_s)
        self.replace(state)
        return state

    async def wait(self) -> CalibrationState:
        """Wait for a pending load, if any, and return the active state."""
        if self._task is not None:
            await self._task
        return self._state
