"""
Prediction history — bounded, newest-first JSON file store — and export.

Lives outside the scoring core: score() never touches it. The CLI appends
every prediction here; the oldest records drop off beyond the cap.
"""
import json
import logging
import re
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import pandas as pd

log = logging.getLogger("football.history")


DEFAULT_HISTORY_CAP = 5


class PredictionHistory:
    """Append-only, capped history of prediction records.

    Each record: {"id", "timestamp", "snapshot", "result"} where result is
    Prediction.as_dict(). Stored newest first.
    """

    def __init__(self, path: Path, cap: int = DEFAULT_HISTORY_CAP) -> None:
        self.path = Path(path)
        self.cap = max(1, int(cap))

    def records(self) -> list[dict]:
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            log.warning("history file %s unreadable (%s) — starting empty", self.path, e)
            return []
        if not isinstance(data, list):
            log.warning("history file %s is not a list — starting empty", self.path)
            return []
        return [r for r in data if isinstance(r, dict)]

    def _write(self, records: list[dict]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(records, indent=2), encoding="utf-8")
        tmp.replace(self.path)

    def append(self, result: dict, timestamp: Optional[datetime] = None) -> dict:
        """Store a prediction bundle; returns the stored record."""
        ts = timestamp or datetime.now(timezone.utc)
        record = {
            "id": uuid.uuid4().hex,
            "timestamp": ts.isoformat(),
            "snapshot": result.get("snapshot", {}),
            "result": result,
        }
        records = [record] + self.records()
        evicted = max(0, len(records) - self.cap)
        self._write(records[:self.cap])
        log.debug("history: stored %s (evicted %d)", record["id"], evicted)
        return record

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()
        log.info("history cleared (%s)", self.path)

    def to_frame(self) -> pd.DataFrame:
        """One summary row per stored prediction."""
        columns = [
            "id", "timestamp", "home_team", "away_team", "minute", "score",
            "home_win", "draw", "away_win", "top_tip",
        ]
        rows = []
        for rec in self.records():
            snap = rec.get("snapshot", {})
            outcome = rec.get("result", {}).get("calibrated", {}).get("match_outcome", {})
            tips = rec.get("result", {}).get("betting_tips", [])
            rows.append({
                "id": rec.get("id", ""),
                "timestamp": rec.get("timestamp", ""),
                "home_team": snap.get("home_team", ""),
                "away_team": snap.get("away_team", ""),
                "minute": snap.get("minute", 0),
                "score": f"{snap.get('home_goals', 0)}-{snap.get('away_goals', 0)}",
                "home_win": outcome.get("home_win"),
                "draw": outcome.get("draw"),
                "away_win": outcome.get("away_win"),
                "top_tip": tips[0]["label"] if tips else "",
            })
        return pd.DataFrame(rows, columns=columns)


def _slug(name: Any) -> str:
    text = re.sub(r"[^A-Za-z0-9]+", "-", str(name or "")).strip("-")
    return text or "team"


def export_path(result: dict, directory: Path) -> Path:
    snap = result.get("snapshot", {})
    home = _slug(snap.get("home_team"))
    away = _slug(snap.get("away_team"))
    return Path(directory) / f"football-prediction-{home}-vs-{away}.json"


def export_prediction(result: dict, directory: Path) -> Path:
    """Write a prediction bundle as pretty-printed JSON; returns the path."""
    path = export_path(result, directory)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(result, indent=2, allow_nan=False), encoding="utf-8")
    log.info("exported prediction → %s", path)
    return path
