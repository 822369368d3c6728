"""
Configuration — loaded from .env, never hardcoded.

Model coefficients are not configuration; they live as constants in the
football package.
"""
import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

# ── Calibration ──────────────────────────────────────────────────────
# Local path or http(s) URL; empty disables calibration entirely.
CALIBRATION_SOURCE = os.getenv("CALIBRATION_SOURCE", "calibration.json")
CALIBRATION_TIMEOUT_S = float(os.getenv("CALIBRATION_TIMEOUT_S", "5"))

# ── Storage ──────────────────────────────────────────────────────────
DATA_DIR = Path(os.getenv("DATA_DIR", "data"))
HISTORY_FILE = DATA_DIR / "prediction_history.json"
HISTORY_CAP = int(os.getenv("HISTORY_CAP", "5"))
EXPORT_DIR = Path(os.getenv("EXPORT_DIR", "exports"))

# ── Logging ──────────────────────────────────────────────────────────
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_DIR = Path(os.getenv("LOG_DIR", "logs"))
