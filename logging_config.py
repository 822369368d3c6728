"""
Log setup for the calculator CLI.

The file log keeps every run; the console copy goes to stderr so that
--json output on stdout stays machine-readable.
"""
import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional

from config import LOG_LEVEL, LOG_DIR

LOG_FORMAT = "%(asctime)s.%(msecs)03d | %(levelname)-7s | %(name)-22s | %(message)s"
LOG_FILE_NAME = "livebet.log"
QUIET_LOGGERS = ("aiohttp", "asyncio")

_HANDLER_TAG = "_livebet_handler"


def _tagged(handler: logging.Handler) -> logging.Handler:
    setattr(handler, _HANDLER_TAG, True)
    return handler


def setup_logging(level: Optional[str] = None, log_dir: Optional[Path] = None) -> logging.Logger:
    """Attach the file and console handlers to the root logger.

    Safe to call more than once: handlers from an earlier call are
    replaced, not stacked.
    """
    log_dir = Path(log_dir or LOG_DIR)
    log_dir.mkdir(parents=True, exist_ok=True)

    fmt = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    # 5 MB x 3 backups
    fh = _tagged(logging.handlers.RotatingFileHandler(
        log_dir / LOG_FILE_NAME,
        maxBytes=5 * 1024 * 1024,
        backupCount=3,
        encoding="utf-8",
    ))
    fh.setFormatter(fmt)

    ch = _tagged(logging.StreamHandler(sys.stderr))
    ch.setFormatter(fmt)

    root = logging.getLogger()
    for old in [h for h in root.handlers if getattr(h, _HANDLER_TAG, False)]:
        root.removeHandler(old)
        old.close()

    level_name = (level or LOG_LEVEL).upper()
    root.setLevel(getattr(logging, level_name, logging.INFO))
    root.addHandler(fh)
    root.addHandler(ch)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return root
