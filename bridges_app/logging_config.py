#!/usr/bin/env python3
#
###################################################################
# Project: HalifaxBridges
# File: bridges_app/logging_config.py
# Purpose: Centralized logging setup (rotating file, levels)
#
# Description of code and how it works:
# - Creates a TimedRotatingFileHandler (daily) + console handler on the
#   "bridges" logger; handlers are tagged so re-runs find their own.
# - uvicorn.error / uvicorn.access also write to the same file, so
#   /logs/tail shows request lines next to connector lines.
# - Clips oversized upstream bodies that end up in log args.
# - Respects env: BRIDGES_LOG_DIR, BRIDGES_LOG_FILE, BRIDGES_LOG_LEVEL;
#   explicit level/log_file arguments win over env.
# - Idempotent: calling setup_logging() twice only updates the level.
#   teardown_logging() detaches and closes what setup added.
#
# Author: Tim Canady
# Created: 2026-10-12
#
# Version: 1.2.0
# Last Modified: 2026-10-18 by Tim Canady
#
# Revision History:
# - 1.2.0 (2026-10-18): Tee uvicorn loggers into the file; level/file args;
#   teardown_logging().
# - 1.1.0 (2026-10-16): Clip long string args (scraped HTML in error logs).
# - 1.0.0 (2026-10-12): Initial logging bundle.
###################################################################
#
from __future__ import annotations

import logging
import os
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import List, Optional, Union

LOGGER_NAME = "bridges"
MAX_ARG_CHARS = 500
# uvicorn loggers whose lines should also land in the file read by /logs/tail
SERVER_LOGGERS = ("uvicorn.error", "uvicorn.access")
FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
DATEFMT = "%Y-%m-%d %H:%M:%S%z"

def log_file_path() -> Path:
    project_root = Path(__file__).resolve().parents[1]
    log_dir = Path(os.getenv("BRIDGES_LOG_DIR", project_root / "logs"))
    return Path(os.getenv("BRIDGES_LOG_FILE", log_dir / "bridges_app.log"))

def resolve_level(name: Optional[Union[str, int]] = None) -> int:
    """Level from an explicit name/number, else BRIDGES_LOG_LEVEL, else INFO."""
    if isinstance(name, int):
        return name
    name = (name or os.getenv("BRIDGES_LOG_LEVEL") or "INFO").upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO

class _ClipFilter(logging.Filter):
    """Truncate long str/bytes args (scraped HTML, JSON bodies) before formatting."""

    def __init__(self, max_chars: int = MAX_ARG_CHARS):
        super().__init__()
        self.max_chars = max_chars

    def _clip(self, v):
        if isinstance(v, (str, bytes)) and len(v) > self.max_chars:
            return v[: self.max_chars] + (b"..." if isinstance(v, bytes) else "...")
        return v

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.args, dict):
            record.args = {k: self._clip(v) for k, v in record.args.items()}
        elif isinstance(record.args, tuple):
            record.args = tuple(self._clip(v) for v in record.args)
        return True

def _owned(logger: logging.Logger) -> List[logging.Handler]:
    return [h for h in logger.handlers if getattr(h, "_bridges_owned", False)]

def _make_handlers(log_file: Path, console: bool) -> List[logging.Handler]:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    fmt = logging.Formatter(fmt=FORMAT, datefmt=DATEFMT)
    clip = _ClipFilter()

    handlers: List[logging.Handler] = [
        TimedRotatingFileHandler(str(log_file), when="midnight", backupCount=7, encoding="utf-8")
    ]
    if console:
        handlers.append(logging.StreamHandler())
    for h in handlers:
        h.setFormatter(fmt)
        h.addFilter(clip)
        h._bridges_owned = True
    return handlers

def setup_logging(level: Optional[Union[str, int]] = None, log_file: Optional[Path] = None,
                  console: bool = True) -> logging.Logger:
    """Configure the "bridges" logger and tee uvicorn's loggers into the same file.

    Safe to call more than once: later calls only change the level.
    """
    lvl = resolve_level(level)
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(lvl)
    logger.propagate = False

    existing = _owned(logger)
    if existing:
        for h in existing:
            h.setLevel(lvl)
        return logger

    log_file = Path(log_file) if log_file else log_file_path()
    handlers = _make_handlers(log_file, console)
    for h in handlers:
        h.setLevel(lvl)
        logger.addHandler(h)

    file_handler = handlers[0]
    for name in SERVER_LOGGERS:
        server_logger = logging.getLogger(name)
        if file_handler not in server_logger.handlers:
            server_logger.addHandler(file_handler)

    logger.info("Logging initialized at %s (file=%s)", logging.getLevelName(lvl), log_file)
    return logger

def teardown_logging() -> None:
    """Detach and close handlers added by setup_logging(); "bridges" propagates again."""
    logging.getLogger(LOGGER_NAME).propagate = True
    targets = [logging.getLogger(LOGGER_NAME)] + [logging.getLogger(n) for n in SERVER_LOGGERS]
    closed = set()
    for lg in targets:
        for h in _owned(lg):
            lg.removeHandler(h)
            if id(h) not in closed:
                h.close()
                closed.add(id(h))
