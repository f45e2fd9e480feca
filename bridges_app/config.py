#!/usr/bin/env python3
#
###################################################################
# Project: HalifaxBridges
# File: bridges_app/config.py
# Purpose: Environment-driven settings for upstreams, caches and paths.
#
# Description of code and how it works:
# - Loads .env once (python-dotenv) and exposes module-level constants.
# - Upstream origins are fixed defaults; override per deployment via env.
# - BRIDGES_GATEWAY_URL unset means the data service talks to the gateway
#   in-process (ASGI transport) instead of over the network.
#
# Author: Tim Canady
# Created: 2026-10-12
#
# Version: 0.4.0
# Last Modified: 2026-10-17 by Tim Canady
#
# Revision History:
# - 0.4.0 (2026-10-17): Heuristic traffic scan flag; scheduler toggle.
# - 0.2.0 (2026-10-14): Cache windows configurable.
# - 0.1.0 (2026-10-12): Initial settings.
###################################################################
#
from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

ROOT_DIR = Path(__file__).resolve().parents[1]

def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}

def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default

# --- Upstream origins ----------------------------------------------------------

HALIFAX_LAT = 44.6488
HALIFAX_LON = -63.5752

TRAFFIC_URL = os.getenv("BRIDGES_TRAFFIC_URL", "https://halifaxharbourbridges.ca/")
ALERTS_URL = os.getenv(
    "BRIDGES_ALERTS_URL",
    "https://api.weather.gc.ca/collections/citypageweather-realtime/items/ns-19?f=json",
)
WEATHER_URL = os.getenv(
    "BRIDGES_WEATHER_URL",
    "https://api.open-meteo.com/v1/forecast"
    f"?latitude={HALIFAX_LAT}&longitude={HALIFAX_LON}"
    "&current=temperature_2m,apparent_temperature,relative_humidity_2m,weather_code,"
    "wind_speed_10m,wind_gusts_10m,precipitation,snowfall,visibility,is_day"
    "&timezone=America%2FHalifax",
)

# Where the data service reaches /api/*; None -> in-process
GATEWAY_URL: Optional[str] = os.getenv("BRIDGES_GATEWAY_URL") or None

# --- Cache windows / timers ----------------------------------------------------

TRAFFIC_REFRESH_SECONDS = _env_float("BRIDGES_TRAFFIC_REFRESH_SECONDS", 60.0)
WEATHER_MAX_AGE_SECONDS = _env_float("BRIDGES_WEATHER_MAX_AGE_SECONDS", 300.0)
ALERTS_MAX_AGE_SECONDS = _env_float("BRIDGES_ALERTS_MAX_AGE_SECONDS", 300.0)

SCHEDULER_ENABLED = _env_bool("BRIDGES_SCHEDULER_ENABLED", True)

# Best-effort paragraph scan when the traffic grid is missing (unverified)
TRAFFIC_HEURISTIC_FALLBACK = _env_bool("BRIDGES_TRAFFIC_HEURISTIC_FALLBACK", False)

# --- Static SPA ----------------------------------------------------------------

STATIC_DIR = Path(os.getenv("BRIDGES_STATIC_DIR", ROOT_DIR / "dist"))
