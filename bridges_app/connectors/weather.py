#!/usr/bin/env python3
#
###################################################################
# Project: HalifaxBridges
# File: bridges_app/connectors/weather.py
# Purpose: Open-Meteo connector (current conditions -> WeatherData)
#
# Description of code and how it works:
# - Open-Meteo is free, keyless and CORS-enabled, so it is fetched directly
#   (not through the gateway).
# - weather_code -> WeatherCondition via WMO bands, then blizzard/hurricane
#   overrides, then ordered severity tiers (see classifiers.py).
# - visibility arrives in metres and is stored in km.
# - Any transport or parse error -> None; callers must tolerate absence.
#
# Author: Tim Canady
# Created: 2026-10-13
#
# Version: 0.4.1
# Last Modified: 2026-10-18 by Tim Canady
#
# Revision History:
# - 0.4.1 (2026-10-18): Reject non-finite numbers (1e999 parses as inf).
# - 0.4.0 (2026-10-16): Injectable rng for sayings.
# - 0.1.0 (2026-10-13): Initial Open-Meteo fetch.
###################################################################
#
from __future__ import annotations

import logging
import math
import random
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import httpx

from .. import config
from ..classifiers import (
    apply_condition_overrides,
    calculate_severity,
    is_weather_fucked,
    map_weather_code,
    short_status,
)
from ..sayings import pick_saying
from ..schemas import WeatherData

log = logging.getLogger("bridges")

_REQUIRED = (
    "temperature_2m", "apparent_temperature", "relative_humidity_2m", "weather_code",
    "wind_speed_10m", "wind_gusts_10m", "precipitation", "snowfall", "visibility",
)

def _num(current: Dict[str, Any], key: str) -> float:
    v = current.get(key)
    if v is None:
        raise ValueError(f"missing current.{key}")
    f = float(v)
    if not math.isfinite(f):
        raise ValueError(f"non-finite current.{key}={v!r}")
    return f

def parse_weather_payload(payload: Any, rng: Optional[random.Random] = None,
                          now: Optional[datetime] = None) -> Optional[WeatherData]:
    try:
        current = payload.get("current") if isinstance(payload, dict) else None
        if not isinstance(current, dict):
            log.warning("[WEATHER] payload has no 'current' object")
            return None

        vals = {k: _num(current, k) for k in _REQUIRED}
        code = int(vals["weather_code"])
        wind = vals["wind_speed_10m"]
        gusts = vals["wind_gusts_10m"]
        temperature = vals["temperature_2m"]
        feels_like = vals["apparent_temperature"]
        visibility_km = vals["visibility"] / 1000

        condition = apply_condition_overrides(map_weather_code(code), wind, gusts)
        severity = calculate_severity(
            condition,
            wind_speed=wind,
            wind_gusts=gusts,
            feels_like=feels_like,
            snowfall=vals["snowfall"],
            visibility=visibility_km,
        )

        return WeatherData(
            temperature=temperature,
            feels_like=feels_like,
            wind_speed=wind,
            wind_gusts=gusts,
            precipitation=vals["precipitation"],
            snowfall=vals["snowfall"],
            humidity=vals["relative_humidity_2m"],
            visibility=visibility_km,
            condition=condition,
            condition_code=code,
            is_day=current.get("is_day") == 1,
            last_updated=now or datetime.now(timezone.utc),
            severity=severity,
            maritimer_saying=pick_saying(severity, condition, temperature, rng=rng),
            short_status=short_status(severity),
            is_fucked=is_weather_fucked(severity),
        )
    except (TypeError, ValueError, OverflowError) as e:
        log.warning("[WEATHER] malformed payload err=%s", e)
        return None

async def fetch_weather_data(client: httpx.AsyncClient, url: Optional[str] = None,
                             rng: Optional[random.Random] = None) -> Optional[WeatherData]:
    url = url or config.WEATHER_URL
    log.info("[WEATHER] fetch start url=%s", url)
    try:
        resp = await client.get(url)
        resp.raise_for_status()
        payload = resp.json()
    except (httpx.HTTPError, ValueError) as e:
        log.warning("[WEATHER] fetch failed err=%s", e)
        return None

    data = parse_weather_payload(payload, rng=rng)
    if data is not None:
        log.info("[WEATHER] fetch success condition=%s severity=%s",
                 data.condition.value, data.severity.value)
    return data
