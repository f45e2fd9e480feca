#!/usr/bin/env python3
#
###################################################################
# Project: HalifaxBridges
# File: bridges_app/cache.py
# Purpose: Time-boxed caches for traffic/weather/alerts + owning service.
#
# Description of code and how it works:
# - TimedCache wraps one loader coroutine with a freshness window.
#   get() serves the cached value inside the window, else refreshes.
#   refresh() stores any non-None result (last write wins); on failure or
#   None it keeps serving the previous value, or the fallback if none yet.
#   Unexpected loader exceptions are logged with traceback and treated the same.
# - dispose() turns later writes into no-ops so a refresh that completes
#   after shutdown is dropped.
# - DataService owns the three caches and the HTTP clients; it is built once
#   at app startup (main.py) and kept on app.state.
# - Single event loop: no locks. Overlapping refreshes are not deduplicated.
#
# Author: Tim Canady
# Created: 2026-10-14
#
# Version: 0.4.1
# Last Modified: 2026-10-18 by Tim Canady
#
# Revision History:
# - 0.4.1 (2026-10-18): Unexpected loader errors logged and absorbed.
# - 0.4.0 (2026-10-17): read() for endpoints; alert derived views.
# - 0.2.0 (2026-10-15): DataService replaces module-level cache globals.
# - 0.1.0 (2026-10-14): Initial TimedCache.
###################################################################
#
from __future__ import annotations

import logging
import random
import time
from typing import Any, Awaitable, Callable, Dict, Generic, List, Optional, TypeVar

import httpx

from . import config
from .connectors.alerts import fetch_weather_alerts
from .connectors.traffic import baseline_traffic_data, fetch_traffic_data
from .connectors.weather import fetch_weather_data
from .exceptions import BridgesError
from .schemas import TrafficData, WeatherAlert, WeatherData

log = logging.getLogger("bridges")

T = TypeVar("T")

class TimedCache(Generic[T]):
    def __init__(self, name: str, loader: Callable[[], Awaitable[Optional[T]]],
                 max_age: Optional[float], fallback: Optional[Callable[[], T]] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.name = name
        self.loader = loader
        self.max_age = max_age  # None: never fresh, every get() refetches
        self.fallback = fallback
        self.clock = clock
        self.value: Optional[T] = None
        self.timestamp: Optional[float] = None
        self.last_error: Optional[str] = None
        self.disposed = False

    @property
    def loaded(self) -> bool:
        return self.timestamp is not None

    @property
    def age(self) -> Optional[float]:
        return None if self.timestamp is None else self.clock() - self.timestamp

    def is_fresh(self) -> bool:
        if self.max_age is None or not self.loaded:
            return False
        return self.age < self.max_age

    @property
    def current(self) -> Optional[T]:
        if self.loaded:
            return self.value
        return self.fallback() if self.fallback else None

    async def get(self, force: bool = False) -> Optional[T]:
        if not force and self.is_fresh():
            return self.value
        return await self.refresh()

    async def read(self, refresh: bool = False) -> Optional[T]:
        """Endpoint view: current value, loading only if never loaded."""
        if refresh or not self.loaded:
            return await self.get(force=refresh)
        return self.value

    async def refresh(self) -> Optional[T]:
        try:
            result = await self.loader()
        except BridgesError as e:
            self.last_error = str(e)
            log.warning("[CACHE] %s refresh failed err=%s; serving %s",
                        self.name, e, "cached" if self.loaded else "fallback")
            return self.current
        except Exception as e:
            self.last_error = f"{type(e).__name__}: {e}"
            log.exception("[CACHE] %s refresh crashed; serving %s",
                          self.name, "cached" if self.loaded else "fallback")
            return self.current

        if result is None:
            self.last_error = "no result"
            log.warning("[CACHE] %s refresh returned no result; serving %s",
                        self.name, "cached" if self.loaded else "fallback")
            return self.current

        if self.disposed:
            log.info("[CACHE] %s late result after dispose dropped", self.name)
            return result

        self.value = result
        self.timestamp = self.clock()
        self.last_error = None
        return result

    def dispose(self) -> None:
        self.disposed = True

    def status(self) -> Dict[str, Any]:
        age = self.age
        return {
            "loaded": self.loaded,
            "age_seconds": round(age, 1) if age is not None else None,
            "max_age": self.max_age,
            "last_error": self.last_error,
        }

class DataService:
    """Owns the traffic/weather/alerts caches for the lifetime of the app."""

    def __init__(self, gateway_client: httpx.AsyncClient, weather_client: httpx.AsyncClient,
                 rng: Optional[random.Random] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.gateway_client = gateway_client
        self.weather_client = weather_client
        self.rng = rng or random.Random()

        self.traffic: TimedCache[TrafficData] = TimedCache(
            "traffic", self._load_traffic, max_age=None,
            fallback=baseline_traffic_data, clock=clock,
        )
        self.weather: TimedCache[WeatherData] = TimedCache(
            "weather", self._load_weather, max_age=config.WEATHER_MAX_AGE_SECONDS, clock=clock,
        )
        self.alerts: TimedCache[List[WeatherAlert]] = TimedCache(
            "alerts", self._load_alerts, max_age=config.ALERTS_MAX_AGE_SECONDS,
            fallback=list, clock=clock,
        )

    async def _load_traffic(self) -> Optional[TrafficData]:
        return await fetch_traffic_data(self.gateway_client)

    async def _load_weather(self) -> Optional[WeatherData]:
        return await fetch_weather_data(self.weather_client, rng=self.rng)

    async def _load_alerts(self) -> List[WeatherAlert]:
        return await fetch_weather_alerts(self.gateway_client, strict=True)

    async def start(self) -> None:
        """Mount: serve fresh cache or fetch, for each family."""
        for cache in (self.traffic, self.weather, self.alerts):
            await cache.get()

    async def close(self) -> None:
        """Unmount: drop late writes, release clients."""
        for cache in (self.traffic, self.weather, self.alerts):
            cache.dispose()
        await self.gateway_client.aclose()
        if self.weather_client is not self.gateway_client:
            await self.weather_client.aclose()

    # ---- derived alert views ----------------------------------------------------

    def active_alerts(self) -> List[WeatherAlert]:
        return [a for a in (self.alerts.current or []) if a.is_active]

    def upcoming_alerts(self) -> List[WeatherAlert]:
        return [a for a in (self.alerts.current or []) if a.is_upcoming]

    def most_severe_alert(self) -> Optional[WeatherAlert]:
        active = self.active_alerts()
        return active[0] if active else None

    def status(self) -> Dict[str, Any]:
        return {
            "traffic": self.traffic.status(),
            "weather": self.weather.status(),
            "alerts": self.alerts.status(),
        }
