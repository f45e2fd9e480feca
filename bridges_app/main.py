#!/usr/bin/env python3
#
###################################################################
# Project: HalifaxBridges
# File: bridges_app/main.py
# Purpose: FastAPI app (gateway + status API + SPA + scheduler)
#
# Description of code and how it works:
# - Mounts the /api gateway router (alerts + traffic proxies).
# - /status/* serves the cached, classified snapshots from DataService.
# - Scheduler refreshes traffic every 60s, weather and alerts every 5 min.
# - DataService reaches /api/* in-process (ASGI transport) unless
#   BRIDGES_GATEWAY_URL points at a deployed gateway.
# - Any other path: static file from BRIDGES_STATIC_DIR, else index.html.
#
# Author: Tim Canady
# Created: 2026-10-12
#
# Version: 0.6.1
# Last Modified: 2026-10-18 by Tim Canady
#
# Revision History:
# - 0.6.1 (2026-10-18): Release log handlers on shutdown.
# - 0.6.0 (2026-10-17): Combined /status; cache ages in /healthz.
# - 0.4.0 (2026-10-15): DataService on app.state; scheduler jobs per family.
# - 0.1.0 (2026-10-12): Initial app + /api/alerts.
###################################################################
#
from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import httpx
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import FileResponse, JSONResponse, PlainTextResponse

from . import config
from .cache import DataService
from .classifiers import assess_bridge
from .gateway import router as gateway_router
from .logging_config import log_file_path, setup_logging, teardown_logging

log = logging.getLogger("bridges")

app = FastAPI(title="HalifaxBridges")
app.include_router(gateway_router)

# ------------------------------------------------------------------------------
# Data service dependency
# ------------------------------------------------------------------------------

def build_data_service(target: FastAPI) -> DataService:
    if config.GATEWAY_URL:
        gateway_client = httpx.AsyncClient(base_url=config.GATEWAY_URL)
    else:
        gateway_client = httpx.AsyncClient(transport=httpx.ASGITransport(app=target), base_url="http://gateway")
    return DataService(gateway_client=gateway_client, weather_client=httpx.AsyncClient())

def get_data_service(request: Request) -> DataService:
    service: Optional[DataService] = getattr(request.app.state, "data_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="data service not started")
    return service

# ------------------------------------------------------------------------------
# Status endpoints (cached, classified data)
# ------------------------------------------------------------------------------

@app.get("/status/traffic")
async def status_traffic(refresh: bool = Query(default=False), service: DataService = Depends(get_data_service)):
    data = await service.traffic.read(refresh=refresh)
    return {
        "ok": True,
        "data": data,
        "bridges": {
            "macdonald": assess_bridge(data.macdonald),
            "mackay": assess_bridge(data.mackay),
        },
        "cache": service.traffic.status(),
    }

@app.get("/status/weather")
async def status_weather(refresh: bool = Query(default=False), service: DataService = Depends(get_data_service)):
    data = await service.weather.read(refresh=refresh)
    if data is None:
        return JSONResponse({"ok": False, "error": "Unable to fetch weather data"}, status_code=503)
    return {"ok": True, "data": data, "cache": service.weather.status()}

@app.get("/status/alerts")
async def status_alerts(refresh: bool = Query(default=False), service: DataService = Depends(get_data_service)):
    alerts = await service.alerts.read(refresh=refresh) or []
    return {
        "ok": True,
        "count": len(alerts),
        "alerts": alerts,
        "active": service.active_alerts(),
        "upcoming": service.upcoming_alerts(),
        "most_severe": service.most_severe_alert(),
        "cache": service.alerts.status(),
    }

@app.get("/status")
async def status_all(service: DataService = Depends(get_data_service)):
    traffic = await service.traffic.read()
    weather = await service.weather.read()
    await service.alerts.read()
    return {
        "ok": True,
        "traffic": traffic,
        "weather": weather,
        "most_severe_alert": service.most_severe_alert(),
        "active_alert_count": len(service.active_alerts()),
    }

# ------------------------------------------------------------------------------
# Health + logs
# ------------------------------------------------------------------------------

@app.get("/healthz")
def healthz(request: Request):
    service: Optional[DataService] = getattr(request.app.state, "data_service", None)
    out = {"ok": True, "ts": datetime.now(timezone.utc).isoformat()}
    if service is not None:
        out["caches"] = service.status()
    return out

@app.get("/logs/tail", response_class=PlainTextResponse)
async def logs_tail(lines: int = 500):
    try:
        with open(log_file_path(), "r", encoding="utf-8", errors="ignore") as f:
            data = f.readlines()[-max(1, min(lines, 5000)):]
        return PlainTextResponse("".join(data))
    except FileNotFoundError:
        return PlainTextResponse("[no log file yet]\n")

# ------------------------------------------------------------------------------
# Static SPA (registered last: catch-all)
# ------------------------------------------------------------------------------

def resolve_static(path: str, static_dir: Path) -> Optional[Path]:
    root = static_dir.resolve()
    if not root.is_dir():
        return None
    candidate = (root / path).resolve()
    if path and candidate.is_file() and root in candidate.parents:
        return candidate
    index = root / "index.html"
    return index if index.is_file() else None

@app.get("/{full_path:path}", include_in_schema=False)
async def spa(full_path: str):
    target = resolve_static(full_path, config.STATIC_DIR)
    if target is None:
        return PlainTextResponse("Not Found", status_code=404)
    return FileResponse(target)

# ------------------------------------------------------------------------------
# Scheduler
# ------------------------------------------------------------------------------

scheduler = AsyncIOScheduler()

async def _scheduled_refresh(family: str):
    service: Optional[DataService] = getattr(app.state, "data_service", None)
    if service is None:
        return
    try:
        log.info("[SYNC] scheduler_start family=%s ts=%s", family, datetime.now(timezone.utc).isoformat())
        cache = getattr(service, family)
        await cache.get(force=True)
        log.info("[SYNC] scheduler_done family=%s loaded=%s err=%s", family, cache.loaded, cache.last_error)
    except Exception as e:
        log.exception("[SYNC] scheduler_error family=%s err=%s", family, e)

@app.on_event("startup")
async def _startup():
    setup_logging()
    service = build_data_service(app)
    app.state.data_service = service
    await service.start()

    if config.SCHEDULER_ENABLED:
        scheduler.add_job(_scheduled_refresh, "interval", seconds=config.TRAFFIC_REFRESH_SECONDS,
                          args=["traffic"], id="traffic_refresh", replace_existing=True)
        scheduler.add_job(_scheduled_refresh, "interval", seconds=config.WEATHER_MAX_AGE_SECONDS,
                          args=["weather"], id="weather_refresh", replace_existing=True)
        scheduler.add_job(_scheduled_refresh, "interval", seconds=config.ALERTS_MAX_AGE_SECONDS,
                          args=["alerts"], id="alerts_refresh", replace_existing=True)
        scheduler.start()

@app.on_event("shutdown")
async def _shutdown():
    if scheduler.running:
        scheduler.shutdown(wait=False)
    service: Optional[DataService] = getattr(app.state, "data_service", None)
    if service is not None:
        await service.close()
        app.state.data_service = None
    log.info("[APP] shutdown complete")
    teardown_logging()
