#!/usr/bin/env python3
#
###################################################################
# Project: HalifaxBridges
# File: bridges_app/connectors/alerts.py
# Purpose: Environment Canada alerts connector (citypage JSON -> WeatherAlert)
#
# Description of code and how it works:
# - Fetches /api/alerts through the gateway (EC blocks browser CORS).
# - Tolerant of payload shape: top-level "warnings", GeoJSON Feature
#   properties.warnings, or a FeatureCollection whose first feature has them.
# - Bilingual fields ({"en": ..., "fr": ...}) are read in English.
# - Type by ordered keyword rules, severity by fixed table (classifiers.py).
# - eventIssue missing -> now; unparseable -> record skipped.
# - expiryTime missing/unparseable -> now + 24h.
# - Only active or upcoming alerts are kept; output sorted by
#   (severity rank, effective).
# - Batch-level failure -> [] (strict=True raises UpstreamError instead so the
#   cache can keep its previous list).
#
# Author: Tim Canady
# Created: 2026-10-13
#
# Version: 0.6.1
# Last Modified: 2026-10-18 by Tim Canady
#
# Revision History:
# - 0.6.1 (2026-10-18): Wrongly shaped feature/warnings raise ParseError.
# - 0.6.0 (2026-10-17): strict mode for cache fallback; time-remaining helper.
# - 0.4.0 (2026-10-15): Switch from RSS XML to GeoMet citypage JSON.
# - 0.1.0 (2026-10-13): Initial alerts fetch.
###################################################################
#
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import httpx

from ..classifiers import SEVERITY_RANK, alert_severity, classify_alert_type
from ..exceptions import ParseError, UpstreamError
from ..schemas import AlertSeverity, WeatherAlert

log = logging.getLogger("bridges")

ALERTS_API_PATH = "/api/alerts"
DEFAULT_EXPIRY = timedelta(hours=24)
AREAS = ["Halifax", "Halifax Metro"]

# ---- small utils --------------------------------------------------------------

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)

def _parse_dt(value: Optional[str]) -> Optional[datetime]:
    """Parse ISO8601 (Z or offset). Naive values are taken as UTC."""
    if not value:
        return None
    try:
        dt = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)

def _en(field: Any) -> str:
    if isinstance(field, dict):
        return str(field.get("en") or "")
    if isinstance(field, str):
        return field
    return ""

def _warnings_list(payload: Any) -> List[Dict[str, Any]]:
    if not isinstance(payload, dict):
        raise ParseError(f"alerts payload is {type(payload).__name__}, expected object")
    if isinstance(payload.get("warnings"), list):
        items = payload["warnings"]
    elif isinstance(payload.get("properties"), dict):
        items = payload["properties"].get("warnings") or []
    elif isinstance(payload.get("features"), list) and payload["features"]:
        feature = payload["features"][0]
        if not isinstance(feature, dict):
            raise ParseError(f"alerts feature is {type(feature).__name__}, expected object")
        props = feature.get("properties") or {}
        if not isinstance(props, dict):
            raise ParseError(f"alerts feature properties is {type(props).__name__}, expected object")
        items = props.get("warnings") or []
    else:
        items = []
    if not isinstance(items, list):
        raise ParseError(f"alerts warnings is {type(items).__name__}, expected list")
    return [x for x in items if isinstance(x, dict)]

def format_time_remaining(expires: datetime, now: Optional[datetime] = None) -> str:
    diff = (expires - (now or _utcnow())).total_seconds()
    if diff <= 0:
        return "Expired"
    hours = int(diff // 3600)
    minutes = int((diff % 3600) // 60)
    if hours > 24:
        days = hours // 24
        return f"{days} day{'s' if days > 1 else ''} remaining"
    if hours > 0:
        return f"{hours}h {minutes}m remaining"
    return f"{minutes}m remaining"

# ---- parsing ------------------------------------------------------------------

def _normalize_warning(warning: Dict[str, Any], index: int, now: datetime) -> Optional[WeatherAlert]:
    description = _en(warning.get("description")).strip()
    if not description:
        log.info("[ALERTS] skip warning index=%d reason=no_description", index)
        return None

    alert_type = classify_alert_type(description)
    severity = alert_severity(alert_type, description)

    issue_raw = _en(warning.get("eventIssue"))
    effective = _parse_dt(issue_raw) if issue_raw else now
    if effective is None:
        log.warning("[ALERTS] skip warning index=%d reason=bad_eventIssue value=%s", index, issue_raw)
        return None

    expires = _parse_dt(_en(warning.get("expiryTime")))
    if expires is None:
        expires = now + DEFAULT_EXPIRY

    is_active = effective <= now <= expires
    is_upcoming = now < effective
    if not is_active and not is_upcoming:
        return None

    url = _en(warning.get("url")) or None
    return WeatherAlert(
        id=f"ec-{index}-{int(effective.timestamp() * 1000)}",
        type=alert_type,
        severity=severity,
        title=description,
        headline=description,
        description=f"Please visit the official Environment Canada website for full details: {url or ''}",
        instruction="Monitor conditions and follow official guidance.",
        areas=list(AREAS),
        url=url,
        effective=effective,
        expires=expires,
        is_active=is_active,
        is_upcoming=is_upcoming,
        urgency="Immediate" if is_active else "Expected",
        certainty="Likely" if severity in (AlertSeverity.EXTREME, AlertSeverity.SEVERE) else "Possible",
    )

def sort_alerts(alerts: List[WeatherAlert]) -> List[WeatherAlert]:
    return sorted(alerts, key=lambda a: (SEVERITY_RANK[a.severity], a.effective))

def parse_weather_alerts(payload: Any, now: Optional[datetime] = None) -> List[WeatherAlert]:
    """Raises ParseError when the payload or its warnings list is the wrong shape."""
    now = now or _utcnow()
    alerts = []
    for index, warning in enumerate(_warnings_list(payload)):
        alert = _normalize_warning(warning, index, now)
        if alert is not None:
            alerts.append(alert)
    return sort_alerts(alerts)

# ---- fetch --------------------------------------------------------------------

async def fetch_weather_alerts(client: httpx.AsyncClient, strict: bool = False) -> List[WeatherAlert]:
    log.info("[ALERTS] fetch start path=%s", ALERTS_API_PATH)
    try:
        try:
            resp = await client.get(ALERTS_API_PATH, headers={"Accept": "application/json"})
        except httpx.HTTPError as e:
            raise UpstreamError(f"alerts transport error: {e}") from e
        if resp.status_code >= 400:
            raise UpstreamError(f"API returned {resp.status_code}", status=resp.status_code)
        try:
            payload = resp.json()
        except ValueError as e:
            raise ParseError(f"alerts body is not JSON: {e}") from e

        alerts = parse_weather_alerts(payload)
    except (UpstreamError, ParseError) as e:
        log.warning("[ALERTS] fetch failed err=%s", e)
        if strict:
            raise
        return []

    log.info("[ALERTS] fetch success count=%d active=%d", len(alerts), sum(a.is_active for a in alerts))
    return alerts
