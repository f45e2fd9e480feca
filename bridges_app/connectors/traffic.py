#!/usr/bin/env python3
#
###################################################################
# Project: HalifaxBridges
# File: bridges_app/connectors/traffic.py
# Purpose: Halifax Harbour Bridges connector (scraped HTML -> TrafficData)
#
# Description of code and how it works:
# - halifaxharbourbridges.ca has no public API; the page carries a
#   .traffic-info-grid with four .post-thumb-wrapper cards in fixed order:
#   Macdonald->Dartmouth, Macdonald->Halifax, MacKay->Dartmouth, MacKay->Halifax.
# - Each card's ".post-details p" text is classified via parse_traffic_level.
# - Grid missing -> None. Optional best-effort paragraph scan (env flag
#   BRIDGES_TRAFFIC_HEURISTIC_FALLBACK) is logged and marks the result degraded.
# - Fetch goes through the gateway (/api/traffic); any failure -> None and the
#   caller falls back to its last snapshot or baseline_traffic_data().
#
# Author: Tim Canady
# Created: 2026-10-12
#
# Version: 0.7.0
# Last Modified: 2026-10-17 by Tim Canady
#
# Revision History:
# - 0.7.0 (2026-10-17): Heuristic paragraph scan behind flag; degraded marker.
# - 0.5.0 (2026-10-15): Fetch via gateway client instead of direct origin.
# - 0.1.0 (2026-10-12): Initial grid parser.
###################################################################
#
from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Dict, List, Optional

import httpx
from bs4 import BeautifulSoup
from bs4.element import Tag

from .. import config
from ..classifiers import calculate_fuck_level, parse_traffic_level
from ..schemas import Bridge, BridgeDirection, TrafficData, TrafficLevel

log = logging.getLogger("bridges")

TRAFFIC_API_PATH = "/api/traffic"

_CAM_BASE = "https://halifaxharbourbridges.ca/wp-content/traffic_cam_images"
CAMERA_URLS: Dict[str, Dict[str, str]] = {
    "macdonald": {
        "dartmouth": f"{_CAM_BASE}/macdonald-dartmouth-bound.png",
        "halifax": f"{_CAM_BASE}/macdonald-halifax-bound.png",
    },
    "mackay": {
        "dartmouth": f"{_CAM_BASE}/mackay-dartmouth-bound.png",
        "halifax": f"{_CAM_BASE}/mackay-halifax-bound.png",
    },
}

# Card order on the page
CARD_SLOTS = [
    ("macdonald", "dartmouth"),
    ("macdonald", "halifax"),
    ("mackay", "dartmouth"),
    ("mackay", "halifax"),
]

_BRIDGE_NAMES = {"macdonald": "Macdonald", "mackay": "MacKay"}

# ---- small utils --------------------------------------------------------------

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)

def camera_image_url(url: str, now: Optional[float] = None) -> str:
    """Cache-busted camera URL (?t=<epoch ms>)."""
    ts = int((time.time() if now is None else now) * 1000)
    return f"{url}?t={ts}"

def _direction(bridge_key: str, towards: str, level: TrafficLevel) -> BridgeDirection:
    return BridgeDirection(
        direction="Halifax Bound" if towards == "halifax" else "Dartmouth Bound",
        level=level,
        camera_url=CAMERA_URLS[bridge_key][towards],
    )

def build_traffic_data(levels: Dict[tuple, TrafficLevel], degraded: bool = False,
                       now: Optional[datetime] = None) -> TrafficData:
    """Assemble both bridges from a {(bridge, towards): level} map."""
    bridges = {}
    for key in ("macdonald", "mackay"):
        bridges[key] = Bridge(
            name=_BRIDGE_NAMES[key],
            halifax_bound=_direction(key, "halifax", levels.get((key, "halifax"), TrafficLevel.UNKNOWN)),
            dartmouth_bound=_direction(key, "dartmouth", levels.get((key, "dartmouth"), TrafficLevel.UNKNOWN)),
        )
    is_fucked, fuck_level = calculate_fuck_level(bridges["macdonald"], bridges["mackay"])
    return TrafficData(
        macdonald=bridges["macdonald"],
        mackay=bridges["mackay"],
        last_updated=now or _utcnow(),
        is_fucked=is_fucked,
        fuck_level=fuck_level,
        degraded=degraded,
    )

def baseline_traffic_data(now: Optional[datetime] = None) -> TrafficData:
    """Shown before any real snapshot exists: light traffic both directions."""
    levels = {slot: TrafficLevel.LIGHT for slot in CARD_SLOTS}
    return build_traffic_data(levels, degraded=True, now=now)

# ---- parsing ------------------------------------------------------------------

def _card_text(card: Tag) -> str:
    p = card.select_one(".post-details p")
    return p.get_text(" ", strip=True) if p else ""

def _preceding_heading_text(p: Tag) -> str:
    h = p.find_previous(["h1", "h2", "h3", "h4", "h5", "h6", "strong"])
    return h.get_text(" ", strip=True) if h else ""

def _heuristic_scan(soup: BeautifulSoup) -> Optional[Dict[tuple, TrafficLevel]]:
    """
    Best-effort, unverified: match each <p> (plus its nearest heading) to a
    bridge + direction by name proximity. Can silently mis-assign directions.
    """
    found: Dict[tuple, TrafficLevel] = {}
    for p in soup.find_all("p"):
        text = p.get_text(" ", strip=True)
        context = f"{_preceding_heading_text(p)} {text}".lower()
        level = parse_traffic_level(text)
        if level is TrafficLevel.UNKNOWN:
            continue
        bridge = "mackay" if "mackay" in context else ("macdonald" if "macdonald" in context else None)
        towards = "dartmouth" if "dartmouth" in context else ("halifax" if "halifax" in context else None)
        if bridge and towards and (bridge, towards) not in found:
            found[(bridge, towards)] = level
    if len(found) < len(CARD_SLOTS):
        log.warning("[TRAFFIC] heuristic scan incomplete matched=%d", len(found))
        return None
    return found

def parse_traffic_html(html: str, allow_heuristic: bool = False) -> Optional[TrafficData]:
    try:
        soup = BeautifulSoup(html or "", "html.parser")
        grid = soup.select_one(".traffic-info-grid")

        if grid is None:
            if not allow_heuristic:
                log.warning("[TRAFFIC] .traffic-info-grid not found; no result")
                return None
            log.warning("[TRAFFIC] .traffic-info-grid not found; using best-effort paragraph scan (unverified)")
            levels = _heuristic_scan(soup)
            return build_traffic_data(levels, degraded=True) if levels else None

        cards: List[Tag] = grid.select(".post-thumb-wrapper")
        if len(cards) != len(CARD_SLOTS):
            log.warning("[TRAFFIC] expected %d cards, found %d", len(CARD_SLOTS), len(cards))

        levels = {
            slot: parse_traffic_level(_card_text(card))
            for slot, card in zip(CARD_SLOTS, cards)
        }
        return build_traffic_data(levels)
    except Exception as e:
        log.exception("[TRAFFIC] parse error err=%s", e)
        return None

# ---- fetch --------------------------------------------------------------------

async def fetch_traffic_data(client: httpx.AsyncClient,
                             allow_heuristic: Optional[bool] = None) -> Optional[TrafficData]:
    if allow_heuristic is None:
        allow_heuristic = config.TRAFFIC_HEURISTIC_FALLBACK
    log.info("[TRAFFIC] fetch start path=%s", TRAFFIC_API_PATH)
    try:
        resp = await client.get(TRAFFIC_API_PATH, headers={"Accept": "text/html"})
    except httpx.HTTPError as e:
        log.warning("[TRAFFIC] fetch transport error err=%s", e)
        return None

    if resp.status_code >= 400:
        log.warning("[TRAFFIC] fetch failed status=%s body=%s", resp.status_code, resp.text)
        return None

    data = parse_traffic_html(resp.text, allow_heuristic=allow_heuristic)
    if data is None:
        log.warning("[TRAFFIC] failed to parse traffic data from HTML")
    else:
        log.info("[TRAFFIC] fetch success fuck_level=%s", data.fuck_level.value)
    return data
