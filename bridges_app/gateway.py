#!/usr/bin/env python3
#
###################################################################
# Project: HalifaxBridges
# File: bridges_app/gateway.py
# Purpose: CORS proxy for the two upstream origins (/api/alerts, /api/traffic)
#
# Description of code and how it works:
# - Exactly two routes, each bound to one fixed upstream URL.
# - OPTIONS -> 204 with permissive CORS headers.
# - GET -> upstream fetch with a desktop-browser User-Agent + route Accept;
#   2xx body relayed verbatim with the route's content type + Cache-Control.
# - Upstream non-2xx -> JSON {"error", "status"} with the upstream status.
# - Transport failure -> 500 JSON {"error"}.
# - Never parses payloads; parsing happens in connectors after the relay.
# - Upstream client is a dependency (get_upstream_client) so tests can swap it.
#
# Author: Tim Canady
# Created: 2026-10-12
#
# Version: 0.5.0
# Last Modified: 2026-10-17 by Tim Canady
#
# Revision History:
# - 0.5.0 (2026-10-17): Unknown /api/* -> 404 JSON.
# - 0.3.0 (2026-10-14): /api/traffic route; shared proxy handler.
# - 0.1.0 (2026-10-12): /api/alerts proxy.
###################################################################
#
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import AsyncIterator, Dict

import httpx
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response

from . import config

log = logging.getLogger("bridges")

router = APIRouter(prefix="/api", tags=["gateway"])

BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/121.0.0.0 Safari/537.36"
)

@dataclass(frozen=True)
class UpstreamRoute:
    name: str
    url: str
    content_type: str
    max_age: int
    headers: Dict[str, str] = field(default_factory=dict)

ROUTES: Dict[str, UpstreamRoute] = {
    "alerts": UpstreamRoute(
        name="alerts",
        url=config.ALERTS_URL,
        content_type="application/json; charset=utf-8",
        max_age=300,
        headers={"Accept": "application/json, */*", "Referer": "https://weather.gc.ca/"},
    ),
    "traffic": UpstreamRoute(
        name="traffic",
        url=config.TRAFFIC_URL,
        content_type="text/html; charset=utf-8",
        max_age=60,
        headers={"Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"},
    ),
}

def cors_headers(max_age: int) -> Dict[str, str]:
    return {
        "Access-Control-Allow-Origin": "*",
        "Access-Control-Allow-Methods": "GET, OPTIONS",
        "Access-Control-Allow-Headers": "Content-Type",
        "Cache-Control": f"public, max-age={max_age}",
    }

async def get_upstream_client() -> AsyncIterator[httpx.AsyncClient]:
    async with httpx.AsyncClient(follow_redirects=True) as client:
        yield client

async def proxy(route: UpstreamRoute, request: Request, client: httpx.AsyncClient) -> Response:
    headers = cors_headers(route.max_age)

    if request.method == "OPTIONS":
        return Response(status_code=204, headers=headers)

    upstream_headers = {"User-Agent": BROWSER_USER_AGENT, **route.headers}
    try:
        resp = await client.get(route.url, headers=upstream_headers)
    except httpx.HTTPError as e:
        log.error("[GATEWAY] upstream transport error route=%s url=%s err=%s", route.name, route.url, e)
        return JSONResponse({"error": "Failed to fetch upstream data"}, status_code=500, headers=headers)

    if not resp.is_success:
        log.warning("[GATEWAY] upstream non-success route=%s status=%s", route.name, resp.status_code)
        return JSONResponse(
            {"error": f"Upstream returned {resp.status_code}", "status": resp.status_code},
            status_code=resp.status_code,
            headers=headers,
        )

    log.info("[GATEWAY] relay route=%s status=%s bytes=%d", route.name, resp.status_code, len(resp.content))
    return Response(content=resp.content, status_code=200, media_type=route.content_type, headers=headers)

@router.api_route("/alerts", methods=["GET", "OPTIONS"])
async def api_alerts(request: Request, client: httpx.AsyncClient = Depends(get_upstream_client)):
    return await proxy(ROUTES["alerts"], request, client)

@router.api_route("/traffic", methods=["GET", "OPTIONS"])
async def api_traffic(request: Request, client: httpx.AsyncClient = Depends(get_upstream_client)):
    return await proxy(ROUTES["traffic"], request, client)

@router.api_route("/{rest:path}", methods=["GET", "OPTIONS"], include_in_schema=False)
async def api_not_found(rest: str):
    return JSONResponse({"error": "Not Found", "path": f"/api/{rest}"}, status_code=404)
