import random
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from bridges_app.cache import DataService

NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


def traffic_html(texts):
    """Bridge page with one .post-thumb-wrapper card per text, in page order."""
    cards = "".join(
        f'<div class="post-thumb-wrapper"><div class="post-details"><h3>Card {i}</h3><p>{t}</p></div></div>'
        for i, t in enumerate(texts)
    )
    return f'<html><body><section class="traffic-info-grid">{cards}</section></body></html>'


def open_meteo_payload(**current):
    base = {
        "time": "2026-01-15T08:00",
        "interval": 900,
        "temperature_2m": 4.0,
        "apparent_temperature": 1.0,
        "relative_humidity_2m": 80,
        "weather_code": 0,
        "wind_speed_10m": 10.0,
        "wind_gusts_10m": 20.0,
        "precipitation": 0.0,
        "snowfall": 0.0,
        "visibility": 24000.0,
        "is_day": 1,
    }
    base.update(current)
    return {"latitude": 44.65, "longitude": -63.57, "current": base}


def warning(description, issue=None, expiry=None, url="https://weather.gc.ca/warnings/report_e.html?ns19"):
    w = {"description": {"en": description, "fr": "(fr) " + description}, "url": {"en": url}}
    if issue is not None:
        w["eventIssue"] = {"en": issue}
    if expiry is not None:
        w["expiryTime"] = {"en": expiry}
    return w


def iso(dt):
    return dt.strftime("%Y-%m-%dT%H:%M:%SZ")


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def rng():
    return random.Random(42)


@pytest.fixture
def upstream_routes():
    """Mutable path -> httpx.Response map served by the mock transport."""
    return {
        "/api/traffic": httpx.Response(200, text=traffic_html(["Light", "Light", "Moderate", "Light"])),
        "/api/alerts": httpx.Response(200, json={"warnings": [
            warning("Wind warning in effect", issue=iso(datetime.now(timezone.utc) - timedelta(hours=1)),
                    expiry=iso(datetime.now(timezone.utc) + timedelta(hours=5))),
        ]}),
        "/v1/forecast": httpx.Response(200, json=open_meteo_payload()),
    }


@pytest.fixture
def mock_transport(upstream_routes):
    calls = []

    def handler(request):
        calls.append(request)
        resp = upstream_routes.get(request.url.path)
        if isinstance(resp, Exception):
            raise resp
        if resp is None:
            return httpx.Response(404, text="nope")
        return httpx.Response(resp.status_code, content=resp.content, headers=resp.headers)

    transport = httpx.MockTransport(handler)
    transport.calls = calls
    return transport


@pytest.fixture
def service(mock_transport, rng):
    gateway_client = httpx.AsyncClient(transport=mock_transport, base_url="http://gateway")
    weather_client = httpx.AsyncClient(transport=mock_transport)
    return DataService(gateway_client=gateway_client, weather_client=weather_client, rng=rng)


