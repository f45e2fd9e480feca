import random
from datetime import timedelta

import httpx
import pytest
from fastapi.testclient import TestClient

from bridges_app.cache import DataService
from bridges_app.connectors.alerts import parse_weather_alerts
from bridges_app.connectors.traffic import parse_traffic_html
from bridges_app.connectors.weather import parse_weather_payload
from bridges_app.gateway import get_upstream_client
from bridges_app.main import app, get_data_service
from bridges_app.schemas import (
    AlertSeverity,
    AlertType,
    FuckLevel,
    TrafficLevel,
    WeatherCondition,
    WeatherSeverity,
)

from conftest import iso, open_meteo_payload, traffic_html, warning


@pytest.fixture
def upstream_status():
    """Gateway upstream answering every request with the given status/body."""
    state = {"response": lambda request: httpx.Response(503, text="Service Unavailable")}

    async def _override():
        async with httpx.AsyncClient(transport=httpx.MockTransport(lambda r: state["response"](r))) as client:
            yield client

    app.dependency_overrides[get_upstream_client] = _override
    yield state
    app.dependency_overrides.pop(get_upstream_client, None)


@pytest.fixture
def in_process_service(mock_transport):
    """DataService that reaches /api/* through the real gateway in-process."""
    gateway_client = httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://gateway")
    weather_client = httpx.AsyncClient(transport=mock_transport)
    return DataService(gateway_client=gateway_client, weather_client=weather_client, rng=random.Random(1))


def test_scenario_heavy_rain_is_rough():
    data = parse_weather_payload(open_meteo_payload(weather_code=65, wind_speed_10m=10, apparent_temperature=5))
    assert data.condition == WeatherCondition.HEAVY_RAIN
    assert data.severity == WeatherSeverity.ROUGH


def test_scenario_two_closed_is_absolutely():
    data = parse_traffic_html(traffic_html(["Closed", "Closed", "Heavy", "Light"]))
    assert data.fuck_level == FuckLevel.ABSOLUTELY
    assert data.is_fucked is True


@pytest.mark.asyncio
async def test_scenario_gateway_503_gives_light_baseline(upstream_status, in_process_service):
    data = await in_process_service.traffic.get()
    assert data is not None
    assert data.degraded is True
    levels = data.macdonald.levels() + data.mackay.levels()
    assert levels == [TrafficLevel.LIGHT] * 4
    assert data.fuck_level == FuckLevel.NOT
    await in_process_service.close()


@pytest.mark.asyncio
async def test_traffic_through_gateway_in_process(upstream_status, in_process_service):
    upstream_status["response"] = lambda request: httpx.Response(
        200, text=traffic_html(["Heavy", "Heavy", "Moderate", "Light"])
    )
    data = await in_process_service.traffic.get()
    assert data.degraded is False
    assert data.fuck_level == FuckLevel.KINDA
    await in_process_service.close()


def test_scenario_blizzard_warning_is_extreme(now):
    alerts = parse_weather_alerts({"warnings": [
        warning("Blizzard warning in effect for Halifax Metro", issue=iso(now), expiry=iso(now + timedelta(hours=8))),
    ]}, now=now)
    assert alerts[0].type == AlertType.BLIZZARD_WARNING
    assert alerts[0].severity == AlertSeverity.EXTREME


# ---- status endpoints -------------------------------------------------------

@pytest.fixture
def status_client(service):
    app.dependency_overrides[get_data_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.pop(get_data_service, None)


def test_status_traffic(status_client):
    r = status_client.get("/status/traffic")
    assert r.status_code == 200
    body = r.json()
    assert body["ok"] is True
    assert body["data"]["fuck_level"] == "not"
    assert body["data"]["mackay"]["dartmouth_bound"]["level"] == "moderate"
    assert body["bridges"]["mackay"]["reason"] == "Mostly light traffic"
    assert body["cache"]["loaded"] is True


def test_status_weather(status_client):
    body = status_client.get("/status/weather").json()
    assert body["data"]["condition"] == "clear"
    assert body["data"]["short_status"] == "All Good"


def test_status_weather_unavailable(status_client, upstream_routes):
    upstream_routes["/v1/forecast"] = httpx.Response(500, text="down")
    r = status_client.get("/status/weather")
    assert r.status_code == 503
    assert r.json()["ok"] is False


def test_status_alerts(status_client):
    body = status_client.get("/status/alerts").json()
    assert body["count"] == 1
    assert body["most_severe"]["type"] == "wind_warning"
    assert len(body["active"]) == 1
    assert body["upcoming"] == []


def test_status_combined_and_refresh(status_client, upstream_routes):
    assert status_client.get("/status").json()["traffic"]["fuck_level"] == "not"
    upstream_routes["/api/traffic"] = httpx.Response(200, text=traffic_html(["Closed", "Closed", "Light", "Light"]))
    # cached until a refresh is asked for
    assert status_client.get("/status/traffic").json()["data"]["fuck_level"] == "not"
    body = status_client.get("/status/traffic", params={"refresh": "true"}).json()
    assert body["data"]["fuck_level"] == "absolutely"
    assert body["bridges"]["macdonald"]["severity"] == "critical"


def test_healthz_without_service():
    body = TestClient(app).get("/healthz").json()
    assert body["ok"] is True
