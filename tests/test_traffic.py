import logging

import httpx
import pytest

from bridges_app.connectors.traffic import (
    CAMERA_URLS,
    baseline_traffic_data,
    camera_image_url,
    fetch_traffic_data,
    parse_traffic_html,
)
from bridges_app.schemas import FuckLevel, TrafficLevel

from conftest import traffic_html

HEURISTIC_PAGE = """
<html><body>
  <h3>Macdonald Bridge Dartmouth Bound</h3><p>Traffic is heavy</p>
  <h3>Macdonald Bridge Halifax Bound</h3><p>Traffic is light</p>
  <h3>MacKay Bridge Dartmouth Bound</h3><p>Moderate</p>
  <h3>MacKay Bridge Halifax Bound</h3><p>Closed</p>
</body></html>
"""


def test_parse_grid_in_card_order():
    data = parse_traffic_html(traffic_html(["Heavy", "Light", "Moderate", "Closed"]))
    assert data is not None
    assert data.macdonald.dartmouth_bound.level == TrafficLevel.HEAVY
    assert data.macdonald.halifax_bound.level == TrafficLevel.LIGHT
    assert data.mackay.dartmouth_bound.level == TrafficLevel.MODERATE
    assert data.mackay.halifax_bound.level == TrafficLevel.CLOSED
    assert data.macdonald.name == "Macdonald"
    assert data.mackay.name == "MacKay"
    assert data.macdonald.halifax_bound.direction == "Halifax Bound"
    assert data.mackay.dartmouth_bound.camera_url == CAMERA_URLS["mackay"]["dartmouth"]
    assert data.fuck_level == FuckLevel.VERY
    assert data.is_fucked is True
    assert data.degraded is False


def test_parse_all_light_is_not_fucked():
    data = parse_traffic_html(traffic_html(["Light"] * 4))
    assert data.fuck_level == FuckLevel.NOT
    assert data.is_fucked is False


def test_missing_cards_are_unknown(caplog):
    with caplog.at_level(logging.WARNING, logger="bridges"):
        data = parse_traffic_html(traffic_html(["Heavy", "Heavy"]))
    assert data.macdonald.dartmouth_bound.level == TrafficLevel.HEAVY
    assert data.mackay.halifax_bound.level == TrafficLevel.UNKNOWN
    assert "expected 4 cards" in caplog.text


def test_missing_grid_returns_none():
    assert parse_traffic_html("<html><body><p>Maintenance</p></body></html>") is None
    assert parse_traffic_html("") is None


def test_missing_grid_without_flag_ignores_paragraphs():
    assert parse_traffic_html(HEURISTIC_PAGE) is None


def test_heuristic_scan_is_degraded_and_logged(caplog):
    with caplog.at_level(logging.WARNING, logger="bridges"):
        data = parse_traffic_html(HEURISTIC_PAGE, allow_heuristic=True)
    assert data is not None
    assert data.degraded is True
    assert data.macdonald.dartmouth_bound.level == TrafficLevel.HEAVY
    assert data.mackay.halifax_bound.level == TrafficLevel.CLOSED
    assert "best-effort" in caplog.text


def test_heuristic_scan_incomplete_returns_none():
    page = "<h3>Macdonald Bridge Halifax Bound</h3><p>Heavy</p>"
    assert parse_traffic_html(page, allow_heuristic=True) is None


def test_baseline_is_light_both_ways():
    data = baseline_traffic_data()
    levels = data.macdonald.levels() + data.mackay.levels()
    assert levels == [TrafficLevel.LIGHT] * 4
    assert data.fuck_level == FuckLevel.NOT
    assert data.degraded is True


def test_camera_image_url_cache_buster():
    assert camera_image_url("https://x/cam.png", now=1700000000.5) == "https://x/cam.png?t=1700000000500"


@pytest.mark.asyncio
async def test_fetch_traffic_data_ok():
    transport = httpx.MockTransport(
        lambda request: httpx.Response(200, text=traffic_html(["Closed", "Closed", "Heavy", "Light"]))
    )
    async with httpx.AsyncClient(transport=transport, base_url="http://gateway") as client:
        data = await fetch_traffic_data(client, allow_heuristic=False)
    assert data.fuck_level == FuckLevel.ABSOLUTELY


@pytest.mark.asyncio
async def test_fetch_traffic_data_upstream_error_returns_none():
    transport = httpx.MockTransport(
        lambda request: httpx.Response(503, json={"error": "Upstream returned 503", "status": 503})
    )
    async with httpx.AsyncClient(transport=transport, base_url="http://gateway") as client:
        assert await fetch_traffic_data(client, allow_heuristic=False) is None


@pytest.mark.asyncio
async def test_fetch_traffic_data_transport_error_returns_none():
    def boom(request):
        raise httpx.ConnectError("dns failure", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(boom), base_url="http://gateway") as client:
        assert await fetch_traffic_data(client, allow_heuristic=False) is None
