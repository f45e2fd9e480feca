import asyncio

import httpx
import pytest

from bridges_app.cache import TimedCache
from bridges_app.exceptions import UpstreamError
from bridges_app.schemas import AlertType, FuckLevel, TrafficLevel, WeatherCondition

from conftest import open_meteo_payload, traffic_html


class FakeClock:
    def __init__(self):
        self.t = 1000.0

    def __call__(self):
        return self.t


class Loader:
    def __init__(self, *results):
        self.results = list(results)
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        r = self.results.pop(0)
        if isinstance(r, Exception):
            raise r
        return r


@pytest.mark.asyncio
async def test_fresh_value_served_without_refetch():
    clock = FakeClock()
    loader = Loader("a", "b")
    cache = TimedCache("weather", loader, max_age=300, clock=clock)

    assert await cache.get() == "a"
    clock.t += 299
    assert await cache.get() == "a"
    assert loader.calls == 1
    clock.t += 2
    assert await cache.get() == "b"
    assert loader.calls == 2


@pytest.mark.asyncio
async def test_no_window_always_refetches():
    loader = Loader("a", "b")
    cache = TimedCache("traffic", loader, max_age=None, clock=FakeClock())
    assert await cache.get() == "a"
    assert await cache.get() == "b"


@pytest.mark.asyncio
async def test_failure_keeps_last_value():
    loader = Loader("a", None, UpstreamError("down", status=503))
    cache = TimedCache("alerts", loader, max_age=300, clock=FakeClock())
    assert await cache.get() == "a"
    assert await cache.get(force=True) == "a"
    assert cache.last_error == "no result"
    assert await cache.get(force=True) == "a"
    assert cache.last_error == "down"


@pytest.mark.asyncio
async def test_failure_without_cache_uses_fallback():
    cache = TimedCache("traffic", Loader(None), max_age=None, fallback=lambda: "baseline", clock=FakeClock())
    assert await cache.get() == "baseline"
    assert cache.loaded is False
    no_fallback = TimedCache("weather", Loader(None), max_age=300, clock=FakeClock())
    assert await no_fallback.get() is None


@pytest.mark.asyncio
async def test_unexpected_loader_error_keeps_last_value():
    loader = Loader("a", RuntimeError("boom"))
    cache = TimedCache("weather", loader, max_age=300, clock=FakeClock())
    assert await cache.get() == "a"
    assert await cache.get(force=True) == "a"
    assert cache.last_error == "RuntimeError: boom"


@pytest.mark.asyncio
async def test_unexpected_loader_error_without_cache_uses_fallback():
    cache = TimedCache("alerts", Loader(KeyError("warnings")), max_age=300, fallback=list, clock=FakeClock())
    assert await cache.get() == []
    assert cache.loaded is False


@pytest.mark.asyncio
async def test_read_serves_current_and_loads_once():
    loader = Loader("a", "b")
    cache = TimedCache("traffic", loader, max_age=None, clock=FakeClock())
    assert await cache.read() == "a"
    assert await cache.read() == "a"
    assert loader.calls == 1
    assert await cache.read(refresh=True) == "b"


@pytest.mark.asyncio
async def test_overlapping_refreshes_last_write_wins():
    gate_a, gate_b = asyncio.Event(), asyncio.Event()
    order = iter([("a", gate_a), ("b", gate_b)])

    async def loader():
        value, gate = next(order)
        await gate.wait()
        return value

    cache = TimedCache("traffic", loader, max_age=None, clock=FakeClock())
    t1 = asyncio.create_task(cache.refresh())
    t2 = asyncio.create_task(cache.refresh())
    await asyncio.sleep(0)
    gate_b.set()
    await t2
    gate_a.set()
    await t1
    assert cache.value == "a"
    assert cache.loaded


@pytest.mark.asyncio
async def test_late_result_after_dispose_is_dropped():
    gate = asyncio.Event()

    async def loader():
        await gate.wait()
        return "late"

    cache = TimedCache("weather", loader, max_age=300, clock=FakeClock())
    task = asyncio.create_task(cache.refresh())
    await asyncio.sleep(0)
    cache.dispose()
    gate.set()
    assert await task == "late"
    assert cache.loaded is False
    assert cache.value is None


# ---- DataService --------------------------------------------------------------

@pytest.mark.asyncio
async def test_service_start_populates_all(service):
    await service.start()
    assert service.traffic.current.mackay.dartmouth_bound.level == TrafficLevel.MODERATE
    assert service.weather.current.condition == WeatherCondition.CLEAR
    assert [a.type for a in service.alerts.current] == [AlertType.WIND_WARNING]
    assert service.most_severe_alert().type == AlertType.WIND_WARNING
    assert service.upcoming_alerts() == []
    await service.close()


@pytest.mark.asyncio
async def test_service_weather_window(service, mock_transport):
    await service.weather.get()
    await service.weather.get()
    weather_calls = [c for c in mock_transport.calls if c.url.path == "/v1/forecast"]
    assert len(weather_calls) == 1
    await service.close()


@pytest.mark.asyncio
async def test_service_alerts_failure_keeps_previous(service, upstream_routes):
    first = await service.alerts.get()
    assert len(first) == 1
    upstream_routes["/api/alerts"] = httpx.Response(503, json={"error": "Upstream returned 503", "status": 503})
    again = await service.alerts.get(force=True)
    assert again == first
    assert "503" in service.alerts.last_error
    await service.close()


@pytest.mark.asyncio
async def test_service_traffic_failure_falls_back(service, upstream_routes):
    good = await service.traffic.get()
    assert good.degraded is False
    upstream_routes["/api/traffic"] = httpx.Response(200, text="<html>maintenance</html>")
    kept = await service.traffic.get()
    assert kept == good
    await service.close()


@pytest.mark.asyncio
async def test_service_traffic_baseline_before_first_success(service, upstream_routes):
    upstream_routes["/api/traffic"] = httpx.Response(500, json={"error": "Failed to fetch upstream data"})
    data = await service.traffic.get()
    assert data.degraded is True
    assert data.fuck_level == FuckLevel.NOT
    await service.close()


@pytest.mark.asyncio
async def test_service_weather_uses_injected_rng(mock_transport):
    import random
    from bridges_app.cache import DataService

    sayings = []
    for _ in range(2):
        svc = DataService(
            gateway_client=httpx.AsyncClient(transport=mock_transport, base_url="http://gateway"),
            weather_client=httpx.AsyncClient(transport=mock_transport),
            rng=random.Random(3),
        )
        sayings.append((await svc.weather.get()).maritimer_saying)
        await svc.close()
    assert sayings[0] == sayings[1]


@pytest.mark.asyncio
async def test_service_start_survives_loader_crash(service, upstream_routes, monkeypatch):
    upstream_routes["/api/alerts"] = httpx.Response(200, json={"features": ["oops"]})

    async def crash():
        raise AttributeError("'str' object has no attribute 'get'")

    monkeypatch.setattr(service.weather, "loader", crash)
    await service.start()
    assert service.alerts.current == []
    assert service.weather.current is None
    assert service.weather.last_error.startswith("AttributeError")
    assert service.traffic.loaded
    await service.close()
