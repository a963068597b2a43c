import inspect
import json
import httpx
import pytest
from fastapi.testclient import TestClient

from netemtrace import __version__
from netemtrace.api import app


@pytest.fixture
def client():
    with TestClient(app) as client:
        yield client


def read_events(text):
    return [json.loads(chunk[len("data: "):]) for chunk in text.split("\n\n") if chunk]


def test_health_check(client):
    response = client.get("/")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["version"] == __version__
    assert body["models_available"] >= 14


def test_list_models(client):
    response = client.get("/models")
    assert response.status_code == 200
    models = {info["tag"]: info for info in response.json()}
    assert models["StaticBwConfig"]["kind"] == "bw"
    assert models["StaticLossConfig"]["kind"] == "loss"
    assert "properties" in models["NormalizedBwConfig"]["config_schema"]


def test_render_mahimahi(client):
    response = client.post("/mahimahi", json={
        "config": {"StaticBwConfig": {"bw": "24Mbps", "duration": "1s"}},
        "duration": "5ms",
    })
    assert response.status_code == 200
    assert response.text == "1\n1\n2\n2\n3\n3\n4\n4\n5\n5"


def test_render_mahimahi_runs_in_threadpool():
    # CPU bound rendering has to stay off the event loop
    route = next(route for route in app.routes if getattr(route, "path", None) == "/mahimahi")
    assert not inspect.iscoroutinefunction(route.endpoint)


def test_render_mahimahi_with_mtu(client):
    response = client.post("/mahimahi", json={
        "config": {"StaticBwConfig": {"bw": "24Mbps"}},
        "duration": {"secs": 0, "nanos": 3_000_000},
        "mtu": 3000,
    })
    assert response.status_code == 200
    assert response.text == "1\n2\n3"


def test_unknown_tag_is_not_found(client):
    response = client.post("/mahimahi", json={"config": {"NoSuchConfig": {}}, "duration": "5ms"})
    assert response.status_code == 404
    assert "NoSuchConfig" in response.json()["detail"]


@pytest.mark.parametrize("payload", [
    {"config": {"StaticBwConfig": {"bw": -1}}, "duration": "5ms"},
    {"config": {"StaticDelayConfig": {}}, "duration": "5ms"},
    {"config": {"StaticBwConfig": {}}, "duration": "0s"},
    {"config": {"StaticBwConfig": {}}, "duration": "5ms", "mtu": 0},
])
def test_invalid_requests(client, payload):
    assert client.post("/mahimahi", json=payload).status_code == 422


def test_stream_segments(client):
    response = client.post("/stream", json={
        "config": {"StaticBwConfig": {"bw": "12Mbps", "duration": "1ms"}},
        "humanized": True,
    })
    assert response.status_code == 200
    assert read_events(response.text) == [{"value": "12Mbps", "duration": "1ms"}]


def test_stream_stops_at_max_items(client):
    config = {"RepeatedLossPatternConfig": {"pattern": [{"StaticLossConfig": {}}], "count": 0}}
    response = client.post("/stream", json={"config": config, "max_items": 3})
    events = read_events(response.text)
    assert len(events) == 3
    assert events[0] == {"value": [0.1, 0.2], "duration": {"secs": 1, "nanos": 0}}


def test_stream_unknown_tag(client):
    response = client.post("/stream", json={"config": {"NoSuchConfig": {}}})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_stream_per_packet_delays_async():
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.post("/stream", json={
            "config": {"StaticDelayPerPacketConfig": {"delay": "10ms", "count": 2}},
            "humanized": True,
        })
    assert response.status_code == 200
    assert read_events(response.text) == [{"delay": "10ms"}, {"delay": "10ms"}]
