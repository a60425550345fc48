from __future__ import annotations

import asyncio
import time
from datetime import datetime, timedelta, timezone

from fastapi.testclient import TestClient

from vitalsbridge.main import create_app
from vitalsbridge.models import SessionRecord
from vitalsbridge.services.storage import SessionStore
from vitalsbridge.settings import Settings

T0 = datetime(2026, 10, 19, 9, 0, 0, tzinfo=timezone.utc)


def _settings(tmp_path) -> Settings:
    return Settings(log_file=str(tmp_path / "logs.json"), serial_port=None, static_dir=None)


def _wait_for(predicate, timeout: float = 2.0) -> bool:
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(0.02)
    return False


def test_logs_endpoint_serves_stored_sessions(tmp_path) -> None:
    settings = _settings(tmp_path)
    SessionStore(settings.log_file).append(
        SessionRecord(name="Ada", start_time=T0, end_time=T0 + timedelta(minutes=2), duration="00:02:00")
    )

    with TestClient(create_app(settings)) as client:
        resp = client.get("/api/logs")
        root = client.get("/").json()

    assert resp.status_code == 200
    body = resp.json()
    assert len(body) == 1
    assert body[0]["name"] == "Ada"
    assert body[0]["duration"] == "00:02:00"
    assert set(body[0]) == {"name", "startTime", "endTime", "duration"}
    assert "/api/logs" in root["routes"]


def test_ingested_session_shows_up_in_logs(tmp_path) -> None:
    async def lines():
        for line in ["t-> Hello, Ada", "t-> Temprature:36.6-Pulse:72", "t-> Goodbye - Duration:00:02:10"]:
            yield line

    with TestClient(create_app(_settings(tmp_path), line_source=lines)) as client:
        assert _wait_for(lambda: len(client.get("/api/logs").json()) == 1)
        body = client.get("/api/logs").json()
        health = client.get("/health").json()

    assert body[0]["name"] == "Ada"
    assert body[0]["duration"] == "00:02:10"
    assert health == {"status": "ok", "sessions": 1, "active": None}


def test_websocket_receives_live_events(tmp_path) -> None:
    app = None

    async def lines():
        while await app.state.stream.count() == 0:
            await asyncio.sleep(0.01)
        yield "t-> Hello, Ada"
        yield "t-> Temprature:36.6-Pulse:72"
        yield "t-> Goodbye"

    app = create_app(_settings(tmp_path), line_source=lines)
    with TestClient(app) as client:
        with client.websocket_connect("/ws") as ws:
            received = [ws.receive_json() for _ in range(3)]

    assert received == [
        {"type": "sessionMessage", "data": "Hello, Ada"},
        {"type": "sensorData", "data": {"Temperature": 36.6, "Pulse": 72}},
        {"type": "sessionMessage", "data": "Goodbye"},
    ]


def test_broken_line_source_keeps_api_alive(tmp_path) -> None:
    async def lines():
        yield "t-> Hello, Ada"
        raise OSError("device unplugged")

    with TestClient(create_app(_settings(tmp_path), line_source=lines)) as client:
        assert _wait_for(lambda: client.get("/health").json()["active"] == "Ada")
        assert client.get("/api/logs").json() == []


def test_undecodable_log_does_not_block_startup(tmp_path) -> None:
    settings = _settings(tmp_path)
    (tmp_path / "logs.json").write_bytes(b"\xff\xfe\x00garbage")

    with TestClient(create_app(settings)) as client:
        assert client.get("/api/logs").json() == []
        assert client.get("/health").json()["status"] == "ok"
