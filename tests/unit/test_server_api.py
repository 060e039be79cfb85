# Copyright (c) 2025 Trae AI. All rights reserved.

import pytest
from dropwatch.core.config import AgentConfig
from dropwatch.core.models import JobRecord
from dropwatch.server.app import Server


@pytest.fixture
def server(source_dir):
    config = AgentConfig(
        heartbeat=False,
        queue_size=5,
        transfers=[
            {"name": "reports", "source_directory": str(source_dir), "transfer_type": "sftp",
             "server": "host", "username": "u", "password": "secret", "remote_path": "/in"},
        ],
    )
    return Server(config)


@pytest.fixture
def client(server):
    server.app.config["TESTING"] = True
    return server.app.test_client()


def test_status_reports_pipeline_state(server, client, source_dir):
    server.tracker.record_event(str(source_dir / "a.csv"))
    server.inflight.add(str(source_dir / "b.csv"))

    data = client.get("/api/status").get_json()

    assert data["running"] is False
    assert data["tracked"] == 1
    assert data["in_flight"] == 1
    assert data["queued"] == 0
    assert data["queue_size"] == 5
    assert data["transfers"] == 1
    assert data["counters"]["success"] == 0


def test_tracked_and_inflight_listings(server, client, source_dir):
    tracked = str(source_dir / "a.csv")
    server.tracker.record_event(tracked)
    server.inflight.add(str(source_dir / "b.csv"))

    assert tracked in client.get("/api/tracked").get_json()
    inflight = client.get("/api/inflight").get_json()
    assert [m["path"] for m in inflight] == [str(source_dir / "b.csv")]


def test_history_is_newest_first_and_limited(server, client):
    for i in range(3):
        server.history.add(JobRecord(path=f"/data/{i}.csv", status="success"))

    data = client.get("/api/history?limit=2").get_json()

    assert [r["path"] for r in data] == ["/data/2.csv", "/data/1.csv"]


def test_transfers_are_masked(client):
    data = client.get("/api/transfers").get_json()

    assert data[0]["name"] == "reports"
    assert data[0]["password"] == "********"


def test_heartbeat_logs_status(server, caplog):
    with caplog.at_level("INFO"):
        server.heartbeat()
    assert "Heartbeat: tracked=0" in caplog.text


def test_request_stop_sets_flag(server):
    server.request_stop()
    assert server._stop_requested.is_set()


def test_negative_history_limit_returns_nothing(server, client):
    for i in range(3):
        server.history.add(JobRecord(path=f"/data/{i}.csv", status="success"))

    assert client.get("/api/history?limit=-1").get_json() == []
    assert len(server.history.get_recent(-5)) == 0
