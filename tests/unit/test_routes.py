"""Tests for the HTTP API."""
from unittest.mock import Mock, call, patch

import pytest
from fastapi.testclient import TestClient

from roomrec.server import state
from roomrec.server.main import app


@pytest.fixture
def client(manager):
    state.set_manager(manager)
    try:
        yield TestClient(app)
    finally:
        state.set_manager(None)


def start(client, room="r1", user="u1"):
    return client.post("/api/recordings/start", json={"roomId": room, "requestedBy": user})


def test_start_recording(client):
    response = start(client)

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["data"]["status"] == "started"
    assert body["data"]["sessionId"]


def test_start_requires_room_and_requester(client):
    response = client.post("/api/recordings/start", json={"roomId": "r1"})

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Validation Error"
    assert body["details"]


def test_start_rejects_empty_room(client):
    response = client.post("/api/recordings/start", json={"roomId": "", "requestedBy": "u1"})

    assert response.status_code == 400


def test_start_over_capacity(client):
    for i in range(5):
        assert start(client, room=f"room{i}").status_code == 201

    response = start(client, room="room5")

    assert response.status_code == 503
    assert "Maximum concurrent recordings" in response.json()["detail"]

    stats = client.get("/api/recordings/admin/stats").json()["data"]
    assert stats["activeRecordings"] == 5


def test_start_during_shutdown(client, manager):
    manager.cleanup()

    response = start(client)

    assert response.status_code == 503


def test_get_recording(client):
    session_id = start(client).json()["data"]["sessionId"]

    response = client.get(f"/api/recordings/{session_id}")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["id"] == session_id
    assert data["roomId"] == "r1"
    assert data["requestedBy"] == "u1"
    assert data["status"] == "recording"
    assert data["outputPath"]
    assert data["endTime"] is None
    assert "duration" in data
    assert "process" not in data


def test_get_unknown_recording(client):
    response = client.get("/api/recordings/never-issued")

    assert response.status_code == 404
    assert response.json()["detail"] == "Recording not found"


def test_stop_recording(client, clock):
    session_id = start(client).json()["data"]["sessionId"]
    clock.advance(30)

    response = client.post(f"/api/recordings/{session_id}/stop")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data == {"sessionId": session_id, "status": "stopped", "duration": 30.0}


def test_stop_unknown_recording(client):
    assert client.post("/api/recordings/missing/stop").status_code == 404


def test_list_recordings(client):
    ids = [start(client, room=f"room{i}").json()["data"]["sessionId"] for i in range(3)]

    response = client.get("/api/recordings/")

    assert response.status_code == 200
    assert [s["id"] for s in response.json()["data"]] == ids


def test_delete_recording(client):
    session_id = start(client).json()["data"]["sessionId"]
    client.post(f"/api/recordings/{session_id}/stop")

    response = client.delete(f"/api/recordings/{session_id}")

    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Recording deleted successfully"}
    assert client.get("/api/recordings/").json()["data"] == []
    assert client.delete(f"/api/recordings/{session_id}").status_code == 404


def test_stats(client, supervisor):
    ids = [start(client, room=f"room{i}").json()["data"]["sessionId"] for i in range(3)]
    supervisor.exit(ids[0], 0)
    supervisor.exit(ids[1], 1)

    response = client.get("/api/recordings/admin/stats")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["activeRecordings"] == 1
    assert data["totalRecordings"] == 3
    assert data["completedRecordings"] == 1
    assert data["failedRecordings"] == 1
    assert "memory" in data["systemResources"]


def test_failed_recording_shows_error(client, supervisor):
    session_id = start(client).json()["data"]["sessionId"]
    supervisor.error(session_id, "Failed to launch ffmpeg: not found")

    data = client.get(f"/api/recordings/{session_id}").json()["data"]

    assert data["status"] == "failed"
    assert data["error"] == "Failed to launch ffmpeg: not found"
    assert data["endTime"] is not None


def test_root_and_api_info(client):
    start(client)

    root = client.get("/").json()
    assert root["status"] == "running"
    assert root["recordings"] == 1

    info = client.get("/api").json()
    assert info["status"] == "running"
    assert "version" in info


def test_health(client):
    response = client.get("/health/")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["service"] == "roomrec"


def test_websocket_greeting(client):
    with client.websocket_connect("/ws") as websocket:
        message = websocket.receive_json()

    assert message["type"] == "connected"
    assert "timestamp" in message


def test_shutdown_waits_for_encoders_after_cleanup(config, tmp_path):
    """Interrupted encoders get the grace period before the exit hook runs."""
    from roomrec.server import main

    calls = Mock()
    manager = calls.manager
    manager.max_concurrent = 5

    with patch.object(main, 'get_config', return_value=config), \
         patch.object(main, 'RecordingManager', return_value=manager), \
         patch.object(main.bg, 'wait_all', calls.wait_all), \
         patch.object(state, 'server_dir', tmp_path):
        with TestClient(main.create_app(config)):
            assert (tmp_path / "server.pid").exists()

    assert calls.mock_calls == [
        call.manager.cleanup(),
        call.wait_all(timeout=config.recording.shutdown_grace),
    ]
    assert not (tmp_path / "server.pid").exists()
    assert state.current_manager() is None
