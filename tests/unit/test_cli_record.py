"""Tests for recording CLI commands."""
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from roomrec.api_client import APIError
from roomrec.cli.record import record
from roomrec.models import StartResult, Stats, StopResult


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def running_server():
    with patch("roomrec.cli.record.Connection") as mock_conn_class:
        conn = mock_conn_class.return_value
        conn.is_running = True
        conn.base_url = "http://127.0.0.1:3001"
        yield conn


def test_start(runner, running_server):
    with patch("roomrec.cli.record.api_call", return_value=StartResult(session_id="abc")) as mock_call:
        result = runner.invoke(record, ["start", "--room-id", "r1", "--requested-by", "u1",
                                        "--layout", "speaker", "--no-audio"])

    assert result.exit_code == 0
    assert "Started recording abc for room 'r1'" in result.output
    options = mock_call.call_args.kwargs["data"]
    assert options.room_id == "r1"
    assert options.layout.type == "speaker"
    assert options.include_audio is False
    assert options.include_video is True


def test_start_requires_room(runner, running_server):
    result = runner.invoke(record, ["start", "--requested-by", "u1"])

    assert result.exit_code != 0
    assert "--room-id" in result.output


def test_start_capacity_error(runner, running_server):
    error = APIError(503, "Maximum concurrent recordings reached (5)")
    with patch("roomrec.cli.record.api_call", side_effect=error):
        result = runner.invoke(record, ["start", "--room-id", "r1", "--requested-by", "u1"])

    assert result.exit_code != 0
    assert "Maximum concurrent recordings reached" in result.output


def test_stop(runner, running_server):
    stop_result = StopResult(session_id="abc", status="stopped", duration=12.5)
    with patch("roomrec.cli.record.api_call", return_value=stop_result):
        result = runner.invoke(record, ["stop", "abc"])

    assert result.exit_code == 0
    assert "Recording abc stopped after 12.5s" in result.output


def test_stop_unknown(runner, running_server):
    with patch("roomrec.cli.record.api_call", side_effect=APIError(404, "Recording abc not found")):
        result = runner.invoke(record, ["stop", "abc"])

    assert result.exit_code != 0
    assert "Recording abc not found" in result.output


def test_list_empty(runner, running_server):
    with patch("roomrec.cli.record.api_call", return_value=[]):
        result = runner.invoke(record, ["list"])

    assert result.exit_code == 0
    assert "No recordings" in result.output


def test_list(runner, running_server):
    payload = [{
        "id": "abc",
        "roomId": "r1",
        "roomName": "Lecture Hall",
        "requestedBy": "u1",
        "status": "completed",
        "startTime": "2024-01-01T12:00:00Z",
        "endTime": "2024-01-01T12:00:10Z",
        "outputPath": "/rec/recording_r1.mp4",
        "options": {"roomId": "r1", "requestedBy": "u1"},
        "duration": 10.0,
    }]
    with patch("roomrec.cli.record.api_call", return_value=payload):
        result = runner.invoke(record, ["list"])

    assert result.exit_code == 0
    assert "abc" in result.output
    assert "completed" in result.output
    assert "Lecture Hall" in result.output
    assert "10.0s" in result.output


def test_delete_confirmed(runner, running_server):
    with patch("roomrec.cli.record.api_call", return_value={}) as mock_call:
        result = runner.invoke(record, ["delete", "abc", "--yes"])

    assert result.exit_code == 0
    mock_call.assert_called_once_with("http://127.0.0.1:3001", "DELETE", "/api/recordings/abc")


def test_stats(runner, running_server):
    stats = Stats(active_recordings=2, total_recordings=5, completed_recordings=2, failed_recordings=1)
    with patch("roomrec.cli.record.api_call", return_value=stats):
        result = runner.invoke(record, ["stats"])

    assert result.exit_code == 0
    assert "Active: 2" in result.output
    assert "Failed: 1" in result.output


def test_commands_need_running_server(runner):
    with patch("roomrec.cli.record.Connection") as mock_conn_class:
        mock_conn_class.return_value.is_running = False
        result = runner.invoke(record, ["list"])

    assert result.exit_code != 0
    assert "Server not running" in result.output
