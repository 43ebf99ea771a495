"""Recording management commands."""
from functools import partial
from typing import List

import click
from pydantic import TypeAdapter

from ..api_client import APIError, api_call
from ..connection import Connection
from ..models import Layout, RecordingOptions, Session, StartResult, Stats, StopResult


def _connect(autostart: bool = False) -> Connection:
    conn = Connection()
    if conn.is_running:
        return conn
    if not autostart:
        click.echo("Server not running", err=True)
        raise click.Abort()

    click.echo("Server not running, starting automatically...")
    if not conn.start():
        click.echo("Failed to start server", err=True)
        raise click.Abort()
    click.echo(f"Server started at {conn.base_url}")
    return conn


def _format_session(session: Session) -> str:
    room = session.room_name or session.room_id
    line = f"{session.id}  {session.status.value:<10} {room}  {session.duration:.1f}s"
    if session.error:
        line += f"  ({session.error})"
    return line


@click.group()
def record():
    """Manage room recordings."""
    pass


@record.command("start")
@click.option('--room-id', required=True, help='Room to record')
@click.option('--requested-by', required=True, help='Who is asking for the recording')
@click.option('--room-name', default=None, help='Display name of the room')
@click.option('--layout', type=click.Choice(['grid', 'speaker', 'sidebar']), default=None)
@click.option('--no-audio', is_flag=True, help='Leave audio out')
@click.option('--no-video', is_flag=True, help='Leave video out')
def start(room_id, requested_by, room_name, layout, no_audio, no_video):
    """Start recording a room."""
    conn = _connect(autostart=True)

    request_data = RecordingOptions(
        room_id=room_id,
        requested_by=requested_by,
        room_name=room_name,
        layout=Layout(type=layout) if layout else None,
        include_audio=not no_audio,
        include_video=not no_video,
    )

    try:
        result = api_call(conn.base_url, "POST", "/api/recordings/start",
                          data=request_data, response_model=StartResult)
    except APIError as e:
        click.echo(f"Failed to start recording: {e.detail}", err=True)
        raise click.Abort()

    click.echo(f"Started recording {result.session_id} for room '{room_id}'")


@record.command("stop")
@click.argument('recording_id')
def stop(recording_id):
    """Stop a recording."""
    conn = _connect()
    try:
        result = api_call(conn.base_url, "POST", f"/api/recordings/{recording_id}/stop",
                          response_model=StopResult)
    except APIError as e:
        click.echo(f"Failed to stop recording: {e.detail}", err=True)
        raise click.Abort()

    click.echo(f"Recording {result.session_id} {result.status.value} after {result.duration:.1f}s")


@record.command("show")
@click.argument('recording_id')
def show(recording_id):
    """Show one recording."""
    conn = _connect()
    try:
        session = api_call(conn.base_url, "GET", f"/api/recordings/{recording_id}",
                           response_model=Session)
    except APIError as e:
        click.echo(f"Failed to get recording: {e.detail}", err=True)
        raise click.Abort()

    click.echo(_format_session(session))
    if session.output_path:
        click.echo(f"Output: {session.output_path}")


@record.command("list")
def list_recordings():
    """List all recordings."""
    conn = _connect()
    get_all = partial(api_call, conn.base_url, "GET", "/api/recordings/")
    try:
        sessions: List[Session] = TypeAdapter(List[Session]).validate_python(get_all())
    except APIError as e:
        click.echo(f"Failed to list recordings: {e.detail}", err=True)
        raise click.Abort()

    if not sessions:
        click.echo("No recordings")
        return
    for session in sessions:
        click.echo(_format_session(session))


@record.command("delete")
@click.argument('recording_id')
@click.confirmation_option(prompt='Delete this recording and its output file?')
def delete(recording_id):
    """Delete a recording and its output file."""
    conn = _connect()
    try:
        api_call(conn.base_url, "DELETE", f"/api/recordings/{recording_id}")
    except APIError as e:
        click.echo(f"Failed to delete recording: {e.detail}", err=True)
        raise click.Abort()

    click.echo(f"Deleted recording {recording_id}")


@record.command("stats")
def stats():
    """Show recording counts."""
    conn = _connect()
    try:
        result = api_call(conn.base_url, "GET", "/api/recordings/admin/stats", response_model=Stats)
    except APIError as e:
        click.echo(f"Failed to get stats: {e.detail}", err=True)
        raise click.Abort()

    click.echo(f"Active: {result.active_recordings}")
    click.echo(f"Total: {result.total_recordings}")
    click.echo(f"Completed: {result.completed_recordings}")
    click.echo(f"Failed: {result.failed_recordings}")
