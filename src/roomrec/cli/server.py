"""Server management commands."""
import click

from ..connection import Connection


@click.group()
def server():
    """Manage the roomrec server."""
    pass


@server.command("start")
def start():
    """Start the server in the background."""
    conn = Connection()
    if conn.start():
        click.echo(f"Server running at {conn.base_url}")
    else:
        click.echo("Failed to start server", err=True)
        raise click.Abort()


@server.command("stop")
def stop():
    """Stop the server, stopping any active recordings."""
    conn = Connection()
    if conn.stop():
        click.echo("Server stopped")
    else:
        click.echo("Failed to stop server", err=True)
        raise click.Abort()


@server.command("status")
def status():
    """Show server status and recording counts."""
    conn = Connection()
    if not conn.is_running:
        click.echo("Server not running")
        return

    click.echo(f"Server running at {conn.base_url} (PID: {conn.server_pid})")
    with conn.client() as api:
        stats = api.get("/api/recordings/admin/stats").json()["data"]
    click.echo(f"\nActive recordings: {stats['activeRecordings']}")
    click.echo(f"Total recordings: {stats['totalRecordings']}")
    click.echo(f"Completed: {stats['completedRecordings']}")
    click.echo(f"Failed: {stats['failedRecordings']}")


@server.command("run")
def run():
    """Run the server in the foreground."""
    from ..server.main import run_server
    run_server()
