"""Connection to a local roomrec server."""
import os
import subprocess
import sys
import time
from typing import Optional

import httpx

from .config import Config, get_config
from .server.state import server_dir


class Connection:
    """Manages the local roomrec server process."""

    def __init__(self, config: Optional[Config] = None):
        self.config = config or get_config()
        self.server_dir = server_dir
        self.pid_file = self.server_dir / "server.pid"

    @property
    def base_url(self) -> str:
        host = self.config.server.host
        if host in ("0.0.0.0", "::", ""):
            host = "127.0.0.1"
        return f"http://{host}:{self.config.server.port}"

    @property
    def server_pid(self) -> Optional[int]:
        """Get server PID if running."""
        try:
            if self.pid_file.exists():
                pid = int(self.pid_file.read_text().strip())
                os.kill(pid, 0)
                return pid
        except (ValueError, ProcessLookupError, FileNotFoundError, PermissionError):
            pass
        return None

    @property
    def is_running(self) -> bool:
        """Check if the server process is alive and answering."""
        if self.server_pid is None:
            return False
        try:
            return httpx.get(f"{self.base_url}/health/", timeout=1.0).status_code == 200
        except httpx.HTTPError:
            return False

    def start(self) -> bool:
        """Start the server in the background."""
        if self.is_running:
            print(f"Server already running (PID: {self.server_pid})")
            return True

        self.server_dir.mkdir(exist_ok=True)

        subprocess.Popen(
            [sys.executable, "-m", "roomrec.server"],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
        )

        for _ in range(50):
            if self.is_running:
                print(f"Server started (PID: {self.server_pid})")
                return True
            time.sleep(0.1)

        print("Failed to start server")
        return False

    def stop(self) -> bool:
        """Stop the server, giving it time to drain active recordings."""
        pid = self.server_pid
        if not pid:
            print("Server not running")
            return True

        try:
            os.kill(pid, 15)

            for _ in range(50):
                try:
                    os.kill(pid, 0)
                    time.sleep(0.1)
                except ProcessLookupError:
                    break
            else:
                os.kill(pid, 9)

            print(f"Server stopped (PID: {pid})")
            return True

        except ProcessLookupError:
            print("Server already stopped")
            return True
        except PermissionError as e:
            print(f"Error stopping server: {e}")
            return False

    def client(self) -> httpx.Client:
        """HTTP client bound to the server."""
        if not self.is_running:
            raise RuntimeError("Server not running")
        return httpx.Client(base_url=self.base_url)
