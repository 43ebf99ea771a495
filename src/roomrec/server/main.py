"""FastAPI server that manages recording sessions."""
import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from .. import __version__
from ..config import Config, get_config
from ..manager import RecordingManager
from ..proc import bg
from . import state
from .routers import health, recording

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(config: Optional[Config] = None):
    """Configure logging for the application."""
    config = config or get_config()
    log_level = os.getenv('ROOMREC_LOG_LEVEL', config.logging.level).upper()
    level = getattr(logging, log_level, logging.INFO)

    handlers = [logging.StreamHandler()]
    if config.logging.file_enabled:
        log_dir = Path(config.logging.directory).expanduser()
        log_dir.mkdir(parents=True, exist_ok=True)
        handlers.append(TimedRotatingFileHandler(
            log_dir / "roomrec.log",
            when="midnight",
            backupCount=14,
            encoding="utf-8",
        ))

    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers)

    # Reduce HTTP noise
    logging.getLogger('uvicorn.access').setLevel(logging.WARNING)
    logging.getLogger('uvicorn.error').setLevel(logging.INFO)
    logging.getLogger('roomrec').setLevel(level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan."""
    config = get_config()
    setup_logging(config)
    logger = logging.getLogger(__name__)

    logger.info("Starting roomrec server...")

    state.server_dir.mkdir(exist_ok=True)
    (state.server_dir / "server.pid").write_text(str(os.getpid()))

    manager = RecordingManager(config)
    state.set_manager(manager)
    logger.info(f"Recording manager ready (max {manager.max_concurrent} concurrent)")

    yield

    logger.info("Graceful shutdown initiated...")
    manager.cleanup()
    bg.wait_all(timeout=config.recording.shutdown_grace)
    state.set_manager(None)
    (state.server_dir / "server.pid").unlink(missing_ok=True)


def create_app(config: Optional[Config] = None) -> FastAPI:
    """Build the FastAPI application."""
    config = config or get_config()

    app = FastAPI(title="roomrec server", version=__version__, lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1024)

    app.include_router(health.router, prefix="/health", tags=["health"])
    app.include_router(recording.router, prefix="/api/recordings", tags=["recordings"])
    app.mount("/files", StaticFiles(directory=config.storage.recordings_path, check_dir=False),
              name="files")

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"error": "Validation Error", "details": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception):
        logging.getLogger(__name__).exception("Unhandled error")
        development = config.server.env == "development"
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal Server Error",
                "message": str(exc) if development else "Something went wrong",
            },
        )

    @app.get("/")
    async def root():
        """Server info."""
        manager = state.current_manager()
        return {
            "status": "running",
            "pid": os.getpid(),
            "recordings": manager.active_count() if manager else 0,
        }

    @app.get("/api")
    async def api_info():
        return {
            "service": "roomrec recording service",
            "version": __version__,
            "status": "running",
        }

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        await websocket.accept()
        await websocket.send_json({
            "type": "connected",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        })
        try:
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            pass

    return app


app = create_app()


def run_server():
    """Run the server on the configured host and port."""
    config = get_config()
    uvicorn.run(app, host=config.server.host, port=config.server.port)


if __name__ == "__main__":
    run_server()
