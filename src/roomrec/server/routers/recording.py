"""Recording management endpoints."""
import logging
from typing import Generic, List, TypeVar

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from ...errors import CapacityExceeded, NotFound, ServiceShuttingDown, StorageFailure
from ...manager import RecordingManager
from ...models import RecordingOptions, Session, StartResult, Stats, StopResult
from ..state import get_manager

logger = logging.getLogger(__name__)

router = APIRouter()

T = TypeVar("T")


class Envelope(BaseModel, Generic[T]):
    """Successful response wrapper."""
    success: bool = True
    data: T


class Deleted(BaseModel):
    success: bool = True
    message: str = "Recording deleted successfully"


@router.post("/start", response_model=Envelope[StartResult], status_code=201)
def start_recording(options: RecordingOptions,
                    manager: RecordingManager = Depends(get_manager)) -> Envelope[StartResult]:
    """Start recording a room."""
    logger.info(f"Start recording request: room={options.room_id}, by={options.requested_by}")
    try:
        result = manager.start(options)
    except (CapacityExceeded, ServiceShuttingDown) as e:
        logger.warning(f"Start recording refused: {e}")
        raise HTTPException(status_code=503, detail=str(e))
    return Envelope(data=result)


@router.post("/{recording_id}/stop", response_model=Envelope[StopResult])
def stop_recording(recording_id: str,
                   manager: RecordingManager = Depends(get_manager)) -> Envelope[StopResult]:
    """Stop a recording."""
    try:
        result = manager.stop(recording_id)
    except NotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    return Envelope(data=result)


@router.get("/admin/stats", response_model=Envelope[Stats])
def get_stats(manager: RecordingManager = Depends(get_manager)) -> Envelope[Stats]:
    """Aggregate counts and resource usage."""
    return Envelope(data=manager.stats())


@router.get("/{recording_id}", response_model=Envelope[Session])
def get_recording(recording_id: str,
                  manager: RecordingManager = Depends(get_manager)) -> Envelope[Session]:
    """Get recording status."""
    try:
        session = manager.get(recording_id)
    except NotFound:
        raise HTTPException(status_code=404, detail="Recording not found")
    return Envelope(data=session)


@router.get("/", response_model=Envelope[List[Session]])
def list_recordings(manager: RecordingManager = Depends(get_manager)) -> Envelope[List[Session]]:
    """List all known recordings."""
    return Envelope(data=manager.list())


@router.delete("/{recording_id}", response_model=Deleted)
def delete_recording(recording_id: str,
                     manager: RecordingManager = Depends(get_manager)) -> Deleted:
    """Delete a recording and its output file."""
    try:
        manager.delete(recording_id)
    except NotFound:
        raise HTTPException(status_code=404, detail="Recording not found")
    except StorageFailure as e:
        logger.error(f"Delete recording failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))
    return Deleted()
