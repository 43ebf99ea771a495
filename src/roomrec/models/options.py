"""Caller-supplied recording options."""
from typing import Literal, Optional

from pydantic import Field

from .base import CamelModel


class Layout(CamelModel):
    type: Literal["grid", "speaker", "sidebar"] = "grid"


class Resolution(CamelModel):
    width: int = Field(..., gt=0)
    height: int = Field(..., gt=0)


class Encoding(CamelModel):
    """Encoding hints. Stored with the session, not passed to the encoder."""
    video_bitrate: Optional[str] = Field(None, description="e.g. 2500k")
    audio_bitrate: Optional[str] = Field(None, description="e.g. 128k")
    resolution: Optional[Resolution] = None


class RecordingOptions(CamelModel):
    """Request to start recording a room."""

    room_id: str = Field(..., min_length=1, description="Room to record")
    room_name: Optional[str] = Field(None, description="Display name of the room")
    requested_by: str = Field(..., min_length=1, description="Who asked for the recording")
    layout: Optional[Layout] = None
    encoding: Optional[Encoding] = None
    include_audio: bool = True
    include_video: bool = True
