from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class RecordingState(str, Enum):
    IDLE = "idle"
    RECORDING = "recording"
    PAUSED = "paused"


class RecordingRecord(BaseModel):
    """A finished recording session. Immutable once emitted."""

    model_config = ConfigDict(frozen=True)

    id: str
    timestamp: str
    duration: int
    notes: str = ""
    location: Optional[str] = None
