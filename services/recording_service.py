"""
Recording Service - start/pause/stop timer for documenting an interaction.

RecordingSessionTracker is the state machine; RecordingTimer drives its
one-second tick from an asyncio task; DatabaseRecordArchive keeps stopped
records for signed-in users.
"""

import asyncio
import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.ext.asyncio import async_sessionmaker

from crud.interaction_record import InteractionRecordRepository
from models.recording import RecordingRecord, RecordingState

logger = logging.getLogger(__name__)

TICK_SECONDS = 1.0


class RecordingSessionTracker:
    """
    idle -> recording on start (elapsed reset to 0)
    recording <-> paused on pause/resume
    recording|paused -> idle on stop, emitting a RecordingRecord

    Calls that do not apply to the current state are no-ops.
    """

    def __init__(self):
        self.state = RecordingState.IDLE
        self.elapsed_seconds = 0
        self.notes = ""
        self.records: List[RecordingRecord] = []

    @property
    def is_active(self) -> bool:
        return self.state != RecordingState.IDLE

    def start(self) -> bool:
        if self.state != RecordingState.IDLE:
            return False
        self.state = RecordingState.RECORDING
        self.elapsed_seconds = 0
        return True

    def pause(self) -> bool:
        if self.state != RecordingState.RECORDING:
            return False
        self.state = RecordingState.PAUSED
        return True

    def resume(self) -> bool:
        if self.state != RecordingState.PAUSED:
            return False
        self.state = RecordingState.RECORDING
        return True

    def tick(self) -> int:
        """Accrue one second, only while recording"""
        if self.state == RecordingState.RECORDING:
            self.elapsed_seconds += 1
        return self.elapsed_seconds

    def set_notes(self, notes: str) -> None:
        self.notes = notes or ""

    def stop(self, location: Optional[str] = None) -> Optional[RecordingRecord]:
        if self.state == RecordingState.IDLE:
            return None
        record = RecordingRecord(
            id=uuid.uuid4().hex,
            timestamp=datetime.now(timezone.utc).isoformat(),
            duration=self.elapsed_seconds,
            notes=self.notes,
            location=location,
        )
        self.records.append(record)
        self.state = RecordingState.IDLE
        self.elapsed_seconds = 0
        self.notes = ""
        return record

    def find_record(self, record_id: str) -> Optional[RecordingRecord]:
        for record in self.records:
            if record.id == record_id:
                return record
        return None

    def snapshot(self) -> dict:
        return {
            "state": self.state.value,
            "elapsed_seconds": self.elapsed_seconds,
            "notes": self.notes,
            "records": [record.model_dump() for record in self.records],
        }


class RecordingTimer:
    """Single periodic task calling tracker.tick() every interval"""

    def __init__(self, tracker: RecordingSessionTracker, interval: float = TICK_SECONDS):
        self.tracker = tracker
        self.interval = interval
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def _run(self) -> None:
        while self.tracker.is_active:
            await asyncio.sleep(self.interval)
            self.tracker.tick()

    def stop(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None


class RecordArchive:
    """Record archive collaborator contract"""

    async def save(self, account_id: str, record: RecordingRecord) -> None:
        raise NotImplementedError

    async def list_for_account(self, account_id: str, limit: int = 10) -> List[RecordingRecord]:
        raise NotImplementedError


class DatabaseRecordArchive(RecordArchive):

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def save(self, account_id: str, record: RecordingRecord) -> None:
        async with self.session_factory() as db:
            await InteractionRecordRepository(db).create_record(int(account_id), {
                "record_id": record.id,
                "timestamp": record.timestamp,
                "location": record.location,
                "notes": record.notes,
                "duration": record.duration,
            })
            await db.commit()

    async def list_for_account(self, account_id: str, limit: int = 10) -> List[RecordingRecord]:
        async with self.session_factory() as db:
            rows = await InteractionRecordRepository(db).get_user_records(int(account_id), limit=limit)
        return [
            RecordingRecord(
                id=row.record_id,
                timestamp=row.timestamp,
                duration=row.duration or 0,
                notes=row.notes or "",
                location=row.location,
            )
            for row in rows
        ]
