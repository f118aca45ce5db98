"""
Recording Router - start/pause/resume/stop the interaction timer, notes and
summary cards (premium)
"""

from fastapi import APIRouter, Body, Depends, Query

from auth import get_app_store
from backend.errors import AppError
from backend.utils.responses import app_error_response, success_response
from models.session import Feature
from services.app_store import AppStore

router = APIRouter(prefix="/api/recording", tags=["recording"])


def _status(store: AppStore, **extra):
    return {**store.recording.snapshot(), **extra}


@router.get("")
async def get_recording(store: AppStore = Depends(get_app_store)):
    try:
        store.require(Feature.RECORDING)
    except AppError as e:
        return app_error_response(e)
    return success_response(_status(store))


@router.post("/start")
async def start_recording(store: AppStore = Depends(get_app_store)):
    try:
        started = store.start_recording()
    except AppError as e:
        return app_error_response(e)
    return success_response(_status(store, changed=started))


@router.post("/pause")
async def pause_recording(store: AppStore = Depends(get_app_store)):
    return success_response(_status(store, changed=store.pause_recording()))


@router.post("/resume")
async def resume_recording(store: AppStore = Depends(get_app_store)):
    return success_response(_status(store, changed=store.resume_recording()))


@router.put("/notes")
async def set_notes(notes: str = Body(..., embed=True), store: AppStore = Depends(get_app_store)):
    store.set_notes(notes)
    return success_response(_status(store))


@router.post("/stop")
async def stop_recording(store: AppStore = Depends(get_app_store)):
    """Stop and return the finished record (null when nothing was recording)"""
    record = await store.stop_recording()
    return success_response({
        "record": record.model_dump() if record else None,
        **_status(store),
    })


@router.get("/history")
async def recording_history(limit: int = Query(default=10, ge=1, le=100), store: AppStore = Depends(get_app_store)):
    records = await store.recording_history(limit=limit)
    return success_response([record.model_dump() for record in records])


@router.post("/{record_id}/summary")
async def summary_card(record_id: str, store: AppStore = Depends(get_app_store)):
    """Shareable summary card for a finished recording"""
    try:
        card = await store.summary_card(record_id)
    except AppError as e:
        return app_error_response(e)
    return success_response({"record_id": record_id, "summary": card})
