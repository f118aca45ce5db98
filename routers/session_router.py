from fastapi import APIRouter, Body, Depends

from auth import get_app_store
from backend.errors import AppError
from backend.utils.responses import app_error_response, success_response
from services.app_store import AppStore

router = APIRouter(prefix="/api/session", tags=["session"])


@router.get("")
async def get_session(store: AppStore = Depends(get_app_store)):
    """Full client state: session, selected jurisdiction, tabs, feature access"""
    return success_response(store.view())


@router.get("/features")
async def get_features(store: AppStore = Depends(get_app_store)):
    return success_response({
        "features": store.view()["features"],
        "tabs": store.tab_states(),
    })


@router.put("/jurisdiction")
async def set_jurisdiction(code: str = Body(..., embed=True), store: AppStore = Depends(get_app_store)):
    try:
        guide = await store.select_jurisdiction(code)
    except AppError as e:
        return app_error_response(e)
    return success_response({
        "selected_jurisdiction": store.selected_jurisdiction,
        "guide": guide.model_dump(),
    })


@router.put("/tab")
async def set_tab(tab: str = Body(..., embed=True), store: AppStore = Depends(get_app_store)):
    try:
        active_tab = store.set_active_tab(tab)
    except AppError as e:
        return app_error_response(e)
    return success_response({"active_tab": active_tab})


@router.delete("/error")
async def clear_error(store: AppStore = Depends(get_app_store)):
    """Dismiss the error banner"""
    store.clear_error()
    return success_response({"error": None})
