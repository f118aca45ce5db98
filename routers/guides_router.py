from fastapi import APIRouter, Depends, Query

from auth import get_app_store
from backend.utils.responses import success_response
from models.session import Feature
from services.app_store import AppStore
from services.guide_service import GuideService

router = APIRouter(prefix="/api/guides", tags=["guides"])


@router.get("/jurisdictions")
async def list_jurisdictions():
    return success_response(GuideService.list_jurisdictions())


@router.get("/current")
async def get_current_guide(store: AppStore = Depends(get_app_store)):
    """Guide for the client's selected jurisdiction"""
    guide = await store.get_current_guide()
    return success_response(guide.model_dump())


@router.get("/{code}")
async def get_guide(
    code: str,
    language: str = Query(default="en"),
    store: AppStore = Depends(get_app_store),
):
    """
    Guide for any jurisdiction code. Unknown codes get the default guide.
    Spanish content needs the multilingual feature; otherwise English is served.
    """
    if language != "en" and not store.can_access(Feature.MULTILINGUAL):
        language = "en"
    guide = await store.providers.guides.get_guide(code, language)
    return success_response(guide.model_dump())
