"""
Scripts Router - "what to say" scripts for police interactions (premium)
"""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from auth import get_app_store
from backend.errors import AppError
from backend.utils.responses import app_error_response, success_response
from services.app_store import AppStore
from services.script_service import ScriptService

router = APIRouter(prefix="/api/scripts", tags=["scripts"])


class GenerateScriptRequest(BaseModel):
    scenario: str = Field(..., description="Scenario id, e.g. traffic-stop")
    language: Optional[str] = Field(default="en", description="en or es")
    context: Optional[str] = Field(default="", description="Optional details folded into the prompt")


@router.get("/scenarios")
async def list_scenarios():
    return success_response({
        "scenarios": ScriptService.list_scenarios(),
        "languages": [{"code": "en", "name": "English"}, {"code": "es", "name": "Spanish"}],
    })


@router.post("/generate")
async def generate_script(request: GenerateScriptRequest, store: AppStore = Depends(get_app_store)):
    """Generate a script for the selected jurisdiction; falls back to built-in text"""
    try:
        script = await store.generate_script(request.scenario, request.language, request.context)
    except AppError as e:
        return app_error_response(e)
    return success_response({
        "scenario": request.scenario,
        "jurisdiction": store.selected_jurisdiction,
        "script": script,
    })
