"""
AI tag suggestion, prompt retraining and prompt setting routes
"""
from typing import Any, Dict

import structlog
from fastapi import APIRouter, Body, Depends, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from reftagger.core.dependencies import get_correction_service, get_settings_service, get_suggestion_service
from reftagger.core.errors import http_error
from reftagger.utils.error_messages import ErrorMessages

logger = structlog.get_logger(__name__)
router = APIRouter(tags=["suggestions"])


class EnhancedPromptSetting(BaseModel):
    enabled: bool


@router.post("/suggest-tags", response_model=None)
async def suggest_tags(
    payload: Dict[str, Any] = Body(...),
    suggestion_service=Depends(get_suggestion_service),
):
    """Suggest vocabulary tags for a base64 image; the body always lists every category"""
    if not suggestion_service:
        raise HTTPException(status_code=503, detail="Suggestion service not available")

    status_code, body = await suggestion_service.suggest_tags(payload)
    return JSONResponse(status_code=status_code, content=body)


@router.post("/retrain-prompt", response_model=None)
async def retrain_prompt(correction_service=Depends(get_correction_service)):
    if not correction_service:
        raise HTTPException(status_code=503, detail="Correction service not available")

    try:
        return await correction_service.retrain_prompt()
    except Exception as e:
        logger.error(f"❌ Prompt retraining failed: {e}")
        raise http_error(e, ErrorMessages.UNKNOWN_ERROR)


@router.get("/settings/enhanced-prompt", response_model=None)
async def get_enhanced_prompt(settings_service=Depends(get_settings_service)):
    if not settings_service:
        raise HTTPException(status_code=503, detail="Settings service not available")
    return {"enabled": await settings_service.get_enhanced_prompt_setting()}


@router.put("/settings/enhanced-prompt", response_model=None)
async def set_enhanced_prompt(request: EnhancedPromptSetting, settings_service=Depends(get_settings_service)):
    if not settings_service:
        raise HTTPException(status_code=503, detail="Settings service not available")

    try:
        return {"enabled": await settings_service.set_enhanced_prompt_setting(request.enabled)}
    except Exception as e:
        logger.error(f"❌ Failed to update enhanced prompt setting: {e}")
        raise http_error(e, ErrorMessages.DATABASE_ERROR)
