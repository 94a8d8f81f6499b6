"""
Questionnaire keyword extraction route
"""
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, HTTPException
from fastapi.responses import JSONResponse

from reftagger.core.dependencies import get_keyword_service

router = APIRouter(tags=["keywords"])


@router.post("/extract-keywords", response_model=None)
async def extract_keywords(
    payload: Dict[str, Any] = Body(...),
    keyword_service=Depends(get_keyword_service),
):
    """Search keywords for a client briefing; falls back to word matching without the model"""
    if not keyword_service:
        raise HTTPException(status_code=503, detail="Keyword service not available")

    status_code, body = await keyword_service.extract_keywords(payload)
    return JSONResponse(status_code=status_code, content=body)
