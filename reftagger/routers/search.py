"""
Reference search API routes
"""
from typing import Any, Dict

import structlog
from fastapi import APIRouter, Body, Depends, HTTPException

from reftagger.core.dependencies import get_search_service
from reftagger.core.errors import http_error
from reftagger.utils.error_messages import ErrorMessages

logger = structlog.get_logger(__name__)
router = APIRouter(tags=["search"])


@router.post("/search-references", response_model=None)
async def search_references(
    payload: Dict[str, Any] = Body(...),
    search_service=Depends(get_search_service),
):
    """Rank tagged images against a list of keywords using category search weights"""
    if not search_service:
        raise HTTPException(status_code=503, detail="Search service not available")

    try:
        return await search_service.search_references(payload.get("keywords"))
    except Exception as e:
        logger.error(f"❌ Reference search failed: {e}")
        raise http_error(e, ErrorMessages.SEARCH_FAILED)
