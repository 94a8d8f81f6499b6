"""
Tag vocabulary API routes
"""
from typing import Any, Dict, Optional

import structlog
from fastapi import APIRouter, Body, Depends, HTTPException, Query

from reftagger.core.dependencies import get_tag_vocabulary_service
from reftagger.core.errors import http_error
from reftagger.schemas.tags import TagMerge
from reftagger.utils.error_messages import ErrorMessages

logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/vocabulary", tags=["vocabulary"])


def _require(vocabulary_service):
    if not vocabulary_service:
        raise HTTPException(status_code=503, detail="Tag vocabulary service not available")
    return vocabulary_service


@router.get("", response_model=None)
async def get_vocabulary(vocabulary_service=Depends(get_tag_vocabulary_service)):
    """Active tags grouped by category key"""
    _require(vocabulary_service)
    try:
        return await vocabulary_service.load_vocabulary()
    except Exception as e:
        logger.error(f"❌ Failed to load vocabulary: {e}")
        raise http_error(e, ErrorMessages.DATABASE_ERROR)


@router.get("/tags", response_model=None)
async def list_tags(
    category: Optional[str] = Query(None, description="Only tags in this category"),
    include_archived: bool = Query(False),
    vocabulary_service=Depends(get_tag_vocabulary_service),
):
    _require(vocabulary_service)
    try:
        tags = await vocabulary_service.list_tags(category, include_archived)
        return {"tags": tags, "count": len(tags)}
    except Exception as e:
        logger.error(f"❌ Failed to list tags: {e}")
        raise http_error(e, ErrorMessages.DATABASE_ERROR)


@router.post("/tags", response_model=None)
async def add_tag(
    payload: Dict[str, Any] = Body(...),
    vocabulary_service=Depends(get_tag_vocabulary_service),
):
    _require(vocabulary_service)
    try:
        return await vocabulary_service.add_custom_tag(payload)
    except Exception as e:
        logger.error(f"❌ Failed to add tag: {e}")
        raise http_error(e, ErrorMessages.TAG_ADD_FAILED)


@router.get("/tags/similar", response_model=None)
async def similar_tags(
    category: str = Query(...),
    value: str = Query(...),
    vocabulary_service=Depends(get_tag_vocabulary_service),
):
    """Existing tags that look like a typo or variant of the given value"""
    _require(vocabulary_service)
    try:
        return {"similar": await vocabulary_service.find_similar(category, value)}
    except Exception as e:
        logger.error(f"❌ Similar tag lookup failed: {e}")
        raise http_error(e, ErrorMessages.DATABASE_ERROR)


@router.post("/tags/merge", response_model=None)
async def merge_tags(request: TagMerge, vocabulary_service=Depends(get_tag_vocabulary_service)):
    _require(vocabulary_service)
    try:
        return await vocabulary_service.merge_tags(request.source_id, request.target_id)
    except Exception as e:
        logger.error(f"❌ Tag merge failed: {e}")
        raise http_error(e, ErrorMessages.TAG_MERGE_FAILED)


@router.patch("/tags/{tag_id}", response_model=None)
async def update_tag(
    tag_id: str,
    payload: Dict[str, Any] = Body(...),
    vocabulary_service=Depends(get_tag_vocabulary_service),
):
    _require(vocabulary_service)
    try:
        return await vocabulary_service.update_tag(tag_id, payload)
    except Exception as e:
        logger.error(f"❌ Failed to update tag {tag_id}: {e}")
        raise http_error(e, ErrorMessages.TAG_UPDATE_FAILED)


@router.post("/tags/{tag_id}/archive", response_model=None)
async def archive_tag(tag_id: str, vocabulary_service=Depends(get_tag_vocabulary_service)):
    _require(vocabulary_service)
    try:
        return await vocabulary_service.archive_tag(tag_id)
    except Exception as e:
        logger.error(f"❌ Failed to archive tag {tag_id}: {e}")
        raise http_error(e, ErrorMessages.TAG_UPDATE_FAILED)


@router.delete("/tags/{tag_id}", response_model=None)
async def delete_tag(tag_id: str, vocabulary_service=Depends(get_tag_vocabulary_service)):
    """Delete an unused tag; tags in use must be archived instead"""
    _require(vocabulary_service)
    try:
        return await vocabulary_service.delete_tag(tag_id)
    except Exception as e:
        logger.error(f"❌ Failed to delete tag {tag_id}: {e}")
        raise http_error(e, ErrorMessages.TAG_DELETE_FAILED)


@router.get("/analytics", response_model=None)
async def vocabulary_analytics(vocabulary_service=Depends(get_tag_vocabulary_service)):
    _require(vocabulary_service)
    try:
        return await vocabulary_service.vocabulary_analytics()
    except Exception as e:
        logger.error(f"❌ Vocabulary analytics failed: {e}")
        raise http_error(e, ErrorMessages.DATABASE_ERROR)


@router.post("/reset", response_model=None)
async def reset_vocabulary(vocabulary_service=Depends(get_tag_vocabulary_service)):
    _require(vocabulary_service)
    try:
        return await vocabulary_service.reset_vocabulary()
    except Exception as e:
        logger.error(f"❌ Vocabulary reset failed: {e}")
        raise http_error(e, ErrorMessages.RESET_VOCABULARY_FAILED)
