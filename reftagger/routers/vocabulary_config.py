"""
Vocabulary configuration API routes
"""
from typing import Any, Dict

import structlog
from fastapi import APIRouter, Body, Depends, HTTPException

from reftagger.core.dependencies import get_vocabulary_config_service
from reftagger.core.errors import http_error
from reftagger.utils.error_messages import ErrorMessages

logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/vocabulary-config", tags=["vocabulary-config"])


def _require(config_service):
    if not config_service:
        raise HTTPException(status_code=503, detail="Vocabulary config service not available")
    return config_service


@router.get("", response_model=None)
async def get_vocabulary_config(config_service=Depends(get_vocabulary_config_service)):
    """Active vocabulary config, or an empty structure when none is configured"""
    _require(config_service)
    try:
        return await config_service.get_config_response()
    except Exception as e:
        logger.error(f"❌ Failed to load vocabulary config: {e}")
        raise http_error(e, ErrorMessages.VOCAB_CONFIG_LOAD_FAILED)


@router.post("/replace", response_model=None)
async def replace_vocabulary_config(
    payload: Dict[str, Any] = Body(...),
    config_service=Depends(get_vocabulary_config_service),
):
    """Replace the vocabulary. Deletes every image, correction and tag"""
    _require(config_service)
    try:
        return await config_service.replace_config(payload)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"❌ Failed to replace vocabulary config: {e}")
        raise http_error(e, ErrorMessages.VOCAB_CONFIG_SAVE_FAILED)


@router.post("/categories", response_model=None)
async def add_category(
    payload: Dict[str, Any] = Body(...),
    config_service=Depends(get_vocabulary_config_service),
):
    _require(config_service)
    try:
        return await config_service.add_category(payload)
    except Exception as e:
        logger.error(f"❌ Failed to add category: {e}")
        raise http_error(e, ErrorMessages.VOCAB_CONFIG_SAVE_FAILED)


@router.patch("/categories/{key}", response_model=None)
async def update_category(
    key: str,
    payload: Dict[str, Any] = Body(...),
    config_service=Depends(get_vocabulary_config_service),
):
    _require(config_service)
    try:
        return await config_service.update_category(key, payload)
    except Exception as e:
        logger.error(f"❌ Failed to update category {key}: {e}")
        raise http_error(e, ErrorMessages.VOCAB_CONFIG_SAVE_FAILED)


@router.delete("/categories/{key}", response_model=None)
async def delete_category(key: str, config_service=Depends(get_vocabulary_config_service)):
    _require(config_service)
    try:
        return await config_service.delete_category(key)
    except Exception as e:
        logger.error(f"❌ Failed to delete category {key}: {e}")
        raise http_error(e, ErrorMessages.CATEGORY_DELETE_FAILED)
