"""
Reference image API routes
"""
import json
from typing import Any, Dict, Optional

import structlog
from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Request, UploadFile

from reftagger.core.dependencies import get_image_service
from reftagger.core.errors import http_error
from reftagger.schemas.images import BulkEditRequest, ImageEditRequest, ImageTagsRequest, StatusUpdate
from reftagger.utils.error_messages import ErrorMessages

logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/images", tags=["images"])

# Query parameters that are not category filters
GALLERY_PARAMS = {"search", "sort"}


def _require(image_service):
    if not image_service:
        raise HTTPException(status_code=503, detail="Image service not available")
    return image_service


def _parse_json_field(name: str, value: Optional[str]) -> Optional[Dict[str, Any]]:
    if not value:
        return None
    try:
        parsed = json.loads(value)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"{name} must be valid JSON")
    if not isinstance(parsed, dict):
        raise HTTPException(status_code=400, detail=f"{name} must be a JSON object")
    return parsed


@router.post("/upload", response_model=None)
async def upload_image(file: UploadFile = File(...), image_service=Depends(get_image_service)):
    """Store a file as a pending image, to be tagged later"""
    _require(image_service)
    try:
        data = await file.read()
        return await image_service.upload_image(file.filename or "", file.content_type or "", data)
    except Exception as e:
        logger.error(f"❌ Upload failed for {file.filename}: {e}")
        raise http_error(e, ErrorMessages.IMAGE_UPLOAD_FAILED)


@router.post("", response_model=None)
async def save_image(
    file: UploadFile = File(...),
    tags: str = Form("{}", description="JSON object of category key to tags"),
    ai_suggestion: Optional[str] = Form(None, description="JSON object of the AI suggestion"),
    prompt_version: Optional[str] = Form(None),
    image_service=Depends(get_image_service),
):
    """Upload and tag an image in one request"""
    _require(image_service)
    tag_values = _parse_json_field("tags", tags) or {}
    suggestion = _parse_json_field("ai_suggestion", ai_suggestion)
    try:
        data = await file.read()
        return await image_service.save_image(
            file.filename or "",
            file.content_type or "",
            data,
            tag_values,
            ai_suggestion=suggestion,
            prompt_version=prompt_version,
        )
    except Exception as e:
        logger.error(f"❌ Save failed for {file.filename}: {e}")
        raise http_error(e, ErrorMessages.IMAGE_UPLOAD_FAILED)


@router.post("/bulk-edit", response_model=None)
async def bulk_edit(request: BulkEditRequest, image_service=Depends(get_image_service)):
    _require(image_service)
    try:
        return await image_service.bulk_edit(request.image_ids, request.tags, request.mode)
    except Exception as e:
        logger.error(f"❌ Bulk edit failed: {e}")
        raise http_error(e, ErrorMessages.BULK_UPDATE_FAILED)


@router.get("", response_model=None)
async def list_gallery(
    request: Request,
    search: str = Query("", description="Matches filename and notes"),
    sort: str = Query("newest", description="newest, oldest or updated"),
    image_service=Depends(get_image_service),
):
    """Tagged and approved images; any other query parameter filters by category key"""
    _require(image_service)
    filters = {k: v for k, v in request.query_params.items() if k not in GALLERY_PARAMS}
    try:
        return await image_service.list_gallery(search=search, filters=filters, sort=sort)
    except Exception as e:
        logger.error(f"❌ Failed to list images: {e}")
        raise http_error(e, ErrorMessages.IMAGE_FETCH_FAILED)


@router.get("/filter-options", response_model=None)
async def filter_options(image_service=Depends(get_image_service)):
    _require(image_service)
    try:
        return await image_service.filter_options()
    except Exception as e:
        logger.error(f"❌ Failed to build filter options: {e}")
        raise http_error(e, ErrorMessages.IMAGE_FETCH_FAILED)


@router.get("/{image_id}", response_model=None)
async def get_image(image_id: str, image_service=Depends(get_image_service)):
    _require(image_service)
    try:
        return await image_service.get_image(image_id)
    except Exception as e:
        raise http_error(e, ErrorMessages.IMAGE_FETCH_FAILED)


@router.post("/{image_id}/tags", response_model=None)
async def tag_image(image_id: str, request: ImageTagsRequest, image_service=Depends(get_image_service)):
    _require(image_service)
    try:
        return await image_service.tag_image(
            image_id, request.tags, ai_suggestion=request.ai_suggestion, prompt_version=request.prompt_version
        )
    except Exception as e:
        logger.error(f"❌ Tagging failed for image {image_id}: {e}")
        raise http_error(e, ErrorMessages.IMAGE_UPDATE_FAILED)


@router.patch("/{image_id}", response_model=None)
async def update_image(image_id: str, request: ImageEditRequest, image_service=Depends(get_image_service)):
    _require(image_service)
    try:
        return await image_service.update_image_tags(image_id, request.tags)
    except Exception as e:
        logger.error(f"❌ Update failed for image {image_id}: {e}")
        raise http_error(e, ErrorMessages.IMAGE_UPDATE_FAILED)


@router.post("/{image_id}/status", response_model=None)
async def set_status(image_id: str, request: StatusUpdate, image_service=Depends(get_image_service)):
    _require(image_service)
    try:
        return await image_service.set_status(image_id, request.status)
    except Exception as e:
        logger.error(f"❌ Status change failed for image {image_id}: {e}")
        raise http_error(e, ErrorMessages.IMAGE_UPDATE_FAILED)


@router.delete("/{image_id}", response_model=None)
async def delete_image(image_id: str, image_service=Depends(get_image_service)):
    _require(image_service)
    try:
        return await image_service.delete_image(image_id)
    except Exception as e:
        logger.error(f"❌ Delete failed for image {image_id}: {e}")
        raise http_error(e, ErrorMessages.IMAGE_DELETE_FAILED)
