"""
Duplicate detection API routes
"""
import structlog
from fastapi import APIRouter, Depends, HTTPException

from reftagger.core.dependencies import get_duplicate_service
from reftagger.core.errors import http_error
from reftagger.schemas.images import DuplicateCheckRequest
from reftagger.utils.error_messages import ErrorMessages

logger = structlog.get_logger(__name__)
router = APIRouter(tags=["duplicates"])


@router.post("/check-duplicate", response_model=None)
async def check_duplicate(request: DuplicateCheckRequest, duplicate_service=Depends(get_duplicate_service)):
    """Compare a candidate upload with stored images by hash, perceptual hash and filename"""
    if not duplicate_service:
        raise HTTPException(status_code=503, detail="Duplicate service not available")

    try:
        return await duplicate_service.check_duplicate(
            request.filename,
            file_hash=request.file_hash,
            perceptual_hash=request.perceptual_hash,
            file_size=request.file_size,
        )
    except Exception as e:
        logger.error(f"❌ Duplicate check failed: {e}")
        raise http_error(e, ErrorMessages.DUPLICATE_DETECTION_FAILED)
