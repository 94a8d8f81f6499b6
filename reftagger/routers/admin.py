"""
Admin API routes for bulk maintenance and system testing
"""
import structlog
from fastapi import APIRouter, Depends, HTTPException

from reftagger.core.dependencies import get_database_service, get_image_service, get_stats_service
from reftagger.core.errors import http_error
from reftagger.utils.error_messages import ErrorMessages

logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/test-supabase", response_model=None)
async def test_supabase(database_service=Depends(get_database_service)):
    """Test Supabase connection and permissions"""
    if not database_service:
        raise HTTPException(status_code=503, detail="Database service not available")

    result = await database_service.test_connection()

    if result["status"] == "error":
        raise HTTPException(status_code=503, detail=result["message"])

    return result


@router.post("/delete-all-images", response_model=None)
async def delete_all_images(image_service=Depends(get_image_service)):
    """Delete every image, its files and corrections, and reset tag usage counts"""
    if not image_service:
        raise HTTPException(status_code=503, detail="Image service not available")

    try:
        return await image_service.delete_all_images()
    except Exception as e:
        logger.error(f"❌ Delete all images failed: {e}")
        raise http_error(e, ErrorMessages.DELETE_ALL_IMAGES_FAILED)


@router.get("/export", response_model=None)
async def export_data(stats_service=Depends(get_stats_service)):
    if not stats_service:
        raise HTTPException(status_code=503, detail="Stats service not available")

    try:
        return await stats_service.export_data()
    except Exception as e:
        logger.error(f"❌ Export failed: {e}")
        raise http_error(e, ErrorMessages.EXPORT_DATA_FAILED)
