"""
Dashboard and AI accuracy statistics routes
"""
import structlog
from fastapi import APIRouter, Depends, HTTPException

from reftagger.core.dependencies import get_correction_service, get_stats_service
from reftagger.core.errors import http_error
from reftagger.utils.error_messages import ErrorMessages

logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/stats", tags=["stats"])


@router.get("/dashboard", response_model=None)
async def dashboard_stats(stats_service=Depends(get_stats_service)):
    if not stats_service:
        raise HTTPException(status_code=503, detail="Stats service not available")

    try:
        return await stats_service.dashboard_stats()
    except Exception as e:
        logger.error(f"❌ Dashboard stats failed: {e}")
        raise http_error(e, ErrorMessages.DATABASE_ERROR)


@router.get("/ai", response_model=None)
async def ai_analytics(correction_service=Depends(get_correction_service)):
    """Accuracy, trend and confidence breakdown of AI suggestions"""
    if not correction_service:
        raise HTTPException(status_code=503, detail="Correction service not available")

    try:
        return await correction_service.ai_analytics_report()
    except Exception as e:
        logger.error(f"❌ AI analytics failed: {e}")
        raise http_error(e, ErrorMessages.DATABASE_ERROR)
