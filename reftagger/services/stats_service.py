"""
Dashboard statistics and data export
"""
from datetime import datetime, timezone
from typing import Any, Dict, List

import structlog

from reftagger.services.image_service import GALLERY_STATUSES, IMAGE_STATUSES

logger = structlog.get_logger(__name__)

RECENT_IMAGES_LIMIT = 10
EXPORT_SAMPLE_SIZE = 5


def _average(values: List[int]) -> float:
    return round(sum(values) / len(values), 1) if values else 0


class StatsService:
    """Aggregate counts across images, vocabulary and corrections"""

    def __init__(self, supabase_client):
        self.supabase = supabase_client

    def _count(self, table: str, **filters) -> int:
        query = self.supabase.table(table).select("id", count="exact")
        for column, value in filters.items():
            query = query.eq(column, value)
        result = query.execute()
        return result.count if result.count is not None else len(result.data or [])

    async def dashboard_stats(self) -> Dict[str, Any]:
        logger.info("📊 Building dashboard stats")

        by_status = {status: self._count("reference_images", status=status) for status in IMAGE_STATUSES}
        total_images = self._count("reference_images")

        tags = (self.supabase.table("tag_vocabulary").select("category, times_used").eq("is_active", True).execute()).data or []
        by_category: Dict[str, int] = {}
        for tag in tags:
            by_category[tag["category"]] = by_category.get(tag["category"], 0) + 1

        corrections = (self.supabase.table("tag_corrections").select("tags_added, tags_removed").execute()).data or []

        recent = (
            self.supabase.table("reference_images")
            .select("*")
            .in_("status", list(GALLERY_STATUSES))
            .order("tagged_at", desc=True)
            .limit(RECENT_IMAGES_LIMIT)
            .execute()
        ).data or []

        return {
            "images": {"total": total_images, "by_status": by_status},
            "vocabulary": {
                "total": len(tags),
                "by_category": by_category,
                "never_used": sum(1 for tag in tags if not tag.get("times_used")),
            },
            "ai_accuracy": {
                "total_corrections": len(corrections),
                "average_tags_added": _average([len(c.get("tags_added") or []) for c in corrections]),
                "average_tags_removed": _average([len(c.get("tags_removed") or []) for c in corrections]),
            },
            "last_tagged_at": recent[0].get("tagged_at") if recent else None,
            "recent_images": recent,
        }

    async def export_data(self) -> Dict[str, Any]:
        """Vocabulary plus a small image sample, for backups and debugging"""
        vocabulary = (
            self.supabase.table("tag_vocabulary")
            .select("*")
            .order("category")
            .order("sort_order")
            .execute()
        ).data or []

        sample = (
            self.supabase.table("reference_images")
            .select("*")
            .in_("status", list(GALLERY_STATUSES))
            .limit(EXPORT_SAMPLE_SIZE)
            .execute()
        ).data or []

        logger.info(f"📦 Exported {len(vocabulary)} tags and {len(sample)} sample images")
        return {
            "exported_at": datetime.now(timezone.utc).isoformat(),
            "vocabulary": vocabulary,
            "sample_images": sample,
            "stats": await self.dashboard_stats(),
        }
