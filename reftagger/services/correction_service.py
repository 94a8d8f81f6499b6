"""
Correction tracking and analysis

Every time a designer saves an image that had AI suggestions, the
difference between the suggested and the selected tags is stored in
tag_corrections. The analysis of those rows feeds the enhanced prompt and
the AI analytics report.
"""
import time
from collections import Counter
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

import structlog

from reftagger.utils.vocabulary import flatten_array_tags, get_array_categories, get_image_value

logger = structlog.get_logger(__name__)

CACHE_DURATION_SECONDS = 60 * 60
CACHE_IMAGE_THRESHOLD = 5
MIN_CORRECTIONS = 5


def _tag_patterns(
    corrections: List[Dict[str, Any]],
    field: str,
    tag_to_category: Dict[str, str],
    total: int,
    limit: int,
    precision: int = 0,
) -> List[Dict[str, Any]]:
    counts = Counter()
    for correction in corrections:
        counts.update(correction.get(field) or [])

    patterns = []
    for tag, count in counts.most_common(limit):
        percentage = round(count / total * 100, precision) if total else 0
        patterns.append({
            "tag": tag,
            "category": tag_to_category.get(tag, "unknown"),
            "count": count,
            "percentage": int(percentage) if precision == 0 else percentage,
        })
    return patterns


def _suggested_count(correction: Dict[str, Any]) -> int:
    suggested = correction.get("ai_suggested") or {}
    return sum(len(v) for k, v in suggested.items() if k != "confidence" and isinstance(v, list))


def calculate_accuracy(corrections: List[Dict[str, Any]]) -> float:
    """Share of AI-suggested tags the designer kept, as a percentage"""
    suggested = kept = 0
    for correction in corrections:
        count = _suggested_count(correction)
        suggested += count
        kept += max(count - len(correction.get("tags_removed") or []), 0)
    return kept / suggested * 100 if suggested else 0


def calculate_category_accuracy(corrections: List[Dict[str, Any]], config: Dict[str, Any]) -> Dict[str, int]:
    """Kept/suggested per array category; 100 where the AI never suggested anything"""
    accuracy = {}
    for category in get_array_categories(config):
        key = category["key"]
        suggested = kept = 0
        for correction in corrections:
            ai_tags = (correction.get("ai_suggested") or {}).get(key) or []
            selected = set((correction.get("designer_selected") or {}).get(key) or [])
            suggested += len(ai_tags)
            kept += sum(1 for tag in ai_tags if tag in selected)
        accuracy[key] = round(kept / suggested * 100) if suggested else 100
    return accuracy


class CorrectionService:
    """Service for recording AI-vs-designer differences and analysing them"""

    def __init__(self, supabase_client, config_service, settings_service=None, clock: Callable[[], float] = time.time):
        self.supabase = supabase_client
        self.config_service = config_service
        self.settings_service = settings_service
        self.clock = clock

        self._cache: Optional[Dict[str, Any]] = None
        self._cache_timestamp = 0.0
        self._last_image_count = 0

    async def track_correction(
        self,
        image_id: str,
        ai_suggestion: Dict[str, Any],
        designer_tags: Dict[str, Any],
        config: Dict[str, Any],
    ) -> Optional[Dict[str, Any]]:
        """Record the difference between suggested and selected tags

        A row is written even when nothing changed so that perfect
        suggestions count towards accuracy.
        """
        ai_flat = flatten_array_tags(ai_suggestion, config)
        designer_flat = flatten_array_tags(designer_tags, config)

        tags_added = [tag for tag in designer_flat if tag not in ai_flat]
        tags_removed = [tag for tag in ai_flat if tag not in designer_flat]

        ai_suggested: Dict[str, Any] = {"confidence": ai_suggestion.get("confidence")}
        designer_selected: Dict[str, Any] = {}
        for category in get_array_categories(config):
            key = category["key"]
            ai_suggested[key] = ai_suggestion.get(key) or []
            designer_selected[key] = designer_tags.get(key) or []

        row = {
            "image_id": image_id,
            "ai_suggested": ai_suggested,
            "designer_selected": designer_selected,
            "tags_added": tags_added,
            "tags_removed": tags_removed,
            "corrected_at": datetime.now(timezone.utc).isoformat(),
        }
        result = self.supabase.table("tag_corrections").insert(row).execute()

        if not tags_added and not tags_removed:
            logger.info(f"✨ Designer accepted all AI suggestions for {image_id}")
        else:
            logger.info(f"📊 Correction tracked for {image_id} (+{len(tags_added)} / -{len(tags_removed)})")
        return result.data[0] if result.data else row

    def clear_cache(self):
        self._cache = None
        self._cache_timestamp = 0.0

    def _count_images_with_suggestions(self) -> int:
        result = (
            self.supabase.table("reference_images")
            .select("id", count="exact")
            .not_.is_("ai_suggested_tags", "null")
            .execute()
        )
        return result.count if result.count is not None else len(result.data or [])

    def _tag_to_category(self) -> Dict[str, str]:
        rows = (self.supabase.table("tag_vocabulary").select("tag_value, category").execute()).data or []
        return {row["tag_value"]: row["category"] for row in rows}

    async def get_correction_analysis(self) -> Optional[Dict[str, Any]]:
        """Analyse stored corrections, cached for an hour or until 5 more images are tagged"""
        try:
            now = self.clock()
            image_count = self._count_images_with_suggestions()

            if (
                self._cache is not None
                and now - self._cache_timestamp < CACHE_DURATION_SECONDS
                and image_count - self._last_image_count < CACHE_IMAGE_THRESHOLD
            ):
                logger.info("📊 Using cached correction analysis")
                return self._cache

            logger.info("🔄 Refreshing correction analysis cache")
            corrections = (self.supabase.table("tag_corrections").select("*").execute()).data or []
            total = len(corrections)
            if total < MIN_CORRECTIONS:
                logger.info(f"⏸ Not enough data for correction analysis ({total}/{MIN_CORRECTIONS} images)")
                return None

            tag_to_category = self._tag_to_category()
            config = await self.config_service.get_active_config() or {}

            analysis = {
                "total_images": total,
                "frequently_missed": _tag_patterns(corrections, "tags_added", tag_to_category, total, 10),
                "frequently_wrong": _tag_patterns(corrections, "tags_removed", tag_to_category, total, 10),
                "accuracy_rate": round(calculate_accuracy(corrections)),
                "category_accuracy": calculate_category_accuracy(corrections, config),
                "last_updated": now,
            }

            self._cache = analysis
            self._cache_timestamp = now
            self._last_image_count = image_count
            logger.info(f"✅ Correction analysis cached ({total} images analyzed)")
            return analysis

        except Exception as e:
            logger.error(f"❌ Error analyzing corrections: {e}")
            return None

    async def retrain_prompt(self) -> Dict[str, Any]:
        """Drop the cached analysis and rebuild it from every stored correction"""
        self.clear_cache()
        analysis = await self.get_correction_analysis()
        if analysis is None:
            return {
                "success": False,
                "message": f"Not enough corrections yet. Tag at least {MIN_CORRECTIONS} images with AI suggestions first.",
            }

        return {
            "success": True,
            "message": f"Prompt updated from {analysis['total_images']} corrections",
            "analysis": {
                "total_images": analysis["total_images"],
                "accuracy_rate": analysis["accuracy_rate"],
                "top_missed": [p["tag"] for p in analysis["frequently_missed"][:5]],
                "top_wrong": [p["tag"] for p in analysis["frequently_wrong"][:5]],
                "category_accuracy": analysis["category_accuracy"],
            },
        }

    async def ai_analytics_report(self) -> Dict[str, Any]:
        """Full report on AI suggestion quality for the analytics page"""
        config = await self.config_service.require_active_config()
        images = (
            self.supabase.table("reference_images")
            .select("*")
            .not_.is_("ai_suggested_tags", "null")
            .execute()
        ).data or []
        corrections = (self.supabase.table("tag_corrections").select("*").execute()).data or []
        tag_to_category = self._tag_to_category()
        corrections_by_image = {c.get("image_id"): c for c in corrections}

        total_images = len(images)
        avg_confidence = (
            sum(img.get("ai_confidence_score") or 0 for img in images) / total_images if total_images else 0
        )

        ordered = sorted(images, key=lambda img: img.get("tagged_at") or "")
        midpoint = len(ordered) // 2
        first_ids = {img["id"] for img in ordered[:midpoint]}
        second_ids = {img["id"] for img in ordered[midpoint:]}
        first = calculate_accuracy([c for c in corrections if c.get("image_id") in first_ids])
        second = calculate_accuracy([c for c in corrections if c.get("image_id") in second_ids])
        delta = second - first
        trend = "stable" if abs(delta) < 5 else ("improving" if delta > 0 else "declining")

        enhanced = False
        if self.settings_service is not None:
            enhanced = await self.settings_service.get_enhanced_prompt_setting()

        return {
            "overall": {
                "total_images": total_images,
                "total_corrections": len(corrections),
                "avg_confidence": round(avg_confidence, 2),
                "overall_accuracy": round(calculate_accuracy(corrections), 1),
                "accuracy_trend": trend,
                "trend_percentage": round(delta, 1),
            },
            "category_breakdown": self._category_breakdown(images, corrections, config),
            "missed_tags": _tag_patterns(corrections, "tags_added", tag_to_category, total_images, 15, 1),
            "wrong_tags": _tag_patterns(corrections, "tags_removed", tag_to_category, total_images, 15, 1),
            "confidence_buckets": self._confidence_buckets(images, corrections_by_image),
            "image_analysis": self._image_analysis(images, corrections_by_image, config),
            "enhanced_mode": enhanced,
        }

    def _category_breakdown(self, images, corrections, config) -> List[Dict[str, Any]]:
        accuracy = calculate_category_accuracy(corrections, config)
        breakdown = []
        for category in get_array_categories(config):
            suggested, selected = [], []
            for image in images:
                ai_tags = image.get("ai_suggested_tags") or {}
                value = ai_tags.get(category["key"]) or ai_tags.get(category["storage_path"]) or []
                suggested.append(len(value) if isinstance(value, list) else 0)
                actual = get_image_value(image, category["storage_path"])
                selected.append(len(actual) if isinstance(actual, list) else 0)

            breakdown.append({
                "category": category.get("label") or category["key"],
                "key": category["key"],
                "avg_suggested_by_ai": round(sum(suggested) / len(suggested), 1) if suggested else 0,
                "avg_selected_by_designer": round(sum(selected) / len(selected), 1) if selected else 0,
                "accuracy": accuracy.get(category["key"], 100),
            })
        return breakdown

    def _confidence_buckets(self, images, corrections_by_image) -> List[Dict[str, Any]]:
        buckets = [
            {"range": "Low (0-70%)", "counts": []},
            {"range": "Medium (70-85%)", "counts": []},
            {"range": "High (85-100%)", "counts": []},
        ]
        for image in images:
            confidence = (image.get("ai_confidence_score") or 0) * 100
            correction = corrections_by_image.get(image["id"]) or {}
            count = len(correction.get("tags_added") or []) + len(correction.get("tags_removed") or [])
            index = 2 if confidence >= 85 else 1 if confidence >= 70 else 0
            buckets[index]["counts"].append(count)

        result = []
        for bucket in buckets:
            counts = bucket["counts"]
            result.append({
                "range": bucket["range"],
                "image_count": len(counts),
                "avg_corrections": round(sum(counts) / len(counts), 1) if counts else 0,
                "correction_rate": round(sum(1 for c in counts if c > 0) / len(counts) * 100, 1) if counts else 0,
            })
        return result

    def _image_analysis(self, images, corrections_by_image, config, limit: int = 20) -> List[Dict[str, Any]]:
        rows = []
        for image in images:
            correction = corrections_by_image.get(image["id"]) or {}
            total_tags = 0
            for category in get_array_categories(config):
                value = get_image_value(image, category["storage_path"])
                total_tags += len(value) if isinstance(value, list) else 0

            count = len(correction.get("tags_added") or []) + len(correction.get("tags_removed") or [])
            rows.append({
                "id": image["id"],
                "thumbnail_path": image.get("thumbnail_path"),
                "original_filename": image.get("original_filename"),
                "ai_confidence_score": image.get("ai_confidence_score"),
                "correction_count": count,
                "correction_percentage": round(count / total_tags * 100) if total_tags else 0,
            })
        rows.sort(key=lambda r: r["correction_count"], reverse=True)
        return rows[:limit]
