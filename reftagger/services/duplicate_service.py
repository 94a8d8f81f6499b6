"""
Duplicate detection for incoming reference images

Checks run in priority order: identical content hash, visually similar
perceptual hash, then a matching filename.
"""
from typing import Any, Dict, Optional

import structlog

from reftagger.core.errors import ValidationFailed
from reftagger.utils.file_hash import calculate_similarity

logger = structlog.get_logger(__name__)

SIMILARITY_THRESHOLD = 90
DUPLICATE_FIELDS = "id, original_filename, tagged_at, status, file_hash, file_size, perceptual_hash, thumbnail_path"


class DuplicateService:
    """Service for finding existing images that match an upload"""

    def __init__(self, supabase_client, similarity_threshold: int = SIMILARITY_THRESHOLD):
        self.supabase = supabase_client
        self.similarity_threshold = similarity_threshold

    def _first(self, column: str, value: Any) -> Optional[Dict[str, Any]]:
        try:
            result = (
                self.supabase.table("reference_images")
                .select(DUPLICATE_FIELDS)
                .eq(column, value)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error(f"❌ Duplicate lookup by {column} failed: {e}")
            return None
        return result.data[0] if result.data else None

    def _most_similar(self, perceptual_hash: str) -> Optional[Dict[str, Any]]:
        try:
            candidates = (
                self.supabase.table("reference_images")
                .select(DUPLICATE_FIELDS)
                .not_.is_("perceptual_hash", "null")
                .execute()
            ).data or []
        except Exception as e:
            logger.error(f"❌ Perceptual hash lookup failed: {e}")
            return None

        best, best_similarity = None, -1
        for image in candidates:
            existing = image.get("perceptual_hash")
            if not existing:
                continue
            try:
                similarity = calculate_similarity(perceptual_hash, existing)
            except ValueError as e:
                logger.warning(f"⚠️ Skipping hash comparison with {image.get('id')}: {e}")
                continue
            if similarity >= self.similarity_threshold and similarity > best_similarity:
                best, best_similarity = image, similarity

        if best is None:
            return None
        return {"image": best, "similarity": best_similarity}

    async def check_duplicate(
        self,
        filename: Optional[str],
        file_hash: Optional[str] = None,
        perceptual_hash: Optional[str] = None,
        file_size: Optional[int] = None,
    ) -> Dict[str, Any]:
        if not filename:
            raise ValidationFailed(["Filename required"])

        if file_hash:
            match = self._first("file_hash", file_hash)
            if match:
                logger.info(f"🎯 Exact duplicate found: {match.get('original_filename')}")
                return {
                    "is_duplicate": True,
                    "match_type": "exact",
                    "confidence": 100,
                    "existing_image": match,
                    "message": "Exact duplicate found (identical file content)",
                }

        if perceptual_hash:
            similar = self._most_similar(perceptual_hash)
            if similar:
                similarity = similar["similarity"]
                logger.info(f"🎨 Visually similar image found: {similar['image'].get('original_filename')} ({similarity}%)")
                return {
                    "is_duplicate": True,
                    "match_type": "similar",
                    "confidence": similarity,
                    "existing_image": similar["image"],
                    "message": f"Visually similar image found ({similarity}% match)",
                }

        match = self._first("original_filename", filename)
        if match:
            same_size = bool(file_size) and match.get("file_size") == file_size
            return {
                "is_duplicate": True,
                "match_type": "filename",
                "confidence": 80 if same_size else 50,
                "existing_image": match,
                "message": (
                    "Same filename and file size (likely duplicate)"
                    if same_size
                    else "Same filename but different file size (possibly different image)"
                ),
            }

        logger.info(f"✅ No duplicates found for: {filename}")
        return {"is_duplicate": False}
