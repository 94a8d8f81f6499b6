"""
Reference image service: upload, tagging, edits, deletion and gallery browsing
"""
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import structlog
from PIL import UnidentifiedImageError

from reftagger.config.settings import settings
from reftagger.core.errors import NotFound, ReftaggerError, ValidationFailed
from reftagger.services.vocabulary_config_service import NIL_UUID
from reftagger.utils.error_messages import ErrorMessages
from reftagger.utils.file_hash import compute_file_hash, compute_perceptual_hash
from reftagger.utils.images import generate_thumbnail, sanitize_filename, validate_image_file
from reftagger.utils.vocabulary import (
    build_update_object,
    category_row_fields,
    extract_tags,
    get_array_categories,
    get_categories,
    get_image_value,
    is_array_category,
    merge_with_existing,
)

logger = structlog.get_logger(__name__)

IMAGE_STATUSES = ("pending", "tagged", "approved", "skipped")
GALLERY_STATUSES = ("tagged", "approved")
CONFIDENCE_SCORES = {"high": 0.9, "medium": 0.6, "low": 0.3}


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def get_filter_options(images: List[Dict[str, Any]], config: Dict[str, Any]) -> Dict[str, List[str]]:
    """Sorted unique values per category across the given images"""
    options: Dict[str, List[str]] = {}
    for category in get_categories(config):
        values = set()
        for image in images:
            value = get_image_value(image, category["storage_path"])
            if is_array_category(category):
                if isinstance(value, list):
                    values.update(v for v in value if v)
            elif isinstance(value, str) and value:
                values.add(value)
        options[category["key"]] = sorted(values)
    return options


def filter_images(
    images: List[Dict[str, Any]],
    search: str,
    filters: Dict[str, str],
    config: Dict[str, Any],
) -> List[Dict[str, Any]]:
    """Apply free-text search over filename and notes plus per-category filters"""
    needle = (search or "").strip().lower()
    categories = get_categories(config)
    matched = []

    for image in images:
        if needle:
            filename = (image.get("original_filename") or "").lower()
            notes = (image.get("notes") or "").lower()
            if needle not in filename and needle not in notes:
                continue

        keep = True
        for category in categories:
            wanted = filters.get(category["key"])
            if not wanted or wanted == "all":
                continue
            value = get_image_value(image, category["storage_path"])
            if is_array_category(category):
                keep = isinstance(value, list) and wanted in value
            else:
                keep = value == wanted
            if not keep:
                break

        if keep:
            matched.append(image)
    return matched


def sort_images(images: List[Dict[str, Any]], sort: str = "newest") -> List[Dict[str, Any]]:
    if sort == "oldest":
        return sorted(images, key=lambda img: img.get("tagged_at") or "")
    if sort == "updated":
        return sorted(
            images,
            key=lambda img: img.get("updated_at") or img.get("tagged_at") or "",
            reverse=True,
        )
    return sorted(images, key=lambda img: img.get("tagged_at") or "", reverse=True)


class ImageService:
    """Service for reference_images rows and their stored files"""

    def __init__(self, supabase_client, storage_service, config_service, tag_usage_service, correction_service):
        self.supabase = supabase_client
        self.storage_service = storage_service
        self.config_service = config_service
        self.tag_usage_service = tag_usage_service
        self.correction_service = correction_service

    async def get_image(self, image_id: str) -> Dict[str, Any]:
        result = self.supabase.table("reference_images").select("*").eq("id", image_id).limit(1).execute()
        if not result.data:
            raise NotFound(ErrorMessages.IMAGE_NOT_FOUND)
        return result.data[0]

    def _store_files(self, filename: str, content_type: str, data: bytes) -> Dict[str, Any]:
        """Validate, hash and upload the original plus its thumbnail"""
        errors = validate_image_file(filename, content_type, len(data), settings.MAX_UPLOAD_BYTES)
        if errors:
            raise ValidationFailed(errors, f"File validation failed: {errors[0]}")

        image_id = str(uuid.uuid4())
        safe_name = sanitize_filename(filename)
        try:
            thumbnail, thumbnail_type = generate_thumbnail(data, content_type, settings.THUMBNAIL_MAX_WIDTH)
        except UnidentifiedImageError:
            raise ValidationFailed(
                [ErrorMessages.IMAGE_INVALID_FORMAT],
                f"File validation failed: {ErrorMessages.IMAGE_INVALID_FORMAT}",
            )

        original_url = self.storage_service.upload_file(f"originals/{image_id}-{safe_name}", data, content_type)
        thumbnail_url = self.storage_service.upload_file(
            f"thumbnails/{image_id}-{safe_name}", thumbnail, thumbnail_type
        )

        try:
            perceptual_hash = compute_perceptual_hash(data)
        except Exception as e:
            logger.warning(f"⚠️ Could not compute perceptual hash for {filename}: {e}")
            perceptual_hash = None

        return {
            "id": image_id,
            "storage_path": original_url,
            "thumbnail_path": thumbnail_url,
            "original_filename": filename,
            "file_hash": compute_file_hash(data),
            "file_size": len(data),
            "perceptual_hash": perceptual_hash,
        }

    async def upload_image(self, filename: str, content_type: str, data: bytes) -> Dict[str, Any]:
        """Store a file and create a pending row to be tagged later"""
        row = self._store_files(filename, content_type, data)
        row["status"] = "pending"
        result = self.supabase.table("reference_images").insert(row).execute()
        logger.info(f"✅ Uploaded {filename} as pending image {row['id']}")
        return result.data[0] if result.data else row

    def _tagging_fields(
        self,
        tags: Dict[str, Any],
        ai_suggestion: Optional[Dict[str, Any]],
        prompt_version: Optional[str],
        config: Dict[str, Any],
    ) -> Dict[str, Any]:
        fields = {
            "status": "tagged",
            "tagged_at": _now(),
            "ai_model_version": settings.ANTHROPIC_MODEL,
            "prompt_version": prompt_version or (ai_suggestion or {}).get("promptVersion") or "baseline",
        }
        fields.update(category_row_fields(tags, config))

        if ai_suggestion:
            fields["ai_suggested_tags"] = {
                c["key"]: ai_suggestion.get(c["key"]) or [] for c in get_array_categories(config)
            }
            fields["ai_confidence_score"] = CONFIDENCE_SCORES.get(ai_suggestion.get("confidence"), 0.3)
            reasoning = ai_suggestion.get("reasoning")
            fields["ai_reasoning"] = reasoning if isinstance(reasoning, str) else None
        else:
            fields["ai_suggested_tags"] = None
            fields["ai_confidence_score"] = None
            fields["ai_reasoning"] = None
        return fields

    async def _after_tagging(
        self,
        image_id: str,
        tags: Dict[str, Any],
        ai_suggestion: Optional[Dict[str, Any]],
        config: Dict[str, Any],
    ):
        """Usage counts and correction tracking; failures here never undo the save"""
        try:
            count = await self.tag_usage_service.increment_for_new_image(tags, config, strict=False)
            logger.info(f"📊 Updated usage counts for {count} tags")
        except Exception as e:
            logger.error(f"⚠️ Error updating tag usage counts: {e}")

        if ai_suggestion:
            try:
                await self.correction_service.track_correction(image_id, ai_suggestion, tags, config)
            except Exception as e:
                logger.error(f"⚠️ Error tracking AI interaction: {e}")

    async def save_image(
        self,
        filename: str,
        content_type: str,
        data: bytes,
        tags: Dict[str, Any],
        ai_suggestion: Optional[Dict[str, Any]] = None,
        prompt_version: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Upload a file and save it as a tagged reference in one step"""
        config = await self.config_service.require_active_config()
        row = self._store_files(filename, content_type, data)
        row.update(self._tagging_fields(tags, ai_suggestion, prompt_version, config))

        result = self.supabase.table("reference_images").insert(row).execute()
        if not result.data:
            raise ReftaggerError(ErrorMessages.IMAGE_UPLOAD_FAILED)

        await self._after_tagging(row["id"], tags, ai_suggestion, config)
        logger.info(f"✅ Image {row['id']} saved")
        return result.data[0]

    async def tag_image(
        self,
        image_id: str,
        tags: Dict[str, Any],
        ai_suggestion: Optional[Dict[str, Any]] = None,
        prompt_version: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Tag a previously uploaded image; already tagged images are left alone"""
        image = await self.get_image(image_id)
        if image.get("status") == "tagged":
            logger.info(f"⏭️ Image {image_id} already tagged, skipping save")
            return {"skipped": True, "image": image}

        config = await self.config_service.require_active_config()
        fields = self._tagging_fields(tags, ai_suggestion, prompt_version, config)
        fields = merge_with_existing(image, fields)

        result = self.supabase.table("reference_images").update(fields).eq("id", image_id).execute()
        await self._after_tagging(image_id, tags, ai_suggestion, config)
        logger.info(f"✅ Image {image_id} tagged")
        return {"skipped": False, "image": result.data[0] if result.data else {**image, **fields}}

    def _edit_update(self, image: Dict[str, Any], tags: Dict[str, Any], config: Dict[str, Any]) -> Dict[str, Any]:
        normalized = {}
        for category in get_categories(config):
            key = category["key"]
            if key not in tags:
                continue
            value = tags[key]
            if is_array_category(category):
                normalized[key] = list(value) if isinstance(value, list) else []
            else:
                normalized[key] = value or None

        update = merge_with_existing(image, build_update_object(normalized, config, include_none=True))
        update["updated_at"] = _now()
        return update

    async def update_image_tags(self, image_id: str, new_tags: Dict[str, Any]) -> Dict[str, Any]:
        """Replace an image's tags; a failed usage count update aborts the edit"""
        config = await self.config_service.require_active_config()
        image = await self.get_image(image_id)
        old_tags = extract_tags(image, config)
        merged_tags = {**old_tags, **new_tags}

        await self.tag_usage_service.update_for_changes(old_tags, merged_tags, config)

        update = self._edit_update(image, new_tags, config)
        result = self.supabase.table("reference_images").update(update).eq("id", image_id).execute()
        logger.info(f"✅ Image {image_id} tags updated")
        return result.data[0] if result.data else {**image, **update}

    async def bulk_edit(self, image_ids: List[str], tags_by_category: Dict[str, List[str]], mode: str) -> Dict[str, Any]:
        """Add or remove the same tags across many images"""
        if mode not in ("add", "remove"):
            raise ValidationFailed([f"Unknown bulk edit mode: {mode}"])

        config = await self.config_service.require_active_config()
        updated, failed = 0, []

        for image_id in image_ids:
            try:
                image = await self.get_image(image_id)
                old_tags = extract_tags(image, config)
                new_tags = dict(old_tags)

                for category in get_array_categories(config):
                    key = category["key"]
                    changes = tags_by_category.get(key) or []
                    if not changes:
                        continue
                    current = list(old_tags.get(key) or [])
                    if mode == "add":
                        new_tags[key] = current + [t for t in changes if t not in current]
                    else:
                        new_tags[key] = [t for t in current if t not in changes]

                await self.tag_usage_service.update_for_changes(old_tags, new_tags, config)

                changed = {c["key"]: new_tags[c["key"]] for c in get_array_categories(config)}
                update = merge_with_existing(image, build_update_object(changed, config))
                update["updated_at"] = _now()
                self.supabase.table("reference_images").update(update).eq("id", image_id).execute()
                updated += 1
            except Exception as e:
                logger.error(f"❌ Bulk edit failed for image {image_id}: {e}")
                failed.append(image_id)

        logger.info(f"✅ Bulk {mode} applied to {updated}/{len(image_ids)} images")
        return {"updated": updated, "failed": failed}

    async def set_status(self, image_id: str, status: str) -> Dict[str, Any]:
        if status not in IMAGE_STATUSES:
            raise ValidationFailed([f"Invalid status: {status}"])
        await self.get_image(image_id)
        result = (
            self.supabase.table("reference_images")
            .update({"status": status, "updated_at": _now()})
            .eq("id", image_id)
            .execute()
        )
        return result.data[0] if result.data else {"id": image_id, "status": status}

    async def delete_image(self, image_id: str) -> Dict[str, Any]:
        config = await self.config_service.require_active_config()
        image = await self.get_image(image_id)

        if image.get("status") in GALLERY_STATUSES:
            await self.tag_usage_service.decrement_for_deleted_image(extract_tags(image, config), config, strict=False)

        self.storage_service.remove_image_files([image])
        self.supabase.table("tag_corrections").delete().eq("image_id", image_id).execute()
        self.supabase.table("reference_images").delete().eq("id", image_id).execute()
        logger.info(f"🗑️ Image {image_id} deleted")
        return {"success": True, "id": image_id}

    async def delete_all_images(self) -> Dict[str, Any]:
        """Delete every image, its files and corrections, and zero all usage counts"""
        images = (
            self.supabase.table("reference_images").select("id, storage_path, thumbnail_path").execute()
        ).data or []

        self.storage_service.remove_image_files(images)

        ids = [image["id"] for image in images]
        if ids:
            self.supabase.table("tag_corrections").delete().in_("image_id", ids).execute()
            self.supabase.table("reference_images").delete().in_("id", ids).execute()

        self.supabase.table("tag_vocabulary").update({
            "times_used": 0,
            "last_used_at": None,
        }).neq("id", NIL_UUID).execute()
        self.correction_service.clear_cache()

        logger.info(f"🗑️ Deleted {len(ids)} images and reset usage counts")
        return {"success": True, "deleted_count": len(ids)}

    async def list_images(self, statuses=GALLERY_STATUSES) -> List[Dict[str, Any]]:
        result = self.supabase.table("reference_images").select("*").in_("status", list(statuses)).execute()
        return result.data or []

    async def list_gallery(
        self,
        search: str = "",
        filters: Optional[Dict[str, str]] = None,
        sort: str = "newest",
    ) -> Dict[str, Any]:
        config = await self.config_service.require_active_config()
        images = await self.list_images()
        matched = sort_images(filter_images(images, search, filters or {}, config), sort)
        return {"images": matched, "total": len(images), "count": len(matched)}

    async def filter_options(self) -> Dict[str, List[str]]:
        config = await self.config_service.require_active_config()
        return get_filter_options(await self.list_images(), config)
