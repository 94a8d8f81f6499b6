"""
Tag vocabulary service for the tags offered in each category
"""
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import structlog
from pydantic import ValidationError

from reftagger.config.default_vocabulary import get_default_tag_rows
from reftagger.core.errors import Conflict, NotFound, ReftaggerError, ValidationFailed
from reftagger.schemas import format_validation_errors
from reftagger.schemas.tags import TagCreate, TagUpdate
from reftagger.services.vocabulary_config_service import NIL_UUID
from reftagger.utils.error_messages import ErrorMessages
from reftagger.utils.similarity import find_similar_tags
from reftagger.utils.vocabulary import (
    build_update_object,
    find_category,
    get_array_categories,
    get_image_value,
    is_array_category,
    merge_with_existing,
)

logger = structlog.get_logger(__name__)


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


class TagVocabularyService:
    """Service for tag_vocabulary rows: loading, custom tags, edits, merges and analytics"""

    def __init__(self, supabase_client, config_service):
        self.supabase = supabase_client
        self.config_service = config_service

    async def load_vocabulary(self, config: Optional[Dict[str, Any]] = None) -> Dict[str, List[str]]:
        """Active tags grouped by category key for every array category of the config"""
        if config is None:
            config = await self.config_service.require_active_config()

        result = (
            self.supabase.table("tag_vocabulary")
            .select("category, tag_value")
            .eq("is_active", True)
            .order("category")
            .order("sort_order")
            .execute()
        )

        grouped: Dict[str, List[str]] = {}
        for row in result.data or []:
            grouped.setdefault(row["category"], []).append(row["tag_value"])

        return {c["key"]: grouped.get(c["key"], []) for c in get_array_categories(config)}

    async def list_tags(self, category: Optional[str] = None, include_archived: bool = False) -> List[Dict[str, Any]]:
        query = self.supabase.table("tag_vocabulary").select("*")
        if category:
            query = query.eq("category", category)
        if not include_archived:
            query = query.eq("is_active", True)
        result = query.order("category").order("sort_order").execute()
        return result.data or []

    async def get_tag(self, tag_id: str) -> Dict[str, Any]:
        result = self.supabase.table("tag_vocabulary").select("*").eq("id", tag_id).limit(1).execute()
        if not result.data:
            raise NotFound(ErrorMessages.TAG_NOT_FOUND)
        return result.data[0]

    async def find_similar(self, category: str, value: str) -> List[str]:
        tags = await self.list_tags(category)
        return find_similar_tags(value, [t["tag_value"] for t in tags])

    async def add_custom_tag(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Add a designer-created tag at the end of its category"""
        try:
            request = TagCreate.model_validate(payload)
        except ValidationError as e:
            raise ValidationFailed(format_validation_errors(e))

        existing = (
            self.supabase.table("tag_vocabulary")
            .select("tag_value, sort_order")
            .eq("category", request.category)
            .execute()
        ).data or []

        if any(row["tag_value"].lower() == request.tag_value for row in existing):
            raise Conflict(ErrorMessages.TAG_DUPLICATE_VALUE)

        orders = [row.get("sort_order") or 0 for row in existing]
        next_sort_order = max(orders) + 1 if orders else 0

        result = self.supabase.table("tag_vocabulary").insert({
            "category": request.category,
            "tag_value": request.tag_value,
            "description": request.description,
            "sort_order": next_sort_order,
            "is_active": True,
            "added_by": None,
            "times_used": 0,
        }).execute()
        if not result.data:
            raise ReftaggerError(ErrorMessages.TAG_ADD_FAILED)

        logger.info(f"✅ Custom tag '{request.tag_value}' added to {request.category}")
        return result.data[0]

    async def update_tag(self, tag_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            updates = TagUpdate.model_validate(payload).model_dump(exclude_unset=True)
        except ValidationError as e:
            raise ValidationFailed(format_validation_errors(e))

        tag = await self.get_tag(tag_id)
        new_value = updates.get("tag_value")
        if new_value and new_value != tag["tag_value"]:
            siblings = await self.list_tags(tag["category"], include_archived=True)
            if any(t["tag_value"].lower() == new_value and t["id"] != tag_id for t in siblings):
                raise Conflict(ErrorMessages.TAG_DUPLICATE_VALUE)

        if not updates:
            return tag

        result = self.supabase.table("tag_vocabulary").update(updates).eq("id", tag_id).execute()
        return result.data[0] if result.data else {**tag, **updates}

    async def archive_tag(self, tag_id: str) -> Dict[str, Any]:
        tag = await self.get_tag(tag_id)
        self.supabase.table("tag_vocabulary").update({"is_active": False}).eq("id", tag_id).execute()
        logger.info(f"📦 Tag '{tag['tag_value']}' archived")
        return {**tag, "is_active": False}

    async def delete_tag(self, tag_id: str) -> Dict[str, Any]:
        tag = await self.get_tag(tag_id)
        if (tag.get("times_used") or 0) > 0:
            raise Conflict(ErrorMessages.TAG_IN_USE)

        self.supabase.table("tag_vocabulary").delete().eq("id", tag_id).execute()
        logger.info(f"🗑️ Tag '{tag['tag_value']}' deleted")
        return tag

    async def merge_tags(self, source_id: str, target_id: str) -> Dict[str, Any]:
        """Replace the source tag with the target on every image, then archive the source

        Usage counts stay where they are; the target is not credited with the
        source's images.
        """
        if source_id == target_id:
            raise ValidationFailed(["Cannot merge a tag into itself"])

        source = await self.get_tag(source_id)
        target = await self.get_tag(target_id)
        config = await self.config_service.require_active_config()

        category = find_category(config, source["category"])
        if category is None:
            raise NotFound(f"Category configuration not found for {source['category']}")

        images = (self.supabase.table("reference_images").select("*").execute()).data or []
        path = category["storage_path"]
        images_updated = 0

        for image in images:
            current = get_image_value(image, path)

            if is_array_category(category):
                if not isinstance(current, list) or source["tag_value"] not in current:
                    continue
                new_value = [t for t in current if t != source["tag_value"]]
                if target["tag_value"] not in new_value:
                    new_value.append(target["tag_value"])
            elif current == source["tag_value"]:
                new_value = target["tag_value"]
            else:
                continue

            update = merge_with_existing(image, build_update_object({category["key"]: new_value}, config))
            self.supabase.table("reference_images").update(update).eq("id", image["id"]).execute()
            images_updated += 1

        await self.archive_tag(source_id)
        logger.info(
            f"✅ Merged '{source['tag_value']}' into '{target['tag_value']}' ({images_updated} images updated)"
        )
        return {
            "success": True,
            "images_updated": images_updated,
            "source": {**source, "is_active": False},
            "target": target,
        }

    async def vocabulary_analytics(self) -> Dict[str, Any]:
        tags = await self.list_tags(include_archived=False)
        by_usage = sorted(tags, key=lambda t: t.get("times_used") or 0, reverse=True)
        cutoff = datetime.now(timezone.utc) - timedelta(days=30)

        recently_added = []
        for tag in tags:
            created = _parse_timestamp(tag.get("created_at"))
            if created and created > cutoff:
                recently_added.append(tag)

        return {
            "total": len(tags),
            "by_category": dict(Counter(t["category"] for t in tags)),
            "most_used": by_usage[:10],
            "least_used": [t for t in by_usage if (t.get("times_used") or 0) > 0][-10:][::-1],
            "recently_added": recently_added,
            "never_used": [t for t in tags if not t.get("times_used")],
        }

    async def reset_vocabulary(self) -> Dict[str, Any]:
        """Delete every tag and reinstall the default starter tags"""
        self.supabase.table("tag_vocabulary").delete().neq("id", NIL_UUID).execute()
        rows = get_default_tag_rows()
        self.supabase.table("tag_vocabulary").insert(rows).execute()
        logger.info(f"✅ Vocabulary reset to defaults ({len(rows)} tags)")
        return {"success": True, "tags_inserted": len(rows)}

