"""
Vocabulary config service

The active vocabulary_config row defines which categories exist, how each
one is stored on reference_images and how much it weighs in search.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import structlog

from reftagger.config.default_vocabulary import (
    DEFAULT_CONFIG_DESCRIPTION,
    DEFAULT_CONFIG_NAME,
    get_default_structure,
)
from reftagger.core.errors import Conflict, NotFound, ReftaggerError, ValidationFailed
from reftagger.schemas.vocabulary import (
    validate_category,
    validate_category_update,
    validate_vocabulary_config,
)
from reftagger.utils.error_messages import ErrorMessages
from reftagger.utils.vocabulary import get_categories

logger = structlog.get_logger(__name__)

# Deletes through PostgREST need a filter; no row carries the nil UUID
NIL_UUID = "00000000-0000-0000-0000-000000000000"
TAG_INSERT_BATCH_SIZE = 50
REQUIRED_CATEGORY_FIELDS = ("key", "label", "storage_path", "storage_type")


class VocabularyConfigService:
    """Service for reading and replacing the active vocabulary configuration"""

    def __init__(self, supabase_client, database_service, storage_service):
        self.supabase = supabase_client
        self.database_service = database_service
        self.storage_service = storage_service

    async def get_active_config(self) -> Optional[Dict[str, Any]]:
        """Get the active config row, or None when there is none"""
        result = (
            self.supabase.table("vocabulary_config")
            .select("*")
            .eq("is_active", True)
            .limit(1)
            .execute()
        )
        return result.data[0] if result.data else None

    async def get_config_response(self) -> Dict[str, Any]:
        config = await self.get_active_config()
        if config is None:
            return {"structure": {"categories": []}, "message": ErrorMessages.VOCAB_CONFIG_MISSING}
        return config

    async def require_active_config(self) -> Dict[str, Any]:
        config = await self.get_active_config()
        if config is None:
            raise ReftaggerError(ErrorMessages.VOCAB_CONFIG_MISSING)
        return config

    async def replace_config(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Replace the vocabulary, wiping every image, correction and tag

        The new structure may carry starter tags per category; they are
        inserted into tag_vocabulary in batches.
        """
        request = validate_vocabulary_config(payload)
        structure = request.structure.model_dump(mode="json", exclude_none=True)

        logger.info(f"🔄 Replacing vocabulary with '{request.config_name}'")

        images = self._fetch_all_images()
        self.storage_service.remove_image_files(images)

        for table, column, value in (
            ("reference_images", "id", NIL_UUID),
            ("tag_corrections", "id", NIL_UUID),
            ("tag_vocabulary", "id", NIL_UUID),
        ):
            try:
                self.supabase.table(table).delete().neq(column, value).execute()
            except Exception as e:
                logger.error(f"❌ Error clearing {table}: {e}")
        try:
            self.supabase.table("vocabulary_config").delete().eq("is_active", True).execute()
        except Exception as e:
            logger.error(f"❌ Error deleting old config: {e}")

        await self.database_service.sync_reference_images_schema({"structure": structure})

        result = self.supabase.table("vocabulary_config").insert({
            "config_name": request.config_name,
            "description": request.description or None,
            "structure": structure,
            "is_active": True,
        }).execute()
        if not result.data:
            raise ReftaggerError("Failed to insert new vocabulary configuration")
        new_config = result.data[0]

        tags_inserted = self._insert_category_tags(structure["categories"])

        logger.info(f"✅ Vocabulary replaced ({len(images)} images removed, {tags_inserted} tags inserted)")
        return {
            "success": True,
            "message": "Vocabulary replaced successfully. System is ready for fresh tagging.",
            "config": new_config,
            "stats": {
                "images_deleted": len(images),
                "storage_files_deleted": len(images) * 2,
                "tags_inserted": tags_inserted,
            },
        }

    def _fetch_all_images(self) -> List[Dict[str, Any]]:
        try:
            result = self.supabase.table("reference_images").select("id, storage_path, thumbnail_path").execute()
            return result.data or []
        except Exception as e:
            logger.error(f"❌ Error fetching images: {e}")
            return []

    def _insert_category_tags(self, categories: List[Dict[str, Any]]) -> int:
        inserted = 0
        for category in categories:
            tags = category.get("tags") or []
            if not tags or category.get("storage_type") == "text":
                continue

            rows = [
                {
                    "category": category["key"],
                    "tag_value": tag.strip().lower(),
                    "description": None,
                    "sort_order": index + 1,
                    "is_active": True,
                    "times_used": 0,
                }
                for index, tag in enumerate(tags)
            ]
            for start in range(0, len(rows), TAG_INSERT_BATCH_SIZE):
                batch = rows[start:start + TAG_INSERT_BATCH_SIZE]
                try:
                    self.supabase.table("tag_vocabulary").insert(batch).execute()
                    inserted += len(batch)
                except Exception as e:
                    logger.error(f"❌ Error inserting tags for category {category['key']}: {e}")
        return inserted

    async def seed_default_config(self) -> Optional[Dict[str, Any]]:
        """Install the default vocabulary when no config is active"""
        if await self.get_active_config() is not None:
            return None

        structure = get_default_structure()
        result = self.supabase.table("vocabulary_config").insert({
            "config_name": DEFAULT_CONFIG_NAME,
            "description": DEFAULT_CONFIG_DESCRIPTION,
            "structure": structure,
            "is_active": True,
        }).execute()
        tags_inserted = self._insert_category_tags(structure["categories"])
        logger.info(f"✅ Default vocabulary installed ({tags_inserted} tags)")
        return result.data[0] if result.data else None

    async def add_category(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        missing = [field for field in REQUIRED_CATEGORY_FIELDS if not payload.get(field)]
        if missing:
            raise ValidationFailed(missing, ErrorMessages.CATEGORY_REQUIRED_FIELDS)

        category = validate_category(payload)
        config = await self.require_active_config()
        categories = get_categories(config)

        if any(c.get("key") == category["key"] for c in categories):
            raise Conflict(ErrorMessages.CATEGORY_DUPLICATE_KEY)
        if any(c.get("storage_path") == category["storage_path"] for c in categories):
            raise Conflict(ErrorMessages.CATEGORY_DUPLICATE_PATH)

        categories.append(category)
        updated = await self._save_categories(config, categories)
        logger.info(f"✅ Category {category['key']} added")
        return updated

    async def update_category(self, key: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        updates = validate_category_update(payload)
        config = await self.require_active_config()
        categories = get_categories(config)

        index = next((i for i, c in enumerate(categories) if c.get("key") == key), None)
        if index is None:
            raise NotFound(ErrorMessages.CATEGORY_NOT_FOUND)

        new_path = updates.get("storage_path")
        if new_path and any(
            c.get("storage_path") == new_path for i, c in enumerate(categories) if i != index
        ):
            raise Conflict(ErrorMessages.CATEGORY_DUPLICATE_PATH)

        categories[index] = {**categories[index], **updates}
        updated = await self._save_categories(config, categories)
        logger.info(f"✅ Category {key} updated")
        return updated

    async def delete_category(self, key: str) -> Dict[str, Any]:
        config = await self.require_active_config()
        categories = get_categories(config)
        remaining = [c for c in categories if c.get("key") != key]
        if len(remaining) == len(categories):
            raise NotFound(ErrorMessages.CATEGORY_NOT_FOUND)

        updated = await self._save_categories(config, remaining)
        self.supabase.table("tag_vocabulary").delete().eq("category", key).execute()
        logger.info(f"🗑️ Category {key} and its tags deleted")
        return updated

    async def _save_categories(self, config: Dict[str, Any], categories: List[Dict[str, Any]]) -> Dict[str, Any]:
        structure = {**(config.get("structure") or {}), "categories": categories}
        result = (
            self.supabase.table("vocabulary_config")
            .update({
                "structure": structure,
                "updated_at": datetime.now(timezone.utc).isoformat(),
            })
            .eq("id", config["id"])
            .execute()
        )
        if result.data:
            return result.data[0]
        return {**config, "structure": structure}
