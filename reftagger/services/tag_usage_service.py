"""
Tag usage counters kept on tag_vocabulary.times_used
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import structlog

from reftagger.utils.vocabulary import get_array_categories, get_database_category

logger = structlog.get_logger(__name__)


def _as_list(value: Any) -> List[str]:
    return list(value) if isinstance(value, list) else []


def diff_tags(old: Any, new: Any) -> Tuple[List[str], List[str]]:
    """Return (added, removed) between two tag lists, order preserved"""
    old_list = list(dict.fromkeys(_as_list(old)))
    new_list = list(dict.fromkeys(_as_list(new)))
    old_set, new_set = set(old_list), set(new_list)
    added = [tag for tag in new_list if tag not in old_set]
    removed = [tag for tag in old_list if tag not in new_set]
    return added, removed


class TagUsageService:
    """Increment and decrement usage counts through the database functions

    With strict=True (the default) the first RPC error propagates. With
    strict=False each failing tag is logged and the remaining tags are
    still counted.
    """

    def __init__(self, supabase_client):
        self.supabase = supabase_client

    async def increment(self, category: str, tag_value: str, last_used_at: Optional[str] = None):
        last_used_at = last_used_at or datetime.now(timezone.utc).isoformat()
        try:
            self.supabase.rpc("increment_tag_usage", {
                "p_category": category,
                "p_tag_value": tag_value,
                "p_last_used_at": last_used_at,
            }).execute()
        except Exception as e:
            logger.error(f"⚠️ Error incrementing usage for {category}:{tag_value}: {e}")
            raise

    async def decrement(self, category: str, tag_value: str):
        try:
            self.supabase.rpc("decrement_tag_usage", {
                "p_category": category,
                "p_tag_value": tag_value,
            }).execute()
        except Exception as e:
            logger.error(f"⚠️ Error decrementing usage for {category}:{tag_value}: {e}")
            raise

    async def _apply(self, operation, strict: bool, *args) -> bool:
        try:
            await operation(*args)
            return True
        except Exception:
            if strict:
                raise
            return False

    async def update_for_changes(
        self,
        old_tags: Dict[str, Any],
        new_tags: Dict[str, Any],
        config: Dict[str, Any],
        strict: bool = True,
    ) -> Dict[str, int]:
        """Increment tags that were added and decrement tags that were removed"""
        now = datetime.now(timezone.utc).isoformat()
        incremented = decremented = 0

        for category in get_array_categories(config):
            key = category["key"]
            db_category = get_database_category(category["storage_path"], key)
            added, removed = diff_tags(old_tags.get(key), new_tags.get(key))

            for tag in added:
                if await self._apply(self.increment, strict, db_category, tag, now):
                    incremented += 1
            for tag in removed:
                if await self._apply(self.decrement, strict, db_category, tag):
                    decremented += 1

        return {"incremented": incremented, "decremented": decremented}

    async def increment_for_new_image(self, tags: Dict[str, Any], config: Dict[str, Any], strict: bool = True) -> int:
        now = datetime.now(timezone.utc).isoformat()
        count = 0
        for category in get_array_categories(config):
            db_category = get_database_category(category["storage_path"], category["key"])
            for tag in _as_list(tags.get(category["key"])):
                if await self._apply(self.increment, strict, db_category, tag, now):
                    count += 1
        return count

    async def decrement_for_deleted_image(self, tags: Dict[str, Any], config: Dict[str, Any], strict: bool = True) -> int:
        count = 0
        for category in get_array_categories(config):
            db_category = get_database_category(category["storage_path"], category["key"])
            for tag in _as_list(tags.get(category["key"])):
                if await self._apply(self.decrement, strict, db_category, tag):
                    count += 1
        return count

    async def bulk_increment(self, category: str, tag_value: str, count: int = 1):
        """Increment one tag count times with a single last_used_at"""
        now = datetime.now(timezone.utc).isoformat()
        for _ in range(count):
            await self.increment(category, tag_value, now)
