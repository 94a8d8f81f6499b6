"""
Database service for connection checks and reference_images schema sync
"""
from typing import Any, Dict, List

import structlog

from reftagger.core.errors import ReftaggerError
from reftagger.utils.vocabulary import get_categories

logger = structlog.get_logger(__name__)

TABLES = ("reference_images", "tag_vocabulary", "tag_corrections", "vocabulary_config", "user_settings")


class DatabaseService:
    """Service for schema-level database operations using Supabase"""

    def __init__(self, supabase_client):
        self.supabase = supabase_client

    async def test_connection(self) -> Dict[str, Any]:
        """Test Supabase connection and table access"""
        tables = {}
        try:
            for table in TABLES:
                result = self.supabase.table(table).select("*", count="exact").limit(1).execute()
                tables[table] = result.count if result.count is not None else len(result.data or [])

            logger.info("✅ Supabase connection test passed")
            return {
                "status": "success",
                "message": "Supabase connection working",
                "tables": tables,
            }
        except Exception as e:
            logger.error(f"❌ Supabase connection test failed: {e}")
            return {
                "status": "error",
                "message": f"Supabase connection failed: {e}",
                "tables": tables,
            }

    async def get_table_columns(self, table_name: str = "reference_images") -> List[str]:
        """List columns of a table, via RPC with an information_schema fallback"""
        try:
            result = self.supabase.rpc("get_table_columns", {"table_name": table_name}).execute()
            rows = result.data or []
        except Exception as e:
            logger.warning(f"⚠️ get_table_columns RPC unavailable, querying information_schema: {e}")
            result = (
                self.supabase.schema("information_schema")
                .table("columns")
                .select("column_name")
                .eq("table_schema", "public")
                .eq("table_name", table_name)
                .execute()
            )
            rows = result.data or []

        return [row["column_name"] if isinstance(row, dict) else row for row in rows]

    async def sync_reference_images_schema(self, config: Dict[str, Any]) -> List[str]:
        """Add a text[] column for every array category whose column is missing

        Returns the names of the columns that were created.
        """
        existing = set(await self.get_table_columns("reference_images"))
        created = []

        for category in get_categories(config):
            if category.get("storage_type") != "array":
                continue
            column = category["storage_path"]
            if column in existing:
                continue

            logger.info(f"🔄 Adding column reference_images.{column}")
            result = self.supabase.rpc(
                "sync_reference_images_schema",
                {"column_name": column, "column_type": "text[]"},
            ).execute()

            outcome = result.data or {}
            if isinstance(outcome, dict) and outcome.get("success") is False:
                raise ReftaggerError(f"Failed to add column {column}: {outcome.get('message')}")

            created.append(column)
            existing.add(column)

        if created:
            logger.info(f"✅ Schema synced, added columns: {created}")
        return created
