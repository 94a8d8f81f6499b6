"""
Application settings stored in the user_settings table
"""
from typing import Optional

import structlog

from reftagger.config.settings import settings

logger = structlog.get_logger(__name__)

ENHANCED_PROMPT_KEY = "use_enhanced_prompt"


class SettingsService:
    """Read and write key/value settings through the get_setting/update_setting functions"""

    def __init__(self, supabase_client):
        self.supabase = supabase_client

    async def get_setting(self, key: str) -> Optional[str]:
        result = self.supabase.rpc("get_setting", {"p_key": key}).execute()
        return result.data

    async def update_setting(self, key: str, value: str) -> None:
        self.supabase.rpc("update_setting", {"p_key": key, "p_value": value}).execute()
        logger.info(f"✅ Setting {key} updated to {value}")

    async def get_enhanced_prompt_setting(self) -> bool:
        """Whether tag suggestions should learn from past corrections

        The database is the source of truth; the USE_ENHANCED_PROMPT
        environment flag is used when it cannot be read.
        """
        try:
            result = (
                self.supabase.table("user_settings")
                .select("setting_value")
                .eq("setting_key", ENHANCED_PROMPT_KEY)
                .limit(1)
                .execute()
            )
            if not result.data:
                return settings.USE_ENHANCED_PROMPT
            return result.data[0].get("setting_value") == "true"
        except Exception as e:
            logger.error(f"❌ Error fetching enhanced prompt setting: {e}")
            return settings.USE_ENHANCED_PROMPT

    async def set_enhanced_prompt_setting(self, enabled: bool) -> bool:
        await self.update_setting(ENHANCED_PROMPT_KEY, "true" if enabled else "false")
        return enabled
