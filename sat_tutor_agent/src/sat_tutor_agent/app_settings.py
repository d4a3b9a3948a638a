"""
App display settings (product name used in prompts).
"""

import logging

from sat_tutor_agent.config import TutorConfig

logger = logging.getLogger(__name__)


class AppSettingsProvider:
    """Reads the newest `site_settings` row; read-only."""

    TABLE_NAME = "site_settings"

    def __init__(self, config: TutorConfig, supabase_client=None):
        self.config = config
        self.supabase = supabase_client

    async def get_app_name(self) -> str:
        if self.supabase is None:
            return self.config.app_name

        try:
            result = self.supabase.table(self.TABLE_NAME) \
                .select('*') \
                .order('updated_at', desc=True) \
                .limit(1) \
                .execute()

            if result.data and result.data[0].get("app_name"):
                return result.data[0]["app_name"]

        except Exception as e:
            logger.warning(f"⚠️ [AppSettings] Error loading site settings: {e}")

        return self.config.app_name
