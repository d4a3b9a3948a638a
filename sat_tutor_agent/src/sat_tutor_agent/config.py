"""
Tutor configuration.

Read once at process start and passed explicitly into the components that need it.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


@dataclass
class TutorConfig:
    """Runtime settings for the tutoring agent."""
    openai_api_key: Optional[str] = None
    model: str = "gpt-4o"
    fast_model: str = "gpt-4o-mini"
    app_name: str = "Pundits AI"
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    log_level: str = "INFO"
    max_tokens: int = 2000
    fast_max_tokens: int = 500

    @classmethod
    def from_env(cls) -> "TutorConfig":
        """Build config from environment variables (.env files included)."""
        load_dotenv()
        load_dotenv('../.env')  # Also try parent directory

        return cls(
            openai_api_key=os.getenv("OPENAI_API_KEY"),
            model=os.getenv("OPENAI_MODEL", "gpt-4o"),
            fast_model=os.getenv("OPENAI_FAST_MODEL", "gpt-4o-mini"),
            app_name=os.getenv("APP_NAME", "Pundits AI"),
            supabase_url=os.getenv("SUPABASE_URL"),
            supabase_key=os.getenv("SUPABASE_SERVICE_KEY"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )
