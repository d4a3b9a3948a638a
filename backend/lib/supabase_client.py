"""
Supabase client singleton for the backend.
"""
from supabase import create_client, Client

from sat_tutor_agent.config import TutorConfig

_supabase_client: Client = None


def get_supabase_client(config: TutorConfig = None) -> Client:
    """Get or create the service-role Supabase client."""
    global _supabase_client

    if _supabase_client is None:
        config = config or TutorConfig.from_env()

        if not config.supabase_url or not config.supabase_key:
            raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_KEY must be set in environment")

        _supabase_client = create_client(config.supabase_url, config.supabase_key)

    return _supabase_client
