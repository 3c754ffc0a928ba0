import logging
from typing import Optional

from supabase import AsyncClient, acreate_client
from supabase.lib.client_options import AsyncClientOptions

from app.config import settings

logger = logging.getLogger(__name__)


class SupabaseClient:
    _client: Optional[AsyncClient] = None

    @classmethod
    async def create_client(cls) -> Optional[AsyncClient]:
        """Create the process-wide async client. Missing credentials are logged, not fatal."""
        if cls._client is not None:
            return cls._client
        if settings.missing_supabase_credentials():
            logger.error("Supabase URL or Anon Key is missing")
            return None
        try:
            cls._client = await acreate_client(
                settings.supabase_url,
                settings.supabase_anon_key,
                options=AsyncClientOptions(
                    persist_session=settings.persist_session,
                    auto_refresh_token=settings.auto_refresh_token,
                    flow_type=settings.oauth_flow_type,
                ),
            )
            logger.info("Supabase client initialized")
        except Exception as e:
            logger.error(f"Failed to initialize Supabase client: {e}")
            cls._client = None
        return cls._client

    @classmethod
    def get_client(cls) -> Optional[AsyncClient]:
        return cls._client

    @classmethod
    def is_available(cls) -> bool:
        return cls._client is not None

    @classmethod
    def reset_client(cls):
        cls._client = None
