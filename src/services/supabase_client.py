"""Supabase client factory and async context manager.

There is no module-level client: callers create one per request and pass it
explicitly to the store functions.
"""

from typing import Optional
from supabase import create_client, Client
from supabase.client import ClientOptions
from src.utils.config import AppConfig
from src.utils.errors import SupabaseError
from src.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)


def create_supabase_client(url: Optional[str] = None, key: Optional[str] = None) -> Client:
    """Create a service-role Supabase client from arguments or the environment."""
    url = url or AppConfig.supabase_url()
    key = key or AppConfig.supabase_key()
    
    if not url or not key:
        raise SupabaseError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")
    
    options = ClientOptions(
        auto_refresh_token=False,
        persist_session=False,
    )
    
    client = create_client(url, key, options)
    logger.debug("Supabase client created", url=url)
    return client


class SupabaseClient:
    """Async context manager yielding a fresh Supabase client."""
    
    def __init__(self, url: Optional[str] = None, key: Optional[str] = None):
        self.url = url
        self.key = key
        self.client: Optional[Client] = None
    
    async def __aenter__(self) -> Client:
        self.client = create_supabase_client(self.url, self.key)
        return self.client
    
    async def __aexit__(self, exc_type, exc_val, exc_tb):
        # supabase-py has no explicit close; drop the reference
        if exc_type:
            logger.error(
                "Supabase operation error",
                error=str(exc_val),
                type=exc_type.__name__,
            )
        self.client = None
        return False
