"""Application configuration read from environment variables."""

import os
from typing import Optional


class AppConfig:
    """Store and export settings."""

    PHOTO_BUCKET = os.environ.get("PHOTO_BUCKET", "listing-photos")
    EXPORT_FILENAME_PREFIX = os.environ.get("EXPORT_FILENAME_PREFIX", "property-backup")

    @staticmethod
    def supabase_url() -> Optional[str]:
        """Supabase project URL (server or Next.js style variable)."""
        return os.environ.get("SUPABASE_URL") or os.environ.get("NEXT_PUBLIC_SUPABASE_URL")

    @staticmethod
    def supabase_key() -> Optional[str]:
        """Service role key; required because deletes bypass row level security."""
        return os.environ.get("SUPABASE_SERVICE_ROLE_KEY")
