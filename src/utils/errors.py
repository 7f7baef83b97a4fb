"""Error handling utilities."""

from typing import Optional


class PropertyCRMError(Exception):
    """Base exception for the property CRM backend."""
    pass


class InvalidDateRangeError(PropertyCRMError, ValueError):
    """Date or month range is malformed or reversed."""
    pass


class ListingNotFoundError(PropertyCRMError):
    """Referenced listing does not exist."""
    pass


class SupabaseError(PropertyCRMError):
    """Supabase database operation error."""
    pass


class StorageError(PropertyCRMError):
    """Supabase storage operation error."""
    pass


class CascadeDeleteError(PropertyCRMError):
    """A stage of the cascading listing delete failed."""

    def __init__(self, stage: str, message: str, removed_photos: int = 0, cause: Optional[Exception] = None):
        super().__init__(f"{stage}: {message}")
        self.stage = stage
        self.message = message
        self.removed_photos = removed_photos
        self.cause = cause
