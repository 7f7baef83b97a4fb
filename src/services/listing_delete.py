"""Cascading listing delete.

Stages run in a fixed order: storage objects, photo rows, deal, listing.
A failure stops the cascade where it is; nothing is rolled back, so the worst
case is a listing without photos rather than a storage object nobody references.
"""

from pydantic import BaseModel
from supabase import Client

from src.services.listing_store import fetch_listing_row
from src.services.photo_refs import photo_storage_paths
from src.utils.errors import CascadeDeleteError, ListingNotFoundError, SupabaseError
from src.utils.logging import get_structured_logger, log_timing

logger = get_structured_logger(__name__)

STAGE_LOOKUP = "lookup"
STAGE_STORAGE = "storage"
STAGE_PHOTO_ROWS = "photo_metadata"
STAGE_DEAL = "deal"
STAGE_LISTING = "listing"


class DeleteResult(BaseModel):
    listing_id: str
    removed_photos: int


async def _collect_photo_paths(client: Client, listing: dict, bucket: str) -> list[str]:
    try:
        result = client.table("listing_photos").select("storage_path").eq("listing_id", listing["id"]).execute()
    except Exception as e:
        raise CascadeDeleteError(STAGE_LOOKUP, f"Failed to list photos: {e}", cause=e)

    paths = [row["storage_path"] for row in result.data or [] if row.get("storage_path")]
    paths.extend(photo_storage_paths(listing, bucket))
    # Same object may be referenced from both places
    return list(dict.fromkeys(paths))


async def delete_listing_cascade(client: Client, listing_id: str, bucket: str) -> DeleteResult:
    """Delete a listing with its photos and deal."""
    with log_timing("delete_listing_cascade", logger=logger, listing_id=listing_id):
        try:
            listing = await fetch_listing_row(client, listing_id)
        except SupabaseError as e:
            raise CascadeDeleteError(STAGE_LOOKUP, str(e), cause=e)
        if listing is None:
            raise ListingNotFoundError(f"Listing not found: {listing_id}")

        paths = await _collect_photo_paths(client, listing, bucket)

        if paths:
            try:
                client.storage.from_(bucket).remove(paths)
            except Exception as e:
                raise CascadeDeleteError(STAGE_STORAGE, f"Storage remove failed: {e}", cause=e)
            logger.info("Removed listing photos from storage", listing_id=listing_id, count=len(paths))

        stages = (
            (STAGE_PHOTO_ROWS, "listing_photos", "listing_id"),
            (STAGE_DEAL, "deals", "listing_id"),
            (STAGE_LISTING, "listings", "id"),
        )
        for stage, table, column in stages:
            try:
                client.table(table).delete().eq(column, listing_id).execute()
            except Exception as e:
                logger.error(
                    "Cascading delete stopped",
                    listing_id=listing_id,
                    stage=stage,
                    removed_photos=len(paths),
                    error=str(e),
                )
                raise CascadeDeleteError(stage, str(e), removed_photos=len(paths), cause=e)

        logger.info("Listing deleted", listing_id=listing_id, removed_photos=len(paths))
        return DeleteResult(listing_id=listing_id, removed_photos=len(paths))
