"""Listing, deal and photo operations against Supabase tables and storage.

Every function takes the client explicitly. Failures are wrapped in
SupabaseError / StorageError and never retried.
"""

from typing import Iterable, Optional
from datetime import datetime
from pydantic import ValidationError
from supabase import Client

from src.models.deal import Deal
from src.models.listing import Listing
from src.models.photo import ListingPhoto
from src.services.periods import to_iso
from src.services.photo_refs import new_photo_path
from src.services.quick_capture import prepare_listing_payload
from src.services.work_queue import mark_processed_payload
from src.utils.errors import ListingNotFoundError, StorageError, SupabaseError
from src.utils.logging import get_structured_logger, mask_user_id, timed

logger = get_structured_logger(__name__)

WORK_VIEW_COLUMNS = (
    "id,type,status,condo_name,area,sqft,bedrooms,bathrooms,carparks,price,furnish,"
    "available_from,updated_at,inbox,last_update,next_follow_up,priority,aging_days"
)
DEAL_COLUMNS = "listing_id,gross,commission_rate,commission_amount,deductions,net,notes,updated_at"


def _to_listings(rows: Iterable[dict]) -> list[Listing]:
    """Validate store rows; rows that fail validation are logged and skipped."""
    listings = []
    for row in rows:
        try:
            listings.append(Listing.model_validate(row))
        except ValidationError as e:
            logger.warning("Skipping invalid listing row", listing_id=row.get("id"), error=str(e))
    return listings


def _validated(model, rows: Iterable[dict], what: str) -> list:
    """Validate rows that must all be well formed; a bad row is a store failure."""
    try:
        return [model.model_validate(row) for row in rows]
    except ValidationError as e:
        raise SupabaseError(f"Invalid {what} row: {e}")


def _to_deals(rows: Iterable[dict]) -> list[Deal]:
    return _validated(Deal, rows, "deal")


async def fetch_listing_row(client: Client, listing_id: str) -> Optional[dict]:
    """Raw listing row (legacy photo fields included) or None."""
    try:
        result = client.table("listings").select("*").eq("id", listing_id).limit(1).execute()
    except Exception as e:
        raise SupabaseError(f"Failed to get listing: {e}")
    return result.data[0] if result.data else None


async def get_listing(client: Client, listing_id: str) -> Listing:
    row = await fetch_listing_row(client, listing_id)
    if row is None:
        raise ListingNotFoundError(f"Listing not found: {listing_id}")
    return _validated(Listing, [row], "listing")[0]


async def fetch_listings(client: Client) -> list[Listing]:
    try:
        result = client.table("listings").select("*").order("updated_at", desc=True).execute()
    except Exception as e:
        raise SupabaseError(f"Failed to get listings: {e}")
    return _to_listings(result.data or [])


@timed("fetch_work_listings", logger=logger)
async def fetch_work_listings(client: Client) -> list[Listing]:
    """Listings from the `listings_work` view, which adds `aging_days`."""
    try:
        result = client.table("listings_work").select(WORK_VIEW_COLUMNS).execute()
    except Exception as e:
        raise SupabaseError(f"Failed to get work listings: {e}")
    return _to_listings(result.data or [])


async def fetch_listings_by_ids(client: Client, listing_ids: Iterable[str]) -> dict[str, Listing]:
    ids = sorted(set(listing_ids))
    if not ids:
        return {}
    try:
        result = client.table("listings").select("*").in_("id", ids).execute()
    except Exception as e:
        raise SupabaseError(f"Failed to get listings by id: {e}")
    return {listing.id: listing for listing in _to_listings(result.data or [])}


@timed("fetch_deals", logger=logger)
async def fetch_deals(client: Client, user_id: Optional[str] = None) -> list[Deal]:
    try:
        query = client.table("deals").select(DEAL_COLUMNS)
        if user_id:
            query = query.eq("user_id", user_id)
        result = query.order("updated_at", desc=True).execute()
    except Exception as e:
        raise SupabaseError(f"Failed to get deals: {e}")
    return _to_deals(result.data or [])


async def fetch_deals_for_listings(client: Client, listing_ids: Iterable[str]) -> list[Deal]:
    ids = sorted(set(listing_ids))
    if not ids:
        return []
    try:
        result = client.table("deals").select(DEAL_COLUMNS).in_("listing_id", ids).execute()
    except Exception as e:
        raise SupabaseError(f"Failed to get deals for listings: {e}")
    return _to_deals(result.data or [])


async def fetch_deals_in_range(
    client: Client,
    start: datetime,
    end: datetime,
    user_id: Optional[str] = None,
) -> list[Deal]:
    """Deals with ``start <= updated_at < end``, newest first."""
    try:
        query = client.table("deals").select(DEAL_COLUMNS)
        if user_id:
            query = query.eq("user_id", user_id)
        result = (
            query.gte("updated_at", to_iso(start))
            .lt("updated_at", to_iso(end))
            .order("updated_at", desc=True)
            .execute()
        )
    except Exception as e:
        raise SupabaseError(f"Failed to get deals in range: {e}")
    return _to_deals(result.data or [])


async def fetch_listing_photos(client: Client, listing_ids: Optional[Iterable[str]] = None) -> list[ListingPhoto]:
    """Photo rows ordered by sort_order; all photos when ``listing_ids`` is None."""
    try:
        query = client.table("listing_photos").select("*")
        if listing_ids is not None:
            ids = sorted(set(listing_ids))
            if not ids:
                return []
            query = query.in_("listing_id", ids)
        result = query.order("sort_order").execute()
    except Exception as e:
        raise SupabaseError(f"Failed to get listing photos: {e}")
    return _validated(ListingPhoto, result.data or [], "listing photo")


async def create_listing(client: Client, data: dict, now: datetime) -> dict:
    payload = prepare_listing_payload(data, now)
    if not payload.get("condo_name"):
        raise ValueError("Listing name is required")
    payload.setdefault("created_at", to_iso(now))
    try:
        result = client.table("listings").insert(payload).execute()
    except Exception as e:
        raise SupabaseError(f"Failed to create listing: {e}")
    if not result.data:
        raise SupabaseError("Failed to create listing: no data returned")
    listing = result.data[0]
    logger.info(
        "Listing created",
        listing_id=listing.get("id"),
        user_id=mask_user_id(payload.get("user_id") or ""),
        inbox=payload.get("inbox", False),
    )
    return listing


async def update_listing(client: Client, listing_id: str, updates: dict, now: datetime) -> dict:
    """Apply an edit; every edit refreshes `last_update`."""
    payload = prepare_listing_payload(updates, now)
    try:
        result = client.table("listings").update(payload).eq("id", listing_id).execute()
    except Exception as e:
        raise SupabaseError(f"Failed to update listing: {e}")
    if not result.data:
        raise ListingNotFoundError(f"Listing not found: {listing_id}")
    return result.data[0]


async def mark_listing_processed(client: Client, listing_id: str, now: datetime) -> dict:
    """Move a listing out of the inbox."""
    try:
        result = client.table("listings").update(mark_processed_payload(now)).eq("id", listing_id).execute()
    except Exception as e:
        raise SupabaseError(f"Failed to mark listing processed: {e}")
    if not result.data:
        raise ListingNotFoundError(f"Listing not found: {listing_id}")
    return result.data[0]


async def upsert_deal(client: Client, deal: Deal) -> Deal:
    """Insert or replace the current deal of a listing."""
    try:
        result = client.table("deals").upsert(deal.to_upsert_row(), on_conflict="listing_id").execute()
    except Exception as e:
        raise SupabaseError(f"Failed to save deal: {e}")
    if not result.data:
        raise SupabaseError(f"Failed to save deal: {deal.listing_id}")
    return _validated(Deal, result.data[:1], "deal")[0]


def photo_public_url(client: Client, bucket: str, storage_path: str) -> str:
    return client.storage.from_(bucket).get_public_url(storage_path)


async def upload_listing_photo(
    client: Client,
    bucket: str,
    user_id: str,
    listing_id: str,
    filename: str,
    data: bytes,
    content_type: str = "image/jpeg",
    sort_order: int = 0,
) -> ListingPhoto:
    """Upload to storage, then record the photo row."""
    path = new_photo_path(user_id, listing_id, filename)
    try:
        client.storage.from_(bucket).upload(path, data, {"content-type": content_type})
    except Exception as e:
        raise StorageError(f"Failed to upload photo: {e}")
    try:
        result = client.table("listing_photos").insert({
            "listing_id": listing_id,
            "storage_path": path,
            "sort_order": sort_order,
        }).execute()
    except Exception as e:
        raise SupabaseError(f"Failed to record photo: {e}")
    row = result.data[0] if result.data else {"listing_id": listing_id, "storage_path": path, "sort_order": sort_order}
    return _validated(ListingPhoto, [row], "listing photo")[0]


@timed("fetch_export_dataset", logger=logger)
async def fetch_export_dataset(client: Client) -> tuple[list[dict], list[dict], list[dict]]:
    """Raw listing, deal and photo rows for the CSV backup; nothing is validated or dropped."""
    try:
        listings = client.table("listings").select("*").order("updated_at", desc=True).execute()
        deals = client.table("deals").select("*").order("updated_at", desc=True).execute()
        photos = client.table("listing_photos").select("listing_id").execute()
    except Exception as e:
        raise SupabaseError(f"Failed to load export dataset: {e}")
    return listings.data or [], deals.data or [], photos.data or []
