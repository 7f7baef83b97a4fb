"""Delete a listing together with its photos and deal."""

from http.server import BaseHTTPRequestHandler
import asyncio

from src.services.listing_delete import delete_listing_cascade
from src.services.supabase_client import SupabaseClient
from src.utils.config import AppConfig
from src.utils.errors import CascadeDeleteError
from src.utils.http import error_status, path_tail, query_params, request_correlation_id, send_json
from src.utils.logging import correlation_context, get_structured_logger
from src.utils.logging_config import LoggingConfig

LoggingConfig.ensure_configured()
logger = get_structured_logger(__name__)


async def delete_listing(listing_id: str):
    async with SupabaseClient() as client:
        return await delete_listing_cascade(client, listing_id, AppConfig.PHOTO_BUCKET)


class handler(BaseHTTPRequestHandler):
    """Vercel serverless function handler for listing deletes."""

    def do_DELETE(self):
        with correlation_context(request_correlation_id(self)):
            listing_id = query_params(self).get("id")
            if not listing_id:
                tail = path_tail(self)
                listing_id = tail if tail and tail != "delete" else None
            if not listing_id:
                send_json(self, 400, {"error": "listing id is required"})
                return

            try:
                result = asyncio.run(delete_listing(listing_id))
            except CascadeDeleteError as e:
                send_json(self, error_status(e), {
                    "error": e.message,
                    "stage": e.stage,
                    "removedPhotos": e.removed_photos,
                })
                return
            except Exception as e:
                status = error_status(e)
                if status >= 500:
                    logger.error("Listing delete failed", listing_id=listing_id, error=str(e), exc_info=True)
                send_json(self, status, {"error": str(e)})
                return

            send_json(self, 200, {"ok": True, "removedPhotos": result.removed_photos})
