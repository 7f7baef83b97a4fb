"""Mark an inbox listing as processed."""

from http.server import BaseHTTPRequestHandler
import asyncio
from datetime import datetime

from src.services.listing_store import mark_listing_processed
from src.services.supabase_client import SupabaseClient
from src.utils.http import error_status, query_params, read_json_body, request_correlation_id, send_json
from src.utils.logging import correlation_context, get_structured_logger
from src.utils.logging_config import LoggingConfig

LoggingConfig.ensure_configured()
logger = get_structured_logger(__name__)


async def process_listing(listing_id: str, now: datetime) -> dict:
    async with SupabaseClient() as client:
        return await mark_listing_processed(client, listing_id, now)


class handler(BaseHTTPRequestHandler):
    """Vercel serverless function handler for inbox triage."""

    def do_POST(self):
        with correlation_context(request_correlation_id(self)):
            listing_id = query_params(self).get("id") or read_json_body(self).get("id")
            if not listing_id:
                send_json(self, 400, {"error": "listing id is required"})
                return
            try:
                row = asyncio.run(process_listing(listing_id, datetime.now()))
            except Exception as e:
                logger.error("Mark processed failed", listing_id=listing_id, error=str(e))
                send_json(self, error_status(e), {"error": str(e)})
                return
            send_json(self, 200, {"ok": True, "id": listing_id, "inbox": row.get("inbox", False)})
