"""Ranked work queue with inbox/follow-up counts."""

from http.server import BaseHTTPRequestHandler
import asyncio
from datetime import datetime

from src.services.listing_store import fetch_work_listings
from src.services.supabase_client import SupabaseClient
from src.services.work_queue import build_work_queue, queue_counts
from src.utils.http import error_status, query_params, request_correlation_id, send_json
from src.utils.logging import correlation_context, get_structured_logger
from src.utils.logging_config import LoggingConfig

LoggingConfig.ensure_configured()
logger = get_structured_logger(__name__)


async def load_work_queue(view: str, listing_type: str, status: str, now: datetime) -> dict:
    async with SupabaseClient() as client:
        listings = await fetch_work_listings(client)
    entries = build_work_queue(listings, now, view=view, listing_type=listing_type, status=status)
    counts = queue_counts(listings, now)
    return {
        "counts": counts.model_dump(),
        "items": [entry.model_dump(mode="json") for entry in entries],
    }


class handler(BaseHTTPRequestHandler):
    """Vercel serverless function handler for the work queue."""

    def do_GET(self):
        with correlation_context(request_correlation_id(self)):
            params = query_params(self)
            try:
                payload = asyncio.run(load_work_queue(
                    params.get("view", "all"),
                    params.get("type", "all"),
                    params.get("status", "all"),
                    datetime.now(),
                ))
            except Exception as e:
                logger.error("Work queue failed", error=str(e))
                send_json(self, error_status(e), {"error": str(e)})
                return
            send_json(self, 200, payload)
