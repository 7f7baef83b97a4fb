"""Printable listings report: one row per listing with recomputed deal figures."""

from http.server import BaseHTTPRequestHandler
import asyncio

from src.services.csv_export import build_report_rows, report_totals
from src.services.listing_store import fetch_deals_for_listings, fetch_listings
from src.services.supabase_client import SupabaseClient
from src.utils.http import error_status, request_correlation_id, send_json
from src.utils.logging import correlation_context, get_structured_logger
from src.utils.logging_config import LoggingConfig

LoggingConfig.ensure_configured()
logger = get_structured_logger(__name__)


async def load_report() -> dict:
    async with SupabaseClient() as client:
        listings = await fetch_listings(client)
        deals = await fetch_deals_for_listings(client, (listing.id for listing in listings))
    rows = build_report_rows(listings, deals)
    return {
        "rows": [row.model_dump(mode="json") for row in rows],
        "totals": report_totals(rows).model_dump(),
    }


class handler(BaseHTTPRequestHandler):
    """Vercel serverless function handler for the print report."""

    def do_GET(self):
        with correlation_context(request_correlation_id(self)):
            try:
                payload = asyncio.run(load_report())
            except Exception as e:
                logger.error("Report failed", error=str(e))
                send_json(self, error_status(e), {"error": str(e)})
                return
            send_json(self, 200, payload)
