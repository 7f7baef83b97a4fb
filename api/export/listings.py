"""CSV backup of every listing joined with its deal and photo count."""

from http.server import BaseHTTPRequestHandler
import asyncio
from datetime import datetime

from src.services.csv_export import build_backup_rows, export_filename, to_csv
from src.services.listing_store import fetch_export_dataset
from src.services.supabase_client import SupabaseClient
from src.utils.http import error_status, request_correlation_id, send_json, send_text
from src.utils.logging import correlation_context, get_structured_logger, log_timing
from src.utils.logging_config import LoggingConfig

LoggingConfig.ensure_configured()
logger = get_structured_logger(__name__)


async def build_export() -> str:
    async with SupabaseClient() as client:
        listings, deals, photos = await fetch_export_dataset(client)
    return to_csv(build_backup_rows(listings, deals, photos))


class handler(BaseHTTPRequestHandler):
    """Vercel serverless function handler for the CSV export."""

    def do_GET(self):
        with correlation_context(request_correlation_id(self)):
            try:
                with log_timing("export_listings_csv", logger=logger):
                    csv_text = asyncio.run(build_export())
            except Exception as e:
                logger.error("CSV export failed", error=str(e), exc_info=True)
                send_json(self, error_status(e), {"error": str(e)})
                return

            send_text(self, 200, csv_text, {
                "Content-Type": "text/csv; charset=utf-8",
                "Content-Disposition": f'attachment; filename="{export_filename(datetime.now())}"',
            })
