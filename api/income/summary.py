"""Income dashboard figures for a month range."""

from http.server import BaseHTTPRequestHandler
import asyncio
from datetime import datetime

from src.services.income import summarize_income
from src.services.listing_store import fetch_deals, fetch_listings_by_ids
from src.services.periods import month_key, month_range_bounds
from src.services.supabase_client import SupabaseClient
from src.utils.http import error_status, query_params, request_correlation_id, send_json
from src.utils.logging import correlation_context, get_structured_logger, mask_user_id
from src.utils.logging_config import LoggingConfig

LoggingConfig.ensure_configured()
logger = get_structured_logger(__name__)


async def load_income_summary(from_month: str, to_month: str, type_filter: str, user_id, now: datetime) -> dict:
    # Reject a bad range before touching the store
    month_range_bounds(from_month, to_month)
    async with SupabaseClient() as client:
        deals = await fetch_deals(client, user_id=user_id)
        listing_map = await fetch_listings_by_ids(client, (d.listing_id for d in deals))
    summary = summarize_income(deals, listing_map, from_month, to_month, type_filter, now)
    return summary.model_dump(mode="json")


class handler(BaseHTTPRequestHandler):
    """Vercel serverless function handler for income summaries."""

    def do_GET(self):
        with correlation_context(request_correlation_id(self)):
            params = query_params(self)
            now = datetime.now()
            current = month_key(now)
            user_id = params.get("user_id")
            try:
                payload = asyncio.run(load_income_summary(
                    params.get("from", current),
                    params.get("to", current),
                    params.get("type", "all"),
                    user_id,
                    now,
                ))
            except Exception as e:
                status = error_status(e)
                logger.warning(
                    "Income summary failed",
                    status=status,
                    user_id=mask_user_id(user_id or ""),
                    error=str(e),
                )
                send_json(self, status, {"error": str(e)})
                return
            send_json(self, 200, payload)
