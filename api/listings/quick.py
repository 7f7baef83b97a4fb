"""Quick add: create an inbox listing from a pasted message."""

from http.server import BaseHTTPRequestHandler
import asyncio
from datetime import datetime

from src.services.listing_store import create_listing
from src.services.quick_capture import build_quick_listing_payload, parse_quick_listing
from src.services.supabase_client import SupabaseClient
from src.utils.http import error_status, read_json_body, request_correlation_id, send_json
from src.utils.logging import correlation_context, get_structured_logger, sanitize_message_text
from src.utils.logging_config import LoggingConfig

LoggingConfig.ensure_configured()
logger = get_structured_logger(__name__)


async def quick_add(payload: dict, now: datetime) -> dict:
    async with SupabaseClient() as client:
        return await create_listing(client, payload, now)


class handler(BaseHTTPRequestHandler):
    """Vercel serverless function handler for quick add."""

    def do_POST(self):
        with correlation_context(request_correlation_id(self)):
            body = read_json_body(self)
            raw = str(body.get("raw") or "")
            user_id = body.get("user_id")
            if not user_id:
                send_json(self, 401, {"error": "user_id is required"})
                return

            draft = parse_quick_listing(raw)
            if not draft.condo_name.strip():
                send_json(self, 400, {"error": "listing name is required"})
                return

            logger.info("Quick add received", text=sanitize_message_text(raw), condo_name=draft.condo_name)
            now = datetime.now()
            try:
                listing = asyncio.run(quick_add(build_quick_listing_payload(draft, user_id, raw, now), now))
            except Exception as e:
                logger.error("Quick add failed", error=str(e))
                send_json(self, error_status(e), {"error": str(e)})
                return
            send_json(self, 201, {"ok": True, "id": listing.get("id"), "draft": draft.model_dump(mode="json")})
