"""Helpers shared by the Vercel `BaseHTTPRequestHandler` endpoints."""

import json
from http.server import BaseHTTPRequestHandler
from typing import Any, Optional
from urllib.parse import parse_qs, urlparse
from pydantic import ValidationError

from src.utils.errors import (
    CascadeDeleteError,
    InvalidDateRangeError,
    ListingNotFoundError,
    StorageError,
)
from src.utils.logging_config import LoggingConfig


def send_json(handler: BaseHTTPRequestHandler, status: int, payload: Any, headers: Optional[dict] = None) -> None:
    handler.send_response(status)
    handler.send_header('Content-Type', 'application/json')
    for name, value in (headers or {}).items():
        handler.send_header(name, value)
    handler.end_headers()
    handler.wfile.write(json.dumps(payload, default=str).encode('utf-8'))


def send_text(handler: BaseHTTPRequestHandler, status: int, body: str, headers: dict) -> None:
    handler.send_response(status)
    for name, value in headers.items():
        handler.send_header(name, value)
    handler.end_headers()
    handler.wfile.write(body.encode('utf-8'))


def query_params(handler: BaseHTTPRequestHandler) -> dict[str, str]:
    """First value of each query string parameter."""
    parsed = parse_qs(urlparse(handler.path or "").query)
    return {key: values[0] for key, values in parsed.items() if values}


def path_tail(handler: BaseHTTPRequestHandler) -> str:
    """Last path segment, used for `/api/listings/<id>` style rewrites."""
    return urlparse(handler.path or "").path.rstrip("/").rsplit("/", 1)[-1]


def read_json_body(handler: BaseHTTPRequestHandler) -> dict:
    content_length = int(handler.headers.get('Content-Length', 0) or 0)
    raw_body = handler.rfile.read(content_length).decode('utf-8') if content_length > 0 else ""
    try:
        body = json.loads(raw_body) if raw_body else {}
    except json.JSONDecodeError:
        body = {}
    return body if isinstance(body, dict) else {}


def request_correlation_id(handler: BaseHTTPRequestHandler) -> Optional[str]:
    headers = handler.headers
    if headers is None:
        return None
    return headers.get(LoggingConfig.LOG_CORRELATION_ID_HEADER) or None


def error_status(error: Exception) -> int:
    """HTTP status for each failure class."""
    if isinstance(error, ListingNotFoundError):
        return 404
    # Malformed store data, not a bad request
    if isinstance(error, ValidationError):
        return 500
    if isinstance(error, (InvalidDateRangeError, ValueError)):
        return 400
    if isinstance(error, StorageError):
        return 502
    if isinstance(error, CascadeDeleteError) and error.stage == "storage":
        return 502
    return 500
