"""Test helper functions."""

import http.client
import json
from io import BytesIO
from typing import Any, Optional
from unittest.mock import MagicMock, Mock

_CHAIN_METHODS = (
    "select", "eq", "in_", "gte", "lt", "order", "limit",
    "insert", "update", "upsert", "delete", "is_",
)


def make_query_chain(data: Any = None, error: Optional[Exception] = None) -> MagicMock:
    """Chainable Supabase query builder mock; `execute()` returns `data` or raises `error`."""
    query = MagicMock()
    for name in _CHAIN_METHODS:
        getattr(query, name).return_value = query
    if error is not None:
        query.execute.side_effect = error
    else:
        query.execute.return_value = MagicMock(data=data)
    return query


def make_routed_client(tables: dict) -> MagicMock:
    """Client whose `table(name)` returns the chain registered for `name` (empty otherwise)."""
    client = MagicMock()
    client.table.side_effect = lambda name: tables.setdefault(name, make_query_chain(data=[]))
    return client


class MockSocket:
    """Socket with an empty request stream, so constructing a handler does nothing."""

    def makefile(self, *args, **kwargs):
        return BytesIO(b"")

    def sendall(self, data):
        pass

    def close(self):
        pass


def make_handler(handler_class, path: str, body: Optional[dict] = None, headers: Optional[dict] = None):
    """Build a handler instance with mocked response plumbing, ready for do_<METHOD>()."""
    raw_body = json.dumps(body).encode('utf-8') if body is not None else b""
    header_lines = dict(headers or {})
    if raw_body:
        header_lines["Content-Length"] = str(len(raw_body))
    header_bytes = "".join(f"{k}: {v}\r\n" for k, v in header_lines.items()).encode('utf-8') + b"\r\n"

    h = handler_class(MockSocket(), ("127.0.0.1", 8000), None)
    h.path = path
    h.headers = http.client.parse_headers(BytesIO(header_bytes))
    h.rfile = BytesIO(raw_body)
    h.wfile = BytesIO()
    h.send_response = Mock()
    h.send_header = Mock()
    h.end_headers = Mock()
    return h


def response_status(h) -> int:
    return h.send_response.call_args[0][0]


def response_headers(h) -> dict:
    return {c[0][0]: c[0][1] for c in h.send_header.call_args_list}


def response_body(h) -> str:
    h.wfile.seek(0)
    return h.wfile.read().decode('utf-8')


def response_json(h) -> Any:
    return json.loads(response_body(h))
