"""Custom assertion helpers."""

import csv
import io
from typing import Any, Dict, List

from tests.utils.helpers import response_headers, response_json, response_status


def assert_json_error(h, expected_status: int) -> Dict[str, Any]:
    """Assert the handler answered with a JSON error body and return it."""
    assert response_status(h) == expected_status
    assert response_headers(h).get('Content-Type') == 'application/json'
    body = response_json(h)
    assert 'error' in body
    return body


def parse_csv(text: str) -> List[Dict[str, str]]:
    """Parse exported CSV with the stdlib reader to prove it is well formed."""
    return list(csv.DictReader(io.StringIO(text)))


def assert_ranked_ids(ranked: List[Any], expected_ids: List[str]) -> None:
    assert [item.id for item in ranked] == expected_ids
