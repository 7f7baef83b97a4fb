"""Tests for the cascading listing delete."""

import pytest
from unittest.mock import MagicMock
from src.services.listing_delete import delete_listing_cascade
from src.utils.errors import CascadeDeleteError, ListingNotFoundError
from tests.utils.helpers import make_query_chain, make_routed_client

BUCKET = "listing-photos"
PUBLIC = "https://abc.supabase.co/storage/v1/object/public/listing-photos/"


def _client(listing_row, photo_rows=None, **overrides):
    tables = {
        "listings": make_query_chain(data=[listing_row] if listing_row else []),
        "listing_photos": make_query_chain(data=photo_rows or []),
        "deals": make_query_chain(data=[]),
    }
    tables.update(overrides)
    client = make_routed_client(tables)
    return client, tables


@pytest.mark.unit
@pytest.mark.asyncio
async def test_delete_removes_in_order():
    listing = {"id": "lst_1", "condo_name": "Vista", "photos": [PUBLIC + "u/lst_1/legacy.jpg"]}
    client, tables = _client(listing, [{"storage_path": "u/lst_1/a.jpg"}, {"storage_path": "u/lst_1/legacy.jpg"}])
    calls = []
    bucket = client.storage.from_.return_value
    bucket.remove.side_effect = lambda paths: calls.append(("storage", list(paths)))
    for name in ("listing_photos", "deals", "listings"):
        tables[name].delete.side_effect = (lambda n: lambda: calls.append((n, None)) or tables[n])(name)

    result = await delete_listing_cascade(client, "lst_1", BUCKET)

    assert result.removed_photos == 2
    assert calls == [
        ("storage", ["u/lst_1/a.jpg", "u/lst_1/legacy.jpg"]),
        ("listing_photos", None),
        ("deals", None),
        ("listings", None),
    ]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_delete_without_photos_skips_storage():
    client, _ = _client({"id": "lst_1"})

    result = await delete_listing_cascade(client, "lst_1", BUCKET)

    assert result.removed_photos == 0
    client.storage.from_.return_value.remove.assert_not_called()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_delete_missing_listing():
    client, _ = _client(None)

    with pytest.raises(ListingNotFoundError):
        await delete_listing_cascade(client, "missing", BUCKET)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_storage_failure_stops_before_rows():
    client, tables = _client({"id": "lst_1"}, [{"storage_path": "u/a.jpg"}])
    client.storage.from_.return_value.remove.side_effect = RuntimeError("storage down")

    with pytest.raises(CascadeDeleteError) as exc:
        await delete_listing_cascade(client, "lst_1", BUCKET)

    assert exc.value.stage == "storage"
    tables["listings"].delete.assert_not_called()
    tables["deals"].delete.assert_not_called()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_listing_row_failure_leaves_photoless_listing():
    """Photos and deal are already gone when the final delete fails; nothing is restored."""
    listings = make_query_chain(data=[{"id": "lst_1"}])
    listings.delete.return_value = make_query_chain(error=RuntimeError("fk violation"))
    client, tables = _client(None, [{"storage_path": "u/a.jpg"}], listings=listings)

    with pytest.raises(CascadeDeleteError) as exc:
        await delete_listing_cascade(client, "lst_1", BUCKET)

    assert exc.value.stage == "listing"
    assert exc.value.removed_photos == 1
    client.storage.from_.return_value.remove.assert_called_once_with(["u/a.jpg"])
    tables["deals"].delete.assert_called_once()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_lookup_failure():
    client = MagicMock()
    client.table.return_value = make_query_chain(error=RuntimeError("timeout"))

    with pytest.raises(CascadeDeleteError) as exc:
        await delete_listing_cascade(client, "lst_1", BUCKET)

    assert exc.value.stage == "lookup"
