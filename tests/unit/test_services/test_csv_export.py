"""Tests for CSV backup export and the printable report."""

import pytest
from datetime import datetime
from src.models.deal import Deal
from src.models.listing import Listing
from src.services.csv_export import (
    BACKUP_COLUMNS,
    build_backup_rows,
    build_report_rows,
    export_filename,
    latest_per_listing,
    report_totals,
    to_csv,
)
from tests.utils.assertions import parse_csv
from tests.utils.factories import create_deal_data, create_listing_data, create_photo_data


@pytest.mark.unit
def test_to_csv_doubles_embedded_quotes():
    assert to_csv([{"a": 1, "b": 'x"y'}]) == 'a,b\n"1","x""y"'


@pytest.mark.unit
def test_to_csv_empty_input_has_no_header():
    assert to_csv([]) == ""


@pytest.mark.unit
def test_to_csv_null_is_empty_and_newlines_kept():
    text = to_csv([{"a": None, "b": "line1\nline2"}])

    assert text == 'a,b\n"","line1\nline2"'
    assert parse_csv(text) == [{"a": "", "b": "line1\nline2"}]


@pytest.mark.unit
def test_to_csv_header_follows_first_row_order():
    text = to_csv([{"z": 1, "a": 2}, {"a": 3, "z": 4}])
    assert text.split("\n") == ["z,a", '"1","2"', '"4","3"']


@pytest.mark.unit
def test_backup_rows_join_deal_and_photo_count(sample_listing_row, sample_deal_row):
    lonely = {"id": "lst_002", "condo_name": "No Deal Tower", "type": "sale", "status": "New"}
    photos = [{"listing_id": "lst_001"}, {"listing_id": "lst_001"}]

    rows = build_backup_rows([sample_listing_row, lonely], [sample_deal_row], photos)

    assert tuple(rows[0].keys()) == BACKUP_COLUMNS
    assert rows[0]["gross"] == 1800
    assert rows[0]["commission_rate"] == 50
    assert rows[0]["photos_count"] == 2
    assert rows[1]["gross"] == ""
    assert rows[1]["notes"] == ""
    assert rows[1]["photos_count"] == 0

    parsed = parse_csv(to_csv(rows))
    assert parsed[0]["type"] == "rent"
    assert parsed[0]["status"] == "Available"
    assert parsed[0]["price"] == "1800"
    assert parsed[1]["deal_updated_at"] == ""


@pytest.mark.unit
def test_export_filename_uses_unix_millis():
    now = datetime(2026, 3, 15, 10, 30)
    assert export_filename(now) == f"property-backup-{int(now.timestamp() * 1000)}.csv"


@pytest.mark.unit
def test_report_rows_recompute_instead_of_trusting_cache(sample_listing_row):
    listing = Listing.model_validate(sample_listing_row)
    stale = Deal(listing_id="lst_001", gross=2000, commission_rate=50, deductions=100,
                 commission_amount=5000, net=4900)

    rows = build_report_rows([listing], [stale])

    assert rows[0].commission_amount == 1000
    assert rows[0].net == 900


@pytest.mark.unit
def test_report_totals_count_only_income():
    listings = [Listing(id="a", condo_name="A"), Listing(id="b", condo_name="B")]
    deals = [Deal(listing_id="a", gross=1000, commission_rate=100, deductions=0)]

    totals = report_totals(build_report_rows(listings, deals))

    assert totals.total_net == 1000
    assert totals.deals_with_income == 1


@pytest.mark.unit
def test_backup_over_generated_dataset():
    listings = [create_listing_data() for _ in range(5)]
    deals = [create_deal_data(listings[0]["id"]), create_deal_data(listings[3]["id"])]
    photos = [create_photo_data(listings[3]["id"], i) for i in range(3)]

    rows = parse_csv(to_csv(build_backup_rows(listings, deals, photos)))

    assert len(rows) == 5
    assert [r["listing_id"] for r in rows] == [x["id"] for x in listings]
    assert rows[3]["photos_count"] == "3"
    assert sum(1 for r in rows if r["gross"]) == 2


@pytest.mark.unit
def test_backup_keeps_rows_the_models_reject(sample_listing_row):
    archived = dict(sample_listing_row, id="lst_archived", status="Archived")
    fractional = dict(sample_listing_row, id="lst_half", sqft=850.5)

    rows = parse_csv(to_csv(build_backup_rows([sample_listing_row, archived, fractional], [], [])))

    assert [r["listing_id"] for r in rows] == ["lst_001", "lst_archived", "lst_half"]
    assert rows[1]["status"] == "Archived"
    assert rows[2]["sqft"] == "850.5"


@pytest.mark.unit
def test_backup_keeps_stored_timestamps(sample_listing_row, sample_deal_row):
    listing = dict(sample_listing_row, updated_at="2026-02-01T10:00:00+00:00")
    deal = dict(sample_deal_row, updated_at="2026-02-03T08:15:00+00:00")

    row = parse_csv(to_csv(build_backup_rows([listing], [deal], [])))[0]

    assert row["listing_updated_at"] == "2026-02-01T10:00:00+00:00"
    assert row["deal_updated_at"] == "2026-02-03T08:15:00+00:00"


@pytest.mark.unit
@pytest.mark.parametrize("order", [(0, 1), (1, 0)])
def test_newest_deal_wins_for_a_listing(order):
    deals = [
        {"listing_id": "a", "gross": 5000, "commission_rate": 10, "deductions": 0, "updated_at": "2026-03-01T09:00:00"},
        {"listing_id": "a", "gross": 1000, "commission_rate": 10, "deductions": 0, "updated_at": "2025-01-01T09:00:00"},
    ]
    deals = [deals[i] for i in order]

    backup = build_backup_rows([{"id": "a", "condo_name": "A"}], deals, [])
    report = build_report_rows([Listing(id="a", condo_name="A")], [Deal.model_validate(d) for d in deals])

    assert backup[0]["gross"] == 5000
    assert report[0].gross == 5000
    assert report[0].net == 500


@pytest.mark.unit
def test_latest_per_listing_keeps_first_on_tie():
    first = {"listing_id": "a", "updated_at": None, "gross": 1}
    second = {"listing_id": "a", "updated_at": None, "gross": 2}

    assert latest_per_listing([first, second])["a"] is first


@pytest.mark.unit
def test_to_csv_reads_back_with_csv_module():
    rows = [{"name": 'The "Loft", KL', "notes": "a\nb", "price": 1800.0, "when": datetime(2026, 3, 1, 9, 0)}]

    parsed = parse_csv(to_csv(rows))

    assert parsed[0]["name"] == 'The "Loft", KL'
    assert parsed[0]["notes"] == "a\nb"
    assert parsed[0]["price"] == "1800"
    assert parsed[0]["when"].startswith("2026-03-01T09:00:00")
