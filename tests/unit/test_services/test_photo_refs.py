"""Tests for photo reference normalization."""

import pytest
from src.services.photo_refs import (
    NoPhotoRefs,
    PhotoRefPaths,
    extract_storage_path,
    new_photo_path,
    normalize_photo_refs,
    photo_storage_paths,
)

BUCKET = "listing-photos"
PUBLIC = "https://abc.supabase.co/storage/v1/object/public/listing-photos/"


@pytest.mark.unit
@pytest.mark.parametrize("ref,expected", [
    ("user/lst/a.jpg", "user/lst/a.jpg"),
    ("/user/lst/a.jpg", "user/lst/a.jpg"),
    (PUBLIC + "user/lst/a.jpg", "user/lst/a.jpg"),
    (PUBLIC + "user/lst/a%20b.jpg", "user/lst/a b.jpg"),
    ("https://abc.supabase.co/storage/v1/object/public/other-bucket/a.jpg", None),
    ("https://example.com/a.jpg", None),
    ("", None),
    (None, None),
])
def test_extract_storage_path(ref, expected):
    assert extract_storage_path(ref, BUCKET) == expected


@pytest.mark.unit
def test_normalize_list():
    refs = normalize_photo_refs({"photos": ["a.jpg", "", None, "b.jpg"]})
    assert refs == PhotoRefPaths(paths=("a.jpg", "b.jpg"))


@pytest.mark.unit
def test_normalize_json_string():
    refs = normalize_photo_refs({"photo_urls": '["a.jpg", "b.jpg"]'})
    assert refs.paths == ("a.jpg", "b.jpg")


@pytest.mark.unit
def test_normalize_comma_separated():
    refs = normalize_photo_refs({"images": "a.jpg, b.jpg ,"})
    assert refs.paths == ("a.jpg", "b.jpg")


@pytest.mark.unit
def test_normalize_single_value():
    refs = normalize_photo_refs({"image_urls": " a.jpg "})
    assert refs.paths == ("a.jpg",)


@pytest.mark.unit
def test_field_priority_and_fallthrough():
    """Empty earlier fields are skipped; the first populated one wins."""
    record = {"photos": "", "photo_urls": [], "images": "x.jpg", "image_urls": "y.jpg"}
    assert normalize_photo_refs(record).paths == ("x.jpg",)


@pytest.mark.unit
def test_no_photo_fields():
    assert isinstance(normalize_photo_refs({"condo_name": "A"}), NoPhotoRefs)
    assert normalize_photo_refs({"photos": "   "}).kind == "none"


@pytest.mark.unit
def test_photo_storage_paths_drops_foreign_urls():
    record = {"photos": [PUBLIC + "u/1.jpg", "https://cdn.example.com/2.jpg", "u/3.jpg"]}
    assert photo_storage_paths(record, BUCKET) == ["u/1.jpg", "u/3.jpg"]


@pytest.mark.unit
def test_new_photo_path_shape():
    path = new_photo_path("user1", "lst1", "IMG_001.PNG")
    user, listing, name = path.split("/")

    assert (user, listing) == ("user1", "lst1")
    assert name.endswith(".png")
    assert len(name) == 26 + len(".png")


@pytest.mark.unit
def test_new_photo_path_default_extension():
    assert new_photo_path("u", "l", "blob").endswith(".jpg")
