"""Normalization of photo references stored on listing rows.

Older rows keep photos on the listing itself under one of several field names,
as a list, a JSON array string, a comma-separated string or a single value.
"""

import json
import os
from typing import Any, Literal, Mapping, Optional, Union
from urllib.parse import urlparse, unquote
from pydantic import BaseModel

from ulid import ULID

PHOTO_FIELDS = ("photos", "photo_urls", "images", "image_urls")


class NoPhotoRefs(BaseModel):
    kind: Literal["none"] = "none"


class PhotoRefPaths(BaseModel):
    kind: Literal["paths"] = "paths"
    paths: tuple[str, ...]


PhotoRefs = Union[NoPhotoRefs, PhotoRefPaths]


def public_url_marker(bucket: str) -> str:
    return f"/storage/v1/object/public/{bucket}/"


def extract_storage_path(ref: Any, bucket: str) -> Optional[str]:
    """Bare storage path for a raw path or a public URL of ``bucket``."""
    if not isinstance(ref, str) or not ref.strip():
        return None
    ref = ref.strip()
    if not ref.startswith("http"):
        return ref.lstrip("/") or None

    path = unquote(urlparse(ref).path)
    marker = public_url_marker(bucket)
    index = path.find(marker)
    if index == -1:
        return None
    return path[index + len(marker):].lstrip("/") or None


def _clean(values: list) -> tuple[str, ...]:
    return tuple(str(v).strip() for v in values if v and str(v).strip())


def _parse_field(value: Any) -> Optional[tuple[str, ...]]:
    if isinstance(value, (list, tuple)):
        return _clean(list(value))
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None
    if text.startswith("[") and text.endswith("]"):
        try:
            parsed = json.loads(text)
        except ValueError:
            parsed = None
        if isinstance(parsed, list):
            return _clean(parsed)
    if "," in text:
        return _clean(text.split(","))
    return (text,)


def normalize_photo_refs(record: Mapping[str, Any]) -> PhotoRefs:
    """First populated photo field wins; empty values fall through to the next field."""
    for field in PHOTO_FIELDS:
        value = record.get(field)
        if not value:
            continue
        refs = _parse_field(value)
        if refs is None:
            continue
        return PhotoRefPaths(paths=refs) if refs else NoPhotoRefs()
    return NoPhotoRefs()


def photo_storage_paths(record: Mapping[str, Any], bucket: str) -> list[str]:
    refs = normalize_photo_refs(record)
    if isinstance(refs, NoPhotoRefs):
        return []
    paths = (extract_storage_path(ref, bucket) for ref in refs.paths)
    return [p for p in paths if p]


def new_photo_path(user_id: str, listing_id: str, filename: str) -> str:
    """Unique object path ``<user>/<listing>/<ulid>.<ext>`` for an upload."""
    ext = os.path.splitext(filename or "")[1].lower() or ".jpg"
    return f"{user_id}/{listing_id}/{ULID()}{ext}"
