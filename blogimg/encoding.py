from __future__ import annotations

import base64
import binascii
import io
import re
from typing import Optional

from PIL import Image, UnidentifiedImageError

from .errors import MalformedImageError

DEFAULT_MIME = "image/jpeg"

_MIME_RE = re.compile(r":(.*?);")

_EXTENSIONS = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/webp": ".webp",
    "image/gif": ".gif",
}


def encode_data_uri(data: bytes, mime_type: str) -> str:
    payload = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type};base64,{payload}"


def split_data_uri(ref: str) -> tuple[str, str]:
    """Split a data reference into (mime, base64 payload) without decoding."""
    header, sep, payload = (ref or "").partition(",")
    if not sep or not header or not payload:
        raise MalformedImageError("Invalid image data format: expected '<header>,<payload>'.")
    m = _MIME_RE.search(header)
    if not m or not m.group(1):
        raise MalformedImageError("Could not determine the image MIME type.")
    return m.group(1), payload


def decode_data_uri(ref: str) -> tuple[bytes, str]:
    mime, payload = split_data_uri(ref)
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise MalformedImageError("Image payload is not valid base64.") from e
    return data, mime


def sniff_mime(data: bytes) -> Optional[str]:
    # Pillow knows the format from the header bytes; no full decode needed
    try:
        with Image.open(io.BytesIO(data)) as im:
            fmt = im.format
    except (UnidentifiedImageError, OSError):
        return None
    return Image.MIME.get(fmt or "")


def resolve_mime(data: bytes, reported: Optional[str]) -> str:
    if reported and reported.startswith("image/"):
        return reported
    return sniff_mime(data) or DEFAULT_MIME


def open_image(ref: str) -> Image.Image:
    data, _ = decode_data_uri(ref)
    im = Image.open(io.BytesIO(data))
    im.load()
    return im


def extension_for(mime: str) -> str:
    return _EXTENSIONS.get(mime, ".jpg")
