import base64

import pytest

from blogimg.encoding import (
    decode_data_uri,
    encode_data_uri,
    extension_for,
    open_image,
    resolve_mime,
    sniff_mime,
)
from blogimg.errors import MalformedImageError
from tests.conftest import png_bytes


def test_encode_produces_data_reference():
    ref = encode_data_uri(b"abc", "image/png")
    assert ref == "data:image/png;base64," + base64.b64encode(b"abc").decode()


def test_decode_returns_bytes_and_mime():
    data, mime = decode_data_uri(encode_data_uri(b"\x00\x01binary", "image/webp"))
    assert data == b"\x00\x01binary"
    assert mime == "image/webp"


@pytest.mark.parametrize(
    "ref",
    [
        "no-comma-here",
        ",QUJD",
        "data:image/png;base64,",
        "data-image-png-base64,QUJD",
        "data:;base64,QUJD",
        "",
    ],
)
def test_decode_rejects_malformed_references(ref):
    with pytest.raises(MalformedImageError):
        decode_data_uri(ref)


def test_decode_rejects_invalid_base64():
    with pytest.raises(MalformedImageError):
        decode_data_uri("data:image/png;base64,not*base64!")


def test_sniff_mime_identifies_png():
    assert sniff_mime(png_bytes()) == "image/png"


def test_sniff_mime_unknown_bytes():
    assert sniff_mime(b"definitely not an image") is None


def test_resolve_mime_prefers_reported_type():
    assert resolve_mime(png_bytes(), "image/webp") == "image/webp"


def test_resolve_mime_sniffs_then_falls_back_to_jpeg():
    assert resolve_mime(png_bytes(), None) == "image/png"
    assert resolve_mime(b"opaque", None) == "image/jpeg"
    assert resolve_mime(b"opaque", "application/octet-stream") == "image/jpeg"


def test_open_image_decodes_reference():
    im = open_image(encode_data_uri(png_bytes("blue"), "image/png"))
    assert im.size == (4, 4)


def test_extension_for():
    assert extension_for("image/png") == ".png"
    assert extension_for("image/jpeg") == ".jpg"
    assert extension_for("image/unknown") == ".jpg"
