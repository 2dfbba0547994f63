"""Tests for camera and upload input providers."""

from __future__ import annotations

import base64
from io import BytesIO

import pytest
from PIL import Image

from finder.providers import CameraCaptureProvider, FileUploadProvider, ImagePayload, InputError


def _image_bytes(image_format: str = "PNG") -> bytes:
    buffer = BytesIO()
    Image.new("RGB", (8, 8), color=(120, 30, 200)).save(buffer, format=image_format)
    return buffer.getvalue()


def test_upload_accepts_png() -> None:
    provider = FileUploadProvider(max_bytes=1024 * 1024)
    data = _image_bytes("PNG")

    payload = provider.read_file(data, filename="look.png", mime_type="image/png")

    assert payload.mime_type == "image/png"
    assert payload.raw_bytes() == data
    assert provider.last_upload == payload


def test_upload_reads_data_url() -> None:
    provider = FileUploadProvider(max_bytes=1024 * 1024)
    data = _image_bytes("JPEG")
    data_url = "data:image/jpeg;base64," + base64.b64encode(data).decode("ascii")

    payload = provider.read_data_url(data_url)

    assert payload.mime_type == "image/jpeg"
    assert payload.as_data_url() == data_url


@pytest.mark.parametrize("data_url", ["not-a-data-url", "data:image/png;base64,", "data:image/png;base64,@@@"])
def test_upload_rejects_broken_data_url(data_url: str) -> None:
    provider = FileUploadProvider(max_bytes=1024)

    with pytest.raises(InputError):
        provider.read_data_url(data_url)


def test_upload_rejects_non_images() -> None:
    provider = FileUploadProvider(max_bytes=1024)

    with pytest.raises(InputError):
        provider.read_file(b"%PDF-1.7", filename="doc.pdf", mime_type="application/pdf")
    with pytest.raises(InputError):
        provider.read_file(b"plain text pretending", filename="look.png")


def test_upload_enforces_size_limit() -> None:
    data = _image_bytes("PNG")
    provider = FileUploadProvider(max_bytes=len(data) - 1)

    with pytest.raises(InputError, match="слишком большое"):
        provider.read_file(data)


def test_camera_capture_and_clear() -> None:
    provider = CameraCaptureProvider(max_bytes=1024 * 1024)

    payload = provider.capture(_image_bytes("JPEG"))
    assert provider.last_capture == payload

    provider.clear()
    assert provider.last_capture is None


def test_camera_unavailable() -> None:
    provider = CameraCaptureProvider(max_bytes=1024)

    with pytest.raises(InputError, match="Камера недоступна"):
        provider.capture(None)


def test_empty_payload_is_rejected() -> None:
    with pytest.raises(ValueError):
        ImagePayload(data="")
