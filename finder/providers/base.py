"""Shared types for image input providers."""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass
from io import BytesIO
from typing import Protocol

from PIL import Image, UnidentifiedImageError

SUPPORTED_FORMATS = {
    "JPEG": "image/jpeg",
    "PNG": "image/png",
    "WEBP": "image/webp",
    "GIF": "image/gif",
}


class InputError(RuntimeError):
    """Raised when a provider cannot produce a usable image."""


@dataclass(slots=True, frozen=True)
class ImagePayload:
    """Base64-encoded image ready to be sent to the analysis model."""

    data: str
    mime_type: str = "image/jpeg"

    def __post_init__(self) -> None:
        if not self.data:
            raise ValueError("Image payload must not be empty.")

    def as_data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"

    def raw_bytes(self) -> bytes:
        return base64.b64decode(self.data)


class ImageProvider(Protocol):
    """Anything that hands images to a session and can be told to let go of them."""

    def clear(self) -> None:
        ...


def decode_base64(encoded: str) -> bytes:
    """Decode base64 text, raising ``InputError`` on garbage."""

    try:
        return base64.b64decode(encoded, validate=True)
    except (ValueError, binascii.Error) as exc:
        raise InputError("Не удалось прочитать файл изображения.") from exc


def build_payload(data: bytes, *, max_bytes: int) -> ImagePayload:
    """Validate raw image bytes with Pillow and wrap them into a payload."""

    if not data:
        raise InputError("Файл пустой. Выберите другое изображение.")
    if len(data) > max_bytes:
        raise InputError(
            f"Изображение слишком большое (максимум {max(1, max_bytes // (1024 * 1024))} МБ).",
        )
    try:
        with Image.open(BytesIO(data)) as img:
            image_format = img.format or ""
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError) as exc:
        raise InputError("Файл не является поддерживаемым изображением.") from exc

    mime_type = SUPPORTED_FORMATS.get(image_format.upper())
    if mime_type is None:
        raise InputError(f"Формат {image_format or 'неизвестно'} не поддерживается.")
    return ImagePayload(data=base64.b64encode(data).decode("ascii"), mime_type=mime_type)
