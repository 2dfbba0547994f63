"""File upload provider."""

from __future__ import annotations

import logging

from .base import ImagePayload, InputError, build_payload, decode_base64

logger = logging.getLogger(__name__)


class FileUploadProvider:
    """Reads uploaded image files or browser-style data URLs."""

    def __init__(self, max_bytes: int) -> None:
        self._max_bytes = max_bytes
        self._last: ImagePayload | None = None

    @property
    def last_upload(self) -> ImagePayload | None:
        return self._last

    def read_file(self, data: bytes, *, filename: str = "", mime_type: str | None = None) -> ImagePayload:
        """Validate an uploaded file and return its payload."""

        if mime_type and not mime_type.startswith("image/"):
            raise InputError("Можно загружать только изображения.")
        payload = build_payload(data, max_bytes=self._max_bytes)
        self._last = payload
        logger.debug("Accepted upload %s (%d bytes, %s)", filename or "<unnamed>", len(data), payload.mime_type)
        return payload

    def read_data_url(self, data_url: str) -> ImagePayload:
        """Accept ``data:<mime>;base64,<data>`` and keep only the base64 part."""

        if "," not in data_url:
            raise InputError("Не удалось прочитать файл изображения.")
        _, encoded = data_url.split(",", 1)
        if not encoded:
            raise InputError("Не удалось прочитать файл изображения.")
        return self.read_file(decode_base64(encoded))

    def clear(self) -> None:
        self._last = None
