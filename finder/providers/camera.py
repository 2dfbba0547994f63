"""Camera capture provider."""

from __future__ import annotations

import logging

from .base import ImagePayload, InputError, build_payload

logger = logging.getLogger(__name__)


class CameraCaptureProvider:
    """Turns a photo taken with the camera into an image payload."""

    def __init__(self, max_bytes: int) -> None:
        self._max_bytes = max_bytes
        self._last: ImagePayload | None = None

    @property
    def last_capture(self) -> ImagePayload | None:
        return self._last

    def capture(self, frame: bytes | None) -> ImagePayload:
        """Return the payload for a captured frame."""

        if frame is None:
            raise InputError("Камера недоступна. Попробуйте загрузить фото файлом.")
        payload = build_payload(frame, max_bytes=self._max_bytes)
        self._last = payload
        logger.debug("Captured frame of %d bytes (%s)", len(frame), payload.mime_type)
        return payload

    def clear(self) -> None:
        self._last = None
