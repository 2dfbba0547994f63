"""Image input providers: camera captures and file uploads."""

from .base import ImagePayload, ImageProvider, InputError
from .camera import CameraCaptureProvider
from .upload import FileUploadProvider

__all__ = [
    "CameraCaptureProvider",
    "FileUploadProvider",
    "ImagePayload",
    "ImageProvider",
    "InputError",
]
