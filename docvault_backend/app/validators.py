"""Extension points of the upload engine.

Both are single-method capabilities so the engine's dependencies stay
explicit and easy to fake in tests.
"""
from __future__ import annotations

from typing import Iterable, Optional, Protocol

from .descriptors import UploadDescriptor
from .errors import ValidationError


class UploadValidator(Protocol):
    def validate(self, file: UploadDescriptor) -> None:
        """Raise to reject ``file``; return to accept it."""


class FilenameStrategy(Protocol):
    def filename_for(self, original_name: str) -> str:
        """Return the on-disk filename to use for ``original_name``."""


class UploadFileValidator:
    """
    Example policy: MIME-type allow-list plus a size ceiling.

    Hosts are expected to bring their own validator for anything stricter;
    the claimed MIME type comes from the client and is not sniffed here.
    """

    def __init__(
        self,
        allowed_mime_types: Optional[Iterable[str]] = None,
        max_size: int = 1024 * 1024,
    ) -> None:
        if allowed_mime_types is None:
            allowed_mime_types = ["image/jpeg", "image/png"]
        self.allowed_mime_types = {t.lower() for t in allowed_mime_types}
        self.max_size = max_size

    def validate(self, file: UploadDescriptor) -> None:
        if (file.type or "").lower() not in self.allowed_mime_types:
            raise ValidationError("File type is not allowed")
        if file.size > self.max_size:
            raise ValidationError("File is too big")


class KeepOriginalName:
    """Store files under the name the client sent."""

    def filename_for(self, original_name: str) -> str:
        return original_name
