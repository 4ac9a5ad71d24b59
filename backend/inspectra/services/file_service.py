"""
Inspectra Backend — Upload Validation Service
===============================================

What:  Checks uploaded images before they join a workspace.
How:   Extension, size, declared content type, then the actual bytes: the
       type python-magic reads from the file header must match the
       extension. The sniffed MIME type is returned and later embedded in
       the image's data URL. Nothing is written to disk: image bytes live
       in the workspace until the item is removed.

Accepted formats match what the vision model takes inline:
    JPEG, PNG, WEBP, GIF
"""

import logging
from pathlib import Path
from typing import Optional

import magic

from inspectra.config import Settings
from inspectra.exceptions import ValidationError

logger = logging.getLogger(__name__)

# Extension → canonical MIME type
ALLOWED_EXTENSIONS = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".webp": "image/webp",
    ".gif": "image/gif",
}

ALLOWED_MIME_TYPES = set(ALLOWED_EXTENSIONS.values()) | {"image/jpg"}


class FileService:
    """Validates image uploads against the configured limits."""

    def __init__(self, settings: Settings):
        self.settings = settings

    def validate_extension(self, filename: str) -> str:
        """
        Returns: Normalized extension (lowercase with dot).
        Raises:  ValidationError if the extension is not allowed.
        """
        ext = Path(filename).suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                message=(
                    f"File type '{ext or filename}' is not supported. "
                    f"Allowed types: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
                ),
                field="file",
                context={"extension": ext, "allowed": sorted(ALLOWED_EXTENSIONS)},
            )
        return ext

    def validate_size(self, content: bytes) -> None:
        """Rejects empty files and files above settings.max_file_size."""
        max_mb = self.settings.max_file_size / (1024 * 1024)

        if not content:
            raise ValidationError(message="The uploaded file is empty.", field="file")

        if len(content) > self.settings.max_file_size:
            raise ValidationError(
                message=(
                    f"File is too large ({len(content) / (1024 * 1024):.1f}MB). "
                    f"Maximum is {max_mb:.0f}MB."
                ),
                field="file",
                context={"max_size_mb": max_mb, "actual_size": len(content)},
            )

    def validate_content_type(self, content_type: Optional[str], extension: str) -> str:
        """
        Reconcile the declared content type with the extension.

        A missing or generic declared type (application/octet-stream) falls
        back to the extension's MIME type; a declared non-image type is rejected.
        """
        declared = (content_type or "").split(";")[0].strip().lower()

        if not declared or declared == "application/octet-stream":
            return ALLOWED_EXTENSIONS[extension]

        if declared not in ALLOWED_MIME_TYPES:
            raise ValidationError(
                message=(
                    f"File content type '{declared}' is not supported. "
                    "The file must be a JPEG, PNG, WEBP or GIF image."
                ),
                field="file",
                context={"declared_mime": declared},
            )
        return "image/jpeg" if declared == "image/jpg" else declared

    def validate_mime_type(self, content: bytes, filename: str, extension: str) -> str:
        """
        Read the real type from the file header and check it against the extension.

        Returns: The sniffed MIME type.
        Raises:  ValidationError if the bytes are not an allowed image, or are
                 a different image format than the extension claims.
        """
        try:
            sniffed = magic.from_buffer(content, mime=True)
        except Exception as e:
            logger.error("MIME detection failed for %s: %s", filename, e)
            raise ValidationError(
                message="Could not determine the file type. Please upload a valid image.",
                field="file",
                context={"error": str(e)},
            ) from e

        sniffed = "image/jpeg" if sniffed == "image/jpg" else sniffed
        if sniffed not in ALLOWED_MIME_TYPES:
            raise ValidationError(
                message=(
                    f"File content does not look like a supported image (detected '{sniffed}'). "
                    "The file must be a JPEG, PNG, WEBP or GIF image."
                ),
                field="file",
                context={"detected_mime": sniffed, "filename": filename},
            )

        expected = ALLOWED_EXTENSIONS[extension]
        if sniffed != expected:
            raise ValidationError(
                message=(
                    f"File content ({sniffed}) does not match its extension '{extension}'. "
                    "Was the file renamed?"
                ),
                field="file",
                context={"detected_mime": sniffed, "expected_mime": expected},
            )
        return sniffed

    def validate_image(self, filename: str, content: bytes, content_type: Optional[str] = None) -> str:
        """
        Full validation of one upload.

        Returns: The MIME type to embed in the image's data URL.
        Raises:  ValidationError on the first failed check.
        """
        ext = self.validate_extension(filename)
        self.validate_size(content)
        self.validate_content_type(content_type, ext)
        mime_type = self.validate_mime_type(content, filename, ext)
        logger.debug("Upload accepted: %s (%s, %d bytes)", filename, mime_type, len(content))
        return mime_type
