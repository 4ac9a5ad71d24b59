"""
Inspectra Backend — Image Encoder
===================================

What:  Turns an ImageInput into an inline data URL usable as model input.
How:   Raw bytes are base64-encoded in Starlette's threadpool so a large
       photo never blocks the event loop. String payloads are treated as
       already encoded: a full `data:` URL passes through unchanged, a bare
       base64 string gets the default image marker prefixed.

Single attempt; the caller decides what a failure means for the item.
"""

import base64
import logging

from starlette.concurrency import run_in_threadpool

from inspectra.exceptions import EncodingError
from inspectra.schemas.pipeline import ImageInput

logger = logging.getLogger(__name__)

DATA_URL_SCHEME = "data:"
DEFAULT_IMAGE_MARKER = "data:image/jpeg;base64,"


def _b64encode(payload: bytes) -> str:
    return base64.b64encode(payload).decode("ascii")


class ImageEncoder:
    """Builds `data:<mime>;base64,<payload>` strings from image items."""

    async def encode(self, image: ImageInput) -> str:
        """
        Encode one image.

        Returns:
            A data URL beginning with the `data:` scheme marker.

        Raises:
            EncodingError: Empty payload, unsupported payload type, or the
                read/encode step failed.
        """
        payload = image.content

        if isinstance(payload, str):
            if not payload.strip():
                raise EncodingError(
                    "Failed to convert file to base64",
                    context={"filename": image.filename},
                )
            if payload.startswith(DATA_URL_SCHEME):
                return payload
            return f"{DEFAULT_IMAGE_MARKER}{payload.strip()}"

        if not isinstance(payload, (bytes, bytearray)) or not payload:
            raise EncodingError(
                "Failed to convert file to base64",
                context={"filename": image.filename, "payload_type": type(payload).__name__},
            )

        try:
            encoded = await run_in_threadpool(_b64encode, bytes(payload))
        except Exception as e:
            logger.error("Encoding failed for %s: %s", image.filename, str(e))
            raise EncodingError(
                "Error reading file",
                context={"filename": image.filename, "error": str(e)},
            ) from e

        return f"data:{image.mime_type};base64,{encoded}"
