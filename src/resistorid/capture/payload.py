"""Image payloads produced by file selection or camera capture."""

from __future__ import annotations

import base64
import binascii
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from resistorid.errors import FileReadError

if TYPE_CHECKING:
    from fastapi import UploadFile

logger = logging.getLogger(__name__)

JPEG_MIME_TYPE = "image/jpeg"


@dataclass(frozen=True)
class ImagePayload:
    """A base64-encoded image plus its declared MIME type."""

    encoded_data: str
    mime_type: str

    @classmethod
    def from_bytes(cls, data: bytes, mime_type: str) -> ImagePayload:
        return cls(encoded_data=base64.b64encode(data).decode("ascii"), mime_type=mime_type)

    def raw_bytes(self) -> bytes:
        """Decode the payload back into the original image bytes."""
        try:
            return base64.b64decode(self.encoded_data, validate=True)
        except binascii.Error as exc:
            raise FileReadError() from exc

    @property
    def data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.encoded_data}"

    @property
    def size(self) -> int:
        return len(self.raw_bytes())


def select_from_file(data: bytes, mime_type: str | None, *, max_bytes: int | None = None) -> ImagePayload:
    """Build a payload from the contents of a user-selected file.

    Args:
        data: Raw file bytes.
        mime_type: The MIME type declared by the file selection.
        max_bytes: Optional upper bound on the file size.

    Returns:
        The encoded payload carrying the declared MIME type.

    Raises:
        FileReadError: If the file is empty, too large, or not an image.
    """
    if not mime_type or not mime_type.startswith("image/"):
        raise FileReadError("Only image files can be analyzed.")
    if not data:
        raise FileReadError()
    if max_bytes is not None and len(data) > max_bytes:
        raise FileReadError(f"The selected file exceeds the {max_bytes} byte limit.")

    logger.debug("Selected %s file (%d bytes)", mime_type, len(data))
    return ImagePayload.from_bytes(data, mime_type)


async def read_upload(file: UploadFile, *, max_bytes: int | None = None) -> ImagePayload:
    """Read a FastAPI upload and encode it as a payload.

    At most ``max_bytes + 1`` bytes are read, so an oversized upload is
    rejected without buffering it whole.
    """
    if max_bytes is not None and file.size is not None and file.size > max_bytes:
        await file.close()
        raise FileReadError(f"The selected file exceeds the {max_bytes} byte limit.")
    try:
        data = await file.read(max_bytes + 1 if max_bytes is not None else -1)
    except OSError as exc:
        logger.warning("Failed to read upload %s: %s", file.filename, exc)
        raise FileReadError() from exc
    finally:
        await file.close()
    return select_from_file(data, file.content_type, max_bytes=max_bytes)
