"""
Pre-upload checks for video bytes.

Provides:
- Empty / oversized payload rejection
- Container detection from magic bytes (MIME type for the upload)
- libmagic detection when the signature table has no match
- Fallback MIME type from the display name
"""
from __future__ import annotations

import mimetypes
from enum import Enum
from typing import Optional

import magic
import structlog

from .errors import UploadError

logger = structlog.get_logger()

DEFAULT_MIME_TYPE = "video/mp4"

# Bytes handed to libmagic
MAGIC_BUFFER_BYTES = 2048


class MediaErrorCode(str, Enum):
    """Error codes for media validation failures."""
    EMPTY_FILE = "empty_file"
    FILE_TOO_LARGE = "file_too_large"


# Signatures at offset 0. ISO-BMFF (mp4/mov/3gp) is handled separately since
# its "ftyp" box starts at offset 4.
FILE_SIGNATURES: list[tuple[bytes, str]] = [
    (b"\x1a\x45\xdf\xa3", "video/x-matroska"),  # EBML (mkv, webm)
    (b"\x30\x26\xb2\x75\x8e\x66\xcf\x11", "video/x-ms-wmv"),  # ASF
    (b"\x00\x00\x01\xba", "video/mpeg"),  # MPEG program stream
    (b"\x00\x00\x01\xb3", "video/mpeg"),  # MPEG video sequence header
    (b"FLV\x01", "video/x-flv"),
]

# ftyp major brands that are not plain mp4
FTYP_BRANDS = {
    b"qt  ": "video/quicktime",
    b"3gp4": "video/3gpp",
    b"3gp5": "video/3gpp",
    b"3g2a": "video/3gpp2",
}


def sniff_mime_type(data: bytes) -> Optional[str]:
    """Detect the container from magic bytes. Returns None when unrecognised."""
    if len(data) >= 12 and data[4:8] == b"ftyp":
        return FTYP_BRANDS.get(data[8:12], "video/mp4")
    if len(data) >= 12 and data[:4] == b"RIFF" and data[8:12] == b"AVI ":
        return "video/x-msvideo"
    for signature, mime in FILE_SIGNATURES:
        if data.startswith(signature):
            if mime == "video/x-matroska" and b"webm" in data[:64]:
                return "video/webm"
            return mime
    return None


def resolve_mime_type(data: bytes, display_name: str, mime_type: Optional[str] = None) -> str:
    """Explicit type wins, then magic bytes, then libmagic, then the file extension, then mp4."""
    if mime_type:
        return mime_type
    sniffed = sniff_mime_type(data)
    if sniffed:
        return sniffed

    # If we have libmagic available, use it for better detection
    try:
        detected = magic.from_buffer(data[:MAGIC_BUFFER_BYTES], mime=True)
        if detected and detected.startswith("video/"):
            return detected
        logger.debug("libmagic found no video type", display_name=display_name, detected_mime=detected)
    except Exception as e:
        # libmagic not available, fall back to the display name
        logger.debug("libmagic not available, using file extension", error=str(e))

    guessed, _ = mimetypes.guess_type(display_name)
    if guessed:
        return guessed
    logger.debug("Unknown media type, assuming mp4", display_name=display_name)
    return DEFAULT_MIME_TYPE


def validate_media(data: bytes, display_name: str, max_bytes: int) -> None:
    """Reject payloads that cannot be uploaded. Raises non-transient UploadError."""
    if len(data) == 0:
        raise UploadError(
            f"[{MediaErrorCode.EMPTY_FILE.value}] File '{display_name}' is empty"
        )
    if len(data) > max_bytes:
        raise UploadError(
            f"[{MediaErrorCode.FILE_TOO_LARGE.value}] File '{display_name}' is "
            f"{len(data)} bytes, limit is {max_bytes}"
        )
