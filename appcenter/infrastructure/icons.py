"""
Icon normalization for icons pulled out of IPA/APK packages.

iOS tooling rewrites PNG icons into a vendor variant carrying a ``CgBI``
chunk that regular decoders choke on; ``repair`` strips that chunk so
browsers can at least attempt to render the image.
"""
from __future__ import annotations

import base64
import binascii
import logging
import struct
from dataclasses import dataclass

logger = logging.getLogger(__name__)

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
VENDOR_CHUNK = b"CgBI"

FALLBACK_ICONS = {
    "ios": "https://via.placeholder.com/60x60/3b82f6/ffffff?text=iOS",
    "android": "https://via.placeholder.com/60x60/10b981/ffffff?text=AND",
}

_MAGIC = (
    (b"\xff\xd8", "image/jpeg"),
    (b"\x89PNG", "image/png"),
    (b"GIF", "image/gif"),
    (b"RIFF", "image/webp"),
    (b"\x00\x00\x01\x00", "image/x-icon"),
    (b"BM", "image/bmp"),
)


@dataclass(frozen=True)
class IconResult:
    data_url: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.data_url is not None


def detect_format(data: bytes) -> str:
    """Sniff the image MIME type from magic bytes, defaulting to PNG."""
    for magic, mime in _MAGIC:
        if data.startswith(magic):
            return mime
    return "image/png"


def _iter_chunks(data: bytes):
    """
    Yield ``(chunk_type, start, end)`` for every complete PNG chunk.

    A tail too short to hold a chunk header is not walked. A chunk whose
    declared length runs past the buffer raises ValueError.
    """
    offset = len(PNG_SIGNATURE)
    total = len(data)
    while offset + 8 <= total:
        (length,) = struct.unpack(">I", data[offset:offset + 4])
        chunk_type = data[offset + 4:offset + 8]
        end = offset + 12 + length
        if end > total:
            raise ValueError(f"truncated {chunk_type!r} chunk at offset {offset}")
        yield chunk_type, offset, end
        offset = end


def is_vendor_optimized_png(data: bytes) -> bool:
    if len(data) < len(PNG_SIGNATURE) or not data.startswith(PNG_SIGNATURE):
        return False
    try:
        return any(chunk_type == VENDOR_CHUNK for chunk_type, _, _ in _iter_chunks(data))
    except ValueError:
        return False


def repair(data: bytes) -> bytes:
    """
    Drop the ``CgBI`` chunk from a vendor-optimized PNG.

    Every other chunk is kept byte-for-byte and in order; padding after the
    last complete chunk is dropped. Input that is not a vendor PNG, or that
    holds a chunk running past the end of the buffer, is returned as-is.
    """
    if not is_vendor_optimized_png(data):
        return data
    try:
        parts = [data[:len(PNG_SIGNATURE)]]
        for chunk_type, start, end in _iter_chunks(data):
            if chunk_type == VENDOR_CHUNK:
                continue
            parts.append(data[start:end])
        return b"".join(parts)
    except (ValueError, struct.error) as exc:
        logger.warning("[icon] repair failed, keeping original bytes: %s", exc)
        return data


def _decode_input(raw) -> bytes:
    if isinstance(raw, (bytes, bytearray, memoryview)):
        return bytes(raw)
    if isinstance(raw, str):
        text = raw.strip()
        if text.startswith("data:"):
            _, _, text = text.partition(",")
        return base64.b64decode(text, validate=False)
    raise TypeError(f"unsupported icon payload type: {type(raw).__name__}")


def to_data_url(raw) -> IconResult:
    """
    Normalize icon input into a ``data:<mime>;base64,...`` URL.

    :param raw: Raw bytes, base64 text or an existing data URL
    :return: An IconResult holding either the data URL or an error message
    :rtype: IconResult
    """
    if raw is None:
        return IconResult(error="Icon data is missing")
    try:
        data = _decode_input(raw)
    except (binascii.Error, TypeError, ValueError) as exc:
        return IconResult(error=f"Icon data could not be decoded: {exc}")

    if not data:
        return IconResult(error="Icon buffer is empty")

    if is_vendor_optimized_png(data):
        logger.debug("[icon] vendor-optimized PNG detected, stripping CgBI chunk")
        data = repair(data)

    mime = detect_format(data)
    encoded = base64.b64encode(data).decode("ascii")
    return IconResult(data_url=f"data:{mime};base64,{encoded}")


def fallback_icon(platform: str | None) -> str:
    key = (platform or "").strip().lower()
    if key not in FALLBACK_ICONS:
        key = "android"
    return FALLBACK_ICONS[key]
