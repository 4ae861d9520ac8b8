import io
import logging
import struct
from dataclasses import dataclass
from typing import Optional

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
PNG_TYPES = {"image/png", "image/x-png"}
SVG_TYPES = {"image/svg+xml"}
ALLOWED_TYPES = PNG_TYPES | SVG_TYPES


class UploadRejected(Exception):
    """Raised when an upload fails validation; carries the HTTP status to answer with."""

    def __init__(self, detail: str, status_code: int = 400):
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code


def detect_png_has_alpha(data: bytes) -> bool:
    """True when a PNG can carry transparency.

    Colour types 4 (grey + alpha) and 6 (RGBA) carry an alpha channel; any
    other colour type is transparent only when a tRNS chunk is present.
    """
    if not isinstance(data, (bytes, bytearray, memoryview)) or len(data) < 24:
        return False
    buf = bytes(data)
    if buf[:8] != PNG_SIGNATURE:
        return False

    offset = 8
    while offset + 12 <= len(buf):
        (length,) = struct.unpack(">I", buf[offset:offset + 4])
        chunk_type = buf[offset + 4:offset + 8]
        data_start = offset + 8
        data_end = data_start + length
        if data_end + 4 > len(buf):
            break

        if chunk_type == b"IHDR" and length >= 13:
            color_type = buf[data_start + 9]
            if color_type in (4, 6):
                return True
        if chunk_type == b"tRNS":
            return True
        if chunk_type == b"IEND":
            break

        offset = data_end + 4  # skip CRC
    return False


# ---- Artifact payload ----
@dataclass
class AssetArtifact:
    data: bytes
    filename: str
    content_type: str
    size_bytes: int
    has_alpha: Optional[bool]
    width: Optional[int]
    height: Optional[int]

    def metadata(self) -> dict:
        return {
            "content_type": self.content_type,
            "has_alpha": self.has_alpha,
            "width": self.width,
            "height": self.height,
        }


# ---- Pipeline ----
class AssetPipeline:
    """Validates icon uploads held in memory and describes them for storage."""

    def __init__(self, max_bytes: int):
        self.max_bytes = max_bytes

    def _png_size(self, data: bytes) -> tuple[Optional[int], Optional[int]]:
        try:
            with Image.open(io.BytesIO(data)) as img:
                return img.size
        except (UnidentifiedImageError, OSError) as exc:
            logger.warning("Could not read PNG dimensions: %s", exc)
            return None, None

    def process_upload(self, *, data: bytes, filename: str, content_type: Optional[str]) -> AssetArtifact:
        ctype = (content_type or "").lower()
        if ctype not in ALLOWED_TYPES:
            raise UploadRejected("Only SVG/PNG uploads are allowed", 400)
        if not data:
            raise UploadRejected("Missing upload file", 400)
        if len(data) > self.max_bytes:
            raise UploadRejected(f"File too large (max {self.max_bytes} bytes)", 413)

        has_alpha: Optional[bool] = None
        width = height = None
        if ctype in PNG_TYPES:
            has_alpha = detect_png_has_alpha(data)
            width, height = self._png_size(data)

        return AssetArtifact(
            data=data,
            filename=filename,
            content_type=ctype,
            size_bytes=len(data),
            has_alpha=has_alpha,
            width=width,
            height=height,
        )
