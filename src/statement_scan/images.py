import base64
import binascii
import mimetypes
import os
import re
from typing import Any

from .errors import ImageDecodeError
from .logging import get_logger
from .providers.base import ImagePayload

log = get_logger("images")

DEFAULT_MIME_TYPE = "image/png"

_DATA_URL_MIME_RE = re.compile(r"data:([^;,]+)")
_WHITESPACE_RE = re.compile(r"\s+")


def decode_image(value: Any) -> ImagePayload:
    """Accept a raw base64 string or a ``data:<mime>;base64,<data>`` URL."""
    if not isinstance(value, str) or not value.strip():
        raise ImageDecodeError("No image provided")
    text = value.strip()

    mime_type = DEFAULT_MIME_TYPE
    if text.startswith("data:"):
        comma = text.find(",")
        if comma == -1:
            raise ImageDecodeError("Invalid data URL format")
        header, data = text[:comma], text[comma + 1 :]
        m = _DATA_URL_MIME_RE.match(header)
        if m:
            mime_type = m.group(1).strip()
    else:
        data = text

    data = _WHITESPACE_RE.sub("", data)
    if not data:
        raise ImageDecodeError("No base64 data found")
    try:
        base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ImageDecodeError(f"Invalid base64 image data: {exc}") from exc

    log.debug(f"Image mime type: {mime_type}; base64 length: {len(data)}")
    return ImagePayload(mime_type=mime_type, data=data)


def load_image_file(path: str) -> ImagePayload:
    """Read a local screenshot and return it as an ImagePayload."""
    mime, _ = mimetypes.guess_type(path)
    if not mime or not mime.startswith("image/"):
        ext = os.path.splitext(path)[1].lower()
        mime = "image/jpeg" if ext in {".jpg", ".jpeg", ".jpe", ".jfif"} else DEFAULT_MIME_TYPE
    try:
        with open(path, "rb") as f:
            raw = f.read()
    except OSError as exc:
        raise ImageDecodeError(f"Unable to read image file {path}: {exc}") from exc
    if not raw:
        raise ImageDecodeError(f"Image file is empty: {path}")
    return ImagePayload(mime_type=mime, data=base64.b64encode(raw).decode("ascii"))
