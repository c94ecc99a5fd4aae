import io
import re
import base64
import binascii
import mimetypes
import logging
from typing import NamedTuple, Optional
from PIL import Image, UnidentifiedImageError

from plantdoc.errors import InputValidationError

logger = logging.getLogger(__name__)

# data:<type>/<subtype>[;param=value]*;base64,<payload>
DATA_URI_PATTERN = re.compile(
    r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)(?P<params>(?:;[\w.+-]+=[^;,]*)*);base64,(?P<payload>.+)$",
    re.DOTALL,
)


class DataUri(NamedTuple):
    mime_type: str
    payload: bytes


def parse_data_uri(value: str) -> DataUri:
    """Split a base64 data URI into its MIME type and decoded bytes.

    Raises ``InputValidationError`` when ``value`` is not of the form
    ``data:<mimetype>;base64,<encoded_data>`` or the payload is not base64.
    """
    if not isinstance(value, str):
        raise InputValidationError("Image must be a data URI string")

    match = DATA_URI_PATTERN.match(value.strip())
    if not match:
        raise InputValidationError("Image must be a data URI of the form data:<mimetype>;base64,<data>")

    try:
        payload = base64.b64decode(match.group("payload"), validate=True)
    except (binascii.Error, ValueError) as e:
        raise InputValidationError(f"Image data URI has an invalid base64 payload: {e}") from e

    if not payload:
        raise InputValidationError("Image data URI has an empty payload")

    return DataUri(match.group("mime").lower(), payload)


def is_data_uri(value) -> bool:
    try:
        parse_data_uri(value)
    except InputValidationError:
        return False
    return True


def encode_data_uri(data: bytes, mime_type: str) -> str:
    """Encode raw bytes as ``data:<mime_type>;base64,<payload>``"""
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('utf-8')}"


def guess_image_mime(data: bytes, filename: Optional[str] = None) -> str:
    """Best-effort MIME type: Pillow sniffing first, then the file extension"""
    try:
        with Image.open(io.BytesIO(data)) as img:
            mime = Image.MIME.get(img.format)
            if mime:
                return mime
    except (UnidentifiedImageError, OSError):
        logger.debug("Pillow could not identify uploaded image, falling back to extension")

    if filename:
        guessed, _ = mimetypes.guess_type(filename)
        if guessed:
            return guessed

    return "application/octet-stream"
