"""Encode booklet and question files for upload to the model."""

import base64
import logging
import mimetypes
from pathlib import Path
from typing import Union

from .errors import EncodingError
from .models import EncodedFile

LOG = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = 'application/octet-stream'

# File types the model accepts as documents
SUPPORTED_MIME_TYPES = ('application/pdf', 'image/png', 'image/jpeg')


def guess_mime_type(path: Union[str, Path]) -> str:
    mime_type, _ = mimetypes.guess_type(str(path))
    return mime_type or DEFAULT_MIME_TYPE


def encode_file(path: Union[str, Path]) -> EncodedFile:
    """
    Read a file and base64-encode it.

    Args:
        path: File to encode

    Returns:
        EncodedFile with the file's base name, base64 content and media type

    Raises:
        EncodingError: If the file cannot be read
    """
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as e:
        LOG.error(f"Error reading file {path}: {e}")
        raise EncodingError(f"Could not read {path.name}: {e}") from e

    return EncodedFile(
        filename=path.name,
        content=base64.b64encode(data).decode('ascii'),
        mime_type=guess_mime_type(path),
    )
