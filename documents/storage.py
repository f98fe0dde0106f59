import base64
import binascii
import logging
import mimetypes
from uuid import uuid4

from django.conf import settings
from django.core.files.base import ContentFile
from django.utils.text import get_valid_filename

from core.errors import ValidationError

from .models import Document

logger = logging.getLogger(__name__)


def decode_file_content(value, name: str) -> tuple[bytes, str]:
    """Decode a base64 payload, optionally wrapped in a ``data:`` URL.

    Returns the raw bytes and the best-known content type.
    """
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("Name and file content are required")

    content_type = ""
    encoded = value.strip()
    if ";base64," in encoded:
        header, encoded = encoded.split(";base64,", 1)
        if header.startswith("data:"):
            content_type = header[5:]
    if not content_type:
        content_type = mimetypes.guess_type(name)[0] or "application/octet-stream"

    try:
        data = base64.b64decode("".join(encoded.split()), validate=True)
    except (binascii.Error, ValueError):
        raise ValidationError("fileContent is not valid base64", fields={"fileContent": "must be base64"})

    max_bytes = getattr(settings, "LIFEHUB_DOCUMENT_MAX_BYTES", 0)
    if max_bytes and len(data) > max_bytes:
        raise ValidationError(
            "File is too large", fields={"fileContent": f"must be at most {max_bytes} bytes"}
        )
    return data, content_type


def store_document(user, *, name: str, data: bytes, content_type: str, doc_type: str, tags: list[str]) -> Document:
    filename = f"{uuid4().hex}_{get_valid_filename(name) or 'upload'}"
    document = Document(
        user=user,
        name=name,
        doc_type=doc_type,
        content_type=content_type[:100],
        size=len(data),
        tags=tags,
    )
    document.file.save(filename, ContentFile(data), save=True)
    logger.info("Stored document %s (%d bytes) for user %s", document.pk, len(data), user.pk)
    return document


def discard_document(document: Document) -> None:
    """Delete the record, then its file. A missing or locked file is logged only."""
    file_name = document.file.name
    storage = document.file.storage
    document.delete()
    if not file_name:
        return
    try:
        storage.delete(file_name)
    except OSError as exc:
        logger.warning("Failed to delete document file %s: %s", file_name, exc)
