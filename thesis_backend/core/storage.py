"""
File storage adapter over Django's default storage backend.

File references are opaque storage names; callers never inspect contents.
"""

import logging
import uuid

from django.core.files.storage import default_storage
from django.utils.text import get_valid_filename

from thesis_backend.core.exceptions import UpstreamError

logger = logging.getLogger(__name__)


def save_file(content, category: str, original_name: str) -> str:
    """
    Store ``content`` under ``category`` and return its reference.

    Raises UpstreamError if the storage backend fails.
    """
    filename = get_valid_filename(original_name) or "file"
    name = f"{category}/{uuid.uuid4()}/{filename}"
    try:
        reference = default_storage.save(name, content)
    except OSError as exc:
        logger.exception("Failed to save file %s", name)
        raise UpstreamError("Impossible d'enregistrer le fichier.") from exc

    logger.info("Saved file %s", reference)
    return reference


def delete_file(reference: str | None) -> bool:
    """
    Delete a stored file. Failures are logged, never raised.

    Returns True if the file is gone afterwards.
    """
    if not reference:
        return True

    try:
        default_storage.delete(reference)
    except Exception:
        logger.exception("Failed to delete file %s", reference)
        return False

    logger.info("Deleted file %s", reference)
    return True
