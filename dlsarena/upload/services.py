"""Validation and storage of dispute proof screenshots."""

from __future__ import annotations

import logging
import os
import tempfile
import uuid
from typing import TYPE_CHECKING
from urllib.parse import urlparse

from firebase_admin import storage
from werkzeug.utils import secure_filename

from dlsarena.core.constants import ALLOWED_PROOF_MIME_TYPES, MAX_PROOF_BYTES
from dlsarena.errors import AppError, InvalidAttachmentError

if TYPE_CHECKING:
    from werkzeug.datastructures import FileStorage


def check_attachment(
    size: int, mimetype: str | None, max_bytes: int = MAX_PROOF_BYTES
) -> None:
    """Apply the size and type policy to an attachment's metadata."""
    if size <= 0:
        raise InvalidAttachmentError("The proof file is empty.")
    if size > max_bytes:
        limit_mb = max_bytes / (1024 * 1024)
        raise InvalidAttachmentError(f"The proof must not exceed {limit_mb:g} MB.")
    if (mimetype or "").lower() not in ALLOWED_PROOF_MIME_TYPES:
        raise InvalidAttachmentError("Supported formats: JPG, PNG, GIF, WEBP.")


def _stream_size(file: FileStorage) -> int:
    stream = file.stream
    position = stream.tell()
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(position)
    return size


def validate_proof_attachment(
    file: FileStorage | None, max_bytes: int = MAX_PROOF_BYTES
) -> None:
    """Reject a missing, empty, oversized or non-image upload.

    The stream position is restored, so the file can still be saved.
    """
    if file is None or not file.filename:
        raise InvalidAttachmentError("No proof file was provided.")
    check_attachment(_stream_size(file), file.mimetype, max_bytes)


def validate_proof_url(url: str) -> str:
    """Accept only absolute https URLs for proofs hosted elsewhere."""
    parsed = urlparse(url or "")
    if parsed.scheme != "https" or not parsed.netloc:
        raise InvalidAttachmentError(
            "The proof link must be an https:// URL.", field="proofUrl"
        )
    return url


def upload_proof_image(owner_id: str, file: FileStorage) -> str:
    """Store a proof screenshot in Cloud Storage and return its public URL."""
    filename = secure_filename(file.filename or "proof.jpg") or "proof.jpg"
    bucket = storage.bucket()
    blob = bucket.blob(f"disputes/{owner_id}/{uuid.uuid4().hex}-{filename}")

    try:
        with tempfile.NamedTemporaryFile(suffix=os.path.splitext(filename)[1]) as tmp:
            file.save(tmp.name)
            blob.upload_from_filename(tmp.name, content_type=file.mimetype)
        blob.make_public()
    except Exception as e:
        logging.error(f"Proof upload for {owner_id} failed: {e}")
        raise AppError("The proof could not be uploaded. Please try again.", 502) from e
    return str(blob.public_url)
