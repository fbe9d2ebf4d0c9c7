"""Proof attachment policy and storage."""

from .services import (
    check_attachment,
    upload_proof_image,
    validate_proof_attachment,
    validate_proof_url,
)

__all__ = [
    "check_attachment",
    "upload_proof_image",
    "validate_proof_attachment",
    "validate_proof_url",
]
