"""Core data types for the dlsarena application."""

from typing import Any, TypedDict


class _FirestoreDocumentBase(TypedDict):
    id: str


class FirestoreDocument(_FirestoreDocumentBase, total=False):
    """Generic Firestore document structure."""

    createdAt: Any
    updatedAt: Any
