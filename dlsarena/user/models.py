"""Data models for the user blueprint."""

from __future__ import annotations

from typing import TypedDict

from dlsarena.core.types import FirestoreDocument


class User(FirestoreDocument, total=False):
    """A user document in Firestore."""

    uid: str
    username: str
    email: str
    avatar: str
    isAdmin: bool
    role: str
    preferredCurrency: str
    balance: float


class PublicUser(TypedDict, total=False):
    """The subset of a user shown to other players."""

    id: str
    username: str
    avatar: str
