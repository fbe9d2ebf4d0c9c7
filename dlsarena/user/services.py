"""Service layer for user profile operations."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

from firebase_admin import firestore

from dlsarena.core.constants import USERS_COLLECTION
from dlsarena.currency.services import display_amount, is_supported, normalize_code
from dlsarena.errors import NotFoundError, ValidationError

from .models import PublicUser

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.client import Client


class UserService:
    """Service class for user-related operations."""

    @staticmethod
    def get_public_profiles(db: Client, uids: list[str]) -> dict[str, PublicUser]:
        """Fetch username and avatar for a set of users in one round-trip."""
        unique_ids = [uid for uid in dict.fromkeys(uids) if uid]
        if not unique_ids:
            return {}
        refs = [db.collection(USERS_COLLECTION).document(uid) for uid in unique_ids]
        profiles: dict[str, PublicUser] = {}
        for doc in db.get_all(refs):
            snap = cast("DocumentSnapshot", doc)
            if not snap.exists:
                continue
            data = snap.to_dict() or {}
            profiles[snap.id] = {
                "id": snap.id,
                "username": data.get("username", snap.id),
                "avatar": data.get("avatar", ""),
            }
        return profiles

    @staticmethod
    def get_profile(db: Client, uid: str, canonical_currency: str) -> dict[str, Any]:
        """Fetch a user's own profile with the wallet balance formatted for display."""
        doc = cast("DocumentSnapshot", db.collection(USERS_COLLECTION).document(uid).get())
        if not doc.exists:
            raise NotFoundError("User not found.")
        data = doc.to_dict() or {}
        balance = data.get("balance", 0)
        preferred = data.get("preferredCurrency") or canonical_currency
        return {
            "id": uid,
            "username": data.get("username"),
            "email": data.get("email"),
            "avatar": data.get("avatar"),
            "role": data.get("role", "player"),
            "isAdmin": bool(data.get("isAdmin")),
            "preferredCurrency": normalize_code(preferred),
            "balance": balance,
            "formattedBalance": display_amount(balance, preferred, canonical_currency),
        }

    @staticmethod
    def update_preferred_currency(db: Client, uid: str, currency: str | None) -> str:
        """Store the user's display currency after validating it."""
        if not currency or not str(currency).strip():
            raise ValidationError("A currency code is required.", field="preferredCurrency")
        code = normalize_code(currency)
        if not is_supported(code):
            raise ValidationError(
                f"Unsupported currency: {code}.", field="preferredCurrency"
            )
        user_ref = db.collection(USERS_COLLECTION).document(uid)
        if not cast("DocumentSnapshot", user_ref.get()).exists:
            raise NotFoundError("User not found.")
        user_ref.update(
            {"preferredCurrency": code, "updatedAt": firestore.SERVER_TIMESTAMP}
        )
        return code
