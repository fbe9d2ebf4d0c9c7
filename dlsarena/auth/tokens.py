"""Per-request bearer token verification."""

from __future__ import annotations

from firebase_admin import auth, firestore
from flask import current_app, g, request

from dlsarena.core.constants import USERS_COLLECTION


def get_bearer_token() -> str | None:
    """Return the token from the Authorization header, if any."""
    header = request.headers.get("Authorization", "")
    if not header.startswith("Bearer "):
        return None
    return header[len("Bearer ") :].strip() or None


def load_user_from_token() -> None:
    """If a valid ID token is attached, load the user from Firestore into g."""
    g.user = None
    id_token = get_bearer_token()
    if id_token is None:
        return

    try:
        decoded_token = auth.verify_id_token(id_token)
    except Exception as e:
        current_app.logger.warning(f"Rejected bearer token: {e}")
        return

    uid = decoded_token["uid"]
    db = firestore.client()
    user_doc = db.collection(USERS_COLLECTION).document(uid).get()
    if user_doc.exists:
        g.user = user_doc.to_dict() or {}
        g.user["uid"] = uid
    else:
        current_app.logger.warning(
            f"User {uid} has a valid token but no Firestore profile."
        )
