"""Routes for the user blueprint."""

from firebase_admin import firestore
from flask import current_app, g, jsonify

from dlsarena.auth.decorators import login_required
from dlsarena.utils import json_body

from . import bp
from .services import UserService


@bp.route("/me", methods=["GET"])
@login_required
def me():
    """Return the current user's profile."""
    db = firestore.client()
    profile = UserService.get_profile(
        db, g.user["uid"], current_app.config["CANONICAL_CURRENCY"]
    )
    return jsonify(profile)


@bp.route("/currency", methods=["PUT"])
@login_required
def update_currency():
    """Update the current user's preferred display currency."""
    payload = json_body()
    db = firestore.client()
    code = UserService.update_preferred_currency(
        db, g.user["uid"], payload.get("preferredCurrency")
    )
    current_app.logger.info(f"User {g.user['uid']} now displays amounts in {code}.")
    return jsonify(
        {
            "success": True,
            "message": "Preferred currency updated.",
            "preferredCurrency": code,
        }
    )
