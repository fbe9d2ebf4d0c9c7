"""Routes for the match blueprint."""

import datetime

from firebase_admin import firestore
from flask import current_app, g, jsonify

from dlsarena.auth.decorators import login_required

from . import bp


@bp.route("/recent-for-dispute", methods=["GET"])
@login_required
def recent_for_dispute():
    """List the current user's matches that can still be disputed."""
    from dlsarena.dispute.services import DisputeService  # noqa: PLC0415

    db = firestore.client()
    matches = DisputeService.get_recent_matches_for_dispute(
        db,
        g.user["uid"],
        now=datetime.datetime.now(datetime.timezone.utc),
        window_minutes=current_app.config["DISPUTE_WINDOW_MINUTES"],
    )
    return jsonify(matches)
