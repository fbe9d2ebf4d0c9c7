"""Routes for the tournament blueprint."""

from firebase_admin import firestore
from flask import jsonify

from dlsarena.auth.decorators import login_required

from . import bp
from .services import TournamentService, group_by_round


@bp.route("/<string:tournament_id>", methods=["GET"])
@login_required
def view_tournament(tournament_id):
    """Return a tournament's details."""
    db = firestore.client()
    return jsonify(TournamentService.get_tournament(db, tournament_id))


@bp.route("/<string:tournament_id>/bracket", methods=["GET"])
@login_required
def view_bracket(tournament_id):
    """Return the bracket grouped into labelled rounds."""
    db = firestore.client()
    matches = TournamentService.get_bracket(db, tournament_id)
    return jsonify(
        {
            "tournamentId": tournament_id,
            "matches": [m.to_dict() for m in matches],
            "rounds": group_by_round(matches),
        }
    )
