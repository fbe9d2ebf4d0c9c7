"""Routes for the dispute blueprint."""

from firebase_admin import firestore
from flask import current_app, g, jsonify, request

from dlsarena.auth.decorators import is_validator, login_required
from dlsarena.core.constants import ROLE_VALIDATOR
from dlsarena.reward.policy import configured_reward_policy
from dlsarena.utils import json_body

from . import bp, validator_bp
from .models import parse_dispute_input
from .services import DisputeService


def _submission():
    """Read a dispute from a JSON body or a multipart form with a proof file."""
    if request.is_json:
        return json_body(), None
    proof_file = request.files.get("proof")
    if proof_file is not None and not proof_file.filename:
        proof_file = None
    return request.form.to_dict(), proof_file


def _resolve(dispute_id, decision, comment, resolver_role):
    db = firestore.client()
    result = DisputeService.resolve_dispute(
        db,
        dispute_id,
        decision,
        comment,
        resolver_id=g.user["uid"],
        resolver_role=resolver_role,
        reward_policy=configured_reward_policy(),
        currency=current_app.config["CANONICAL_CURRENCY"],
    )
    return jsonify(
        {
            "success": True,
            "message": f"Dispute {result['status']}.",
            "dispute": result,
        }
    )


@bp.route("", methods=["POST"])
@login_required
def create_dispute():
    """File a new dispute on a recent match."""
    data, proof_file = _submission()
    dispute_input = parse_dispute_input(data, has_proof_file=proof_file is not None)
    db = firestore.client()
    dispute = DisputeService.create_dispute(
        db,
        dispute_input,
        g.user["uid"],
        proof_file=proof_file,
        window_minutes=current_app.config["DISPUTE_WINDOW_MINUTES"],
        max_proof_bytes=current_app.config["MAX_PROOF_BYTES"],
    )
    return (
        jsonify(
            {"success": True, "message": "Dispute submitted.", "dispute": dispute}
        ),
        201,
    )


@bp.route("/user", methods=["GET"])
@login_required
def user_disputes():
    """List the current user's disputes."""
    db = firestore.client()
    return jsonify(DisputeService.list_user_disputes(db, g.user["uid"]))


@bp.route("/validator", methods=["GET"])
@login_required(validator_required=True)
def validator_disputes():
    """List the pending disputes the current validator may resolve."""
    db = firestore.client()
    return jsonify(DisputeService.list_validator_disputes(db, g.user["uid"]))


@bp.route("/admin", methods=["GET"])
@login_required(admin_required=True)
def admin_disputes():
    """List all disputes, optionally filtered by ``?status=``."""
    db = firestore.client()
    return jsonify(DisputeService.list_all_disputes(db, request.args.get("status")))


@bp.route("/<string:dispute_id>", methods=["GET"])
@login_required
def get_dispute(dispute_id):
    """Return a single dispute."""
    db = firestore.client()
    return jsonify(DisputeService.get_dispute(db, dispute_id))


@bp.route("/<string:dispute_id>/status", methods=["PUT"])
@login_required(admin_required=True)
def admin_resolve(dispute_id):
    """Resolve a dispute from the admin console."""
    payload = json_body()
    return _resolve(
        dispute_id, payload.get("status"), payload.get("adminComment"), "admin"
    )


@bp.route("/validator/<string:dispute_id>", methods=["PUT"])
@login_required(validator_required=True)
def validator_resolve(dispute_id):
    """Approve or reject a dispute as a validator."""
    payload = json_body()
    role = ROLE_VALIDATOR if is_validator(g.user) else "admin"
    return _resolve(dispute_id, payload.get("status"), payload.get("comment"), role)


@validator_bp.route("/stats", methods=["GET"])
@login_required(validator_required=True)
def validator_stats():
    """Return the current validator's resolution and reward totals."""
    db = firestore.client()
    return jsonify(DisputeService.get_validator_stats(db, g.user["uid"]))
