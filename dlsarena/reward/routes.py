"""Routes for the reward blueprint."""

from firebase_admin import firestore
from flask import current_app, g, jsonify, request

from dlsarena.auth.decorators import login_required

from . import bp
from .services import RewardService


@bp.route("/user", methods=["GET"])
@login_required
def user_rewards():
    """List the current user's rewards, optionally filtered by ``?type=``."""
    db = firestore.client()
    rewards = RewardService.list_user_rewards(
        db,
        g.user["uid"],
        reward_type=request.args.get("type"),
        preferred_currency=g.user.get("preferredCurrency"),
        canonical_currency=current_app.config["CANONICAL_CURRENCY"],
    )
    return jsonify(rewards)


@bp.route("/<string:reward_id>/collect", methods=["POST"])
@login_required
def collect_reward(reward_id):
    """Credit a reward to the current user's wallet."""
    db = firestore.client()
    result = RewardService.claim_reward(db, reward_id, g.user["uid"])
    return jsonify(
        {
            "success": True,
            "message": "Reward collected.",
            "reward": result["reward"],
            "newBalance": result["newBalance"],
        }
    )
