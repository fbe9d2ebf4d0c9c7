"""Service layer for the dispute lifecycle."""

from __future__ import annotations

import datetime
import logging
from typing import TYPE_CHECKING, Any, cast

from firebase_admin import firestore

from dlsarena.core.constants import (
    DEFAULT_CANONICAL_CURRENCY,
    DEFAULT_DISPUTE_WINDOW_MINUTES,
    DISPUTES_COLLECTION,
    MATCHES_COLLECTION,
    MAX_PROOF_BYTES,
    NOTIFICATIONS_COLLECTION,
    REWARDS_COLLECTION,
    ROLE_VALIDATOR,
)
from dlsarena.errors import (
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from dlsarena.match.models import as_utc, match_played_at, opponent_of
from dlsarena.match.services import MatchService
from dlsarena.reward.models import RewardStatus, build_validation_reward
from dlsarena.reward.policy import reward_amount
from dlsarena.upload.services import (
    upload_proof_image,
    validate_proof_attachment,
    validate_proof_url,
)
from dlsarena.user.services import UserService

from .models import (
    Decision,
    Dispute,
    DisputeCategory,
    DisputeInput,
    DisputeStatus,
    MatchResultInput,
    next_status,
)

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.document import DocumentReference
    from google.cloud.firestore_v1.transaction import Transaction
    from werkzeug.datastructures import FileStorage

    from dlsarena.reward.policy import RewardPolicy

_EPOCH = datetime.datetime.min.replace(tzinfo=datetime.timezone.utc)


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def _sort_key(dispute: dict[str, Any]) -> datetime.datetime:
    created = dispute.get("createdAt")
    if isinstance(created, datetime.datetime):
        if created.tzinfo is None:
            return created.replace(tzinfo=datetime.timezone.utc)
        return created
    return _EPOCH


def is_eligible_for_dispute(
    match: dict[str, Any],
    now: datetime.datetime | None = None,
    window: datetime.timedelta = datetime.timedelta(
        minutes=DEFAULT_DISPUTE_WINDOW_MINUTES
    ),
) -> bool:
    """Return True while a match is inside its dispute window.

    The window is half-open: a match played exactly ``window`` ago is no
    longer eligible, and a match stamped in the future never is.
    """
    played_at = match_played_at(match)
    if played_at is None:
        return False
    elapsed = as_utc(now or _utcnow()) - played_at
    return datetime.timedelta(0) <= elapsed < window


class DisputeService:
    """Service class for dispute-related operations."""

    @staticmethod
    def _doc_to_dispute(doc: Any) -> Dispute:
        data = cast("Dispute", doc.to_dict() or {})
        data["id"] = doc.id
        return data

    @staticmethod
    def _attach_profiles(db: Client, disputes: list[Dispute]) -> list[Dispute]:
        """Add reporter and opponent usernames/avatars to each dispute."""
        uids: list[str] = []
        for dispute in disputes:
            uids.extend([dispute.get("reporterId", ""), dispute.get("opponentId", "")])
        profiles = UserService.get_public_profiles(db, uids)
        for dispute in disputes:
            reporter_id = dispute.get("reporterId", "")
            opponent_id = dispute.get("opponentId", "")
            dispute["reporter"] = dict(
                profiles.get(reporter_id) or {"id": reporter_id, "username": reporter_id}
            )
            dispute["opponent"] = dict(
                profiles.get(opponent_id) or {"id": opponent_id, "username": opponent_id}
            )
        return disputes

    @staticmethod
    def get_recent_matches_for_dispute(
        db: Client,
        user_id: str,
        now: datetime.datetime | None = None,
        window_minutes: int = DEFAULT_DISPUTE_WINDOW_MINUTES,
    ) -> list[dict[str, Any]]:
        """List the user's matches that are still inside the dispute window."""
        now = now or _utcnow()
        window = datetime.timedelta(minutes=window_minutes)
        eligible = [
            m
            for m in MatchService.list_user_matches(db, user_id)
            if opponent_of(m, user_id) and is_eligible_for_dispute(m, now, window)
        ]
        profiles = UserService.get_public_profiles(
            db, [opponent_of(m, user_id) or "" for m in eligible]
        )

        results: list[dict[str, Any]] = []
        for match in eligible:
            opponent_id = opponent_of(match, user_id) or ""
            played_at = match_played_at(match)
            results.append(
                {
                    "id": match["id"],
                    "tournamentId": match.get("tournamentId"),
                    "round": match.get("round"),
                    "matchNumber": match.get("matchNumber"),
                    "status": match.get("status"),
                    "playedAt": played_at.isoformat() if played_at else None,
                    "opponent": dict(
                        profiles.get(opponent_id)
                        or {"id": opponent_id, "username": opponent_id}
                    ),
                }
            )
        results.sort(key=lambda m: m["playedAt"] or "", reverse=True)
        return results

    @staticmethod
    def create_dispute(
        db: Client,
        dispute_input: DisputeInput,
        reporter_id: str,
        proof_file: FileStorage | None = None,
        now: datetime.datetime | None = None,
        window_minutes: int = DEFAULT_DISPUTE_WINDOW_MINUTES,
        max_proof_bytes: int = MAX_PROOF_BYTES,
    ) -> Dispute:
        """Validate a submission against its match and store it as pending."""
        # Attachment policy first: nothing is read or written for a bad file.
        if proof_file is not None:
            validate_proof_attachment(proof_file, max_proof_bytes)
        elif dispute_input.proof_url:
            validate_proof_url(dispute_input.proof_url)

        now = now or _utcnow()
        match = MatchService.get_match_by_id(db, dispute_input.match_id)
        if not match:
            raise NotFoundError("Match not found.")

        players = [p for p in match.get("players") or [] if p]
        if reporter_id not in players:
            raise ForbiddenError("You can only dispute matches you played in.")
        opponent_id = opponent_of(match, reporter_id)
        if not opponent_id:
            raise ValidationError(
                "This match has no opponent to dispute.", field="matchId"
            )
        if dispute_input.opponent_id and dispute_input.opponent_id != opponent_id:
            raise ValidationError(
                "The opponent does not match this match.", field="opponentId"
            )
        if not is_eligible_for_dispute(
            match, now, datetime.timedelta(minutes=window_minutes)
        ):
            raise ValidationError(
                f"Disputes must be filed within {window_minutes} minutes of the match.",
                field="matchId",
            )

        existing = (
            db.collection(DISPUTES_COLLECTION)
            .where(filter=firestore.FieldFilter("matchId", "==", match["id"]))
            .stream()
        )
        for doc in existing:
            data = doc.to_dict() or {}
            if (
                data.get("reporterId") == reporter_id
                and data.get("status") == DisputeStatus.PENDING.value
            ):
                raise ValidationError(
                    "You already have a pending dispute for this match.",
                    field="matchId",
                )

        proof_url = dispute_input.proof_url
        if proof_file is not None:
            proof_url = upload_proof_image(reporter_id, proof_file)

        category = dispute_input.category
        payload: dict[str, Any] = {
            "matchId": match["id"],
            "reporterId": reporter_id,
            "opponentId": opponent_id,
            "tournamentId": match.get("tournamentId"),
            "category": category.value,
            "reason": dispute_input.reason or category.default_reason,
            "description": dispute_input.description,
            "proofUrl": proof_url,
            "status": DisputeStatus.PENDING.value,
            "createdAt": now,
        }
        if isinstance(dispute_input, MatchResultInput):
            payload["playerScore"] = dispute_input.player_score
            payload["opponentScore"] = dispute_input.opponent_score

        dispute_ref = db.collection(DISPUTES_COLLECTION).document()
        dispute_ref.set(payload)
        logging.info(
            f"Dispute {dispute_ref.id} ({category.value}) filed by {reporter_id} "
            f"on match {match['id']}."
        )
        dispute = cast("Dispute", payload)
        dispute["id"] = dispute_ref.id
        return dispute

    @staticmethod
    def get_dispute(db: Client, dispute_id: str) -> Dispute:
        """Fetch a single dispute by its ID."""
        doc = cast(
            "DocumentSnapshot",
            db.collection(DISPUTES_COLLECTION).document(dispute_id).get(),
        )
        if not doc.exists:
            raise NotFoundError("Dispute not found.")
        return DisputeService._attach_profiles(
            db, [DisputeService._doc_to_dispute(doc)]
        )[0]

    @staticmethod
    def list_user_disputes(db: Client, user_id: str) -> list[Dispute]:
        """List the disputes a user has filed, newest first."""
        docs = (
            db.collection(DISPUTES_COLLECTION)
            .where(filter=firestore.FieldFilter("reporterId", "==", user_id))
            .stream()
        )
        disputes = [DisputeService._doc_to_dispute(doc) for doc in docs]
        disputes.sort(key=_sort_key, reverse=True)
        return DisputeService._attach_profiles(db, disputes)

    @staticmethod
    def list_validator_disputes(db: Client, validator_id: str) -> list[Dispute]:
        """List pending disputes the validator may resolve, oldest first."""
        docs = (
            db.collection(DISPUTES_COLLECTION)
            .where(
                filter=firestore.FieldFilter(
                    "status", "==", DisputeStatus.PENDING.value
                )
            )
            .stream()
        )
        disputes = [
            d
            for d in (DisputeService._doc_to_dispute(doc) for doc in docs)
            if validator_id not in (d.get("reporterId"), d.get("opponentId"))
        ]
        disputes.sort(key=_sort_key)
        return DisputeService._attach_profiles(db, disputes)

    @staticmethod
    def list_all_disputes(db: Client, status: str | None = None) -> list[Dispute]:
        """List every dispute for the admin console, newest first."""
        query: Any = db.collection(DISPUTES_COLLECTION)
        if status:
            try:
                status = DisputeStatus(status).value
            except ValueError:
                raise ValidationError(
                    f"Unknown dispute status: {status}.", field="status"
                ) from None
            query = query.where(filter=firestore.FieldFilter("status", "==", status))
        disputes = [DisputeService._doc_to_dispute(doc) for doc in query.stream()]
        disputes.sort(key=_sort_key, reverse=True)
        return DisputeService._attach_profiles(db, disputes)

    @staticmethod
    def resolve_dispute(
        db: Client,
        dispute_id: str,
        decision: Decision | str,
        comment: str | None,
        resolver_id: str,
        resolver_role: str,
        reward_policy: RewardPolicy | None = None,
        now: datetime.datetime | None = None,
        currency: str = DEFAULT_CANONICAL_CURRENCY,
    ) -> dict[str, Any]:
        """Approve or reject a pending dispute exactly once.

        The read and the conditional write share one Firestore transaction, so
        of two concurrent resolutions only one commits; the retried loser
        observes the terminal status and raises ``AlreadyResolvedError``.
        """
        decision = Decision.parse(decision)
        comment = (comment or "").strip()
        if not comment:
            raise ValidationError("A comment is required to resolve a dispute.", field="comment")

        dispute_ref = db.collection(DISPUTES_COLLECTION).document(dispute_id)
        # Ids are drawn once so a retried transaction rewrites the same documents.
        reward_ref = db.collection(REWARDS_COLLECTION).document()
        notification_ref = db.collection(NOTIFICATIONS_COLLECTION).document()

        transaction = db.transaction()
        resolve = firestore.transactional(DisputeService._resolve_in_transaction)
        result = resolve(
            transaction,
            db,
            dispute_ref,
            reward_ref,
            notification_ref,
            decision,
            comment,
            resolver_id,
            resolver_role,
            reward_policy,
            now or _utcnow(),
            currency,
        )
        logging.info(
            f"Dispute {dispute_id} {result['status']} by {resolver_role} {resolver_id}."
        )
        return result

    @staticmethod
    def _resolve_in_transaction(
        transaction: Transaction,
        db: Client,
        dispute_ref: DocumentReference,
        reward_ref: DocumentReference,
        notification_ref: DocumentReference,
        decision: Decision,
        comment: str,
        resolver_id: str,
        resolver_role: str,
        reward_policy: RewardPolicy | None,
        now: datetime.datetime,
        currency: str,
    ) -> dict[str, Any]:
        snapshot = cast("DocumentSnapshot", dispute_ref.get(transaction=transaction))
        if not snapshot.exists:
            raise NotFoundError("Dispute not found.")
        dispute = snapshot.to_dict() or {}

        if resolver_id in (dispute.get("reporterId"), dispute.get("opponentId")):
            raise ForbiddenError("You cannot resolve a dispute you are part of.")

        try:
            current = DisputeStatus(dispute.get("status", DisputeStatus.PENDING.value))
        except ValueError:
            raise ValidationError(
                f"Dispute {dispute_ref.id} has an unknown status."
            ) from None
        new_status = next_status(current, decision)
        approved = new_status is DisputeStatus.APPROVED

        # All reads happen before the first write.
        match_ref = None
        match_updates = None
        if (
            approved
            and dispute.get("category") == DisputeCategory.MATCH_RESULT.value
            and dispute.get("playerScore") is not None
            and dispute.get("opponentScore") is not None
            and dispute.get("matchId")
        ):
            match_ref = db.collection(MATCHES_COLLECTION).document(dispute["matchId"])
            match_snap = cast("DocumentSnapshot", match_ref.get(transaction=transaction))
            if match_snap.exists:
                match_updates = MatchService.result_updates(
                    match_snap.to_dict() or {},
                    dispute.get("reporterId", ""),
                    dispute["playerScore"],
                    dispute["opponentScore"],
                )

        reward = None
        if approved and resolver_role == ROLE_VALIDATOR and reward_policy is not None:
            amount = reward_amount(reward_policy, {**dispute, "id": dispute_ref.id})
            reward = build_validation_reward(
                dispute_ref.id, resolver_id, amount, currency, now
            )

        updates: dict[str, Any] = {
            "status": new_status.value,
            "resolvedBy": resolver_id,
            "resolverRole": resolver_role,
            "resolvedAt": now,
            "adminComment": comment,
        }
        if reward is not None:
            updates["rewardId"] = reward_ref.id

        transaction.update(dispute_ref, updates)
        if reward is not None:
            transaction.set(reward_ref, reward)
        if match_ref is not None and match_updates:
            transaction.update(match_ref, match_updates)
        transaction.set(
            notification_ref,
            {
                "userId": dispute.get("reporterId"),
                "type": "dispute_resolved",
                "disputeId": dispute_ref.id,
                "status": new_status.value,
                "message": f"Your dispute has been {new_status.value}: {comment}",
                "read": False,
                "createdAt": now,
            },
        )

        result: dict[str, Any] = {**dispute, **updates, "id": dispute_ref.id}
        result["reward"] = {**reward, "id": reward_ref.id} if reward else None
        return result

    @staticmethod
    def get_validator_stats(db: Client, validator_id: str) -> dict[str, Any]:
        """Summarize a validator's decisions, queue and earnings."""
        resolved = [
            doc.to_dict() or {}
            for doc in db.collection(DISPUTES_COLLECTION)
            .where(filter=firestore.FieldFilter("resolvedBy", "==", validator_id))
            .stream()
        ]
        rewards = [
            doc.to_dict() or {}
            for doc in db.collection(REWARDS_COLLECTION)
            .where(filter=firestore.FieldFilter("validatorId", "==", validator_id))
            .stream()
        ]
        collected = [
            r for r in rewards if r.get("status") == RewardStatus.COLLECTED.value
        ]
        pending_rewards = [
            r for r in rewards if r.get("status") != RewardStatus.COLLECTED.value
        ]
        return {
            "resolved": len(resolved),
            "approved": sum(
                1 for d in resolved if d.get("status") == DisputeStatus.APPROVED.value
            ),
            "rejected": sum(
                1 for d in resolved if d.get("status") == DisputeStatus.REJECTED.value
            ),
            "pendingQueue": len(
                DisputeService.list_validator_disputes(db, validator_id)
            ),
            "rewards": {
                "count": len(rewards),
                "collected": sum(r.get("amount", 0) for r in collected),
                "notCollected": sum(r.get("amount", 0) for r in pending_rewards),
            },
        }
