"""Service layer for validation rewards."""

from __future__ import annotations

import datetime
import logging
from typing import TYPE_CHECKING, Any, cast

from firebase_admin import firestore

from dlsarena.core.constants import (
    DEFAULT_CANONICAL_CURRENCY,
    REWARDS_COLLECTION,
    USERS_COLLECTION,
)
from dlsarena.currency.services import display_amount
from dlsarena.errors import AlreadyCollectedError, ForbiddenError, NotFoundError

from .models import RewardStatus, ValidationReward

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.document import DocumentReference
    from google.cloud.firestore_v1.transaction import Transaction


class RewardService:
    """Service class for reward-related operations."""

    @staticmethod
    def claim_reward(
        db: Client,
        reward_id: str,
        claimant_id: str,
        now: datetime.datetime | None = None,
    ) -> dict[str, Any]:
        """Credit an uncollected reward to its owner's wallet exactly once."""
        reward_ref = db.collection(REWARDS_COLLECTION).document(reward_id)
        user_ref = db.collection(USERS_COLLECTION).document(claimant_id)
        transaction = db.transaction()
        claim = firestore.transactional(RewardService._claim_in_transaction)
        result = claim(
            transaction,
            reward_ref,
            user_ref,
            claimant_id,
            now or datetime.datetime.now(datetime.timezone.utc),
        )
        logging.info(
            f"Reward {reward_id} collected by {claimant_id}; "
            f"balance is now {result['newBalance']}."
        )
        return result

    @staticmethod
    def _claim_in_transaction(
        transaction: Transaction,
        reward_ref: DocumentReference,
        user_ref: DocumentReference,
        claimant_id: str,
        now: datetime.datetime,
    ) -> dict[str, Any]:
        reward_snap = cast("DocumentSnapshot", reward_ref.get(transaction=transaction))
        if not reward_snap.exists:
            raise NotFoundError("Reward not found.")
        reward = reward_snap.to_dict() or {}
        if reward.get("validatorId") != claimant_id:
            raise ForbiddenError("This reward belongs to another user.")
        if reward.get("status") == RewardStatus.COLLECTED.value:
            raise AlreadyCollectedError()

        user_snap = cast("DocumentSnapshot", user_ref.get(transaction=transaction))
        if not user_snap.exists:
            raise NotFoundError("User not found.")
        balance = (user_snap.to_dict() or {}).get("balance") or 0
        new_balance = balance + reward.get("amount", 0)

        updates = {"status": RewardStatus.COLLECTED.value, "collectedAt": now}
        transaction.update(reward_ref, updates)
        transaction.update(user_ref, {"balance": new_balance})
        return {
            "reward": {**reward, **updates, "id": reward_ref.id},
            "newBalance": new_balance,
        }

    @staticmethod
    def list_user_rewards(
        db: Client,
        user_id: str,
        reward_type: str | None = None,
        preferred_currency: str | None = None,
        canonical_currency: str = DEFAULT_CANONICAL_CURRENCY,
    ) -> list[ValidationReward]:
        """List a user's rewards, newest first, formatted for display."""
        query: Any = db.collection(REWARDS_COLLECTION).where(
            filter=firestore.FieldFilter("validatorId", "==", user_id)
        )
        if reward_type:
            query = query.where(filter=firestore.FieldFilter("type", "==", reward_type))

        rewards: list[ValidationReward] = []
        for doc in query.stream():
            data = cast("ValidationReward", doc.to_dict() or {})
            data["id"] = doc.id
            data["formattedAmount"] = display_amount(
                data.get("amount", 0),
                preferred_currency,
                data.get("currency") or canonical_currency,
            )
            rewards.append(data)

        epoch = datetime.datetime.min.replace(tzinfo=datetime.timezone.utc)

        def created(reward: ValidationReward) -> datetime.datetime:
            value = reward.get("createdAt")
            if not isinstance(value, datetime.datetime):
                return epoch
            return value if value.tzinfo else value.replace(tzinfo=datetime.timezone.utc)

        rewards.sort(key=created, reverse=True)
        return rewards
