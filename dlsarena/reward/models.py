"""Data models for the reward blueprint."""

from __future__ import annotations

from enum import Enum
from typing import Any

from dlsarena.core.types import FirestoreDocument

REWARD_TYPE_VALIDATION = "validation"


class RewardStatus(str, Enum):
    """Whether a reward has been credited to its owner's wallet."""

    NOT_COLLECTED = "not_collected"
    COLLECTED = "collected"


class ValidationReward(FirestoreDocument, total=False):
    """A reward earned by a validator for approving a dispute."""

    type: str
    disputeId: str
    validatorId: str
    amount: float
    currency: str
    status: str
    collectedAt: Any

    # UI and calculated fields
    formattedAmount: str


def build_validation_reward(
    dispute_id: str, validator_id: str, amount: float, currency: str, now: Any
) -> ValidationReward:
    """Return a new, uncollected validation reward document."""
    return {
        "type": REWARD_TYPE_VALIDATION,
        "disputeId": dispute_id,
        "validatorId": validator_id,
        "amount": amount,
        "currency": currency,
        "status": RewardStatus.NOT_COLLECTED.value,
        "createdAt": now,
    }
