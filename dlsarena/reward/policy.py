"""Reward amount policies.

A policy is any callable taking the dispute being approved and returning the
reward amount in the canonical currency unit.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from flask import current_app

RewardPolicy = Callable[[Mapping[str, Any]], float]


def fixed_reward_policy(amount: float) -> RewardPolicy:
    """Return a policy paying the same amount for every approval."""
    if amount <= 0:
        raise ValueError(f"Reward amount must be positive, got {amount}.")

    def policy(dispute: Mapping[str, Any]) -> float:
        return amount

    return policy


def configured_reward_policy() -> RewardPolicy:
    """Return the fixed policy configured on the current app."""
    return fixed_reward_policy(float(current_app.config["VALIDATION_REWARD_AMOUNT"]))


def reward_amount(policy: RewardPolicy, dispute: Mapping[str, Any]) -> float:
    """Ask the policy for an amount and reject non-positive answers."""
    amount = policy(dispute)
    if isinstance(amount, bool) or not isinstance(amount, (int, float)) or amount <= 0:
        raise ValueError(f"Reward policy returned an invalid amount: {amount!r}.")
    return amount
