"""The reward blueprint."""

from flask import Blueprint

bp = Blueprint("reward", __name__, url_prefix="/rewards")

from . import routes  # noqa: E402
from .models import RewardStatus, ValidationReward  # noqa: E402
from .policy import fixed_reward_policy  # noqa: E402
from .services import RewardService  # noqa: E402

__all__ = [
    "RewardService",
    "RewardStatus",
    "ValidationReward",
    "fixed_reward_policy",
    "routes",
]
