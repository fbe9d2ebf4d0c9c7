"""The dispute blueprint."""

from flask import Blueprint

bp = Blueprint("dispute", __name__, url_prefix="/disputes")
validator_bp = Blueprint("validator", __name__, url_prefix="/validator")

from . import routes  # noqa: E402
from .models import (  # noqa: E402
    Decision,
    Dispute,
    DisputeCategory,
    DisputeStatus,
    parse_dispute_input,
)
from .services import DisputeService, is_eligible_for_dispute  # noqa: E402

__all__ = [
    "Decision",
    "Dispute",
    "DisputeCategory",
    "DisputeService",
    "DisputeStatus",
    "is_eligible_for_dispute",
    "parse_dispute_input",
    "routes",
]
