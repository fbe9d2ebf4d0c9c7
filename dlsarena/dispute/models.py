"""Data models for the dispute blueprint."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, ClassVar, Optional, Union

from dlsarena.core.types import FirestoreDocument
from dlsarena.errors import AlreadyResolvedError, ValidationError


class DisputeStatus(str, Enum):
    """States of the dispute lifecycle."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        """Return True once no further transition is possible."""
        return not TRANSITIONS[self]


class DisputeCategory(str, Enum):
    """What a dispute is about."""

    MATCH_RESULT = "match_result"
    COMPLAINT = "complaint"

    @property
    def default_reason(self) -> str:
        """Short label stored when the reporter gives no reason."""
        if self is DisputeCategory.MATCH_RESULT:
            return "Match Result Submission"
        return "Gameplay issue/Complaint"


class Decision(str, Enum):
    """A resolver's verdict on a pending dispute."""

    APPROVE = "approve"
    REJECT = "reject"

    @classmethod
    def parse(cls, value: Any) -> Decision:
        """Accept ``approve``/``reject`` as well as the admin console's
        ``approved``/``rejected``."""
        if isinstance(value, Decision):
            return value
        normalized = str(value or "").strip().lower()
        aliases = {
            "approve": cls.APPROVE,
            "approved": cls.APPROVE,
            "reject": cls.REJECT,
            "rejected": cls.REJECT,
        }
        if normalized not in aliases:
            raise ValidationError(
                "The decision must be either 'approve' or 'reject'.", field="status"
            )
        return aliases[normalized]


TRANSITIONS: Mapping[DisputeStatus, Mapping[Decision, DisputeStatus]] = MappingProxyType(
    {
        DisputeStatus.PENDING: MappingProxyType(
            {
                Decision.APPROVE: DisputeStatus.APPROVED,
                Decision.REJECT: DisputeStatus.REJECTED,
            }
        ),
        DisputeStatus.APPROVED: MappingProxyType({}),
        DisputeStatus.REJECTED: MappingProxyType({}),
    }
)


def next_status(current: DisputeStatus, decision: Decision) -> DisputeStatus:
    """Apply a decision to a status, raising if the dispute is already settled."""
    try:
        return TRANSITIONS[current][decision]
    except KeyError:
        raise AlreadyResolvedError() from None


@dataclass(frozen=True)
class MatchResultInput:
    """A reporter's claimed final score, backed by a screenshot."""

    category: ClassVar[DisputeCategory] = DisputeCategory.MATCH_RESULT

    match_id: str
    player_score: int
    opponent_score: int
    proof_url: Optional[str] = None
    description: str = ""
    opponent_id: Optional[str] = None
    reason: Optional[str] = None


@dataclass(frozen=True)
class ComplaintInput:
    """A free-text complaint about how a match was played."""

    category: ClassVar[DisputeCategory] = DisputeCategory.COMPLAINT

    match_id: str
    description: str
    proof_url: Optional[str] = None
    opponent_id: Optional[str] = None
    reason: Optional[str] = None


DisputeInput = Union[MatchResultInput, ComplaintInput]


class Dispute(FirestoreDocument, total=False):
    """A dispute document in Firestore."""

    matchId: str
    reporterId: str
    opponentId: str
    tournamentId: Optional[str]
    category: str
    reason: str
    description: str
    proofUrl: Optional[str]
    playerScore: int
    opponentScore: int
    status: str
    resolvedBy: str
    resolverRole: str
    resolvedAt: Any
    adminComment: str
    rewardId: str

    # UI and calculated fields
    reporter: dict[str, Any]
    opponent: dict[str, Any]
    reward: Optional[dict[str, Any]]


def _parse_score(data: Mapping[str, Any], field: str) -> int:
    value = data.get(field)
    if value is None or value == "":
        raise ValidationError(
            "Both scores are required for a match result.", field=field
        )
    if isinstance(value, bool):
        raise ValidationError("Scores must be whole numbers.", field=field)
    if isinstance(value, str):
        value = value.strip()
        if not value.isdecimal():
            raise ValidationError(
                "Scores must be non-negative whole numbers.", field=field
            )
        value = int(value)
    elif isinstance(value, float):
        if not value.is_integer():
            raise ValidationError("Scores must be whole numbers.", field=field)
        value = int(value)
    elif not isinstance(value, int):
        raise ValidationError("Scores must be whole numbers.", field=field)
    if value < 0:
        raise ValidationError("Scores cannot be negative.", field=field)
    return value


def _optional_str(data: Mapping[str, Any], field: str) -> Optional[str]:
    value = data.get(field)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def parse_dispute_input(
    data: Mapping[str, Any], has_proof_file: bool = False
) -> DisputeInput:
    """Validate a raw submission and return the matching input variant.

    ``has_proof_file`` is set when the proof arrives as an uploaded file
    rather than as ``proofUrl``.
    """
    raw_category = _optional_str(data, "category")
    if not raw_category:
        raise ValidationError("A category is required.", field="category")
    try:
        category = DisputeCategory(raw_category)
    except ValueError:
        raise ValidationError(
            "The category must be 'match_result' or 'complaint'.", field="category"
        ) from None

    match_id = _optional_str(data, "matchId")
    if not match_id:
        raise ValidationError("A match must be selected.", field="matchId")

    description = str(data.get("description") or "").strip()
    proof_url = _optional_str(data, "proofUrl")
    opponent_id = _optional_str(data, "opponentId")
    reason = _optional_str(data, "reason")

    if category is DisputeCategory.MATCH_RESULT:
        player_score = _parse_score(data, "playerScore")
        opponent_score = _parse_score(data, "opponentScore")
        if not proof_url and not has_proof_file:
            raise ValidationError(
                "A screenshot of the final score is required for match results.",
                field="proofUrl",
            )
        return MatchResultInput(
            match_id=match_id,
            player_score=player_score,
            opponent_score=opponent_score,
            proof_url=proof_url,
            description=description,
            opponent_id=opponent_id,
            reason=reason,
        )

    if not description:
        raise ValidationError(
            "A description is required for complaints.", field="description"
        )
    return ComplaintInput(
        match_id=match_id,
        description=description,
        proof_url=proof_url,
        opponent_id=opponent_id,
        reason=reason,
    )
