"""Data models for the tournament blueprint."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Optional

from dlsarena.core.types import FirestoreDocument
from dlsarena.match.models import MatchStatus


class Tournament(FirestoreDocument, total=False):
    """A tournament document in Firestore."""

    title: str
    status: str
    maxPlayers: int
    players: list[str]
    hasGeneratedBracket: bool


def _as_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True)
class BracketMatch:
    """A match as shown in a tournament bracket."""

    id: str
    tournamentId: str
    round: int
    matchNumber: int
    players: list[str] = field(default_factory=list)
    winnerId: Optional[str] = None
    status: MatchStatus = MatchStatus.PENDING
    date: Optional[str] = None
    time: Optional[str] = None
    player1Score: Optional[int] = None
    player2Score: Optional[int] = None
    matchCode: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any], match_id: str | None = None) -> BracketMatch:
        """Build a bracket match from a Firestore document."""
        try:
            status = MatchStatus(data.get("status") or MatchStatus.PENDING.value)
        except ValueError:
            status = MatchStatus.PENDING
        return cls(
            id=match_id or data.get("id", ""),
            tournamentId=data.get("tournamentId", ""),
            round=_as_int(data.get("round"), 1),
            matchNumber=_as_int(data.get("matchNumber"), 0),
            players=[p for p in data.get("players") or [] if p],
            winnerId=data.get("winnerId"),
            status=status,
            date=data.get("date"),
            time=data.get("time"),
            player1Score=data.get("player1Score"),
            player2Score=data.get("player2Score"),
            matchCode=data.get("matchCode"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON responses."""
        data = asdict(self)
        data["status"] = self.status.value
        return data
