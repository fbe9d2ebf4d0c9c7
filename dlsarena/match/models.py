"""Data models for the match blueprint."""

from __future__ import annotations

import datetime
from enum import Enum
from typing import Any

from dlsarena.core.types import FirestoreDocument


class MatchStatus(str, Enum):
    """Lifecycle states of a bracket match."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    DISPUTE = "dispute"
    BYE = "bye"


class Match(FirestoreDocument, total=False):
    """A match document in Firestore."""

    tournamentId: str
    round: int
    matchNumber: int
    players: list[str]
    winnerId: str
    status: str
    playedAt: Any
    date: str
    time: str
    player1Score: int
    player2Score: int
    matchCode: str


def as_utc(value: datetime.datetime) -> datetime.datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=datetime.timezone.utc)
    return value.astimezone(datetime.timezone.utc)


def match_played_at(match: dict[str, Any]) -> datetime.datetime | None:
    """Return when a match ended, in UTC, or None if it cannot be determined.

    ``playedAt`` may be a datetime (Firestore timestamps are datetimes) or an
    ISO-8601 string. Older documents only carry ``date`` (YYYY-MM-DD) and an
    optional ``time`` (HH:MM), read as UTC.
    """
    played_at = match.get("playedAt")
    if isinstance(played_at, datetime.datetime):
        return as_utc(played_at)
    if isinstance(played_at, str) and played_at:
        try:
            return as_utc(datetime.datetime.fromisoformat(played_at.replace("Z", "+00:00")))
        except ValueError:
            return None

    date_value = match.get("date")
    if isinstance(date_value, datetime.datetime):
        return as_utc(date_value)
    if not isinstance(date_value, str) or not date_value:
        return None
    time_value = match.get("time") or "00:00"
    try:
        parsed = datetime.datetime.strptime(
            f"{date_value[:10]} {time_value[:5]}", "%Y-%m-%d %H:%M"
        )
    except ValueError:
        return None
    return parsed.replace(tzinfo=datetime.timezone.utc)


def opponent_of(match: dict[str, Any], user_id: str) -> str | None:
    """Return the other player's id, or None if the user did not play."""
    players = [p for p in match.get("players") or [] if p]
    if user_id not in players:
        return None
    others = [p for p in players if p != user_id]
    return others[0] if others else None
