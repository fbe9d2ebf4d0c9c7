"""Service layer for match data access."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

from firebase_admin import firestore

from dlsarena.core.constants import MATCHES_COLLECTION

from .models import Match

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.client import Client


class MatchService:
    """Service class for match-related operations."""

    @staticmethod
    def get_match_by_id(db: Client, match_id: str) -> Match | None:
        """Fetch a single match by its ID."""
        if not match_id:
            return None
        match_doc = cast(
            "DocumentSnapshot", db.collection(MATCHES_COLLECTION).document(match_id).get()
        )
        if not match_doc.exists:
            return None
        data = cast("Match", match_doc.to_dict() or {})
        data["id"] = match_id
        return data

    @staticmethod
    def list_user_matches(db: Client, user_id: str) -> list[Match]:
        """Fetch every match the user appears in."""
        docs = (
            db.collection(MATCHES_COLLECTION)
            .where(filter=firestore.FieldFilter("players", "array_contains", user_id))
            .stream()
        )
        matches: list[Match] = []
        for doc in docs:
            data = cast("Match", doc.to_dict() or {})
            data["id"] = doc.id
            matches.append(data)
        return matches

    @staticmethod
    def list_tournament_matches(db: Client, tournament_id: str) -> list[Match]:
        """Fetch all match documents associated with the tournament_id."""
        docs = (
            db.collection(MATCHES_COLLECTION)
            .where(filter=firestore.FieldFilter("tournamentId", "==", tournament_id))
            .stream()
        )
        matches: list[Match] = []
        for doc in docs:
            data = cast("Match", doc.to_dict() or {})
            data["id"] = doc.id
            matches.append(data)
        return matches

    @staticmethod
    def result_updates(
        match: dict[str, Any], reporter_id: str, reporter_score: int, opponent_score: int
    ) -> dict[str, Any]:
        """Build the field updates that record a confirmed result on a match.

        Scores arrive from the reporter's point of view and are stored in the
        order of the match's ``players`` list.
        """
        players = list(match.get("players") or [])
        reporter_first = not players or players[0] == reporter_id
        if reporter_first:
            score1, score2 = reporter_score, opponent_score
        else:
            score1, score2 = opponent_score, reporter_score

        updates: dict[str, Any] = {
            "player1Score": score1,
            "player2Score": score2,
            "status": "completed",
        }
        if score1 != score2 and len(players) >= 2:
            updates["winnerId"] = players[0] if score1 > score2 else players[1]
        return updates
