"""Service layer for tournaments and their brackets."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

from dlsarena.core.constants import TOURNAMENTS_COLLECTION
from dlsarena.errors import NotFoundError
from dlsarena.match.services import MatchService

from .models import BracketMatch, Tournament

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.client import Client


def round_label(round_number: int, total_rounds: int) -> str:
    """Name a round counted from the end of the bracket."""
    if round_number == total_rounds:
        return "Final"
    if round_number == total_rounds - 1:
        return "Semi-finals"
    return f"Round {round_number}"


def group_by_round(matches: list[BracketMatch]) -> list[dict[str, Any]]:
    """Group matches into rounds 1..last, keeping empty rounds."""
    if not matches:
        return []
    total_rounds = max(m.round for m in matches)
    rounds: list[dict[str, Any]] = []
    for number in range(1, total_rounds + 1):
        in_round = sorted(
            (m for m in matches if m.round == number), key=lambda m: m.matchNumber
        )
        rounds.append(
            {
                "round": number,
                "label": round_label(number, total_rounds),
                "matches": [m.to_dict() for m in in_round],
            }
        )
    return rounds


class TournamentService:
    """Service class for tournament-related operations."""

    @staticmethod
    def get_tournament(db: Client, tournament_id: str) -> Tournament:
        """Fetch a tournament or raise NotFoundError."""
        doc = cast(
            "DocumentSnapshot",
            db.collection(TOURNAMENTS_COLLECTION).document(tournament_id).get(),
        )
        if not doc.exists:
            raise NotFoundError("Tournament not found.")
        data = cast("Tournament", doc.to_dict() or {})
        data["id"] = tournament_id
        return data

    @staticmethod
    def get_bracket(db: Client, tournament_id: str) -> list[BracketMatch]:
        """Return the bracket's matches ordered by round and match number."""
        tournament = TournamentService.get_tournament(db, tournament_id)
        if not tournament.get("hasGeneratedBracket"):
            raise NotFoundError("No bracket has been generated for this tournament.")
        matches = [
            BracketMatch.from_dict(m, m.get("id"))
            for m in MatchService.list_tournament_matches(db, tournament_id)
        ]
        matches.sort(key=lambda m: (m.round, m.matchNumber))
        return matches
