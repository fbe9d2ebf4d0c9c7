"""Common utilities for tests."""

from __future__ import annotations

import datetime
import unittest
from typing import Any
from unittest.mock import MagicMock, patch

import requests
from mockfirestore import MockFirestore

from dlsarena import create_app
from dlsarena.currency.rates import ExchangeRateCache
from tests.mock_utils import MockTransaction, make_db, patch_mockfirestore

__all__ = [
    "ADMIN_ID",
    "NOW",
    "OPPONENT_ID",
    "PLAYER_ID",
    "VALIDATOR_ID",
    "FirebaseAppTestCase",
    "MockTransaction",
    "existing_docs",
    "make_db",
    "patch_mockfirestore",
    "seed_match",
    "seed_users",
]

NOW = datetime.datetime(2024, 6, 1, 12, 0, tzinfo=datetime.timezone.utc)

PLAYER_ID = "player1"
OPPONENT_ID = "player2"
VALIDATOR_ID = "validator1"
ADMIN_ID = "admin1"


def seed_users(db: MockFirestore) -> None:
    """Create a reporter, an opponent, a validator and an admin."""
    db.collection("users").document(PLAYER_ID).set(
        {"username": "kofi", "avatar": "", "role": "player", "balance": 0}
    )
    db.collection("users").document(OPPONENT_ID).set(
        {"username": "amina", "avatar": "", "role": "player", "balance": 0}
    )
    db.collection("users").document(VALIDATOR_ID).set(
        {
            "username": "val",
            "avatar": "",
            "role": "validator",
            "balance": 1000,
            "preferredCurrency": "EUR",
        }
    )
    db.collection("users").document(ADMIN_ID).set(
        {"username": "boss", "avatar": "", "isAdmin": True, "balance": 0}
    )


def seed_match(
    db: MockFirestore,
    match_id: str = "match1",
    played_at: Any = None,
    players: list[str] | None = None,
    **extra: Any,
) -> str:
    """Create a completed match between the two seeded players."""
    data = {
        "tournamentId": "t1",
        "round": 1,
        "matchNumber": 1,
        "players": players if players is not None else [PLAYER_ID, OPPONENT_ID],
        "status": "completed",
        "playedAt": played_at or NOW - datetime.timedelta(minutes=5),
        "player1Score": 1,
        "player2Score": 2,
        "winnerId": OPPONENT_ID,
    }
    data.update(extra)
    db.collection("matches").document(match_id).set(data)
    return match_id


class FirebaseAppTestCase(unittest.TestCase):
    """Base test case wiring the app to an in-memory Firestore."""

    def setUp(self) -> None:
        """Set up a test client and a mock Firebase environment."""
        self.mock_db = make_db()
        seed_users(self.mock_db)

        patchers = {
            "init_app": patch("firebase_admin.initialize_app"),
            "client": patch(
                "firebase_admin.firestore.client", return_value=self.mock_db
            ),
            "transactional": patch(
                "firebase_admin.firestore.transactional", side_effect=lambda x: x
            ),
            "verify_id_token": patch("firebase_admin.auth.verify_id_token"),
        }
        self.mocks = {name: p.start() for name, p in patchers.items()}
        for p in patchers.values():
            self.addCleanup(p.stop)

        self.app = create_app({"TESTING": True, "SERVER_NAME": "localhost"})
        offline = MagicMock()
        offline.get.side_effect = requests.exceptions.ConnectionError("offline")
        self.app.extensions["exchange_rates"] = ExchangeRateCache(session=offline)
        self.client = self.app.test_client()
        self.app_context = self.app.app_context()
        self.app_context.push()
        self.addCleanup(self.app_context.pop)

    def login_as(self, uid: str) -> dict[str, str]:
        """Make the mock token verify as ``uid`` and return auth headers."""
        self.mocks["verify_id_token"].return_value = {"uid": uid}
        return {"Authorization": "Bearer mock-token"}


def existing_docs(db: MockFirestore, collection: str) -> list[dict[str, Any]]:
    """Return the stored documents, skipping references that were never written."""
    return [
        {**(doc.to_dict() or {}), "id": doc.id}
        for doc in db.collection(collection).stream()
        if doc.exists
    ]
