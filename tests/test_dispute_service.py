"""Tests for DisputeService against an in-memory Firestore."""

from __future__ import annotations

import datetime
import io
import threading
import unittest
from unittest.mock import MagicMock, patch

from werkzeug.datastructures import FileStorage

from dlsarena.dispute.models import Decision, parse_dispute_input
from dlsarena.dispute.services import DisputeService
from dlsarena.errors import (
    AlreadyResolvedError,
    ForbiddenError,
    InvalidAttachmentError,
    NotFoundError,
    ValidationError,
)
from dlsarena.reward.policy import fixed_reward_policy
from tests.conftest import (
    ADMIN_ID,
    NOW,
    OPPONENT_ID,
    PLAYER_ID,
    VALIDATOR_ID,
    existing_docs,
    make_db,
    seed_match,
    seed_users,
)

MATCH_RESULT = {
    "category": "match_result",
    "matchId": "match1",
    "playerScore": 3,
    "opponentScore": 1,
    "proofUrl": "https://cdn.example.com/score.jpg",
}


class DisputeServiceTestCase(unittest.TestCase):
    """Base wiring for dispute service tests."""

    def setUp(self) -> None:
        """Seed users and a recent match."""
        self.db = make_db()
        seed_users(self.db)
        seed_match(self.db)

        transactional = patch(
            "firebase_admin.firestore.transactional", side_effect=lambda x: x
        )
        transactional.start()
        self.addCleanup(transactional.stop)

    def file_dispute(self, data: dict | None = None, reporter: str = PLAYER_ID) -> dict:
        return DisputeService.create_dispute(
            self.db, parse_dispute_input(data or MATCH_RESULT), reporter, now=NOW
        )


class CreateDisputeTestCase(DisputeServiceTestCase):
    """Test case for DisputeService.create_dispute."""

    def test_creates_pending_dispute(self) -> None:
        """A valid match result is stored as pending with derived fields."""
        dispute = self.file_dispute()

        self.assertEqual(dispute["status"], "pending")
        self.assertEqual(dispute["opponentId"], OPPONENT_ID)
        self.assertEqual(dispute["tournamentId"], "t1")
        self.assertEqual(dispute["reason"], "Match Result Submission")
        self.assertEqual((dispute["playerScore"], dispute["opponentScore"]), (3, 1))

        stored = self.db.collection("disputes").document(dispute["id"]).get().to_dict()
        self.assertEqual(stored["reporterId"], PLAYER_ID)
        self.assertEqual(stored["status"], "pending")

    def test_complaint_has_no_scores(self) -> None:
        """Complaints never store scores."""
        dispute = self.file_dispute(
            {"category": "complaint", "matchId": "match1", "description": "lag"}
        )
        self.assertNotIn("playerScore", dispute)
        self.assertEqual(dispute["reason"], "Gameplay issue/Complaint")

    def test_window_is_checked_server_side(self) -> None:
        """A match older than the window is refused even if the client offered it."""
        seed_match(self.db, "old", played_at=NOW - datetime.timedelta(minutes=30))
        with self.assertRaises(ValidationError) as ctx:
            self.file_dispute({**MATCH_RESULT, "matchId": "old"})
        self.assertEqual(ctx.exception.field, "matchId")

    def test_unknown_match(self) -> None:
        """Disputing a missing match is a 404."""
        with self.assertRaises(NotFoundError):
            self.file_dispute({**MATCH_RESULT, "matchId": "nope"})

    def test_reporter_must_have_played(self) -> None:
        """Outsiders cannot dispute someone else's match."""
        with self.assertRaises(ForbiddenError):
            self.file_dispute(reporter=VALIDATOR_ID)

    def test_opponent_must_match(self) -> None:
        """A stated opponent must be the other participant."""
        with self.assertRaises(ValidationError) as ctx:
            self.file_dispute({**MATCH_RESULT, "opponentId": VALIDATOR_ID})
        self.assertEqual(ctx.exception.field, "opponentId")

    def test_one_pending_dispute_per_match(self) -> None:
        """The same reporter cannot stack pending disputes on one match."""
        self.file_dispute()
        with self.assertRaises(ValidationError):
            self.file_dispute()

    def test_http_proof_url_rejected(self) -> None:
        """Proof links must use https."""
        with self.assertRaises(InvalidAttachmentError):
            self.file_dispute({**MATCH_RESULT, "proofUrl": "http://x/p.jpg"})

    @patch("dlsarena.dispute.services.upload_proof_image")
    def test_bad_attachment_stops_before_any_write(self, mock_upload: MagicMock) -> None:
        """An oversized file is rejected before upload or insert."""
        big = FileStorage(
            stream=io.BytesIO(b"\x00" * (5 * 1024 * 1024 + 1)),
            filename="proof.png",
            content_type="image/png",
        )
        data = {k: v for k, v in MATCH_RESULT.items() if k != "proofUrl"}
        with self.assertRaises(InvalidAttachmentError):
            DisputeService.create_dispute(
                self.db,
                parse_dispute_input(data, has_proof_file=True),
                PLAYER_ID,
                proof_file=big,
                now=NOW,
            )
        mock_upload.assert_not_called()
        self.assertEqual(existing_docs(self.db, "disputes"), [])

    @patch("dlsarena.dispute.services.upload_proof_image")
    def test_uploaded_proof_url_is_stored(self, mock_upload: MagicMock) -> None:
        """The storage URL of an uploaded file becomes proofUrl."""
        mock_upload.return_value = "https://storage.example.com/p.jpg"
        upload = FileStorage(
            stream=io.BytesIO(b"\xff\xd8" * 100),
            filename="p.jpg",
            content_type="image/jpeg",
        )
        data = {k: v for k, v in MATCH_RESULT.items() if k != "proofUrl"}
        dispute = DisputeService.create_dispute(
            self.db,
            parse_dispute_input(data, has_proof_file=True),
            PLAYER_ID,
            proof_file=upload,
            now=NOW,
        )
        self.assertEqual(dispute["proofUrl"], "https://storage.example.com/p.jpg")
        mock_upload.assert_called_once_with(PLAYER_ID, upload)


class ListDisputesTestCase(DisputeServiceTestCase):
    """Test case for the dispute listings."""

    def test_recent_matches_for_dispute(self) -> None:
        """Only in-window matches with an opponent are offered."""
        seed_match(self.db, "old", played_at=NOW - datetime.timedelta(hours=2))
        seed_match(self.db, "bye", players=[PLAYER_ID], status="bye")

        matches = DisputeService.get_recent_matches_for_dispute(
            self.db, PLAYER_ID, now=NOW
        )
        self.assertEqual([m["id"] for m in matches], ["match1"])
        self.assertEqual(matches[0]["opponent"]["username"], "amina")

    def test_user_disputes_newest_first(self) -> None:
        """The reporter's list is ordered newest first."""
        seed_match(self.db, "match2", played_at=NOW - datetime.timedelta(minutes=1))
        first = self.file_dispute()
        second = DisputeService.create_dispute(
            self.db,
            parse_dispute_input({**MATCH_RESULT, "matchId": "match2"}),
            PLAYER_ID,
            now=NOW + datetime.timedelta(minutes=1),
        )
        disputes = DisputeService.list_user_disputes(self.db, PLAYER_ID)
        self.assertEqual([d["id"] for d in disputes], [second["id"], first["id"]])
        self.assertEqual(disputes[0]["reporter"]["username"], "kofi")

    def test_validator_queue_excludes_own_disputes(self) -> None:
        """Validators never see disputes they are a party to."""
        seed_match(self.db, "vmatch", players=[VALIDATOR_ID, OPPONENT_ID])
        mine = self.file_dispute()
        DisputeService.create_dispute(
            self.db,
            parse_dispute_input({**MATCH_RESULT, "matchId": "vmatch"}),
            VALIDATOR_ID,
            now=NOW,
        )
        queue = DisputeService.list_validator_disputes(self.db, VALIDATOR_ID)
        self.assertEqual([d["id"] for d in queue], [mine["id"]])

    def test_admin_listing_filters_by_status(self) -> None:
        """The admin listing accepts a status filter and rejects unknown ones."""
        self.file_dispute()
        self.assertEqual(len(DisputeService.list_all_disputes(self.db)), 1)
        self.assertEqual(len(DisputeService.list_all_disputes(self.db, "approved")), 0)
        with self.assertRaises(ValidationError):
            DisputeService.list_all_disputes(self.db, "archived")

    def test_get_dispute_not_found(self) -> None:
        """A missing dispute is a 404."""
        with self.assertRaises(NotFoundError):
            DisputeService.get_dispute(self.db, "missing")


class ResolveDisputeTestCase(DisputeServiceTestCase):
    """Test case for DisputeService.resolve_dispute."""

    def resolve(self, dispute_id: str, decision: str = "approve", **kwargs) -> dict:
        params = {
            "comment": "confirmed by screenshot",
            "resolver_id": VALIDATOR_ID,
            "resolver_role": "validator",
            "reward_policy": fixed_reward_policy(500),
            "now": NOW,
        }
        params.update(kwargs)
        return DisputeService.resolve_dispute(self.db, dispute_id, decision, **params)

    def test_validator_approval_creates_reward(self) -> None:
        """Approving as a validator issues an uncollected reward."""
        dispute = self.file_dispute()
        result = self.resolve(dispute["id"])

        self.assertEqual(result["status"], "approved")
        self.assertEqual(result["resolvedBy"], VALIDATOR_ID)
        reward = result["reward"]
        self.assertEqual(reward["amount"], 500)
        self.assertEqual(reward["status"], "not_collected")
        self.assertEqual(reward["validatorId"], VALIDATOR_ID)

        stored = self.db.collection("rewards").document(reward["id"]).get().to_dict()
        self.assertEqual(stored["disputeId"], dispute["id"])
        stored_dispute = (
            self.db.collection("disputes").document(dispute["id"]).get().to_dict()
        )
        self.assertEqual(stored_dispute["rewardId"], reward["id"])
        self.assertEqual(stored_dispute["adminComment"], "confirmed by screenshot")

    def test_approved_match_result_updates_match(self) -> None:
        """The claimed score replaces the recorded one."""
        dispute = self.file_dispute()
        self.resolve(dispute["id"])

        match = self.db.collection("matches").document("match1").get().to_dict()
        self.assertEqual((match["player1Score"], match["player2Score"]), (3, 1))
        self.assertEqual(match["winnerId"], PLAYER_ID)
        self.assertEqual(match["status"], "completed")

    def test_rejection_creates_no_reward(self) -> None:
        """Rejections leave the match and wallet alone."""
        dispute = self.file_dispute()
        result = self.resolve(dispute["id"], "reject")

        self.assertEqual(result["status"], "rejected")
        self.assertIsNone(result["reward"])
        self.assertEqual(existing_docs(self.db, "rewards"), [])
        match = self.db.collection("matches").document("match1").get().to_dict()
        self.assertEqual(match["winnerId"], OPPONENT_ID)

    def test_admin_approval_creates_no_reward(self) -> None:
        """Only validators are paid for approvals."""
        dispute = self.file_dispute()
        result = self.resolve(
            dispute["id"], "approved", resolver_id=ADMIN_ID, resolver_role="admin"
        )
        self.assertEqual(result["status"], "approved")
        self.assertIsNone(result["reward"])

    def test_second_resolution_fails(self) -> None:
        """Once resolved, a dispute cannot be resolved again."""
        dispute = self.file_dispute()
        self.resolve(dispute["id"])
        with self.assertRaises(AlreadyResolvedError):
            self.resolve(dispute["id"], "reject", resolver_id=ADMIN_ID)

        stored = self.db.collection("disputes").document(dispute["id"]).get().to_dict()
        self.assertEqual(stored["status"], "approved")
        self.assertEqual(len(existing_docs(self.db, "rewards")), 1)

    def test_concurrent_resolutions_have_one_winner(self) -> None:
        """Two resolvers racing on one dispute: one wins, one conflicts."""
        dispute = self.file_dispute()
        commit_lock = threading.Lock()

        def serialized(func):
            def run(*args, **kwargs):
                with commit_lock:
                    return func(*args, **kwargs)

            return run

        outcomes: dict[str, object] = {}
        start = threading.Barrier(2)

        def attempt(resolver_id: str, decision: str) -> None:
            start.wait()
            try:
                outcomes[resolver_id] = self.resolve(
                    dispute["id"], decision, resolver_id=resolver_id
                )
            except AlreadyResolvedError as e:
                outcomes[resolver_id] = e

        with patch("firebase_admin.firestore.transactional", side_effect=serialized):
            threads = [
                threading.Thread(target=attempt, args=(VALIDATOR_ID, "approve")),
                threading.Thread(target=attempt, args=(ADMIN_ID, "reject")),
            ]
            for thread in threads:
                thread.start()
            for thread in threads:
                thread.join()

        winners = [o for o in outcomes.values() if isinstance(o, dict)]
        losers = [o for o in outcomes.values() if isinstance(o, AlreadyResolvedError)]
        self.assertEqual((len(winners), len(losers)), (1, 1))
        stored = self.db.collection("disputes").document(dispute["id"]).get().to_dict()
        self.assertEqual(stored["status"], winners[0]["status"])

    def test_comment_required(self) -> None:
        """A blank comment is rejected before anything is read."""
        dispute = self.file_dispute()
        with self.assertRaises(ValidationError) as ctx:
            self.resolve(dispute["id"], comment="   ")
        self.assertEqual(ctx.exception.field, "comment")

    def test_party_cannot_resolve(self) -> None:
        """Players cannot rule on their own dispute."""
        dispute = self.file_dispute()
        with self.assertRaises(ForbiddenError):
            self.resolve(dispute["id"], resolver_id=OPPONENT_ID)

    def test_missing_dispute(self) -> None:
        """Resolving a missing dispute is a 404."""
        with self.assertRaises(NotFoundError):
            self.resolve("missing")

    def test_notification_is_queued(self) -> None:
        """The reporter gets an in-app notification."""
        dispute = self.file_dispute()
        self.resolve(dispute["id"], "reject")
        notes = existing_docs(self.db, "notifications")
        self.assertEqual(len(notes), 1)
        self.assertEqual(notes[0]["userId"], PLAYER_ID)
        self.assertEqual(notes[0]["status"], "rejected")

    def test_reads_use_the_transaction(self) -> None:
        """The dispute is read inside the transaction it is written in."""
        transaction = MagicMock()
        dispute_ref = MagicMock()
        dispute_ref.id = "d1"
        snapshot = MagicMock()
        snapshot.exists = True
        snapshot.to_dict.return_value = {
            "status": "pending",
            "category": "complaint",
            "reporterId": PLAYER_ID,
            "opponentId": OPPONENT_ID,
        }
        dispute_ref.get.return_value = snapshot

        DisputeService._resolve_in_transaction(
            transaction,
            self.db,
            dispute_ref,
            MagicMock(),
            MagicMock(),
            Decision.REJECT,
            "no evidence",
            VALIDATOR_ID,
            "validator",
            None,
            NOW,
            "XOF",
        )
        dispute_ref.get.assert_called_with(transaction=transaction)
        self.assertEqual(transaction.update.call_args_list[0][0][0], dispute_ref)
        self.assertEqual(
            transaction.update.call_args_list[0][0][1]["status"], "rejected"
        )

    def test_validator_stats(self) -> None:
        """Stats count decisions, the open queue and reward totals."""
        dispute = self.file_dispute()
        self.resolve(dispute["id"])
        stats = DisputeService.get_validator_stats(self.db, VALIDATOR_ID)
        self.assertEqual(stats["resolved"], 1)
        self.assertEqual(stats["approved"], 1)
        self.assertEqual(stats["pendingQueue"], 0)
        self.assertEqual(stats["rewards"]["notCollected"], 500)
        self.assertEqual(stats["rewards"]["collected"], 0)


if __name__ == "__main__":
    unittest.main()
