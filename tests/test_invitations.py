"""Tests for invitation responses and the waitlist."""

from __future__ import annotations

import threading
import unittest

from matchday.event.services import InvitationService
from matchday.errors import (
    ForbiddenError,
    NotFoundError,
    RetryExhaustedError,
    ValidationError,
)
from tests.mock_utils import (
    TransactionalMockFirestore,
    exhausted_transactional,
    mock_firestore_module,
    patch_firestore,
    serialized_transactional,
)

OWNER_ID = "organizer"
EVENT_ID = "event1"


class EventTestCase(unittest.TestCase):
    """Shared fixture: an event with twelve invited players."""

    def setUp(self) -> None:
        """Set up an event with twelve invited players and room for ten."""
        self.db = TransactionalMockFirestore()
        self.firestore = mock_firestore_module(self.db)
        patch_firestore(self, self.firestore)
        self.event_ref = self.db.collection("matches").document(EVENT_ID)
        self._seed_event()

    def _seed_event(self, **overrides) -> None:
        data = {
            "title": "Team A vs Team B",
            "ownerUid": OWNER_ID,
            "teams": {
                "teamA": {"players": [f"p{i}" for i in range(1, 7)]},
                "teamB": {"players": [f"p{i}" for i in range(7, 13)]},
            },
            "availablePlayers": [],
            "maxPlayers": 10,
            "confirmedCount": 0,
            "declinedCount": 0,
            "maybeCount": 0,
            "waitlist": [],
        }
        data.update(overrides)
        self.event_ref.set(data)

    def _event(self) -> dict:
        return self.event_ref.get().to_dict()

    def _respond(self, participant_id: str, response: str) -> dict:
        return InvitationService.respond(EVENT_ID, participant_id, response, db=self.db)

    def _fill(self, count: int = 10) -> None:
        for i in range(1, count + 1):
            self._respond(f"p{i}", "confirmed")


class InvitationServiceTestCase(EventTestCase):
    """Test case for the InvitationService."""

    def test_confirmation_past_capacity_joins_waitlist(self) -> None:
        self._fill()
        self.assertEqual(self._event()["confirmedCount"], 10)

        result = self._respond("p11", "confirmed")

        self.assertTrue(result["waitlisted"])
        event = self._event()
        self.assertEqual(event["confirmedCount"], 10)
        self.assertEqual(event["waitlist"], ["p11"])
        invitation = self.event_ref.collection("invitations").document("p11").get()
        self.assertEqual(invitation.to_dict()["response"], "confirmed")

    def test_changing_response_moves_counters(self) -> None:
        self._respond("p1", "confirmed")
        result = self._respond("p1", "declined")
        self.assertEqual(result["previousResponse"], "confirmed")

        event = self._event()
        self.assertEqual((event["confirmedCount"], event["declinedCount"]), (0, 1))

        self._respond("p1", "maybe")
        event = self._event()
        self.assertEqual(
            (event["confirmedCount"], event["declinedCount"], event["maybeCount"]),
            (0, 0, 1),
        )

    def test_repeating_a_response_counts_once(self) -> None:
        self._respond("p1", "confirmed")
        result = self._respond("p1", "confirmed")

        self.assertEqual(result["previousResponse"], "confirmed")
        self.assertEqual(self._event()["confirmedCount"], 1)

    def test_waitlisted_player_declining_leaves_confirmed_count(self) -> None:
        self._fill()
        self._respond("p11", "confirmed")

        self._respond("p11", "declined")

        event = self._event()
        self.assertEqual(event["confirmedCount"], 10)
        self.assertEqual(event["declinedCount"], 1)
        self.assertEqual(event["waitlist"], [])

    def test_waitlisted_player_confirming_again_stays_queued_once(self) -> None:
        self._fill()
        self._respond("p11", "confirmed")

        result = self._respond("p11", "confirmed")

        self.assertTrue(result["waitlisted"])
        self.assertEqual(self._event()["waitlist"], ["p11"])
        self.assertEqual(self._event()["confirmedCount"], 10)

    def test_freed_spot_is_not_filled_automatically(self) -> None:
        self._fill()
        self._respond("p11", "confirmed")

        self._respond("p1", "declined")

        event = self._event()
        self.assertEqual(event["confirmedCount"], 9)
        self.assertEqual(event["waitlist"], ["p11"])

    def test_confirming_with_free_spot_leaves_waitlist(self) -> None:
        self._fill()
        self._respond("p11", "confirmed")
        self._respond("p1", "declined")

        result = self._respond("p11", "confirmed")

        self.assertFalse(result["waitlisted"])
        event = self._event()
        self.assertEqual(event["confirmedCount"], 10)
        self.assertEqual(event["waitlist"], [])

    def test_no_capacity_counts_everyone(self) -> None:
        self._seed_event(maxPlayers=None)
        self._fill(12)

        event = self._event()
        self.assertEqual(event["confirmedCount"], 12)
        self.assertEqual(event["waitlist"], [])

    def test_counters_match_invitations(self) -> None:
        responses = ["confirmed", "declined", "maybe"]
        for i in range(1, 13):
            self._respond(f"p{i}", responses[i % 3])
        self._respond("p3", "declined")

        event = self._event()
        tally = {"confirmed": 0, "declined": 0, "maybe": 0}
        for invitation in InvitationService.list_invitations(EVENT_ID, db=self.db):
            tally[invitation["response"]] += 1
        self.assertEqual(event["confirmedCount"], tally["confirmed"])
        self.assertEqual(event["declinedCount"], tally["declined"])
        self.assertEqual(event["maybeCount"], tally["maybe"])

    def test_respond_errors(self) -> None:
        with self.assertRaises(ForbiddenError):
            self._respond("stranger", "confirmed")
        with self.assertRaises(ValidationError):
            self._respond("p1", "pending")
        with self.assertRaises(NotFoundError):
            InvitationService.respond("missing", "p1", "confirmed", db=self.db)

    def test_respond_retry_exhausted(self) -> None:
        self.firestore.transactional = exhausted_transactional

        with self.assertRaises(RetryExhaustedError):
            self._respond("p1", "confirmed")
        self.assertEqual(self._event()["confirmedCount"], 0)

    def test_concurrent_confirmations_never_exceed_capacity(self) -> None:
        players = [f"x{i}" for i in range(1, 21)]
        self._seed_event(availablePlayers=players)
        self.firestore.transactional = serialized_transactional(threading.Lock())

        errors = []

        def confirm(uid: str) -> None:
            try:
                self._respond(uid, "confirmed")
            except Exception as e:  # noqa: BLE001
                errors.append(e)

        threads = [threading.Thread(target=confirm, args=(uid,)) for uid in players]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(errors, [])
        event = self._event()
        self.assertEqual(event["confirmedCount"], 10)
        self.assertEqual(len(event["waitlist"]), 10)
        self.assertEqual(len(set(event["waitlist"])), 10)

    def test_zero_capacity_waitlists_every_confirmation(self) -> None:
        self._seed_event(maxPlayers=0)

        result = self._respond("p1", "confirmed")

        self.assertTrue(result["waitlisted"])
        event = self._event()
        self.assertEqual(event["confirmedCount"], 0)
        self.assertEqual(event["waitlist"], ["p1"])

        result = InvitationService.promote_from_waitlist(EVENT_ID, OWNER_ID, db=self.db)
        self.assertEqual(result["promoted"], [])


class WaitlistAndInvitesTestCase(EventTestCase):
    """Test case for organizer actions on an event."""

    def test_promote_fills_free_spots_in_order(self) -> None:
        self._fill()
        self._respond("p11", "confirmed")
        self._respond("p12", "confirmed")
        self._respond("p1", "declined")

        result = InvitationService.promote_from_waitlist(EVENT_ID, OWNER_ID, db=self.db)

        self.assertEqual(result["promoted"], ["p11"])
        event = self._event()
        self.assertEqual(event["confirmedCount"], 10)
        self.assertEqual(event["waitlist"], ["p12"])

    def test_promote_when_full_does_nothing(self) -> None:
        self._fill()
        self._respond("p11", "confirmed")

        result = InvitationService.promote_from_waitlist(EVENT_ID, OWNER_ID, db=self.db)

        self.assertEqual(result["promoted"], [])
        self.assertEqual(self._event()["waitlist"], ["p11"])

    def test_concurrent_promotions_promote_each_player_once(self) -> None:
        self._fill()
        self._respond("p11", "confirmed")
        self._respond("p12", "confirmed")
        self.firestore.transactional = serialized_transactional(threading.Lock())

        promoted = []
        errors = []

        def promote() -> None:
            try:
                result = InvitationService.promote_from_waitlist(
                    EVENT_ID, OWNER_ID, db=self.db
                )
                promoted.extend(result["promoted"])
            except Exception as e:  # noqa: BLE001
                errors.append(e)

        def decline(uid: str) -> None:
            try:
                self._respond(uid, "declined")
            except Exception as e:  # noqa: BLE001
                errors.append(e)

        threads = [threading.Thread(target=promote) for _ in range(3)]
        threads += [
            threading.Thread(target=decline, args=(uid,)) for uid in ("p1", "p2")
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(errors, [])
        event = self._event()
        self.assertEqual(len(promoted), len(set(promoted)))
        self.assertEqual(len(event["waitlist"]), len(set(event["waitlist"])))
        self.assertEqual(set(promoted) & set(event["waitlist"]), set())
        self.assertEqual(set(promoted) | set(event["waitlist"]), {"p11", "p12"})
        self.assertLessEqual(event["confirmedCount"], 10)
        self.assertEqual(event["confirmedCount"], 8 + len(promoted))
        self.assertEqual(event["declinedCount"], 2)

    def test_promote_requires_organizer(self) -> None:
        with self.assertRaises(ForbiddenError):
            InvitationService.promote_from_waitlist(EVENT_ID, "p1", db=self.db)

    def test_invite_adds_new_players_only(self) -> None:
        invited = InvitationService.invite_participants(
            EVENT_ID, OWNER_ID, ["guest", "p1", "guest", ""], db=self.db
        )

        self.assertEqual(invited, ["guest"])
        self.assertEqual(self._event()["availablePlayers"], ["guest"])
        invitation = self.event_ref.collection("invitations").document("guest").get()
        self.assertEqual(invitation.to_dict()["response"], "pending")

        result = self._respond("guest", "maybe")
        self.assertEqual(result["previousResponse"], "pending")
        self.assertEqual(self._event()["maybeCount"], 1)

    def test_invite_requires_organizer(self) -> None:
        with self.assertRaises(ForbiddenError):
            InvitationService.invite_participants(EVENT_ID, "p1", ["guest"], db=self.db)

    def test_list_invitations(self) -> None:
        self._respond("p2", "confirmed")
        self._respond("p5", "declined")

        invitations = InvitationService.list_invitations(EVENT_ID, db=self.db)

        self.assertEqual(
            sorted((i["id"], i["response"]) for i in invitations),
            [("p2", "confirmed"), ("p5", "declined")],
        )
        with self.assertRaises(NotFoundError):
            InvitationService.list_invitations("missing", db=self.db)


if __name__ == "__main__":
    unittest.main()
