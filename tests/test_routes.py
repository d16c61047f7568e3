"""Tests for the cup and event blueprints."""

from __future__ import annotations

import unittest
from unittest.mock import patch

from matchday import create_app
from tests.mock_utils import (
    TransactionalMockFirestore,
    exhausted_transactional,
    mock_firestore_module,
    patch_firestore,
)

OWNER_ID = "organizer"
EVENT_ID = "event1"


class RoutesTestCase(unittest.TestCase):
    """Test case for the JSON routes."""

    def setUp(self) -> None:
        """Set up a test client over an in-memory Firestore."""
        self.db = TransactionalMockFirestore()
        self.firestore = mock_firestore_module(self.db)
        patch_firestore(self, self.firestore)
        init_patcher = patch("firebase_admin.initialize_app")
        init_patcher.start()
        self.addCleanup(init_patcher.stop)

        self.app = create_app({"TESTING": True, "WTF_CSRF_ENABLED": False})
        self.client = self.app.test_client()

        for number in range(1, 5):
            self.db.collection("teams").document(f"t{number}").set(
                {"name": f"Team {number}", "averageOVR": 90 - number}
            )
        self.event_ref = self.db.collection("matches").document(EVENT_ID)
        self.event_ref.set(
            {
                "ownerUid": OWNER_ID,
                "teams": {
                    "teamA": {"players": ["p1", "p2"]},
                    "teamB": {"players": ["p3"]},
                },
                "availablePlayers": [],
                "maxPlayers": 2,
                "confirmedCount": 0,
                "declinedCount": 0,
                "maybeCount": 0,
                "waitlist": [],
                "dateConfirmedByVoting": False,
            }
        )

    def _login(self, uid: str) -> None:
        with self.client.session_transaction() as sess:
            sess["user_id"] = uid

    def _create_cup(self) -> str:
        self._login(OWNER_ID)
        response = self.client.post(
            "/cups/",
            data={
                "name": "Winter Cup",
                "teams": "t1, t2\nt3, t4",
                "seeding": "ranked",
                "start_date": "2026-12-01",
                "max_players": "6",
            },
        )
        self.assertEqual(response.status_code, 201)
        return response.get_json()["data"]["cupId"]

    def test_login_required(self) -> None:
        response = self.client.post("/cups/", data={"name": "Cup"})
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.get_json()["error"], "unauthorized")

    def test_create_cup(self) -> None:
        cup_id = self._create_cup()

        cup = self.db.collection("cups").document(cup_id).get().to_dict()
        self.assertEqual(cup["teams"], ["t1", "t2", "t3", "t4"])
        self.assertEqual(cup["startDate"], "2026-12-01")
        self.assertEqual(cup["maxPlayers"], 6)
        self.assertEqual(cup["ownerUid"], OWNER_ID)

    def test_create_cup_rejects_bad_input(self) -> None:
        self._login(OWNER_ID)

        response = self.client.post("/cups/", data={"teams": "t1,t2"})
        self.assertEqual(response.status_code, 400)
        self.assertIn("name", response.get_json()["fields"])

        response = self.client.post("/cups/", data={"name": "Cup", "teams": "t1"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["error"], "insufficient-participants")

    def test_start_and_record_winner(self) -> None:
        cup_id = self._create_cup()

        response = self.client.post(f"/cups/{cup_id}/start")
        self.assertEqual(response.status_code, 200)
        bracket = response.get_json()["data"]["bracket"]
        self.assertEqual(len(bracket), 3)

        url = f"/cups/{cup_id}/matches/match-1/winner"
        response = self.client.post(url, data={"winner_id": "t1"})
        self.assertEqual(response.status_code, 200)
        body = response.get_json()
        self.assertEqual(body["message"], "Result recorded.")
        self.assertEqual(body["data"]["nextMatchId"], "match-3")

        response = self.client.post(url, data={"winner_id": "t1"})
        self.assertEqual(response.get_json()["message"], "Result already recorded.")

        response = self.client.post(url, data={"winner_id": "t4"})
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.get_json()["error"], "conflict")

        response = self.client.post(
            f"/cups/{cup_id}/matches/match-2/winner", data={"winner_id": "t1"}
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["error"], "invalid-winner")

        response = self.client.get(f"/cups/{cup_id}")
        self.assertEqual(response.status_code, 200)
        rounds = response.get_json()["data"]["rounds"]
        self.assertEqual([r["name"] for r in rounds], ["semifinal", "final"])

    def test_start_cup_errors(self) -> None:
        cup_id = self._create_cup()

        self._login("p1")
        response = self.client.post(f"/cups/{cup_id}/start")
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.get_json()["error"], "forbidden")

        response = self.client.get("/cups/missing")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.get_json()["error"], "not-found")

    def test_respond_and_waitlist(self) -> None:
        for uid in ("p1", "p2"):
            self._login(uid)
            response = self.client.post(
                f"/events/{EVENT_ID}/respond", data={"response": "confirmed"}
            )
            self.assertEqual(response.status_code, 200)

        self._login("p3")
        response = self.client.post(
            f"/events/{EVENT_ID}/respond", data={"response": "confirmed"}
        )
        body = response.get_json()
        self.assertEqual(response.status_code, 200)
        self.assertTrue(body["data"]["waitlisted"])
        self.assertEqual(body["data"]["confirmedCount"], 2)

        self._login("p1")
        self.client.post(f"/events/{EVENT_ID}/respond", data={"response": "declined"})
        self._login(OWNER_ID)
        response = self.client.post(f"/events/{EVENT_ID}/waitlist/promote")
        self.assertEqual(response.get_json()["data"]["promoted"], ["p3"])

        response = self.client.get(f"/events/{EVENT_ID}/invitations")
        responses = {i["id"]: i["response"] for i in response.get_json()["data"]}
        self.assertEqual(
            responses, {"p1": "declined", "p2": "confirmed", "p3": "confirmed"}
        )

    def test_respond_errors(self) -> None:
        self._login("p1")
        response = self.client.post(
            f"/events/{EVENT_ID}/respond", data={"response": "sure"}
        )
        self.assertEqual(response.status_code, 400)

        self._login("stranger")
        response = self.client.post(
            f"/events/{EVENT_ID}/respond", data={"response": "maybe"}
        )
        self.assertEqual(response.status_code, 403)

    def test_respond_retry_exhausted(self) -> None:
        self.firestore.transactional = exhausted_transactional
        self._login("p1")

        response = self.client.post(
            f"/events/{EVENT_ID}/respond", data={"response": "confirmed"}
        )

        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.get_json()["error"], "retry-exhausted")

    def test_invite(self) -> None:
        self._login(OWNER_ID)
        response = self.client.post(
            f"/events/{EVENT_ID}/invite", data={"user_ids": "guest, p1"}
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["data"]["invited"], ["guest"])

        self._login("p1")
        response = self.client.post(
            f"/events/{EVENT_ID}/invite", data={"user_ids": "friend"}
        )
        self.assertEqual(response.status_code, 403)

    def test_propose_and_vote(self) -> None:
        self._login("p1")
        response = self.client.post(
            f"/events/{EVENT_ID}/proposals", data={"date": "2026-11-05", "time": "18:30"}
        )
        self.assertEqual(response.status_code, 201)
        proposal_id = response.get_json()["data"]["proposalId"]

        self._login("p2")
        response = self.client.post(f"/events/{EVENT_ID}/proposals/{proposal_id}/vote")
        data = response.get_json()["data"]
        self.assertTrue(data["voted"])
        self.assertTrue(data["newlyConfirmed"])

        event = self.event_ref.get().to_dict()
        self.assertEqual((event["date"], event["time"]), ("2026-11-05", "18:30"))

        response = self.client.get(f"/events/{EVENT_ID}/proposals")
        proposals = response.get_json()["data"]
        self.assertEqual([p["id"] for p in proposals], [proposal_id])
        self.assertEqual(proposals[0]["votesCount"], 2)

    def test_propose_rejects_bad_date(self) -> None:
        self._login("p1")
        response = self.client.post(
            f"/events/{EVENT_ID}/proposals", data={"date": "soon", "time": "18:30"}
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("date", response.get_json()["fields"])


if __name__ == "__main__":
    unittest.main()
