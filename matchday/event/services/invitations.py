"""Invitation responses and the capacity waitlist."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Optional, cast

from firebase_admin import firestore

from matchday.core.constants import (
    EVENTS_COLLECTION,
    INVITATIONS_COLLECTION,
    RESPONSE_CONFIRMED,
    RESPONSE_COUNTERS,
    RESPONSE_PENDING,
    RESPONSES,
)
from matchday.core.transactions import run_in_transaction
from matchday.errors import ForbiddenError, ValidationError

from ..utils import invited_participant_ids, read_event, require_organizer

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.transaction import Transaction

logger = logging.getLogger(__name__)


class InvitationService:
    """Handles RSVP state for capacity-bounded events."""

    @staticmethod
    def respond(  # noqa: PLR0913
        event_id: str,
        participant_id: str,
        response: str,
        db: Client | None = None,
        max_attempts: Optional[int] = None,
    ) -> dict[str, Any]:
        """Record a participant's response and keep the event counters in step.

        The counters, the waitlist and the invitation are read and written in
        one transaction. A confirmation arriving while ``confirmedCount`` is
        at ``maxPlayers`` joins the waitlist instead of the count. Leaving
        the confirmed state never promotes anyone from the waitlist.
        """
        if response not in RESPONSES:
            raise ValidationError(
                f"Response must be one of {', '.join(RESPONSES)}."
            )
        if db is None:
            db = firestore.client()
        event_ref = db.collection(EVENTS_COLLECTION).document(event_id)

        def respond_transaction(transaction: Transaction) -> dict[str, Any]:
            event = read_event(event_ref, transaction)
            if participant_id not in invited_participant_ids(event):
                raise ForbiddenError("You are not invited to this event.")

            invitation_ref = event_ref.collection(INVITATIONS_COLLECTION).document(
                participant_id
            )

            invitation_doc = cast(
                "DocumentSnapshot", invitation_ref.get(transaction=transaction)
            )
            invitation = (
                (invitation_doc.to_dict() or {}) if invitation_doc.exists else {}
            )
            previous = invitation.get("response", RESPONSE_PENDING)

            counters = {
                field: max(int(event.get(field) or 0), 0)
                for field in RESPONSE_COUNTERS.values()
            }
            waitlist = list(event.get("waitlist") or [])
            max_players = event.get("maxPlayers")
            was_waitlisted = participant_id in waitlist

            # A waitlisted confirmation was never counted
            if previous in RESPONSE_COUNTERS and not (
                previous == RESPONSE_CONFIRMED and was_waitlisted
            ):
                field = RESPONSE_COUNTERS[previous]
                counters[field] = max(counters[field] - 1, 0)

            waitlisted = False
            if response == RESPONSE_CONFIRMED:
                full = (
                    max_players is not None
                    and counters["confirmedCount"] >= max_players
                )
                if full:
                    if not was_waitlisted:
                        waitlist.append(participant_id)
                    waitlisted = True
                else:
                    counters["confirmedCount"] += 1
                    if was_waitlisted:
                        waitlist.remove(participant_id)
            else:
                if was_waitlisted:
                    waitlist.remove(participant_id)
                counters[RESPONSE_COUNTERS[response]] += 1

            transaction.set(
                invitation_ref,
                {
                    "id": participant_id,
                    "userId": participant_id,
                    "matchId": event_id,
                    "response": response,
                    "respondedAt": firestore.SERVER_TIMESTAMP,
                    "notifiedAt": invitation.get("notifiedAt")
                    or firestore.SERVER_TIMESTAMP,
                },
            )
            transaction.update(event_ref, {**counters, "waitlist": waitlist})
            return {
                "eventId": event_id,
                "participantId": participant_id,
                "previousResponse": previous,
                "response": response,
                "waitlisted": waitlisted,
                "waitlist": waitlist,
                **counters,
            }

        result = run_in_transaction(db, respond_transaction, max_attempts=max_attempts)
        if result["waitlisted"]:
            logger.info(f"Event {event_id} is full, {participant_id} waitlisted")
        return result

    @staticmethod
    def promote_from_waitlist(
        event_id: str,
        organizer_uid: str,
        db: Client | None = None,
        max_attempts: Optional[int] = None,
    ) -> dict[str, Any]:
        """Move waitlisted participants into the confirmed count, oldest first."""
        if db is None:
            db = firestore.client()
        event_ref = db.collection(EVENTS_COLLECTION).document(event_id)

        def promote_transaction(transaction: Transaction) -> dict[str, Any]:
            event = read_event(event_ref, transaction)
            require_organizer(event, organizer_uid)

            waitlist = list(event.get("waitlist") or [])
            confirmed = max(int(event.get("confirmedCount") or 0), 0)
            max_players = event.get("maxPlayers")

            promoted = []
            while waitlist and (max_players is None or confirmed < max_players):
                promoted.append(waitlist.pop(0))
                confirmed += 1

            if promoted:
                transaction.update(
                    event_ref, {"confirmedCount": confirmed, "waitlist": waitlist}
                )
            return {
                "eventId": event_id,
                "promoted": promoted,
                "confirmedCount": confirmed,
                "waitlist": waitlist,
            }

        result = run_in_transaction(db, promote_transaction, max_attempts=max_attempts)
        if result["promoted"]:
            logger.info(
                f"Event {event_id}: promoted {len(result['promoted'])} from waitlist"
            )
        return result

    @staticmethod
    def invite_participants(
        event_id: str,
        organizer_uid: str,
        participant_ids: list[str],
        db: Client | None = None,
        max_attempts: Optional[int] = None,
    ) -> list[str]:
        """Invite extra players and open a pending invitation for each."""
        if db is None:
            db = firestore.client()
        event_ref = db.collection(EVENTS_COLLECTION).document(event_id)
        requested = list(dict.fromkeys(uid for uid in participant_ids if uid))

        def invite_transaction(transaction: Transaction) -> list[str]:
            event = read_event(event_ref, transaction)
            require_organizer(event, organizer_uid)

            already_invited = set(invited_participant_ids(event))
            new_ids = [uid for uid in requested if uid not in already_invited]
            invitation_refs = {
                uid: event_ref.collection(INVITATIONS_COLLECTION).document(uid)
                for uid in new_ids
            }
            missing = [
                uid
                for uid, ref in invitation_refs.items()
                if not cast("DocumentSnapshot", ref.get(transaction=transaction)).exists
            ]

            if new_ids:
                transaction.update(
                    event_ref,
                    {
                        "availablePlayers": list(event.get("availablePlayers") or [])
                        + new_ids
                    },
                )
            for uid in missing:
                transaction.set(
                    invitation_refs[uid],
                    {
                        "id": uid,
                        "userId": uid,
                        "matchId": event_id,
                        "response": RESPONSE_PENDING,
                        "notifiedAt": firestore.SERVER_TIMESTAMP,
                    },
                )
            return new_ids

        return run_in_transaction(db, invite_transaction, max_attempts=max_attempts)

    @staticmethod
    def list_invitations(event_id: str, db: Client | None = None) -> list[dict[str, Any]]:
        """Fetch every invitation of an event."""
        if db is None:
            db = firestore.client()
        event_ref = db.collection(EVENTS_COLLECTION).document(event_id)
        read_event(event_ref)

        invitations = []
        for doc in event_ref.collection(INVITATIONS_COLLECTION).stream():
            data = doc.to_dict()
            if data:
                data["id"] = doc.id
                invitations.append(data)
        return invitations
