"""Majority voting over proposed dates for an event."""

from __future__ import annotations

import datetime
import logging
from typing import TYPE_CHECKING, Any, Optional, cast

from firebase_admin import firestore

from matchday.core.constants import DATE_PROPOSALS_COLLECTION, EVENTS_COLLECTION
from matchday.core.transactions import run_in_transaction
from matchday.errors import ForbiddenError, NotFoundError

from ..utils import invited_participant_ids, majority, parse_proposal_slot, read_event

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.transaction import Transaction

logger = logging.getLogger(__name__)


def _created_key(proposal: dict[str, Any]) -> tuple[bool, float, str]:
    """Sort key putting the oldest proposal first, then the lowest id."""
    created = proposal.get("createdAt")
    stamp = created.timestamp() if hasattr(created, "timestamp") else 0.0
    return (created is None, stamp, str(proposal.get("id", "")))


class DateVotingService:
    """Handles date proposals and the votes cast on them."""

    @staticmethod
    def propose(
        event_id: str,
        proposer_id: str,
        date: Any,
        time: Any,
        db: Client | None = None,
    ) -> str:
        """Create a proposal with the proposer as its first voter."""
        proposed_date, proposed_time = parse_proposal_slot(date, time)
        if db is None:
            db = firestore.client()
        event_ref = db.collection(EVENTS_COLLECTION).document(event_id)
        event = read_event(event_ref)
        if proposer_id not in invited_participant_ids(event):
            raise ForbiddenError("You are not invited to this event.")

        proposal_ref = event_ref.collection(DATE_PROPOSALS_COLLECTION).document()
        proposal_ref.set(
            {
                "id": proposal_ref.id,
                "matchId": event_id,
                "proposedDate": proposed_date,
                "proposedTime": proposed_time,
                "proposedBy": proposer_id,
                "votes": [proposer_id],
                "votesCount": 1,
                "createdAt": datetime.datetime.now(datetime.timezone.utc),
            }
        )
        return str(proposal_ref.id)

    @staticmethod
    def vote(  # noqa: PLR0913
        event_id: str,
        proposal_id: str,
        participant_id: str,
        db: Client | None = None,
        max_attempts: Optional[int] = None,
    ) -> dict[str, Any]:
        """Toggle a participant's vote and confirm the date on majority.

        The event and proposal are read, the threshold is checked and the
        date is committed in one transaction. The first proposal to reach
        majority wins and stays confirmed; if several proposals hold a
        majority when it happens the oldest one is chosen.
        """
        if db is None:
            db = firestore.client()
        event_ref = db.collection(EVENTS_COLLECTION).document(event_id)

        def vote_transaction(transaction: Transaction) -> dict[str, Any]:
            event = read_event(event_ref, transaction)
            invited = invited_participant_ids(event)
            if participant_id not in invited:
                raise ForbiddenError("You are not invited to this event.")

            proposals_ref = event_ref.collection(DATE_PROPOSALS_COLLECTION)
            proposal_ref = proposals_ref.document(proposal_id)

            snapshot = cast("DocumentSnapshot", proposal_ref.get(transaction=transaction))
            if not snapshot.exists:
                raise NotFoundError("Proposal not found.")
            proposal = cast(dict[str, Any], snapshot.to_dict() or {})
            proposal["id"] = snapshot.id

            votes = list(dict.fromkeys(proposal.get("votes") or []))
            has_voted = participant_id in votes
            if has_voted:
                votes.remove(participant_id)
            else:
                votes.append(participant_id)
            proposal["votesCount"] = len(votes)

            winner = None
            needed = majority(len(invited))
            if (
                not has_voted
                and not event.get("dateConfirmedByVoting")
                and proposal["votesCount"] >= needed
            ):
                candidates = {proposal["id"]: proposal}
                for doc in transaction.get(proposals_ref.order_by("createdAt")):
                    other = doc.to_dict() or {}
                    other["id"] = doc.id
                    if doc.id not in candidates and (other.get("votesCount") or 0) >= needed:
                        candidates[doc.id] = other
                winner = min(candidates.values(), key=_created_key)

            transaction.update(proposal_ref, {"votes": votes, "votesCount": len(votes)})
            if winner is not None:
                transaction.update(
                    event_ref,
                    {
                        "date": winner.get("proposedDate"),
                        "time": winner.get("proposedTime"),
                        "dateConfirmedByVoting": True,
                        "confirmedProposalId": winner["id"],
                    },
                )

            return {
                "eventId": event_id,
                "proposalId": proposal_id,
                "voted": not has_voted,
                "votesCount": len(votes),
                "majority": needed,
                "dateConfirmed": winner is not None
                or bool(event.get("dateConfirmedByVoting")),
                "newlyConfirmed": winner is not None,
                "confirmedProposalId": winner["id"]
                if winner
                else event.get("confirmedProposalId"),
            }

        result = run_in_transaction(db, vote_transaction, max_attempts=max_attempts)
        if result["newlyConfirmed"]:
            logger.info(
                f"Event {event_id}: date confirmed by proposal {result['confirmedProposalId']}"
            )
        return result

    @staticmethod
    def list_proposals(event_id: str, db: Client | None = None) -> list[dict[str, Any]]:
        """Fetch proposals, most voted first, oldest first on ties."""
        if db is None:
            db = firestore.client()
        event_ref = db.collection(EVENTS_COLLECTION).document(event_id)
        read_event(event_ref)

        proposals = []
        for doc in event_ref.collection(DATE_PROPOSALS_COLLECTION).stream():
            data = doc.to_dict()
            if data:
                data["id"] = doc.id
                proposals.append(data)
        proposals.sort(key=_created_key)
        proposals.sort(key=lambda p: p.get("votesCount") or 0, reverse=True)
        return proposals
