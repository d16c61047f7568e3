"""Data models for the event blueprint."""

from __future__ import annotations

from typing import Any, Optional, TypedDict

from matchday.core.types import FirestoreDocument


class EventTeam(TypedDict, total=False):
    """One side of a scheduled event."""

    teamId: str
    name: str
    players: list[str]


class ScheduledEvent(FirestoreDocument, total=False):
    """A scheduled match document that participants respond to."""

    title: str
    type: str
    status: str
    ownerUid: str
    teams: dict[str, EventTeam]
    availablePlayers: list[str]
    maxPlayers: Optional[int]
    confirmedCount: int
    declinedCount: int
    maybeCount: int
    waitlist: list[str]
    date: str
    time: str
    dateConfirmedByVoting: bool
    confirmedProposalId: str
    cupInfo: dict[str, Any]


class Invitation(TypedDict, total=False):
    """A participant's RSVP, keyed by participant id under the event."""

    id: str
    userId: str
    matchId: str
    response: str  # pending/confirmed/declined/maybe
    respondedAt: Any
    notifiedAt: Any


class DateProposal(FirestoreDocument, total=False):
    """A proposed date and time for an event, with its voters."""

    proposedDate: str
    proposedTime: str
    proposedBy: str
    votes: list[str]
    votesCount: int
