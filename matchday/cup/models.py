"""Data models for the cup blueprint."""

from __future__ import annotations

from typing import Any, Optional, TypedDict

from matchday.core.types import FirestoreDocument


class BracketMatch(TypedDict, total=False):
    """One slot of a knockout bracket, stored inline on the cup document."""

    id: str
    round: int
    slot: int
    team1Id: Optional[str]
    team2Id: Optional[str]
    winnerId: Optional[str]
    eventId: Optional[str]
    isBye: bool


class Cup(FirestoreDocument, total=False):
    """A cup document in Firestore."""

    name: str
    ownerUid: str
    groupId: str
    teams: list[str]
    status: str  # draft/in_progress/completed
    seeding: str
    bracketSize: int
    totalRounds: int
    currentRound: int
    bracket: list[BracketMatch]
    championTeamId: str
    runnerUpTeamId: str
    startDate: str
    maxPlayers: int
    startedAt: Any
    completedAt: Any

    # UI and calculated fields
    rounds: list[dict[str, Any]]
