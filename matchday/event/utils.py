"""Utility functions for scheduled events."""

from __future__ import annotations

import datetime
from typing import TYPE_CHECKING, Any, Optional, cast

from firebase_admin import firestore

from matchday.core.constants import (
    DATE_FORMAT,
    EVENT_STATUS_UPCOMING,
    EVENT_TYPE_CUP,
    TIME_FORMAT,
)
from matchday.errors import ForbiddenError, NotFoundError, ValidationError

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.document import DocumentReference
    from google.cloud.firestore_v1.transaction import Transaction


def read_event(
    event_ref: DocumentReference, transaction: Optional[Transaction] = None
) -> dict[str, Any]:
    """Read an event document, raising NotFoundError when it is missing."""
    snapshot = cast("DocumentSnapshot", event_ref.get(transaction=transaction))
    if not snapshot.exists:
        raise NotFoundError("Event not found.")
    return cast(dict[str, Any], snapshot.to_dict() or {})


def require_organizer(event_data: dict[str, Any], user_uid: str) -> None:
    if event_data.get("ownerUid") != user_uid:
        raise ForbiddenError("Only the organizer can manage this event.")


def invited_participant_ids(event_data: dict[str, Any]) -> list[str]:
    """Everyone invited to an event: both team rosters plus available players."""
    teams = event_data.get("teams") or {}
    ids: list[str] = []
    for side in ("teamA", "teamB"):
        ids.extend((teams.get(side) or {}).get("players") or [])
    ids.extend(event_data.get("availablePlayers") or [])
    return list(dict.fromkeys(str(uid) for uid in ids))


def majority(total_participants: int) -> int:
    """Votes needed to confirm a date: half the participants, rounded up."""
    return -(-total_participants // 2)


def parse_proposal_slot(date: Any, time: Any) -> tuple[str, str]:
    """Normalize a proposed date and time to ``YYYY-MM-DD`` and ``HH:MM``."""
    if isinstance(date, datetime.datetime):
        date = date.date()
    if isinstance(date, datetime.date):
        date = date.strftime(DATE_FORMAT)
    if isinstance(time, datetime.time):
        time = time.strftime(TIME_FORMAT)

    try:
        parsed_date = datetime.datetime.strptime(str(date), DATE_FORMAT)
        parsed_time = datetime.datetime.strptime(str(time), TIME_FORMAT)
    except ValueError as e:
        raise ValidationError(f"Invalid date or time: {e}") from e
    return parsed_date.strftime(DATE_FORMAT), parsed_time.strftime(TIME_FORMAT)


def cup_event_payload(  # noqa: PLR0913
    cup_id: str,
    cup_data: dict[str, Any],
    bracket_match: dict[str, Any],
    team1: dict[str, Any],
    team2: dict[str, Any],
    team1_players: list[str],
    team2_players: list[str],
    match_time: str,
    max_players: Optional[int] = None,
) -> dict[str, Any]:
    """Build the scheduled event document for a playable cup match."""
    team1_name = team1.get("name") or bracket_match["team1Id"]
    team2_name = team2.get("name") or bracket_match["team2Id"]
    return {
        "title": f"{team1_name} vs {team2_name}",
        "type": EVENT_TYPE_CUP,
        "status": EVENT_STATUS_UPCOMING,
        "ownerUid": cup_data.get("ownerUid"),
        "groupId": cup_data.get("groupId"),
        "date": cup_data.get("startDate"),
        "time": match_time,
        "participantTeamIds": [bracket_match["team1Id"], bracket_match["team2Id"]],
        "teams": {
            "teamA": {
                "teamId": bracket_match["team1Id"],
                "name": team1_name,
                "players": team1_players,
            },
            "teamB": {
                "teamId": bracket_match["team2Id"],
                "name": team2_name,
                "players": team2_players,
            },
        },
        "availablePlayers": [],
        "maxPlayers": max_players,
        "confirmedCount": 0,
        "declinedCount": 0,
        "maybeCount": 0,
        "waitlist": [],
        "dateConfirmedByVoting": False,
        "cupInfo": {
            "cupId": cup_id,
            "bracketMatchId": bracket_match["id"],
            "round": bracket_match["round"],
        },
        "createdAt": firestore.SERVER_TIMESTAMP,
    }
