"""Utility functions for cup management."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

from matchday.core.constants import TEAMS_COLLECTION

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.transaction import Transaction


def team_strength(team_data: dict[str, Any]) -> float:
    """Average player rating of a team, 0 when nothing is known."""
    average = team_data.get("averageOVR")
    if average is not None:
        return float(average)

    ratings = [
        float(p.get("ovr") or 0)
        for p in team_data.get("players", [])
        if isinstance(p, dict)
    ]
    return sum(ratings) / len(ratings) if ratings else 0.0


def team_player_ids(team_data: dict[str, Any]) -> list[str]:
    """Return the player uids on a team roster."""
    if team_data.get("playerIds"):
        return [str(uid) for uid in team_data["playerIds"]]

    ids = []
    for player in team_data.get("players", []):
        if isinstance(player, str):
            ids.append(player)
        elif isinstance(player, dict) and player.get("uid"):
            ids.append(str(player["uid"]))
    return ids


def read_teams(
    db: Client, transaction: Transaction, team_ids: list[str]
) -> dict[str, dict[str, Any]]:
    """Read team documents inside a transaction, keyed by team id."""
    teams: dict[str, dict[str, Any]] = {}
    for team_id in team_ids:
        snapshot = cast(
            "DocumentSnapshot",
            db.collection(TEAMS_COLLECTION)
            .document(team_id)
            .get(transaction=transaction),
        )
        teams[team_id] = (snapshot.to_dict() or {}) if snapshot.exists else {}
    return teams
