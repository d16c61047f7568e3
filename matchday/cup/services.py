"""Service layer for cup business logic."""

from __future__ import annotations

import logging
import random
from typing import TYPE_CHECKING, Any, Optional, cast

from firebase_admin import firestore

from matchday.core.constants import (
    CUP_STATUS_COMPLETED,
    CUP_STATUS_DRAFT,
    CUP_STATUS_IN_PROGRESS,
    CUPS_COLLECTION,
    DEFAULT_CUP_MATCH_TIME,
    EVENTS_COLLECTION,
    SEEDING_MODES,
    SEEDING_RANDOM,
)
from matchday.core.transactions import run_in_transaction
from matchday.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from matchday.event.utils import cup_event_payload

from .bracket import (
    BracketEngine,
    BracketUpdate,
    current_round,
    match_state,
    rounds,
    total_rounds,
    validate_team_ids,
)
from .models import BracketMatch
from .utils import read_teams, team_player_ids, team_strength

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.transaction import Transaction

logger = logging.getLogger(__name__)


class CupService:
    """Handles business logic and data access for cups."""

    @staticmethod
    def _create_match_event(  # noqa: PLR0913
        db: Client,
        transaction: Transaction,
        cup_id: str,
        cup_data: dict[str, Any],
        match: BracketMatch,
        teams: dict[str, dict[str, Any]],
        match_time: str,
    ) -> str:
        """Queue the scheduled event for a playable match and return its id."""
        team1 = teams.get(cast(str, match["team1Id"]), {})
        team2 = teams.get(cast(str, match["team2Id"]), {})
        event_ref = db.collection(EVENTS_COLLECTION).document()
        transaction.set(
            event_ref,
            cup_event_payload(
                cup_id,
                cup_data,
                dict(match),
                team1,
                team2,
                team_player_ids(team1),
                team_player_ids(team2),
                match_time,
                cup_data.get("maxPlayers"),
            ),
        )
        return str(event_ref.id)

    @staticmethod
    def create_cup(
        data: dict[str, Any], owner_uid: str, db: Client | None = None
    ) -> str:
        """Create a draft cup and return its ID."""
        if db is None:
            db = firestore.client()

        name = (data.get("name") or "").strip()
        if not name:
            raise ValidationError("Cup name is required.")
        team_ids = list(data.get("teams") or [])
        validate_team_ids(team_ids)
        seeding = data.get("seeding") or SEEDING_RANDOM
        if seeding not in SEEDING_MODES:
            raise ValidationError(f"Unknown seeding mode {seeding!r}.")
        max_players = data.get("max_players")
        if max_players is not None and max_players < 1:
            raise ValidationError("Max players must be at least 1.")

        cup_payload = {
            "name": name,
            "ownerUid": owner_uid,
            "groupId": data.get("group_id"),
            "teams": team_ids,
            "status": CUP_STATUS_DRAFT,
            "seeding": seeding,
            "startDate": data.get("start_date"),
            "maxPlayers": max_players,
            "createdAt": firestore.SERVER_TIMESTAMP,
        }
        _, ref = db.collection(CUPS_COLLECTION).add(cup_payload)
        logger.info(f"Cup {ref.id} created by {owner_uid} with {len(team_ids)} teams")
        return str(ref.id)

    @staticmethod
    def get_cup(cup_id: str, db: Client | None = None) -> dict[str, Any]:
        """Fetch a cup with its bracket grouped and labelled per round."""
        if db is None:
            db = firestore.client()
        doc = cast("DocumentSnapshot", db.collection(CUPS_COLLECTION).document(cup_id).get())
        if not doc.exists:
            raise NotFoundError("Cup not found.")

        data = cast(dict[str, Any], doc.to_dict() or {})
        data["id"] = doc.id
        bracket = data.get("bracket") or []
        rounds_total = data.get("totalRounds") or total_rounds(len(bracket) + 1)
        data["rounds"] = [
            {
                "round": round_matches[0]["round"],
                "name": BracketEngine.round_name(round_matches[0]["round"], rounds_total),
                "matches": [
                    {**match, "state": match_state(match)} for match in round_matches
                ],
            }
            for round_matches in rounds(bracket)
        ]
        return data

    @staticmethod
    def start_cup(  # noqa: PLR0913
        cup_id: str,
        user_uid: str,
        seeding: Optional[str] = None,
        db: Client | None = None,
        max_attempts: Optional[int] = None,
        match_time: str = DEFAULT_CUP_MATCH_TIME,
        rng: Optional[random.Random] = None,
    ) -> dict[str, Any]:
        """Seed the bracket, schedule the playable matches and open the cup."""
        if db is None:
            db = firestore.client()
        cup_ref = db.collection(CUPS_COLLECTION).document(cup_id)

        def start_cup_transaction(transaction: Transaction) -> dict[str, Any]:
            snapshot = cast("DocumentSnapshot", cup_ref.get(transaction=transaction))
            if not snapshot.exists:
                raise NotFoundError("Cup not found.")
            cup = cast(dict[str, Any], snapshot.to_dict() or {})
            if cup.get("ownerUid") != user_uid:
                raise ForbiddenError("Only the organizer can start the cup.")
            if cup.get("status", CUP_STATUS_DRAFT) != CUP_STATUS_DRAFT:
                raise ConflictError("Cup has already been started.")

            team_ids = list(cup.get("teams") or [])
            mode = seeding or cup.get("seeding") or SEEDING_RANDOM
            teams = read_teams(db, transaction, team_ids)
            strengths = {tid: team_strength(teams[tid]) for tid in team_ids}
            bracket = BracketEngine.generate_bracket(team_ids, mode, strengths, rng)

            # Byes are decided already, only real pairings get an event
            for match in bracket:
                if match["team1Id"] and match["team2Id"] and not match["winnerId"]:
                    match["eventId"] = CupService._create_match_event(
                        db, transaction, cup_id, cup, match, teams, match_time
                    )

            size = len(bracket) + 1
            transaction.update(
                cup_ref,
                {
                    "status": CUP_STATUS_IN_PROGRESS,
                    "seeding": mode,
                    "bracket": bracket,
                    "bracketSize": size,
                    "totalRounds": total_rounds(size),
                    "currentRound": current_round(bracket) or total_rounds(size),
                    "startedAt": firestore.SERVER_TIMESTAMP,
                },
            )
            return {"cupId": cup_id, "bracket": bracket, "seeding": mode}

        result = run_in_transaction(db, start_cup_transaction, max_attempts=max_attempts)
        logger.info(f"Cup {cup_id} started with {result['seeding']} seeding")
        return result

    @staticmethod
    def _winner_result(cup_id: str, update: BracketUpdate, event_id: Optional[str]) -> dict[str, Any]:
        playable = update.playable_match
        return {
            "cupId": cup_id,
            "matchId": update.match["id"],
            "winnerId": update.match["winnerId"],
            "replayed": update.replayed,
            "completed": update.completed,
            "championTeamId": update.champion_id,
            "runnerUpTeamId": update.runner_up_id,
            "nextMatchId": update.advanced_to["id"] if update.advanced_to else None,
            "playableMatchId": playable["id"] if playable else None,
            "eventId": event_id,
        }

    @staticmethod
    def record_winner(  # noqa: PLR0913
        cup_id: str,
        match_id: str,
        winner_id: str,
        db: Client | None = None,
        max_attempts: Optional[int] = None,
        match_time: str = DEFAULT_CUP_MATCH_TIME,
    ) -> dict[str, Any]:
        """Record a match result and advance the winner.

        Runs as one transaction on the cup document, so a second report racing
        the first is seen either as a replay or as a conflict.
        """
        if db is None:
            db = firestore.client()
        cup_ref = db.collection(CUPS_COLLECTION).document(cup_id)

        def record_winner_transaction(transaction: Transaction) -> dict[str, Any]:
            snapshot = cast("DocumentSnapshot", cup_ref.get(transaction=transaction))
            if not snapshot.exists:
                raise NotFoundError("Cup not found.")
            cup = cast(dict[str, Any], snapshot.to_dict() or {})
            bracket = cup.get("bracket") or []
            if cup.get("status", CUP_STATUS_DRAFT) == CUP_STATUS_DRAFT or not bracket:
                raise ConflictError("Cup has not started yet.")

            update = BracketEngine.record_winner(bracket, match_id, winner_id)
            if update.replayed:
                return CupService._winner_result(cup_id, update, None)

            event_id = None
            playable = update.playable_match
            if playable is not None and not playable.get("eventId"):
                pair = [cast(str, playable["team1Id"]), cast(str, playable["team2Id"])]
                teams = read_teams(db, transaction, pair)
                event_id = CupService._create_match_event(
                    db, transaction, cup_id, cup, playable, teams, match_time
                )
                playable["eventId"] = event_id

            rounds_total = cup.get("totalRounds") or total_rounds(len(update.bracket) + 1)
            changes: dict[str, Any] = {
                "bracket": update.bracket,
                "currentRound": current_round(update.bracket) or rounds_total,
            }
            if update.completed:
                changes.update(
                    {
                        "status": CUP_STATUS_COMPLETED,
                        "championTeamId": update.champion_id,
                        "runnerUpTeamId": update.runner_up_id,
                        "completedAt": firestore.SERVER_TIMESTAMP,
                    }
                )
            transaction.update(cup_ref, changes)
            return CupService._winner_result(cup_id, update, event_id)

        result = run_in_transaction(
            db, record_winner_transaction, max_attempts=max_attempts
        )
        if result["replayed"]:
            logger.info(f"Cup {cup_id}: replayed result for {match_id}")
        elif result["completed"]:
            logger.info(f"Cup {cup_id} completed, champion {result['championTeamId']}")
        else:
            logger.info(f"Cup {cup_id}: {winner_id} won {match_id}")
        return result
