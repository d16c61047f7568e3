"""Single-elimination bracket generation and advancement.

A bracket is a flat list of BracketMatch maps in round/slot order. For a
bracket of size N (a power of two), round ``r`` holds ``N >> r`` matches and
the winner of (round ``r``, slot ``s``) moves to (round ``r + 1``, slot
``s // 2``), so parents are found by index arithmetic rather than links.
"""

from __future__ import annotations

import copy
import random
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Optional

from matchday.core.constants import (
    MATCH_DECIDED,
    MATCH_EMPTY,
    MATCH_PENDING,
    SEEDING_MODES,
    SEEDING_RANDOM,
    SEEDING_RANKED,
)
from matchday.errors import (
    ConflictError,
    InsufficientParticipantsError,
    InvalidWinnerError,
    NotFoundError,
    ValidationError,
)

from .models import BracketMatch


def bracket_size(count: int) -> int:
    """Return the smallest power of two that fits ``count`` teams."""
    size = 1
    while size < count:
        size *= 2
    return size


def total_rounds(size: int) -> int:
    """Return the number of rounds of a bracket with ``size`` positions."""
    return max(size.bit_length() - 1, 0)


def seed_positions(size: int) -> list[int]:
    """Return the 1-based seed placed at each position of the first round.

    Built by mirroring: every seed ``s`` of the smaller layout is followed by
    its weakest opponent ``2 * len + 1 - s``. Seeds 1 and 2 always end up in
    opposite halves, so they can only meet in the final.
    """
    positions = [1]
    while len(positions) < size:
        mirror = len(positions) * 2 + 1
        positions = [s for seed in positions for s in (seed, mirror - seed)]
    return positions


def match_index(round_number: int, slot: int, size: int) -> int:
    """Return the flat index of (round, slot) in a bracket of ``size``."""
    return size - (size >> (round_number - 1)) + slot


def match_state(match: Mapping) -> str:
    """Return empty, pending or decided for a bracket match."""
    if match.get("winnerId"):
        return MATCH_DECIDED
    if match.get("team1Id") or match.get("team2Id"):
        return MATCH_PENDING
    return MATCH_EMPTY


def find_match(bracket: Sequence[BracketMatch], match_id: str) -> BracketMatch:
    """Return the match with ``match_id`` or raise NotFoundError."""
    for match in bracket:
        if match.get("id") == match_id:
            return match
    raise NotFoundError(f"Match {match_id} not found in bracket.")


def final_match(bracket: Sequence[BracketMatch]) -> Optional[BracketMatch]:
    if not bracket:
        return None
    return max(bracket, key=lambda m: m["round"])


def champion(bracket: Sequence[BracketMatch]) -> Optional[str]:
    final = final_match(bracket)
    return final.get("winnerId") if final else None


def runner_up(bracket: Sequence[BracketMatch]) -> Optional[str]:
    """Return the losing finalist once the final is decided."""
    final = final_match(bracket)
    if not final or not final.get("winnerId"):
        return None
    if not final.get("team1Id") or not final.get("team2Id"):
        return None
    if final["winnerId"] == final["team1Id"]:
        return final["team2Id"]
    return final["team1Id"]


def rounds(bracket: Iterable[BracketMatch]) -> list[list[BracketMatch]]:
    """Group matches per round, each round ordered by slot."""
    grouped: dict[int, list[BracketMatch]] = {}
    for match in bracket:
        grouped.setdefault(match["round"], []).append(match)
    return [
        sorted(grouped[number], key=lambda m: m["slot"]) for number in sorted(grouped)
    ]


def is_round_complete(bracket: Iterable[BracketMatch], round_number: int) -> bool:
    """True once every match of the round has a winner, byes included."""
    return all(
        match.get("winnerId") for match in bracket if match["round"] == round_number
    )


def current_round(bracket: Sequence[BracketMatch]) -> Optional[int]:
    """Return the first round that still has an undecided match."""
    for round_matches in rounds(bracket):
        number = round_matches[0]["round"]
        if not is_round_complete(round_matches, number):
            return number
    return None


def validate_team_ids(team_ids: Sequence[str]) -> None:
    """Reject team lists a bracket cannot be built from."""
    if any(not isinstance(tid, str) or not tid.strip() for tid in team_ids):
        raise ValidationError("Team ids must be non-empty strings.")
    if len(set(team_ids)) != len(team_ids):
        raise ValidationError("Duplicate team ids.")
    if len(team_ids) < BracketEngine.MIN_PARTICIPANTS:
        raise InsufficientParticipantsError(
            f"A cup needs at least {BracketEngine.MIN_PARTICIPANTS} teams."
        )


def order_seeds(
    team_ids: Sequence[str],
    seeding: str,
    strengths: Optional[Mapping[str, float]] = None,
    rng: Optional[random.Random] = None,
) -> list[str]:
    """Return team ids ordered from seed 1 downwards."""
    if seeding == SEEDING_RANKED:
        strengths = strengths or {}
        # sorted() is stable with reverse=True, ties keep input order
        return sorted(
            team_ids, key=lambda tid: strengths.get(tid) or 0.0, reverse=True
        )
    if seeding == SEEDING_RANDOM:
        seeds = list(team_ids)
        (rng or random).shuffle(seeds)
        return seeds
    raise ValidationError(
        f"Unknown seeding mode {seeding!r}, expected one of {', '.join(SEEDING_MODES)}."
    )


def _new_match(number: int, round_number: int, slot: int) -> BracketMatch:
    return BracketMatch(
        id=f"match-{number}",
        round=round_number,
        slot=slot,
        team1Id=None,
        team2Id=None,
        winnerId=None,
        eventId=None,
        isBye=False,
    )


def _advance(bracket: list[BracketMatch], match: BracketMatch) -> Optional[BracketMatch]:
    """Write the winner of ``match`` into its parent and return the parent."""
    size = len(bracket) + 1
    if match["round"] >= total_rounds(size):
        return None

    parent = bracket[match_index(match["round"] + 1, match["slot"] // 2, size)]
    side = "team1Id" if match["slot"] % 2 == 0 else "team2Id"
    occupant = parent.get(side)
    if occupant and occupant != match["winnerId"]:
        raise ConflictError(
            f"Match {parent['id']} already holds {occupant} on {side}."
        )
    parent[side] = match["winnerId"]
    return parent


@dataclass
class BracketUpdate:
    """Outcome of recording a winner against a bracket."""

    bracket: list[BracketMatch]
    match: BracketMatch
    replayed: bool = False
    advanced_to: Optional[BracketMatch] = None
    completed: bool = False
    champion_id: Optional[str] = None
    runner_up_id: Optional[str] = None

    @property
    def playable_match(self) -> Optional[BracketMatch]:
        """The next-round match this result made playable, if any."""
        nxt = self.advanced_to
        if nxt and nxt.get("team1Id") and nxt.get("team2Id") and not nxt.get("winnerId"):
            return nxt
        return None


class BracketEngine:
    """Seeds and advances single-elimination brackets."""

    MIN_PARTICIPANTS = 2

    @staticmethod
    def generate_bracket(
        team_ids: Sequence[str],
        seeding: str = SEEDING_RANDOM,
        strengths: Optional[Mapping[str, float]] = None,
        rng: Optional[random.Random] = None,
    ) -> list[BracketMatch]:
        """Build every round of a bracket and resolve first-round byes.

        Positions past the number of teams are byes. A first-round match
        against a bye is decided for its only team straight away and that team
        is moved into round two.
        """
        team_ids = list(team_ids)
        validate_team_ids(team_ids)
        seeds = order_seeds(team_ids, seeding, strengths, rng)

        size = bracket_size(len(seeds))
        placed = [
            seeds[seed - 1] if seed <= len(seeds) else None
            for seed in seed_positions(size)
        ]

        bracket: list[BracketMatch] = []
        number = 1
        for round_number in range(1, total_rounds(size) + 1):
            for slot in range(size >> round_number):
                match = _new_match(number, round_number, slot)
                if round_number == 1:
                    match["team1Id"] = placed[2 * slot]
                    match["team2Id"] = placed[2 * slot + 1]
                bracket.append(match)
                number += 1

        for match in bracket[: size // 2]:
            team1, team2 = match["team1Id"], match["team2Id"]
            if (team1 is None) != (team2 is None):
                match["winnerId"] = team1 or team2
                match["isBye"] = True
                _advance(bracket, match)

        return bracket

    @staticmethod
    def record_winner(
        bracket: Sequence[BracketMatch], match_id: str, winner_id: str
    ) -> BracketUpdate:
        """Decide a match and move its winner into the next round.

        Works on a copy. Reporting the same winner again is a replay and
        changes nothing; reporting a different one raises ConflictError.
        """
        updated: list[BracketMatch] = copy.deepcopy(list(bracket))
        match = find_match(updated, match_id)

        if match.get("winnerId"):
            if match["winnerId"] != winner_id:
                raise ConflictError(
                    f"Match {match_id} was already won by {match['winnerId']}."
                )
            return BracketUpdate(
                bracket=updated,
                match=match,
                replayed=True,
                completed=BracketEngine.is_complete(updated),
                champion_id=champion(updated),
                runner_up_id=runner_up(updated),
            )

        if not match.get("team1Id") or not match.get("team2Id"):
            raise ValidationError(f"Match {match_id} does not have two teams yet.")
        if winner_id not in (match["team1Id"], match["team2Id"]):
            raise InvalidWinnerError(
                f"{winner_id} is not playing in match {match_id}."
            )

        match["winnerId"] = winner_id
        advanced_to = _advance(updated, match)
        completed = BracketEngine.is_complete(updated)
        return BracketUpdate(
            bracket=updated,
            match=match,
            advanced_to=advanced_to,
            completed=completed,
            champion_id=champion(updated) if completed else None,
            runner_up_id=runner_up(updated) if completed else None,
        )

    @staticmethod
    def is_complete(bracket: Sequence[BracketMatch]) -> bool:
        """True once the final has a winner."""
        return champion(bracket) is not None

    @staticmethod
    def round_name(round_number: int, rounds_total: int) -> str:
        """Label a round by its distance from the final."""
        if rounds_total < 1 or not 1 <= round_number <= rounds_total:
            raise ValidationError(
                f"Round {round_number} is outside a {rounds_total}-round bracket."
            )
        distance = rounds_total - round_number
        if distance == 0:
            return "final"
        if distance == 1:
            return "semifinal"
        if distance == 2:
            return "quarterfinal"
        return f"round of {2 ** (distance + 1)}"
