"""Signull lifecycle: creation, connect accumulation and resolution.

After every connect the target entry is evaluated in a fixed order:

1. blocked  - the setter guessed the reference word
2. resolved - enough guessers guessed it; reveals a letter, or ends the
              game outright for a lightning signull
3. failed   - every eligible guesser tried and the threshold was missed
4. pending  - none of the above

A resolved entry retires every other pending entry of the same stage as
`inactive`, so a stage can reveal at most one letter.
"""

import secrets
from dataclasses import dataclass
from typing import Optional

from . import scheduler
from .errors import (
    GameError, PLAYER_NOT_FOUND, ONLY_GUESSER_CAN_CREATE, INVALID_CLUE,
    SIGNULL_ID_REQUIRED, NO_ACTIVE_SIGNULL, SIGNULL_NOT_FOUND, SIGNULL_NOT_PENDING,
    CANNOT_CONNECT_OWN_SIGNULL, ALREADY_CONNECTED, prefix_mismatch,
)
from .phases import end_game, require_phase
from .scoring import ScoreResult, apply_score_result, failed_score, intercept_score, resolved_score
from .state import Phase, Role, Room, SignullConnect, SignullEntry, SignullStatus, Winner
from .words import require_word


MAX_CLUE_LENGTH = 120


@dataclass
class ConnectOutcome:
    signull_id: str
    is_correct: bool
    status: SignullStatus
    revealed: bool = False
    winner: Optional[Winner] = None


def generate_signull_id(now: float) -> str:
    return f"sn_{int(now * 1000):011x}_{secrets.token_hex(4)}"


def create_signull(room: Room, creator_id: str, word: str, clue: str, now: float) -> str:
    require_phase(room, Phase.SIGNULLS)
    player = room.players.get(creator_id)
    if player is None:
        raise GameError(PLAYER_NOT_FOUND)
    if player.role is not Role.GUESSER:
        raise GameError(ONLY_GUESSER_CAN_CREATE)

    upper = require_word(word)
    clue = (clue or '').strip()
    if not clue or len(clue) > MAX_CLUE_LENGTH:
        raise GameError(INVALID_CLUE)
    if room.settings.prefix_mode and not upper.startswith(room.revealed_prefix):
        raise prefix_mismatch(room.revealed_prefix)

    entry = SignullEntry(
        id=generate_signull_id(now),
        player_id=creator_id,
        word=upper,
        clue=clue,
        stage=room.revealed_count,
        is_final=upper == room.secret_word,
        created_at=now,
    )
    room.ledger.add(entry)
    scheduler.point_at(room, entry.id)
    return entry.id


def resolve_target(room: Room, signull_id: Optional[str]) -> SignullEntry:
    target_id = signull_id
    if not target_id and room.is_round_robin:
        target_id = scheduler.active_signull_id(room)
        if target_id is None:
            raise GameError(NO_ACTIVE_SIGNULL)
    if not target_id:
        raise GameError(SIGNULL_ID_REQUIRED)
    entry = room.ledger.get(target_id)
    if entry is None:
        raise GameError(SIGNULL_NOT_FOUND)
    if entry.status is not SignullStatus.PENDING:
        raise GameError(SIGNULL_NOT_PENDING, details={'status': entry.status.value})
    return entry


def evaluate(entry: SignullEntry, room: Room) -> SignullStatus:
    """Status the entry should move to given its connects so far."""
    if entry.status is not SignullStatus.PENDING:
        return entry.status
    if any(c.is_correct and room.is_setter(c.player_id) for c in entry.connects):
        return SignullStatus.BLOCKED
    correct = sum(1 for c in entry.connects if c.is_correct and not room.is_setter(c.player_id))
    if correct >= room.settings.connects_required:
        return SignullStatus.RESOLVED
    eligible = [gid for gid in room.guesser_ids() if gid != entry.player_id]
    if all(entry.has_connected(gid) for gid in eligible):
        return SignullStatus.FAILED
    return SignullStatus.PENDING


def retire_stage_siblings(room: Room, entry: SignullEntry, now: float) -> None:
    for sibling in room.ledger.stage_entries(entry.stage):
        if sibling.id != entry.id and sibling.status is SignullStatus.PENDING:
            sibling.status = SignullStatus.INACTIVE
            sibling.resolved_at = now


def submit_connect(room: Room, actor_id: str, signull_id: Optional[str], guess: str, now: float) -> ConnectOutcome:
    upper = require_word(guess)
    require_phase(room, Phase.SIGNULLS)
    player = room.players.get(actor_id)
    if player is None:
        raise GameError(PLAYER_NOT_FOUND)

    entry = resolve_target(room, signull_id)
    is_setter = room.is_setter(actor_id)
    if not is_setter and entry.player_id == actor_id:
        raise GameError(CANNOT_CONNECT_OWN_SIGNULL)
    if not is_setter and entry.has_connected(actor_id):
        raise GameError(ALREADY_CONNECTED)

    is_correct = upper == entry.word
    entry.connects.append(SignullConnect(actor_id, upper, is_correct, now))

    scores = ScoreResult()
    if is_correct and is_setter:
        scores.merge(intercept_score(actor_id, entry, now))

    status = evaluate(entry, room)
    outcome = ConnectOutcome(entry.id, is_correct, status)
    if status is SignullStatus.PENDING:
        apply_score_result(room, scores)
        return outcome

    entry.status = status
    entry.resolved_at = now
    if status is SignullStatus.BLOCKED:
        pass
    elif status is SignullStatus.RESOLVED:
        # scored against the pre-reveal count
        scores.merge(resolved_score(entry, room, now))
        retire_stage_siblings(room, entry, now)
        if entry.is_final:
            outcome.winner = Winner.GUESSERS
        else:
            room.revealed_count = min(room.revealed_count + 1, len(room.secret_word))
            outcome.revealed = True
            if room.revealed_count >= len(room.secret_word):
                outcome.winner = Winner.GUESSERS
    elif status is SignullStatus.FAILED:
        scores.merge(failed_score(entry, room, now))
        if entry.is_final:
            outcome.winner = Winner.SETTER
    else:
        raise AssertionError(f"unhandled signull status {status}")

    apply_score_result(room, scores)
    scheduler.advance(room)
    if outcome.winner is not None:
        end_game(room, outcome.winner, now)
    return outcome
