"""Score computation for signull events.

Every function here is pure: it maps an event and the aggregate to a
`ScoreResult` (per-player deltas plus the audit events that explain them).
`apply_score_result` is the only place scores are written, and it writes
both the player's running total and the append-only `score_events` log so
the two always reconcile.

Rules:
- Setter intercepts a signull: +5 to the setter.
- Signull resolved: +10 to its creator, +5 to each guesser who connected
  correctly.
- Lightning signull resolved or failed: creator and each correct guesser
  get another +5 per letter still hidden; on a resolved lightning signull
  the setter gets +5 per letter already revealed.
- Direct guesses and game end: no score change.
"""

from dataclasses import dataclass, field
from typing import Dict, List

from .state import Room, ScoreEvent, SignullEntry


INTERCEPT_SIGNULL = 5
SIGNULL_RESOLVED_CREATOR = 10
SIGNULL_RESOLVED_CONNECTOR = 5
LIGHTNING_PER_REMAINING_LETTER = 5
LIGHTNING_SETTER_PER_REVEALED_LETTER = 5

REASON_INTERCEPT = 'intercept_signull'
REASON_RESOLVED = 'signull_resolved'
REASON_CONNECTED = 'signull_connect_correct'
REASON_LIGHTNING = 'lightning_bonus'
REASON_LIGHTNING_SETTER = 'lightning_setter_bonus'


@dataclass
class ScoreResult:
    updates: Dict[str, int] = field(default_factory=dict)
    events: List[ScoreEvent] = field(default_factory=list)

    def add(self, player_id: str, delta: int, reason: str, now: float, **details) -> None:
        self.updates[player_id] = self.updates.get(player_id, 0) + delta
        self.events.append(ScoreEvent(player_id, delta, reason, now, details))

    def merge(self, other: 'ScoreResult') -> 'ScoreResult':
        for pid, delta in other.updates.items():
            self.updates[pid] = self.updates.get(pid, 0) + delta
        self.events.extend(other.events)
        return self


def _correct_guesser_ids(entry: SignullEntry, room: Room) -> List[str]:
    ids = []
    for c in entry.connects:
        if c.is_correct and not room.is_setter(c.player_id) and c.player_id not in ids:
            ids.append(c.player_id)
    return ids


def intercept_score(setter_id: str, entry: SignullEntry, now: float) -> ScoreResult:
    result = ScoreResult()
    result.add(setter_id, INTERCEPT_SIGNULL, REASON_INTERCEPT, now, signull_id=entry.id)
    return result


def resolved_score(entry: SignullEntry, room: Room, now: float) -> ScoreResult:
    """Score a resolved signull. `room.revealed_count` must be the pre-reveal value."""
    result = ScoreResult()
    result.add(entry.player_id, SIGNULL_RESOLVED_CREATOR, REASON_RESOLVED, now,
               signull_id=entry.id, word=entry.word)
    for pid in _correct_guesser_ids(entry, room):
        result.add(pid, SIGNULL_RESOLVED_CONNECTOR, REASON_CONNECTED, now, signull_id=entry.id)
    if entry.is_final:
        result.merge(lightning_score(entry, room, now, resolved=True))
    return result


def failed_score(entry: SignullEntry, room: Room, now: float) -> ScoreResult:
    if not entry.is_final:
        return ScoreResult()
    return lightning_score(entry, room, now, resolved=False)


def lightning_score(entry: SignullEntry, room: Room, now: float, resolved: bool) -> ScoreResult:
    result = ScoreResult()
    remaining = room.remaining_letters
    bonus = LIGHTNING_PER_REMAINING_LETTER * remaining
    if bonus:
        for pid in [entry.player_id] + _correct_guesser_ids(entry, room):
            result.add(pid, bonus, REASON_LIGHTNING, now,
                       signull_id=entry.id, remaining_letters=remaining, resolved=resolved)
    setter_bonus = LIGHTNING_SETTER_PER_REVEALED_LETTER * room.revealed_count
    if resolved and setter_bonus and room.setter_id:
        result.add(room.setter_id, setter_bonus, REASON_LIGHTNING_SETTER, now,
                   signull_id=entry.id, revealed_count=room.revealed_count)
    return result


def direct_guess_score(player_id: str, is_correct: bool, room: Room, now: float) -> ScoreResult:
    # Direct guesses do not score.
    return ScoreResult()


def game_end_score(room: Room, now: float) -> ScoreResult:
    # Winning or losing carries no bonus of its own.
    return ScoreResult()


def apply_score_result(room: Room, result: ScoreResult) -> None:
    for event in result.events:
        player = room.players.get(event.player_id)
        if player is not None:
            player.score += event.delta
        room.score_events.append(event)


def score_breakdown(room: Room) -> Dict[str, Dict[str, int]]:
    """Per-player totals grouped by reason, for the end-of-game screen."""
    breakdown: Dict[str, Dict[str, int]] = {pid: {} for pid in room.players}
    for event in room.score_events:
        reasons = breakdown.setdefault(event.player_id, {})
        reasons[event.reason] = reasons.get(event.reason, 0) + event.delta
    return breakdown
