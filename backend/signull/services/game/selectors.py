"""Read-side helpers over a room snapshot."""

from typing import Any, Dict, List, Optional

from . import scheduler
from .state import Room, SignullEntry, SignullStatus
from .words import mask


def pending_connectors(room: Room, entry: SignullEntry) -> List[str]:
    """Guessers who may still connect to `entry`."""
    return [
        gid for gid in room.guesser_ids()
        if gid != entry.player_id and not entry.has_connected(gid)
    ]


def connects_remaining(room: Room, entry: SignullEntry) -> int:
    if entry.status is not SignullStatus.PENDING:
        return 0
    correct = sum(1 for c in entry.connects if c.is_correct and not room.is_setter(c.player_id))
    return max(0, room.settings.connects_required - correct)


def pending_signulls(room: Room) -> List[SignullEntry]:
    return [e for e in room.ledger.entries() if e.status is SignullStatus.PENDING]


def room_payload(room: Optional[Room]) -> Optional[Dict[str, Any]]:
    """The full snapshot pushed to subscribers and returned by the state endpoint."""
    if room is None:
        return None
    payload = room.to_dict()
    payload['active_signull_id'] = scheduler.active_signull_id(room)
    payload['revealed_mask'] = mask(room.secret_word, room.revealed_count)
    payload['pending'] = {
        e.id: {
            'awaiting': pending_connectors(room, e),
            'connects_remaining': connects_remaining(room, e),
        }
        for e in pending_signulls(room)
    }
    return payload
