"""Round-robin turn pointer over the signull ledger.

The pointer is an index into the stage-grouped, creation-ordered
flattening of signull ids. It only exists in round-robin mode; in free mode
it is always None and callers pick their target by id.
"""

from typing import Optional

from .state import Room, SignullEntry, SignullStatus


def active_signull_id(room: Room) -> Optional[str]:
    if not room.is_round_robin:
        return None
    idx = room.ledger.active_index
    if idx is None:
        return None
    order = room.ledger.flattened()
    if 0 <= idx < len(order):
        return order[idx]
    return None


def active_signull(room: Room) -> Optional[SignullEntry]:
    sid = active_signull_id(room)
    return room.ledger.get(sid) if sid else None


def point_at(room: Room, signull_id: str) -> None:
    """Move the pointer to a newly created entry."""
    if not room.is_round_robin:
        room.ledger.active_index = None
        return
    room.ledger.active_index = room.ledger.flattened().index(signull_id)


def advance(room: Room) -> None:
    """Advance past a pointed-to entry that is no longer pending.

    Lands on the first still-pending entry in creation order, or clears the
    pointer when none remain. A pointer already on a pending entry is left
    alone.
    """
    if not room.is_round_robin:
        room.ledger.active_index = None
        return
    current = active_signull(room)
    if current is not None and current.status is SignullStatus.PENDING:
        return
    order = room.ledger.flattened()
    for idx, sid in enumerate(order):
        if room.ledger.items_by_id[sid].status is SignullStatus.PENDING:
            room.ledger.active_index = idx
            return
    room.ledger.active_index = None


def reset(room: Room) -> None:
    room.ledger.active_index = None
