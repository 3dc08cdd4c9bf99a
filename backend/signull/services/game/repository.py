"""Transactional access to room aggregates.

`apply` is the only write path: read snapshot, compute, write snapshot, as
one unit. A concurrent commit to the same room makes the write fail with
StaleDataError and the whole unit is re-run against the fresh snapshot.
"""

import time
from typing import Any, Callable, Optional, Tuple

from flask import current_app
from sqlalchemy.orm.exc import StaleDataError

from signull import db
from signull.models import Room as RoomRow, generate_room_code
from .errors import GameError, ROOM_NOT_FOUND, TRANSACTION_CONFLICT
from .state import Room


DELETE_ROOM = object()


def server_now(previous: float = 0.0) -> float:
    # strictly increasing per room, so snapshots order by updated_at
    return max(time.time(), previous + 0.001)


def normalize_code(code: Optional[str]) -> str:
    return (code or '').strip().upper()


class RoomRepository:
    def __init__(self, max_retries: Optional[int] = None, on_commit: Optional[Callable[[str, Optional[Room]], None]] = None):
        self.max_retries = max_retries
        self.on_commit = on_commit

    def _retries(self) -> int:
        if self.max_retries is not None:
            return self.max_retries
        return int(current_app.config.get('TXN_MAX_RETRIES', 5))

    def load(self, code: str) -> Room:
        row = RoomRow.query.filter_by(code=normalize_code(code)).first()
        if not row:
            raise GameError(ROOM_NOT_FOUND)
        return Room.from_dict(row.state)

    def create(self, build: Callable[[str, float], Room]) -> Room:
        """Insert a new room; `build(code, now)` returns its first snapshot."""
        now = server_now()
        code = generate_room_code()
        room = build(code, now)
        row = RoomRow(code=code, state=room.to_dict(), created_at=now, updated_at=now)
        db.session.add(row)
        db.session.commit()
        self._published(code, room)
        return room

    def apply(self, code: str, fn: Callable[[Room, float], Any]) -> Tuple[Optional[Room], Any]:
        """Run `fn(room, now)` atomically against the room's current snapshot.

        `fn` mutates the decoded aggregate in place and returns a result. It
        may return DELETE_ROOM to remove the room. Any GameError it raises
        rolls the transaction back and propagates unchanged.
        """
        code = normalize_code(code)
        attempts = self._retries()
        for attempt in range(1, attempts + 1):
            row = RoomRow.query.filter_by(code=code).first()
            if not row:
                db.session.rollback()
                raise GameError(ROOM_NOT_FOUND)
            room = Room.from_dict(row.state)
            now = server_now(room.updated_at)
            try:
                result = fn(room, now)
            except GameError:
                db.session.rollback()
                raise

            if result is DELETE_ROOM:
                db.session.delete(row)
                room = None
            else:
                room.updated_at = now
                row.state = room.to_dict()
                row.updated_at = now
            try:
                db.session.commit()
            except StaleDataError:
                db.session.rollback()
                current_app.logger.info(f"[txn-retry] room={code} attempt={attempt}")
                continue
            self._published(code, room)
            return room, result
        raise GameError(TRANSACTION_CONFLICT)

    def _published(self, code: str, room: Optional[Room]) -> None:
        if self.on_commit is not None:
            self.on_commit(code, room)
