"""Fan-out of committed snapshots to Socket.IO subscribers."""

from typing import Optional

from signull import socketio
from .selectors import room_payload
from .state import Room


NAMESPACE = '/ws'


def room_channel(code: str) -> str:
    return f"room:{code}"


def publish_room(code: str, room: Optional[Room]) -> None:
    """Push the full snapshot after a commit; a deleted room gets `room_closed`."""
    if room is None:
        socketio.emit('room_closed', {'code': code}, to=room_channel(code), namespace=NAMESPACE)
        return
    socketio.emit('state_update', room_payload(room), to=room_channel(code), namespace=NAMESPACE)
