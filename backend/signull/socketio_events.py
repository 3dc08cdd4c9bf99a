from flask import current_app, request
from flask_socketio import join_room, leave_room, emit
from typing import Dict, Any
from signull import socketio
from signull.services.game.errors import GameError
from signull.services.game.gateway import MutationGateway
from signull.services.game.publish import NAMESPACE, room_channel
from signull.services.game.repository import normalize_code
from signull.services.game.selectors import room_payload


gateway = MutationGateway()

# socket sid -> {'code': ..., 'player_id': ...}
_sid_to_ctx: Dict[str, Dict[str, Any]] = {}


def _get_sid() -> str:
    return request.sid  # type: ignore


def handle_connect():
    emit('connected', {'message': f'Connected to {NAMESPACE}'})


def handle_disconnect(reason=None):
    ctx = _sid_to_ctx.pop(_get_sid(), None)
    if not ctx or not ctx.get('player_id'):
        return
    try:
        gateway.set_presence(ctx['code'], ctx['player_id'], False)
    except GameError as exc:
        # room or player already gone
        current_app.logger.info(f"[presence-skip] room={ctx['code']} player={ctx['player_id']} code={exc.code}")


def handle_join_room(data):
    code = normalize_code((data or {}).get('code'))
    player_id = (data or {}).get('player_id')
    if not code:
        emit('error', {'error': 'MISSING_FIELDS', 'message': 'code is required'})
        return
    try:
        if player_id:
            gateway.set_presence(code, player_id, True)
        room = gateway.snapshot(code)
    except GameError as exc:
        emit('error', exc.to_dict())
        return

    channel = room_channel(code)
    join_room(channel)
    _sid_to_ctx[_get_sid()] = {'code': code, 'player_id': player_id}
    current_app.logger.info(f"[ws-join] room={code} player={player_id}")
    emit('joined', {'room': channel})
    emit('state_update', room_payload(room))


def handle_leave_room(data):
    code = normalize_code((data or {}).get('code'))
    if not code:
        emit('error', {'error': 'MISSING_FIELDS', 'message': 'code is required'})
        return
    channel = room_channel(code)
    leave_room(channel)
    ctx = _sid_to_ctx.get(_get_sid())
    if ctx and ctx.get('code') == code:
        _sid_to_ctx.pop(_get_sid(), None)
    emit('left', {'room': channel})


def handle_ping(data):
    emit('pong', data or {})


HANDLERS = {
    'connect': handle_connect,
    'disconnect': handle_disconnect,
    'join_room': handle_join_room,
    'leave_room': handle_leave_room,
    'ping': handle_ping,
}


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always registered on namespace '/ws'. When testing is True, the handlers
    are mirrored on the default namespace '/' for the test harness.
    """
    for event, handler in HANDLERS.items():
        socketio.on_event(event, handler, namespace=NAMESPACE)

    if testing:
        for event, handler in HANDLERS.items():
            socketio.on_event(event, handler, namespace='/')
