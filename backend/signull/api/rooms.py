from flask import Blueprint, jsonify, request
from signull.services.game.errors import GameError
from signull.services.game.gateway import MutationGateway
from signull.services.game.scoring import score_breakdown
from signull.services.game.selectors import room_payload


rooms = Blueprint('rooms', __name__)
gateway = MutationGateway()

STATUS_BY_CODE = {
    'ROOM_NOT_FOUND': 404,
    'PLAYER_NOT_FOUND': 404,
    'SIGNULL_NOT_FOUND': 404,
    'NOT_SETTER': 403,
    'NOT_HOST': 403,
    'NOT_GUESSER': 403,
    'ONLY_GUESSER_CAN_CREATE': 403,
    'ONLY_HOST_CAN_CHANGE_SETTER': 403,
    'CANNOT_CONNECT_OWN_SIGNULL': 403,
    'ROOM_FULL': 409,
    'TRANSACTION_CONFLICT': 409,
}


@rooms.errorhandler(GameError)
def handle_game_error(exc):
    return jsonify(exc.to_dict()), STATUS_BY_CODE.get(exc.code, 400)


def _body():
    return request.get_json(silent=True) or {}


def _missing(*names):
    return jsonify({'error': 'MISSING_FIELDS', 'message': f"Required: {', '.join(names)}"}), 400


def _state(code):
    return jsonify(room_payload(gateway.snapshot(code)))


@rooms.route('/create', methods=['POST'])
def create_room():
    data = _body()
    player_id = data.get('player_id')
    name = data.get('name')
    if not all([player_id, name]):
        return _missing('player_id', 'name')
    code = gateway.create_room(player_id, name, data.get('settings'))
    return jsonify({'message': 'New room created!', 'code': code}), 201


@rooms.route('/join', methods=['POST'])
def join_room():
    data = _body()
    code = data.get('code')
    player_id = data.get('player_id')
    name = data.get('name')
    if not all([code, player_id, name]):
        return _missing('code', 'player_id', 'name')
    role = gateway.join_room(code, player_id, name)
    return jsonify({'code': code.upper(), 'player_id': player_id, 'role': role.value}), 201


@rooms.route('/<string:code>/leave', methods=['POST'])
def leave_room(code):
    player_id = _body().get('player_id')
    if not player_id:
        return _missing('player_id')
    gateway.leave_room(code, player_id)
    return jsonify({'message': 'You have left the room.'}), 200


@rooms.route('/<string:code>/state', methods=['GET'])
def get_room_state(code):
    return _state(code)


@rooms.route('/<string:code>/scores', methods=['GET'])
def get_scores(code):
    room = gateway.snapshot(code)
    return jsonify({
        'scores': {pid: p.score for pid, p in room.players.items()},
        'breakdown': score_breakdown(room),
        'events': [e.to_dict() for e in room.score_events],
    })


@rooms.route('/<string:code>/settings', methods=['POST'])
def update_settings(code):
    data = _body()
    player_id = data.get('player_id')
    settings = data.get('settings')
    if not player_id or not isinstance(settings, dict):
        return _missing('player_id', 'settings')
    gateway.update_settings(code, player_id, settings)
    return _state(code)


@rooms.route('/<string:code>/start', methods=['POST'])
def start_game(code):
    player_id = _body().get('player_id')
    if not player_id:
        return _missing('player_id')
    gateway.start_game(code, player_id)
    return _state(code)


@rooms.route('/<string:code>/setter', methods=['POST'])
def change_setter(code):
    data = _body()
    player_id = data.get('player_id')
    new_setter_id = data.get('new_setter_id')
    if not all([player_id, new_setter_id]):
        return _missing('player_id', 'new_setter_id')
    gateway.change_setter(code, player_id, new_setter_id)
    return _state(code)


@rooms.route('/<string:code>/secret', methods=['POST'])
def set_secret_word(code):
    data = _body()
    player_id = data.get('player_id')
    word = data.get('word')
    if not all([player_id, word]):
        return _missing('player_id', 'word')
    gateway.set_secret_word(code, player_id, word)
    return _state(code)


@rooms.route('/<string:code>/signulls', methods=['POST'])
def create_signull(code):
    data = _body()
    player_id = data.get('player_id')
    word = data.get('word')
    clue = data.get('clue')
    if not all([player_id, word, clue]):
        return _missing('player_id', 'word', 'clue')
    signull_id = gateway.create_signull(code, player_id, word, clue)
    return jsonify({'signull_id': signull_id}), 201


@rooms.route('/<string:code>/connect', methods=['POST'])
def submit_connect(code):
    data = _body()
    player_id = data.get('player_id')
    guess = data.get('guess')
    if not all([player_id, guess]):
        return _missing('player_id', 'guess')
    outcome = gateway.submit_connect(code, player_id, guess, data.get('signull_id'))
    return jsonify({
        'signull_id': outcome.signull_id,
        'is_correct': outcome.is_correct,
        'status': outcome.status.value,
        'revealed': outcome.revealed,
        'winner': outcome.winner.value if outcome.winner else None,
    })


@rooms.route('/<string:code>/guess', methods=['POST'])
def submit_direct_guess(code):
    data = _body()
    player_id = data.get('player_id')
    guess = data.get('guess')
    if not all([player_id, guess]):
        return _missing('player_id', 'guess')
    is_correct = gateway.submit_direct_guess(code, player_id, guess)
    room = gateway.snapshot(code)
    return jsonify({
        'is_correct': is_correct,
        'direct_guesses_left': room.direct_guesses_left,
        'phase': room.phase.value,
        'winner': room.winner.value if room.winner else None,
    })


@rooms.route('/<string:code>/play-again', methods=['POST'])
def play_again(code):
    player_id = _body().get('player_id')
    if not player_id:
        return _missing('player_id')
    gateway.play_again(code, player_id)
    return _state(code)


@rooms.route('/<string:code>/lobby', methods=['POST'])
def back_to_lobby(code):
    data = _body()
    player_id = data.get('player_id')
    if not player_id:
        return _missing('player_id')
    gateway.back_to_lobby(code, player_id, reset_scores=bool(data.get('reset_scores')))
    return _state(code)
