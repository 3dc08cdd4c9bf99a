"""Room phase state machine and the direct-guess budget.

    lobby -> setting -> signulls -> ended
    ended -> setting             (play_again, scores kept)
    ended | signulls -> lobby    (back_to_lobby, scores optionally reset)

Direct guesses are only legal during `signulls`.
"""

from . import scheduler
from .errors import (
    GameError, INVALID_PHASE, NOT_SETTER, NOT_HOST, NOT_GUESSER, NO_GUESSES_LEFT,
    ONLY_HOST_CAN_CHANGE_SETTER, PLAYER_NOT_FOUND, NOT_ENOUGH_PLAYERS,
)
from .insights import compute_insights
from .scoring import apply_score_result, direct_guess_score, game_end_score
from .state import LastDirectGuess, Phase, Role, Room, SignullLedger, Winner
from .words import require_word


def require_phase(room: Room, *phases: Phase) -> None:
    if room.phase not in phases:
        raise GameError(INVALID_PHASE, details={'phase': room.phase.value})


def require_host(room: Room, actor_id: str, code: str = NOT_HOST) -> None:
    if actor_id not in room.players:
        raise GameError(PLAYER_NOT_FOUND)
    if room.host_id != actor_id:
        raise GameError(code)


def end_game(room: Room, winner: Winner, now: float) -> None:
    """Move to `ended`. Insights are computed here and nowhere else."""
    room.phase = Phase.ENDED
    room.winner = winner
    apply_score_result(room, game_end_score(room, now))
    room.insights = compute_insights(room, now)


def start_game(room: Room, actor_id: str, min_players: int = 2) -> None:
    require_host(room, actor_id)
    require_phase(room, Phase.LOBBY)
    if len(room.players) < min_players:
        raise GameError(NOT_ENOUGH_PLAYERS, details={'min_players': min_players})
    room.phase = Phase.SETTING


def set_secret_word(room: Room, actor_id: str, word: str) -> None:
    upper = require_word(word)
    if actor_id not in room.players:
        raise GameError(PLAYER_NOT_FOUND)
    if not room.is_setter(actor_id):
        raise GameError(NOT_SETTER)
    require_phase(room, Phase.LOBBY, Phase.SETTING)
    room.secret_word = upper
    room.revealed_count = 0
    room.ledger = SignullLedger()
    room.phase = Phase.SIGNULLS


def change_setter(room: Room, actor_id: str, new_setter_id: str) -> None:
    require_host(room, actor_id, ONLY_HOST_CAN_CHANGE_SETTER)
    require_phase(room, Phase.SETTING)
    if new_setter_id not in room.players:
        raise GameError(PLAYER_NOT_FOUND)
    old = room.players.get(room.setter_id) if room.setter_id else None
    if old is not None:
        old.role = Role.GUESSER
    room.players[new_setter_id].role = Role.SETTER
    room.setter_id = new_setter_id


def submit_direct_guess(room: Room, actor_id: str, guess: str, now: float) -> bool:
    """Spend one direct guess. Returns whether it matched the secret word."""
    upper = require_word(guess)
    require_phase(room, Phase.SIGNULLS)
    player = room.players.get(actor_id)
    if player is None:
        raise GameError(PLAYER_NOT_FOUND)
    if player.role is not Role.GUESSER:
        raise GameError(NOT_GUESSER)
    if room.direct_guesses_left <= 0:
        raise GameError(NO_GUESSES_LEFT)

    room.direct_guesses_left -= 1
    room.last_direct_guess = LastDirectGuess(actor_id, player.name, upper, now)
    is_correct = upper == room.secret_word
    apply_score_result(room, direct_guess_score(actor_id, is_correct, room, now))

    if is_correct:
        end_game(room, Winner.GUESSERS, now)
    elif room.direct_guesses_left == 0:
        end_game(room, Winner.SETTER, now)
    return is_correct


def _reset_round(room: Room) -> None:
    room.secret_word = ''
    room.revealed_count = 0
    room.ledger = SignullLedger()
    scheduler.reset(room)
    room.direct_guesses_left = room.settings.direct_guesses
    room.last_direct_guess = None
    room.winner = None
    room.insights = []


def play_again(room: Room, actor_id: str) -> None:
    require_host(room, actor_id)
    require_phase(room, Phase.ENDED)
    _reset_round(room)
    room.phase = Phase.SETTING


def back_to_lobby(room: Room, actor_id: str, reset_scores: bool = False) -> None:
    require_host(room, actor_id)
    require_phase(room, Phase.ENDED, Phase.SIGNULLS)
    _reset_round(room)
    if reset_scores:
        for player in room.players.values():
            player.score = 0
        room.score_events = []
    room.phase = Phase.LOBBY

