"""Mutation API for a game room.

Every call validates actor, role and phase inside one store transaction,
runs the rule modules against the loaded aggregate and commits the result.
Failures raise GameError and leave the stored room untouched.
"""

from typing import Any, Callable, Dict, Optional

from flask import current_app

from . import ledger, lobby, phases
from .errors import GameError
from .publish import publish_room
from .repository import DELETE_ROOM, RoomRepository
from .state import Phase, PlayMode, Role, Room, Settings


def default_settings() -> Settings:
    cfg = current_app.config
    return Settings(
        play_mode=PlayMode(cfg.get('DEFAULT_PLAY_MODE', PlayMode.ROUND_ROBIN.value)),
        connects_required=int(cfg.get('DEFAULT_CONNECTS_REQUIRED', 2)),
        max_players=int(cfg.get('DEFAULT_MAX_PLAYERS', 8)),
        prefix_mode=bool(cfg.get('DEFAULT_PREFIX_MODE', True)),
        time_limit_seconds=int(cfg.get('DEFAULT_TIME_LIMIT_SEC', 30)),
        direct_guesses=int(cfg.get('DIRECT_GUESS_BUDGET', 3)),
    )


class MutationGateway:
    def __init__(self, repository: Optional[RoomRepository] = None):
        self.repository = repository or RoomRepository(on_commit=publish_room)

    def _mutate(self, op: str, code: str, actor_id: Optional[str], fn: Callable[[Room, float], Any]):
        current_app.logger.info(f"[mutation] room={code} op={op} actor={actor_id}")
        phase_before = {}

        def run(room: Room, now: float):
            phase_before['phase'] = room.phase
            return fn(room, now)

        try:
            room, result = self.repository.apply(code, run)
        except GameError as exc:
            current_app.logger.info(f"[mutation-rejected] room={code} op={op} actor={actor_id} code={exc.code}")
            raise
        if room is not None and room.phase is Phase.ENDED and phase_before.get('phase') is not Phase.ENDED:
            current_app.logger.info(
                f"[game-ended] room={room.code} winner={room.winner.value if room.winner else None} "
                f"revealed={room.revealed_count}/{len(room.secret_word)}"
            )
        return result

    def snapshot(self, code: str) -> Room:
        return self.repository.load(code)

    # ---- lobby ----

    def create_room(self, creator_id: str, name: str, settings: Optional[Dict[str, Any]] = None) -> str:
        validated = lobby.validate_settings(settings or {}, default_settings(), player_count=1)
        room = self.repository.create(
            lambda code, now: lobby.new_room(code, creator_id, name, validated, now)
        )
        current_app.logger.info(f"[room-created] room={room.code} host={creator_id}")
        return room.code

    def join_room(self, code: str, player_id: str, name: str) -> Role:
        return self._mutate('join_room', code, player_id,
                            lambda room, now: lobby.join(room, player_id, name, now))

    def leave_room(self, code: str, player_id: str) -> None:
        def fn(room, now):
            if lobby.leave(room, player_id):
                return DELETE_ROOM
            return None
        self._mutate('leave_room', code, player_id, fn)

    def set_presence(self, code: str, player_id: str, online: bool) -> None:
        self._mutate('set_presence', code, player_id,
                     lambda room, now: lobby.set_presence(room, player_id, online, now))

    def update_settings(self, code: str, actor_id: str, patch: Dict[str, Any]) -> Settings:
        return self._mutate('update_settings', code, actor_id,
                            lambda room, now: lobby.update_settings(room, actor_id, patch))

    def change_setter(self, code: str, actor_id: str, new_setter_id: str) -> None:
        self._mutate('change_setter', code, actor_id,
                     lambda room, now: phases.change_setter(room, actor_id, new_setter_id))

    def start_game(self, code: str, actor_id: str) -> None:
        min_players = int(current_app.config.get('MIN_PLAYERS', 2))
        self._mutate('start_game', code, actor_id,
                     lambda room, now: phases.start_game(room, actor_id, min_players))

    # ---- round ----

    def set_secret_word(self, code: str, actor_id: str, word: str) -> None:
        self._mutate('set_secret_word', code, actor_id,
                     lambda room, now: phases.set_secret_word(room, actor_id, word))

    def create_signull(self, code: str, actor_id: str, word: str, clue: str) -> str:
        return self._mutate('create_signull', code, actor_id,
                            lambda room, now: ledger.create_signull(room, actor_id, word, clue, now))

    def submit_connect(self, code: str, actor_id: str, guess: str,
                       signull_id: Optional[str] = None) -> ledger.ConnectOutcome:
        outcome = self._mutate('submit_connect', code, actor_id,
                               lambda room, now: ledger.submit_connect(room, actor_id, signull_id, guess, now))
        if outcome.status.is_terminal:
            current_app.logger.info(
                f"[signull-{outcome.status.value}] room={code} signull={outcome.signull_id} revealed={outcome.revealed}"
            )
        return outcome

    def submit_direct_guess(self, code: str, actor_id: str, guess: str) -> bool:
        return self._mutate('submit_direct_guess', code, actor_id,
                            lambda room, now: phases.submit_direct_guess(room, actor_id, guess, now))

    def play_again(self, code: str, actor_id: str) -> None:
        self._mutate('play_again', code, actor_id,
                     lambda room, now: phases.play_again(room, actor_id))

    def back_to_lobby(self, code: str, actor_id: str, reset_scores: bool = False) -> None:
        self._mutate('back_to_lobby', code, actor_id,
                     lambda room, now: phases.back_to_lobby(room, actor_id, reset_scores))
