"""Room membership and settings: create, join, leave, presence, settings."""

from typing import Any, Dict

from .errors import GameError, INVALID_NAME, INVALID_PHASE, INVALID_SETTINGS, PLAYER_NOT_FOUND, ROOM_FULL
from .phases import require_host, require_phase
from .state import Phase, PlayMode, Player, Role, Room, Settings


MAX_NAME_LENGTH = 20
MIN_MAX_PLAYERS = 3
MAX_MAX_PLAYERS = 12
MIN_TIME_LIMIT_SEC = 10
MAX_TIME_LIMIT_SEC = 300


def clean_name(name) -> str:
    cleaned = (name or '').strip()
    if not cleaned or len(cleaned) > MAX_NAME_LENGTH:
        raise GameError(INVALID_NAME)
    return cleaned


def new_room(code: str, creator_id: str, name: str, settings: Settings, now: float) -> Room:
    """A fresh lobby. The creator is both host and setter."""
    creator = Player(id=creator_id, name=clean_name(name), role=Role.SETTER,
                     joined_at=now, last_active=now)
    return Room(
        code=code,
        players={creator_id: creator},
        host_id=creator_id,
        setter_id=creator_id,
        direct_guesses_left=settings.direct_guesses,
        settings=settings,
        created_at=now,
        updated_at=now,
    )


def join(room: Room, player_id: str, name: str, now: float) -> Role:
    existing = room.players.get(player_id)
    if existing is not None:
        # rejoin keeps role and score
        existing.online = True
        existing.last_active = now
        return existing.role

    if room.phase is Phase.ENDED:
        raise GameError(INVALID_PHASE, details={'phase': room.phase.value})
    if len(room.players) >= room.settings.max_players:
        raise GameError(ROOM_FULL)

    player = Player(id=player_id, name=clean_name(name), joined_at=now, last_active=now)
    # a returning player's earlier events still count
    player.score = sum(e.delta for e in room.score_events if e.player_id == player_id)
    if room.host_id is None or room.host_id not in room.players:
        room.host_id = player_id
    if room.setter_id is None or room.setter_id not in room.players:
        room.setter_id = player_id
        player.role = Role.SETTER
    room.players[player_id] = player
    return player.role


def leave(room: Room, player_id: str) -> bool:
    """Remove a player. Returns True when the room is now empty."""
    if player_id not in room.players:
        raise GameError(PLAYER_NOT_FOUND)
    del room.players[player_id]
    remaining = room.players_by_join()
    if not remaining:
        room.host_id = None
        room.setter_id = None
        return True
    if room.host_id == player_id:
        room.host_id = remaining[0].id
    if room.setter_id == player_id:
        room.setter_id = remaining[0].id
        remaining[0].role = Role.SETTER
    return False


def set_presence(room: Room, player_id: str, online: bool, now: float) -> None:
    player = room.players.get(player_id)
    if player is None:
        raise GameError(PLAYER_NOT_FOUND)
    player.online = online
    player.last_active = now


def _invalid(field_name: str, reason: str) -> GameError:
    return GameError(INVALID_SETTINGS, f"Invalid {field_name}: {reason}", {'field': field_name})


def validate_settings(patch: Dict[str, Any], base: Settings, player_count: int = 0) -> Settings:
    """Apply a partial settings patch onto `base` and validate the result."""
    merged = base.to_dict()
    for key, value in (patch or {}).items():
        if key not in merged:
            raise _invalid(key, 'unknown setting')
        merged[key] = value

    if merged['play_mode'] not in {m.value for m in PlayMode}:
        raise _invalid('play_mode', 'must be round_robin or free')
    for key in ('connects_required', 'max_players', 'time_limit_seconds', 'direct_guesses'):
        if isinstance(merged[key], bool) or not isinstance(merged[key], int):
            raise _invalid(key, 'must be an integer')
    if not isinstance(merged['prefix_mode'], bool):
        raise _invalid('prefix_mode', 'must be true or false')
    if merged['connects_required'] < 1:
        raise _invalid('connects_required', 'must be at least 1')
    if not MIN_MAX_PLAYERS <= merged['max_players'] <= MAX_MAX_PLAYERS:
        raise _invalid('max_players', f'must be between {MIN_MAX_PLAYERS} and {MAX_MAX_PLAYERS}')
    if merged['max_players'] < player_count:
        raise _invalid('max_players', 'is below the current player count')
    if not MIN_TIME_LIMIT_SEC <= merged['time_limit_seconds'] <= MAX_TIME_LIMIT_SEC:
        raise _invalid('time_limit_seconds', f'must be between {MIN_TIME_LIMIT_SEC} and {MAX_TIME_LIMIT_SEC}')
    if merged['direct_guesses'] < 1:
        raise _invalid('direct_guesses', 'must be at least 1')
    return Settings.from_dict(merged)


def update_settings(room: Room, actor_id: str, patch: Dict[str, Any]) -> Settings:
    require_host(room, actor_id)
    require_phase(room, Phase.LOBBY, Phase.SETTING)
    room.settings = validate_settings(patch, room.settings, len(room.players))
    room.direct_guesses_left = room.settings.direct_guesses
    return room.settings

