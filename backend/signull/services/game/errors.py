"""Stable, machine-readable error codes raised by the rules engine.

Every error aborts the mutation it was raised from; callers map the code to
user-facing text.
"""

from typing import Any, Dict, Optional


ROOM_NOT_FOUND = 'ROOM_NOT_FOUND'
ROOM_FULL = 'ROOM_FULL'
INVALID_PHASE = 'INVALID_PHASE'
NOT_SETTER = 'NOT_SETTER'
NOT_HOST = 'NOT_HOST'
NOT_GUESSER = 'NOT_GUESSER'
ONLY_GUESSER_CAN_CREATE = 'ONLY_GUESSER_CAN_CREATE'
ONLY_HOST_CAN_CHANGE_SETTER = 'ONLY_HOST_CAN_CHANGE_SETTER'
INVALID_WORD_FORMAT = 'INVALID_WORD_FORMAT'
WORD_PREFIX_MISMATCH = 'WORD_PREFIX_MISMATCH'
INVALID_CLUE = 'INVALID_CLUE'
INVALID_NAME = 'INVALID_NAME'
INVALID_SETTINGS = 'INVALID_SETTINGS'
PLAYER_NOT_FOUND = 'PLAYER_NOT_FOUND'
NOT_ENOUGH_PLAYERS = 'NOT_ENOUGH_PLAYERS'
SIGNULL_NOT_FOUND = 'SIGNULL_NOT_FOUND'
SIGNULL_NOT_PENDING = 'SIGNULL_NOT_PENDING'
SIGNULL_ID_REQUIRED = 'SIGNULL_ID_REQUIRED'
NO_ACTIVE_SIGNULL = 'NO_ACTIVE_SIGNULL'
ALREADY_CONNECTED = 'ALREADY_CONNECTED'
CANNOT_CONNECT_OWN_SIGNULL = 'CANNOT_CONNECT_OWN_SIGNULL'
NO_GUESSES_LEFT = 'NO_GUESSES_LEFT'
TRANSACTION_CONFLICT = 'TRANSACTION_CONFLICT'

MESSAGES = {
    ROOM_NOT_FOUND: 'Room not found',
    ROOM_FULL: 'Room is full',
    INVALID_PHASE: 'Not allowed in the current phase',
    NOT_SETTER: 'Only the setter can do that',
    NOT_HOST: 'Only the host can do that',
    NOT_GUESSER: 'Only a guesser can do that',
    ONLY_GUESSER_CAN_CREATE: 'Only a guesser can create a signull',
    ONLY_HOST_CAN_CHANGE_SETTER: 'Only the host can change the setter',
    INVALID_WORD_FORMAT: 'Words may only contain letters',
    WORD_PREFIX_MISMATCH: 'Word must start with the revealed prefix',
    INVALID_CLUE: 'Clue must be between 1 and 120 characters',
    INVALID_NAME: 'Name must be between 1 and 20 characters',
    INVALID_SETTINGS: 'Invalid settings',
    PLAYER_NOT_FOUND: 'Player not found',
    NOT_ENOUGH_PLAYERS: 'Not enough players to start',
    SIGNULL_NOT_FOUND: 'Signull not found',
    SIGNULL_NOT_PENDING: 'Signull is no longer pending',
    SIGNULL_ID_REQUIRED: 'A signull id is required',
    NO_ACTIVE_SIGNULL: 'There is no active signull',
    ALREADY_CONNECTED: 'You already connected to this signull',
    CANNOT_CONNECT_OWN_SIGNULL: 'You cannot connect to your own signull',
    NO_GUESSES_LEFT: 'No direct guesses left',
    TRANSACTION_CONFLICT: 'Too many concurrent updates, try again',
}


class GameError(Exception):
    """A rejected mutation. Nothing it touched has been committed."""

    def __init__(self, code: str, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message or MESSAGES.get(code, code)
        self.details = details or {}
        super().__init__(f"{self.code}: {self.message}")

    def to_dict(self) -> Dict[str, Any]:
        payload = {'error': self.code, 'message': self.message}
        if self.details:
            payload['details'] = self.details
        return payload


def prefix_mismatch(required_prefix: str) -> GameError:
    return GameError(
        WORD_PREFIX_MISMATCH,
        f"Word must start with {required_prefix}",
        {'required_prefix': required_prefix},
    )
