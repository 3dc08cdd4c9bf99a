import re

from .errors import GameError, INVALID_WORD_FORMAT


WORD_RE = re.compile(r'^[A-Z]+$')


def normalize(word) -> str:
    return (word or '').strip().upper()


def require_word(word) -> str:
    """Normalize and reject anything that is not letters only."""
    upper = normalize(word)
    if not WORD_RE.match(upper):
        raise GameError(INVALID_WORD_FORMAT)
    return upper


def mask(secret_word: str, revealed_count: int, blank: str = '_') -> str:
    """Display form of the secret word, e.g. ``OX____``."""
    return secret_word[:revealed_count] + blank * max(0, len(secret_word) - revealed_count)
