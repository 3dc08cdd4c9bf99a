"""Room aggregate: the single mutable root object per game room.

The aggregate is plain data. It is decoded from the store at the start of a
transaction, mutated by the rule modules, and encoded back on commit. The
`to_dict` form is also what every subscriber receives on `state_update`.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class Phase(str, Enum):
    LOBBY = 'lobby'
    SETTING = 'setting'
    SIGNULLS = 'signulls'
    ENDED = 'ended'


class Role(str, Enum):
    SETTER = 'setter'
    GUESSER = 'guesser'


class PlayMode(str, Enum):
    ROUND_ROBIN = 'round_robin'
    FREE = 'free'


class Winner(str, Enum):
    GUESSERS = 'guessers'
    SETTER = 'setter'


class SignullStatus(str, Enum):
    PENDING = 'pending'
    RESOLVED = 'resolved'
    FAILED = 'failed'
    BLOCKED = 'blocked'
    INACTIVE = 'inactive'

    @property
    def is_terminal(self) -> bool:
        return self is not SignullStatus.PENDING


@dataclass
class Player:
    id: str
    name: str
    role: Role = Role.GUESSER
    online: bool = True
    score: int = 0
    joined_at: float = 0.0
    last_active: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'role': self.role.value,
            'online': self.online,
            'score': self.score,
            'joined_at': self.joined_at,
            'last_active': self.last_active,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Player':
        return cls(
            id=data['id'],
            name=data['name'],
            role=Role(data.get('role', Role.GUESSER.value)),
            online=bool(data.get('online', True)),
            score=int(data.get('score', 0)),
            joined_at=float(data.get('joined_at', 0.0)),
            last_active=float(data.get('last_active', 0.0)),
        )


@dataclass
class SignullConnect:
    player_id: str
    guess: str
    is_correct: bool
    timestamp: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'player_id': self.player_id,
            'guess': self.guess,
            'is_correct': self.is_correct,
            'timestamp': self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SignullConnect':
        return cls(
            player_id=data['player_id'],
            guess=data['guess'],
            is_correct=bool(data['is_correct']),
            timestamp=float(data['timestamp']),
        )


@dataclass
class SignullEntry:
    id: str
    player_id: str
    word: str
    clue: str
    stage: int
    is_final: bool = False
    status: SignullStatus = SignullStatus.PENDING
    connects: List[SignullConnect] = field(default_factory=list)
    created_at: float = 0.0
    resolved_at: Optional[float] = None

    def has_connected(self, player_id: str) -> bool:
        return any(c.player_id == player_id for c in self.connects)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'player_id': self.player_id,
            'word': self.word,
            'clue': self.clue,
            'stage': self.stage,
            'is_final': self.is_final,
            'status': self.status.value,
            'connects': [c.to_dict() for c in self.connects],
            'created_at': self.created_at,
            'resolved_at': self.resolved_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SignullEntry':
        return cls(
            id=data['id'],
            player_id=data['player_id'],
            word=data['word'],
            clue=data['clue'],
            stage=int(data['stage']),
            is_final=bool(data.get('is_final', False)),
            status=SignullStatus(data.get('status', SignullStatus.PENDING.value)),
            connects=[SignullConnect.from_dict(c) for c in data.get('connects', [])],
            created_at=float(data.get('created_at', 0.0)),
            resolved_at=data.get('resolved_at'),
        )


@dataclass
class SignullLedger:
    """Signull entries grouped by creation stage.

    `order` maps stage (the revealed count at creation) to ids in insertion
    order. Iteration is by ascending stage, then insertion order.
    """
    order: Dict[int, List[str]] = field(default_factory=dict)
    items_by_id: Dict[str, SignullEntry] = field(default_factory=dict)
    active_index: Optional[int] = None

    def flattened(self) -> List[str]:
        ids: List[str] = []
        for stage in sorted(self.order):
            ids.extend(self.order[stage])
        return ids

    def entries(self) -> List[SignullEntry]:
        return [self.items_by_id[sid] for sid in self.flattened()]

    def stage_entries(self, stage: int) -> List[SignullEntry]:
        return [self.items_by_id[sid] for sid in self.order.get(stage, [])]

    def add(self, entry: SignullEntry) -> None:
        self.order.setdefault(entry.stage, []).append(entry.id)
        self.items_by_id[entry.id] = entry

    def get(self, signull_id: str) -> Optional[SignullEntry]:
        return self.items_by_id.get(signull_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'order': {str(stage): list(self.order[stage]) for stage in sorted(self.order)},
            'items_by_id': {sid: e.to_dict() for sid, e in self.items_by_id.items()},
            'active_index': self.active_index,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'SignullLedger':
        data = data or {}
        return cls(
            order={int(k): list(v) for k, v in (data.get('order') or {}).items()},
            items_by_id={
                sid: SignullEntry.from_dict(e) for sid, e in (data.get('items_by_id') or {}).items()
            },
            active_index=data.get('active_index'),
        )


@dataclass
class Settings:
    play_mode: PlayMode = PlayMode.ROUND_ROBIN
    connects_required: int = 2
    max_players: int = 8
    prefix_mode: bool = True
    time_limit_seconds: int = 30
    direct_guesses: int = 3

    def to_dict(self) -> Dict[str, Any]:
        return {
            'play_mode': self.play_mode.value,
            'connects_required': self.connects_required,
            'max_players': self.max_players,
            'prefix_mode': self.prefix_mode,
            'time_limit_seconds': self.time_limit_seconds,
            'direct_guesses': self.direct_guesses,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'Settings':
        data = data or {}
        defaults = cls()
        return cls(
            play_mode=PlayMode(data.get('play_mode', defaults.play_mode.value)),
            connects_required=int(data.get('connects_required', defaults.connects_required)),
            max_players=int(data.get('max_players', defaults.max_players)),
            prefix_mode=bool(data.get('prefix_mode', defaults.prefix_mode)),
            time_limit_seconds=int(data.get('time_limit_seconds', defaults.time_limit_seconds)),
            direct_guesses=int(data.get('direct_guesses', defaults.direct_guesses)),
        )


@dataclass
class ScoreEvent:
    player_id: str
    delta: int
    reason: str
    timestamp: float
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'player_id': self.player_id,
            'delta': self.delta,
            'reason': self.reason,
            'timestamp': self.timestamp,
            'details': dict(self.details),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ScoreEvent':
        return cls(
            player_id=data['player_id'],
            delta=int(data['delta']),
            reason=data['reason'],
            timestamp=float(data['timestamp']),
            details=dict(data.get('details') or {}),
        )


@dataclass
class GameInsight:
    id: str
    type: str
    player_ids: List[str]
    title: str
    subtitle: str
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'type': self.type,
            'player_ids': list(self.player_ids),
            'title': self.title,
            'subtitle': self.subtitle,
            'metadata': dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'GameInsight':
        return cls(
            id=data['id'],
            type=data['type'],
            player_ids=list(data.get('player_ids', [])),
            title=data.get('title', ''),
            subtitle=data.get('subtitle', ''),
            metadata=dict(data.get('metadata') or {}),
        )


@dataclass
class LastDirectGuess:
    player_id: str
    player_name: str
    word: str
    timestamp: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'player_id': self.player_id,
            'player_name': self.player_name,
            'word': self.word,
            'timestamp': self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional['LastDirectGuess']:
        if not data:
            return None
        return cls(
            player_id=data['player_id'],
            player_name=data.get('player_name', ''),
            word=data['word'],
            timestamp=float(data['timestamp']),
        )


@dataclass
class Room:
    code: str
    phase: Phase = Phase.LOBBY
    players: Dict[str, Player] = field(default_factory=dict)
    host_id: Optional[str] = None
    setter_id: Optional[str] = None
    secret_word: str = ''
    revealed_count: int = 0
    ledger: SignullLedger = field(default_factory=SignullLedger)
    direct_guesses_left: int = 3
    last_direct_guess: Optional[LastDirectGuess] = None
    winner: Optional[Winner] = None
    settings: Settings = field(default_factory=Settings)
    score_events: List[ScoreEvent] = field(default_factory=list)
    insights: List[GameInsight] = field(default_factory=list)
    created_at: float = 0.0
    updated_at: float = 0.0

    @property
    def is_round_robin(self) -> bool:
        return self.settings.play_mode is PlayMode.ROUND_ROBIN

    @property
    def revealed_prefix(self) -> str:
        return self.secret_word[:self.revealed_count]

    @property
    def remaining_letters(self) -> int:
        return max(0, len(self.secret_word) - self.revealed_count)

    def players_by_join(self) -> List[Player]:
        # JSON object order is not guaranteed by every store backend
        return sorted(self.players.values(), key=lambda p: (p.joined_at, p.id))

    def guesser_ids(self) -> List[str]:
        return [p.id for p in self.players_by_join() if p.role is Role.GUESSER]

    def is_setter(self, player_id: str) -> bool:
        return player_id is not None and player_id == self.setter_id

    def to_dict(self) -> Dict[str, Any]:
        return {
            'code': self.code,
            'phase': self.phase.value,
            'players': {pid: p.to_dict() for pid, p in self.players.items()},
            'host_id': self.host_id,
            'setter_id': self.setter_id,
            'secret_word': self.secret_word,
            'revealed_count': self.revealed_count,
            'signulls': self.ledger.to_dict(),
            'direct_guesses_left': self.direct_guesses_left,
            'last_direct_guess': self.last_direct_guess.to_dict() if self.last_direct_guess else None,
            'winner': self.winner.value if self.winner else None,
            'settings': self.settings.to_dict(),
            'score_events': [e.to_dict() for e in self.score_events],
            'insights': [i.to_dict() for i in self.insights],
            'created_at': self.created_at,
            'updated_at': self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Room':
        winner = data.get('winner')
        return cls(
            code=data['code'],
            phase=Phase(data.get('phase', Phase.LOBBY.value)),
            players={pid: Player.from_dict(p) for pid, p in (data.get('players') or {}).items()},
            host_id=data.get('host_id'),
            setter_id=data.get('setter_id'),
            secret_word=data.get('secret_word') or '',
            revealed_count=int(data.get('revealed_count', 0)),
            ledger=SignullLedger.from_dict(data.get('signulls')),
            direct_guesses_left=int(data.get('direct_guesses_left', 0)),
            last_direct_guess=LastDirectGuess.from_dict(data.get('last_direct_guess')),
            winner=Winner(winner) if winner else None,
            settings=Settings.from_dict(data.get('settings')),
            score_events=[ScoreEvent.from_dict(e) for e in data.get('score_events', [])],
            insights=[GameInsight.from_dict(i) for i in data.get('insights', [])],
            created_at=float(data.get('created_at', 0.0)),
            updated_at=float(data.get('updated_at', 0.0)),
        )
