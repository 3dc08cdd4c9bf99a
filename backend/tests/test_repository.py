import re

import pytest
from sqlalchemy.orm.exc import StaleDataError

from signull import db
from signull.models import Room as RoomRow, generate_room_code
from signull.services.game import lobby
from signull.services.game.errors import GameError, INVALID_PHASE
from signull.services.game.repository import DELETE_ROOM, RoomRepository, server_now
from signull.services.game.state import Settings


def _new(repo, player_id='S'):
    return repo.create(lambda code, now: lobby.new_room(code, player_id, 'Sam', Settings(), now))


def test_server_now_is_strictly_increasing():
    far_future = 10 ** 12
    assert server_now(far_future) == far_future + 0.001
    assert server_now(0.0) > 0.0


def test_room_codes_are_pronounceable(flask_app):
    for _ in range(20):
        assert re.match(r'^[^AEIOUY0-9][AEUY][^AEIOUY0-9][AEUY][2-9][2-9]$', generate_room_code())


def test_apply_commits_and_publishes(flask_app):
    published = []
    repo = RoomRepository(on_commit=lambda code, room: published.append((code, room)))
    room = _new(repo)

    updated, result = repo.apply(room.code.lower(), lambda r, now: lobby.join(r, 'A', 'Alice', now))
    assert result.value == 'guesser'
    assert updated.updated_at > room.updated_at
    assert set(repo.load(room.code).players) == {'S', 'A'}
    assert [code for code, _ in published] == [room.code, room.code]
    assert RoomRow.query.filter_by(code=room.code).first().version == 2


def test_game_error_leaves_store_untouched(flask_app):
    published = []
    repo = RoomRepository(on_commit=lambda code, room: published.append(code))
    room = _new(repo)

    def fn(r, now):
        lobby.join(r, 'A', 'Alice', now)
        raise GameError(INVALID_PHASE)

    with pytest.raises(GameError):
        repo.apply(room.code, fn)
    assert set(repo.load(room.code).players) == {'S'}
    assert len(published) == 1


def test_stale_write_is_retried_against_fresh_snapshot(flask_app):
    repo = RoomRepository(max_retries=3)
    room = _new(repo)
    calls = []

    def fn(r, now):
        calls.append(now)
        if len(calls) == 1:
            # a concurrent writer bumps the version under us
            db.session.execute(db.text('UPDATE room SET version = version + 1 WHERE code = :code'),
                               {'code': r.code})
        lobby.join(r, f'P{len(calls)}', 'Pat', now)

    updated, _ = repo.apply(room.code, fn)
    assert len(calls) == 2
    assert set(updated.players) == {'S', 'P2'}


def test_retries_exhausted_raise_transaction_conflict(flask_app, monkeypatch):
    repo = RoomRepository(max_retries=3)
    room = _new(repo)
    attempts = []

    def always_stale():
        attempts.append(1)
        raise StaleDataError('conflict')

    monkeypatch.setattr(db.session, 'commit', always_stale)
    with pytest.raises(GameError) as exc:
        repo.apply(room.code, lambda r, now: lobby.set_presence(r, 'S', False, now))
    assert exc.value.code == 'TRANSACTION_CONFLICT'
    assert len(attempts) == 3


def test_delete_room(flask_app):
    published = []
    repo = RoomRepository(on_commit=lambda code, room: published.append(room))
    room = _new(repo)
    gone, result = repo.apply(room.code, lambda r, now: DELETE_ROOM)
    assert gone is None
    assert published[-1] is None
    with pytest.raises(GameError) as exc:
        repo.load(room.code)
    assert exc.value.code == 'ROOM_NOT_FOUND'
